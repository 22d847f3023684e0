"""
Attachment upload and download routes.

Stored files are addressed as /uploads/<name>; `files_router` serves that
path at the application root so attachment URLs resolve as-is.
"""

from fastapi import APIRouter, File, Response, UploadFile

from app.api.deps import CurrentUser, Storage
from app.errors import NotFoundError
from app.schemas.uploads import AttachmentRecord
from app.services.attachments import is_stored_name, store_uploads

router = APIRouter(tags=["uploads"])
files_router = APIRouter(tags=["uploads"])


@router.post("/upload", response_model=list[AttachmentRecord])
async def upload_files(
    current_user: CurrentUser,
    storage: Storage,
    files: list[UploadFile] = File(...),
) -> list[AttachmentRecord]:
    """Store up to five files for use as chat attachments."""
    return await store_uploads(storage, files)


@router.get("/uploads/{name}")
@files_router.get("/uploads/{name}", include_in_schema=False)
async def download_file(name: str, storage: Storage) -> Response:
    if not is_stored_name(name):
        raise NotFoundError("File not found")
    stored = await storage.get_file(name)
    if stored is None:
        raise NotFoundError("File not found")
    return Response(content=stored.data, media_type=stored.content_type)
