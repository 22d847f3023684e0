"""Upload validation and loading of chat attachments for the AI collaborator."""

import logging
import posixpath
import re
from uuid import uuid4

from fastapi import UploadFile

from app.config import get_settings
from app.errors import StorageError, ValidationError
from app.schemas.uploads import AttachmentRecord
from app.services.llm_client import LoadedAttachment
from app.services.s3 import AttachmentStorage

logger = logging.getLogger(__name__)
settings = get_settings()

ALLOWED_CONTENT_TYPES = frozenset({
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "application/pdf",
    "text/plain",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
})

URL_PREFIX = "/uploads/"

# Stored names are "<uuid hex><ext>"; anything else is never a valid lookup
_STORED_NAME_RE = re.compile(r"^[0-9a-f]{32}(\.[A-Za-z0-9]{1,10})?$")


def is_stored_name(name: str) -> bool:
    return bool(_STORED_NAME_RE.match(name))


def _clean_filename(upload: UploadFile) -> str:
    return posixpath.basename((upload.filename or "").replace("\\", "/")) or "file"


def _extension(filename: str) -> str:
    ext = posixpath.splitext(filename)[1].lower()
    return ext if re.fullmatch(r"\.[a-z0-9]{1,10}", ext) else ""


async def store_uploads(storage: AttachmentStorage, files: list[UploadFile]) -> list[AttachmentRecord]:
    """
    Validate and store uploaded files.

    Every file is checked before any is written, so a rejected batch stores nothing.
    """
    if not files:
        raise ValidationError("No files uploaded")
    if len(files) > settings.max_upload_files:
        raise ValidationError(f"At most {settings.max_upload_files} files can be uploaded at once")

    staged: list[tuple[UploadFile, bytes, str]] = []
    for upload in files:
        content_type = (upload.content_type or "").split(";")[0].strip().lower()
        filename = _clean_filename(upload)
        if content_type not in ALLOWED_CONTENT_TYPES:
            raise ValidationError(f"Unsupported file type for {filename}: {content_type or 'unknown'}")
        data = await upload.read(settings.max_upload_size_bytes + 1)
        if len(data) > settings.max_upload_size_bytes:
            raise ValidationError(f"{filename} exceeds the {settings.max_upload_size_bytes // (1024 * 1024)}MB limit")
        staged.append((upload, data, content_type))

    records = []
    for upload, data, content_type in staged:
        filename = _clean_filename(upload)
        stored_name = f"{uuid4().hex}{_extension(filename)}"
        await storage.put_file(stored_name, data, content_type)
        records.append(
            AttachmentRecord(
                filename=filename,
                url=f"{URL_PREFIX}{stored_name}",
                content_type=content_type,
                size=len(data),
            )
        )
    logger.info("Stored %d uploaded file(s)", len(records))
    return records


async def load_for_model(
    storage: AttachmentStorage,
    attachments: list[dict],
) -> list[LoadedAttachment]:
    """
    Fetch attachment bytes for an AI request.

    Missing or unreadable files are passed through with no data so the model
    is told the file could not be found instead of failing the whole turn.
    """
    loaded = []
    for record in attachments:
        filename = record.get("filename", "file")
        content_type = record.get("contentType", "application/octet-stream")
        url = record.get("url", "")
        name = url[len(URL_PREFIX):] if url.startswith(URL_PREFIX) else ""

        data = None
        if is_stored_name(name):
            try:
                stored = await storage.get_file(name)
            except StorageError:
                logger.warning("Could not read attachment %s for AI request", name)
                stored = None
            if stored is not None:
                data = stored.data
        loaded.append(LoadedAttachment(filename=filename, content_type=content_type, data=data))
    return loaded
