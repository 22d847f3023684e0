"""Tests for attachment upload and download."""

from app.services.attachments import is_stored_name


def test_is_stored_name():
    assert is_stored_name("0123456789abcdef0123456789abcdef.pdf")
    assert is_stored_name("0123456789abcdef0123456789abcdef")
    assert not is_stored_name("../etc/passwd")
    assert not is_stored_name("notes.txt")


async def test_upload_and_download(auth_client, client, fake_storage):
    response = await auth_client.post(
        "/api/upload",
        files=[
            ("files", ("photo.png", b"\x89PNG fake", "image/png")),
            ("files", ("essay.pdf", b"%PDF-1.4 fake", "application/pdf")),
        ],
    )
    assert response.status_code == 200
    records = response.json()
    assert [r["filename"] for r in records] == ["photo.png", "essay.pdf"]
    assert records[0]["contentType"] == "image/png"
    assert records[0]["size"] == len(b"\x89PNG fake")
    assert records[0]["url"].startswith("/uploads/")
    assert records[0]["url"].endswith(".png")
    assert len(fake_storage.files) == 2

    # Download needs no session, at the bare path or under /api
    download = await client.get(records[1]["url"])
    assert download.status_code == 200
    assert download.content == b"%PDF-1.4 fake"
    assert download.headers["content-type"].startswith("application/pdf")

    download = await client.get("/api" + records[0]["url"])
    assert download.status_code == 200


async def test_upload_rejects_unsupported_type(auth_client, fake_storage):
    response = await auth_client.post(
        "/api/upload",
        files=[
            ("files", ("ok.txt", b"fine", "text/plain")),
            ("files", ("run.exe", b"MZ", "application/x-msdownload")),
        ],
    )
    assert response.status_code == 400
    # Nothing from a rejected batch is stored
    assert fake_storage.files == {}


async def test_upload_rejects_too_many_files(auth_client):
    files = [("files", (f"f{i}.txt", b"x", "text/plain")) for i in range(6)]
    response = await auth_client.post("/api/upload", files=files)
    assert response.status_code == 400


async def test_upload_requires_session(client):
    response = await client.post("/api/upload", files={"files": ("a.txt", b"x", "text/plain")})
    assert response.status_code == 401


async def test_download_missing_file(client):
    assert (await client.get("/uploads/0123456789abcdef0123456789abcdef.png")).status_code == 404
    assert (await client.get("/uploads/whatever.png")).status_code == 404
