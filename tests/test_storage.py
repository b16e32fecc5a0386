import io

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from trashapp.core.config import settings
from trashapp.core.errors import AppError
from trashapp.services.storage import PhotoStorage, check_photo_batch


def make_upload(name: str, content_type: str, data: bytes = b"\x89PNG fake") -> UploadFile:
    return UploadFile(file=io.BytesIO(data), filename=name, headers=Headers({"content-type": content_type}))


def test_check_photo_batch_rules():
    with pytest.raises(AppError) as exc:
        check_photo_batch([])
    assert exc.value.code == "NO_PHOTOS"

    with pytest.raises(AppError) as exc:
        check_photo_batch([make_upload(f"{i}.png", "image/png") for i in range(6)])
    assert exc.value.code == "TOO_MANY_PHOTOS"

    with pytest.raises(AppError) as exc:
        check_photo_batch([make_upload("notes.txt", "text/plain")])
    assert exc.value.code == "INVALID_FILE_TYPE"
    assert exc.value.details == {"filename": "notes.txt"}


@pytest.mark.anyio
async def test_save_many_writes_files(tmp_path):
    storage = PhotoStorage(tmp_path, "/media")
    urls = await storage.save_many([make_upload("bin.png", "image/png"), make_upload("bag.jpg", "image/jpeg")])

    assert len(urls) == 2
    assert all(url.startswith("/media/pickups/") for url in urls)
    assert urls[0].endswith(".png")
    assert urls[1].endswith(".jpg")
    assert len(list((tmp_path / "pickups").iterdir())) == 2


@pytest.mark.anyio
async def test_oversized_photo_rejects_whole_batch(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "MAX_PHOTO_SIZE", 4)
    storage = PhotoStorage(tmp_path, "/media")
    with pytest.raises(AppError) as exc:
        await storage.save_many([make_upload("a.png", "image/png", b"ok"), make_upload("b.png", "image/png", b"too big")])
    assert exc.value.code == "FILE_TOO_LARGE"
    assert not (tmp_path / "pickups").exists()
