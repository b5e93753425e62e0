"""Tests for image uploads."""

import asyncio
import io

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from config import app_config
from exceptions import UploadError
from services.upload_service import UploadService

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def upload_file(name, data, content_type):
    return UploadFile(io.BytesIO(data), filename=name, headers=Headers({"content-type": content_type}))


class TestUploadService:

    def test_save_and_remove(self, tmp_path):
        service = UploadService(upload_dir=tmp_path)

        url = asyncio.run(service.save(upload_file("a.png", PNG, "image/png")))

        assert url.startswith("/uploads/") and url.endswith(".png")
        assert (tmp_path / url.rsplit("/", 1)[-1]).read_bytes() == PNG
        assert service.remove(url)
        assert not service.remove(url)
        assert not service.remove("https://elsewhere.example/a.png")

    def test_oversized_file_is_not_kept(self, tmp_path):
        service = UploadService(upload_dir=tmp_path, max_mb=0)

        with pytest.raises(UploadError) as excinfo:
            asyncio.run(service.save(upload_file("a.png", PNG, "image/png")))

        assert excinfo.value.too_large
        assert list(tmp_path.iterdir()) == []

    def test_batch_checks_every_type_first(self, tmp_path):
        service = UploadService(upload_dir=tmp_path)
        files = [upload_file("a.png", PNG, "image/png"), upload_file("b.pdf", b"%PDF", "application/pdf")]

        with pytest.raises(UploadError, match="Unsupported file type"):
            asyncio.run(service.save_all(files))

        assert list(tmp_path.iterdir()) == []


class TestUploadEndpoints:

    def test_single_upload_is_served_back(self, client, homeowner, auth, upload_dir):
        response = client.post("/api/uploads", files={"file": ("photo.png", PNG, "image/png")},
                               headers=auth(homeowner))

        assert response.status_code == 201
        url = response.json()["url"]
        assert (upload_dir / url.rsplit("/", 1)[-1]).exists()

    def test_multiple_uploads(self, client, homeowner, auth):
        files = [("images", ("a.png", PNG, "image/png")), ("images", ("b.gif", b"GIF89a", "image/gif"))]

        response = client.post("/api/uploads/images", files=files, headers=auth(homeowner))

        assert response.status_code == 201
        urls = response.json()["urls"]
        assert len(urls) == 2
        assert urls[1].endswith(".gif")

    def test_unsupported_type(self, client, homeowner, auth):
        response = client.post("/api/uploads/multiple", files=[("files", ("a.txt", b"hello", "text/plain"))],
                               headers=auth(homeowner))

        assert response.status_code == 400
        assert "Unsupported file type" in response.json()["message"]

    def test_too_large(self, client, homeowner, auth, monkeypatch):
        monkeypatch.setattr(app_config, "MAX_UPLOAD_MB", 0)

        response = client.post("/api/uploads", files={"file": ("photo.png", PNG, "image/png")},
                               headers=auth(homeowner))

        assert response.status_code == 413

    def test_requires_authentication(self, client):
        response = client.post("/api/uploads", files={"file": ("photo.png", PNG, "image/png")})

        assert response.status_code == 401
