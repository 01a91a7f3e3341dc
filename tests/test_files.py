import asyncio

import pytest
from fastapi.testclient import TestClient

from share_app.errors import (
    ExpiredError,
    InvalidInputError,
    NotFoundError,
    PasswordIncorrectError,
    StorageFailureError,
    TooLargeError,
)
from share_app.config import settings
from share_app.dependencies import get_file_service
from share_app.metadata.strategies import InMemoryMetadataStore
from share_app.services.file_service import (
    FileService,
    format_size,
    guess_content_type,
    sanitize_filename,
)


class FailingRecordStore(InMemoryMetadataStore):
    """Accepts password hashes but refuses to write file records"""

    async def set(self, key, value, ttl=None):
        if key.startswith("file:") and not key.endswith(":password"):
            raise StorageFailureError("disk full")
        await super().set(key, value, ttl=ttl)


class RecordingFileService(FileService):
    """Remembers whether the upload body ever reached the service"""

    uploaded = False

    async def upload(self, data, filename, **kwargs):
        self.uploaded = True
        return await super().upload(data, filename, **kwargs)


def upload(client: TestClient, content: bytes = b"file body", name: str = "notes.txt", **form):
    return client.post(
        "/api/v1/files/upload",
        files={"file": (name, content, "text/plain")},
        data=form,
    )


class TestFileAPI:
    """Test file endpoints"""

    def test_upload_and_download(self, client: TestClient):
        response = upload(client)
        assert response.status_code == 201

        data = response.json()
        assert len(data["id"]) == 16
        assert data["filename"] == "notes.txt"
        assert data["size"] == len(b"file body")
        assert data["hasPassword"] is False
        assert data["downloadUrl"] == f"http://testserver/api/v1/files/{data['id']}"

        download = client.get(f"/api/v1/files/{data['id']}")
        assert download.status_code == 200
        assert download.content == b"file body"
        assert download.headers["content-type"].startswith("text/plain")
        assert 'filename="notes.txt"' in download.headers["content-disposition"]
        assert download.headers["cache-control"] == "private, no-cache"

    def test_password_protected_download(self, client: TestClient):
        data = upload(client, content=b"secret bytes", password="s3cret").json()
        assert data["hasPassword"] is True
        file_id = data["id"]

        missing = client.get(f"/api/v1/files/{file_id}")
        assert missing.status_code == 401
        assert missing.json()["code"] == "password_required"

        wrong = client.get(f"/api/v1/files/{file_id}", params={"password": "nope"})
        assert wrong.status_code == 403
        assert wrong.json()["code"] == "password_incorrect"

        right = client.get(f"/api/v1/files/{file_id}", params={"password": "s3cret"})
        assert right.status_code == 200
        assert right.content == b"secret bytes"

        info = client.get(f"/api/v1/files/{file_id}/info").json()
        assert info["downloads"] == 1

    def test_info_needs_no_password_and_is_not_a_download(self, client: TestClient):
        file_id = upload(client, password="s3cret").json()["id"]

        info = client.get(f"/api/v1/files/{file_id}/info")
        assert info.status_code == 200
        assert info.json()["downloads"] == 0
        assert "content" not in info.json()

    def test_missing_file(self, client: TestClient):
        response = client.post("/api/v1/files/upload", data={"expirationDays": "1"})
        assert response.status_code == 400
        assert response.json()["code"] == "missing_file"

    def test_expiration_days_form_field(self, client: TestClient, clock):
        data = upload(client, expirationDays="1").json()
        assert data["expiresAt"] is not None

        clock.advance(days=1)
        assert client.get(f"/api/v1/files/{data['id']}").status_code == 410
        assert client.get(f"/api/v1/files/{data['id']}").status_code == 404

    def test_oversized_upload_rejected_before_reaching_service(
        self, client: TestClient, metadata_store, blob_store, clock
    ):
        service = RecordingFileService(metadata_store, blob_store, max_file_size=1024, clock=clock)
        client.app.dependency_overrides[get_file_service] = lambda: service

        response = upload(client, content=b"x" * 4096)

        assert response.status_code == 413
        assert response.json() == {
            "error": "File too large. Maximum size is 1KB",
            "code": "too_large",
        }
        assert service.uploaded is False
        assert asyncio.run(blob_store.keys()) == []

    def test_share_url_only_with_frontend(self, client: TestClient, monkeypatch):
        data = upload(client).json()
        assert data["shareUrl"] is None

        monkeypatch.setattr(settings, "frontend_url", "https://share.example/")
        info = client.get(f"/api/v1/files/{data['id']}/info").json()
        assert info["shareUrl"] == f"https://share.example/f/{data['id']}"

    def test_corrupt_record_is_storage_failure(self, client: TestClient, metadata_store, admin_headers):
        asyncio.run(metadata_store.set("file:brokenbrokenbrok", "{not json"))

        response = client.get("/api/v1/files/brokenbrokenbrok/info")
        assert response.status_code == 500
        assert response.json() == {"error": "Internal storage error", "code": "storage_failure"}

        # Admin scans skip it instead of failing
        stats = client.get("/api/v1/admin/stats", headers=admin_headers).json()
        assert stats["totalFiles"] == 0

    def test_download_nonexistent(self, client: TestClient):
        response = client.get("/api/v1/files/doesnotexist1234")
        assert response.status_code == 404

    def test_delete_twice(self, client: TestClient, blob_store):
        file_id = upload(client).json()["id"]

        assert client.delete(f"/api/v1/files/{file_id}").status_code == 200
        assert client.delete(f"/api/v1/files/{file_id}").status_code == 404
        assert asyncio.run(blob_store.keys("files/")) == []


class TestFileService:
    """Test file service logic directly"""

    def test_too_large(self, file_service: FileService, blob_store):
        with pytest.raises(TooLargeError) as exc_info:
            asyncio.run(file_service.upload(b"x" * 1025, "big.bin"))

        assert exc_info.value.message == "File too large. Maximum size is 1KB"

        assert asyncio.run(blob_store.keys()) == []

    def test_exactly_at_limit(self, file_service: FileService):
        record = asyncio.run(file_service.upload(b"x" * 1024, "edge.bin"))
        assert record.size == 1024

    def test_no_data(self, file_service: FileService):
        with pytest.raises(InvalidInputError):
            asyncio.run(file_service.upload(None, None))

    def test_stored_name_is_sanitized(self, file_service: FileService, blob_store):
        record = asyncio.run(file_service.upload(b"data", "../../etc/passwd"))

        assert record.original_name == "../../etc/passwd"
        assert asyncio.run(blob_store.keys("files/")) == [f"files/{record.id}-passwd"]

    def test_password_hash_not_plaintext(self, file_service: FileService, metadata_store):
        record = asyncio.run(file_service.upload(b"data", "a.txt", password="hunter2"))

        stored = asyncio.run(metadata_store.get(f"file:{record.id}:password"))
        assert stored is not None
        assert stored != "hunter2"
        assert "hunter2" not in asyncio.run(metadata_store.get(f"file:{record.id}"))

    def test_expiry_checked_before_password(self, file_service: FileService, clock):
        record = asyncio.run(file_service.upload(b"data", "a.txt", expiration_days=1, password="pw"))
        clock.advance(days=2)

        with pytest.raises(ExpiredError):
            asyncio.run(file_service.download(record.id, password="wrong"))

    def test_wrong_password_does_not_count(self, file_service: FileService):
        record = asyncio.run(file_service.upload(b"data", "a.txt", password="pw"))

        with pytest.raises(PasswordIncorrectError):
            asyncio.run(file_service.download(record.id, password="wrong"))

        assert asyncio.run(file_service.info(record.id)).downloads == 0

    def test_missing_payload_is_not_found(self, file_service: FileService, blob_store):
        record = asyncio.run(file_service.upload(b"data", "a.txt"))
        asyncio.run(blob_store.delete(f"files/{record.filename}"))

        with pytest.raises(NotFoundError):
            asyncio.run(file_service.download(record.id))

        # Metadata is left alone; the counter was not bumped
        assert asyncio.run(file_service.info(record.id)).downloads == 0

    def test_metadata_failure_rolls_back_payload(self, blob_store, clock):
        metadata = FailingRecordStore()
        service = FileService(metadata, blob_store, max_file_size=1024, clock=clock)

        with pytest.raises(StorageFailureError):
            asyncio.run(service.upload(b"data", "a.txt", password="pw"))

        assert asyncio.run(blob_store.keys()) == []
        assert asyncio.run(metadata.keys()) == []


class TestFileHelpers:
    def test_sanitize_filename(self):
        assert sanitize_filename("report 2024.pdf") == "report_2024.pdf"
        assert sanitize_filename("C:\\Users\\me\\photo.png") == "photo.png"
        assert sanitize_filename("") == "file"
        assert sanitize_filename(None) == "file"

    def test_guess_content_type(self):
        assert guess_content_type("a.txt", "application/x-custom") == "application/x-custom"
        assert guess_content_type("a.png") == "image/png"
        assert guess_content_type("noextension") == "application/octet-stream"

    def test_format_size(self):
        assert format_size(10 * 1024 * 1024) == "10MB"
        assert format_size(1024) == "1KB"
        assert format_size(1536) == "1.5KB"
        assert format_size(100) == "100 bytes"
