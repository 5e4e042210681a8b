"""
Tests for photo uploads

Tests cover:
- Filename/directory sanitization and image signature detection
- Single upload to the bucket (/api/upload)
- Browser credentials
- Multi-photo upload with partial failure
"""
import asyncio
import json
import time

import httpx
import pytest

from backend.utils.errors import ApiError, SessionExpiredError
from config.settings import settings
from services import storage_service
from services.upload_service import PendingPhoto, UploadService, capture_timestamp
from tests.conftest import FakeStorage, assert_session_cleared
from utils.security_utils import (
    MAX_FILE_SIZE,
    detect_mime_type_from_content,
    sanitize_directory,
    sanitize_filename,
    validate_file_content,
)

JPEG = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00" + b"\x00" * 64
PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
HEIC = b"\x00\x00\x00\x18ftypheic" + b"\x00" * 64


def test_sanitize_filename():
    assert sanitize_filename("../../etc/passwd.jpg") == "etcpasswd.jpg"
    assert sanitize_filename("foto de obra (1).JPG") == "foto_de_obra__1_.JPG"
    with pytest.raises(ValueError):
        sanitize_filename("")


def test_sanitize_directory():
    assert sanitize_directory("/proyectos/../12/activos/") == "proyectos/12/activos"
    with pytest.raises(ValueError):
        sanitize_directory("../..")


def test_detect_image_signatures():
    assert detect_mime_type_from_content(JPEG) == "image/jpeg"
    assert detect_mime_type_from_content(PNG) == "image/png"
    assert detect_mime_type_from_content(HEIC) == "image/heic"
    assert detect_mime_type_from_content(b"RIFF\x00\x00\x00\x00WEBPVP8 ") == "image/webp"
    assert detect_mime_type_from_content(b"%PDF-1.7") is None


def test_validate_file_content_limits():
    with pytest.raises(ApiError) as too_big:
        validate_file_content(JPEG + b"\x00" * MAX_FILE_SIZE, "grande.jpg")
    assert too_big.value.message == "El archivo es demasiado grande. Máximo 10MB"

    with pytest.raises(ApiError):
        validate_file_content(b"", "vacio.jpg")

    with pytest.raises(ApiError):
        validate_file_content(b"MZ\x90\x00", "falso.jpg")


def test_capture_timestamp():
    assert capture_timestamp("2025-03-04") == "2025-03-04"
    assert capture_timestamp("2025-03-04", "09:15") == "2025-03-04 09:15"


def test_upload_single_photo(auth_client, storage):
    response = auth_client.post(
        "/api/upload",
        files={"file": ("Obra Norte.jpg", JPEG, "image/jpeg")},
        data={"directorio": "proyectos/5"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["url"] == "https://storage.googleapis.com/test-bucket/proyectos/5/Obra_Norte.jpg"
    assert body["contentType"] == "image/jpeg"
    assert body["size"] == len(JPEG)
    assert storage.uploads[0]["directory"] == "proyectos/5"


def test_upload_defaults_directory(auth_client, storage):
    auth_client.post("/api/upload", files={"file": ("a.png", PNG, "image/png")})

    assert storage.uploads[0]["directory"] == "activos-visuales"


def test_upload_requires_session(client, storage):
    response = client.post("/api/upload", files={"file": ("a.jpg", JPEG, "image/jpeg")})

    assert response.status_code == 401
    assert storage.uploads == []


def test_upload_rejects_forbidden_extension(auth_client, storage):
    response = auth_client.post("/api/upload", files={"file": ("script.exe", JPEG, "application/octet-stream")})

    assert response.status_code == 400
    assert storage.uploads == []


def test_credentials_not_configured(auth_client, monkeypatch):
    monkeypatch.setattr(settings, "firebase_api_key", None)

    response = auth_client.post("/api/upload/credentials")

    assert response.status_code == 500


def test_credentials(auth_client, monkeypatch):
    monkeypatch.setattr(settings, "firebase_api_key", "api-key")
    monkeypatch.setattr(settings, "firebase_project_id", "vams-demo")
    monkeypatch.setattr(settings, "firebase_storage_bucket", "vams-demo.appspot.com")

    response = auth_client.post("/api/upload/credentials")

    assert response.status_code == 200
    credentials = response.json()["credentials"]
    assert credentials["projectId"] == "vams-demo"
    assert credentials["storageBucket"] == "vams-demo.appspot.com"


def create_asset_handler(failing_filename, message="Categoría inexistente"):
    def handler(request):
        body = json.loads(request.content)
        if body["AV_FILENAME"] == failing_filename:
            return httpx.Response(200, json={"success": False, "message": message})
        return httpx.Response(201, json={"success": True, "message": "Activo creado", "file": body["AV_FILENAME"]})
    return handler


def multi_upload(client, filenames, dates):
    return client.post(
        "/api/projects/7/activos/upload",
        files=[("files[]", (name, JPEG, "image/jpeg")) for name in filenames],
        data={"fechas_captura[]": dates, "CT_IDCATEGORIA_FK": "3", "descripcion": "Recorrido"},
    )


def test_multi_upload_all_succeed(auth_client, ords, storage):
    ords.add("POST", "/proyectos/7/activos", handler=create_asset_handler(failing_filename=None))

    response = multi_upload(auth_client, ["a.jpg", "b.jpg"], ["2025-01-01", "2025-01-02"])

    assert response.status_code == 201
    assert [r["success"] for r in response.json()["results"]] == [True, True]
    assert {u["directory"] for u in storage.uploads} == {"proyectos/7/activos"}


def test_multi_upload_partial_failure(auth_client, ords, storage):
    ords.add("POST", "/proyectos/7/activos", handler=create_asset_handler("b.jpg"))

    response = multi_upload(auth_client, ["a.jpg", "b.jpg", "c.jpg"], ["2025-01-01", "2025-01-02", "2025-01-03"])

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Categoría inexistente"
    assert [r["fileName"] for r in body["results"]] == ["a.jpg", "b.jpg", "c.jpg"]
    assert [r["success"] for r in body["results"]] == [True, False, True]
    assert len(storage.uploads) == 3
    assert len(ords.calls) == 3

    created = [json.loads(call.content) for call in ords.calls]
    assert all(c["PR_IDPROYECTO_FK"] == 7 and c["CT_IDCATEGORIA_FK"] == 3 for c in created)


def test_multi_upload_invalid_token(auth_client, ords, storage):
    ords.add("POST", "/proyectos/7/activos", json_body={"success": False, "message": "Token inválido"})

    response = multi_upload(auth_client, ["a.jpg", "b.jpg"], ["2025-01-01", "2025-01-02"])

    assert response.status_code == 401
    assert_session_cleared(response)


def test_multi_upload_requires_a_date_per_file(auth_client, ords, storage):
    response = multi_upload(auth_client, ["a.jpg", "b.jpg"], ["2025-01-01"])

    assert response.status_code == 400
    assert storage.uploads == []
    assert ords.calls == []


class ScriptedProxy:
    """Proxy double whose create() fails for the configured filenames"""

    def __init__(self, failures):
        self.failures = failures
        self.created = []

    async def create(self, segments, token, body, error_message):
        failure = self.failures.get(body["AV_FILENAME"])
        if failure is not None:
            raise failure
        self.created.append(body)
        return {"success": True, "file": body["AV_FILENAME"]}


def photo(name):
    return PendingPhoto(filename=name, stored_name=name, content=JPEG, content_type="image/jpeg", captured_at="2025-05-05")


@pytest.mark.asyncio
async def test_upload_service_reports_first_failure_in_file_order():
    proxy = ScriptedProxy({
        "b.jpg": ApiError("Falla b", status_code=409),
        "c.jpg": ApiError("Falla c", status_code=500),
    })
    outcome = await UploadService(proxy, FakeStorage()).upload_photos(7, "tok", [photo("a.jpg"), photo("b.jpg"), photo("c.jpg")])

    assert not outcome.success
    assert outcome.error.status_code == 409
    assert [r["success"] for r in outcome.results] == [True, False, False]
    assert [c["AV_FILENAME"] for c in proxy.created] == ["a.jpg"]


@pytest.mark.asyncio
async def test_upload_service_propagates_session_expiry():
    proxy = ScriptedProxy({"a.jpg": SessionExpiredError()})

    with pytest.raises(SessionExpiredError):
        await UploadService(proxy, FakeStorage()).upload_photos(7, "tok", [photo("a.jpg"), photo("b.jpg")])


class FakeBlob:
    def __init__(self, path):
        self.path = path

    def upload_from_string(self, content, content_type=None, predefined_acl=None):
        assert predefined_acl == "publicRead"


class FakeBucket:
    name = "vams-demo.appspot.com"

    def blob(self, path):
        return FakeBlob(path)


@pytest.mark.asyncio
async def test_concurrent_uploads_create_the_firebase_app_once(monkeypatch):
    apps = {}
    created = []

    def get_app(name):
        time.sleep(0.02)
        if name not in apps:
            raise ValueError(f"The default Firebase app does not exist: {name}")
        return apps[name]

    def initialize_app(credential=None, options=None, name="[DEFAULT]"):
        if name in apps:
            raise ValueError(f"The Firebase app named {name} already exists")
        time.sleep(0.02)
        created.append(name)
        apps[name] = object()
        return apps[name]

    monkeypatch.setattr(settings, "firebase_project_id", "vams-demo")
    monkeypatch.setattr(settings, "firebase_private_key", None)
    monkeypatch.setattr(storage_service.firebase_admin, "get_app", get_app)
    monkeypatch.setattr(storage_service.firebase_admin, "initialize_app", initialize_app)
    monkeypatch.setattr(storage_service.fb_storage, "bucket", lambda app=None: FakeBucket())

    service = storage_service.StorageService()
    urls = await asyncio.gather(*[
        service.upload(JPEG, f"foto{i}.jpg", "image/jpeg", "proyectos/7") for i in range(3)
    ])

    assert created == [storage_service.FIREBASE_APP_NAME]
    assert all(url.startswith("https://storage.googleapis.com/vams-demo.appspot.com/proyectos/7/") for url in urls)
