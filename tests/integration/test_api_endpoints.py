"""
Test HTTP endpoints
"""

import httpx
import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from catalog_etl.api import deps
from catalog_etl.core.config import settings
from catalog_etl.core.database import get_async_session
from catalog_etl.core.security import decode_access_token
from catalog_etl.main import app


@pytest.mark.asyncio
async def test_health_endpoint(client: AsyncClient):
    """Test basic health endpoint"""
    response = await client.get("/api/v1/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert "timestamp" in data
    assert data["version"] == settings.VERSION


@pytest.mark.asyncio
async def test_readiness_checks_database(client: AsyncClient):
    response = await client.get("/api/v1/health/ready")

    assert response.status_code == 200
    assert response.json()["checks"] == {"database": True}


@pytest.mark.asyncio
async def test_readiness_reports_degraded_database(client: AsyncClient):
    class BrokenSession:
        async def execute(self, statement):
            raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    async def get_broken_session():
        yield BrokenSession()

    app.dependency_overrides[get_async_session] = get_broken_session

    response = await client.get("/api/v1/health/ready")

    assert response.status_code == 200
    assert response.json()["status"] == "degraded"
    assert response.json()["checks"] == {"database": False}


@pytest.mark.asyncio
async def test_root_endpoint(client: AsyncClient):
    """Test root endpoint"""
    response = await client.get("/")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/json"
    data = response.json()
    assert data["name"] == settings.PROJECT_NAME
    assert "version" in data


@pytest.mark.asyncio
async def test_batch_import_reports_camel_case(client: AsyncClient, storage, images, make_csv):
    images["https://x/1.jpg"] = httpx.Response(200, content=b"one")
    storage.objects[settings.csv_file_name] = make_csv([
        {"商品貨號": "A1", "商品圖檔": "(https://x/1.jpg)"},
        {"商品貨號": "A2"},
    ])

    response = await client.get("/api/v1/batch-import", params={"batch_size": 1})

    assert response.status_code == 200
    data = response.json()
    assert data["processed"] == 1
    assert data["nextCursor"] == "1"
    assert data["remaining"] == 1
    assert isinstance(data["durationSeconds"], float)
    assert any("A1" in line for line in data["logs"])
    assert response.headers["X-Request-ID"]
    assert response.headers["Cache-Control"] == "no-store"

    response = await client.post("/api/v1/batch-import", json={"cursor": data["nextCursor"], "batch_size": 1})

    assert response.status_code == 200
    assert response.json()["processed"] == 1
    assert response.json()["nextCursor"] == "2"


@pytest.mark.asyncio
async def test_batch_import_unknown_source(client: AsyncClient):
    response = await client.get("/api/v1/batch-import", params={"source": "ftp"})

    assert response.status_code == 400
    data = response.json()
    assert data["error"] == "BadRequestError"
    assert data["context"]["supported"] == ["csv", "records"]
    assert "correlation_id" in data
    assert "timestamp" in data


@pytest.mark.asyncio
async def test_error_payload_carries_caller_correlation_id(client: AsyncClient):
    correlation_id = "3f2b8c1e-9a4d-4c6f-8e2a-1b7d5c9e0f34"

    response = await client.get(
        "/api/v1/batch-import", params={"source": "ftp"}, headers={"X-Correlation-ID": correlation_id}
    )

    assert response.status_code == 400
    assert response.json()["correlation_id"] == correlation_id


@pytest.mark.asyncio
async def test_batch_import_missing_csv(client: AsyncClient):
    response = await client.get("/api/v1/batch-import")

    assert response.status_code == 502
    assert response.json()["error"] == "SourceUnavailableError"


@pytest.mark.asyncio
async def test_batch_import_bad_cursor(client: AsyncClient, storage, make_csv):
    storage.objects[settings.csv_file_name] = make_csv([{"商品貨號": "A1"}])

    response = await client.get("/api/v1/batch-import", params={"cursor": "page-two"})

    assert response.status_code == 400
    assert response.json()["message"] == "Invalid cursor: 'page-two'"


@pytest.mark.asyncio
async def test_batch_import_validation_error(client: AsyncClient):
    response = await client.get("/api/v1/batch-import", params={"batch_size": 0})

    assert response.status_code == 422
    assert response.json()["error"] == "ValidationError"


@pytest.mark.asyncio
async def test_batch_import_unexpected_error(client: AsyncClient, storage, monkeypatch):
    async def broken_get(name):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(storage, "get", broken_get)
    monkeypatch.setattr(settings, "DEBUG", True)

    response = await client.get("/api/v1/batch-import")

    assert response.status_code == 500
    data = response.json()
    assert data["error"] == "BatchImportError"
    assert "disk on fire" in data["message"]
    assert "RuntimeError" in data["context"]["trace"]


@pytest.mark.asyncio
async def test_batch_import_hides_trace_outside_debug(client: AsyncClient, storage, monkeypatch):
    async def broken_get(name):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(storage, "get", broken_get)
    monkeypatch.setattr(settings, "DEBUG", False)

    response = await client.get("/api/v1/batch-import")

    assert response.status_code == 500
    data = response.json()
    assert data["message"] == "Batch import failed"
    assert "context" not in data


@pytest.mark.asyncio
async def test_batch_import_requires_api_key_when_configured(client: AsyncClient, storage, make_csv, monkeypatch):
    monkeypatch.setattr(settings, "admin_api_key", "s3cret")
    storage.objects[settings.csv_file_name] = make_csv([{"商品貨號": "A1"}])

    missing = await client.get("/api/v1/batch-import")
    wrong = await client.get("/api/v1/batch-import", headers={"X-API-Key": "nope"})
    right = await client.get("/api/v1/batch-import", headers={"X-API-Key": "s3cret"})

    assert missing.status_code == 401
    assert wrong.status_code == 401
    assert wrong.json()["message"] == "Invalid API key"
    assert right.status_code == 200


@pytest.mark.asyncio
async def test_api_key_is_checked_before_services_are_built(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(settings, "admin_api_key", "s3cret")
    built = []

    def unconfigured_generator():
        built.append(True)
        raise RuntimeError("GOOGLE_API_KEY is not set")

    app.dependency_overrides[deps.get_text_generator] = unconfigured_generator

    response = await client.get("/api/v1/batch-import")

    assert response.status_code == 401
    assert built == []


@pytest.mark.asyncio
async def test_background_mode_uploads_after_response(client: AsyncClient, storage, images, make_csv, monkeypatch):
    monkeypatch.setattr(settings, "image_upload_mode", "background")
    images["https://x/1.jpg"] = httpx.Response(200, content=b"one")
    storage.objects[settings.csv_file_name] = make_csv([{"商品貨號": "A1", "商品圖檔": "(https://x/1.jpg)"}])

    response = await client.get("/api/v1/batch-import")

    assert response.status_code == 200
    assert any("scheduled in background" in line for line in response.json()["logs"])
    assert storage.objects["WEDO/A1/image-1.jpg"] == b"one"


@pytest.mark.asyncio
async def test_register_and_login(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(settings, "registration_key", "let-me-in")
    credentials = {"email": "admin@example.com", "password": "hunter22"}

    registered = await client.post("/api/v1/auth/register", json={**credentials, "key": "let-me-in"})
    duplicate = await client.post("/api/v1/auth/register", json={**credentials, "key": "let-me-in"})
    logged_in = await client.post("/api/v1/auth/login", json=credentials)

    assert registered.status_code == 201
    assert duplicate.status_code == 409
    assert logged_in.status_code == 200
    data = logged_in.json()
    assert data["user"]["email"] == "admin@example.com"
    assert data["user"]["role"] == "admin"
    assert decode_access_token(data["access_token"])["email"] == "admin@example.com"


@pytest.mark.asyncio
async def test_register_validation(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(settings, "registration_key", "let-me-in")

    missing = await client.post("/api/v1/auth/register", json={"email": "a@example.com"})
    bad_key = await client.post("/api/v1/auth/register", json={"email": "a@example.com", "password": "pw", "key": "guess"})

    assert missing.status_code == 400
    assert bad_key.status_code == 403


@pytest.mark.asyncio
async def test_login_rejects_bad_credentials(client: AsyncClient, monkeypatch):
    monkeypatch.setattr(settings, "registration_key", "let-me-in")
    await client.post("/api/v1/auth/register", json={"email": "a@example.com", "password": "right", "key": "let-me-in"})

    missing = await client.post("/api/v1/auth/login", json={"email": "a@example.com"})
    wrong_password = await client.post("/api/v1/auth/login", json={"email": "a@example.com", "password": "wrong"})
    unknown_user = await client.post("/api/v1/auth/login", json={"email": "b@example.com", "password": "right"})

    assert missing.status_code == 400
    assert wrong_password.status_code == 401
    assert unknown_user.status_code == 401
    assert wrong_password.json()["message"] == unknown_user.json()["message"]


@pytest.mark.asyncio
async def test_login_is_rate_limited(client: AsyncClient):
    statuses = []
    for _ in range(6):
        response = await client.post("/api/v1/auth/login", json={"email": "x@example.com", "password": "pw"})
        statuses.append(response.status_code)

    assert statuses[:5] == [401] * 5
    assert statuses[5] == 429
