"""
Test the command line polling loop
"""

import httpx
import pytest
from typer.testing import CliRunner

from catalog_etl.cli import ImportFailed, app, drive_import
from catalog_etl.core.config import settings


@pytest.mark.asyncio
async def test_drive_import_follows_cursors(client, storage, make_csv):
    storage.objects[settings.csv_file_name] = make_csv([{"商品貨號": f"SKU-{i}"} for i in range(3)])
    reports = []

    summary = await drive_import(client, batch_size=2, on_report=lambda number, report: reports.append(number))

    assert summary.completed
    assert summary.batches == 3
    assert summary.processed == 3
    assert summary.cursors == ["2", "3", None]
    assert reports == [1, 2, 3]


@pytest.mark.asyncio
async def test_drive_import_stops_at_max_batches(client, storage, make_csv):
    storage.objects[settings.csv_file_name] = make_csv([{"商品貨號": f"SKU-{i}"} for i in range(3)])

    summary = await drive_import(client, batch_size=1, max_batches=2)

    assert not summary.completed
    assert summary.batches == 2
    assert summary.cursors == ["1", "2"]


@pytest.mark.asyncio
async def test_drive_import_raises_on_error_payload(client):
    with pytest.raises(ImportFailed) as excinfo:
        await drive_import(client, attempts=1)

    assert excinfo.value.status_code == 502
    assert excinfo.value.payload["error"] == "SourceUnavailableError"


def scripted_client(responses):
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        response = responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    return httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://test"), calls


@pytest.mark.asyncio
async def test_drive_import_reissues_batch_after_server_error():
    client, calls = scripted_client([
        httpx.Response(503, json={"error": "ServiceUnavailable", "message": "busy"}),
        httpx.ConnectError("reset"),
        httpx.Response(200, json={"processed": 2, "nextCursor": None, "logs": []}),
    ])

    summary = await drive_import(client, batch_size=2, retry_wait=0)

    assert summary.completed
    assert summary.batches == 1
    assert summary.processed == 2
    assert len(calls) == 3
    assert all(call.url.params.get("cursor") is None for call in calls)


@pytest.mark.asyncio
async def test_drive_import_does_not_retry_client_errors():
    client, calls = scripted_client([httpx.Response(400, json={"error": "BadRequestError", "message": "bad cursor"})])

    with pytest.raises(ImportFailed) as excinfo:
        await drive_import(client, retry_wait=0)

    assert excinfo.value.status_code == 400
    assert len(calls) == 1


def test_init_db_creates_tables(tmp_path):
    database_file = tmp_path / "catalog.db"

    result = CliRunner().invoke(app, ["init-db", "--database-url", f"sqlite+aiosqlite:///{database_file}"])

    assert result.exit_code == 0, result.output
    assert database_file.exists()
