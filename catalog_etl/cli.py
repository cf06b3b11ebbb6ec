"""
Command line interface: drive an import to completion, manage the schema
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import httpx
import typer
from rich.console import Console
from rich.table import Table
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from catalog_etl.core.config import settings

app = typer.Typer(help="Catalog ETL batch import tools")
console = Console()

# Server-side failures worth re-issuing; writes are insert-if-absent
RETRYABLE_STATUS = {500, 502, 503, 504}


class ImportFailed(Exception):
    """The batch endpoint answered with an error payload"""

    def __init__(self, status_code: int, payload: Dict[str, Any]):
        self.status_code = status_code
        self.payload = payload
        super().__init__(f"{status_code} {payload.get('error', 'Error')}: {payload.get('message', '')}")


def _is_transient(error: BaseException) -> bool:
    if isinstance(error, ImportFailed):
        return error.status_code in RETRYABLE_STATUS
    return isinstance(error, httpx.TransportError)


async def _request_batch(client: httpx.AsyncClient, params: Dict[str, Any]) -> Dict[str, Any]:
    response = await client.get(f"{settings.API_V1_STR}/batch-import", params=params)
    try:
        payload = response.json()
    except ValueError:
        payload = {"error": "InvalidResponse", "message": response.text[:200]}
    if response.status_code != 200:
        raise ImportFailed(response.status_code, payload)
    return payload


@dataclass
class ImportSummary:
    batches: int = 0
    processed: int = 0
    completed: bool = False
    cursors: List[Optional[str]] = field(default_factory=list)


async def drive_import(
    client: httpx.AsyncClient,
    source: str = "csv",
    supplier: Optional[str] = None,
    batch_size: Optional[int] = None,
    max_batches: Optional[int] = None,
    on_report: Optional[Callable[[int, Dict[str, Any]], None]] = None,
    attempts: int = 3,
    retry_wait: float = 1.0,
) -> ImportSummary:
    """
    Call the batch endpoint until it returns a null cursor, feeding each
    nextCursor into the following call.

    A batch that fails with a server error or a transport error is re-issued
    with the same cursor, up to `attempts` times.
    """
    summary = ImportSummary()
    cursor: Optional[str] = None

    while max_batches is None or summary.batches < max_batches:
        params: Dict[str, Any] = {"source": source}
        if cursor is not None:
            params["cursor"] = cursor
        if supplier:
            params["supplier"] = supplier
        if batch_size:
            params["batch_size"] = batch_size

        retrying = AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(multiplier=retry_wait, max=30),
            retry=retry_if_exception(_is_transient),
            before_sleep=lambda state: console.print(
                f"[yellow]Batch failed, retrying[/yellow]: {state.outcome.exception()}", highlight=False
            ),
            reraise=True,
        )
        payload = await retrying(_request_batch, client, params)

        summary.batches += 1
        summary.processed += payload.get("processed", 0)
        cursor = payload.get("nextCursor")
        summary.cursors.append(cursor)

        if on_report:
            on_report(summary.batches, payload)

        if cursor is None:
            summary.completed = True
            break

    return summary


def _print_report(batch_number: int, report: Dict[str, Any]):
    remaining = report.get("remaining")
    console.print(
        f"[bold cyan]Batch {batch_number}[/bold cyan]: processed {report.get('processed', 0)}"
        f" in {report.get('durationSeconds', 0)}s"
        + (f", {remaining} remaining" if remaining is not None else "")
    )
    for line in report.get("logs", []):
        console.print(f"  {line}", highlight=False)


@app.command("run-import")
def run_import(
    base_url: str = typer.Option("http://localhost:8000", help="Service base URL"),
    source: str = typer.Option("csv", help="Source id: csv or records"),
    supplier: Optional[str] = typer.Option(None, help="Supplier id for rows whose supplier column is empty"),
    batch_size: Optional[int] = typer.Option(None, help="Rows per batch"),
    api_key: Optional[str] = typer.Option(None, envvar="ADMIN_API_KEY", help="Admin API key"),
    max_batches: Optional[int] = typer.Option(None, help="Stop after this many batches"),
    timeout: float = typer.Option(300.0, help="Per-request timeout in seconds"),
    attempts: int = typer.Option(3, min=1, help="Attempts per batch on server or network errors"),
):
    """Run batches until the whole source has been imported"""
    headers = {"X-API-Key": api_key} if api_key else {}

    async def _run() -> ImportSummary:
        async with httpx.AsyncClient(base_url=base_url, headers=headers, timeout=timeout) as client:
            return await drive_import(client, source, supplier, batch_size, max_batches, _print_report, attempts=attempts)

    try:
        summary = asyncio.run(_run())
    except ImportFailed as e:
        console.print(f"[bold red]Import failed[/bold red]: {e}")
        correlation_id = e.payload.get("correlation_id")
        if correlation_id:
            console.print(f"correlation id: {correlation_id}")
        raise typer.Exit(code=1)
    except httpx.HTTPError as e:
        console.print(f"[bold red]Service unreachable[/bold red]: {e}")
        raise typer.Exit(code=1)

    table = Table(title="Import summary")
    table.add_column("Batches", style="cyan")
    table.add_column("Rows processed", style="green")
    table.add_column("Status", style="yellow")
    table.add_row(str(summary.batches), str(summary.processed), "complete" if summary.completed else "stopped early")
    console.print(table)


@app.command("init-db")
def init_database(database_url: Optional[str] = typer.Option(None, help="Override DATABASE_URL")):
    """Create the catalog tables"""
    from catalog_etl.core.database import DatabaseSessionManager, init_db

    async def _run():
        manager = DatabaseSessionManager(database_url)
        try:
            await init_db(manager)
        finally:
            await manager.close()

    asyncio.run(_run())
    console.print("[green]Tables created[/green]")


if __name__ == "__main__":
    app()
