"""Command line entry point: ``booker search|init-db|serve``."""

from __future__ import annotations

import asyncio
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table
from sqlalchemy.engine import make_url

from booker.client import AppState, CatalogClient, SearchController
from booker.db.connection import create_engine, get_database_url
from booker.db.models import Base

console = Console()


def _ensure_sqlite_directory(url: str) -> None:
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite" and parsed.database not in (None, "", ":memory:"):
        Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)


async def init_db(url: str | None = None) -> None:
    url = url or get_database_url()
    _ensure_sqlite_directory(url)
    engine = create_engine(url)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    finally:
        await engine.dispose()


async def run_search(query: str) -> tuple[SearchController, AppState]:
    state = AppState()
    controller = SearchController(CatalogClient(), state)
    await controller.submit(query)
    return controller, state


def _render_results(controller: SearchController, state: AppState) -> None:
    results = state.book_search_results
    if not results:
        console.print(f'[yellow]No Books Found for "{controller.last_submitted_query}"[/yellow]')
        return

    table = Table(title=f'Results for "{controller.last_submitted_query}"')
    table.add_column("Google ID", style="dim")
    table.add_column("Title", style="bold")
    table.add_column("Authors")
    table.add_column("Pages", justify="right")
    for book in results:
        table.add_row(
            book.google_id,
            book.title or "",
            ", ".join(book.authors),
            str(book.page_count) if book.page_count is not None else "",
        )
    console.print(table)


@click.group()
def cli() -> None:
    """Booker favorites service tools."""


@cli.command()
@click.argument("query")
def search(query: str) -> None:
    """Search the book catalog for QUERY."""

    if not query.strip():
        raise click.BadParameter("query must not be blank", param_hint="QUERY")

    controller, state = asyncio.run(run_search(query))
    if controller.last_error:
        console.print(f"[red]✗[/red] {controller.last_error}")
        raise SystemExit(1)
    _render_results(controller, state)


@cli.command("init-db")
def init_db_command() -> None:
    """Create the users and favorite_books tables."""

    from booker.main import validate_environment

    validate_environment()
    asyncio.run(init_db())
    console.print("[green]✓[/green] Database tables created successfully")


@cli.command()
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8000, show_default=True, type=int)
@click.option("--reload", is_flag=True, help="Restart on code changes.")
def serve(host: str, port: int, reload: bool) -> None:
    """Run the API with uvicorn."""

    import uvicorn

    uvicorn.run("booker.main:app", host=host, port=port, reload=reload)


if __name__ == "__main__":
    cli()
