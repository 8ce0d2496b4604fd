"""CLI commands for Study Hub.

Commands:
- serve: Run the Web API
- sync: Push a user's profile to the remote mirror
- materials: List the cached catalog
- refresh-catalog: Re-pull the catalog from the remote mirror
- progress: Show a user's reading progress
- extract: Extract page text from a local PDF through a viewer session
"""

import asyncio
import tempfile
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from studyhub.config.app_config import AppConfig, load_app_config
from studyhub.core.entities import Category, EducationLevel, Material, ReadingStatus
from studyhub.core.progress_tracker import ProgressTracker
from studyhub.db.local_store import LocalStore
from studyhub.services import Services, build_services
from studyhub.utils.text_utils import truncate
from studyhub.utils.validators import AmbiguousIdError, IdNotFoundError, resolve_id
from studyhub.viewer.renderer import FitzDocumentLoader
from studyhub.viewer.session import DocumentViewerSession

app = typer.Typer(
    name="studyhub",
    help="Offline-first study hub: materials, reading progress and sync.",
    no_args_is_help=True,
)

console = Console()

STATUS_STYLES = {
    ReadingStatus.NOT_STARTED: "dim",
    ReadingStatus.READING: "yellow",
    ReadingStatus.COMPLETED: "green",
}


@app.callback()
def main(
    ctx: typer.Context,
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Path to app_config_v1.yaml"
    ),
) -> None:
    ctx.obj = load_app_config(config)


def _services(ctx: typer.Context) -> Services:
    config: AppConfig = ctx.obj
    return build_services(config)


def _resolve_user_id_or_exit(services: Services, prefix: str) -> str:
    """Resolve a user id prefix against local accounts and progress records."""
    candidates = {a.id for a in services.accounts.list_accounts()}
    candidates.update(services.store.get_all_progress())
    try:
        return resolve_id(prefix, sorted(candidates))
    except IdNotFoundError as e:
        console.print(f"[red]✗ {e}[/red]")
        if candidates:
            console.print("\nKnown users:")
            for c in sorted(candidates):
                console.print(f"  - {c}")
        raise typer.Exit(code=1)
    except AmbiguousIdError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)


@app.command()
def serve(
    ctx: typer.Context,
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(8000, "--port", "-p", help="Port"),
) -> None:
    """Run the Web API with uvicorn."""
    import uvicorn

    from studyhub.web.api import create_app

    web_app = create_app(_services(ctx))
    uvicorn.run(web_app, host=host, port=port)


@app.command()
def sync(
    ctx: typer.Context,
    user_id: str = typer.Argument(..., help="User id (or unique prefix) to push"),
) -> None:
    """Push a user's local profile to the remote mirror."""
    services = _services(ctx)
    user_id = _resolve_user_id_or_exit(services, user_id)
    outcome = asyncio.run(services.coordinator.sync(user_id))

    if outcome.success:
        console.print(f"[green]✓ Synced at {outcome.synced_at}[/green]")
    else:
        console.print(f"[red]✗ Sync failed: {outcome.message}[/red]")
        raise typer.Exit(code=1)


@app.command()
def materials(
    ctx: typer.Context,
    level: EducationLevel | None = typer.Option(None, "--level", "-l"),
    grade: str | None = typer.Option(None, "--grade", "-g"),
    subject: str | None = typer.Option(None, "--subject", "-s"),
    category: Category | None = typer.Option(None, "--category"),
) -> None:
    """List the cached material catalog, newest first."""
    services = _services(ctx)
    items = services.library.list_materials(
        level=level, grade=grade, subject=subject, category=category
    )

    if not items:
        console.print("[yellow]No materials cached. Try 'studyhub refresh-catalog'.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", style="cyan", width=12)
    table.add_column("Title", width=40)
    table.add_column("Grade", width=12)
    table.add_column("Subject", width=16)
    table.add_column("Category", width=20)
    for m in items:
        table.add_row(m.id, truncate(m.title, 40), m.grade, m.subject, m.category.value)
    console.print(table)


@app.command(name="refresh-catalog")
def refresh_catalog(ctx: typer.Context) -> None:
    """Re-pull the catalog; the cache is kept if the pull fails."""
    services = _services(ctx)
    pulled = asyncio.run(services.library.refresh_catalog())

    if pulled is None:
        console.print("[red]✗ Could not reach the remote mirror; cached catalog kept[/red]")
        raise typer.Exit(code=1)
    console.print(f"[green]✓ Catalog refreshed: {len(pulled)} materials[/green]")


@app.command()
def progress(
    ctx: typer.Context,
    user_id: str = typer.Argument(..., help="User id (or unique prefix)"),
) -> None:
    """Show a user's reading progress."""
    services = _services(ctx)
    user_id = _resolve_user_id_or_exit(services, user_id)
    records = services.tracker.list_for_user(user_id)

    if not records:
        console.print(f"[yellow]No reading progress for {user_id}[/yellow]")
        return

    titles = {m.id: m.title for m in services.store.get_all("materials")}
    table = Table(show_header=True, header_style="bold")
    table.add_column("Material", width=40)
    table.add_column("Status", width=12)
    table.add_column("%", justify="right", width=5)
    table.add_column("Last read", width=26)
    for p in records:
        style = STATUS_STYLES.get(p.status, "")
        table.add_row(
            truncate(titles.get(p.material_id, p.material_id), 40),
            f"[{style}]{p.status.value}[/{style}]",
            str(p.progress_percent),
            p.last_read,
        )
    console.print(table)


async def _extract(
    pdf: Path, state_dir: Path, yield_every: int, max_pages: int
) -> DocumentViewerSession:
    tracker = ProgressTracker(LocalStore(state_dir))
    material = Material(
        id=f"local-{pdf.stem}",
        title=pdf.stem,
        level=EducationLevel.SECONDARY,
        grade="",
        subject="",
        category=Category.BOOKS,
        file_location=str(pdf),
        file_name=pdf.name,
    )
    session = DocumentViewerSession(
        material, "cli", FitzDocumentLoader(), tracker, yield_every=yield_every
    )
    async with session:
        await session.wait_for_extraction()
        context = session.text_for_context(max_pages)
    if context:
        console.print(context)
    return session


@app.command()
def extract(
    ctx: typer.Context,
    pdf: Path = typer.Argument(..., help="Path to a PDF file"),
    show_pages: int = typer.Option(0, "--show", help="Print the text of the first N pages"),
) -> None:
    """Run a viewer extraction session on a local PDF."""
    config: AppConfig = ctx.obj
    pdf = pdf.expanduser().resolve()

    with tempfile.TemporaryDirectory() as state_dir:
        session = asyncio.run(
            _extract(pdf, Path(state_dir), config.viewer.extraction_yield_every, show_pages)
        )

    if session.error:
        console.print(f"[red]✗ {session.error}[/red]")
        raise typer.Exit(code=1)

    with_text = sum(1 for t in session.page_texts.values() if t.strip())
    console.print(f"[green]✓ {pdf.name}[/green]")
    console.print(f"  [dim]pages:[/dim]     {session.page_count}")
    console.print(f"  [dim]extracted:[/dim] {len(session.page_texts)}")
    console.print(f"  [dim]with text:[/dim] {with_text}")


if __name__ == "__main__":
    app()
