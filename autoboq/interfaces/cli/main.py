"""
CLI Main - Typer-based command-line interface.

Usage:
    autoboq extract drawings/*.pdf --output boq.json
    autoboq chat boq.json
    autoboq modules
    autoboq serve
"""

from __future__ import annotations

import asyncio
import json
import logging
import mimetypes
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from autoboq.domains.boq import BOQItem, LogEntry, LogKind

app = typer.Typer(
    name="autoboq",
    help="AutoBOQ - Bill of Quantities extraction from engineering drawings",
    add_completion=False,
)
console = Console()

_KIND_STYLES = {
    LogKind.THOUGHT: "dim",
    LogKind.PROCESS: "cyan",
    LogKind.SUCCESS: "green",
    LogKind.ERROR: "red",
}


@app.callback()
def configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Configure logging for every command."""
    from autoboq.config import get_settings

    level = "DEBUG" if verbose else get_settings().log_level
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _print_log(entry: LogEntry) -> None:
    style = _KIND_STYLES[entry.kind]
    console.print(f"[dim]{entry.timestamp:%H:%M:%S}[/dim] [{style}]{entry.message}[/{style}]")


def _load_boq(path: Path) -> list[BOQItem]:
    data = json.loads(path.read_text(encoding="utf-8"))
    return [BOQItem.model_validate(record) for record in data]


def _save_boq(items: list[BOQItem], path: Path) -> None:
    records = [item.to_record() for item in items]
    path.write_text(json.dumps(records, ensure_ascii=False, indent=2), encoding="utf-8")


def _summary_table(items: list[BOQItem]) -> Table:
    from autoboq.domains.boq import grand_total_cost, summarize_by_category

    table = Table(title="BOQ Summary")
    table.add_column("Category", style="cyan")
    table.add_column("Items", justify="right")
    table.add_column("Quantity", justify="right", style="green")
    table.add_column("Unit")
    table.add_column("Cost", justify="right")

    for row in summarize_by_category(items):
        table.add_row(
            row.category,
            str(row.item_count),
            f"{row.total_quantity:,.2f}",
            row.unit,
            f"{row.cost:,.2f}",
        )
    table.add_section()
    table.add_row("Total", str(len(items)), "", "", f"{grand_total_cost(items):,.2f}")
    return table


@app.command()
def extract(
    files: list[Path] = typer.Argument(..., help="Drawing files (PDF)"),
    model: str | None = typer.Option(None, "--model", "-m", help="Gemini model id"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output JSON path"),
    simulate: bool = typer.Option(False, "--simulate", help="Use offline sample data"),
) -> None:
    """Extract a Bill of Quantities from drawing files."""
    missing = [f for f in files if not f.exists()]
    if missing:
        console.print(f"[red]Error:[/red] File not found: {missing[0]}")
        raise typer.Exit(1)

    asyncio.run(_extract_async(files, model, output, simulate))


async def _extract_async(
    files: list[Path],
    model: str | None,
    output: Path | None,
    simulate: bool,
) -> None:
    """Async extraction implementation."""
    from autoboq.adapters import build_client
    from autoboq.config import AutoBOQError, get_settings
    from autoboq.domains.boq import BOQStore
    from autoboq.domains.extraction import CancellationToken, ExtractionOrchestrator, SourceFile

    settings = get_settings()
    client = build_client(settings, simulate=simulate)
    orchestrator = ExtractionOrchestrator.from_settings(client, settings, model=model)

    sources = [
        SourceFile(path=f, media_type=mimetypes.guess_type(f.name)[0] or "application/pdf")
        for f in files
    ]
    store = BOQStore()
    token = CancellationToken()

    try:
        summary = await orchestrator.run(
            sources, _print_log, store.add_module_result, cancel_token=token
        )
    except AutoBOQError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1)
    except (KeyboardInterrupt, asyncio.CancelledError):
        token.cancel()
        console.print("[yellow]Interrupted[/yellow]")
        raise typer.Exit(130)

    console.print()
    console.print(_summary_table(store.items))
    if summary.skipped_modules:
        console.print(f"[yellow]Skipped modules:[/yellow] {summary.skipped_modules}")

    if output:
        _save_boq(store.items, output)
        console.print(f"\n[green]Saved to:[/green] {output}")


@app.command()
def chat(
    boq_path: Path = typer.Argument(..., help="BOQ JSON produced by `extract`"),
    model: str | None = typer.Option(None, "--model", "-m", help="Gemini model id"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Save edits here (default: in place)"),
) -> None:
    """Edit a saved BOQ through conversation."""
    if not boq_path.exists():
        console.print(f"[red]Error:[/red] File not found: {boq_path}")
        raise typer.Exit(1)

    asyncio.run(_chat_async(boq_path, model, output or boq_path))


async def _chat_async(boq_path: Path, model: str | None, output: Path) -> None:
    """Interactive chat loop."""
    from autoboq.adapters import build_client
    from autoboq.config import get_settings
    from autoboq.domains.boq import BOQStore
    from autoboq.domains.chat import ConversationalPatchEngine

    settings = get_settings()
    store = BOQStore(_load_boq(boq_path))
    engine = ConversationalPatchEngine(build_client(settings), model or settings.gemini_model)

    console.print(
        Panel(
            f"{len(store)} items loaded from {boq_path.name}. Type 'exit' to finish.",
            title=f"BOQ Chat ({engine.session.model})",
        )
    )

    while True:
        text = await asyncio.to_thread(Prompt.ask, "[bold]You[/bold]")
        if text.strip().lower() in ("exit", "quit"):
            break
        if not text.strip():
            continue

        reply = await engine.submit(text, store.items)
        console.print(f"[bold cyan]Model:[/bold cyan] {reply.response_text}")
        if reply.updated_boq is not None:
            store.replace(reply.updated_boq)
            _save_boq(store.items, output)
            console.print(f"[green]Applied {reply.applied} change(s); saved to {output}[/green]")


@app.command()
def modules() -> None:
    """List the extraction phases in order."""
    from autoboq.domains.extraction import MODULES

    table = Table(title="Extraction Modules")
    table.add_column("#", justify="right")
    table.add_column("Title", style="cyan")
    table.add_column("Category")
    for module in MODULES:
        table.add_row(str(module.id), module.title, module.localized_title)
    console.print(table)


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host", "-h", help="Host to bind"),
    port: int = typer.Option(8000, "--port", "-p", help="Port to bind"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload"),
) -> None:
    """Start the API server."""
    import uvicorn

    console.print("\n[green]Starting AutoBOQ API server[/green]")
    console.print(f"[dim]http://{host}:{port}[/dim]\n")

    uvicorn.run(
        "autoboq.interfaces.api:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


@app.command()
def version() -> None:
    """Show version information."""
    from autoboq import __version__

    console.print(f"AutoBOQ v{__version__}")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
