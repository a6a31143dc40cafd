from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .audit import read_deletions
from .config import Paths, Settings, ensure_workspace
from .dedupe import DEFAULT_THRESHOLD, find_duplicate_clusters, shared_numbers
from .errors import ContactBookError
from .exporter import FORMATS, render_export
from .phones import format_number, normalize_number
from .store import ContactStore

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help="contact-book: a small phone book with a browser UI and a REST API.",
)
console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging (includes access log)"),
) -> None:
    _setup_logging(verbose)


_DIR_OPTION = typer.Option(
    Path("."), "--dir", "-d",
    help="Workspace folder holding data/, logs/ and local/ (default: current dir)",
)


def _open_store(base: Path) -> tuple[ContactStore, Paths, Settings]:
    paths, settings = ensure_workspace(base)
    store = ContactStore(paths.db_file)
    try:
        store.init()
    except ContactBookError as exc:
        console.print(f"[bold red]Cannot open database:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc
    return store, paths, settings


# ── `init` command ─────────────────────────────────────────────────────────────

@app.command()
def init(base: Path = _DIR_OPTION) -> None:
    """Create the workspace folders, config file and database schema."""
    _, paths, settings = _open_store(base)
    console.print(Panel(
        f"Database   : [bold]{paths.db_file}[/bold]\n"
        f"Audit log  : [bold]{paths.audit_file}[/bold]\n"
        f"Config     : [bold]{paths.conf_file}[/bold]\n"
        f"Listen on  : [bold]{settings.host}:{settings.port}[/bold]",
        title="contact-book workspace",
        border_style="cyan",
    ))


# ── `serve` command ────────────────────────────────────────────────────────────

@app.command()
def serve(
    base: Path = _DIR_OPTION,
    host: str | None = typer.Option(None, "--host", help="Bind address. Falls back to local config."),
    port: int | None = typer.Option(None, "--port", "-p", help="Port. Falls back to $PORT, then local config."),
) -> None:
    """Run the REST API and browser UI until Ctrl-C."""
    from .server import serve as run_server

    _, paths, settings = _open_store(base)
    effective_host = host or settings.host
    effective_port = settings.port if port is None else port
    console.print(f"\n  [bold cyan]http://{effective_host}:{effective_port}[/bold cyan]")
    console.print("  Press Ctrl-C to stop\n")
    run_server(paths, settings, host=effective_host, port=effective_port)


# ── `export` command ───────────────────────────────────────────────────────────

@app.command()
def export(
    fmt: str = typer.Option("csv", "--format", "-f", help=f"One of: {', '.join(FORMATS)}"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Explicit output path"),
    base: Path = _DIR_OPTION,
) -> None:
    """Write every contact to a CSV, TXT, JSON or vCard file."""
    store, paths, settings = _open_store(base)
    try:
        result = render_export(store.list_contacts(), fmt, settings.default_region)
    except ContactBookError as exc:
        console.print(f"[bold red]{exc}[/bold red]")
        raise typer.Exit(code=2) from exc

    out_path = output or (paths.root / result.filename)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(result.body)
    console.print(f"[bold green]✓ Wrote {out_path}[/bold green] ({len(result.body)} bytes)")


# ── `dupes` command ────────────────────────────────────────────────────────────

@app.command()
def dupes(
    threshold: float = typer.Option(DEFAULT_THRESHOLD, "--threshold", "-t", help="Similarity score 0-100"),
    base: Path = _DIR_OPTION,
) -> None:
    """List contacts that look like the same person (shared numbers, similar names)."""
    store, _, settings = _open_store(base)
    clusters = find_duplicate_clusters(store.list_contacts(), threshold=threshold)
    if not clusters:
        console.print("[green]No likely duplicates found.[/green]")
        return

    t = Table(title=f"Likely duplicates ({len(clusters)} group(s))", show_lines=True)
    t.add_column("Group", style="cyan", no_wrap=True)
    t.add_column("ID", justify="right")
    t.add_column("Name", style="bold")
    t.add_column("Age")
    t.add_column("Phones")
    for n, cluster in enumerate(clusters, 1):
        shared = set().union(*(shared_numbers(cluster[0], c) for c in cluster[1:]))
        for c in cluster:
            phones = ", ".join(
                f"[yellow]{format_number(p, settings.default_region)}[/yellow]"
                if normalize_number(p) in shared
                else format_number(p, settings.default_region)
                for p in c.phones
            )
            t.add_row(str(n), str(c.id), c.name, "" if c.age is None else str(c.age), phones)
    console.print(t)


# ── `deletions` command ────────────────────────────────────────────────────────

@app.command()
def deletions(base: Path = _DIR_OPTION) -> None:
    """Print the deletion audit log."""
    paths, _ = ensure_workspace(base)
    lines = read_deletions(paths.audit_file)
    if not lines:
        console.print("[dim]No deletions recorded.[/dim]")
        return
    for line in lines:
        console.print(line, markup=False, highlight=False)


if __name__ == "__main__":
    app()
