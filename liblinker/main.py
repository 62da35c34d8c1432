"""LibLinker CLI - highlight dependency imports that are rendered as tags."""
import time
from pathlib import Path
from typing import List, Optional
import typer
from rich.markup import escape
from rich.table import Table

from liblinker.config import Config, __version__, get_config
from liblinker.analyzer.dependency_registry import DependencyRegistry
from liblinker.editor.session import EditorSession
from liblinker.editor.terminal import FileDocument, TerminalSink
from liblinker.utils.logger import set_debug
from liblinker.utils.safe_console import SafeConsole

app = typer.Typer(
    name="liblinker",
    help="Highlight imports from package.json dependencies that are used as JSX tags",
    add_completion=False
)
console = SafeConsole(highlight=False)


def _load_config() -> Config:
    """Load configuration or exit with code 2 on invalid settings."""
    try:
        config = get_config()
    except ValueError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {escape(str(e))}")
        raise typer.Exit(2)
    set_debug(config.debug)
    return config


def _resolve_root(project_root: Path) -> Path:
    project_root = project_root.resolve()
    if not project_root.is_dir():
        console.print(f"[bold red]Error:[/bold red] Project root does not exist: {escape(str(project_root))}")
        raise typer.Exit(1)
    return project_root


def _collect_documents(paths: List[Path], project_root: Path) -> List[FileDocument]:
    """Turn CLI paths into documents, skipping files the scanners do not handle."""
    missing = [p for p in paths if not p.is_file()]
    if missing:
        for path in missing:
            console.print(f"[bold red]Error:[/bold red] File does not exist: {escape(str(path))}")
        raise typer.Exit(1)

    documents = []
    for path in paths:
        if not FileDocument.is_supported(path):
            console.print(f"[yellow]Skipping {escape(str(path))}: not a JavaScript/TypeScript file[/yellow]")
            continue
        documents.append(FileDocument(path, base=project_root))
    return documents


def _split_fields(fields: Optional[str], config: Config) -> tuple:
    if fields is None:
        return config.dependency_fields
    parsed = tuple(part.strip() for part in fields.split(",") if part.strip())
    if not parsed:
        console.print("[bold red]Error:[/bold red] --fields needs at least one section name")
        raise typer.Exit(2)
    return parsed


@app.command()
def check(
    paths: List[Path] = typer.Argument(..., help="Source files to check"),
    project_root: Path = typer.Option(Path("."), "--project-root", "-r", help="Directory holding package.json"),
    fields: Optional[str] = typer.Option(None, "--fields", help="Comma-separated manifest sections (default: dependencies)"),
    subpaths: Optional[bool] = typer.Option(None, "--subpaths/--no-subpaths", help="Count 'pkg/sub' imports as 'pkg'"),
    as_list: bool = typer.Option(False, "--list", help="Print a range table instead of highlighted source"),
):
    """Re-check imports now: highlight rendered dependency imports in each file."""
    config = _load_config()
    project_root = _resolve_root(project_root)
    documents = _collect_documents(paths, project_root)

    registry = DependencyRegistry(
        project_root,
        manifest_name=config.manifest_name,
        dependency_fields=_split_fields(fields, config),
        watch=False,
    )
    sink = TerminalSink(console, style=config.highlight_style, as_table=as_list)
    session = EditorSession(
        registry, sink,
        match_subpaths=config.match_subpaths if subpaths is None else subpaths,
    )

    total = 0
    for document in documents:
        sink.register(document)
        result = session.check_imports(document)
        total += len(result.ranges)

        console.print(f"[bold]{escape(document.name)}[/bold]: {len(result.ranges)} highlighted range(s)")
        unused = [s.name for s in result.unused_symbols]
        if unused:
            console.print(f"[dim]  imported but not rendered: {escape(', '.join(unused))}[/dim]")

    session.deactivate()
    console.print(f"\n[bold green]Total highlighted ranges: {total}[/bold green]")


@app.command()
def deps(
    project_root: Path = typer.Option(Path("."), "--project-root", "-r", help="Directory holding package.json"),
    fields: Optional[str] = typer.Option(None, "--fields", help="Comma-separated manifest sections (default: dependencies)"),
):
    """List the dependency names imports are checked against."""
    config = _load_config()
    project_root = _resolve_root(project_root)

    registry = DependencyRegistry(
        project_root,
        manifest_name=config.manifest_name,
        dependency_fields=_split_fields(fields, config),
        watch=False,
    )
    names = registry.get_dependency_names()
    registry.close()

    if not names:
        console.print(f"[yellow]No dependencies declared in {escape(config.manifest_name)}[/yellow]")
        return

    table = Table(title=f"Dependencies ({len(names)})", show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right", style="green")
    table.add_column("Name", style="cyan")
    for index, name in enumerate(names, start=1):
        table.add_row(str(index), name)
    console.print(table)


@app.command()
def watch(
    paths: List[Path] = typer.Argument(..., help="Source files to keep visible"),
    project_root: Path = typer.Option(Path("."), "--project-root", "-r", help="Directory holding package.json"),
    interval: float = typer.Option(0.5, "--interval", help="Seconds between event queue polls"),
    timeout: float = typer.Option(0.0, "--timeout", help="Stop after this many seconds (0 = until Ctrl+C)"),
):
    """Keep files visible and re-highlight them whenever the dependency list changes."""
    config = _load_config()
    project_root = _resolve_root(project_root)
    documents = _collect_documents(paths, project_root)

    registry = DependencyRegistry(
        project_root,
        manifest_name=config.manifest_name,
        dependency_fields=config.dependency_fields,
    )
    sink = TerminalSink(console, style=config.highlight_style)
    session = EditorSession(registry, sink, match_subpaths=config.match_subpaths)

    for document in documents:
        sink.register(document)
    session.activate()
    session.on_visible_documents_changed(documents)
    console.print(f"[dim]Watching {escape(str(registry.manifest_path))} (Ctrl+C to stop)[/dim]")

    deadline = time.monotonic() + timeout if timeout > 0 else None
    try:
        while deadline is None or time.monotonic() < deadline:
            # watchdog calls back on its own thread; scans stay on this one
            rescanned = session.process_pending(timeout=interval)
            if rescanned is None:
                continue
            names = registry.get_dependency_names()
            console.print(f"[cyan]Dependencies changed ({len(names)} names); "
                          f"rescanned {len(rescanned)} file(s)[/cyan]")
    except KeyboardInterrupt:
        pass
    finally:
        session.deactivate()


def _version_callback(value: bool):
    if value:
        console.print(f"liblinker {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(False, "--version", callback=_version_callback, is_eager=True,
                                 help="Show the version and exit"),
):
    """LibLinker - see which dependency imports your components actually render."""
    pass


if __name__ == "__main__":
    app()
