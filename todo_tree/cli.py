"""
CLI commands for todo-tree.

Provides the `todo-tree` command-line interface: one-shot scans, watch mode,
ripgrep resolution and configuration inspection.
"""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Tuple

import click
from rich.console import Console
from rich.logging import RichHandler

from todo_tree import __version__
from todo_tree.config.loader import ConfigurationLoader
from todo_tree.models.config import GlobalSettings, ScanConfig
from todo_tree.presentation import to_rich_tree
from todo_tree.reporting import ConsoleReporter
from todo_tree.scanner.locate import locate_ripgrep
from todo_tree.sync.engine import TodoTreeEngine
from todo_tree.sync.watcher import WorkspaceWatcher

console = Console()
err_console = Console(stderr=True)


def _setup_logging(verbose: bool) -> None:
    settings = GlobalSettings()
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level)
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True
    )


def scan_options(func):
    """Options shared by the scanning commands"""
    func = click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')(func)
    func = click.option('--flat/--tree', default=None, help='Flat file list instead of a folder tree')(func)
    func = click.option('--rg', 'ripgrep', type=click.Path(dir_okay=False), help='Path to the ripgrep executable')(func)
    func = click.option('--glob', '-g', 'globs', multiple=True, help='Include/exclude glob (repeatable)')(func)
    func = click.option('--regex', '-r', help='Match regex; "($TAGS)" is replaced by the tags')(func)
    func = click.option('--tag', '-t', 'tags', multiple=True, help='Marker tag (repeatable)')(func)
    func = click.argument(
        'root',
        type=click.Path(exists=True, file_okay=False, path_type=Path),
        default=Path('.')
    )(func)
    return func


def _load_config(
    root: Path,
    tags: Tuple[str, ...] = (),
    regex: Optional[str] = None,
    globs: Tuple[str, ...] = (),
    ripgrep: Optional[str] = None,
    flat: Optional[bool] = None
) -> ScanConfig:
    overrides = {
        'tags': list(tags) or None,
        'regex': regex,
        'globs': list(globs) or None,
        'ripgrep': ripgrep,
        'flat': flat,
    }
    return ConfigurationLoader().load_config(root, overrides=overrides)


def _build_engine(root: Path, config: ScanConfig) -> TodoTreeEngine:
    return TodoTreeEngine(
        config=config,
        reporter=ConsoleReporter(err_console),
        locator=locate_ripgrep,
        workspace=root.resolve()
    )


@click.group()
@click.version_option(version=__version__, prog_name="todo-tree")
def main():
    """
    todo-tree CLI.

    Find TODO/FIXME-style markers with ripgrep and show them by file and line.
    """
    pass


@main.command()
@scan_options
@click.option('--json', 'as_json', is_flag=True, help='Print matches as JSON')
def scan(
    root: Path,
    tags: Tuple[str, ...],
    regex: Optional[str],
    globs: Tuple[str, ...],
    ripgrep: Optional[str],
    flat: Optional[bool],
    verbose: bool,
    as_json: bool
):
    """Scan ROOT (default: current directory) once and print the markers."""
    _setup_logging(verbose)
    config = _load_config(root, tags, regex, globs, ripgrep, flat)
    engine = _build_engine(root, config)

    plan = asyncio.run(_run_scan(engine))
    if plan is None:
        sys.exit(1)

    matches = engine.matches()
    if as_json:
        click.echo(json.dumps([match.model_dump() for match in matches], indent=2))
        return

    console.print(to_rich_tree(engine.projection.nodes, title=str(root.resolve())))
    files = len({match.file for match in matches})
    console.print(f"\n[green]{len(matches)} markers in {files} files[/green]")


async def _run_scan(engine: TodoTreeEngine):
    plan = await engine.start()
    await engine.wait_until_idle()
    await engine.stop()
    return plan


@main.command()
@scan_options
@click.option('--debounce-ms', type=int, default=None, help='Delay before rescanning a changed file')
def watch(
    root: Path,
    tags: Tuple[str, ...],
    regex: Optional[str],
    globs: Tuple[str, ...],
    ripgrep: Optional[str],
    flat: Optional[bool],
    verbose: bool,
    debounce_ms: Optional[int]
):
    """Scan ROOT, then rescan changed files until interrupted."""
    _setup_logging(verbose)
    config = _load_config(root, tags, regex, globs, ripgrep, flat)
    if debounce_ms is None:
        debounce_ms = GlobalSettings().debounce_ms

    try:
        exit_code = asyncio.run(_run_watch(root, config, debounce_ms))
    except KeyboardInterrupt:
        console.print("\n[blue]Stopped watching.[/blue]")
        exit_code = 0
    sys.exit(exit_code)


async def _run_watch(root: Path, config: ScanConfig, debounce_ms: int) -> int:
    engine = _build_engine(root, config)
    title = str(root.resolve())

    def render(nodes) -> None:
        console.clear()
        console.print(to_rich_tree(nodes, title=title))
        console.print(f"[dim]{len(engine.aggregate)} markers - watching for changes (Ctrl+C to stop)[/dim]")

    engine.projection.listener = render

    plan = await engine.start()
    if plan is None:
        return 1
    await engine.wait_until_idle()

    watcher = WorkspaceWatcher(engine, root, debounce_ms=debounce_ms)
    try:
        async with watcher:
            await asyncio.Event().wait()
    finally:
        await engine.stop()
    return 0


@main.command()
@click.option('--rg', 'ripgrep', type=click.Path(dir_okay=False), help='Explicit ripgrep path to try first')
def locate(ripgrep: Optional[str]):
    """Show which ripgrep executable would be used."""
    config = _load_config(Path('.'), ripgrep=ripgrep)
    found = locate_ripgrep(config.ripgrep)
    if found is None:
        err_console.print("[red]❌ ripgrep not found. Install ripgrep or pass --rg.[/red]")
        sys.exit(1)
    console.print(str(found))


@main.command(name='config')
@click.argument(
    'root',
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=Path('.')
)
def show_config(root: Path):
    """Print the effective configuration for ROOT as JSON."""
    config = _load_config(root)
    data = config.to_dict()
    data['resolved_pattern'] = config.resolved_pattern()
    click.echo(json.dumps(data, indent=2))


if __name__ == "__main__":
    main()
