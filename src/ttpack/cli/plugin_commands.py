"""Plugin management CLI commands."""

import logging
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ttpack.config.models import NamingPolicy

console = Console()
logger = logging.getLogger(__name__)


def _fail(error: Exception) -> None:
    console.print(f"[red]Error: {escape(str(error))}[/red]")
    raise SystemExit(1)


@click.command()
@click.option(
    "--manifest",
    "manifest_path",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar="TTPACK_MANIFEST",
    default=None,
    help="plugins.yml to read (default: $XDG_CONFIG_HOME/nvim/plugins.yml)",
)
@click.option(
    "--pack-dir",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="TTPACK_PACK_DIR",
    default=None,
    help="Pack directory (default: <nvim packpath>/pack/ttpack)",
)
@click.option(
    "--naming",
    type=click.Choice([p.value for p in NamingPolicy]),
    default=NamingPolicy.BASENAME.value,
    show_default=True,
    help="Directory naming: bare repo name, or repo name plus version",
)
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=60.0,
    show_default=True,
    help="Download timeout in seconds",
)
@click.option("--with-opt", is_flag=True, help="Also reconcile the opt plugin directory")
@click.option("--dry-run", is_flag=True, help="Show planned changes without applying them")
def sync(manifest_path, pack_dir, naming, timeout, with_opt, dry_run):
    """Install and remove plugins so the pack directory matches plugins.yml."""
    from ttpack.config.loader import load_manifest
    from ttpack.config.models import SyncConfig
    from ttpack.config.paths import default_manifest_path, discover_pack_dir
    from ttpack.errors import TtpackError
    from ttpack.plugins.reconciler import Reconciler

    try:
        manifest_path = manifest_path or default_manifest_path()
        manifest = load_manifest(manifest_path)
        pack_dir = pack_dir or discover_pack_dir()

        config = SyncConfig(
            pack_dir=pack_dir,
            naming=NamingPolicy(naming),
            timeout=timeout,
            reconcile_optional=with_opt,
        )
        console.print(f"[bold]Manifest:[/bold] {manifest_path}")
        console.print(f"[bold]Pack:[/bold]     {pack_dir}")

        reconciler = Reconciler(config)
        if dry_run:
            _print_plan(reconciler.plan(manifest))
            return

        result = reconciler.sync(manifest)
    except (TtpackError, OSError) as e:
        logger.debug("sync failed", exc_info=True)
        _fail(e)

    _print_result(result)


def _print_plan(plan):
    if plan.is_empty:
        console.print("[green]Nothing to do.[/green]")
        return
    for name in plan.remove:
        console.print(f"  would remove  [red]{name}[/red]")
    for name in plan.install:
        console.print(f"  would install [green]{name}[/green]")
    console.print("\nDry run - no changes made.")


def _print_result(result):
    if not result.changed:
        console.print(f"[green]Up to date[/green] ({len(result.skipped)} plugin(s) installed)")
        return

    table = Table(title="Sync")
    table.add_column("Plugin", style="cyan")
    table.add_column("Action")
    for name in result.removed:
        table.add_row(name, "[red]removed[/red]")
    for name in result.installed:
        table.add_row(name, "[green]installed[/green]")
    console.print(table)
    console.print(f"  Unchanged: {len(result.skipped)}")


@click.command()
@click.argument("repo")
def add(repo):
    """Add a plugin to plugins.yml (not implemented yet)."""
    console.print(
        f"[yellow]add is not implemented yet.[/yellow] "
        f"Add '{escape(repo)}' to plugins.yml and run: ttpack sync"
    )


@click.command()
@click.argument("repo")
def remove(repo):
    """Remove a plugin from plugins.yml (not implemented yet)."""
    console.print(
        f"[yellow]remove is not implemented yet.[/yellow] "
        f"Delete '{escape(repo)}' from plugins.yml and run: ttpack sync"
    )
