"""ttpack CLI - Main entry point."""

import logging

import click

from ttpack import __version__

LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"

_console_handler = None


def _setup_logging(verbose: bool) -> None:
    """Send log records to stderr; DEBUG with --verbose, WARNING otherwise."""
    global _console_handler
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

    # Replace rather than stack handlers when invoked repeatedly in-process
    if _console_handler is not None:
        root_logger.removeHandler(_console_handler)
    _console_handler = logging.StreamHandler()
    _console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(_console_handler)


@click.group()
@click.version_option(version=__version__, prog_name="ttpack")
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging")
def cli(verbose):
    """ttpack - keep Neovim's pack directory in sync with plugins.yml."""
    _setup_logging(verbose)


from .plugin_commands import add, remove, sync  # noqa: E402

cli.add_command(sync)
cli.add_command(add)
cli.add_command(remove, name="rm")
cli.add_command(remove, name="remove")


if __name__ == "__main__":
    cli()
