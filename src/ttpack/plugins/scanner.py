"""List what is currently installed under a pack root."""

from pathlib import Path


def list_children(root: Path) -> list[Path]:
    """Return the immediate children of ``root`` (not recursive).

    Raises:
        OSError: If ``root`` does not exist or cannot be read.
    """
    return list(root.iterdir())


def installed_names(root: Path) -> set[str]:
    """Names of the entries directly under ``root``."""
    return {child.name for child in list_children(root)}
