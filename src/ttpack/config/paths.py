"""Locate plugins.yml and the pack directory."""

import logging
import os
import platform
import subprocess
from pathlib import Path
from typing import Mapping, Optional

from ttpack.errors import EditorError

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "plugins.yml"
PACK_NAME = "ttpack"

# Writes 'packpath' to stdout and quits without touching the UI
_PACKPATH_ARGS = ["--headless", "-c", "lua io.stdout:write(vim.o.packpath)", "-c", "qa"]


def default_manifest_path(
    environ: Optional[Mapping[str, str]] = None,
    system: Optional[str] = None,
) -> Path:
    """Return the default plugins.yml location.

    Resolution order:
        1. ``$XDG_CONFIG_HOME/nvim/plugins.yml``
        2. Windows: ``%LOCALAPPDATA%/nvim/plugins.yml`` (or ``plugins.yml``
           in the working directory when LOCALAPPDATA is unset)
        3. ``~/.config/nvim/plugins.yml``
    """
    env = os.environ if environ is None else environ
    system = system or platform.system()

    xdg_config_home = env.get("XDG_CONFIG_HOME", "")
    if xdg_config_home:
        return Path(xdg_config_home) / "nvim" / MANIFEST_FILENAME

    if system == "Windows":
        local_app_data = env.get("LOCALAPPDATA", "")
        if local_app_data:
            return Path(local_app_data) / "nvim" / MANIFEST_FILENAME
        return Path(MANIFEST_FILENAME)

    return Path.home() / ".config" / "nvim" / MANIFEST_FILENAME


def query_packpath(editor: str = "nvim", timeout: float = 30.0) -> str:
    """Ask the editor for its 'packpath' option.

    Raises:
        EditorError: If the editor cannot be run or exits with an error.
    """
    cmd = [editor, *_PACKPATH_ARGS]
    logger.debug(f"Querying packpath: {' '.join(cmd)}")
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError:
        raise EditorError(f"'{editor}' not found on PATH; pass --pack-dir explicitly") from None
    except subprocess.TimeoutExpired:
        raise EditorError(f"'{editor}' did not exit within {timeout:.0f}s") from None

    if result.returncode != 0:
        raise EditorError(f"'{editor}' exited with {result.returncode}: {result.stderr.strip()}")

    packpath = result.stdout.strip()
    if not packpath:
        raise EditorError(f"'{editor}' reported an empty packpath")
    return packpath


def discover_pack_dir(editor: str = "nvim", timeout: float = 30.0) -> Path:
    """Return ``<first packpath entry>/pack/ttpack``."""
    packpath = query_packpath(editor, timeout=timeout)
    first = packpath.split(",")[0].strip()
    pack_dir = Path(first).expanduser() / "pack" / PACK_NAME
    logger.debug(f"Pack directory: {pack_dir}")
    return pack_dir
