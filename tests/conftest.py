"""Shared fixtures for ttpack tests."""

import zipfile
from pathlib import Path

import pytest


@pytest.fixture
def make_zip():
    """Build a zip archive from ``{name: bytes}``; a value of None adds a directory entry."""

    def _make(path: Path, entries: dict, modes: dict | None = None) -> Path:
        modes = modes or {}
        with zipfile.ZipFile(path, "w", zipfile.ZIP_DEFLATED) as zf:
            for name, data in entries.items():
                if data is None:
                    zf.writestr(name if name.endswith("/") else name + "/", b"")
                    continue
                info = zipfile.ZipInfo(name)
                info.compress_type = zipfile.ZIP_DEFLATED
                if name in modes:
                    info.external_attr = modes[name] << 16
                zf.writestr(info, data)
        return path

    return _make
