"""YAML manifest loading with Pydantic validation."""

from pathlib import Path

import yaml
from pydantic import ValidationError

from ttpack.errors import DecodeError

from .models import Manifest


def load_yaml(path: Path) -> dict:
    """Load a YAML file and return its contents as a dict.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML contents.

    Raises:
        DecodeError: If the file cannot be read or parsed.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        raise DecodeError(f"Manifest file not found: {path}") from None
    except OSError as e:
        raise DecodeError(f"Cannot read manifest {path}: {e}") from e
    except yaml.YAMLError as e:
        raise DecodeError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise DecodeError(f"Expected a mapping at the top of {path}, got {type(data).__name__}")
    return data


def load_manifest(path: Path) -> Manifest:
    """Load and validate a plugins.yml manifest.

    Raises:
        DecodeError: If the file is missing, malformed, or fails validation.
    """
    data = load_yaml(path)
    try:
        return Manifest.model_validate(data)
    except ValidationError as e:
        raise DecodeError(f"Manifest validation failed for {path}: {e}") from e
