"""Manifest models, loading, and path resolution."""

from .loader import load_manifest, load_yaml
from .models import Manifest, NamingPolicy, PluginSpec, SyncConfig

__all__ = [
    "load_manifest",
    "load_yaml",
    "Manifest",
    "NamingPolicy",
    "PluginSpec",
    "SyncConfig",
]
