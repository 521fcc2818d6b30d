"""Installed directory names and archive URLs for plugin specs."""

import posixpath

from ttpack.config.models import NamingPolicy, PluginSpec

DEFAULT_BASE_URL = "https://github.com"

# Refs fetched from refs/heads/ even when given as a tag
BRANCH_REFS = frozenset({"main", "master"})


def dir_name(spec: PluginSpec, policy: NamingPolicy = NamingPolicy.BASENAME) -> str:
    """Return the directory name a plugin is installed under.

    Examples:
        owner/telescope.nvim                    -> telescope.nvim
        owner/telescope.nvim @ 0.1.8 (versioned) -> telescope.nvim-0.1.8
    """
    name = posixpath.basename(spec.repo.rstrip("/"))
    if policy is NamingPolicy.VERSIONED and spec.ref:
        ref = spec.ref.replace("/", "-").replace("\\", "-")
        name = f"{name}-{ref}"
    return name


def archive_url(spec: PluginSpec, base_url: str = DEFAULT_BASE_URL) -> str:
    """Return the zip archive URL for a plugin.

    An explicit ``url`` is returned unchanged. Otherwise branches (and the
    ``main``/``master`` tags) map to ``archive/refs/heads/<ref>.zip`` and any
    other tag maps to ``archive/refs/tags/<tag>.zip``.

    Raises:
        ValueError: If the spec has no url, tag, or branch.
    """
    if spec.url:
        return spec.url

    repo = spec.repo.strip("/")
    base = base_url.rstrip("/")
    if spec.branch:
        return f"{base}/{repo}/archive/refs/heads/{spec.branch}.zip"
    if spec.tag in BRANCH_REFS:
        return f"{base}/{repo}/archive/refs/heads/{spec.tag}.zip"
    if spec.tag:
        return f"{base}/{repo}/archive/refs/tags/{spec.tag}.zip"
    raise ValueError(f"Cannot derive an archive URL for '{spec.repo}'")
