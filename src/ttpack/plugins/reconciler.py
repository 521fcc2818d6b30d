"""Reconcile the pack directory with the plugin manifest."""

import logging
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional

from ttpack.config.models import Manifest, PluginSpec, SyncConfig

from .archive import install_archive, safe_join
from .fetcher import fetch_archive
from .naming import archive_url, dir_name
from .scanner import installed_names, list_children

logger = logging.getLogger(__name__)

Fetcher = Callable[[str, Path, float], None]


@dataclass
class SyncPlan:
    """Changes a sync pass would make, keyed as '<tier>/<name>'."""

    remove: List[str] = field(default_factory=list)
    install: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.remove and not self.install


@dataclass
class SyncResult:
    """What a sync pass did, keyed as '<tier>/<name>'."""

    removed: List[str] = field(default_factory=list)
    installed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.removed or self.installed)


class Reconciler:
    """Bring pack/start (and optionally pack/opt) in line with a manifest.

    Each pass runs EnsureRoots -> Prune -> Scan -> InstallMissing and
    stops at the first error. Plugins already on disk are never
    re-downloaded, so a repeated pass with the same manifest is a no-op.
    """

    def __init__(self, config: SyncConfig, fetcher: Optional[Fetcher] = None) -> None:
        self.config = config
        self.fetcher = fetcher or fetch_archive

    def _tiers(self, manifest: Manifest) -> list[tuple[str, Path, list[PluginSpec]]]:
        tiers = [("start", self.config.start_dir, manifest.start)]
        if self.config.reconcile_optional:
            tiers.append(("opt", self.config.opt_dir, manifest.opt))
        return tiers

    def desired(self, specs: list[PluginSpec]) -> Dict[str, PluginSpec]:
        """Map installed directory name to spec; later duplicates win."""
        result: Dict[str, PluginSpec] = {}
        for spec in specs:
            name = dir_name(spec, self.config.naming)
            if name in result:
                logger.warning(
                    f"'{spec.repo}' maps to '{name}' already used by "
                    f"'{result[name].repo}'; using the later entry"
                )
            result[name] = spec
        return result

    def ensure_roots(self) -> None:
        self.config.start_dir.mkdir(parents=True, exist_ok=True)
        self.config.opt_dir.mkdir(parents=True, exist_ok=True)

    def plan(self, manifest: Manifest) -> SyncPlan:
        """Compute removals and installs without touching the filesystem."""
        plan = SyncPlan()
        for tier, root, specs in self._tiers(manifest):
            wanted = self.desired(specs)
            present = installed_names(root) if root.is_dir() else set()
            plan.remove.extend(f"{tier}/{name}" for name in sorted(present - wanted.keys()))
            plan.install.extend(f"{tier}/{name}" for name in wanted if name not in present)
        return plan

    def sync(self, manifest: Manifest) -> SyncResult:
        """Run one reconciliation pass.

        Raises:
            NetworkError, ArchiveError, OSError: Propagated from the first
                failing step; later plugins are not attempted.
            PathTraversalError: If a plugin's directory name would resolve
                outside its tier root.
        """
        result = SyncResult()
        self.ensure_roots()

        for tier, root, specs in self._tiers(manifest):
            wanted = self.desired(specs)
            for name in self.prune(root, wanted):
                result.removed.append(f"{tier}/{name}")

            present = installed_names(root)
            for name, spec in wanted.items():
                if name in present:
                    logger.debug(f"{tier}/{name} already installed")
                    result.skipped.append(f"{tier}/{name}")
                    continue
                self.install(spec, safe_join(root, name))
                result.installed.append(f"{tier}/{name}")

        if not self.config.reconcile_optional and manifest.opt:
            logger.info(
                f"Skipping {len(manifest.opt)} opt plugin(s); "
                "optional tier reconciliation is disabled"
            )

        return result

    def prune(self, root: Path, wanted: Dict[str, PluginSpec]) -> list[str]:
        """Delete every entry under ``root`` not named in ``wanted``."""
        removed = []
        for entry in list_children(root):
            if entry.name in wanted:
                continue
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink()
            logger.info(f"Removed {entry}")
            removed.append(entry.name)
        return removed

    def install(self, spec: PluginSpec, target: Path) -> None:
        """Download ``spec`` and extract it into ``target``.

        The archive is downloaded into a private temporary directory outside
        the pack roots and removed with it, also when extraction fails. A
        partially extracted ``target`` is left in place.
        """
        url = archive_url(spec, self.config.archive_base_url)
        with tempfile.TemporaryDirectory(prefix="ttpack-") as tmp:
            archive = Path(tmp) / f"{target.name}.zip"
            self.fetcher(url, archive, self.config.timeout)
            install_archive(archive, target)
        logger.info(f"Installed {spec.repo} into {target}")
