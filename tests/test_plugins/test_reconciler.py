"""Tests for pack reconciliation."""

import pytest

from ttpack.config.models import Manifest, NamingPolicy, PluginSpec, SyncConfig
from ttpack.errors import ArchiveError, NetworkError, PathTraversalError
from ttpack.plugins.reconciler import Reconciler


class FakeFetcher:
    """Writes a GitHub-style archive for the requested repo instead of downloading."""

    def __init__(self, make_zip):
        self.make_zip = make_zip
        self.calls = []

    def __call__(self, url, dest, timeout):
        self.calls.append(url)
        # https://github.com/<owner>/<name>/archive/...
        name = url.split("/")[4]
        self.make_zip(dest, {
            f"{name}-main/": None,
            f"{name}-main/plugin/{name}.lua": f"-- {url}".encode(),
            f"{name}-main/README.md": b"# readme",
        })


def _spec(repo, **kwargs):
    if not kwargs:
        kwargs = {"tag": "v1.0.0"}
    return PluginSpec(repo=repo, **kwargs)


def _snapshot(root):
    """Map every file under root to its bytes."""
    return {
        str(p.relative_to(root)): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


@pytest.fixture
def fetcher(make_zip):
    return FakeFetcher(make_zip)


@pytest.fixture
def config(tmp_path):
    return SyncConfig(pack_dir=tmp_path / "pack" / "ttpack", timeout=5.0)


@pytest.fixture
def reconciler(config, fetcher):
    return Reconciler(config, fetcher=fetcher)


class TestSync:
    def test_creates_both_roots(self, reconciler, config):
        reconciler.sync(Manifest())
        assert config.start_dir.is_dir()
        assert config.opt_dir.is_dir()

    def test_installs_missing_plugins(self, reconciler, config, fetcher):
        manifest = Manifest(start=[_spec("user/a"), _spec("user/b", branch="main")])

        result = reconciler.sync(manifest)

        assert result.installed == ["start/a", "start/b"]
        assert (config.start_dir / "a" / "plugin" / "a.lua").exists()
        assert (config.start_dir / "b" / "README.md").read_bytes() == b"# readme"
        assert fetcher.calls == [
            "https://github.com/user/a/archive/refs/tags/v1.0.0.zip",
            "https://github.com/user/b/archive/refs/heads/main.zip",
        ]
        # Temporary archives are cleaned up
        assert sorted(p.name for p in config.start_dir.iterdir()) == ["a", "b"]

    def test_plugin_named_like_a_download(self, reconciler, config, fetcher):
        # "a.zip" is installed before "a" is downloaded
        manifest = Manifest(start=[_spec("user/a.zip"), _spec("user/a")])

        result = reconciler.sync(manifest)

        assert result.installed == ["start/a.zip", "start/a"]
        assert (config.start_dir / "a.zip" / "plugin" / "a.zip.lua").exists()
        assert (config.start_dir / "a" / "plugin" / "a.lua").exists()

        fetcher.calls.clear()
        assert reconciler.sync(manifest).skipped == ["start/a.zip", "start/a"]
        assert fetcher.calls == []

    def test_second_run_is_a_no_op(self, reconciler, config, fetcher):
        manifest = Manifest(start=[_spec("user/a"), _spec("user/b")])
        reconciler.sync(manifest)
        before = _snapshot(config.pack_dir)
        fetcher.calls.clear()

        result = reconciler.sync(manifest)

        assert fetcher.calls == []
        assert result.installed == []
        assert result.removed == []
        assert result.skipped == ["start/a", "start/b"]
        assert not result.changed
        assert _snapshot(config.pack_dir) == before

    def test_removes_only_orphans(self, reconciler, config, fetcher):
        for name in ("a", "b", "c"):
            (config.start_dir / name).mkdir(parents=True)
            (config.start_dir / name / "marker").write_text(name)

        result = reconciler.sync(Manifest(start=[_spec("user/a"), _spec("user/c")]))

        assert result.removed == ["start/b"]
        assert not (config.start_dir / "b").exists()
        assert (config.start_dir / "a" / "marker").read_text() == "a"
        assert (config.start_dir / "c" / "marker").read_text() == "c"
        assert fetcher.calls == []

    def test_removes_stray_files(self, reconciler, config):
        config.start_dir.mkdir(parents=True)
        (config.start_dir / "a.zip").write_bytes(b"partial download")

        result = reconciler.sync(Manifest())

        assert result.removed == ["start/a.zip"]
        assert list(config.start_dir.iterdir()) == []

    def test_explicit_url_is_used(self, reconciler, fetcher):
        url = "https://github.com/fork/a/archive/refs/heads/patched.zip"
        reconciler.sync(Manifest(start=[_spec("user/a", tag="v1.0.0", url=url)]))
        assert fetcher.calls == [url]

    def test_later_duplicate_wins(self, reconciler, config, fetcher):
        manifest = Manifest(start=[_spec("user/a", tag="v1"), _spec("other/a", tag="v2")])

        result = reconciler.sync(manifest)

        assert result.installed == ["start/a"]
        assert fetcher.calls == ["https://github.com/other/a/archive/refs/tags/v2.zip"]

    def test_versioned_naming(self, config, fetcher):
        config = config.model_copy(update={"naming": NamingPolicy.VERSIONED})
        reconciler = Reconciler(config, fetcher=fetcher)
        (config.start_dir / "a").mkdir(parents=True)

        result = reconciler.sync(Manifest(start=[_spec("user/a", tag="v2")]))

        # The bare "a" directory does not satisfy the versioned name
        assert result.removed == ["start/a"]
        assert result.installed == ["start/a-v2"]
        assert (config.start_dir / "a-v2" / "plugin" / "a.lua").exists()

    def test_passes_timeout_to_fetcher(self, config, make_zip):
        seen = []

        def fetch(url, dest, timeout):
            seen.append(timeout)
            make_zip(dest, {"a-1/init.lua": b""})

        Reconciler(config, fetcher=fetch).sync(Manifest(start=[_spec("user/a")]))
        assert seen == [5.0]


class TestOptionalTier:
    def test_opt_not_reconciled_by_default(self, reconciler, config, fetcher):
        (config.opt_dir / "stale").mkdir(parents=True)

        reconciler.sync(Manifest(opt=[_spec("user/lazy")]))

        assert (config.opt_dir / "stale").is_dir()
        assert not (config.opt_dir / "lazy").exists()
        assert fetcher.calls == []

    def test_opt_reconciled_when_enabled(self, config, fetcher):
        config = config.model_copy(update={"reconcile_optional": True})
        (config.opt_dir / "stale").mkdir(parents=True)

        result = Reconciler(config, fetcher=fetcher).sync(
            Manifest(start=[_spec("user/a")], opt=[_spec("user/lazy")])
        )

        assert result.installed == ["start/a", "opt/lazy"]
        assert result.removed == ["opt/stale"]
        assert (config.opt_dir / "lazy" / "plugin" / "lazy.lua").exists()
        assert not (config.start_dir / "lazy").exists()


class TestFailures:
    def test_network_error_aborts_run(self, config):
        calls = []

        def fetch(url, dest, timeout):
            calls.append(url)
            raise NetworkError(f"GET {url} returned HTTP 404")

        reconciler = Reconciler(config, fetcher=fetch)
        with pytest.raises(NetworkError):
            reconciler.sync(Manifest(start=[_spec("user/a"), _spec("user/b")]))

        assert len(calls) == 1
        assert list(config.start_dir.iterdir()) == []

    def test_bad_archive_is_deleted(self, config):
        downloads = []

        def fetch(url, dest, timeout):
            downloads.append(dest)
            dest.write_bytes(b"<html>Not Found</html>")

        reconciler = Reconciler(config, fetcher=fetch)
        with pytest.raises(ArchiveError):
            reconciler.sync(Manifest(start=[_spec("user/a")]))

        assert len(downloads) == 1
        assert not downloads[0].exists()
        assert config.pack_dir not in downloads[0].parents
        assert list(config.start_dir.iterdir()) == []

    @pytest.mark.parametrize("repo", ["owner/..", "owner/.", "/"])
    def test_unsafe_dir_name_never_written(self, tmp_path, config, fetcher, repo):
        # Bypasses validation the way a hand-built spec could
        spec = PluginSpec.model_construct(repo=repo, tag="v1", branch="", url="")

        with pytest.raises(PathTraversalError):
            Reconciler(config, fetcher=fetcher).sync(Manifest(start=[spec]))

        assert fetcher.calls == []
        assert list(config.start_dir.iterdir()) == []
        assert _snapshot(tmp_path) == {}

    def test_missing_pack_parent_is_created(self, tmp_path, fetcher):
        config = SyncConfig(pack_dir=tmp_path / "does" / "not" / "exist")
        Reconciler(config, fetcher=fetcher).sync(Manifest(start=[_spec("user/a")]))
        assert (config.start_dir / "a").is_dir()


class TestPlan:
    def test_plan_does_not_touch_disk(self, reconciler, config, fetcher):
        (config.start_dir / "old").mkdir(parents=True)
        (config.start_dir / "keep").mkdir()

        plan = reconciler.plan(Manifest(start=[_spec("user/keep"), _spec("user/new")]))

        assert plan.remove == ["start/old"]
        assert plan.install == ["start/new"]
        assert not plan.is_empty
        assert (config.start_dir / "old").is_dir()
        assert fetcher.calls == []

    def test_plan_before_first_sync(self, reconciler, config):
        plan = reconciler.plan(Manifest(start=[_spec("user/a")]))
        assert plan.install == ["start/a"]
        assert not config.pack_dir.exists()

    def test_empty_plan_after_sync(self, reconciler):
        manifest = Manifest(start=[_spec("user/a")])
        reconciler.sync(manifest)
        assert reconciler.plan(manifest).is_empty
