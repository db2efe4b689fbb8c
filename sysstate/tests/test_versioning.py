"""
Tests for the commit message policy and the git-backed versioning sink.
"""

import shutil
import subprocess
from pathlib import Path

import pytest

from sysstate.errors import ReplicationError
from sysstate.snapshot.manifest import ManifestGenerator
from sysstate.snapshot.models import SnapshotDelta
from sysstate.snapshot.versioning import GitSink, build_commit_message
from sysstate.tests.mocks import HOST


@pytest.fixture
def manifest(snapshot_root: Path):
    return ManifestGenerator().generate(snapshot_root, HOST)


class TestCommitMessage:

    def test_format(self, manifest):
        delta = SnapshotDelta(
            packages_added=["neovim"],
            packages_removed=["nano"],
            services_added=["system:sshd.service"],
            configs_removed=["user/.bashrc", "user/.profile"],
        )
        message = build_commit_message(manifest, delta)

        assert message.splitlines() == [
            "System state backup - 2024-05-01 10:00",
            "",
            "Packages: 4 total (3 official, 1 AUR)",
            "Changes: +1/-1 packages, +1/-0 services, +0/-2 config files",
            "Added packages: neovim",
            "Removed packages: nano",
            "Kernel: 6.9.1-arch1-1",
            "Hostname: archbox",
        ]

    def test_package_lines_omitted_without_package_changes(self, manifest):
        message = build_commit_message(manifest, SnapshotDelta(services_removed=["user:foo.service"]))
        assert "Added packages" not in message
        assert "Removed packages" not in message
        assert "+0/-1 services" in message

    def test_long_package_lists_are_capped(self, manifest):
        added = [f"pkg{i:02d}" for i in range(13)]
        message = build_commit_message(manifest, SnapshotDelta(packages_added=added))
        line = next(ln for ln in message.splitlines() if ln.startswith("Added packages:"))

        assert "pkg09" in line
        assert "pkg10" not in line
        assert line.endswith("(+3 more)")

    def test_deterministic(self, manifest):
        delta = SnapshotDelta(packages_added=["a", "b"])
        assert build_commit_message(manifest, delta) == build_commit_message(manifest, delta)


requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


@pytest.fixture
def git_env(tmp_path, monkeypatch):
    """Isolated git identity and config."""
    monkeypatch.setenv("HOME", str(tmp_path / "git-home"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test User")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test User")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")
    (tmp_path / "git-home").mkdir()


@requires_git
class TestGitSink:

    def test_initialize_once(self, tmp_path, git_env):
        sink = GitSink(tmp_path / "repo")

        assert sink.ensure_initialized() is True
        assert sink.ensure_initialized() is False
        assert (tmp_path / "repo/.gitignore").read_text().splitlines()[1:] == ["*.log", "*.tmp", "*.cache"]
        assert (tmp_path / "repo/README.md").is_file()
        assert [ln.split(" ", 1)[1] for ln in sink.history()] == ["Initial commit"]

    def test_record_only_on_change(self, tmp_path, git_env):
        root = tmp_path / "repo"
        sink = GitSink(root)
        sink.ensure_initialized()

        (root / "MANIFEST.md").write_text("one\n")
        rev = sink.record("first capture")
        assert rev

        assert sink.record("nothing changed") is None
        assert len(sink.history()) == 2

        (root / "MANIFEST.md").write_text("two\n")
        assert sink.record("second capture")
        assert sink.history(limit=1)[0].endswith("second capture")

    def test_deletions_are_recorded(self, tmp_path, git_env):
        root = tmp_path / "repo"
        sink = GitSink(root)
        sink.ensure_initialized()
        (root / "a.txt").write_text("a\n")
        sink.record("add")

        (root / "a.txt").unlink()
        assert sink.record("remove") is not None

    def test_last_recorded_age(self, tmp_path, git_env):
        sink = GitSink(tmp_path / "repo")
        assert sink.last_recorded_age() is None
        sink.ensure_initialized()
        assert sink.last_recorded_age()

    def test_replicate_without_remote_fails_softly(self, tmp_path, git_env):
        sink = GitSink(tmp_path / "repo")
        sink.ensure_initialized()
        assert sink.remote_url() is None
        with pytest.raises(ReplicationError):
            sink.replicate()

    def test_unreplicated_until_pushed(self, tmp_path, git_env):
        remote = tmp_path / "remote.git"
        subprocess.run(["git", "init", "--bare", "-q", str(remote)], check=True)
        root = tmp_path / "repo"
        sink = GitSink(root)
        assert not sink.has_unreplicated()

        sink.ensure_initialized()
        assert sink.has_unreplicated()

        sink._git("remote", "add", "origin", str(remote))
        sink.replicate()
        assert not sink.has_unreplicated()

        (root / "MANIFEST.md").write_text("one\n")
        sink.record("first capture")
        assert sink.has_unreplicated()
