"""
Tests for the command-line entry point, with fake adapters wired in.
"""

import pytest

from sysstate import cli
from sysstate.sources import Identity
from sysstate.tests.mocks import fake_adapters


@pytest.fixture
def wired(tmp_path, monkeypatch, empty_home):
    """Fake adapters, an isolated home and no config file."""
    sources = fake_adapters()
    monkeypatch.setattr(cli, "default_adapters", lambda **kwargs: sources)
    monkeypatch.setattr(cli, "running_as_root", lambda: False)
    monkeypatch.setattr(
        cli, "invoking_identity",
        lambda: Identity(user="tester", uid=1000, gid=1000, home=empty_home),
    )
    monkeypatch.setenv("HOME", str(empty_home))
    monkeypatch.delenv("DRY_RUN", raising=False)
    for name in ("SYSTEM_STATE_BACKUP_DIR", "SYSTEM_STATE_GITHUB_REPO", "PUSH_TO_GITHUB"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return sources


def test_parse_restore_args():
    args = cli.parse_args(["restore", "/b", "--dry-run", "--only", "packages", "--only", "services", "-y"])
    assert args.command == "restore"
    assert args.dir == "/b"
    assert args.dry_run is True
    assert args.only == ["packages", "services"]
    assert args.yes is True


def test_parse_capture_push_flags():
    assert cli.parse_args(["capture"]).push is None
    assert cli.parse_args(["capture", "--no-push"]).push is False
    assert cli.parse_args(["capture", "--push"]).push is True


def test_unknown_category_rejected():
    with pytest.raises(SystemExit):
        cli.parse_args(["restore", "--only", "kernel"])


def test_restore_without_manifest_exits_1(wired, tmp_path):
    (tmp_path / "empty").mkdir()
    assert cli.main(["-q", "restore", str(tmp_path / "empty"), "--yes"]) == 1


def test_restore_dry_run(wired, snapshot_root, empty_home):
    code = cli.main(["-q", "restore", str(snapshot_root), "--dry-run", "--yes", "--only", "user-configs"])
    assert code == 0
    assert list(empty_home.iterdir()) == []


def test_restore_live(wired, snapshot_root, empty_home):
    code = cli.main(["-q", "restore", str(snapshot_root), "--yes", "--only", "packages", "--only", "user-configs"])
    assert code == 0
    assert wired.packages.installed == ["base", "git", "linux", "yay"]
    assert (empty_home / ".bashrc").is_file()


def test_dry_run_from_environment(wired, snapshot_root, empty_home, monkeypatch):
    monkeypatch.setenv("DRY_RUN", "true")
    assert cli.main(["-q", "restore", str(snapshot_root), "--yes", "--only", "packages"]) == 0
    assert wired.packages.installed == []


def test_manifest_command(wired, snapshot_root):
    assert cli.main(["-q", "manifest", str(snapshot_root)]) == 0
    assert "- Total explicit: 4 packages" in (snapshot_root / "MANIFEST.md").read_text()


def test_manifest_missing_dir(wired, tmp_path):
    assert cli.main(["-q", "manifest", str(tmp_path / "missing")]) == 1


def test_status_and_history(wired, tmp_path):
    backup = tmp_path / "backup"
    assert cli.main(["-q", "--backup-dir", str(backup), "status"]) == 0
    assert cli.main(["-q", "--backup-dir", str(backup), "history"]) == 0


def test_init_config(wired, tmp_path):
    target = tmp_path / "conf.toml"
    assert cli.main(["-q", "init-config", str(target)]) == 0
    assert target.is_file()
    assert cli.main(["-q", "init-config", str(target)]) == 1


def test_invalid_config_exits_1(wired):
    assert cli.main(["-q", "--github-repo", "owner/name", "status"]) == 1


def test_config_repeating_a_default_entry(wired, tmp_path):
    path = tmp_path / "dup.toml"
    path.write_text('[catalog]\nuser_files = [".bashrc"]\n')
    assert cli.main(["-q", "-c", str(path), "--backup-dir", str(tmp_path / "backup"), "status"]) == 0


def test_config_listing_a_path_twice_exits_1(wired, tmp_path):
    path = tmp_path / "twice.toml"
    path.write_text('[catalog]\nuser_files = [".zshrc"]\nuser_dirs = [".zshrc"]\n')
    assert cli.main(["-q", "-c", str(path), "status"]) == 1


def test_capture_and_restore_refuse_root(wired, snapshot_root, monkeypatch):
    monkeypatch.setattr(cli, "running_as_root", lambda: True)
    assert cli.main(["-q", "capture", "--no-push"]) == 1
    assert cli.main(["-q", "restore", str(snapshot_root), "--yes"]) == 1
    assert wired.packages.installed == []


def test_status_shows_backup_counts_and_config(wired, snapshot_root, capsys):
    (snapshot_root / "MANIFEST.md").write_text("- Official: 3 packages\n- AUR: 1 packages\n- Total explicit: 4 packages\n")
    assert cli.main(["--backup-dir", str(snapshot_root), "status"]) == 0

    out = capsys.readouterr().out
    assert "3 official, 1 AUR" in out
    assert "Config: (defaults)" in out
