"""
Tests for configuration loading and priority.
"""

from argparse import Namespace
from pathlib import Path

import pytest

from sysstate.config import Config, create_example_config


TOML = """
[backup]
dir = "/srv/backup"
github_repo = "my-machine"
push = false

[catalog]
user_dirs = [".config/helix"]
system_files = ["/etc/doas.conf"]
secret_paths = [".config/helix"]

[restore]
dry_run = true
service_exclusions = ["*.target"]

[output]
quiet = true
"""


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "sysstate.toml"
    path.write_text(TOML)
    return path


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """No config file anywhere on the search path."""
    monkeypatch.setenv("HOME", str(tmp_path / "nohome"))
    monkeypatch.chdir(tmp_path)


def test_defaults(isolated):
    config = Config.load(environ={})
    assert config.backup.path == Path("~/system-state-backup").expanduser()
    assert config.backup.github_repo == "system-state-backup"
    assert config.backup.push is True
    assert config.restore.dry_run is False
    assert config.restore.service_exclusions == ["*.target", "getty@*", "systemd-*"]
    assert config.validate() == []
    assert "Config: (defaults)" in config.summary()


def test_load_from_file(config_file):
    config = Config.load(str(config_file), environ={})
    assert config.backup.dir == "/srv/backup"
    assert config.backup.github_repo == "my-machine"
    assert config.backup.push is False
    assert config.restore.dry_run is True
    assert config.restore.service_exclusions == ["*.target"]
    assert config.output.quiet is True
    assert f"Config: {config_file}" in config.summary()


def test_search_path_finds_cwd_file(isolated, tmp_path, config_file):
    config = Config.load(environ={})
    assert config.backup.github_repo == "my-machine"


def test_missing_explicit_file():
    with pytest.raises(FileNotFoundError):
        Config.load("/nonexistent/sysstate.toml", environ={})


def test_environment_beats_file(config_file):
    config = Config.load(str(config_file), environ={
        "SYSTEM_STATE_BACKUP_DIR": "/mnt/usb/backup",
        "SYSTEM_STATE_GITHUB_REPO": "from-env",
        "PUSH_TO_GITHUB": "true",
        "DRY_RUN": "false",
    })
    assert config.backup.dir == "/mnt/usb/backup"
    assert config.backup.github_repo == "from-env"
    assert config.backup.push is True
    assert config.restore.dry_run is False


def test_arguments_beat_environment(config_file):
    config = Config.load(str(config_file), environ={"SYSTEM_STATE_BACKUP_DIR": "/mnt/usb/backup"})
    config.override_from_args(Namespace(backup_dir="/from/cli", github_repo=None, push=None, dry_run=None, quiet=None))
    assert config.backup.dir == "/from/cli"
    assert config.backup.push is False


def test_catalog_extends_defaults(config_file):
    catalog = Config.load(str(config_file), environ={}).catalog.build()
    assert catalog.get(".config/helix").secret
    assert catalog.get("/etc/doas.conf").requires_elevated_access
    assert catalog.get(".bashrc") is not None


def test_catalog_without_defaults():
    config = Config()
    config.catalog.use_defaults = False
    config.catalog.user_files = [".zshrc"]
    assert [i.path for i in config.catalog.build().items] == [".zshrc"]


def test_validate_reports_problems():
    config = Config()
    config.backup.github_repo = "someone/repo"
    config.catalog.system_dirs = ["etc/nftables.d"]
    config.catalog.user_files = ["/root/.bashrc"]

    errors = config.validate()
    assert len(errors) == 3
    assert any("bare name" in e for e in errors)


def test_create_example_config(tmp_path):
    target = create_example_config(str(tmp_path / "conf/sysstate.toml"))
    assert "[backup]" in target.read_text()

    with pytest.raises(FileExistsError):
        create_example_config(str(target))

    config = Config.load(str(target), environ={})
    assert config.validate() == []


def test_catalog_entry_repeating_a_default(tmp_path):
    path = tmp_path / "dup.toml"
    path.write_text('[catalog]\nuser_files = [".bashrc"]\n')
    config = Config.load(str(path), environ={})

    assert config.validate() == []
    assert [i.path for i in config.catalog.build().items].count(".bashrc") == 1


def test_catalog_listing_a_path_twice_is_reported():
    config = Config()
    config.catalog.user_files = [".zshrc"]
    config.catalog.user_dirs = [".zshrc"]

    errors = config.validate()
    assert errors == ["Invalid catalog: Duplicate catalog entry: .zshrc"]


def test_backup_dir_resolves_against_given_home():
    config = Config()
    assert config.backup.resolve(Path("/home/alice")) == Path("/home/alice/system-state-backup")

    config.backup.dir = "/mnt/usb/backup"
    assert config.backup.resolve(Path("/home/alice")) == Path("/mnt/usb/backup")


def test_secret_paths_promote_builtin_entries():
    config = Config()
    config.catalog.secret_paths = [".bashrc"]
    assert config.validate() == []
    assert config.catalog.build().get(".bashrc").secret


def test_unknown_secret_path_is_reported():
    config = Config()
    config.catalog.secret_paths = [".not-captured"]
    assert config.validate() == ["Secret path is not in the catalog: .not-captured"]
