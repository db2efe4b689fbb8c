"""
Shared fixtures: a fake home, a fake /etc and a catalog pointing at both.
"""

from pathlib import Path

import pytest

from sysstate.catalog import CaptureStrategy, Category, ConfigItem, ItemCatalog
from sysstate.tests.mocks import fake_adapters, write_etc, write_home, write_snapshot_tree


@pytest.fixture
def home(tmp_path: Path) -> Path:
    return write_home(tmp_path / "home")


@pytest.fixture
def etc(tmp_path: Path) -> Path:
    return write_etc(tmp_path / "etc")


@pytest.fixture
def catalog(etc: Path) -> ItemCatalog:
    items = (
        ConfigItem(".bashrc", Category.USER_CONFIG, CaptureStrategy.COPY_FILE),
        ConfigItem(".profile", Category.USER_CONFIG, CaptureStrategy.COPY_FILE),
        ConfigItem(".config/nvim", Category.USER_CONFIG),
        ConfigItem(".ssh/config", Category.USER_CONFIG, CaptureStrategy.COPY_FILE, secret=True),
        ConfigItem(".config", Category.USER_CONFIG, CaptureStrategy.LIST_ONLY, output="config-dirs-list.txt"),
        ConfigItem(str(etc / "hosts"), Category.SYSTEM_CONFIG, CaptureStrategy.COPY_FILE,
                   requires_elevated_access=True),
        ConfigItem(str(etc / "modprobe.d"), Category.SYSTEM_CONFIG, requires_elevated_access=True),
        ConfigItem("hostname", Category.SYSTEM_CONFIG, CaptureStrategy.COMMAND_OUTPUT,
                   output="hostname.txt", command=("hostname",)),
    )
    return ItemCatalog(items=items, system_unit_dir=str(etc / "systemd" / "system"))


@pytest.fixture
def sources():
    return fake_adapters()


@pytest.fixture
def snapshot_root(tmp_path: Path) -> Path:
    return write_snapshot_tree(tmp_path / "backup")


@pytest.fixture
def empty_home(tmp_path: Path) -> Path:
    path = tmp_path / "fresh-home"
    path.mkdir()
    return path
