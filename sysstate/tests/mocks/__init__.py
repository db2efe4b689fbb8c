"""
Mock components for testing sysstate.

These doubles replace pacman, systemctl, dconf, sudo and git with canned,
in-memory behaviour (golden_data.py) so capture and restore can run against
a temporary directory without touching the real machine.
"""

from .golden_data import (
    EXPLICIT_PACKAGES,
    TRUSTED_PACKAGES,
    FOREIGN_PACKAGES,
    PACKAGE_GROUPS,
    EXPLICIT_VERSIONS,
    SYSTEM_SERVICES,
    USER_SERVICES,
    EXCLUDED_SYSTEM_SERVICES,
    UNIT_FILE,
    DCONF_DUMP,
    HOST,
    LATER_HOST,
    write_home,
    write_etc,
    write_snapshot_tree,
    tree_bytes,
)

from .mock_sources import (
    FakeCommandRunner,
    FakePackageSource,
    FakeServiceSource,
    FakeDesktopSettings,
    FakePrivilege,
    ScriptedConfirmation,
    MemorySink,
    fake_adapters,
)

__all__ = [
    # Source doubles
    'FakeCommandRunner',
    'FakePackageSource',
    'FakeServiceSource',
    'FakeDesktopSettings',
    'FakePrivilege',
    'ScriptedConfirmation',
    'MemorySink',
    'fake_adapters',
    # Golden data
    'EXPLICIT_PACKAGES',
    'TRUSTED_PACKAGES',
    'FOREIGN_PACKAGES',
    'PACKAGE_GROUPS',
    'EXPLICIT_VERSIONS',
    'SYSTEM_SERVICES',
    'USER_SERVICES',
    'EXCLUDED_SYSTEM_SERVICES',
    'UNIT_FILE',
    'DCONF_DUMP',
    'HOST',
    'LATER_HOST',
    'write_home',
    'write_etc',
    'write_snapshot_tree',
    'tree_bytes',
]
