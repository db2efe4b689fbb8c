"""
sysstate - System state capture and restore for Arch Linux

Captures explicitly installed packages (official and AUR), user dotfiles,
system configuration, enabled systemd services and desktop settings into a
git-versioned directory, and replays them onto a fresh install.

Usage:
    # From the command line
    sysstate capture
    sysstate restore ~/system-state-backup --dry-run

    # Programmatically
    from sysstate import SnapshotCapture, ItemCatalog
    from sysstate.sources import default_adapters

    capture = SnapshotCapture(ItemCatalog.default(), default_adapters(), home=Path.home())
    report = capture.materialize("~/system-state-backup")
"""

__version__ = "1.0.0"

from .catalog import ItemCatalog, ConfigItem, Category, CaptureStrategy
from .errors import (
    SysStateError,
    TargetRootError,
    CategoryPreparationError,
    InvalidSnapshotError,
    SourceError,
    PrivilegeError,
    VersioningError,
    ReplicationError,
)
from .snapshot import (
    Snapshot,
    SnapshotCapture,
    SnapshotRestore,
    SnapshotManager,
    RestoreSelection,
    RestoreCategory,
)

__all__ = [
    # Version
    "__version__",
    # Catalog
    "ItemCatalog",
    "ConfigItem",
    "Category",
    "CaptureStrategy",
    # Errors
    "SysStateError",
    "TargetRootError",
    "CategoryPreparationError",
    "InvalidSnapshotError",
    "SourceError",
    "PrivilegeError",
    "VersioningError",
    "ReplicationError",
    # Snapshot
    "Snapshot",
    "SnapshotCapture",
    "SnapshotRestore",
    "SnapshotManager",
    "RestoreSelection",
    "RestoreCategory",
]
