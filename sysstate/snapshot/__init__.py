"""
Snapshot/Restore system for sysstate.

Captures the mutable configuration surface of an Arch Linux machine into a
versioned directory tree and replays it onto a (possibly fresh) install.
Key features:

- Clean-slate capture per category, so removals show up as deletions
- MANIFEST.md regenerated from the tree on every capture
- One git revision per effective change, pushed offsite
- Confirmed, dry-run capable restore

Scope: packages, user/system configs, systemd services, dconf settings
"""

from .models import (
    PackageSet,
    Snapshot,
    SnapshotDelta,
    CaptureReport,
    CaptureResult,
    RestoreCategory,
    RestoreSelection,
    RestoreReport,
    MenuChoice,
)
from .layout import SnapshotLayout
from .capture import SnapshotCapture
from .manifest import HostMetadata, Manifest, ManifestGenerator
from .versioning import VersioningSink, GitSink, build_commit_message
from .restore import SnapshotRestore
from .manager import SnapshotManager

__all__ = [
    'PackageSet',
    'Snapshot',
    'SnapshotDelta',
    'CaptureReport',
    'CaptureResult',
    'RestoreCategory',
    'RestoreSelection',
    'RestoreReport',
    'MenuChoice',
    'SnapshotLayout',
    'SnapshotCapture',
    'HostMetadata',
    'Manifest',
    'ManifestGenerator',
    'VersioningSink',
    'GitSink',
    'build_commit_message',
    'SnapshotRestore',
    'SnapshotManager',
]
