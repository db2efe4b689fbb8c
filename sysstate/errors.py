"""
Error types for sysstate.

Severity follows the capture/restore taxonomy:
- item-level failures are recorded as warnings (see snapshot.models.ItemWarning)
- CategoryPreparationError aborts a single category
- TargetRootError / InvalidSnapshotError abort the whole run
- ReplicationError is downgraded to a warning by the manager
"""

from typing import Optional, List


class SysStateError(Exception):
    """Base class for all sysstate errors."""
    pass


class TargetRootError(SysStateError):
    """The snapshot root directory cannot be created."""
    pass


class CategoryPreparationError(SysStateError):
    """A category subtree could not be wiped or recreated."""

    def __init__(self, category: str, message: str):
        super().__init__(f"{category}: {message}")
        self.category = category


class InvalidSnapshotError(SysStateError):
    """Restore target is not a recognized snapshot (no manifest marker)."""
    pass


class SourceError(SysStateError):
    """A package/service/settings source command failed."""

    def __init__(self, message: str, command: Optional[List[str]] = None, output: str = ""):
        super().__init__(message)
        self.command = command or []
        self.output = output


class PrivilegeError(SysStateError):
    """An operation behind the privilege-escalation boundary failed."""
    pass


class VersioningError(SysStateError):
    """The versioned store rejected an operation (init, add, commit)."""
    pass


class ReplicationError(VersioningError):
    """Offsite replication (push) failed."""
    pass
