"""
Versioning sink - records snapshots as revisions of a git repository.

The mechanism (git, GitHub as the offsite remote) is replaceable; the policy
is not: one revision per effective change, a commit message derived from the
snapshot delta, and replication failures that never undo a local revision.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Sequence

from ..errors import ReplicationError, SourceError, VersioningError
from ..sources.commands import CommandRunner, run_capture
from .manifest import Manifest
from .models import SnapshotDelta

GITIGNORE = """\
# Ignore large/binary files that shouldn't be tracked
*.log
*.tmp
*.cache
"""

README = """\
# System State Backup

Automated backup of Arch Linux system configuration.

## Contents

- `packages/` - Installed package lists (official + AUR)
- `configs/user/` - User dotfiles and configs
- `configs/system/` - System configuration files
- `services/` - Enabled systemd services and custom units
- `MANIFEST.md` - Summary of the latest capture

## Restore

```bash
sysstate restore /path/to/this/checkout
```
"""

NAME_LIST_LIMIT = 10


def _names(names: Sequence[str], limit: int = NAME_LIST_LIMIT) -> str:
    shown = ", ".join(names[:limit])
    if len(names) > limit:
        shown += f" (+{len(names) - limit} more)"
    return shown


def build_commit_message(manifest: Manifest, delta: SnapshotDelta) -> str:
    """
    Revision message for a capture.

    Deterministic in (manifest, delta) so that history doubles as a changelog.
    """
    meta = manifest.metadata
    lines = [
        f"System state backup - {meta.timestamp[:16]}",
        "",
        f"Packages: {manifest.explicit_count} total "
        f"({manifest.official_count} official, {manifest.foreign_count} AUR)",
        "Changes: "
        f"+{len(delta.packages_added)}/-{len(delta.packages_removed)} packages, "
        f"+{len(delta.services_added)}/-{len(delta.services_removed)} services, "
        f"+{len(delta.configs_added)}/-{len(delta.configs_removed)} config files",
    ]
    if delta.packages_added:
        lines.append(f"Added packages: {_names(delta.packages_added)}")
    if delta.packages_removed:
        lines.append(f"Removed packages: {_names(delta.packages_removed)}")
    lines += [
        f"Kernel: {meta.kernel}",
        f"Hostname: {meta.hostname}",
    ]
    return "\n".join(lines)


class VersioningSink(ABC):
    """Immutable revision store for snapshot roots."""

    @abstractmethod
    def ensure_initialized(self) -> bool:
        """Create the store if needed. Returns True when it was created."""

    @abstractmethod
    def record(self, message: str) -> Optional[str]:
        """Record the current tree. Returns a revision id, or None if nothing changed."""

    @abstractmethod
    def ensure_remote(self) -> None:
        """Make sure an offsite remote is configured (may raise ReplicationError)."""

    @abstractmethod
    def replicate(self) -> None:
        """Push recorded revisions offsite (may raise ReplicationError)."""

    def has_unreplicated(self) -> bool:
        """True when recorded revisions have not reached the remote yet."""
        return False

    def history(self, limit: int = 5) -> List[str]:
        return []

    def last_recorded_age(self) -> Optional[str]:
        return None

    def remote_url(self) -> Optional[str]:
        return None


class GitSink(VersioningSink):
    """Git repository in the snapshot root, GitHub (via `gh`) as the remote."""

    def __init__(
        self,
        root,
        remote_repo: str = "system-state-backup",
        runner: Optional[CommandRunner] = None,
    ):
        self.root = Path(root).expanduser()
        self.remote_repo = remote_repo
        self.runner = runner or CommandRunner()

    def _git(self, *args: str) -> str:
        try:
            return self.runner.run(["git", "-C", str(self.root), *args])
        except SourceError as e:
            raise VersioningError(str(e)) from e

    def _git_ok(self, *args: str) -> bool:
        rc, _, _ = run_capture(["git", "-C", str(self.root), *args])
        return rc == 0

    @property
    def is_repository(self) -> bool:
        return (self.root / ".git").exists()

    def ensure_initialized(self) -> bool:
        if self.is_repository:
            return False
        self.root.mkdir(parents=True, exist_ok=True)
        self._git("init")
        gitignore = self.root / ".gitignore"
        if not gitignore.exists():
            gitignore.write_text(GITIGNORE, encoding="utf-8")
        readme = self.root / "README.md"
        if not readme.exists():
            readme.write_text(README, encoding="utf-8")
        self._git("add", ".gitignore", "README.md")
        self._git("commit", "-m", "Initial commit")
        return True

    def has_changes(self) -> bool:
        self._git("add", "-A")
        # exit status 1 means the index differs from HEAD
        return not self._git_ok("diff", "--cached", "--quiet")

    def record(self, message: str) -> Optional[str]:
        if not self.has_changes():
            return None
        self._git("commit", "-m", message)
        return self._git("rev-parse", "--short", "HEAD").strip()

    def remote_url(self) -> Optional[str]:
        rc, out, _ = run_capture(["git", "-C", str(self.root), "remote", "get-url", "origin"])
        return out.strip() if rc == 0 and out.strip() else None

    def ensure_remote(self) -> None:
        if self.remote_url():
            return
        if not self.runner.available("gh"):
            raise ReplicationError("No 'origin' remote and the GitHub CLI (gh) is not installed")
        try:
            rc, _, _ = run_capture(["gh", "repo", "view", self.remote_repo])
            if rc == 0:
                login = self.runner.run(["gh", "api", "user", "-q", ".login"]).strip()
                self._git("remote", "add", "origin", f"https://github.com/{login}/{self.remote_repo}.git")
            else:
                self.runner.run([
                    "gh", "repo", "create", self.remote_repo,
                    "--private", f"--source={self.root}", "--remote=origin",
                ])
        except (SourceError, VersioningError) as e:
            raise ReplicationError(f"Could not set up remote '{self.remote_repo}': {e}") from e

    def replicate(self) -> None:
        try:
            self._git("push", "-u", "origin", "HEAD")
        except VersioningError as e:
            raise ReplicationError(str(e)) from e

    def has_unreplicated(self) -> bool:
        if not self.is_repository or not self._git_ok("rev-parse", "--verify", "-q", "HEAD"):
            return False
        rc, out, _ = run_capture(["git", "-C", str(self.root), "rev-list", "--count", "@{upstream}..HEAD"])
        if rc != 0:
            # no upstream yet: nothing was ever pushed
            return True
        return out.strip() not in ("", "0")

    def history(self, limit: int = 5) -> List[str]:
        if not self.is_repository:
            return []
        rc, out, _ = run_capture(["git", "-C", str(self.root), "log", "--oneline", f"-{limit}"])
        return [ln for ln in out.splitlines() if ln.strip()] if rc == 0 else []

    def last_recorded_age(self) -> Optional[str]:
        if not self.is_repository:
            return None
        rc, out, _ = run_capture(["git", "-C", str(self.root), "log", "-1", "--format=%ar"])
        if rc != 0:
            return None
        return out.strip() or None
