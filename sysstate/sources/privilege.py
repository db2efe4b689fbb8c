"""
Privilege-escalation boundary.

System configuration files are read through `sudo` (once the credential is
cached the prompt does not repeat). Copies are handed back to the invoking
user so the snapshot tree can be read, diffed and committed without root.
"""

import getpass
import os
import pwd
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from ..errors import PrivilegeError, SourceError
from .base import PrivilegeBoundary
from .commands import CommandRunner


@dataclass(frozen=True)
class Identity:
    """The non-elevated user on whose behalf sysstate runs."""
    user: str
    uid: int
    gid: int
    home: Path

    @property
    def owner(self) -> str:
        return f"{self.uid}:{self.gid}"


def running_as_root() -> bool:
    return os.geteuid() == 0


def invoking_identity() -> Identity:
    """
    Resolve the real user, also when started through sudo.

    SUDO_USER wins over the effective user so that read-only commands run
    through sudo still look at the home and backup of the person who typed
    them. Capture and restore refuse to run as root.
    """
    name = os.environ.get("SUDO_USER") or getpass.getuser()
    try:
        entry = pwd.getpwnam(name)
        return Identity(user=name, uid=entry.pw_uid, gid=entry.pw_gid, home=Path(entry.pw_dir))
    except KeyError:
        return Identity(user=name, uid=os.getuid(), gid=os.getgid(), home=Path.home())


class SudoPrivilege(PrivilegeBoundary):
    """Runs elevated operations with sudo, or directly when already root."""

    def __init__(self, identity: Optional[Identity] = None, runner: Optional[CommandRunner] = None):
        self.identity = identity or invoking_identity()
        self.runner = runner or CommandRunner()

    @property
    def is_root(self) -> bool:
        return running_as_root()

    def _elevate(self, cmd: Sequence[str]) -> List[str]:
        if self.is_root:
            return list(cmd)
        return ["sudo", *cmd]

    def _run(self, cmd: Sequence[str]) -> str:
        try:
            return self.runner.run(self._elevate(cmd))
        except SourceError as e:
            raise PrivilegeError(str(e)) from e

    def copy(self, src: Path, dest: Path) -> None:
        dest.parent.mkdir(parents=True, exist_ok=True)
        # -a keeps mode/timestamps, -L stores symlink targets as data
        self._run(["cp", "-aL", str(src), str(dest)])

    def normalize_ownership(self, path: Path) -> None:
        self._run(["chown", "-R", self.identity.owner, str(path)])

    def run(self, cmd: Sequence[str]) -> str:
        return self._run(cmd)
