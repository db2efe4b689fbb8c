"""
Source adapter interfaces.

The capture and restore engines only talk to these capabilities; concrete
bindings (pacman, systemctl, dconf, sudo) live in sibling modules and tests
supply canned doubles.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Sequence

from .commands import CommandRunner


class PackageOrigin(str, Enum):
    """Where an explicit package comes from."""
    TRUSTED = "official"
    FOREIGN = "aur"


class ServiceScope(str, Enum):
    SYSTEM = "system"
    USER = "user"


class PackageSource(ABC):
    """Query and install packages."""

    @abstractmethod
    def list_explicit_packages(self) -> List[str]:
        """All user-requested packages."""

    @abstractmethod
    def list_trusted_packages(self) -> List[str]:
        """Explicit packages from the primary trusted repositories."""

    @abstractmethod
    def list_foreign_packages(self) -> List[str]:
        """Explicit packages from any other origin."""

    def list_package_groups(self) -> List[str]:
        return []

    def list_explicit_versions(self) -> List[str]:
        """`name version` lines, reference only."""
        return []

    @abstractmethod
    def has_installer(self, origin: PackageOrigin) -> bool:
        """Whether packages of this origin can be installed on this machine."""

    @abstractmethod
    def install_command(self, names: Sequence[str], origin: PackageOrigin) -> str:
        """Shell command an operator would run to install `names`."""

    @abstractmethod
    def install_packages(self, names: Sequence[str], origin: PackageOrigin) -> None:
        """Install a batch; raises SourceError if the batch reported failures."""

    def install_package(self, name: str, origin: PackageOrigin) -> None:
        self.install_packages([name], origin)


class ServiceSource(ABC):
    """Query and enable services."""

    @abstractmethod
    def list_enabled_services(self, scope: ServiceScope) -> List[str]:
        pass

    @abstractmethod
    def is_enabled(self, name: str, scope: ServiceScope) -> bool:
        pass

    @abstractmethod
    def enable_command(self, name: str, scope: ServiceScope) -> str:
        pass

    @abstractmethod
    def enable_service(self, name: str, scope: ServiceScope) -> None:
        pass

    @abstractmethod
    def reload(self, scope: ServiceScope) -> None:
        """Ask the service manager to re-read unit definitions."""


class DesktopSettingsSource(ABC):
    """Dump/load of the desktop settings namespace."""

    @abstractmethod
    def available(self) -> bool:
        pass

    @abstractmethod
    def dump(self) -> str:
        pass

    @abstractmethod
    def load_command(self, dump_path: Path) -> str:
        pass

    @abstractmethod
    def load(self, text: str) -> None:
        pass


class PrivilegeBoundary(ABC):
    """Operations that need elevated access."""

    @abstractmethod
    def copy(self, src: Path, dest: Path) -> None:
        """Copy `src` to `dest` preserving attributes and following symlinks."""

    @abstractmethod
    def normalize_ownership(self, path: Path) -> None:
        """Hand `path` (recursively) back to the invoking non-elevated user."""

    @abstractmethod
    def run(self, cmd: Sequence[str]) -> str:
        """Run a read-only command elevated and return its stdout."""


@dataclass
class SourceAdapters:
    """Bundle of capabilities handed to the engines."""
    packages: PackageSource
    services: ServiceSource
    desktop: DesktopSettingsSource
    privilege: PrivilegeBoundary
    commands: CommandRunner = field(default_factory=CommandRunner)
