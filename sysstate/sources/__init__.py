"""
Source adapters: package, service, desktop-settings and privilege capabilities.
"""

from typing import Optional

from .base import (
    PackageOrigin,
    ServiceScope,
    PackageSource,
    ServiceSource,
    DesktopSettingsSource,
    PrivilegeBoundary,
    SourceAdapters,
)
from .commands import CommandRunner, run_capture, which, format_command
from .pacman import PacmanSource
from .systemd import SystemdSource
from .desktop import DconfSource
from .privilege import SudoPrivilege, Identity, invoking_identity, running_as_root


def default_adapters(aur_helper: str = "yay", identity: Optional[Identity] = None) -> SourceAdapters:
    """Concrete bindings for an Arch Linux + systemd + dconf machine."""
    runner = CommandRunner()
    return SourceAdapters(
        packages=PacmanSource(runner, aur_helper=aur_helper),
        services=SystemdSource(runner),
        desktop=DconfSource(runner),
        privilege=SudoPrivilege(identity=identity, runner=runner),
        commands=runner,
    )


__all__ = [
    'PackageOrigin',
    'ServiceScope',
    'PackageSource',
    'ServiceSource',
    'DesktopSettingsSource',
    'PrivilegeBoundary',
    'SourceAdapters',
    'CommandRunner',
    'run_capture',
    'which',
    'format_command',
    'PacmanSource',
    'SystemdSource',
    'DconfSource',
    'SudoPrivilege',
    'Identity',
    'invoking_identity',
    'running_as_root',
    'default_adapters',
]
