"""
SystemdSource - service source backed by systemctl.
"""

from typing import List, Optional

from ..errors import SourceError
from .base import ServiceScope, ServiceSource
from .commands import CommandRunner, format_command, lines


class SystemdSource(ServiceSource):
    """Lists and enables unit files for the system and user managers."""

    def __init__(self, runner: Optional[CommandRunner] = None, use_sudo: bool = True):
        self.runner = runner or CommandRunner()
        self.use_sudo = use_sudo

    def _systemctl(self, scope: ServiceScope, *args: str, elevated: bool = False) -> List[str]:
        if scope == ServiceScope.USER:
            return ["systemctl", "--user", *args]
        prefix = ["sudo"] if (elevated and self.use_sudo) else []
        return prefix + ["systemctl", *args]

    def list_enabled_services(self, scope: ServiceScope) -> List[str]:
        out = self.runner.run(
            self._systemctl(scope, "list-unit-files", "--state=enabled", "--no-legend")
        )
        return sorted({ln.split()[0] for ln in lines(out)})

    def is_enabled(self, name: str, scope: ServiceScope) -> bool:
        # is-enabled exits non-zero for disabled/unknown units
        try:
            out = self.runner.run(self._systemctl(scope, "is-enabled", name))
        except SourceError:
            return False
        return out.strip() in ("enabled", "enabled-runtime", "alias")

    def enable_command(self, name: str, scope: ServiceScope) -> str:
        return format_command(self._systemctl(scope, "enable", name, elevated=True))

    def enable_service(self, name: str, scope: ServiceScope) -> None:
        self.runner.run(self._systemctl(scope, "enable", name, elevated=True))

    def reload(self, scope: ServiceScope) -> None:
        self.runner.run(self._systemctl(scope, "daemon-reload", elevated=True))
