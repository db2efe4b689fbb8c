"""
PacmanSource - Arch Linux package source (pacman + an AUR helper).
"""

from typing import List, Optional, Sequence

from ..errors import SourceError
from .base import PackageOrigin, PackageSource
from .commands import CommandRunner, format_command, lines


class PacmanSource(PackageSource):
    """
    Package source backed by pacman.

    Trusted packages come from the sync repositories (`pacman -Qqen`),
    foreign ones (`pacman -Qqem`) are installed with an AUR helper.
    """

    def __init__(
        self,
        runner: Optional[CommandRunner] = None,
        aur_helper: str = "yay",
        use_sudo: bool = True,
    ):
        self.runner = runner or CommandRunner()
        self.aur_helper = aur_helper
        self.use_sudo = use_sudo

    def _query(self, *flags: str) -> List[str]:
        return sorted(lines(self.runner.run(["pacman", *flags])))

    def list_explicit_packages(self) -> List[str]:
        return self._query("-Qqe")

    def list_trusted_packages(self) -> List[str]:
        return self._query("-Qqen")

    def list_foreign_packages(self) -> List[str]:
        # pacman exits 1 when nothing matches
        try:
            return self._query("-Qqem")
        except SourceError as e:
            if e.output.strip():
                raise
            return []

    def list_package_groups(self) -> List[str]:
        try:
            out = self.runner.run(["pacman", "-Qg"])
        except SourceError:
            return []
        return sorted({ln.split()[0] for ln in lines(out)})

    def list_explicit_versions(self) -> List[str]:
        return lines(self.runner.run(["pacman", "-Qe"]))

    def _command(self, names: Sequence[str], origin: PackageOrigin) -> List[str]:
        if origin == PackageOrigin.TRUSTED:
            prefix = ["sudo"] if self.use_sudo else []
            return prefix + ["pacman", "-S", "--needed", "--noconfirm", *names]
        return [self.aur_helper, "-S", "--needed", "--noconfirm", *names]

    def has_installer(self, origin: PackageOrigin) -> bool:
        if origin == PackageOrigin.TRUSTED:
            return self.runner.available("pacman")
        return self.runner.available(self.aur_helper)

    def install_command(self, names: Sequence[str], origin: PackageOrigin) -> str:
        return format_command(self._command(names, origin))

    def install_packages(self, names: Sequence[str], origin: PackageOrigin) -> None:
        if not names:
            return
        self.runner.run(self._command(names, origin))
