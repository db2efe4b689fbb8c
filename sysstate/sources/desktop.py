"""
DconfSource - GNOME/GTK settings via dconf.
"""

from pathlib import Path
from typing import Optional

from .base import DesktopSettingsSource
from .commands import CommandRunner, format_command


class DconfSource(DesktopSettingsSource):
    """Dumps and loads the whole dconf tree rooted at `prefix`."""

    def __init__(self, runner: Optional[CommandRunner] = None, prefix: str = "/"):
        self.runner = runner or CommandRunner()
        self.prefix = prefix

    def available(self) -> bool:
        return self.runner.available("dconf")

    def dump(self) -> str:
        return self.runner.run(["dconf", "dump", self.prefix])

    def load_command(self, dump_path: Path) -> str:
        return f"{format_command(['dconf', 'load', self.prefix])} < {format_command([str(dump_path)])}"

    def load(self, text: str) -> None:
        self.runner.run(["dconf", "load", self.prefix], input_text=text)
