"""
ConsoleUI - Rich-based console interface.

All progress output of capture and restore goes through here. Components
default to a quiet instance so they stay silent when used as a library.
"""

from typing import Dict, List, Optional, Sequence, TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich import box

from ..catalog import Category

if TYPE_CHECKING:
    from ..snapshot.models import CaptureReport, RestoreReport


class ConsoleUI:
    """
    Rich console interface for sysstate.
    """

    def __init__(self, quiet: bool = False, console: Optional[Console] = None):
        self.quiet = quiet
        self.console = console or Console(highlight=False)

    def print(self, *args, **kwargs):
        """Print to console."""
        if self.quiet:
            return
        self.console.print(*args, **kwargs)

    # =========================================================================
    # Log lines
    # =========================================================================

    def _tag(self, tag: str, style: str, message: str, always: bool = False):
        if self.quiet and not always:
            return
        self.console.print(f"[{style}]\\[{tag}][/] {escape(message)}")

    def info(self, message: str):
        self._tag("INFO", "blue", message)

    def success(self, message: str):
        self._tag("OK", "green", message)

    def warn(self, message: str):
        self._tag("WARN", "yellow", message)

    def error(self, message: str):
        self._tag("ERROR", "bold red", message, always=True)

    def dry_run(self, message: str):
        self._tag("DRY-RUN", "yellow", message)

    # =========================================================================
    # Sections
    # =========================================================================

    def print_header(self, title: str):
        """Print a section header."""
        if self.quiet:
            return
        self.console.print()
        self.console.rule(f"[bold blue]{escape(title)}[/]")

    def print_banner(self, subtitle: str = "Arch Linux Configuration Manager"):
        """Print application banner."""
        if self.quiet:
            return
        banner = f"[bold cyan]SYSTEM STATE BACKUP[/]\n[dim]{escape(subtitle)}[/]"
        self.console.print(Panel(banner, border_style="magenta", box=box.DOUBLE, expand=False, padding=(1, 4)))

    def print_lines(self, title: str, lines: Sequence[str], limit: int = 20):
        """Print a bounded list under a dim title."""
        if self.quiet:
            return
        self.console.print(f"[bold]{escape(title)}[/]")
        for line in list(lines)[:limit]:
            self.console.print(f"  {escape(line)}")
        if len(lines) > limit:
            self.console.print(f"  [dim]... {len(lines) - limit} more[/]")

    def print_capture_summary(self, report: "CaptureReport", location: str, remote_url: Optional[str] = None):
        """Final summary after a capture run."""
        if self.quiet:
            return

        table = Table(title="Capture Summary", show_header=False, box=None)
        table.add_column("Key", style="dim")
        table.add_column("Value")

        labels = {
            Category.PACKAGES: "Explicit packages",
            Category.USER_CONFIG: "User config items",
            Category.SYSTEM_CONFIG: "System config items",
            Category.SERVICES: "Enabled services",
        }
        for category, label in labels.items():
            if category in report.failed_categories:
                table.add_row(label, "[red]failed[/]")
            else:
                table.add_row(label, str(report.captured.get(category, 0)))

        warn_style = "yellow" if report.warning_count else "green"
        table.add_row("Warnings", f"[{warn_style}]{report.warning_count}[/]")
        table.add_row("Location", escape(location))
        if remote_url:
            table.add_row("Remote", escape(remote_url))

        self.console.print()
        self.console.print(table)

    def print_restore_summary(self, report: "RestoreReport"):
        """Final summary after a restore run."""
        if self.quiet:
            return

        from ..snapshot.models import ActionStatus

        counts: Dict[ActionStatus, int] = {}
        for action in report.actions:
            counts[action.status] = counts.get(action.status, 0) + 1

        table = Table(title="Restore Summary", box=box.SIMPLE)
        table.add_column("Status")
        table.add_column("Count", justify="right")
        for status in ActionStatus:
            table.add_row(status.value, str(counts.get(status, 0)))
        table.add_row("warnings", str(report.warning_count), style="yellow" if report.warning_count else None)

        self.console.print()
        self.console.print(table)

        if report.instructions:
            self.console.print(Panel(
                "\n".join(escape(i) for i in report.instructions),
                title="Manual steps",
                border_style="yellow",
            ))

    def print_next_steps(self, root: str):
        if self.quiet:
            return
        self.console.print()
        self.console.print("[bold]Next steps:[/]")
        self.console.print(f"  1. Review and manually restore system configs from: {escape(root)}/configs/system/")
        self.console.print("  2. Reboot to apply all changes")
        self.console.print("  3. Run 'systemctl --user daemon-reload' if user services aren't starting")

    def print_status(self, rows: List[tuple]):
        """Key/value block, e.g. hostname, kernel, packages, last backup."""
        if self.quiet:
            return
        table = Table(show_header=False, box=None, padding=(0, 2))
        table.add_column("Key", style="bold white")
        table.add_column("Value", style="dim")
        for key, value in rows:
            table.add_row(f"{key}:", escape(str(value)))
        self.console.print(table)
