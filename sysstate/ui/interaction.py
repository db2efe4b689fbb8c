"""
InteractionManager - interactive prompts for restore.

Handles:
- The "Continue?" gate before any mutation
- The desktop-settings second gate
- The category selector menu
"""

from typing import Optional, Sequence, Tuple

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt

from ..snapshot.models import MenuChoice, RestoreSelection
from .prompts import ConfirmationProvider

MENU: Tuple[Tuple[str, str], ...] = (
    (MenuChoice.ALL.value, "Everything (recommended)"),
    (MenuChoice.PACKAGES.value, "Packages only"),
    (MenuChoice.USER_CONFIGS.value, "User configs only"),
    (MenuChoice.SERVICES.value, "Services only"),
    (MenuChoice.EXIT.value, "Exit"),
)


class InteractionManager(ConfirmationProvider):
    """
    Rich-based prompts. Blocks until the operator answers; there is no timeout.
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(highlight=False)

    def confirm(self, question: str, default: bool = False) -> bool:
        return Confirm.ask(f"[bold]{escape(question)}[/]", default=default, console=self.console)

    def choose(self, question: str, options: Sequence[Tuple[str, str]]) -> str:
        self.console.print()
        self.console.print(f"[bold]{escape(question)}[/]")
        for idx, (_, label) in enumerate(options, 1):
            self.console.print(f"  [cyan]{idx})[/] {escape(label)}")
        self.console.print()

        numbers = [str(i) for i in range(1, len(options) + 1)]
        answer = Prompt.ask(
            f"Choice \\[1-{len(options)}]",
            choices=numbers,
            show_choices=False,
            console=self.console,
        )
        return options[int(answer) - 1][0]


def select_restore(provider: ConfirmationProvider, dry_run: bool = False) -> Optional[RestoreSelection]:
    """Run the category selector. Returns None when the operator picks Exit."""
    key = provider.choose("What would you like to restore?", MENU)
    return RestoreSelection.from_choice(MenuChoice(key), dry_run=dry_run)
