"""
UI module - Rich console interface.

Provides:
- Tagged progress lines and summaries (ConsoleUI)
- Confirmation capability (ConfirmationProvider, AutoConfirm)
- Interactive prompts and the restore selector (InteractionManager)
"""

from .console import ConsoleUI
from .prompts import ConfirmationProvider, AutoConfirm
from .interaction import InteractionManager, select_restore, MENU

__all__ = [
    "ConsoleUI",
    "ConfirmationProvider",
    "AutoConfirm",
    "InteractionManager",
    "select_restore",
    "MENU",
]
