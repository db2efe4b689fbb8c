"""
Confirmation capability used by the restore orchestrator.

The orchestrator never reads a terminal itself; it asks a provider. The
interactive provider lives in interaction.py, AutoConfirm answers every
question the same way (`--yes`, scripted runs).
"""

from abc import ABC, abstractmethod
from typing import Sequence, Tuple


class ConfirmationProvider(ABC):

    @abstractmethod
    def confirm(self, question: str, default: bool = False) -> bool:
        """Blocking yes/no question."""

    @abstractmethod
    def choose(self, question: str, options: Sequence[Tuple[str, str]]) -> str:
        """Pick one of `options` (key, label); returns the key."""


class AutoConfirm(ConfirmationProvider):
    """Answers without asking."""

    def __init__(self, answer: bool = True, choice: str = ""):
        self.answer = answer
        self.choice = choice

    def confirm(self, question: str, default: bool = False) -> bool:
        return self.answer

    def choose(self, question: str, options: Sequence[Tuple[str, str]]) -> str:
        keys = [key for key, _ in options]
        if self.choice in keys:
            return self.choice
        return keys[0]
