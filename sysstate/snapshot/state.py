"""
RestoreStateMachine - tracks the progress of one restore invocation.

AWAITING_CONFIRMATION → {PACKAGES, USER_CONFIGS, SYSTEM_CONFIGS, SERVICES,
DESKTOP_SETTINGS} (any subset, any order) → COMPLETE
                ↓
             ABORTED   (confirmation declined; terminal, not resumable)
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import Any, Dict, List, Optional

from .models import RestoreCategory


class RestoreState(Enum):
    """Restore workflow states."""
    AWAITING_CONFIRMATION = auto()
    PACKAGES = auto()
    USER_CONFIGS = auto()
    SYSTEM_CONFIGS = auto()
    SERVICES = auto()
    DESKTOP_SETTINGS = auto()
    COMPLETE = auto()
    ABORTED = auto()

    @classmethod
    def for_category(cls, category: RestoreCategory) -> 'RestoreState':
        return cls[category.name]


CATEGORY_STATES = [
    RestoreState.PACKAGES,
    RestoreState.USER_CONFIGS,
    RestoreState.SYSTEM_CONFIGS,
    RestoreState.SERVICES,
    RestoreState.DESKTOP_SETTINGS,
]

# Valid state transitions
TRANSITIONS: Dict[RestoreState, List[RestoreState]] = {
    RestoreState.AWAITING_CONFIRMATION: CATEGORY_STATES + [RestoreState.COMPLETE, RestoreState.ABORTED],
    RestoreState.COMPLETE: [],
    RestoreState.ABORTED: [],
}
for _state in CATEGORY_STATES:
    TRANSITIONS[_state] = [s for s in CATEGORY_STATES if s != _state] + [RestoreState.COMPLETE]


@dataclass
class StateEvent:
    """Record of a state transition."""
    from_state: RestoreState
    to_state: RestoreState
    timestamp: datetime
    metadata: Dict[str, Any] = field(default_factory=dict)


class RestoreStateMachine:
    """
    Ensures valid transitions and tracks history.
    """

    def __init__(self, initial_state: RestoreState = RestoreState.AWAITING_CONFIRMATION):
        self._state = initial_state
        self._history: List[StateEvent] = []

    @property
    def state(self) -> RestoreState:
        return self._state

    @property
    def history(self) -> List[StateEvent]:
        return self._history.copy()

    @property
    def visited(self) -> List[RestoreState]:
        return [e.to_state for e in self._history]

    @property
    def is_terminal(self) -> bool:
        return not TRANSITIONS.get(self._state)

    def can_transition(self, to_state: RestoreState) -> bool:
        return to_state in TRANSITIONS.get(self._state, [])

    def transition(self, to_state: RestoreState, metadata: Optional[Dict[str, Any]] = None):
        """
        Transition to a new state.

        Raises:
            ValueError: If transition is not valid
        """
        if not self.can_transition(to_state):
            raise ValueError(
                f"Invalid transition: {self._state.name} → {to_state.name}. "
                f"Valid transitions: {[s.name for s in TRANSITIONS.get(self._state, [])]}"
            )
        self._history.append(StateEvent(
            from_state=self._state,
            to_state=to_state,
            timestamp=datetime.now(),
            metadata=metadata or {},
        ))
        self._state = to_state
