"""Round lifecycle state machine.

Only remote events move the phase. The table below is a guard against
malformed or reordered remote signals: anything not listed is rejected and
the current phase is kept.
"""

import enum
import logging
from typing import Callable, Dict, FrozenSet, List, Optional

from .errors import InvalidPhaseTransition

logger = logging.getLogger(__name__)


class GamePhase(str, enum.Enum):
    IDLE = 'idle'
    CARD_SELECTION = 'card_selection'
    COUNTDOWN = 'countdown'
    ACTIVE = 'active'
    ANNOUNCING = 'announcing'

    @classmethod
    def from_wire(cls, value: str) -> 'GamePhase':
        if value == 'waiting':
            return cls.IDLE
        return cls(value)


ALLOWED_TRANSITIONS: Dict[GamePhase, FrozenSet[GamePhase]] = {
    GamePhase.IDLE: frozenset({GamePhase.CARD_SELECTION}),
    GamePhase.CARD_SELECTION: frozenset({GamePhase.COUNTDOWN}),
    GamePhase.COUNTDOWN: frozenset({GamePhase.ACTIVE}),
    GamePhase.ACTIVE: frozenset({GamePhase.ANNOUNCING}),
    GamePhase.ANNOUNCING: frozenset({GamePhase.CARD_SELECTION, GamePhase.IDLE}),
}

PhaseListener = Callable[[GamePhase, GamePhase], None]


class PhaseStateMachine:
    def __init__(self, initial: GamePhase = GamePhase.IDLE):
        self._phase = initial
        self._listeners: List[PhaseListener] = []

    @property
    def phase(self) -> GamePhase:
        return self._phase

    def add_listener(self, listener: PhaseListener) -> None:
        """Listeners get ``(previous, current)`` after every phase change."""
        self._listeners.append(listener)

    def can_transition(self, target: GamePhase) -> bool:
        return target in ALLOWED_TRANSITIONS[self._phase]

    def transition(self, target: GamePhase, reason: Optional[str] = None) -> GamePhase:
        if not self.can_transition(target):
            raise InvalidPhaseTransition(self._phase, target)
        return self._enter(target, reason or 'transition')

    def force_idle(self, reason: str) -> GamePhase:
        """Unconditional reset, used once the reconnect budget is exhausted."""
        return self._enter(GamePhase.IDLE, reason)

    def reset_to(self, phase: GamePhase, reason: str = 'snapshot') -> GamePhase:
        """Adopt an authoritative phase from a snapshot, bypassing the table.

        Listeners only hear about an actual change; re-adopting the current
        phase is a no-op.
        """
        if phase == self._phase:
            logger.debug(f"[phase] {phase.value} unchanged ({reason})")
            return self._phase
        return self._enter(phase, reason)

    def _enter(self, target: GamePhase, reason: str) -> GamePhase:
        previous = self._phase
        self._phase = target
        logger.info(f"[phase] {previous.value} -> {target.value} ({reason})")
        for listener in list(self._listeners):
            listener(previous, target)
        return previous
