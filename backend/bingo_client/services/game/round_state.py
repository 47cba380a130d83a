import enum
from dataclasses import dataclass, field
from typing import Optional, Set

from .card import BingoCard
from .ledger import CallLedger
from .patterns import WinningPattern


class ClaimState(str, enum.Enum):
    NONE = 'none'
    PENDING = 'pending'
    ACCEPTED = 'accepted'


@dataclass
class RoundState:
    """Everything that belongs to one round. Replaced as a whole, never patched."""

    ledger: CallLedger
    game_id: Optional[str] = None
    next_game_id: Optional[str] = None
    player_count: int = 0
    prize_pool: float = 0
    card: Optional[BingoCard] = None
    card_game_id: Optional[str] = None
    marked: Set[int] = field(default_factory=set)
    pending_pattern: Optional[WinningPattern] = None
    rejected_patterns: Set[str] = field(default_factory=set)
    claim_state: ClaimState = ClaimState.NONE
    selection_ends_at: Optional[float] = None
    selection_duration: Optional[float] = None
    started_at: Optional[float] = None
    end_time: Optional[float] = None
    winners: tuple = ()

    @property
    def target_game_id(self) -> Optional[str]:
        """Game a card selection or claim refers to."""
        return self.game_id or self.next_game_id
