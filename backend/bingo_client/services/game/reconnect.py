"""Connection loss and snapshot-based recovery.

After a reconnect nothing local is trusted: the engine asks for a full
snapshot and swaps in a freshly built round state. Partial merges are never
done because a half-applied merge can show, for instance, stale drawn
numbers under a new game id.
"""

import enum
import logging
from typing import Optional

from .card import CardGenerator
from .errors import InvalidCardNumber
from .events import GameSnapshot
from .ledger import CallLedger
from .patterns import PatternDetector
from .phases import GamePhase
from .round_state import RoundState

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 5


class ConnectionStatus(str, enum.Enum):
    CONNECTED = 'connected'
    RECONNECTING = 'reconnecting'
    RESYNCING = 'resyncing'
    OFFLINE = 'offline'


class ReconnectCoordinator:
    def __init__(self, max_retries: int = DEFAULT_MAX_RETRIES):
        if max_retries < 0:
            raise ValueError("max_retries must not be negative")
        self.max_retries = max_retries
        self.status = ConnectionStatus.CONNECTED
        self.attempts = 0
        self.awaiting_snapshot = False

    @property
    def available(self) -> bool:
        return self.status in (ConnectionStatus.CONNECTED, ConnectionStatus.RESYNCING)

    def on_lost(self, reason: str = '') -> None:
        self.status = ConnectionStatus.RECONNECTING
        self.attempts = 0
        self.awaiting_snapshot = False
        logger.warning(f"[connection] lost reason={reason or '-'}")

    def on_retry_failed(self) -> bool:
        """Count a failed attempt. Returns True once the retry budget is exhausted."""
        if self.status == ConnectionStatus.OFFLINE:
            return False
        if self.status != ConnectionStatus.RECONNECTING:
            self.status = ConnectionStatus.RECONNECTING
        self.attempts += 1
        logger.info(f"[connection] retry failed attempt={self.attempts}/{self.max_retries}")
        if self.attempts >= self.max_retries:
            self.status = ConnectionStatus.OFFLINE
            logger.error(f"[connection] giving up after {self.attempts} attempts")
            return True
        return False

    def on_restored(self) -> None:
        self.status = ConnectionStatus.RESYNCING
        self.attempts = 0
        self.awaiting_snapshot = True
        logger.info("[connection] restored, requesting snapshot")

    def request_resync(self, reason: str) -> None:
        """Ledger gap or similar inconsistency: keep the link, refetch everything."""
        if self.available:
            self.status = ConnectionStatus.RESYNCING
        self.awaiting_snapshot = True
        logger.warning(f"[resync] requested reason={reason}")

    def on_snapshot(self) -> None:
        if self.status == ConnectionStatus.RESYNCING:
            self.status = ConnectionStatus.CONNECTED
        self.awaiting_snapshot = False

    def build_round(
        self,
        snapshot: GameSnapshot,
        current: RoundState,
        generator: CardGenerator,
        detector: PatternDetector,
        auto_mark: bool,
        display_limit: int,
        now: float,
        current_phase: Optional[GamePhase] = None,
    ) -> RoundState:
        """Construct the complete replacement round state for ``snapshot``.

        Claim bookkeeping survives only when the snapshot describes the round
        already in progress: same game id, same phase.
        """
        ledger = CallLedger.from_drawn(snapshot.drawn_numbers, display_limit=display_limit, timestamp=now)
        in_selection = snapshot.phase == GamePhase.CARD_SELECTION
        fresh = RoundState(
            ledger=ledger,
            game_id=None if in_selection else snapshot.game_id,
            next_game_id=snapshot.game_id if in_selection else None,
            player_count=snapshot.player_count,
            prize_pool=snapshot.prize_pool,
            end_time=snapshot.end_time,
        )
        if in_selection:
            fresh.selection_ends_at = snapshot.end_time
        if snapshot.phase == GamePhase.ACTIVE:
            fresh.started_at = snapshot.start_time or now
        if snapshot.phase == current_phase and snapshot.game_id is not None \
                and snapshot.game_id == current.game_id:
            fresh.claim_state = current.claim_state
            fresh.rejected_patterns = set(current.rejected_patterns)

        card = None
        if snapshot.selected_card is not None:
            try:
                card = generator.generate(snapshot.selected_card)
            except InvalidCardNumber:
                logger.warning(f"[resync] snapshot names invalid card {snapshot.selected_card}")
        elif current.card is not None and snapshot.game_id is not None \
                and current.card_game_id == snapshot.game_id:
            card = current.card
        if card is not None and snapshot.phase != GamePhase.IDLE:
            fresh.card = card
            fresh.card_game_id = snapshot.game_id
            drawn = ledger.numbers
            if auto_mark:
                fresh.marked = set(card.numbers & drawn)
            else:
                fresh.marked = {n for n in current.marked if n in drawn and card.contains(n)}
            if snapshot.phase == GamePhase.ACTIVE:
                fresh.pending_pattern = detector.evaluate(card, fresh.marked, exclude=fresh.rejected_patterns)
        return fresh
