"""Client engine facade.

Remote events, user actions and timer ticks all enter through ``_submit``,
one at a time. Each operation runs to completion before the next starts, so
the card, ledger, marks and phase are consistent between operations. The
engine talks to the outside world only through two queues: outbound intents
for the game authority and UI commands for the presentation layer.
"""

import logging
import math
import random
import threading
import time
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Mapping, Optional, Tuple

from .card import CardGenerator, DEFAULT_CARD_MAX, DEFAULT_CARD_MIN, BingoCard
from .errors import (
    BingoClientError,
    ClaimAlreadyPending,
    ClaimRejected,
    InvalidPhaseTransition,
    MalformedEvent,
    NoWinningPattern,
    NumberNotOnCard,
    OutOfOrder,
    PhaseMismatch,
    TransportLost,
)
from .events import (
    INBOUND_EVENTS,
    BingoClaimed,
    CardSelectionStarted,
    CardSelectionUpdate,
    ClaimRejectedEvent,
    Disconnected,
    GameCountdown,
    GameEnded,
    GameStarted,
    GameStateEvent,
    Intent,
    NumberCalled,
    PlayerJoined,
    Reconnected,
    ReconnectFailed,
    RemoteError,
    UiCommand,
    WinnerAnnouncement,
    parse_event,
)
from .ledger import DEFAULT_DISPLAY_LIMIT, CallLedger
from .patterns import PatternDetector, format_pattern
from .phases import GamePhase, PhaseStateMachine
from .reconnect import DEFAULT_MAX_RETRIES, ReconnectCoordinator
from .round_state import ClaimState, RoundState
from .stats import SETTINGS_KEY, STATS_KEY, ClientSettings, PlayerStats
from .timers import TimerHandle, TimerService
from ...storage import MemoryBlobStore

logger = logging.getLogger(__name__)

DEFAULT_NEXT_CALL_ESTIMATE_SEC = 5
DEFAULT_BET_AMOUNT = 10

# Events still honoured while a resync snapshot is outstanding.
_RESYNC_SAFE = (GameStateEvent, Disconnected, Reconnected, ReconnectFailed, RemoteError)

_EVENT_HANDLERS = {
    GameStateEvent: '_on_game_state',
    GameCountdown: '_on_game_countdown',
    GameStarted: '_on_game_started',
    NumberCalled: '_on_number_called',
    GameEnded: '_on_game_ended',
    WinnerAnnouncement: '_on_winner_announcement',
    CardSelectionStarted: '_on_card_selection_started',
    CardSelectionUpdate: '_on_card_selection_update',
    PlayerJoined: '_on_player_joined',
    BingoClaimed: '_on_bingo_claimed',
    ClaimRejectedEvent: '_on_claim_rejected',
    RemoteError: '_on_remote_error',
    Disconnected: '_on_disconnect',
    Reconnected: '_on_reconnect',
    ReconnectFailed: '_on_reconnect_failed',
}

if set(_EVENT_HANDLERS) != set(INBOUND_EVENTS):
    raise RuntimeError("Every inbound event type needs exactly one engine handler")


class ClientEngine:
    def __init__(
        self,
        store=None,
        player_id: str = 'demo_user',
        generator: Optional[CardGenerator] = None,
        detector: Optional[PatternDetector] = None,
        clock: Callable[[], float] = time.time,
        timers: Optional[TimerService] = None,
        display_limit: int = DEFAULT_DISPLAY_LIMIT,
        next_call_estimate_sec: int = DEFAULT_NEXT_CALL_ESTIMATE_SEC,
        max_retries: int = DEFAULT_MAX_RETRIES,
        default_bet: float = DEFAULT_BET_AMOUNT,
        rng: Optional[random.Random] = None,
    ):
        self.store = store if store is not None else MemoryBlobStore()
        self.player_id = str(player_id)
        self.generator = generator or CardGenerator()
        self.detector = detector or PatternDetector()
        self.clock = clock
        self.timers = timers or TimerService(clock=clock)
        self.display_limit = display_limit
        self.next_call_estimate_sec = next_call_estimate_sec
        self.default_bet = default_bet
        self.rng = rng or random.Random()

        self.machine = PhaseStateMachine()
        self.machine.add_listener(self._on_phase_changed)
        self.reconnect = ReconnectCoordinator(max_retries=max_retries)
        self.round = self._new_round()

        self.settings = ClientSettings.from_dict(self.store.load(SETTINGS_KEY))
        self.stats = PlayerStats.from_dict(self.store.load(STATS_KEY))

        self.outbound_listener: Optional[Callable[[], None]] = None
        self._outbox: Deque[Intent] = deque()
        self._ui: Deque[UiCommand] = deque()
        self._intake: Deque[Tuple[Callable, tuple]] = deque()
        self._lock = threading.RLock()
        self._busy = False
        self._next_call_handle: Optional[TimerHandle] = None
        self._selection_handle: Optional[TimerHandle] = None

    @classmethod
    def from_config(cls, config: Mapping[str, Any], store=None, clock: Callable[[], float] = time.time):
        return cls(
            store=store,
            player_id=config.get('PLAYER_ID', 'demo_user'),
            generator=CardGenerator(
                int(config.get('CARD_NUMBER_MIN', DEFAULT_CARD_MIN)),
                int(config.get('CARD_NUMBER_MAX', DEFAULT_CARD_MAX)),
            ),
            clock=clock,
            display_limit=int(config.get('CALLED_NUMBERS_DISPLAY_LIMIT', DEFAULT_DISPLAY_LIMIT)),
            next_call_estimate_sec=int(config.get('NEXT_CALL_ESTIMATE_SEC', DEFAULT_NEXT_CALL_ESTIMATE_SEC)),
            max_retries=int(config.get('RECONNECT_MAX_RETRIES', DEFAULT_MAX_RETRIES)),
            default_bet=float(config.get('DEFAULT_BET_AMOUNT', DEFAULT_BET_AMOUNT)),
        )

    @property
    def phase(self) -> GamePhase:
        return self.machine.phase

    # ---- intake ----

    def _submit(self, operation: Callable, *args):
        with self._lock:
            if self._busy:
                # re-entrant call from inside an operation: run after it
                self._intake.append((operation, args))
                return None
            self._busy = True
            try:
                result = operation(*args)
            finally:
                try:
                    self._drain_intake()
                finally:
                    self._busy = False
        self._notify_outbound()
        return result

    def _drain_intake(self) -> None:
        while self._intake:
            operation, args = self._intake.popleft()
            try:
                operation(*args)
            except BingoClientError as exc:
                logger.warning(f"[intake] deferred {getattr(operation, '__name__', operation)} failed: {exc}")

    def _user_action(self, operation: Callable, *args):
        try:
            return self._submit(operation, *args)
        except BingoClientError as exc:
            with self._lock:
                self._emit('notice', level='error', message=str(exc))
            raise

    def _notify_outbound(self) -> None:
        if self.outbound_listener is not None and self._outbox:
            self.outbound_listener()

    def drain_outbound(self) -> List[Intent]:
        with self._lock:
            items = list(self._outbox)
            self._outbox.clear()
            return items

    def drain_ui_updates(self) -> List[UiCommand]:
        with self._lock:
            items = list(self._ui)
            self._ui.clear()
            return items

    def _send(self, name: str, payload: Optional[Dict[str, Any]] = None) -> None:
        self._outbox.append(Intent(name=name, payload=payload or {}))
        logger.debug(f"[intent] {name} {payload or {}}")

    def _emit(self, kind: str, **data) -> None:
        self._ui.append(UiCommand(kind=kind, data=data))

    # ---- remote events ----

    def receive(self, name: str, payload: Optional[Dict[str, Any]] = None) -> bool:
        """Decode a wire event and process it. Returns False if it was malformed."""
        try:
            event = parse_event(name, payload)
        except MalformedEvent as exc:
            logger.warning(f"[event-malformed] {name}: {exc}")
            return False
        self.on_remote_event(event)
        return True

    def on_remote_event(self, event) -> None:
        if type(event) not in _EVENT_HANDLERS:
            raise TypeError(f"Not an inbound event: {event!r}")
        self._submit(self._handle_remote, event)

    def _handle_remote(self, event) -> None:
        name = type(event).__name__
        if self.reconnect.awaiting_snapshot and not isinstance(event, _RESYNC_SAFE):
            logger.info(f"[event-dropped] {name} while awaiting snapshot")
            return
        handler = getattr(self, _EVENT_HANDLERS[type(event)])
        try:
            handler(event)
        except InvalidPhaseTransition as exc:
            logger.warning(f"[event-ignored] {name}: {exc}")
        except BingoClientError as exc:
            logger.warning(f"[event-failed] {name}: {exc}")

    def _ignore(self, event, reason: str) -> None:
        logger.warning(f"[event-ignored] {type(event).__name__} during {self.phase.value}: {reason}")

    def _on_game_state(self, event: GameStateEvent) -> None:
        snapshot = event.snapshot
        fresh = self.reconnect.build_round(
            snapshot,
            self.round,
            self.generator,
            self.detector,
            auto_mark=self.settings.autoMark,
            display_limit=self.display_limit,
            now=self.clock(),
            current_phase=self.phase,
        )
        # phase first: its listener resets the round, then the snapshot round replaces it
        self.machine.reset_to(snapshot.phase, reason='snapshot')
        # the listener is skipped when the phase is unchanged
        self.timers.cancel_all()
        self._next_call_handle = None
        self._selection_handle = None
        self.round = fresh
        self.reconnect.on_snapshot()
        logger.info(f"[resync] phase={snapshot.phase.value} game={snapshot.game_id} drawn={len(fresh.ledger)}")
        self._start_phase_timers()
        self._emit('connection', status=self.reconnect.status.value)
        self._emit('resync', state=self._view())

    def _on_game_countdown(self, event: GameCountdown) -> None:
        if self.phase == GamePhase.CARD_SELECTION:
            self.machine.transition(GamePhase.COUNTDOWN, reason='gameCountdown')
        elif self.phase != GamePhase.COUNTDOWN:
            self._ignore(event, 'no selection window to close')
            return
        self._emit('countdown', seconds=event.seconds, message=event.message)

    def _on_game_started(self, event: GameStarted) -> None:
        self.machine.transition(GamePhase.ACTIVE, reason='gameStarted')
        r = self.round
        r.game_id = event.game_id or r.next_game_id
        r.prize_pool = event.prize_pool
        r.started_at = self.clock()
        if r.card is not None and r.card_game_id not in (None, r.game_id):
            logger.warning(f"[card] card {r.card.card_number} was selected for game {r.card_game_id}, not {r.game_id}")
            r.card = None
        r.marked.clear()
        r.pending_pattern = None
        self._start_phase_timers()
        self._emit('game_info', **self._game_info())
        self._emit('notice', level='success', message=f"Game started! Prize pool: {event.prize_pool:g}")

    def _on_number_called(self, event: NumberCalled) -> None:
        if self.phase != GamePhase.ACTIVE:
            self._ignore(event, 'no active game')
            return
        ledger = self.round.ledger
        if ledger.has_index(event.call_number):
            if ledger.entry(event.call_number).number == event.number:
                logger.info(f"[event-duplicate] call #{event.call_number} already recorded")
                return
            self._resync(f"call #{event.call_number} conflicts with ledger")
            return
        try:
            entry = ledger.append(event.number, event.letter, event.call_number, timestamp=self.clock())
        except OutOfOrder as exc:
            self._resync(str(exc))
            return
        r = self.round
        if self.settings.autoMark and r.card is not None and r.card.contains(entry.number):
            r.marked.add(entry.number)
            self._emit('marks', marked=sorted(r.marked))
        self._emit('current_call', **entry.to_dict())
        self._emit('called_numbers', count=len(ledger), recent=[e.number for e in ledger.recent()])
        self._start_next_call_timer()
        self._evaluate()

    def _on_game_ended(self, event: GameEnded) -> None:
        self.machine.transition(GamePhase.ANNOUNCING, reason='gameEnded')
        r = self.round
        r.winners = event.winners
        r.end_time = event.end_time
        mine = [w for w in event.winners if w.user_id == self.player_id]
        if r.card is not None:
            self.stats.record_round(won=bool(mine), prize_amount=sum(w.prize_amount for w in mine))
            self.store.save(STATS_KEY, self.stats.to_dict())
            self._emit('stats', **self.stats.to_dict())
        if event.winners:
            message = f"Game ended! {len(event.winners)} winner(s)"
        else:
            message = 'Game ended. No winners!'
        self._emit('notice', level='info', message=message)

    def _on_winner_announcement(self, event: WinnerAnnouncement) -> None:
        if self.phase != GamePhase.ANNOUNCING:
            self._ignore(event, 'no finished game')
            return
        winners = []
        for w in event.winners:
            item = w.to_dict()
            item['patternLabel'] = format_pattern(w.winning_pattern) if w.winning_pattern else None
            item['isSelf'] = w.user_id == self.player_id
            winners.append(item)
        self._emit('winner_announcement', winners=winners, duration=event.duration,
                   youWon=any(item['isSelf'] for item in winners))

    def _on_card_selection_started(self, event: CardSelectionStarted) -> None:
        self.machine.transition(GamePhase.CARD_SELECTION, reason='cardSelectionStarted')
        r = self.round
        r.next_game_id = event.next_game_id
        r.selection_ends_at = event.ends_at
        r.selection_duration = event.duration
        self._emit('selection', nextGameId=event.next_game_id, endsAt=event.ends_at, duration=event.duration)
        self._start_phase_timers()

    def _on_card_selection_update(self, event: CardSelectionUpdate) -> None:
        if self.phase != GamePhase.CARD_SELECTION:
            self._ignore(event, 'selection window is not open')
            return
        self._emit('selection_timer', secondsLeft=event.seconds_left, progress=event.progress)

    def _on_player_joined(self, event: PlayerJoined) -> None:
        r = self.round
        r.player_count = event.player_count
        if event.total_prize_pool is not None:
            r.prize_pool = event.total_prize_pool
        self._emit('game_info', **self._game_info())
        if event.player_count > 1:
            self._emit('notice', level='info', message=f"New player joined! {event.player_count} players total")

    def _on_bingo_claimed(self, event: BingoClaimed) -> None:
        r = self.round
        if event.user_id != self.player_id:
            self._emit('notice', level='warning', message=f"{event.username or 'A player'} claimed BINGO!")
            return
        if r.claim_state != ClaimState.PENDING:
            logger.info("[claim] acknowledgement without a pending claim")
            return
        r.claim_state = ClaimState.ACCEPTED
        self._emit('claim_result', accepted=True)

    def _on_claim_rejected(self, event: ClaimRejectedEvent) -> None:
        r = self.round
        if r.claim_state != ClaimState.PENDING:
            self._ignore(event, 'no pending claim')
            return
        rejection = ClaimRejected(event.reason)
        logger.warning(f"[claim] {rejection}")
        r.claim_state = ClaimState.NONE
        if r.pending_pattern is not None:
            r.rejected_patterns.add(r.pending_pattern.kind)
        self._emit('claim_result', accepted=False, reason=event.reason)
        self._emit('notice', level='warning', message=str(rejection))
        self._evaluate()

    def _on_remote_error(self, event: RemoteError) -> None:
        self._emit('notice', level='error', message=event.message)

    def _on_disconnect(self, event: Disconnected) -> None:
        self.reconnect.on_lost(event.reason)
        self.timers.cancel_all()
        if self.round.claim_state == ClaimState.PENDING:
            self.round.claim_state = ClaimState.NONE
        self._emit('connection', status=self.reconnect.status.value)
        self._emit('notice', level='error', message='Disconnected from server. Reconnecting...')

    def _on_reconnect(self, event: Reconnected) -> None:
        self.reconnect.on_restored()
        self._send('getGameState')
        self._emit('connection', status=self.reconnect.status.value)

    def _on_reconnect_failed(self, event: ReconnectFailed) -> None:
        if not self.reconnect.on_retry_failed():
            self._emit('connection', status=self.reconnect.status.value, attempts=self.reconnect.attempts)
            return
        self.machine.force_idle('reconnect budget exhausted')
        self.round = self._new_round()
        self._emit('connection', status=self.reconnect.status.value, attempts=self.reconnect.attempts)
        self._emit('notice', level='error', message='Unable to reach the game server.')

    # ---- phase bookkeeping ----

    def _new_round(self) -> RoundState:
        return RoundState(ledger=CallLedger(display_limit=self.display_limit))

    def _on_phase_changed(self, previous: GamePhase, current: GamePhase) -> None:
        self.timers.cancel_all()
        self._next_call_handle = None
        self._selection_handle = None
        if self.round.claim_state == ClaimState.PENDING:
            self.round.claim_state = ClaimState.NONE
        if current == GamePhase.CARD_SELECTION:
            self.round = self._new_round()
        self._emit('phase', previous=previous.value, phase=current.value)

    def _resync(self, reason: str) -> None:
        self.reconnect.request_resync(reason)
        self._send('getGameState')

    def request_resync(self, reason: str = 'requested') -> None:
        self._submit(self._resync, reason)

    def _evaluate(self) -> None:
        r = self.round
        match = None
        if r.card is not None:
            match = self.detector.evaluate(r.card, r.marked, exclude=r.rejected_patterns)
        if match == r.pending_pattern:
            return
        r.pending_pattern = match
        if match is not None:
            logger.info(f"[pattern] {match.kind} on card {r.card.card_number}")
            self._emit('pattern', available=True, **match.to_dict())
        else:
            self._emit('pattern', available=False)

    # ---- cosmetic timers ----

    def _start_phase_timers(self) -> None:
        if self.phase == GamePhase.CARD_SELECTION and self.round.selection_ends_at is not None:
            self._start_selection_timer()
        elif self.phase == GamePhase.ACTIVE and self.round.started_at is not None:
            self._start_duration_timer()

    def _start_next_call_timer(self) -> None:
        self.timers.cancel(self._next_call_handle)
        remaining = [self.next_call_estimate_sec]
        self._emit('next_call_timer', seconds=remaining[0])

        def _tick():
            remaining[0] -= 1
            if remaining[0] <= 0:
                self.timers.cancel(handle)
                self._emit('next_call_timer', seconds=0, label='Calling...')
            else:
                self._emit('next_call_timer', seconds=remaining[0])

        handle = self.timers.schedule_repeating(1000, _tick, name='next-call')
        self._next_call_handle = handle

    def _start_selection_timer(self) -> None:
        r = self.round
        self.timers.cancel(self._selection_handle)

        def _render() -> int:
            # recomputed from the authoritative end time so drift never accumulates
            left = max(0, math.ceil(r.selection_ends_at - self.clock()))
            duration = r.selection_duration or 0
            progress = round((duration - left) / duration * 100, 1) if duration > 0 else 0
            self._emit('selection_timer', secondsLeft=left, progress=max(0, min(100, progress)))
            if left <= 0:
                self.timers.cancel(self._selection_handle)
                self._emit('selection_closed')
            return left

        if _render() > 0:
            self._selection_handle = self.timers.schedule_repeating(1000, _render, name='selection')

    def _start_duration_timer(self) -> None:
        started_at = self.round.started_at

        def _render():
            self._emit('game_duration', seconds=max(0, int(self.clock() - started_at)))

        self.timers.schedule_repeating(1000, _render, name='game-duration')

    def tick(self, now: Optional[float] = None) -> int:
        """Fire due cosmetic timers. Called by the timer pump."""
        return self._submit(self.timers.run_due, now) or 0

    # ---- user actions ----

    def _require_phase(self, operation: str, *allowed: GamePhase) -> None:
        if self.phase not in allowed:
            raise PhaseMismatch(operation, self.phase, allowed)

    def _require_connection(self, operation: str) -> None:
        if not self.reconnect.available:
            raise TransportLost(f"{operation} needs a connection ({self.reconnect.status.value})")

    def select_card(self, card_number: int) -> BingoCard:
        return self._user_action(self._select_card, card_number)

    def quick_select_card(self) -> BingoCard:
        return self._user_action(self._quick_select_card)

    def toggle_mark(self, number: int) -> bool:
        """Mark or unmark a number on the card. Returns whether it is now marked."""
        return self._user_action(self._toggle_mark, number)

    def clear_marks(self) -> None:
        self._user_action(self._clear_marks)

    def claim_bingo(self) -> Intent:
        return self._user_action(self._claim_bingo)

    def join_game(self, bet_amount: Optional[float] = None) -> Intent:
        return self._user_action(self._join_game, bet_amount)

    def quick_play(self, bet_amount: Optional[float] = None) -> List[Intent]:
        """Pick a random card if none is held yet, then join unless already in a game."""
        return self._user_action(self._quick_play, bet_amount)

    def update_settings(self, **changes) -> ClientSettings:
        return self._user_action(self._update_settings, changes)

    def set_auto_mark(self, enabled: bool) -> ClientSettings:
        return self.update_settings(autoMark=enabled)

    def _select_card(self, card_number: int) -> BingoCard:
        self._require_connection('select_card')
        self._require_phase('select_card', GamePhase.CARD_SELECTION)
        card = self.generator.generate(card_number)
        r = self.round
        r.card = card
        r.card_game_id = r.target_game_id
        r.marked = set()
        r.pending_pattern = None
        r.rejected_patterns = set()
        self._send('selectCard', {'cardNumber': card.card_number, 'gameId': r.target_game_id})
        self._emit('card', **card.to_dict())
        self._emit('notice', level='success', message=f"Card #{card.card_number} selected!")
        return card

    def _quick_select_card(self) -> BingoCard:
        return self._select_card(self.generator.random_card_number(self.rng))

    def _toggle_mark(self, number: int) -> bool:
        self._require_phase('toggle_mark', GamePhase.ACTIVE)
        r = self.round
        if r.card is None or not r.card.contains(number):
            raise NumberNotOnCard(number)
        if number in r.marked:
            r.marked.discard(number)
        else:
            r.marked.add(number)
        self._emit('marks', marked=sorted(r.marked))
        self._evaluate()
        return number in r.marked

    def _clear_marks(self) -> None:
        r = self.round
        r.marked.clear()
        self._emit('marks', marked=[])
        self._evaluate()

    def _claim_bingo(self) -> Intent:
        self._require_connection('claim_bingo')
        self._require_phase('claim_bingo', GamePhase.ACTIVE)
        r = self.round
        if r.claim_state != ClaimState.NONE:
            raise ClaimAlreadyPending(f"A claim is already {r.claim_state.value}")
        if r.pending_pattern is None or r.card is None:
            raise NoWinningPattern("No winning pattern on the card yet")
        payload = {
            'gameId': r.game_id,
            'cardNumber': r.card.card_number,
            'winningPattern': r.pending_pattern.kind,
            'winningNumbers': list(r.pending_pattern.numbers),
        }
        self._send('claimBingo', payload)
        r.claim_state = ClaimState.PENDING
        logger.info(f"[claim] {r.pending_pattern.kind} game={r.game_id} card={r.card.card_number}")
        self._emit('claim_pending', **payload)
        return self._outbox[-1]

    def _bet_amount(self, bet_amount: Optional[float]) -> float:
        amount = self.default_bet if bet_amount is None else bet_amount
        if isinstance(amount, bool) or not isinstance(amount, (int, float)) or amount <= 0:
            raise ValueError(f"Bet amount must be positive, got {amount!r}")
        return amount

    def _join_game(self, bet_amount: Optional[float]) -> Intent:
        self._require_connection('join_game')
        amount = self._bet_amount(bet_amount)
        self._send('joinGame', {'betAmount': amount})
        return self._outbox[-1]

    def _quick_play(self, bet_amount: Optional[float]) -> List[Intent]:
        self._require_connection('quick_play')
        self._bet_amount(bet_amount)
        sent = []
        if self.round.card is None and self.phase == GamePhase.CARD_SELECTION:
            self._quick_select_card()
            sent.append(self._outbox[-1])
        if self.round.game_id is None:
            sent.append(self._join_game(bet_amount))
        return sent

    def _update_settings(self, changes: Dict[str, Any]) -> ClientSettings:
        self.settings.update(**changes)
        self.store.save(SETTINGS_KEY, self.settings.to_dict())
        self._emit('settings', **self.settings.to_dict())
        return self.settings

    def reset_stats(self) -> PlayerStats:
        def _reset():
            self.stats = PlayerStats()
            self.store.save(STATS_KEY, self.stats.to_dict())
            self._emit('stats', **self.stats.to_dict())
            return self.stats
        return self._submit(_reset)

    # ---- read side ----

    def _game_info(self) -> Dict[str, Any]:
        r = self.round
        return {
            'gameId': r.game_id,
            'nextGameId': r.next_game_id,
            'playerCount': r.player_count,
            'prizePool': r.prize_pool,
        }

    def _view(self) -> Dict[str, Any]:
        r = self.round
        latest = r.ledger.latest
        view = {
            'phase': self.phase.value,
            'connection': self.reconnect.status.value,
            **self._game_info(),
            'card': r.card.to_dict() if r.card else None,
            'marked': sorted(r.marked),
            'pendingPattern': r.pending_pattern.to_dict() if r.pending_pattern else None,
            'claimState': r.claim_state.value,
            'calledCount': len(r.ledger),
            'calledNumbers': [e.to_dict() for e in r.ledger.recent()],
            'currentCall': latest.to_dict() if latest else None,
            'selectionEndsAt': r.selection_ends_at,
            'winners': [w.to_dict() for w in r.winners],
        }
        return view

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            view = self._view()
            view['settings'] = self.settings.to_dict()
            view['stats'] = self.stats.to_dict()
            return view
