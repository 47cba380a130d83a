"""Inbound remote events, outbound intents and UI commands.

Inbound events form a closed set: ``parse_event`` is the only way to build
one from the wire, and the engine keeps a handler for every class listed in
``INBOUND_EVENTS``.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from .card import MAX_NUMBER
from .errors import MalformedEvent
from .phases import GamePhase


@dataclass(frozen=True)
class Winner:
    user_id: str
    username: str = ''
    card_number: Optional[int] = None
    winning_pattern: Optional[str] = None
    winning_numbers: Tuple[int, ...] = ()
    prize_amount: float = 0

    def to_dict(self):
        return {
            'userId': self.user_id,
            'username': self.username,
            'cardNumber': self.card_number,
            'winningPattern': self.winning_pattern,
            'winningNumbers': list(self.winning_numbers),
            'prizeAmount': self.prize_amount,
        }


@dataclass(frozen=True)
class GameSnapshot:
    phase: GamePhase
    game_id: Optional[str] = None
    player_count: int = 0
    prize_pool: float = 0
    drawn_numbers: Tuple[int, ...] = ()
    end_time: Optional[float] = None
    start_time: Optional[float] = None
    selected_card: Optional[int] = None


@dataclass(frozen=True)
class GameStateEvent:
    snapshot: GameSnapshot


@dataclass(frozen=True)
class GameCountdown:
    seconds: int
    message: str = ''


@dataclass(frozen=True)
class GameStarted:
    game_id: Optional[str]
    prize_pool: float = 0
    duration: Optional[float] = None


@dataclass(frozen=True)
class NumberCalled:
    number: int
    letter: Optional[str]
    call_number: int


@dataclass(frozen=True)
class GameEnded:
    winners: Tuple[Winner, ...] = ()
    end_time: Optional[float] = None


@dataclass(frozen=True)
class WinnerAnnouncement:
    winners: Tuple[Winner, ...] = ()
    duration: float = 0


@dataclass(frozen=True)
class CardSelectionStarted:
    next_game_id: Optional[str]
    duration: float
    ends_at: float


@dataclass(frozen=True)
class CardSelectionUpdate:
    seconds_left: int
    progress: float = 0


@dataclass(frozen=True)
class PlayerJoined:
    player_count: int
    total_prize_pool: Optional[float] = None


@dataclass(frozen=True)
class BingoClaimed:
    user_id: str
    username: str = ''


@dataclass(frozen=True)
class ClaimRejectedEvent:
    game_id: Optional[str] = None
    reason: str = ''


@dataclass(frozen=True)
class RemoteError:
    message: str


@dataclass(frozen=True)
class Disconnected:
    reason: str = ''


@dataclass(frozen=True)
class Reconnected:
    pass


@dataclass(frozen=True)
class ReconnectFailed:
    attempt: Optional[int] = None


def _timestamp(value) -> Optional[float]:
    """Epoch seconds from epoch milliseconds or an ISO-8601 string."""
    if value is None or value == '':
        return None
    if isinstance(value, bool):
        raise MalformedEvent(f"Invalid timestamp {value!r}")
    if isinstance(value, (int, float)):
        return float(value) / 1000.0
    if isinstance(value, str):
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise MalformedEvent(f"Invalid timestamp {value!r}") from exc
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.timestamp()
    raise MalformedEvent(f"Invalid timestamp {value!r}")


def _int(payload: Dict[str, Any], key: str, default=None) -> int:
    value = payload.get(key, default)
    if value is None or isinstance(value, bool):
        raise MalformedEvent(f"'{key}' is required")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise MalformedEvent(f"'{key}' must be an integer, got {value!r}") from exc


def _number(payload: Dict[str, Any], key: str, default=0) -> float:
    value = payload.get(key)
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise MalformedEvent(f"'{key}' must be numeric, got {value!r}") from exc


def _optional_str(value) -> Optional[str]:
    return None if value is None else str(value)


def _winners(items) -> Tuple[Winner, ...]:
    winners = []
    for item in items or []:
        if not isinstance(item, dict):
            raise MalformedEvent(f"Winner entries must be objects, got {item!r}")
        user_id = item.get('userId', item.get('telegramId'))
        card_number = item.get('cardNumber')
        winners.append(Winner(
            user_id=_optional_str(user_id) or '',
            username=item.get('username') or '',
            card_number=int(card_number) if card_number is not None else None,
            winning_pattern=item.get('winningPattern'),
            winning_numbers=tuple(int(n) for n in item.get('winningNumbers') or ()),
            prize_amount=_number(item, 'prizeAmount'),
        ))
    return tuple(winners)


def _drawn(items) -> Tuple[int, ...]:
    drawn = []
    for item in items or []:
        value = item.get('number') if isinstance(item, dict) else item
        if value is None or isinstance(value, bool):
            raise MalformedEvent(f"Invalid drawn number {item!r}")
        drawn.append(_bingo_number(int(value)))
    return tuple(drawn)


def _bingo_number(value: int) -> int:
    if not 1 <= value <= MAX_NUMBER:
        raise MalformedEvent(f"Bingo numbers are 1-{MAX_NUMBER}, got {value}")
    return value


def _snapshot(payload: Dict[str, Any]) -> GameSnapshot:
    try:
        phase = GamePhase.from_wire(payload.get('phase') or 'idle')
    except ValueError as exc:
        raise MalformedEvent(f"Unknown phase {payload.get('phase')!r}") from exc
    game = payload.get('activeGame') or {}
    if not isinstance(game, dict):
        raise MalformedEvent("'activeGame' must be an object")
    drawn = payload.get('drawnNumbers')
    if drawn is None:
        drawn = game.get('drawnNumbers')
    selected = payload.get('selectedCard', game.get('selectedCard'))
    return GameSnapshot(
        phase=phase,
        game_id=_optional_str(game.get('gameId') or payload.get('gameId')),
        player_count=int(game.get('playerCount') or 0),
        prize_pool=_number(game, 'prizePool'),
        drawn_numbers=_drawn(drawn),
        end_time=_timestamp(game.get('endTime') or game.get('endsAt')),
        start_time=_timestamp(game.get('startTime')),
        selected_card=int(selected) if selected is not None else None,
    )


def _parse_game_state(p):
    return GameStateEvent(snapshot=_snapshot(p))


def _parse_countdown(p):
    return GameCountdown(seconds=_int(p, 'seconds'), message=p.get('message') or '')


def _parse_started(p):
    duration = p.get('duration')
    return GameStarted(
        game_id=_optional_str(p.get('gameId')),
        prize_pool=_number(p, 'prizePool'),
        duration=float(duration) if duration is not None else None,
    )


def _parse_number_called(p):
    return NumberCalled(
        number=_bingo_number(_int(p, 'number')),
        letter=p.get('letter'),
        call_number=_int(p, 'callNumber'),
    )


def _parse_ended(p):
    return GameEnded(winners=_winners(p.get('winners')), end_time=_timestamp(p.get('endTime')))


def _parse_announcement(p):
    return WinnerAnnouncement(winners=_winners(p.get('winners')), duration=_number(p, 'duration'))


def _parse_selection_started(p):
    ends_at = _timestamp(p.get('endsAt'))
    if ends_at is None:
        raise MalformedEvent("'endsAt' is required")
    return CardSelectionStarted(
        next_game_id=_optional_str(p.get('nextGameId')),
        duration=_number(p, 'duration', default=30),
        ends_at=ends_at,
    )


def _parse_selection_update(p):
    return CardSelectionUpdate(seconds_left=_int(p, 'secondsLeft'), progress=_number(p, 'progress'))


def _parse_player_joined(p):
    pool = p.get('totalPrizePool')
    return PlayerJoined(player_count=_int(p, 'playerCount'), total_prize_pool=float(pool) if pool is not None else None)


def _parse_bingo_claimed(p):
    return BingoClaimed(user_id=_optional_str(p.get('userId')) or '', username=p.get('username') or '')


def _parse_claim_rejected(p):
    return ClaimRejectedEvent(game_id=_optional_str(p.get('gameId')), reason=p.get('reason') or p.get('message') or '')


def _parse_error(p):
    return RemoteError(message=p.get('message') or 'Unknown error')


def _parse_disconnect(p):
    return Disconnected(reason=p.get('reason') or '')


def _parse_reconnect(p):
    return Reconnected()


def _parse_reconnect_failed(p):
    attempt = p.get('attempt')
    return ReconnectFailed(attempt=int(attempt) if attempt is not None else None)


_PARSERS = {
    'gameState': _parse_game_state,
    'gameCountdown': _parse_countdown,
    'gameStarted': _parse_started,
    'numberCalled': _parse_number_called,
    'gameEnded': _parse_ended,
    'winnerAnnouncement': _parse_announcement,
    'cardSelectionStarted': _parse_selection_started,
    'cardSelectionUpdate': _parse_selection_update,
    'playerJoined': _parse_player_joined,
    'bingoClaimed': _parse_bingo_claimed,
    'claimRejected': _parse_claim_rejected,
    'error': _parse_error,
    'disconnect': _parse_disconnect,
    'reconnect': _parse_reconnect,
    'reconnectFailed': _parse_reconnect_failed,
}

EVENT_NAMES = tuple(_PARSERS)

INBOUND_EVENTS = (
    GameStateEvent, GameCountdown, GameStarted, NumberCalled, GameEnded,
    WinnerAnnouncement, CardSelectionStarted, CardSelectionUpdate, PlayerJoined,
    BingoClaimed, ClaimRejectedEvent, RemoteError, Disconnected, Reconnected,
    ReconnectFailed,
)


def parse_event(name: str, payload: Optional[Dict[str, Any]] = None):
    parser = _PARSERS.get(name)
    if parser is None:
        raise MalformedEvent(f"Unknown event '{name}'")
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise MalformedEvent(f"Payload for '{name}' must be an object")
    try:
        return parser(payload)
    except (TypeError, ValueError) as exc:
        raise MalformedEvent(f"Bad '{name}' payload: {exc}") from exc


@dataclass(frozen=True)
class Intent:
    """Outbound request for the game authority."""
    name: str
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class UiCommand:
    """Presentation update. The engine never touches presentation state directly."""
    kind: str
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self):
        return {'kind': self.kind, 'data': self.data}
