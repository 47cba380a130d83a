"""Bingo client domain services: cards, patterns, ledger, timers, phases.

This package contains the game logic proper. HTTP routes, Socket.IO handlers
and the remote link import from here and only ever reach the engine through
``ClientEngine``, keeping transport concerns separate from game mechanics.
"""

from .card import BingoCard, CardGenerator, COLUMN_RANGES, FREE, LETTERS, letter_for
from .engine import ClientEngine
from .errors import (
    BingoClientError,
    ClaimAlreadyPending,
    ClaimRejected,
    InvalidCardNumber,
    InvalidPhaseTransition,
    MalformedEvent,
    NoWinningPattern,
    NumberNotOnCard,
    OutOfOrder,
    PhaseMismatch,
    TransportLost,
)
from .events import EVENT_NAMES, Intent, UiCommand, parse_event
from .ledger import CallLedger, CalledNumber
from .patterns import PATTERN_KINDS, PatternDetector, WinningPattern, format_pattern
from .phases import GamePhase, PhaseStateMachine
from .reconnect import ConnectionStatus, ReconnectCoordinator
from .round_state import ClaimState
from .stats import ClientSettings, PlayerStats
from .timers import TimerService

__all__ = [
    'BingoCard', 'CardGenerator', 'COLUMN_RANGES', 'FREE', 'LETTERS', 'letter_for',
    'ClientEngine',
    'BingoClientError', 'ClaimAlreadyPending', 'ClaimRejected', 'InvalidCardNumber',
    'InvalidPhaseTransition', 'MalformedEvent', 'NoWinningPattern', 'NumberNotOnCard', 'OutOfOrder',
    'PhaseMismatch', 'TransportLost',
    'EVENT_NAMES', 'Intent', 'UiCommand', 'parse_event',
    'CallLedger', 'CalledNumber',
    'PATTERN_KINDS', 'PatternDetector', 'WinningPattern', 'format_pattern',
    'GamePhase', 'PhaseStateMachine',
    'ConnectionStatus', 'ReconnectCoordinator',
    'ClaimState', 'ClientSettings', 'PlayerStats', 'TimerService',
]
