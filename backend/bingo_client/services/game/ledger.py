"""Ordered record of the numbers drawn in the current round."""

import logging
import time
from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional

from .card import letter_for
from .errors import OutOfOrder

logger = logging.getLogger(__name__)

DEFAULT_DISPLAY_LIMIT = 50


@dataclass(frozen=True)
class CalledNumber:
    number: int
    letter: str
    sequence_index: int
    timestamp: float

    def to_dict(self):
        return {
            'number': self.number,
            'letter': self.letter,
            'callNumber': self.sequence_index,
            'timestamp': self.timestamp,
        }


class CallLedger:
    """Append-only, gap-checked call history.

    The display limit only bounds ``recent()``; the full history stays in
    memory so counts used for wins and statistics are never truncated.
    """

    FIRST_INDEX = 1

    def __init__(self, display_limit: int = DEFAULT_DISPLAY_LIMIT):
        if display_limit < 1:
            raise ValueError("display_limit must be positive")
        self.display_limit = display_limit
        self._entries: List[CalledNumber] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[CalledNumber]:
        return iter(self._entries)

    @property
    def last_index(self) -> int:
        return self._entries[-1].sequence_index if self._entries else self.FIRST_INDEX - 1

    @property
    def latest(self) -> Optional[CalledNumber]:
        return self._entries[-1] if self._entries else None

    @property
    def numbers(self) -> frozenset:
        return frozenset(e.number for e in self._entries)

    def has_index(self, sequence_index: int) -> bool:
        return self.FIRST_INDEX <= sequence_index <= self.last_index

    def entry(self, sequence_index: int) -> CalledNumber:
        if not self.has_index(sequence_index):
            raise IndexError(sequence_index)
        return self._entries[sequence_index - self.FIRST_INDEX]

    def append(self, number: int, letter: Optional[str], sequence_index: int,
               timestamp: Optional[float] = None) -> CalledNumber:
        expected = self.last_index + 1
        if sequence_index != expected:
            raise OutOfOrder(expected=expected, received=sequence_index)
        derived = letter_for(number)
        if letter and letter != derived:
            logger.warning(f"[ledger] call #{sequence_index} letter {letter} does not match {number}, using {derived}")
        entry = CalledNumber(
            number=number,
            letter=derived,
            sequence_index=sequence_index,
            timestamp=time.time() if timestamp is None else timestamp,
        )
        self._entries.append(entry)
        return entry

    def most_recent_first(self) -> Iterator[CalledNumber]:
        return reversed(self._entries)

    def recent(self) -> List[CalledNumber]:
        """Most-recent-first, capped at the display limit."""
        return self._entries[::-1][:self.display_limit]

    def clear(self) -> None:
        self._entries.clear()

    @classmethod
    def from_drawn(cls, drawn: Iterable[int], display_limit: int = DEFAULT_DISPLAY_LIMIT,
                   timestamp: Optional[float] = None) -> 'CallLedger':
        ledger = cls(display_limit=display_limit)
        for index, number in enumerate(drawn, start=cls.FIRST_INDEX):
            ledger.append(number, None, index, timestamp=timestamp)
        return ledger
