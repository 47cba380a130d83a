"""Deterministic bingo card generation.

A card is fully described by its number: the grid is re-derived locally
rather than transmitted, so the recurrence below must stay stable. Each
column seeds a full-period linear congruential generator from (card number,
column) and steps it once per attempt until five distinct values are drawn.
"""

import hashlib
import random
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from .errors import InvalidCardNumber

LETTERS = ('B', 'I', 'N', 'G', 'O')
COLUMN_RANGES = {
    'B': (1, 15),
    'I': (16, 30),
    'N': (31, 45),
    'G': (46, 60),
    'O': (61, 75),
}
MAX_NUMBER = 75
GRID_SIZE = 5
FREE = 0
FREE_POSITION = (2, 2)

DEFAULT_CARD_MIN = 1
DEFAULT_CARD_MAX = 400

# LCG constants
_MULTIPLIER = 9301
_INCREMENT = 49297
_MODULUS = 233280
_MAX_ATTEMPTS = 1000


def _step(r: int) -> int:
    return (r * _MULTIPLIER + _INCREMENT) % _MODULUS


def letter_for(number: int) -> str:
    """Column letter for a called number (1-75)."""
    if not isinstance(number, int) or isinstance(number, bool) or not 1 <= number <= MAX_NUMBER:
        raise ValueError(f"Bingo numbers are 1-{MAX_NUMBER}, got {number!r}")
    return LETTERS[(number - 1) // 15]


@dataclass(frozen=True)
class BingoCard:
    """5x5 grid stored row-major; ``rows[2][2]`` is the free cell."""

    card_number: int
    rows: Tuple[Tuple[int, ...], ...]

    def cell(self, row: int, col: int) -> int:
        return self.rows[row][col]

    def column(self, col: int) -> Tuple[int, ...]:
        return tuple(r[col] for r in self.rows)

    @property
    def numbers(self) -> frozenset:
        """The 24 non-free numbers on the card."""
        return frozenset(n for r in self.rows for n in r if n != FREE)

    def contains(self, number: int) -> bool:
        return number != FREE and number in self.numbers

    def position(self, number: int) -> Optional[Tuple[int, int]]:
        for r, row in enumerate(self.rows):
            for c, value in enumerate(row):
                if value == number and value != FREE:
                    return r, c
        return None

    def cells(self) -> Iterator[Tuple[int, int, int]]:
        for r, row in enumerate(self.rows):
            for c, value in enumerate(row):
                yield r, c, value

    def fingerprint(self) -> str:
        """SHA-256 over the grid, for comparing a re-derived card."""
        raw = ','.join(str(n) for r in self.rows for n in r)
        return hashlib.sha256(f"{self.card_number}:{raw}".encode('ascii')).hexdigest()

    def to_dict(self):
        return {
            'card_number': self.card_number,
            'rows': [list(r) for r in self.rows],
            'fingerprint': self.fingerprint(),
        }


class CardGenerator:
    """Maps a card number to its grid. Pure: no state besides the valid range."""

    def __init__(self, min_card: int = DEFAULT_CARD_MIN, max_card: int = DEFAULT_CARD_MAX):
        if min_card < 1 or max_card < min_card:
            raise ValueError(f"Invalid card range {min_card}-{max_card}")
        self.min_card = min_card
        self.max_card = max_card

    def validate(self, card_number) -> int:
        if isinstance(card_number, bool) or not isinstance(card_number, int):
            raise InvalidCardNumber(card_number, self.min_card, self.max_card)
        if not self.min_card <= card_number <= self.max_card:
            raise InvalidCardNumber(card_number, self.min_card, self.max_card)
        return card_number

    def generate(self, card_number: int) -> BingoCard:
        self.validate(card_number)
        columns = [self._column(card_number, col) for col in range(GRID_SIZE)]
        rows = []
        for r in range(GRID_SIZE):
            row = []
            for c in range(GRID_SIZE):
                row.append(FREE if (r, c) == FREE_POSITION else columns[c][r])
            rows.append(tuple(row))
        return BingoCard(card_number=card_number, rows=tuple(rows))

    def random_card_number(self, rng: Optional[random.Random] = None) -> int:
        rng = rng or random
        return rng.randint(self.min_card, self.max_card)

    @staticmethod
    def _column(card_number: int, col: int) -> Tuple[int, ...]:
        low, high = COLUMN_RANGES[LETTERS[col]]
        span = high - low + 1
        picked = []
        r = _step(card_number * GRID_SIZE + col)
        for _ in range(_MAX_ATTEMPTS):
            r = _step(r)
            value = low + (r * span) // _MODULUS
            if value not in picked:
                picked.append(value)
                if len(picked) == GRID_SIZE:
                    return tuple(sorted(picked))
        # unreachable: the generator has full period, so every value comes up
        raise RuntimeError(f"Could not fill column {LETTERS[col]} for card {card_number}")
