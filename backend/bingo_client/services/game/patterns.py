"""Winning-shape detection.

Matches found here are advisory: the game authority has the final word when
a claim is submitted.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .card import BingoCard, FREE_POSITION, GRID_SIZE, LETTERS

FULL_HOUSE = 'full-house'
FOUR_CORNERS = 'four-corners'
DIAGONAL_MAIN = 'diagonal-main'
DIAGONAL_ANTI = 'diagonal-anti'

PATTERN_LABELS = {
    'horizontal-line-1': 'Top Line',
    'horizontal-line-2': 'Second Line',
    'horizontal-line-3': 'Third Line',
    'horizontal-line-4': 'Fourth Line',
    'horizontal-line-5': 'Bottom Line',
    'vertical-line-B': 'B Column',
    'vertical-line-I': 'I Column',
    'vertical-line-N': 'N Column',
    'vertical-line-G': 'G Column',
    'vertical-line-O': 'O Column',
    DIAGONAL_MAIN: 'Diagonal ↘',
    DIAGONAL_ANTI: 'Diagonal ↙',
    FOUR_CORNERS: 'Four Corners',
    FULL_HOUSE: 'Full House',
}

Cells = Tuple[Tuple[int, int], ...]


def _build_shapes() -> List[Tuple[str, Cells]]:
    n = GRID_SIZE
    shapes: List[Tuple[str, Cells]] = []
    # a fully marked card reports full-house; every other shape is a subset of it
    shapes.append((FULL_HOUSE, tuple((r, c) for r in range(n) for c in range(n))))
    for r in range(n):
        shapes.append((f'horizontal-line-{r + 1}', tuple((r, c) for c in range(n))))
    for c in range(n):
        shapes.append((f'vertical-line-{LETTERS[c]}', tuple((r, c) for r in range(n))))
    shapes.append((DIAGONAL_MAIN, tuple((i, i) for i in range(n))))
    shapes.append((DIAGONAL_ANTI, tuple((i, n - 1 - i) for i in range(n))))
    shapes.append((FOUR_CORNERS, ((0, 0), (0, n - 1), (n - 1, 0), (n - 1, n - 1))))
    return shapes


SHAPES = _build_shapes()
PATTERN_KINDS = tuple(kind for kind, _ in SHAPES)


def format_pattern(kind: str) -> str:
    return PATTERN_LABELS.get(kind, kind)


@dataclass(frozen=True)
class WinningPattern:
    kind: str
    numbers: Tuple[int, ...]

    @property
    def label(self) -> str:
        return format_pattern(self.kind)

    def to_dict(self):
        return {'pattern': self.kind, 'label': self.label, 'numbers': list(self.numbers)}


class PatternDetector:
    """Evaluates a card against the fixed set of winning shapes."""

    @staticmethod
    def _numbers(card: BingoCard, cells: Cells) -> Tuple[int, ...]:
        return tuple(card.cell(r, c) for r, c in cells if (r, c) != FREE_POSITION)

    def members(self, card: BingoCard, kind: str) -> Tuple[int, ...]:
        for name, cells in SHAPES:
            if name == kind:
                return self._numbers(card, cells)
        raise KeyError(kind)

    def evaluate(
        self,
        card: BingoCard,
        marked: Iterable[int],
        exclude: Iterable[str] = (),
    ) -> Optional[WinningPattern]:
        """Return the first shape, in precedence order, whose non-free cells are all marked."""
        marked = set(marked)
        skipped = set(exclude)
        for kind, cells in SHAPES:
            if kind in skipped:
                continue
            numbers = self._numbers(card, cells)
            if all(n in marked for n in numbers):
                return WinningPattern(kind=kind, numbers=numbers)
        return None

    def evaluate_all(self, card: BingoCard, marked: Iterable[int]) -> List[WinningPattern]:
        marked = set(marked)
        found: List[WinningPattern] = []
        while True:
            match = self.evaluate(card, marked, exclude=[p.kind for p in found])
            if match is None:
                return found
            found.append(match)
