"""Exceptions raised by the bingo client engine.

None of these are fatal: remote-event errors are logged and the event is
dropped (or a resync is requested), user-action errors are returned to the
caller so the presentation layer can show a notice.
"""


class BingoClientError(Exception):
    """Base class for all client engine errors."""
    pass


class InvalidCardNumber(BingoClientError):
    """Card number is outside the administratively valid range."""
    def __init__(self, card_number, low: int, high: int):
        self.card_number = card_number
        self.low = low
        self.high = high
        super().__init__(f"Card number {card_number!r} must be between {low} and {high}")


class PhaseMismatch(BingoClientError):
    """Operation attempted in the wrong phase."""
    def __init__(self, operation: str, phase, allowed):
        self.operation = operation
        self.phase = phase
        self.allowed = tuple(allowed)
        names = ', '.join(p.value for p in self.allowed)
        super().__init__(f"{operation} is not allowed during {phase.value} (allowed: {names})")


class OutOfOrder(BingoClientError):
    """Ledger sequence gap or regression."""
    def __init__(self, expected: int, received: int):
        self.expected = expected
        self.received = received
        super().__init__(f"Expected call #{expected}, received #{received}")


class InvalidPhaseTransition(BingoClientError):
    def __init__(self, current, target):
        self.current = current
        self.target = target
        super().__init__(f"Illegal phase transition {current.value} -> {target.value}")


class TransportLost(BingoClientError):
    """Connection to the game authority is unavailable."""
    pass


class ClaimRejected(BingoClientError):
    """The game authority disputed a bingo claim."""
    def __init__(self, reason: str = ''):
        self.reason = reason
        super().__init__(f"Bingo claim rejected: {reason or 'no reason given'}")


class MalformedEvent(BingoClientError):
    """Inbound payload could not be decoded."""
    pass


class NoWinningPattern(BingoClientError):
    pass


class ClaimAlreadyPending(BingoClientError):
    pass


class NumberNotOnCard(BingoClientError):
    """Mark toggled for a number the selected card does not hold."""
    def __init__(self, number):
        self.number = number
        super().__init__(f"{number} is not on the selected card")
