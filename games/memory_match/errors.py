"""Exceptions raised by the Memory Match engine."""


class MemoryMatchError(Exception):
    """Base class for all Memory Match errors."""


class InvalidInputError(MemoryMatchError, ValueError):
    """Rejected input at the session boundary. No state was changed."""


class InvalidPlayerNameError(InvalidInputError):
    """Raised when a session is started without a usable player name."""


class UnknownCardError(InvalidInputError):
    """
    Raised when a flip names a card that is not in the active deck.

    Attributes:
        card_id: The id that was requested
    """

    def __init__(self, card_id: str):
        super().__init__(f"No card with id {card_id!r} in the active deck")
        self.card_id = card_id


class InvalidSlotError(InvalidInputError):
    """
    Raised when a flip names a grid slot outside the board.

    Attributes:
        row: Requested row
        col: Requested column
    """

    def __init__(self, row: int, col: int, detail: str = ""):
        super().__init__(detail or f"Slot ({row}, {col}) is outside the board")
        self.row = row
        self.col = col


class DeckInvariantError(MemoryMatchError):
    """A built deck violates the board invariants; it must not be used."""


class SessionStateError(MemoryMatchError):
    """An operation is not allowed in the session's current phase."""
