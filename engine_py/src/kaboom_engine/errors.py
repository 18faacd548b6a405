# engine_py/src/kaboom_engine/errors.py

class GameError(Exception):
    """Base exception for game-related errors."""
    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")


class DeckEmpty(GameError):
    """Raised when a draw hits an empty deck. Non-fatal: the command has no effect."""
    def __init__(self, message: str = "The deck is empty"):
        super().__init__(DECK_EMPTY, message)


# Specific error codes
WRONG_PHASE = "WRONG_PHASE"
NOT_YOUR_TURN = "NOT_YOUR_TURN"
ACTION_PENDING = "ACTION_PENDING"
DEFUSE_PENDING = "DEFUSE_PENDING"
PLAYER_ELIMINATED = "PLAYER_ELIMINATED"
CARD_NOT_HELD = "CARD_NOT_HELD"
CARD_NOT_PLAYABLE = "CARD_NOT_PLAYABLE"
INVALID_TARGET = "INVALID_TARGET"
DECK_EMPTY = "DECK_EMPTY"
NOTHING_TO_CLONE = "NOTHING_TO_CLONE"
NOTHING_TO_NOPE = "NOTHING_TO_NOPE"
NOT_DEFUSING = "NOT_DEFUSING"
UNKNOWN_PLAYER = "UNKNOWN_PLAYER"
ROOM_FULL = "ROOM_FULL"
ALREADY_JOINED = "ALREADY_JOINED"
ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
INVALID_EVENT = "INVALID_EVENT"
INTERNAL_ERROR = "INTERNAL"

# Helper function to raise common errors
def raise_error(code: str, message: str):
    raise GameError(code, message)
