"""
Error taxonomy.

- InvalidMove: occupied cell or index outside 0..8. Controllers absorb it as a no-op.
- InvalidBoard: a board string that is not 9 digits of 0/1/2 or not a reachable state.
- SessionNotFound: join against a code the store does not hold.
- SessionFull: join against a game whose O seat belongs to another client.
- StoreUnavailable: the shared document store cannot be reached.
"""


class XOPlayError(Exception):
    """Base class for all xoplay errors."""


class InvalidMove(XOPlayError, ValueError):
    def __init__(self, index: int, reason: str):
        super().__init__(f"Invalid move at {index}: {reason}")
        self.index = index
        self.reason = reason


class InvalidBoard(XOPlayError, ValueError):
    pass


class SessionNotFound(XOPlayError, LookupError):
    def __init__(self, session_id: str, message: str = "Game not found"):
        super().__init__(f"{message}: {session_id!r}")
        self.session_id = session_id


class SessionFull(SessionNotFound):
    def __init__(self, session_id: str):
        super().__init__(session_id, "Game already has two players")


class StoreUnavailable(XOPlayError, RuntimeError):
    pass
