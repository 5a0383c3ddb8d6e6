"""
Custom exceptions used across layers.

Everything raised on purpose by the domain, service, or persistence layers derives from GameError,
so the API layer can catch a single base class and map the subclasses onto status codes.
"""


class GameError(Exception):
    """Top-level exception for anything that goes wrong while playing / storing / replaying a game."""

    code: str = "game_error"


class InvalidRequestError(GameError):
    """Request data could not be interpreted (raised by the request model validators)."""

    code = "invalid_request"


class MovePreconditionError(GameError):
    """
    A move was applied to a board it cannot be applied to (empty origin, occupied target).
    ---
    Legality is checked before a move gets applied, so this signals a programming error in the caller.
    """

    code = "move_precondition"


class IllegalMoveError(GameError):
    """The move does not follow the knight movement rule for the current board."""

    code = "illegal_move"


class GameStateError(GameError):
    """The session is not in a state that allows the requested operation."""

    code = "invalid_state"


class CorruptMoveLogError(GameError):
    """A stored move log does not replay from the initial layout. Data integrity problem, not a legality one."""

    code = "corrupt_move_log"

    def __init__(self, message: str, move_index: int) -> None:
        super().__init__(message)
        self.move_index = move_index


class RepositoryError(GameError):
    """Base class for persistence layer failures."""

    code = "repository_error"


class SessionNotFoundError(RepositoryError):
    code = "session_not_found"


class PersistenceError(RepositoryError):
    """The store is unreachable or rejected a write."""

    code = "persistence_error"
