"""
Custom exceptions.

Rule violations (illegal moves, wrong turn, full sessions) are NOT exceptions: the engine answers with booleans
and the coordinator turns those into events for the requester. The classes below are for input that cannot be
interpreted at all, or for programming errors around the session registry.
"""


class GameError(Exception):
    """Top-level exception of this project. Catch this one to catch them all."""


class InvalidRequestError(GameError):
    """A request/event payload that cannot be interpreted (wrong shape, wrong types, unknown event, ...)"""


class InvalidSquareError(GameError):
    """A coordinate that does not describe a square at all (not a pair of integers)."""


class SessionError(GameError):
    """Inconsistent use of the session registry."""
