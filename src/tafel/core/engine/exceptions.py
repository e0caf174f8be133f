class TafelError(Exception):
    """Base class for everything the board engine raises."""


class ValidationError(TafelError):
    """A requested move is malformed and was rejected before anything changed."""


class InvariantViolation(TafelError):
    """A computed board state breaks the position or ruler invariants."""


class RemoteError(TafelError):
    """A write to the remote data service failed."""

    def __init__(self, message, cause=None, code=None):
        super().__init__(message)
        self.cause = cause
        self.code = code

    @classmethod
    def from_error(cls, error):
        if isinstance(error, RemoteError):
            return error
        return cls(str(error) or error.__class__.__name__, cause=error)


class TransientNetworkError(RemoteError):
    """The write may succeed if attempted again."""


class TerminalRemoteError(RemoteError):
    """The write was refused (authorization, missing row, constraint) and must not be retried."""
