"""
Error types raised by bracket generation, scoring and advancement.

Every error carries a machine-readable code, a message and, where one
applies, the name of the offending field so callers can build their own
user-facing text without re-deriving what went wrong.
"""
from typing import Dict, Optional


class TournamentError(Exception):
    """Base class for all tournament engine errors."""

    code = 'INTERNAL_ERROR'

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            'code': self.code,
            'message': self.message,
            'field': self.field
        }

    def __repr__(self):
        return f"{type(self).__name__}(code={self.code}, message={self.message!r}, field={self.field})"


class InvalidInput(TournamentError):
    """Malformed arguments: too few participants, slot outside 1/2, bad config values."""

    code = 'INVALID_INPUT'


class InvalidState(TournamentError):
    """Operation not permitted in the current state."""

    code = 'INVALID_STATE'


class NotFound(TournamentError):
    """Referenced match or bracket does not exist."""

    code = 'NOT_FOUND'

    @classmethod
    def for_resource(cls, resource: str, field: Optional[str] = None) -> 'NotFound':
        return cls(f"{resource} not found", field)
