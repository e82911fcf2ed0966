class HafizError(Exception):
    """Base class for all hafiz errors."""


class PersistenceError(HafizError):
    """The storage backend failed to save (or could not be reached)."""


class ValidationError(HafizError, ValueError):
    """An argument is not a valid unit identifier, status or rating."""
