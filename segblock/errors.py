"""Error types reported to the user boundary."""


class SegblockError(Exception):
    """Base class for recoverable segblock errors."""


class InvalidUrl(SegblockError):
    """Empty or unparsable website input. Nothing is persisted."""


class PersistenceError(SegblockError):
    """The rule store could not be read or written.

    The caller must not assume the change was saved.
    """


class NotFound(SegblockError):
    """A delete referenced a rule that is not in the store."""
