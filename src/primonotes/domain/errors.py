"""Exception hierarchy shared by every layer."""


class PrimonotesError(Exception):
    """Base class for all errors raised by primonotes."""


class ValidationError(PrimonotesError):
    """Malformed input to grading, scheduling or card creation."""


class ImportFormatError(ValidationError):
    """Plain-text import that does not follow the deck export format."""


class SessionClosedError(PrimonotesError):
    """An operation was attempted on a finished study session or test attempt."""


class StoreError(PrimonotesError):
    """The collection store could not be read or written."""
