"""Exceptions and warnings raised by ampliconkit operations."""


class InvalidInputError(ValueError):
    """Raised when a dataset or one of its components is malformed.

    Always raised before any work is done, so the caller's dataset is left
    exactly as it was.
    """


class NormalisationWarning(UserWarning):
    """Issued when already-normalised counts are normalised again."""
