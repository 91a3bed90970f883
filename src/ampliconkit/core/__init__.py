"""Configuration and error types for ampliconkit."""

from .config import Config, SubsetOptions
from .errors import InvalidInputError, NormalisationWarning

__all__ = [
    "Config",
    "SubsetOptions",
    "InvalidInputError",
    "NormalisationWarning",
]
