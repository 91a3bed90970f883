"""Generic utilities for ampliconkit."""

from .logging import get_logger, setup_logging, setup_logging_from_config
from .taxonomy import OTU_COLUMN, TaxonomicRanks

__all__ = [
    "OTU_COLUMN",
    "TaxonomicRanks",
    "setup_logging",
    "setup_logging_from_config",
    "get_logger",
]
