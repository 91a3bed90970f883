"""ampliconkit.

Subsetting and summary utilities for amplicon sequencing count data. Keeps
an abundance table, its taxonomy, sample metadata and reference sequences
consistent while subsetting by taxonomy or by sample.
"""

# Key utilities
from .utils.logging import get_logger, setup_logging

# Core data structures
from .core import Config, InvalidInputError, NormalisationWarning
from .utils.taxonomy import TaxonomicRanks
from .wrangle import (
    AmpliconDataset,
    ReadStats,
    TaxonomicSubsetEngine,
    format_summary,
    subset_samples,
    subset_taxa,
    summarise,
)

__version__ = "0.1.0"

__all__ = [
    "AmpliconDataset",
    "ReadStats",
    "TaxonomicSubsetEngine",
    "subset_taxa",
    "subset_samples",
    "summarise",
    "format_summary",
    "TaxonomicRanks",
    "Config",
    "InvalidInputError",
    "NormalisationWarning",
    "setup_logging",
    "get_logger",
]

# Configure default logging
setup_logging()
