"""Amplicon dataset wrangling utilities."""

from .dataset import AmpliconDataset, ReadStats
from .normalise import normalise_abundance
from .subset import TaxonomicSubsetEngine, match_taxa, subset_samples, subset_taxa
from .summary import DatasetSummary, format_summary, summarise

__all__ = [
    "AmpliconDataset",
    "ReadStats",
    "TaxonomicSubsetEngine",
    "normalise_abundance",
    "match_taxa",
    "subset_taxa",
    "subset_samples",
    "DatasetSummary",
    "summarise",
    "format_summary",
]
