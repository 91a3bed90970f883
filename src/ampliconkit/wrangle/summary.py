"""Text summaries of amplicon datasets."""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple, Union

import polars as pl

from ampliconkit.utils.taxonomy import TaxonomicRanks
from ampliconkit.wrangle.dataset import AmpliconDataset, ReadStats

# Rank values of this length or shorter are bare prefixes such as "g__"
MIN_ASSIGNED_LENGTH = 3


@dataclass(frozen=True)
class DatasetSummary:
    """Headline numbers of a dataset."""

    n_samples: int
    n_otus: int
    read_stats: ReadStats
    normalised: bool
    assigned: Dict[str, Tuple[int, float]]
    metadata_variables: List[str]
    n_elements: int


def assigned_taxonomy(
    taxonomy: pl.DataFrame,
    ranks: Optional[Iterable[Union[str, TaxonomicRanks]]] = None,
) -> Dict[str, Tuple[int, float]]:
    """Count OTUs with an assignment at each rank.

    Args:
        taxonomy: Taxonomy table
        ranks: Ranks to report (default: all, broadest first)

    Returns:
        Dict of rank column to (assigned OTUs, percentage of OTUs)
    """
    if ranks is None:
        ranks = TaxonomicRanks.iter_from_kingdom()

    n_otus = taxonomy.height
    assigned = {}
    for rank in ranks:
        if isinstance(rank, str):
            rank = TaxonomicRanks.from_name(rank)
        count = taxonomy.select(
            (pl.col(rank.column).str.len_chars() > MIN_ASSIGNED_LENGTH).sum()
        ).item()
        percent = round(count / n_otus * 100, 2) if n_otus else 0.0
        assigned[rank.column] = (count, percent)
    return assigned


def summarise(dataset: AmpliconDataset) -> DatasetSummary:
    """Summarise a dataset.

    Read stats are computed from the current counts unless the dataset is
    normalised, in which case the stats recorded when it was normalised are
    used.
    """
    if dataset.normalised:
        read_stats = dataset.read_stats
    else:
        read_stats = ReadStats.from_abundance(dataset.abundance)

    return DatasetSummary(
        n_samples=dataset.n_samples,
        n_otus=dataset.n_otus,
        read_stats=read_stats,
        normalised=dataset.normalised,
        assigned=assigned_taxonomy(dataset.taxonomy),
        metadata_variables=list(dataset.metadata.columns),
        n_elements=4 if dataset.sequences is not None else 3,
    )


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}".rstrip("0").rstrip(".")


def _format_table(entries: Dict[str, str]) -> str:
    widths = [max(len(key), len(value)) for key, value in entries.items()]
    header = " ".join(key.rjust(w) for key, w in zip(entries, widths))
    values = " ".join(value.rjust(w) for value, w in zip(entries.values(), widths))
    return f"{header}\n{values}"


def format_summary(dataset: AmpliconDataset) -> str:
    """Render the summary of a dataset as text."""
    summary = summarise(dataset)

    overview = {
        "Samples": str(summary.n_samples),
        "OTUs": str(summary.n_otus),
    }
    overview.update(
        {
            key: _format_number(value)
            for key, value in summary.read_stats.to_dict().items()
        }
    )
    lines = [
        f"{type(dataset).__name__} object with {summary.n_elements} elements.",
        "",
        "Summary of OTU table:",
        _format_table(overview),
    ]
    if summary.normalised:
        lines.append("(The read counts have been normalised)")

    lines += [
        "",
        "Assigned taxonomy:",
        _format_table(
            {
                rank: f"{count}({_format_number(percent)}%)"
                for rank, (count, percent) in summary.assigned.items()
            }
        ),
        "",
        f"Metadata variables: {len(summary.metadata_variables)}",
        ", ".join(summary.metadata_variables),
    ]
    return "\n".join(lines)
