"""Per-sample relative abundance normalisation."""

import polars as pl

from ampliconkit.utils.taxonomy import OTU_COLUMN


def normalise_abundance(abundance: pl.DataFrame) -> pl.DataFrame:
    """Convert counts to percentages of each sample's total.

    Samples with a total of zero are left as they are. When the table has a
    single OTU, every nonzero sample is set to exactly 100.

    Args:
        abundance: OTU column followed by one count column per sample

    Returns:
        DataFrame with the same shape and Float64 sample columns
    """
    single_row = abundance.height == 1
    exprs = []
    for sample in abundance.columns:
        if sample == OTU_COLUMN:
            continue
        total = pl.col(sample).sum()
        scaled = pl.lit(100.0) if single_row else pl.col(sample) / total * 100
        exprs.append(
            pl.when(total != 0)
            .then(scaled)
            .otherwise(pl.col(sample))
            .cast(pl.Float64)
            .alias(sample)
        )
    return abundance.with_columns(exprs)
