"""Taxonomy and sample based subsetting of amplicon datasets."""

import logging
import warnings
from typing import Any, Dict, Iterable, List, Optional

import polars as pl
from Bio.SeqRecord import SeqRecord

from ampliconkit.core.config import Config, SubsetOptions
from ampliconkit.core.errors import InvalidInputError, NormalisationWarning
from ampliconkit.utils.taxonomy import OTU_COLUMN, TaxonomicRanks
from ampliconkit.wrangle.dataset import SAMPLE_COLUMN, AmpliconDataset, ReadStats
from ampliconkit.wrangle.normalise import normalise_abundance

logger = logging.getLogger(__name__)

ERR_NOT_A_DATASET = (
    "The provided data is not an AmpliconDataset. Build one from your "
    "abundance, taxonomy and metadata tables before subsetting."
)
WARN_RENORMALISED = (
    "The data has already been normalised by a previous subset. Normalising "
    "again means the relative abundances with respect to the original data, "
    "of which the provided data is a subset, will be lost."
)


def _check_dataset(dataset: Any) -> None:
    if not isinstance(dataset, AmpliconDataset):
        raise InvalidInputError(ERR_NOT_A_DATASET)
    dataset.validate()


def _normalised_counts(dataset: AmpliconDataset) -> pl.DataFrame:
    # Stack: this helper, _subset_taxa or _subset_samples, a public entry point
    if dataset.normalised:
        warnings.warn(WARN_RENORMALISED, NormalisationWarning, stacklevel=4)
        logger.warning(WARN_RENORMALISED)
    return normalise_abundance(dataset.abundance)


def _rekey_sequences(
    sequences: Optional[Dict[str, SeqRecord]], otus: List[str]
) -> Optional[Dict[str, SeqRecord]]:
    if sequences is None:
        return None
    missing = [otu for otu in otus if otu not in sequences]
    if missing:
        logger.warning(
            f"{len(missing)} retained OTUs have no reference sequence, e.g. {missing[:3]}"
        )
    return {otu: sequences[otu] for otu in otus if otu in sequences}


def _restricted_to(abundance: pl.DataFrame, otus: pl.Series) -> pl.DataFrame:
    return abundance.filter(pl.col(OTU_COLUMN).is_in(otus.implode()))


def match_taxa(
    taxonomy: pl.DataFrame, tax_vector: Optional[Iterable[str]]
) -> pl.Series:
    """Flag taxonomy rows where any rank, or the OTU ID, equals one of the
    given names.

    Matching is exact and case-sensitive, so prefixed names such as
    "p__Chloroflexi" must be given as they appear in the table.

    Args:
        taxonomy: Taxonomy table
        tax_vector: Names to match

    Returns:
        Boolean Series aligned with the taxonomy rows
    """
    if tax_vector is None:
        tax_vector = []
    elif isinstance(tax_vector, str):
        tax_vector = [tax_vector]
    # Unassigned ranks are stored as "", which must never match
    names = pl.Series(
        "names", sorted(set(tax_vector) - {""}), dtype=pl.Utf8
    ).implode()

    return taxonomy.select(
        pl.any_horizontal(
            [
                pl.col(col).cast(pl.Utf8).is_in(names).fill_null(False)
                for col in TaxonomicRanks.matchable_columns()
            ]
        ).alias("matched")
    ).to_series()


class TaxonomicSubsetEngine:
    """Subsets AmpliconDatasets while keeping abundance, taxonomy and
    sequences consistent.

    Engine options are defaults; every call may override them.

    Examples:
        engine = TaxonomicSubsetEngine(normalise=True)
        chloroflexi = engine.subset_taxa(data, ["p__Chloroflexi"])
        without_chloroflexi = engine.subset_taxa(data, ["p__Chloroflexi"], remove=True)
    """

    def __init__(self, normalise: bool = False, remove: bool = False):
        """
        Args:
            normalise: Normalise counts to percentages before subsetting
            remove: Remove matching taxa instead of keeping them
        """
        self.normalise = normalise
        self.remove = remove

    @classmethod
    def from_config(cls, config: Config) -> "TaxonomicSubsetEngine":
        """Create an engine from the ``subset`` section of a Config."""
        options = SubsetOptions.from_config(config)
        return cls(normalise=options.normalise, remove=options.remove)

    def subset_taxa(
        self,
        dataset: AmpliconDataset,
        tax_vector: Optional[Iterable[str]] = None,
        normalise: Optional[bool] = None,
        remove: Optional[bool] = None,
    ) -> AmpliconDataset:
        """Keep, or remove, the OTUs matching any of the given taxon names.

        Names are matched on every rank and on the OTU ID. When normalising,
        counts become percentages of the whole sample BEFORE the subset, so
        the result shows each taxon relative to the original sample. Read
        stats then describe the retained OTUs' counts as they were prior to
        normalisation.

        Args:
            dataset: Dataset to subset
            tax_vector: Exact taxon names or OTU IDs
            normalise: Normalise before subsetting (default: engine setting)
            remove: Remove matching OTUs instead of keeping them
                (default: engine setting)

        Returns:
            New AmpliconDataset

        Raises:
            InvalidInputError: If dataset or its sequences are malformed
        """
        normalise = self.normalise if normalise is None else normalise
        remove = self.remove if remove is None else remove
        return self._subset_taxa(dataset, tax_vector, normalise, remove)

    def _subset_taxa(
        self,
        dataset: AmpliconDataset,
        tax_vector: Optional[Iterable[str]],
        normalise: bool,
        remove: bool,
    ) -> AmpliconDataset:
        _check_dataset(dataset)

        counts = dataset.abundance
        abundance = _normalised_counts(dataset) if normalise else counts

        matched = match_taxa(dataset.taxonomy, tax_vector)
        taxonomy = dataset.taxonomy.filter(~matched if remove else matched)
        retained = taxonomy.get_column(OTU_COLUMN)
        abundance = _restricted_to(abundance, retained)

        if normalise:
            read_stats = ReadStats.from_abundance(_restricted_to(counts, retained))
        elif dataset.normalised:
            read_stats = dataset.read_stats
        else:
            read_stats = ReadStats.from_abundance(abundance)

        n_before, n_after = dataset.n_otus, abundance.height
        if n_before == n_after:
            logger.info("0 OTUs have been filtered.")
        else:
            logger.info(
                f"{n_before - n_after} OTUs have been filtered "
                f"(before: {n_before} OTUs, after: {n_after} OTUs)."
            )

        return dataset._replace(
            abundance=abundance,
            taxonomy=taxonomy,
            sequences=_rekey_sequences(dataset.sequences, retained.to_list()),
            normalised=dataset.normalised or normalise,
            read_stats=read_stats,
        )

    def subset_samples(
        self,
        dataset: AmpliconDataset,
        predicate: pl.Expr,
        normalise: Optional[bool] = None,
        minreads: float = 1,
    ) -> AmpliconDataset:
        """Keep the samples whose metadata satisfies a polars expression.

        OTUs with fewer than ``minreads`` in total across the kept samples are
        dropped afterwards, from the taxonomy and sequences as well.

        Args:
            dataset: Dataset to subset
            predicate: Boolean expression over metadata columns,
                e.g. pl.col("Plant").is_in(["Aalborg West"])
            normalise: Normalise before subsetting (default: engine setting)
            minreads: Minimum total abundance for an OTU to be kept

        Returns:
            New AmpliconDataset

        Raises:
            InvalidInputError: If dataset is malformed or predicate cannot be
                evaluated against the metadata
        """
        normalise = self.normalise if normalise is None else normalise
        return self._subset_samples(dataset, predicate, normalise, minreads)

    def _subset_samples(
        self,
        dataset: AmpliconDataset,
        predicate: pl.Expr,
        normalise: bool,
        minreads: float,
    ) -> AmpliconDataset:
        _check_dataset(dataset)
        if not isinstance(predicate, pl.Expr):
            raise InvalidInputError(
                f"predicate must be a polars expression, got {type(predicate)}"
            )

        try:
            metadata = dataset.metadata.filter(predicate)
        except pl.exceptions.PolarsError as e:
            raise InvalidInputError(f"Could not evaluate sample predicate: {e}") from e

        present = pl.Series(dataset.samples, dtype=pl.Utf8)
        metadata = metadata.filter(pl.col(SAMPLE_COLUMN).is_in(present.implode()))
        kept = metadata.get_column(SAMPLE_COLUMN).to_list()

        counts = dataset.abundance
        abundance = _normalised_counts(dataset) if normalise else counts
        abundance = abundance.select([OTU_COLUMN] + kept)

        if kept:
            abundant = pl.sum_horizontal(kept) >= minreads
        else:
            abundant = pl.lit(minreads <= 0)
        abundance = abundance.filter(abundant)

        retained = abundance.get_column(OTU_COLUMN)
        taxonomy = dataset.taxonomy.filter(
            pl.col(OTU_COLUMN).is_in(retained.implode())
        )
        retained = taxonomy.get_column(OTU_COLUMN)

        if normalise:
            read_stats = ReadStats.from_abundance(
                _restricted_to(counts.select([OTU_COLUMN] + kept), retained)
            )
        elif dataset.normalised:
            read_stats = dataset.read_stats
        else:
            read_stats = ReadStats.from_abundance(abundance)

        logger.info(
            f"{dataset.n_samples - len(kept)} samples and "
            f"{dataset.n_otus - abundance.height} OTUs have been filtered "
            f"(before: {dataset.n_samples} samples, {dataset.n_otus} OTUs; "
            f"after: {len(kept)} samples, {abundance.height} OTUs)."
        )

        return dataset._replace(
            abundance=abundance,
            taxonomy=taxonomy,
            metadata=metadata,
            sequences=_rekey_sequences(dataset.sequences, retained.to_list()),
            normalised=dataset.normalised or normalise,
            read_stats=read_stats,
        )


def subset_taxa(
    dataset: AmpliconDataset,
    tax_vector: Optional[Iterable[str]] = None,
    normalise: bool = False,
    remove: bool = False,
) -> AmpliconDataset:
    """Subset a dataset by taxonomy. See TaxonomicSubsetEngine.subset_taxa."""
    return TaxonomicSubsetEngine()._subset_taxa(dataset, tax_vector, normalise, remove)


def subset_samples(
    dataset: AmpliconDataset,
    predicate: pl.Expr,
    normalise: bool = False,
    minreads: float = 1,
) -> AmpliconDataset:
    """Subset a dataset by sample metadata. See
    TaxonomicSubsetEngine.subset_samples."""
    return TaxonomicSubsetEngine()._subset_samples(
        dataset, predicate, normalise, minreads
    )
