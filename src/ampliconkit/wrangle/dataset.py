"""Composite amplicon dataset: abundance, taxonomy, metadata and sequences."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Type, Union

import numpy as np
import polars as pl
from Bio.SeqRecord import SeqRecord

from ampliconkit.core.errors import InvalidInputError
from ampliconkit.utils.taxonomy import OTU_COLUMN, TaxonomicRanks

logger = logging.getLogger(__name__)

SAMPLE_COLUMN = "SampleID"

# standardised error messages
ERR_SEQUENCES_TYPE = (
    "The sequences must be a mapping of OTU ID to Bio.SeqRecord.SeqRecord, "
    "as returned by Bio.SeqIO.to_dict()."
)

Frame = Union[pl.DataFrame, pl.LazyFrame]


class Fields(Enum):
    "Base class for field definitions with validation properties."

    def __init__(
        self,
        column_name: str,
        dtype: Any,
        required: bool,
        description: str,
        alternatives: Optional[List[str]] = None,
    ):
        self.column_name = column_name
        self.dtype = dtype
        self.required = required
        self.description = description
        self.alternatives = alternatives or []
        self.all_names = [column_name] + self.alternatives

    def find_column_name(self, df: pl.DataFrame) -> Optional[str]:
        """Find the actual column name in the DataFrame from possible
        alternatives."""
        for name in self.all_names:
            if name in df.columns:
                return name
        return None


class AbundanceFields(Fields):
    """Enumeration of abundance table fields. Every other column is a
    sample."""

    OTU = (
        OTU_COLUMN,
        pl.Utf8,
        True,
        "OTU/ASV identifier",
        ["otu", "ASV", "asv", "feature_id", "#OTU ID"],
    )


class TaxonomyFields(Fields):
    """Enumeration of taxonomy table fields with validation properties."""

    OTU = (
        OTU_COLUMN,
        pl.Utf8,
        True,
        "OTU/ASV identifier",
        ["otu", "ASV", "asv", "feature_id", "#OTU ID"],
    )
    KINGDOM = (
        "Kingdom",
        pl.Utf8,
        True,
        "Kingdom assignment",
        ["kingdom", "Domain", "domain"],
    )
    PHYLUM = ("Phylum", pl.Utf8, True, "Phylum assignment", ["phylum"])
    CLASS = ("Class", pl.Utf8, True, "Class assignment", ["class"])
    ORDER = ("Order", pl.Utf8, True, "Order assignment", ["order"])
    FAMILY = ("Family", pl.Utf8, True, "Family assignment", ["family"])
    GENUS = ("Genus", pl.Utf8, True, "Genus assignment", ["genus"])
    SPECIES = ("Species", pl.Utf8, True, "Species assignment", ["species"])


class MetadataFields(Fields):
    """Enumeration of sample metadata fields."""

    SAMPLE = (
        SAMPLE_COLUMN,
        pl.Utf8,
        True,
        "Sample identifier, matching a column of the abundance table",
        ["sample", "sample_id", "SampleId", "#SampleID"],
    )


@dataclass(frozen=True)
class ReadStats:
    """Summary of reads per sample."""

    total: float
    min: float
    max: float
    median: float
    mean: float

    @classmethod
    def from_abundance(cls, abundance: pl.DataFrame) -> "ReadStats":
        """Compute read statistics from the per-sample column sums of an
        abundance table."""
        samples = [col for col in abundance.columns if col != OTU_COLUMN]
        if not samples:
            return cls(total=0.0, min=0.0, max=0.0, median=0.0, mean=0.0)

        totals = abundance.select(samples).sum().to_numpy().ravel()
        totals = totals.astype(np.float64)
        return cls(
            total=float(totals.sum()),
            min=float(totals.min()),
            max=float(totals.max()),
            median=float(np.median(totals)),
            mean=round(float(totals.mean()), 2),
        )

    def to_dict(self) -> Dict[str, float]:
        return {
            "Total#Reads": self.total,
            "Min#Reads": self.min,
            "Max#Reads": self.max,
            "Median#Reads": self.median,
            "Avg#Reads": self.mean,
        }


def _collect(frame: Any, component: str) -> pl.DataFrame:
    if isinstance(frame, pl.DataFrame):
        return frame
    elif isinstance(frame, pl.LazyFrame):
        return frame.collect()
    else:
        raise InvalidInputError(
            f"Unsupported type for {component}: {type(frame)}. "
            "Expected a polars DataFrame or LazyFrame."
        )


def _standardize_fields(
    df: pl.DataFrame, field_enum: Type[Fields], component: str
) -> pl.DataFrame:
    """Validate required fields and standardize column names.

    Args:
        df: DataFrame to validate and standardize
        field_enum: Enum class with field definitions
        component: Component name used in error messages

    Returns:
        DataFrame with standardized column names
    """
    missing_required = []
    rename_mapping = {}

    for field in field_enum:
        actual_column = field.find_column_name(df)
        if actual_column:
            if actual_column != field.column_name:
                rename_mapping[actual_column] = field.column_name
        elif field.required:
            missing_required.append(
                f"{field.column_name} (tried: {field.all_names})"
            )

    if missing_required:
        raise InvalidInputError(
            f"Missing required {component} fields: {missing_required}"
        )

    if rename_mapping:
        df = df.rename(rename_mapping)

    return df


def _validate_sequences(sequences: Any) -> Optional[Dict[str, SeqRecord]]:
    if sequences is None:
        return None
    if not isinstance(sequences, Mapping):
        raise InvalidInputError(ERR_SEQUENCES_TYPE)
    if not all(isinstance(record, SeqRecord) for record in sequences.values()):
        raise InvalidInputError(ERR_SEQUENCES_TYPE)
    return dict(sequences)


class AmpliconDataset:
    """Amplicon count data with its taxonomy, sample metadata and optional
    reference sequences.

    The abundance and taxonomy tables always describe the same set of OTUs.
    Operations never modify a dataset in place; subsetting returns a new
    instance.

    Attributes:
        abundance: OTU column followed by one count column per sample
        taxonomy: OTU column followed by the seven rank columns
        metadata: SampleID column followed by sample attributes
        sequences: Optional mapping of OTU ID to SeqRecord
        normalised: Whether counts have been converted to percentages
        read_stats: Reads per sample summary (see ReadStats)
    """

    def __init__(
        self,
        abundance: Frame,
        taxonomy: Frame,
        metadata: Optional[Frame] = None,
        sequences: Optional[Dict[str, SeqRecord]] = None,
        normalised: bool = False,
    ):
        """Initialize AmpliconDataset with validation and standardization.

        Args:
            abundance: Wide abundance table, OTU column plus one column per sample
            taxonomy: Taxonomy table with OTU column and the seven rank columns
            metadata: Sample metadata; a bare SampleID table is built from the
                abundance columns if not given
            sequences: Reference sequences keyed by OTU ID
            normalised: Whether abundance already holds percentages

        Raises:
            InvalidInputError: If any component is malformed or the abundance
                and taxonomy tables do not describe the same OTUs
        """
        abundance_df = _standardize_fields(
            _collect(abundance, "abundance"), AbundanceFields, "abundance"
        )
        samples = [col for col in abundance_df.columns if col != OTU_COLUMN]
        self.abundance = abundance_df.select(
            [pl.col(OTU_COLUMN).cast(pl.Utf8)] + samples
        )

        taxonomy_df = _standardize_fields(
            _collect(taxonomy, "taxonomy"), TaxonomyFields, "taxonomy"
        )
        extra = [
            col
            for col in taxonomy_df.columns
            if col not in TaxonomicRanks.matchable_columns()
        ]
        if extra:
            logger.debug(f"Dropping non-rank taxonomy columns: {extra}")
        self.taxonomy = taxonomy_df.select(
            [pl.col(OTU_COLUMN).cast(pl.Utf8)]
            + [
                pl.col(col).cast(pl.Utf8).fill_null("")
                for col in TaxonomicRanks.columns()
            ]
        )

        if metadata is None:
            self.metadata = pl.DataFrame(
                {SAMPLE_COLUMN: samples}, schema={SAMPLE_COLUMN: pl.Utf8}
            )
        else:
            metadata_df = _standardize_fields(
                _collect(metadata, "metadata"), MetadataFields, "metadata"
            )
            self.metadata = metadata_df.select(
                [pl.col(SAMPLE_COLUMN).cast(pl.Utf8), pl.exclude(SAMPLE_COLUMN)]
            )

        self.sequences = _validate_sequences(sequences)
        self.normalised = normalised

        self.validate()
        self.read_stats = ReadStats.from_abundance(self.abundance)

        logger.debug(
            f"Loaded dataset with {self.n_otus} OTUs and {self.n_samples} samples"
        )

    def validate(self) -> None:
        """Check the invariants tying the components together.

        Raises:
            InvalidInputError: If any invariant does not hold
        """
        for component in ("abundance", "taxonomy", "metadata"):
            if not isinstance(getattr(self, component, None), pl.DataFrame):
                raise InvalidInputError(
                    f"The {component} component must be a polars DataFrame."
                )

        missing = [
            col
            for col in TaxonomicRanks.matchable_columns()
            if col not in self.taxonomy.columns
        ]
        if missing:
            raise InvalidInputError(f"Taxonomy table is missing columns: {missing}")
        if OTU_COLUMN not in self.abundance.columns:
            raise InvalidInputError(
                f"Abundance table is missing the {OTU_COLUMN} column"
            )
        if SAMPLE_COLUMN not in self.metadata.columns:
            raise InvalidInputError(
                f"Metadata is missing the {SAMPLE_COLUMN} column"
            )

        non_numeric = [
            col
            for col in self.samples
            if not self.abundance.schema[col].is_numeric()
        ]
        if non_numeric:
            raise InvalidInputError(
                f"Abundance columns must be numeric, got non-numeric samples: {non_numeric}"
            )
        if self.samples:
            counts = self.abundance.select(self.samples)
            if counts.null_count().sum_horizontal().item() > 0:
                raise InvalidInputError("Abundance table contains missing counts")
            finite = counts.select(
                pl.all_horizontal(pl.all().cast(pl.Float64).is_finite().all())
            ).item()
            if not finite:
                raise InvalidInputError("Abundance table contains non-finite counts")
            if counts.select(pl.any_horizontal(pl.all() < 0).any()).item():
                raise InvalidInputError("Abundance table contains negative counts")

        for component, df in (("abundance", self.abundance), ("taxonomy", self.taxonomy)):
            if df.get_column(OTU_COLUMN).is_duplicated().any():
                raise InvalidInputError(f"Duplicate OTU IDs in {component} table")
        if self.metadata.get_column(SAMPLE_COLUMN).is_duplicated().any():
            raise InvalidInputError("Duplicate sample IDs in metadata")

        abundance_otus = set(self.abundance.get_column(OTU_COLUMN).to_list())
        taxonomy_otus = set(self.taxonomy.get_column(OTU_COLUMN).to_list())
        if abundance_otus != taxonomy_otus:
            raise InvalidInputError(
                "Abundance and taxonomy tables describe different OTUs: "
                f"{len(abundance_otus - taxonomy_otus)} only in abundance, "
                f"{len(taxonomy_otus - abundance_otus)} only in taxonomy"
            )

        _validate_sequences(self.sequences)

    @property
    def samples(self) -> List[str]:
        """Sample IDs, in abundance column order."""
        return [col for col in self.abundance.columns if col != OTU_COLUMN]

    @property
    def otus(self) -> List[str]:
        """OTU IDs, in taxonomy row order."""
        return self.taxonomy.get_column(OTU_COLUMN).to_list()

    @property
    def n_samples(self) -> int:
        return len(self.samples)

    @property
    def n_otus(self) -> int:
        return self.abundance.height

    def _replace(self, **changes: Any) -> "AmpliconDataset":
        """Create a new instance sharing unchanged components, skipping
        validation."""
        new_instance = self.__class__.__new__(self.__class__)
        new_instance.abundance = changes.get("abundance", self.abundance)
        new_instance.taxonomy = changes.get("taxonomy", self.taxonomy)
        new_instance.metadata = changes.get("metadata", self.metadata)
        new_instance.sequences = changes.get("sequences", self.sequences)
        new_instance.normalised = changes.get("normalised", self.normalised)
        new_instance.read_stats = changes.get("read_stats", self.read_stats)
        return new_instance

    def subset_taxa(
        self,
        tax_vector: Optional[Iterable[str]] = None,
        normalise: bool = False,
        remove: bool = False,
    ) -> "AmpliconDataset":
        """Subset OTUs by taxon names. See
        ampliconkit.wrangle.subset.TaxonomicSubsetEngine.subset_taxa."""
        from ampliconkit.wrangle.subset import TaxonomicSubsetEngine

        return TaxonomicSubsetEngine()._subset_taxa(
            self, tax_vector, normalise, remove
        )

    def subset_samples(
        self,
        predicate: pl.Expr,
        normalise: bool = False,
        minreads: float = 1,
    ) -> "AmpliconDataset":
        """Subset samples by a metadata expression. See
        ampliconkit.wrangle.subset.TaxonomicSubsetEngine.subset_samples."""
        from ampliconkit.wrangle.subset import TaxonomicSubsetEngine

        return TaxonomicSubsetEngine()._subset_samples(
            self, predicate, normalise, minreads
        )

    def __str__(self) -> str:
        from ampliconkit.wrangle.summary import format_summary

        return format_summary(self)

    def __repr__(self) -> str:
        return (
            f"AmpliconDataset(otus={self.n_otus}, samples={self.n_samples}, "
            f"normalised={self.normalised})"
        )
