from enum import IntEnum
from typing import List, Optional

# Feature identifier column shared by the abundance and taxonomy tables
OTU_COLUMN = "OTU"


class TaxonomicRanks(IntEnum):
    """Enumeration of the taxonomy table ranks."""
    KINGDOM = 0
    PHYLUM = 1
    CLASS = 2
    ORDER = 3
    FAMILY = 4
    GENUS = 5
    SPECIES = 6

    @property
    def name(self) -> str:
        return super().name.lower()

    @property
    def column(self) -> str:
        """Column name of this rank in the taxonomy table."""
        return self.name.capitalize()

    @property
    def prefix(self) -> str:
        return f"{self.name[0]}__"

    @property
    def child(self) -> Optional["TaxonomicRanks"]:
        """Get the child (more specific) taxonomic rank."""
        try:
            return TaxonomicRanks(self.value + 1)
        except ValueError:
            return None  # Already at lowest rank

    @classmethod
    def from_name(cls, rank: str) -> "TaxonomicRanks":
        """Get enum member from rank name or column name."""
        rank = rank.upper()
        try:
            return cls[rank]
        except KeyError:
            raise ValueError(f"Invalid taxonomic rank: {rank}")

    @classmethod
    def iter_from_kingdom(cls):
        """Yield ranks from KINGDOM (broadest) to SPECIES (most specific)."""
        rank = cls.KINGDOM
        while rank is not None:
            yield rank
            rank = rank.child

    @classmethod
    def columns(cls) -> List[str]:
        """Rank columns of the taxonomy table, broadest first."""
        return [rank.column for rank in cls.iter_from_kingdom()]

    @classmethod
    def matchable_columns(cls) -> List[str]:
        """Columns searched when subsetting by taxon name: every rank plus
        the feature ID."""
        return cls.columns() + [OTU_COLUMN]
