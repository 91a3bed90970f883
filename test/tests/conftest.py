"""Shared pytest fixtures for ampliconkit tests."""

import logging

import polars as pl
import pytest
from Bio.Seq import Seq
from Bio.SeqRecord import SeqRecord

from ampliconkit.wrangle.dataset import AmpliconDataset

# Configure debug logging for tests
logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)


# Data fixtures - small synthetic datasets


@pytest.fixture
def sample_taxonomy_data():
    """Taxonomy for five OTUs, with unassigned ranks as bare prefixes."""
    return {
        "OTU": ["OTU_1", "OTU_2", "OTU_3", "OTU_4", "OTU_5"],
        "Kingdom": ["k__Bacteria"] * 4 + ["k__Archaea"],
        "Phylum": [
            "p__Chloroflexi",
            "p__Proteobacteria",
            "p__Actinobacteria",
            "p__Proteobacteria",
            "p__Euryarchaeota",
        ],
        "Class": [
            "c__Anaerolineae",
            "c__Betaproteobacteria",
            "c__Actinobacteria",
            "c__Gammaproteobacteria",
            "c__Methanomicrobia",
        ],
        "Order": [
            "o__Anaerolineales",
            "o__Burkholderiales",
            "o__Micrococcales",
            "o__",
            "o__Methanosarcinales",
        ],
        "Family": [
            "f__Anaerolineaceae",
            "f__Comamonadaceae",
            "f__Intrasporangiaceae",
            "f__",
            "f__Methanosaetaceae",
        ],
        "Genus": [
            "g__Sarcinithrix",
            "g__Rhodoferax",
            "g__Tetrasphaera",
            "g__",
            "g__Methanosaeta",
        ],
        "Species": ["s__", "s__", "s__", "s__", "s__"],
    }


@pytest.fixture
def sample_abundance_data():
    """Counts for five OTUs in four samples. S4 has no reads."""
    return {
        "OTU": ["OTU_1", "OTU_2", "OTU_3", "OTU_4", "OTU_5"],
        "S1": [10, 20, 30, 40, 0],
        "S2": [5, 0, 5, 0, 10],
        "S3": [0, 100, 50, 25, 25],
        "S4": [0, 0, 0, 0, 0],
    }


@pytest.fixture
def sample_metadata_data():
    """Sample metadata."""
    return {
        "SampleID": ["S1", "S2", "S3", "S4"],
        "Plant": ["Aalborg West", "Aalborg East", "Aalborg West", "Ejby Moelle"],
        "Year": [2012, 2012, 2013, 2013],
    }


@pytest.fixture
def sample_sequences():
    """Reference sequences keyed by OTU ID."""
    bases = ["ACGT", "GGCC", "TTAA", "CAGT", "GATC"]
    return {
        f"OTU_{i}": SeqRecord(Seq(seq), id=f"OTU_{i}", description="")
        for i, seq in enumerate(bases, start=1)
    }


# Instance fixtures - AmpliconDataset


@pytest.fixture
def sample_dataset(
    sample_abundance_data, sample_taxonomy_data, sample_metadata_data
):
    """AmpliconDataset without reference sequences."""
    return AmpliconDataset(
        abundance=pl.DataFrame(sample_abundance_data),
        taxonomy=pl.DataFrame(sample_taxonomy_data),
        metadata=pl.DataFrame(sample_metadata_data),
    )


@pytest.fixture
def sample_dataset_with_sequences(
    sample_abundance_data,
    sample_taxonomy_data,
    sample_metadata_data,
    sample_sequences,
):
    """AmpliconDataset with reference sequences."""
    return AmpliconDataset(
        abundance=pl.DataFrame(sample_abundance_data),
        taxonomy=pl.DataFrame(sample_taxonomy_data),
        metadata=pl.DataFrame(sample_metadata_data),
        sequences=sample_sequences,
    )


@pytest.fixture
def three_otu_dataset():
    """F1 (p__A), F2 (p__B) and F3 (g__X) in two samples."""
    taxonomy = {
        "OTU": ["F1", "F2", "F3"],
        "Kingdom": ["k__Bacteria"] * 3,
        "Phylum": ["p__A", "p__B", "p__C"],
        "Class": ["c__"] * 3,
        "Order": ["o__"] * 3,
        "Family": ["f__"] * 3,
        "Genus": ["g__", "g__", "g__X"],
        "Species": ["s__"] * 3,
    }
    abundance = {"OTU": ["F1", "F2", "F3"], "S1": [1, 2, 3], "S2": [4, 5, 6]}
    return AmpliconDataset(
        abundance=pl.DataFrame(abundance), taxonomy=pl.DataFrame(taxonomy)
    )


@pytest.fixture
def single_otu_dataset():
    """One OTU in three samples, the second without reads."""
    taxonomy = {
        "OTU": ["F1"],
        "Kingdom": ["k__Bacteria"],
        "Phylum": ["p__A"],
        "Class": ["c__"],
        "Order": ["o__"],
        "Family": ["f__"],
        "Genus": ["g__"],
        "Species": ["s__"],
    }
    abundance = {"OTU": ["F1"], "S1": [10], "S2": [0], "S3": [5]}
    return AmpliconDataset(
        abundance=pl.DataFrame(abundance), taxonomy=pl.DataFrame(taxonomy)
    )


@pytest.fixture
def config_yaml(tmp_path):
    """YAML configuration enabling normalisation."""
    path = tmp_path / "config.yaml"
    path.write_text(
        "logging:\n"
        "  level: DEBUG\n"
        "subset:\n"
        "  normalise: true\n"
        "  remove: false\n"
    )
    return path
