"""
Test configuration for LayerShift.
"""

import sys
import pytest
import numpy as np
import pandas as pd
from pathlib import Path

# Add the source directory to the Python path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

SUBJECT = "BAA"
GENE = "GENE1"

CODON_TABLE = {
    "GCT": "Ala",
    "TGG": "Trp",
    "AAA": "Lys",
    "CCC": "Pro",
    "ATG": "Met",
}

# Five positions, four dimensions, no zero rows
SOURCE_MATRIX = np.arange(1, 21, dtype=np.float64).reshape(5, 4)


def variant_filename(codon, layer="14"):
    """Variant file name with the codon at offset 10."""
    return f"input_l{layer}_{codon}_embeddings.npy"


def write_embedding(path, matrix):
    """Save a matrix the way embedding jobs do, with a leading singleton axis."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    np.save(path, np.asarray(matrix)[np.newaxis, ...])
    return path


def write_codon_table(path, codon_table=None):
    codon_table = CODON_TABLE if codon_table is None else codon_table
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    pd.DataFrame({"codon": list(codon_table), "aa": list(codon_table.values())}).to_csv(
        path, sep="\t", index=False
    )
    return path


def write_metadata(path, rows=None):
    if rows is None:
        rows = [
            {"aid": SUBJECT, "gene": GENE, "position": 120, "start": 1000, "end": 1900, "src_codon": "ATG"},
            {"aid": "OTHER", "gene": "GENE2", "position": 3, "start": 10, "end": 40, "src_codon": "GCT"},
        ]
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    pd.DataFrame(rows).to_csv(path, index=False)
    return path


def build_job_tree(root, subject=SUBJECT, gene=GENE):
    """
    Build a project tree with a codon table, metadata and embedding jobs.

    Variants, by expected impact:
      TGG: identical at layer 14, negated at layer 28 (differential -2 everywhere)
      AAA: identical at layer 14, two of five positions negated at layer 28
      GCT: identical to the source at both layers (differential 0)
      CCC: no layer 28 companion, skipped
      ZZZ: not in the codon table, skipped
    """
    root = Path(root)
    write_codon_table(root / "data" / "input" / "codon_table")
    write_metadata(root / "data" / "example" / "subject_summary_table_test.csv")

    jobs = root / "jobs"
    for layer in ("14", "28"):
        write_embedding(
            jobs / f"subject-layer-{layer}" / "output"
            / f"input_{subject}_{gene}_source_embeddings_blocks_{layer}_mlp_l3.npy",
            SOURCE_MATRIX
        )

    shallow_dir = jobs / f"variant-embeddings-{subject.lower()}_14" / "output"
    deep_dir = jobs / f"variant-embeddings-{subject.lower()}_28" / "output"

    partly_negated = SOURCE_MATRIX.copy()
    partly_negated[[1, 3]] *= -1

    deep_variants = {
        "TGG": -SOURCE_MATRIX,
        "AAA": partly_negated,
        "GCT": SOURCE_MATRIX,
        "ZZZ": SOURCE_MATRIX,
    }
    for codon in ("TGG", "AAA", "GCT", "CCC", "ZZZ"):
        write_embedding(shallow_dir / variant_filename(codon, "14"), SOURCE_MATRIX)
        if codon in deep_variants:
            write_embedding(deep_dir / variant_filename(codon, "28"), deep_variants[codon])

    return {
        "root": root,
        "jobs_dir": jobs,
        "codon_table": root / "data" / "input" / "codon_table",
        "metadata": root / "data" / "example" / "subject_summary_table_test.csv",
        "shallow_dir": shallow_dir,
        "deep_dir": deep_dir,
    }


@pytest.fixture
def job_tree(tmp_path):
    """A synthetic project tree for subject BAA."""
    return build_job_tree(tmp_path / "project")


@pytest.fixture
def cache_dir(tmp_path):
    """Return a temporary cache directory for testing."""
    cache_dir = tmp_path / "cache"
    cache_dir.mkdir(exist_ok=True, parents=True)
    return cache_dir


@pytest.fixture
def codon_map():
    return dict(CODON_TABLE)
