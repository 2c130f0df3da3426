"""
Codon table module for LayerShift.
Loads the codon to amino acid mapping used to label variants.
"""

import os
import logging
from types import MappingProxyType
from typing import Mapping

import pandas as pd

from layershift.exceptions import ConfigurationError, FileError, UnmappedCodonError

# Configure logging
log = logging.getLogger("layershift")

CODON_COLUMN = "codon"
CATEGORY_COLUMN = "aa"


def load_codon_table(codon_table_file) -> Mapping[str, str]:
    """
    Read a tab-delimited codon table.

    Args:
        codon_table_file: Path to a file with `codon` and `aa` columns

    Returns:
        Read-only mapping from codon to amino acid
    """
    if not os.path.exists(codon_table_file):
        error_msg = f"Codon table not found: {codon_table_file}"
        log.error(error_msg)
        raise FileError(error_msg)

    try:
        codon_df = pd.read_csv(codon_table_file, sep="\t", dtype=str, keep_default_na=False)
    except Exception as e:
        error_msg = f"Error reading codon table: {codon_table_file}"
        log.error(error_msg)
        raise ConfigurationError(error_msg, details=str(e))

    missing = {CODON_COLUMN, CATEGORY_COLUMN} - set(codon_df.columns)
    if missing:
        raise ConfigurationError(
            f"Codon table is missing required columns: {codon_table_file}",
            details=", ".join(sorted(missing))
        )

    codon_df[CODON_COLUMN] = codon_df[CODON_COLUMN].str.strip()
    codon_df[CATEGORY_COLUMN] = codon_df[CATEGORY_COLUMN].str.strip()

    # The same codon listed twice must agree on its amino acid
    conflicts = codon_df.groupby(CODON_COLUMN)[CATEGORY_COLUMN].nunique()
    conflicts = conflicts[conflicts > 1]
    if not conflicts.empty:
        raise ConfigurationError(
            f"Codon table assigns several amino acids to the same codon: {codon_table_file}",
            details=", ".join(conflicts.index)
        )

    codon_map = dict(zip(codon_df[CODON_COLUMN], codon_df[CATEGORY_COLUMN]))
    log.info(f"Loaded {len(codon_map)} codons from {codon_table_file}")

    return MappingProxyType(codon_map)


def lookup_amino_acid(codon_map: Mapping[str, str], codon: str) -> str:
    """
    Resolve a codon to its amino acid.

    Raises:
        UnmappedCodonError: If the codon is absent or maps to an empty label
    """
    amino_acid = codon_map.get(codon)
    if not amino_acid:
        raise UnmappedCodonError(details=repr(codon))
    return amino_acid
