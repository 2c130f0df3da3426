"""
Metadata module for LayerShift.
Resolves the per-subject context (gene, position, region) from the subject
summary table.
"""

import os
import logging
from dataclasses import dataclass

import pandas as pd

from layershift.exceptions import ConfigurationError, FileError, SubjectNotFoundError

# Configure logging
log = logging.getLogger("layershift")

REQUIRED_COLUMNS = ["aid", "gene", "position", "start", "end", "src_codon"]


@dataclass(frozen=True)
class SubjectContext:
    """Read-only description of the subject under analysis."""

    subject_id: str
    gene: str
    position: int
    start: int
    end: int
    source_codon: str

    @property
    def distance_from_gene_end(self) -> int:
        return (self.end - self.start) - self.position


def load_subject_context(metadata_file, subject_id) -> SubjectContext:
    """
    Look up one subject in the subject summary table.

    Args:
        metadata_file: Path to the CSV subject summary table
        subject_id: Value of the `aid` column to look up

    Returns:
        SubjectContext for the subject

    Raises:
        FileError: If the table does not exist
        ConfigurationError: If the table lacks required columns or has bad values
        SubjectNotFoundError: If the subject id is not in the table
    """
    if not os.path.exists(metadata_file):
        error_msg = f"Subject summary table not found: {metadata_file}"
        log.error(error_msg)
        raise FileError(error_msg)

    try:
        subject_table = pd.read_csv(metadata_file, dtype=str)
    except Exception as e:
        error_msg = f"Error reading subject summary table: {metadata_file}"
        log.error(error_msg)
        raise ConfigurationError(error_msg, details=str(e))

    missing = [col for col in REQUIRED_COLUMNS if col not in subject_table.columns]
    if missing:
        raise ConfigurationError(
            f"Subject summary table is missing required columns: {metadata_file}",
            details=", ".join(missing)
        )

    matches = subject_table[subject_table["aid"] == subject_id]
    if matches.empty:
        error_msg = f"Subject {subject_id} not found in metadata table"
        log.error(error_msg)
        raise SubjectNotFoundError(error_msg, details=str(metadata_file))

    if len(matches) > 1:
        log.warning(f"Subject {subject_id} appears {len(matches)} times in {metadata_file}; using the first row")

    row = matches.iloc[0]
    try:
        context = SubjectContext(
            subject_id=subject_id,
            gene=str(row["gene"]),
            position=int(pd.to_numeric(row["position"])),
            start=int(pd.to_numeric(row["start"])),
            end=int(pd.to_numeric(row["end"])),
            source_codon=str(row["src_codon"]),
        )
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid metadata for subject {subject_id}", details=str(e))

    log.info(f"Gene: {context.gene}, Position: {context.position}, Source codon: {context.source_codon}")
    return context
