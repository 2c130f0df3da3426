"""
Statistics module for LayerShift.
Reduces a layer differential series to the summary record used for ranking.
"""

import logging
from dataclasses import dataclass, asdict
from typing import Dict

import numpy as np

from layershift.exceptions import EmptySeriesError, ShapeMismatchError

# Configure logging
log = logging.getLogger("layershift")

# Column names used in the exported summary table, keyed by field name
STAT_COLUMNS = {
    "min_diff": "Min_Diff",
    "max_diff": "Max_Diff",
    "range": "Range",
    "mean_diff": "Mean_Diff",
    "median_diff": "Median_Diff",
    "std_diff": "Std_Diff",
    "abs_mean_diff": "Abs_Mean_Diff",
}


@dataclass(frozen=True)
class DifferentialStatistics:
    """Summary statistics of one layer differential series."""

    min_diff: float
    max_diff: float
    range: float
    mean_diff: float
    median_diff: float
    std_diff: float
    abs_mean_diff: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class VariantSummaryRecord:
    """Identity of one variant plus the statistics of its differential series."""

    variant: str
    codon: str
    amino_acid: str
    stats: DifferentialStatistics

    @property
    def abs_mean_diff(self) -> float:
        return self.stats.abs_mean_diff

    def to_row(self) -> Dict[str, object]:
        """Flatten the record into a row keyed by the exported column names."""
        row = {
            "Variant": self.variant,
            "Codon": self.codon,
            "Amino_Acid": self.amino_acid,
        }
        for field_name, column in STAT_COLUMNS.items():
            row[column] = getattr(self.stats, field_name)
        return row


def summarize_differential(series, label=None) -> DifferentialStatistics:
    """
    Compute the seven summary statistics of a differential series.

    The series is copied into a read-only snapshot first, so every statistic
    is derived from the same values. NaN entries (zero-norm positions)
    propagate into every statistic.

    Args:
        series: 1-D sequence of per-position differentials
        label: Variant label used in log and error messages

    Returns:
        DifferentialStatistics instance

    Raises:
        ShapeMismatchError: If the series is not one-dimensional
        EmptySeriesError: If the series has no positions
    """
    prefix = f"{label}: " if label else ""

    snapshot = np.array(series, dtype=np.float64, copy=True)
    snapshot.flags.writeable = False

    if snapshot.ndim != 1:
        raise ShapeMismatchError(
            "Differential series must be one-dimensional",
            details=f"{prefix}got shape {snapshot.shape}"
        )

    if snapshot.size == 0:
        raise EmptySeriesError(details=f"{label or 'differential'} has 0 positions")

    nan_count = int(np.isnan(snapshot).sum())
    if nan_count:
        log.warning(f"{prefix}differential series contains {nan_count} NaN position(s)")

    min_diff = float(np.min(snapshot))
    max_diff = float(np.max(snapshot))

    # Sample standard deviation is undefined for a single position
    std_diff = float(np.std(snapshot, ddof=1)) if snapshot.size > 1 else float("nan")

    return DifferentialStatistics(
        min_diff=min_diff,
        max_diff=max_diff,
        range=max_diff - min_diff,
        mean_diff=float(np.mean(snapshot)),
        median_diff=float(np.median(snapshot)),
        std_diff=std_diff,
        abs_mean_diff=float(np.mean(np.abs(snapshot))),
    )
