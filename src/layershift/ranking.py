"""
Ranking module for LayerShift.
Collects one summary record per variant and orders them by impact.
"""

import logging
import math
from typing import List, Tuple

import pandas as pd

from layershift.exceptions import DuplicateVariantError, TableFrozenError
from layershift.statistics import STAT_COLUMNS, VariantSummaryRecord

# Configure logging
log = logging.getLogger("layershift")

SUMMARY_COLUMNS = ["Variant", "Codon", "Amino_Acid"] + list(STAT_COLUMNS.values())

DEFAULT_TOP_K = 10


class VariantTable:
    """
    Ordered table of variant summary records.

    Records are appended in discovery order. Sorting is a single terminal
    step: descending by absolute mean difference, ties kept in discovery
    order, NaN impacts last. Once sorted the table can no longer change.
    """

    def __init__(self):
        self._records: List[VariantSummaryRecord] = []
        self._labels = set()
        self._sorted = False

    def __len__(self):
        return len(self._records)

    def __iter__(self):
        return iter(self._records)

    def __contains__(self, label):
        return label in self._labels

    @property
    def is_sorted(self) -> bool:
        return self._sorted

    @property
    def records(self) -> Tuple[VariantSummaryRecord, ...]:
        return tuple(self._records)

    def append(self, record: VariantSummaryRecord):
        """
        Add a record to the end of the table.

        Raises:
            TableFrozenError: If the table has already been sorted
            DuplicateVariantError: If a record with the same label exists
        """
        if self._sorted:
            raise TableFrozenError(details=f"cannot append {record.variant}")
        if record.variant in self._labels:
            raise DuplicateVariantError(details=record.variant)

        self._records.append(record)
        self._labels.add(record.variant)

    def _ranked(self) -> List[VariantSummaryRecord]:
        """Records in ranking order, without modifying the table."""
        if self._sorted:
            return list(self._records)

        ranked = [r for r in self._records if not math.isnan(r.abs_mean_diff)]
        unranked = [r for r in self._records if math.isnan(r.abs_mean_diff)]

        # sorted() is stable, so equal impacts keep their discovery order
        return sorted(ranked, key=lambda r: r.abs_mean_diff, reverse=True) + unranked

    def sort(self):
        """Sort by impact, descending. Calling it again is a no-op."""
        if self._sorted:
            return self

        unranked = sum(1 for r in self._records if math.isnan(r.abs_mean_diff))
        if unranked:
            log.warning(f"{unranked} variant(s) with undefined impact placed at the end of the ranking")

        self._records = self._ranked()
        self._sorted = True
        return self

    def top(self, k: int = DEFAULT_TOP_K) -> Tuple[VariantSummaryRecord, ...]:
        """
        Return the k most impactful records.

        Returns every record when the table holds fewer than k.
        """
        if k < 0:
            raise ValueError(f"k must be non-negative, got {k}")
        return tuple(self._ranked()[:k])

    def to_dataframe(self) -> pd.DataFrame:
        """Export the table in ranking order with one row per variant."""
        records = self._ranked()
        if not records:
            return pd.DataFrame(columns=SUMMARY_COLUMNS)
        return pd.DataFrame([r.to_row() for r in records], columns=SUMMARY_COLUMNS)
