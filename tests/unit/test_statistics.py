"""
Unit tests for the statistics module.
"""

import logging
import math

import numpy as np
import pytest

from layershift.exceptions import EmptySeriesError, ShapeMismatchError
from layershift.similarity import layer_differential, positionwise_cosine_similarity
from layershift.statistics import (
    DifferentialStatistics,
    VariantSummaryRecord,
    summarize_differential
)


class TestSummarizeDifferential:
    """Test the reduction of a differential series to summary statistics."""

    def test_worked_example(self):
        """Layer 14 [0.9, 0.8, 0.95] vs layer 28 [0.95, 0.6, 0.95]."""
        differential = layer_differential([0.9, 0.8, 0.95], [0.95, 0.6, 0.95])

        stats = summarize_differential(differential)

        assert stats.min_diff == pytest.approx(-0.2)
        assert stats.max_diff == pytest.approx(0.05)
        assert stats.range == pytest.approx(0.25)
        assert stats.mean_diff == pytest.approx(-0.05)
        assert stats.median_diff == pytest.approx(0.0, abs=1e-12)
        assert stats.abs_mean_diff == pytest.approx(0.25 / 3)

        # Sample standard deviation with N - 1 = 2
        values = np.array([0.05, -0.2, 0.0])
        expected_std = math.sqrt(((values - values.mean()) ** 2).sum() / 2)
        assert stats.std_diff == pytest.approx(expected_std)

    def test_identical_embeddings(self):
        """A variant identical to the source at both layers has no differential."""
        source = np.array([[1, 0], [0, 1], [1, 1]], dtype=float)
        shallow = positionwise_cosine_similarity(source, source.copy())
        deep = positionwise_cosine_similarity(source, source.copy())

        stats = summarize_differential(layer_differential(shallow, deep))

        assert stats.mean_diff == pytest.approx(0.0)
        assert stats.range == pytest.approx(0.0)
        assert stats.std_diff == pytest.approx(0.0)

    def test_range_is_exact_and_non_negative(self):
        rng = np.random.default_rng(5)
        for _ in range(25):
            stats = summarize_differential(rng.uniform(-2, 2, size=rng.integers(1, 40)))
            assert stats.range == stats.max_diff - stats.min_diff
            assert stats.range >= 0

    def test_abs_mean_dominates_mean(self):
        rng = np.random.default_rng(9)
        for _ in range(25):
            stats = summarize_differential(rng.uniform(-2, 2, size=rng.integers(2, 40)))
            assert stats.abs_mean_diff >= abs(stats.mean_diff)

    def test_empty_series_raises(self):
        with pytest.raises(EmptySeriesError):
            summarize_differential([])

    def test_empty_series_error_names_variant(self):
        with pytest.raises(EmptySeriesError) as exc_info:
            summarize_differential([], label="Ala_GCT")

        assert "Ala_GCT" in str(exc_info.value)
        assert "0 positions" in exc_info.value.details

    def test_two_dimensional_input_rejected(self):
        """A matrix is not flattened into a series."""
        with pytest.raises(ShapeMismatchError) as exc_info:
            summarize_differential([[0.1, 0.2], [0.3, 0.4]], label="Ala_GCT")

        assert "(2, 2)" in exc_info.value.details
        assert "Ala_GCT" in exc_info.value.details

    def test_single_position(self):
        """One position: every statistic defined except the sample deviation."""
        stats = summarize_differential([0.3])

        assert stats.min_diff == stats.max_diff == pytest.approx(0.3)
        assert stats.range == 0
        assert stats.abs_mean_diff == pytest.approx(0.3)
        assert math.isnan(stats.std_diff)

    def test_nan_is_propagated(self):
        """Zero-norm positions stay visible in the summary."""
        stats = summarize_differential([0.1, float("nan"), -0.1])

        assert math.isnan(stats.mean_diff)
        assert math.isnan(stats.abs_mean_diff)
        assert math.isnan(stats.min_diff)

    def test_nan_warning_names_variant(self, caplog):
        with caplog.at_level(logging.WARNING, logger="layershift"):
            summarize_differential([0.1, float("nan"), float("nan")], label="Trp_TGG")

        assert any(
            "Trp_TGG" in record.getMessage() and "2 NaN" in record.getMessage()
            for record in caplog.records
        )

    def test_input_is_not_modified(self):
        series = np.array([0.2, -0.4, 0.1])
        original = series.copy()

        summarize_differential(series)

        np.testing.assert_array_equal(series, original)
        assert series.flags.writeable


class TestVariantSummaryRecord:
    """Test the summary record."""

    def make_record(self):
        stats = DifferentialStatistics(
            min_diff=-0.2, max_diff=0.05, range=0.25, mean_diff=-0.05,
            median_diff=0.0, std_diff=0.13, abs_mean_diff=0.083
        )
        return VariantSummaryRecord(variant="Ala_GCT", codon="GCT", amino_acid="Ala", stats=stats)

    def test_record_is_immutable(self):
        record = self.make_record()
        with pytest.raises(AttributeError):
            record.variant = "Trp_TGG"

    def test_to_row(self):
        row = self.make_record().to_row()

        assert list(row) == [
            "Variant", "Codon", "Amino_Acid", "Min_Diff", "Max_Diff", "Range",
            "Mean_Diff", "Median_Diff", "Std_Diff", "Abs_Mean_Diff"
        ]
        assert row["Variant"] == "Ala_GCT"
        assert row["Abs_Mean_Diff"] == 0.083
