"""
Reporting module for LayerShift.
Writes the ranked variant table and renders the top-K view on the console.
"""

import json
import math
import time
import logging
from pathlib import Path
from typing import Dict, Optional

import pandas as pd
from rich.console import Console
from rich.table import Table

from layershift.exceptions import ReportingError
from layershift.ranking import DEFAULT_TOP_K, SUMMARY_COLUMNS
from layershift.statistics import STAT_COLUMNS

# Configure logging
log = logging.getLogger("layershift")


def differential_series_frame(series: Dict[str, object]) -> pd.DataFrame:
    """
    Convert per-variant differential series to a long-format table.

    Positions are numbered from 1.
    """
    frames = [
        pd.DataFrame({
            "Variant": label,
            "Position": range(1, len(values) + 1),
            "Diff_Cos_Sim": values,
        })
        for label, values in series.items()
    ]
    if not frames:
        return pd.DataFrame(columns=["Variant", "Position", "Diff_Cos_Sim"])
    return pd.concat(frames, ignore_index=True)


def save_variant_summary(result, output_dir) -> Dict[str, Optional[Path]]:
    """
    Save the results of a comparison run.

    Writes `variant_summary_{subject}.csv` (sorted by impact), a JSON run
    summary and, when the run kept them, the per-position differential
    series.

    Args:
        result: ComparisonResult of the run
        output_dir: Directory to save results in

    Returns:
        Dictionary of the written paths
    """
    subject = result.context.subject_id
    output_dir = Path(output_dir)

    try:
        if not output_dir.exists():
            output_dir.mkdir(parents=True, exist_ok=True)
            log.info(f"Created output directory: {output_dir}")

        summary_path = output_dir / f"variant_summary_{subject}.csv"
        result.table.to_dataframe().to_csv(summary_path, index=False, na_rep="NaN")
        log.info(f"Saved summary statistics to: {summary_path}")

        series_path = None
        if result.series:
            series_path = output_dir / f"differential_series_{subject}.csv"
            differential_series_frame(result.series).to_csv(series_path, index=False, na_rep="NaN")
            log.info(f"Saved differential series to: {series_path}")

        top = result.table.top(1)
        json_data = {
            "analysis_time": time.strftime("%Y-%m-%d %H:%M:%S"),
            "subject": subject,
            "gene": result.context.gene,
            "position": result.context.position,
            "source_codon": result.context.source_codon,
            "layers": {"shallow": result.shallow_layer, "deep": result.deep_layer},
            "total_variants": len(result.table),
            "skipped_variants": [{"file": f, "reason": r} for f, r in result.skipped],
            "top_variant": top[0].variant if top else None,
        }
        json_path = output_dir / f"run_summary_{subject}.json"
        with open(json_path, "w") as f:
            json.dump(json_data, f, indent=2)
        log.info(f"Saved run summary to: {json_path}")

    except OSError as e:
        error_msg = f"Error saving results to {output_dir}"
        log.error(error_msg)
        raise ReportingError(error_msg, details=str(e))

    return {
        "summary_path": summary_path,
        "series_path": series_path,
        "json_path": json_path,
    }


def _format_value(value):
    if isinstance(value, float):
        return "NaN" if math.isnan(value) else f"{value:.4f}"
    return str(value)


def build_top_variants_table(table, k=DEFAULT_TOP_K, subject=None) -> Table:
    """Build a rich table of the k most impactful variants."""
    title = f"Top {k} Most Impactful Variants"
    if subject:
        title = f"{subject}: {title}"

    rich_table = Table(title=title)
    rich_table.add_column("Rank", justify="right")
    for column in SUMMARY_COLUMNS:
        rich_table.add_column(column, justify="right" if column in STAT_COLUMNS.values() else "left")

    for rank, record in enumerate(table.top(k), start=1):
        row = record.to_row()
        rich_table.add_row(str(rank), *(_format_value(row[column]) for column in SUMMARY_COLUMNS))

    return rich_table


def print_top_variants(table, k=DEFAULT_TOP_K, subject=None, console: Optional[Console] = None):
    """Print the top-K view of a sorted variant table."""
    console = console or Console()
    console.print()
    console.print(build_top_variants_table(table, k=k, subject=subject))
