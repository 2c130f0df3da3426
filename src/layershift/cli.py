"""
Command-line interface module for LayerShift.
Handles argument parsing, logging setup and configuration.
"""

import argparse
import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from layershift.ranking import DEFAULT_TOP_K
from layershift.variants import CODON_OFFSET
from layershift.workflow import console, run_analysis_workflow


def parse_args(argv=None):
    """
    Parse command-line arguments for LayerShift.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description="Compare variant embeddings against the source across a shallow and a deep layer"
    )

    # Input/output arguments
    parser.add_argument("subject", help="Subject id to analyze (the `aid` column of the metadata table)")
    parser.add_argument("--project-root", type=str, default=".",
                        help="Directory that relative data paths are resolved against")
    parser.add_argument("--codon-table", type=str, default="data/input/codon_table",
                        help="Tab-delimited codon table with `codon` and `aa` columns")
    parser.add_argument("--metadata", type=str, default="data/example/subject_summary_table_test.csv",
                        help="Subject summary table (CSV)")
    parser.add_argument("--jobs-dir", type=str, default="jobs",
                        help="Directory holding the embedding job outputs")
    parser.add_argument("--output-dir", type=str, default="figures",
                        help="Output directory for results")

    # Comparison options
    parser.add_argument("--shallow-layer", type=str, default="14",
                        help="Shallow layer number")
    parser.add_argument("--deep-layer", type=str, default="28",
                        help="Deep layer number")
    parser.add_argument("--codon-offset", type=int, default=CODON_OFFSET,
                        help="Zero-based offset of the codon in variant file names")
    parser.add_argument("--top-k", type=int, default=DEFAULT_TOP_K,
                        help="Number of top variants to print")
    parser.add_argument("--workers", type=int, default=1,
                        help="Number of worker threads for the per-variant comparison")
    parser.add_argument("--save-series", action="store_true",
                        help="Also save the per-position differential series of every variant")

    # Caching arguments
    parser.add_argument("--cache-dir", default="./cache",
                        help="Directory for caching per-variant results")
    parser.add_argument("--cache-max-age", type=int, default=24,
                        help="Maximum age of cache in hours")
    parser.add_argument("--no-cache", action="store_true",
                        help="Disable caching")

    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level")

    args = parser.parse_args(argv)

    if args.top_k < 0:
        parser.error(f"--top-k must be non-negative, got {args.top_k}")

    # Convert string paths to Path objects
    args.project_root = Path(args.project_root)
    args.output_dir = Path(args.output_dir)
    args.cache_dir = Path(args.cache_dir)

    return args


def configure_logging(level="INFO", console=None):
    """Route log records through a rich handler."""
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, console=console or Console())]
    )


def main(argv=None):
    """Entry point for the `layershift` command."""
    args = parse_args(argv)
    configure_logging(args.log_level, console=console)
    run_analysis_workflow(args)
    return 0


if __name__ == "__main__":
    main()
