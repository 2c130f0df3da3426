"""
Workflow module for LayerShift.
Handles the per-variant comparison pipeline and the orchestration of a full run.
"""

import sys
import logging
import traceback
import concurrent.futures
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Tuple

import numpy as np
from rich.console import Console
from rich.progress import Progress, TextColumn, BarColumn, TimeElapsedColumn, TimeRemainingColumn

from layershift.caching import AnalysisCache
from layershift.codon_table import load_codon_table
from layershift.embedding_store import EmbeddingStore
from layershift.exceptions import (
    LayerShiftError,
    ConfigurationError,
    DataProcessingError,
    ShapeMismatchError,
    RECOVERABLE_VARIANT_ERRORS
)
from layershift.metadata import SubjectContext, load_subject_context
from layershift.ranking import VariantTable
from layershift.reporting import print_top_variants, save_variant_summary
from layershift.similarity import layer_differential, positionwise_cosine_similarity
from layershift.statistics import VariantSummaryRecord, summarize_differential
from layershift.variants import CODON_OFFSET, VariantIdentity, discover_variants

# Configure logging
log = logging.getLogger("layershift")
console = Console()

CACHE_ANALYSIS_TYPE = "variant_summary"


@dataclass
class ComparisonResult:
    """Complete output of one comparison run."""

    context: SubjectContext
    table: VariantTable
    shallow_layer: str
    deep_layer: str
    skipped: List[Tuple[str, str]] = field(default_factory=list)
    series: Dict[str, np.ndarray] = field(default_factory=dict)


def load_source_embeddings(store, context, shallow_layer, deep_layer):
    """
    Load the source embedding matrix at both layers.

    Raises:
        EmbeddingLoadError: If either source tensor is missing or unreadable
        ShapeMismatchError: If the two layers disagree on the position count
        DataProcessingError: If the source embeddings have no positions
    """
    log.info("Loading source embeddings...")
    source_shallow = store.load_source(context.subject_id, context.gene, shallow_layer)
    source_deep = store.load_source(context.subject_id, context.gene, deep_layer)

    for layer, matrix in ((shallow_layer, source_shallow), (deep_layer, source_deep)):
        if matrix.shape[0] == 0:
            raise DataProcessingError(
                f"Source embedding at layer {layer} has no positions",
                details=f"{store.source_path(context.subject_id, context.gene, layer)} has shape {matrix.shape}"
            )

    if source_shallow.shape[0] != source_deep.shape[0]:
        raise ShapeMismatchError(
            f"Source embeddings at layers {shallow_layer} and {deep_layer} differ in position count",
            details=f"{source_shallow.shape[0]} vs {source_deep.shape[0]} positions"
        )

    log.info(f"Source embeddings: {source_shallow.shape[0]} positions, "
             f"{source_shallow.shape[1]}/{source_deep.shape[1]} dimensions")
    return source_shallow, source_deep


def compare_variant(store, context, identity: VariantIdentity, source_shallow, source_deep,
                    shallow_layer, deep_layer) -> Tuple[VariantSummaryRecord, np.ndarray]:
    """
    Run the comparison pipeline for one variant.

    Each variant matrix is released as soon as its similarity series is
    computed, so only one layer of one variant is held at a time.

    Returns:
        Tuple of the summary record and the layer differential series

    Raises:
        ShapeMismatchError: If a variant matrix does not match its source
        EmbeddingLoadError: If a variant tensor is missing or unreadable
    """
    label = identity.label

    variant_matrix = store.load_variant(context.subject_id, shallow_layer, identity.filename)
    shallow_similarity = positionwise_cosine_similarity(
        source_shallow, variant_matrix, label=f"{label} at layer {shallow_layer}"
    )
    del variant_matrix

    variant_matrix = store.load_variant(context.subject_id, deep_layer, identity.companion)
    deep_similarity = positionwise_cosine_similarity(
        source_deep, variant_matrix, label=f"{label} at layer {deep_layer}"
    )
    del variant_matrix

    differential = layer_differential(shallow_similarity, deep_similarity, label=label)
    stats = summarize_differential(differential, label=label)

    record = VariantSummaryRecord(
        variant=label,
        codon=identity.codon,
        amino_acid=identity.amino_acid,
        stats=stats,
    )
    return record, differential


def _cached_compare(store, context, identity, source_shallow, source_deep,
                    shallow_layer, deep_layer, cache: Optional[AnalysisCache]):
    """Compare one variant, reusing a cached result when the inputs are unchanged."""
    if cache is None or not cache.enabled:
        return compare_variant(store, context, identity, source_shallow, source_deep,
                               shallow_layer, deep_layer)

    embedding_paths = [
        store.source_path(context.subject_id, context.gene, shallow_layer),
        store.source_path(context.subject_id, context.gene, deep_layer),
        store.variant_path(context.subject_id, shallow_layer, identity.filename),
        store.variant_path(context.subject_id, deep_layer, identity.companion),
    ]
    params = {"label": identity.label, "shallow": shallow_layer, "deep": deep_layer}

    cached = cache.get(embedding_paths, CACHE_ANALYSIS_TYPE, params)
    if cached is not None:
        log.debug(f"Using cached result for {identity.label}")
        return cached

    result = compare_variant(store, context, identity, source_shallow, source_deep,
                             shallow_layer, deep_layer)
    cache.set(result, embedding_paths, CACHE_ANALYSIS_TYPE, params)
    return result


def run_comparison(
    context: SubjectContext,
    codon_map: Mapping[str, str],
    store: EmbeddingStore,
    shallow_layer="14",
    deep_layer="28",
    codon_offset: int = CODON_OFFSET,
    workers: int = 1,
    cache: Optional[AnalysisCache] = None,
    keep_series: bool = False,
    progress_callback: Optional[Callable[[int, int, str], None]] = None
) -> ComparisonResult:
    """
    Compare every variant of a subject between two layers and rank them.

    Variants that cannot be identified or loaded are skipped with a warning.
    Shape mismatches abort the whole run.

    Args:
        context: Subject context
        codon_map: Codon to amino acid mapping
        store: EmbeddingStore holding the tensors
        shallow_layer: Shallow layer number
        deep_layer: Deep layer number
        codon_offset: Zero-based codon offset in variant file names
        workers: Number of worker threads (1 runs sequentially)
        cache: Optional AnalysisCache for per-variant results
        keep_series: Keep each variant's differential series in the result
        progress_callback: Called as (processed, total, label) after each variant

    Returns:
        ComparisonResult with a sorted VariantTable

    Raises:
        ConfigurationError: If the two layers are the same
        DataProcessingError: If no variant could be compared
    """
    shallow_layer, deep_layer = str(shallow_layer), str(deep_layer)
    if shallow_layer == deep_layer:
        raise ConfigurationError("Shallow and deep layers must differ", details=shallow_layer)
    if workers < 1:
        raise ConfigurationError("Number of workers must be at least 1", details=str(workers))

    source_shallow, source_deep = load_source_embeddings(store, context, shallow_layer, deep_layer)

    discovery = discover_variants(store, context.subject_id, codon_map, shallow_layer,
                                  deep_layer, offset=codon_offset)
    variants = discovery.variants
    skipped = list(discovery.skipped)
    total = len(variants)

    log.info(f"Processing {total} variants...")

    def process(identity):
        return _cached_compare(store, context, identity, source_shallow, source_deep,
                               shallow_layer, deep_layer, cache)

    table = VariantTable()
    series = {}

    def collect(index, identity, outcome):
        record, differential = outcome
        table.append(record)
        if keep_series:
            series[record.variant] = differential
        if progress_callback:
            progress_callback(index, total, identity.label)

    def skip(index, identity, error):
        log.warning(f"Skipping variant {identity.label}: {error}")
        skipped.append((identity.filename, str(error)))
        if progress_callback:
            progress_callback(index, total, identity.label)

    if workers == 1:
        for index, identity in enumerate(variants, start=1):
            log.info(f"Processing variant {index}/{total}: {identity.label}")
            try:
                outcome = process(identity)
            except RECOVERABLE_VARIANT_ERRORS as e:
                skip(index, identity, e)
                continue
            collect(index, identity, outcome)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(process, identity) for identity in variants]
            try:
                # Results are merged in discovery order on this thread only
                for index, (identity, future) in enumerate(zip(variants, futures), start=1):
                    try:
                        outcome = future.result()
                    except RECOVERABLE_VARIANT_ERRORS as e:
                        skip(index, identity, e)
                        continue
                    log.info(f"Processed variant {index}/{total}: {identity.label}")
                    collect(index, identity, outcome)
            except BaseException:
                for future in futures:
                    future.cancel()
                raise

    if len(table) == 0:
        error_msg = f"No variants could be compared for subject {context.subject_id}"
        log.error(error_msg)
        raise DataProcessingError(error_msg, details=f"{len(skipped)} variant(s) skipped")

    table.sort()
    log.info(f"Ranked {len(table)} variants ({len(skipped)} skipped)")

    return ComparisonResult(
        context=context,
        table=table,
        shallow_layer=shallow_layer,
        deep_layer=deep_layer,
        skipped=skipped,
        series=series,
    )


def resolve_path(project_root, path) -> Path:
    """Resolve a configured path against the project root unless it is absolute."""
    path = Path(path)
    return path if path.is_absolute() else Path(project_root) / path


def setup_environment(args):
    """
    Load the run's collaborators.

    Args:
        args: Command-line arguments namespace

    Returns:
        Tuple containing codon_map, context, store, cache, output_dir
    """
    if str(args.shallow_layer) == str(args.deep_layer):
        raise ConfigurationError("Shallow and deep layers must differ", details=str(args.shallow_layer))
    if args.top_k < 0:
        raise ConfigurationError("Number of top variants must be non-negative", details=str(args.top_k))

    codon_map = load_codon_table(resolve_path(args.project_root, args.codon_table))
    context = load_subject_context(resolve_path(args.project_root, args.metadata), args.subject)
    store = EmbeddingStore(resolve_path(args.project_root, args.jobs_dir))

    cache = AnalysisCache(
        cache_dir=resolve_path(args.project_root, args.cache_dir),
        max_age_hours=args.cache_max_age,
        enabled=not args.no_cache
    )

    output_dir = (resolve_path(args.project_root, args.output_dir)
                  / args.subject / f"{args.shallow_layer}v{args.deep_layer}")

    return codon_map, context, store, cache, output_dir


def print_configuration(args, context, output_dir, cache):
    """Print configuration information."""
    console.print(f"Starting analysis for subject: {args.subject}")
    console.print("Configuration:")
    console.print(f"  Gene: {context.gene}")
    console.print(f"  Position: {context.position} (distance from gene end: {context.distance_from_gene_end})")
    console.print(f"  Source codon: {context.source_codon}")
    console.print(f"  Layers: {args.shallow_layer} vs {args.deep_layer}")
    console.print(f"  Jobs Directory: {resolve_path(args.project_root, args.jobs_dir)}")
    console.print(f"  Output Directory: {output_dir}")
    console.print(f"  Worker Threads: {args.workers}")
    console.print(f"  Caching: {'Enabled' if cache.enabled else 'Disabled'}")
    if cache.enabled:
        console.print(f"  Cache Entries: {cache.count_entries()} ({cache.get_total_size():.2f} MB)")
    console.print("")


def run_analysis_workflow(args):
    """
    Run the full analysis for one subject.

    Args:
        args: Command-line arguments namespace

    Returns:
        ComparisonResult of the run
    """
    try:
        codon_map, context, store, cache, output_dir = setup_environment(args)
        print_configuration(args, context, output_dir, cache)

        with Progress(
            TextColumn("Comparing variants"),
            BarColumn(),
            TextColumn("{task.completed}/{task.total}"),
            TimeElapsedColumn(),
            TimeRemainingColumn(),
            console=console,
            transient=True
        ) as progress:
            task = progress.add_task("", total=None)

            def progress_callback(processed, total, label):
                progress.update(task, completed=processed, total=total)

            result = run_comparison(
                context=context,
                codon_map=codon_map,
                store=store,
                shallow_layer=args.shallow_layer,
                deep_layer=args.deep_layer,
                codon_offset=args.codon_offset,
                workers=args.workers,
                cache=cache,
                keep_series=args.save_series,
                progress_callback=progress_callback
            )

        save_variant_summary(result, output_dir)
        print_top_variants(result.table, k=args.top_k, subject=args.subject, console=console)

        console.print(f"\n[bold green]Analysis complete for subject {args.subject}![/]")
        console.print(f"Results saved in: {output_dir}")
        return result

    except LayerShiftError as e:
        console.print(f"[bold red]LayerShift Error:[/] {e.message}")
        if e.details:
            console.print(f"[bold red]Details:[/] {e.details}")
        sys.exit(1)
    except Exception as e:
        console.print(f"[bold red]Unhandled exception:[/] {e}")
        console.print(traceback.format_exc())
        sys.exit(1)
