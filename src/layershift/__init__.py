"""
LayerShift: ranks sequence variants by how much their embeddings' similarity
to the source changes between a shallow and a deep network layer.
"""

from .similarity import cosine_similarity, positionwise_cosine_similarity, layer_differential
from .statistics import DifferentialStatistics, VariantSummaryRecord, summarize_differential
from .ranking import VariantTable
from .embedding_store import EmbeddingStore
from .metadata import SubjectContext, load_subject_context
from .codon_table import load_codon_table
from .variants import VariantIdentity, discover_variants, resolve_variant
from .workflow import ComparisonResult, run_comparison

__version__ = "0.1.0"

__all__ = [
    'cosine_similarity',
    'positionwise_cosine_similarity',
    'layer_differential',
    'DifferentialStatistics',
    'VariantSummaryRecord',
    'summarize_differential',
    'VariantTable',
    'EmbeddingStore',
    'SubjectContext',
    'load_subject_context',
    'load_codon_table',
    'VariantIdentity',
    'discover_variants',
    'resolve_variant',
    'ComparisonResult',
    'run_comparison',
]
