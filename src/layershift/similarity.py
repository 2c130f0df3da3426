"""
Similarity module for LayerShift.
Computes position-wise cosine similarity between embedding matrices and the
per-position differential between two layers.
"""

import logging
import numpy as np

from layershift.exceptions import ShapeMismatchError

# Configure logging
log = logging.getLogger("layershift")


def validate_matching_shapes(source, variant, label=None):
    """
    Check that two embedding matrices can be compared position by position.

    Args:
        source: Source embedding matrix (positions x dimensions)
        variant: Variant embedding matrix (positions x dimensions)
        label: Optional name of the comparison, used in error messages

    Raises:
        ShapeMismatchError: If either matrix is not 2-D or the shapes differ
    """
    context = f" for {label}" if label else ""

    for name, matrix in (("source", source), ("variant", variant)):
        if matrix.ndim != 2:
            raise ShapeMismatchError(
                f"Expected a 2-D {name} embedding matrix{context}",
                details=f"got shape {matrix.shape}"
            )

    if source.shape[0] != variant.shape[0]:
        raise ShapeMismatchError(
            f"Position count mismatch{context}",
            details=f"source has {source.shape[0]} positions, variant has {variant.shape[0]}"
        )

    if source.shape[1] != variant.shape[1]:
        raise ShapeMismatchError(
            f"Embedding dimension mismatch{context}",
            details=f"source has {source.shape[1]} dimensions, variant has {variant.shape[1]}"
        )


def cosine_similarity(vec1, vec2):
    """
    Calculate cosine similarity between two vectors.

    Returns NaN when either vector has zero norm.
    """
    vec1 = np.asarray(vec1, dtype=np.float64)
    vec2 = np.asarray(vec2, dtype=np.float64)

    if vec1.shape != vec2.shape or vec1.ndim != 1:
        raise ShapeMismatchError(
            "Cosine similarity requires two 1-D vectors of equal length",
            details=f"got shapes {vec1.shape} and {vec2.shape}"
        )

    denominator = np.linalg.norm(vec1) * np.linalg.norm(vec2)
    if denominator == 0:
        return float("nan")
    return float(np.dot(vec1, vec2) / denominator)


def positionwise_cosine_similarity(source, variant, label=None):
    """
    Compute the cosine similarity of each position-vector pair.

    Entry i of the result is the cosine similarity between row i of the
    source matrix and row i of the variant matrix. Positions where either
    row has zero norm are set to NaN so they stay visible in the summary
    statistics.

    Args:
        source: Source embedding matrix (positions x dimensions)
        variant: Variant embedding matrix (positions x dimensions)
        label: Optional name of the comparison, used in error messages

    Returns:
        1-D float64 array with one similarity per position

    Raises:
        ShapeMismatchError: If the matrices cannot be compared
    """
    source = np.asarray(source, dtype=np.float64)
    variant = np.asarray(variant, dtype=np.float64)
    validate_matching_shapes(source, variant, label)

    dots = np.einsum("ij,ij->i", source, variant)
    norms = np.linalg.norm(source, axis=1) * np.linalg.norm(variant, axis=1)

    similarities = np.full(dots.shape, np.nan)
    nonzero = norms != 0
    np.divide(dots, norms, out=similarities, where=nonzero)

    zero_count = int((~nonzero).sum())
    if zero_count:
        log.debug(f"{zero_count} zero-norm position(s){' in ' + label if label else ''} set to NaN")

    return similarities


def layer_differential(shallow, deep, label=None):
    """
    Compute the per-position change in similarity between two layers.

    Args:
        shallow: Similarity series at the shallow layer
        deep: Similarity series at the deep layer
        label: Optional name of the comparison, used in error messages

    Returns:
        1-D array where entry i is deep[i] - shallow[i]

    Raises:
        ShapeMismatchError: If the two series differ in length
    """
    shallow = np.asarray(shallow, dtype=np.float64)
    deep = np.asarray(deep, dtype=np.float64)

    if shallow.ndim != 1 or deep.ndim != 1 or shallow.shape != deep.shape:
        context = f" for {label}" if label else ""
        raise ShapeMismatchError(
            f"Layer similarity series are not aligned{context}",
            details=f"shallow has shape {shallow.shape}, deep has shape {deep.shape}"
        )

    return deep - shallow
