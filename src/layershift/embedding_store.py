"""
Embedding store module for LayerShift.
Resolves subject and variant embedding tensors on disk and loads them as
2-D (positions x dimensions) arrays.
"""

import os
import logging
from pathlib import Path
from typing import List

import numpy as np

from layershift.exceptions import EmbeddingLoadError, FileError

# Configure logging
log = logging.getLogger("layershift")

EMBEDDING_SUFFIX = ".npy"

SOURCE_DIR_TEMPLATE = "subject-layer-{layer}/output"
SOURCE_FILE_TEMPLATE = "input_{subject}_{gene}_source_embeddings_blocks_{layer}_mlp_l3.npy"
VARIANT_DIR_TEMPLATE = "variant-embeddings-{subject_lower}_{layer}/output"


class EmbeddingStore:
    """
    File-backed store of embedding tensors laid out as embedding jobs write them.

    Source embeddings live in `subject-layer-{layer}/output` and variant
    embeddings in `variant-embeddings-{subject}_{layer}/output`, both below
    the jobs directory.
    """

    def __init__(self, jobs_dir="jobs"):
        self.jobs_dir = Path(jobs_dir)

    def source_path(self, subject, gene, layer) -> Path:
        """Path of the source embedding tensor for a subject at one layer."""
        return (self.jobs_dir / SOURCE_DIR_TEMPLATE.format(layer=layer)
                / SOURCE_FILE_TEMPLATE.format(subject=subject, gene=gene, layer=layer))

    def variant_dir(self, subject, layer) -> Path:
        """Directory holding the variant embedding tensors of a subject at one layer."""
        return self.jobs_dir / VARIANT_DIR_TEMPLATE.format(subject_lower=str(subject).lower(), layer=layer)

    def variant_path(self, subject, layer, filename) -> Path:
        return self.variant_dir(subject, layer) / filename

    def has_variant(self, subject, layer, filename) -> bool:
        return self.variant_path(subject, layer, filename).is_file()

    def list_variant_files(self, subject, layer) -> List[str]:
        """
        List variant embedding file names for a subject at one layer.

        Returns:
            Sorted list of file names

        Raises:
            FileError: If the variant directory does not exist
        """
        variant_dir = self.variant_dir(subject, layer)
        if not variant_dir.is_dir():
            error_msg = f"Variant embedding directory not found: {variant_dir}"
            log.error(error_msg)
            raise FileError(error_msg)

        return sorted(
            entry.name for entry in variant_dir.iterdir()
            if entry.is_file() and entry.name.endswith(EMBEDDING_SUFFIX)
        )

    def load_source(self, subject, gene, layer) -> np.ndarray:
        return self.load(self.source_path(subject, gene, layer))

    def load_variant(self, subject, layer, filename) -> np.ndarray:
        return self.load(self.variant_path(subject, layer, filename))

    def load(self, path) -> np.ndarray:
        """
        Load an embedding tensor as a 2-D matrix.

        Tensors are stored as (1, positions, dimensions); the leading singleton
        axis is dropped. Already 2-D tensors are returned as they are.

        Raises:
            EmbeddingLoadError: If the file is missing, unreadable or has an
                unexpected shape
        """
        path = Path(path)
        if not path.is_file():
            error_msg = f"Embedding file not found: {path}"
            log.error(error_msg)
            raise EmbeddingLoadError(error_msg)

        try:
            tensor = np.load(path, allow_pickle=False)
        except Exception as e:
            error_msg = f"Error reading embedding file: {path}"
            log.error(error_msg)
            raise EmbeddingLoadError(error_msg, details=str(e))

        if not isinstance(tensor, np.ndarray):
            raise EmbeddingLoadError(f"Embedding file does not hold a single array: {path}")

        if tensor.ndim == 3 and tensor.shape[0] == 1:
            tensor = tensor[0]
        elif tensor.ndim != 2:
            raise EmbeddingLoadError(
                f"Unexpected embedding tensor shape in {path}",
                details=f"expected (1, positions, dimensions), got {tensor.shape}"
            )

        if not np.issubdtype(tensor.dtype, np.number):
            raise EmbeddingLoadError(f"Embedding tensor is not numeric: {path}", details=str(tensor.dtype))

        log.debug(f"Loaded embedding {os.path.basename(path)} with shape {tensor.shape}")
        return tensor
