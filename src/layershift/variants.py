"""
Variant identification module for LayerShift.

Variant embedding files carry their identity in their names: the substituted
codon sits at a fixed offset, and the deep-layer companion file is named like
the shallow-layer one with the layer number swapped. All of that file name
coupling lives here.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Mapping, Tuple

from layershift.codon_table import lookup_amino_acid
from layershift.exceptions import FileError, VariantIdentificationError

# Configure logging
log = logging.getLogger("layershift")

CODON_OFFSET = 10
CODON_LENGTH = 3


@dataclass(frozen=True)
class VariantIdentity:
    """Identity of one variant and the file names of its two layers."""

    filename: str
    companion: str
    codon: str
    amino_acid: str

    @property
    def label(self) -> str:
        return f"{self.amino_acid}_{self.codon}"


@dataclass
class DiscoveryResult:
    """Variants ready for comparison plus the ones skipped during discovery."""

    variants: List[VariantIdentity] = field(default_factory=list)
    skipped: List[Tuple[str, str]] = field(default_factory=list)


def extract_codon(filename, offset=CODON_OFFSET, length=CODON_LENGTH):
    """
    Extract the substituted codon from a variant file name.

    Args:
        filename: Variant embedding file name
        offset: Zero-based index of the first codon character
        length: Number of characters in the codon

    Returns:
        The codon string

    Raises:
        VariantIdentificationError: If the name is too short to hold a codon
    """
    if len(filename) < offset + length:
        raise VariantIdentificationError(
            f"File name too short to contain a codon at offset {offset}",
            details=filename
        )
    return filename[offset:offset + length]


def companion_filename(filename, shallow_layer="14", deep_layer="28"):
    """
    Derive the deep-layer file name from a shallow-layer file name.

    Only the first occurrence of the shallow layer number is replaced.

    Raises:
        VariantIdentificationError: If the shallow layer number does not occur
    """
    shallow_layer, deep_layer = str(shallow_layer), str(deep_layer)
    if shallow_layer not in filename:
        raise VariantIdentificationError(
            f"File name does not contain layer token {shallow_layer!r}",
            details=filename
        )
    return filename.replace(shallow_layer, deep_layer, 1)


def resolve_variant(filename, codon_map: Mapping[str, str], shallow_layer="14",
                    deep_layer="28", offset=CODON_OFFSET) -> VariantIdentity:
    """
    Resolve a shallow-layer variant file name into a VariantIdentity.

    Raises:
        VariantIdentificationError: If the name cannot be parsed
        UnmappedCodonError: If the codon is not in the codon table
    """
    codon = extract_codon(filename, offset=offset)
    amino_acid = lookup_amino_acid(codon_map, codon)
    companion = companion_filename(filename, shallow_layer, deep_layer)

    return VariantIdentity(
        filename=filename,
        companion=companion,
        codon=codon,
        amino_acid=amino_acid,
    )


def discover_variants(store, subject, codon_map: Mapping[str, str], shallow_layer="14",
                      deep_layer="28", offset=CODON_OFFSET) -> DiscoveryResult:
    """
    List and resolve every variant of a subject.

    Variants whose codon cannot be resolved or whose deep-layer companion is
    missing are skipped with a warning and reported in `skipped`.

    Args:
        store: EmbeddingStore holding the variant tensors
        subject: Subject id
        codon_map: Codon to amino acid mapping
        shallow_layer: Layer the variant files are listed from
        deep_layer: Layer of the companion files
        offset: Zero-based codon offset in the file names

    Returns:
        DiscoveryResult in file discovery order

    Raises:
        FileError: If the subject has no variant files
    """
    files = store.list_variant_files(subject, shallow_layer)
    if not files:
        error_msg = f"No variant files found for subject {subject}"
        log.error(error_msg)
        raise FileError(error_msg, details=str(store.variant_dir(subject, shallow_layer)))

    result = DiscoveryResult()
    labels = set()

    for filename in files:
        try:
            identity = resolve_variant(filename, codon_map, shallow_layer, deep_layer, offset)
        except VariantIdentificationError as e:
            log.warning(f"Skipping {filename}: {e}")
            result.skipped.append((filename, str(e)))
            continue

        if not store.has_variant(subject, deep_layer, identity.companion):
            reason = f"no layer {deep_layer} companion file {identity.companion}"
            log.warning(f"Skipping {identity.label} ({filename}): {reason}")
            result.skipped.append((filename, reason))
            continue

        if identity.label in labels:
            reason = f"duplicate variant label {identity.label}"
            log.warning(f"Skipping {filename}: {reason}")
            result.skipped.append((filename, reason))
            continue

        labels.add(identity.label)
        result.variants.append(identity)

    log.info(f"Discovered {len(result.variants)} variant(s) for {subject}, skipped {len(result.skipped)}")
    return result
