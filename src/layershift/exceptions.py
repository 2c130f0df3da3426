"""
Exceptions module for LayerShift.
Defines custom exception classes for the layer comparison pipeline.
"""

class LayerShiftError(Exception):
    """Base exception class for all LayerShift errors."""

    def __init__(self, message="An error occurred in LayerShift", details=None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __str__(self):
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class DataProcessingError(LayerShiftError):
    """Exception raised for errors during the comparison run."""

    def __init__(self, message="Error during data processing", details=None):
        super().__init__(message, details)


class ShapeMismatchError(DataProcessingError):
    """
    Exception raised when two embedding matrices or similarity series that
    must be index-aligned have different shapes.

    Always fatal for the whole run.
    """

    def __init__(self, message="Shape mismatch between compared arrays", details=None):
        super().__init__(message, details)


class EmptySeriesError(DataProcessingError):
    """Exception raised when statistics are requested over zero positions."""

    def __init__(self, message="Cannot summarize an empty differential series", details=None):
        super().__init__(message, details)


class DuplicateVariantError(DataProcessingError):
    """Exception raised when a variant label is appended to a table twice."""

    def __init__(self, message="Variant already present in table", details=None):
        super().__init__(message, details)


class TableFrozenError(DataProcessingError):
    """Exception raised when a sorted variant table is modified."""

    def __init__(self, message="Variant table is sorted and can no longer be modified", details=None):
        super().__init__(message, details)


class VariantIdentificationError(LayerShiftError):
    """Exception raised when a variant file name cannot be resolved."""

    def __init__(self, message="Error identifying variant", details=None):
        super().__init__(message, details)


class UnmappedCodonError(VariantIdentificationError):
    """Exception raised when a codon is absent from the codon table."""

    def __init__(self, message="Codon not found in codon table", details=None):
        super().__init__(message, details)


class FileError(LayerShiftError):
    """Exception raised for errors related to file operations."""

    def __init__(self, message="Error with file operations", details=None):
        super().__init__(message, details)


class EmbeddingLoadError(FileError):
    """Exception raised when an embedding tensor is missing or unreadable."""

    def __init__(self, message="Error loading embedding tensor", details=None):
        super().__init__(message, details)


class ConfigurationError(LayerShiftError):
    """Exception raised for errors related to configuration."""

    def __init__(self, message="Error with configuration", details=None):
        super().__init__(message, details)


class SubjectNotFoundError(ConfigurationError):
    """Exception raised when a subject id is missing from the metadata table."""

    def __init__(self, message="Subject not found in metadata table", details=None):
        super().__init__(message, details)


class ReportingError(LayerShiftError):
    """Exception raised for errors related to report generation."""

    def __init__(self, message="Error generating report", details=None):
        super().__init__(message, details)


# Errors that skip a single variant instead of aborting the run
RECOVERABLE_VARIANT_ERRORS = (VariantIdentificationError, EmbeddingLoadError)
