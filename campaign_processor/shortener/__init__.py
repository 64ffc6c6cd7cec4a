"""Client and helpers for the external bulk URL shortener."""

from .client import (
    BulkUploadValidation,
    ShortenerClient,
    ShortenOutcome,
    create_fallback_results,
    estimate_processing_time,
    is_retryable,
    validate_bulk_upload_results,
)

__all__ = [
    "BulkUploadValidation",
    "ShortenOutcome",
    "ShortenerClient",
    "create_fallback_results",
    "estimate_processing_time",
    "is_retryable",
    "validate_bulk_upload_results",
]
