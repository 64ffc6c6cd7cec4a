"""Exception hierarchy for the campaign processor."""
from __future__ import annotations

from typing import Iterable, Optional, Sequence


class CampaignProcessorError(Exception):
    """Base class for every error raised by the campaign processor."""


class ConfigurationError(CampaignProcessorError):
    """Raised when configuration files are missing or malformed."""


class InputFileNotFoundError(CampaignProcessorError):
    """Raised when the prospects spreadsheet does not exist."""


class UnsupportedFileTypeError(CampaignProcessorError, ValueError):
    """Raised when an unsupported file format is passed to the loader or exporter."""


# --- Row validation (recovered: the row is skipped) ---


class RowValidationError(CampaignProcessorError):
    """A single input row could not be turned into a prospect."""

    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class MissingFieldError(RowValidationError):
    def __init__(self, fields: Sequence[str]) -> None:
        self.fields = list(fields)
        super().__init__(f"Missing required fields: {', '.join(self.fields)}", field=self.fields[0])


class FieldTooLongError(RowValidationError):
    def __init__(self, field: str, label: str, limit: int) -> None:
        self.limit = limit
        super().__init__(f"{label} too long (max {limit} characters)", field=field)


class InvalidPhoneError(RowValidationError):
    def __init__(self, minimum_digits: int) -> None:
        super().__init__(f"Phone number must contain at least {minimum_digits} digits", field="phone")


class InvalidCategoryError(RowValidationError):
    def __init__(self, value: str, allowed: Iterable[str]) -> None:
        self.value = value
        self.allowed = list(allowed)
        super().__init__(
            f'Invalid business type: "{value}". Must be one of: {", ".join(self.allowed)}',
            field="business_type",
        )


class EmptyResultError(CampaignProcessorError):
    """Raised when no row of the input produced a valid prospect."""


# --- Link generation (recovered: the prospect gets no links) ---


class LinkGenerationError(CampaignProcessorError):
    """Personalised links could not be generated for a prospect."""


class UnknownCategoryError(LinkGenerationError):
    def __init__(self, business_type: str) -> None:
        self.business_type = business_type
        super().__init__(f"No configuration found for business type: {business_type}")


class NoLinksConfiguredError(LinkGenerationError):
    def __init__(self, business_type: str) -> None:
        self.business_type = business_type
        super().__init__(f"No demo sites configured for business type: {business_type}")


class InvalidBaseURLError(LinkGenerationError):
    def __init__(self, base_url: str) -> None:
        self.base_url = base_url
        super().__init__(f"Invalid base URL: {base_url}")


# --- Shortening (recovered: the batch switches to fallback mode) ---


class ShortenerError(CampaignProcessorError):
    """Base class for failures talking to the URL shortener."""


class ShortenerResponseError(ShortenerError):
    """The shortener answered with a body that does not follow the bulk contract."""


class BulkUploadFailedError(ShortenerError):
    """All bulk upload attempts failed, or a non-retryable error stopped them."""

    def __init__(self, message: str, *, attempts: int, last_error: Optional[BaseException] = None) -> None:
        super().__init__(f"Bulk upload failed: {message}")
        self.attempts = attempts
        self.last_error = last_error


# --- Rendering (recovered: the prospect gets an ERROR: message) ---


class RenderError(CampaignProcessorError):
    """A WhatsApp message could not be rendered for a prospect."""


class NoLinksForProspectError(RenderError):
    def __init__(self, prospect_id: str) -> None:
        self.prospect_id = prospect_id
        super().__init__(f"No URLs found for prospect {prospect_id}")


__all__ = [
    "CampaignProcessorError",
    "ConfigurationError",
    "InputFileNotFoundError",
    "UnsupportedFileTypeError",
    "RowValidationError",
    "MissingFieldError",
    "FieldTooLongError",
    "InvalidPhoneError",
    "InvalidCategoryError",
    "EmptyResultError",
    "LinkGenerationError",
    "UnknownCategoryError",
    "NoLinksConfiguredError",
    "InvalidBaseURLError",
    "ShortenerError",
    "ShortenerResponseError",
    "BulkUploadFailedError",
    "RenderError",
    "NoLinksForProspectError",
]
