"""Client for the bulk URL shortener service.

The shortener exposes a single endpoint that accepts every link of a campaign
in one request::

    POST {base_url}/api/bulk-upload
    {"urls": [{"original_url": "...", "metadata": {"prospect_id": "...", ...}}, ...]}

and answers with ``{"success": true, "results": [...]}`` where every result is
either ``{"success": true, "original_url": ..., "data": {"shortUrl": ...}}`` or
``{"success": false, "original_url": ..., "error": "..."}``.

When the service cannot be used the pipeline switches to *fallback mode*: the
"short" URL of every link is the original URL itself.
"""
from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

import httpx

from ..config import ShortenerSettings
from ..errors import BulkUploadFailedError, ShortenerError, ShortenerResponseError
from ..models import LinkMapping, LinkMetadata, ShortenResult, ShortUrlData
from ..reporting import PipelineReporter, report_errors, resolve_reporter
from ..retry import RetryPolicy

LOGGER = logging.getLogger(__name__)

FALLBACK_SHORT_CODE = "original"
FALLBACK_TTL_MS = 14 * 24 * 60 * 60 * 1000
CONNECTION_TEST_URL = "https://example.com"


@dataclass
class ShortenOutcome:
    """Results of the shortening stage and whether fallback mode was used."""

    results: List[ShortenResult]
    fallback: bool = False
    reason: Optional[str] = None


@dataclass
class BulkUploadValidation:
    total_requested: int = 0
    total_returned: int = 0
    successful: int = 0
    failed: int = 0
    missing: int = 0
    errors: List[str] = field(default_factory=list)


@dataclass
class TimeEstimate:
    optimistic: int
    realistic: int
    pessimistic: int
    breakdown: Dict[str, int] = field(default_factory=dict)


def is_retryable(error: BaseException) -> bool:
    """Return whether a failed bulk attempt may be retried.

    Timeouts, connection failures (reset, refused, DNS), HTTP 5xx and HTTP 429
    are retryable; everything else is not.
    """

    if isinstance(error, (httpx.TimeoutException, httpx.NetworkError, httpx.RemoteProtocolError)):
        return True
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        return status >= 500 or status == 429
    return False


def describe_error(error: BaseException) -> str:
    if isinstance(error, httpx.HTTPStatusError):
        response = error.response
        return f"HTTP {response.status_code} {response.reason_phrase}".strip()
    return str(error) or error.__class__.__name__


def build_bulk_payload(mappings: Sequence[LinkMapping]) -> Dict[str, Any]:
    return {
        "urls": [
            {
                "original_url": mapping.original_url,
                "metadata": {
                    "prospect_id": mapping.metadata.prospect_id,
                    "business_type": mapping.metadata.business_type,
                    "company": mapping.metadata.company,
                },
            }
            for mapping in mappings
        ]
    }


def parse_bulk_response(
    body: Any,
    metadata_by_url: Optional[Mapping[str, LinkMetadata]] = None,
) -> List[ShortenResult]:
    """Validate a decoded bulk response body and convert it into results."""

    if not isinstance(body, dict):
        raise ShortenerResponseError("Response body is not a JSON object")
    if body.get("success") is not True:
        raise ShortenerResponseError(str(body.get("error") or "Unknown error"))

    raw_results = body.get("results")
    if raw_results is None:
        raw_results = []
    if not isinstance(raw_results, list):
        raise ShortenerResponseError("Response 'results' is not a list")

    metadata_by_url = metadata_by_url or {}
    results: List[ShortenResult] = []
    for index, entry in enumerate(raw_results, start=1):
        if not isinstance(entry, dict):
            raise ShortenerResponseError(f"Result {index} is not a JSON object")
        data = entry.get("data")
        original_url = entry.get("original_url") or (data.get("originalUrl") if isinstance(data, dict) else None)
        if not original_url or not isinstance(original_url, str):
            raise ShortenerResponseError(f"Result {index} has no original_url")

        if entry.get("success"):
            if not isinstance(data, dict) or not data.get("shortUrl") or not isinstance(data["shortUrl"], str):
                raise ShortenerResponseError(f"Result {index} is missing data.shortUrl")
            results.append(
                ShortenResult(
                    success=True,
                    original_url=original_url,
                    data=ShortUrlData.from_payload(data),
                    metadata=metadata_by_url.get(original_url),
                )
            )
        else:
            results.append(
                ShortenResult(
                    success=False,
                    original_url=original_url,
                    error=str(entry.get("error") or "Unknown error"),
                    metadata=metadata_by_url.get(original_url),
                )
            )
    return results


def create_fallback_results(
    mappings: Sequence[LinkMapping],
    *,
    now: Optional[float] = None,
) -> List[ShortenResult]:
    """Wrap every link in a successful result whose short URL is the link itself."""

    issued_ms = int((time.time() if now is None else now) * 1000)
    return [
        ShortenResult(
            success=True,
            original_url=mapping.original_url,
            data=ShortUrlData(
                short_url=mapping.original_url,
                short_code=FALLBACK_SHORT_CODE,
                original_url=mapping.original_url,
                expires_at=issued_ms + FALLBACK_TTL_MS,
            ),
            fallback=True,
            metadata=mapping.metadata,
        )
        for mapping in mappings
    ]


def validate_bulk_upload_results(
    results: Sequence[ShortenResult],
    mappings: Sequence[LinkMapping],
) -> BulkUploadValidation:
    validation = BulkUploadValidation(total_requested=len(mappings), total_returned=len(results))

    if len(results) != len(mappings):
        validation.missing = max(len(mappings) - len(results), 0)
        validation.errors.append(f"Expected {len(mappings)} results, got {len(results)}")

    for index, result in enumerate(results, start=1):
        if result.success:
            validation.successful += 1
            if not result.fallback and result.short_url == result.original_url:
                validation.errors.append(f"Result {index}: Short URL is same as original URL")
        else:
            validation.failed += 1
            validation.errors.append(f"Result {index}: {result.error or 'Unknown error'}")
    return validation


def estimate_processing_time(url_count: int) -> TimeEstimate:
    """Rough timing for a bulk upload, assuming about 100 URLs per second."""

    processing = math.ceil(url_count / 100)
    network = 5
    retry_buffer = processing * 0.3
    estimated = processing + network + retry_buffer
    return TimeEstimate(
        optimistic=processing + network,
        realistic=math.ceil(estimated),
        pessimistic=math.ceil(estimated * 2),
        breakdown={
            "processing": processing,
            "network": network,
            "retry_buffer": math.ceil(retry_buffer),
        },
    )


class ShortenerClient:
    """Synchronous client for the bulk shortening endpoint."""

    def __init__(
        self,
        settings: Optional[ShortenerSettings] = None,
        *,
        http_client: Optional[httpx.Client] = None,
        retry_policy: Optional[RetryPolicy] = None,
        reporter: Optional[PipelineReporter] = None,
    ) -> None:
        self.settings = settings or ShortenerSettings()
        self._client = http_client or httpx.Client()
        self._owns_client = http_client is None
        self._retry = retry_policy or RetryPolicy(
            max_attempts=self.settings.max_attempts,
            delay_seconds=self.settings.retry_delay_seconds,
        )
        self._reporter = resolve_reporter(reporter)

    def __enter__(self) -> "ShortenerClient":
        return self

    def __exit__(self, exc_type, exc, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "User-Agent": self.settings.user_agent,
        }
        if self.settings.origin:
            headers["Origin"] = self.settings.origin
        return headers

    # ------------------------------------------------------------------
    def test_connection(self) -> bool:
        """Send a one-link connection check; any status below 500 counts as reachable."""

        self._reporter.info("Testing connection to URL shortener...")
        payload = {"urls": [{"original_url": CONNECTION_TEST_URL, "metadata": {"test": True}}]}
        try:
            response = self._client.post(
                self.settings.bulk_url,
                json=payload,
                headers=self._headers(),
                timeout=self.settings.connection_test_timeout_seconds,
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            self._reporter.error(f"Connection failed: {describe_error(exc)}")
            return False

        if response.status_code >= 500:
            self._reporter.error(f"Connection failed: HTTP {response.status_code}")
            return False
        self._reporter.success(f"Connection successful (Status: {response.status_code})")
        return True

    # ------------------------------------------------------------------
    def bulk_upload(self, mappings: Sequence[LinkMapping]) -> List[ShortenResult]:
        """Shorten every link in one request, retrying transient failures.

        Raises :class:`BulkUploadFailedError` once the attempts are exhausted
        or a non-retryable error occurs.
        """

        if not mappings:
            raise ValueError("No URL mappings provided for bulk upload")

        self._reporter.info(f"Starting bulk upload of {len(mappings)} URLs to shortener...")
        self._reporter.info(f"  Shortener URL: {self.settings.base_url}")

        payload = build_bulk_payload(mappings)
        metadata_by_url: Dict[str, LinkMetadata] = {}
        for mapping in mappings:
            metadata_by_url.setdefault(mapping.original_url, mapping.metadata)

        last_error: Optional[BaseException] = None
        attempts_made = 0
        for attempt in self._retry.attempts():
            attempts_made = attempt
            self._reporter.info(f"Attempt {attempt}/{self._retry.max_attempts}: Sending bulk request...")
            try:
                results = self._post_bulk(payload, metadata_by_url)
            except (httpx.HTTPError, httpx.InvalidURL, ShortenerResponseError) as exc:
                last_error = exc
                LOGGER.debug("Bulk upload attempt %s failed", attempt, exc_info=True)
                if not is_retryable(exc):
                    self._reporter.error(f"Non-retryable error: {describe_error(exc)}")
                    break
                if self._retry.has_more(attempt):
                    self._reporter.warning(
                        f"Request failed ({describe_error(exc)}), retrying in {self._retry.delay_seconds:g}s..."
                    )
                    self._retry.wait()
                continue

            self._report_results(results)
            return results

        self._reporter.error(f"Bulk upload failed after {attempts_made} attempts")
        message = describe_error(last_error) if last_error is not None else "Unknown error"
        raise BulkUploadFailedError(message, attempts=attempts_made, last_error=last_error) from last_error

    def _post_bulk(
        self,
        payload: Dict[str, Any],
        metadata_by_url: Mapping[str, LinkMetadata],
    ) -> List[ShortenResult]:
        response = self._client.post(
            self.settings.bulk_url,
            json=payload,
            headers=self._headers(),
            timeout=self.settings.timeout_seconds,
        )
        response.raise_for_status()
        try:
            body = response.json()
        except ValueError as exc:
            raise ShortenerResponseError("Response body is not valid JSON") from exc
        return parse_bulk_response(body, metadata_by_url)

    def _report_results(self, results: Sequence[ShortenResult]) -> None:
        failures = [result for result in results if not result.success]
        self._reporter.success(f"Bulk upload successful! Processed {len(results)} URLs")
        self._reporter.success(f"  Successful: {len(results) - len(failures)} URLs")
        if failures:
            report_errors(
                self._reporter,
                [f"{index}. {failure.error or 'Unknown error'}" for index, failure in enumerate(failures, start=1)],
                limit=3,
                title=f"  Failed: {len(failures)} URLs",
            )

    # ------------------------------------------------------------------
    def shorten(self, mappings: Sequence[LinkMapping]) -> ShortenOutcome:
        """Check the connection, bulk upload, and fall back to the original URLs on any failure."""

        if not mappings:
            return ShortenOutcome(results=[])

        if self.settings.test_connection and not self.test_connection():
            self._reporter.warning("Shortener connection failed, using original URLs...")
            return ShortenOutcome(
                results=create_fallback_results(mappings),
                fallback=True,
                reason="connection test failed",
            )

        estimate = estimate_processing_time(len(mappings))
        self._reporter.info(
            f"  Estimated processing time: {estimate.realistic}s (optimistic: {estimate.optimistic}s)"
        )
        try:
            return ShortenOutcome(results=self.bulk_upload(mappings))
        except ShortenerError as exc:
            self._reporter.warning(f"{exc}. Using original URLs...")
            return ShortenOutcome(
                results=create_fallback_results(mappings),
                fallback=True,
                reason=str(exc),
            )


__all__ = [
    "BulkUploadValidation",
    "ShortenOutcome",
    "ShortenerClient",
    "TimeEstimate",
    "build_bulk_payload",
    "create_fallback_results",
    "describe_error",
    "estimate_processing_time",
    "is_retryable",
    "parse_bulk_response",
    "validate_bulk_upload_results",
]
