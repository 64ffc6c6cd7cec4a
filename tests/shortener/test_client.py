import json
import time

import httpx
import pytest

from campaign_processor.config import ShortenerSettings
from campaign_processor.errors import BulkUploadFailedError
from campaign_processor.links.generator import generate_links_for_prospect
from campaign_processor.retry import RetryPolicy
from campaign_processor.shortener import (
    ShortenerClient,
    create_fallback_results,
    estimate_processing_time,
    is_retryable,
    validate_bulk_upload_results,
)
from campaign_processor.shortener.client import FALLBACK_TTL_MS, CONNECTION_TEST_URL


def _success_body(payload):
    return {
        "success": True,
        "results": [
            {
                "success": True,
                "original_url": item["original_url"],
                "data": {
                    "shortUrl": f"https://s.test/{index}",
                    "shortCode": str(index),
                    "originalUrl": item["original_url"],
                    "expiresAt": 1700000000000,
                },
            }
            for index, item in enumerate(payload["urls"])
        ],
    }


def _is_connection_test(request):
    return json.loads(request.content)["urls"][0]["original_url"] == CONNECTION_TEST_URL


class ScriptedHandler:
    """Answers bulk requests from a script of responses or exceptions."""

    def __init__(self, *steps):
        self.steps = list(steps)
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        step = self.steps.pop(0) if len(self.steps) > 1 else self.steps[0]
        if isinstance(step, Exception):
            raise step
        if step == "ok":
            return httpx.Response(200, json=_success_body(json.loads(request.content)))
        if isinstance(step, int):
            return httpx.Response(step, json={"success": False, "error": "upstream"})
        return step


@pytest.fixture
def mappings(make_prospect, business_types):
    return generate_links_for_prospect(make_prospect(1), business_types)


@pytest.fixture
def sleeps():
    return []


def _client(handler, sleeps, reporter=None, **settings):
    settings.setdefault("base_url", "https://short.test")
    return ShortenerClient(
        ShortenerSettings(**settings),
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        retry_policy=RetryPolicy(max_attempts=3, delay_seconds=2.0, sleep=sleeps.append),
        reporter=reporter,
    )


def test_bulk_upload_sends_one_request_with_every_link(mappings, sleeps):
    handler = ScriptedHandler("ok")

    results = _client(handler, sleeps).bulk_upload(mappings)

    assert len(handler.requests) == 1
    request = handler.requests[0]
    assert str(request.url) == "https://short.test/api/bulk-upload"
    assert request.method == "POST"
    assert request.headers["User-Agent"] == "CSV-Campaign-Processor/1.0"
    assert request.headers["Origin"] == "http://localhost:5173"
    assert request.headers["Content-Type"] == "application/json"

    body = json.loads(request.content)
    assert [item["original_url"] for item in body["urls"]] == [m.original_url for m in mappings]
    assert body["urls"][0]["metadata"] == {
        "prospect_id": "prospect_0001",
        "business_type": "plumbing",
        "company": "Smith Plumbing",
    }

    assert [result.short_url for result in results] == [f"https://s.test/{i}" for i in range(4)]
    assert results[0].metadata == mappings[0].metadata
    assert sleeps == []


def test_bulk_upload_recovers_from_server_errors_after_fixed_delay(mappings):
    handler = ScriptedHandler(503, 503, "ok")
    client = ShortenerClient(
        ShortenerSettings(base_url="https://short.test"),
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        retry_policy=RetryPolicy(max_attempts=3, delay_seconds=0.05),
    )

    started = time.monotonic()
    results = client.bulk_upload(mappings)
    elapsed = time.monotonic() - started

    assert len(handler.requests) == 3
    assert elapsed >= 0.1
    assert all(result.success for result in results)


def test_bulk_upload_retries_rate_limiting(mappings, sleeps):
    handler = ScriptedHandler(429, "ok")

    results = _client(handler, sleeps).bulk_upload(mappings)

    assert len(handler.requests) == 2
    assert sleeps == [2.0]
    assert len(results) == 4


@pytest.mark.parametrize(
    "error",
    [
        httpx.ConnectError("Connection refused"),
        httpx.ReadTimeout("timed out"),
        httpx.RemoteProtocolError("Server disconnected without sending a response."),
    ],
)
def test_bulk_upload_retries_transport_failures(mappings, sleeps, error):
    handler = ScriptedHandler(error, "ok")

    results = _client(handler, sleeps).bulk_upload(mappings)

    assert len(handler.requests) == 2
    assert sleeps == [2.0]
    assert len(results) == 4


def test_bulk_upload_does_not_retry_client_errors(mappings, sleeps):
    handler = ScriptedHandler(400)

    with pytest.raises(BulkUploadFailedError) as excinfo:
        _client(handler, sleeps).bulk_upload(mappings)

    assert len(handler.requests) == 1
    assert sleeps == []
    assert excinfo.value.attempts == 1
    assert "HTTP 400" in str(excinfo.value)


def test_bulk_upload_gives_up_after_three_attempts(mappings, sleeps):
    handler = ScriptedHandler(500)

    with pytest.raises(BulkUploadFailedError) as excinfo:
        _client(handler, sleeps).bulk_upload(mappings)

    assert len(handler.requests) == 3
    assert sleeps == [2.0, 2.0]
    assert excinfo.value.attempts == 3
    assert str(excinfo.value) == "Bulk upload failed: HTTP 500 Internal Server Error"
    assert isinstance(excinfo.value.last_error, httpx.HTTPStatusError)


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json={"success": False, "error": "quota exceeded"}),
        httpx.Response(200, json={"success": True, "results": "nope"}),
        httpx.Response(200, json={"success": True, "results": [{"success": True, "original_url": "x"}]}),
        httpx.Response(200, text="<html>maintenance</html>"),
        httpx.Response(200, json=["not", "an", "object"]),
        httpx.Response(
            200, json={"success": True, "results": [{"success": True, "original_url": ["x"], "data": {"shortUrl": "https://s/1"}}]}
        ),
        httpx.Response(
            200, json={"success": True, "results": [{"success": True, "original_url": "x", "data": {"shortUrl": {"u": 1}}}]}
        ),
        httpx.Response(200, json={"success": True, "results": [{"success": False, "original_url": {"u": "x"}}]}),
    ],
)
def test_bulk_upload_treats_malformed_responses_as_fatal(mappings, sleeps, response):
    handler = ScriptedHandler(response)

    with pytest.raises(BulkUploadFailedError) as excinfo:
        _client(handler, sleeps).bulk_upload(mappings)

    assert len(handler.requests) == 1
    assert excinfo.value.attempts == 1


def test_bulk_upload_reports_error_message_from_service(mappings, sleeps):
    handler = ScriptedHandler(httpx.Response(200, json={"success": False, "error": "quota exceeded"}))

    with pytest.raises(BulkUploadFailedError, match="quota exceeded"):
        _client(handler, sleeps).bulk_upload(mappings)


def test_bulk_upload_keeps_per_link_failures(mappings, sleeps, reporter):
    def handler(request):
        urls = json.loads(request.content)["urls"]
        return httpx.Response(
            200,
            json={
                "success": True,
                "results": [
                    {"success": True, "original_url": urls[0]["original_url"], "data": {"shortUrl": "https://s.test/a"}},
                    {"success": False, "original_url": urls[1]["original_url"], "error": "blocked domain"},
                ],
            },
        )

    results = _client(handler, sleeps, reporter).bulk_upload(mappings)

    assert [result.success for result in results] == [True, False]
    assert results[1].error == "blocked domain"
    assert results[1].short_url is None
    assert "  Failed: 1 URLs" in reporter.messages("warning")


def test_bulk_upload_rejects_empty_input(sleeps):
    with pytest.raises(ValueError):
        _client(ScriptedHandler("ok"), sleeps).bulk_upload([])


def test_is_retryable_classification():
    request = httpx.Request("POST", "https://short.test/api/bulk-upload")

    def status_error(code):
        return httpx.HTTPStatusError("boom", request=request, response=httpx.Response(code, request=request))

    assert is_retryable(status_error(500))
    assert is_retryable(status_error(503))
    assert is_retryable(status_error(429))
    assert not is_retryable(status_error(400))
    assert not is_retryable(status_error(404))
    assert is_retryable(httpx.ConnectTimeout("slow", request=request))
    assert is_retryable(httpx.ConnectError("refused", request=request))
    assert not is_retryable(ValueError("bad"))


@pytest.mark.parametrize("status, reachable", [(200, True), (404, True), (405, True), (500, False), (502, False)])
def test_connection_check_uses_status_threshold(sleeps, status, reachable):
    handler = ScriptedHandler(status)

    assert _client(handler, sleeps).test_connection() is reachable
    assert _is_connection_test(handler.requests[0])


def test_connection_check_handles_transport_failure(sleeps):
    handler = ScriptedHandler(httpx.ConnectError("Name or service not known"))

    assert _client(handler, sleeps).test_connection() is False


def test_shorten_falls_back_when_connection_check_fails(mappings, sleeps):
    handler = ScriptedHandler(503)

    outcome = _client(handler, sleeps).shorten(mappings)

    assert outcome.fallback is True
    assert outcome.reason == "connection test failed"
    assert len(handler.requests) == 1
    assert [result.short_url for result in outcome.results] == [m.original_url for m in mappings]


def test_shorten_falls_back_when_bulk_upload_fails(mappings, sleeps):
    def handler(request):
        if _is_connection_test(request):
            return httpx.Response(200, json={"success": True, "results": []})
        return httpx.Response(502)

    outcome = _client(handler, sleeps).shorten(mappings)

    assert outcome.fallback is True
    assert "HTTP 502" in outcome.reason
    assert all(result.fallback for result in outcome.results)
    assert sleeps == [2.0, 2.0]


def test_shorten_without_connection_check(mappings, sleeps):
    handler = ScriptedHandler("ok")

    outcome = _client(handler, sleeps, test_connection=False).shorten(mappings)

    assert outcome.fallback is False
    assert len(handler.requests) == 1
    assert [result.short_url for result in outcome.results] == [f"https://s.test/{i}" for i in range(4)]


def test_shorten_with_nothing_to_do(sleeps):
    handler = ScriptedHandler("ok")

    outcome = _client(handler, sleeps).shorten([])

    assert outcome.results == []
    assert handler.requests == []


def test_create_fallback_results(mappings):
    results = create_fallback_results(mappings, now=1000.0)

    assert len(results) == len(mappings)
    first = results[0]
    assert first.success is True
    assert first.fallback is True
    assert first.short_url == mappings[0].original_url
    assert first.data.short_code == "original"
    assert first.data.expires_at == 1_000_000 + FALLBACK_TTL_MS
    assert FALLBACK_TTL_MS == 14 * 24 * 60 * 60 * 1000
    assert first.metadata == mappings[0].metadata


def test_validate_bulk_upload_results(mappings):
    results = create_fallback_results(mappings[:3])
    results[1].success = False
    results[1].error = "blocked"

    validation = validate_bulk_upload_results(results, mappings)

    assert validation.total_requested == 4
    assert validation.total_returned == 3
    assert validation.successful == 2
    assert validation.failed == 1
    assert validation.missing == 1
    assert "Expected 4 results, got 3" in validation.errors
    assert "Result 2: blocked" in validation.errors


def test_estimate_processing_time():
    estimate = estimate_processing_time(250)

    assert estimate.breakdown == {"processing": 3, "network": 5, "retry_buffer": 1}
    assert estimate.optimistic == 8
    assert estimate.realistic == 9
    assert estimate.pessimistic == 18


def test_shorten_falls_back_on_non_string_original_url(mappings, sleeps):
    handler = ScriptedHandler(
        httpx.Response(
            200,
            json={"success": True, "results": [{"success": True, "original_url": ["x"], "data": {"shortUrl": "https://s/1"}}]},
        )
    )

    outcome = _client(handler, sleeps, test_connection=False).shorten(mappings)

    assert outcome.fallback is True
    assert "has no original_url" in outcome.reason
    assert len(handler.requests) == 1
    assert [result.short_url for result in outcome.results] == [m.original_url for m in mappings]
