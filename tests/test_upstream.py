"""Tests for the fetch executor: classification, redirects, timeouts and fallback."""

import asyncio

import httpx
import pytest

from core.config import UpstreamSettings
from core.exceptions import (
    BothFailedError,
    UpstreamConnectionError,
    UpstreamRedirectError,
    UpstreamStatusError,
    UpstreamTimeoutError,
)
from core.request_types import RequestDescriptor, SourceEntry
from services.upstream import FetchExecutor, build_client

PRIMARY = RequestDescriptor(url="https://primary.test/data", headers={"User-Agent": "test"})
FALLBACK = RequestDescriptor(url="https://fallback.test/data", headers={"User-Agent": "test"})
SETTINGS = UpstreamSettings(timeout=1.0, max_redirects=3)


def run_entry(handler, entry, logger, settings=SETTINGS):
    """Execute ``entry`` against a mock transport and return the outcome."""

    async def _run():
        async with build_client(settings, httpx.MockTransport(handler)) as client:
            executor = FetchExecutor(client, logger, settings)
            return await executor.execute(entry)

    return asyncio.run(_run())


class TestSingleAttempt:
    def test_success_uses_upstream_content_type(self, recording_logger):
        def handler(request):
            return httpx.Response(200, content=b"<xml/>", headers={"Content-Type": "application/xml"})

        outcome = run_entry(handler, SourceEntry("x", PRIMARY), recording_logger)

        assert outcome.status_code == 200
        assert outcome.body == b"<xml/>"
        assert outcome.content_type == "application/xml"
        assert outcome.used_fallback is False

    def test_json_body_sniffed(self, recording_logger):
        outcome = run_entry(
            lambda request: httpx.Response(200, content=b'{"a":1}'),
            SourceEntry("x", PRIMARY),
            recording_logger,
        )

        assert outcome.content_type == "application/json"

    def test_csv_body_sniffed_as_text(self, recording_logger):
        outcome = run_entry(
            lambda request: httpx.Response(200, content=b"col1,col2\n1,2"),
            SourceEntry("x", PRIMARY),
            recording_logger,
        )

        assert outcome.content_type.startswith("text/plain")

    def test_sends_descriptor_headers(self, recording_logger):
        seen = []

        def handler(request):
            seen.append(request.headers["User-Agent"])
            return httpx.Response(200, content=b"ok")

        run_entry(handler, SourceEntry("x", PRIMARY), recording_logger)

        assert seen == ["test"]

    def test_non_2xx_without_fallback(self, recording_logger):
        calls = []

        def handler(request):
            calls.append(request.url.host)
            return httpx.Response(404, content=b"missing")

        with pytest.raises(UpstreamStatusError) as exc_info:
            run_entry(handler, SourceEntry("x", PRIMARY), recording_logger)

        assert exc_info.value.status_code == 404
        assert calls == ["primary.test"]
        assert recording_logger.errors[0][:2] == ("x", 404)

    def test_timeout(self, recording_logger):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(UpstreamTimeoutError):
            run_entry(handler, SourceEntry("x", PRIMARY), recording_logger)

        assert recording_logger.errors

    def test_connection_error_scrubs_credential(self, recording_logger):
        secret = "s3cr3tvalue42"
        descriptor = RequestDescriptor(
            url="https://primary.test/data?x=1",
            headers={},
            injected_param=("api_key", secret),
        )

        def handler(request):
            raise httpx.ConnectError(f"cannot reach {request.url}", request=request)

        with pytest.raises(UpstreamConnectionError) as exc_info:
            run_entry(handler, SourceEntry("x", descriptor), recording_logger)

        assert secret not in exc_info.value.message
        assert "***" in exc_info.value.message
        assert all(secret not in message for _, _, message in recording_logger.errors)


    def test_success_body_scrubs_credential(self, recording_logger):
        secret = "s3cr3t/value+42"
        descriptor = RequestDescriptor(
            url="https://primary.test/data?x=1",
            headers={},
            injected_param=("api_key", secret),
        )

        def handler(request):
            return httpx.Response(200, content=f"{request.url} raw={secret}".encode())

        outcome = run_entry(handler, SourceEntry("x", descriptor), recording_logger)

        assert secret.encode() not in outcome.body
        assert b"s3cr3t%2Fvalue%2B42" not in outcome.body
        assert outcome.body.count(b"***") == 2


class TestRedirects:
    def test_follows_bounded_chain(self, recording_logger):
        def handler(request):
            hop = int(request.url.params.get("hop", "0"))
            if hop < 2:
                return httpx.Response(302, headers={"Location": f"https://primary.test/data?hop={hop + 1}"})
            return httpx.Response(200, content=b"done")

        outcome = run_entry(handler, SourceEntry("x", PRIMARY), recording_logger)

        assert outcome.body == b"done"

    def test_redirect_loop_fails(self, recording_logger):
        calls = []

        def handler(request):
            calls.append(str(request.url))
            return httpx.Response(302, headers={"Location": "https://primary.test/data"})

        with pytest.raises(UpstreamRedirectError):
            run_entry(handler, SourceEntry("x", PRIMARY), recording_logger)

        assert len(calls) <= SETTINGS.max_redirects + 1


class TestFallback:
    def test_primary_success_skips_fallback(self, recording_logger):
        calls = []

        def handler(request):
            calls.append(request.url.host)
            return httpx.Response(200, content=b"primary")

        outcome = run_entry(handler, SourceEntry("x", PRIMARY, FALLBACK), recording_logger)

        assert outcome.body == b"primary"
        assert outcome.used_fallback is False
        assert calls == ["primary.test"]

    @pytest.mark.parametrize("status", [301, 400, 403, 500, 503])
    def test_fallback_after_non_2xx(self, recording_logger, status):
        calls = []

        def handler(request):
            calls.append(request.url.host)
            if request.url.host == "primary.test":
                return httpx.Response(status)
            return httpx.Response(200, content=b"[1,2]")

        outcome = run_entry(handler, SourceEntry("x", PRIMARY, FALLBACK), recording_logger)

        assert outcome.used_fallback is True
        assert outcome.body == b"[1,2]"
        assert outcome.content_type == "application/json"
        assert calls == ["primary.test", "fallback.test"]

    def test_fallback_after_timeout(self, recording_logger):
        def handler(request):
            if request.url.host == "primary.test":
                raise httpx.ConnectTimeout("slow", request=request)
            return httpx.Response(200, content=b"ok")

        outcome = run_entry(handler, SourceEntry("x", PRIMARY, FALLBACK), recording_logger)

        assert outcome.used_fallback is True

    def test_both_failed(self, recording_logger):
        calls = []

        def handler(request):
            calls.append(request.url.host)
            if request.url.host == "primary.test":
                return httpx.Response(503)
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(BothFailedError) as exc_info:
            run_entry(handler, SourceEntry("x", PRIMARY, FALLBACK), recording_logger)

        error = exc_info.value
        assert isinstance(error.primary, UpstreamStatusError)
        assert error.primary.status_code == 503
        assert isinstance(error.fallback, UpstreamTimeoutError)
        assert calls == ["primary.test", "fallback.test"]
