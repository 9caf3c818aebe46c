"""Tests for the single-endpoint prober."""

import httpx
import pytest

from conftest import status_transport
from statuspulse.app.checker import Checker, ProbeOutcome


async def _probe(checker: Checker, url: str):
    async with checker.client() as client:
        return await checker.check_one(client, url)


@pytest.mark.asyncio
async def test_2xx_is_healthy(make_settings) -> None:
    checker = Checker(make_settings(), transport=status_transport({"http://up.test/": 204}))

    result = await _probe(checker, "http://up.test/")

    assert result.healthy is True
    assert result.response_code == 204
    assert result.outcome is ProbeOutcome.SUCCESS
    assert result.error is None
    assert result.response_time_ms >= 0


@pytest.mark.asyncio
async def test_non_2xx_is_http_error_with_status(make_settings) -> None:
    checker = Checker(make_settings(), transport=status_transport({"http://down.test/": 503}))

    result = await _probe(checker, "http://down.test/")

    assert result.healthy is False
    assert result.response_code == 503
    assert result.outcome is ProbeOutcome.HTTP_ERROR


@pytest.mark.asyncio
async def test_connection_failure_has_no_response_code(make_settings) -> None:
    checker = Checker(make_settings(), transport=status_transport({}))

    result = await _probe(checker, "http://refused.test/")

    assert result.healthy is False
    assert result.response_code == 0
    assert result.outcome is ProbeOutcome.TRANSPORT_ERROR
    assert "ConnectError" in result.error


@pytest.mark.asyncio
async def test_timeout_is_transport_error(make_settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    checker = Checker(make_settings(), transport=httpx.MockTransport(handler))

    result = await _probe(checker, "http://slow.test/")

    assert result.response_code == 0
    assert result.outcome is ProbeOutcome.TRANSPORT_ERROR


@pytest.mark.asyncio
async def test_redirects_are_followed(make_settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/old":
            return httpx.Response(301, headers={"Location": "http://moved.test/new"})
        return httpx.Response(200)

    checker = Checker(make_settings(), transport=httpx.MockTransport(handler))

    result = await _probe(checker, "http://moved.test/old")

    assert result.healthy is True
    assert result.response_code == 200


@pytest.mark.asyncio
async def test_invalid_url_never_raises(make_settings) -> None:
    checker = Checker(make_settings())

    result = await _probe(checker, "not a url")

    assert result.healthy is False
    assert result.response_code == 0
    assert result.outcome is ProbeOutcome.TRANSPORT_ERROR


@pytest.mark.asyncio
async def test_refused_local_port(make_settings) -> None:
    checker = Checker(make_settings())

    result = await _probe(checker, "http://127.0.0.1:1/")

    assert result.healthy is False
    assert result.response_code == 0
    assert result.outcome is ProbeOutcome.TRANSPORT_ERROR


@pytest.mark.asyncio
async def test_sends_configured_user_agent(make_settings) -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["ua"] = request.headers["User-Agent"]
        return httpx.Response(200)

    checker = Checker(make_settings(UA="uptime-test/1.0"), transport=httpx.MockTransport(handler))

    await _probe(checker, "http://ua.test/")

    assert seen["ua"] == "uptime-test/1.0"


class _BreaksOnClose(httpx.AsyncByteStream):
    async def __aiter__(self):
        yield b""

    async def aclose(self) -> None:
        raise httpx.ReadError("connection reset while closing")


@pytest.mark.asyncio
async def test_failure_after_status_line_reports_no_response_code(make_settings) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, stream=_BreaksOnClose())

    checker = Checker(make_settings(), transport=httpx.MockTransport(handler))

    result = await _probe(checker, "http://reset.test/")

    assert result.outcome is ProbeOutcome.TRANSPORT_ERROR
    assert result.response_code == 0
    assert result.healthy is False
