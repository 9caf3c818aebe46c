"""Shared fixtures for the StatusPulse test suite."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import httpx
import pytest

from statuspulse.app.checker import ProbeOutcome, ProbeResult
from statuspulse.app.config import Settings


def make_result(
    url: str,
    healthy: bool = True,
    code: int = 200,
    at: float = 1_700_000_000.0,
    elapsed_ms: int = 12,
) -> ProbeResult:
    if healthy:
        outcome = ProbeOutcome.SUCCESS
    elif code:
        outcome = ProbeOutcome.HTTP_ERROR
    else:
        outcome = ProbeOutcome.TRANSPORT_ERROR
    return ProbeResult(
        url=url,
        healthy=healthy,
        response_code=code,
        response_time_ms=elapsed_ms,
        outcome=outcome,
        checked_at=at,
    )


class RecordingSubscriber:
    """Subscriber that keeps every payload it was sent."""

    def __init__(self) -> None:
        self.received: list[Any] = []
        self.close_codes: list[int] = []

    async def send_json(self, data: Any) -> None:
        self.received.append(data)

    async def close(self, code: int = 1000) -> None:
        self.close_codes.append(code)


class FailingSubscriber(RecordingSubscriber):
    """Subscriber whose writes fail after the first ``healthy_sends``, like a dropped socket."""

    def __init__(self, healthy_sends: int = 0) -> None:
        super().__init__()
        self.healthy_sends = healthy_sends
        self.attempts = 0

    async def send_json(self, data: Any) -> None:
        self.attempts += 1
        if self.attempts > self.healthy_sends:
            raise RuntimeError("Cannot call send once a close message has been sent")
        self.received.append(data)


class StalledSubscriber(RecordingSubscriber):
    """Subscriber whose writes stop completing after the first ``healthy_sends``."""

    def __init__(self, healthy_sends: int = 0) -> None:
        super().__init__()
        self.healthy_sends = healthy_sends

    async def send_json(self, data: Any) -> None:
        if len(self.received) >= self.healthy_sends:
            await asyncio.sleep(3600)
        self.received.append(data)


def status_transport(codes: dict[str, int]) -> httpx.MockTransport:
    """Transport answering each URL with a fixed status; unknown URLs are refused."""

    def handler(request: httpx.Request) -> httpx.Response:
        code = codes.get(str(request.url))
        if code is None:
            raise httpx.ConnectError("[Errno 111] Connection refused", request=request)
        return httpx.Response(code, text="ok" if 200 <= code < 300 else "down")

    return httpx.MockTransport(handler)


@pytest.fixture
def make_settings(tmp_path: Path):
    def _make(urls: list[str] | None = None, **overrides: Any) -> Settings:
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps(urls or []), encoding="utf-8")
        values: dict[str, Any] = {
            "CONFIG_PATH": str(config_path),
            "STATIC_PATH": str(tmp_path / "no-static"),
            "DATA_PATH": str(tmp_path / "data"),
            "INTERVAL_S": 3600.0,
            "CONNECT_TIMEOUT_S": 2.0,
            "READ_TIMEOUT_S": 2.0,
            "TOTAL_TIMEOUT_S": 2.0,
            "SEND_TIMEOUT_S": 0.2,
        }
        values.update(overrides)
        return Settings(**values)

    return _make
