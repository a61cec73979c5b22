"""Spoiler unlock client tests — request flow, retries and error mapping over httpx.MockTransport.

Tests cover:
    - unlock() POSTs /seed/unlock then GETs /seed/details with id + key params
    - 429 retried (Retry-After honoured), then success
    - 5xx and transport errors retried up to max_retries, then connection_error
    - Other 4xx fail immediately with client_error
    - Body without spoilerLog → decode_error
"""

import json

import httpx
import pytest

from ladder.core.errors import SpoilerUnlockError
from ladder.infrastructure.unlock_client import SpoilerUnlockClient

SPOILER = {"seed": "abc", "locations": {"Kokiri Sword": "Bombchus"}}


def _client(handler, max_retries=2):
    return SpoilerUnlockClient(
        "http://unlock.test/api/v2/",
        "secret-key",
        max_retries=max_retries,
        base_delay_ms=1,
        max_delay_ms=5,
        min_interval_ms=0,
        transport=httpx.MockTransport(handler),
    )


def _ok_handler(log):
    def handler(request: httpx.Request) -> httpx.Response:
        log.append(request)
        if request.url.path.endswith("/seed/unlock"):
            return httpx.Response(200, json={})
        return httpx.Response(200, json={"spoilerLog": SPOILER})
    return handler


async def test_unlock_flow():
    log = []
    client = _client(_ok_handler(log))

    content = await client.unlock("seed-123")
    await client.aclose()

    assert json.loads(content) == SPOILER
    assert [(r.method, r.url.path) for r in log] == [
        ("POST", "/api/v2/seed/unlock"),
        ("GET", "/api/v2/seed/details"),
    ]
    assert log[0].url.params["id"] == "seed-123"
    assert log[0].url.params["key"] == "secret-key"


async def test_rate_limit_then_success():
    log = []
    ok = _ok_handler(log)
    calls = {"n": 0}

    def handler(request):
        calls["n"] += 1
        if calls["n"] == 1:
            return httpx.Response(429, headers={"retry-after": "0"})
        return ok(request)

    client = _client(handler)
    content = await client.unlock("seed-123")

    assert json.loads(content) == SPOILER
    assert calls["n"] == 3


async def test_rate_limit_exhausted():
    client = _client(lambda request: httpx.Response(429), max_retries=1)

    with pytest.raises(SpoilerUnlockError) as exc_info:
        await client.unlock("seed-123")
    assert exc_info.value.api_error_type == "rate_limit"


async def test_server_errors_are_retried():
    calls = {"n": 0}

    def handler(request):
        calls["n"] += 1
        return httpx.Response(503)

    client = _client(handler, max_retries=2)

    with pytest.raises(SpoilerUnlockError) as exc_info:
        await client.unlock("seed-123")
    assert exc_info.value.api_error_type == "connection_error"
    assert calls["n"] == 3


async def test_transport_errors_are_retried():
    log = []
    ok = _ok_handler(log)
    calls = {"n": 0}

    def handler(request):
        calls["n"] += 1
        if calls["n"] == 1:
            raise httpx.ConnectError("connection refused", request=request)
        return ok(request)

    client = _client(handler)

    assert json.loads(await client.unlock("seed-123")) == SPOILER
    assert len(log) == 2


async def test_client_error_is_not_retried():
    calls = {"n": 0}

    def handler(request):
        calls["n"] += 1
        return httpx.Response(403, json={"error": "invalid key"})

    client = _client(handler)

    with pytest.raises(SpoilerUnlockError) as exc_info:
        await client.unlock("seed-123")
    assert exc_info.value.api_error_type == "client_error"
    assert calls["n"] == 1
    assert not exc_info.value.public


async def test_missing_spoiler_log():
    def handler(request):
        return httpx.Response(200, json={"status": "ok"})

    client = _client(handler)

    with pytest.raises(SpoilerUnlockError) as exc_info:
        await client.unlock("seed-123")
    assert exc_info.value.api_error_type == "decode_error"
    assert isinstance(exc_info.value.__cause__, KeyError)
