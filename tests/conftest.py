"""Shared test fixtures for the camb_connector test suite.

WHY: Almost every test needs a CambClient talking to a scripted fake of the
Camb.ai API instead of the network, and a way to run coroutines from plain
pytest functions.

HOW: FakeApi is an httpx.MockTransport handler. Routes are registered per
(method, path) with a queue of responses; the last response repeats once
the queue is drained. Every request is recorded for assertions. The
``run_with_client`` fixture enters a CambClient wired to the fake and runs
a coroutine function with it via asyncio.run().

RULES:
- Paths under the base endpoint are registered without the /apis prefix
- External (skip_auth) URLs are registered by their full URL
- Unregistered routes answer 404 so missing stubs fail loudly
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Tuple

import httpx
import pytest

from camb_connector.api.client import CambClient

BASE_URL = "https://api.test/apis"
API_KEY = "test-key"


class FakeApi:
    """Scripted stand-in for the Camb.ai HTTP API."""

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], List[httpx.Response]] = {}
        self.requests: List[httpx.Request] = []

    def add(self, method: str, path: str, *responses: httpx.Response) -> FakeApi:
        self.routes.setdefault((method, path), []).extend(responses)
        return self

    def json(self, method: str, path: str, *payloads: Any, status: int = 200) -> FakeApi:
        return self.add(method, path, *[httpx.Response(status, json=p) for p in payloads])

    def binary(self, method: str, path: str, content: bytes) -> FakeApi:
        return self.add(method, path, httpx.Response(200, content=content))

    def _key(self, request: httpx.Request) -> Tuple[str, str]:
        url = "{}://{}{}".format(request.url.scheme, request.url.host, request.url.path)
        if url.startswith(BASE_URL):
            return request.method, url[len(BASE_URL):]
        return request.method, url

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get(self._key(request))
        if not queue:
            return httpx.Response(404, json={"detail": "no route"})
        if len(queue) > 1:
            return queue.pop(0)
        return queue[0]

    def paths(self) -> List[Tuple[str, str]]:
        return [self._key(r) for r in self.requests]


class SleepRecorder:
    """Replacement for asyncio.sleep that records intervals and returns at once."""

    def __init__(self) -> None:
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def sleeps() -> SleepRecorder:
    return SleepRecorder()


def make_client(api: FakeApi) -> CambClient:
    return CambClient(api_key=API_KEY, base_url=BASE_URL, transport=httpx.MockTransport(api))


@pytest.fixture
def run_with_client(api):
    """Run ``fn(client)`` inside an entered CambClient and return its result."""

    def _run(fn):
        async def _main():
            async with make_client(api) as client:
                return await fn(client)

        return asyncio.run(_main())

    return _run
