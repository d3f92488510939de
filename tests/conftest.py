"""Shared PageSpeed payload builders and a fake upstream for the test suite."""

import asyncio

import httpx
import pytest

from pagespeed_api.core.config import Settings
from pagespeed_api.services.analysis_service import AnalysisService
from pagespeed_api.services.pagespeed_service import PageSpeedClient

TEST_ENDPOINT = "https://psi.test/pagespeedonline/v5/runPagespeed"


def make_audit(audit_id, score=0.9, display_value="1.2 s", numeric_value=1200.0, savings_ms=None):
    audit = {
        "id": audit_id,
        "title": audit_id.replace("-", " ").title(),
        "description": f"Description of {audit_id}.",
        "score": score,
        "displayValue": display_value,
        "numericValue": numeric_value,
    }
    if savings_ms is not None:
        audit["details"] = {"type": "opportunity", "overallSavingsMs": savings_ms}
    return audit


def make_psi_response(perf_score=0.85, audits=None, drop=(), loading_experience=None, screenshot=None, categories=None):
    """Build a realistic PSI v5 response for testing."""
    metric_audits = {
        "first-contentful-paint": make_audit("first-contentful-paint", 0.98, "0.9 s", 912.5),
        "largest-contentful-paint": make_audit("largest-contentful-paint", 0.71, "2.6 s", 2634.1),
        "speed-index": make_audit("speed-index", 0.88, "2.1 s", 2101.0),
        "total-blocking-time": make_audit("total-blocking-time", 0.93, "150 ms", 150.0),
        "cumulative-layout-shift": make_audit("cumulative-layout-shift", 1, "0.02", 0.0213),
    }
    metric_audits.update(audits or {})
    for audit_id in drop:
        metric_audits.pop(audit_id, None)
    if screenshot is not None:
        metric_audits["final-screenshot"] = {
            "id": "final-screenshot",
            "score": None,
            "details": {"type": "screenshot", "data": screenshot},
        }

    resp = {
        "id": "https://example.com/",
        "lighthouseResult": {
            "requestedUrl": "https://example.com/",
            "audits": metric_audits,
            "categories": categories if categories is not None else {
                "performance": {"id": "performance", "score": perf_score},
            },
        },
    }
    if loading_experience is not None:
        resp["loadingExperience"] = loading_experience
    return resp


def google_error(code, message, errors=None):
    return {
        "error": {
            "code": code,
            "message": message,
            "errors": errors or [{"message": message, "domain": "global", "reason": "badRequest"}],
        }
    }


class FakePageSpeed:
    """
    Stands in for the PageSpeed endpoint behind an httpx.MockTransport.

    `routes` maps a strategy to either a (status, json) tuple or an
    exception instance to raise; `calls` records every query received.
    """

    def __init__(self, routes=None, default=None):
        self.routes = routes or {}
        self.default = default if default is not None else (200, make_psi_response())
        self.calls = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request.url.params)
        outcome = self.routes.get(request.url.params.get("strategy"), self.default)
        if isinstance(outcome, Exception):
            raise outcome
        status, body = outcome
        if isinstance(body, str):
            return httpx.Response(status, text=body, request=request)
        return httpx.Response(status, json=body, request=request)

    @property
    def transport(self):
        return httpx.MockTransport(self)


@pytest.fixture
def settings():
    return Settings(PAGESPEED_API_KEY="test-key", PAGESPEED_API_ENDPOINT=TEST_ENDPOINT, PAGESPEED_TIMEOUT=30.0)


@pytest.fixture
def fake_upstream():
    return FakePageSpeed()


@pytest.fixture
def service(settings, fake_upstream):
    return AnalysisService(settings, PageSpeedClient(settings, transport=fake_upstream.transport))


class TricklingServer:
    """
    A local HTTP server that sends 200 headers, then one body byte every
    `interval` seconds. Each read step stays under httpx's read timeout while
    the whole response takes far longer.

    Use as `async with TricklingServer() as endpoint:` inside a running loop.
    """

    def __init__(self, interval=0.1, body_size=200):
        self.interval = interval
        self.body_size = body_size
        self.stop = None
        self.server = None

    async def _handle(self, reader, writer):
        try:
            await reader.readuntil(b"\r\n\r\n")
            writer.write(
                b"HTTP/1.1 200 OK\r\nContent-Type: application/json\r\n"
                b"Content-Length: %d\r\n\r\n" % self.body_size
            )
            await writer.drain()
            for _ in range(self.body_size):
                if self.stop.is_set():
                    break
                writer.write(b" ")
                await writer.drain()
                await asyncio.sleep(self.interval)
        except (ConnectionError, asyncio.IncompleteReadError):
            pass
        finally:
            writer.close()

    async def __aenter__(self):
        self.stop = asyncio.Event()
        self.server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        port = self.server.sockets[0].getsockname()[1]
        return f"http://127.0.0.1:{port}/runPagespeed"

    async def __aexit__(self, *exc_info):
        self.stop.set()
        self.server.close()
        await self.server.wait_closed()
