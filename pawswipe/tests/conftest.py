"""
Pytest fixtures for pawswipe tests.
"""

import asyncio
import io
import random

import pytest
from PIL import Image

from ..engine_core.state import ImageItem, SessionPhase, SessionState
from ..errors import FetchFailure
from ..prefetch import BatchPrefetcher, ImageSource, ImageValidator
from ..session import SwipeSession


def make_png(color=(200, 120, 40)) -> bytes:
    """A tiny real PNG."""
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), color).save(buffer, format="PNG")
    return buffer.getvalue()


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


class FakeSource(ImageSource):
    """
    Scripted image source.

    `respond` receives the 1-based call number and returns the payload to
    serve, or None to fail the request.
    """

    def __init__(self, respond=None, payload: bytes | None = None):
        self.payload = payload if payload is not None else make_png()
        self.respond = respond or (lambda call: self.payload)
        self.calls = 0
        self.cache_busts: list[str] = []
        self.closed = False

    async def fetch(self, cache_bust: str) -> bytes:
        self.calls += 1
        self.cache_busts.append(cache_bust)
        payload = self.respond(self.calls)
        if payload is None:
            raise FetchFailure("scripted failure")
        return payload

    def fallback_reference(self, slot_index: int) -> str:
        return f"https://images.test/cat?fallback={slot_index}"

    async def aclose(self) -> None:
        self.closed = True


class RecordingSleep:
    """Stands in for asyncio.sleep and records requested delays."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def make_items(count: int) -> tuple[ImageItem, ...]:
    return tuple(
        ImageItem(id=i, handle=f"blob:test/{i}", acquired_at=float(i))
        for i in range(count)
    )


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def fake_source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def flaky_source() -> FakeSource:
    """Fails about half of all requests, deterministically."""
    rng = random.Random(7)
    source = FakeSource()
    source.respond = lambda call: source.payload if rng.random() < 0.5 else None
    return source


@pytest.fixture
def prefetcher(fake_source, recording_sleep) -> BatchPrefetcher:
    return BatchPrefetcher(
        fake_source,
        validator=ImageValidator(timeout=5.0),
        sleep=recording_sleep,
    )


@pytest.fixture
def session_factory(prefetcher, clock):
    """Build sessions sharing the fake prefetcher and clock."""

    def factory(batch_size: int = 5, **kwargs) -> SwipeSession:
        return SwipeSession(prefetcher, batch_size=batch_size, clock=clock, **kwargs)

    return factory


@pytest.fixture
def active_session(session_factory) -> SwipeSession:
    """A started five-item session."""
    session = session_factory(batch_size=5)
    asyncio.run(session.start())
    assert session.phase == SessionPhase.ACTIVE
    return session


@pytest.fixture
def active_state() -> SessionState:
    """A five-item ACTIVE state with nothing decided."""
    return SessionState(phase=SessionPhase.ACTIVE, items=make_items(5))
