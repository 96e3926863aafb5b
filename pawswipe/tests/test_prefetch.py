"""
Tests for the batch prefetcher.

Tests:
- Totality under failures
- Retry, backoff and fallback
- Validation of payloads
- HTTP source behaviour against a mock transport
- Arena ownership of payloads
"""

import asyncio
import logging
import time

import httpx
import pytest

from ..errors import FetchFailure, ValidationFailure
from ..prefetch import (
    BatchPrefetcher,
    HttpImageSource,
    ImageValidator,
    ResourceArena,
    cache_bust_token,
)
from ..prefetch import validator as validator_module
from .conftest import FakeSource, RecordingSleep, make_png


def run(coro):
    return asyncio.run(coro)


class TestTotality:
    """prefetch_batch always returns exactly N items."""

    @pytest.mark.parametrize("count", [0, 1, 5, 15])
    def test_all_successful(self, prefetcher, count):
        arena = ResourceArena()
        items = run(prefetcher.prefetch_batch(count, arena))

        assert [item.id for item in items] == list(range(count))
        assert not any(item.is_fallback for item in items)
        assert len(arena) == count

    def test_flaky_network(self, flaky_source, recording_sleep):
        prefetcher = BatchPrefetcher(flaky_source, sleep=recording_sleep)
        items = run(prefetcher.prefetch_batch(20, ResourceArena()))

        assert len(items) == 20
        assert [item.id for item in items] == list(range(20))
        assert all(isinstance(item.is_fallback, bool) for item in items)

    def test_dead_network(self, recording_sleep):
        source = FakeSource(respond=lambda call: None)
        prefetcher = BatchPrefetcher(source, sleep=recording_sleep)
        arena = ResourceArena()

        items = run(prefetcher.prefetch_batch(4, arena))

        assert len(items) == 4
        assert all(item.is_fallback for item in items)
        assert items[2].handle == "https://images.test/cat?fallback=2"
        assert len(arena) == 0

    def test_negative_count_rejected(self, prefetcher):
        with pytest.raises(ValueError):
            run(prefetcher.prefetch_batch(-1, ResourceArena()))

    def test_order_is_slot_order_not_completion_order(self, recording_sleep):
        """Slot 0 finishes last but is still first."""

        class SlowFirstSource(FakeSource):
            async def fetch(self, cache_bust):
                self.calls += 1
                if self.calls == 1:
                    await asyncio.sleep(0.05)
                return self.payload

        prefetcher = BatchPrefetcher(SlowFirstSource(), sleep=recording_sleep)
        items = run(prefetcher.prefetch_batch(3, ResourceArena()))

        assert [item.id for item in items] == [0, 1, 2]
        assert items[0].acquired_at >= items[1].acquired_at


class TestRetries:
    """Per-slot retry loop."""

    def test_retries_then_succeeds(self, recording_sleep):
        source = FakeSource(respond=lambda call: None if call < 3 else make_png())
        prefetcher = BatchPrefetcher(source, sleep=recording_sleep)

        items = run(prefetcher.prefetch_batch(1, ResourceArena()))

        assert not items[0].is_fallback
        assert source.calls == 3
        assert recording_sleep.delays == [1.0, 2.0]

    def test_stops_after_first_success(self, recording_sleep):
        source = FakeSource()
        prefetcher = BatchPrefetcher(source, sleep=recording_sleep)

        run(prefetcher.prefetch_batch(1, ResourceArena()))

        assert source.calls == 1
        assert recording_sleep.delays == []

    def test_linear_backoff_and_no_wait_after_last(self, recording_sleep):
        source = FakeSource(respond=lambda call: None)
        prefetcher = BatchPrefetcher(source, max_retries=3, sleep=recording_sleep)

        run(prefetcher.prefetch_batch(1, ResourceArena()))

        assert source.calls == 3
        assert recording_sleep.delays == [1.0, 2.0]

    def test_invalid_payload_is_retried(self, recording_sleep):
        source = FakeSource(respond=lambda call: b"not an image" if call == 1 else make_png())
        prefetcher = BatchPrefetcher(source, sleep=recording_sleep)

        items = run(prefetcher.prefetch_batch(1, ResourceArena()))

        assert not items[0].is_fallback
        assert source.calls == 2

    def test_cache_bust_unique_per_attempt(self, recording_sleep):
        source = FakeSource(respond=lambda call: None)
        prefetcher = BatchPrefetcher(source, sleep=recording_sleep)

        run(prefetcher.prefetch_batch(3, ResourceArena()))

        assert len(source.cache_busts) == 9
        assert len(set(source.cache_busts)) == 9

    def test_exhausted_slot_logs_warning(self, recording_sleep, caplog):
        source = FakeSource(respond=lambda call: None)
        prefetcher = BatchPrefetcher(source, sleep=recording_sleep)

        with caplog.at_level(logging.WARNING):
            run(prefetcher.prefetch_batch(1, ResourceArena()))

        assert "exhausted" in caplog.text

    def test_unexpected_source_error_is_retried(self, recording_sleep):
        """A transport error that is not a FetchFailure still only costs one attempt."""

        class ResettingSource(FakeSource):
            async def fetch(self, cache_bust):
                self.calls += 1
                if self.calls == 1:
                    raise ConnectionResetError("peer reset")
                return self.payload

        prefetcher = BatchPrefetcher(ResettingSource(), sleep=recording_sleep)
        items = run(prefetcher.prefetch_batch(3, ResourceArena()))

        assert [item.id for item in items] == [0, 1, 2]
        assert not any(item.is_fallback for item in items)
        assert recording_sleep.delays == [1.0]

    def test_source_that_always_raises_falls_back(self, recording_sleep, caplog):
        class BrokenSource(FakeSource):
            async def fetch(self, cache_bust):
                self.calls += 1
                raise OSError("socket closed")

        prefetcher = BatchPrefetcher(BrokenSource(), sleep=recording_sleep)
        arena = ResourceArena()

        with caplog.at_level(logging.WARNING):
            items = run(prefetcher.prefetch_batch(2, arena))

        assert len(items) == 2
        assert all(item.is_fallback for item in items)
        assert len(arena) == 0
        assert "socket closed" in caplog.text

    def test_max_retries_must_be_positive(self, fake_source):
        with pytest.raises(ValueError):
            BatchPrefetcher(fake_source, max_retries=0)


class TestValidator:
    """Pillow-based payload validation."""

    def test_valid_png(self, png_bytes):
        assert run(ImageValidator().validate(png_bytes)) == "image/png"

    def test_garbage_fails(self):
        with pytest.raises(ValidationFailure):
            run(ImageValidator().validate(b"<html>nope</html>"))

    def test_truncated_image_fails(self, png_bytes):
        with pytest.raises(ValidationFailure):
            run(ImageValidator().validate(png_bytes[: len(png_bytes) // 2]))

    def test_timeout_fails(self, monkeypatch, png_bytes):
        def slow_decode(payload):
            time.sleep(0.2)
            return "image/png"

        monkeypatch.setattr(validator_module, "decode_media_type", slow_decode)

        with pytest.raises(ValidationFailure):
            run(ImageValidator(timeout=0.01).validate(png_bytes))


class TestHttpImageSource:
    """httpx source against a mock transport."""

    def _source(self, handler) -> HttpImageSource:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return HttpImageSource(base_url="https://images.test/cat", client=client)

    def test_fetch_sends_size_and_cache_bust(self, png_bytes):
        seen = []

        def handler(request):
            seen.append(request.url)
            return httpx.Response(200, content=png_bytes)

        source = self._source(handler)
        payload = run(source.fetch("1700000000000-abcd1234"))

        assert payload == png_bytes
        params = seen[0].params
        assert params["width"] == "400"
        assert params["height"] == "400"
        assert params["t"] == "1700000000000"
        assert params["r"] == "abcd1234"

    def test_error_status_is_fetch_failure(self):
        source = self._source(lambda request: httpx.Response(503))

        with pytest.raises(FetchFailure):
            run(source.fetch(cache_bust_token()))

    def test_empty_body_is_fetch_failure(self):
        source = self._source(lambda request: httpx.Response(200, content=b""))

        with pytest.raises(FetchFailure):
            run(source.fetch(cache_bust_token()))

    def test_transport_error_is_fetch_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        source = self._source(handler)

        with pytest.raises(FetchFailure):
            run(source.fetch(cache_bust_token()))

    def test_fallback_reference_is_deterministic(self):
        source = HttpImageSource(base_url="https://images.test/cat")

        assert source.fallback_reference(3) == source.fallback_reference(3)
        assert "fallback=3" in source.fallback_reference(3)
        assert "width=400" in source.fallback_reference(3)

    def test_prefetch_over_http(self, png_bytes, recording_sleep):
        statuses = iter([500, 200, 200, 200])

        def handler(request):
            status = next(statuses)
            return httpx.Response(status, content=png_bytes if status == 200 else b"")

        prefetcher = BatchPrefetcher(self._source(handler), sleep=recording_sleep)
        items = run(prefetcher.prefetch_batch(3, ResourceArena()))

        assert len(items) == 3
        assert not any(item.is_fallback for item in items)


class TestResourceArena:
    """Handle ownership."""

    def test_allocate_and_resolve(self, png_bytes):
        arena = ResourceArena()
        handle = arena.allocate(png_bytes, "image/png")

        assert handle.startswith("blob:")
        assert handle in arena
        assert arena.resolve(handle).data == png_bytes

    def test_release_all(self, png_bytes):
        arena = ResourceArena()
        handles = [arena.allocate(png_bytes, "image/png") for _ in range(3)]

        assert arena.release_all() == 3
        assert all(arena.resolve(h) is None for h in handles)
        assert arena.is_released

    def test_released_arena_refuses_allocation(self, png_bytes):
        arena = ResourceArena()
        arena.release_all()

        with pytest.raises(RuntimeError):
            arena.allocate(png_bytes, "image/png")

    def test_release_single_handle(self, png_bytes):
        arena = ResourceArena()
        handle = arena.allocate(png_bytes, "image/png")

        assert arena.release(handle)
        assert not arena.release(handle)
