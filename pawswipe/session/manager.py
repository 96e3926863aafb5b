"""
Swipe Session - The explicit session object behind every input handler.

LIFECYCLE:
1. start()   IDLE -> PREFETCHING, then ACTIVE once the batch resolves
             (back to IDLE, batch released, if the prefetch itself raises)
2. input     pointer events and decisions, one item at a time
3. complete  cursor reaches the end, summary emitted exactly once
4. reset()   COMPLETE -> IDLE (handles released) -> PREFETCHING again

RESOURCES:
- Each batch owns one ResourceArena
- Reset releases the outgoing arena before the next batch is fetched
- A batch that arrives after the session moved on is released at once

The session is constructed by the entry point and passed to handlers; there
is no module-level instance.
"""

from __future__ import annotations
from typing import Callable
import logging
import time

from ..engine_core.event import Event, EventResult, TransitionKind
from ..engine_core.gesture import CardTransform, StackCard, stack_layout
from ..engine_core.reducer import Reducer
from ..engine_core.state import (
    ImageItem,
    Outcome,
    Progress,
    SessionPhase,
    SessionState,
    SessionSummary,
)
from ..prefetch import BatchPrefetcher, ResourceArena, StoredPayload


logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 15


class SessionListener:
    """
    Presentation and report hooks. Override what you need.

    Exceptions raised here are logged and never change session state.
    """

    def on_transform(self, item: ImageItem, transform: CardTransform) -> None:
        pass

    def on_entered(self, item: ImageItem) -> None:
        pass

    def on_exited(self, item: ImageItem, outcome: Outcome) -> None:
        pass

    def on_complete(self, summary: SessionSummary, accepted: list[ImageItem]) -> None:
        pass


class SwipeSession:
    """
    One swipe session.

    Usage:
        session = SwipeSession(BatchPrefetcher(HttpImageSource()))
        await session.start()

        session.pointer_down(0, 0)
        session.pointer_move(140, 5)
        session.pointer_up()          # accepted

        session.reject()              # ignored until the settle delay passes
    """

    def __init__(
        self,
        prefetcher: BatchPrefetcher,
        batch_size: int = DEFAULT_BATCH_SIZE,
        reducer: Reducer | None = None,
        clock: Callable[[], float] = time.monotonic,
        listeners: list[SessionListener] | None = None,
    ):
        self.prefetcher = prefetcher
        self.batch_size = batch_size
        self.reducer = reducer or Reducer()
        self.clock = clock
        self.listeners: list[SessionListener] = list(listeners or [])

        self.state = SessionState()
        self.arena: ResourceArena | None = None
        self.last_summary: SessionSummary | None = None

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> EventResult:
        """Prefetch a batch and make the first item interactive."""
        started = self.dispatch(Event.start())
        if not started.applied:
            return started

        arena = ResourceArena()
        try:
            items = await self.prefetcher.prefetch_batch(self.batch_size, arena)
        except Exception:
            logger.warning("Prefetch failed, returning to idle")
            arena.release_all()
            self.dispatch(Event.prefetch_failed())
            raise

        loaded = self.dispatch(Event.batch_loaded(items))
        if loaded.applied:
            self.arena = arena
        else:
            logger.warning("Discarding batch loaded while %s", self.state.phase.value)
            arena.release_all()
        return loaded

    async def reset(self) -> EventResult:
        """Release the finished batch and prefetch a new one."""
        result = self.dispatch(Event.reset())
        if not result.applied:
            return result
        return await self.start()

    async def close(self) -> None:
        """Release everything; the session cannot be restarted afterwards."""
        self._release_arena()
        await self.prefetcher.source.aclose()

    # =========================================================================
    # Input
    # =========================================================================

    def pointer_down(self, x: float, y: float) -> EventResult:
        return self.dispatch(Event.pointer_down(x, y))

    def pointer_move(self, x: float, y: float) -> EventResult:
        return self.dispatch(Event.pointer_move(x, y))

    def pointer_up(self, x: float | None = None, y: float | None = None) -> EventResult:
        return self.dispatch(Event.pointer_up(x, y))

    def pointer_cancel(self) -> EventResult:
        return self.dispatch(Event.pointer_cancel())

    def decide(self, outcome: Outcome) -> EventResult:
        return self.dispatch(Event.decide(outcome))

    def accept(self) -> EventResult:
        return self.decide(Outcome.ACCEPT)

    def reject(self) -> EventResult:
        return self.decide(Outcome.REJECT)

    def dispatch(self, event: Event) -> EventResult:
        """
        Apply one event and carry out its side effects.

        This is the only place session state is replaced.
        """
        previous = self.state
        result = self.reducer.apply(previous, event.stamped(self.clock()))
        if not result.applied:
            return result

        self.state = result.new_state

        if result.released_handles or self.state.phase == SessionPhase.IDLE:
            self._release_arena()

        if result.transform is not None and previous.current_item is not None:
            self._notify("on_transform", previous.current_item, result.transform)

        for transition in result.transitions:
            item = self._item_by_id(transition.item_id)
            if transition.kind == TransitionKind.EXITED:
                self._notify("on_exited", item, transition.outcome)
            else:
                self._notify("on_entered", item)

        if result.summary is not None:
            self.last_summary = result.summary
            logger.info(
                "Session complete: %d of %d accepted",
                result.summary.accepted_count, result.summary.total_count,
            )
            self._notify("on_complete", result.summary, list(self.state.accepted))

        return result

    # =========================================================================
    # Views
    # =========================================================================

    @property
    def phase(self) -> SessionPhase:
        return self.state.phase

    def is_interactive(self) -> bool:
        """Whether the top card currently accepts a drag or decision."""
        return (
            self.state.current_item is not None
            and not self.state.is_settling(self.clock())
        )

    def progress(self) -> Progress:
        return self.state.progress()

    def stack(self) -> list[StackCard]:
        return stack_layout(self.state)

    def summary(self) -> SessionSummary | None:
        """Summary of the completed session, if complete."""
        if not self.state.is_complete:
            return None
        return self.state.summary()

    def get_item(self, item_id: int) -> ImageItem | None:
        return self._item_by_id(item_id)

    def resolve_handle(self, handle: str) -> StoredPayload | None:
        """Payload for an arena handle of the live batch."""
        if self.arena is None:
            return None
        return self.arena.resolve(handle)

    # =========================================================================
    # Internals
    # =========================================================================

    def _item_by_id(self, item_id: int) -> ImageItem | None:
        items = self.state.items
        if 0 <= item_id < len(items) and items[item_id].id == item_id:
            return items[item_id]
        return next((item for item in items if item.id == item_id), None)

    def _release_arena(self) -> None:
        if self.arena is not None:
            self.arena.release_all()
            self.arena = None

    def _notify(self, hook: str, *args) -> None:
        for listener in self.listeners:
            try:
                getattr(listener, hook)(*args)
            except Exception:
                logger.exception("Listener %r failed in %s", listener, hook)
