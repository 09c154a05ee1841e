"""Debounced re-triggering of reconciliation from host mutation/navigation events.

Host notifications arrive through a ``MutationFeed`` subscription. Events that
touch diff structure (or any navigation) are coalesced by ``debounce`` and each
coalesced burst runs one reconciliation pass over the page.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from typing import AsyncIterator, Callable, TypeVar, Union

from bs4 import Tag

from .config import HostSelectors
from .host import matches_or_contains
from .reconciler import PassResult, Reconciler

logger = logging.getLogger(__name__)

T = TypeVar("T")

_CLOSED = object()


@dataclass
class MutationBatch:
    added: tuple[object, ...]


@dataclass
class NavigationEvent:
    url: str


HostEvent = Union[MutationBatch, NavigationEvent]


class MutationFeed:
    """Fan-out of host events; every ``subscribe()`` call gets its own sequence."""

    def __init__(self) -> None:
        self._queues: list[asyncio.Queue] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def publish(self, event: HostEvent) -> None:
        if self._closed:
            raise RuntimeError("Mutation feed is closed.")
        for queue in self._queues:
            queue.put_nowait(event)

    def navigate(self, url: str) -> None:
        self.publish(NavigationEvent(url=url))

    def subscribe(self) -> AsyncIterator[HostEvent]:
        queue: asyncio.Queue = asyncio.Queue()
        if self._closed:
            queue.put_nowait(_CLOSED)
        else:
            self._queues.append(queue)
        return self._drain(queue)

    async def _drain(self, queue: asyncio.Queue) -> AsyncIterator[HostEvent]:
        try:
            while True:
                event = await queue.get()
                if event is _CLOSED:
                    return
                yield event
        finally:
            if queue in self._queues:
                self._queues.remove(queue)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for queue in self._queues:
            queue.put_nowait(_CLOSED)


def is_qualifying(event: HostEvent, selectors: HostSelectors) -> bool:
    if isinstance(event, NavigationEvent):
        return True
    return any(isinstance(node, Tag) and matches_or_contains(node, selectors.triggers) for node in event.added)


async def _next_event(iterator: AsyncIterator[T]) -> tuple[bool, T | None]:
    try:
        return True, await iterator.__anext__()
    except StopAsyncIteration:
        return False, None


async def debounce(events: AsyncIterator[T], delay: float) -> AsyncIterator[list[T]]:
    """Yield each burst of events once ``delay`` seconds pass without a new one."""
    iterator = events.__aiter__()
    pending: list[T] = []
    next_item: asyncio.Future = asyncio.ensure_future(_next_event(iterator))
    try:
        while True:
            done, _ = await asyncio.wait({next_item}, timeout=delay if pending else None)
            if not done:
                burst, pending = pending, []
                yield burst
                continue
            has_item, item = next_item.result()
            if not has_item:
                # Source ended; a pending timer is discarded.
                return
            pending.append(item)  # type: ignore[arg-type]
            next_item = asyncio.ensure_future(_next_event(iterator))
    finally:
        if not next_item.done():
            next_item.cancel()


class MutationScheduler:
    def __init__(
        self,
        reconciler: Reconciler,
        root: Tag,
        feed: MutationFeed | None = None,
        delay: float | None = None,
        on_pass: Callable[[PassResult], None] | None = None,
        initial_pass: bool = True,
        history: int = 20,
    ):
        self.reconciler = reconciler
        self.root = root
        self.feed = feed or MutationFeed()
        self.delay = reconciler.config.debounce_seconds if delay is None else delay
        self.on_pass = on_pass
        self.initial_pass = initial_pass
        # Most recent pass results only; a long-lived page runs unbounded passes.
        self.passes: deque[PassResult] = deque(maxlen=history)

    async def _qualifying(self, events: AsyncIterator[HostEvent]) -> AsyncIterator[HostEvent]:
        selectors = self.reconciler.config.selectors
        async for event in events:
            try:
                qualifying = is_qualifying(event, selectors)
            except Exception:  # noqa: BLE001
                logger.warning("Ignoring host event that could not be matched", exc_info=True)
                continue
            if qualifying:
                yield event

    async def run(self) -> list[PassResult]:
        subscription = self.feed.subscribe()
        if self.initial_pass and not self.feed.closed:
            self.feed.navigate("")
        async for burst in debounce(self._qualifying(subscription), self.delay):
            logger.debug("Running reconciliation after %d coalesced events", len(burst))
            try:
                result = await self.reconciler.reconcile_document(self.root)
            except Exception:  # noqa: BLE001
                logger.warning("Reconciliation pass failed", exc_info=True)
                continue
            self.passes.append(result)
            if self.on_pass is not None:
                self.on_pass(result)
        return list(self.passes)

    def stop(self) -> None:
        self.feed.close()
