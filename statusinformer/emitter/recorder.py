"""Delegated emission through an event-recording facility.

EventRecorder owns naming and aggregation of events, the way the Kubernetes
client event broadcaster does: ``record`` only enqueues, a background worker
writes, and an identical event (same involved object, type, reason and
message) seen again bumps ``count`` and ``lastTimestamp`` on the record it
created earlier instead of creating another one.

RecorderEventEmitter is the pipeline-facing adapter that hands each
condition to the recorder.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections import OrderedDict
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import aiohttp
from kubernetes_asyncio.client.exceptions import ApiException

from statusinformer.emitter.base import (
    EventEmitter,
    EventEncodingError,
    encode_event,
    event_namespace,
    event_type_for,
)
from statusinformer.models.conditions import Condition
from statusinformer.models.events import (
    CREATED_BY_VALUE,
    EmittedEvent,
    EventType,
    ObjectReference,
    format_timestamp,
)
from statusinformer.observability.logging import get_logger

_log = get_logger("emitter.recorder")

_DEFAULT_QUEUE_SIZE = 1000
_DEFAULT_CACHE_SIZE = 4096
_DRAIN_TIMEOUT_SECONDS = 5.0
_MERGE_PATCH = "application/merge-patch+json"


@dataclass(frozen=True)
class _Recorded:
    ref: ObjectReference
    type: EventType
    reason: str
    message: str
    timestamp: datetime

    @property
    def key(self) -> tuple[str, ...]:
        return (
            self.ref.uid,
            self.ref.kind,
            self.ref.namespace,
            self.ref.name,
            self.type.value,
            self.reason,
            self.message,
        )


@dataclass
class _Aggregate:
    name: str
    namespace: str
    count: int


class EventRecorder:
    """Queues events and writes them with aggregation of repeats.

    Args:
        core_api:   ``kubernetes_asyncio`` CoreV1Api (or compatible).
        component:  Reported as the event source component.
        queue_size: Pending events kept before new ones are dropped.
        cache_size: Distinct events remembered for aggregation (LRU).
        now:        Clock, injectable for tests.
    """

    def __init__(
        self,
        core_api: Any,
        component: str = CREATED_BY_VALUE,
        queue_size: int = _DEFAULT_QUEUE_SIZE,
        cache_size: int = _DEFAULT_CACHE_SIZE,
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._core_api = core_api
        self._component = component
        self._queue: asyncio.Queue[_Recorded] = asyncio.Queue(maxsize=queue_size)
        self._cache_size = cache_size
        self._seen: OrderedDict[tuple[str, ...], _Aggregate] = OrderedDict()
        self._now = now or (lambda: datetime.now(tz=UTC))
        self._worker: asyncio.Task[None] | None = None
        self._last_nanos = 0

    def record(self, ref: ObjectReference, event_type: EventType, reason: str, message: str) -> None:
        """Enqueue an event for *ref*. Never blocks; drops when the queue is full."""
        item = _Recorded(ref=ref, type=event_type, reason=reason, message=message, timestamp=self._now())
        try:
            self._queue.put_nowait(item)
        except asyncio.QueueFull:
            _log.warning(
                "event_dropped_queue_full",
                kind=ref.kind,
                namespace=ref.namespace,
                name=ref.name,
                reason=reason,
            )

    async def start(self) -> None:
        if self._worker is None:
            self._worker = asyncio.create_task(self._run(), name="event-recorder")

    async def stop(self, timeout: float = _DRAIN_TIMEOUT_SECONDS) -> None:
        """Give queued events up to *timeout* seconds to be written, then stop."""
        if self._worker is None:
            return
        try:
            await asyncio.wait_for(self._queue.join(), timeout=timeout)
        except TimeoutError:
            _log.warning("event_recorder_drain_timeout", pending=self._queue.qsize())
        self._worker.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._worker
        self._worker = None

    async def _run(self) -> None:
        while True:
            item = await self._queue.get()
            try:
                await self._write(item)
            except Exception as exc:  # noqa: BLE001
                _log.error(
                    "event_recorder_write_error",
                    error=str(exc),
                    namespace=item.ref.namespace,
                    name=item.ref.name,
                    reason=item.reason,
                )
            finally:
                self._queue.task_done()

    async def _write(self, item: _Recorded) -> None:
        """Create or aggregate one event. Failures are logged and dropped."""
        aggregate = self._seen.get(item.key)
        if aggregate is not None:
            self._seen.move_to_end(item.key)
            if await self._bump(aggregate, item):
                return
            self._seen.pop(item.key, None)
        await self._create(item)

    async def _bump(self, aggregate: _Aggregate, item: _Recorded) -> bool:
        count = aggregate.count + 1
        patch = {"count": count, "lastTimestamp": format_timestamp(item.timestamp)}
        try:
            await self._core_api.patch_namespaced_event(
                name=aggregate.name,
                namespace=aggregate.namespace,
                body=patch,
                _content_type=_MERGE_PATCH,
            )
        except ApiException as exc:
            if exc.status == 404:
                # Record expired from the store; start a new one.
                return False
            _log.error("event_patch_failed", error=str(exc), event_name=aggregate.name)
            return True
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            _log.error("event_patch_failed", error=str(exc), event_name=aggregate.name)
            return True
        aggregate.count = count
        return True

    async def _create(self, item: _Recorded) -> None:
        namespace = event_namespace(item.ref)
        # Strictly increasing so two records in the same instant get distinct names.
        nanos = max(int(item.timestamp.timestamp() * 1_000_000_000), self._last_nanos + 1)
        self._last_nanos = nanos
        event = EmittedEvent(
            name=f"{item.ref.name}.{nanos:x}",
            namespace=namespace,
            involved_object=item.ref,
            reason=item.reason,
            message=item.message,
            type=item.type,
            timestamp=item.timestamp,
            created_by=self._component,
            source_component=self._component,
        )
        try:
            body = encode_event(event)
        except EventEncodingError as exc:
            _log.error("event_encoding_failed", error=str(exc), event_name=event.name)
            return

        try:
            await self._core_api.create_namespaced_event(namespace=namespace, body=body)
        except (ApiException, aiohttp.ClientError, asyncio.TimeoutError) as exc:
            _log.error("event_write_failed", error=str(exc), event_name=event.name, namespace=namespace)
            return

        self._seen[item.key] = _Aggregate(name=event.name, namespace=namespace, count=1)
        if len(self._seen) > self._cache_size:
            self._seen.popitem(last=False)
        _log.debug("event_recorded", event_name=event.name, event_type=item.type.value, reason=item.reason)


class RecorderEventEmitter(EventEmitter):
    """Hands every condition to an :class:`EventRecorder`."""

    def __init__(self, recorder: EventRecorder) -> None:
        self._recorder = recorder

    @property
    def strategy(self) -> str:
        return "recorder"

    async def emit(self, conditions: Sequence[Condition], ref: ObjectReference) -> None:
        for cond in conditions:
            self._recorder.record(ref, event_type_for(cond), cond.reason, cond.message)

    async def start(self) -> None:
        await self._recorder.start()

    async def stop(self) -> None:
        await self._recorder.stop()
