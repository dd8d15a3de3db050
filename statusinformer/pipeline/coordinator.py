"""Pipeline coordinator: watch -> extract -> emit.

Owns the run/stop lifecycle of one watch cache and one emitter. Every
notification (add, update, delete and resync) is handled in sequence: the
object's status is extracted and each condition becomes one event.

States: NOT_STARTED -> RUNNING -> STOPPED. STOPPED is terminal; a new
instance is needed to run again.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Callable
from enum import StrEnum
from typing import Any

from statusinformer.cache.watch_cache import NotificationHandler, WatchCache
from statusinformer.emitter.base import EventEmitter
from statusinformer.emitter.throttle import ConditionThrottle
from statusinformer.models.events import ObjectReference
from statusinformer.models.resources import GroupVersionResource, Notification, NotificationType
from statusinformer.observability.logging import get_logger
from statusinformer.status.extractor import extract_status

_log = get_logger("pipeline")

CacheFactory = Callable[[Any, GroupVersionResource, float, NotificationHandler], WatchCache]


class PipelineState(StrEnum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    STOPPED = "stopped"


class PipelineStateError(RuntimeError):
    """Raised when ``run`` is called on a coordinator that already ran."""


class StatusInformer:
    """Wires a WatchCache to the status extractor and an EventEmitter.

    Args:
        api:             CustomObjectsApi used by the watch cache.
        gvr:             Resource to watch in all namespaces.
        emitter:         Event emission strategy.
        resync_interval: Seconds between resyncs (``0`` disables).
        sync_timeout:    Seconds to wait for the initial sync.
        throttle:        Optional per (object, condition type) rate limit.
        cache_factory:   Builds the watch cache; defaults to WatchCache.
    """

    def __init__(
        self,
        api: Any,
        gvr: GroupVersionResource,
        emitter: EventEmitter,
        resync_interval: float = 60.0,
        sync_timeout: float = 120.0,
        throttle: ConditionThrottle | None = None,
        cache_factory: CacheFactory = WatchCache,
    ) -> None:
        self._gvr = gvr
        self._emitter = emitter
        self._sync_timeout = sync_timeout
        self._throttle = throttle or ConditionThrottle()
        self._cache = cache_factory(api, gvr, resync_interval, self.handle)
        self._state = PipelineState.NOT_STARTED

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def synced(self) -> bool:
        """Readiness signal: True once the initial list has been delivered."""
        return self._state is PipelineState.RUNNING and self._cache.has_synced()

    async def run(self, stop: asyncio.Event) -> bool:
        """Run until *stop* is set.

        Returns False without blocking further when the cache does not sync
        within the timeout (or *stop* fires first), True after a normal stop.

        Raises:
            PipelineStateError: if this instance already ran.
            WatchSessionError: if the initial list fails.
        """
        if self._state is not PipelineState.NOT_STARTED:
            raise PipelineStateError(f"pipeline is {self._state.value}; create a new instance to run again")
        self._state = PipelineState.RUNNING
        _log.info("pipeline_starting", resource=str(self._gvr), emitter=self._emitter.strategy)

        try:
            await self._emitter.start()
            await self._cache.start()

            if not await self._wait_for_sync(stop):
                return False

            _log.info("pipeline_running", resource=str(self._gvr))
            await stop.wait()
            return True
        finally:
            await self._cache.stop()
            await self._emitter.stop()
            self._state = PipelineState.STOPPED
            _log.info("pipeline_stopped", resource=str(self._gvr))

    async def _wait_for_sync(self, stop: asyncio.Event) -> bool:
        sync_task = asyncio.create_task(self._cache.wait_for_sync(self._sync_timeout))
        stop_task = asyncio.create_task(stop.wait())
        try:
            done, _ = await asyncio.wait({sync_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sync_task, stop_task):
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task

        if sync_task in done and sync_task.result():
            return True
        if stop.is_set():
            _log.warning("pipeline_stopped_before_sync", resource=str(self._gvr))
        else:
            _log.error(
                "timed out waiting for caches to sync",
                resource=str(self._gvr),
                timeout=self._sync_timeout,
            )
        return False

    async def handle(self, notification: Notification) -> None:
        """Extract the conditions of one notified object and emit them."""
        obj = notification.obj
        status = extract_status(obj)
        if status is None or not status.conditions:
            return

        ref = ObjectReference.from_object(obj)
        conditions = self._throttle.filter(status.conditions, ref)
        if conditions:
            await self._emitter.emit(conditions, ref)

        if notification.type is NotificationType.DELETED:
            self._throttle.forget(ref.uid)
