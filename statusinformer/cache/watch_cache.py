"""List-and-watch cache for one resource type across all namespaces.

Keeps a local mirror of every object of the configured type and delivers an
add/update/delete Notification for each change it sees:

* initial list  -> ADDED for every object, then the sync barrier is set;
* watch stream  -> ADDED / UPDATED / DELETED against the local store;
* 410 Gone      -> relist and reconcile (new -> ADDED, kept -> UPDATED,
                   vanished -> DELETED);
* resync ticker -> UPDATED(old=obj, new=obj) for every cached object, even
                   when nothing changed, to recover from missed events.

Notifications are delivered one at a time: the handler is never invoked
concurrently with itself. A slow handler therefore stalls the watch.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable, Callable
from typing import Any

import aiohttp
from kubernetes_asyncio import watch
from kubernetes_asyncio.client.exceptions import ApiException

from statusinformer.models.resources import GroupVersionResource, Notification, NotificationType
from statusinformer.observability.logging import get_logger

_log = get_logger("cache.watch")

NotificationHandler = Callable[[Notification], Awaitable[None]]

_WATCH_TIMEOUT_SECONDS = 300
_BACKOFF_INITIAL = 1.0
_BACKOFF_MAX = 30.0
_STOP_GRACE_SECONDS = 10.0

_Key = tuple[str, str]


class WatchSessionError(Exception):
    """Raised when the initial list against the API server fails."""

    def __init__(self, gvr: GroupVersionResource, cause: Exception) -> None:
        super().__init__(f"cannot list {gvr}: {cause}")
        self.gvr = gvr
        self.cause = cause


class _ResourceExpired(Exception):
    """The watch resource version is too old; a relist is needed."""


def _key(obj: dict[str, Any]) -> _Key:
    metadata = obj.get("metadata") or {}
    return (str(metadata.get("namespace", "")), str(metadata.get("name", "")))


def _resource_version(obj: dict[str, Any]) -> str:
    metadata = obj.get("metadata") or {}
    return str(metadata.get("resourceVersion", ""))


class WatchCache:
    """Eventually consistent mirror of one cluster-wide resource collection.

    Args:
        api:             ``kubernetes_asyncio`` CustomObjectsApi (or compatible).
        gvr:             Resource to watch.
        resync_interval: Seconds between synthetic updates; ``0`` disables.
        handler:         Coroutine called with every Notification.
        watch_factory:   Builds the watch helper; defaults to
                         ``kubernetes_asyncio.watch.Watch``.
    """

    def __init__(
        self,
        api: Any,
        gvr: GroupVersionResource,
        resync_interval: float,
        handler: NotificationHandler,
        watch_factory: Callable[[], Any] = watch.Watch,
    ) -> None:
        self._api = api
        self._gvr = gvr
        self._resync_interval = resync_interval
        self._handler = handler
        self._watch_factory = watch_factory

        self._store: dict[_Key, dict[str, Any]] = {}
        self._resource_version = ""
        self._synced = asyncio.Event()
        self._dispatch_lock = asyncio.Lock()
        self._tasks: list[asyncio.Task[None]] = []
        self._started = False

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    def has_synced(self) -> bool:
        return self._synced.is_set()

    def get(self, namespace: str, name: str) -> dict[str, Any] | None:
        return self._store.get((namespace, name))

    def list(self) -> list[dict[str, Any]]:
        return list(self._store.values())

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """List the collection and start delivering notifications.

        Raises:
            WatchSessionError: if the initial list fails (unreachable server,
                forbidden, unknown resource type).
        """
        if self._started:
            raise RuntimeError("watch cache already started")
        self._started = True

        items, resource_version = await self._list()
        self._resource_version = resource_version
        _log.info("initial_list_complete", resource=str(self._gvr), items=len(items))

        self._tasks.append(asyncio.create_task(self._run(items), name=f"watch-{self._gvr.resource}"))
        if self._resync_interval > 0:
            self._tasks.append(asyncio.create_task(self._resync_loop(), name=f"resync-{self._gvr.resource}"))

    async def wait_for_sync(self, timeout: float | None = None) -> bool:
        """Wait until the initial list has been delivered. False on timeout."""
        try:
            await asyncio.wait_for(self._synced.wait(), timeout=timeout)
        except TimeoutError:
            return False
        return True

    async def stop(self, grace: float = _STOP_GRACE_SECONDS) -> None:
        """Cancel the watch and resync tasks.

        A notification already being handled gets up to *grace* seconds to
        finish before it is cancelled.
        """
        locked = False
        try:
            await asyncio.wait_for(self._dispatch_lock.acquire(), timeout=grace)
            locked = True
        except TimeoutError:
            _log.warning("handler_still_running_at_stop", resource=str(self._gvr), grace=grace)

        try:
            for task in self._tasks:
                if not task.done():
                    task.cancel()
            for task in self._tasks:
                with contextlib.suppress(asyncio.CancelledError):
                    await task
            self._tasks.clear()
        finally:
            if locked:
                self._dispatch_lock.release()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _list(self) -> tuple[list[dict[str, Any]], str]:
        try:
            resp = await self._api.list_cluster_custom_object(
                self._gvr.group,
                self._gvr.version,
                self._gvr.resource,
            )
        except (ApiException, aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
            raise WatchSessionError(self._gvr, exc) from exc
        items = [item for item in resp.get("items") or [] if isinstance(item, dict)]
        return items, str((resp.get("metadata") or {}).get("resourceVersion", ""))

    async def _run(self, initial: list[dict[str, Any]]) -> None:
        for obj in initial:
            self._store[_key(obj)] = obj
            await self._dispatch(Notification(NotificationType.ADDED, obj))
        self._synced.set()
        _log.info("cache_synced", resource=str(self._gvr), items=len(self._store))
        await self._watch_loop()

    async def _watch_loop(self) -> None:
        backoff = _BACKOFF_INITIAL
        while True:
            try:
                await self._watch_once()
                backoff = _BACKOFF_INITIAL
            except _ResourceExpired:
                _log.info("watch_expired_relisting", resource=str(self._gvr))
                try:
                    await self._relist()
                    backoff = _BACKOFF_INITIAL
                except WatchSessionError as exc:
                    _log.warning("relist_failed", error=str(exc.cause), retry_in=backoff)
                    await asyncio.sleep(backoff)
                    backoff = min(backoff * 2, _BACKOFF_MAX)
            except (ApiException, aiohttp.ClientError, asyncio.TimeoutError, OSError) as exc:
                _log.warning("watch_stream_error", error=str(exc), retry_in=backoff)
                await asyncio.sleep(backoff)
                backoff = min(backoff * 2, _BACKOFF_MAX)
            except Exception as exc:  # noqa: BLE001
                _log.error("watch_stream_unexpected_error", error=str(exc), retry_in=backoff)
                await asyncio.sleep(backoff)
                backoff = min(backoff * 2, _BACKOFF_MAX)

    async def _watch_once(self) -> None:
        w = self._watch_factory()
        stream = w.stream(
            self._api.list_cluster_custom_object,
            self._gvr.group,
            self._gvr.version,
            self._gvr.resource,
            resource_version=self._resource_version,
            allow_watch_bookmarks=True,
            timeout_seconds=_WATCH_TIMEOUT_SECONDS,
        )
        try:
            async for event in stream:
                await self._handle_watch_event(event)
        except ApiException as exc:
            if exc.status == 410:
                raise _ResourceExpired from exc
            raise
        finally:
            w.stop()

    async def _handle_watch_event(self, event: dict[str, Any]) -> None:
        event_type = event.get("type")
        obj = event.get("object")
        if event_type == "ERROR":
            code = obj.get("code") if isinstance(obj, dict) else None
            if code == 410:
                raise _ResourceExpired
            _log.warning("watch_error_event", object=obj)
            return
        if not isinstance(obj, dict):
            return

        rv = _resource_version(obj)
        if rv:
            self._resource_version = rv
        if event_type == "BOOKMARK":
            return

        key = _key(obj)
        old = self._store.get(key)
        if event_type in ("ADDED", "MODIFIED"):
            self._store[key] = obj
            if old is None:
                await self._dispatch(Notification(NotificationType.ADDED, obj))
            else:
                await self._dispatch(Notification(NotificationType.UPDATED, obj, old))
        elif event_type == "DELETED":
            self._store.pop(key, None)
            await self._dispatch(Notification(NotificationType.DELETED, obj))
        else:
            _log.debug("watch_event_ignored", type=event_type)

    async def _relist(self) -> None:
        items, resource_version = await self._list()
        seen: set[_Key] = set()
        for obj in items:
            key = _key(obj)
            seen.add(key)
            old = self._store.get(key)
            self._store[key] = obj
            if old is None:
                await self._dispatch(Notification(NotificationType.ADDED, obj))
            else:
                await self._dispatch(Notification(NotificationType.UPDATED, obj, old))
        for key in [k for k in self._store if k not in seen]:
            gone = self._store.pop(key)
            await self._dispatch(Notification(NotificationType.DELETED, gone))
        self._resource_version = resource_version

    async def _resync_loop(self) -> None:
        await self._synced.wait()
        while True:
            await asyncio.sleep(self._resync_interval)
            _log.debug("resync", resource=str(self._gvr), items=len(self._store))
            for key in list(self._store):
                async with self._dispatch_lock:
                    # Re-read under the lock; the watch may have replaced or
                    # deleted the object while this key waited its turn.
                    obj = self._store.get(key)
                    if obj is None:
                        continue
                    await self._deliver(Notification(NotificationType.UPDATED, obj, obj))

    async def _dispatch(self, notification: Notification) -> None:
        async with self._dispatch_lock:
            await self._deliver(notification)

    async def _deliver(self, notification: Notification) -> None:
        try:
            await self._handler(notification)
        except Exception as exc:  # noqa: BLE001
            metadata = notification.obj.get("metadata") or {}
            _log.error(
                "notification_handler_error",
                error=str(exc),
                notification=notification.type.value,
                namespace=metadata.get("namespace", ""),
                name=metadata.get("name", ""),
            )
