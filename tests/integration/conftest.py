"""Shared fixtures for status-informer integration tests.

Provides scripted stand-ins for the Kubernetes list and watch calls so the
watch cache and the full pipeline can run without a real cluster.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from statusinformer.models.resources import GroupVersionResource

GVR = GroupVersionResource("cluster.x-k8s.io", "v1beta1", "clusters")


# ---------------------------------------------------------------------------
# Object factory helpers
# ---------------------------------------------------------------------------


def make_cluster(
    name: str = "prod",
    namespace: str = "default",
    conditions: list[dict[str, Any]] | None = None,
    resource_version: str = "1",
    uid: str | None = None,
    status: Any = ...,
) -> dict[str, Any]:
    """Create an unstructured Cluster object with sensible defaults for testing."""
    obj: dict[str, Any] = {
        "apiVersion": "cluster.x-k8s.io/v1beta1",
        "kind": "Cluster",
        "metadata": {
            "name": name,
            "namespace": namespace,
            "uid": uid or f"uid-{namespace}-{name}",
            "resourceVersion": resource_version,
        },
        "spec": {"controlPlaneEndpoint": {"host": f"{name}.example.com", "port": 6443}},
    }
    if status is not ...:
        obj["status"] = status
    elif conditions is not None:
        obj["status"] = {"phase": "Provisioned", "conditions": conditions}
    return obj


def prod_conditions() -> list[dict[str, Any]]:
    return [
        {"type": "Ready", "status": "True", "reason": "Healthy", "message": "all good"},
        {"type": "Degraded", "status": "False", "reason": "NodeDown", "message": "node-3 unreachable"},
    ]


def list_response(items: list[dict[str, Any]], resource_version: str = "100") -> dict[str, Any]:
    return {
        "apiVersion": "cluster.x-k8s.io/v1beta1",
        "kind": "ClusterList",
        "metadata": {"resourceVersion": resource_version},
        "items": items,
    }


def watch_event(event_type: str, obj: dict[str, Any]) -> dict[str, Any]:
    return {"type": event_type, "object": obj, "raw_object": obj}


# ---------------------------------------------------------------------------
# Scripted watch
# ---------------------------------------------------------------------------


class WatchScript:
    """Watch factory replaying one scripted session per ``stream()`` call.

    A session is a list of watch events; an Exception in the list is raised
    at that point and an ``asyncio.Event`` holds the session until it is set.
    Once every session is consumed, streams block until cancelled, like an
    idle watch.
    """

    def __init__(self, *sessions: list[Any]) -> None:
        self.sessions = list(sessions)
        self.stream_kwargs: list[dict[str, Any]] = []

    def __call__(self) -> _FakeWatch:
        return _FakeWatch(self)


class _FakeWatch:
    def __init__(self, script: WatchScript) -> None:
        self._script = script
        self.stopped = False

    def stream(self, func: Any, *args: Any, **kwargs: Any) -> AsyncIterator[dict[str, Any]]:
        self._script.stream_kwargs.append(kwargs)
        session = self._script.sessions.pop(0) if self._script.sessions else None
        return _replay(session)

    def stop(self) -> None:
        self.stopped = True


async def _replay(session: list[Any] | None) -> AsyncIterator[dict[str, Any]]:
    if session is None:
        await asyncio.Event().wait()
        return
    for item in session:
        if isinstance(item, Exception):
            raise item
        if isinstance(item, asyncio.Event):
            await item.wait()
            continue
        yield item


def make_custom_api(*responses: dict[str, Any] | Exception) -> MagicMock:
    """CustomObjectsApi whose list calls return *responses* in order (last one repeats)."""
    api = MagicMock()
    queue = list(responses)

    async def _list(*args: Any, **kwargs: Any) -> dict[str, Any]:
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        return item

    api.list_cluster_custom_object = AsyncMock(side_effect=_list)
    return api


def make_core_api() -> MagicMock:
    api = MagicMock()
    api.patch_namespaced_event = AsyncMock(return_value=None)
    api.create_namespaced_event = AsyncMock(return_value=None)
    return api


async def eventually(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll *predicate* until it holds or fail after *timeout* seconds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


@pytest.fixture
def core_api() -> MagicMock:
    return make_core_api()
