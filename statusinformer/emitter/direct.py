"""Direct emission: one server-side applied Event per condition.

Every call names its records with a fresh short id, so a condition seen
again on resync produces another record instead of updating the previous
one. History is kept complete at the cost of storage.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
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
from statusinformer.models.events import EmittedEvent, ObjectReference
from statusinformer.observability.logging import get_logger
from statusinformer.shortid import ShortIdError, ShortIdGenerator

_log = get_logger("emitter.direct")

EVENT_NAME_PREFIX = "status-informer-event"
APPLY_CONTENT_TYPE = "application/apply-patch+yaml"


class DirectEventEmitter(EventEmitter):
    """Writes events straight to the API server with server-side apply.

    Args:
        core_api:      ``kubernetes_asyncio`` CoreV1Api (or compatible).
        id_generator:  Source of record name suffixes.
        field_manager: Field manager the apply is attributed to.
    """

    def __init__(
        self,
        core_api: Any,
        id_generator: ShortIdGenerator | None = None,
        field_manager: str = "krateo",
    ) -> None:
        self._core_api = core_api
        self._ids = id_generator or ShortIdGenerator()
        self._field_manager = field_manager

    @property
    def strategy(self) -> str:
        return "direct"

    async def emit(self, conditions: Sequence[Condition], ref: ObjectReference) -> None:
        namespace = event_namespace(ref)
        for cond in conditions:
            try:
                name = f"{EVENT_NAME_PREFIX}.{self._ids.generate()}"
            except ShortIdError as exc:
                _log.error("short_id_generation_failed", error=str(exc), object_uid=ref.uid)
                return

            event = EmittedEvent(
                name=name,
                namespace=namespace,
                involved_object=ref,
                reason=cond.reason,
                message=cond.message,
                type=event_type_for(cond),
            )

            try:
                body = encode_event(event)
            except EventEncodingError as exc:
                _log.error(
                    "event_encoding_failed",
                    error=str(exc),
                    event_name=name,
                    kind=ref.kind,
                    namespace=ref.namespace,
                    name=ref.name,
                )
                return

            _log.debug("event_apply", event_name=name, manifest=body)
            try:
                await self._core_api.patch_namespaced_event(
                    name=name,
                    namespace=namespace,
                    body=body,
                    field_manager=self._field_manager,
                    _content_type=APPLY_CONTENT_TYPE,
                )
            except (ApiException, aiohttp.ClientError, asyncio.TimeoutError) as exc:
                _log.error(
                    "event_write_failed",
                    error=str(exc),
                    event_name=name,
                    namespace=namespace,
                    condition_type=cond.type,
                )
                continue

            _log.info(
                "event_emitted",
                event_name=name,
                event_type=event.type.value,
                reason=cond.reason,
                kind=ref.kind,
                namespace=ref.namespace,
                name=ref.name,
            )
