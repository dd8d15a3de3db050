"""Event record data structures and enumerations."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

CREATED_BY_LABEL = "krateo.io/created-by"
CREATED_BY_VALUE = "status-informer"

_DNS_SUBDOMAIN = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*$")
_DNS_SUBDOMAIN_MAX = 253


class EventType(StrEnum):
    """Kubernetes event type. The API only knows these two."""

    NORMAL = "Normal"
    WARNING = "Warning"


@dataclass(frozen=True)
class ObjectReference:
    """Link from an event back to the watched object.

    Copied from the object at notification time and not retained afterwards.
    """

    uid: str
    kind: str
    name: str
    namespace: str
    api_version: str
    resource_version: str

    @classmethod
    def from_object(cls, obj: dict[str, Any]) -> ObjectReference:
        metadata = obj.get("metadata") or {}
        return cls(
            uid=str(metadata.get("uid", "")),
            kind=str(obj.get("kind", "")),
            name=str(metadata.get("name", "")),
            namespace=str(metadata.get("namespace", "")),
            api_version=str(obj.get("apiVersion", "")),
            resource_version=str(metadata.get("resourceVersion", "")),
        )

    def to_dict(self) -> dict[str, str]:
        return {
            "uid": self.uid,
            "kind": self.kind,
            "name": self.name,
            "namespace": self.namespace,
            "apiVersion": self.api_version,
            "resourceVersion": self.resource_version,
        }


@dataclass(frozen=True)
class EmittedEvent:
    """A condition turned into a ``core/v1`` Event record.

    Immutable: the emitter builds one per (notification, condition) pair and
    never updates or deletes it after the write.
    """

    name: str
    namespace: str
    involved_object: ObjectReference
    reason: str
    message: str
    type: EventType
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    created_by: str = CREATED_BY_VALUE
    source_component: str = CREATED_BY_VALUE
    count: int = 1

    def to_manifest(self) -> dict[str, Any]:
        """Serialise to the wire representation accepted by the API server.

        Raises:
            ValueError: if the name is not a valid DNS subdomain or the
                type is not a known event type.
        """
        if len(self.name) > _DNS_SUBDOMAIN_MAX or not _DNS_SUBDOMAIN.match(self.name):
            raise ValueError(f"invalid event name: {self.name!r}")
        event_type = EventType(self.type)
        ts = format_timestamp(self.timestamp)
        return {
            "apiVersion": "v1",
            "kind": "Event",
            "metadata": {
                "name": self.name,
                "namespace": self.namespace,
                "labels": {CREATED_BY_LABEL: self.created_by},
            },
            "involvedObject": self.involved_object.to_dict(),
            "reason": self.reason,
            "message": self.message,
            "type": event_type.value,
            "count": self.count,
            "firstTimestamp": ts,
            "lastTimestamp": ts,
            "source": {"component": self.source_component},
            "reportingComponent": self.source_component,
        }


def format_timestamp(value: datetime) -> str:
    """RFC 3339 with second precision, as ``metav1.Time`` serialises."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
