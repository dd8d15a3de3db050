"""Watched resource coordinates and cache notifications."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


@dataclass(frozen=True)
class GroupVersionResource:
    """Identifies a resource collection on the API server."""

    group: str
    version: str
    resource: str

    @property
    def api_version(self) -> str:
        if not self.group:
            return self.version
        return f"{self.group}/{self.version}"

    def __str__(self) -> str:
        return f"{self.resource}.{self.version}.{self.group}"


class NotificationType(StrEnum):
    """Kind of change observed by the watch cache."""

    ADDED = "added"
    UPDATED = "updated"
    DELETED = "deleted"


@dataclass(frozen=True)
class Notification:
    """One add/update/delete delivered by the watch cache.

    ``obj`` is the current (or, for deletes, last known) object.
    ``old_obj`` is only set for updates; on resync it is the same object.
    """

    type: NotificationType
    obj: dict[str, Any]
    old_obj: dict[str, Any] | None = None
