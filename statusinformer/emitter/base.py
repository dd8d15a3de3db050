"""Event emitter interface and shared helpers.

EventEmitter  -- ABC both emission strategies implement.
event_type_for -- The one classification rule of the pipeline.
event_namespace -- Namespace an event about *ref* is written to.
encode_event  -- EmittedEvent -> wire dict, with failures normalised to
                 EventEncodingError.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from statusinformer.models.conditions import Condition, ConditionStatus
from statusinformer.models.events import EmittedEvent, EventType, ObjectReference

DEFAULT_NAMESPACE = "default"


class EventEncodingError(Exception):
    """Raised when an event cannot be turned into its wire representation."""


def event_type_for(condition: Condition) -> EventType:
    """``True`` maps to Normal; ``False`` and ``Unknown`` both map to Warning."""
    if condition.status == ConditionStatus.TRUE:
        return EventType.NORMAL
    return EventType.WARNING


def event_namespace(ref: ObjectReference) -> str:
    """Events about cluster-scoped objects land in ``default``."""
    return ref.namespace or DEFAULT_NAMESPACE


def encode_event(event: EmittedEvent) -> dict[str, Any]:
    try:
        return event.to_manifest()
    except (TypeError, ValueError, AttributeError) as exc:
        raise EventEncodingError(str(exc)) from exc


class EventEmitter(ABC):
    """Turns the conditions of one object into event records.

    ``emit`` never raises for per-condition failures; they are logged inside
    the implementation.
    """

    @property
    @abstractmethod
    def strategy(self) -> str:
        """Short strategy identifier used in logs."""

    @abstractmethod
    async def emit(self, conditions: Sequence[Condition], ref: ObjectReference) -> None:
        """Produce one event per condition, in order."""

    async def start(self) -> None:
        """Start background work, if the strategy has any."""

    async def stop(self) -> None:
        """Stop background work, if the strategy has any."""
