"""Core data structures for status-informer."""

from statusinformer.models.conditions import Condition, ConditionStatus, Status
from statusinformer.models.config import StatusInformerConfig
from statusinformer.models.events import (
    EmittedEvent,
    EventType,
    ObjectReference,
)
from statusinformer.models.resources import (
    GroupVersionResource,
    Notification,
    NotificationType,
)

__all__ = [
    "Condition",
    "ConditionStatus",
    "EmittedEvent",
    "EventType",
    "GroupVersionResource",
    "Notification",
    "NotificationType",
    "ObjectReference",
    "Status",
    "StatusInformerConfig",
]
