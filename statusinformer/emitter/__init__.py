"""Event emission for status-informer.

Turns status conditions into ``core/v1`` Event records.

Exports:
    EventEmitter          -- Abstract base both strategies implement.
    DirectEventEmitter    -- Strategy A: server-side apply, fresh name per call.
    RecorderEventEmitter  -- Strategy B: delegates to an EventRecorder.
    EventRecorder         -- Queued writer that aggregates repeated events.
    ConditionThrottle     -- Optional per (object, condition type) rate limit.
    event_type_for        -- True -> Normal, anything else -> Warning.
    build_emitter         -- Factory used by the application bootstrap.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from statusinformer.emitter.base import (
    EventEmitter,
    EventEncodingError,
    encode_event,
    event_namespace,
    event_type_for,
)
from statusinformer.emitter.direct import DirectEventEmitter
from statusinformer.emitter.recorder import EventRecorder, RecorderEventEmitter
from statusinformer.emitter.throttle import ConditionThrottle
from statusinformer.observability.logging import get_logger

if TYPE_CHECKING:
    from statusinformer.models.config import EmitterConfig

_log = get_logger("emitter")

__all__ = [
    "ConditionThrottle",
    "DirectEventEmitter",
    "EventEmitter",
    "EventEncodingError",
    "EventRecorder",
    "RecorderEventEmitter",
    "build_emitter",
    "encode_event",
    "event_namespace",
    "event_type_for",
]


def build_emitter(config: EmitterConfig, core_api: Any) -> EventEmitter:
    """Build the emitter selected by ``config.strategy``.

    ``direct`` writes each condition with server-side apply under
    ``config.field_manager``; ``recorder`` goes through an EventRecorder.

    Raises:
        ValueError: for an unknown strategy.
    """
    if config.strategy == "direct":
        emitter: EventEmitter = DirectEventEmitter(core_api, field_manager=config.field_manager)
    elif config.strategy == "recorder":
        emitter = RecorderEventEmitter(EventRecorder(core_api))
    else:
        raise ValueError(f"unknown emitter strategy: {config.strategy!r}")
    _log.info("emitter_selected", strategy=emitter.strategy)
    return emitter
