"""Best-effort decoding of ``status.conditions`` from schema-less objects.

The watched resource type is chosen by the operator, so its status schema is
unknown ahead of time. Only the conditions list shape is assumed; anything
that does not fit is logged with the object's identity and treated as "no
status" so a single odd object never stalls the pipeline.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from statusinformer.models.conditions import Condition, ConditionStatus, Status
from statusinformer.observability.logging import get_logger

_log = get_logger("status.extractor")

_STRING_FIELDS = ("type", "status", "reason", "message")


class StatusDecodeError(ValueError):
    """Raised when ``status`` exists but cannot be decoded into :class:`Status`."""


def extract_status(obj: Mapping[str, Any]) -> Status | None:
    """Return the decoded status of *obj*, or ``None`` when there is none.

    Lookup and decode failures are logged and reported as ``None``; they are
    never raised to the caller.
    """
    if "status" not in obj or obj["status"] is None:
        return None

    raw = obj["status"]
    if not isinstance(raw, Mapping):
        _log.error(
            "status_lookup_failed",
            error=f".status accessor error: {raw!r} is of type {type(raw).__name__}, expected a map",
            **_identity(obj),
        )
        return None

    try:
        return decode_status(raw)
    except StatusDecodeError as exc:
        _log.error("status_decode_failed", error=str(exc), **_identity(obj))
        return None


def decode_status(raw: Mapping[str, Any]) -> Status:
    """Decode a ``status`` map. Unknown fields are ignored.

    Raises:
        StatusDecodeError: if ``conditions`` or one of its entries has the
            wrong shape.
    """
    items = raw.get("conditions")
    if items is None:
        return Status()
    if not isinstance(items, list):
        raise StatusDecodeError(f"conditions: expected a list, got {type(items).__name__}")
    return Status(conditions=tuple(_decode_condition(i, item) for i, item in enumerate(items)))


def _decode_condition(index: int, item: Any) -> Condition:
    if not isinstance(item, Mapping):
        raise StatusDecodeError(f"conditions[{index}]: expected a map, got {type(item).__name__}")

    fields: dict[str, str] = {}
    for name in _STRING_FIELDS:
        value = item.get(name)
        if value is None:
            value = ""
        if not isinstance(value, str):
            raise StatusDecodeError(
                f"conditions[{index}].{name}: expected a string, got {type(value).__name__}"
            )
        fields[name] = value

    return Condition(
        type=fields["type"],
        status=_parse_condition_status(fields["status"]),
        reason=fields["reason"],
        message=fields["message"],
    )


def _parse_condition_status(value: str) -> ConditionStatus:
    try:
        return ConditionStatus(value)
    except ValueError:
        return ConditionStatus.UNKNOWN


def _identity(obj: Mapping[str, Any]) -> dict[str, str]:
    metadata = obj.get("metadata")
    if not isinstance(metadata, Mapping):
        metadata = {}
    return {
        "api_version": str(obj.get("apiVersion", "")),
        "kind": str(obj.get("kind", "")),
        "name": str(metadata.get("name", "")),
        "namespace": str(metadata.get("namespace", "")),
    }
