"""Status condition data structures."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class ConditionStatus(StrEnum):
    """Tri-state value of a status condition."""

    TRUE = "True"
    FALSE = "False"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class Condition:
    """One health dimension reported in ``status.conditions``."""

    type: str
    status: ConditionStatus
    reason: str = ""
    message: str = ""


@dataclass(frozen=True)
class Status:
    """Normalized ``status`` section of a watched object.

    Order of ``conditions`` follows the source object. Duplicate types are kept.
    """

    conditions: tuple[Condition, ...] = ()
