"""Optional rate limit per (object, condition type).

A zero period disables throttling, which is the default: every resync then
re-emits every condition.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from datetime import UTC, datetime, timedelta


from statusinformer.models.conditions import Condition
from statusinformer.models.events import ObjectReference
from statusinformer.observability.logging import get_logger

_log = get_logger("emitter.throttle")


class ConditionThrottle:
    """Suppresses conditions emitted for the same object and type within *period*.

    The key is ``(object uid, condition type)``. State is in-process only;
    a restart resets every window.
    """

    def __init__(
        self,
        period: timedelta = timedelta(0),
        now: Callable[[], datetime] | None = None,
    ) -> None:
        self._period = period
        self._now = now or (lambda: datetime.now(tz=UTC))
        # key -> last emission timestamp (UTC)
        self._last_emitted: dict[tuple[str, str], datetime] = {}

    @property
    def enabled(self) -> bool:
        return self._period > timedelta(0)

    def filter(self, conditions: Sequence[Condition], ref: ObjectReference) -> list[Condition]:
        """Return the conditions of *ref* that are allowed through, in order."""
        if not self.enabled:
            return list(conditions)

        now = self._now()
        allowed: list[Condition] = []
        for cond in conditions:
            key = (ref.uid, cond.type)
            last = self._last_emitted.get(key)
            if last is not None and (now - last) < self._period:
                _log.debug(
                    "condition_throttled",
                    kind=ref.kind,
                    namespace=ref.namespace,
                    name=ref.name,
                    condition_type=cond.type,
                    seconds_remaining=int((self._period - (now - last)).total_seconds()),
                )
                continue
            self._last_emitted[key] = now
            allowed.append(cond)
        return allowed

    def forget(self, uid: str) -> None:
        """Drop every window held for the object with *uid*."""
        for key in [k for k in self._last_emitted if k[0] == uid]:
            del self._last_emitted[key]
