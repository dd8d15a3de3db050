"""Tests for the per (object, condition type) throttle."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from statusinformer.emitter.throttle import ConditionThrottle
from statusinformer.models.conditions import Condition, ConditionStatus
from statusinformer.models.events import ObjectReference

_TS = datetime(2026, 2, 18, 12, 0, 0, tzinfo=UTC)
_REF = ObjectReference("uid-1", "Cluster", "prod", "default", "cluster.x-k8s.io/v1beta1", "1")
_OTHER = ObjectReference("uid-2", "Cluster", "staging", "default", "cluster.x-k8s.io/v1beta1", "1")
_READY = Condition("Ready", ConditionStatus.TRUE)
_DEGRADED = Condition("Degraded", ConditionStatus.FALSE)


class _Clock:
    def __init__(self) -> None:
        self.now = _TS

    def __call__(self) -> datetime:
        return self.now


class TestDisabled:
    def test_zero_period_lets_everything_through(self) -> None:
        throttle = ConditionThrottle()
        assert not throttle.enabled
        for _ in range(3):
            assert throttle.filter([_READY, _DEGRADED], _REF) == [_READY, _DEGRADED]


class TestEnabled:
    def test_repeat_within_period_is_suppressed(self) -> None:
        clock = _Clock()
        throttle = ConditionThrottle(timedelta(minutes=5), now=clock)

        assert throttle.filter([_READY], _REF) == [_READY]
        clock.now = _TS + timedelta(minutes=4)
        assert throttle.filter([_READY], _REF) == []

    def test_repeat_after_period_passes(self) -> None:
        clock = _Clock()
        throttle = ConditionThrottle(timedelta(minutes=5), now=clock)

        throttle.filter([_READY], _REF)
        clock.now = _TS + timedelta(minutes=5)
        assert throttle.filter([_READY], _REF) == [_READY]

    def test_condition_types_are_independent(self) -> None:
        throttle = ConditionThrottle(timedelta(minutes=5), now=_Clock())

        throttle.filter([_READY], _REF)
        assert throttle.filter([_READY, _DEGRADED], _REF) == [_DEGRADED]

    def test_objects_are_independent(self) -> None:
        throttle = ConditionThrottle(timedelta(minutes=5), now=_Clock())

        throttle.filter([_READY], _REF)
        assert throttle.filter([_READY], _OTHER) == [_READY]

    def test_forget_resets_object_windows(self) -> None:
        throttle = ConditionThrottle(timedelta(minutes=5), now=_Clock())

        throttle.filter([_READY, _DEGRADED], _REF)
        throttle.forget(_REF.uid)
        assert throttle.filter([_READY, _DEGRADED], _REF) == [_READY, _DEGRADED]
