"""Tests for object references and event wire encoding."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest

from statusinformer.models.events import EmittedEvent, EventType, ObjectReference, format_timestamp
from statusinformer.models.resources import GroupVersionResource

_TS = datetime(2026, 2, 18, 12, 0, 0, tzinfo=UTC)


def _cluster() -> dict:
    return {
        "apiVersion": "cluster.x-k8s.io/v1beta1",
        "kind": "Cluster",
        "metadata": {"name": "prod", "namespace": "default", "uid": "u-1", "resourceVersion": "42"},
    }


class TestObjectReference:
    def test_from_object(self) -> None:
        ref = ObjectReference.from_object(_cluster())
        assert ref == ObjectReference(
            uid="u-1",
            kind="Cluster",
            name="prod",
            namespace="default",
            api_version="cluster.x-k8s.io/v1beta1",
            resource_version="42",
        )

    def test_from_object_without_metadata(self) -> None:
        ref = ObjectReference.from_object({"kind": "Cluster"})
        assert ref.name == ""
        assert ref.uid == ""


class TestEmittedEvent:
    def _event(self, **kwargs) -> EmittedEvent:
        defaults = {
            "name": "status-informer-event.abc123",
            "namespace": "default",
            "involved_object": ObjectReference.from_object(_cluster()),
            "reason": "Healthy",
            "message": "all good",
            "type": EventType.NORMAL,
            "timestamp": _TS,
        }
        defaults.update(kwargs)
        return EmittedEvent(**defaults)

    def test_manifest(self) -> None:
        manifest = self._event().to_manifest()
        assert manifest["apiVersion"] == "v1"
        assert manifest["kind"] == "Event"
        assert manifest["metadata"] == {
            "name": "status-informer-event.abc123",
            "namespace": "default",
            "labels": {"krateo.io/created-by": "status-informer"},
        }
        assert manifest["type"] == "Normal"
        assert manifest["count"] == 1
        assert manifest["firstTimestamp"] == "2026-02-18T12:00:00Z"
        assert manifest["lastTimestamp"] == "2026-02-18T12:00:00Z"
        assert manifest["source"] == {"component": "status-informer"}
        assert manifest["involvedObject"]["resourceVersion"] == "42"

    @pytest.mark.parametrize("name", ["", "Upper.case", "under_score", "-leading", "a" * 254])
    def test_invalid_name_is_an_encoding_error(self, name: str) -> None:
        with pytest.raises(ValueError, match="invalid event name"):
            self._event(name=name).to_manifest()

    def test_invalid_type_is_an_encoding_error(self) -> None:
        with pytest.raises(ValueError):
            self._event(type="Error").to_manifest()


class TestFormatTimestamp:
    def test_converts_to_utc(self) -> None:
        cest = timezone(timedelta(hours=2))
        assert format_timestamp(datetime(2026, 2, 18, 14, 0, 0, tzinfo=cest)) == "2026-02-18T12:00:00Z"

    def test_naive_is_treated_as_utc(self) -> None:
        assert format_timestamp(datetime(2026, 2, 18, 12, 0, 0)) == "2026-02-18T12:00:00Z"


class TestGroupVersionResource:
    def test_api_version(self) -> None:
        assert GroupVersionResource("cluster.x-k8s.io", "v1beta1", "clusters").api_version == "cluster.x-k8s.io/v1beta1"
        assert GroupVersionResource("", "v1", "pods").api_version == "v1"

    def test_str(self) -> None:
        gvr = GroupVersionResource("cluster.x-k8s.io", "v1beta1", "clusters")
        assert str(gvr) == "clusters.v1beta1.cluster.x-k8s.io"
