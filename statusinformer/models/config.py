"""Configuration data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ResourceConfig:
    """Coordinate of the watched resource type."""

    group: str = "cluster.x-k8s.io"
    version: str = "v1beta1"
    resource: str = "clusters"


@dataclass
class WatchConfig:
    """Watch cache timing, in seconds."""

    resync_interval: float = 60.0
    sync_timeout: float = 120.0


@dataclass
class EmitterConfig:
    """Event emission configuration."""

    strategy: str = "direct"
    field_manager: str = "krateo"
    throttle_period: float = 0.0


@dataclass
class HealthConfig:
    """Health / readiness HTTP endpoint configuration."""

    port: int = 8081


@dataclass
class LogConfig:
    """Logging configuration."""

    level: str = "info"
    debug: bool = False


@dataclass
class StatusInformerConfig:
    """Top-level status-informer configuration."""

    kubeconfig: str = ""
    resource: ResourceConfig = field(default_factory=ResourceConfig)
    watch: WatchConfig = field(default_factory=WatchConfig)
    emitter: EmitterConfig = field(default_factory=EmitterConfig)
    health: HealthConfig = field(default_factory=HealthConfig)
    log: LogConfig = field(default_factory=LogConfig)
