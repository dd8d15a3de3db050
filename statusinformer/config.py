"""Configuration loading from environment variables."""

from __future__ import annotations

import os
import re
from typing import Any

from statusinformer.models.config import (
    EmitterConfig,
    HealthConfig,
    LogConfig,
    ResourceConfig,
    StatusInformerConfig,
    WatchConfig,
)

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = r"([0-9]*\.?[0-9]+)(ns|us|µs|ms|s|m|h)"
_DURATION_PART_RE = re.compile(_DURATION_PART)
_DURATION_RE = re.compile(rf"^(?:{_DURATION_PART})+$")
_STRATEGIES = {"direct", "recorder"}


def _env(key: str, default: str = "") -> str:
    return os.environ.get(f"STATUS_INFORMER_{key}", default)


def _env_bool(key: str, default: bool = False) -> bool:
    val = _env(key, str(default).lower())
    return val.lower() in ("true", "1", "yes")


def _env_int(key: str, default: int, min_val: int | None = None, max_val: int | None = None) -> int:
    val = int(_env(key, str(default)))
    if min_val is not None:
        val = max(val, min_val)
    if max_val is not None:
        val = min(val, max_val)
    return val


def parse_duration(value: str) -> float:
    """Parse a duration such as ``30s``, ``1m30s``, ``1.5h`` or ``500ms`` into seconds.

    Accepts the unsigned subset of Go's ``time.ParseDuration`` syntax: one or
    more ``<number><unit>`` parts with units ns, us (or µs), ms, s, m and h.
    A bare ``0`` is also accepted.
    """
    value = value.strip()
    if value == "0":
        return 0.0
    if not _DURATION_RE.match(value):
        raise ValueError(f"Invalid duration format: {value!r}")
    return sum(float(number) * _DURATION_UNITS[unit] for number, unit in _DURATION_PART_RE.findall(value))


def _validate_log_level(value: str) -> str:
    valid = {"debug", "info", "warning", "error"}
    if value.lower() not in valid:
        raise ValueError(f"Invalid log level: {value}. Must be one of {valid}")
    return value.lower()


def _validate_strategy(value: str) -> str:
    if value.lower() not in _STRATEGIES:
        raise ValueError(f"Invalid emitter strategy: {value}. Must be one of {_STRATEGIES}")
    return value.lower()


def _validate_group(value: str) -> str:
    # Watching goes through the custom objects endpoint (/apis/<group>/...).
    if not value:
        raise ValueError("Resource group must not be empty; core resources are not supported")
    return value


def load_config(**overrides: Any) -> StatusInformerConfig:
    """Load configuration from STATUS_INFORMER_* environment variables.

    Keyword overrides (as passed by the CLI) take precedence over the
    environment when they are not ``None``. Duration overrides are strings
    in the same format as the environment variables.
    """

    def pick(name: str, env_key: str, default: str) -> str:
        val = overrides.get(name)
        if val is None:
            return _env(env_key, default)
        return str(val)

    debug = overrides.get("debug")
    if debug is None:
        debug = _env_bool("DEBUG", False)
    level = "debug" if debug else _validate_log_level(_env("LOG_LEVEL", "info"))

    return StatusInformerConfig(
        kubeconfig=pick("kubeconfig", "KUBECONFIG", ""),
        resource=ResourceConfig(
            group=_validate_group(pick("group", "GROUP", "cluster.x-k8s.io")),
            version=pick("version", "VERSION", "v1beta1"),
            resource=pick("resource", "RESOURCE", "clusters"),
        ),
        watch=WatchConfig(
            resync_interval=parse_duration(pick("resync_interval", "RESYNC_INTERVAL", "1m")),
            sync_timeout=parse_duration(pick("sync_timeout", "SYNC_TIMEOUT", "2m")),
        ),
        emitter=EmitterConfig(
            strategy=_validate_strategy(pick("emitter", "EMITTER", "direct")),
            field_manager=pick("field_manager", "FIELD_MANAGER", "krateo"),
            throttle_period=parse_duration(pick("throttle_period", "THROTTLE_PERIOD", "0")),
        ),
        health=HealthConfig(
            port=_env_int("HEALTH_PORT", 8081, min_val=0, max_val=65535),
        ),
        log=LogConfig(level=level, debug=bool(debug)),
    )
