"""status-informer: Kubernetes status conditions as first-class events."""

__version__ = "0.1.0"
