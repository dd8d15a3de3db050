"""Cache layer for status-informer.

Submodules:
    watch_cache -- List-and-watch mirror of one resource type with periodic resync.
"""

from statusinformer.cache.watch_cache import NotificationHandler, WatchCache, WatchSessionError

__all__ = ["NotificationHandler", "WatchCache", "WatchSessionError"]
