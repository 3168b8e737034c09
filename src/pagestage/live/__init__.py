"""Live reload for preview clients."""

from pagestage.live.reload import LiveReloadManager

__all__ = ["LiveReloadManager"]
