"""Application keys for type-safe app configuration access."""

from aiohttp import web

from pagestage.config import RoutingConfig
from pagestage.snapshot import SnapshotLoader

snapshot_loader_key = web.AppKey("snapshot_loader", SnapshotLoader)
routing_key = web.AppKey("routing", RoutingConfig)
live_reload_enabled_key = web.AppKey("live_reload_enabled", bool)
