"""WebSocket-based live reload for the preview server.

Monitors the snapshot file for changes and notifies connected clients
via WebSocket so they can re-fetch resolved pages.
"""

import asyncio
import json
import logging
import weakref
from pathlib import Path

from aiohttp import WSMsgType, web
from watchfiles import Change, awatch

from pagestage.snapshot import SnapshotLoader

logger = logging.getLogger(__name__)


class LiveReloadManager:
    """Manages WebSocket connections and snapshot watching for live reload."""

    def __init__(self, loader: SnapshotLoader) -> None:
        """Initialize the live reload manager.

        Args:
            loader: Loader of the watched snapshot file, invalidated on change
        """
        self._loader = loader
        self._connections: weakref.WeakSet[web.WebSocketResponse] = weakref.WeakSet()
        self._watch_task: asyncio.Task[None] | None = None

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def start(self) -> None:
        """Start the file watcher."""
        if self._watch_task is not None:
            return
        self._watch_task = asyncio.create_task(self._watch_snapshot())

    async def stop(self) -> None:
        """Stop the file watcher and close all connections."""
        if self._watch_task is not None:
            self._watch_task.cancel()
            try:
                await self._watch_task
            except asyncio.CancelledError:
                pass
            self._watch_task = None

        for ws in list(self._connections):
            await ws.close()

    async def handle_websocket(self, request: web.Request) -> web.WebSocketResponse:
        """Handle WebSocket connection for live reload.

        Args:
            request: aiohttp request

        Returns:
            WebSocket response
        """
        ws = web.WebSocketResponse()
        await ws.prepare(request)

        self._connections.add(ws)

        try:
            async for msg in ws:
                if msg.type == WSMsgType.ERROR:
                    break
        finally:
            self._connections.discard(ws)

        return ws

    async def _watch_snapshot(self) -> None:
        """Watch the snapshot file and broadcast reload events."""
        snapshot_path = self._loader.path.resolve()
        async for changes in awatch(snapshot_path.parent):
            for change_type, path_str in changes:
                if change_type == Change.deleted:
                    continue
                if not self.is_snapshot_change(Path(path_str)):
                    continue

                logger.info(f"Snapshot changed: {snapshot_path}")
                await self.notify_changed()

    def is_snapshot_change(self, path: Path) -> bool:
        """Check if a changed path is the watched snapshot file."""
        return path.resolve() == self._loader.path.resolve()

    async def notify_changed(self) -> None:
        """Invalidate the snapshot cache and tell clients to reload."""
        self._loader.invalidate()
        await self._broadcast_reload(str(self._loader.path))

    async def _broadcast_reload(self, path: str) -> None:
        """Broadcast reload event to all connected clients.

        Args:
            path: Snapshot path that changed
        """
        if not self._connections:
            return

        message = json.dumps({"type": "reload", "path": path})

        for ws in list(self._connections):
            if ws.closed:
                continue
            try:
                await ws.send_str(message)
            except ConnectionResetError:
                # Client disconnected mid-send, will be cleaned up by WeakSet
                pass


def create_live_reload_routes(manager: LiveReloadManager) -> list[web.RouteDef]:
    """Create routes for live reload WebSocket.

    Args:
        manager: LiveReloadManager instance

    Returns:
        List of route definitions
    """
    return [web.get("/ws/live-reload", manager.handle_websocket)]
