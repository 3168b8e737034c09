"""Configuration management for Pagestage.

Supports TOML configuration format with auto-discovery.
"""

import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path

from pagestage.core.types import MAX_NESTING_DEPTH

CONFIG_FILENAME = "pagestage.toml"


@dataclass
class ServerConfig:
    """Server configuration."""

    host: str = "127.0.0.1"
    port: int = 8080


@dataclass
class SnapshotConfig:
    """Snapshot source configuration."""

    path: Path = field(default_factory=lambda: Path("snapshot.json"))


@dataclass
class RoutingConfig:
    """Nested route configuration."""

    max_nesting_depth: int = MAX_NESTING_DEPTH


@dataclass
class LiveReloadConfig:
    """Live reload configuration."""

    enabled: bool = True


@dataclass
class Config:
    """Application configuration."""

    server: ServerConfig
    snapshot: SnapshotConfig
    routing: RoutingConfig
    live_reload: LiveReloadConfig
    config_path: Path | None = None

    @classmethod
    def load(cls, config_path: Path | None = None) -> "Config":
        """Load configuration from file.

        If config_path is provided, loads from that file.
        Otherwise, searches for pagestage.toml in current directory and parents.

        Args:
            config_path: Optional explicit path to config file

        Returns:
            Config instance with defaults for missing sections

        Raises:
            FileNotFoundError: If explicit config_path doesn't exist
            ValueError: If configuration is invalid
        """
        if config_path is not None:
            if not config_path.exists():
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            return cls._load_from_file(config_path)

        discovered_path = cls._discover_config()
        if discovered_path is None:
            return cls._default()

        return cls._load_from_file(discovered_path)

    @classmethod
    def _discover_config(cls) -> Path | None:
        """Search for config file in current directory and parents."""
        current = Path.cwd()
        while True:
            candidate = current / CONFIG_FILENAME
            if candidate.exists():
                return candidate
            parent = current.parent
            if parent == current:
                return None
            current = parent

    @classmethod
    def _default(cls) -> "Config":
        return cls(
            server=ServerConfig(),
            snapshot=SnapshotConfig(),
            routing=RoutingConfig(),
            live_reload=LiveReloadConfig(),
        )

    @classmethod
    def _load_from_file(cls, path: Path) -> "Config":
        """Load configuration from a specific file.

        Args:
            path: Path to TOML configuration file

        Returns:
            Config instance

        Raises:
            ValueError: If configuration is invalid
        """
        with path.open("rb") as f:
            data = tomllib.load(f)

        config_dir = path.parent

        return cls(
            server=cls._parse_server(data.get("server")),
            snapshot=cls._parse_snapshot(data.get("snapshot"), config_dir),
            routing=cls._parse_routing(data.get("routing")),
            live_reload=cls._parse_live_reload(data.get("live_reload")),
            config_path=path,
        )

    @classmethod
    def _parse_server(cls, data: object) -> ServerConfig:
        if data is None:
            return ServerConfig()

        if not isinstance(data, dict):
            raise ValueError("server section must be a dictionary")

        host = data.get("host", "127.0.0.1")
        if not isinstance(host, str):
            raise ValueError("server.host must be a string")

        port = data.get("port", 8080)
        if isinstance(port, bool) or not isinstance(port, int):
            raise ValueError("server.port must be an integer")

        return ServerConfig(host=host, port=port)

    @classmethod
    def _parse_snapshot(cls, data: object, config_dir: Path) -> SnapshotConfig:
        """Parse snapshot configuration section.

        Args:
            data: Raw snapshot section data
            config_dir: Directory containing config file (for relative paths)

        Returns:
            SnapshotConfig instance
        """
        if data is None:
            return SnapshotConfig(path=config_dir / "snapshot.json")

        if not isinstance(data, dict):
            raise ValueError("snapshot section must be a dictionary")

        path = data.get("path", "snapshot.json")
        if not isinstance(path, str):
            raise ValueError("snapshot.path must be a string")

        return SnapshotConfig(path=config_dir / path)

    @classmethod
    def _parse_routing(cls, data: object) -> RoutingConfig:
        if data is None:
            return RoutingConfig()

        if not isinstance(data, dict):
            raise ValueError("routing section must be a dictionary")

        max_depth = data.get("max_nesting_depth", MAX_NESTING_DEPTH)
        if isinstance(max_depth, bool) or not isinstance(max_depth, int):
            raise ValueError("routing.max_nesting_depth must be an integer")
        if max_depth < 1:
            raise ValueError("routing.max_nesting_depth must be positive")

        return RoutingConfig(max_nesting_depth=max_depth)

    @classmethod
    def _parse_live_reload(cls, data: object) -> LiveReloadConfig:
        if data is None:
            return LiveReloadConfig()

        if not isinstance(data, dict):
            raise ValueError("live_reload section must be a dictionary")

        enabled = data.get("enabled", True)
        if not isinstance(enabled, bool):
            raise ValueError("live_reload.enabled must be a boolean")

        return LiveReloadConfig(enabled=enabled)

    def with_overrides(
        self,
        *,
        host: str | None = None,
        port: int | None = None,
        snapshot_path: Path | None = None,
        live_reload_enabled: bool | None = None,
    ) -> "Config":
        """Create a new Config with CLI overrides applied.

        Only non-None values override the existing config. The original
        Config is not modified.

        Args:
            host: Override server.host
            port: Override server.port
            snapshot_path: Override snapshot.path
            live_reload_enabled: Override live_reload.enabled

        Returns:
            New Config instance with overrides applied
        """
        server = self.server
        if host is not None or port is not None:
            server = replace(
                self.server,
                host=host if host is not None else self.server.host,
                port=port if port is not None else self.server.port,
            )

        snapshot = self.snapshot
        if snapshot_path is not None:
            snapshot = replace(self.snapshot, path=snapshot_path)

        live_reload = self.live_reload
        if live_reload_enabled is not None:
            live_reload = replace(self.live_reload, enabled=live_reload_enabled)

        return replace(
            self,
            server=server,
            snapshot=snapshot,
            live_reload=live_reload,
        )
