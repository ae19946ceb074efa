"""Configuration system for esticli."""

from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any

import tomlkit

from esticli.colormap import Colormap

MIN_REFRESH_SECONDS = 1
MAX_REFRESH_SECONDS = 60

AUTH_MODES = ("none", "basic", "api_key")


@dataclass
class ConnectionConfig:
    """How to reach the monitored cluster.

    Credentials are carried as-is to the HTTP layer; esticli never stores
    or refreshes them on its own.
    """

    url: str = "http://localhost:9200"
    auth: str = "none"  # "none", "basic" or "api_key"
    username: str = ""
    password: str = ""
    api_key: str = ""
    insecure: bool = False  # Skip TLS certificate verification
    ca_cert: str = ""  # Path to a PEM bundle, empty for system roots
    timeout: float = 30.0


@dataclass
class DashboardConfig:
    """Polling, smoothing and initial display settings."""

    refresh_interval: int = 5  # Seconds between polls (1-60)
    rate_samples: int = 10  # Polls averaged per index rate
    colormap: str = "warm"
    show_graph: bool = True
    show_health: bool = True
    show_indices: bool = True
    show_system_indices: bool = False


@dataclass
class LoggingConfig:
    """Log file settings."""

    level: str = "info"
    log_max_bytes: int = 5 * 1024 * 1024  # Max log file size (5MB)
    log_backup_count: int = 3  # Number of backup log files to keep


def clamp_refresh(seconds: int) -> int:
    """Clamp a refresh interval to the supported range."""
    return max(MIN_REFRESH_SECONDS, min(MAX_REFRESH_SECONDS, int(seconds)))


def _dataclass_to_table(obj: object) -> tomlkit.items.Table:
    """Convert a dataclass instance to a tomlkit Table recursively."""
    table = tomlkit.table()
    for f in fields(obj):  # type: ignore[arg-type]
        value = getattr(obj, f.name)
        if is_dataclass(value) and not isinstance(value, type):
            table.add(f.name, _dataclass_to_table(value))
        else:
            table.add(f.name, value)
    return table


@dataclass
class Config:
    """Main configuration container."""

    connection: ConnectionConfig = field(default_factory=ConnectionConfig)
    dashboard: DashboardConfig = field(default_factory=DashboardConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def config_dir(self) -> Path:
        """Configuration directory."""
        return Path.home() / ".config" / "esticli"

    @property
    def config_path(self) -> Path:
        """Path to config file."""
        return self.config_dir / "config.toml"

    @property
    def state_dir(self) -> Path:
        """State directory for logs and other expendable persistent state."""
        return Path.home() / ".local" / "state" / "esticli"

    @property
    def log_path(self) -> Path:
        """Log file path.

        Logs are expendable persistent state, so they go in XDG_STATE_HOME.
        """
        return self.state_dir / "esticli.log"

    def save(self, path: Path | None = None) -> None:
        """Save config to TOML file."""
        path = path or self.config_path
        path.parent.mkdir(parents=True, exist_ok=True)

        doc = tomlkit.document()
        for name in ("connection", "dashboard", "logging"):
            doc.add(name, _dataclass_to_table(getattr(self, name)))
            doc.add(tomlkit.nl())

        path.write_text(tomlkit.dumps(doc))

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """Load config from TOML file, returning defaults for missing values.

        All defaults come from the dataclass definitions, so Config() and
        Config.load() on a missing file are identical.
        """
        defaults = cls()
        path = path or defaults.config_path
        if not path.exists():
            return defaults

        try:
            with open(path) as f:
                data = tomlkit.load(f)
        except tomlkit.exceptions.TOMLKitError as e:
            raise ValueError(f"Failed to parse config file {path}: {e}") from e

        return cls(
            connection=_load_connection_config(data.get("connection", {})),
            dashboard=_load_dashboard_config(data.get("dashboard", {})),
            logging=_load_logging_config(data.get("logging", {})),
        )


def _number(data: dict, key: str, default: Any, types: tuple[type, ...] = (int,)) -> Any:
    """Read a numeric setting, rejecting strings and booleans."""
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, types):
        expected = "an integer" if types == (int,) else "a number"
        raise ValueError(f"{key} must be {expected}, got {value!r}")
    return value


def _load_connection_config(data: dict) -> ConnectionConfig:
    """Load connection config from TOML data, using dataclass defaults for missing fields."""
    d = ConnectionConfig()

    auth = data.get("auth", d.auth)
    if auth not in AUTH_MODES:
        raise ValueError(f"Invalid auth: {auth!r}. Must be one of {list(AUTH_MODES)}")

    timeout = _number(data, "timeout", d.timeout, (int, float))
    if timeout <= 0:
        raise ValueError(f"timeout must be > 0, got {timeout}")

    return ConnectionConfig(
        url=data.get("url", d.url),
        auth=auth,
        username=data.get("username", d.username),
        password=data.get("password", d.password),
        api_key=data.get("api_key", d.api_key),
        insecure=data.get("insecure", d.insecure),
        ca_cert=data.get("ca_cert", d.ca_cert),
        timeout=timeout,
    )


def _load_dashboard_config(data: dict) -> DashboardConfig:
    """Load dashboard config from TOML data.

    The refresh interval is clamped rather than rejected; everything else
    that is out of range raises.
    """
    d = DashboardConfig()

    rate_samples = _number(data, "rate_samples", d.rate_samples)
    if rate_samples < 1:
        raise ValueError(f"rate_samples must be >= 1, got {rate_samples}")

    colormap = data.get("colormap", d.colormap)
    if not isinstance(colormap, str):
        raise ValueError(f"colormap must be a string, got {colormap!r}")
    Colormap.parse(colormap)

    return DashboardConfig(
        refresh_interval=clamp_refresh(_number(data, "refresh_interval", d.refresh_interval)),
        rate_samples=rate_samples,
        colormap=colormap,
        show_graph=data.get("show_graph", d.show_graph),
        show_health=data.get("show_health", d.show_health),
        show_indices=data.get("show_indices", d.show_indices),
        show_system_indices=data.get("show_system_indices", d.show_system_indices),
    )


def _load_logging_config(data: dict) -> LoggingConfig:
    """Load logging config from TOML data."""
    d = LoggingConfig()

    log_max_bytes = _number(data, "log_max_bytes", d.log_max_bytes)
    log_backup_count = _number(data, "log_backup_count", d.log_backup_count)
    if log_max_bytes < 1:
        raise ValueError(f"log_max_bytes must be >= 1, got {log_max_bytes}")
    if log_backup_count < 0:
        raise ValueError(f"log_backup_count must be >= 0, got {log_backup_count}")

    return LoggingConfig(
        level=data.get("level", d.level),
        log_max_bytes=log_max_bytes,
        log_backup_count=log_backup_count,
    )
