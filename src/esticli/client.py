"""Async HTTP client for the Elasticsearch monitoring APIs.

Only read-only endpoints are used:

- ``_stats/indexing,docs,store`` for per-index counters
- ``_cluster/health`` for the health panel
- a handful of per-index endpoints for the details overlay

All HTTP failures are mapped to the esticli error types in one place
(``send_json``), so callers only ever see ``TransportError``, ``ApiError`` or
``SerializationError``.
"""

from __future__ import annotations

import asyncio
import ssl
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, TypeVar

import httpx
import structlog

from esticli import __version__
from esticli.config import ConnectionConfig
from esticli.errors import (
    ApiError,
    ConfigurationError,
    EstiCliError,
    SerializationError,
    TransportError,
)
from esticli.models import (
    ClusterHealth,
    CounterSnapshot,
    DataStreamDetails,
    IndexDetails,
    PollResult,
    ShardInfo,
    SnapshotSet,
)

log = structlog.get_logger()

T = TypeVar("T")

STATS_PATH = "_stats/indexing,docs,store"
HEALTH_PATH = "_cluster/health"
CAT_SHARDS_COLUMNS = "index,shard,prirep,state,docs,store,node"
CAT_INDICES_COLUMNS = "health,status,index"


@dataclass(frozen=True)
class AuthConfig:
    """Resolved credentials. ``mode`` is "none", "basic" or "api_key"."""

    mode: str = "none"
    username: str = ""
    password: str = ""
    api_key: str = ""

    @classmethod
    def from_connection(cls, conn: ConnectionConfig) -> AuthConfig:
        return cls(
            mode=conn.auth,
            username=conn.username,
            password=conn.password,
            api_key=conn.api_key,
        )

    def httpx_auth(self) -> httpx.BasicAuth | None:
        if self.mode == "basic":
            return httpx.BasicAuth(self.username, self.password)
        return None

    def headers(self) -> dict[str, str]:
        if self.mode == "api_key":
            return {"Authorization": f"ApiKey {self.api_key}"}
        return {}


def _ssl_verify(insecure: bool, ca_cert: str | Path | None) -> ssl.SSLContext | bool:
    if insecure:
        return False
    if not ca_cert:
        return True
    try:
        pem = Path(ca_cert).read_text()
    except OSError as e:
        raise ConfigurationError(f"Failed to read CA certificate: {e}") from e
    try:
        return ssl.create_default_context(cadata=pem)
    except (ssl.SSLError, ValueError) as e:
        raise ConfigurationError(f"Failed to parse CA certificate: {e}") from e


def _normalize_url(url: str) -> httpx.URL:
    try:
        parsed = httpx.URL(url.rstrip("/") + "/")
    except httpx.InvalidURL as e:
        raise ConfigurationError(f"Invalid Elasticsearch URL {url!r}: {e}") from e
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ConfigurationError(
            f"Invalid Elasticsearch URL {url!r}: expected http(s)://host[:port]"
        )
    return parsed


class EsClient:
    """Read-only Elasticsearch client.

    Every request goes through ``send_json``, which holds the client lock for
    exactly one request/response cycle. Callers that need several responses
    issue them concurrently with ``asyncio.gather``.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:9200",
        auth: AuthConfig | None = None,
        *,
        insecure: bool = False,
        ca_cert: str | Path | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.auth = auth or AuthConfig()
        self.base_url = _normalize_url(base_url)
        self._lock = asyncio.Lock()
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            auth=self.auth.httpx_auth(),
            headers={"User-Agent": f"esticli/{__version__}", **self.auth.headers()},
            timeout=httpx.Timeout(timeout),
            verify=_ssl_verify(insecure, ca_cert),
            transport=transport,
        )

    @classmethod
    def from_config(cls, conn: ConnectionConfig) -> EsClient:
        return cls(
            conn.url,
            AuthConfig.from_connection(conn),
            insecure=conn.insecure,
            ca_cert=conn.ca_cert or None,
            timeout=conn.timeout,
        )

    @property
    def url(self) -> str:
        return str(self.base_url).rstrip("/")

    async def close(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> EsClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def send_json(self, path: str, params: dict[str, str] | None = None) -> Any:
        """GET ``path`` (relative to the base URL) and decode the JSON body."""
        async with self._lock:
            try:
                response = await self._http.get(path, params=params)
            except httpx.HTTPError as e:
                raise TransportError(str(e) or type(e).__name__) from e

        if response.is_error:
            raise ApiError(response.status_code, response.text)
        try:
            return response.json()
        except ValueError as e:
            raise SerializationError(str(e)) from e

    # ─────────────────────────────────────────────────────────────────────
    # Periodic poll
    # ─────────────────────────────────────────────────────────────────────

    async def fetch_counters(self) -> SnapshotSet:
        """Primary-shard counters for every index, stamped with a monotonic time."""
        data = await self.send_json(STATS_PATH)
        captured_at = time.monotonic()
        try:
            counters = {
                name: CounterSnapshot(
                    doc_count=int(entry["primaries"]["docs"]["count"]),
                    index_total=int(entry["primaries"]["indexing"]["index_total"]),
                    size_bytes=int(entry["primaries"]["store"]["size_in_bytes"]),
                    health=str(entry.get("health", "unknown")),
                )
                for name, entry in data.get("indices", {}).items()
            }
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise SerializationError(f"unexpected _stats shape: {e!r}") from e
        return SnapshotSet(captured_at=captured_at, counters=counters)

    async def fetch_cluster_health(self) -> ClusterHealth:
        data = await self.send_json(HEALTH_PATH)
        try:
            return ClusterHealth(
                cluster_name=str(data["cluster_name"]),
                status=str(data["status"]),
                number_of_nodes=int(data["number_of_nodes"]),
                number_of_data_nodes=int(data["number_of_data_nodes"]),
                active_primary_shards=int(data["active_primary_shards"]),
                active_shards=int(data["active_shards"]),
                relocating_shards=int(data["relocating_shards"]),
                initializing_shards=int(data["initializing_shards"]),
                unassigned_shards=int(data["unassigned_shards"]),
                active_shards_percent=float(data.get("active_shards_percent_as_number", 0.0)),
                number_of_pending_tasks=int(data.get("number_of_pending_tasks", 0)),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise SerializationError(f"unexpected _cluster/health shape: {e!r}") from e

    async def fetch_poll(self) -> PollResult:
        """Counters and health together; either failing fails the whole poll."""
        snapshot, health = await asyncio.gather(self.fetch_counters(), self.fetch_cluster_health())
        return PollResult(snapshot=snapshot, health=health)

    # ─────────────────────────────────────────────────────────────────────
    # Details overlay
    # ─────────────────────────────────────────────────────────────────────

    async def fetch_details(
        self,
        name: str,
        doc_count: int,
        rate_per_sec: float,
        size_bytes: int,
    ) -> IndexDetails:
        """Gather everything the details overlay shows for one index.

        Only a transport failure on the settings request fails the whole
        fetch. Any other failure, of settings or of the ancillary requests,
        degrades that part to an empty value on its own.
        """
        results = await asyncio.gather(
            self.send_json(f"{name}/_settings"),
            self.send_json(f"_ilm/explain/{name}"),
            self.send_json(f"{name}/_stats/segments"),
            self.send_json(
                f"_cat/shards/{name}", params={"format": "json", "h": CAT_SHARDS_COLUMNS}
            ),
            self.send_json("_index_template"),
            self.send_json(
                f"_cat/indices/{name}", params={"format": "json", "h": CAT_INDICES_COLUMNS}
            ),
            self.send_json("_data_stream"),
            return_exceptions=True,
        )
        settings_res, ilm_res, segments_res, shards_res, templates_res, cat_res, ds_res = results
        if isinstance(settings_res, TransportError):
            raise settings_res

        index_settings = _ancillary(name, "settings", settings_res, _index_settings, {})
        lifecycle = index_settings.get("lifecycle") or {}
        store = index_settings.get("store") or {}
        store_type = str(store.get("type", ""))

        ilm_policy, ilm_phase = _ancillary(name, "ilm", ilm_res, _parse_ilm, (None, None))
        health, status = _ancillary(name, "cat_indices", cat_res, _parse_cat_health, (None, None))

        return IndexDetails(
            name=name,
            doc_count=doc_count,
            rate_per_sec=rate_per_sec,
            size_bytes=size_bytes,
            provided_name=index_settings.get("provided_name"),
            creation_date=_format_creation_date(index_settings.get("creation_date")),
            uuid=index_settings.get("uuid"),
            primary_shards=_as_int(index_settings.get("number_of_shards")),
            replica_shards=_as_int(index_settings.get("number_of_replicas")),
            is_frozen=str(index_settings.get("frozen", "false")).lower() == "true",
            is_partial="snapshot" in store_type or "searchable" in store_type,
            ilm_policy=ilm_policy or lifecycle.get("name"),
            ilm_phase=ilm_phase,
            total_segments=_ancillary(name, "segments", segments_res, _parse_segments, 0),
            shard_allocation=_ancillary(name, "shards", shards_res, _parse_shards, []),
            templates=_ancillary(name, "templates", templates_res, _parse_templates, []),
            health=health,
            status=status,
            data_stream=_ancillary(name, "data_stream", ds_res, _parse_data_stream, None),
        )


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _format_creation_date(value: Any) -> str | None:
    millis = _as_int(value, -1)
    if millis < 0:
        return None
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def _index_settings(data: Any, name: str) -> dict[str, Any]:
    entry = data.get(name) if isinstance(data, dict) else None
    if not isinstance(entry, dict):
        return {}
    return entry.get("settings", {}).get("index", {}) or {}


def _ancillary(
    index: str,
    what: str,
    result: Any,
    parse: Callable[[Any, str], T],
    default: T,
) -> T:
    """Parse one best-effort response, falling back to ``default`` on any failure."""
    if isinstance(result, EstiCliError):
        log.debug("details_part_failed", index=index, part=what, error=str(result))
        return default
    if isinstance(result, BaseException):
        raise result
    try:
        return parse(result, index)
    except (KeyError, TypeError, ValueError, AttributeError, IndexError) as e:
        log.debug("details_part_unparsable", index=index, part=what, error=repr(e))
        return default


def _parse_ilm(data: Any, name: str) -> tuple[str | None, str | None]:
    entry = data["indices"][name]
    return entry.get("policy"), entry.get("phase")


def _parse_segments(data: Any, name: str) -> int:
    return int(data["indices"][name]["primaries"]["segments"]["count"])


def _parse_shards(data: Any, name: str) -> list[ShardInfo]:
    shards = []
    for row in data:
        docs = row.get("docs")
        shards.append(
            ShardInfo(
                shard_id=_as_int(row.get("shard")),
                primary=row.get("prirep") == "p",
                state=str(row.get("state", "")),
                node=row.get("node") or "unassigned",
                docs=_as_int(docs) if docs is not None and str(docs).isdigit() else None,
                size=row.get("store"),
            )
        )
    return shards


def pattern_matches(pattern: str, index_name: str) -> bool:
    """Index template pattern match: ``*``, ``prefix*``, ``*suffix`` or exact."""
    if pattern == "*":
        return True
    if pattern.endswith("*"):
        return index_name.startswith(pattern[:-1])
    if pattern.startswith("*"):
        return index_name.endswith(pattern[1:])
    return pattern == index_name


def _parse_templates(data: Any, name: str) -> list[str]:
    return [
        t["name"]
        for t in data["index_templates"]
        if any(pattern_matches(p, name) for p in t["index_template"].get("index_patterns", []))
    ]


def _parse_cat_health(data: Any, name: str) -> tuple[str | None, str | None]:
    if not data:
        return None, None
    first = data[0]
    return first.get("health"), first.get("status")


def _parse_data_stream(data: Any, name: str) -> DataStreamDetails | None:
    for stream in data.get("data_streams", []):
        backing = [idx["index_name"] for idx in stream.get("indices", [])]
        if name not in backing:
            continue
        position = backing.index(name)
        lifecycle = stream.get("lifecycle") or {}
        return DataStreamDetails(
            name=stream["name"],
            timestamp_field=stream["timestamp_field"]["name"],
            generation=int(stream.get("generation", 0)),
            total_backing_indices=len(backing),
            backing_index_position=position + 1,
            is_write_index=position == len(backing) - 1,
            template=stream.get("template"),
            data_retention=lifecycle.get("data_retention"),
        )
    return None
