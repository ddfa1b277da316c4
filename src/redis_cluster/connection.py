"""
Cluster connection provider.

ConnectionConfig is the parsed form of a redisCluster credential.
ClusterClient wraps redis-py's RedisCluster with an explicit
connect/quit lifecycle and 'connect'/'error' event listeners, and
passes the data-type primitives straight through to the library.
"""
from __future__ import annotations

import json
import threading
from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from redis.cluster import ClusterNode, RedisCluster
from redis.exceptions import RedisClusterException, RedisError

from redis_cluster.config import Settings, get_settings
from redis_cluster.errors import ClientNotConnectedError, ConfigurationError
from redis_cluster.observability import get_logger


logger = get_logger(__name__)

DEFAULT_PORT = 6379
TLS_SCHEMES = {"rediss"}
EVENTS = ("connect", "error")


class ClusterNodeAddress(BaseModel):
    """One root node of the cluster."""

    model_config = ConfigDict(frozen=True)

    host: str = Field(..., min_length=1)
    port: int = Field(DEFAULT_PORT, ge=1, le=65535)


class ConnectionConfig(BaseModel):
    """Immutable connection settings for a cluster client."""

    model_config = ConfigDict(frozen=True)

    root_nodes: Tuple[ClusterNodeAddress, ...] = Field(..., min_length=1)
    password: Optional[str] = None
    tls: bool = False

    @classmethod
    def from_credentials(cls, credentials: Dict[str, Any]) -> "ConnectionConfig":
        """
        Build a config from decrypted redisCluster credential data.

        Raises:
            ConfigurationError: If the root node list cannot be parsed
        """
        root_nodes, url_tls = parse_root_nodes(credentials.get("rootNodes"))
        return cls(
            root_nodes=root_nodes,
            password=credentials.get("password") or None,
            tls=bool(credentials.get("tls")) or url_tls,
        )


def _parse_node(entry: Any) -> Tuple[ClusterNodeAddress, bool]:
    if isinstance(entry, dict) and "url" in entry:
        entry = entry["url"]

    if isinstance(entry, dict):
        return ClusterNodeAddress(
            host=entry.get("host", ""),
            port=int(entry.get("port", DEFAULT_PORT)),
        ), False

    if isinstance(entry, str):
        text = entry.strip()
        if "://" not in text:
            text = f"redis://{text}"
        parsed = urlparse(text)
        return ClusterNodeAddress(
            host=parsed.hostname or "",
            port=parsed.port or DEFAULT_PORT,
        ), parsed.scheme in TLS_SCHEMES

    raise ValueError(f"unsupported root node entry: {entry!r}")


def parse_root_nodes(raw: Any) -> Tuple[Tuple[ClusterNodeAddress, ...], bool]:
    """
    Parse the rootNodes credential field.

    Accepts a JSON string or an already decoded list whose entries are
    {"url": "redis://host:port"}, {"host": ..., "port": ...} or plain
    URL / host:port strings.

    Returns:
        (root node addresses, whether any URL asked for TLS)

    Raises:
        ConfigurationError: If the value cannot be parsed
    """
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError as exc:
            raise ConfigurationError(f"Root Node URLs must be a JSON list: {exc}") from exc

    if isinstance(raw, dict):
        raw = [raw]
    if not isinstance(raw, list) or not raw:
        raise ConfigurationError("Root Node URLs must be a non-empty JSON list")

    nodes: List[ClusterNodeAddress] = []
    use_tls = False
    for index, entry in enumerate(raw):
        try:
            node, tls = _parse_node(entry)
        except (TypeError, ValueError, ValidationError) as exc:
            raise ConfigurationError(f"Invalid root node at position {index}: {exc}") from exc
        nodes.append(node)
        use_tls = use_tls or tls
    return tuple(nodes), use_tls


def create_redis_cluster(config: ConnectionConfig, settings: Settings) -> RedisCluster:
    """Default client factory: a redis-py cluster client that reads from primaries only."""
    return RedisCluster(
        startup_nodes=[ClusterNode(node.host, node.port) for node in config.root_nodes],
        password=config.password,
        ssl=config.tls,
        decode_responses=True,
        socket_connect_timeout=settings.connect_timeout_s,
        socket_timeout=settings.socket_timeout_s,
    )


ClientFactory = Callable[[ConnectionConfig, Settings], Any]


class ClusterClient:
    """
    Connection handle for one operation run or one subscription session.

    Not connected until connect() succeeds; every primitive raises
    ClientNotConnectedError before that and after quit().

    Listeners:
        on("connect", fn)  fn() after the cluster answered a PING
        on("error", fn)    fn(exc) when connecting fails
    """

    def __init__(
        self,
        config: ConnectionConfig,
        settings: Optional[Settings] = None,
        factory: Optional[ClientFactory] = None,
    ) -> None:
        self.config = config
        self._settings = settings or get_settings()
        self._factory = factory or create_redis_cluster
        self._redis: Any = None
        self._listeners: Dict[str, List[Callable[..., None]]] = defaultdict(list)
        self._lock = threading.RLock()

    @classmethod
    def from_credentials(
        cls,
        credentials: Dict[str, Any],
        settings: Optional[Settings] = None,
        factory: Optional[ClientFactory] = None,
    ) -> "ClusterClient":
        return cls(ConnectionConfig.from_credentials(credentials), settings, factory)

    @property
    def is_connected(self) -> bool:
        return self._redis is not None

    def on(self, event: str, handler: Callable[..., None]) -> None:
        """Register a listener for 'connect' or 'error'."""
        if event not in EVENTS:
            raise ValueError(f"Unknown client event '{event}', expected one of {EVENTS}")
        self._listeners[event].append(handler)

    def _fire(self, event: str, *args: Any) -> None:
        for handler in list(self._listeners[event]):
            handler(*args)

    def connect(self) -> "ClusterClient":
        """
        Open the cluster connection and confirm it with a PING.

        Error listeners are notified before the error propagates.
        Connect listeners run once the client is usable; an exception
        raised by one of them propagates out of connect().
        """
        with self._lock:
            if self._redis is not None:
                return self

            client = None
            try:
                client = self._factory(self.config, self._settings)
                client.ping()
            except (RedisError, RedisClusterException) as exc:
                logger.error(f"Redis Cluster connection failed: {exc}")
                if client is not None:
                    client.close()
                self._fire("error", exc)
                raise

            self._redis = client
            logger.debug(f"Connected to Redis Cluster via {len(self.config.root_nodes)} root node(s)")

        self._fire("connect")
        return self

    def quit(self) -> None:
        """Close the connection. Safe to call repeatedly or before connect()."""
        with self._lock:
            client, self._redis = self._redis, None
        if client is not None:
            client.close()
            logger.debug("Redis Cluster client closed")

    def _client(self) -> Any:
        client = self._redis
        if client is None:
            raise ClientNotConnectedError()
        return client

    # ==== Primitives ====

    def ping(self) -> bool:
        return self._client().ping()

    def type(self, key: str) -> str:
        return self._client().type(key)

    def get(self, key: str) -> Optional[str]:
        return self._client().get(key)

    def set(self, key: str, value: str) -> Any:
        return self._client().set(key, value)

    def hgetall(self, key: str) -> Dict[str, str]:
        return self._client().hgetall(key)

    def hset(self, key: str, field: str, value: str) -> int:
        return self._client().hset(key, field, value)

    def lrange(self, key: str, start: int, end: int) -> List[str]:
        return self._client().lrange(key, start, end)

    def lset(self, key: str, index: int, value: str) -> Any:
        return self._client().lset(key, index, value)

    def smembers(self, key: str) -> Any:
        return self._client().smembers(key)

    def delete(self, *keys: str) -> int:
        return self._client().delete(*keys)

    def incr(self, key: str) -> int:
        return self._client().incr(key)

    def expire(self, key: str, seconds: int) -> Any:
        return self._client().expire(key, seconds)

    def keys(self, pattern: str) -> List[str]:
        return self._client().keys(pattern)

    def lpush(self, key: str, *values: str) -> int:
        return self._client().lpush(key, *values)

    def rpush(self, key: str, *values: str) -> int:
        return self._client().rpush(key, *values)

    def lpop(self, key: str) -> Optional[str]:
        return self._client().lpop(key)

    def rpop(self, key: str) -> Optional[str]:
        return self._client().rpop(key)

    def publish(self, channel: str, message: str) -> int:
        return self._client().publish(channel, message)

    def pubsub(self) -> Any:
        return self._client().pubsub()


__all__ = [
    "ClusterNodeAddress",
    "ConnectionConfig",
    "ClusterClient",
    "ClientFactory",
    "create_redis_cluster",
    "parse_root_nodes",
]
