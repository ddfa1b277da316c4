"""
Key operations over a connected cluster client.

RedisKeyOperations reads and writes string, hash, list and set keys
through one value model (see redis_cluster.types). Every call is a
sequence of round trips issued in program order; nothing is cached
or batched across keys.
"""
from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, List, Optional, Tuple, Union

from redis_cluster.connection import ClusterClient
from redis_cluster.errors import ConfigurationError
from redis_cluster.observability import get_logger
from redis_cluster.types import KeyType, RedisValue, decode_payload


logger = get_logger(__name__)

KeyTypeHint = Union[KeyType, str, None]


class RedisKeyOperations:
    """
    Uniform read/write access to Redis keys.

    Holds no state besides the client it was given. Errors from the
    client library are not caught here.
    """

    def __init__(self, client: ClusterClient) -> None:
        self.client = client

    def resolve_read_type(self, key: str, key_type: KeyTypeHint = None) -> Optional[KeyType]:
        """
        Concrete type to read key as.

        AUTOMATIC costs one TYPE round trip. None means a plain GET: the
        server type has no dedicated read (missing key, zset, stream, ...)
        or the declared type is not one we know.
        """
        key_type = KeyType.parse(key_type, strict=False)
        if key_type is KeyType.AUTOMATIC:
            return KeyType.from_server(self.client.type(key))
        return key_type

    def read(self, key: str, key_type: KeyTypeHint = None) -> Optional[RedisValue]:
        """
        Read key according to its declared or discovered type.

        Anything without a dedicated read falls back to GET.
        """
        resolved = self.resolve_read_type(key, key_type)

        if resolved is KeyType.HASH:
            return self.client.hgetall(key)
        if resolved is KeyType.LIST:
            return self.client.lrange(key, 0, -1)
        if resolved is KeyType.SETS:
            return list(self.client.smembers(key))
        return self.client.get(key)

    def write(
        self,
        key: str,
        value: Any,
        key_type: KeyTypeHint = None,
        expire_seconds: Optional[int] = None,
    ) -> None:
        """
        Write value to key, then EXPIRE it when expire_seconds is given.

        Hashes are written one HSET per field. Lists are written one
        positional LSET per element, so the list must already hold at
        least len(value) elements.

        Raises:
            ConfigurationError: The type is unknown or cannot be inferred, the value does
                not fit the declared type, the type is SETS (read-only) or
                expire_seconds is below 1. Raised before any round trip.
        """
        key_type = KeyType.parse(key_type)
        if key_type is KeyType.AUTOMATIC:
            key_type = KeyType.infer(value)
        _check_ttl(expire_seconds)

        if key_type is KeyType.STRING:
            self.client.set(key, _to_text(value))
        elif key_type is KeyType.HASH:
            if not isinstance(value, Mapping):
                raise ConfigurationError(f"A hash value must be an object, got {type(value).__name__}")
            for field, field_value in value.items():
                self.client.hset(key, str(field), _to_text(field_value))
        elif key_type is KeyType.LIST:
            if isinstance(value, (str, Mapping)) or not isinstance(value, (list, tuple)):
                raise ConfigurationError(f"A list value must be an array, got {type(value).__name__}")
            for index, item in enumerate(value):
                self.client.lset(key, index, _to_text(item))
        else:
            raise ConfigurationError("Sets can only be read; writing keys of type 'sets' is not supported")

        if expire_seconds is not None:
            self.client.expire(key, expire_seconds)

    def remove(self, key: str) -> None:
        self.client.delete(key)

    def increment(self, key: str, expire_seconds: Optional[int] = None) -> int:
        """INCR key (creating it at 1) and optionally EXPIRE it."""
        _check_ttl(expire_seconds)
        value = self.client.incr(key)
        if expire_seconds is not None:
            self.client.expire(key, expire_seconds)
        return value

    def list_push(self, list_name: str, payload: str, at_tail: bool = False) -> None:
        if at_tail:
            self.client.rpush(list_name, payload)
        else:
            self.client.lpush(list_name, payload)

    def list_pop(self, list_name: str, at_tail: bool = False) -> Any:
        """Pop one element; JSON payloads come back decoded, anything else as is."""
        raw = self.client.rpop(list_name) if at_tail else self.client.lpop(list_name)
        return decode_payload(raw).value

    def publish(self, channel: str, payload: str) -> None:
        receivers = self.client.publish(channel, payload)
        logger.debug(f"Published to '{channel}', {receivers} receiver(s)")

    def list_keys(self, pattern: str, with_values: bool = True) -> List[Tuple[str, Optional[RedisValue]]]:
        """
        Keys matching pattern, each paired with its value when with_values
        is set (one automatic read per key) or None otherwise.
        """
        keys = self.client.keys(pattern)
        if not with_values:
            return [(key, None) for key in keys]
        return [(key, self.read(key, KeyType.AUTOMATIC)) for key in keys]


def _check_ttl(expire_seconds: Optional[int]) -> None:
    if expire_seconds is not None and expire_seconds < 1:
        raise ConfigurationError(f"TTL must be at least 1 second, got {expire_seconds}")


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


__all__ = ["RedisKeyOperations", "KeyTypeHint"]
