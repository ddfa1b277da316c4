"""
Errors raised by the Redis Cluster core.

Only errors that originate here get their own classes. Server and
transport failures are the client library's exceptions
(redis.exceptions.ResponseError, ConnectionError, ...) and surface
unchanged.
"""
from redis.exceptions import ConnectionError as RedisConnectionError

from node_sdk import NodeOperationError


class ConfigurationError(NodeOperationError):
    """Input that cannot be acted on; raised before any round trip."""


class ClientNotConnectedError(RedisConnectionError):
    """Operation attempted on a client handle that is not connected."""

    def __init__(self, message: str = "The Redis Cluster client is not connected") -> None:
        super().__init__(message)


__all__ = ["ConfigurationError", "ClientNotConnectedError"]
