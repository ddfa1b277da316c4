"""
Redis Cluster core: connection provider, key operations and
pattern-subscription sessions used by the redisCluster node pack.
"""
from redis_cluster.connection import (
    ClusterClient,
    ClusterNodeAddress,
    ConnectionConfig,
    create_redis_cluster,
    parse_root_nodes,
)
from redis_cluster.credentials import RedisClusterCredential
from redis_cluster.errors import ClientNotConnectedError, ConfigurationError
from redis_cluster.operations import RedisKeyOperations
from redis_cluster.subscription import SubscriptionLifecycle, SubscriptionState
from redis_cluster.types import (
    DecodedPayload,
    InboundMessage,
    KeyType,
    RedisValue,
    SubscriptionOptions,
    decode_payload,
)

__all__ = [
    # Connection
    "ClusterClient",
    "ClusterNodeAddress",
    "ConnectionConfig",
    "create_redis_cluster",
    "parse_root_nodes",
    "RedisClusterCredential",
    # Core
    "RedisKeyOperations",
    "SubscriptionLifecycle",
    "SubscriptionState",
    # Types
    "DecodedPayload",
    "InboundMessage",
    "KeyType",
    "RedisValue",
    "SubscriptionOptions",
    "decode_payload",
    # Errors
    "ClientNotConnectedError",
    "ConfigurationError",
]
