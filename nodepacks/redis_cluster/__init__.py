"""
Redis Cluster Node Pack - Redis Cluster operations for workflows.

This pack provides:
- RedisCluster: delete, get, incr, keys, pop, publish, push and set
- RedisClusterTrigger: emits messages from channel pattern subscriptions

All nodes are SYNC-CELERY SAFE; the trigger delivers messages from
the client library's pub/sub worker thread.
"""

from .nodes import (
    RedisClusterNode,
    RedisClusterTriggerNode,
)
from .manifest import MANIFEST, NODE_CLASSES, CREDENTIAL_CLASSES, register_nodes

__all__ = [
    "RedisClusterNode",
    "RedisClusterTriggerNode",
    "MANIFEST",
    "NODE_CLASSES",
    "CREDENTIAL_CLASSES",
    "register_nodes",
]
