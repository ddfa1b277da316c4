"""
Redis Cluster Node Pack Manifest - Registration function for entry-points.
"""

from node_registry.models import NodePackManifest
from redis_cluster.credentials import RedisClusterCredential
from .nodes import RedisClusterNode, RedisClusterTriggerNode


MANIFEST = NodePackManifest(
    name="redis-cluster",
    version="1.0.0",
    description="Redis Cluster key, list and pub/sub nodes",
    author="redis-cluster-nodes",
    license="MIT",
    nodes=[
        "redisCluster",
        "redisClusterTrigger",
    ],
    credentials=[
        "redisCluster",
    ],
    entry_point="nodepacks.redis_cluster",
)


# Node classes by type
NODE_CLASSES = {
    "redisCluster": RedisClusterNode,
    "redisClusterTrigger": RedisClusterTriggerNode,
}

# Credential classes by name
CREDENTIAL_CLASSES = {
    "redisCluster": RedisClusterCredential,
}


def register_nodes():
    """
    Entry point function for node pack discovery.

    Returns tuple of (manifest, node_classes, credential_classes).
    """
    return MANIFEST, NODE_CLASSES, CREDENTIAL_CLASSES


__all__ = [
    "MANIFEST",
    "NODE_CLASSES",
    "CREDENTIAL_CLASSES",
    "register_nodes",
]
