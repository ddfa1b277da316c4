"""Tests for node registration and discovery."""
from unittest.mock import MagicMock, patch

from node_registry import NodePackManifest, NodeRegistry, get_global_registry
from nodepacks.redis_cluster import (
    MANIFEST,
    RedisClusterNode,
    RedisClusterTriggerNode,
    register_nodes,
)


class TestNodeRegistry:
    """Test NodeRegistry with the bundled pack."""

    def test_register_pack(self):
        registry = NodeRegistry()

        registry.register_pack(*register_nodes())

        assert len(registry) == 2
        assert "redisCluster" in registry
        assert registry.list_packs() == [MANIFEST]
        assert registry.get_node_class("redisClusterTrigger") is RedisClusterTriggerNode

    def test_node_definitions(self):
        registry = NodeRegistry()
        registry.register_pack(*register_nodes())

        node = registry.get_node("redisCluster")
        trigger = registry.get_node("redisClusterTrigger")

        assert node.display_name == "Redis Cluster"
        assert node.node_pack == "redis-cluster"
        assert node.is_trigger is False
        assert trigger.is_trigger is True
        assert trigger.inputs == []
        assert node.credentials == [{"name": "redisCluster", "required": True}]

    def test_credential_definition(self):
        registry = NodeRegistry()
        registry.register_pack(*register_nodes())

        credential = registry.get_credential("redisCluster")

        assert credential.display_name == "Redis Cluster"
        assert credential.testable is True
        assert [prop["name"] for prop in credential.properties] == ["rootNodes", "password", "tls"]

    def test_create_node_and_credential(self):
        registry = NodeRegistry()
        registry.register_pack(*register_nodes())

        assert isinstance(registry.create_node("redisCluster"), RedisClusterNode)
        assert registry.create_node("unknown") is None
        credential = registry.create_credential("redisCluster", {"password": "pw"})
        assert credential.get("password") == "pw"

    def test_register_node_with_override(self):
        registry = NodeRegistry()

        definition = registry.register_node(RedisClusterNode, node_type="redisClusterV2")

        assert definition.node_type == "redisClusterV2"
        assert registry.list_node_types() == ["redisClusterV2"]

    def test_discover_entry_points(self):
        entry_point = MagicMock()
        entry_point.name = "redis_cluster"
        entry_point.load.return_value = register_nodes
        registry = NodeRegistry()

        with patch("node_registry.registry.entry_points", return_value=[entry_point]):
            assert registry.discover_entry_points() == 1
            # Cached after the first run
            assert registry.discover_entry_points() == 1

        assert registry.has_node("redisClusterTrigger")

    def test_discover_accepts_plain_node_dict(self):
        entry_point = MagicMock()
        entry_point.name = "plain"
        entry_point.load.return_value = lambda: {"redisCluster": RedisClusterNode}
        registry = NodeRegistry()

        with patch("node_registry.registry.entry_points", return_value=[entry_point]):
            registry.discover_entry_points()

        assert registry.list_packs()[0] == NodePackManifest(name="plain", nodes=["redisCluster"])

    def test_broken_pack_is_skipped(self):
        entry_point = MagicMock()
        entry_point.name = "broken"
        entry_point.load.side_effect = ImportError("missing module")
        registry = NodeRegistry()

        with patch("node_registry.registry.entry_points", return_value=[entry_point]):
            assert registry.discover_entry_points() == 0

        assert len(registry) == 0

    def test_global_registry_is_shared(self):
        assert get_global_registry() is get_global_registry()
