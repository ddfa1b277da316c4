"""Tests for the cluster connection provider."""
from unittest.mock import MagicMock, patch

import pytest
from redis.exceptions import AuthenticationError, ConnectionError as RedisConnectionError

from redis_cluster.config import Settings
from redis_cluster.connection import (
    ClusterClient,
    ClusterNodeAddress,
    ConnectionConfig,
    create_redis_cluster,
    parse_root_nodes,
)
from redis_cluster.errors import ClientNotConnectedError, ConfigurationError


class TestParseRootNodes:
    """Parsing of the rootNodes credential field."""

    def test_json_url_list(self):
        nodes, tls = parse_root_nodes('[{"url": "redis://10.0.0.1:30001"}, {"url": "redis://10.0.0.2:30002"}]')

        assert nodes == (
            ClusterNodeAddress(host="10.0.0.1", port=30001),
            ClusterNodeAddress(host="10.0.0.2", port=30002),
        )
        assert tls is False

    def test_host_port_entries_and_plain_strings(self):
        nodes, _ = parse_root_nodes([{"host": "a", "port": 7000}, "b:7001", "c"])

        assert [(node.host, node.port) for node in nodes] == [("a", 7000), ("b", 7001), ("c", 6379)]

    def test_rediss_scheme_turns_tls_on(self):
        _, tls = parse_root_nodes([{"url": "rediss://secure:6380"}])

        assert tls is True

    def test_single_object_is_accepted(self):
        nodes, _ = parse_root_nodes('{"url": "redis://only:7000"}')

        assert nodes == (ClusterNodeAddress(host="only", port=7000),)

    @pytest.mark.parametrize("raw", ["not json", "[]", "42", None, '[{"url": "redis://:7000"}]', "[17]"])
    def test_invalid_values(self, raw):
        with pytest.raises(ConfigurationError):
            parse_root_nodes(raw)


class TestConnectionConfig:
    def test_from_credentials(self, credentials):
        config = ConnectionConfig.from_credentials(credentials)

        assert len(config.root_nodes) == 2
        assert config.password == "secret"
        assert config.tls is False

    def test_empty_password_is_none(self):
        config = ConnectionConfig.from_credentials({"rootNodes": ["h:1"], "password": ""})

        assert config.password is None

    def test_tls_flag_or_scheme(self):
        assert ConnectionConfig.from_credentials({"rootNodes": ["h:1"], "tls": True}).tls is True
        assert ConnectionConfig.from_credentials({"rootNodes": ["rediss://h:1"]}).tls is True


class TestCreateRedisCluster:
    def test_builds_cluster_client_from_config(self):
        config = ConnectionConfig.from_credentials(
            {"rootNodes": ["a:7000", "b:7001"], "password": "pw", "tls": True}
        )
        settings = Settings(connect_timeout_s=2, socket_timeout_s=5)

        with patch("redis_cluster.connection.RedisCluster") as redis_cluster:
            create_redis_cluster(config, settings)

        kwargs = redis_cluster.call_args.kwargs
        assert [(node.host, node.port) for node in kwargs["startup_nodes"]] == [("a", 7000), ("b", 7001)]
        assert kwargs["password"] == "pw"
        assert kwargs["ssl"] is True
        assert kwargs["decode_responses"] is True
        assert kwargs["socket_connect_timeout"] == 2
        assert kwargs["socket_timeout"] == 5


class TestClusterClient:
    """Connect/quit lifecycle and listeners."""

    def test_not_connected_before_connect(self, credentials, factory):
        client = ClusterClient.from_credentials(credentials, factory=factory)

        assert client.is_connected is False
        with pytest.raises(ClientNotConnectedError):
            client.get("key")

    def test_not_connected_error_is_a_connection_error(self):
        assert issubclass(ClientNotConnectedError, RedisConnectionError)

    def test_connect_fires_listener_and_pings(self, credentials):
        backend = MagicMock()
        client = ClusterClient.from_credentials(credentials, factory=lambda config, settings: backend)
        connected = MagicMock()
        client.on("connect", connected)

        client.connect()

        backend.ping.assert_called_once()
        connected.assert_called_once_with()
        assert client.is_connected

    def test_connect_is_idempotent(self, credentials):
        factory = MagicMock()
        client = ClusterClient.from_credentials(credentials, factory=factory)

        client.connect()
        client.connect()

        factory.assert_called_once()

    def test_connect_failure_fires_error_listener_and_closes(self, credentials):
        backend = MagicMock()
        backend.ping.side_effect = AuthenticationError("invalid password")
        client = ClusterClient.from_credentials(credentials, factory=lambda config, settings: backend)
        errors = []
        client.on("error", errors.append)

        with pytest.raises(AuthenticationError):
            client.connect()

        assert isinstance(errors[0], AuthenticationError)
        backend.close.assert_called_once()
        assert client.is_connected is False

    def test_unknown_event_is_rejected(self, credentials, factory):
        client = ClusterClient.from_credentials(credentials, factory=factory)

        with pytest.raises(ValueError):
            client.on("message", lambda: None)

    def test_quit_closes_and_is_repeatable(self, client, fake_cluster):
        backend = fake_cluster.clients[-1]

        client.quit()
        client.quit()

        assert backend.closed
        with pytest.raises(ClientNotConnectedError):
            client.set("key", "value")

    def test_quit_before_connect(self, credentials, factory):
        ClusterClient.from_credentials(credentials, factory=factory).quit()

    def test_primitives_pass_through(self, client, fake_cluster):
        client.set("key", "value")

        assert client.get("key") == "value"
        assert client.type("key") == "string"
        assert client.delete("key") == 1
        assert fake_cluster.data == {}

    def test_uses_settings_passed_in(self, credentials):
        factory = MagicMock()
        settings = Settings(connect_timeout_s=3)

        ClusterClient.from_credentials(credentials, settings=settings, factory=factory).connect()

        assert factory.call_args.args[1] is settings
