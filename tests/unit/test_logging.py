"""Tests for structured logging."""
import json
import logging

from redis_cluster.observability import get_logger, setup_logging, with_session_context
from redis_cluster.observability.logging import CustomJsonFormatter, SessionContextFilter


def format_record(**extra):
    record = logging.LogRecord("redis_cluster.test", logging.INFO, __file__, 1, "hello", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    SessionContextFilter().filter(record)
    formatter = CustomJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s")
    return json.loads(formatter.format(record))


class TestJsonFormatter:
    def test_standard_fields(self):
        data = format_record()

        assert data["message"] == "hello"
        assert data["level"] == "INFO"
        assert data["logger"] == "redis_cluster.test"
        assert "timestamp" in data

    def test_context_fields_only_when_set(self):
        data = format_record(node_type="redisCluster", item_index=0)

        assert data["node_type"] == "redisCluster"
        assert data["item_index"] == 0
        assert "channel" not in data
        assert "operation" not in data


class TestSessionContext:
    def test_with_session_context(self):
        assert with_session_context(node_type="redisCluster", operation="get", item_index=0, extra_field=1) == {
            "node_type": "redisCluster",
            "operation": "get",
            "item_index": 0,
            "extra_field": 1,
        }

    def test_adapter_passes_per_call_context(self, caplog):
        logger = get_logger("redis_cluster.test")

        with caplog.at_level(logging.INFO, logger="redis_cluster.test"):
            logger.info("subscribed", extra=with_session_context(channel="news.*"))

        assert caplog.records[0].channel == "news.*"


class TestSetupLogging:
    def test_installs_json_handler(self, monkeypatch):
        monkeypatch.setenv("REDIS_CLUSTER_LOG_LEVEL", "DEBUG")
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level

        try:
            setup_logging()

            assert root.level == logging.DEBUG
            assert isinstance(root.handlers[0].formatter, CustomJsonFormatter)
            assert logging.getLogger("redis").level == logging.WARNING
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
