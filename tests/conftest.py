"""Pytest configuration and fixtures."""
import fnmatch
import os
import threading
import time

import pytest
from redis.exceptions import ResponseError

from redis_cluster.config import reset_settings

# Set test environment variables
os.environ["REDIS_CLUSTER_ENV"] = "test"

WRONGTYPE = "WRONGTYPE Operation against a key holding the wrong kind of value"


class FakeWorker:
    """Stand-in for redis-py's PubSubWorkerThread; messages are delivered inline."""

    def __init__(self, pubsub, exception_handler=None):
        self.pubsub = pubsub
        self.exception_handler = exception_handler
        self.running = True
        self.joined = False

    def stop(self):
        self.running = False
        self.pubsub.close()

    def join(self, timeout=None):
        self.joined = True

    def is_alive(self):
        return self.running


class FakePubSub:
    def __init__(self, cluster):
        self.cluster = cluster
        self.patterns = {}
        self.worker = None
        self.closed = False

    def psubscribe(self, *args, **kwargs):
        for pattern in args:
            self.patterns[pattern] = None
        self.patterns.update(kwargs)
        self.cluster.pubsubs.append(self)

    def run_in_thread(self, sleep_time=0.0, daemon=False, exception_handler=None):
        self.worker = FakeWorker(self, exception_handler)
        return self.worker

    def close(self):
        self.closed = True

    def deliver(self, channel, data):
        """Dispatch one message to every matching pattern; returns the receiver count."""
        if self.closed or self.worker is None or not self.worker.running:
            return 0
        count = 0
        for pattern, handler in list(self.patterns.items()):
            if not fnmatch.fnmatchcase(channel, pattern):
                continue
            count += 1
            message = {"type": "pmessage", "pattern": pattern, "channel": channel, "data": data}
            try:
                handler(message)
            except Exception as exc:
                if self.worker.exception_handler is None:
                    raise
                self.worker.exception_handler(exc, self, self.worker)
        return count


class FakeCluster:
    """
    In-memory cluster shared by every client a test creates.

    Values are stored the way decode_responses=True hands them back:
    str, dict of str, list of str or set of str.
    """

    def __init__(self):
        self.data = {}
        self.ttls = {}
        self.pubsubs = []
        self.clients = []
        self.lock = threading.Lock()
        self.fail_connect = None

    def factory(self, config, settings):
        client = FakeRedisCluster(self, config)
        self.clients.append(client)
        return client

    def has_subscribers(self):
        return any(p.worker is not None and p.worker.running for p in self.pubsubs)

    def wait_for_subscribers(self, timeout=2.0):
        deadline = time.monotonic() + timeout
        while not self.has_subscribers():
            if time.monotonic() > deadline:
                raise AssertionError("no subscriber showed up")
            time.sleep(0.005)


class FakeRedisCluster:
    def __init__(self, cluster, config=None):
        self.cluster = cluster
        self.config = config
        self.closed = False

    @property
    def data(self):
        return self.cluster.data

    def _typed(self, key, kind):
        value = self.data.get(key)
        if value is not None and not isinstance(value, kind):
            raise ResponseError(WRONGTYPE)
        return value

    def ping(self):
        if self.cluster.fail_connect is not None:
            raise self.cluster.fail_connect
        return True

    def close(self):
        self.closed = True

    def type(self, key):
        value = self.data.get(key)
        if value is None:
            return "none"
        if isinstance(value, str):
            return "string"
        if isinstance(value, dict):
            return "hash"
        if isinstance(value, list):
            return "list"
        return "set"

    def get(self, key):
        return self._typed(key, str)

    def set(self, key, value):
        self.data[key] = str(value)
        return True

    def hgetall(self, key):
        return dict(self._typed(key, dict) or {})

    def hset(self, key, field, value):
        current = self._typed(key, dict)
        if current is None:
            current = self.data[key] = {}
        added = int(field not in current)
        current[field] = value
        return added

    def lrange(self, key, start, end):
        current = self._typed(key, list) or []
        end = len(current) if end == -1 else end + 1
        return list(current[start:end])

    def lset(self, key, index, value):
        current = self._typed(key, list)
        if current is None:
            raise ResponseError("ERR no such key")
        if index >= len(current):
            raise ResponseError("ERR index out of range")
        current[index] = value
        return True

    def smembers(self, key):
        return set(self._typed(key, set) or set())

    def delete(self, *keys):
        return sum(1 for key in keys if self.data.pop(key, None) is not None)

    def incr(self, key):
        current = self._typed(key, str) or "0"
        try:
            value = int(current) + 1
        except ValueError:
            raise ResponseError("ERR value is not an integer or out of range")
        self.data[key] = str(value)
        return value

    def expire(self, key, seconds):
        if key not in self.data:
            return False
        self.cluster.ttls[key] = seconds
        return True

    def keys(self, pattern):
        return sorted(key for key in self.data if fnmatch.fnmatchcase(key, pattern))

    def lpush(self, key, *values):
        current = self._typed(key, list)
        if current is None:
            current = self.data[key] = []
        for value in values:
            current.insert(0, value)
        return len(current)

    def rpush(self, key, *values):
        current = self._typed(key, list)
        if current is None:
            current = self.data[key] = []
        current.extend(values)
        return len(current)

    def lpop(self, key):
        current = self._typed(key, list)
        if not current:
            return None
        value = current.pop(0)
        if not current:
            del self.data[key]
        return value

    def rpop(self, key):
        current = self._typed(key, list)
        if not current:
            return None
        value = current.pop()
        if not current:
            del self.data[key]
        return value

    def publish(self, channel, message):
        with self.cluster.lock:
            pubsubs = list(self.cluster.pubsubs)
        return sum(pubsub.deliver(channel, message) for pubsub in pubsubs)

    def pubsub(self):
        return FakePubSub(self.cluster)


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Isolate every test from REDIS_CLUSTER_* variables and cached settings."""
    for name in list(os.environ):
        if name.startswith("REDIS_CLUSTER_") and name != "REDIS_CLUSTER_ENV":
            monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def fake_cluster():
    """Empty in-memory cluster."""
    return FakeCluster()


@pytest.fixture
def factory(fake_cluster):
    """Client factory producing clients backed by fake_cluster."""
    return fake_cluster.factory


@pytest.fixture
def credentials():
    """Decrypted redisCluster credential data."""
    return {
        "rootNodes": '[{"url": "redis://localhost:30001"}, {"url": "redis://localhost:30002"}]',
        "password": "secret",
        "tls": False,
    }


@pytest.fixture
def client(credentials, factory):
    """Connected ClusterClient over the fake cluster."""
    from redis_cluster.connection import ClusterClient

    cluster_client = ClusterClient.from_credentials(credentials, factory=factory)
    cluster_client.connect()
    yield cluster_client
    cluster_client.quit()


@pytest.fixture
def patched_factory(fake_cluster):
    """Route the default client factory to fake_cluster (for node level tests)."""
    from unittest.mock import patch

    with patch("redis_cluster.connection.create_redis_cluster", side_effect=fake_cluster.factory) as mocked:
        yield mocked
