"""
Pattern subscription sessions.

A SubscriptionLifecycle owns one cluster client for the duration of a
trigger session:

    IDLE -> CONNECTING -> SUBSCRIBED -> CLOSING -> CLOSED

Subscriptions are registered from the client's 'connect' listener, so
nothing is PSUBSCRIBEd before the cluster answered. Messages are
delivered on redis-py's pub/sub worker thread, transformed, and handed
to the emit sink one at a time. `completion` resolves on the first
delivered message and is rejected by a connection error that happens
before it.
"""
from __future__ import annotations

import threading
from concurrent.futures import Future
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional

from redis.exceptions import RedisClusterException, RedisError

from redis_cluster.config import Settings, get_settings
from redis_cluster.connection import ClusterClient
from redis_cluster.errors import ConfigurationError
from redis_cluster.observability import get_logger, with_session_context
from redis_cluster.types import InboundMessage, SubscriptionOptions, decode_payload


logger = get_logger(__name__)

EmitSink = Callable[[Dict[str, Any]], None]


class SubscriptionState(str, Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    SUBSCRIBED = "subscribed"
    CLOSING = "closing"
    CLOSED = "closed"


def parse_channels(channels: Any) -> List[str]:
    """Comma separated string (or list) of channel patterns, blanks dropped."""
    if isinstance(channels, str):
        channels = channels.split(",")
    return [channel.strip() for channel in channels or [] if channel and channel.strip()]


def transform_message(message: InboundMessage, options: SubscriptionOptions) -> Dict[str, Any]:
    """Output record for one delivery."""
    payload: Any = message.payload
    if options.parse_json:
        payload = decode_payload(message.payload).value

    if options.only_message:
        return {"message": payload}
    return {"channel": message.channel, "message": payload}


class SubscriptionLifecycle:
    """
    One pattern-subscription session over a cluster client.

    The emit sink is never called concurrently. stop() must be called
    to release the connection; it is safe in every state.
    """

    def __init__(
        self,
        client: ClusterClient,
        channels: Iterable[str],
        emit: EmitSink,
        options: Optional[SubscriptionOptions] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.channels = parse_channels(list(channels))
        if not self.channels:
            raise ConfigurationError("Channels are mandatory!")

        self.client = client
        self.options = options or SubscriptionOptions()
        self.state = SubscriptionState.IDLE
        self.completion: Future = Future()
        self.delivered = 0
        self.error: Optional[BaseException] = None

        self._emit = emit
        self._settings = settings or get_settings()
        self._state_lock = threading.RLock()
        self._emit_lock = threading.Lock()
        self._pubsub: Any = None
        self._worker: Any = None

    def start(self) -> Future:
        """
        Connect (if needed) and subscribe to every pattern.

        Returns the completion future. Connection errors propagate and
        also reject the future.
        """
        with self._state_lock:
            if self.state is not SubscriptionState.IDLE:
                raise RuntimeError(f"Subscription cannot start from state '{self.state.value}'")
            self.state = SubscriptionState.CONNECTING

        self.client.on("connect", self._on_ready)
        self.client.on("error", self._on_client_error)

        if self.client.is_connected:
            self._on_ready()
        else:
            self.client.connect()
        return self.completion

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the first message was delivered.

        Raises the connection error that rejected the session,
        concurrent.futures.TimeoutError when timeout elapses, or
        CancelledError if the session was stopped first.
        """
        return self.completion.result(timeout=timeout)

    def stop(self) -> None:
        """Stop delivery, unsubscribe and quit the client."""
        with self._state_lock:
            if self.state in (SubscriptionState.CLOSING, SubscriptionState.CLOSED):
                return
            self.state = SubscriptionState.CLOSING
            worker, self._worker = self._worker, None
            pubsub, self._pubsub = self._pubsub, None

        # Waiters on a session that never delivered are released
        self._settle(cancel=True)

        try:
            if worker is not None:
                # The worker closes its pub/sub connection on exit
                worker.stop()
                if worker is not threading.current_thread():
                    worker.join(timeout=self._settings.pubsub_poll_interval_s * 10 + 1)
            elif pubsub is not None:
                pubsub.close()
        finally:
            self.client.quit()
            with self._state_lock:
                self.state = SubscriptionState.CLOSED
            logger.info(
                f"Subscription closed after {self.delivered} message(s)",
                extra=with_session_context(node_type="redisClusterTrigger"),
            )

    # ==== Client and worker callbacks ====

    def _on_ready(self) -> None:
        with self._state_lock:
            if self.state is not SubscriptionState.CONNECTING:
                return
            try:
                pubsub = self.client.pubsub()
                pubsub.psubscribe(**{pattern: self._on_message for pattern in self.channels})
                self._pubsub = pubsub
                self._worker = pubsub.run_in_thread(
                    sleep_time=self._settings.pubsub_poll_interval_s,
                    daemon=True,
                    exception_handler=self._on_worker_error,
                )
            except (RedisError, RedisClusterException) as exc:
                self._reject(exc)
                raise
            self.state = SubscriptionState.SUBSCRIBED

        logger.info(
            f"Subscribed to {len(self.channels)} pattern(s)",
            extra=with_session_context(node_type="redisClusterTrigger", channel=",".join(self.channels)),
        )

    def _on_message(self, message: Dict[str, Any]) -> None:
        inbound = InboundMessage(channel=message["channel"], payload=message["data"])
        data = transform_message(inbound, self.options)
        with self._emit_lock:
            self._emit(data)
            self.delivered += 1
        if not self.completion.done():
            self._settle(result=True)

    def _on_client_error(self, exc: BaseException) -> None:
        self._reject(exc)

    def _on_worker_error(self, exc: BaseException, pubsub: Any, worker: Any) -> None:
        if self.state in (SubscriptionState.CLOSING, SubscriptionState.CLOSED):
            logger.debug(f"Ignoring pub/sub error during teardown: {exc}")
            worker.stop()
            return
        logger.error(
            f"Subscription failed: {exc}",
            extra=with_session_context(node_type="redisClusterTrigger", channel=",".join(self.channels)),
        )
        worker.stop()
        self._reject(exc)

    def _reject(self, exc: BaseException) -> None:
        self.error = exc
        self._settle(error=exc)

    def _settle(
        self,
        result: Any = None,
        error: Optional[BaseException] = None,
        cancel: bool = False,
    ) -> None:
        # Every outcome of the completion future goes through this lock
        with self._state_lock:
            if self.completion.done():
                return
            if cancel:
                self.completion.cancel()
            elif error is not None:
                self.completion.set_exception(error)
            else:
                self.completion.set_result(result)


__all__ = [
    "SubscriptionLifecycle",
    "SubscriptionState",
    "EmitSink",
    "parse_channels",
    "transform_message",
]
