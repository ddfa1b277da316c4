"""
Redis Cluster Nodes - Key, list and pub/sub operations against a Redis Cluster.

- RedisClusterNode: delete / get / incr / keys / pop / publish / push / set
- RedisClusterTriggerNode: pattern subscription that emits every message

Both use the redisCluster credential (root node URLs, password, TLS).
"""

from __future__ import annotations

import json
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Dict, List

from redis.exceptions import (
    AuthenticationError,
    ConnectionError as RedisConnectionError,
    RedisClusterException,
    RedisError,
    TimeoutError as RedisTimeoutError,
)

from node_sdk import (
    BaseNode,
    NodeApiError,
    NodeExecutionData,
    NodeOperationError,
    NodeRunMode,
    TriggerResponse,
    return_json_array,
    set_nested_value,
)
from redis_cluster.config import get_settings
from redis_cluster.connection import ClusterClient
from redis_cluster.errors import ConfigurationError
from redis_cluster.observability import with_session_context
from redis_cluster.operations import RedisKeyOperations
from redis_cluster.subscription import SubscriptionLifecycle, SubscriptionState, parse_channels
from redis_cluster.types import KeyType, SubscriptionOptions, decode_payload


CREDENTIAL_NAME = "redisCluster"

OPERATIONS = ("delete", "get", "incr", "keys", "pop", "publish", "push", "set")


def _show(*operations: str, **extra: List[Any]) -> Dict[str, Any]:
    return {"show": {"operation": list(operations), **extra}}


KEY_TYPE_OPTIONS = [
    {"name": "Automatic", "value": "automatic", "description": "Requests the type before requesting the data (slower)"},
    {"name": "Hash", "value": "hash", "description": "Data in key is of type 'hash'"},
    {"name": "List", "value": "list", "description": "Data in key is of type 'list'"},
    {"name": "Sets", "value": "sets", "description": "Data in key is of type 'sets'"},
    {"name": "String", "value": "string", "description": "Data in key is of type 'string'"},
]

DOT_NOTATION_OPTION = {
    "displayName": "Dot Notation",
    "name": "dotNotation",
    "type": "boolean",
    "default": True,
    "description": (
        "By default, dot-notation is used in property names. This means that 'a.b' will set "
        "the property 'b' underneath 'a' so {'a': {'b': value}}. If deactivated, it will set "
        "{'a.b': value} instead."
    ),
}


def api_error(node: BaseNode, exc: BaseException) -> NodeApiError:
    """Descriptive failure for transport-level errors."""
    if isinstance(exc, AuthenticationError):
        message = f"Authentication failed: {exc}"
    elif isinstance(exc, RedisTimeoutError):
        message = f"Connection timeout: {exc}"
    else:
        message = f"Connection failed: {exc}"
    return NodeApiError(message, node)


CONNECTION_ERRORS = (RedisConnectionError, RedisTimeoutError, RedisClusterException)


def _to_payload(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value)


class RedisClusterNode(BaseNode):
    """
    Redis Cluster - Get, send and update data in a Redis Cluster.

    One client is created per execution, connected once, and quit
    when the run ends whether or not it succeeded.
    """

    type = "redisCluster"
    version = 1

    description = {
        "displayName": "Redis Cluster",
        "name": "redisCluster",
        "icon": "file:redis-cluster.svg",
        "group": ["input"],
        "description": "Get, send and update data in Redis Cluster",
        "version": 1,
        "defaults": {"name": "Redis Cluster"},
        "inputs": ["main"],
        "outputs": ["main"],
        "credentials": [{"name": CREDENTIAL_NAME, "required": True}],
    }

    properties = {
        "parameters": [
            {
                "displayName": "Operation",
                "name": "operation",
                "type": "options",
                "options": [
                    {"name": "Delete", "value": "delete", "description": "Delete a key from Redis"},
                    {"name": "Get", "value": "get", "description": "Get the value of a key from Redis"},
                    {
                        "name": "Increment",
                        "value": "incr",
                        "description": "Atomically increments a key by 1. Creates the key if it does not exist.",
                    },
                    {"name": "Keys", "value": "keys", "description": "Returns all the keys matching a pattern"},
                    {"name": "Pop", "value": "pop", "description": "Pop data from a redis list"},
                    {"name": "Publish", "value": "publish", "description": "Publish message to redis channel"},
                    {"name": "Push", "value": "push", "description": "Push data to a redis list"},
                    {"name": "Set", "value": "set", "description": "Set the value of a key in redis"},
                ],
                "default": "get",
            },
            # ---------------- get ----------------
            {
                "displayName": "Name",
                "name": "propertyName",
                "type": "string",
                "displayOptions": _show("get"),
                "default": "propertyName",
                "required": True,
                "description": "Name of the property to write received data to. Supports dot-notation. Example: \"data.person[0].name\".",
            },
            {
                "displayName": "Key",
                "name": "key",
                "type": "string",
                "displayOptions": _show("delete"),
                "default": "",
                "required": True,
                "description": "Name of the key to delete from Redis",
            },
            {
                "displayName": "Key",
                "name": "key",
                "type": "string",
                "displayOptions": _show("get"),
                "default": "",
                "required": True,
                "description": "Name of the key to get from Redis",
            },
            {
                "displayName": "Key Type",
                "name": "keyType",
                "type": "options",
                "displayOptions": _show("get"),
                "options": KEY_TYPE_OPTIONS,
                "default": "automatic",
                "description": "The type of the key to get",
            },
            {
                "displayName": "Options",
                "name": "options",
                "type": "collection",
                "displayOptions": _show("get"),
                "placeholder": "Add Option",
                "default": {},
                "options": [DOT_NOTATION_OPTION],
            },
            # ---------------- incr ----------------
            {
                "displayName": "Key",
                "name": "key",
                "type": "string",
                "displayOptions": _show("incr"),
                "default": "",
                "required": True,
                "description": "Name of the key to increment",
            },
            {
                "displayName": "Expire",
                "name": "expire",
                "type": "boolean",
                "displayOptions": _show("incr"),
                "default": False,
                "description": "Whether to set a timeout on key",
            },
            {
                "displayName": "TTL",
                "name": "ttl",
                "type": "number",
                "typeOptions": {"minValue": 1},
                "displayOptions": _show("incr", expire=[True]),
                "default": 60,
                "description": "Number of seconds before key expiration",
            },
            # ---------------- keys ----------------
            {
                "displayName": "Key Pattern",
                "name": "keyPattern",
                "type": "string",
                "displayOptions": _show("keys"),
                "default": "",
                "required": True,
                "description": "The key pattern for the keys to return",
            },
            {
                "displayName": "Get Values",
                "name": "getValues",
                "type": "boolean",
                "displayOptions": _show("keys"),
                "default": True,
                "description": "Whether to get the value of matching keys",
            },
            # ---------------- set ----------------
            {
                "displayName": "Key",
                "name": "key",
                "type": "string",
                "displayOptions": _show("set"),
                "default": "",
                "required": True,
                "description": "Name of the key to set in Redis",
            },
            {
                "displayName": "Value",
                "name": "value",
                "type": "string",
                "displayOptions": _show("set"),
                "default": "",
                "description": "The value to write in Redis",
            },
            {
                "displayName": "Key Type",
                "name": "keyType",
                "type": "options",
                "displayOptions": _show("set"),
                "options": [
                    {**option, "description": "Tries to figure out the type automatically depending on the data"}
                    if option["value"] == "automatic" else option
                    for option in KEY_TYPE_OPTIONS
                ],
                "default": "automatic",
                "description": "The type of the key to set",
            },
            {
                "displayName": "Expire",
                "name": "expire",
                "type": "boolean",
                "displayOptions": _show("set"),
                "default": False,
                "description": "Whether to set a timeout on key",
            },
            {
                "displayName": "TTL",
                "name": "ttl",
                "type": "number",
                "typeOptions": {"minValue": 1},
                "displayOptions": _show("set", expire=[True]),
                "default": 60,
                "description": "Number of seconds before key expiration",
            },
            # ---------------- publish ----------------
            {
                "displayName": "Channel",
                "name": "channel",
                "type": "string",
                "displayOptions": _show("publish"),
                "default": "",
                "required": True,
                "description": "Channel name",
            },
            {
                "displayName": "Data",
                "name": "messageData",
                "type": "string",
                "displayOptions": _show("publish"),
                "default": "",
                "required": True,
                "description": "Data to publish",
            },
            # ---------------- push / pop ----------------
            {
                "displayName": "List",
                "name": "list",
                "type": "string",
                "displayOptions": _show("push", "pop"),
                "default": "",
                "required": True,
                "description": "Name of the list in Redis",
            },
            {
                "displayName": "Data",
                "name": "messageData",
                "type": "string",
                "displayOptions": _show("push"),
                "default": "",
                "required": True,
                "description": "Data to push",
            },
            {
                "displayName": "Tail",
                "name": "tail",
                "type": "boolean",
                "displayOptions": _show("push", "pop"),
                "default": False,
                "description": "Whether to push or pop data from the end of the list",
            },
            {
                "displayName": "Name",
                "name": "propertyName",
                "type": "string",
                "displayOptions": _show("pop"),
                "default": "propertyName",
                "description": "Optional name of the property to write received data to. Supports dot-notation. Example: \"data.person[0].name\".",
            },
            {
                "displayName": "Options",
                "name": "options",
                "type": "collection",
                "displayOptions": _show("pop"),
                "placeholder": "Add Option",
                "default": {},
                "options": [DOT_NOTATION_OPTION],
            },
        ],
        "credentials": [{"name": CREDENTIAL_NAME, "required": True}],
    }

    def execute(self) -> List[List[NodeExecutionData]]:
        """Run the selected operation once per input item."""
        items = self.get_input_data() or [{"json": {}}]
        operation = self.get_node_parameter("operation", 0, "get")
        if operation not in OPERATIONS:
            raise NodeOperationError(f"The operation '{operation}' is not supported", self)

        # Unparseable root nodes fail here, before anything touches the network
        client = ClusterClient.from_credentials(self.get_credentials(CREDENTIAL_NAME))
        try:
            client.connect()
            ops = RedisKeyOperations(client)

            results: List[NodeExecutionData] = []
            for item_index, item in enumerate(items):
                try:
                    results.append(self._run_operation(ops, operation, item, item_index))
                except (NodeOperationError, RedisError) as e:
                    if not self.continue_on_fail:
                        raise
                    self.logger.error(
                        f"Redis Cluster operation '{operation}' failed: {e}",
                        extra=with_session_context(node_type=self.type, operation=operation, item_index=item_index),
                    )
                    results.append({"json": {"error": str(e)}, "pairedItem": {"item": item_index}})
            return [results]

        except CONNECTION_ERRORS as e:
            self.logger.error(
                f"Redis Cluster connection failed: {e}",
                extra=with_session_context(node_type=self.type, operation=operation),
            )
            raise api_error(self, e) from e

        finally:
            client.quit()

    def _run_operation(
        self,
        ops: RedisKeyOperations,
        operation: str,
        item: Dict[str, Any],
        item_index: int,
    ) -> NodeExecutionData:
        param = self.get_node_parameter

        if operation == "delete":
            ops.remove(param("key", item_index, ""))
            return item

        if operation == "get":
            value = ops.read(param("key", item_index, ""), param("keyType", item_index, "automatic"))
            return self._property_item(value or None, item_index)

        if operation == "set":
            key_type = KeyType.parse(param("keyType", item_index, "automatic"))
            value = self._coerce_set_value(param("value", item_index, ""), key_type)
            ops.write(param("key", item_index, ""), value, key_type, self._expire_seconds(item_index))
            return item

        if operation == "incr":
            key = param("key", item_index, "")
            expire_seconds = self._expire_seconds(item_index)
            if expire_seconds is not None and expire_seconds < 1:
                expire_seconds = None
            value = ops.increment(key, expire_seconds)
            return {"json": {key: value}, "pairedItem": {"item": item_index}}

        if operation == "keys":
            get_values = bool(param("getValues", item_index, True))
            pairs = ops.list_keys(param("keyPattern", item_index, ""), get_values)
            if not get_values:
                return {"json": {"keys": [key for key, _ in pairs]}, "pairedItem": {"item": item_index}}
            return {"json": dict(pairs), "pairedItem": {"item": item_index}}

        if operation == "publish":
            ops.publish(param("channel", item_index, ""), _to_payload(param("messageData", item_index, "")))
            return item

        if operation == "push":
            ops.list_push(
                param("list", item_index, ""),
                _to_payload(param("messageData", item_index, "")),
                bool(param("tail", item_index, False)),
            )
            return item

        # pop
        value = ops.list_pop(param("list", item_index, ""), bool(param("tail", item_index, False)))
        return self._property_item(value, item_index)

    def _property_item(self, value: Any, item_index: int) -> NodeExecutionData:
        property_name = self.get_node_parameter("propertyName", item_index, "propertyName")
        options = self.get_node_parameter("options", item_index, {}) or {}
        data = set_nested_value({}, property_name, value, options.get("dotNotation", True) is not False)
        return {"json": data, "pairedItem": {"item": item_index}}

    def _expire_seconds(self, item_index: int) -> int | None:
        if not self.get_node_parameter("expire", item_index, False):
            return None
        return int(self.get_node_parameter("ttl", item_index, -1))

    @staticmethod
    def _coerce_set_value(value: Any, key_type: KeyType) -> Any:
        """Hash and list values typed into the editor arrive as JSON text."""
        if key_type not in (KeyType.HASH, KeyType.LIST) or not isinstance(value, str):
            return value
        decoded = decode_payload(value)
        if not decoded.is_json:
            raise ConfigurationError(f"The value for a key of type '{key_type.value}' must be valid JSON")
        return decoded.value


class RedisClusterTriggerNode(BaseNode):
    """
    Redis Cluster Trigger - Subscribe to channel patterns.

    In trigger mode the subscription starts right away and lives until
    the host calls the close function. In manual mode the manual
    trigger function starts it and returns after the first message.
    """

    type = "redisClusterTrigger"
    version = 1

    description = {
        "displayName": "Redis Cluster Trigger",
        "name": "redisClusterTrigger",
        "icon": "file:redis-cluster.svg",
        "group": ["trigger"],
        "description": "Subscribe to redis channel",
        "version": 1,
        "defaults": {"name": "Redis Trigger"},
        "inputs": [],
        "outputs": ["main"],
        "credentials": [{"name": CREDENTIAL_NAME, "required": True}],
    }

    properties = {
        "parameters": [
            {
                "displayName": "Channels",
                "name": "channels",
                "type": "string",
                "default": "",
                "required": True,
                "description": "Channels to subscribe to, multiple channels be defined with comma. Wildcard character(*) is supported.",
            },
            {
                "displayName": "Options",
                "name": "options",
                "type": "collection",
                "placeholder": "Add Option",
                "default": {},
                "options": [
                    {
                        "displayName": "JSON Parse Body",
                        "name": "jsonParseBody",
                        "type": "boolean",
                        "default": False,
                        "description": "Whether to try to parse the message to an object",
                    },
                    {
                        "displayName": "Only Message",
                        "name": "onlyMessage",
                        "type": "boolean",
                        "default": False,
                        "description": "Whether to return only the message property",
                    },
                ],
            },
        ],
        "credentials": [{"name": CREDENTIAL_NAME, "required": True}],
    }

    def trigger(self) -> TriggerResponse:
        """Set up the subscription session and hand its controls to the host."""
        credentials = self.get_credentials(CREDENTIAL_NAME)
        channels = parse_channels(self.get_node_parameter("channels", 0, ""))
        if not channels:
            raise NodeOperationError("Channels are mandatory!", self)
        options = SubscriptionOptions.model_validate(self.get_node_parameter("options", 0, {}) or {})

        settings = get_settings()
        client = ClusterClient.from_credentials(credentials, settings=settings)
        session = SubscriptionLifecycle(client, channels, self._emit_message, options, settings=settings)

        def start() -> None:
            try:
                session.start()
            except (RedisError, RedisClusterException) as e:
                session.stop()
                if isinstance(e, CONNECTION_ERRORS):
                    raise api_error(self, e) from e
                raise

        def manual_trigger_function() -> None:
            if session.state is SubscriptionState.IDLE:
                start()
            try:
                session.wait(timeout=settings.manual_trigger_timeout_s)
            except FutureTimeoutError as e:
                raise NodeOperationError(
                    f"No message received within {settings.manual_trigger_timeout_s} seconds", self
                ) from e
            except CONNECTION_ERRORS as e:
                raise api_error(self, e) from e

        def close_function() -> None:
            session.stop()

        if self.get_mode() is NodeRunMode.TRIGGER:
            start()

        self.logger.info(
            f"Redis Cluster trigger ready in {self.get_mode().value} mode",
            extra=with_session_context(node_type=self.type, channel=",".join(channels)),
        )
        return TriggerResponse(close_function=close_function, manual_trigger_function=manual_trigger_function)

    def _emit_message(self, data: Dict[str, Any]) -> None:
        self.emit([return_json_array(data)])


__all__ = [
    "RedisClusterNode",
    "RedisClusterTriggerNode",
    "OPERATIONS",
]
