"""
Value model shared by the key operations and the subscription lifecycle.
"""
from __future__ import annotations

import json
from collections.abc import Mapping
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from redis_cluster.errors import ConfigurationError


# Scalar, field mapping or ordered sequence
RedisValue = Union[str, Dict[str, str], List[str]]


class KeyType(str, Enum):
    """Declared type of a key; AUTOMATIC is resolved before dispatch."""

    AUTOMATIC = "automatic"
    STRING = "string"
    HASH = "hash"
    LIST = "list"
    SETS = "sets"

    @classmethod
    def parse(cls, value: Union[str, "KeyType", None], strict: bool = True) -> Optional["KeyType"]:
        """
        Parameter value to KeyType; missing means AUTOMATIC and 'set' is
        accepted for SETS.

        Unknown values raise ConfigurationError, or give None when strict
        is off (the read path treats None as a plain GET).
        """
        if value is None or value == "":
            return cls.AUTOMATIC
        if isinstance(value, cls):
            return value
        tag = _ALIASES.get(value, value)
        try:
            return cls(tag)
        except ValueError:
            if not strict:
                return None
            raise ConfigurationError(f"Unknown key type '{value}'")

    @classmethod
    def from_server(cls, server_type: str) -> Optional["KeyType"]:
        """Map a TYPE reply to a tag. None for types without a dedicated read."""
        return _SERVER_TYPES.get(server_type)

    @classmethod
    def infer(cls, value: Any) -> "KeyType":
        """Pick the write type from the shape of the value."""
        if isinstance(value, str):
            return cls.STRING
        if isinstance(value, (list, tuple)):
            return cls.LIST
        if isinstance(value, Mapping):
            return cls.HASH
        raise ConfigurationError("Could not identify the type to set. Please set it manually!")


_ALIASES = {"set": "sets"}

_SERVER_TYPES = {
    "string": KeyType.STRING,
    "hash": KeyType.HASH,
    "list": KeyType.LIST,
    "set": KeyType.SETS,
}


class SubscriptionOptions(BaseModel):
    """Per-message transform options of a subscription."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    parse_json: bool = Field(False, alias="jsonParseBody")
    only_message: bool = Field(False, alias="onlyMessage")


class InboundMessage(NamedTuple):
    channel: str
    payload: str


class DecodedPayload(NamedTuple):
    """Result of decoding a payload: the JSON value, or the raw string when is_json is False."""

    value: Any
    is_json: bool


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid JSON constant {name}")


def decode_payload(raw: Optional[str]) -> DecodedPayload:
    """Try to read raw as JSON. Never raises; failures keep the raw value."""
    if raw is None:
        return DecodedPayload(None, False)
    try:
        # NaN/Infinity are not JSON
        return DecodedPayload(json.loads(raw, parse_constant=_reject_constant), True)
    except (TypeError, ValueError):
        return DecodedPayload(raw, False)


__all__ = [
    "RedisValue",
    "KeyType",
    "SubscriptionOptions",
    "InboundMessage",
    "DecodedPayload",
    "decode_payload",
]
