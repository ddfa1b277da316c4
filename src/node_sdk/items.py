"""
Node Items - Helpers for shaping data flowing through workflows.

Output items are plain dicts: {"json": {...}, "pairedItem": {"item": 0}}.
These helpers cover the conventions shared by every node:
wrapping raw results as items and writing values under a
dot-notation property path.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Union

from .basenode import NodeExecutionData


_PATH_TOKEN = re.compile(r"[^.\[\]]+")


def return_json_array(data: Union[Dict[str, Any], List[Dict[str, Any]]]) -> List[NodeExecutionData]:
    """
    Wrap one dict or a list of dicts as output items.

    Example:
        return_json_array({"a": 1}) -> [{"json": {"a": 1}}]
    """
    if isinstance(data, dict):
        data = [data]
    return [{"json": entry} for entry in data]


def split_property_path(path: str) -> List[Union[str, int]]:
    """Split 'data.person[0].name' into ['data', 'person', 0, 'name']."""
    keys: List[Union[str, int]] = []
    for token in _PATH_TOKEN.findall(path):
        keys.append(int(token) if token.isdigit() else token)
    return keys


def set_nested_value(
    obj: Dict[str, Any],
    path: str,
    value: Any,
    use_dot_notation: bool = True,
) -> Dict[str, Any]:
    """
    Set a value in a dictionary using dot notation.

    'a.b' writes {'a': {'b': value}}; numeric segments ('a[0]' or 'a.0')
    create lists. With use_dot_notation=False the path is used as a
    literal key: {'a.b': value}.

    Args:
        obj: Target dictionary (modified in place)
        path: Property path (e.g., 'a.b.c' or 'a.b[0].c')
        value: Value to set
        use_dot_notation: Whether to interpret dots as nesting

    Returns:
        The target dictionary
    """
    if not use_dot_notation:
        obj[path] = value
        return obj

    keys = split_property_path(path)
    if not keys:
        obj[path] = value
        return obj

    current: Any = obj
    for key, next_key in zip(keys[:-1], keys[1:]):
        container: Any = [] if isinstance(next_key, int) else {}
        if isinstance(current, list):
            while len(current) <= key:
                current.append(None)
            if not isinstance(current[key], (dict, list)):
                current[key] = container
            current = current[key]
        else:
            key = str(key)
            if not isinstance(current.get(key), (dict, list)):
                current[key] = container
            current = current[key]

    final_key = keys[-1]
    if isinstance(current, list):
        while len(current) <= final_key:
            current.append(None)
    else:
        final_key = str(final_key)
    current[final_key] = value
    return obj


__all__ = [
    "return_json_array",
    "set_nested_value",
    "split_property_path",
]
