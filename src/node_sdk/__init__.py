"""
Node SDK - Minimal Python node execution semantics.

This package provides the host contract for Python nodes:
- NodeExecutionContext: Runtime context for a node (parameters,
  credentials, input items, run mode, emit sink)
- BaseNode: Abstract base class for node implementations
- TriggerResponse: Close/manual-trigger handles returned by trigger nodes
- BaseCredential: Credential type definition with a connection test
- Item helpers: return_json_array, set_nested_value

All nodes execute synchronously (sync-Celery safe).
"""

from .basenode import (
    BaseNode,
    NodeExecutionContext,
    NodeExecutionData,
    NodeParameter,
    NodeCredential,
    NodeParameterType,
    NodeRunMode,
    TriggerResponse,
    NodeOperationError,
    NodeApiError,
)
from .credentials import BaseCredential
from .items import return_json_array, set_nested_value, split_property_path

__all__ = [
    "NodeExecutionData",
    # Context
    "NodeExecutionContext",
    "NodeRunMode",
    # Base classes
    "BaseNode",
    "BaseCredential",
    "NodeParameter",
    "NodeCredential",
    "NodeParameterType",
    "TriggerResponse",
    # Errors
    "NodeOperationError",
    "NodeApiError",
    # Items
    "return_json_array",
    "set_nested_value",
    "split_property_path",
]
