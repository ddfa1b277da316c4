"""
BaseNode - Abstract base class for Python node implementations.

Defines the host execution contract consumed by node packs:
parameter retrieval, credential resolution, input items, run mode
and the emit sink used by trigger nodes.

All nodes inherit from BaseNode and implement execute() or trigger().

SYNC-CELERY SAFE: execute() is synchronous. Trigger nodes hand back
a TriggerResponse whose functions are driven by the host.
"""

from __future__ import annotations

import logging
from abc import ABC
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Literal, Optional, TypedDict

from pydantic import BaseModel, ConfigDict, Field


logger = logging.getLogger(__name__)


# ==============================================================================
# NodeParameterType
# ==============================================================================

NodeParameterType = Literal[
    "string", "number", "boolean", "options", "multiOptions",
    "color", "json", "collection", "dateTime", "node",
    "resourceLocator", "notice", "array", "code",
]


class NodeRunMode(str, Enum):
    """How the host is running a trigger node."""
    TRIGGER = "trigger"  # Activated workflow, long-running
    MANUAL = "manual"    # Editor test run, resolves on first event


# ==============================================================================
# NodeParameter - Pydantic model for defining parameters
# ==============================================================================

class NodeParameter(BaseModel):
    """
    A single parameter in the node's properties.

    Can be used both as Pydantic model and as dict in properties.
    """
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str = Field(..., description="Parameter key (internal name)")
    display_name: str = Field(..., alias="displayName", description="Human-readable label")
    type: NodeParameterType = Field(..., description="Parameter type")
    default: Any = Field(None, description="Default value")
    required: bool = Field(False, description="Is parameter required?")
    description: Optional[str] = Field(None, description="Help text")
    placeholder: Optional[str] = Field(None, description="Input placeholder")
    options: Optional[List[Dict[str, Any]]] = Field(
        None,
        description="Options for options/multiOptions/collection type"
    )
    display_options: Optional[Dict[str, Any]] = Field(
        None,
        alias="displayOptions",
        description="Conditional visibility"
    )


class NodeCredential(BaseModel):
    """Credential requirement definition."""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str = Field(..., description="Credential type name")
    required: bool = Field(True, description="Is credential required?")
    display_name: Optional[str] = Field(None, alias="displayName")
    display_options: Optional[Dict[str, Any]] = Field(None, alias="displayOptions")


# ==============================================================================
# NodeExecutionData - Output data format
# ==============================================================================

class NodeExecutionData(TypedDict, total=False):
    """
    Single item of execution output data.

    Format: {"json": {...}, "binary": {...}, "pairedItem": {"item": 0}}
    """
    json: Dict[str, Any]
    binary: Optional[Dict[str, Any]]
    pairedItem: Optional[Dict[str, int]]


@dataclass
class TriggerResponse:
    """
    Returned by trigger nodes.

    close_function tears down whatever trigger() opened and must be
    safe to call at any point. manual_trigger_function is used by the
    host for editor test runs and returns once the first event fired.
    """
    close_function: Callable[[], None]
    manual_trigger_function: Optional[Callable[[], None]] = None


# ==============================================================================
# BaseNode - Abstract base class
# ==============================================================================

class BaseNode(ABC):
    """
    Abstract base class for all Python node implementations.

    Nodes define:
    - type: Unique identifier (e.g., "redisCluster")
    - version: Node version number
    - description: Node metadata dict
    - properties: Parameters and credentials

    Regular nodes implement execute(), which processes input items.
    Trigger nodes implement trigger() and push items through emit().

    Example:

        class EchoNode(BaseNode):
            type = "echo"
            version = 1

            properties = {
                "parameters": [
                    {
                        "displayName": "Field",
                        "name": "field",
                        "type": "string",
                        "default": "value",
                    },
                ],
            }

            def execute(self) -> List[List[NodeExecutionData]]:
                items = self.get_input_data()
                results = []
                for i, item in enumerate(items):
                    field = self.get_node_parameter("field", i)
                    results.append({"json": {field: item["json"]}, "pairedItem": {"item": i}})
                return [results]
    """

    # Required class attributes (override in subclasses)
    type: str = "base"
    version: int = 1

    # Node metadata
    description: Dict[str, Any] = {
        "displayName": "Base Node",
        "name": "base",
        "description": "",
        "group": [],
        "version": 1,
        "inputs": ["main"],
        "outputs": ["main"],
    }

    # Node configuration - parameters and credentials
    properties: Dict[str, Any] = {
        "parameters": [],
        "credentials": [],
    }

    # Continue processing other items if one fails
    continue_on_fail: bool = False

    def __init__(self) -> None:
        """Initialize node instance."""
        self.logger = logging.getLogger(f"node.{self.type}")
        self._context: Optional[NodeExecutionContext] = None

    def execute(self) -> List[List[NodeExecutionData]]:
        """
        Execute node operation.

        Returns:
            List[List[NodeExecutionData]]: Nested list of execution results.
            - Outer list represents output branches (usually 1)
            - Inner list represents items in that branch

        Raises:
            NodeOperationError: On operation failure
            NodeApiError: On API call failure
        """
        raise NotImplementedError("This node does not support execute functionality")

    def trigger(self) -> TriggerResponse:
        """Start the trigger; implemented by trigger nodes."""
        raise NotImplementedError("This node does not support trigger functionality")

    # ==== Context Management ====

    def set_context(self, context: "NodeExecutionContext") -> None:
        """Set the execution context."""
        self._context = context
        if context.continue_on_fail is not None:
            self.continue_on_fail = context.continue_on_fail

    # ==== Helper methods for subclasses ====

    def get_node_parameter(
        self,
        name: str,
        item_index: int = 0,
        default: Any = None,
    ) -> Any:
        """
        Get parameter value.

        Args:
            name: Parameter name
            item_index: Index of item (for expression resolution)
            default: Default if not set
        """
        if self._context is None:
            return default
        return self._context.get_node_parameter(name, item_index, default)

    def get_credentials(self, name: str) -> Dict[str, Any]:
        """
        Get credentials by type name.

        Args:
            name: Credential type name (e.g., "redisCluster")

        Returns:
            Credentials dict with decrypted values
        """
        if self._context is None:
            raise NodeOperationError("No context set")
        return self._context.get_credentials(name)

    def get_input_data(self) -> List[Dict[str, Any]]:
        """
        Get input items from previous node.

        Returns:
            List of input items, each with 'json' key.
        """
        if self._context is None:
            return []
        return self._context.get_input_data()

    def get_mode(self) -> NodeRunMode:
        """Run mode of the current trigger session."""
        if self._context is None:
            return NodeRunMode.TRIGGER
        return self._context.mode

    def emit(self, data: List[List[NodeExecutionData]]) -> None:
        """Hand trigger output to the host."""
        if self._context is None:
            raise NodeOperationError("No context set")
        self._context.emit(data)

    @classmethod
    def get_definition(cls) -> Dict[str, Any]:
        """Get full node definition for registration."""
        for parameter in cls.properties.get("parameters", []):
            NodeParameter.model_validate(parameter)
        for credential in cls.properties.get("credentials", []):
            NodeCredential.model_validate(credential)
        return {
            "type": cls.type,
            "version": cls.version,
            "description": cls.description,
            "properties": cls.properties,
        }


# ==============================================================================
# NodeExecutionContext - Runtime context for node execution
# ==============================================================================

class NodeExecutionContext:
    """
    Runtime context provided to nodes during execution.

    Provides access to:
    - Parameters
    - Credentials
    - Input data
    - Run mode and emit sink (trigger nodes)
    """

    def __init__(
        self,
        parameters: Dict[str, Any],
        credentials: Dict[str, Dict[str, Any]],
        input_data: Optional[List[Dict[str, Any]]] = None,
        workflow_id: Optional[str] = None,
        node_name: Optional[str] = None,
        mode: NodeRunMode = NodeRunMode.TRIGGER,
        emit: Optional[Callable[[List[List[NodeExecutionData]]], None]] = None,
        continue_on_fail: Optional[bool] = None,
    ) -> None:
        self._parameters = parameters
        self._credentials = credentials
        self._input_data = input_data or []
        self._emit = emit
        self.workflow_id = workflow_id
        self.node_name = node_name
        self.mode = NodeRunMode(mode)
        self.continue_on_fail = continue_on_fail

    def get_node_parameter(
        self,
        name: str,
        item_index: int = 0,
        default: Any = None,
    ) -> Any:
        """Get parameter value."""
        value = self._parameters.get(name, default)
        # Callables are resolved per item, standing in for expressions
        if callable(value):
            return value(item_index)
        return value

    def get_credentials(self, name: str) -> Dict[str, Any]:
        """Get credentials by type name."""
        if name not in self._credentials:
            raise NodeOperationError(f"Credentials '{name}' not found")
        return self._credentials[name]

    def get_input_data(self) -> List[Dict[str, Any]]:
        """Get input items."""
        return self._input_data

    def emit(self, data: List[List[NodeExecutionData]]) -> None:
        """Forward trigger output to the host sink."""
        if self._emit is None:
            raise NodeOperationError("No emit sink configured for this execution")
        self._emit(data)


# ==============================================================================
# Errors
# ==============================================================================

class NodeOperationError(Exception):
    """Error during node operation."""

    def __init__(
        self,
        message: str,
        node: Optional[BaseNode] = None,
        item_index: Optional[int] = None,
    ) -> None:
        self.message = message
        self.node = node
        self.item_index = item_index
        super().__init__(message)


class NodeApiError(NodeOperationError):
    """Error from external API call."""

    def __init__(
        self,
        message: str,
        node: Optional[BaseNode] = None,
        status_code: Optional[int] = None,
        response_body: Optional[str] = None,
    ) -> None:
        super().__init__(message, node)
        self.status_code = status_code
        self.response_body = response_body


# ==============================================================================
# Exports
# ==============================================================================

__all__ = [
    "BaseNode",
    "NodeExecutionContext",
    "NodeExecutionData",
    "NodeParameter",
    "NodeCredential",
    "NodeParameterType",
    "NodeRunMode",
    "TriggerResponse",
    "NodeOperationError",
    "NodeApiError",
]
