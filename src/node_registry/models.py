"""
Node Registry Models - Metadata structures for nodes, credentials and node packs.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field

from node_sdk.credentials import BaseCredential


class NodeDefinition(BaseModel):
    """
    Metadata about a registered node.

    Built from the class attributes of a BaseNode subclass; the schema
    is validated on the way (see BaseNode.get_definition).
    """
    model_config = ConfigDict(extra="allow")

    # Identity
    node_type: str = Field(..., description="Unique node type identifier")
    version: int = Field(1, description="Node version")

    # Display
    display_name: str = Field(..., description="Human-readable name")
    description: str = Field("", description="Node description")
    icon: str = Field("file:icon.svg", description="Node icon")
    group: List[str] = Field(default_factory=list, description="Categories")

    # Technical
    node_class: Optional[str] = Field(None, description="Fully qualified class name")
    node_pack: Optional[str] = Field(None, description="Source node pack")

    # Runtime
    is_trigger: bool = Field(False, description="Started by trigger() instead of execute()")
    inputs: List[str] = Field(default_factory=lambda: ["main"])
    outputs: List[str] = Field(default_factory=lambda: ["main"])
    credentials: List[Dict[str, Any]] = Field(default_factory=list)
    parameters: List[Dict[str, Any]] = Field(default_factory=list)

    @classmethod
    def from_node_class(cls, node_class: Type) -> "NodeDefinition":
        """Create definition from a BaseNode class."""
        definition = node_class.get_definition()
        description = definition["description"]
        properties = definition["properties"]
        group = description.get("group", [])

        return cls(
            node_type=definition["type"],
            version=definition["version"],
            display_name=description.get("displayName", definition["type"]),
            description=description.get("description", ""),
            icon=description.get("icon", "file:icon.svg"),
            group=group,
            node_class=f"{node_class.__module__}.{node_class.__name__}",
            is_trigger="trigger" in group,
            inputs=description.get("inputs", ["main"]),
            outputs=description.get("outputs", ["main"]),
            credentials=description.get("credentials") or properties.get("credentials", []),
            parameters=properties.get("parameters", []),
        )


class NodePackManifest(BaseModel):
    """
    Manifest for a node pack (collection of nodes).

    Used for discovery and registration of bundled nodes.
    """
    model_config = ConfigDict(extra="allow")

    # Identity
    name: str = Field(..., description="Pack name (e.g., 'redis-cluster')")
    version: str = Field("1.0.0", description="Pack version")
    description: str = Field("", description="Pack description")

    # Author
    author: str = Field("", description="Author name")
    license: str = Field("MIT", description="License type")

    # Contents
    nodes: List[str] = Field(
        default_factory=list,
        description="List of node types in this pack"
    )
    credentials: List[str] = Field(
        default_factory=list,
        description="List of credential types in this pack"
    )

    # Technical
    entry_point: str = Field(
        "",
        description="Module path for node discovery (e.g., 'nodepacks.redis_cluster')"
    )


class CredentialDefinition(BaseModel):
    """
    Definition of a credential type.
    """
    model_config = ConfigDict(extra="allow")

    name: str = Field(..., description="Credential type name")
    display_name: str = Field(..., description="Human-readable name")
    description: str = Field("", description="Credential description")
    credential_class: Optional[str] = Field(None, description="Fully qualified class name")

    # Fields
    properties: List[Dict[str, Any]] = Field(
        default_factory=list,
        description="Credential properties/fields"
    )
    testable: bool = Field(False, description="Whether the credential type implements test()")

    @classmethod
    def from_credential_class(cls, credential_class: Type) -> "CredentialDefinition":
        """Create definition from a BaseCredential class."""
        definition = credential_class.get_definition()
        return cls(
            name=definition["name"],
            display_name=definition["display_name"],
            description=(credential_class.__doc__ or "").strip().split("\n")[0],
            credential_class=f"{credential_class.__module__}.{credential_class.__name__}",
            properties=list(definition["properties"]),
            testable=credential_class.test is not BaseCredential.test,
        )


__all__ = [
    "NodeDefinition",
    "NodePackManifest",
    "CredentialDefinition",
]
