"""
BaseCredential - Credential type definitions.

A credential type declares the fields the host stores (encrypted) for
it and knows how to test a set of decrypted values against the remote
service. The host owns storage and decryption; nodes only ever see
the decrypted dict.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional


logger = logging.getLogger(__name__)


class BaseCredential:
    """
    Base class for credential types.

    Subclasses set name, display_name and properties, and override
    test() to check connectivity.
    """

    name: str = "base"
    display_name: str = "Base Credential"
    properties: List[Dict[str, Any]] = []

    def __init__(self, data: Optional[Dict[str, Any]] = None) -> None:
        self.data: Dict[str, Any] = dict(data or {})

    def get_defaults(self) -> Dict[str, Any]:
        """Default value for every declared property."""
        return {prop["name"]: prop.get("default") for prop in self.properties}

    def get(self, key: str, default: Any = None) -> Any:
        """Stored value, falling back to the property default."""
        value = self.data.get(key)
        if value is None:
            return self.get_defaults().get(key, default)
        return value

    def test(self) -> Dict[str, Any]:
        """
        Test the credential.

        Returns:
            Dictionary with test results:
            - success: bool indicating if the check passed
            - message: Human-readable status message
        """
        raise NotImplementedError("This credential type does not support testing")

    @classmethod
    def get_definition(cls) -> Dict[str, Any]:
        """Credential definition for registration."""
        return {
            "name": cls.name,
            "display_name": cls.display_name,
            "properties": cls.properties,
        }


__all__ = ["BaseCredential"]
