"""
Redis Cluster credential.

Root node URLs, password and TLS flag for a Redis Cluster. The client
discovers the rest of the topology from whichever root node answers.
"""
from typing import Any, Dict, Optional

from redis.exceptions import AuthenticationError, RedisClusterException, RedisError, TimeoutError

from node_sdk import BaseCredential
from redis_cluster.config import Settings
from redis_cluster.connection import ClientFactory, ClusterClient, ConnectionConfig
from redis_cluster.errors import ConfigurationError
from redis_cluster.observability import get_logger


logger = get_logger(__name__)

DEFAULT_ROOT_NODES = """[
  { "url": "redis://localhost:30001" },
  { "url": "redis://localhost:30002" },
  { "url": "redis://localhost:30003" }
]"""


class RedisClusterCredential(BaseCredential):
    """
    Redis Cluster connection credentials.

    rootNodes is a JSON list; each entry is {"url": "redis://host:port"},
    {"host": ..., "port": ...} or a plain URL string. A rediss:// URL
    turns TLS on as well.
    """

    name = "redisCluster"
    display_name = "Redis Cluster"

    properties = [
        {
            "name": "rootNodes",
            "type": "json",
            "displayName": "Root Node URLs",
            "default": DEFAULT_ROOT_NODES,
            "required": True,
            "type_options": {"rows": 4, "alwaysOpenEditWindow": True},
            "description": "JSON list with root node URLs, including port",
        },
        {
            "name": "password",
            "type": "string",
            "displayName": "Password",
            "default": "",
            "required": False,
            "type_options": {"password": True},
            "description": "Password used for every cluster node",
        },
        {
            "name": "tls",
            "type": "boolean",
            "displayName": "Use TLS",
            "default": False,
            "required": False,
            "description": "Use SSL/TLS for connections to cluster nodes",
        },
    ]

    def get_connection_config(self) -> ConnectionConfig:
        """
        Parse the stored fields.

        Raises:
            ConfigurationError: If rootNodes cannot be parsed
        """
        return ConnectionConfig.from_credentials({
            "rootNodes": self.get("rootNodes"),
            "password": self.get("password"),
            "tls": self.get("tls"),
        })

    def test(
        self,
        settings: Optional[Settings] = None,
        factory: Optional[ClientFactory] = None,
    ) -> Dict[str, Any]:
        """
        Test the cluster connection by connecting and quitting.

        Returns:
            Dictionary with test results:
            - success: bool indicating if connection was successful
            - message: Human-readable status message
        """
        try:
            config = self.get_connection_config()
        except ConfigurationError as e:
            return {"success": False, "message": e.message}

        client = ClusterClient(config, settings=settings, factory=factory)
        try:
            client.connect()
        except AuthenticationError as e:
            logger.error(f"Redis Cluster authentication failed: {e}")
            return {"success": False, "message": f"Authentication failed: {str(e)}"}
        except TimeoutError as e:
            logger.error(f"Redis Cluster connection timeout: {e}")
            return {"success": False, "message": f"Connection timeout: {str(e)}"}
        except (RedisError, RedisClusterException) as e:
            logger.error(f"Redis Cluster connection failed: {e}")
            return {"success": False, "message": f"Connection failed: {str(e)}"}
        finally:
            client.quit()

        return {"success": True, "message": "Connection successful!"}


__all__ = ["RedisClusterCredential", "DEFAULT_ROOT_NODES"]
