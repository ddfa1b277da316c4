"""Observability package."""
from redis_cluster.observability.logging import (
    get_logger,
    setup_logging,
    with_session_context,
)

__all__ = ["get_logger", "setup_logging", "with_session_context"]
