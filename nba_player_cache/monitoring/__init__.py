"""Monitoring module for structured logging and cache metrics.

- Structured JSON logging for production
- Human-readable console output for development
- Correlation IDs for request and refresh-run tracing
- Cache hit/miss counters
"""

from nba_player_cache.monitoring.logging import (
    bind_correlation_id,
    configure_logging,
    get_logger,
    unbind_correlation_id,
)
from nba_player_cache.monitoring.metrics import CacheMetrics

__all__ = [
    "configure_logging",
    "get_logger",
    "bind_correlation_id",
    "unbind_correlation_id",
    "CacheMetrics",
]
