"""Telemetry module for logging and metrics."""

from arbdesk.telemetry.logger import AsyncLogger, setup_logging
from arbdesk.telemetry.metrics import MetricsCollector, TradingStats


__all__ = [
    "AsyncLogger",
    "MetricsCollector",
    "TradingStats",
    "setup_logging",
]
