"""
Metrics collection for the arbitrage desk.

Tracks latencies, counters and order/credit statistics with in-memory
storage.
"""

import time
from collections import deque
from dataclasses import dataclass, field
from decimal import Decimal

from arbdesk.config.constants import METRICS_LATENCY_WINDOW


@dataclass
class LatencyStats:
    """Aggregated latency statistics."""

    min_us: int = 0
    max_us: int = 0
    avg_us: float = 0.0
    p50_us: int = 0
    p95_us: int = 0
    p99_us: int = 0
    count: int = 0


@dataclass
class TradingStats:
    """Detection and settlement statistics."""

    opportunities_found: int = 0
    opportunities_expired: int = 0
    best_profit_pct: Decimal = field(default_factory=lambda: Decimal("0"))
    orders_placed: int = 0
    orders_filled: int = 0
    orders_rejected: int = 0
    orders_cancelled: int = 0
    refunds: int = 0
    arbitrages_executed: int = 0
    arbitrages_partial: int = 0
    arbitrages_failed: int = 0
    credit_consumed: Decimal = field(default_factory=lambda: Decimal("0"))
    credit_refunded: Decimal = field(default_factory=lambda: Decimal("0"))

    @property
    def net_credit_consumed(self) -> Decimal:
        """Credits debited minus credits refunded."""
        return self.credit_consumed - self.credit_refunded

    @property
    def fill_rate(self) -> float:
        """Share of settled orders that filled."""
        settled = self.orders_filled + self.orders_rejected + self.orders_cancelled
        return self.orders_filled / settled if settled > 0 else 0.0


class MetricsCollector:
    """
    Collects and aggregates engine metrics.

    Features:
    - Rolling window latency tracking
    - Named counters
    - Order and credit statistics
    """

    def __init__(self, latency_window_size: int = METRICS_LATENCY_WINDOW) -> None:
        """
        Initialize metrics collector.

        Args:
            latency_window_size: Number of samples to keep for latency stats.
        """
        self._window_size = latency_window_size
        self._latencies: dict[str, deque[int]] = {}
        self._counters: dict[str, int] = {}
        self._trading_stats = TradingStats()
        self._start_time = time.time()

    def record_latency(self, name: str, latency_us: int) -> None:
        """
        Record a latency measurement.

        Args:
            name: Metric name (e.g., "scan", "order_execution").
            latency_us: Latency in microseconds.
        """
        if name not in self._latencies:
            self._latencies[name] = deque(maxlen=self._window_size)

        self._latencies[name].append(latency_us)

    def increment_counter(self, name: str, value: int = 1) -> None:
        """Increment a counter."""
        self._counters[name] = self._counters.get(name, 0) + value

    def get_counter(self, name: str) -> int:
        """Get counter value."""
        return self._counters.get(name, 0)

    # =========================================================================
    # Detection
    # =========================================================================

    def record_opportunity(self, profit_pct: Decimal) -> None:
        """Record a detected opportunity."""
        self._trading_stats.opportunities_found += 1
        if profit_pct > self._trading_stats.best_profit_pct:
            self._trading_stats.best_profit_pct = profit_pct

    def record_expired(self, count: int) -> None:
        """Record opportunities dropped for expiry."""
        self._trading_stats.opportunities_expired += count

    # =========================================================================
    # Orders and credits
    # =========================================================================

    def record_order_placed(self, credit_used: Decimal) -> None:
        self._trading_stats.orders_placed += 1
        self._trading_stats.credit_consumed += credit_used

    def record_order_filled(self) -> None:
        self._trading_stats.orders_filled += 1

    def record_order_rejected(self) -> None:
        self._trading_stats.orders_rejected += 1

    def record_order_cancelled(self) -> None:
        self._trading_stats.orders_cancelled += 1

    def record_refund(self, amount: Decimal) -> None:
        """Record credits returned to a user."""
        self._trading_stats.refunds += 1
        self._trading_stats.credit_refunded += amount

    def record_arbitrage(self, filled_legs: int) -> None:
        """
        Record a two-leg arbitrage outcome.

        Args:
            filled_legs: Number of legs that filled (0, 1 or 2).
        """
        if filled_legs == 2:
            self._trading_stats.arbitrages_executed += 1
        elif filled_legs == 1:
            self._trading_stats.arbitrages_partial += 1
        else:
            self._trading_stats.arbitrages_failed += 1

    # =========================================================================
    # Export
    # =========================================================================

    def get_latency_stats(self, name: str) -> LatencyStats:
        """
        Get latency statistics for a metric.

        Args:
            name: Metric name.

        Returns:
            LatencyStats with aggregated values.
        """
        samples = self._latencies.get(name)
        if not samples:
            return LatencyStats()

        sorted_samples = sorted(samples)
        n = len(sorted_samples)

        return LatencyStats(
            min_us=sorted_samples[0],
            max_us=sorted_samples[-1],
            avg_us=sum(sorted_samples) / n,
            p50_us=sorted_samples[n // 2],
            p95_us=sorted_samples[int(n * 0.95)],
            p99_us=sorted_samples[int(n * 0.99)] if n > 1 else sorted_samples[-1],
            count=n,
        )

    @property
    def trading_stats(self) -> TradingStats:
        """Get trading statistics."""
        return self._trading_stats

    @property
    def uptime_seconds(self) -> float:
        """Get uptime in seconds."""
        return time.time() - self._start_time

    def to_dict(self) -> dict[str, object]:
        """Export all metrics as a JSON-friendly dict."""
        stats = self._trading_stats
        return {
            "uptime_seconds": self.uptime_seconds,
            "counters": dict(self._counters),
            "latencies": {
                name: {
                    "min": s.min_us,
                    "max": s.max_us,
                    "avg": s.avg_us,
                    "p50": s.p50_us,
                    "p99": s.p99_us,
                    "count": s.count,
                }
                for name, s in ((n, self.get_latency_stats(n)) for n in self._latencies)
            },
            "trading": {
                "opportunities_found": stats.opportunities_found,
                "opportunities_expired": stats.opportunities_expired,
                "best_profit_pct": str(stats.best_profit_pct),
                "orders_placed": stats.orders_placed,
                "orders_filled": stats.orders_filled,
                "orders_rejected": stats.orders_rejected,
                "orders_cancelled": stats.orders_cancelled,
                "refunds": stats.refunds,
                "arbitrages_executed": stats.arbitrages_executed,
                "arbitrages_partial": stats.arbitrages_partial,
                "arbitrages_failed": stats.arbitrages_failed,
                "credit_consumed": str(stats.credit_consumed),
                "credit_refunded": str(stats.credit_refunded),
            },
        }

    def reset(self) -> None:
        """Reset all metrics."""
        self._latencies.clear()
        self._counters.clear()
        self._trading_stats = TradingStats()
        self._start_time = time.time()
