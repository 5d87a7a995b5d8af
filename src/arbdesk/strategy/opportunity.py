"""
Live opportunity registry.

Holds detected opportunities by id until they are executed, expire or
are superseded by a newer detection of the same route (symbol, buy
exchange and sell exchange), so a route is never listed twice.
Expiry is re-checked on every read, so an opportunity past its
deadline is never handed out even if the sweep has not run yet.
"""

import logging
import threading
from collections.abc import Iterable
from typing import TypeAlias

from arbdesk.core.types import ArbitrageOpportunity
from arbdesk.strategy.scanner import rank_key
from arbdesk.utils.time import Clock, get_timestamp_us


logger = logging.getLogger(__name__)


Route: TypeAlias = tuple[str, str, str]


def route_of(opportunity: ArbitrageOpportunity) -> Route:
    """Symbol, buy exchange and sell exchange of an opportunity."""
    return (opportunity.symbol, opportunity.buy_exchange, opportunity.sell_exchange)


class OpportunityStore:
    """
    Thread-safe map of opportunity id to opportunity.

    Stored opportunities are frozen, so readers cannot change what the
    store holds.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or get_timestamp_us
        self._items: dict[str, ArbitrageOpportunity] = {}
        self._routes: dict[Route, str] = {}
        self._lock = threading.Lock()
        self._expired_total = 0

    def put(self, opportunity: ArbitrageOpportunity) -> None:
        """Insert an opportunity, replacing any entry for the same route."""
        with self._lock:
            self._insert(opportunity)

    def put_many(self, opportunities: Iterable[ArbitrageOpportunity]) -> int:
        """Insert several opportunities; returns how many were stored."""
        count = 0
        with self._lock:
            for opportunity in opportunities:
                self._insert(opportunity)
                count += 1
        return count

    def get(self, opportunity_id: str) -> ArbitrageOpportunity | None:
        """
        Look up a live opportunity.

        Returns:
            The opportunity, or None if it is unknown or expired. An
            expired entry is evicted on the way.
        """
        now_us = self._clock()
        with self._lock:
            opportunity = self._items.get(opportunity_id)
            if opportunity is None:
                return None
            if opportunity.is_expired(now_us):
                self._discard(opportunity_id)
                self._expired_total += 1
                logger.debug(f"Opportunity {opportunity_id} expired on read")
                return None
            return opportunity

    def list(self) -> list[ArbitrageOpportunity]:
        """Live opportunities, best first."""
        now_us = self._clock()
        with self._lock:
            live = [opp for opp in self._items.values() if not opp.is_expired(now_us)]
        live.sort(key=rank_key)
        return live

    def sweep_expired(self) -> int:
        """
        Drop every expired opportunity.

        Returns:
            Number of opportunities removed.
        """
        now_us = self._clock()
        with self._lock:
            expired = [k for k, opp in self._items.items() if opp.is_expired(now_us)]
            for opportunity_id in expired:
                self._discard(opportunity_id)
            self._expired_total += len(expired)

        if expired:
            logger.debug(f"Swept {len(expired)} expired opportunities")
        return len(expired)

    def remove(self, opportunity_id: str) -> bool:
        """Remove an opportunity; returns True if it was present."""
        with self._lock:
            return self._discard(opportunity_id) is not None

    def clear(self) -> None:
        with self._lock:
            self._items.clear()
            self._routes.clear()

    def _insert(self, opportunity: ArbitrageOpportunity) -> None:
        route = route_of(opportunity)
        previous = self._routes.get(route)
        if previous is not None and previous != opportunity.id:
            del self._items[previous]
            logger.debug(f"Opportunity {previous} superseded by {opportunity.id}")
        self._items[opportunity.id] = opportunity
        self._routes[route] = opportunity.id

    def _discard(self, opportunity_id: str) -> ArbitrageOpportunity | None:
        opportunity = self._items.pop(opportunity_id, None)
        if opportunity is not None and self._routes.get(route_of(opportunity)) == opportunity_id:
            del self._routes[route_of(opportunity)]
        return opportunity

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __contains__(self, opportunity_id: object) -> bool:
        with self._lock:
            return opportunity_id in self._items

    @property
    def expired_total(self) -> int:
        """Opportunities dropped for expiry since creation."""
        return self._expired_total
