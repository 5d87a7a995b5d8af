"""Strategy module for fee quoting and arbitrage detection."""

from arbdesk.strategy.fees import FeeEngine, FeeSchedule
from arbdesk.strategy.opportunity import OpportunityStore
from arbdesk.strategy.scanner import ArbitrageScanner, ScanStats


__all__ = [
    "ArbitrageScanner",
    "FeeEngine",
    "FeeSchedule",
    "OpportunityStore",
    "ScanStats",
]
