"""Execution module for credit settlement and order handling."""

from arbdesk.execution.ledger import BalanceLedger
from arbdesk.execution.lifecycle import OrderLifecycle
from arbdesk.execution.paper import PaperExecutionPort


__all__ = [
    "BalanceLedger",
    "OrderLifecycle",
    "PaperExecutionPort",
]
