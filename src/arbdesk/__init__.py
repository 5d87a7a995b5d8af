"""
Cross-Exchange Arbitrage Desk.

An asynchronous engine that scans multiple exchange price feeds for
profitable buy/sell spreads and settles the platform-credit commissions
of the orders placed against them.
"""

__version__ = "1.0.0"
__author__ = "Tim"
