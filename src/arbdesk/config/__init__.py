"""Configuration module for the arbitrage desk."""

from arbdesk.config.constants import (
    DEFAULT_COMMISSION_RATE,
    DEFAULT_CREDIT_UNIT_VALUE,
    DEFAULT_OPPORTUNITY_TTL_SECONDS,
    SUPPORTED_EXCHANGES,
)
from arbdesk.config.settings import Settings, get_settings


__all__ = [
    "DEFAULT_COMMISSION_RATE",
    "DEFAULT_CREDIT_UNIT_VALUE",
    "DEFAULT_OPPORTUNITY_TTL_SECONDS",
    "SUPPORTED_EXCHANGES",
    "Settings",
    "get_settings",
]
