"""Asynchronous tasks of the currency module."""

import structlog
from celery import shared_task

from modules.currency.rates import ExchangeRateProvider

logger = structlog.get_logger(__name__)


@shared_task(name="currency.refresh_exchange_rates")
def refresh_exchange_rates() -> int:
    """Refresh the cached rate table; returns the number of rates stored."""
    snapshot = ExchangeRateProvider().refresh()
    if snapshot is None:
        logger.warning("currency.refresh_skipped")
        return 0
    return len(snapshot.rates)
