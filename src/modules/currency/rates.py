"""Exchange-rate lookup backed by the Django cache.

Rates are fetched from ``CURRENCY_RATES_URL`` relative to
``CURRENCY_BASE`` and kept in the shared cache for
``CURRENCY_CACHE_TTL`` seconds, so every worker process sees the same
table and nothing lives in process memory.  ``CURRENCY_STATIC_RATES``
entries (``CODE=rate``) are pinned and win over fetched values.

A missing or unreachable rate source is never an error for callers:
``get_rate`` answers ``None`` and the presentation layer falls back to
the base currency.  A failed fetch also leaves a marker in the cache for
``CURRENCY_FAILURE_BACKOFF`` seconds; while it is set, request-time
lookups answer from what is cached without calling the source again.
The Celery refresh task ignores the marker and clears it on success.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, Optional

import httpx
import structlog
from django.conf import settings
from django.core.cache import cache
from django.utils import timezone

logger = structlog.get_logger(__name__)

CACHE_KEY = "currency:exchange_rates"
FAILURE_KEY = "currency:exchange_rates:failed"


@dataclass(frozen=True)
class RatesSnapshot:
    """One fetched rate table. Rates are kept as strings for exactness."""

    base: str
    rates: Dict[str, str] = field(default_factory=dict)
    fetched_at: str = ""


def parse_static_rates(entries: Iterable[str]) -> Dict[str, Decimal]:
    """Parse ``["EUR=0.92", "EGP=48.5"]`` into a code -> rate mapping.

    Malformed or non-positive entries are skipped with a warning.
    """
    parsed: Dict[str, Decimal] = {}
    for entry in entries:
        code, sep, raw = entry.partition("=")
        code = code.strip().upper()
        try:
            rate = Decimal(raw.strip())
        except InvalidOperation:
            rate = None
        if not sep or not code or rate is None or not rate.is_finite() or rate <= 0:
            logger.warning("currency.static_rate_ignored", entry=entry)
            continue
        parsed[code] = rate
    return parsed


class ExchangeRateProvider:
    """Currency-rate lookup keyed by ISO currency code."""

    def __init__(
        self,
        base: Optional[str] = None,
        url: Optional[str] = None,
        ttl: Optional[int] = None,
        timeout: Optional[float] = None,
        failure_backoff: Optional[int] = None,
        static_rates: Optional[Iterable[str]] = None,
    ) -> None:
        self.base = (base or settings.CURRENCY_BASE).upper()
        self.url = url or settings.CURRENCY_RATES_URL
        self.ttl = ttl if ttl is not None else settings.CURRENCY_CACHE_TTL
        self.timeout = (
            timeout if timeout is not None else settings.CURRENCY_FETCH_TIMEOUT
        )
        self.failure_backoff = (
            failure_backoff
            if failure_backoff is not None
            else settings.CURRENCY_FAILURE_BACKOFF
        )
        self.static_rates = parse_static_rates(
            static_rates
            if static_rates is not None
            else settings.CURRENCY_STATIC_RATES
        )

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get_rate(self, currency: str) -> Optional[Decimal]:
        """Return units of ``currency`` per one base unit, or ``None``."""
        code = currency.strip().upper()
        if code == self.base:
            return Decimal("1")
        if code in self.static_rates:
            return self.static_rates[code]

        log = logger.bind(currency=code, base=self.base)
        try:
            snapshot = self.cached_snapshot()
            if snapshot is None and not self.source_failing():
                snapshot = self.refresh()
        except Exception:
            log.warning("currency.rate_lookup_failed", exc_info=True)
            return None
        if snapshot is None or code not in snapshot.rates:
            log.info("currency.rate_missing")
            return None

        try:
            rate = Decimal(snapshot.rates[code])
        except InvalidOperation:
            log.warning("currency.rate_invalid", raw=snapshot.rates[code])
            return None
        if not rate.is_finite() or rate <= 0:
            log.warning("currency.rate_invalid", raw=snapshot.rates[code])
            return None
        return rate

    def cached_snapshot(self) -> Optional[RatesSnapshot]:
        data = cache.get(CACHE_KEY)
        if not data or data.get("base") != self.base:
            return None
        return RatesSnapshot(**data)

    def source_failing(self) -> bool:
        """``True`` while a recent fetch failure is still backing off."""
        return cache.get(FAILURE_KEY) is not None

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    def refresh(self) -> Optional[RatesSnapshot]:
        """Fetch a fresh rate table and store it in the cache.

        Returns ``None`` when the source is unreachable or answers with an
        unusable payload; the stored table is left untouched and the
        failure marker is set.
        """
        log = logger.bind(url=self.url, base=self.base)
        try:
            with httpx.Client(timeout=self.timeout) as client:
                resp = client.get(self.url, params={"base": self.base})
                resp.raise_for_status()
                payload = resp.json()
        except (httpx.HTTPError, ValueError):
            log.warning("currency.rates_fetch_failed", exc_info=True)
            self._mark_failed()
            return None

        raw_rates = payload.get("rates") if isinstance(payload, dict) else None
        if not isinstance(raw_rates, dict):
            log.warning("currency.rates_payload_invalid")
            self._mark_failed()
            return None

        rates = {str(code).upper(): str(value) for code, value in raw_rates.items()}
        rates[self.base] = "1"
        for code, rate in self.static_rates.items():
            rates[code] = str(rate)

        snapshot = RatesSnapshot(
            base=self.base,
            rates=rates,
            fetched_at=timezone.now().isoformat(),
        )
        cache.set(CACHE_KEY, asdict(snapshot), self.ttl)
        cache.delete(FAILURE_KEY)
        log.info("currency.rates_refreshed", count=len(rates))
        return snapshot

    def _mark_failed(self) -> None:
        if self.failure_backoff > 0:
            cache.set(FAILURE_KEY, timezone.now().isoformat(), self.failure_backoff)
