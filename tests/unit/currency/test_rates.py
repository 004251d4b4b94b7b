"""Unit tests for exchange-rate lookup, refresh and the periodic task.

HTTP is never reached: ``httpx.Client.get`` is replaced per test with a
stub returning a canned response (or raising, see the root conftest).
"""

from __future__ import annotations

from decimal import Decimal

import httpx
import pytest
from django.core.cache import cache

from modules.currency.countries import currency_for_country
from modules.currency.rates import (
    CACHE_KEY,
    FAILURE_KEY,
    ExchangeRateProvider,
    parse_static_rates,
)
from modules.currency.tasks import refresh_exchange_rates

pytestmark = pytest.mark.unit


class DummyResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            request = httpx.Request("GET", "https://rates.test/latest")
            raise httpx.HTTPStatusError(
                "boom",
                request=request,
                response=httpx.Response(self.status_code, request=request),
            )

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


@pytest.fixture()
def rate_source(monkeypatch):
    """Serve ``payload`` from the rate URL and record the calls made."""
    calls = []

    def _serve(payload, status_code=200):
        def _get(self, url, *args, **kwargs):
            calls.append((url, kwargs.get("params")))
            return DummyResponse(payload, status_code)

        monkeypatch.setattr(httpx.Client, "get", _get)
        return calls

    return _serve


@pytest.fixture()
def provider():
    return ExchangeRateProvider(
        base="USD", url="https://rates.test/latest", ttl=60, static_rates=[]
    )


class TestParseStaticRates:
    def test_parses_entries(self):
        assert parse_static_rates(["eur=0.92", " EGP = 48.5 "]) == {
            "EUR": Decimal("0.92"),
            "EGP": Decimal("48.5"),
        }

    @pytest.mark.parametrize("entry", ["EUR", "=1.2", "EUR=abc", "EUR=0", "EUR=-1"])
    def test_skips_malformed_entries(self, entry):
        assert parse_static_rates([entry]) == {}


class TestGetRate:
    def test_base_currency_is_one(self, provider):
        assert provider.get_rate("usd") == Decimal("1")

    def test_static_rate_wins(self, rate_source):
        calls = rate_source({"rates": {"EUR": 0.5}})
        provider = ExchangeRateProvider(
            base="USD", url="https://rates.test/latest", static_rates=["EUR=0.92"]
        )
        assert provider.get_rate("EUR") == Decimal("0.92")
        assert calls == []

    def test_fetches_once_then_reads_cache(self, provider, rate_source):
        calls = rate_source({"base": "USD", "rates": {"EUR": 0.92, "EGP": "48.5"}})

        assert provider.get_rate("EUR") == Decimal("0.92")
        assert provider.get_rate("egp") == Decimal("48.5")
        assert calls == [("https://rates.test/latest", {"base": "USD"})]

    def test_unknown_currency_is_none(self, provider, rate_source):
        rate_source({"rates": {"EUR": 0.92}})
        assert provider.get_rate("XYZ") is None

    def test_unreachable_source_is_none(self, provider):
        assert provider.get_rate("EUR") is None

    def test_non_positive_rate_is_none(self, provider, rate_source):
        rate_source({"rates": {"EUR": 0}})
        assert provider.get_rate("EUR") is None


class TestOutageBackoff:
    def test_source_is_called_once_while_down(self, provider, rate_source):
        calls = rate_source({"rates": {"EUR": 0.92}}, status_code=503)

        results = [provider.get_rate("EUR") for _ in range(5)]

        assert results == [None] * 5
        assert len(calls) == 1
        assert provider.source_failing()

    def test_other_providers_share_the_backoff(self, provider, rate_source):
        calls = rate_source({"rates": {"EUR": 0.92}}, status_code=503)
        provider.get_rate("EUR")

        ExchangeRateProvider(
            base="USD", url="https://rates.test/latest", static_rates=[]
        ).get_rate("GBP")

        assert len(calls) == 1

    def test_lookup_retries_after_backoff_expires(self, provider, rate_source):
        rate_source({"rates": {"EUR": 0.92}}, status_code=503)
        provider.get_rate("EUR")
        cache.delete(FAILURE_KEY)

        calls = rate_source({"rates": {"EUR": 0.92}})

        assert provider.get_rate("EUR") == Decimal("0.92")
        assert len(calls) == 1

    def test_refresh_ignores_and_clears_backoff(self, provider, rate_source):
        rate_source({}, status_code=503)
        provider.refresh()
        assert provider.source_failing()

        rate_source({"rates": {"EUR": 0.92}})

        assert provider.refresh() is not None
        assert not provider.source_failing()

    def test_zero_backoff_disables_marker(self, rate_source):
        calls = rate_source({}, status_code=503)
        provider = ExchangeRateProvider(
            base="USD",
            url="https://rates.test/latest",
            failure_backoff=0,
            static_rates=[],
        )

        provider.get_rate("EUR")
        provider.get_rate("EUR")

        assert len(calls) == 2


class TestRefresh:
    def test_stores_snapshot_in_cache(self, provider, rate_source):
        rate_source({"rates": {"eur": 0.92}})

        snapshot = provider.refresh()

        assert snapshot.rates == {"EUR": "0.92", "USD": "1"}
        cached = provider.cached_snapshot()
        assert cached is not None
        assert cached.rates == snapshot.rates
        assert cached.fetched_at

    def test_http_error_leaves_cache_untouched(self, provider, rate_source):
        rate_source({"rates": {"EUR": 0.92}}, status_code=503)
        assert provider.refresh() is None
        assert cache.get(CACHE_KEY) is None

    @pytest.mark.parametrize(
        "payload", [ValueError("not json"), ["EUR"], {"rates": "EUR=0.92"}, {}]
    )
    def test_unusable_payload(self, provider, rate_source, payload):
        rate_source(payload)
        assert provider.refresh() is None
        assert cache.get(CACHE_KEY) is None

    def test_snapshot_for_other_base_is_ignored(self, provider, rate_source):
        rate_source({"rates": {"EUR": 0.92}})
        provider.refresh()

        other = ExchangeRateProvider(base="EUR", url="https://rates.test/latest")
        assert other.cached_snapshot() is None


class TestRefreshTask:
    def test_returns_number_of_rates(self, settings, rate_source):
        settings.CURRENCY_BASE = "USD"
        rate_source({"rates": {"EUR": 0.92, "GBP": 0.79}})

        result = refresh_exchange_rates.delay()

        assert result.successful()
        assert result.result == 3

    def test_returns_zero_when_source_is_down(self):
        assert refresh_exchange_rates() == 0


class TestCountries:
    @pytest.mark.parametrize(
        "country, currency",
        [("EG", "EGP"), ("ae", "AED"), ("DE", "EUR"), ("US", "USD")],
    )
    def test_known_countries(self, country, currency):
        assert currency_for_country(country) == currency

    @pytest.mark.parametrize("country", [None, "", "XX"])
    def test_unknown_country(self, country):
        assert currency_for_country(country) is None
