"""Pick the display currency for a request."""

from __future__ import annotations

from typing import Any, Optional

from django.conf import settings

from modules.currency.countries import currency_for_country

COUNTRY_HEADERS = ("CF-IPCountry", "X-Country-Code")


def resolve_currency(request: Any, explicit: Optional[str] = None) -> str:
    """Resolve the target currency code for ``request``.

    Order of precedence: ``explicit`` (the ``?currency=`` parameter), the
    ``X-Currency`` header, a country header mapped through
    ``COUNTRY_TO_CURRENCY``, then the base currency.
    """
    if explicit and explicit.strip():
        return explicit.strip().upper()

    header = request.headers.get("X-Currency")
    if header and header.strip():
        return header.strip().upper()

    for name in COUNTRY_HEADERS:
        currency = currency_for_country(request.headers.get(name))
        if currency:
            return currency

    return settings.CURRENCY_BASE.upper()
