"""Read-time currency presentation of a serialized order.

``present_order`` is pure: it takes the base-currency payload produced by
the order serializer and returns a new payload with every monetary field
expressed in the target currency.  Stored orders are never touched.

Amounts are converted at two decimal places with ``ROUND_HALF_UP``.  The
target ``subtotal`` is the sum of the converted line totals and the
target ``total`` is ``subtotal + shipping_cost`` (just ``subtotal`` for
payloads without a shipping cost), so both conservation rules still hold
exactly after conversion.

Each converted line and the shipping cost is rounded once, so converting
the presented ``total`` back with the same rate lands within
``(lines + 1) * 0.005 / rate`` of the base total.
"""

from __future__ import annotations

from copy import deepcopy
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional

from django.conf import settings

CENT = Decimal("0.01")


def convert_amount(amount: Any, rate: Decimal) -> Decimal:
    return (Decimal(str(amount)) * rate).quantize(CENT, rounding=ROUND_HALF_UP)


def _money(value: Decimal) -> str:
    return str(value.quantize(CENT, rounding=ROUND_HALF_UP))


def present_order(
    payload: Dict[str, Any],
    target_currency: str,
    rate: Optional[Decimal],
    base_currency: Optional[str] = None,
) -> Dict[str, Any]:
    """Return a copy of ``payload`` converted into ``target_currency``.

    When ``rate`` is ``None`` the amounts stay in the base currency and
    ``currency.fallback`` is ``True``.
    """
    base = (base_currency or settings.CURRENCY_BASE).upper()
    target = target_currency.upper()
    presented = deepcopy(payload)

    if rate is None or target == base:
        presented["currency"] = {
            "code": base,
            "base": base,
            "rate": "1",
            "requested": target,
            "fallback": rate is None and target != base,
        }
        return presented

    subtotal = Decimal("0.00")
    for item in presented.get("items", []):
        item["unit_price"] = _money(convert_amount(item["unit_price"], rate))
        line_total = convert_amount(item["line_total"], rate)
        item["line_total"] = _money(line_total)
        subtotal += line_total

    shipping_cost = Decimal("0.00")
    if "shipping_cost" in presented:
        shipping_cost = convert_amount(presented["shipping_cost"], rate)
        presented["shipping_cost"] = _money(shipping_cost)
    presented["subtotal"] = _money(subtotal)
    presented["total"] = _money(subtotal + shipping_cost)
    presented["currency"] = {
        "code": target,
        "base": base,
        "rate": str(rate),
        "requested": target,
        "fallback": False,
    }
    return presented
