"""Bilingual notification catalogue for order events.

Each entry maps a message key to ``{en, ar}`` title and body templates.
Templates use ``str.format`` placeholders (``{order_number}``).
"""

from __future__ import annotations

from typing import Dict

BilingualText = Dict[str, str]

ORDER_MESSAGES: Dict[str, Dict[str, BilingualText]] = {
    "order_placed": {
        "title": {"en": "Order Placed", "ar": "تم تقديم الطلب"},
        "message": {
            "en": "Your order {order_number} has been placed successfully.",
            "ar": "تم تقديم طلبك {order_number} بنجاح.",
        },
    },
    "order_updated": {
        "title": {"en": "Order Updated", "ar": "تم تحديث الطلب"},
        "message": {
            "en": "Your order {order_number} has been updated.",
            "ar": "تم تحديث طلبك {order_number}.",
        },
    },
    "order_confirmed": {
        "title": {"en": "Order Confirmed", "ar": "تم تأكيد الطلب"},
        "message": {
            "en": "Your order {order_number} has been confirmed.",
            "ar": "تم تأكيد طلبك {order_number}.",
        },
    },
    "order_processing": {
        "title": {"en": "Order Processing", "ar": "الطلب قيد التجهيز"},
        "message": {
            "en": "Your order {order_number} is being prepared.",
            "ar": "طلبك {order_number} قيد التجهيز.",
        },
    },
    "order_shipped": {
        "title": {"en": "Order Shipped", "ar": "تم شحن الطلب"},
        "message": {
            "en": "Your order {order_number} is on its way.",
            "ar": "طلبك {order_number} في الطريق إليك.",
        },
    },
    "order_delivered": {
        "title": {"en": "Order Delivered", "ar": "تم توصيل الطلب"},
        "message": {
            "en": "Your order {order_number} has been delivered.",
            "ar": "تم توصيل طلبك {order_number}.",
        },
    },
    "order_cancelled": {
        "title": {"en": "Order Cancelled", "ar": "تم إلغاء الطلب"},
        "message": {
            "en": "Your order {order_number} has been cancelled.",
            "ar": "تم إلغاء طلبك {order_number}.",
        },
    },
    "order_refunded": {
        "title": {"en": "Order Refunded", "ar": "تم استرداد الطلب"},
        "message": {
            "en": "Your order {order_number} has been refunded.",
            "ar": "تم استرداد مبلغ طلبك {order_number}.",
        },
    },
}


def render(key: str, **replacements: str) -> tuple[BilingualText, BilingualText]:
    """Return ``(title, message)`` for ``key`` with placeholders filled in.

    Raises ``KeyError`` for an unknown key.
    """
    entry = ORDER_MESSAGES[key]
    title = dict(entry["title"])
    message = {
        lang: text.format(**replacements) for lang, text in entry["message"].items()
    }
    return title, message
