"""ISO 3166 country code to display currency."""

from __future__ import annotations

from typing import Dict, Optional

COUNTRY_TO_CURRENCY: Dict[str, str] = {
    "US": "USD",
    # Middle East
    "EG": "EGP",
    "AE": "AED",
    "SA": "SAR",
    "KW": "KWD",
    "QA": "QAR",
    "BH": "BHD",
    "OM": "OMR",
    "JO": "JOD",
    "LB": "LBP",
    "IQ": "IQD",
    "YE": "YER",
    "SY": "SYP",
    "PS": "ILS",
    # Europe
    "GB": "GBP",
    "DE": "EUR",
    "FR": "EUR",
    "IT": "EUR",
    "ES": "EUR",
    "NL": "EUR",
    "BE": "EUR",
    "AT": "EUR",
    "CH": "CHF",
    "SE": "SEK",
    "NO": "NOK",
    "DK": "DKK",
    "PL": "PLN",
    "RU": "RUB",
    # Asia
    "CN": "CNY",
    "JP": "JPY",
    "IN": "INR",
    "KR": "KRW",
    "SG": "SGD",
    "MY": "MYR",
    "TH": "THB",
    "ID": "IDR",
    "PH": "PHP",
    "VN": "VND",
    "PK": "PKR",
    "BD": "BDT",
    "LK": "LKR",
    "NP": "NPR",
    # Africa
    "ZA": "ZAR",
    "NG": "NGN",
    "KE": "KES",
    "GH": "GHS",
    "MA": "MAD",
    "TN": "TND",
    "DZ": "DZD",
    "SD": "SDG",
    "ET": "ETB",
    # Americas
    "CA": "CAD",
    "MX": "MXN",
    "BR": "BRL",
    "AR": "ARS",
    "CL": "CLP",
    "CO": "COP",
    "PE": "PEN",
    # Oceania
    "AU": "AUD",
    "NZ": "NZD",
}


def currency_for_country(country_code: Optional[str]) -> Optional[str]:
    if not country_code:
        return None
    return COUNTRY_TO_CURRENCY.get(country_code.strip().upper())
