from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from domain.errors import AmountParseError
from domain.models import AMOUNT_LIMIT, CENT, SYMBOL_CURRENCIES, Currency, Money

THOUSANDS_SEPARATOR = ","


def parse_amount(token: str, next_token: str | None = None, default_currency: Currency | None = None) -> Money:
    """
    Extract an amount and its currency from raw command tokens.

    Accepted conventions, checked in order:
      - leading symbol:   "₦45,000", "£30", "$12.50"
      - trailing code:    "45" followed by "GBP" / "gbp"
      - bare number:      "45" -> business default currency (NGN when unset)

    Amounts are rounded half-up to whole cents.
    """
    raw = (token or "").strip().replace(THOUSANDS_SEPARATOR, "")

    if raw and raw[0] in SYMBOL_CURRENCIES:
        currency = SYMBOL_CURRENCIES[raw[0]]
        number = raw[1:]
    else:
        currency = Currency.from_code(next_token) or default_currency or Currency.NGN
        number = raw

    return Money(amount=_parse_decimal(number, token), currency=currency)


def _parse_decimal(number: str, token: str) -> Decimal:
    if not number:
        raise AmountParseError(token, f"No amount found in {token!r}")
    try:
        value = Decimal(number)
    except InvalidOperation as exc:
        raise AmountParseError(token, f"Could not read {token!r} as an amount") from exc
    if not value.is_finite():
        raise AmountParseError(token, f"Amount {token!r} is not a finite number")
    if value < 0:
        raise AmountParseError(token, f"Amount {token!r} must not be negative")
    # Checked before rounding: quantize fails on values wider than the context precision.
    if value >= AMOUNT_LIMIT or value.quantize(CENT, rounding=ROUND_HALF_UP) >= AMOUNT_LIMIT:
        raise AmountParseError(token, f"Amount {token!r} is too large")
    return value.quantize(CENT, rounding=ROUND_HALF_UP)
