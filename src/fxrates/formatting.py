"""Display formatting for amounts and exchange rates."""

from decimal import ROUND_HALF_UP, Decimal

from fxrates.models import CurrencyInfo

#: Currencies whose symbol goes before the amount ("$12.00"). All others,
#: EUR included, put it after ("12.00 €").
SYMBOL_PREFIX_CURRENCIES = frozenset({"USD", "CAD", "AUD", "NZD", "SGD", "HKD", "GBP", "JPY"})


def _fixed(value: Decimal, places: int) -> str:
    exponent = Decimal(1).scaleb(-places)
    return str(value.quantize(exponent, rounding=ROUND_HALF_UP))


def format_amount(
    amount: Decimal,
    currency: str,
    currencies: dict[str, CurrencyInfo] | None = None,
) -> str:
    """Format ``amount`` with the currency's decimals and symbol.

    Unknown currencies fall back to two decimals followed by the code.

    Examples:
        >>> usd = {"USD": CurrencyInfo("USD", "US Dollar", "$", 2)}
        >>> format_amount(Decimal("12.5"), "USD", usd)
        '$12.50'
        >>> format_amount(Decimal("12.5"), "XYZ")
        '12.50 XYZ'
    """
    info = (currencies or {}).get(currency)
    if info is None:
        return f"{_fixed(amount, 2)} {currency}"

    formatted = _fixed(amount, info.decimals)
    if currency in SYMBOL_PREFIX_CURRENCIES:
        return f"{info.symbol}{formatted}"
    return f"{formatted} {info.symbol}"


def format_exchange_rate(rate: Decimal) -> str:
    """Six decimal places, e.g. ``0.921500``."""
    return _fixed(rate, 6)
