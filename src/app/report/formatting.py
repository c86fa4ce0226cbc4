from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union


def format_date(value: Optional[Union[date, datetime]], empty: str = "Sin fecha") -> str:
    """Spanish short date without zero padding, e.g. 5/3/2024."""
    if value is None:
        return empty
    return f"{value.day}/{value.month}/{value.year}"


def format_currency(amount: Union[Decimal, int, float]) -> str:
    """Chilean pesos: dot as thousands separator, comma for decimals ($1.234.567 / $1.234,50)."""
    amount = Decimal(str(amount))
    sign = "-" if amount < 0 else ""
    amount = abs(amount)

    if amount == amount.to_integral_value():
        whole, cents = f"{int(amount):,}", ""
    else:
        rounded = amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        whole_part, cents = f"{rounded:,.2f}".split(".")
        whole, cents = whole_part, f",{cents}"

    return f"{sign}${whole.replace(',', '.')}{cents}"
