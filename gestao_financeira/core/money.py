from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENTS = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """Coerce DB/driver values (Decimal, float, int, str, None) to a 2-place Decimal."""
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        try:
            # str() first so 0.1 stays 0.1 instead of its binary expansion
            value = Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"valor monetário inválido: {value!r}")
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def sum_amounts(rows, attr: str = "amount") -> Decimal:
    total = Decimal("0.00")
    for r in rows:
        total += to_decimal(getattr(r, attr, None) if not isinstance(r, dict) else r.get(attr))
    return total


def format_brl(value) -> str:
    """Format as Brazilian currency: 1234.5 -> 'R$ 1.234,50'."""
    amount = to_decimal(value)
    sign = "-" if amount < 0 else ""
    text = f"{abs(amount):,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{sign}R$ {text}"
