# clinics/currency.py

from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal('0.01')

SYMBOLS = {
    'USD': '$',
    'MMK': 'Ks',
}


def to_money(value):
    """Coerces a number to a Decimal rounded to two places."""
    if value is None:
        return Decimal('0.00')
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def currency_symbol(currency):
    return SYMBOLS.get(currency, '$')


def format_currency(value, currency='USD'):
    """
    Formats an amount for display.
    e.g., 1234.5 -> $1,234.50 (USD), 1234.5 -> Ks1,235 (MMK has no decimals)
    """
    try:
        amount = Decimal(str(value))
    except (ArithmeticError, ValueError, TypeError):
        return value

    if currency == 'MMK':
        rounded = amount.quantize(Decimal('1'), rounding=ROUND_HALF_UP)
        return f"Ks{rounded:,.0f}"
    return f"${amount.quantize(CENT, rounding=ROUND_HALF_UP):,.2f}"
