"""Formatting helpers for statement values.

There are two amount formatters on purpose. `to_display_amount` divides by the
currency precision and is used for statement-level figures taken from balance
snapshots. `format_amount` only applies grouping and two decimals and is used
for per-row transaction amounts.
"""

from collections.abc import Iterable
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal, localcontext

from blnk_statements.models import TransactionRecord

DEFAULT_PRECISION = 100
_CENTS = Decimal("0.01")
# Default decimal context precision
_MIN_DIGITS = 28


def _digits_needed(value: Decimal) -> int:
    # Integer digits plus two decimals and headroom for rounding
    return max(_MIN_DIGITS, value.adjusted() + 4)


def _grouped(value: Decimal) -> str:
    with localcontext() as ctx:
        ctx.prec = _digits_needed(value)
        rounded = value.quantize(_CENTS, rounding=ROUND_HALF_UP)
    return f"{rounded:,.2f}"


def to_display_amount(amount: Decimal | int | str, precision: int = DEFAULT_PRECISION) -> str:
    """Convert a minor-unit amount into a grouped two-decimal string.

    Example: 600000 at precision 100 renders as "6,000.00".
    """
    value = Decimal(amount)
    with localcontext() as ctx:
        # Exact division for amounts beyond the default context
        ctx.prec = _digits_needed(value) + len(str(precision))
        scaled = value / Decimal(precision)
    return _grouped(scaled)


def format_amount(amount: Decimal | int | str) -> str:
    """Format an amount with grouping and two decimals, without scaling."""
    return _grouped(Decimal(amount))


def format_timestamp(value: datetime) -> str:
    """Render a timestamp as `YYYY-MM-DD HH:MM:SS` in UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime("%Y-%m-%d %H:%M:%S")


def currency_precision(transactions: Iterable[TransactionRecord], currency: str) -> int:
    """Precision of the first transaction in `currency`, or 100."""
    for tx in transactions:
        if tx.currency == currency:
            return tx.precision or DEFAULT_PRECISION
    return DEFAULT_PRECISION
