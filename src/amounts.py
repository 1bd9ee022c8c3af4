import re
from decimal import Context, Decimal, Inexact, InvalidOperation, Overflow, localcontext

from errors import AmountOverflow, InvalidAmount

MAX_DECIMAL_PLACES = 4
MAX_SIGNIFICANT_DIGITS = 28

# arithmetic on balances must be exact: losing a non-zero digit raises
LEDGER_CONTEXT = Context(
    prec=MAX_SIGNIFICANT_DIGITS,
    traps=[InvalidOperation, Overflow, Inexact],
)

_AMOUNT_PATTERN = re.compile(r"^[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)$")


def parse_amount(text: str) -> Decimal:
    """
    Parse a monetary literal into an exact Decimal.
    Rejects instead of rounding: negative values, exponents, more than
    MAX_DECIMAL_PLACES fractional digits and more than MAX_SIGNIFICANT_DIGITS
    digits all raise InvalidAmount.
    """
    literal = (text or "").strip()
    if not _AMOUNT_PATTERN.match(literal):
        raise InvalidAmount(f"not a decimal amount: {text!r}")

    try:
        amount = Decimal(literal)
    except InvalidOperation as e:
        raise InvalidAmount(f"not a decimal amount: {text!r}") from e

    if amount.is_signed():
        raise InvalidAmount(f"negative amount: {text!r}")

    _, digits, exponent = amount.as_tuple()
    if -exponent > MAX_DECIMAL_PLACES:
        raise InvalidAmount(f"more than {MAX_DECIMAL_PLACES} decimal places: {text!r}")

    if len(digits) > MAX_SIGNIFICANT_DIGITS:
        raise InvalidAmount(f"more than {MAX_SIGNIFICANT_DIGITS} significant digits: {text!r}")

    return amount


def add_amounts(left: Decimal, right: Decimal) -> Decimal:
    """Exact sum, or AmountOverflow if it does not fit the ledger precision."""
    try:
        with localcontext(LEDGER_CONTEXT):
            return left + right
    except (Inexact, Overflow) as e:
        raise AmountOverflow(f"{left} + {right} exceeds {MAX_SIGNIFICANT_DIGITS} digits") from e


def subtract_amounts(left: Decimal, right: Decimal) -> Decimal:
    """Exact difference, or AmountOverflow if it does not fit the ledger precision."""
    try:
        with localcontext(LEDGER_CONTEXT):
            return left - right
    except (Inexact, Overflow) as e:
        raise AmountOverflow(f"{left} - {right} exceeds {MAX_SIGNIFICANT_DIGITS} digits") from e


def format_amount(value: Decimal) -> str:
    """Format decimal with up to 4 decimal places, removing trailing zeros."""
    normalized = value.normalize(LEDGER_CONTEXT)
    return f"{normalized:f}"
