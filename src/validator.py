import logging
from typing import Mapping, Optional

from amounts import parse_amount
from errors import InvalidAmount, InvalidRecord
from models import Transaction, TransactionType

logger = logging.getLogger(__name__)

MAX_CLIENT_ID = 2**16 - 1
MAX_TRANSACTION_ID = 2**32 - 1

AMOUNT_REQUIRED = frozenset({TransactionType.DEPOSIT, TransactionType.WITHDRAWAL})


def _parse_unsigned(field: str, value: str, maximum: int) -> int:
    if not (value.isascii() and value.isdigit()):
        raise InvalidRecord(f"{field} must be an unsigned integer, got {value!r}")
    number = int(value)
    if number > maximum:
        raise InvalidRecord(f"{field} {number} exceeds {maximum}")
    return number


def normalize_row(row: Mapping[Optional[str], Optional[str]]) -> dict:
    """Strip whitespace from header names and values; drop overflow columns."""
    return {
        key.strip(): (value or "").strip()
        for key, value in row.items()
        if key is not None and not isinstance(value, list)
    }


def parse_record(row: Mapping[Optional[str], Optional[str]]) -> Transaction:
    """
    Turn a raw CSV row into a validated Transaction.

    Deposits and withdrawals need a valid amount. Dispute, resolve and
    chargeback records ignore the amount column.

    Raises:
        InvalidRecord: unknown type, bad ids, missing or invalid amount
    """
    normalized = normalize_row(row)

    transaction_type_str = normalized.get("type", "").lower()
    try:
        transaction_type = TransactionType(transaction_type_str)
    except ValueError:
        raise InvalidRecord(f"unknown transaction type {transaction_type_str!r}") from None

    client_id = _parse_unsigned("client", normalized.get("client", ""), MAX_CLIENT_ID)
    transaction_id = _parse_unsigned("tx", normalized.get("tx", ""), MAX_TRANSACTION_ID)

    amount = None
    if transaction_type in AMOUNT_REQUIRED:
        amount_str = normalized.get("amount", "")
        if not amount_str:
            raise InvalidRecord(f"{transaction_type.value} tx {transaction_id}: amount is required")
        try:
            amount = parse_amount(amount_str)
        except InvalidAmount as e:
            raise InvalidRecord(f"{transaction_type.value} tx {transaction_id}: {e}") from e

    return Transaction(
        transaction_type=transaction_type,
        client_id=client_id,
        transaction_id=transaction_id,
        amount=amount,
    )


def validate_row(row: Mapping[Optional[str], Optional[str]]) -> Optional[Transaction]:
    """Parse a row, logging and returning None when it is rejected."""
    try:
        return parse_record(row)
    except InvalidRecord as e:
        logger.warning(f"Skipping row {dict(row)}: {e}")
        return None
