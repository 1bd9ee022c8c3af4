import threading
from collections import Counter
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional

from amounts import add_amounts, subtract_amounts


class TransactionType(Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    DISPUTE = "dispute"
    RESOLVE = "resolve"
    CHARGEBACK = "chargeback"


class DisputeStatus(Enum):
    CLEAN = "clean"
    DISPUTED = "disputed"
    RESOLVED = "resolved"
    CHARGED_BACK = "charged_back"


class ProcessingResult(Enum):
    SUCCESS = "success"
    INVALID_RECORD = "invalid_record"
    DUPLICATE_TRANSACTION = "duplicate_transaction"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    ACCOUNT_LOCKED = "account_locked"
    ACCOUNT_NOT_FOUND = "account_not_found"
    TRANSACTION_NOT_FOUND = "transaction_not_found"
    CLIENT_MISMATCH = "client_mismatch"
    INVALID_DISPUTE_STATE = "invalid_dispute_state"
    AMOUNT_OVERFLOW = "amount_overflow"


@dataclass(frozen=True)
class Transaction:
    transaction_type: TransactionType
    client_id: int
    transaction_id: int
    amount: Optional[Decimal] = None

    def __repr__(self) -> str:
        return f"Transaction({self.transaction_type.value}, client={self.client_id}, tx={self.transaction_id}, amount={self.amount})"


@dataclass
class DepositRecord:
    """Transaction log entry for a disputable deposit."""

    transaction_id: int
    client_id: int
    amount: Decimal
    dispute_status: DisputeStatus = DisputeStatus.CLEAN


@dataclass(frozen=True)
class AccountSnapshot:
    client_id: int
    available: Decimal
    held: Decimal
    total: Decimal
    locked: bool


@dataclass
class ClientAccount:
    client_id: int
    available: Decimal = Decimal("0")
    held: Decimal = Decimal("0")
    locked: bool = False

    @property
    def total(self) -> Decimal:
        return add_amounts(self.available, self.held)

    def _commit(self, available: Decimal, held: Decimal) -> None:
        # total must stay exact as well; nothing is assigned on AmountOverflow
        add_amounts(available, held)
        self.available, self.held = available, held

    def credit(self, amount: Decimal) -> None:
        self._commit(add_amounts(self.available, amount), self.held)

    def debit(self, amount: Decimal) -> None:
        self._commit(subtract_amounts(self.available, amount), self.held)

    def hold(self, amount: Decimal) -> None:
        self._commit(subtract_amounts(self.available, amount), add_amounts(self.held, amount))

    def release_hold(self, amount: Decimal) -> None:
        self._commit(add_amounts(self.available, amount), subtract_amounts(self.held, amount))

    def remove_held(self, amount: Decimal) -> None:
        self._commit(self.available, subtract_amounts(self.held, amount))

    def lock(self) -> None:
        self.locked = True

    def snapshot(self) -> AccountSnapshot:
        return AccountSnapshot(
            client_id=self.client_id,
            available=self.available,
            held=self.held,
            total=self.total,
            locked=self.locked,
        )


class ProcessingStats:
    """Thread-safe counters for tracking processing statistics."""

    def __init__(self):
        self._lock = threading.Lock()
        self._results: Counter = Counter()

    def record(self, result: ProcessingResult) -> None:
        with self._lock:
            self._results[result] += 1

    @property
    def applied(self) -> int:
        with self._lock:
            return self._results[ProcessingResult.SUCCESS]

    @property
    def rejected(self) -> int:
        with self._lock:
            return sum(count for result, count in self._results.items() if result != ProcessingResult.SUCCESS)

    def count(self, result: ProcessingResult) -> int:
        with self._lock:
            return self._results[result]

    def as_dict(self) -> Dict[str, int]:
        with self._lock:
            return {result.value: count for result, count in self._results.items()}
