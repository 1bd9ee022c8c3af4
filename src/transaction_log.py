import threading
from decimal import Decimal
from typing import Dict, Optional, Set

from models import DepositRecord


class TransactionLog:
    """
    Run-wide record of transaction ids and disputable deposits.
    Shared by every lane, so all access goes through one internal lock.
    Dispute status of an entry is only changed by the lane owning its client.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._deposits: Dict[int, DepositRecord] = {}
        self._claimed_transaction_ids: Set[int] = set()

    def claim_transaction_id(self, transaction_id: int) -> bool:
        """
        Register a deposit/withdrawal id on first sight.
        Returns False if the id was already presented.
        """
        with self._lock:
            if transaction_id in self._claimed_transaction_ids:
                return False
            self._claimed_transaction_ids.add(transaction_id)
            return True

    def record_deposit(self, transaction_id: int, client_id: int, amount: Decimal) -> bool:
        """Store a CLEAN deposit entry. Returns False if the id is already logged."""
        with self._lock:
            if transaction_id in self._deposits:
                return False
            self._deposits[transaction_id] = DepositRecord(
                transaction_id=transaction_id,
                client_id=client_id,
                amount=amount,
            )
            return True

    def get_deposit(self, transaction_id: int) -> Optional[DepositRecord]:
        with self._lock:
            return self._deposits.get(transaction_id)

    def discard_deposit(self, transaction_id: int) -> None:
        """Drop an entry whose deposit could not be applied."""
        with self._lock:
            self._deposits.pop(transaction_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._deposits)
