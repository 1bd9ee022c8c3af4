import logging
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from disputes import is_terminal, next_status
from errors import AmountOverflow
from models import (
    AccountSnapshot,
    ClientAccount,
    DepositRecord,
    DisputeStatus,
    ProcessingResult,
    Transaction,
    TransactionType,
)
from transaction_log import TransactionLog

logger = logging.getLogger(__name__)


class Ledger:
    """
    Client accounts plus the operations that mutate them.

    Accounts are only created through open_account, which the ingestion path
    calls before a client's first transaction is handed to its lane. After
    that, each account is read and written by exactly one lane, so no
    per-account locking happens here. The transaction log is shared and
    synchronizes itself.
    """

    def __init__(self, transaction_log: Optional[TransactionLog] = None):
        self._accounts: Dict[int, ClientAccount] = {}
        self._transaction_log = transaction_log if transaction_log is not None else TransactionLog()

    @property
    def transaction_log(self) -> TransactionLog:
        return self._transaction_log

    def open_account(self, client_id: int) -> ClientAccount:
        """Get existing account or create new one."""
        account = self._accounts.get(client_id)
        if account is None:
            account = ClientAccount(client_id=client_id)
            self._accounts[client_id] = account
        return account

    def get_account(self, client_id: int) -> Optional[ClientAccount]:
        return self._accounts.get(client_id)

    def apply(self, transaction: Transaction) -> ProcessingResult:
        """
        Apply a single validated transaction.

        Every rejection leaves the account untouched and is reported
        through the returned ProcessingResult rather than raised.
        """
        try:
            match transaction.transaction_type:
                case TransactionType.DEPOSIT:
                    result = self.deposit(transaction.client_id, transaction.transaction_id, transaction.amount)
                case TransactionType.WITHDRAWAL:
                    result = self.withdraw(transaction.client_id, transaction.transaction_id, transaction.amount)
                case TransactionType.DISPUTE:
                    result = self.dispute(transaction.client_id, transaction.transaction_id)
                case TransactionType.RESOLVE:
                    result = self.resolve(transaction.client_id, transaction.transaction_id)
                case TransactionType.CHARGEBACK:
                    result = self.chargeback(transaction.client_id, transaction.transaction_id)
                case _:
                    result = ProcessingResult.INVALID_RECORD
        except AmountOverflow as e:
            logger.warning(f"{transaction}: {e}")
            result = ProcessingResult.AMOUNT_OVERFLOW

        if result != ProcessingResult.SUCCESS:
            logger.info(f"Rejected {transaction}: {result.value}")
        return result

    def deposit(self, client_id: int, transaction_id: int, amount: Decimal) -> ProcessingResult:
        account = self.open_account(client_id)

        if not self._transaction_log.record_deposit(transaction_id, client_id, amount):
            logger.warning(f"Deposit tx {transaction_id}: duplicate transaction id, skipping")
            return ProcessingResult.DUPLICATE_TRANSACTION

        try:
            account.credit(amount)
        except AmountOverflow:
            self._transaction_log.discard_deposit(transaction_id)
            raise
        return ProcessingResult.SUCCESS

    def withdraw(self, client_id: int, transaction_id: int, amount: Decimal) -> ProcessingResult:
        account = self.get_account(client_id)

        if account is None:
            return ProcessingResult.ACCOUNT_NOT_FOUND

        if account.locked:
            logger.warning(f"Withdrawal tx {transaction_id}: account {client_id} is locked")
            return ProcessingResult.ACCOUNT_LOCKED

        if account.available < amount:
            return ProcessingResult.INSUFFICIENT_FUNDS

        account.debit(amount)
        return ProcessingResult.SUCCESS

    def dispute(self, client_id: int, transaction_id: int) -> ProcessingResult:
        found, result = self._find_disputable(client_id, transaction_id, TransactionType.DISPUTE)
        if found is None:
            return result
        account, deposit, target = found

        # only funds that are still available can be frozen
        if account.available < deposit.amount:
            logger.info(
                f"Dispute for tx {transaction_id}: available {account.available} "
                f"cannot cover disputed amount {deposit.amount}"
            )
            return ProcessingResult.INSUFFICIENT_FUNDS

        account.hold(deposit.amount)
        deposit.dispute_status = target
        return ProcessingResult.SUCCESS

    def resolve(self, client_id: int, transaction_id: int) -> ProcessingResult:
        found, result = self._find_disputable(client_id, transaction_id, TransactionType.RESOLVE)
        if found is None:
            return result
        account, deposit, target = found

        account.release_hold(deposit.amount)
        deposit.dispute_status = target
        return ProcessingResult.SUCCESS

    def chargeback(self, client_id: int, transaction_id: int) -> ProcessingResult:
        found, result = self._find_disputable(client_id, transaction_id, TransactionType.CHARGEBACK)
        if found is None:
            return result
        account, deposit, target = found

        account.remove_held(deposit.amount)
        account.lock()
        deposit.dispute_status = target
        logger.warning(f"Chargeback for tx {transaction_id}: account {client_id} locked")
        return ProcessingResult.SUCCESS

    def _find_disputable(
        self, client_id: int, transaction_id: int, action: TransactionType
    ) -> Tuple[Optional[Tuple[ClientAccount, DepositRecord, DisputeStatus]], ProcessingResult]:
        """Look up the deposit an action refers to and check the transition is allowed."""
        deposit = self._transaction_log.get_deposit(transaction_id)

        if deposit is None:
            return None, ProcessingResult.TRANSACTION_NOT_FOUND

        if deposit.client_id != client_id:
            logger.warning(
                f"{action.value.capitalize()} for tx {transaction_id}: client mismatch "
                f"(expected {deposit.client_id}, got {client_id})"
            )
            return None, ProcessingResult.CLIENT_MISMATCH

        account = self.get_account(client_id)
        if account is None:
            return None, ProcessingResult.ACCOUNT_NOT_FOUND

        target = next_status(deposit.dispute_status, action)
        if target is None:
            if is_terminal(deposit.dispute_status):
                logger.info(f"{action.value.capitalize()} for tx {transaction_id}: deposit already {deposit.dispute_status.value}")
            return None, ProcessingResult.INVALID_DISPUTE_STATE

        return (account, deposit, target), ProcessingResult.SUCCESS

    def get_all_accounts(self) -> Dict[int, ClientAccount]:
        """Return all accounts (for final output)."""
        return dict(self._accounts)

    def snapshot(self) -> List[AccountSnapshot]:
        """Account snapshots ordered by client id."""
        return [self._accounts[client_id].snapshot() for client_id in sorted(self._accounts)]
