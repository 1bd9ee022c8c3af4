import csv
import logging
from typing import Dict, Iterable, Iterator, List, Mapping, Optional

from errors import LaneFailure
from ledger import Ledger
from models import AccountSnapshot, ClientAccount, ProcessingResult, ProcessingStats, Transaction, TransactionType
from router import DispatchRouter, SerialRouter
from validator import validate_row

logger = logging.getLogger(__name__)

INPUT_HEADER = ("type", "client", "tx", "amount")

CLAIMS_TRANSACTION_ID = frozenset({TransactionType.DEPOSIT, TransactionType.WITHDRAWAL})


def read_transaction_rows(filepath: str) -> Iterator[Dict[Optional[str], Optional[str]]]:
    """
    Yield raw CSV rows keyed by header name.
    Input is read as UTF-8; a leading byte order mark is skipped.

    Raises:
        OSError: the file cannot be opened or read
        csv.Error: the file is not valid UTF-8 or not parseable as CSV
    """
    with open(filepath, "r", newline="", encoding="utf-8-sig") as f:
        try:
            reader = csv.DictReader(f, skipinitialspace=True)
            if reader.fieldnames is not None:
                reader.fieldnames = [name.strip().lower() for name in reader.fieldnames]
                missing = [name for name in INPUT_HEADER[:3] if name not in reader.fieldnames]
                if missing:
                    raise csv.Error(f"input header is missing columns: {', '.join(missing)}")
            yield from reader
        except UnicodeDecodeError as e:
            raise csv.Error(f"{filepath} is not valid UTF-8: {e}") from e


class PaymentsEngine:
    """
    Orchestrates transaction processing.

    A single ingestion path validates rows in arrival order and hands each
    transaction to its client's lane. In concurrent mode every client gets a
    worker thread; in serial mode transactions are applied inline. Both modes
    produce identical final accounts.
    """

    def __init__(self, concurrent: bool = True, queue_maxsize: int = 0):
        self._concurrent = concurrent
        self._queue_maxsize = queue_maxsize
        self._ledger = Ledger()
        self._stats = ProcessingStats()

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    def process_file(self, filepath: str) -> Dict[int, ClientAccount]:
        """Process CSV file and return final account states."""
        logger.info(f"Processing {filepath} ({'concurrent' if self._concurrent else 'serial'} mode)")
        return self.process_rows(read_transaction_rows(filepath))

    def process_rows(self, rows: Iterable[Mapping[Optional[str], Optional[str]]]) -> Dict[int, ClientAccount]:
        """Validate and apply raw rows; return final account states."""
        return self.process_transactions(self._validated(rows))

    def process_transactions(self, transactions: Iterable[Transaction]) -> Dict[int, ClientAccount]:
        """
        Apply already-validated transactions in order and wait for every lane
        to drain before returning final account states.
        """
        if self._concurrent:
            router = DispatchRouter(self._ledger, self._stats, self._queue_maxsize)
        else:
            router = SerialRouter(self._ledger, self._stats)

        try:
            for transaction in transactions:
                self._ingest(router, transaction)
        except BaseException:
            # lanes are always shut down, but the ingestion error is the one reported
            router.close_all()
            try:
                router.join_all()
            except (LaneFailure, TimeoutError):
                logger.exception("Lane shutdown failed after ingestion error")
            raise

        router.close_all()
        router.join_all()

        logger.info(
            f"Processed: {self._stats.applied}, "
            f"Rejected: {self._stats.rejected}, "
            f"Clients: {len(self._ledger.get_all_accounts())}"
        )
        return self._ledger.get_all_accounts()

    def snapshot(self) -> List[AccountSnapshot]:
        """Final account snapshots, ordered by client id."""
        return self._ledger.snapshot()

    def _validated(self, rows: Iterable[Mapping[Optional[str], Optional[str]]]) -> Iterator[Transaction]:
        for row in rows:
            transaction = validate_row(row)
            if transaction is None:
                self._stats.record(ProcessingResult.INVALID_RECORD)
                continue
            yield transaction

    def _ingest(self, router, transaction: Transaction) -> None:
        # ids are claimed here, in arrival order, so duplicate detection does
        # not depend on how lanes interleave
        if transaction.transaction_type in CLAIMS_TRANSACTION_ID:
            if not self._ledger.transaction_log.claim_transaction_id(transaction.transaction_id):
                logger.warning(
                    f"{transaction.transaction_type.value.capitalize()} tx {transaction.transaction_id}: "
                    f"duplicate transaction id, skipping"
                )
                self._stats.record(ProcessingResult.DUPLICATE_TRANSACTION)
                router.open_lane(transaction.client_id)
                return
        router.dispatch(transaction)
