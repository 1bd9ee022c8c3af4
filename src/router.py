import logging
import threading
from typing import Dict, List, Optional

from errors import LaneFailure
from ledger import Ledger
from message_queue import LaneQueue
from models import ProcessingStats, Transaction

logger = logging.getLogger(__name__)


class ClientLane:
    """
    Serial processing path for one client.
    A single worker thread applies the client's transactions in the order
    they were published, then exits once its queue is closed and drained.
    """

    def __init__(
        self,
        client_id: int,
        ledger: Ledger,
        stats: ProcessingStats,
        queue_maxsize: int = 0,
    ):
        self.client_id = client_id
        self._ledger = ledger
        self._stats = stats
        self._queue = LaneQueue(maxsize=queue_maxsize)
        self._thread = threading.Thread(
            target=self._consume_transactions,
            name=f"lane-{client_id}",
            daemon=True,
        )
        self.finished = threading.Event()
        self.error: Optional[BaseException] = None

    def start(self) -> None:
        self._thread.start()

    def submit(self, transaction: Transaction) -> None:
        self._queue.publish_message(transaction)

    def close(self) -> None:
        self._queue.close()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the lane to drain. Returns True if it has finished."""
        self._thread.join(timeout)
        return self.finished.is_set()

    def _consume_transactions(self) -> None:
        """Consumer loop: pull from queue, apply, record the outcome."""
        logger.debug(f"Lane {self.client_id} started")
        try:
            while True:
                transaction = self._queue.consume_message()
                if transaction is None:
                    break
                result = self._ledger.apply(transaction)
                self._stats.record(result)
        except Exception as e:
            logger.exception(f"Lane {self.client_id} failed")
            self.error = e
            # keep a bounded queue from blocking the publisher
            while self._queue.consume_message() is not None:
                pass
        finally:
            self.finished.set()
            logger.debug(f"Lane {self.client_id} finished")


class DispatchRouter:
    """
    Routes each transaction to its client's lane, creating lanes on first
    reference. dispatch() returns as soon as the transaction is enqueued.
    """

    def __init__(self, ledger: Ledger, stats: ProcessingStats, queue_maxsize: int = 0):
        self._ledger = ledger
        self._stats = stats
        self._queue_maxsize = queue_maxsize
        self._lanes: Dict[int, ClientLane] = {}

    @property
    def lane_count(self) -> int:
        return len(self._lanes)

    def open_lane(self, client_id: int) -> ClientLane:
        """Get or create the lane for a client, opening its account first."""
        lane = self._lanes.get(client_id)
        if lane is None:
            self._ledger.open_account(client_id)
            lane = ClientLane(client_id, self._ledger, self._stats, self._queue_maxsize)
            lane.start()
            self._lanes[client_id] = lane
        return lane

    def dispatch(self, transaction: Transaction) -> None:
        self.open_lane(transaction.client_id).submit(transaction)

    def close_all(self) -> None:
        for lane in self._lanes.values():
            lane.close()

    def join_all(self, timeout: Optional[float] = None) -> None:
        """
        Barrier: wait for every lane to drain.

        Raises:
            TimeoutError: a lane did not finish within timeout seconds
            LaneFailure: a lane worker died with an exception
        """
        unfinished: List[int] = []
        for client_id, lane in self._lanes.items():
            if not lane.join(timeout):
                unfinished.append(client_id)
        if unfinished:
            raise TimeoutError(f"{len(unfinished)} lanes still running: {unfinished[:10]}")

        for client_id, lane in self._lanes.items():
            if lane.error is not None:
                raise LaneFailure(client_id, lane.error)


class SerialRouter:
    """
    Degenerate router: applies each transaction on the calling thread.
    Produces the same final ledger state as DispatchRouter.
    """

    def __init__(self, ledger: Ledger, stats: ProcessingStats):
        self._ledger = ledger
        self._stats = stats

    @property
    def lane_count(self) -> int:
        return 0

    def open_lane(self, client_id: int) -> None:
        self._ledger.open_account(client_id)

    def dispatch(self, transaction: Transaction) -> None:
        self._ledger.open_account(transaction.client_id)
        result = self._ledger.apply(transaction)
        self._stats.record(result)

    def close_all(self) -> None:
        pass

    def join_all(self, timeout: Optional[float] = None) -> None:
        pass

