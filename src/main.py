import argparse
import csv
import logging
import os
import sys
from typing import Iterable, Optional, Sequence, TextIO

from amounts import format_amount
from errors import PaymentsEngineError
from models import AccountSnapshot
from payments_engine import PaymentsEngine

logger = logging.getLogger(__name__)

OUTPUT_HEADER = ("client", "available", "held", "total", "locked")

MODE_ENV_VAR = "PAYMENTS_ENGINE_MODE"
LOG_LEVEL_ENV_VAR = "PAYMENTS_ENGINE_LOG_LEVEL"


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="payments-engine",
        description=(
            "Apply a CSV stream of deposits, withdrawals, disputes, resolves and "
            "chargebacks, then print the final state of every client account as CSV."
        ),
    )
    parser.add_argument(
        "transactions",
        metavar="TRANSACTIONS_FILE",
        help="CSV file with header type,client,tx,amount.",
    )
    parser.add_argument(
        "--serial",
        action="store_true",
        default=os.environ.get(MODE_ENV_VAR, "concurrent").lower() == "serial",
        help=f"Apply all transactions on one thread instead of one lane per client (env: {MODE_ENV_VAR}=serial).",
    )
    parser.add_argument(
        "--queue-size",
        type=int,
        default=0,
        help="Bound on each client lane's queue; 0 means unbounded.",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get(LOG_LEVEL_ENV_VAR, "WARNING").upper(),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help=f"Diagnostics written to stderr (env: {LOG_LEVEL_ENV_VAR}).",
    )
    args = parser.parse_args(argv)
    if args.queue_size < 0:
        parser.error("--queue-size must not be negative")
    return args


def write_snapshots(snapshots: Iterable[AccountSnapshot], stream: TextIO) -> None:
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_HEADER)
    for snapshot in snapshots:
        writer.writerow([
            snapshot.client_id,
            format_amount(snapshot.available),
            format_amount(snapshot.held),
            format_amount(snapshot.total),
            str(snapshot.locked).lower(),
        ])


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=args.log_level,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    engine = PaymentsEngine(concurrent=not args.serial, queue_maxsize=args.queue_size)
    try:
        engine.process_file(args.transactions)
    except (OSError, csv.Error, PaymentsEngineError) as e:
        logger.debug("Run aborted", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1

    write_snapshots(engine.snapshot(), sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
