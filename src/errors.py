class PaymentsEngineError(Exception):
    """Base class for engine errors."""


class InvalidAmount(PaymentsEngineError, ValueError):
    """Amount literal is malformed, negative or too precise."""


class InvalidRecord(PaymentsEngineError, ValueError):
    """Input record cannot be turned into a transaction."""


class LaneFailure(PaymentsEngineError):
    """A client lane stopped before draining its queue."""

    def __init__(self, client_id: int, cause: BaseException):
        super().__init__(f"lane for client {client_id} failed: {cause!r}")
        self.client_id = client_id
        self.cause = cause


class AmountOverflow(PaymentsEngineError, ArithmeticError):
    """Balance arithmetic would need more precision than the ledger keeps."""
