from typing import Dict, FrozenSet, Optional, Tuple

from models import DisputeStatus, TransactionType

# action -> (states it may be applied from, resulting state)
TRANSITIONS: Dict[TransactionType, Tuple[FrozenSet[DisputeStatus], DisputeStatus]] = {
    TransactionType.DISPUTE: (
        frozenset({DisputeStatus.CLEAN, DisputeStatus.RESOLVED}),
        DisputeStatus.DISPUTED,
    ),
    TransactionType.RESOLVE: (
        frozenset({DisputeStatus.DISPUTED}),
        DisputeStatus.RESOLVED,
    ),
    TransactionType.CHARGEBACK: (
        frozenset({DisputeStatus.DISPUTED}),
        DisputeStatus.CHARGED_BACK,
    ),
}


def next_status(current: DisputeStatus, action: TransactionType) -> Optional[DisputeStatus]:
    """
    Return the dispute status reached by applying action to a deposit in
    the current status, or None if the transition is not allowed.
    CHARGED_BACK is terminal.
    """
    if action not in TRANSITIONS:
        return None
    sources, target = TRANSITIONS[action]
    if current not in sources:
        return None
    return target


def is_terminal(status: DisputeStatus) -> bool:
    return all(status not in sources for sources, _ in TRANSITIONS.values())
