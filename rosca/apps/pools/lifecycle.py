"""
Pool lifecycle: Open -> Active -> Completed, never backwards.
"""

from enum import Enum

from rosca.apps.pools.models import PoolState

ALLOWED_TRANSITIONS = {
    (PoolState.OPEN.value, PoolState.ACTIVE.value),
    (PoolState.ACTIVE.value, PoolState.COMPLETED.value),
}


class Transition(Enum):
    APPLY = "apply"
    NOOP = "noop"
    REJECT = "reject"


def check_transition(current: str, target: str) -> Transition:
    current, target = str(current), str(target)
    if current == target:
        return Transition.NOOP
    if (current, target) in ALLOWED_TRANSITIONS:
        return Transition.APPLY
    return Transition.REJECT
