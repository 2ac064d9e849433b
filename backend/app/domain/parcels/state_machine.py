"""
Parcel Status State Machine (Domain Logic).

Forward sequence:
    pending → picked_up → in_transit → at_hub → out_for_delivery → delivered

A non-terminal parcel may move to any later stage of the sequence (stages
can be skipped, e.g. a driver handing over directly after pickup), or to
one of the alternate terminal states failed / cancelled. Nothing leaves a
terminal state.
"""

from typing import FrozenSet, Tuple

from backend.app.core.exceptions import InvalidTransitionError
from backend.app.models.parcel_enums import ParcelStatus

FORWARD_SEQUENCE: Tuple[ParcelStatus, ...] = (
    ParcelStatus.PENDING,
    ParcelStatus.PICKED_UP,
    ParcelStatus.IN_TRANSIT,
    ParcelStatus.AT_HUB,
    ParcelStatus.OUT_FOR_DELIVERY,
    ParcelStatus.DELIVERED,
)

INITIAL_STATUS = ParcelStatus.PENDING

TERMINAL_STATUSES: FrozenSet[ParcelStatus] = frozenset({
    ParcelStatus.DELIVERED,
    ParcelStatus.FAILED,
    ParcelStatus.CANCELLED,
})

ALTERNATE_TERMINALS: FrozenSet[ParcelStatus] = frozenset({
    ParcelStatus.FAILED,
    ParcelStatus.CANCELLED,
})


def is_terminal(status: ParcelStatus) -> bool:
    return ParcelStatus(status) in TERMINAL_STATUSES


def allowed_transitions(current: ParcelStatus) -> FrozenSet[ParcelStatus]:
    """All statuses reachable in one step from ``current``."""
    current = ParcelStatus(current)
    if current in TERMINAL_STATUSES:
        return frozenset()
    position = FORWARD_SEQUENCE.index(current)
    return frozenset(FORWARD_SEQUENCE[position + 1:]) | ALTERNATE_TERMINALS


def can_transition(current: ParcelStatus, target: ParcelStatus) -> bool:
    return ParcelStatus(target) in allowed_transitions(current)


def ensure_transition(current: ParcelStatus, target: ParcelStatus) -> None:
    """
    Validate a requested status change.

    Raises:
        InvalidTransitionError: If ``current`` is terminal or ``target`` is not reachable
    """
    current = ParcelStatus(current)
    target = ParcelStatus(target)

    if current in TERMINAL_STATUSES:
        raise InvalidTransitionError(
            current.value,
            target.value,
            reason=f"Parcel is already {current.value}; no further status changes are accepted"
        )

    if target not in allowed_transitions(current):
        raise InvalidTransitionError(current.value, target.value)
