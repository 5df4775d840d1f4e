"""Shipment status state machine.

State Machine:
    PENDING → PICKED_UP → IN_TRANSIT → OUT_FOR_DELIVERY → DELIVERED
    PENDING → CANCELLED
    {PICKED_UP, IN_TRANSIT} → RETURNED
    OUT_FOR_DELIVERY → FAILED → {OUT_FOR_DELIVERY, RETURNED}

FAILED is a recoverable state: a failed delivery attempt can be retried
(back to OUT_FOR_DELIVERY) or resolved by returning the parcel.
"""

from enum import Enum

from protean.exceptions import ValidationError


class ShipmentStatus(Enum):
    PENDING = "PENDING"
    PICKED_UP = "PICKED_UP"
    IN_TRANSIT = "IN_TRANSIT"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    DELIVERED = "DELIVERED"
    FAILED = "FAILED"
    RETURNED = "RETURNED"
    CANCELLED = "CANCELLED"


_VALID_TRANSITIONS = {
    ShipmentStatus.PENDING: frozenset({ShipmentStatus.PICKED_UP, ShipmentStatus.CANCELLED}),
    ShipmentStatus.PICKED_UP: frozenset({ShipmentStatus.IN_TRANSIT, ShipmentStatus.RETURNED}),
    ShipmentStatus.IN_TRANSIT: frozenset({ShipmentStatus.OUT_FOR_DELIVERY, ShipmentStatus.RETURNED}),
    ShipmentStatus.OUT_FOR_DELIVERY: frozenset({ShipmentStatus.DELIVERED, ShipmentStatus.FAILED}),
    ShipmentStatus.DELIVERED: frozenset(),  # terminal
    ShipmentStatus.FAILED: frozenset({ShipmentStatus.RETURNED, ShipmentStatus.OUT_FOR_DELIVERY}),
    ShipmentStatus.RETURNED: frozenset(),  # terminal
    ShipmentStatus.CANCELLED: frozenset(),  # terminal
}

# Customer-facing display metadata
_DESCRIPTIONS = {
    ShipmentStatus.PENDING: "Package is awaiting pickup",
    ShipmentStatus.PICKED_UP: "Package has been picked up by courier",
    ShipmentStatus.IN_TRANSIT: "Package is on its way",
    ShipmentStatus.OUT_FOR_DELIVERY: "Package is out for delivery",
    ShipmentStatus.DELIVERED: "Package has been delivered",
    ShipmentStatus.FAILED: "Delivery attempt failed",
    ShipmentStatus.RETURNED: "Package has been returned to sender",
    ShipmentStatus.CANCELLED: "Package shipment has been cancelled",
}

_PROGRESS = {
    ShipmentStatus.PENDING: 0,
    ShipmentStatus.PICKED_UP: 25,
    ShipmentStatus.IN_TRANSIT: 50,
    ShipmentStatus.OUT_FOR_DELIVERY: 75,
    ShipmentStatus.DELIVERED: 100,
    ShipmentStatus.FAILED: 75,
    ShipmentStatus.RETURNED: 50,
    ShipmentStatus.CANCELLED: 0,
}

# Index into the five-stage customer timeline (Placed, Picked up, In transit,
# Out for delivery, Delivered)
_TIMELINE_STEP = {
    ShipmentStatus.PENDING: 0,
    ShipmentStatus.PICKED_UP: 1,
    ShipmentStatus.IN_TRANSIT: 2,
    ShipmentStatus.OUT_FOR_DELIVERY: 3,
    ShipmentStatus.DELIVERED: 4,
    ShipmentStatus.FAILED: 3,
    ShipmentStatus.RETURNED: 2,
    ShipmentStatus.CANCELLED: 0,
}


class IllegalTransition(ValidationError):
    """A scan asked for a status that is not reachable from the current one.

    ``current`` is None when the tracking identifier has no history yet.
    """

    def __init__(self, current: ShipmentStatus | None, attempted: ShipmentStatus):
        self.current = current
        self.attempted = attempted
        if current is None:
            message = f"Cannot transition from {ShipmentStatus.PENDING.value} (no history) to {attempted.value}"
        else:
            message = f"Cannot transition from {current.value} to {attempted.value}"
        super().__init__({"status": [message]})


def allowed_next(current: ShipmentStatus) -> frozenset[ShipmentStatus]:
    """Statuses a shipment may move to from ``current``."""
    return _VALID_TRANSITIONS[ShipmentStatus(current)]


def is_terminal(status: ShipmentStatus) -> bool:
    return not allowed_next(status)


def assert_can_transition(current: ShipmentStatus | None, target: ShipmentStatus) -> None:
    """Raise IllegalTransition unless ``target`` may follow ``current``.

    An empty history counts as PENDING: it accepts PENDING itself (the opening
    scan) or any status PENDING may move to.
    """
    target = ShipmentStatus(target)
    if current is None:
        if target != ShipmentStatus.PENDING and target not in allowed_next(ShipmentStatus.PENDING):
            raise IllegalTransition(None, target)
        return
    current = ShipmentStatus(current)
    if target not in allowed_next(current):
        raise IllegalTransition(current, target)


def describe(status: ShipmentStatus) -> str:
    return _DESCRIPTIONS[ShipmentStatus(status)]


def progress(status: ShipmentStatus) -> int:
    """Delivery progress percentage shown on the tracking page."""
    return _PROGRESS[ShipmentStatus(status)]


def timeline_step(status: ShipmentStatus) -> int:
    return _TIMELINE_STEP[ShipmentStatus(status)]
