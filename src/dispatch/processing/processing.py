"""OrderProcessing aggregate (CQRS) — the vendor's four-step fulfillment workflow.

One aggregate per "process this order" session. The workflow only moves
forward:

    confirm → documents → shipping → handover

    Step       Order status on completion
    confirm    CONFIRMED         (every line item marked ready; payout recorded)
    documents  PROCESSING
    shipping   SHIPPED           (tracking number and courier required)
    handover   OUT_FOR_DELIVERY  (dispatch proof optional; workflow completed)

Re-submitting a step that is already completed is a no-op, so a client that
retries after a timeout does not trigger side effects twice. Asking for a
step that is not yet current is rejected.
"""

import json
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from dispatch.domain import dispatch
from dispatch.earnings.calculator import EarningsBreakdown, breakdown
from dispatch.processing.events import (
    AvailabilityConfirmed,
    DocumentsPrepared,
    HandoverConfirmed,
    ItemReadinessChanged,
    ProcessingOpened,
    ShippingCaptured,
    TrackingAttached,
)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    SHIPPED = "SHIPPED"
    OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class ProcessingStep(Enum):
    CONFIRM = "confirm"
    DOCUMENTS = "documents"
    SHIPPING = "shipping"
    HANDOVER = "handover"


class Courier(Enum):
    G4S = "g4s"
    WELLS_FARGO = "wells_fargo"
    SENDY = "sendy"
    IN_HOUSE = "in_house"
    OTHER = "other"


class DocumentKind(Enum):
    INVOICE = "invoice"
    PACKING_SLIP = "packing_slip"
    SHIPPING_LABEL = "shipping_label"


_STEP_SEQUENCE = [
    ProcessingStep.CONFIRM,
    ProcessingStep.DOCUMENTS,
    ProcessingStep.SHIPPING,
    ProcessingStep.HANDOVER,
]

# Order status each step leaves behind once completed
STEP_ORDER_STATUS = {
    ProcessingStep.CONFIRM: OrderStatus.CONFIRMED,
    ProcessingStep.DOCUMENTS: OrderStatus.PROCESSING,
    ProcessingStep.SHIPPING: OrderStatus.SHIPPED,
    ProcessingStep.HANDOVER: OrderStatus.OUT_FOR_DELIVERY,
}

_OPENABLE_ORDER_STATUSES = {OrderStatus.PENDING, OrderStatus.CONFIRMED}


def _step_index(step: ProcessingStep) -> int:
    return _STEP_SEQUENCE.index(ProcessingStep(step))


class WorkflowPreconditionUnmet(ValidationError):
    """A step was advanced while its entry precondition does not hold."""

    def __init__(self, step: ProcessingStep, field: str, message: str):
        self.step = ProcessingStep(step)
        super().__init__({field: [message]})


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@dispatch.entity(part_of="OrderProcessing")
class ProcessingItem:
    """An order line the vendor must confirm before dispatch."""

    order_item_id = Identifier(required=True)
    name = String(max_length=200)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    ready = Boolean(default=False)


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@dispatch.aggregate
class OrderProcessing:
    order_id = Identifier(required=True)
    order_number = String(max_length=50)
    customer_email = String(max_length=254)
    order_status = String(
        max_length=50,
        choices=OrderStatus,
        default=OrderStatus.PENDING.value,
    )
    current_step = String(
        max_length=20,
        choices=ProcessingStep,
        default=ProcessingStep.CONFIRM.value,
    )
    completed = Boolean(default=False)
    items = HasMany(ProcessingItem)
    subtotal = Float(min_value=0.0, default=0.0)
    earnings = ValueObject(EarningsBreakdown)
    documents = Text()  # JSON object: document kind -> URL
    tracking_id = String(max_length=100)
    tracking_url = String(max_length=500)
    tracking_number = String(max_length=100)
    courier = String(max_length=50, choices=Courier)
    dispatch_proof_reference = String(max_length=500)
    opened_at = DateTime()
    updated_at = DateTime()
    handed_over_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def open(
        cls,
        order_id: str,
        order_status: str,
        items_data: list[dict],
        order_number: str | None = None,
        customer_email: str | None = None,
    ):
        """Open processing for an order that is still PENDING or CONFIRMED."""
        try:
            status = OrderStatus(order_status)
        except ValueError:
            raise ValidationError({"order_status": [f"Unknown order status: {order_status}"]}) from None
        if status not in _OPENABLE_ORDER_STATUSES:
            raise WorkflowPreconditionUnmet(
                ProcessingStep.CONFIRM,
                "order_status",
                f"Only PENDING or CONFIRMED orders can be processed, order is {status.value}",
            )
        if not items_data:
            raise ValidationError({"items": ["An order needs at least one item to process"]})

        now = datetime.now(UTC)
        proc = cls(
            order_id=order_id,
            order_number=order_number,
            customer_email=customer_email,
            order_status=status.value,
            current_step=ProcessingStep.CONFIRM.value,
            opened_at=now,
            updated_at=now,
        )
        for item_data in items_data:
            proc.add_items(ProcessingItem(**item_data))
        proc.subtotal = round(sum(i.quantity * i.unit_price for i in proc.items), 2)

        proc.raise_(
            ProcessingOpened(
                processing_id=str(proc.id),
                order_id=order_id,
                order_number=order_number,
                order_status=status.value,
                item_count=len(items_data),
                subtotal=proc.subtotal,
                opened_at=now,
            )
        )
        return proc

    # -------------------------------------------------------------------
    # Step bookkeeping
    # -------------------------------------------------------------------
    @property
    def confirmed_items(self) -> set[str]:
        return {str(i.order_item_id) for i in (self.items or []) if i.ready}

    @property
    def suggested_tracking_number(self) -> str | None:
        """Minted tracking identifier, offered as the default tracking number."""
        return self.tracking_number or self.tracking_id

    def is_step_completed(self, step: ProcessingStep) -> bool:
        if self.completed:
            return True
        return _step_index(step) < _step_index(ProcessingStep(self.current_step))

    def awaits(self, step: ProcessingStep) -> bool:
        """True when ``step`` is the one to perform next; False when it is already done.

        Raises WorkflowPreconditionUnmet when ``step`` lies ahead of the current step.
        """
        step = ProcessingStep(step)
        if self.is_step_completed(step):
            return False
        current = ProcessingStep(self.current_step)
        if step != current:
            raise WorkflowPreconditionUnmet(
                step,
                "step",
                f"Cannot perform {step.value} before completing {current.value}",
            )
        return True

    def _complete_step(self, step: ProcessingStep, now: datetime) -> None:
        self.order_status = STEP_ORDER_STATUS[step].value
        if step == ProcessingStep.HANDOVER:
            self.completed = True
        else:
            self.current_step = _STEP_SEQUENCE[_step_index(step) + 1].value
        self.updated_at = now

    # -------------------------------------------------------------------
    # Step 1: confirm availability
    # -------------------------------------------------------------------
    def mark_item_ready(self, order_item_id: str, ready: bool = True) -> None:
        """Tick (or untick) a line item as physically available."""
        if self.completed or ProcessingStep(self.current_step) != ProcessingStep.CONFIRM:
            raise WorkflowPreconditionUnmet(
                ProcessingStep.CONFIRM,
                "step",
                "Items can only be marked ready during the confirm step",
            )
        item = next((i for i in (self.items or []) if str(i.order_item_id) == str(order_item_id)), None)
        if item is None:
            raise ValidationError({"order_item_id": ["Item not found in this order"]})

        now = datetime.now(UTC)
        item.ready = ready
        self.updated_at = now
        self.raise_(
            ItemReadinessChanged(
                processing_id=str(self.id),
                order_item_id=str(order_item_id),
                ready=ready,
                changed_at=now,
            )
        )

    def confirm_availability(self, commission_rate: float | None = None, vat_rate: float | None = None) -> bool:
        """Confirm the order once every item is ready, fixing the vendor payout."""
        if not self.awaits(ProcessingStep.CONFIRM):
            return False

        unready = [i for i in (self.items or []) if not i.ready]
        if unready:
            raise WorkflowPreconditionUnmet(
                ProcessingStep.CONFIRM,
                "items",
                f"{len(unready)} item(s) have not been marked ready",
            )

        now = datetime.now(UTC)
        self.earnings = breakdown(self.subtotal or 0.0, commission_rate, vat_rate)
        self._complete_step(ProcessingStep.CONFIRM, now)
        self.raise_(
            AvailabilityConfirmed(
                processing_id=str(self.id),
                order_id=str(self.order_id),
                order_subtotal=self.earnings.order_subtotal,
                marketplace_fee=self.earnings.marketplace_fee,
                vat_amount=self.earnings.vat_amount,
                vendor_payout=self.earnings.vendor_payout,
                confirmed_at=now,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Step 2: documents
    # -------------------------------------------------------------------
    def prepare_documents(self, rendered: dict[str, str] | None = None) -> bool:
        """Move the order into PROCESSING, keeping any rendered document links."""
        if not self.awaits(ProcessingStep.DOCUMENTS):
            return False

        now = datetime.now(UTC)
        self.documents = json.dumps(rendered or {})
        self._complete_step(ProcessingStep.DOCUMENTS, now)
        self.raise_(
            DocumentsPrepared(
                processing_id=str(self.id),
                order_id=str(self.order_id),
                documents=self.documents,
                prepared_at=now,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Tracking (any time before shipping is captured)
    # -------------------------------------------------------------------
    def require_tracking_allowed(self) -> None:
        if self.is_step_completed(ProcessingStep.SHIPPING):
            raise WorkflowPreconditionUnmet(
                ProcessingStep.SHIPPING,
                "tracking_id",
                "Tracking can only be generated before shipping details are captured",
            )

    def attach_tracking(self, tracking_id: str, tracking_url: str | None = None) -> bool:
        """Attach a minted tracking identifier; keeps the first one attached."""
        if self.tracking_id:
            return False
        self.require_tracking_allowed()

        now = datetime.now(UTC)
        self.tracking_id = tracking_id
        self.tracking_url = tracking_url
        self.updated_at = now
        self.raise_(
            TrackingAttached(
                processing_id=str(self.id),
                order_id=str(self.order_id),
                tracking_id=tracking_id,
                tracking_url=tracking_url,
                attached_at=now,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Step 3: shipping
    # -------------------------------------------------------------------
    def capture_shipping(self, tracking_number: str | None, courier: str | None) -> bool:
        """Record courier and tracking number; both are required."""
        if not self.awaits(ProcessingStep.SHIPPING):
            return False

        tracking_number = (tracking_number or "").strip()
        courier = (courier or "").strip()
        if not tracking_number or not courier:
            raise WorkflowPreconditionUnmet(
                ProcessingStep.SHIPPING,
                "shipping",
                "Tracking number and courier are both required",
            )
        try:
            courier = Courier(courier).value
        except ValueError:
            raise ValidationError({"courier": [f"Unknown courier: {courier}"]}) from None

        now = datetime.now(UTC)
        self.tracking_number = tracking_number
        self.courier = courier
        self._complete_step(ProcessingStep.SHIPPING, now)
        self.raise_(
            ShippingCaptured(
                processing_id=str(self.id),
                order_id=str(self.order_id),
                tracking_number=tracking_number,
                courier=courier,
                shipped_at=now,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Step 4: handover
    # -------------------------------------------------------------------
    def confirm_handover(self, dispatch_proof_reference: str | None = None) -> bool:
        """Hand the parcel to the courier and close the workflow."""
        if not self.awaits(ProcessingStep.HANDOVER):
            return False

        now = datetime.now(UTC)
        self.dispatch_proof_reference = dispatch_proof_reference or None
        self.handed_over_at = now
        self._complete_step(ProcessingStep.HANDOVER, now)
        self.raise_(
            HandoverConfirmed(
                processing_id=str(self.id),
                order_id=str(self.order_id),
                order_number=self.order_number,
                customer_email=self.customer_email,
                tracking_number=self.tracking_number,
                courier=self.courier,
                tracking_url=self.tracking_url,
                dispatch_proof_reference=self.dispatch_proof_reference,
                handed_over_at=now,
            )
        )
        return True

    def step_data(self, step: ProcessingStep) -> dict:
        """Data pushed to the order service alongside a step's order status."""
        step = ProcessingStep(step)
        if step == ProcessingStep.SHIPPING:
            return {"trackingNumber": self.tracking_number, "courier": self.courier}
        if step == ProcessingStep.HANDOVER:
            return {
                "trackingNumber": self.tracking_number,
                "courier": self.courier,
                "trackingUrl": self.tracking_url,
                "dispatchNote": self.dispatch_proof_reference,
            }
        return {}
