"""Customer dispatch notice — reacts to HandoverConfirmed.

Tells the buyer their order is out for delivery, with courier, tracking
number and tracking link. A failed notice is logged and does not undo the
handover.
"""

import structlog
from protean.utils.mixins import handle

from dispatch.domain import dispatch
from dispatch.notifier import get_notifier
from dispatch.processing.events import HandoverConfirmed
from dispatch.processing.processing import Courier, OrderProcessing

logger = structlog.get_logger(__name__)

COURIER_LABELS = {
    Courier.G4S.value: "G4S",
    Courier.WELLS_FARGO.value: "Wells Fargo",
    Courier.SENDY.value: "Sendy",
    Courier.IN_HOUSE.value: "In-House Delivery",
    Courier.OTHER.value: "Other",
}


class DispatchNoticeTemplate:
    @staticmethod
    def render(context: dict) -> dict:
        order_number = context.get("order_number") or context.get("order_id", "N/A")
        courier = COURIER_LABELS.get(context.get("courier"), "the courier")
        tracking_number = context.get("tracking_number", "N/A")
        body = (
            f"Your order #{order_number} is on its way.\n\n"
            f"Courier: {courier}\n"
            f"Tracking Number: {tracking_number}\n"
        )
        if context.get("tracking_url"):
            body += f"\nTrack your parcel: {context['tracking_url']}"
        return {"subject": "Your Order Is Out for Delivery", "body": body}


@dispatch.event_handler(part_of=OrderProcessing)
class DispatchNoticeHandler:
    @handle(HandoverConfirmed)
    def on_handover_confirmed(self, event: HandoverConfirmed) -> None:
        context = {
            "order_id": str(event.order_id),
            "order_number": event.order_number,
            "courier": event.courier,
            "tracking_number": event.tracking_number,
            "tracking_url": event.tracking_url,
        }
        context.update(DispatchNoticeTemplate.render(context))

        result = get_notifier().send_dispatch_notice(str(event.order_id), event.customer_email, context)
        if result.get("status") != "sent":
            logger.warning(
                "Dispatch notice failed",
                order_id=str(event.order_id),
                error=result.get("error"),
            )
            return

        logger.info(
            "Dispatch notice sent",
            order_id=str(event.order_id),
            message_id=result.get("message_id"),
        )
