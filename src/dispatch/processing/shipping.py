"""Shipping capture (step 3) — command and handler.

Records courier and tracking number and moves the order to SHIPPED.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.processing.order_sync import push_order_status
from dispatch.processing.processing import OrderProcessing, ProcessingStep


@dispatch.command(part_of="OrderProcessing")
class CaptureShipping:
    processing_id = Identifier(required=True)
    tracking_number = String(max_length=100)
    courier = String(max_length=50)


@dispatch.command_handler(part_of=OrderProcessing)
class ShippingHandler:
    @handle(CaptureShipping)
    def capture_shipping(self, command):
        repo = current_domain.repository_for(OrderProcessing)
        proc = repo.get(command.processing_id)
        if proc.capture_shipping(command.tracking_number, command.courier):
            push_order_status(proc, ProcessingStep.SHIPPING)
            repo.add(proc)
        return proc.current_step
