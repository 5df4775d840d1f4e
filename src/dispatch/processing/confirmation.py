"""Availability confirmation (step 1) — command and handler.

Requires every line item to be marked ready. Fixes the vendor payout and
moves the order to CONFIRMED.
"""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.processing.order_sync import push_order_status
from dispatch.processing.processing import OrderProcessing, ProcessingStep


@dispatch.command(part_of="OrderProcessing")
class ConfirmAvailability:
    processing_id = Identifier(required=True)


@dispatch.command_handler(part_of=OrderProcessing)
class ConfirmationHandler:
    @handle(ConfirmAvailability)
    def confirm_availability(self, command):
        repo = current_domain.repository_for(OrderProcessing)
        proc = repo.get(command.processing_id)
        if proc.confirm_availability():
            push_order_status(proc, ProcessingStep.CONFIRM)
            repo.add(proc)
        return proc.current_step
