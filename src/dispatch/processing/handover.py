"""Courier handover (step 4) — command and handler.

Closes the workflow: the order goes OUT_FOR_DELIVERY with the dispatch
proof (if any) sent along as the dispatch note.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.processing.order_sync import push_order_status
from dispatch.processing.processing import OrderProcessing, ProcessingStep


@dispatch.command(part_of="OrderProcessing")
class ConfirmHandover:
    processing_id = Identifier(required=True)
    dispatch_proof_reference = String(max_length=500)


@dispatch.command_handler(part_of=OrderProcessing)
class HandoverHandler:
    @handle(ConfirmHandover)
    def confirm_handover(self, command):
        repo = current_domain.repository_for(OrderProcessing)
        proc = repo.get(command.processing_id)
        if proc.confirm_handover(command.dispatch_proof_reference):
            push_order_status(proc, ProcessingStep.HANDOVER)
            repo.add(proc)
        return proc.completed
