"""Item readiness — command and handler."""

from protean import handle
from protean.fields import Boolean, Identifier
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.processing.processing import OrderProcessing


@dispatch.command(part_of="OrderProcessing")
class MarkItemReady:
    """Tick (or untick) a line item as physically available."""

    processing_id = Identifier(required=True)
    order_item_id = Identifier(required=True)
    ready = Boolean(default=True)


@dispatch.command_handler(part_of=OrderProcessing)
class ReadinessHandler:
    @handle(MarkItemReady)
    def mark_item_ready(self, command):
        repo = current_domain.repository_for(OrderProcessing)
        proc = repo.get(command.processing_id)
        proc.mark_item_ready(command.order_item_id, ready=command.ready is not False)
        repo.add(proc)
        return sorted(proc.confirmed_items)
