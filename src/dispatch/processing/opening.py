"""Opening order processing — command and handler.

A vendor opens the workflow on an order that is still PENDING or CONFIRMED.
An order with an unfinished workflow resumes it instead of starting over.
"""

import json

import structlog
from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.processing.processing import OrderProcessing

logger = structlog.get_logger(__name__)


def find_open_processing(order_id: str) -> OrderProcessing | None:
    repo = current_domain.repository_for(OrderProcessing)
    results = repo._dao.query.filter(order_id=str(order_id), completed=False).all()
    if not results or not results.items:
        return None
    return results.first


@dispatch.command(part_of="OrderProcessing")
class OpenOrderProcessing:
    """Open the processing workflow for an order."""

    order_id = Identifier(required=True)
    order_number = String(max_length=50)
    customer_email = String(max_length=254)
    order_status = String(required=True, max_length=50)
    items = Text(required=True)  # JSON list of item dicts


@dispatch.command_handler(part_of=OrderProcessing)
class OpenOrderProcessingHandler:
    @handle(OpenOrderProcessing)
    def open_processing(self, command):
        items_data = json.loads(command.items) if isinstance(command.items, str) else command.items
        existing = find_open_processing(command.order_id)
        if existing is not None:
            logger.info(
                "Resuming order processing",
                processing_id=str(existing.id),
                order_id=str(command.order_id),
                current_step=existing.current_step,
            )
            return str(existing.id)

        proc = OrderProcessing.open(
            order_id=command.order_id,
            order_status=command.order_status,
            items_data=items_data,
            order_number=command.order_number,
            customer_email=command.customer_email,
        )
        current_domain.repository_for(OrderProcessing).add(proc)
        logger.info(
            "Order processing opened",
            processing_id=str(proc.id),
            order_id=str(command.order_id),
            item_count=len(items_data),
        )
        return str(proc.id)
