"""Tracking generation — command and handler.

Mints a fresh TRK-XXX-YYY identifier for an order and opens its scan history
with a PENDING scan. An order keeps the identifier it was first given.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.shipment.identifier import mint_tracking_id
from dispatch.shipment.shipment import Shipment

logger = structlog.get_logger(__name__)

_MAX_MINT_ATTEMPTS = 10


def find_shipment_for_order(order_id: str) -> Shipment | None:
    repo = current_domain.repository_for(Shipment)
    results = repo._dao.query.filter(order_id=str(order_id)).all()
    if not results or not results.items:
        return None
    return results.first


def mint_shipment(order_id: str, order_number: str | None = None) -> Shipment:
    """Mint an identifier not used by any existing shipment and persist its history."""
    repo = current_domain.repository_for(Shipment)
    for _ in range(_MAX_MINT_ATTEMPTS):
        tracking_id = mint_tracking_id()
        try:
            repo.get(tracking_id)
        except ObjectNotFoundError:
            shipment = Shipment.mint(tracking_id, order_id=order_id, order_number=order_number)
            repo.add(shipment)
            logger.info(
                "Tracking identifier minted",
                tracking_id=tracking_id,
                order_id=str(order_id),
            )
            return shipment
        logger.warning("Minted tracking identifier already in use, retrying", tracking_id=tracking_id)

    raise ValidationError({"tracking_id": ["Could not mint a unique tracking identifier"]})


@dispatch.command(part_of="Shipment")
class GenerateTracking:
    """Mint a tracking identifier for an order."""

    order_id = Identifier(required=True)
    order_number = String(max_length=50)


@dispatch.command_handler(part_of=Shipment)
class GenerateTrackingHandler:
    @handle(GenerateTracking)
    def generate_tracking(self, command):
        existing = find_shipment_for_order(command.order_id)
        if existing is not None:
            logger.info(
                "Order already has a tracking identifier",
                tracking_id=existing.tracking_id,
                order_id=str(command.order_id),
            )
            return existing.tracking_id

        shipment = mint_shipment(command.order_id, command.order_number)
        return shipment.tracking_id
