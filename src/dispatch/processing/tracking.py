"""Shipment tracking for an order in processing — command and handler.

Mints a tracking identifier (or reuses the one the order already has),
attaches it to the workflow and offers it as the default tracking number.
Allowed any time before shipping details are captured.
"""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.processing.processing import OrderProcessing
from dispatch.shipment.generation import find_shipment_for_order, mint_shipment


@dispatch.command(part_of="OrderProcessing")
class GenerateShipmentTracking:
    processing_id = Identifier(required=True)


@dispatch.command_handler(part_of=OrderProcessing)
class ShipmentTrackingHandler:
    @handle(GenerateShipmentTracking)
    def generate_tracking(self, command):
        repo = current_domain.repository_for(OrderProcessing)
        proc = repo.get(command.processing_id)
        if proc.tracking_id:
            return proc.tracking_id

        shipment = find_shipment_for_order(proc.order_id)
        if shipment is None:
            proc.require_tracking_allowed()
            shipment = mint_shipment(proc.order_id, proc.order_number)

        proc.attach_tracking(shipment.tracking_id, shipment.tracking_url)
        repo.add(proc)
        return proc.tracking_id
