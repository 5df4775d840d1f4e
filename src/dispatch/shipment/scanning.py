"""Shipment scanning — command and handler.

Records a courier or rider status update against a tracking identifier's
scan history. An identifier never seen before is treated as PENDING, so
its history may be opened by a PENDING, PICKED_UP or CANCELLED scan.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Float, String
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.shipment.shipment import Shipment
from dispatch.shipment.status import ShipmentStatus


@dispatch.command(part_of="Shipment")
class RecordScan:
    """Record a shipment status change observed at a scanner."""

    tracking_id = String(required=True, max_length=100)
    status = String(required=True, max_length=50, choices=ShipmentStatus)
    latitude = Float()
    longitude = Float()
    notes = String(max_length=1000)


@dispatch.command_handler(part_of=Shipment)
class ScanHandler:
    @handle(RecordScan)
    def record_scan(self, command):
        repo = current_domain.repository_for(Shipment)
        try:
            shipment = repo.get(command.tracking_id)
        except ObjectNotFoundError:
            shipment = Shipment.open(command.tracking_id)

        scan = shipment.record_scan(
            status=command.status,
            latitude=command.latitude,
            longitude=command.longitude,
            notes=command.notes,
        )
        repo.add(shipment)
        return scan.sequence
