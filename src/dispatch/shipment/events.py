"""Shipment domain events — immutable facts about a shipment's scan history."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from dispatch.domain import dispatch


@dispatch.event(part_of="Shipment")
class TrackingGenerated:
    """A tracking identifier was minted for an order."""

    __version__ = 1

    tracking_id = String(required=True)
    order_id = Identifier()
    order_number = String()
    tracking_url = String()
    generated_at = DateTime(required=True)


@dispatch.event(part_of="Shipment")
class ShipmentScanned:
    """A status change was accepted into the shipment's scan history."""

    __version__ = 1

    tracking_id = String(required=True)
    order_id = Identifier()
    sequence = Integer(required=True)
    previous_status = String()
    status = String(required=True)
    latitude = Float()
    longitude = Float()
    notes = String()
    scanned_at = DateTime(required=True)
