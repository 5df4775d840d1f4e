"""Order processing domain events — facts about a vendor working through an order.

All events are past tense, versioned, and carry what downstream handlers
(customer notification, dashboards) need without reloading the aggregate.
"""

from protean.fields import Boolean, DateTime, Float, Identifier, Integer, String, Text

from dispatch.domain import dispatch


@dispatch.event(part_of="OrderProcessing")
class ProcessingOpened:
    """A vendor opened the processing workflow for an order."""

    __version__ = 1

    processing_id = Identifier(required=True)
    order_id = Identifier(required=True)
    order_number = String()
    order_status = String(required=True)
    item_count = Integer(required=True)
    subtotal = Float(required=True)
    opened_at = DateTime(required=True)


@dispatch.event(part_of="OrderProcessing")
class ItemReadinessChanged:
    """A line item was marked (or unmarked) as ready to ship."""

    __version__ = 1

    processing_id = Identifier(required=True)
    order_item_id = Identifier(required=True)
    ready = Boolean(required=True)
    changed_at = DateTime(required=True)


@dispatch.event(part_of="OrderProcessing")
class AvailabilityConfirmed:
    """Every item was confirmed available; the vendor payout is now fixed."""

    __version__ = 1

    processing_id = Identifier(required=True)
    order_id = Identifier(required=True)
    order_subtotal = Float(required=True)
    marketplace_fee = Float(required=True)
    vat_amount = Float(required=True)
    vendor_payout = Float(required=True)
    confirmed_at = DateTime(required=True)


@dispatch.event(part_of="OrderProcessing")
class DocumentsPrepared:
    """Order documents were prepared and the order moved into processing."""

    __version__ = 1

    processing_id = Identifier(required=True)
    order_id = Identifier(required=True)
    documents = Text()  # JSON object: document kind -> URL
    prepared_at = DateTime(required=True)


@dispatch.event(part_of="OrderProcessing")
class TrackingAttached:
    """A minted tracking identifier was attached to the order."""

    __version__ = 1

    processing_id = Identifier(required=True)
    order_id = Identifier(required=True)
    tracking_id = String(required=True)
    tracking_url = String()
    attached_at = DateTime(required=True)


@dispatch.event(part_of="OrderProcessing")
class ShippingCaptured:
    """Courier and tracking number were recorded; the order is shipped."""

    __version__ = 1

    processing_id = Identifier(required=True)
    order_id = Identifier(required=True)
    tracking_number = String(required=True)
    courier = String(required=True)
    shipped_at = DateTime(required=True)


@dispatch.event(part_of="OrderProcessing")
class HandoverConfirmed:
    """The parcel was handed to the courier; the order is out for delivery."""

    __version__ = 1

    processing_id = Identifier(required=True)
    order_id = Identifier(required=True)
    order_number = String()
    customer_email = String()
    tracking_number = String(required=True)
    courier = String(required=True)
    tracking_url = String()
    dispatch_proof_reference = String()
    handed_over_at = DateTime(required=True)
