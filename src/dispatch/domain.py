"""Dispatch bounded context — shipment tracking and vendor order processing.

Owns the shipment scan history (tracking identifiers, the shipment status
state machine) and the vendor-side workflow that takes an order from
confirmation to courier handover. Order storage, document rendering and
customer messaging live outside this context and are reached through ports.
"""

from protean.domain import Domain

dispatch = Domain(name="dispatch")
