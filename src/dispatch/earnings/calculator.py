"""Vendor earnings — marketplace commission and VAT on that commission.

    marketplace_fee = order_subtotal × commission_rate   (clamped to min/max fee)
    vat_amount      = marketplace_fee × vat_rate
    vendor_payout   = order_subtotal − marketplace_fee − vat_amount

Commission is charged on the order subtotal only (not on shipping or tax),
and VAT applies to the commission, not to the order. Amounts are rounded to
cents; the payout absorbs the rounding so the three parts always add back up
to the subtotal.
"""

import os
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Float, String

from dispatch.domain import dispatch

DEFAULT_COMMISSION_RATE = 0.08
DEFAULT_VAT_RATE = 0.16

# Largest drift tolerated between the parts and the subtotal
_CONSERVATION_TOLERANCE = 0.01


class CommissionRule(Enum):
    STANDARD = "STANDARD"
    FLOOR = "FLOOR"
    CAP = "CAP"


def configured_commission_rate() -> float:
    return float(os.environ.get("MARKETPLACE_COMMISSION_RATE", DEFAULT_COMMISSION_RATE))


def configured_vat_rate() -> float:
    return float(os.environ.get("COMMISSION_VAT_RATE", DEFAULT_VAT_RATE))


@dispatch.value_object
class EarningsBreakdown:
    """Split of an order subtotal between marketplace and vendor."""

    order_subtotal = Float(required=True, min_value=0.0)
    commission_rate = Float(required=True, min_value=0.0, max_value=1.0)
    vat_rate = Float(required=True, min_value=0.0, max_value=1.0)
    base_commission = Float(required=True, min_value=0.0)
    marketplace_fee = Float(required=True, min_value=0.0)
    vat_amount = Float(required=True, min_value=0.0)
    vendor_payout = Float(required=True)
    rule_type = String(max_length=20, choices=CommissionRule, default=CommissionRule.STANDARD.value)

    @property
    def total_deductions(self) -> float:
        return round(self.marketplace_fee + self.vat_amount, 2)

    @invariant.post
    def parts_must_add_up_to_subtotal(self):
        total = self.marketplace_fee + self.vat_amount + self.vendor_payout
        if abs(total - self.order_subtotal) > _CONSERVATION_TOLERANCE:
            raise ValidationError({"vendor_payout": ["Fee, VAT and payout must add up to the order subtotal"]})


def breakdown(
    order_subtotal: float,
    commission_rate: float | None = None,
    vat_rate: float | None = None,
    min_fee: float | None = None,
    max_fee: float | None = None,
) -> EarningsBreakdown:
    """Compute the earnings split for an order subtotal.

    Rates default to the configured marketplace rates (8 % commission,
    16 % VAT on commission). ``min_fee`` and ``max_fee`` floor and cap the
    commission before VAT is applied.
    """
    if order_subtotal is None or order_subtotal < 0:
        raise ValidationError({"order_subtotal": ["Order subtotal must not be negative"]})
    if commission_rate is None:
        commission_rate = configured_commission_rate()
    if vat_rate is None:
        vat_rate = configured_vat_rate()

    base_commission = round(order_subtotal * commission_rate, 2)
    fee = base_commission
    rule = CommissionRule.STANDARD
    if min_fee is not None and fee < min_fee:
        fee, rule = round(min_fee, 2), CommissionRule.FLOOR
    elif max_fee is not None and fee > max_fee:
        fee, rule = round(max_fee, 2), CommissionRule.CAP

    vat_amount = round(fee * vat_rate, 2)
    payout = round(order_subtotal - fee - vat_amount, 2)

    return EarningsBreakdown(
        order_subtotal=order_subtotal,
        commission_rate=commission_rate,
        vat_rate=vat_rate,
        base_commission=base_commission,
        marketplace_fee=fee,
        vat_amount=vat_amount,
        vendor_payout=payout,
        rule_type=rule.value,
    )
