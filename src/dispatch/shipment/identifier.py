"""Tracking identifiers and scanned QR payloads.

Canonical form: ``TRK-XXX-YYY`` where each group is exactly three characters
from ``[A-Z0-9]``. Comparison is case-sensitive.

Scanners hand us either a bare code or the JSON payload printed on shipping
labels (``{"trackingId": ..., "trackingUrl": ..., "orderNumber": ...}``).
A JSON payload's ``trackingId`` is trusted as-is; only bare codes are checked
against the canonical pattern.
"""

import json
import os
import re
import secrets
import string
from dataclasses import dataclass

from protean.exceptions import ValidationError

TRACKING_ID_PATTERN = re.compile(r"TRK-[A-Z0-9]{3}-[A-Z0-9]{3}")

DEFAULT_TRACKING_URL_BASE = "https://autopartsstore.co.ke/track"

_ALPHABET = string.ascii_uppercase + string.digits


class UnrecognizedScan(ValidationError):
    """Scanned input is neither a JSON payload with a trackingId nor a canonical code."""

    def __init__(self, raw: str):
        self.raw = raw
        super().__init__({"scan": ["Unrecognized code"]})


@dataclass(frozen=True)
class CanonicalScan:
    """A bare ``TRK-XXX-YYY`` code."""

    tracking_id: str

    @property
    def tracking_url(self) -> str:
        return tracking_url_for(self.tracking_id)

    @property
    def order_number(self) -> None:
        return None


@dataclass(frozen=True)
class StructuredScan:
    """A label QR payload, passed through without shape validation."""

    tracking_id: str
    tracking_url: str | None = None
    order_number: str | None = None


ScanPayload = CanonicalScan | StructuredScan


def is_valid_tracking_id(value: str) -> bool:
    return isinstance(value, str) and TRACKING_ID_PATTERN.fullmatch(value) is not None


def tracking_url_for(tracking_id: str) -> str:
    base = os.environ.get("TRACKING_URL_BASE", DEFAULT_TRACKING_URL_BASE).rstrip("/")
    return f"{base}/{tracking_id}"


def mint_tracking_id() -> str:
    """Generate a fresh random canonical tracking identifier."""
    first = "".join(secrets.choice(_ALPHABET) for _ in range(3))
    second = "".join(secrets.choice(_ALPHABET) for _ in range(3))
    return f"TRK-{first}-{second}"


def parse_scan(raw: str) -> ScanPayload:
    """Resolve scanner output into a tracking payload.

    Raises:
        UnrecognizedScan: when ``raw`` is neither form.
    """
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError):
        payload = None

    if isinstance(payload, dict) and payload.get("trackingId"):
        return StructuredScan(
            tracking_id=payload["trackingId"],
            tracking_url=payload.get("trackingUrl"),
            order_number=payload.get("orderNumber"),
        )

    candidate = raw.strip() if isinstance(raw, str) else ""
    if TRACKING_ID_PATTERN.fullmatch(candidate):
        return CanonicalScan(tracking_id=candidate)

    raise UnrecognizedScan(raw)


def qr_payload(tracking_id: str, order_number: str | None = None) -> str:
    """JSON payload encoded into the QR code printed on shipping labels."""
    payload = {"trackingId": tracking_id, "trackingUrl": tracking_url_for(tracking_id)}
    if order_number:
        payload["orderNumber"] = order_number
    return json.dumps(payload)
