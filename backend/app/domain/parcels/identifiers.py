"""
Tracking Identifier Generator (Domain Logic).

Mints human-shareable tracking IDs and the verification hash that the
QR code carries. All functions are pure apart from reading the clock
and the OS random source.
"""

import hashlib
import hmac
import secrets
import string
import time
from typing import Optional, Tuple

from backend.app.core.config import settings
from backend.app.core.exceptions import ValidationError

SUFFIX_ALPHABET = string.digits + string.ascii_uppercase
SUFFIX_LENGTH = 10  # ~51 bits of entropy per millisecond bucket
QR_SEPARATOR = ":"


def generate_tracking_id(prefix: Optional[str] = None) -> str:
    """
    Generate a tracking ID.

    Format: ``<PREFIX>-<epoch millis>-<random suffix>``, e.g.
    ``ADR-1735689600000-7K2Q9ZB1XM``.

    Args:
        prefix: Override for the configured prefix

    Returns:
        Tracking ID string
    """
    prefix = prefix or settings.tracking_id_prefix
    millis = time.time_ns() // 1_000_000
    suffix = "".join(secrets.choice(SUFFIX_ALPHABET) for _ in range(SUFFIX_LENGTH))
    return f"{prefix}-{millis}-{suffix}"


def derive_verification_hash(tracking_id: str) -> str:
    """SHA-256 hex digest of the tracking ID (the parcel's ``qr_hash``)."""
    return hashlib.sha256(tracking_id.encode("utf-8")).hexdigest()


def build_qr_payload(tracking_id: str) -> str:
    """String encoded into the parcel's QR image: ``<tracking_id>:<qr_hash>``."""
    return f"{tracking_id}{QR_SEPARATOR}{derive_verification_hash(tracking_id)}"


def parse_qr_payload(payload: str) -> Tuple[str, str]:
    """
    Split a scanned QR payload into tracking ID and hash.

    Raises:
        ValidationError: If the payload is not ``<tracking_id>:<hash>``
    """
    tracking_id, sep, qr_hash = (payload or "").strip().rpartition(QR_SEPARATOR)
    if not sep or not tracking_id or len(qr_hash) != 64:
        raise ValidationError("Malformed QR payload", details={"payload": payload})
    return tracking_id, qr_hash.lower()


def verify_qr_payload(payload: str) -> str:
    """
    Verify a scanned QR payload.

    Returns:
        The tracking ID carried by the payload

    Raises:
        ValidationError: If the payload is malformed or its hash does not match
    """
    tracking_id, qr_hash = parse_qr_payload(payload)
    if not hmac.compare_digest(qr_hash, derive_verification_hash(tracking_id)):
        raise ValidationError(
            "QR payload failed verification",
            details={"tracking_id": tracking_id}
        )
    return tracking_id
