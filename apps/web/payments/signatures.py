"""
MercadoPago webhook signature verification.

MercadoPago signs each delivery with an ``x-signature`` header of the form
``ts=<unix seconds>,v1=<hex hmac>``. The HMAC-SHA256 is computed with the
webhook secret over the manifest::

    id:<resource id>;request-id:<x-request-id>;ts:<ts>;

where the resource id is the ``data.id`` (or ``id``) query parameter, or the
literal ``null`` when the query carries neither.
"""

import hashlib
import hmac
import time
from dataclasses import dataclass
from enum import Enum

# Deliveries older (or newer) than this are rejected as replays
SIGNATURE_TOLERANCE_SECONDS = 300

# Signed in place of the resource id when the query has none
MISSING_RESOURCE_ID = "null"


class SignatureFailure(str, Enum):
    """Why a signature was rejected."""

    MISSING_HEADERS = "missing_headers"
    MALFORMED_SIGNATURE = "malformed_signature"
    EXPIRED = "expired"
    MISMATCH = "mismatch"


@dataclass(frozen=True)
class SignatureResult:
    """Outcome of a signature check."""

    valid: bool
    reason: SignatureFailure | None = None

    @property
    def message(self) -> str:
        """Human-readable reason for logs and responses."""
        return {
            None: "Valid signature",
            SignatureFailure.MISSING_HEADERS: "Missing signature headers",
            SignatureFailure.MALFORMED_SIGNATURE: "Invalid signature format",
            SignatureFailure.EXPIRED: "Signature expired",
            SignatureFailure.MISMATCH: "Invalid signature",
        }[self.reason]


def _parse_signature_header(x_signature: str) -> dict[str, str]:
    parts: dict[str, str] = {}
    for part in x_signature.split(","):
        key, sep, value = part.partition("=")
        if sep:
            parts[key.strip()] = value.strip()
    return parts


def build_manifest(resource_id: str, request_id: str, ts: str) -> str:
    """Build the string MercadoPago signs."""
    return f"id:{resource_id};request-id:{request_id};ts:{ts};"


def sign_manifest(manifest: str, secret: str) -> str:
    """Hex HMAC-SHA256 of a manifest."""
    return hmac.new(secret.encode(), manifest.encode(), hashlib.sha256).hexdigest()


def verify_webhook_signature(
    x_signature: str | None,
    x_request_id: str | None,
    resource_id: str | None,
    secret: str,
    *,
    now: float | None = None,
) -> SignatureResult:
    """
    Verify a MercadoPago webhook signature.

    Args:
        x_signature: Value of the ``x-signature`` header.
        x_request_id: Value of the ``x-request-id`` header.
        resource_id: ``data.id`` (or ``id``) query parameter; None when absent.
        secret: Webhook secret from the MercadoPago dashboard.
        now: Current unix time in seconds (defaults to ``time.time()``).

    Returns:
        SignatureResult; ``reason`` is set when the signature is rejected.
    """
    if not x_signature or not x_request_id:
        return SignatureResult(False, SignatureFailure.MISSING_HEADERS)

    parts = _parse_signature_header(x_signature)
    ts = parts.get("ts")
    v1 = parts.get("v1")
    if not ts or not v1:
        return SignatureResult(False, SignatureFailure.MALFORMED_SIGNATURE)

    try:
        ts_ms = int(ts) * 1000
    except ValueError:
        return SignatureResult(False, SignatureFailure.MALFORMED_SIGNATURE)

    now_ms = int((time.time() if now is None else now) * 1000)
    if abs(now_ms - ts_ms) > SIGNATURE_TOLERANCE_SECONDS * 1000:
        return SignatureResult(False, SignatureFailure.EXPIRED)

    manifest = build_manifest(resource_id or MISSING_RESOURCE_ID, x_request_id, ts)
    expected = sign_manifest(manifest, secret)
    if not hmac.compare_digest(expected.encode(), v1.encode()):
        return SignatureResult(False, SignatureFailure.MISMATCH)

    return SignatureResult(True)
