"""Tests for MercadoPago webhook signature verification."""

import pytest

from apps.web.payments.signatures import (
    SIGNATURE_TOLERANCE_SECONDS,
    SignatureFailure,
    build_manifest,
    sign_manifest,
    verify_webhook_signature,
)

SECRET = "test-webhook-secret"
NOW = 1_767_225_600  # 2026-01-01T00:00:00Z


def _header(resource_id="12345", request_id="req-1", ts=NOW, secret=SECRET):
    v1 = sign_manifest(build_manifest(resource_id, request_id, str(ts)), secret)
    return f"ts={ts},v1={v1}"


class TestBuildManifest:
    """Tests for the signed manifest format."""

    def test_manifest_format(self):
        """The manifest ends with a trailing semicolon."""
        assert build_manifest("1", "abc", "99") == "id:1;request-id:abc;ts:99;"


class TestVerifyWebhookSignature:
    """Tests for verify_webhook_signature."""

    def test_valid_signature(self):
        """A correctly signed, fresh delivery verifies."""
        result = verify_webhook_signature(_header(), "req-1", "12345", SECRET, now=NOW)

        assert result.valid is True
        assert result.reason is None

    def test_header_with_spaces(self):
        """Whitespace around parts is tolerated."""
        header = _header().replace(",", ", ")

        assert verify_webhook_signature(header, "req-1", "12345", SECRET, now=NOW).valid

    @pytest.mark.parametrize(
        "x_signature,x_request_id",
        [(None, "req-1"), ("ts=1,v1=abc", None), ("", "")],
    )
    def test_missing_headers(self, x_signature, x_request_id):
        """Both headers are required."""
        result = verify_webhook_signature(x_signature, x_request_id, "12345", SECRET, now=NOW)

        assert result.valid is False
        assert result.reason == SignatureFailure.MISSING_HEADERS
        assert result.message == "Missing signature headers"

    @pytest.mark.parametrize(
        "x_signature", ["v1=abc", f"ts={NOW}", "garbage", "ts=soon,v1=abc"]
    )
    def test_malformed_signature(self, x_signature):
        """Headers without a numeric ts and a v1 are malformed."""
        result = verify_webhook_signature(x_signature, "req-1", "12345", SECRET, now=NOW)

        assert result.reason == SignatureFailure.MALFORMED_SIGNATURE
        assert result.message == "Invalid signature format"

    def test_expired_signature(self):
        """Deliveries outside the tolerance window are rejected."""
        old = NOW - SIGNATURE_TOLERANCE_SECONDS - 1
        result = verify_webhook_signature(
            _header(ts=old), "req-1", "12345", SECRET, now=NOW
        )

        assert result.reason == SignatureFailure.EXPIRED
        assert result.message == "Signature expired"

    def test_future_signature_rejected(self):
        """Timestamps far in the future are also rejected."""
        future = NOW + SIGNATURE_TOLERANCE_SECONDS + 1
        result = verify_webhook_signature(
            _header(ts=future), "req-1", "12345", SECRET, now=NOW
        )

        assert result.reason == SignatureFailure.EXPIRED

    def test_edge_of_window_accepted(self):
        """Exactly the tolerance is still accepted."""
        edge = NOW - SIGNATURE_TOLERANCE_SECONDS
        result = verify_webhook_signature(
            _header(ts=edge), "req-1", "12345", SECRET, now=NOW
        )

        assert result.valid is True

    @pytest.mark.parametrize(
        "resource_id,request_id,secret",
        [
            ("99999", "req-1", SECRET),
            ("12345", "req-2", SECRET),
            ("12345", "req-1", "other-secret"),
        ],
    )
    def test_mismatch(self, resource_id, request_id, secret):
        """Any change to the signed fields fails verification."""
        result = verify_webhook_signature(
            _header(), request_id, resource_id, secret, now=NOW
        )

        assert result.reason == SignatureFailure.MISMATCH
        assert result.message == "Invalid signature"

    def test_single_character_change_in_v1(self):
        """Flipping one hex digit of v1 fails verification."""
        header = _header()
        last = header[-1]
        tampered = header[:-1] + ("0" if last != "0" else "1")

        result = verify_webhook_signature(tampered, "req-1", "12345", SECRET, now=NOW)

        assert result.reason == SignatureFailure.MISMATCH

    @pytest.mark.parametrize("resource_id", [None, ""])
    def test_missing_resource_id_signed_as_null(self, resource_id):
        """Without a data.id the manifest carries the literal id null."""
        header = _header(resource_id="null")

        assert verify_webhook_signature(header, "req-1", resource_id, SECRET, now=NOW).valid

    def test_missing_resource_id_not_signed_as_empty(self):
        """An empty id in the manifest does not stand in for a missing one."""
        header = _header(resource_id="")

        result = verify_webhook_signature(header, "req-1", None, SECRET, now=NOW)

        assert result.reason == SignatureFailure.MISMATCH
