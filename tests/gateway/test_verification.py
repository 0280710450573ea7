"""Tests for webhook signature verification primitives."""

import base64
import hashlib
import hmac

import pytest

from src.gateway.verification import (
    BaseSigningSecretVerifier,
    GenericWebhookVerifier,
    MissingSignatureError,
    VerificationFailureReason,
    compute_hex_signature,
    compute_signature,
    verify,
    verify_hex,
)

SECRET = "shpss_test_secret"

BODIES = [
    b"",
    b"{}",
    b'{"id": 820982911946154508, "email": "jon@example.com"}',
    b'{"id":820982911946154508,"email":"jon@example.com"}',
    "{\"note\": \"café ☃\"}".encode(),
    bytes(range(256)),
    b"x" * 100_000,
]


class TestComputeSignature:
    def test_matches_reference_hmac(self):
        body = b'{"topic": "orders/create"}'
        expected = base64.b64encode(
            hmac.new(SECRET.encode(), body, hashlib.sha256).digest()
        ).decode()

        assert compute_signature(body, SECRET) == expected

    def test_hex_variant_matches_reference_hmac(self):
        body = b"payload"
        expected = hmac.new(SECRET.encode(), body, hashlib.sha256).hexdigest()

        assert compute_hex_signature(body, SECRET) == expected

    def test_distinct_bodies_have_distinct_signatures(self):
        signatures = {compute_signature(body, SECRET) for body in BODIES}
        assert len(signatures) == len(BODIES)

    def test_whitespace_changes_signature(self):
        """Re-serialized JSON must not verify against the original signature."""
        compact = b'{"a":1,"b":2}'
        spaced = b'{"a": 1, "b": 2}'
        assert compute_signature(compact, SECRET) != compute_signature(spaced, SECRET)


class TestVerify:
    @pytest.mark.parametrize("body", BODIES)
    def test_correct_signature_verifies(self, body):
        assert verify(body, compute_signature(body, SECRET), SECRET) is True

    @pytest.mark.parametrize("body", BODIES)
    def test_tampered_signature_fails(self, body):
        assert verify(body, compute_signature(body, SECRET) + "x", SECRET) is False

    def test_wrong_secret_fails(self):
        body = b'{"id": 1}'
        assert verify(body, compute_signature(body, "other-secret"), SECRET) is False

    def test_modified_body_fails(self):
        signature = compute_signature(b'{"total": "10.00"}', SECRET)
        assert verify(b'{"total": "0.01"}', signature, SECRET) is False

    def test_empty_signature_fails(self):
        assert verify(b"{}", "", SECRET) is False

    def test_empty_secret_fails(self):
        assert verify(b"{}", compute_signature(b"{}", ""), "") is False

    def test_non_ascii_signature_does_not_raise(self):
        assert verify(b"{}", "sïgnature", SECRET) is False

    def test_hex_verify_is_case_insensitive(self):
        body = b"event"
        assert verify_hex(body, compute_hex_signature(body, SECRET).upper(), SECRET) is True
        assert verify_hex(body, "deadbeef", SECRET) is False


class _RaisingVerifier(BaseSigningSecretVerifier):
    source_type = "test"

    def __init__(self, exc: Exception | None):
        self._exc = exc

    def verify_func(self, headers, body, secret):
        if self._exc:
            raise self._exc


class TestBaseSigningSecretVerifier:
    def test_success(self):
        result = _RaisingVerifier(None).verify({}, b"{}", SECRET)
        assert result.success is True
        assert result.reason is None

    def test_missing_secret_is_not_configured(self):
        result = _RaisingVerifier(None).verify({}, b"{}", "")
        assert result.success is False
        assert result.reason == VerificationFailureReason.NOT_CONFIGURED

    def test_missing_signature_is_missing_headers(self):
        result = _RaisingVerifier(MissingSignatureError("no header")).verify({}, b"{}", SECRET)
        assert result.success is False
        assert result.reason == VerificationFailureReason.MISSING_HEADERS

    def test_mismatch_is_invalid_signature(self):
        result = _RaisingVerifier(ValueError("bad signature")).verify({}, b"{}", SECRET)
        assert result.success is False
        assert result.reason == VerificationFailureReason.INVALID_SIGNATURE
        assert result.error == "bad signature"


class TestGenericWebhookVerifier:
    def test_accepts_x_webhook_signature(self):
        body = b'{"event": "profile.updated"}'
        headers = {"x-webhook-signature": compute_hex_signature(body, SECRET)}
        assert GenericWebhookVerifier().verify(headers, body, SECRET).success is True

    def test_accepts_x_signature(self):
        body = b'{"type": "ping"}'
        headers = {"x-signature": compute_hex_signature(body, SECRET)}
        assert GenericWebhookVerifier().verify(headers, body, SECRET).success is True

    def test_rejects_missing_signature(self):
        result = GenericWebhookVerifier().verify({}, b"{}", SECRET)
        assert result.success is False
        assert result.reason == VerificationFailureReason.MISSING_HEADERS

    def test_rejects_wrong_signature(self):
        headers = {"x-webhook-signature": compute_hex_signature(b"other", SECRET)}
        result = GenericWebhookVerifier().verify(headers, b"{}", SECRET)
        assert result.reason == VerificationFailureReason.INVALID_SIGNATURE
