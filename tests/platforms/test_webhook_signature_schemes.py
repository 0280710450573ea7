"""Tests for the per-platform webhook signature schemes."""

import hashlib
import hmac
import json
import time

import pytest

from platforms.klaviyo import KlaviyoWebhookVerifier
from platforms.shopify import (
    ShopifyWebhookVerifier,
    extract_shopify_webhook_metadata,
    missing_shopify_headers,
    verify_shopify_webhook,
)
from platforms.stripe import (
    StripeWebhookVerifier,
    parse_stripe_signature_header,
    verify_stripe_webhook,
)
from src.gateway.verification import (
    MissingSignatureError,
    VerificationFailureReason,
    compute_hex_signature,
    compute_signature,
)

SECRET = "whsec_test"
BODY = json.dumps({"id": 450789469, "topic": "orders/create"}).encode()


def _stripe_header(body: bytes, secret: str, timestamp: int, extra: str = "") -> str:
    digest = hmac.new(secret.encode(), f"{timestamp}.".encode() + body, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}{extra}"


class TestShopify:
    def test_valid_signature(self):
        headers = {"x-shopify-hmac-sha256": compute_signature(BODY, SECRET)}
        assert ShopifyWebhookVerifier().verify(headers, BODY, SECRET).success is True

    def test_hex_digest_is_rejected(self):
        """Shopify sends base64; a hex digest of the right HMAC must not pass."""
        headers = {"x-shopify-hmac-sha256": compute_hex_signature(BODY, SECRET)}
        result = ShopifyWebhookVerifier().verify(headers, BODY, SECRET)
        assert result.reason == VerificationFailureReason.INVALID_SIGNATURE

    def test_missing_header_raises_missing_signature(self):
        with pytest.raises(MissingSignatureError):
            verify_shopify_webhook({}, BODY, SECRET)

    def test_missing_required_headers(self):
        headers = {
            "x-shopify-topic": "orders/create",
            "x-shopify-shop-domain": "  ",
        }
        assert missing_shopify_headers(headers) == [
            "x-shopify-shop-domain",
            "x-shopify-hmac-sha256",
        ]

    def test_no_missing_headers(self):
        headers = {
            "x-shopify-topic": "orders/create",
            "x-shopify-shop-domain": "shop1.example",
            "x-shopify-hmac-sha256": "abc",
        }
        assert missing_shopify_headers(headers) == []

    def test_metadata_extraction(self):
        headers = {"x-shopify-webhook-id": "b54557e4", "x-shopify-api-version": "2024-01"}
        metadata = extract_shopify_webhook_metadata(headers, BODY.decode())

        assert metadata["payload_size"] == len(BODY)
        assert metadata["webhook_id"] == "b54557e4"
        assert metadata["api_version"] == "2024-01"
        assert metadata["entity_id"] == "450789469"

    def test_metadata_extraction_tolerates_bad_json(self):
        metadata = extract_shopify_webhook_metadata({}, "not json")
        assert metadata["parse_error"] == "Failed to parse JSON"
        assert metadata["payload_size"] == len("not json")


class TestKlaviyo:
    def test_valid_signature(self):
        headers = {"x-klaviyo-signature": compute_hex_signature(BODY, SECRET)}
        assert KlaviyoWebhookVerifier().verify(headers, BODY, SECRET).success is True

    def test_invalid_signature(self):
        headers = {"x-klaviyo-signature": compute_hex_signature(BODY, "wrong")}
        result = KlaviyoWebhookVerifier().verify(headers, BODY, SECRET)
        assert result.reason == VerificationFailureReason.INVALID_SIGNATURE

    def test_missing_signature(self):
        result = KlaviyoWebhookVerifier().verify({}, BODY, SECRET)
        assert result.reason == VerificationFailureReason.MISSING_HEADERS


class TestStripe:
    NOW = 1_700_000_000

    def test_parse_header(self):
        timestamp, signatures = parse_stripe_signature_header("t=123,v1=aaa,v0=zzz,v1=bbb")
        assert timestamp == 123
        assert signatures == ["aaa", "bbb"]

    def test_parse_header_with_bad_timestamp(self):
        timestamp, signatures = parse_stripe_signature_header("t=abc,v1=aaa")
        assert timestamp is None
        assert signatures == ["aaa"]

    def test_valid_signature(self):
        headers = {"stripe-signature": _stripe_header(BODY, SECRET, self.NOW)}
        verify_stripe_webhook(headers, BODY, SECRET, now=self.NOW + 10)

    def test_any_matching_v1_is_accepted(self):
        stale = hmac.new(b"old-secret", b"x", hashlib.sha256).hexdigest()
        header = f"t={self.NOW},v1={stale}," + _stripe_header(BODY, SECRET, self.NOW).split(",")[1]
        verify_stripe_webhook({"stripe-signature": header}, BODY, SECRET, now=self.NOW)

    def test_stale_timestamp_is_rejected(self):
        headers = {"stripe-signature": _stripe_header(BODY, SECRET, self.NOW)}
        with pytest.raises(ValueError, match="tolerance"):
            verify_stripe_webhook(headers, BODY, SECRET, now=self.NOW + 301)

    def test_future_timestamp_is_rejected(self):
        headers = {"stripe-signature": _stripe_header(BODY, SECRET, self.NOW)}
        with pytest.raises(ValueError, match="tolerance"):
            verify_stripe_webhook(headers, BODY, SECRET, now=self.NOW - 301)

    def test_wrong_secret_is_rejected(self):
        headers = {"stripe-signature": _stripe_header(BODY, "wrong", self.NOW)}
        with pytest.raises(ValueError, match="verification failed"):
            verify_stripe_webhook(headers, BODY, SECRET, now=self.NOW)

    def test_malformed_header_is_rejected(self):
        with pytest.raises(ValueError, match="Malformed"):
            verify_stripe_webhook({"stripe-signature": "v1=abc"}, BODY, SECRET, now=self.NOW)

    def test_non_ascii_signature_is_a_mismatch(self):
        headers = {"stripe-signature": f"t={self.NOW},v1=\u00e9abc"}
        with pytest.raises(ValueError, match="verification failed"):
            verify_stripe_webhook(headers, BODY, SECRET, now=self.NOW)

    def test_non_ascii_signature_reports_invalid_signature(self):
        headers = {"stripe-signature": f"t={int(time.time())},v1=\u00e9abc"}

        result = StripeWebhookVerifier().verify(headers, BODY, SECRET)

        assert result.success is False
        assert result.reason == VerificationFailureReason.INVALID_SIGNATURE

    def test_missing_header_reports_missing_headers(self):
        result = StripeWebhookVerifier().verify({}, BODY, SECRET)
        assert result.reason == VerificationFailureReason.MISSING_HEADERS
