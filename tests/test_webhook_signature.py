import pytest

from quoteflow.utils.webhook_signature import (
    WebhookSignatureError,
    build_signature_header,
    verify_signature,
)

SECRET = "whsec_unit"
BODY = b'{"type": "payment_intent.succeeded"}'
NOW = 1_760_000_000


def test_valid_signature():
    header = build_signature_header(SECRET, BODY, timestamp=NOW)
    assert verify_signature(BODY, header, SECRET, now=NOW + 10) == NOW


def test_rotated_secret_accepts_any_v1():
    good = build_signature_header(SECRET, BODY, timestamp=NOW).split(",")[1]
    header = f"t={NOW},v1=deadbeef,{good}"
    assert verify_signature(BODY, header, SECRET, now=NOW) == NOW


def test_tampered_body_is_rejected():
    header = build_signature_header(SECRET, BODY, timestamp=NOW)
    with pytest.raises(WebhookSignatureError, match="mismatch"):
        verify_signature(BODY + b" ", header, SECRET, now=NOW)


def test_stale_timestamp_is_rejected():
    header = build_signature_header(SECRET, BODY, timestamp=NOW)
    with pytest.raises(WebhookSignatureError, match="tolerance"):
        verify_signature(BODY, header, SECRET, tolerance=300, now=NOW + 301)


@pytest.mark.parametrize("header", [None, "", "v1=abc", f"t={NOW}", "t=soon,v1=abc"])
def test_malformed_headers_are_rejected(header):
    with pytest.raises(WebhookSignatureError):
        verify_signature(BODY, header, SECRET, now=NOW)


def test_missing_secret_is_rejected():
    header = build_signature_header(SECRET, BODY, timestamp=NOW)
    with pytest.raises(WebhookSignatureError):
        verify_signature(BODY, header, "", now=NOW)
