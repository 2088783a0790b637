import pytest
from shop_insights.core.security import (
    compute_webhook_hmac,
    create_secure_state,
    decrypt_token,
    encrypt_token,
    get_encryption_key,
    verify_secure_state,
    verify_webhook_hmac,
)

# Test data
TEST_TOKEN = "shpat_12345abcde67890fghijk"
TEST_SECRET = "shhh"

def test_token_encryption():
    """Test that token encryption and decryption work correctly"""
    encrypted = encrypt_token(TEST_TOKEN)
    assert encrypted != TEST_TOKEN
    assert decrypt_token(encrypted) == TEST_TOKEN

def test_token_encryption_empty_values():
    """Test handling of empty/None values in token encryption"""
    assert encrypt_token("") == ""
    assert decrypt_token("") is None
    assert encrypt_token(None) == ""

def test_token_decryption_invalid_token():
    assert decrypt_token("invalid_token") is None
    # valid base64, not a Fernet token
    assert decrypt_token("d2VsbCB0aGlzIGlzIG5vdCBhIHZhbGlkIHRva2Vu") is None

def test_encryption_key_missing(monkeypatch):
    monkeypatch.delenv("ENCRYPTION_KEY")
    with pytest.raises(ValueError):
        get_encryption_key()

def test_webhook_hmac_known_vectors():
    """Digests match ``openssl dgst -sha256 -hmac shhh -binary | base64``"""
    assert compute_webhook_hmac(b"{}", TEST_SECRET) == "kDcWdgz/MsF5d9mHWVegfnO76N9JqUiu65ef3AdbnTY="
    assert compute_webhook_hmac(b'{"id":1}', TEST_SECRET) == "Lcc9Yf2U6zbkFFL44wuL0uEJMTo4Q8mC5iIG3KWCtLA="

def test_webhook_hmac_valid_signature():
    body = b'{"id":1}'
    result = verify_webhook_hmac(body, compute_webhook_hmac(body, TEST_SECRET), TEST_SECRET)
    assert result.valid is True
    assert result.message is None

def test_webhook_hmac_rejects_modified_body():
    signature = compute_webhook_hmac(b'{"id":1}', TEST_SECRET)
    result = verify_webhook_hmac(b'{"id":2}', signature, TEST_SECRET)
    assert result.valid is False
    assert result.message == "HMAC signature mismatch."

def test_webhook_hmac_rejects_other_secret():
    body = b"{}"
    result = verify_webhook_hmac(body, compute_webhook_hmac(body, "other"), TEST_SECRET)
    assert result.valid is False

def test_webhook_hmac_missing_header():
    result = verify_webhook_hmac(b"{}", None, TEST_SECRET)
    assert result.valid is False
    assert result.message == "No HMAC header present."
    assert verify_webhook_hmac(b"{}", "", TEST_SECRET).message == "No HMAC header present."

def test_webhook_hmac_missing_secret():
    result = verify_webhook_hmac(b"{}", "kDcWdgz/MsF5d9mHWVegfnO76N9JqUiu65ef3AdbnTY=", "")
    assert result.valid is False
    assert result.message == "Shopify API secret is not configured."

def test_secure_state_round_trip():
    state = create_secure_state("user-123")
    data = verify_secure_state(state)
    assert data["user_id"] == "user-123"

def test_secure_state_anonymous_install():
    assert verify_secure_state(create_secure_state(None))["user_id"] is None

def test_secure_state_rejects_garbage():
    with pytest.raises(ValueError):
        verify_secure_state("not-a-state")

def test_secure_state_expired():
    state = create_secure_state("user-123")
    with pytest.raises(ValueError, match="expired"):
        verify_secure_state(state, max_age=-1)
