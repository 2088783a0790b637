import os
from dataclasses import dataclass
from typing import Optional, Dict, Any
from datetime import datetime, timedelta
from cryptography.fernet import Fernet
from cryptography.fernet import InvalidToken
from jose import jwt
import hashlib
import hmac
import time
import json
import base64
from shop_insights.core.config import get_settings

settings = get_settings()

# Token encryption configuration
def get_encryption_key() -> bytes:
    key = os.getenv("ENCRYPTION_KEY")
    if not key:
        raise ValueError("ENCRYPTION_KEY environment variable is not set")
    return key.encode() if isinstance(key, str) else key

def get_fernet() -> Fernet:
    return Fernet(get_encryption_key())

def encrypt_token(token: str) -> str:
    """
    Encrypt a token using Fernet symmetric encryption.
    Returns the encrypted token as a base64-encoded string.
    """
    if not token:
        return ""

    f = get_fernet()
    encrypted_bytes = f.encrypt(token.encode())
    return encrypted_bytes.decode()

def decrypt_token(encrypted_token: str) -> Optional[str]:
    """
    Decrypt a token using Fernet symmetric encryption.
    Returns the decrypted token as a string, or None if decryption fails.
    """
    if not encrypted_token:
        return None

    try:
        token_str = encrypted_token.decode() if isinstance(encrypted_token, bytes) else str(encrypted_token)
        decrypted_bytes = get_fernet().decrypt(token_str.encode())
        return decrypted_bytes.decode()
    except InvalidToken:
        return None

def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token with the given data and expiration time.
    Used by tests and tooling; production tokens come from the identity provider.
    """
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=30))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def create_secure_state(user_id: Optional[str]) -> str:
    """
    Create a signed OAuth state parameter carrying the user id.

    Args:
        user_id: The user ID to include in the state (may be None for anonymous installs)

    Returns:
        Encoded and signed state string
    """
    state_data = {
        "user_id": user_id,
        "timestamp": int(time.time()),
        "nonce": os.urandom(8).hex()
    }
    signature = hmac.new(
        settings.SECRET_KEY.encode(),
        json.dumps(state_data).encode(),
        hashlib.sha256
    ).hexdigest()

    combined = {"data": state_data, "signature": signature}
    return base64.urlsafe_b64encode(json.dumps(combined).encode()).decode()

def verify_secure_state(state: str, max_age: int = 900) -> dict:
    """
    Verify and decode a state parameter created by create_secure_state.

    Raises:
        ValueError: If state is invalid, tampered with, or older than max_age seconds
    """
    try:
        decoded = json.loads(base64.urlsafe_b64decode(state.encode()).decode())
    except (ValueError, TypeError, AttributeError) as e:
        raise ValueError(f"Invalid state parameter: {str(e)}")

    state_data = decoded.get("data")
    received_signature = decoded.get("signature")
    if not state_data or not received_signature:
        raise ValueError("Invalid state parameter: missing data or signature")

    expected_signature = hmac.new(
        settings.SECRET_KEY.encode(),
        json.dumps(state_data).encode(),
        hashlib.sha256
    ).hexdigest()
    if not hmac.compare_digest(expected_signature, received_signature):
        raise ValueError("Invalid state parameter: signature verification failed")

    if int(time.time()) - state_data.get("timestamp", 0) > max_age:
        raise ValueError("Invalid state parameter: state has expired")

    return state_data


@dataclass
class WebhookVerification:
    valid: bool
    message: Optional[str] = None


def compute_webhook_hmac(body: bytes, secret: str) -> str:
    """Base64-encoded HMAC-SHA256 of the raw request body."""
    digest = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode()

def verify_webhook_hmac(body: bytes, signature: Optional[str], secret: Optional[str]) -> WebhookVerification:
    """
    Check a Shopify ``X-Shopify-Hmac-Sha256`` header against the raw body.

    The digest comparison is constant-time.
    """
    if not signature:
        return WebhookVerification(False, "No HMAC header present.")
    if not secret:
        return WebhookVerification(False, "Shopify API secret is not configured.")

    computed = compute_webhook_hmac(body, secret)
    if not hmac.compare_digest(computed.encode(), signature.strip().encode()):
        return WebhookVerification(False, "HMAC signature mismatch.")
    return WebhookVerification(True)
