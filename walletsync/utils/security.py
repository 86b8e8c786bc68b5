"""
Security utilities.

Provides functions to:
- Mask wallet addresses and transaction hashes in logs
- Authenticate webhook requests by shared secret
"""

import hashlib
import hmac


def mask_address(address: str | None) -> str:
    """
    Mask wallet address for logging: 0x1234...5678

    Args:
        address: Wallet address to mask

    Returns:
        Masked address showing first 6 and last 4 characters

    Examples:
        >>> mask_address("0x1234567890abcdef1234567890abcdef12345678")
        '0x1234...5678'
        >>> mask_address(None)
        '***'
        >>> mask_address("short")
        '***'
    """
    if not address or len(address) < 10:
        return "***"
    return f"{address[:6]}...{address[-4:]}"


def mask_tx_hash(tx_hash: str | None) -> str:
    """
    Mask transaction hash for logging.

    Args:
        tx_hash: Transaction hash to mask

    Returns:
        Masked hash showing first 10 and last 6 characters

    Examples:
        >>> mask_tx_hash("0x1234567890abcdef1234567890abcdef1234567890abcdef1234567890abcdef")
        '0x12345678...abcdef'
    """
    if not tx_hash or len(tx_hash) < 16:
        return "***"
    return f"{tx_hash[:10]}...{tx_hash[-6:]}"


def compute_signature(secret: str, body: bytes) -> str:
    """HMAC-SHA256 hex digest of a request body keyed by the shared secret."""
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_webhook_signature(
    secret: str | None,
    signature: str | None,
    body: bytes,
) -> bool:
    """
    Verify a webhook signature header.

    The header may carry the shared secret itself or the HMAC-SHA256 of the
    raw body keyed by it. Comparison is constant-time.

    Args:
        secret: Configured shared secret; None disables authentication
        signature: Value of the signature header
        body: Raw request body

    Returns:
        True if the request is authenticated
    """
    if not secret:
        return True
    if not signature:
        return False

    if hmac.compare_digest(signature.encode("utf-8"), secret.encode("utf-8")):
        return True

    expected = compute_signature(secret, body)
    return hmac.compare_digest(signature.strip().lower().encode("utf-8"), expected.encode("utf-8"))
