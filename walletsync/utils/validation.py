"""Address and amount validation utilities."""

from decimal import Decimal, InvalidOperation

from loguru import logger
from web3 import Web3


def validate_wallet_address(address: str) -> tuple[bool, str | None]:
    """
    Validate an EVM wallet address.

    Args:
        address: Wallet address to validate

    Returns:
        Tuple of (is_valid, error_message)
        - (True, None) if valid
        - (False, error_message) if invalid

    Examples:
        >>> validate_wallet_address("0x1234567890123456789012345678901234567890")
        (True, None)
        >>> validate_wallet_address("invalid")
        (False, 'Address must start with 0x')
    """
    if not address or not isinstance(address, str):
        return False, "Address is empty"

    address = address.strip()

    if not address:
        return False, "Address is empty"

    if not address.startswith("0x"):
        return False, "Address must start with 0x"

    if len(address) != 42:
        return False, "Address must be 42 characters"

    try:
        int(address[2:], 16)
    except ValueError:
        return False, "Invalid address format"

    try:
        Web3.to_checksum_address(address)
        return True, None
    except (ValueError, TypeError) as e:
        logger.debug(f"Address validation failed for {address}: {e}")
        return False, "Invalid address format"


def normalize_address(address: str | None) -> str:
    """Lower-case an address for case-insensitive comparison."""
    return (address or "").strip().lower()


def parse_positive_amount(value: str | Decimal) -> Decimal:
    """
    Parse a strictly positive decimal amount.

    Args:
        value: Decimal or decimal string

    Returns:
        Parsed amount

    Raises:
        ValueError: If value is not a finite positive decimal
    """
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, TypeError) as e:
        raise ValueError(f"Invalid amount: {value}") from e

    if not amount.is_finite() or amount <= 0:
        raise ValueError(f"Amount must be positive: {value}")
    return amount
