"""
Exception handling utilities.

Defines categorized exception types for the sync and ledger core.
"""

from typing import Any


class WalletSyncError(Exception):
    """Base error carrying a machine-readable code and optional details."""

    code = "WALLET_SYNC_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API responses."""
        data: dict[str, Any] = {"error": self.message, "code": self.code}
        if self.details:
            data["details"] = self.details
        return data


class ValidationError(WalletSyncError):
    """Malformed address, network or pagination input. Raised before any network call."""

    code = "VALIDATION_ERROR"


class ProviderNotConfigured(WalletSyncError):
    """Explorer credentials are missing. Operator-fixable, surfaced verbatim."""

    code = "PROVIDER_NOT_CONFIGURED"


class ProviderError(WalletSyncError):
    """Explorer returned an error, a bad HTTP status, or timed out."""

    code = "PROVIDER_ERROR"

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        transient: bool = False,
    ) -> None:
        super().__init__(message, details)
        self.transient = transient


class PersistenceConflict(WalletSyncError):
    """Unique-constraint violation on insert: the record is already stored."""

    code = "PERSISTENCE_CONFLICT"


class UnexpectedError(WalletSyncError):
    """Per-record failure collected into a batch's error list."""

    code = "UNEXPECTED_ERROR"


class WebhookAuthError(WalletSyncError):
    """Webhook request failed shared-secret authentication."""

    code = "WEBHOOK_UNAUTHORIZED"


# Exception categories based on handling strategy

# Safe to retry later - the sync cursor makes retries resumable
RETRYABLE = (
    ProviderError,
)


def is_retryable(exc: Exception) -> bool:
    """
    Check if exception is transient and the caller may retry.

    Args:
        exc: Exception to check

    Returns:
        True if retrying later is expected to help
    """
    return isinstance(exc, RETRYABLE) and exc.transient
