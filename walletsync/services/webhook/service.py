"""
Webhook ingestion service.

Applies push notifications from Alchemy Notify to the ledger through the
same categorize -> apply_incoming path as the poll sync, so a transfer
seen by both paths is recorded once.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from walletsync.models.enums import IngestionSource
from walletsync.repositories.wallet_repository import WalletRepository
from walletsync.services.base_service import BaseService, log_operation
from walletsync.services.categorizer import categorize, incoming_only
from walletsync.services.ledger_service import ApplyOutcome, LedgerService
from walletsync.services.webhook.decoder import AlchemyEventDecoder
from walletsync.utils.exceptions import ValidationError, WebhookAuthError
from walletsync.utils.security import mask_address, mask_tx_hash, verify_webhook_signature


STATUS_SUCCESS = "success"
STATUS_NO_WALLETS = "no_wallets"


class WebhookService(BaseService):
    """Processes Alchemy webhook envelopes for one monitored network."""

    def __init__(
        self,
        session: AsyncSession,
        network: str = "BSC_MAINNET",
        auth_token: str | None = None,
    ) -> None:
        """
        Initialize webhook service.

        Args:
            session: Async database session
            network: Network the webhook monitors
            auth_token: Shared secret; None accepts unauthenticated requests
        """
        super().__init__(session)
        self.network = network
        self.auth_token = auth_token
        self.decoder = AlchemyEventDecoder(network)
        self.wallet_repo = WalletRepository(session)
        self.ledger = LedgerService(session)

    def authenticate(self, raw_body: bytes, signature: str | None) -> None:
        """
        Check the signature header against the shared secret.

        Raises:
            WebhookAuthError: If the request is not authenticated
        """
        if not verify_webhook_signature(self.auth_token, signature, raw_body):
            self.logger.warning("[Webhook] Rejected request with invalid signature")
            raise WebhookAuthError("Unauthorized webhook request")

    async def handle(
        self,
        payload: Any,
        raw_body: bytes = b"",
        signature: str | None = None,
    ) -> dict[str, Any]:
        """
        Authenticate and process one envelope.

        Returns:
            {status, processed}
        """
        self.authenticate(raw_body, signature)
        return await self.process(payload)

    @log_operation
    async def process(self, payload: Any) -> dict[str, Any]:
        """
        Process an authenticated envelope.

        Args:
            payload: Parsed JSON envelope {type, event}

        Returns:
            {status: "success" | "no_wallets", processed: newly recorded count}

        Raises:
            ValidationError: If the payload is not a JSON object
        """
        if not isinstance(payload, dict):
            raise ValidationError("Webhook payload must be a JSON object")

        monitored = await self.wallet_repo.list_addresses(self.network)
        await self.commit()
        if not monitored:
            self.logger.info(f"[Webhook] No wallet addresses to monitor on {self.network}")
            return {"status": STATUS_NO_WALLETS, "processed": 0}

        activity = self.decoder.decode(payload)
        processed = 0

        for recipient in sorted(activity.recipients & monitored):
            user_id = await self.wallet_repo.resolve_user_id(recipient, self.network)
            await self.commit()
            if not user_id:
                self.logger.info(f"[Webhook] No user found for wallet {mask_address(recipient)}")
                continue

            native, tokens = activity.for_recipient(recipient)
            records = incoming_only(categorize(native, tokens, recipient, self.network))

            for record in records:
                try:
                    outcome = await self.ledger.apply_incoming(
                        record, user_id, IngestionSource.WEBHOOK
                    )
                except Exception as e:
                    self.logger.error(
                        f"[Webhook] Error processing {mask_tx_hash(record.hash)} "
                        f"for user {user_id}: {e}"
                    )
                    continue

                if outcome == ApplyOutcome.RECORDED:
                    processed += 1
                else:
                    self.logger.debug(
                        f"[Webhook] Transaction already exists: {mask_tx_hash(record.hash)}"
                    )

        self.logger.info(
            f"[Webhook] {payload.get('type')} processed: {processed} new transaction(s)"
        )
        return {"status": STATUS_SUCCESS, "processed": processed}
