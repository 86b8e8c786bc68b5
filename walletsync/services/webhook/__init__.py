"""Real-time ingestion of Alchemy Notify webhooks."""

from walletsync.services.webhook.decoder import AlchemyEventDecoder, DecodedActivity
from walletsync.services.webhook.service import WebhookService

__all__ = [
    "AlchemyEventDecoder",
    "DecodedActivity",
    "WebhookService",
]
