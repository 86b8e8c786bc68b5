"""
Alchemy webhook event decoder.

Turns ADDRESS_ACTIVITY and MINED_TRANSACTION payloads into the same raw
NativeTransaction / TokenTransfer shapes the explorer client produces, so
both ingestion paths share categorization and ledger application.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from loguru import logger

from walletsync.config.constants import ERC20_TRANSFER_TOPIC, NATIVE_DECIMALS
from walletsync.services.chain_types import NativeTransaction, TokenTransfer
from walletsync.services.token_symbols import normalize_token_symbol
from walletsync.utils.security import mask_tx_hash


EVENT_ADDRESS_ACTIVITY = "ADDRESS_ACTIVITY"
EVENT_MINED_TRANSACTION = "MINED_TRANSACTION"
EVENT_DROPPED_TRANSACTION = "DROPPED_TRANSACTION"

NATIVE_CATEGORIES = frozenset({"external", "internal"})
TOKEN_CATEGORIES = frozenset({"token", "erc20"})


@dataclass(frozen=True)
class KnownToken:
    """Token metadata used when a payload carries only a Transfer log."""

    symbol: str
    name: str
    decimals: int


# Contract address (lower-case) -> metadata, per network
KNOWN_TOKENS: dict[str, dict[str, KnownToken]] = {
    "BSC_MAINNET": {
        "0x55d398326f99059ff775485246999027b3197955": KnownToken("USDT", "Tether USD", 18),
        "0xe9e7cea3dedca5984780bafc599bd69add087d56": KnownToken("BUSD", "Binance USD", 18),
        "0x2170ed0880ac9a755fd29b2688956bd959f933f8": KnownToken(
            "ETH", "Binance-Peg Ethereum Token", 18
        ),
    },
}


@dataclass
class DecodedActivity:
    """Raw transfers extracted from one webhook envelope."""

    native: list[NativeTransaction]
    tokens: list[TokenTransfer]

    @property
    def recipients(self) -> set[str]:
        """Lower-cased recipient addresses of all transfers."""
        return {tx.to_address for tx in self.native} | {t.to_address for t in self.tokens}

    def for_recipient(
        self, address: str
    ) -> tuple[list[NativeTransaction], list[TokenTransfer]]:
        """Transfers received by one address."""
        return (
            [tx for tx in self.native if tx.to_address == address],
            [t for t in self.tokens if t.to_address == address],
        )


def parse_int(value: Any) -> int | None:
    """Parse an int from a decimal or 0x-prefixed hex value; None if impossible."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(text, 16) if text.lower().startswith("0x") else int(text)
    except ValueError:
        return None


def _address(value: Any) -> str:
    # GraphQL-style payloads nest addresses as {"address": ...}
    if isinstance(value, dict):
        value = value.get("address")
    return str(value or "").strip().lower()


def _topic_address(topic: str) -> str:
    return "0x" + topic[-40:].lower()


def _parse_created_at(value: Any) -> int | None:
    if not value:
        return None
    try:
        return int(datetime.fromisoformat(str(value).replace("Z", "+00:00")).timestamp())
    except ValueError:
        return None


class AlchemyEventDecoder:
    """Decoder for Alchemy Notify envelopes of one network."""

    def __init__(self, network: str) -> None:
        self.network = network
        self.known_tokens = KNOWN_TOKENS.get(network, {})

    def decode(self, payload: dict[str, Any]) -> DecodedActivity:
        """
        Decode an envelope {type, event, createdAt}.

        DROPPED_TRANSACTION and unknown types decode to no activity.
        """
        event_type = payload.get("type")
        event = payload.get("event") or {}
        timestamp = _parse_created_at(payload.get("createdAt"))
        activity = DecodedActivity(native=[], tokens=[])

        if not isinstance(event, dict):
            logger.warning(f"[Webhook] Event of {event_type} is not an object")
            return activity

        if event_type == EVENT_ADDRESS_ACTIVITY:
            items = event.get("activity")
            if not isinstance(items, list):
                logger.info("[Webhook] No activity data in webhook")
                return activity
            for item in items:
                if isinstance(item, dict):
                    self._decode_activity_item(item, timestamp, activity)

        elif event_type == EVENT_MINED_TRANSACTION:
            transaction = event.get("transaction")
            if not isinstance(transaction, dict):
                logger.info("[Webhook] No transaction data in mined event")
                return activity
            self._decode_mined_transaction(transaction, timestamp, activity)

        elif event_type == EVENT_DROPPED_TRANSACTION:
            tx_hash = event.get("hash") or (event.get("transaction") or {}).get("hash")
            logger.info(f"[Webhook] Transaction dropped: {mask_tx_hash(tx_hash)}")

        else:
            logger.info(f"[Webhook] Unknown webhook type: {event_type}")

        return activity

    def _decode_activity_item(
        self, item: dict[str, Any], timestamp: int | None, activity: DecodedActivity
    ) -> None:
        category = str(item.get("category") or "").lower()
        raw_contract = item.get("rawContract") or {}
        log = item.get("log")

        if isinstance(log, dict) and self._is_transfer_log(log):
            transfer = self._decode_transfer_log(
                log,
                timestamp,
                tx_hash=item.get("hash"),
                block_number=item.get("blockNum"),
                symbol=item.get("asset"),
                decimals=raw_contract.get("decimals", raw_contract.get("decimal")),
            )
            if transfer:
                activity.tokens.append(transfer)
            return

        tx_hash = str(item.get("hash") or "").lower()
        block_number = parse_int(item.get("blockNum")) or 0

        if category in NATIVE_CATEGORIES:
            value = self._native_value(item, raw_contract)
            if tx_hash and value:
                activity.native.append(
                    NativeTransaction(
                        hash=tx_hash,
                        block_number=block_number,
                        from_address=_address(item.get("fromAddress")),
                        to_address=_address(item.get("toAddress")),
                        value=str(value),
                        timestamp=timestamp,
                    )
                )
        elif category in TOKEN_CATEGORIES:
            raw_value = parse_int(raw_contract.get("rawValue"))
            contract = _address(raw_contract.get("address")) or None
            if not tx_hash or raw_value is None:
                logger.warning(f"[Webhook] Token activity without hash or raw value: {item}")
                return
            known = self.known_tokens.get(contract or "")
            symbol = item.get("asset") or (known.symbol if known else None)
            decimals = raw_contract.get("decimals", raw_contract.get("decimal"))
            if decimals is None and known:
                decimals = known.decimals
            activity.tokens.append(
                TokenTransfer(
                    hash=tx_hash,
                    block_number=block_number,
                    from_address=_address(item.get("fromAddress")),
                    to_address=_address(item.get("toAddress")),
                    contract_address=contract,
                    token_symbol=normalize_token_symbol(symbol, known.name if known else None),
                    token_name=known.name if known else str(symbol or ""),
                    token_decimals=parse_int(decimals),
                    value=str(raw_value),
                    timestamp=timestamp,
                )
            )
        else:
            logger.debug(f"[Webhook] Ignoring activity category '{category}'")

    def _decode_mined_transaction(
        self, transaction: dict[str, Any], timestamp: int | None, activity: DecodedActivity
    ) -> None:
        tx_hash = str(transaction.get("hash") or "").lower()
        value = parse_int(transaction.get("value"))

        if tx_hash and value:
            activity.native.append(
                NativeTransaction(
                    hash=tx_hash,
                    block_number=parse_int(transaction.get("blockNumber")) or 0,
                    from_address=_address(transaction.get("from")),
                    to_address=_address(transaction.get("to")),
                    value=str(value),
                    timestamp=timestamp,
                    gas_used=transaction.get("gasUsed") or transaction.get("gas"),
                    gas_price=transaction.get("gasPrice"),
                )
            )

        for log in transaction.get("logs") or []:
            if not isinstance(log, dict) or not self._is_transfer_log(log):
                continue
            transfer = self._decode_transfer_log(
                log,
                timestamp,
                tx_hash=tx_hash,
                block_number=transaction.get("blockNumber"),
            )
            if transfer:
                activity.tokens.append(transfer)

    @staticmethod
    def _native_value(item: dict[str, Any], raw_contract: dict[str, Any]) -> int | None:
        raw_value = parse_int(raw_contract.get("rawValue"))
        if raw_value is not None:
            return raw_value

        value = item.get("value")
        if isinstance(value, str) and value.lower().startswith("0x"):
            return parse_int(value)
        if value is None:
            return None
        # ADDRESS_ACTIVITY "value" is already scaled to whole coins
        try:
            return int(Decimal(str(value)).scaleb(NATIVE_DECIMALS))
        except (InvalidOperation, ValueError):
            return None

    @staticmethod
    def _is_transfer_log(log: dict[str, Any]) -> bool:
        topics = log.get("topics") or []
        return (
            len(topics) >= 3
            and str(topics[0]).lower() == ERC20_TRANSFER_TOPIC
        )

    def _decode_transfer_log(
        self,
        log: dict[str, Any],
        timestamp: int | None,
        tx_hash: str | None = None,
        block_number: Any = None,
        symbol: str | None = None,
        decimals: Any = None,
    ) -> TokenTransfer | None:
        """Decode an ERC-20 Transfer log, falling back to the enclosing hash and block."""
        topics = log["topics"]
        tx_hash = str(log.get("transactionHash") or tx_hash or "").lower()
        contract = _address(log.get("address"))
        amount = parse_int(log.get("data"))

        if not tx_hash or amount is None:
            logger.warning(f"[Webhook] Transfer log without hash or data in {mask_tx_hash(tx_hash)}")
            return None

        known = self.known_tokens.get(contract)
        if known is None and (symbol is None or decimals is None):
            logger.info(f"[Webhook] Unknown token {contract} in {mask_tx_hash(tx_hash)}")
            return None

        return TokenTransfer(
            hash=tx_hash,
            block_number=parse_int(log.get("blockNumber") or block_number) or 0,
            from_address=_topic_address(str(topics[1])),
            to_address=_topic_address(str(topics[2])),
            contract_address=contract or None,
            token_symbol=normalize_token_symbol(
                symbol or known.symbol, known.name if known else None
            ),
            token_name=known.name if known else str(symbol),
            token_decimals=parse_int(decimals) if decimals is not None else known.decimals,
            value=str(amount),
            timestamp=timestamp,
        )
