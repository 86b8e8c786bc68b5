"""
Transaction categorizer.

Turns raw native transactions and token transfers into typed records
relative to one wallet address. Pure functions, no I/O.
"""

from collections.abc import Iterable
from decimal import Decimal, InvalidOperation

from loguru import logger

from walletsync.config.constants import DEFAULT_TOKEN_DECIMALS, NATIVE_DECIMALS
from walletsync.config.networks import NETWORKS
from walletsync.models.enums import (
    TransactionCategory,
    TransactionDirection,
    TransactionKind,
)
from walletsync.services.chain_types import (
    NativeTransaction,
    TokenTransfer,
    TransactionRecordData,
    timestamp_to_datetime,
)
from walletsync.utils.validation import normalize_address


def parse_decimals(value: int | str | None) -> int:
    """
    Parse a token's decimals field.

    Absent, non-integer or negative values fall back to 18. Zero is valid.
    """
    if value is None or value == "":
        return DEFAULT_TOKEN_DECIMALS
    try:
        decimals = int(str(value).strip())
    except ValueError:
        return DEFAULT_TOKEN_DECIMALS
    if decimals < 0:
        return DEFAULT_TOKEN_DECIMALS
    return decimals


def to_decimal_amount(raw_value: str | int, decimals: int) -> Decimal:
    """
    Scale a raw integer amount (wei, token units) to a decimal amount.

    Args:
        raw_value: Raw integer value (decimal string, hex string or int)
        decimals: Number of decimals of the asset

    Returns:
        Exact decimal amount

    Raises:
        ValueError: If raw_value is not an integer
    """
    if isinstance(raw_value, int):
        raw = raw_value
    else:
        text = str(raw_value).strip()
        raw = int(text, 16) if text.lower().startswith("0x") else int(text or "0")
    try:
        return Decimal(raw).scaleb(-decimals)
    except InvalidOperation as e:
        raise ValueError(f"Cannot scale amount {raw_value}") from e


def _direction(user: str, from_address: str, to_address: str) -> TransactionDirection | None:
    if normalize_address(to_address) == user:
        return TransactionDirection.IN
    if normalize_address(from_address) == user:
        return TransactionDirection.OUT
    return None


def categorize(
    native_txs: Iterable[NativeTransaction],
    token_transfers: Iterable[TokenTransfer],
    user_address: str,
    network: str,
) -> list[TransactionRecordData]:
    """
    Categorize raw activity relative to a wallet.

    A transfer is incoming when the wallet is the recipient, outgoing when
    it is only the sender, and dropped when it is neither. A self-transfer
    is incoming.

    Args:
        native_txs: Native currency transactions
        token_transfers: Token transfers
        user_address: Wallet address (case-insensitive)
        network: Network key

    Returns:
        Records sorted by block number, newest first
    """
    user = normalize_address(user_address)
    native_symbol = NETWORKS[network].native_symbol
    records: list[TransactionRecordData] = []

    for tx in native_txs:
        direction = _direction(user, tx.from_address, tx.to_address)
        if direction is None:
            continue
        try:
            amount = to_decimal_amount(tx.value, NATIVE_DECIMALS)
        except ValueError as e:
            logger.warning(f"[Categorizer] Skipping native tx {tx.hash} with bad value: {e}")
            continue

        records.append(
            TransactionRecordData(
                hash=tx.hash.lower(),
                wallet_address=user,
                direction=direction,
                kind=TransactionKind.NATIVE,
                category=(
                    TransactionCategory.DEPOSIT
                    if direction == TransactionDirection.IN
                    else TransactionCategory.WITHDRAW
                ),
                amount=amount,
                token_symbol=native_symbol,
                network=network,
                block_number=tx.block_number,
                from_address=normalize_address(tx.from_address),
                to_address=normalize_address(tx.to_address),
                occurred_at=timestamp_to_datetime(tx.timestamp),
            )
        )

    for transfer in token_transfers:
        direction = _direction(user, transfer.from_address, transfer.to_address)
        if direction is None:
            continue
        try:
            amount = to_decimal_amount(transfer.value, parse_decimals(transfer.token_decimals))
        except ValueError as e:
            logger.warning(
                f"[Categorizer] Skipping token transfer {transfer.hash} with bad value: {e}"
            )
            continue

        records.append(
            TransactionRecordData(
                hash=transfer.hash.lower(),
                wallet_address=user,
                direction=direction,
                kind=TransactionKind.TOKEN,
                category=TransactionCategory.TOKEN_TRANSFER,
                amount=amount,
                token_symbol=transfer.token_symbol,
                network=network,
                block_number=transfer.block_number,
                from_address=normalize_address(transfer.from_address),
                to_address=normalize_address(transfer.to_address),
                token_address=transfer.contract_address,
                occurred_at=timestamp_to_datetime(transfer.timestamp),
            )
        )

    records.sort(key=lambda record: record.block_number, reverse=True)
    return records


def incoming_only(records: Iterable[TransactionRecordData]) -> list[TransactionRecordData]:
    """Keep only records where the wallet received funds."""
    return [record for record in records if record.is_incoming]
