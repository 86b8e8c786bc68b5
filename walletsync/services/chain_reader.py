"""
Chain reader.

Queries Etherscan-family block explorer APIs (BscScan, Etherscan) for an
address's native transactions and token transfers:
- One shared aiohttp session per client, created lazily
- Bounded per-request timeout
- Page/offset pagination within block windows, so a capped page count
  never skips older records
"""

from collections.abc import Mapping
from typing import Any

import aiohttp
from loguru import logger

from walletsync.config.constants import (
    EXPLORER_DEFAULT_TIMEOUT_SECONDS,
    EXPLORER_EMPTY_MESSAGES,
    EXPLORER_END_BLOCK,
    EXPLORER_MAX_PAGE_SIZE,
    SYNC_DEFAULT_MAX_PAGES,
)
from walletsync.config.networks import NETWORKS, get_network
from walletsync.services.chain_types import NativeTransaction, TokenTransfer
from walletsync.services.token_symbols import normalize_token_symbol
from walletsync.utils.exceptions import (
    ProviderError,
    ProviderNotConfigured,
    ValidationError,
)
from walletsync.utils.security import mask_address
from walletsync.utils.validation import validate_wallet_address


ACTION_NATIVE = "txlist"
ACTION_TOKEN = "tokentx"


class ExplorerClient:
    """
    Client for block explorer account APIs.

    Constructed once per process by the container and closed at shutdown.
    """

    def __init__(
        self,
        api_keys: Mapping[str, str | None],
        timeout_seconds: float = EXPLORER_DEFAULT_TIMEOUT_SECONDS,
        base_urls: Mapping[str, str] | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        """
        Initialize explorer client.

        Args:
            api_keys: API key per network key
            timeout_seconds: Total timeout per HTTP request
            base_urls: Override explorer API URL per network
            session: Externally owned aiohttp session (not closed by us)
        """
        self._api_keys = dict(api_keys)
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._base_urls = {
            key: config.explorer_api_url for key, config in NETWORKS.items()
        }
        if base_urls:
            self._base_urls.update(base_urls)
        self._session = session
        self._owns_session = session is None

    @classmethod
    def from_settings(cls, settings: Any) -> "ExplorerClient":
        """Build a client from application settings."""
        return cls(
            api_keys={key: settings.get_api_key(key) for key in NETWORKS},
            timeout_seconds=settings.explorer_timeout_seconds,
        )

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_request(
        self,
        address: str,
        network: str,
        page: int = 1,
        page_size: int = EXPLORER_MAX_PAGE_SIZE,
    ) -> None:
        """
        Reject malformed input before any network call.

        Raises:
            ValidationError: If address, network or pagination is invalid
        """
        is_valid, error = validate_wallet_address(address)
        if not is_valid:
            raise ValidationError(f"Invalid address: {error}", {"address": address})

        if network not in NETWORKS:
            raise ValidationError(
                f"Unsupported network: {network}", {"network": network}
            )

        if page < 1:
            raise ValidationError("Page must be >= 1", {"page": page})

        if not 1 <= page_size <= EXPLORER_MAX_PAGE_SIZE:
            raise ValidationError(
                f"Page size must be between 1 and {EXPLORER_MAX_PAGE_SIZE}",
                {"page_size": page_size},
            )

    def ensure_configured(self, network: str) -> str:
        """
        Return the API key for a network.

        Raises:
            ProviderNotConfigured: If no key is configured
        """
        api_key = self._api_keys.get(network)
        if not api_key:
            config = get_network(network)
            raise ProviderNotConfigured(
                f"Missing {config.api_key_env}. Please get a free API key from "
                f"{config.explorer_url.removeprefix('https://')} and set "
                f"{config.api_key_env} in the environment.",
                {"network": network},
            )
        return api_key

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    async def fetch_activity(
        self,
        address: str,
        network: str,
        page: int = 1,
        page_size: int = EXPLORER_MAX_PAGE_SIZE,
        from_block: int = 0,
    ) -> tuple[list[NativeTransaction], list[TokenTransfer]]:
        """
        Fetch one page of native transactions and token transfers.

        Args:
            address: Wallet address
            network: Network key
            page: 1-based page number
            page_size: Records per page (max 100)
            from_block: Inclusive lower block bound

        Returns:
            Tuple of (native transactions, token transfers), newest first

        Raises:
            ValidationError: Invalid input
            ProviderNotConfigured: Missing API key
            ProviderError: Upstream error or timeout
        """
        self.validate_request(address, network, page, page_size)
        self.ensure_configured(network)

        native = await self.fetch_native(address, network, page, page_size, from_block)
        tokens = await self.fetch_token_transfers(address, network, page, page_size, from_block)
        return native, tokens

    async def fetch_all_activity(
        self,
        address: str,
        network: str,
        from_block: int = 0,
        page_size: int = EXPLORER_MAX_PAGE_SIZE,
        max_pages: int = SYNC_DEFAULT_MAX_PAGES,
    ) -> tuple[list[NativeTransaction], list[TokenTransfer]]:
        """
        Fetch every record of both streams from a block onwards.

        Each stream is read newest first in block windows. A window is paged
        until a short page is returned or max_pages is reached; a window cut
        by the page limit continues with the next window ending at its
        oldest block, which is refetched whole. Nothing between from_block
        and the chain head is skipped.

        Returns:
            Tuple of (native transactions, token transfers), newest first

        Raises:
            ProviderError: Upstream failure, or a single block holding more
                records than one window can return
        """
        self.validate_request(address, network, 1, page_size)
        self.ensure_configured(network)

        native_rows = await self._fetch_stream(
            network, ACTION_NATIVE, address, from_block, page_size, max_pages
        )
        token_rows = await self._fetch_stream(
            network, ACTION_TOKEN, address, from_block, page_size, max_pages
        )
        return self._parse_native(native_rows), self._parse_token_transfers(token_rows)

    async def _fetch_stream(
        self,
        network: str,
        action: str,
        address: str,
        from_block: int,
        page_size: int,
        max_pages: int,
    ) -> list[dict]:
        """Collect the raw rows of one stream over [from_block, chain head]."""
        rows: list[dict] = []
        end_block = EXPLORER_END_BLOCK

        while True:
            window: list[dict] = []
            for page in range(1, max_pages + 1):
                batch = await self._request(
                    network, action, address, page, page_size, from_block, end_block
                )
                window.extend(batch)
                if len(batch) < page_size:
                    rows.extend(window)
                    return rows

            blocks = [b for b in (_row_block(row) for row in window) if b is not None]
            oldest = min(blocks, default=end_block)
            if oldest >= end_block:
                raise ProviderError(
                    f"Block {end_block} holds more than {page_size * max_pages} {action} records",
                    {"network": network, "action": action, "block": end_block},
                )

            # The oldest block may be cut mid-way; the next window refetches it
            rows.extend(row for row in window if _row_block(row) != oldest)
            logger.info(
                f"[Explorer] Page limit {max_pages} reached for {action} of "
                f"{mask_address(address)} on {network}, continuing at block {oldest} and below"
            )
            end_block = oldest

    async def fetch_native(
        self,
        address: str,
        network: str,
        page: int,
        page_size: int,
        from_block: int,
    ) -> list[NativeTransaction]:
        """Fetch one page of native transactions."""
        rows = await self._request(network, ACTION_NATIVE, address, page, page_size, from_block)
        return self._parse_native(rows)

    async def fetch_token_transfers(
        self,
        address: str,
        network: str,
        page: int,
        page_size: int,
        from_block: int,
    ) -> list[TokenTransfer]:
        """Fetch one page of token transfers with normalized symbols."""
        rows = await self._request(network, ACTION_TOKEN, address, page, page_size, from_block)
        return self._parse_token_transfers(rows)

    @staticmethod
    def _parse_native(rows: list[dict]) -> list[NativeTransaction]:
        transactions = []
        for row in rows:
            # Reverted transactions move no value
            if str(row.get("isError", "0")) == "1" or str(row.get("txreceipt_status", "1")) == "0":
                continue
            try:
                transactions.append(
                    NativeTransaction(
                        hash=row["hash"].lower(),
                        block_number=int(row["blockNumber"]),
                        from_address=(row.get("from") or "").lower(),
                        to_address=(row.get("to") or "").lower(),
                        value=str(row.get("value") or "0"),
                        timestamp=int(row["timeStamp"]) if row.get("timeStamp") else None,
                        gas_used=row.get("gasUsed"),
                        gas_price=row.get("gasPrice"),
                    )
                )
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"[Explorer] Skipping malformed native tx row: {e}")
        return transactions

    @staticmethod
    def _parse_token_transfers(rows: list[dict]) -> list[TokenTransfer]:
        transfers = []
        for row in rows:
            try:
                token_name = row.get("tokenName") or "Unknown Token"
                transfers.append(
                    TokenTransfer(
                        hash=row["hash"].lower(),
                        block_number=int(row["blockNumber"]),
                        from_address=(row.get("from") or "").lower(),
                        to_address=(row.get("to") or "").lower(),
                        contract_address=(row.get("contractAddress") or "").lower() or None,
                        token_symbol=normalize_token_symbol(row.get("tokenSymbol"), token_name),
                        token_name=token_name,
                        token_decimals=row.get("tokenDecimal"),
                        value=str(row.get("value") or "0"),
                        timestamp=int(row["timeStamp"]) if row.get("timeStamp") else None,
                    )
                )
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"[Explorer] Skipping malformed token transfer row: {e}")
        return transfers

    async def _request(
        self,
        network: str,
        action: str,
        address: str,
        page: int,
        page_size: int,
        from_block: int,
        end_block: int = EXPLORER_END_BLOCK,
    ) -> list[dict]:
        """
        Perform one explorer account query.

        Returns:
            Result rows ([] for an explicit "no results" response)

        Raises:
            ProviderError: Non-2xx status, status="0" error, timeout or connection failure
        """
        api_key = self.ensure_configured(network)
        params = {
            "module": "account",
            "action": action,
            "address": address,
            "startblock": str(from_block),
            "endblock": str(end_block),
            "page": str(page),
            "offset": str(page_size),
            "sort": "desc",
            "apikey": api_key,
        }
        url = self._base_urls[network]

        try:
            session = await self._get_session()
            async with session.get(url, params=params, timeout=self._timeout) as response:
                if response.status != 200:
                    raise ProviderError(
                        f"Explorer returned HTTP {response.status}",
                        {"network": network, "action": action, "status": response.status},
                        transient=response.status == 429 or response.status >= 500,
                    )
                data = await response.json(content_type=None)
        except TimeoutError as e:
            logger.warning(
                f"[Explorer] {action} timed out for {mask_address(address)} on {network}"
            )
            raise ProviderError(
                "Explorer request timed out",
                {"network": network, "action": action},
                transient=True,
            ) from e
        except aiohttp.ClientError as e:
            logger.warning(f"[Explorer] {action} request failed on {network}: {e}")
            raise ProviderError(
                f"Explorer request failed: {e}",
                {"network": network, "action": action},
                transient=True,
            ) from e
        except ValueError as e:
            raise ProviderError(
                "Explorer returned invalid JSON",
                {"network": network, "action": action},
            ) from e

        return self._parse_response(data, network, action)

    @staticmethod
    def _parse_response(data: Any, network: str, action: str) -> list[dict]:
        """Interpret the {status, message, result} envelope."""
        if not isinstance(data, dict):
            raise ProviderError(
                "Unexpected explorer response", {"network": network, "action": action}
            )

        status = str(data.get("status", ""))
        message = str(data.get("message") or "")
        result = data.get("result")

        if status == "0":
            if message in EXPLORER_EMPTY_MESSAGES:
                return []
            upstream = result if isinstance(result, str) and result else message
            upstream = upstream or "Explorer returned an error"
            logger.error(f"[Explorer] {network} {action} error: {upstream}")
            raise ProviderError(
                upstream,
                {"network": network, "action": action, "message": message},
                transient="rate limit" in upstream.lower(),
            )

        if not isinstance(result, list):
            raise ProviderError(
                "Unexpected explorer response", {"network": network, "action": action}
            )
        return result


def _row_block(row: dict) -> int | None:
    try:
        return int(row["blockNumber"])
    except (KeyError, TypeError, ValueError):
        return None
