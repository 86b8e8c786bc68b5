"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal environment for Settings() at import time
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("BSCSCAN_API_KEY", "test-bscscan-key")
os.environ.setdefault("ETHERSCAN_API_KEY", "")
os.environ.setdefault("BSCSCAN_TESTNET_API_KEY", "")
os.environ.setdefault("ALCHEMY_WEBHOOK_AUTH_TOKEN", "")
os.environ.setdefault("REDIS_HOST", "localhost")

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from walletsync.config.database import (  # noqa: E402
    create_all_tables,
    create_engine,
    create_session_maker,
)
from walletsync.models import Wallet  # noqa: E402
from walletsync.services.chain_reader import ExplorerClient  # noqa: E402
from walletsync.services.chain_types import NativeTransaction, TokenTransfer  # noqa: E402
from walletsync.utils.exceptions import ProviderError  # noqa: E402

# Test wallets (lower-case, as stored by the explorer client)
USER_ADDRESS = "0x742d35cc6634c0532925a3b844bc9e7595f0beb0"
OTHER_ADDRESS = "0x8894e0a0c962cb723c1976a4421c95949be2d4e3"
USDT_CONTRACT = "0x55d398326f99059ff775485246999027b3197955"


@pytest_asyncio.fixture
async def engine(tmp_path):
    """
    SQLite database with all tables.

    File-backed so that concurrent sessions use separate connections.
    """
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'walletsync.db'}")
    await create_all_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    """Session factory bound to the test database."""
    return create_session_maker(engine)


@pytest_asyncio.fixture
async def session(session_maker):
    """Database session."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def bind_wallet(session_maker):
    """Insert a wallet binding (address -> user)."""

    async def _bind(user_id: str, address: str, network: str = "BSC_MAINNET") -> None:
        async with session_maker() as session:
            session.add(Wallet(user_id=user_id, address=address, network=network))
            await session.commit()

    return _bind


@pytest.fixture
def make_native():
    """Factory for native transactions."""

    def _make(
        tx_hash: str,
        block_number: int,
        from_address: str = OTHER_ADDRESS,
        to_address: str = USER_ADDRESS,
        value: str = "1000000000000000000",
        timestamp: int | None = 1700000000,
    ) -> NativeTransaction:
        return NativeTransaction(
            hash=tx_hash,
            block_number=block_number,
            from_address=from_address,
            to_address=to_address,
            value=value,
            timestamp=timestamp,
        )

    return _make


@pytest.fixture
def make_token():
    """Factory for token transfers."""

    def _make(
        tx_hash: str,
        block_number: int,
        from_address: str = OTHER_ADDRESS,
        to_address: str = USER_ADDRESS,
        value: str = "5000000000000000000",
        token_symbol: str = "USDT",
        token_decimals: int | str | None = 18,
        contract_address: str | None = USDT_CONTRACT,
        timestamp: int | None = 1700000000,
    ) -> TokenTransfer:
        return TokenTransfer(
            hash=tx_hash,
            block_number=block_number,
            from_address=from_address,
            to_address=to_address,
            contract_address=contract_address,
            token_symbol=token_symbol,
            token_name="Tether USD",
            token_decimals=token_decimals,
            value=value,
            timestamp=timestamp,
        )

    return _make


def tx_hash(n: int) -> str:
    """Deterministic 32-byte transaction hash."""
    return "0x" + f"{n:064x}"


@pytest.fixture
def make_hash():
    """Deterministic transaction hash factory."""
    return tx_hash


class ScriptedExplorer(ExplorerClient):
    """
    Explorer client serving canned activity instead of calling HTTP.

    Input validation and API key checks are the real ones.
    """

    def __init__(
        self,
        native: list[NativeTransaction] | None = None,
        tokens: list[TokenTransfer] | None = None,
        api_key: str | None = "test-key",
        honor_from_block: bool = True,
        failing_addresses: set[str] | None = None,
    ) -> None:
        super().__init__(api_keys={"BSC_MAINNET": api_key})
        self.native = list(native or [])
        self.tokens = list(tokens or [])
        self.honor_from_block = honor_from_block
        self.failing_addresses = {a.lower() for a in failing_addresses or set()}
        self.calls: list[tuple[str, str, int]] = []

    async def fetch_all_activity(
        self,
        address: str,
        network: str,
        from_block: int = 0,
        page_size: int = 100,
        max_pages: int = 10,
    ) -> tuple[list[NativeTransaction], list[TokenTransfer]]:
        self.validate_request(address, network, 1, page_size)
        self.ensure_configured(network)
        self.calls.append((address.lower(), network, from_block))

        if address.lower() in self.failing_addresses:
            raise ProviderError("Explorer returned HTTP 502", {"status": 502}, transient=True)

        start = from_block if self.honor_from_block else 0
        return (
            [tx for tx in self.native if tx.block_number >= start],
            [t for t in self.tokens if t.block_number >= start],
        )


@pytest.fixture
def make_explorer():
    """Factory for explorer clients with canned activity."""
    return ScriptedExplorer
