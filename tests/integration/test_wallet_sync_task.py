"""
Integration tests for the background sweep task.
"""

import pytest

from jobs.tasks.wallet_sync_task import sweep_networks

pytestmark = pytest.mark.integration

USER_ADDRESS = "0x742d35cc6634c0532925a3b844bc9e7595f0beb0"


@pytest.fixture
def database_url(engine, tmp_path):
    """URL of the database created by the engine fixture."""
    return f"sqlite+aiosqlite:///{tmp_path / 'walletsync.db'}"


@pytest.mark.asyncio
async def test_sweep_syncs_bound_wallets(
    database_url, bind_wallet, make_explorer, make_native, make_hash
):
    """Every bound wallet of the network is synced."""
    await bind_wallet("user-1", USER_ADDRESS)
    explorer = make_explorer([make_native(make_hash(1), 10), make_native(make_hash(2), 11)])

    summaries = await sweep_networks("BSC_MAINNET", explorer=explorer, database_url=database_url)

    assert summaries == {
        "BSC_MAINNET": {"wallets": 1, "synced": 1, "failed": 0, "saved": 2},
    }


@pytest.mark.asyncio
async def test_sweep_skips_unconfigured_network(database_url, bind_wallet, make_explorer):
    """A network without an API key is skipped, not retried per wallet."""
    await bind_wallet("user-1", USER_ADDRESS)
    explorer = make_explorer(api_key=None)

    summaries = await sweep_networks("BSC_MAINNET", explorer=explorer, database_url=database_url)

    assert summaries == {}
    assert explorer.calls == []
