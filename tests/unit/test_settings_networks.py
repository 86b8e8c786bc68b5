"""
Tests for settings validation and the network table.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from walletsync.config.networks import NETWORKS, get_network, resolve_network
from walletsync.config.settings import Settings


def make_settings(**overrides) -> Settings:
    """Settings isolated from .env files."""
    values = {"environment": "test", "_env_file": None}
    values.update(overrides)
    return Settings(**values)


class TestSettings:
    """Test settings validation."""

    def test_postgres_url_rewritten_to_asyncpg(self):
        """Plain postgresql:// URLs get the async driver."""
        settings = make_settings(database_url="postgresql://u:p@db:5432/walletsync")
        assert settings.database_url == "postgresql+asyncpg://u:p@db:5432/walletsync"

    def test_unsupported_database_url_rejected(self):
        """Only PostgreSQL and aiosqlite URLs are accepted."""
        with pytest.raises(PydanticValidationError):
            make_settings(database_url="mysql://u:p@db/walletsync")

    def test_network_names_normalized(self):
        """Network settings are upper-cased and checked."""
        settings = make_settings(default_network="bsc_testnet")
        assert settings.default_network == "BSC_TESTNET"

        with pytest.raises(PydanticValidationError):
            make_settings(webhook_network="SOLANA")

    def test_debug_forbidden_in_production(self):
        """DEBUG=true is rejected in production."""
        with pytest.raises(PydanticValidationError):
            make_settings(environment="production", debug=True)

    def test_page_size_capped(self):
        """Explorer page size cannot exceed the API maximum."""
        with pytest.raises(PydanticValidationError):
            make_settings(explorer_page_size=500)

    def test_get_api_key_per_network(self):
        """Each network reads its own key; blank keys count as missing."""
        settings = make_settings(bscscan_api_key="bsc-key", etherscan_api_key="  ")

        assert settings.get_api_key("BSC_MAINNET") == "bsc-key"
        assert settings.get_api_key("ETHEREUM") is None
        assert settings.get_api_key("NOPE") is None


class TestNetworks:
    """Test network resolution."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, "BSC_MAINNET"),
            ("", "BSC_MAINNET"),
            ("bsc", "BSC_MAINNET"),
            ("BSC_TESTNET", "BSC_TESTNET"),
            ("eth", "ETHEREUM"),
            ("polygon", None),
        ],
    )
    def test_resolve_network(self, value, expected):
        """Aliases and keys resolve case-insensitively."""
        assert resolve_network(value) == expected

    def test_api_key_env_names(self):
        """Each network names the environment variable holding its key."""
        assert get_network("BSC_MAINNET").api_key_env == "BSCSCAN_API_KEY"
        assert get_network("ETHEREUM").api_key_env == "ETHERSCAN_API_KEY"

    def test_native_symbols(self):
        """Native currency per network."""
        assert {key: net.native_symbol for key, net in NETWORKS.items()} == {
            "BSC_MAINNET": "BNB",
            "BSC_TESTNET": "tBNB",
            "ETHEREUM": "ETH",
        }
