"""
Supported networks.

One entry per network identifier stored in the ledger. Each entry carries the
explorer endpoint used by the chain reader and the settings field holding its
API key.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class NetworkConfig:
    """Static configuration of a supported network."""

    key: str
    name: str
    chain_id: int
    native_symbol: str
    explorer_api_url: str
    explorer_url: str
    api_key_setting: str

    @property
    def api_key_env(self) -> str:
        """Environment variable name holding the explorer API key."""
        return self.api_key_setting.upper()


NETWORKS: dict[str, NetworkConfig] = {
    "BSC_MAINNET": NetworkConfig(
        key="BSC_MAINNET",
        name="BSC Mainnet",
        chain_id=56,
        native_symbol="BNB",
        explorer_api_url="https://api.bscscan.com/api",
        explorer_url="https://bscscan.com",
        api_key_setting="bscscan_api_key",
    ),
    "BSC_TESTNET": NetworkConfig(
        key="BSC_TESTNET",
        name="BSC Testnet",
        chain_id=97,
        native_symbol="tBNB",
        explorer_api_url="https://api-testnet.bscscan.com/api",
        explorer_url="https://testnet.bscscan.com",
        api_key_setting="bscscan_testnet_api_key",
    ),
    "ETHEREUM": NetworkConfig(
        key="ETHEREUM",
        name="Ethereum Mainnet",
        chain_id=1,
        native_symbol="ETH",
        explorer_api_url="https://api.etherscan.io/api",
        explorer_url="https://etherscan.io",
        api_key_setting="etherscan_api_key",
    ),
}

# Short names accepted from callers
NETWORK_ALIASES = {
    "BSC": "BSC_MAINNET",
    "BNB": "BSC_MAINNET",
    "ETH": "ETHEREUM",
}


def resolve_network(network: str | None, default: str = "BSC_MAINNET") -> str | None:
    """
    Map a caller-supplied network name to a network key.

    Args:
        network: Network key or alias (case-insensitive); None means default
        default: Network used when none is supplied

    Returns:
        Network key, or None if unsupported
    """
    if network is None or not str(network).strip():
        return default
    candidate = str(network).strip().upper()
    candidate = NETWORK_ALIASES.get(candidate, candidate)
    return candidate if candidate in NETWORKS else None


def get_network(network: str) -> NetworkConfig:
    """Return config for a network key (KeyError if unsupported)."""
    return NETWORKS[network]
