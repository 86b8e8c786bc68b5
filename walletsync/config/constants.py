"""
Operational constants for walletsync.

Explorer limits, timeouts and chain-level constants shared by the
poll and webhook ingestion paths.
"""

# =============================================================================
# EXPLORER API
# =============================================================================

# Etherscan-family APIs cap `offset` for paginated account queries
EXPLORER_MAX_PAGE_SIZE = 100

# Total timeout for a single explorer request (seconds)
EXPLORER_DEFAULT_TIMEOUT_SECONDS = 15.0

# Inclusive upper bound passed as `endblock`
EXPLORER_END_BLOCK = 99999999

# status="0" messages that mean "empty result", not an error
EXPLORER_EMPTY_MESSAGES = frozenset({
    "No transactions found",
    "No records found",
    "No token transfers found",
})


# =============================================================================
# SYNC
# =============================================================================

# Pages fetched per block window before continuing with an older window
SYNC_DEFAULT_MAX_PAGES = 10

# Delay between sweeps over different wallets (seconds)
SYNC_SWEEP_DELAY_SECONDS = 0.5

# Retries of a failed sweep task before it is dropped until the next interval
SWEEP_MAX_RETRIES = 2


# =============================================================================
# CHAIN
# =============================================================================

# Decimals used when a transfer reports none (or garbage)
DEFAULT_TOKEN_DECIMALS = 18

# Native currency always has 18 decimals on EVM chains
NATIVE_DECIMALS = 18

# keccak256("Transfer(address,address,uint256)")
ERC20_TRANSFER_TOPIC = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"


# =============================================================================
# LEDGER / HISTORY
# =============================================================================

DEFAULT_HISTORY_LIMIT = 50
