"""
Token symbol normalization.

Binance-Peg tokens report ambiguous symbols ("ETH" on BSC is Binance-Peg
Ethereum), so their full token name decides the canonical symbol. Other
wrapped or bridged assets only merge through the explicit alias table;
liquid-staking derivatives such as wstETH keep their own symbol. The
function is total: every input maps to some symbol.
"""

# Marker in a token name identifying a Binance-Peg asset
PEG_NAME_MARKER = "BINANCE-PEG"

# Ordered (name substring, canonical symbol) rules for Binance-Peg tokens.
# "BITCOIN CASH" must precede "BITCOIN".
PEGGED_NAME_RULES: tuple[tuple[str, str], ...] = (
    ("ETHEREUM", "ETH"),
    ("BITCOIN CASH", "BCH"),
    ("BITCOIN", "BTC"),
    ("CARDANO", "ADA"),
    ("POLKADOT", "DOT"),
    ("CHAINLINK", "LINK"),
    ("UNISWAP", "UNI"),
    ("AAVE", "AAVE"),
    ("BUSD", "BUSD"),
    ("USD COIN", "USDC"),
    ("LITECOIN", "LTC"),
    ("DOGECOIN", "DOGE"),
    ("POLYGON", "MATIC"),
    ("AVALANCHE", "AVAX"),
    ("SOLANA", "SOL"),
    ("XRP", "XRP"),
)

# Wrapped / chain-specific symbols of the same underlying asset
SYMBOL_ALIASES: dict[str, str] = {
    "BTCB": "BTC",
    "WBNB": "BNB",
    "WETH": "ETH",
    "WBTC": "BTC",
}

# Symbols kept verbatim even if a rule would otherwise apply
PRESERVED_SYMBOLS = frozenset({"BSC-USD"})

UNKNOWN_SYMBOL = "UNKNOWN"


def normalize_token_symbol(token_symbol: str | None, token_name: str | None = None) -> str:
    """
    Map a token's symbol and name to the canonical symbol used for balances.

    Args:
        token_symbol: Symbol reported by the explorer/provider
        token_name: Full token name (may be empty)

    Returns:
        Canonical symbol; falls back to the upper-cased raw symbol

    Examples:
        >>> normalize_token_symbol("ETH", "Binance-Peg Ethereum Token")
        'ETH'
        >>> normalize_token_symbol("WETH", "Wrapped Ether")
        'ETH'
        >>> normalize_token_symbol("cake", "PancakeSwap Token")
        'CAKE'
    """
    symbol = (token_symbol or "").strip().upper()
    name = (token_name or "").strip().upper()

    if symbol in PRESERVED_SYMBOLS or any(s in name for s in PRESERVED_SYMBOLS):
        return "BSC-USD"

    if symbol in SYMBOL_ALIASES:
        return SYMBOL_ALIASES[symbol]

    if PEG_NAME_MARKER in name:
        for fragment, canonical in PEGGED_NAME_RULES:
            if fragment in name:
                return canonical

    return symbol or UNKNOWN_SYMBOL
