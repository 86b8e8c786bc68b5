"""
Tests for token symbol normalization.
"""

import pytest

from walletsync.services.token_symbols import UNKNOWN_SYMBOL, normalize_token_symbol


class TestNormalizeTokenSymbol:
    """Test canonical symbol mapping."""

    @pytest.mark.parametrize(
        "symbol,name,expected",
        [
            ("ETH", "Binance-Peg Ethereum Token", "ETH"),
            ("WETH", "Wrapped Ether", "ETH"),
            ("BTCB", "BTCB Token", "BTC"),
            ("WBTC", "Wrapped BTC", "BTC"),
            ("WBNB", "Wrapped BNB", "BNB"),
            ("ADA", "Binance-Peg Cardano Token", "ADA"),
            ("DOT", "Binance-Peg Polkadot Token", "DOT"),
            ("LINK", "Binance-Peg ChainLink Token", "LINK"),
            ("BCH", "Binance-Peg Bitcoin Cash Token", "BCH"),
            ("USDC", "Binance-Peg USD Coin", "USDC"),
            ("DOGE", "Binance-Peg Dogecoin Token", "DOGE"),
            ("XRP", "Binance-Peg XRP Token", "XRP"),
        ],
    )
    def test_pegged_and_wrapped_tokens(self, symbol, name, expected):
        """Bridged/wrapped assets map to the underlying asset symbol."""
        assert normalize_token_symbol(symbol, name) == expected

    def test_peg_rules_apply_by_name_not_symbol(self):
        """A misleading symbol is corrected by the token name."""
        assert normalize_token_symbol("BETH", "Binance-Peg Ethereum Token") == "ETH"

    def test_pegged_tether_keeps_its_symbol(self):
        """No name rule matches Tether, so the raw symbol is kept."""
        assert normalize_token_symbol("USDT", "Binance-Peg Tether USD") == "USDT"

    def test_bsc_usd_is_preserved(self):
        """BSC-USD keeps its own symbol."""
        assert normalize_token_symbol("BSC-USD", "Binance-Peg BSC-USD") == "BSC-USD"

    def test_plain_token_uppercased(self):
        """Tokens without a rule keep their own symbol, upper-cased."""
        assert normalize_token_symbol("cake", "PancakeSwap Token") == "CAKE"

    def test_peg_marker_without_matching_rule(self):
        """A pegged token with no rule falls back to its raw symbol."""
        assert normalize_token_symbol("zzz", "Binance-Peg Mystery Coin") == "ZZZ"

    @pytest.mark.parametrize(
        "symbol,name,expected",
        [
            ("wstETH", "Wrapped liquid staked Ether 2.0", "WSTETH"),
            ("stETH", "Bridged Lido Staked Ether", "STETH"),
            ("rETH", "Rocket Pool ETH", "RETH"),
            ("BETH", "Bridged Ether", "BETH"),
        ],
    )
    def test_staking_derivatives_keep_their_symbol(self, symbol, name, expected):
        """Only Binance-Peg names and the alias table merge assets into ETH."""
        assert normalize_token_symbol(symbol, name) == expected

    @pytest.mark.parametrize("symbol", [None, "", "   "])
    def test_empty_symbol_is_unknown(self, symbol):
        """Normalization is total: empty input still yields a symbol."""
        assert normalize_token_symbol(symbol, None) == UNKNOWN_SYMBOL
