"""
Symbol Mapping Service.
Maps internal coin symbols to CoinGecko IDs and display names.
"""
from typing import Optional, Dict, Tuple
from dataclasses import dataclass

from shared.validators import validate_coin_symbol


@dataclass
class SymbolMapping:
    """Symbol mapping data."""
    symbol: str  # Internal symbol (e.g., "BTC")
    gecko_id: str  # CoinGecko ID (e.g., "bitcoin")
    name: str  # Display name (e.g., "Bitcoin")


class SymbolResolver:
    """
    Symbol Mapping Service.
    Maps internal coin symbols to provider-specific identifiers and names.
    """

    def __init__(self):
        # Format: "SYMBOL": ("gecko_id", "Display Name")
        self._mappings: Dict[str, Tuple[str, str]] = {
            "BTC": ("bitcoin", "Bitcoin"),
            "ETH": ("ethereum", "Ethereum"),
            "USDT": ("tether", "Tether"),
            "USDC": ("usd-coin", "USD Coin"),
            "DAI": ("dai", "Dai"),
            "SOL": ("solana", "Solana"),
            "BNB": ("binancecoin", "BNB"),
            "ADA": ("cardano", "Cardano"),
            "XRP": ("ripple", "XRP"),
            "DOT": ("polkadot", "Polkadot"),
            "DOGE": ("dogecoin", "Dogecoin"),
            "MATIC": ("matic-network", "Polygon"),
            "AVAX": ("avalanche-2", "Avalanche"),
            "LINK": ("chainlink", "Chainlink"),
            "UNI": ("uniswap", "Uniswap"),
            "ATOM": ("cosmos", "Cosmos Hub"),
            "LTC": ("litecoin", "Litecoin"),
            "ETC": ("ethereum-classic", "Ethereum Classic"),
            "XLM": ("stellar", "Stellar"),
            "ALGO": ("algorand", "Algorand"),
            "FIL": ("filecoin", "Filecoin"),
            "TRX": ("tron", "TRON"),
            "AAVE": ("aave", "Aave"),
            "MKR": ("maker", "Maker"),
            "NEAR": ("near", "NEAR Protocol"),
            "ICP": ("internet-computer", "Internet Computer"),
            "APT": ("aptos", "Aptos"),
            "ARB": ("arbitrum", "Arbitrum"),
            "OP": ("optimism", "Optimism"),
            "SUI": ("sui", "Sui"),
        }

    def get_gecko_id(self, symbol: str) -> str:
        """Get CoinGecko ID for a symbol."""
        mapping = self._mappings.get(symbol.upper())
        if mapping:
            return mapping[0]
        # Fallback: try lowercase symbol as gecko_id
        return symbol.lower()

    def get_name(self, symbol: str) -> Optional[str]:
        """Get display name for a symbol, or None if unknown."""
        mapping = self._mappings.get(symbol.upper())
        return mapping[1] if mapping else None

    def get_mapping(self, symbol: str) -> SymbolMapping:
        """Get full symbol mapping."""
        return SymbolMapping(
            symbol=symbol.upper(),
            gecko_id=self.get_gecko_id(symbol),
            name=self.get_name(symbol) or symbol.upper()
        )

    def add_mapping(self, symbol: str, gecko_id: str, name: str):
        """Add or update a symbol mapping. Raises ValueError for a malformed symbol."""
        self._mappings[validate_coin_symbol(symbol)] = (gecko_id, name)
