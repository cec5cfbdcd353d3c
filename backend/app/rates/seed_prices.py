"""Seed quotes and per-asset parameters for the rate simulator."""

# Realistic starting metadata for the assets the simulator knows about
SEED_ASSETS: dict[str, dict] = {
    "bitcoin": {
        "symbol": "BTC",
        "name": "Bitcoin",
        "rank": 1,
        "price_usd": 42000.00,
        "supply": 19_600_000.0,
        "max_supply": 21_000_000.0,
        "explorer": "https://blockchain.info/",
    },
    "ethereum": {
        "symbol": "ETH",
        "name": "Ethereum",
        "rank": 2,
        "price_usd": 2300.00,
        "supply": 120_200_000.0,
        "max_supply": None,
        "explorer": "https://etherscan.io/",
    },
    "solana": {
        "symbol": "SOL",
        "name": "Solana",
        "rank": 5,
        "price_usd": 95.00,
        "supply": 440_000_000.0,
        "max_supply": None,
        "explorer": "https://explorer.solana.com/",
    },
}

# Per-asset GBM parameters
# sigma: annualized volatility (crypto trades around the clock and is jumpy)
# mu: annualized drift / expected return
ASSET_PARAMS: dict[str, dict[str, float]] = {
    "bitcoin": {"sigma": 0.60, "mu": 0.10},
    "ethereum": {"sigma": 0.75, "mu": 0.10},
    "solana": {"sigma": 1.00, "mu": 0.05},
}

# Defaults for assets not listed above
DEFAULT_PARAMS: dict[str, float] = {"sigma": 0.80, "mu": 0.05}
DEFAULT_PRICE_RANGE: tuple[float, float] = (1.0, 500.0)

# Simulated 24h volume as a fraction of market cap
VOLUME_TO_MARKET_CAP = 0.03
