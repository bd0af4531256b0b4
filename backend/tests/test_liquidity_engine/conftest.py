import pytest

WETH = {
    "address": "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",
    "symbol": "WETH",
    "name": "Wrapped Ether",
    "decimals": 18,
    "chain_id": 1,
}
USDC = {
    "address": "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
    "symbol": "USDC",
    "name": "USD Coin",
    "decimals": 6,
    "chain_id": 1,
}
LINK = {
    "address": "0x514910771AF9Ca656af840dff83E8264EcF986CA",
    "symbol": "LINK",
    "name": "ChainLink Token",
    "decimals": 18,
    "chain_id": 1,
}


@pytest.fixture
def pair_response():
    return {
        "token0": WETH,
        "token1": USDC,
        "price": 1625.75,
        "buy_walls": [
            {
                "price_lower": 1500,
                "price_upper": 1550,
                "liquidity_value": 35_000_000,
                "dex_sources": {"uniswap_v3": 20_000_000, "uniswap_v2": 15_000_000},
            }
        ],
        "sell_walls_in_wall_price": [
            {"price_lower": 1700, "price_upper": 1750, "liquidity_value": 12_000_000, "dex_sources": {"sushiswap": 12_000_000}},
            {"price_lower": 1750, "price_upper": 1800, "liquidity_value": 8_000_000, "dex_sources": {}},
        ],
        "sell_walls_in_current_price": [
            {"price_lower": 1650, "price_upper": 1700, "liquidity_value": 30_000_000, "dex_sources": {}},
        ],
        "timestamp": "2024-05-01T12:00:00Z",
    }


@pytest.fixture
def aggregate_response():
    def level(side, lower, upper, liq):
        return {
            "side": side,
            "lower_price": lower,
            "upper_price": upper,
            "token0_liquidity": liq / 15.0,
            "token1_liquidity": liq,
            "timestamp": "2024-05-01T12:00:00Z",
        }

    return {
        "token0": LINK,
        "token1": USDC,
        "current_price": 15.0,
        "price_levels": [
            level("Sell", 16.0, 16.5, 4000.0),
            level("Buy", 14.0, 14.5, 1000.0),
            level("Buy", 13.0, 13.5, 5000.0),
            level("Sell", 15.0, 15.5, 3000.0),
            level("Buy", 14.5, 15.0, 2500.0),
        ],
        "timestamp": "2024-05-01T12:00:00Z",
    }
