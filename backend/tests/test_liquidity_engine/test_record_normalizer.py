import logging

import pytest
from pydantic import ValidationError

from src.liquidity_engine.models.liquidity_models import (
    EmptyInput,
    InputMode,
    LiquidityLevel,
    NormalizedLevels,
    PairWallsResponse,
    PricingMode,
    Side,
    Token,
    TokenAggregateResponse,
)
from src.liquidity_engine.processors.record_normalizer import RecordNormalizer


def test_missing_response_is_empty_input_not_error():
    assert isinstance(RecordNormalizer.normalize(None, PricingMode.CURRENT_PRICE), EmptyInput)
    assert isinstance(RecordNormalizer.normalize({}, PricingMode.WALL_PRICE), EmptyInput)


def test_pair_mode_current_price_selects_current_sell_walls(pair_response):
    res = RecordNormalizer.normalize(pair_response, PricingMode.CURRENT_PRICE)

    assert isinstance(res, NormalizedLevels)
    assert res.mode == InputMode.PAIR
    assert res.current_price == 1625.75
    assert [l.liquidity_value for l in res.buy_levels] == [35_000_000]
    assert [l.liquidity_value for l in res.sell_levels] == [30_000_000]
    assert all(l.side == Side.SELL for l in res.sell_levels)
    assert res.buy_levels[0].source_breakdown == {"uniswap_v3": 20_000_000, "uniswap_v2": 15_000_000}


def test_pair_mode_wall_price_selects_wall_sell_walls(pair_response):
    res = RecordNormalizer.normalize(pair_response, PricingMode.WALL_PRICE)

    assert [l.liquidity_value for l in res.sell_levels] == [12_000_000, 8_000_000]
    # buy side does not depend on pricing mode
    assert [l.liquidity_value for l in res.buy_levels] == [35_000_000]


def test_pair_mode_accepts_string_mode(pair_response):
    res = RecordNormalizer.normalize(pair_response, "wall")
    assert len(res.sell_levels) == 2


def test_legacy_single_sell_list_used_for_both_modes(pair_response):
    legacy = dict(pair_response)
    legacy["sell_walls"] = legacy.pop("sell_walls_in_current_price")
    del legacy["sell_walls_in_wall_price"]

    for mode in PricingMode:
        res = RecordNormalizer.normalize(legacy, mode)
        assert [l.liquidity_value for l in res.sell_levels] == [30_000_000]


def test_pair_mode_without_any_sell_walls(pair_response):
    del pair_response["sell_walls_in_current_price"]
    del pair_response["sell_walls_in_wall_price"]
    res = RecordNormalizer.normalize(pair_response, PricingMode.CURRENT_PRICE)
    assert res.sell_levels == []
    assert len(res.buy_levels) == 1


def test_aggregate_mode_partitions_by_side(aggregate_response):
    res = RecordNormalizer.normalize(aggregate_response, PricingMode.CURRENT_PRICE)

    assert res.mode == InputMode.AGGREGATE
    assert res.current_price == 15.0
    # input order preserved within each side, no sorting
    assert [l.liquidity_value for l in res.buy_levels] == [1000.0, 5000.0, 2500.0]
    assert [l.liquidity_value for l in res.sell_levels] == [4000.0, 3000.0]
    assert [l.price_lower for l in res.buy_levels] == [14.0, 13.0, 14.5]
    assert all(l.source_breakdown == {} for l in res.buy_levels + res.sell_levels)


def test_aggregate_mode_ignores_pricing_mode(aggregate_response):
    a = RecordNormalizer.normalize(aggregate_response, PricingMode.CURRENT_PRICE)
    b = RecordNormalizer.normalize(aggregate_response, PricingMode.WALL_PRICE)
    assert a == b


def test_aggregate_side_is_case_insensitive(aggregate_response):
    aggregate_response["price_levels"][0]["side"] = "SELL"
    aggregate_response["price_levels"][1]["side"] = "buy"
    res = RecordNormalizer.normalize(aggregate_response, PricingMode.CURRENT_PRICE)
    assert len(res.buy_levels) == 3
    assert len(res.sell_levels) == 2
    assert res.malformed == []


def test_malformed_pair_walls_are_dropped_and_reported(pair_response, caplog):
    pair_response["buy_walls"].extend([
        {"price_lower": 1400, "price_upper": 1300, "liquidity_value": 1_000, "dex_sources": {}},
        {"price_lower": 1300, "price_upper": 1350, "liquidity_value": -5, "dex_sources": {}},
    ])

    with caplog.at_level(logging.WARNING):
        res = RecordNormalizer.normalize(pair_response, PricingMode.CURRENT_PRICE)

    assert [l.liquidity_value for l in res.buy_levels] == [35_000_000]
    assert [(m.source, m.index) for m in res.malformed] == [("buy_walls", 1), ("buy_walls", 2)]
    assert "price_lower" in res.malformed[0].reason
    assert "negative liquidity" in res.malformed[1].reason
    assert "Dropped malformed level buy_walls[1]" in caplog.text
    # the rest of the response still goes through
    assert len(res.sell_levels) == 1


def test_malformed_aggregate_levels(aggregate_response):
    aggregate_response["price_levels"].extend([
        {"side": "Buy", "lower_price": None, "upper_price": 14.0, "token1_liquidity": 10.0},
        {"side": "Sideways", "lower_price": 13.0, "upper_price": 14.0, "token1_liquidity": 10.0},
        {"side": "Sell", "lower_price": 16.0, "upper_price": 17.0, "token1_liquidity": float("nan")},
    ])
    res = RecordNormalizer.normalize(aggregate_response, PricingMode.CURRENT_PRICE)

    assert len(res.buy_levels) == 3
    assert len(res.sell_levels) == 2
    reasons = [m.reason for m in res.malformed]
    assert reasons[0] == "missing price bound"
    assert "unknown side" in reasons[1]
    assert reasons[2] == "non-finite liquidity value"
    assert [m.index for m in res.malformed] == [5, 6, 7]


def test_accepts_already_parsed_models(pair_response, aggregate_response):
    pair = PairWallsResponse.model_validate(pair_response)
    agg = TokenAggregateResponse.model_validate(aggregate_response)

    assert RecordNormalizer.normalize(pair, PricingMode.CURRENT_PRICE).mode == InputMode.PAIR
    assert RecordNormalizer.normalize(agg, PricingMode.CURRENT_PRICE).mode == InputMode.AGGREGATE


def test_broken_envelope_raises_validation_error(pair_response):
    del pair_response["token0"]
    with pytest.raises(ValidationError):
        RecordNormalizer.normalize(pair_response, PricingMode.CURRENT_PRICE)


def test_token_address_is_case_insensitive(pair_response):
    res = RecordNormalizer.normalize(pair_response, PricingMode.CURRENT_PRICE)
    assert res.token0.matches("0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2")
    assert not res.token0.matches(res.token1.address)

    with pytest.raises(ValidationError):
        Token(address="0xnope", symbol="BAD")


def test_wall_with_inconsistent_venue_breakdown_is_dropped(pair_response, caplog):
    pair_response["buy_walls"][0]["dex_sources"] = {"uniswap_v3": 90_000_000, "curve": -5}
    pair_response["buy_walls"].append({
        "price_lower": 1400, "price_upper": 1450, "liquidity_value": 10_000_000,
        "dex_sources": {"uniswap_v3": 6_000_000, "sushiswap": 5_000_000},
    })
    pair_response["buy_walls"].append({
        "price_lower": 1350, "price_upper": 1400, "liquidity_value": 0.3,
        "dex_sources": {"uniswap_v3": 0.1, "uniswap_v2": 0.2},
    })

    with caplog.at_level(logging.WARNING):
        res = RecordNormalizer.normalize(pair_response, PricingMode.CURRENT_PRICE)

    assert [(m.source, m.index) for m in res.malformed] == [("buy_walls", 0), ("buy_walls", 1)]
    assert "negative amount" in res.malformed[0].reason
    assert "more than liquidity value" in res.malformed[1].reason
    assert "Dropped malformed level buy_walls[0]" in caplog.text
    # 0.1 + 0.2 is a hair over 0.3 in floats and still counts as consistent
    assert [l.liquidity_value for l in res.buy_levels] == [0.3]


def test_level_model_rejects_oversized_breakdown():
    with pytest.raises(ValidationError):
        LiquidityLevel(side=Side.BUY, price_lower=1, price_upper=2, liquidity_value=10,
                       source_breakdown={"curve": 11})
    with pytest.raises(ValidationError):
        LiquidityLevel(side=Side.BUY, price_lower=1, price_upper=2, liquidity_value=10,
                       source_breakdown={"curve": -1})
