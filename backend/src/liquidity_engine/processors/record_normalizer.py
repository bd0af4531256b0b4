import logging
import math
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from src.liquidity_engine.models.liquidity_models import (
    EmptyInput,
    InputMode,
    LiquidityLevel,
    MalformedLevel,
    NormalizedLevels,
    PairWallsResponse,
    PricingMode,
    RawLiquidityWall,
    Side,
    TokenAggregateResponse,
)

logger = logging.getLogger(__name__)

RawResponse = Union[Mapping[str, Any], PairWallsResponse, TokenAggregateResponse, None]

# relative slack for float error when venue amounts are summed upstream
SOURCE_SUM_TOLERANCE = 1e-9


def _check_level(lower: Optional[float], upper: Optional[float], value: Optional[float]) -> Optional[str]:
    """Returns the reason a record can't become a LiquidityLevel, or None if it can."""
    if lower is None or upper is None:
        return "missing price bound"
    if value is None:
        return "missing liquidity value"
    if not (math.isfinite(lower) and math.isfinite(upper)):
        return "non-finite price bound"
    if not math.isfinite(value):
        return "non-finite liquidity value"
    if lower < 0 or upper < 0:
        return f"negative price bound ({lower}, {upper})"
    if lower > upper:
        return f"price_lower {lower} > price_upper {upper}"
    if value < 0:
        return f"negative liquidity value {value}"
    return None


def _check_sources(sources: Mapping[str, float], value: float) -> Optional[str]:
    """Venue amounts must be finite, non-negative and add up to at most the wall's value."""
    for venue, amount in sources.items():
        if not math.isfinite(amount):
            return f"non-finite amount for venue {venue!r}"
        if amount < 0:
            return f"negative amount {amount} for venue {venue!r}"
    total = sum(sources.values())
    if total > value + SOURCE_SUM_TOLERANCE * max(value, 1.0):
        return f"venue amounts sum to {total}, more than liquidity value {value}"
    return None


class RecordNormalizer:
    """
    Turns either upstream shape into canonical buy/sell LiquidityLevel lists.

    Pair mode:      buy_walls + one of two sell-wall sets, picked by PricingMode.
    Aggregate mode: one flat price_levels list tagged with side, no venue detail.

    Output keeps input order within each side; sorting is the chart builder's job.
    Bad records are dropped and reported in `malformed`, never raised.
    """

    @staticmethod
    def detect_mode(raw: Union[Mapping[str, Any], PairWallsResponse, TokenAggregateResponse]) -> InputMode:
        if isinstance(raw, TokenAggregateResponse):
            return InputMode.AGGREGATE
        if isinstance(raw, PairWallsResponse):
            return InputMode.PAIR
        return InputMode.AGGREGATE if "price_levels" in raw else InputMode.PAIR

    @staticmethod
    def normalize(raw: RawResponse, pricing_mode: PricingMode = PricingMode.CURRENT_PRICE) -> Union[NormalizedLevels, EmptyInput]:
        if raw is None or (isinstance(raw, Mapping) and not raw):
            return EmptyInput()

        mode = RecordNormalizer.detect_mode(raw)
        if mode == InputMode.AGGREGATE:
            response = raw if isinstance(raw, TokenAggregateResponse) else TokenAggregateResponse.model_validate(raw)
            result = RecordNormalizer._normalize_aggregate(response)
        else:
            response = raw if isinstance(raw, PairWallsResponse) else PairWallsResponse.model_validate(raw)
            result = RecordNormalizer._normalize_pair(response, PricingMode(pricing_mode))

        for bad in result.malformed:
            logger.warning(f"Dropped malformed level {bad.source}[{bad.index}]: {bad.reason}")

        logger.debug(
            f"Normalized {mode.value} response {result.token0.symbol}/{result.token1.symbol}: "
            f"buy={len(result.buy_levels)} sell={len(result.sell_levels)} malformed={len(result.malformed)}"
        )
        return result

    @staticmethod
    def select_sell_walls(response: PairWallsResponse, pricing_mode: PricingMode) -> Tuple[str, List[RawLiquidityWall]]:
        """
        Picks the authoritative sell-wall list. Falls back to the legacy
        `sell_walls` field when the requested variant is absent.
        """
        if pricing_mode == PricingMode.WALL_PRICE:
            name, walls = "sell_walls_in_wall_price", response.sell_walls_in_wall_price
        else:
            name, walls = "sell_walls_in_current_price", response.sell_walls_in_current_price

        if walls is None and response.sell_walls is not None:
            return "sell_walls", response.sell_walls
        return name, walls or []

    @staticmethod
    def _convert_walls(walls: List[RawLiquidityWall], side: Side, source: str,
                       malformed: List[MalformedLevel]) -> List[LiquidityLevel]:
        levels = []
        for i, w in enumerate(walls):
            reason = (_check_level(w.price_lower, w.price_upper, w.liquidity_value)
                      or _check_sources(w.dex_sources, w.liquidity_value))
            if reason:
                malformed.append(MalformedLevel(source=source, index=i, reason=reason))
                continue
            levels.append(LiquidityLevel(
                side=side,
                price_lower=w.price_lower,
                price_upper=w.price_upper,
                liquidity_value=w.liquidity_value,
                source_breakdown=dict(w.dex_sources),
            ))
        return levels

    @staticmethod
    def _normalize_pair(response: PairWallsResponse, pricing_mode: PricingMode) -> NormalizedLevels:
        malformed: List[MalformedLevel] = []

        buy_levels = RecordNormalizer._convert_walls(response.buy_walls, Side.BUY, "buy_walls", malformed)
        sell_source, sell_walls = RecordNormalizer.select_sell_walls(response, pricing_mode)
        sell_levels = RecordNormalizer._convert_walls(sell_walls, Side.SELL, sell_source, malformed)

        return NormalizedLevels(
            mode=InputMode.PAIR,
            token0=response.token0,
            token1=response.token1,
            current_price=response.price,
            buy_levels=buy_levels,
            sell_levels=sell_levels,
            malformed=malformed,
            timestamp=response.timestamp,
        )

    @staticmethod
    def _normalize_aggregate(response: TokenAggregateResponse) -> NormalizedLevels:
        malformed: List[MalformedLevel] = []
        partitions: Dict[Side, List[LiquidityLevel]] = {Side.BUY: [], Side.SELL: []}

        for i, lvl in enumerate(response.price_levels):
            side = Side.parse(lvl.side)
            if side is None:
                malformed.append(MalformedLevel(source="price_levels", index=i, reason=f"unknown side {lvl.side!r}"))
                continue
            reason = _check_level(lvl.lower_price, lvl.upper_price, lvl.token1_liquidity)
            if reason:
                malformed.append(MalformedLevel(source="price_levels", index=i, reason=reason))
                continue
            partitions[side].append(LiquidityLevel(
                side=side,
                price_lower=lvl.lower_price,
                price_upper=lvl.upper_price,
                liquidity_value=lvl.token1_liquidity,
            ))

        return NormalizedLevels(
            mode=InputMode.AGGREGATE,
            token0=response.token0,
            token1=response.token1,
            current_price=response.current_price,
            buy_levels=partitions[Side.BUY],
            sell_levels=partitions[Side.SELL],
            malformed=malformed,
            timestamp=response.timestamp,
        )
