import logging
import math
from typing import List, Optional, Sequence

from config import config
from src.liquidity_engine.formatting.price_formatter import format_percentage, format_price, format_price_range
from src.liquidity_engine.models.liquidity_models import ChartPoint, LiquidityLevel, Side

logger = logging.getLogger(__name__)


def clamp_scale_percent(value: float) -> float:
    """
    Snap a requested window to the slider range: nearest step, then clamped
    to [MIN_SCALE_PERCENT, MAX_SCALE_PERCENT].
    """
    step = config.SCALE_STEP_PERCENT
    snapped = round(value / step) * step if step > 0 else value
    return float(min(max(snapped, config.MIN_SCALE_PERCENT), config.MAX_SCALE_PERCENT))


class ChartSeriesBuilder:
    """
    Puts buy and sell levels on a single axis: percent distance of each
    level's mid price from the current price.

    merge (buy first, then sell) -> drop points outside +/- scale_percent
    -> stable sort by percent_from_current.
    """

    @staticmethod
    def to_point(level: LiquidityLevel, current_price: float, quote_symbol: Optional[str] = None) -> ChartPoint:
        price = level.mid_price
        pct = (price - current_price) / current_price * 100
        is_buy = level.side == Side.BUY
        return ChartPoint(
            price=price,
            price_lower=level.price_lower,
            price_upper=level.price_upper,
            price_range=format_price_range(level.price_lower, level.price_upper),
            side=level.side,
            buy_liquidity=level.liquidity_value if is_buy else 0.0,
            sell_liquidity=0.0 if is_buy else level.liquidity_value,
            source_breakdown=dict(level.source_breakdown),
            percent_from_current=pct,
            percent_label=f"{format_percentage(pct)}\n{format_price(price, quote_symbol)}",
        )

    @staticmethod
    def build(
        buy_levels: Sequence[LiquidityLevel],
        sell_levels: Sequence[LiquidityLevel],
        current_price: float,
        scale_percent: float = 10.0,
        quote_symbol: Optional[str] = None,
    ) -> List[ChartPoint]:
        if not scale_percent > 0:
            raise ValueError(f"scale_percent must be positive, got {scale_percent}")

        if not (current_price > 0 and math.isfinite(current_price)):
            logger.warning(f"Cannot place levels relative to current price {current_price}; returning empty series")
            return []

        merged = list(buy_levels) + list(sell_levels)
        points = [ChartSeriesBuilder.to_point(l, current_price, quote_symbol) for l in merged]
        visible = [p for p in points if abs(p.percent_from_current) <= scale_percent]

        # sorted() is stable, so equal percentages keep merge order (buy before sell)
        series = sorted(visible, key=lambda p: p.percent_from_current)

        logger.debug(f"Chart series: {len(series)}/{len(points)} points within ±{scale_percent}%")
        return series
