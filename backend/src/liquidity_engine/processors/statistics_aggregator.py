import logging
from typing import List, Optional, Sequence

from src.liquidity_engine.models.liquidity_models import LiquidityLevel, LiquidityStatistics

logger = logging.getLogger(__name__)


def _strongest(levels: Sequence[LiquidityLevel]) -> Optional[LiquidityLevel]:
    # max() keeps the first of equal maxima
    if not levels:
        return None
    return max(levels, key=lambda l: l.liquidity_value)


def _guarded_ratio(numerator: float, denominator: float, name: str, guards: List[str]) -> float:
    if denominator > 0:
        return numerator / denominator
    guards.append(name)
    return 0.0


class StatisticsAggregator:
    """
    Summary numbers for the stats panel: side totals, buy/sell ratio,
    each side's share of the combined liquidity and the strongest wall per side.

    Does not assume the levels are sorted. Zero denominators resolve to 0
    and are listed in `division_guards`.
    """

    @staticmethod
    def compute(buy_levels: Sequence[LiquidityLevel], sell_levels: Sequence[LiquidityLevel]) -> LiquidityStatistics:
        total_buy = sum(l.liquidity_value for l in buy_levels)
        total_sell = sum(l.liquidity_value for l in sell_levels)
        total = total_buy + total_sell

        guards: List[str] = []
        ratio = _guarded_ratio(total_buy, total_sell, "buy_sell_ratio", guards)
        buy_share = _guarded_ratio(total_buy, total, "buy_share", guards)
        sell_share = _guarded_ratio(total_sell, total, "sell_share", guards)

        if guards:
            logger.debug(f"Zero denominator resolved to 0 for: {', '.join(guards)}")

        return LiquidityStatistics(
            total_buy_liquidity=float(total_buy),
            total_sell_liquidity=float(total_sell),
            total_liquidity=float(total),
            strongest_buy_level=_strongest(buy_levels),
            strongest_sell_level=_strongest(sell_levels),
            buy_sell_ratio=ratio,
            buy_share=buy_share,
            sell_share=sell_share,
            buy_level_count=len(buy_levels),
            sell_level_count=len(sell_levels),
            division_guards=guards,
        )
