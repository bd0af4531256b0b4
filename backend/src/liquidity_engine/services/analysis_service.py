import itertools
import logging
from typing import Any, Dict, Generic, Optional, TypeVar, Union

from config import config
from src.liquidity_engine.formatting.price_formatter import format_number, format_price, format_ratio
from src.liquidity_engine.models.liquidity_models import (
    AnalysisResult,
    EmptyInput,
    LiquidityLevel,
    PricingMode,
)
from src.liquidity_engine.processors.chart_series_builder import ChartSeriesBuilder
from src.liquidity_engine.processors.record_normalizer import RawResponse, RecordNormalizer
from src.liquidity_engine.processors.statistics_aggregator import StatisticsAggregator

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RequestSequencer(Generic[T]):
    """
    Last-write-wins bookkeeping for callers that fire overlapping requests
    (periodic refresh, pair change, window change). Every request takes a
    token; a result is only applied if its token is still the newest one.
    """

    def __init__(self):
        self._counter = itertools.count(1)
        self._latest_token = 0
        self.current: Optional[T] = None

    def next_token(self) -> int:
        self._latest_token = next(self._counter)
        return self._latest_token

    def is_current(self, token: int) -> bool:
        return token == self._latest_token

    def apply(self, token: int, result: T) -> bool:
        if not self.is_current(token):
            logger.debug(f"Discarding stale result for request {token} (latest is {self._latest_token})")
            return False
        self.current = result
        return True


class LiquidityAnalysisService:
    """
    Runs the whole pipeline for one raw response:
    RecordNormalizer -> StatisticsAggregator + ChartSeriesBuilder.
    Holds no state between calls.
    """

    def analyze(
        self,
        raw: RawResponse,
        pricing_mode: Union[PricingMode, str, None] = None,
        scale_percent: Optional[float] = None,
    ) -> Union[AnalysisResult, EmptyInput]:
        mode = PricingMode(pricing_mode or config.DEFAULT_PRICING_MODE)
        scale = config.DEFAULT_SCALE_PERCENT if scale_percent is None else scale_percent

        normalized = RecordNormalizer.normalize(raw, mode)
        if isinstance(normalized, EmptyInput):
            return normalized

        stats = StatisticsAggregator.compute(normalized.buy_levels, normalized.sell_levels)
        series = ChartSeriesBuilder.build(
            normalized.buy_levels,
            normalized.sell_levels,
            normalized.current_price,
            scale,
            quote_symbol=normalized.token1.symbol,
        )

        logger.info(
            f"Liquidity analysis {normalized.token0.symbol}/{normalized.token1.symbol} "
            f"({normalized.mode.value}, {mode.value}): buy={stats.total_buy_liquidity:,.2f} "
            f"sell={stats.total_sell_liquidity:,.2f} points={len(series)}"
        )

        return AnalysisResult(
            mode=normalized.mode,
            token0=normalized.token0,
            token1=normalized.token1,
            current_price=normalized.current_price,
            pricing_mode=mode,
            scale_percent=scale,
            statistics=stats,
            chart_series=series,
            malformed_levels=normalized.malformed,
            timestamp=normalized.timestamp,
        )


def _describe_level(level: Optional[LiquidityLevel], symbol: str) -> Optional[Dict[str, Any]]:
    if level is None:
        return None
    return {
        "liquidity": f"{format_number(level.liquidity_value, compact=True)} {symbol}",
        "range": f"{format_price(level.price_lower, symbol)} - {format_price(level.price_upper, symbol)}",
        "sources": {
            venue: format_number(amount, compact=True)
            for venue, amount in level.source_breakdown.items()
        },
    }


def build_summary(result: AnalysisResult) -> Dict[str, Any]:
    """Display strings for the stats panel."""
    stats = result.statistics
    quote = result.token1.symbol
    return {
        "pair": f"{result.token0.symbol}/{quote}",
        "current_price": format_price(result.current_price, quote),
        "total_liquidity": f"{format_number(stats.total_liquidity, compact=True)} {quote}",
        "total_buy_liquidity": f"{format_number(stats.total_buy_liquidity, compact=True)} {quote}",
        "total_sell_liquidity": f"{format_number(stats.total_sell_liquidity, compact=True)} {quote}",
        "buy_share": f"{stats.buy_share * 100:.1f}%",
        "sell_share": f"{stats.sell_share * 100:.1f}%",
        "buy_sell_ratio": format_ratio(stats.buy_sell_ratio),
        "buy_levels": stats.buy_level_count,
        "sell_levels": stats.sell_level_count,
        "strongest_buy_wall": _describe_level(stats.strongest_buy_level, quote),
        "strongest_sell_wall": _describe_level(stats.strongest_sell_level, quote),
    }


# Global singleton
liquidity_analysis_service = LiquidityAnalysisService()
