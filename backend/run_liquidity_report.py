#!/usr/bin/env python3
"""
Standalone liquidity wall report.
Run: python run_liquidity_report.py response.json --mode wall --scale 15

Reads a pair-mode or aggregate-mode API response (file or stdin) and logs the
stats panel and chart series the web UI would render.
"""
import argparse
import json
import logging
import sys

import colorlog

from config import config
from src.liquidity_engine.models.liquidity_models import EmptyInput
from src.liquidity_engine.processors.chart_series_builder import clamp_scale_percent
from src.liquidity_engine.formatting.price_formatter import format_number
from src.liquidity_engine.services.analysis_service import build_summary, liquidity_analysis_service

# Configure Colored Logging
handler = colorlog.StreamHandler()
handler.setFormatter(colorlog.ColoredFormatter(
    '%(log_color)s%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    log_colors={
        'DEBUG': 'cyan',
        'INFO': 'green',
        'WARNING': 'yellow',
        'ERROR': 'red',
        'CRITICAL': 'red,bg_white',
    }
))
logger = colorlog.getLogger()
if not logger.handlers:
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, config.LOG_LEVEL, logging.INFO))


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Summarize liquidity walls from an API response")
    parser.add_argument("path", nargs="?", default="-", help="JSON response file, '-' for stdin")
    parser.add_argument("--mode", choices=["wall", "current"], default=config.DEFAULT_PRICING_MODE,
                        help="Sell-wall pricing mode (pair responses only)")
    parser.add_argument("--scale", type=float, default=config.DEFAULT_SCALE_PERCENT,
                        help="Chart window in percent from current price")
    return parser.parse_args(argv)


def load_response(path: str):
    if path == "-":
        return json.load(sys.stdin)
    with open(path) as f:
        return json.load(f)


def main(argv=None) -> int:
    args = parse_args(argv)
    config.validate()

    raw = load_response(args.path)
    scale = clamp_scale_percent(args.scale)
    result = liquidity_analysis_service.analyze(raw, args.mode, scale)

    if isinstance(result, EmptyInput):
        logger.info("No liquidity data yet")
        return 0

    summary = build_summary(result)
    logger.info(f"📊 {summary['pair']} @ {summary['current_price']}")
    logger.info(f"Total liquidity: {summary['total_liquidity']}")
    logger.info(f"  Buy:  {summary['total_buy_liquidity']} ({summary['buy_share']}, {summary['buy_levels']} levels)")
    logger.info(f"  Sell: {summary['total_sell_liquidity']} ({summary['sell_share']}, {summary['sell_levels']} levels)")
    logger.info(f"Buy/Sell ratio: {summary['buy_sell_ratio']}")

    for label, wall in (("buy", summary["strongest_buy_wall"]), ("sell", summary["strongest_sell_wall"])):
        if wall:
            sources = ", ".join(f"{k}: {v}" for k, v in wall["sources"].items())
            logger.info(f"Strongest {label} wall: {wall['liquidity']} at {wall['range']}" + (f" [{sources}]" if sources else ""))

    logger.info(f"Chart (±{result.scale_percent:g}%):")
    for point in result.chart_series:
        pct, price = point.percent_label.split("\n")
        amount = point.buy_liquidity or point.sell_liquidity
        logger.info(f"  {pct:>7} {price:>24}  {point.type:<4} {format_number(amount, compact=True)}")

    if result.malformed_levels:
        logger.warning(f"{len(result.malformed_levels)} malformed level(s) skipped")
    return 0


if __name__ == "__main__":
    sys.exit(main())
