from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.liquidity_engine.formatting.price_formatter import is_valid_address


class Side(str, Enum):
    BUY = "Buy"
    SELL = "Sell"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Side"]:
        """Case-insensitive lookup. Returns None for anything unrecognised."""
        if not value:
            return None
        v = str(value).strip().lower()
        if v == "buy":
            return cls.BUY
        if v == "sell":
            return cls.SELL
        return None


class PricingMode(str, Enum):
    """Which sell-wall set a pair-mode response is read from."""
    WALL_PRICE = "wall"
    CURRENT_PRICE = "current"


class InputMode(str, Enum):
    PAIR = "pair"
    AGGREGATE = "aggregate"


class Token(BaseModel):
    """
    Token metadata as supplied by the data-fetching layer.
    Addresses are compared case-insensitively.
    """
    model_config = ConfigDict(frozen=True)

    address: str
    symbol: str
    name: str = ""
    decimals: int = 18
    chain_id: int = 1

    @field_validator("address")
    @classmethod
    def _check_address(cls, v: str) -> str:
        if not is_valid_address(v):
            raise ValueError(f"not a 20-byte hex address: {v!r}")
        return v

    def matches(self, address: str) -> bool:
        return self.address.lower() == (address or "").lower()


class LiquidityLevel(BaseModel):
    """
    Canonical liquidity level. Both upstream shapes (pair walls and
    aggregate price levels) end up here.
    """
    model_config = ConfigDict(frozen=True)

    side: Side
    price_lower: float = Field(ge=0)
    price_upper: float = Field(ge=0)
    liquidity_value: float = Field(ge=0)
    source_breakdown: Dict[str, float] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_bounds(self) -> "LiquidityLevel":
        if self.price_lower > self.price_upper:
            raise ValueError("price_lower must not exceed price_upper")
        if any(amount < 0 for amount in self.source_breakdown.values()):
            raise ValueError("source_breakdown amounts must be non-negative")
        if sum(self.source_breakdown.values()) > self.liquidity_value * (1 + 1e-9) + 1e-9:
            raise ValueError("source_breakdown exceeds liquidity_value")
        return self

    @property
    def mid_price(self) -> float:
        return (self.price_lower + self.price_upper) / 2


# --- Raw upstream shapes -------------------------------------------------
# Numeric fields stay loose (Optional, unconstrained) so that bad records
# survive parsing and are reported as MalformedLevel instead of failing
# the whole envelope.

class RawLiquidityWall(BaseModel):
    price_lower: Optional[float] = None
    price_upper: Optional[float] = None
    liquidity_value: Optional[float] = None
    dex_sources: Dict[str, float] = Field(default_factory=dict)


class PairWallsResponse(BaseModel):
    """Pair-mode response: walls for token0/token1 on the selected DEXes."""
    token0: Token
    token1: Token
    price: float
    buy_walls: List[RawLiquidityWall] = Field(default_factory=list)
    sell_walls_in_wall_price: Optional[List[RawLiquidityWall]] = None
    sell_walls_in_current_price: Optional[List[RawLiquidityWall]] = None
    # Older API versions returned a single sell list
    sell_walls: Optional[List[RawLiquidityWall]] = None
    timestamp: Optional[datetime] = None


class RawPriceLevel(BaseModel):
    side: Optional[str] = None
    lower_price: Optional[float] = None
    upper_price: Optional[float] = None
    token0_liquidity: Optional[float] = None
    token1_liquidity: Optional[float] = None
    timestamp: Optional[datetime] = None


class TokenAggregateResponse(BaseModel):
    """Aggregate-mode response: one token across its major pairs."""
    token0: Token
    token1: Token
    current_price: float
    price_levels: List[RawPriceLevel] = Field(default_factory=list)
    timestamp: Optional[datetime] = None


# --- Normalizer results --------------------------------------------------

class EmptyInput(BaseModel):
    """No response has arrived yet. Not an error."""
    reason: str = "no data"


class MalformedLevel(BaseModel):
    """A raw record that was dropped during normalization."""
    source: str   # e.g. "buy_walls", "price_levels"
    index: int
    reason: str


class NormalizedLevels(BaseModel):
    mode: InputMode
    token0: Token
    token1: Token
    current_price: float
    buy_levels: List[LiquidityLevel] = Field(default_factory=list)
    sell_levels: List[LiquidityLevel] = Field(default_factory=list)
    malformed: List[MalformedLevel] = Field(default_factory=list)
    timestamp: Optional[datetime] = None


# --- Derived outputs -----------------------------------------------------

class LiquidityStatistics(BaseModel):
    total_buy_liquidity: float = 0.0
    total_sell_liquidity: float = 0.0
    total_liquidity: float = 0.0
    strongest_buy_level: Optional[LiquidityLevel] = None
    strongest_sell_level: Optional[LiquidityLevel] = None
    buy_sell_ratio: float = 0.0
    buy_share: float = 0.0   # fraction of total_liquidity, 0..1
    sell_share: float = 0.0
    buy_level_count: int = 0
    sell_level_count: int = 0
    division_guards: List[str] = Field(default_factory=list, description="Ratios that hit a zero denominator and were resolved to 0")


class ChartPoint(BaseModel):
    price: float
    price_lower: float
    price_upper: float
    price_range: str
    side: Side
    buy_liquidity: float
    sell_liquidity: float
    source_breakdown: Dict[str, float] = Field(default_factory=dict)
    percent_from_current: float
    percent_label: str

    @property
    def type(self) -> Literal["buy", "sell"]:
        return "buy" if self.side == Side.BUY else "sell"


class AnalysisResult(BaseModel):
    """
    Everything the renderer needs for one analysis request.
    Rebuilt from scratch on every request; never mutated afterwards.
    """
    mode: InputMode
    token0: Token
    token1: Token
    current_price: float
    pricing_mode: PricingMode
    scale_percent: float
    statistics: LiquidityStatistics
    chart_series: List[ChartPoint] = Field(default_factory=list)
    malformed_levels: List[MalformedLevel] = Field(default_factory=list)
    timestamp: Optional[datetime] = None

    @property
    def total_buy_liquidity(self) -> float:
        return self.statistics.total_buy_liquidity

    @property
    def total_sell_liquidity(self) -> float:
        return self.statistics.total_sell_liquidity

    @property
    def strongest_buy_level(self) -> Optional[LiquidityLevel]:
        return self.statistics.strongest_buy_level

    @property
    def strongest_sell_level(self) -> Optional[LiquidityLevel]:
        return self.statistics.strongest_sell_level
