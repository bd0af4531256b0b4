import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """
    tel-liquidity Configuration
    All settings are loaded from environment variables so the same pipeline
    can back the web UI, the report runner and tests.
    """

    # Environment
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # Which sell-wall set pair-mode responses are read from ("wall" or "current")
    DEFAULT_PRICING_MODE = os.getenv("DEFAULT_PRICING_MODE", "current").lower()

    # Chart scale window (percent from current price)
    DEFAULT_SCALE_PERCENT = float(os.getenv("DEFAULT_SCALE_PERCENT", "10"))
    MIN_SCALE_PERCENT = float(os.getenv("MIN_SCALE_PERCENT", "5"))
    MAX_SCALE_PERCENT = float(os.getenv("MAX_SCALE_PERCENT", "50"))
    SCALE_STEP_PERCENT = float(os.getenv("SCALE_STEP_PERCENT", "5"))

    # Prefix used by format_number(..., currency=True)
    CURRENCY_SYMBOL = os.getenv("CURRENCY_SYMBOL", "$")

    @classmethod
    def validate(cls):
        """Validate configuration on startup."""
        import logging
        logger = logging.getLogger(__name__)

        warnings = []

        if cls.DEFAULT_PRICING_MODE not in ("wall", "current"):
            warnings.append(f"DEFAULT_PRICING_MODE={cls.DEFAULT_PRICING_MODE!r} is not 'wall' or 'current'")
        if cls.MIN_SCALE_PERCENT <= 0 or cls.MIN_SCALE_PERCENT > cls.MAX_SCALE_PERCENT:
            warnings.append(f"Scale bounds {cls.MIN_SCALE_PERCENT}-{cls.MAX_SCALE_PERCENT} are inconsistent")
        if cls.SCALE_STEP_PERCENT <= 0:
            warnings.append("SCALE_STEP_PERCENT must be positive")
        if cls.DEFAULT_SCALE_PERCENT <= 0:
            warnings.append("DEFAULT_SCALE_PERCENT must be positive")

        for w in warnings:
            logger.warning(f"⚠️  {w}")

        if cls.ENVIRONMENT == "production":
            logger.info("🚀 Running in PRODUCTION mode")
        else:
            logger.info("🔧 Running in DEVELOPMENT mode")

        return len(warnings) == 0


config = Config()
