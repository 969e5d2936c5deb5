import os
from functools import lru_cache
from pathlib import Path


class Settings:
    def __init__(
        self,
        database_url: str,
        timezone: str,
        csrf_secret: str,
        currency_symbol: str,
        log_level: str,
    ) -> None:
        self.database_url = database_url
        self.timezone = timezone
        self.csrf_secret = csrf_secret
        self.currency_symbol = currency_symbol
        self.log_level = log_level


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("FINANCE_HUB_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    data_dir = _ensure_data_dir()
    default_db = data_dir / "finance_hub.db"
    database_url = os.getenv("FINANCE_HUB_DATABASE_URL", f"sqlite:///{default_db}")
    timezone = os.getenv("FINANCE_HUB_TIMEZONE", "Asia/Kolkata")
    csrf_secret = os.getenv(
        "FINANCE_HUB_CSRF_SECRET",
        "5b0d3c1f9a7e46c28f1d2e4b6a8c0e13f57d9b1a3c5e7f9021436587a9cbdef0",
    )
    currency_symbol = os.getenv("FINANCE_HUB_CURRENCY_SYMBOL", "₹")
    log_level = os.getenv("FINANCE_HUB_LOG_LEVEL", "INFO").upper()
    return Settings(
        database_url=database_url,
        timezone=timezone,
        csrf_secret=csrf_secret,
        currency_symbol=currency_symbol,
        log_level=log_level,
    )
