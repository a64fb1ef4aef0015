"""
Application Settings - Load from YAML configs + .env secrets

Design Philosophy:
- Service configs (host, port, tables, cadence) → YAML files (public, versioned in git)
- Secrets (passwords) → .env file (gitignored)

Uses Pydantic for validation and type safety
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.utils.config import load_yaml_safe


class Settings(BaseSettings):
    """
    Application settings

    Architecture:
    - Infrastructure and tuning → config/providers/*.yaml (public)
    - Secrets → .env (gitignored)

    Usage:
        from config.settings import get_settings

        settings = get_settings()
        print(settings.SYNC_RATE_LIMIT_PER_SECOND)  # From sync.yaml
        print(settings.CLICKHOUSE_PASSWORD)  # From .env
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields in .env
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Load YAML configs from files (cached at class level)
        if not hasattr(Settings, "_yaml_loaded"):
            Settings._database_config = load_yaml_safe("config/providers/databases.yaml")
            Settings._sync_config = load_yaml_safe("config/providers/sync.yaml")
            Settings._indicators_config = load_yaml_safe("config/providers/indicators.yaml")
            Settings._yaml_loaded = True

    # ============================================
    # ENVIRONMENT (.env only)
    # ============================================
    ENVIRONMENT: str = Field(default="local", description="Environment: local, dev, staging, prod")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")

    # ============================================
    # CLICKHOUSE (from YAML + .env)
    # ============================================
    @property
    def CLICKHOUSE_HOST(self) -> str:
        """ClickHouse host from databases.yaml"""
        return self._database_config.get("clickhouse", {}).get("host", "clickhouse")

    @property
    def CLICKHOUSE_PORT(self) -> int:
        """ClickHouse native port from databases.yaml"""
        return self._database_config.get("clickhouse", {}).get("port", 9000)

    @property
    def CLICKHOUSE_DB(self) -> str:
        """ClickHouse database from databases.yaml"""
        return self._database_config.get("clickhouse", {}).get("database", "trading")

    @property
    def CLICKHOUSE_USER(self) -> str:
        """ClickHouse user from databases.yaml"""
        return self._database_config.get("clickhouse", {}).get("user", "trading_user")

    # ClickHouse password from .env (secret)
    CLICKHOUSE_PASSWORD: str = Field(default="trading_pass")

    @property
    def CLICKHOUSE_CANDLE_TABLE(self) -> str:
        """Candle table from databases.yaml"""
        return (
            self._database_config.get("clickhouse", {})
            .get("tables", {})
            .get("candles", "btc_candle_15m")
        )

    @property
    def CLICKHOUSE_INDICATOR_TABLE(self) -> str:
        """Indicator table from databases.yaml"""
        return (
            self._database_config.get("clickhouse", {})
            .get("tables", {})
            .get("indicators", "btc_indicator_15m")
        )

    @property
    def clickhouse_dsn(self) -> str:
        """ClickHouse connection string"""
        return (
            f"clickhouse://{self.CLICKHOUSE_USER}:{self.CLICKHOUSE_PASSWORD}"
            f"@{self.CLICKHOUSE_HOST}:{self.CLICKHOUSE_PORT}/{self.CLICKHOUSE_DB}"
        )

    # ============================================
    # SYNC SERVICE (from YAML)
    # ============================================
    @property
    def SYNC_INTERVAL_SECONDS(self) -> int:
        """Seconds between update_latest runs"""
        return self._sync_config.get("sync", {}).get("interval_seconds", 60)

    @property
    def SYNC_MAX_RETRIES(self) -> int:
        """Attempts per page fetch"""
        return self._sync_config.get("sync", {}).get("max_retries", 3)

    @property
    def SYNC_RETRY_DELAY_SECONDS(self) -> float:
        """Fixed back-off between fetch attempts"""
        return self._sync_config.get("sync", {}).get("retry_delay_seconds", 5.0)

    @property
    def SYNC_RATE_LIMIT_PER_SECOND(self) -> float:
        """Self-imposed request rate (below Binance's 20 req/s)"""
        return self._sync_config.get("rate_limit", {}).get("requests_per_second", 10.0)

    @property
    def SYNC_RATE_LIMIT_BURST(self) -> int:
        """Token bucket capacity"""
        return self._sync_config.get("rate_limit", {}).get("burst", 1)

    @property
    def REST_API_TIMEOUT_MS(self) -> int:
        """ccxt request timeout"""
        return self._sync_config.get("rest_api", {}).get("timeout_ms", 30000)

    @property
    def REST_API_ENABLE_RATE_LIMIT(self) -> bool:
        """ccxt built-in rate limiting (in addition to our token bucket)"""
        return self._sync_config.get("rest_api", {}).get("enable_rate_limit", True)

    # ============================================
    # INDICATOR SERVICE (from YAML)
    # ============================================
    @property
    def INDICATOR_BATCH_SIZE(self) -> int:
        """Candles loaded per resume batch"""
        return self._indicators_config.get("settings", {}).get("batch_size", 1000)

    @property
    def INDICATOR_PROGRESS_LOG_INTERVAL(self) -> int:
        """Log progress every N records"""
        return self._indicators_config.get("settings", {}).get("progress_log_interval", 100)

    @property
    def INDICATOR_SERVICE_INTERVAL_SECONDS(self) -> int:
        """Seconds between catch-up runs"""
        return self._indicators_config.get("service", {}).get("interval_seconds", 60)

    @property
    def INDICATOR_SERVICE_INITIAL_DELAY_SECONDS(self) -> int:
        """Delay before first run (lets the sync service write first)"""
        return self._indicators_config.get("service", {}).get("initial_delay_seconds", 10)

    @property
    def INDICATOR_SERVICE_RESUME_ON_STARTUP(self) -> bool:
        """Run resume_calculation once on startup"""
        return self._indicators_config.get("service", {}).get("resume_on_startup", True)


# Singleton pattern
_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """
    Get application settings (singleton)

    Returns:
        Settings instance

    Example:
        >>> settings = get_settings()
        >>> print(settings.CLICKHOUSE_CANDLE_TABLE)
        btc_candle_15m
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
