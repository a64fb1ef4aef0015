"""
Unit tests for the market config loader
"""

import pytest
from pydantic import ValidationError

from config.loader import MarketConfig, load_market_config


@pytest.mark.unit
class TestLoadMarketConfig:
    """Test market.yaml loading and validation"""

    def test_repo_market_config(self):
        market = load_market_config()

        assert market.exchange == "binance"
        assert market.symbol == "BTC/USDT"
        assert market.timeframe == "15m"
        assert market.listing_epoch_ms == 1502942400000
        assert market.page_limit == 1000

    def test_custom_file(self, tmp_path):
        config_file = tmp_path / "market.yaml"
        config_file.write_text(
            "market:\n"
            "  symbol: ETH/USDT\n"
            "  timeframe: 1h\n"
            "  page_limit: 500\n"
        )

        market = load_market_config(str(config_file))

        assert market.symbol == "ETH/USDT"
        assert market.timeframe == "1h"
        assert market.page_limit == 500
        assert market.exchange == "binance"  # default

    def test_empty_file_uses_defaults(self, tmp_path):
        config_file = tmp_path / "market.yaml"
        config_file.write_text("")

        assert load_market_config(str(config_file)) == MarketConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_market_config(str(tmp_path / "missing.yaml"))

    def test_invalid_timeframe_rejected(self, tmp_path):
        config_file = tmp_path / "market.yaml"
        config_file.write_text("market:\n  timeframe: 7m\n")

        with pytest.raises(ValidationError, match="Unsupported timeframe"):
            load_market_config(str(config_file))


@pytest.mark.unit
class TestMarketConfigValidation:
    @pytest.mark.parametrize("page_limit", [0, 1001])
    def test_page_limit_range(self, page_limit):
        with pytest.raises(ValidationError):
            MarketConfig(page_limit=page_limit)

    def test_negative_listing_epoch(self):
        with pytest.raises(ValidationError):
            MarketConfig(listing_epoch_ms=-1)
