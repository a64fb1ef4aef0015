"""Factory package - Dependency injection for stores and exchange clients"""

from .client_factory import (
    create_candle_store,
    create_indicator_store,
    create_market_data_source,
    create_timeseries_db,
)

__all__ = [
    "create_timeseries_db",
    "create_candle_store",
    "create_indicator_store",
    "create_market_data_source",
]
