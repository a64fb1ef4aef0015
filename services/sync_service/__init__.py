"""
Sync Service - Candle download from the exchange REST API

Paged fetching with retries, self rate limiting and idempotent saves.
"""

from services.sync_service.rate_limiter import TokenBucketRateLimiter
from services.sync_service.synchronizer import CandleSynchronizer

__all__ = ["CandleSynchronizer", "TokenBucketRateLimiter"]
