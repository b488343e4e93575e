"""
Rate limiter for LLM API calls shared by the OCR and agent stages
"""

import asyncio
import time
from typing import Dict, Optional

from utils.logger import logger


class RateLimiter:
    """Minimum-interval limiter spacing calls to one API provider"""

    def __init__(self, max_calls_per_second: float = 5.0):
        """
        Initialize rate limiter

        Args:
            max_calls_per_second: Maximum API calls per second
        """
        self.max_calls_per_second = max_calls_per_second
        self.interval = 1.0 / max_calls_per_second
        self.last_call_time = 0.0
        # Created lazily so the limiter can be built outside a running loop
        self._lock: Optional[asyncio.Lock] = None

    async def acquire(self):
        """Wait until the next call is allowed"""
        if self._lock is None:
            self._lock = asyncio.Lock()

        async with self._lock:
            current_time = time.monotonic()
            time_since_last = current_time - self.last_call_time

            if time_since_last < self.interval:
                await asyncio.sleep(self.interval - time_since_last)

            self.last_call_time = time.monotonic()


class APIRateLimiters:
    """Manage rate limiters for different APIs"""

    # Requests per second per provider
    DEFAULT_RATES: Dict[str, float] = {
        'anthropic': 5.0,
        'openai': 10.0,
        'general': 3.0,
    }

    def __init__(self, rates: Optional[Dict[str, float]] = None):
        """
        Initialize rate limiters for different APIs

        Args:
            rates: Optional overrides of requests per second keyed by provider
        """
        merged = {**self.DEFAULT_RATES, **(rates or {})}
        self.limiters: Dict[str, RateLimiter] = {
            name: RateLimiter(max_calls_per_second=rate) for name, rate in merged.items()
        }
        logger.debug(f"API rate limiters initialized: {merged}")

    def get_limiter(self, provider: str) -> RateLimiter:
        """
        Get rate limiter for specific provider

        Args:
            provider: API provider or model name ('anthropic', 'gpt-4o', etc.)

        Returns:
            Appropriate rate limiter
        """
        provider_lower = provider.lower()

        if 'anthropic' in provider_lower or 'claude' in provider_lower:
            return self.limiters['anthropic']
        elif 'openai' in provider_lower or 'gpt' in provider_lower:
            return self.limiters['openai']
        else:
            return self.limiters['general']


_rate_limiters: Optional[APIRateLimiters] = None


def get_rate_limiters() -> APIRateLimiters:
    """Process-wide limiters so OCR and agent calls share one budget"""
    global _rate_limiters
    if _rate_limiters is None:
        _rate_limiters = APIRateLimiters()
    return _rate_limiters
