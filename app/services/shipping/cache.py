"""
In-memory cache for rate provider responses.

Quotes for the same destination and parcels are reused for a few minutes so a
customer flipping back and forth in checkout doesn't hit the provider each
time. Only raw provider options are cached; rules are always applied fresh.
"""

import hashlib
import logging
import time
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, List, Optional, Sequence

from app.core.config import get_settings
from app.schemas.shipping import QuoteParcel, ShippingOption

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    options: List[ShippingOption]
    timestamp: float
    expires_at: float


def generate_cache_key(
    destination_postal_code: str,
    products: Sequence[QuoteParcel],
    environment: str,
) -> str:
    """Key built from environment, destination and the parcel list"""
    products_hash = "|".join(
        f"{p.id}:{p.width}x{p.height}x{p.length}:{p.weight}:{p.insurance_value}:{p.quantity}"
        for p in products
    )
    digest = hashlib.sha256(products_hash.encode()).hexdigest()
    return f"shipping:{environment}:{destination_postal_code}:{digest}"


class QuoteCache:
    """TTL cache of provider options keyed by generate_cache_key()"""

    def __init__(self, default_ttl: float = 300, clock=time.monotonic):
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def get(self, key: str) -> Optional[List[ShippingOption]]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        if self._clock() >= entry.expires_at:
            del self._entries[key]
            return None

        return [option.model_copy(deep=True) for option in entry.options]

    def set(self, key: str, options: Sequence[ShippingOption], ttl: Optional[float] = None) -> None:
        now = self._clock()
        self._entries[key] = CacheEntry(
            options=[option.model_copy(deep=True) for option in options],
            timestamp=now,
            expires_at=now + (self.default_ttl if ttl is None else ttl),
        )

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def cleanup_expired(self) -> int:
        """Drop expired entries, returning how many were removed"""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if now >= entry.expires_at]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Removed {len(expired)} expired shipping quote cache entries")
        return len(expired)

    def clear(self) -> None:
        self._entries.clear()

    def stats(self) -> Dict[str, int]:
        return {"size": len(self._entries)}


@lru_cache()
def get_quote_cache() -> QuoteCache:
    """Process-wide cache instance"""
    return QuoteCache(default_ttl=get_settings().SHIPPING_QUOTE_CACHE_TTL_SECONDS)
