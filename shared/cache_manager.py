"""
Price cache for the portfolio analytics engine.
In-memory TTL cache in front of a PriceSource with single-flight refresh,
bounded source calls and stale fallback.
"""
import asyncio
import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

from .config import settings
from .data_providers.interfaces import PriceQuote, PriceSource
from .error_models import PriceSourceError

logger = logging.getLogger(__name__)


@dataclass
class _CacheEntry:
    quote: PriceQuote
    stored_at: datetime


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PriceCache:
    """
    TTL price cache with single-flight refresh.

    - Fresh entries (younger than ttl) are served without touching the source.
    - Concurrent misses for the same symbol share one in-flight fetch.
    - A failed or timed-out refresh falls back to the last quote while it is
      within ttl + stale_grace, flagged stale; otherwise the symbol is
      unavailable and get_price returns None.
    """

    def __init__(
        self,
        source: PriceSource,
        ttl_seconds: Optional[float] = None,
        stale_grace_seconds: Optional[float] = None,
        fetch_timeout_seconds: Optional[float] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._source = source
        self._ttl = timedelta(seconds=(
            settings.PRICE_CACHE_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        ))
        self._grace = timedelta(seconds=(
            settings.PRICE_STALE_GRACE_SECONDS if stale_grace_seconds is None else stale_grace_seconds
        ))
        self._timeout = (
            settings.PRICE_FETCH_TIMEOUT_SECONDS if fetch_timeout_seconds is None else fetch_timeout_seconds
        )
        self._clock = clock or _utcnow

        self._entries: Dict[str, _CacheEntry] = {}
        self._inflight: Dict[str, asyncio.Future] = {}
        # Bumped on invalidation so refreshes started earlier are not written back
        self._generation = 0
        self._symbol_generations: Dict[str, int] = {}

        self._hits = 0
        self._misses = 0
        self._refreshes = 0
        self._stale_serves = 0
        self._failures = 0

    async def get_price(self, symbol: str) -> Optional[PriceQuote]:
        """
        Get the latest quote for a symbol.

        Returns:
            PriceQuote (possibly flagged stale) or None if the price is unavailable
        """
        symbol = symbol.upper()
        entry = self._entries.get(symbol)
        if entry is not None:
            age = self._clock() - entry.stored_at
            if age <= self._ttl:
                logger.debug(f"Price cache HIT: {symbol}")
                self._hits += 1
                return entry.quote
            if age > self._ttl + self._grace:
                del self._entries[symbol]

        logger.debug(f"Price cache MISS: {symbol}")
        self._misses += 1

        future = self._inflight.get(symbol)
        if future is None:
            future = asyncio.ensure_future(self._refresh(symbol))
            self._inflight[symbol] = future
            future.add_done_callback(
                lambda done, key=symbol: self._release_inflight(key, done)
            )
        # shield: a cancelled caller must not cancel the fetch other callers share
        return await asyncio.shield(future)

    async def get_prices(self, symbols: Iterable[str]) -> Dict[str, Optional[PriceQuote]]:
        """Resolve many symbols concurrently. Keys are uppercase symbols."""
        unique = sorted({s.upper() for s in symbols})
        quotes = await asyncio.gather(*(self.get_price(s) for s in unique))
        return dict(zip(unique, quotes))

    def invalidate(self, symbol: Optional[str] = None):
        """Drop one symbol, or every entry when symbol is None."""
        if symbol is None:
            self._generation += 1
            self._symbol_generations.clear()
            self._entries.clear()
            self._inflight.clear()
            logger.info("Price cache INVALIDATED (all)")
            return
        key = symbol.upper()
        self._symbol_generations[key] = self._symbol_generations.get(key, 0) + 1
        self._entries.pop(key, None)
        self._inflight.pop(key, None)
        logger.debug(f"Price cache INVALIDATED: {key}")

    def clear(self):
        """Drop all entries."""
        self.invalidate()

    def purge_expired(self) -> int:
        """Remove entries past ttl + stale grace. Returns number removed."""
        now = self._clock()
        limit = self._ttl + self._grace
        expired = [k for k, e in self._entries.items() if now - e.stored_at > limit]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        total_requests = self._hits + self._misses
        hit_rate = (self._hits / total_requests * 100) if total_requests > 0 else 0
        return {
            "size": len(self._entries),
            "in_flight": len(self._inflight),
            "total_hits": self._hits,
            "total_misses": self._misses,
            "refreshes": self._refreshes,
            "stale_served": self._stale_serves,
            "unavailable": self._failures,
            "hit_rate": f"{hit_rate:.2f}%",
        }

    def _current_generation(self, symbol: str) -> Tuple[int, int]:
        return self._generation, self._symbol_generations.get(symbol, 0)

    def _release_inflight(self, symbol: str, future: asyncio.Future):
        if self._inflight.get(symbol) is future:
            del self._inflight[symbol]

    async def _refresh(self, symbol: str) -> Optional[PriceQuote]:
        generation = self._current_generation(symbol)
        self._refreshes += 1
        try:
            quote = await asyncio.wait_for(self._source.get_price(symbol), timeout=self._timeout)
            if quote is None or not quote.price.is_finite() or quote.price <= 0:
                raise PriceSourceError(f"Source returned an unusable price for {symbol}")
        except asyncio.TimeoutError:
            logger.warning(f"Price fetch timed out for {symbol} after {self._timeout}s")
            return self._fallback(symbol)
        except PriceSourceError as e:
            logger.warning(f"Price source failed for {symbol}: {e.message}")
            return self._fallback(symbol)
        except Exception as e:
            logger.warning(f"Unexpected price source error for {symbol}: {e}", exc_info=True)
            return self._fallback(symbol)

        quote = replace(quote, symbol=symbol, stale=False)
        if generation == self._current_generation(symbol):
            self._entries[symbol] = _CacheEntry(quote=quote, stored_at=self._clock())
        return quote

    def _fallback(self, symbol: str) -> Optional[PriceQuote]:
        entry = self._entries.get(symbol)
        if entry is not None and self._clock() - entry.stored_at <= self._ttl + self._grace:
            self._stale_serves += 1
            logger.info(f"Serving stale price for {symbol} from {entry.quote.fetched_at.isoformat()}")
            return replace(entry.quote, stale=True)
        self._failures += 1
        logger.warning(f"Price unavailable for {symbol}")
        return None
