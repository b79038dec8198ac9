"""PriceCache: TTL cache over the upstream price feed.

Holds one immutable PriceSnapshot. Readers get the current reference; a refresh
builds a new snapshot and swaps the reference in a single assignment, so no
reader can observe a half-updated price set.

Refresh coalescing: while an upstream fetch is in flight, every caller that needs
a refresh (TTL expiry or force_refresh) awaits the same task. One upstream call,
one resulting snapshot (or one error) for all waiters.
"""

import asyncio
import logging
from datetime import timedelta

from src.ps_common.datetime_utils import Clock, utc_now
from src.ps_common.errors import PriceNotFoundError, UpstreamError
from src.ps_pricing.domain.feed import PriceFeedProtocol
from src.ps_pricing.domain.models import CryptoPrice, PriceSnapshot

logger = logging.getLogger(__name__)


class PriceCache:
    def __init__(
        self,
        feed: PriceFeedProtocol,
        ttl_seconds: float = 60.0,
        fetch_timeout_seconds: float = 5.0,
        clock: Clock = utc_now,
    ) -> None:
        self._feed = feed
        self._ttl = timedelta(seconds=ttl_seconds)
        self._fetch_timeout = fetch_timeout_seconds
        self._clock = clock
        self._snapshot: PriceSnapshot | None = None
        self._inflight: asyncio.Task[PriceSnapshot] | None = None

    @property
    def current(self) -> PriceSnapshot | None:
        """Last snapshot, fresh or not. No upstream call."""
        return self._snapshot

    def is_fresh(self, snapshot: PriceSnapshot) -> bool:
        return self._clock() - snapshot.observed_at < self._ttl

    async def snapshot(
        self, force_refresh: bool = False, require_fresh: bool = False
    ) -> PriceSnapshot:
        """Return a snapshot, refreshing when expired or forced.

        On upstream failure the stale snapshot is served unless the caller
        requires a fresh one (or there is nothing cached), in which case the
        UpstreamError propagates.
        """
        current = self._snapshot
        if not force_refresh and current is not None and self.is_fresh(current):
            return current
        try:
            return await self._refresh()
        except UpstreamError as exc:
            if current is None or require_fresh:
                raise
            logger.warning(
                "Price refresh failed, serving snapshot observed at %s: %s",
                current.observed_at.isoformat(), exc.message,
            )
            return current

    async def get(self, symbol: str, force_refresh: bool = False) -> CryptoPrice:
        snap = await self.snapshot(force_refresh=force_refresh)
        price = snap.get(symbol.upper())
        if price is None:
            raise PriceNotFoundError(symbol.upper())
        return price

    async def list_prices(self, force_refresh: bool = False) -> list[CryptoPrice]:
        snap = await self.snapshot(force_refresh=force_refresh)
        return sorted(snap.prices.values(), key=lambda p: p.symbol)

    async def aclose(self) -> None:
        """Cancel an in-flight refresh; called on process shutdown."""
        task = self._inflight
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except (asyncio.CancelledError, UpstreamError):
                pass
        self._inflight = None

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _refresh(self) -> PriceSnapshot:
        task = self._inflight
        if task is None or task.done():
            task = asyncio.ensure_future(self._fetch_snapshot())
            self._inflight = task
            task.add_done_callback(self._clear_inflight)
        # shield: a cancelled waiter must not cancel the fetch the others share
        return await asyncio.shield(task)

    def _clear_inflight(self, task: "asyncio.Task[PriceSnapshot]") -> None:
        if self._inflight is task:
            self._inflight = None
        # Mark the exception retrieved when every waiter was cancelled
        if not task.cancelled():
            task.exception()

    async def _fetch_snapshot(self) -> PriceSnapshot:
        try:
            quotes = await asyncio.wait_for(self._feed.fetch_quotes(), self._fetch_timeout)
        except asyncio.TimeoutError:
            raise UpstreamError(
                "price feed", f"timed out after {self._fetch_timeout:g}s"
            ) from None
        snapshot = PriceSnapshot.from_quotes(quotes, observed_at=self._clock())
        self._snapshot = snapshot
        logger.info(
            "Price snapshot refreshed: %s",
            ", ".join(f"{p.symbol}={p.price_usd}" for p in snapshot.prices.values()),
        )
        return snapshot
