from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from medvault.exceptions import ConsistencyWarning
from medvault.logging.logger import Log
from medvault.records.channel import BaseChangeChannel
from medvault.records.models import ChangeEvent, ChangeKind

if TYPE_CHECKING:
    from medvault.records.cache import RecordCache


class ChangeSubscription:
    """Owns the single push channel of a RecordCache.

    Events are applied in arrival order. Consistency with the optimistic
    local path is eventual: both paths use idempotent cache operations but
    are not serialized against each other.

    When the channel fails, the cache carries a ConsistencyWarning and the
    subscription reconnects with exponential backoff. After a reconnect the
    cache is reloaded, since events sent while disconnected are lost.
    """

    def __init__(
        self,
        cache: RecordCache,
        channel: BaseChangeChannel,
        owner_id: str,
        *,
        retry_seconds: float = 1.0,
        max_retry_seconds: float = 30.0,
    ) -> None:
        self._cache = cache
        self._channel = channel
        self._owner_id = owner_id
        self._retry_seconds = retry_seconds
        self._max_retry_seconds = max(retry_seconds, max_retry_seconds)
        self._delay = retry_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def is_open(self) -> bool:
        return self._task is not None and not self._task.done()

    async def open(self) -> None:
        """Start consuming the channel. A second call while open is a no-op."""
        if self.is_open:
            Log.debug(f"Change subscription for {self._owner_id} already open")
            return
        self._task = asyncio.create_task(
            self._consume(), name=f"change-subscription-{self._owner_id}"
        )
        # Let the channel connect before the caller continues.
        await asyncio.sleep(0)

    async def close(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            # Only a cancel aimed at the caller may escape here.
            await asyncio.wait([task])
        await self._channel.close()

    def apply(self, event: ChangeEvent) -> None:
        """Route one event into the cache."""
        if event.kind is ChangeKind.DELETE:
            self._cache.remove(event.record_id)
            return
        if event.payload is None:
            Log.warning(f"Dropping {event.kind.value} event without payload for {event.record_id}")
            return
        if event.payload.id != event.record_id:
            Log.warning(
                f"Dropping {event.kind.value} event: payload id {event.payload.id} "
                f"does not match {event.record_id}"
            )
            return
        self._cache.upsert(event.payload)

    async def _consume(self) -> None:
        on_open: Callable[[], Awaitable[None]] | None = None
        while True:
            try:
                async for event in self._channel.listen(self._owner_id, on_open=on_open):
                    Log.debug(f"Change event {event.kind.value} for record {event.record_id}")
                    self.apply(event)
                reason = "channel closed by peer"
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                reason = str(exc) or exc.__class__.__name__

            self._cache.warning = ConsistencyWarning(f"Live updates interrupted: {reason}")
            Log.error(
                f"Change subscription for {self._owner_id} lost: {reason}; "
                f"reconnecting in {self._delay:g}s"
            )
            await self._channel.close()
            await asyncio.sleep(self._delay)
            self._delay = min(self._delay * 2, self._max_retry_seconds)
            on_open = self._resync

    async def _resync(self) -> None:
        self._delay = self._retry_seconds
        Log.info(f"Change subscription for {self._owner_id} reconnected, reloading records")
        await self._cache.fetch_all(refresh=True)
