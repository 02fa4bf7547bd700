from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Awaitable, Callable

from medvault.records.models import ChangeEvent


class BaseChangeChannel(ABC):
    """Contract for a push channel delivering record changes for one owner."""

    @abstractmethod
    def listen(
        self,
        owner_id: str,
        on_open: Callable[[], Awaitable[None]] | None = None,
    ) -> AsyncIterator[ChangeEvent]:
        """Connect and yield change events for *owner_id* in arrival order.

        *on_open* is awaited once the channel is subscribed and before the
        first event is read.

        Raises:
            TransportError: if the channel cannot be opened or is lost.
        """

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying connection. Safe to call more than once."""
