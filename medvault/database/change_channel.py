"""PostgreSQL LISTEN/NOTIFY implementation of the record change channel."""

import json
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

import psycopg
from psycopg import sql

from medvault.exceptions import TransportError
from medvault.logging.logger import Log
from medvault.records.backend import BaseRecordBackend
from medvault.records.channel import BaseChangeChannel
from medvault.records.exceptions import RecordNotFoundError
from medvault.records.models import ChangeEvent, ChangeKind


class ChangeChannelError(TransportError):
    """Raised when the notification connection cannot be opened."""


def parse_notification(payload: str, owner_id: str) -> ChangeEvent | None:
    """Turn one NOTIFY payload into a ChangeEvent without a record payload.

    Returns None for events of other owners and for payloads that cannot
    be decoded.
    """
    try:
        data = json.loads(payload)
        if str(data.get("owner_id")) != owner_id:
            return None
        return ChangeEvent(kind=ChangeKind(data["kind"]), record_id=str(data["record_id"]))
    except (ValueError, KeyError, TypeError, AttributeError) as exc:
        Log.warning(f"Ignoring malformed change notification: {exc}")
        return None


class PostgresChangeChannel(BaseChangeChannel):
    """Listens on a dedicated autocommit connection outside the pool.

    Notifications carry ids only; inserted and updated rows are loaded
    through *backend* before the event is yielded.
    """

    def __init__(self, conninfo: str, channel_name: str, backend: BaseRecordBackend) -> None:
        self._conninfo = conninfo
        self._channel_name = channel_name
        self._backend = backend
        self._conn: psycopg.AsyncConnection[Any] | None = None

    async def listen(
        self,
        owner_id: str,
        on_open: Callable[[], Awaitable[None]] | None = None,
    ) -> AsyncIterator[ChangeEvent]:
        try:
            conn = self._conn = await psycopg.AsyncConnection.connect(
                self._conninfo, autocommit=True
            )
            await conn.execute(
                sql.SQL("LISTEN {}").format(sql.Identifier(self._channel_name))
            )
        except psycopg.Error as exc:
            await self.close()
            raise ChangeChannelError(f"Failed to open change channel: {exc}") from exc

        Log.info(f"Listening on {self._channel_name} for owner {owner_id}")
        if on_open is not None:
            await on_open()
        try:
            async for notify in conn.notifies():
                event = parse_notification(notify.payload, owner_id)
                if event is None:
                    continue
                if event.kind is not ChangeKind.DELETE:
                    event = await self._with_record(event, owner_id)
                    if event is None:
                        continue
                yield event
        except psycopg.Error as exc:
            raise ChangeChannelError(f"Change channel connection lost: {exc}") from exc

    async def close(self) -> None:
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        await conn.close()
        Log.info(f"Closed change channel {self._channel_name}")

    async def _with_record(self, event: ChangeEvent, owner_id: str) -> ChangeEvent | None:
        try:
            record = await self._backend.find_by_id(event.record_id, owner_id)
        except RecordNotFoundError:
            Log.debug(f"Record {event.record_id} gone before its {event.kind.value} event was read")
            return None
        return ChangeEvent(kind=event.kind, record_id=event.record_id, payload=record)
