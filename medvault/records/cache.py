"""In-process record collection kept consistent with the backend.

Three sources mutate it: optimistic local writes after an upload or
delete, push events from the change channel, and full reloads from the
record backend. All of them go through ``upsert``/``remove``/``replace_all``.
Mutations are synchronous, so on a single event loop no reader ever sees a
half-applied change.
"""

from __future__ import annotations

import itertools
from collections.abc import Callable, Iterable

from medvault.exceptions import ConsistencyWarning, TransportError
from medvault.logging.logger import Log
from medvault.records.backend import BaseRecordBackend
from medvault.records.channel import BaseChangeChannel
from medvault.records.models import MedicalRecord
from medvault.records.subscription import ChangeSubscription

RecordsListener = Callable[[tuple[MedicalRecord, ...]], None]


class RecordCache:
    """Authoritative local view of one owner's records.

    Visible order: ``visit_date`` descending, ties broken by insertion
    order with the most recently inserted record first. Replacing an
    existing record keeps its insertion rank.
    """

    def __init__(
        self,
        backend: BaseRecordBackend,
        owner_id: str,
        channel: BaseChangeChannel | None = None,
        *,
        retry_seconds: float = 1.0,
        max_retry_seconds: float = 30.0,
    ) -> None:
        self._backend = backend
        self._owner_id = owner_id
        self._entries: dict[str, tuple[int, MedicalRecord]] = {}
        self._ordered: tuple[MedicalRecord, ...] = ()
        self._sequence = itertools.count(1)
        self._listeners: list[RecordsListener] = []
        self._subscription = (
            ChangeSubscription(
                self,
                channel,
                owner_id,
                retry_seconds=retry_seconds,
                max_retry_seconds=max_retry_seconds,
            )
            if channel is not None
            else None
        )
        self.warning: ConsistencyWarning | None = None
        self.loading = False
        self.initialized = False

    @property
    def owner_id(self) -> str:
        return self._owner_id

    @property
    def records(self) -> tuple[MedicalRecord, ...]:
        return self._ordered

    @property
    def subscription(self) -> ChangeSubscription | None:
        return self._subscription

    def get(self, record_id: str) -> MedicalRecord | None:
        entry = self._entries.get(record_id)
        return entry[1] if entry else None

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, record_id: object) -> bool:
        return record_id in self._entries

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def init(self) -> None:
        """Load records and open the change subscription. Idempotent."""
        if self.initialized:
            return
        self.initialized = True
        await self.fetch_all(refresh=True)
        if self._subscription is not None:
            await self._subscription.open()

    async def dispose(self) -> None:
        """Close the change subscription and drop listeners."""
        if self._subscription is not None:
            await self._subscription.close()
        self._listeners.clear()
        self.initialized = False

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def upsert(self, record: MedicalRecord) -> None:
        """Insert *record*, or replace the entry with the same id."""
        existing = self._entries.get(record.id)
        if existing is not None and existing[1] == record:
            return
        rank = existing[0] if existing is not None else next(self._sequence)
        self._entries[record.id] = (rank, record)
        self._reorder()

    def remove(self, record_id: str) -> None:
        """Drop a record. Absent ids are ignored."""
        if self._entries.pop(record_id, None) is None:
            Log.debug(f"Remove ignored, record {record_id} not cached")
            return
        self._reorder()

    def replace_all(self, records: Iterable[MedicalRecord]) -> None:
        """Replace the whole collection, e.g. after a full load.

        Records earlier in *records* win ties on visit date.
        """
        incoming = list(records)
        self._entries = {}
        self._sequence = itertools.count(1)
        for record in reversed(incoming):
            if record.id in self._entries:
                continue
            self._entries[record.id] = (next(self._sequence), record)
        self._reorder()
        Log.info(f"Record cache loaded {len(self._entries)} records for {self._owner_id}")

    async def fetch_all(self, refresh: bool = False) -> tuple[MedicalRecord, ...]:
        """Populate the cache from the backend.

        Without *refresh*, a non-empty cache is returned as is. On failure
        the previous contents stay visible and ``warning`` is set.
        """
        if self._entries and not refresh:
            return self._ordered

        self.loading = True
        try:
            records = await self._backend.list_all(self._owner_id)
        except TransportError as exc:
            self.warning = ConsistencyWarning(f"Serving cached records: {exc}")
            Log.warning(
                f"Record refresh failed for {self._owner_id}, "
                f"keeping {len(self._entries)} cached records: {exc}"
            )
            return self._ordered
        finally:
            self.loading = False

        self.warning = None
        self.replace_all(records)
        return self._ordered

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def subscribe(self, listener: RecordsListener) -> Callable[[], None]:
        """Call *listener* with the new ordered records after each change.

        Returns a function that removes the listener.
        """
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _reorder(self) -> None:
        entries = sorted(
            self._entries.values(),
            key=lambda entry: (entry[1].visit_date, entry[0]),
            reverse=True,
        )
        self._ordered = tuple(record for _rank, record in entries)
        for listener in list(self._listeners):
            try:
                listener(self._ordered)
            except Exception as exc:
                Log.error(f"Record cache listener failed: {exc}")
