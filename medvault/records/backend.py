from abc import ABC, abstractmethod

from medvault.records.models import Attachment, MedicalRecord, MetadataDraft


class BaseRecordBackend(ABC):
    """Contract for the relational service that owns record metadata."""

    @abstractmethod
    async def create(
        self,
        owner_id: str,
        draft: MetadataDraft,
        attachment: Attachment | None = None,
    ) -> MedicalRecord:
        """Persist a new record and return it as stored.

        Raises:
            RecordBackendError: on any backend failure.
        """

    @abstractmethod
    async def delete(self, record_id: str, owner_id: str) -> MedicalRecord:
        """Delete a record and return the row that was removed.

        Raises:
            RecordNotFoundError: if the owner has no such record.
            RecordBackendError: on any other backend failure.
        """

    @abstractmethod
    async def find_by_id(self, record_id: str, owner_id: str) -> MedicalRecord:
        """Return one record of the owner.

        Raises:
            RecordNotFoundError: if the owner has no such record.
            RecordBackendError: on any other backend failure.
        """

    @abstractmethod
    async def list_all(self, owner_id: str) -> list[MedicalRecord]:
        """Return every record of the owner, newest visit first.

        Raises:
            RecordBackendError: on any backend failure.
        """
