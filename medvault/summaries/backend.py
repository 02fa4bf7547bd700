from abc import ABC, abstractmethod

from medvault.summaries.models import MedicalSummary, SummaryAnalysis


class BaseSummaryBackend(ABC):
    """Contract for the store that keeps generated summaries."""

    @abstractmethod
    async def create(
        self,
        owner_id: str,
        analysis: SummaryAnalysis,
        record_count: int,
    ) -> MedicalSummary:
        """Persist a new summary and return it as stored.

        Raises:
            SummaryBackendError: on any backend failure.
        """

    @abstractmethod
    async def latest(self, owner_id: str) -> MedicalSummary | None:
        """Return the most recently updated summary, or None if there is none.

        Raises:
            SummaryBackendError: on any backend failure.
        """

    @abstractmethod
    async def list_recent(
        self, owner_id: str, limit: int = 10, offset: int = 0
    ) -> list[MedicalSummary]:
        """Return summaries newest first.

        Raises:
            SummaryBackendError: on any backend failure.
        """

    @abstractmethod
    async def delete_all(self, owner_id: str) -> int:
        """Delete every summary of the owner and return how many were removed.

        Raises:
            SummaryBackendError: on any backend failure.
        """
