from typing import Any

import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from medvault.database.connection import get_connection
from medvault.logging.logger import Log
from medvault.summaries.backend import BaseSummaryBackend
from medvault.summaries.exceptions import SummaryBackendError
from medvault.summaries.models import MedicalSummary, SummaryAnalysis

_COLUMNS = """
    id, user_id, summary_text, conditions_identified, medications_mentioned,
    tests_performed, patterns_identified, risk_factors, recommendations,
    degraded, record_count, created_at, last_updated
"""


def summary_from_row(row: dict[str, Any]) -> MedicalSummary:
    return MedicalSummary(
        id=str(row["id"]),
        owner_id=str(row["user_id"]),
        analysis=SummaryAnalysis(
            summary_text=row["summary_text"],
            conditions=list(row.get("conditions_identified") or []),
            medications=list(row.get("medications_mentioned") or []),
            tests=list(row.get("tests_performed") or []),
            patterns=list(row.get("patterns_identified") or []),
            risk_factors=list(row.get("risk_factors") or []),
            recommendations=list(row.get("recommendations") or []),
            degraded=bool(row.get("degraded")),
        ),
        record_count=row["record_count"],
        created_at=row["created_at"],
        last_updated=row["last_updated"],
    )


class MedicalSummariesRepository(BaseSummaryBackend):
    """Database operations for the medical_summaries table."""

    async def create(
        self,
        owner_id: str,
        analysis: SummaryAnalysis,
        record_count: int,
    ) -> MedicalSummary:
        try:
            async with get_connection() as conn:
                async with conn.cursor(row_factory=dict_row) as cur:
                    await cur.execute(
                        f"""
                        INSERT INTO medical_summaries (
                            user_id, summary_text, conditions_identified,
                            medications_mentioned, tests_performed, patterns_identified,
                            risk_factors, recommendations, degraded, record_count
                        )
                        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                        RETURNING {_COLUMNS}
                        """,
                        (
                            owner_id,
                            analysis.summary_text,
                            Jsonb(analysis.conditions),
                            Jsonb(analysis.medications),
                            Jsonb(analysis.tests),
                            Jsonb(analysis.patterns),
                            Jsonb(analysis.risk_factors),
                            Jsonb(analysis.recommendations),
                            analysis.degraded,
                            record_count,
                        ),
                    )
                    row = await cur.fetchone()
                await conn.commit()
        except psycopg.Error as exc:
            raise SummaryBackendError(f"Failed to save medical summary: {exc}") from exc

        if row is None:
            raise SummaryBackendError("Failed to save medical summary: no row returned")
        summary = summary_from_row(row)
        Log.info(f"Stored medical summary {summary.id} for owner {owner_id}")
        return summary

    async def latest(self, owner_id: str) -> MedicalSummary | None:
        summaries = await self.list_recent(owner_id, limit=1)
        return summaries[0] if summaries else None

    async def list_recent(
        self, owner_id: str, limit: int = 10, offset: int = 0
    ) -> list[MedicalSummary]:
        try:
            async with get_connection() as conn:
                async with conn.cursor(row_factory=dict_row) as cur:
                    await cur.execute(
                        f"""
                        SELECT {_COLUMNS}
                        FROM medical_summaries
                        WHERE user_id = %s
                        ORDER BY last_updated DESC, created_at DESC
                        LIMIT %s OFFSET %s
                        """,
                        (owner_id, limit, offset),
                    )
                    rows = await cur.fetchall()
        except psycopg.Error as exc:
            raise SummaryBackendError(f"Failed to fetch medical summaries: {exc}") from exc

        return [summary_from_row(row) for row in rows]

    async def delete_all(self, owner_id: str) -> int:
        try:
            async with get_connection() as conn:
                cur = await conn.execute(
                    "DELETE FROM medical_summaries WHERE user_id = %s", (owner_id,)
                )
                removed = cur.rowcount
                await conn.commit()
        except psycopg.Error as exc:
            raise SummaryBackendError(f"Failed to delete medical summaries: {exc}") from exc

        Log.info(f"Deleted {removed} medical summaries for owner {owner_id}")
        return removed
