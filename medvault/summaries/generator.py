"""AI-backed health profile across several records."""

import asyncio
from collections.abc import Sequence
from pathlib import Path

from medvault.interpretation.client_base import BaseCompletionClient
from medvault.interpretation.exceptions import CompletionError, CompletionTimeoutError
from medvault.interpretation.prompt_loader import load_prompt_template
from medvault.logging.logger import Log
from medvault.records.models import MedicalRecord
from medvault.summaries.analysis import combine_records, fallback_analysis, parse_summary_reply
from medvault.summaries.exceptions import SummaryParseError
from medvault.summaries.models import SummaryAnalysis

SUMMARY_PROMPT_PATH = Path(__file__).parent / "prompts" / "summary_prompt.txt"

SYSTEM_PROMPT = (
    "You are a medical AI assistant that analyzes medical records and provides clear, "
    "structured summaries. Focus on identifying key medical information, conditions, "
    "medications, tests, patterns, and recommendations."
)


class SummaryGenerator:
    """Asks the completion provider for a JSON analysis and falls back to a keyword scan."""

    def __init__(
        self,
        *,
        client: BaseCompletionClient,
        model: str,
        temperature: float = 0.3,
        timeout_seconds: float = 30.0,
        language: str = "English",
        prompt_template_path: Path | None = None,
        system_prompt: str = SYSTEM_PROMPT,
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = max(0.0, min(1.0, temperature))
        self._timeout_seconds = timeout_seconds
        self._language = language
        self._system_prompt = system_prompt
        self._prompt_template = load_prompt_template(prompt_template_path or SUMMARY_PROMPT_PATH)

    async def analyze(
        self, records: Sequence[MedicalRecord], texts: Sequence[str]
    ) -> SummaryAnalysis:
        """Summarize *records* and the document *texts* that belong to them.

        Never raises for provider or reply problems: those yield the
        degraded keyword analysis.
        """
        content = combine_records(records, texts)
        prompt = self._prompt_template.format(records=content, language=self._language)
        Log.debug(f"Summary prompt:\n{prompt}")

        try:
            raw_text = await self._call_ai(prompt)
            Log.debug(f"AI raw summary response:\n{raw_text}")
            analysis = parse_summary_reply(raw_text)
        except (CompletionError, SummaryParseError) as exc:
            Log.warning(f"AI summary unavailable, using keyword analysis: {exc}")
            return fallback_analysis(content)

        Log.info(
            f"Summary complete for {len(records)} records: "
            f"{len(analysis.conditions)} conditions, {len(analysis.medications)} medications"
        )
        return analysis

    async def _call_ai(self, prompt: str) -> str:
        try:
            return await asyncio.wait_for(
                self._client.complete(
                    model=self._model,
                    temperature=self._temperature,
                    prompt=prompt,
                    system_prompt=self._system_prompt,
                ),
                timeout=self._timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise CompletionTimeoutError(
                f"AI provider did not answer within {self._timeout_seconds:g}s"
            ) from exc
