"""AI-backed interpretation of medical document text."""

import asyncio
from dataclasses import dataclass
from pathlib import Path

from medvault.interpretation.client_base import BaseCompletionClient
from medvault.interpretation.exceptions import CompletionTimeoutError
from medvault.interpretation.models import Interpretation
from medvault.interpretation.parser import default_interpretation, parse_interpretation
from medvault.interpretation.prompt_loader import load_prompt_template
from medvault.logging.logger import Log


@dataclass(frozen=True)
class InterpretationResult:
    interpretation: Interpretation
    raw_text: str


class Interpreter:
    """Builds the prompt, calls the completion client under a deadline, parses the reply."""

    def __init__(
        self,
        *,
        client: BaseCompletionClient,
        model: str,
        temperature: float = 0.3,
        timeout_seconds: float = 30.0,
        language: str = "English",
        prompt_template_path: Path | None = None,
        system_prompt: str = "",
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = max(0.0, min(1.0, temperature))
        self._timeout_seconds = timeout_seconds
        self._language = language
        self._system_prompt = system_prompt
        self._prompt_template = load_prompt_template(prompt_template_path)

    async def interpret(self, text: str) -> InterpretationResult:
        """Interpret *text*.

        Blank text is not sent to the provider; it yields the generic
        default interpretation.

        Raises:
            CompletionError: if the provider call fails.
            CompletionTimeoutError: if it exceeds the configured deadline.
        """
        if not text.strip():
            Log.info("No document text to interpret, using generic guidance")
            return InterpretationResult(interpretation=default_interpretation(), raw_text="")

        prompt = self._build_prompt(text)
        Log.debug(f"Interpretation prompt:\n{prompt}")

        raw_text = await self._call_ai(prompt)
        Log.debug(f"AI raw response:\n{raw_text}")

        interpretation = parse_interpretation(raw_text)
        Log.info(
            f"Interpretation complete: {len(interpretation.recommended_actions)} actions, "
            f"{len(interpretation.attention_indicators)} warnings"
            + (" (degraded)" if interpretation.degraded else "")
        )
        return InterpretationResult(interpretation=interpretation, raw_text=raw_text)

    def _build_prompt(self, text: str) -> str:
        return self._prompt_template.format(language=self._language, document_text=text)

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
