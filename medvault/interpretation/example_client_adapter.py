"""Offline completion client.

Returns a fixed, correctly formatted reply. Useful for local development,
tests, and as a template for new provider adapters: implement
BaseCompletionClient and register the provider in CompletionClientFactory.
"""

from typing import ClassVar

from medvault.interpretation.client_base import BaseCompletionClient


class ExampleClientAdapter(BaseCompletionClient):
    """Adapter that answers every prompt with the same three-section reply."""

    DEFAULT_RESPONSE: ClassVar[str] = (
        "📘 Explanation:\n"
        "This document was received and looks like a routine medical record.\n\n"
        "💡 What to Do:\n"
        "1. Keep this record with your other medical documents.\n"
        "2. Bring it to your next appointment.\n\n"
        "⚠️ When to See a Doctor:\n"
        "- If you notice new or worsening symptoms.\n"
    )

    async def complete(
        self,
        *,
        model: str,
        temperature: float,
        prompt: str,
        system_prompt: str = "",
    ) -> str:
        _ = model, temperature, prompt, system_prompt
        return self.DEFAULT_RESPONSE
