from abc import ABC, abstractmethod


class BaseCompletionClient(ABC):
    """Contract for hosted text-completion providers."""

    @abstractmethod
    async def complete(
        self,
        *,
        model: str,
        temperature: float,
        prompt: str,
        system_prompt: str = "",
    ) -> str:
        """Send one prompt and return the provider's reply as plain text.

        Raises:
            CompletionError: on provider, network, or empty-reply failures.
        """
