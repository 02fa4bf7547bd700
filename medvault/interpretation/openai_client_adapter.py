import httpx
import openai

from medvault.interpretation.client_base import BaseCompletionClient
from medvault.interpretation.exceptions import CompletionError, CompletionTimeoutError


class OpenAIClientAdapter(BaseCompletionClient):
    """Completion client built on the OpenAI-compatible chat API."""

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: float,
        base_url: str | None = None,
    ) -> None:
        self._client = openai.AsyncOpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
            max_retries=0,
        )

    async def complete(
        self,
        *,
        model: str,
        temperature: float,
        prompt: str,
        system_prompt: str = "",
    ) -> str:
        messages: list[dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        try:
            response = await self._client.chat.completions.create(
                model=model,
                temperature=temperature,
                messages=messages,  # type: ignore[arg-type]
            )
        except (openai.APITimeoutError, httpx.TimeoutException) as exc:
            raise CompletionTimeoutError(f"AI provider timed out: {exc}") from exc
        except (openai.APIConnectionError, httpx.ConnectError) as exc:
            raise CompletionError(f"AI provider network error: {exc}") from exc
        except openai.APIError as exc:
            raise CompletionError(f"AI provider API error: {exc}") from exc

        if not response.choices:
            raise CompletionError("AI returned no choices")
        content = response.choices[0].message.content
        if not content:
            raise CompletionError("AI returned empty response")
        return content
