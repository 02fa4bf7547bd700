import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from medvault.interpretation.exceptions import CompletionError, CompletionTimeoutError
from medvault.interpretation.openai_client_adapter import OpenAIClientAdapter


def _make_mock_response(content: str | None) -> MagicMock:
    choice = MagicMock()
    choice.message.content = content
    response = MagicMock()
    response.choices = [choice]
    return response


def _make_adapter(mock_client: MagicMock) -> OpenAIClientAdapter:
    with patch(
        "medvault.interpretation.openai_client_adapter.openai.AsyncOpenAI",
        return_value=mock_client,
    ):
        return OpenAIClientAdapter(api_key="k", timeout_seconds=30, base_url=None)


def _complete(adapter: OpenAIClientAdapter, system_prompt: str = "") -> str:
    return asyncio.run(
        adapter.complete(model="m", temperature=0.3, prompt="user", system_prompt=system_prompt)
    )


class TestOpenAIClientAdapter:
    def test_returns_content(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create = AsyncMock(
            return_value=_make_mock_response("📘 Explanation: fine")
        )
        assert _complete(_make_adapter(mock_client)) == "📘 Explanation: fine"

    def test_sends_user_prompt_only_without_system_prompt(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create = AsyncMock(return_value=_make_mock_response("ok"))
        _complete(_make_adapter(mock_client))
        messages = mock_client.chat.completions.create.await_args.kwargs["messages"]
        assert messages == [{"role": "user", "content": "user"}]

    def test_prepends_system_prompt(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create = AsyncMock(return_value=_make_mock_response("ok"))
        _complete(_make_adapter(mock_client), system_prompt="be kind")
        messages = mock_client.chat.completions.create.await_args.kwargs["messages"]
        assert messages[0] == {"role": "system", "content": "be kind"}

    def test_raises_error_for_empty_content(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create = AsyncMock(return_value=_make_mock_response(None))
        with pytest.raises(CompletionError, match="empty response"):
            _complete(_make_adapter(mock_client))

    def test_raises_error_for_no_choices(self) -> None:
        response = MagicMock()
        response.choices = []
        mock_client = MagicMock()
        mock_client.chat.completions.create = AsyncMock(return_value=response)
        with pytest.raises(CompletionError, match="no choices"):
            _complete(_make_adapter(mock_client))

    def test_raises_network_error_on_connection_failure(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create = AsyncMock(
            side_effect=openai.APIConnectionError(request=MagicMock())
        )
        with pytest.raises(CompletionError, match="network error"):
            _complete(_make_adapter(mock_client))

    def test_raises_timeout_error(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create = AsyncMock(
            side_effect=httpx.TimeoutException("timeout")
        )
        with pytest.raises(CompletionTimeoutError, match="timed out"):
            _complete(_make_adapter(mock_client))

    def test_raises_error_on_api_error(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create = AsyncMock(
            side_effect=openai.APIError(message="server error", request=MagicMock(), body=None)
        )
        with pytest.raises(CompletionError, match="API error"):
            _complete(_make_adapter(mock_client))
