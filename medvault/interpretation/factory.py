from typing import ClassVar

from medvault.config.settings import Settings
from medvault.interpretation.client_base import BaseCompletionClient
from medvault.interpretation.example_client_adapter import ExampleClientAdapter
from medvault.interpretation.interpreter import Interpreter
from medvault.interpretation.openai_client_adapter import OpenAIClientAdapter


class InterpreterFactory:
    """Creates an Interpreter wired to the configured completion provider."""

    OPENAI_COMPATIBLE_BASE_URLS: ClassVar[dict[str, str]] = {
        "openrouter": "https://openrouter.ai/api/v1",
        "groq": "https://api.groq.com/openai/v1",
        "together": "https://api.together.xyz/v1",
        "deepseek": "https://api.deepseek.com/v1",
        "ollama": "http://localhost:11434/v1",
    }

    @classmethod
    def create(cls, settings: Settings) -> Interpreter:
        return Interpreter(
            client=cls.create_client(settings),
            model=settings.completion_model_name or "example",
            temperature=settings.completion_temperature,
            timeout_seconds=settings.completion_timeout_seconds,
            language=settings.completion_language,
        )

    @classmethod
    def create_client(cls, settings: Settings) -> BaseCompletionClient:
        provider = settings.completion_provider.lower()
        if provider == "example":
            return ExampleClientAdapter()
        return OpenAIClientAdapter(
            api_key=settings.completion_api_key,
            timeout_seconds=settings.completion_timeout_seconds,
            base_url=cls._resolve_base_url(provider, settings),
        )

    @classmethod
    def _resolve_base_url(cls, provider: str, settings: Settings) -> str | None:
        custom = settings.completion_base_url.strip()
        if provider == "openai":
            return custom or None
        if provider == "openai_compatible":
            if not custom:
                raise ValueError(
                    "completion_base_url is required for completion_provider=openai_compatible"
                )
            return custom
        default_base_url = cls.OPENAI_COMPATIBLE_BASE_URLS.get(provider)
        if default_base_url is not None:
            return custom or default_base_url
        supported = [
            "example",
            "openai",
            "openai_compatible",
            *sorted(cls.OPENAI_COMPATIBLE_BASE_URLS),
        ]
        raise ValueError(
            f"Unknown completion provider '{provider}'. Choose from: {supported}"
        )
