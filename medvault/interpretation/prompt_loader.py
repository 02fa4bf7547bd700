from pathlib import Path

from medvault.interpretation.exceptions import PromptLoadError

_DEFAULT_PROMPT_DIR = Path(__file__).parent / "prompts"


def load_prompt_template(path: Path | None = None) -> str:
    """Load the interpretation prompt template.

    Args:
        path: Template file. Defaults to the bundled interpretation_prompt.txt.

    Returns:
        The raw template with ``{language}`` and ``{document_text}`` placeholders.

    Raises:
        PromptLoadError: if the file cannot be read.
    """
    if path is None:
        path = _DEFAULT_PROMPT_DIR / "interpretation_prompt.txt"
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise PromptLoadError(f"Failed to load prompt template: {exc}") from exc
