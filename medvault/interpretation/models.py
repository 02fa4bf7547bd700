from dataclasses import dataclass, field


@dataclass(frozen=True)
class Interpretation:
    """Structured reading of a completion reply.

    ``degraded`` is set when the reply could not be split into sections
    and generic guidance was substituted.
    """

    explanation: str
    recommended_actions: list[str] = field(default_factory=list)
    attention_indicators: list[str] = field(default_factory=list)
    degraded: bool = False
