from medvault.interpretation.factory import InterpreterFactory
from medvault.interpretation.interpreter import InterpretationResult, Interpreter
from medvault.interpretation.models import Interpretation
from medvault.interpretation.parser import parse_interpretation

__all__ = [
    "Interpretation",
    "InterpretationResult",
    "Interpreter",
    "InterpreterFactory",
    "parse_interpretation",
]
