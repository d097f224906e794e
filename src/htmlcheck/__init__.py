from .callback import DEFAULT_CALLBACK, DefaultCallback, ErrorCallback, FunctionCallback
from .errors import ErrorReason, StopValidation, StreamError, Violation
from .positions import PositionTranslator, translate_positions
from .rules import TagRegistry, TagRule, load_rules
from .tokenizer import Tokenizer, TokenizerOpts
from .validator import ValidationEngine, Validator, ValidatorOpts

__all__ = [
    "DEFAULT_CALLBACK",
    "DefaultCallback",
    "ErrorCallback",
    "ErrorReason",
    "FunctionCallback",
    "PositionTranslator",
    "StopValidation",
    "StreamError",
    "TagRegistry",
    "TagRule",
    "Tokenizer",
    "TokenizerOpts",
    "ValidationEngine",
    "Validator",
    "ValidatorOpts",
    "Violation",
    "load_rules",
    "translate_positions",
]
