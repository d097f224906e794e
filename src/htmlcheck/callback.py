"""Error callback strategies.

Every violation the engine detects is routed through exactly one callback
call. A callback returns the ``Violation`` to record, or ``None`` to leave it
out of the report. Raising ``StopValidation`` abandons the scan.
"""

from __future__ import annotations

from collections.abc import Callable

from .errors import ErrorReason, Violation

Span = tuple[int, int]
UserCallback = Callable[[str, str, str, ErrorReason], "Violation | None"]


class ErrorCallback:
    __slots__ = ()

    def __call__(
        self,
        tag_name: str,
        attribute_name: str,
        attribute_value: str,
        reason: ErrorReason,
        span: Span,
    ) -> Violation | None:
        raise NotImplementedError


class DefaultCallback(ErrorCallback):
    """Records every violation as-is."""

    __slots__ = ()

    def __call__(self, tag_name, attribute_name, attribute_value, reason, span):
        start, end = span
        return Violation(reason, tag_name, attribute_name, attribute_value, start=start, end=end)


class FunctionCallback(ErrorCallback):
    """Adapts a plain ``func(tag_name, attribute_name, value, reason)``.

    The function does not see the span; a ``Violation`` it returns without
    one is given the span of the offending token.
    """

    __slots__ = ("func",)

    def __init__(self, func: UserCallback) -> None:
        self.func = func

    def __call__(self, tag_name, attribute_name, attribute_value, reason, span):
        result = self.func(tag_name, attribute_name, attribute_value, reason)
        if result is not None and result.start is None:
            result.start, result.end = span
        return result


DEFAULT_CALLBACK: ErrorCallback = DefaultCallback()


def as_callback(callback: ErrorCallback | UserCallback | None) -> ErrorCallback:
    if callback is None:
        return DEFAULT_CALLBACK
    if isinstance(callback, ErrorCallback):
        return callback
    if not callable(callback):
        raise TypeError(f"callback must be callable, got {type(callback).__name__}")
    return FunctionCallback(callback)
