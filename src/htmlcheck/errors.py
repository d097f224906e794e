"""Violation records and the exceptions raised around a validation run."""

import enum


class ErrorReason(enum.Enum):
    UNKNOWN_TAG = "unknown-tag"
    UNKNOWN_ATTRIBUTE = "unknown-attribute"
    CLOSED_BEFORE_OPENED = "closed-before-opened"
    NOT_PROPERLY_CLOSED = "not-properly-closed"
    DUPLICATED_ATTRIBUTE = "duplicated-attribute"

    def __str__(self):
        return self.value


MESSAGES = {
    ErrorReason.UNKNOWN_TAG: "tag '{tag}' is not valid",
    ErrorReason.UNKNOWN_ATTRIBUTE: "invalid attribute '{attr}' in tag '{tag}'",
    ErrorReason.CLOSED_BEFORE_OPENED: "close tag '{tag}' was not opened before close tag",
    ErrorReason.NOT_PROPERLY_CLOSED: "tag '{tag}' is not properly closed",
    ErrorReason.DUPLICATED_ATTRIBUTE: "duplicated attribute '{attr}' in '{tag}'",
}


def error_message(reason, tag_name, attribute_name=""):
    return MESSAGES[reason].format(tag=tag_name, attr=attribute_name)


class Violation:
    """A structural defect found in the markup, with location information.

    ``start``/``end`` are offsets into the validated text. For tag and
    attribute violations ``start`` points at the tag name, so ``line``/``column``
    (filled in after the scan) point there too. ``NOT_PROPERLY_CLOSED`` is
    located where it was detected: at the end tag that skipped the entry, or
    at the end of input for the final sweep. ``open_start``/``open_end`` then
    give the span of the tag that was left open.
    """

    __slots__ = (
        "attribute_name",
        "attribute_value",
        "column",
        "end",
        "line",
        "message",
        "open_end",
        "open_start",
        "reason",
        "start",
        "tag_name",
    )

    def __init__(
        self,
        reason,
        tag_name,
        attribute_name="",
        attribute_value="",
        start=None,
        end=None,
        line=None,
        column=None,
        message=None,
        open_start=None,
        open_end=None,
    ):
        self.reason = reason
        self.tag_name = tag_name
        self.attribute_name = attribute_name or ""
        self.attribute_value = attribute_value or ""
        self.start = start
        self.end = end
        self.line = line
        self.column = column
        self.message = message or error_message(reason, tag_name, self.attribute_name)
        self.open_start = open_start
        self.open_end = open_end

    @property
    def span(self):
        return (self.start, self.end)

    def as_dict(self):
        """Boundary representation of the violation.

        ``byteSpan`` holds character offsets into the decoded text, not byte
        offsets; input given as bytes is decoded before it is scanned.
        """
        return {
            "tagName": self.tag_name,
            "attributeName": self.attribute_name,
            "reason": str(self.reason),
            "byteSpan": {"start": self.start, "end": self.end},
            "line": self.line,
            "column": self.column,
            "message": self.message,
        }

    def __repr__(self):
        attr = f", attribute={self.attribute_name!r}" if self.attribute_name else ""
        if self.line is not None and self.column is not None:
            return f"Violation({str(self.reason)!r}, tag={self.tag_name!r}{attr}, line={self.line}, column={self.column})"
        return f"Violation({str(self.reason)!r}, tag={self.tag_name!r}{attr})"

    def __str__(self):
        if self.line is not None and self.column is not None:
            return f"({self.line},{self.column}): {self.message}"
        return self.message

    def __eq__(self, other):
        if not isinstance(other, Violation):
            return NotImplemented
        return (
            self.reason == other.reason
            and self.tag_name == other.tag_name
            and self.attribute_name == other.attribute_name
            and self.start == other.start
            and self.line == other.line
            and self.column == other.column
        )

    __hash__ = None  # Unhashable since we define __eq__


class StopValidation(Exception):
    """Raised by an error callback to abandon the current scan.

    The violations collected up to that point are returned as usual.
    """


class StreamError(Exception):
    """The input could not be read or decoded; the scan stopped early.

    ``violations`` holds what was found in the readable prefix of the input
    (positions translated, no end-of-input sweep). ``offset`` is the text
    offset at which reading stopped.
    """

    def __init__(self, message, violations=None, offset=None):
        super().__init__(message)
        self.message = message
        self.violations = violations if violations is not None else []
        self.offset = offset
