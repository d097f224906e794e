"""Offset to line/column translation, run once after a scan."""

from bisect import bisect_right


class PositionTranslator:
    __slots__ = ("_line_starts", "length")

    def __init__(self, text):
        self.length = len(text)
        # Each line spans its own length plus one for the "\n" delimiter.
        line_starts = [0]
        offset = 0
        for line in text.split("\n")[:-1]:
            offset += len(line) + 1
            line_starts.append(offset)
        self._line_starts = line_starts

    def locate(self, offset):
        """Return the 1-based ``(line, column)`` of `offset`."""
        if offset < 0:
            offset = 0
        line_index = bisect_right(self._line_starts, offset) - 1
        return line_index + 1, offset - self._line_starts[line_index] + 1


def translate_positions(text, violations):
    """Fill in ``line``/``column`` on each violation that has a start offset."""
    if not violations:
        return violations
    translator = PositionTranslator(text)
    for violation in violations:
        if violation.start is None:
            continue
        violation.line, violation.column = translator.locate(violation.start)
    return violations
