"""Open-tag stack and the recovery policies applied to mismatched end tags.

The functions here are pure: they take a stack (a list of `OpenTag`) and
return a new one along with the entries that have to be reported as not
properly closed. The validator picks the policy; see
``ValidatorOpts.report_skipped_ancestors``.
"""


class OpenTag:
    __slots__ = ("end", "name", "name_start", "start")

    def __init__(self, name, start=0, end=0, name_start=None):
        self.name = name
        self.start = start
        self.end = end
        self.name_start = name_start if name_start is not None else start

    @classmethod
    def from_token(cls, tag):
        return cls(tag.name, tag.start, tag.end, tag.name_start)

    def __repr__(self):
        return f"OpenTag({self.name!r}, {self.start}, {self.end})"

    def __eq__(self, other):
        if not isinstance(other, OpenTag):
            return NotImplemented
        return self.name == other.name and self.start == other.start and self.end == other.end

    __hash__ = None


def find_open(stack, name):
    """Index of the innermost open entry called `name`, or -1."""
    for index in range(len(stack) - 1, -1, -1):
        if stack[index].name == name:
            return index
    return -1


def close_innermost(stack, index, is_self_closing):
    """Close `stack[index]`, reporting only the entry on top of the stack.

    Everything from `index` upward is discarded. When more than one entry
    sits above `index`, only the topmost one is reported; the deeper ones
    are dropped silently. A self-closing top entry is never reported.
    """
    top = len(stack) - 1
    if index == top:
        return stack[:index], []
    entry = stack[top]
    unclosed = [] if is_self_closing(entry.name) else [entry]
    return stack[:index], unclosed


def close_all_skipped(stack, index, is_self_closing):
    """Close `stack[index]`, reporting every skipped entry above it.

    Entries are reported innermost first.
    """
    skipped = stack[index + 1 :]
    unclosed = [entry for entry in reversed(skipped) if not is_self_closing(entry.name)]
    return stack[:index], unclosed


def unclosed_entries(stack, is_self_closing):
    """Entries still open at end of input that required an end tag, in stack order."""
    return [entry for entry in stack if not is_self_closing(entry.name)]
