import unittest

from htmlcheck.nesting import OpenTag, close_all_skipped, close_innermost, find_open, unclosed_entries

SELF_CLOSING = {"br", "img"}


def is_self_closing(name):
    return name in SELF_CLOSING


def stack_of(*names):
    return [OpenTag(name, index * 10, index * 10 + 5) for index, name in enumerate(names)]


def names(entries):
    return [entry.name for entry in entries]


class TestFindOpen(unittest.TestCase):
    def test_finds_innermost_match(self):
        stack = stack_of("b", "c", "b")
        assert find_open(stack, "b") == 2
        assert find_open(stack, "c") == 1

    def test_missing(self):
        assert find_open(stack_of("b"), "c") == -1
        assert find_open([], "b") == -1


class TestCloseInnermost(unittest.TestCase):
    def test_matching_top_is_popped(self):
        stack, unclosed = close_innermost(stack_of("a", "b"), 1, is_self_closing)
        assert names(stack) == ["a"]
        assert unclosed == []

    def test_ancestor_close_reports_top_entry(self):
        """Open order [A, B] closed by A reports B and empties the stack."""
        stack, unclosed = close_innermost(stack_of("a", "b"), 0, is_self_closing)
        assert stack == []
        assert names(unclosed) == ["b"]

    def test_only_top_entry_is_reported(self):
        stack, unclosed = close_innermost(stack_of("x", "a", "b", "c"), 1, is_self_closing)
        assert names(stack) == ["x"]
        assert names(unclosed) == ["c"]

    def test_self_closing_top_is_not_reported(self):
        stack, unclosed = close_innermost(stack_of("a", "b", "br"), 0, is_self_closing)
        assert stack == []
        assert unclosed == []

    def test_input_stack_is_not_mutated(self):
        original = stack_of("a", "b")
        close_innermost(original, 0, is_self_closing)
        assert names(original) == ["a", "b"]


class TestCloseAllSkipped(unittest.TestCase):
    def test_reports_every_skipped_entry_innermost_first(self):
        stack, unclosed = close_all_skipped(stack_of("x", "a", "b", "img", "c"), 1, is_self_closing)
        assert names(stack) == ["x"]
        assert names(unclosed) == ["c", "b"]

    def test_matching_top(self):
        stack, unclosed = close_all_skipped(stack_of("a", "b"), 1, is_self_closing)
        assert names(stack) == ["a"]
        assert unclosed == []


class TestUnclosedEntries(unittest.TestCase):
    def test_keeps_stack_order_and_skips_self_closing(self):
        entries = unclosed_entries(stack_of("a", "br", "b", "img"), is_self_closing)
        assert names(entries) == ["a", "b"]

    def test_open_tag_from_token_keeps_positions(self):
        from htmlcheck.tokens import Tag

        entry = OpenTag.from_token(Tag(Tag.START, "p", [], start=4, end=9, name_start=5))
        assert entry == OpenTag("p", 4, 9)
        assert entry.name_start == 5


if __name__ == "__main__":
    unittest.main()
