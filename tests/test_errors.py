"""Tests for violation records and the errors raised around a scan."""

import unittest

from htmlcheck import ErrorReason, StreamError, TagRule, Validator, Violation

RULES = [TagRule("a", ["href"], self_closing=True), TagRule("b", ["id"])]


class TestViolation(unittest.TestCase):
    def test_messages(self):
        cases = [
            (ErrorReason.UNKNOWN_TAG, "art", "", "tag 'art' is not valid"),
            (ErrorReason.UNKNOWN_ATTRIBUTE, "a", "x", "invalid attribute 'x' in tag 'a'"),
            (ErrorReason.CLOSED_BEFORE_OPENED, "b", "", "close tag 'b' was not opened before close tag"),
            (ErrorReason.NOT_PROPERLY_CLOSED, "b", "", "tag 'b' is not properly closed"),
            (ErrorReason.DUPLICATED_ATTRIBUTE, "a", "href", "duplicated attribute 'href' in 'a'"),
        ]
        for reason, tag, attr, message in cases:
            with self.subTest(reason=reason):
                assert Violation(reason, tag, attr).message == message

    def test_str_and_repr(self):
        violation = Violation(ErrorReason.UNKNOWN_TAG, "art", start=1, end=5, line=1, column=2)
        assert str(violation) == "(1,2): tag 'art' is not valid"
        assert "unknown-tag" in repr(violation)
        assert "line=1" in repr(violation)
        bare = Violation(ErrorReason.UNKNOWN_TAG, "art")
        assert str(bare) == "tag 'art' is not valid"
        assert "line=" not in repr(bare)

    def test_equality(self):
        v1 = Violation(ErrorReason.UNKNOWN_TAG, "art", start=1, line=1, column=2)
        v2 = Violation(ErrorReason.UNKNOWN_TAG, "art", start=1, line=1, column=2)
        v3 = Violation(ErrorReason.NOT_PROPERLY_CLOSED, "art", start=1, line=1, column=2)
        assert v1 == v2
        assert v1 != v3
        assert v1.__eq__("not a violation") is NotImplemented

    def test_as_dict(self):
        (violation,) = Validator(RULES).validate("<b kkk=1></b>")
        assert violation.as_dict() == {
            "tagName": "b",
            "attributeName": "kkk",
            "reason": "unknown-attribute",
            "byteSpan": {"start": 1, "end": 9},
            "line": 1,
            "column": 2,
            "message": "invalid attribute 'kkk' in tag 'b'",
        }


class TestErrorReason(unittest.TestCase):
    def test_str_is_the_reason_code(self):
        assert str(ErrorReason.CLOSED_BEFORE_OPENED) == "closed-before-opened"
        assert ErrorReason("duplicated-attribute") is ErrorReason.DUPLICATED_ATTRIBUTE


class TestStreamError(unittest.TestCase):
    def test_defaults(self):
        error = StreamError("boom")
        assert str(error) == "boom"
        assert error.violations == []
        assert error.offset is None

    def test_carries_partial_results(self):
        violation = Violation(ErrorReason.UNKNOWN_TAG, "zz", start=1)
        error = StreamError("boom", violations=[violation], offset=4)
        assert error.violations == [violation]
        assert error.offset == 4


if __name__ == "__main__":
    unittest.main()
