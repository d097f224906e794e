"""Tests for tag, attribute and nesting validation."""

import io
import unittest
from contextlib import redirect_stdout

from htmlcheck import ErrorReason, TagRule, Validator, ValidatorOpts, Violation

UNKNOWN_TAG = ErrorReason.UNKNOWN_TAG
UNKNOWN_ATTRIBUTE = ErrorReason.UNKNOWN_ATTRIBUTE
CLOSED_BEFORE_OPENED = ErrorReason.CLOSED_BEFORE_OPENED
NOT_PROPERLY_CLOSED = ErrorReason.NOT_PROPERLY_CLOSED
DUPLICATED_ATTRIBUTE = ErrorReason.DUPLICATED_ATTRIBUTE

BASIC_RULES = [
    TagRule("a", ["href"], self_closing=True),
    TagRule("b", ["id"]),
    TagRule("c", ["id"]),
    TagRule("style", ["id"]),
]


def reasons(violations):
    return [v.reason for v in violations]


def make_validator(**kwargs):
    return Validator(BASIC_RULES, **kwargs)


class TestWellFormed(unittest.TestCase):
    """Inputs that satisfy the whitelist produce no violations."""

    def setUp(self):
        self.v = make_validator()

    def test_single_tag(self):
        assert self.v.validate("<a></a>") == []

    def test_self_closing_tag_left_open(self):
        assert self.v.validate("<a>") == []

    def test_whitelisted_attribute(self):
        assert self.v.validate("<a href='test'>") == []

    def test_nested_tags(self):
        assert self.v.validate("<b><a></a></b>") == []

    def test_self_closing_child_closed_by_parent(self):
        """An open self-closing child on top of the stack is not reported."""
        assert self.v.validate("<b><a></b>") == []

    def test_names_are_case_insensitive(self):
        assert self.v.validate("<B ID='x'><A HREF=y></a></b>") == []

    def test_text_comments_and_doctype_are_ignored(self):
        html = "<!DOCTYPE html>\n<!-- <zz kkk=1> -->text &amp; more<b id=1>x</b>"
        assert self.v.validate(html) == []

    def test_raw_text_content_is_not_markup(self):
        assert self.v.validate("<style><zz></b></style>") == []

    def test_empty_input(self):
        assert self.v.validate("") == []
        assert self.v.validate(None) == []


class TestTagAndAttributeLegality(unittest.TestCase):
    def setUp(self):
        self.v = make_validator()

    def test_unknown_attribute(self):
        violations = self.v.validate("<a hrefff='test'>")
        assert reasons(violations) == [UNKNOWN_ATTRIBUTE]
        assert violations[0].tag_name == "a"
        assert violations[0].attribute_name == "hrefff"
        assert violations[0].attribute_value == "test"

    def test_duplicated_attribute(self):
        violations = self.v.validate("<a href='test' href='test2'>")
        assert reasons(violations) == [DUPLICATED_ATTRIBUTE]
        assert violations[0].tag_name == "a"
        assert violations[0].attribute_name == "href"
        assert violations[0].attribute_value == "test2"

    def test_duplicate_reported_per_repeated_occurrence(self):
        violations = self.v.validate("<a href=1 href=2 href=3>")
        assert reasons(violations) == [DUPLICATED_ATTRIBUTE, DUPLICATED_ATTRIBUTE]

    def test_unknown_and_duplicated_attribute(self):
        """Each occurrence is checked for validity; repeats are also duplicates."""
        violations = self.v.validate("<b kkk=1 kkk=2></b>")
        assert reasons(violations) == [UNKNOWN_ATTRIBUTE, UNKNOWN_ATTRIBUTE, DUPLICATED_ATTRIBUTE]

    def test_unknown_tag(self):
        violations = self.v.validate("<art>")
        # Unknown tags are not self-closing, so the sweep reports them too.
        assert reasons(violations) == [UNKNOWN_TAG, NOT_PROPERLY_CLOSED]
        assert all(v.tag_name == "art" for v in violations)

    def test_unknown_tag_still_checks_attributes_and_nesting(self):
        violations = self.v.validate("<zz id='x'></zz>")
        # Start and end tags are both unknown; the attribute is unknown too.
        assert reasons(violations) == [UNKNOWN_TAG, UNKNOWN_ATTRIBUTE, UNKNOWN_TAG]

    def test_attributes_on_end_tags_are_checked(self):
        violations = self.v.validate("<b></b kkk=1>")
        assert reasons(violations) == [UNKNOWN_ATTRIBUTE]

    def test_nested_unknown_attribute_on_parent(self):
        assert reasons(self.v.validate("<b kkk='kkk'><a></b>")) == [UNKNOWN_ATTRIBUTE]

    def test_nested_unknown_attribute_on_child(self):
        assert reasons(self.v.validate("<b><a kkk='kkk'></b>")) == [UNKNOWN_ATTRIBUTE]


class TestGlobalRule(unittest.TestCase):
    def setUp(self):
        self.v = Validator(
            [
                TagRule("", ["id", "class"], attribute_pattern=r"data-[a-z]+"),
                TagRule("a", ["href"]),
                TagRule("img", ["src"], attribute_pattern=r"aria-.*", self_closing=True),
            ]
        )

    def test_global_attributes_apply_to_every_tag(self):
        assert self.v.validate("<a id=1 class=x data-role=y href=z></a>") == []

    def test_tag_pattern(self):
        assert self.v.validate("<img aria-label=x src=y>") == []
        assert reasons(self.v.validate("<a aria-label=x></a>")) == [UNKNOWN_ATTRIBUTE]

    def test_pattern_must_match_whole_name(self):
        assert reasons(self.v.validate("<a data-x1></a>")) == [UNKNOWN_ATTRIBUTE]

    def test_global_attribute_on_unknown_tag(self):
        violations = self.v.validate("<zz id='x'></zz>")
        assert reasons(violations) == [UNKNOWN_TAG, UNKNOWN_TAG]

    def test_empty_tag_name_is_not_a_known_tag(self):
        assert not self.v.is_valid_tag("")


class TestNesting(unittest.TestCase):
    def setUp(self):
        self.v = make_validator()

    def test_unclosed_tag(self):
        violations = self.v.validate("<b>df")
        assert reasons(violations) == [NOT_PROPERLY_CLOSED]
        assert violations[0].tag_name == "b"

    def test_wrongly_nested_tags(self):
        violations = self.v.validate("<b><c></b></c>")
        # </b> closes both b and c, reporting c; the trailing </c> then has
        # nothing left to close.
        assert reasons(violations) == [NOT_PROPERLY_CLOSED, CLOSED_BEFORE_OPENED]
        assert [v.tag_name for v in violations] == ["c", "c"]

    def test_end_tag_for_ancestor_reports_top_only(self):
        violations = self.v.validate("<b><c></b>")
        assert reasons(violations) == [NOT_PROPERLY_CLOSED]
        assert violations[0].tag_name == "c"

    def test_swapped_start_and_end_tags(self):
        violations = self.v.validate("</b><b>")
        assert reasons(violations) == [CLOSED_BEFORE_OPENED, NOT_PROPERLY_CLOSED]
        assert [v.tag_name for v in violations] == ["b", "b"]

    def test_dangling_end_tag_leaves_stack_alone(self):
        violations = self.v.validate("<b></c></b>")
        assert reasons(violations) == [CLOSED_BEFORE_OPENED]

    def test_end_tag_closes_innermost_match(self):
        assert self.v.validate("<b><b></b></b>") == []


class TestRecoveryPolicies(unittest.TestCase):
    RULES = [TagRule(name) for name in ("b", "c", "d", "e")] + [TagRule("br", self_closing=True)]

    def test_single_report_drops_deeper_ancestors(self):
        v = Validator(self.RULES)
        violations = v.validate("<b><c><d></b>")
        assert reasons(violations) == [NOT_PROPERLY_CLOSED]
        assert violations[0].tag_name == "d"

    def test_report_skipped_ancestors(self):
        v = Validator(self.RULES, report_skipped_ancestors=True)
        violations = v.validate("<b><c><br><d></b>")
        assert [v.tag_name for v in violations] == ["d", "c"]
        assert set(reasons(violations)) == {NOT_PROPERLY_CLOSED}

    def test_sweep_reports_every_unclosed_tag(self):
        v = Validator(self.RULES)
        violations = v.validate("<b><br><c>")
        assert [v.tag_name for v in violations] == ["b", "c"]

    def test_sweep_can_stop_at_first_unclosed_tag(self):
        v = Validator(self.RULES, report_all_unclosed=False)
        violations = v.validate("<zz></zz><b><br><c>")
        assert reasons(violations) == [UNKNOWN_TAG, UNKNOWN_TAG, NOT_PROPERLY_CLOSED]
        assert violations[-1].tag_name == "b"

    def test_mismatch_is_located_at_the_end_tag(self):
        v = Validator(self.RULES)
        (violation,) = v.validate("<b>\n<c>\nxx</b>")
        assert violation.tag_name == "c"
        assert violation.span == (12, 14)
        assert (violation.line, violation.column) == (3, 5)
        assert (violation.open_start, violation.open_end) == (5, 7)

    def test_sweep_is_located_at_end_of_input(self):
        v = Validator(self.RULES)
        (violation,) = v.validate("<b>\n\n\nend")
        assert violation.tag_name == "b"
        assert violation.span == (9, 9)
        assert (violation.line, violation.column) == (4, 4)
        assert (violation.open_start, violation.open_end) == (1, 3)

    def test_skipped_ancestors_share_the_end_tag_location(self):
        v = Validator(self.RULES, report_skipped_ancestors=True)
        violations = v.validate("<b><c><d></b>")
        assert [v.span for v in violations] == [(11, 13), (11, 13)]
        assert [v.open_start for v in violations] == [7, 4]

    def test_open_span_is_kept_on_callback_replacements(self):
        def callback(tag_name, attribute_name, value, reason):
            return Violation(reason, tag_name, attribute_name, value)

        v = Validator(self.RULES, callback=callback)
        (violation,) = v.validate("<b><c></b>")
        assert violation.span == (8, 10)
        assert (violation.open_start, violation.open_end) == (4, 6)


class TestStopAfterFirstError(unittest.TestCase):
    def test_stops_on_first_violation(self):
        v = make_validator(stop_after_first_error=True)
        violations = v.validate("<zz kkk=1><yy>")
        assert reasons(violations) == [UNKNOWN_TAG]
        assert violations[0].tag_name == "zz"

    def test_applies_to_sweep(self):
        v = make_validator(stop_after_first_error=True)
        assert [v.tag_name for v in v.validate("<b><c>")] == ["b"]

    def test_suppressed_violations_do_not_stop(self):
        def only_attributes(tag_name, attribute_name, value, reason):
            if reason is UNKNOWN_ATTRIBUTE:
                return Violation(reason, tag_name, attribute_name, value)
            return None

        v = make_validator(stop_after_first_error=True, callback=only_attributes)
        violations = v.validate("<zz><b kkk=1 lll=2>")
        assert reasons(violations) == [UNKNOWN_ATTRIBUTE]
        assert violations[0].attribute_name == "kkk"

    def test_opts_object(self):
        v = Validator(BASIC_RULES, opts=ValidatorOpts(stop_after_first_error=True))
        assert len(v.validate("<zz><yy>")) == 1

    def test_opts_and_keywords_are_exclusive(self):
        with self.assertRaises(TypeError):
            Validator(BASIC_RULES, opts=ValidatorOpts(), stop_after_first_error=True)


class TestLineColumn(unittest.TestCase):
    def setUp(self):
        self.v = make_validator()

    def test_single_line(self):
        violations = self.v.validate("<b><a kkk='kkk'></b>")
        assert violations[0].line == 1
        assert violations[0].column == 5

    def test_multiple_lines(self):
        violations = self.v.validate("<b></b>\n<b></b>\n<b kkk='kkk'></b>")
        assert violations[0].line == 3
        assert violations[0].column == 2

    def test_span_covers_tag(self):
        violations = self.v.validate("<b kkk='kkk'></b>")
        assert violations[0].span == (1, 13)

    def test_end_tag_position(self):
        violations = self.v.validate("x\n</c>")
        assert (violations[0].line, violations[0].column) == (2, 3)


class TestQueries(unittest.TestCase):
    def setUp(self):
        self.v = make_validator()

    def test_is_valid_attribute(self):
        assert self.v.is_valid_attribute("a", "href")
        assert not self.v.is_valid_attribute("kkk", "href")
        assert not self.v.is_valid_attribute("a", "id")

    def test_is_valid_tag(self):
        assert self.v.is_valid_tag("b")
        assert not self.v.is_valid_tag("art")

    def test_is_valid_self_closing_tag(self):
        assert self.v.is_valid_self_closing_tag("a")
        assert not self.v.is_valid_self_closing_tag("b")
        assert not self.v.is_valid_self_closing_tag("art")

    def test_add_valid_tag_overwrites(self):
        self.v.add_valid_tag(TagRule("b", ["class"]))
        assert self.v.is_valid_attribute("b", "class")
        assert not self.v.is_valid_attribute("b", "id")

    def test_add_valid_tags_keeps_existing(self):
        self.v.add_valid_tags([TagRule("p"), TagRule("span")])
        assert self.v.is_valid_tag("p")
        assert self.v.is_valid_tag("a")

    def test_validator_is_reusable(self):
        assert len(self.v.validate("<b>")) == 1
        assert self.v.validate("<b></b>") == []


class TestDebugOutput(unittest.TestCase):
    def test_debug_traces_tokens_and_violations(self):
        v = make_validator(debug=True)
        out = io.StringIO()
        with redirect_stdout(out):
            v.validate("<b><zz>")
        text = out.getvalue()
        assert "[token]" in text
        assert "[violation] tag 'zz' is not valid" in text

    def test_no_output_without_debug(self):
        v = make_validator()
        out = io.StringIO()
        with redirect_stdout(out):
            v.validate("<b><zz>")
        assert out.getvalue() == ""


if __name__ == "__main__":
    unittest.main()
