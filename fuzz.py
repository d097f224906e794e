#!/usr/bin/env python3
"""
Random fuzzer for the htmlcheck validator.
Generates malformed markup and checks that validation never crashes, never
hangs, and always reports violations that point inside the input.
"""

import argparse
import random
import string
import sys
import time
import traceback

from htmlcheck import PositionTranslator, TagRule, Validator

# Tags the fuzzing whitelist knows about
KNOWN_TAGS = ["a", "b", "i", "p", "div", "span", "ul", "li", "img", "br", "code", "pre"]
SELF_CLOSING_TAGS = ["img", "br"]

# Tags the whitelist rejects
UNKNOWN_TAGS = ["art", "kk", "zz", "blink", "marquee", "font", "center", "x-widget"]

# Tags that switch the tokenizer to raw text
RAW_TEXT_TAGS = ["script", "style", "xmp", "iframe", "noembed", "noframes", "noscript", "title", "textarea"]

ALLOWED_ATTRIBUTES = ["id", "class", "href", "src", "alt", "title"]
OTHER_ATTRIBUTES = ["onclick", "style", "kkk", "hrefff", "data-x", "aria-label", "HREF", "Id"]

SPECIAL_CHARS = [
    "\x00", "\x0b", "\x0c", "\x7f",  # Control chars
    "\ufffd",  # Replacement character
    "\u00a0",  # Non-breaking space
    "\u2028", "\u2029",  # Line/paragraph separators
    "\u200b",  # Zero-width space
    "\ufeff",  # BOM
    "\r\n", "\r",
]


def build_rules():
    rules = [TagRule(name, ALLOWED_ATTRIBUTES, self_closing=name in SELF_CLOSING_TAGS) for name in KNOWN_TAGS]
    rules.append(TagRule("", ["class"], attribute_pattern=r"data-[a-z-]+"))
    return rules


def random_string(min_len=0, max_len=20):
    """Generate random ASCII string."""
    length = random.randint(min_len, max_len)
    return "".join(random.choices(string.ascii_letters + string.digits, k=length))


def random_whitespace():
    ws = [" ", "\t", "\n", "\r", "\f", ""]
    return "".join(random.choices(ws, k=random.randint(0, 3)))


def fuzz_tag_name():
    strategies = [
        lambda: random.choice(KNOWN_TAGS),
        lambda: random.choice(KNOWN_TAGS).upper(),
        lambda: random.choice(UNKNOWN_TAGS),
        lambda: random.choice(KNOWN_TAGS) + random_string(1, 3),
        lambda: random_string(1, 8),
        lambda: random.choice(KNOWN_TAGS) + random.choice(SPECIAL_CHARS),
    ]
    return random.choice(strategies)()


def fuzz_attribute():
    name = random.choice(
        [
            lambda: random.choice(ALLOWED_ATTRIBUTES),
            lambda: random.choice(OTHER_ATTRIBUTES),
            lambda: random_string(1, 10),
            lambda: "=",
            lambda: "'",
        ]
    )()
    value = random.choice(
        [
            lambda: random_string(0, 30),
            lambda: "<b>",
            lambda: "&amp;&lt;",
            lambda: random.choice(SPECIAL_CHARS),
            lambda: "\n" * random.randint(1, 3),
        ]
    )()
    quote_start, quote_end = random.choice(
        [
            ('="', '"'),
            ("='", "'"),
            ("=", ""),
            ("", ""),
            ('="', ""),  # Unclosed quote
        ]
    )
    if quote_end == "" and quote_start == "=":
        value = value.replace(" ", "").replace(">", "") or "x"
    return f"{name}{quote_start}{value}{quote_end}"


def fuzz_open_tag():
    tag = fuzz_tag_name()
    attrs = [fuzz_attribute() for _ in range(random.randint(0, 4))]
    if attrs and random.random() < 0.2:
        attrs.append(attrs[0])  # Duplicate
    attr_str = " ".join(attrs)
    closing = random.choice([">", ">", ">", "/>", " />", ""])
    return f"<{tag}{' ' if attr_str else ''}{attr_str}{random_whitespace()}{closing}"


def fuzz_close_tag():
    tag = fuzz_tag_name()
    return random.choice(
        [
            f"</{tag}>",
            f"</{tag.upper()}>",
            f"</{tag} >",
            f"</{tag}",  # Unclosed
            f"</{tag}/>",
            f"</ {tag}>",  # Bogus comment
            f"</{tag} class=x>",
            "</>",
        ]
    )


def fuzz_markup():
    return random.choice(
        [
            lambda: f"<!--{random_string()}-->",
            lambda: f"<!-- <{fuzz_tag_name()}> -->",
            lambda: "<!-->",
            lambda: f"<!--{random_string()}",  # Unterminated
            lambda: "<!DOCTYPE html>",
            lambda: "<?xml version='1.0'?>",
            lambda: "<![CDATA[x]]>",
        ]
    )()


def fuzz_text():
    return random.choice(
        [
            lambda: random_string(1, 40),
            lambda: " < ",
            lambda: "a<3",
            lambda: "&lt;b&gt;",
            lambda: random.choice(SPECIAL_CHARS),
            lambda: "\n" * random.randint(1, 4),
        ]
    )()


def fuzz_raw_text():
    tag = random.choice(RAW_TEXT_TAGS)
    body = random.choice(
        [
            lambda: f"<{fuzz_tag_name()}>",
            lambda: f"</{tag}x>",
            lambda: random_string(),
            lambda: f"'</{fuzz_tag_name()}>'",
        ]
    )()
    closing = random.choice([f"</{tag}>", f"</{tag.upper()} >", ""])
    return f"<{tag}>{body}{closing}"


def fuzz_nested_structure(depth=0, max_depth=6):
    if depth >= max_depth or random.random() < 0.3:
        return fuzz_text()
    tag = random.choice(KNOWN_TAGS + UNKNOWN_TAGS)
    children = "".join(fuzz_nested_structure(depth + 1, max_depth) for _ in range(random.randint(0, 3)))
    closing = random.choice([f"</{tag}>", f"</{tag}>", f"</{random.choice(KNOWN_TAGS)}>", ""])
    return f"<{tag}>{children}{closing}"


def fuzz_misnested():
    first, second = random.sample(KNOWN_TAGS, 2)
    return f"<{first}><{second}>{random_string(0, 5)}</{first}></{second}>"


def generate_fuzzed_html():
    """Generate a complete fuzzed fragment."""
    parts = []
    if random.random() < 0.1:
        parts.append("\ufeff")
    for _ in range(random.randint(1, 20)):
        element_type = random.choices(
            [fuzz_open_tag, fuzz_close_tag, fuzz_markup, fuzz_text, fuzz_raw_text, fuzz_nested_structure, fuzz_misnested],
            weights=[20, 12, 5, 15, 4, 8, 5],
        )[0]
        parts.append(element_type())
    return "".join(parts)


def check_invariants(html, validator, stop_first, first_unclosed):
    """Return a list of invariant failures for one input."""
    problems = []
    violations = validator.validate(html)
    translator = PositionTranslator(html)
    for violation in violations:
        if violation.start is None or not 0 <= violation.start <= len(html):
            problems.append(f"offset out of range: {violation!r} start={violation.start}")
            continue
        if (violation.line, violation.column) != translator.locate(violation.start):
            problems.append(f"line/column mismatch: {violation!r}")

    stopped = stop_first.validate(html)
    if len(stopped) > 1 or stopped != violations[:1]:
        problems.append(f"stop-after-first-error disagrees: {stopped!r} vs {violations[:1]!r}")

    if len(first_unclosed.validate(html)) > len(violations):
        problems.append("single-unclosed sweep reported more than the full sweep")
    return problems


def run_fuzzer(num_tests, seed=None, verbose=False, save_failures=False):
    """Run the fuzzer against the validator."""
    if seed is not None:
        random.seed(seed)

    rules = build_rules()
    validator = Validator(rules)
    stop_first = Validator(rules, stop_after_first_error=True)
    first_unclosed = Validator(rules, report_all_unclosed=False)

    crashes = []
    hangs = []
    failures = []
    successes = 0

    print(f"Fuzzing htmlcheck with {num_tests} test cases...")
    start_time = time.time()

    for i in range(num_tests):
        html = generate_fuzzed_html()

        if verbose and i % 100 == 0:
            print(f"  Test {i}/{num_tests}...")

        try:
            start = time.perf_counter()
            problems = check_invariants(html, validator, stop_first, first_unclosed)
            elapsed = time.perf_counter() - start
        except Exception as e:
            crashes.append(
                {
                    "test_num": i,
                    "html": html,
                    "error": str(e),
                    "traceback": traceback.format_exc(),
                }
            )
            if verbose:
                print(f"  CRASH: Test {i}: {e}")
            continue

        if elapsed > 5.0:
            hangs.append({"test_num": i, "html": html, "time": elapsed})
            if verbose:
                print(f"  HANG: Test {i} took {elapsed:.2f}s")
        if problems:
            failures.append({"test_num": i, "html": html, "problems": problems})
            if verbose:
                print(f"  INVARIANT: Test {i}: {problems[0]}")
        elif elapsed <= 5.0:
            successes += 1

    elapsed_total = time.time() - start_time

    print(f"\n{'=' * 60}")
    print("FUZZING RESULTS: htmlcheck")
    print(f"{'=' * 60}")
    print(f"Total tests:    {num_tests}")
    print(f"Successes:      {successes}")
    print(f"Crashes:        {len(crashes)}")
    print(f"Invariants:     {len(failures)}")
    print(f"Hangs (>5s):    {len(hangs)}")
    print(f"Total time:     {elapsed_total:.2f}s")
    if elapsed_total > 0:
        print(f"Tests/second:   {num_tests / elapsed_total:.1f}")

    for crash in crashes[:10]:
        print(f"\nCrash in test #{crash['test_num']}:")
        print(f"  HTML: {crash['html'][:200]!r}...")
        print(f"  Error: {crash['error']}")
    for failure in failures[:10]:
        print(f"\nInvariant failure in test #{failure['test_num']}:")
        print(f"  HTML: {failure['html'][:200]!r}...")
        for problem in failure["problems"]:
            print(f"  {problem}")
    for hang in hangs[:5]:
        print(f"\nHang in test #{hang['test_num']} ({hang['time']:.2f}s):")
        print(f"  HTML: {hang['html'][:200]!r}...")

    if save_failures and (crashes or failures or hangs):
        filename = f"fuzz_failures_htmlcheck_{int(time.time())}.txt"
        with open(filename, "w", encoding="utf-8") as f:
            f.write(f"Seed: {seed}\n\n")
            for crash in crashes:
                f.write(f"=== CRASH #{crash['test_num']} ===\n")
                f.write(f"HTML:\n{crash['html']}\n")
                f.write(f"Traceback:\n{crash['traceback']}\n\n")
            for failure in failures:
                f.write(f"=== INVARIANT #{failure['test_num']} ===\n")
                f.write(f"HTML:\n{failure['html']}\n")
                f.write("\n".join(failure["problems"]) + "\n\n")
            for hang in hangs:
                f.write(f"=== HANG #{hang['test_num']} ({hang['time']:.2f}s) ===\n")
                f.write(f"HTML:\n{hang['html']}\n\n")
        print(f"\nFailures saved to {filename}")

    return not (crashes or failures or hangs)


def main():
    parser = argparse.ArgumentParser(description="Fuzz the htmlcheck validator with malformed input")
    parser.add_argument(
        "--num-tests", "-n",
        type=int,
        default=1000,
        help="Number of test cases to generate (default: 1000)",
    )
    parser.add_argument(
        "--seed", "-s",
        type=int,
        default=None,
        help="Random seed for reproducibility",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output",
    )
    parser.add_argument(
        "--save-failures",
        action="store_true",
        help="Save failures to a file",
    )
    parser.add_argument(
        "--sample",
        type=int,
        metavar="N",
        help="Just print N sample fuzzed fragments (no validation)",
    )

    args = parser.parse_args()

    if args.sample:
        if args.seed is not None:
            random.seed(args.seed)
        for i in range(args.sample):
            print(f"=== Sample {i + 1} ===")
            print(generate_fuzzed_html())
            print()
        return

    success = run_fuzzer(
        args.num_tests,
        seed=args.seed,
        verbose=args.verbose,
        save_failures=args.save_failures,
    )
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
