#!/usr/bin/env python3
"""
Benchmark comparison between pure Python and mypyc-compiled htmlcheck.

Measures:
- Tokenizing alone (tokenizer.py is compiled in the mypyc build)
- Full validation of clean markup
- Full validation of markup that produces many violations
"""

import argparse
import importlib
import sys
import time
from pathlib import Path

from htmlcheck import TagRule, Tokenizer, Validator

RULES = [
    TagRule("div", ["class"]),
    TagRule("p"),
    TagRule("ul"),
    TagRule("li"),
    TagRule("strong"),
    TagRule("em"),
    TagRule("br", self_closing=True),
]

CLEAN_HTML = """
<div class="container">
    <p>This is a test paragraph with <strong>bold</strong> and <em>italic</em> text.<br></p>
    <ul>
        <li>Item 1</li>
        <li>Item 2</li>
        <li>Item 3</li>
    </ul>
</div>
""" * 10

BROKEN_HTML = """
<div class="container" style="x">
    <p><strong>bold</p></strong>
    <ul><li>Item 1<li>Item 2</ul>
    <table><tr><td>Cell</td></tr></table>
""" * 10

COMPILED_MODULES = ["htmlcheck.tokenizer", "htmlcheck.nesting"]


def check_compiled_modules():
    """Names of the modules loaded from extension files."""
    compiled = []
    for name in COMPILED_MODULES:
        module = importlib.import_module(name)
        if getattr(module, "__file__", "").endswith((".so", ".pyd")):
            compiled.append(name)
    return compiled


def benchmark_tokenizing(html, iterations=1000):
    start = time.perf_counter()
    for _ in range(iterations):
        for _token in Tokenizer(html):
            pass
    return time.perf_counter() - start


def benchmark_validation(html, iterations=1000):
    validator = Validator(RULES)
    start = time.perf_counter()
    for _ in range(iterations):
        validator.validate(html)
    return time.perf_counter() - start


def run_benchmarks():
    print("=" * 70)
    print("htmlcheck mypyc Benchmark Comparison")
    print("=" * 70)

    compiled_modules = check_compiled_modules()
    if compiled_modules:
        print(f"\nCompiled modules detected: {', '.join(compiled_modules)}")
    else:
        print("\nNo compiled modules detected (running pure Python)")
    print("\nModule locations:")
    for name in COMPILED_MODULES:
        print(f"  {name}: {getattr(importlib.import_module(name), '__file__', '<?>')}")

    results = {}
    cases = [
        ("tokenize", "Tokenizing", benchmark_tokenizing, CLEAN_HTML),
        ("validate_clean", "Validating clean markup", benchmark_validation, CLEAN_HTML),
        ("validate_broken", "Validating broken markup", benchmark_validation, BROKEN_HTML),
    ]
    for number, (key, title, bench_fn, html) in enumerate(cases, start=1):
        print("\n" + "-" * 70)
        print(f"Benchmark {number}: {title}")
        print("-" * 70)
        elapsed = bench_fn(html, iterations=1000)
        print(f"Time: {elapsed:.4f}s for 1,000 iterations")
        print(f"Rate: {1000 / elapsed:.2f} runs/second")
        results[key] = elapsed

    print("\n" + "=" * 70)
    return results


def main():
    parser = argparse.ArgumentParser(description="Compare performance of pure Python vs mypyc-compiled htmlcheck")
    parser.add_argument(
        "--mode",
        choices=["pure", "compiled"],
        default="compiled",
        help="Which version to benchmark (default: compiled)",
    )
    args = parser.parse_args()

    if args.mode == "pure":
        import htmlcheck

        so_files = list(Path(htmlcheck.__file__).parent.glob("*.so"))
        if so_files:
            print(f"\nWarning: Found {len(so_files)} compiled modules.")
            print("To run pure Python benchmarks, first build without mypyc:")
            print("  1. Remove .so files: find src -name '*.so' -delete")
            print("  2. Reinstall: pip install -e .")
            sys.exit(1)
    else:
        print("\nTo build with mypyc:")
        print("  HTMLCHECK_USE_MYPYC=1 pip install -e .[mypyc] --no-build-isolation")
        print()

    run_benchmarks()


if __name__ == "__main__":
    main()
