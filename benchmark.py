#!/usr/bin/env python3
"""
Performance benchmark for the htmlcheck validator.
Validates a corpus of HTML files (or generated fragments) and compares the
time against parsing the same input with other HTML parsers.
"""

# ruff: noqa: PLC0415, BLE001
from __future__ import annotations

import argparse
import pathlib
import random
import sys
import time

from htmlcheck import TagRule, Validator

# A permissive whitelist so the benchmark measures scanning, not reporting
BENCHMARK_TAGS = [
    "html", "head", "body", "title", "meta", "link", "script", "style", "div", "span", "p", "a", "img",
    "ul", "ol", "li", "table", "thead", "tbody", "tr", "td", "th", "form", "input", "button", "label",
    "h1", "h2", "h3", "h4", "header", "footer", "nav", "section", "article", "main", "b", "i", "em",
    "strong", "br", "hr", "pre", "code", "svg", "path", "noscript", "iframe", "select", "option",
]
VOID_TAGS = {"meta", "link", "img", "input", "br", "hr"}


def build_rules() -> list[TagRule]:
    rules = [TagRule(name, self_closing=name in VOID_TAGS) for name in BENCHMARK_TAGS]
    rules.append(TagRule("", ["id", "class", "style", "title", "href", "src", "alt", "name", "type", "rel"], r"(data|aria)-[\w-]+"))
    return rules


def load_html_files(directory: pathlib.Path, limit: int | None = None) -> list:
    """Load ``*.html`` files below `directory` as (name, text) pairs."""
    html_files = []
    for path in sorted(directory.rglob("*.html")):
        html_files.append((str(path), path.read_text(encoding="utf-8", errors="replace")))
        if limit and len(html_files) >= limit:
            break
    return html_files


def generate_html_files(count: int, size: int, seed: int = 0) -> list:
    """Generate `count` nested fragments of roughly `size` characters."""
    rng = random.Random(seed)
    html_files = []
    for n in range(count):
        parts = []
        stack = []
        length = 0
        while length < size:
            roll = rng.random()
            if roll < 0.35 or not stack:
                tag = rng.choice(BENCHMARK_TAGS)
                attrs = f' class="c{rng.randint(0, 99)}" data-n="{n}"' if rng.random() < 0.5 else ""
                chunk = f"<{tag}{attrs}>"
                if tag not in VOID_TAGS:
                    stack.append(tag)
            elif roll < 0.7:
                chunk = f"</{stack.pop()}>"
            else:
                chunk = "text " * rng.randint(1, 20)
            parts.append(chunk)
            length += len(chunk)
        parts.extend(f"</{tag}>" for tag in reversed(stack))
        html_files.append((f"generated-{n}", "".join(parts)))
    return html_files


def _summarize(all_times: list, errors: int, error_files: list | None = None) -> dict:
    result = {
        "total_time": sum(all_times),
        "mean_time": sum(all_times) / len(all_times) if all_times else 0,
        "min_time": min(all_times) if all_times else 0,
        "max_time": max(all_times) if all_times else 0,
        "errors": errors,
        "success_count": len(all_times),
    }
    if error_files is not None:
        result["error_files"] = error_files
    return result


def _run(parse_fn, html_files: list, iterations: int, keep_errors: bool = False) -> dict:
    all_times = []
    errors = 0
    error_files = []
    if html_files:
        try:
            parse_fn(html_files[0][1])
        except Exception:
            pass
    for _ in range(iterations):
        for filename, html in html_files:
            try:
                start = time.perf_counter()
                parse_fn(html)
                all_times.append(time.perf_counter() - start)
            except Exception as e:
                errors += 1
                error_files.append((filename, str(e)))
    return _summarize(all_times, errors, error_files if keep_errors else None)


def benchmark_htmlcheck(html_files: list, iterations: int = 1) -> dict:
    """Benchmark the validator with the benchmark whitelist."""
    validator = Validator(build_rules())
    return _run(validator.validate, html_files, iterations, keep_errors=True)


def benchmark_htmlcheck_first_error(html_files: list, iterations: int = 1) -> dict:
    """Benchmark the validator stopping at the first violation."""
    validator = Validator(build_rules(), stop_after_first_error=True)
    return _run(validator.validate, html_files, iterations, keep_errors=True)


def benchmark_html5lib(html_files: list, iterations: int = 1) -> dict:
    """Benchmark html5lib parser."""
    try:
        import html5lib
    except ImportError:
        return {"error": "html5lib not installed (pip install html5lib)"}
    return _run(html5lib.parse, html_files, iterations)


def benchmark_lxml(html_files: list, iterations: int = 1) -> dict:
    """Benchmark lxml parser."""
    try:
        from lxml import html as lxml_html
    except ImportError:
        return {"error": "lxml not installed (pip install lxml)"}
    return _run(lambda html: lxml_html.fromstring(html) if html.strip() else None, html_files, iterations)


def benchmark_bs4(html_files: list, iterations: int = 1) -> dict:
    """Benchmark BeautifulSoup with the stdlib parser backend."""
    try:
        from bs4 import BeautifulSoup
    except ImportError:
        return {"error": "bs4 not installed (pip install beautifulsoup4)"}
    return _run(lambda html: BeautifulSoup(html, "html.parser"), html_files, iterations)


def benchmark_html_parser(html_files: list, iterations: int = 1) -> dict:
    """Benchmark the stdlib html.parser tokenizer."""
    from html.parser import HTMLParser

    def parse(html):
        parser = HTMLParser()
        parser.feed(html)
        parser.close()

    return _run(parse, html_files, iterations)


BENCHMARKS = {
    "htmlcheck": benchmark_htmlcheck,
    "htmlcheck_first": benchmark_htmlcheck_first_error,
    "html5lib": benchmark_html5lib,
    "lxml": benchmark_lxml,
    "bs4": benchmark_bs4,
    "html.parser": benchmark_html_parser,
}


def print_results(results: dict, file_count: int, total_bytes: int, iterations: int = 1):
    """Pretty print benchmark results."""
    print("\n" + "=" * 80)
    if iterations > 1:
        print(f"BENCHMARK RESULTS ({file_count} HTML files x {iterations} iterations)")
    else:
        print(f"BENCHMARK RESULTS ({file_count} HTML files)")
    print("=" * 80)

    print(f"\n{'Parser':<17} {'Total (s)':<10} {'Mean (ms)':<10} {'MB/s':<10} {'Errors':<8}")
    print("-" * 80)

    htmlcheck_time = results.get("htmlcheck", {}).get("total_time", 0)
    megabytes = total_bytes * iterations / 1024 / 1024

    for name in BENCHMARKS:
        if name not in results:
            continue
        result = results[name]
        if "error" in result:
            print(f"{name:<17} {result['error']}")
            continue

        total = result["total_time"]
        mean_ms = result["mean_time"] * 1000
        throughput = megabytes / total if total > 0 else 0

        speedup = ""
        if name != "htmlcheck" and htmlcheck_time > 0 and total > 0:
            speedup = f" ({total / htmlcheck_time:.2f}x)"

        print(f"{name:<17} {total:<10.3f} {mean_ms:<10.3f} {throughput:<10.2f} {result['errors']:<8}{speedup}")

    print("\n" + "=" * 80)

    for name in BENCHMARKS:
        error_files = results.get(name, {}).get("error_files", [])
        if error_files:
            print(f"\nErrors for {name}:")
            for filename, error_msg in error_files:
                print(f"  {filename}: {error_msg}")
            print()


def main():
    parser = argparse.ArgumentParser(
        description="Benchmark the htmlcheck validator against HTML parsers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--dir", type=pathlib.Path, help="Directory of .html files (default: generate fragments)")
    parser.add_argument(
        "--limit", type=int, default=100, help="Limit number of files to test (default: 100, use 0 for all)",
    )
    parser.add_argument(
        "--size", type=int, default=20000, help="Approximate size of generated fragments (default: 20000)",
    )
    parser.add_argument("--seed", type=int, default=0, help="Seed for generated fragments (default: 0)")
    parser.add_argument(
        "--iterations", type=int, default=5, help="Number of iterations to run for averaging (default: 5)",
    )
    parser.add_argument(
        "--parsers",
        nargs="+",
        choices=list(BENCHMARKS),
        default=list(BENCHMARKS),
        help="Parsers to benchmark (default: all)",
    )

    args = parser.parse_args()

    limit = args.limit if args.limit > 0 else None
    if args.dir:
        print(f"Loading HTML files from {args.dir}...")
        html_files = load_html_files(args.dir, limit)
    else:
        print(f"Generating {args.limit or 100} fragments of ~{args.size} characters...")
        html_files = generate_html_files(args.limit or 100, args.size, args.seed)
    if not html_files:
        print("ERROR: No HTML files loaded")
        sys.exit(1)
    print(f"Loaded {len(html_files)} HTML files")

    total_bytes = sum(len(html) for _, html in html_files)
    print(f"Total HTML size: {total_bytes / 1024 / 1024:.2f} MB")

    results = {}
    for name in args.parsers:
        print(f"\nBenchmarking {name}...", end="", flush=True)
        res = BENCHMARKS[name](html_files, args.iterations)
        results[name] = res
        if "error" in res:
            print(f" SKIPPED ({res['error']})")
        else:
            print(f" DONE ({res['total_time']:.3f}s)")

    print_results(results, len(html_files), total_bytes, args.iterations)


if __name__ == "__main__":
    main()
