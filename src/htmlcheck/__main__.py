"""Command line entry point: ``python -m htmlcheck --rules rules.json page.html``."""

import argparse
import json
import sys

from .errors import StreamError
from .rules import load_rules
from .validator import Validator, ValidatorOpts


def build_arg_parser():
    parser = argparse.ArgumentParser(
        prog="htmlcheck",
        description="Check HTML fragments against a whitelist of tags and attributes",
    )
    parser.add_argument("files", nargs="*", help="Files to check (default: read stdin)")
    parser.add_argument("--rules", "-r", required=True, help="JSON file with the tag rules")
    parser.add_argument(
        "--stop-after-first-error",
        action="store_true",
        help="Stop each file at its first violation",
    )
    parser.add_argument(
        "--first-unclosed-only",
        action="store_true",
        help="Report only the first tag left open at end of input",
    )
    parser.add_argument(
        "--report-skipped",
        action="store_true",
        help="On a mismatched end tag, report every skipped open tag, not just the innermost",
    )
    parser.add_argument("--encoding", default="utf-8", help="Input encoding (default: utf-8)")
    parser.add_argument("--json", action="store_true", help="Print violations as JSON")
    parser.add_argument("--debug", action="store_true", help="Trace tokens and violations")
    return parser


def _print_violations(label, violations, as_json):
    if as_json:
        print(json.dumps({"file": label, "violations": [v.as_dict() for v in violations]}))
        return
    for violation in violations:
        print(f"{label}:{violation.line}:{violation.column}: {violation.message}")


def main(argv=None):
    args = build_arg_parser().parse_args(argv)
    try:
        registry = load_rules(args.rules)
    except (OSError, ValueError) as exc:
        print(f"htmlcheck: cannot load rules from {args.rules}: {exc}", file=sys.stderr)
        return 2

    opts = ValidatorOpts(
        stop_after_first_error=args.stop_after_first_error,
        report_all_unclosed=not args.first_unclosed_only,
        report_skipped_ancestors=args.report_skipped,
        encoding=args.encoding,
    )
    validator = Validator(registry, opts=opts, debug=args.debug)

    status = 0
    for path in args.files or ["-"]:
        label = "<stdin>" if path == "-" else path
        try:
            if path == "-":
                violations = validator.validate_stream(sys.stdin.buffer)
            else:
                with open(path, "rb") as fp:
                    violations = validator.validate_stream(fp)
        except StreamError as exc:
            _print_violations(label, exc.violations, args.json)
            print(f"{label}: read error at offset {exc.offset}: {exc.message}", file=sys.stderr)
            status = 2
            continue
        except OSError as exc:
            print(f"{label}: {exc}", file=sys.stderr)
            status = 2
            continue
        _print_violations(label, violations, args.json)
        if violations and status == 0:
            status = 1
    return status


if __name__ == "__main__":
    sys.exit(main())
