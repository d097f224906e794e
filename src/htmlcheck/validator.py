"""Streaming whitelist validation of HTML fragments."""

from .callback import as_callback
from .errors import ErrorReason, StopValidation, StreamError
from .nesting import OpenTag, close_all_skipped, close_innermost, find_open, unclosed_entries
from .positions import translate_positions
from .rules import TagRegistry, TagRule
from .tokenizer import Tokenizer, TokenizerOpts
from .tokens import EOFToken, Tag

_READ_CHUNK_SIZE = 64 * 1024


class ValidatorOpts:
    __slots__ = ("encoding", "report_all_unclosed", "report_skipped_ancestors", "stop_after_first_error")

    def __init__(
        self,
        stop_after_first_error=False,
        report_all_unclosed=True,
        report_skipped_ancestors=False,
        encoding="utf-8",
    ):
        self.stop_after_first_error = bool(stop_after_first_error)
        # False reproduces the historical sweep that stops after the first
        # unclosed tag it reports.
        self.report_all_unclosed = bool(report_all_unclosed)
        self.report_skipped_ancestors = bool(report_skipped_ancestors)
        self.encoding = encoding

    def __repr__(self):
        fields = ", ".join(f"{name}={getattr(self, name)!r}" for name in self.__slots__)
        return f"ValidatorOpts({fields})"


class ValidationEngine:
    """The nesting automaton for a single scan.

    ``feed()`` and ``finish()`` are generators of findings, each a tuple
    ``(reason, tag_name, attribute_name, attribute_value, span, open_span)``.
    `span` is that of the token being processed, or the end of input during
    the sweep. `open_span` is the span of the tag left open for
    ``NOT_PROPERLY_CLOSED`` findings and ``None`` otherwise. The caller
    decides what to do with them (callback, stop-after-first-error).
    """

    __slots__ = ("recover", "registry", "stack")

    def __init__(self, registry, recover=close_innermost):
        self.registry = registry
        self.recover = recover
        self.stack = []

    def feed(self, token):
        if not isinstance(token, Tag):
            return
        registry = self.registry
        name = token.name
        span = (token.name_start, token.end)

        if not registry.is_known_tag(name):
            yield (ErrorReason.UNKNOWN_TAG, name, "", "", span, None)

        seen = set()
        for attr_name, attr_value in token.attrs:
            if not registry.is_valid_attribute(name, attr_name):
                yield (ErrorReason.UNKNOWN_ATTRIBUTE, name, attr_name, attr_value, span, None)
            if attr_name in seen:
                yield (ErrorReason.DUPLICATED_ATTRIBUTE, name, attr_name, attr_value, span, None)
            else:
                seen.add(attr_name)

        if token.kind == Tag.START:
            # Self-closing tags are pushed too; only the end-of-input sweep
            # treats them differently.
            self.stack.append(OpenTag.from_token(token))
            return

        index = find_open(self.stack, name)
        if index == -1:
            yield (ErrorReason.CLOSED_BEFORE_OPENED, name, "", "", span, None)
            return
        self.stack, unclosed = self.recover(self.stack, index, registry.is_self_closing)
        for entry in unclosed:
            yield (ErrorReason.NOT_PROPERLY_CLOSED, entry.name, "", "", span, (entry.name_start, entry.end))

    def finish(self, end):
        """Sweep the entries still open once input ends at offset `end`."""
        stack, self.stack = self.stack, []
        span = (end, end)
        for entry in unclosed_entries(stack, self.registry.is_self_closing):
            yield (ErrorReason.NOT_PROPERLY_CLOSED, entry.name, "", "", span, (entry.name_start, entry.end))


class Validator:
    """Validates markup against a whitelist of tags and attributes.

    >>> v = Validator([TagRule("a", ["href"], self_closing=True)])
    >>> v.validate("<a hrefff='x'>")
    [Violation('unknown-attribute', tag='a', attribute='hrefff', line=1, column=2)]

    The registry and options belong to the instance and are only read while
    validating, so one validator can serve many scans.
    """

    __slots__ = ("callback", "env_debug", "opts", "registry", "tokenizer_opts")

    def __init__(
        self,
        tag_rules=None,
        *,
        opts=None,
        callback=None,
        tokenizer_opts=None,
        debug=False,
        **kwargs,
    ):
        if opts is not None and kwargs:
            raise TypeError("pass either opts or individual option keywords, not both")
        self.opts = opts or ValidatorOpts(**kwargs)
        if isinstance(tag_rules, TagRegistry):
            self.registry = tag_rules
        else:
            self.registry = TagRegistry(tag_rules or ())
        self.callback = as_callback(callback)
        self.tokenizer_opts = tokenizer_opts or TokenizerOpts()
        self.env_debug = bool(debug)

    def debug(self, message, indent=0):
        if self.env_debug:
            print(f"{' ' * indent}{message}")

    # ---------------------
    # Registry
    # ---------------------

    def add_valid_tags(self, tag_rules):
        self.registry.register_all(tag_rules)

    def add_valid_tag(self, tag_rule):
        self.registry.register(tag_rule)

    def register_callback(self, callback):
        """Install an error callback; ``None`` restores the default one."""
        self.callback = as_callback(callback)

    def is_valid_tag(self, tag_name):
        return self.registry.is_known_tag(tag_name)

    def is_valid_self_closing_tag(self, tag_name):
        return self.registry.is_self_closing(tag_name)

    def is_valid_attribute(self, tag_name, attr_name):
        return self.registry.is_valid_attribute(tag_name, attr_name)

    # ---------------------
    # Validation
    # ---------------------

    def validate(self, html):
        """Validate a string and return the list of violations, in source order."""
        if isinstance(html, (bytes, bytearray)):
            return self.validate_bytes(html)
        violations = self._scan(html or "", sweep=True)
        return translate_positions(html or "", violations)

    validate_string = validate

    def validate_bytes(self, data):
        """Decode `data` with ``opts.encoding`` and validate it.

        Raises `StreamError` if decoding fails; the error carries the
        violations found in the part that did decode.
        """
        encoding = self.opts.encoding
        try:
            text = bytes(data).decode(encoding)
        except UnicodeDecodeError as exc:
            prefix = bytes(data[: exc.start]).decode(encoding, errors="replace")
            self._abort(prefix, exc)
        return self.validate(text)

    def validate_stream(self, stream):
        """Read `stream` (binary or text) to the end and validate it.

        Read failures (``OSError``, or a text stream failing to decode) and
        decoding failures raise `StreamError` with the violations found in
        whatever was read before the failure.
        """
        chunks = []
        try:
            while True:
                chunk = stream.read(_READ_CHUNK_SIZE)
                if not chunk:
                    break
                chunks.append(chunk)
        except (OSError, UnicodeDecodeError) as exc:
            self._abort(self._decode_partial(chunks), exc)
        if chunks and isinstance(chunks[0], str):
            return self.validate("".join(chunks))
        return self.validate_bytes(b"".join(chunks))

    def _decode_partial(self, chunks):
        if chunks and isinstance(chunks[0], str):
            return "".join(chunks)
        # A read can stop in the middle of a multi-byte sequence.
        return b"".join(chunks).decode(self.opts.encoding, errors="ignore")

    def _abort(self, text, exc):
        violations = translate_positions(text, self._scan(text, sweep=False))
        self.debug(f"[abort] {exc} after {len(text)} characters, {len(violations)} violation(s)")
        raise StreamError(str(exc), violations=violations, offset=len(text)) from exc

    def _scan(self, html, sweep):
        opts = self.opts
        recover = close_all_skipped if opts.report_skipped_ancestors else close_innermost
        engine = ValidationEngine(self.registry, recover)
        tokenizer = Tokenizer(html, self.tokenizer_opts)
        violations = []
        try:
            while True:
                token = tokenizer.next_token()
                if isinstance(token, EOFToken):
                    end = token.start
                    break
                if self.env_debug:
                    self.debug(f"[token] {token!r} stack={[entry.name for entry in engine.stack]}")
                for finding in engine.feed(token):
                    if self._report(finding, violations) and opts.stop_after_first_error:
                        return violations
            if not sweep:
                return violations
            for finding in engine.finish(end):
                if self._report(finding, violations):
                    if opts.stop_after_first_error or not opts.report_all_unclosed:
                        break
        except StopValidation:
            self.debug(f"[stop] callback abandoned the scan with {len(violations)} violation(s)")
        return violations

    def _report(self, finding, violations):
        """Route a finding through the callback; True if it was recorded."""
        reason, tag_name, attr_name, attr_value, span, open_span = finding
        violation = self.callback(tag_name, attr_name, attr_value, reason, span)
        if violation is None:
            if self.env_debug:
                self.debug(f"[suppressed] {reason} <{tag_name}> {attr_name}", indent=4)
            return False
        if open_span is not None and violation.open_start is None:
            violation.open_start, violation.open_end = open_span
        if self.env_debug:
            self.debug(f"[violation] {violation.message}", indent=4)
        violations.append(violation)
        return True
