import re
import sys
from collections import deque

from .tokens import CharacterTokens, CommentToken, DoctypeToken, EOFToken, Tag

_WHITESPACE = "\t\n\f\r "
_ASCII_LETTERS = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
_TAG_NAME_TERMINATORS = "\t\n\f\r />"
_ATTR_NAME_TERMINATORS = "\t\n\f\r />="
_ATTR_VALUE_UNQUOTED_TERMINATORS = "\t\n\f\r >"
_ASCII_LOWER_TABLE = str.maketrans({chr(code): chr(code + 32) for code in range(65, 91)})

_TAG_NAME_TERMINATOR_PATTERN = re.compile(f"[{re.escape(_TAG_NAME_TERMINATORS)}]")
_ATTR_NAME_TERMINATOR_PATTERN = re.compile(f"[{re.escape(_ATTR_NAME_TERMINATORS)}]")
_ATTR_VALUE_UNQUOTED_PATTERN = re.compile(f"[{re.escape(_ATTR_VALUE_UNQUOTED_TERMINATORS)}]")
_COMMENT_END_PATTERN = re.compile(r"--!?>")

RAWTEXT_ELEMENTS = frozenset(
    {
        "iframe",
        "noembed",
        "noframes",
        "noscript",
        "script",
        "style",
        "textarea",
        "title",
        "xmp",
    }
)

_rawtext_end_patterns = {}


def _rawtext_end_pattern(name):
    pattern = _rawtext_end_patterns.get(name)
    if pattern is None:
        pattern = re.compile(f"</{re.escape(name)}[{re.escape(_TAG_NAME_TERMINATORS)}]", re.IGNORECASE)
        _rawtext_end_patterns[name] = pattern
    return pattern


class TokenizerOpts:
    __slots__ = ("discard_bom", "rawtext_elements")

    def __init__(self, discard_bom=True, rawtext_elements=None):
        self.discard_bom = bool(discard_bom)
        self.rawtext_elements = RAWTEXT_ELEMENTS if rawtext_elements is None else frozenset(rawtext_elements)


class Tokenizer:
    """Pull-based tokenizer producing one token per ``next_token()`` call.

    Offsets on every token index into the original string, so a leading BOM
    is skipped rather than sliced off. Nothing is normalized: no newline
    folding and no character reference decoding, since the validator only
    looks at tag structure.
    """

    DATA = 0
    TAG_OPEN = 1
    END_TAG_OPEN = 2
    TAG_NAME = 3
    BEFORE_ATTRIBUTE_NAME = 4
    ATTRIBUTE_NAME = 5
    AFTER_ATTRIBUTE_NAME = 6
    BEFORE_ATTRIBUTE_VALUE = 7
    ATTRIBUTE_VALUE_DOUBLE = 8
    ATTRIBUTE_VALUE_SINGLE = 9
    ATTRIBUTE_VALUE_UNQUOTED = 10
    AFTER_ATTRIBUTE_VALUE_QUOTED = 11
    SELF_CLOSING_START_TAG = 12
    MARKUP_DECLARATION_OPEN = 13
    BOGUS_COMMENT = 14
    RAWTEXT = 15
    PLAINTEXT = 16
    DONE = 17

    __slots__ = (
        "buffer",
        "comment_start",
        "current_attr_name",
        "current_attr_value",
        "current_tag_attrs",
        "current_tag_kind",
        "current_tag_name",
        "current_tag_name_start",
        "current_tag_self_closing",
        "length",
        "opts",
        "pending",
        "pos",
        "rawtext_tag_name",
        "state",
        "text_start",
        "token_start",
    )

    def __init__(self, html, opts=None):
        self.opts = opts or TokenizerOpts()
        self.buffer = html or ""
        self.length = len(self.buffer)
        self.pos = 0
        if self.opts.discard_bom and self.buffer.startswith("\ufeff"):
            self.pos = 1
        self.state = self.DATA
        self.pending = deque()
        self.text_start = self.pos
        self.token_start = self.pos
        self.comment_start = self.pos
        self.current_tag_kind = Tag.START
        self.current_tag_name = []
        self.current_tag_name_start = 0
        self.current_tag_attrs = []
        self.current_attr_name = []
        self.current_attr_value = []
        self.current_tag_self_closing = False
        self.rawtext_tag_name = None

    def __iter__(self):
        while True:
            token = self.next_token()
            if isinstance(token, EOFToken):
                return
            yield token

    def next_token(self):
        """Return the next token, or an ``EOFToken`` once input is exhausted."""
        pending = self.pending
        while not pending:
            if self.state == self.DONE:
                return EOFToken(self.length)
            self.step()
        return pending.popleft()

    def step(self):
        """Run one step of the state machine. Returns True once EOF is reached."""
        return self._STATE_HANDLERS[self.state](self)

    # ---------------------
    # State handlers
    # ---------------------

    def _state_data(self):
        lt_index = self.buffer.find("<", self.pos)
        if lt_index == -1:
            self.pos = self.length
            self._flush_text(self.length)
            return self._emit_eof()
        self.token_start = lt_index
        self.pos = lt_index + 1
        self.state = self.TAG_OPEN
        return False

    def _state_tag_open(self):
        c = self._get_char()
        if c is None:
            self._flush_text(self.length)
            return self._emit_eof()
        if c == "!":
            self.state = self.MARKUP_DECLARATION_OPEN
            return False
        if c == "/":
            self.state = self.END_TAG_OPEN
            return False
        if c == "?":
            self.comment_start = self.pos - 1
            self.state = self.BOGUS_COMMENT
            return False
        if c in _ASCII_LETTERS:
            self._reconsume_current()
            self._start_tag(Tag.START)
            self.state = self.TAG_NAME
            return False
        # A lone "<" is plain text; leave it inside the pending text run.
        self._reconsume_current()
        self.state = self.DATA
        return False

    def _state_end_tag_open(self):
        c = self._get_char()
        if c is None:
            self._flush_text(self.length)
            return self._emit_eof()
        if c in _ASCII_LETTERS:
            self._reconsume_current()
            self._start_tag(Tag.END)
            self.state = self.TAG_NAME
            return False
        if c == ">":
            # "</>" is dropped entirely.
            self._flush_text(self.token_start)
            self.text_start = self.pos
            self.state = self.DATA
            return False
        self.comment_start = self.pos - 1
        self.state = self.BOGUS_COMMENT
        return False

    def _state_tag_name(self):
        self._consume_run(_TAG_NAME_TERMINATOR_PATTERN, self.current_tag_name, lower=True)
        c = self._get_char()
        if c is None:
            return self._discard_tag()
        if c == "/":
            self.state = self.SELF_CLOSING_START_TAG
            return False
        if c == ">":
            self._emit_current_tag()
            return False
        self.state = self.BEFORE_ATTRIBUTE_NAME
        return False

    def _state_before_attribute_name(self):
        c = self._skip_whitespace()
        if c is None:
            return self._discard_tag()
        if c == "/":
            self.state = self.SELF_CLOSING_START_TAG
            return False
        if c == ">":
            self._emit_current_tag()
            return False
        self._start_attribute()
        if c == "=":
            self.current_attr_name.append(c)
        else:
            self._reconsume_current()
        self.state = self.ATTRIBUTE_NAME
        return False

    def _state_attribute_name(self):
        self._consume_run(_ATTR_NAME_TERMINATOR_PATTERN, self.current_attr_name, lower=True)
        c = self._get_char()
        if c is None:
            return self._discard_tag()
        if c == "=":
            self.state = self.BEFORE_ATTRIBUTE_VALUE
            return False
        if c == "/":
            self._finish_attribute()
            self.state = self.SELF_CLOSING_START_TAG
            return False
        if c == ">":
            self._emit_current_tag()
            return False
        self.state = self.AFTER_ATTRIBUTE_NAME
        return False

    def _state_after_attribute_name(self):
        c = self._skip_whitespace()
        if c is None:
            return self._discard_tag()
        if c == "=":
            self.state = self.BEFORE_ATTRIBUTE_VALUE
            return False
        if c == "/":
            self._finish_attribute()
            self.state = self.SELF_CLOSING_START_TAG
            return False
        if c == ">":
            self._emit_current_tag()
            return False
        self._finish_attribute()
        self._start_attribute()
        self._reconsume_current()
        self.state = self.ATTRIBUTE_NAME
        return False

    def _state_before_attribute_value(self):
        c = self._skip_whitespace()
        if c is None:
            return self._discard_tag()
        if c == '"':
            self.state = self.ATTRIBUTE_VALUE_DOUBLE
            return False
        if c == "'":
            self.state = self.ATTRIBUTE_VALUE_SINGLE
            return False
        if c == ">":
            self._emit_current_tag()
            return False
        self._reconsume_current()
        self.state = self.ATTRIBUTE_VALUE_UNQUOTED
        return False

    def _state_attribute_value_double(self):
        return self._consume_quoted_value('"')

    def _state_attribute_value_single(self):
        return self._consume_quoted_value("'")

    def _state_attribute_value_unquoted(self):
        self._consume_run(_ATTR_VALUE_UNQUOTED_PATTERN, self.current_attr_value)
        c = self._get_char()
        if c is None:
            return self._discard_tag()
        self._finish_attribute()
        if c == ">":
            self._emit_current_tag()
            return False
        self.state = self.BEFORE_ATTRIBUTE_NAME
        return False

    def _state_after_attribute_value_quoted(self):
        c = self._get_char()
        if c is None:
            return self._discard_tag()
        if c in _WHITESPACE:
            self.state = self.BEFORE_ATTRIBUTE_NAME
            return False
        if c == "/":
            self.state = self.SELF_CLOSING_START_TAG
            return False
        if c == ">":
            self._emit_current_tag()
            return False
        # Missing whitespace between attributes.
        self._reconsume_current()
        self.state = self.BEFORE_ATTRIBUTE_NAME
        return False

    def _state_self_closing_start_tag(self):
        c = self._get_char()
        if c is None:
            return self._discard_tag()
        if c == ">":
            self.current_tag_self_closing = True
            self._emit_current_tag()
            return False
        self._reconsume_current()
        self.state = self.BEFORE_ATTRIBUTE_NAME
        return False

    def _state_markup_declaration_open(self):
        buffer = self.buffer
        pos = self.pos
        if buffer.startswith("--", pos):
            data_start = pos + 2
            # "<!-->" and "<!--->" are complete (empty) comments.
            if buffer.startswith(">", data_start):
                return self._emit_comment(data_start, data_start, data_start + 1)
            if buffer.startswith("->", data_start):
                return self._emit_comment(data_start, data_start, data_start + 2)
            match = _COMMENT_END_PATTERN.search(buffer, data_start)
            if match is None:
                self._emit_comment(data_start, self.length, self.length)
                return self._emit_eof()
            return self._emit_comment(data_start, match.start(), match.end())
        if buffer[pos : pos + 7].lower() == "doctype":
            gt_index = buffer.find(">", pos + 7)
            if gt_index == -1:
                self._emit_markup(DoctypeToken(buffer[pos + 7 :].strip(), self.token_start, self.length))
                return self._emit_eof()
            self._emit_markup(DoctypeToken(buffer[pos + 7 : gt_index].strip(), self.token_start, gt_index + 1))
            self.pos = gt_index + 1
            self.state = self.DATA
            return False
        self.comment_start = pos
        self.state = self.BOGUS_COMMENT
        return False

    def _state_bogus_comment(self):
        gt_index = self.buffer.find(">", self.comment_start)
        if gt_index == -1:
            self._emit_comment(self.comment_start, self.length, self.length)
            return self._emit_eof()
        return self._emit_comment(self.comment_start, gt_index, gt_index + 1)

    def _state_rawtext(self):
        name = self.rawtext_tag_name
        match = _rawtext_end_pattern(name).search(self.buffer, self.pos)
        if match is None:
            self.pos = self.length
            self._flush_text(self.length)
            return self._emit_eof()
        self.token_start = match.start()
        self.pos = match.start() + 2
        self._start_tag(Tag.END)
        self.current_tag_name.append(name)
        self.pos += len(name)
        self.rawtext_tag_name = None
        self.state = self.TAG_NAME
        return False

    def _state_plaintext(self):
        self.pos = self.length
        self._flush_text(self.length)
        return self._emit_eof()

    def _state_done(self):
        return True

    # ---------------------
    # Low-level helpers
    # ---------------------

    def _get_char(self):
        if self.pos >= self.length:
            return None
        c = self.buffer[self.pos]
        self.pos += 1
        return c

    def _reconsume_current(self):
        self.pos -= 1

    def _skip_whitespace(self):
        while True:
            c = self._get_char()
            if c is None or c not in _WHITESPACE:
                return c

    def _consume_run(self, stop_pattern, target, lower=False):
        pos = self.pos
        if pos >= self.length:
            return
        match = stop_pattern.search(self.buffer, pos)
        end = match.start() if match else self.length
        if end == pos:
            return
        chunk = self.buffer[pos:end]
        target.append(chunk.translate(_ASCII_LOWER_TABLE) if lower else chunk)
        self.pos = end

    def _consume_quoted_value(self, quote):
        end = self.buffer.find(quote, self.pos)
        if end == -1:
            self.pos = self.length
            return self._discard_tag()
        self.current_attr_value.append(self.buffer[self.pos : end])
        self.pos = end + 1
        self._finish_attribute()
        self.state = self.AFTER_ATTRIBUTE_VALUE_QUOTED
        return False

    def _start_tag(self, kind):
        self.current_tag_kind = kind
        self.current_tag_name.clear()
        self.current_tag_name_start = self.pos
        self.current_tag_attrs = []
        self.current_attr_name.clear()
        self.current_attr_value.clear()
        self.current_tag_self_closing = False

    def _start_attribute(self):
        self.current_attr_name.clear()
        self.current_attr_value.clear()

    def _finish_attribute(self):
        if not self.current_attr_name:
            self.current_attr_value.clear()
            return
        name = "".join(self.current_attr_name)
        value = "".join(self.current_attr_value)
        self.current_tag_attrs.append((name, value))
        self.current_attr_name.clear()
        self.current_attr_value.clear()

    def _flush_text(self, end):
        if end > self.text_start:
            start = self.text_start
            self.pending.append(CharacterTokens(self.buffer[start:end], start, end))
        self.text_start = end

    def _emit_markup(self, token):
        self._flush_text(self.token_start)
        self.pending.append(token)
        self.text_start = token.end

    def _emit_current_tag(self):
        self._finish_attribute()
        kind = self.current_tag_kind
        name = sys.intern("".join(self.current_tag_name))
        # A trailing "/" on an end tag carries no meaning.
        self_closing = self.current_tag_self_closing and kind == Tag.START
        tag = Tag(
            kind,
            name,
            self.current_tag_attrs,
            self_closing,
            start=self.token_start,
            end=self.pos,
            name_start=self.current_tag_name_start,
        )
        self.current_tag_attrs = []
        self.current_tag_name.clear()
        self._emit_markup(tag)
        self.state = self.DATA
        if kind == Tag.START and not self_closing:
            if name in self.opts.rawtext_elements:
                self.rawtext_tag_name = name
                self.state = self.RAWTEXT
            elif name == "plaintext":
                self.state = self.PLAINTEXT

    def _emit_comment(self, data_start, data_end, end):
        self._emit_markup(CommentToken(self.buffer[data_start:data_end], self.token_start, end))
        self.pos = end
        self.state = self.DATA
        return False

    def _discard_tag(self):
        # EOF inside a tag: the partial tag is dropped, text before it survives.
        self.current_tag_attrs = []
        self.current_tag_name.clear()
        self._flush_text(self.token_start)
        self.text_start = self.length
        return self._emit_eof()

    def _emit_eof(self):
        self.state = self.DONE
        self.pending.append(EOFToken(self.length))
        return True

    _STATE_HANDLERS = ()


Tokenizer._STATE_HANDLERS = (
    Tokenizer._state_data,
    Tokenizer._state_tag_open,
    Tokenizer._state_end_tag_open,
    Tokenizer._state_tag_name,
    Tokenizer._state_before_attribute_name,
    Tokenizer._state_attribute_name,
    Tokenizer._state_after_attribute_name,
    Tokenizer._state_before_attribute_value,
    Tokenizer._state_attribute_value_double,
    Tokenizer._state_attribute_value_single,
    Tokenizer._state_attribute_value_unquoted,
    Tokenizer._state_after_attribute_value_quoted,
    Tokenizer._state_self_closing_start_tag,
    Tokenizer._state_markup_declaration_open,
    Tokenizer._state_bogus_comment,
    Tokenizer._state_rawtext,
    Tokenizer._state_plaintext,
    Tokenizer._state_done,
)
