class Tag:
    __slots__ = ("attrs", "end", "kind", "name", "name_start", "self_closing", "start")

    START = 0
    END = 1

    def __init__(self, kind, name, attrs, self_closing=False, start=0, end=0, name_start=None):
        self.kind = kind
        self.name = name
        # Ordered (name, value) pairs; duplicates are kept in source order.
        self.attrs = attrs if attrs is not None else []
        self.self_closing = bool(self_closing)
        self.start = start
        self.end = end
        self.name_start = name_start if name_start is not None else start

    @property
    def span(self):
        return (self.start, self.end)

    def __repr__(self):
        attrs = " ".join(f"{name}={value!r}" for name, value in self.attrs)
        closing = " /" if self.self_closing else ""
        kind_str = "start" if self.kind == self.START else "end"
        return f"<{kind_str}:{self.name}{closing} {attrs}>"


class CharacterTokens:
    __slots__ = ("data", "end", "start")

    def __init__(self, data, start=0, end=0):
        self.data = data
        self.start = start
        self.end = end


class CommentToken:
    __slots__ = ("data", "end", "start")

    def __init__(self, data, start=0, end=0):
        self.data = data
        self.start = start
        self.end = end


class DoctypeToken:
    __slots__ = ("data", "end", "start")

    def __init__(self, data, start=0, end=0):
        self.data = data
        self.start = start
        self.end = end


class EOFToken:
    __slots__ = ("end", "start")

    def __init__(self, start=0):
        self.start = start
        self.end = start
