"""Tag whitelist: which tags may appear and which attributes they accept.

A rule registered under the empty name is the *global* rule. Its attribute
allowances apply to every tag, known or not.
"""

from __future__ import annotations

import json
import re
import warnings
from collections.abc import Collection, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

GLOBAL_RULE_NAME = ""


@dataclass(frozen=True, slots=True)
class TagRule:
    """Whitelist entry for a single tag.

    - `allowed_attributes` are matched exactly.
    - `attribute_pattern`, when set, must match the *whole* attribute name
      for attributes not listed in `allowed_attributes`.
    - `self_closing` tags never need an end tag.
    """

    name: str
    allowed_attributes: Collection[str] = field(default_factory=frozenset)
    attribute_pattern: re.Pattern[str] | str | None = None
    self_closing: bool = False

    def __post_init__(self) -> None:
        # Accept lists/tuples and pattern strings from user code.
        if isinstance(self.allowed_attributes, str):
            raise TypeError(f"allowed_attributes of tag rule {self.name!r} must be a collection of names, not a string")
        if not isinstance(self.allowed_attributes, frozenset):
            object.__setattr__(self, "allowed_attributes", frozenset(self.allowed_attributes))
        if isinstance(self.attribute_pattern, str):
            object.__setattr__(self, "attribute_pattern", re.compile(self.attribute_pattern))
        object.__setattr__(self, "self_closing", bool(self.self_closing))

    @property
    def is_global(self) -> bool:
        return self.name == GLOBAL_RULE_NAME

    def allows(self, attr_name: str) -> bool:
        if attr_name in self.allowed_attributes:
            return True
        pattern = self.attribute_pattern
        return pattern is not None and pattern.fullmatch(attr_name) is not None


class TagRegistry:
    """Mapping from tag name to `TagRule`. Read-only while a scan runs."""

    __slots__ = ("_rules",)

    def __init__(self, rules: Iterable[TagRule] = ()) -> None:
        self._rules: dict[str, TagRule] = {}
        self.register_all(rules)

    def register(self, rule: TagRule) -> None:
        if rule.is_global and GLOBAL_RULE_NAME in self._rules:
            warnings.warn("global tag rule registered more than once; the last one wins", stacklevel=2)
        self._rules[rule.name] = rule

    def register_all(self, rules: Iterable[TagRule]) -> None:
        for rule in rules:
            self.register(rule)

    def get(self, name: str) -> TagRule | None:
        return self._rules.get(name)

    @property
    def global_rule(self) -> TagRule | None:
        return self._rules.get(GLOBAL_RULE_NAME)

    def is_known_tag(self, name: str) -> bool:
        return name != GLOBAL_RULE_NAME and name in self._rules

    def is_self_closing(self, name: str) -> bool:
        rule = self._rules.get(name)
        return rule is not None and rule.self_closing

    def is_valid_attribute(self, tag_name: str, attr_name: str) -> bool:
        # Global allowances first, then the tag's own rule.
        global_rule = self._rules.get(GLOBAL_RULE_NAME)
        if global_rule is not None and global_rule.allows(attr_name):
            return True
        if tag_name == GLOBAL_RULE_NAME:
            return False
        rule = self._rules.get(tag_name)
        return rule is not None and rule.allows(attr_name)

    def __contains__(self, name: object) -> bool:
        return name in self._rules

    def __iter__(self) -> Iterator[TagRule]:
        return iter(self._rules.values())

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"TagRegistry({sorted(self._rules)!r})"

    @classmethod
    def from_config(cls, data: Any) -> TagRegistry:
        """Build a registry from decoded JSON.

        Accepts either a list of rule objects or ``{"tags": [...]}``. Each
        object has ``name`` and optional ``attrs``, ``attr_pattern`` and
        ``self_closing``.
        """
        if isinstance(data, Mapping):
            if "tags" not in data:
                raise ValueError("rule configuration object needs a 'tags' list")
            data = data["tags"]
        if not isinstance(data, list):
            raise ValueError(f"expected a list of tag rules, got {type(data).__name__}")
        return cls(rule_from_config(entry) for entry in data)


def rule_from_config(entry: Any) -> TagRule:
    if not isinstance(entry, Mapping) or not isinstance(entry.get("name"), str):
        raise ValueError(f"invalid tag rule: {entry!r}")
    attrs = entry.get("attrs", [])
    if isinstance(attrs, str) or not isinstance(attrs, list):
        raise ValueError(f"'attrs' must be a list in tag rule {entry['name']!r}")
    pattern = entry.get("attr_pattern")
    if pattern is not None:
        try:
            pattern = re.compile(pattern)
        except (TypeError, re.error) as exc:
            raise ValueError(f"bad 'attr_pattern' in tag rule {entry['name']!r}: {exc}") from exc
    return TagRule(
        name=entry["name"],
        allowed_attributes=attrs,
        attribute_pattern=pattern,
        self_closing=bool(entry.get("self_closing", False)),
    )


def load_rules(path: str | Path) -> TagRegistry:
    with open(path, encoding="utf-8") as fp:
        return TagRegistry.from_config(json.load(fp))
