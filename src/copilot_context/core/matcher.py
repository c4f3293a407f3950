"""Glob include/exclude rules evaluated against relative POSIX paths.

Rule syntax (one string per rule, as written in ``files = [...]``):

    docs/*.md       include files matching the glob
    !secret.md      exclude; the ``!`` prefix flips polarity
    **/             matches zero or more whole directories
    *  ?  [abc]     never cross a ``/``

Rules are evaluated in order and the last matching rule decides. When no
rule matches, a path is included only if the list has no include rules at
all, so ``["!CNAME"]`` means "everything except CNAME" while
``["*.md", "!secret.md"]`` means "markdown, minus secret.md".

This is stricter than a keep-unless-excluded default: once a list has an
include rule, paths no rule matches are dropped rather than kept.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from functools import lru_cache

from copilot_context.core.errors import ConfigError


@lru_cache(maxsize=512)
def compile_glob(pattern: str) -> re.Pattern[str]:
    """Translate a glob into an anchored, case-sensitive regex."""
    if pattern.endswith("/"):
        pattern += "**"
    out: list[str] = []
    i, n = 0, len(pattern)
    while i < n:
        ch = pattern[i]
        if ch == "*":
            if pattern.startswith("**", i):
                i += 2
                if i < n and pattern[i] == "/":
                    out.append("(?:.*/)?")
                    i += 1
                else:
                    out.append(".*")
                continue
            out.append("[^/]*")
        elif ch == "?":
            out.append("[^/]")
        elif ch == "[":
            end = pattern.find("]", i + 2)
            if end == -1:
                out.append(re.escape(ch))
            else:
                body = pattern[i + 1 : end].replace("\\", "\\\\")
                if body.startswith("!"):
                    body = "^" + body[1:]
                out.append("[" + body + "]")
                i = end
        else:
            out.append(re.escape(ch))
        i += 1
    return re.compile("".join(out) + r"\Z")


def normalise(path: str) -> str:
    """POSIX separators, no leading ``./``."""
    path = path.replace("\\", "/")
    while path.startswith("./"):
        path = path[2:]
    return path


@dataclass(frozen=True)
class MatchRule:
    """A single glob plus its polarity."""

    pattern: str
    include: bool = True
    regex: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "regex", compile_glob(normalise(self.pattern)))

    @classmethod
    def parse(cls, raw: str) -> MatchRule:
        text = raw.strip()
        include = not text.startswith("!")
        pattern = text if include else text[1:].strip()
        if not pattern:
            raise ConfigError(f"Empty file pattern: {raw!r}")
        return cls(pattern=pattern, include=include)

    def matches(self, path: str) -> bool:
        return self.regex.match(path) is not None


class FilterSet:
    """Ordered MatchRules; last match wins."""

    def __init__(self, rules: Iterable[MatchRule] = ()) -> None:
        self.rules: tuple[MatchRule, ...] = tuple(rules)
        self._default = not any(r.include for r in self.rules)

    @classmethod
    def parse(cls, patterns: Iterable[str] | None) -> FilterSet:
        return cls(MatchRule.parse(p) for p in patterns or ())

    def __bool__(self) -> bool:
        return bool(self.rules)

    def __repr__(self) -> str:
        shown = [r.pattern if r.include else f"!{r.pattern}" for r in self.rules]
        return f"FilterSet({shown!r})"

    def includes(self, path: str) -> bool:
        """Decide whether *path* (relative, POSIX) is materialised."""
        if not self.rules:
            return True
        candidate = normalise(path)
        decision = self._default
        for rule in self.rules:
            if rule.matches(candidate):
                decision = rule.include
        return decision

    def select(self, paths: Iterable[str]) -> list[str]:
        return [p for p in paths if self.includes(p)]
