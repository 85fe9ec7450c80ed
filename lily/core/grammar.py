"""Directive grammar for comment-embedded patch annotations.

The grammar is a pure function of the registered task parameter names::

    grammar = build_grammar(["search", "replace"])
    grammar.scan("/* @lily @task replace @search foo */")

Directives are only recognized inside comments. Supported comment forms:

- ``/* ... */`` blocks (multi-line, ``*`` gutters allowed)
- ``// ...`` and ``# ...`` line comments starting their line (after
  indentation); consecutive line comments form one comment
- ``<!-- ... -->`` blocks

Inside a comment, ``@<keyword>`` starts a directive whose argument runs up to
the next recognized directive, the end of the line, or the end of the comment.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Tuple

STRUCTURAL_KEYWORDS: Tuple[str, ...] = ("lily", "task", "files")

COMMENT_PATTERN = re.compile(
    r"/\*(?P<block>.*?)\*/"
    r"|<!--(?P<html>.*?)-->"
    r"|^[ \t]*(?P<line>(?://|#)[^\n]*(?:\n[ \t]*(?://|#)[^\n]*)*)",
    re.DOTALL | re.MULTILINE,
)


@dataclass(frozen=True)
class Directive:
    """A single ``@keyword arguments`` annotation.

    Attributes:
        keyword: Matched keyword (structural or a parameter name)
        arguments: Argument text, whitespace-stripped (may be empty)
        comment: Index of the comment block the directive was found in
        offset: Character offset of the ``@`` in the scanned text
    """

    keyword: str
    arguments: str
    comment: int
    offset: int


@dataclass(frozen=True)
class Grammar:
    """Compiled directive matcher for a fixed set of keywords.

    Attributes:
        params: Registered parameter names the grammar was built from
        keywords: Structural keywords followed by parameter names, no duplicates
        pattern: Compiled directive pattern
    """

    params: Tuple[str, ...]
    keywords: Tuple[str, ...]
    pattern: re.Pattern = field(repr=False, compare=False)

    def iter_comments(self, text: str) -> Iterator[Tuple[int, str]]:
        """Yield ``(offset, body)`` for every comment in ``text``, in document order."""
        for match in COMMENT_PATTERN.finditer(text):
            for group in ("block", "html", "line"):
                body = match.group(group)
                if body is not None:
                    yield match.start(group), body
                    break

    def scan(self, text: str) -> List[Directive]:
        """Return every directive in ``text`` in document order."""
        directives: List[Directive] = []
        for index, (base, body) in enumerate(self.iter_comments(text)):
            for match in self.pattern.finditer(body):
                directives.append(
                    Directive(
                        keyword=match.group("keyword"),
                        arguments=match.group("arguments").strip(),
                        comment=index,
                        offset=base + match.start(),
                    )
                )
        return directives

    def matches(self, line: str) -> bool:
        """Check whether a single comment body carries at least one directive."""
        return self.pattern.search(line) is not None


def dedupe(names: Iterable[str]) -> Tuple[str, ...]:
    """Drop empty and repeated names, keeping first-seen order."""
    seen: List[str] = []
    for name in names:
        if name and name not in seen:
            seen.append(name)
    return tuple(seen)


def build_grammar(params: Iterable[str] = ()) -> Grammar:
    """Build the directive grammar for a set of registered parameter names.

    Args:
        params: Parameter names declared by the registered tasks

    Returns:
        Grammar recognizing ``lily``, ``task``, ``files`` and every param
    """
    params = dedupe(params)
    keywords = dedupe(STRUCTURAL_KEYWORDS + params)

    # Longest first so a keyword never shadows a longer one sharing its prefix
    alternation = "|".join(re.escape(k) for k in sorted(keywords, key=len, reverse=True))
    token = rf"(?<![\w@])@(?:{alternation})(?![\w-])"
    pattern = re.compile(
        rf"(?<![\w@])@(?P<keyword>{alternation})(?![\w-])"
        rf"(?P<arguments>(?:(?!{token})[^\n])*)"
    )

    return Grammar(params=params, keywords=keywords, pattern=pattern)
