"""Page selector mini-language.

A selector is a comma-separated list of segments::

    3         single page
    {}        blank page
    last      the final page
    4-        page 4 through the end (also ``4-last`` and ``last-4``)
    -4        pages 1 through 4
    -         the whole document
    9-3       pages 3 through 9 (bounds are swapped)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, List, Sequence

from .errors import SelectorSyntaxError
from .types import LAST, BlankPage, PageBound, PageRange, Selector, SelectorToken, SinglePage

SELECTOR_CHARS_RE = re.compile(r"^(?:[0-9,{}\-]|last)+$")

_LEX_RE = re.compile(r"(?P<int>\d+)|(?P<last>last)|(?P<dash>-)|(?P<blank>\{\})|(?P<other>.)")


@dataclass(frozen=True)
class _Lexeme:
    kind: str
    text: str


def looks_like_selector(token: str) -> bool:
    return bool(SELECTOR_CHARS_RE.match(token))


def _tokenize(segment: str) -> Iterator[_Lexeme]:
    for match in _LEX_RE.finditer(segment):
        kind = match.lastgroup or "other"
        yield _Lexeme(kind, match.group())


def _page_number(text: str, lexeme: _Lexeme, segment: str) -> int:
    value = int(lexeme.text)
    if value <= 0:
        raise SelectorSyntaxError(text, segment, "uses a page number below 1")
    return value


def _parse_segment(text: str, segment: str) -> SelectorToken:
    lexemes = list(_tokenize(segment))
    kinds = [lexeme.kind for lexeme in lexemes]

    if not lexemes:
        raise SelectorSyntaxError(text, segment, "is empty")
    if "other" in kinds:
        bad = next(lexeme.text for lexeme in lexemes if lexeme.kind == "other")
        raise SelectorSyntaxError(text, segment, f"contains unexpected character {bad!r}")

    if kinds == ["int"]:
        return SinglePage(_page_number(text, lexemes[0], segment))
    if kinds == ["blank"]:
        return BlankPage()
    if kinds == ["last"]:
        return PageRange(LAST, LAST)
    if kinds == ["dash"]:
        return PageRange(1, LAST)
    if kinds == ["int", "dash"]:
        return PageRange(_page_number(text, lexemes[0], segment), LAST)
    if kinds == ["dash", "int"]:
        return PageRange(1, _page_number(text, lexemes[1], segment))
    if kinds == ["int", "dash", "int"]:
        lo = _page_number(text, lexemes[0], segment)
        hi = _page_number(text, lexemes[2], segment)
        return PageRange(min(lo, hi), max(lo, hi))
    if kinds == ["int", "dash", "last"]:
        return PageRange(_page_number(text, lexemes[0], segment), LAST)
    if kinds == ["last", "dash", "int"]:
        # read as "from N through the end", not "the last N pages"
        return PageRange(_page_number(text, lexemes[2], segment), LAST)

    raise SelectorSyntaxError(text, segment, "does not match any selector form")


def compile_selector(text: str) -> Selector:
    if not text:
        raise SelectorSyntaxError(text, text, "is empty")
    tokens: List[SelectorToken] = []
    for segment in text.split(","):
        tokens.append(_parse_segment(text, segment.strip()))
    return tuple(tokens)


def _format_bound(bound: PageBound) -> str:
    return "last" if bound is LAST else str(bound)


def format_selector(tokens: Sequence[SelectorToken]) -> str:
    """Render compiled tokens in pdfpages ``pages=`` notation."""
    parts: List[str] = []
    for token in tokens:
        if isinstance(token, SinglePage):
            parts.append(str(token.page))
        elif isinstance(token, BlankPage):
            parts.append("{}")
        elif token.lo is LAST and token.hi is LAST:
            parts.append("last")
        else:
            parts.append(f"{_format_bound(token.lo)}-{_format_bound(token.hi)}")
    return ",".join(parts)


def expand_pages(tokens: Sequence[SelectorToken], page_count: int) -> List[int]:
    """Sorted set of 1-based pages the selector includes for *page_count* pages."""
    pages = set()
    for token in tokens:
        if isinstance(token, SinglePage):
            pages.add(token.page)
        elif isinstance(token, PageRange):
            lo = page_count if token.lo is LAST else token.lo
            hi = page_count if token.hi is LAST else token.hi
            if lo > hi:
                lo, hi = hi, lo
            pages.update(range(lo, hi + 1))
    pages.discard(0)
    return sorted(pages)


__all__ = [
    "SELECTOR_CHARS_RE",
    "looks_like_selector",
    "compile_selector",
    "format_selector",
    "expand_pages",
]
