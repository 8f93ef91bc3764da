"""
SQL Text Helpers
================

Shallow lexing used by the safety filter and the policy rewrites. This is not
a parser: it only tracks quote state and parenthesis depth so that
normalisation and whole-word rewrites never touch string literals or quoted
identifiers.
"""

import re
from dataclasses import dataclass
from typing import Callable

QUOTES = ("'", '"')

_FENCE_BLOCK = re.compile(r"```(?:[ \t]*[\w-]*[ \t]*\r?\n)?(.*?)```", re.DOTALL)
_FENCE_OPEN = re.compile(r"^```(?:[ \t]*[\w-]*[ \t]*\r?\n)?")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class Segment:
    text: str
    quoted: bool


def split_quoted(sql: str) -> list[Segment]:
    """
    Split SQL into quoted and unquoted segments.

    Handles single-quoted literals and double-quoted identifiers, with a
    doubled quote character as the escape. An unterminated quote runs to the
    end of the text and is reported as quoted.
    """
    segments: list[Segment] = []
    buf: list[str] = []
    quote = None
    i = 0
    n = len(sql)

    while i < n:
        ch = sql[i]
        if quote is None:
            if ch in QUOTES:
                if buf:
                    segments.append(Segment("".join(buf), False))
                    buf = []
                quote = ch
            buf.append(ch)
        else:
            buf.append(ch)
            if ch == quote:
                if i + 1 < n and sql[i + 1] == quote:
                    buf.append(quote)
                    i += 2
                    continue
                segments.append(Segment("".join(buf), True))
                buf = []
                quote = None
        i += 1

    if buf:
        segments.append(Segment("".join(buf), quote is not None))
    return segments


def map_unquoted(sql: str, fn: Callable[[str], str]) -> str:
    """Apply ``fn`` to every unquoted segment, leaving quoted text intact."""
    return "".join(
        seg.text if seg.quoted else fn(seg.text) for seg in split_quoted(sql)
    )


def unquoted_text(sql: str) -> str:
    """SQL with every quoted segment blanked to a single space."""
    return "".join(" " if seg.quoted else seg.text for seg in split_quoted(sql))


def identifier_text(sql: str) -> str:
    """SQL with string literals blanked and double-quoted identifiers unwrapped."""
    parts = []
    for seg in split_quoted(sql):
        if not seg.quoted:
            parts.append(seg.text)
        elif seg.text.startswith('"'):
            parts.append(seg.text.strip('"').replace('""', '"'))
        else:
            parts.append(" ")
    return "".join(parts)


def top_level(sql: str) -> str:
    """
    Unquoted text at parenthesis depth 0.

    Parentheses are kept but their contents dropped, so
    ``SELECT COUNT(*) FROM (SELECT ...) t`` becomes ``SELECT COUNT() FROM () t``.
    """
    out: list[str] = []
    depth = 0
    for seg in split_quoted(sql):
        if seg.quoted:
            if depth == 0:
                out.append(" ")
            continue
        for ch in seg.text:
            if ch == "(":
                if depth == 0:
                    out.append(ch)
                depth += 1
            elif ch == ")":
                depth = max(depth - 1, 0)
                if depth == 0:
                    out.append(ch)
            elif depth == 0:
                out.append(ch)
    return "".join(out)


def strip_code_fences(text: str) -> str:
    """Return the body of the first fenced code block, or the text itself."""
    text = text.strip()
    match = _FENCE_BLOCK.search(text)
    if match:
        return match.group(1).strip()
    # Opening fence without a closing one
    return _FENCE_OPEN.sub("", text).strip()


def collapse_whitespace(sql: str) -> str:
    """Collapse runs of whitespace to one space outside quoted regions."""
    return map_unquoted(sql, lambda part: _WHITESPACE.sub(" ", part)).strip()
