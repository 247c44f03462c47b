# texdown/markdown/preprocessors/attribute_mustache.py
"""
Preprocessor that hides brace expressions inside tag attributes.

``<a href={url} title="{a > b}">`` is not a tag most markdown engines
recognise, so each expression (with its quotes, if any) is swapped for a
token and put back after rendering. Brace nesting is followed to a depth of
twelve.
"""

import re

from ...escape.placeholders import generate_id
from ...escape.scanner import match_braces

MAX_BRACE_DEPTH = 12

_TAG_START_RE = re.compile(r"<[a-zA-Z][-.:0-9_a-zA-Z]*\s")


def _find_expressions(text: str, start: int):
    """
    Yield ``(start, end)`` of brace expressions in the tag opening at
    ``start``, stopping at the tag's ``>``.
    """
    i = start
    quote = None
    while i < len(text):
        char = text[i]
        if quote:
            if char == quote:
                quote = None
            elif char == "{":
                end = match_braces(text, i, MAX_BRACE_DEPTH)
                if end < 0:
                    return
                yield i, end
                i = end
                continue
        elif char in "\"'":
            quote = char
        elif char == "{":
            end = match_braces(text, i, MAX_BRACE_DEPTH)
            if end < 0:
                return
            yield i, end
            i = end
            continue
        elif char in "<>":
            return
        i += 1


def escape_attribute_mustaches(text: str, context: dict) -> str:
    """
    Replace brace expressions in attributes with tokens.

    Tokens are recorded in ``context["attribute_mustaches"]``. An expression
    that fills a whole quoted value is stored together with its quotes.
    """
    escaped = context.setdefault("attribute_mustaches", {})
    pieces = []
    position = 0
    for tag in _TAG_START_RE.finditer(text):
        if tag.start() < position:
            continue
        for start, end in _find_expressions(text, tag.end()):
            if text[start - 1] in "\"'" and text[end:end + 1] == text[start - 1]:
                start, end = start - 1, end + 1
            token = generate_id()
            escaped[token] = text[start:end]
            pieces.append(text[position:start])
            pieces.append(token)
            position = end
    pieces.append(text[position:])
    return "".join(pieces)


def restore_attribute_mustaches(html: str, context: dict) -> str:
    """Put escaped attribute expressions back, dropping quotes added around tokens."""
    escaped = context.get("attribute_mustaches") or {}
    for token, original in escaped.items():
        html = re.sub(rf"([\"']){token}\1|{token}", lambda _: original, html)
    return html
