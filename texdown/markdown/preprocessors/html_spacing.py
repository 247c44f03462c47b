# texdown/markdown/preprocessors/html_spacing.py
"""
Preprocessor that normalises whitespace around raw HTML elements so the
markdown engine wraps (or does not wrap) their content in paragraphs the way
the author intended.

Per element:
- elements that cannot be inside a paragraph get blank lines around them
- the content of ``<pre>`` is never touched
- the newline count between a tag and its content decides the layout:
  0 stays 0, 1 becomes 0 or 2 depending on ``prefers_inline``, 2 or more
  becomes exactly 2
- elements that cannot contain paragraphs, and phrasing elements written
  inline, have their content trimmed, and so do all their descendants
"""

import re
from typing import List

from ...escape.scanner import Element, build_element_tree
from ..tags import VOID_ELEMENTS, can_be_in_paragraph, can_contain_paragraph, prefers_inline

_LINE_BREAK_RE = re.compile(r"\r\n?|\n")
_TEXT_BEFORE_RE = re.compile(r"[^ \t\r\n][ \t]*$")
_TEXT_AFTER_RE = re.compile(r"^[ \t]*[^ \t\r\n]")


def count_newlines(text: str) -> int:
    """Count line breaks, treating ``\\r\\n`` as one."""
    return len(_LINE_BREAK_RE.findall(text))


def _last_break_end(whitespace: str) -> int:
    end = 0
    for match in _LINE_BREAK_RE.finditer(whitespace):
        end = match.end()
    return end


class TextEdits:
    """
    Collects insertions and removals against the original text and applies
    them in one go, so positions never shift while edits are planned.

    ``prepend`` inserts text in front of the character at a position (later
    calls land first); ``append`` inserts after the character before it
    (later calls land last). Insertions strictly inside a removed range are
    dropped.
    """

    def __init__(self, text: str):
        self.text = text
        self._appends = {}
        self._prepends = {}
        self._removed: List[tuple] = []

    def append(self, position: int, value: str) -> None:
        self._appends.setdefault(position, []).append(value)

    def prepend(self, position: int, value: str) -> None:
        self._prepends.setdefault(position, []).insert(0, value)

    def remove(self, start: int, end: int) -> None:
        if end > start:
            self._removed.append((start, end))

    def _merged_removals(self) -> List[tuple]:
        merged: List[list] = []
        for start, end in sorted(self._removed):
            if merged and start < merged[-1][1]:
                merged[-1][1] = max(merged[-1][1], end)
            else:
                merged.append([start, end])
        return [tuple(r) for r in merged]

    def apply(self) -> str:
        if not (self._appends or self._prepends or self._removed):
            return self.text
        removals = self._merged_removals()
        positions = sorted(set(self._appends) | set(self._prepends))
        out = []
        cursor = 0
        r = 0
        for position in positions:
            # removals ending at or before this insertion point
            while r < len(removals) and removals[r][1] <= position:
                start, end = removals[r]
                if start > cursor:
                    out.append(self.text[cursor:start])
                cursor = max(cursor, end)
                r += 1
            if r < len(removals) and removals[r][0] < position:
                # strictly inside a removed range
                continue
            if position > cursor:
                out.append(self.text[cursor:position])
                cursor = position
            out.extend(self._appends.get(position, ()))
            out.extend(self._prepends.get(position, ()))
        for start, end in removals[r:]:
            if start > cursor:
                out.append(self.text[cursor:start])
            cursor = max(cursor, end)
        out.append(self.text[cursor:])
        return "".join(out)


def _is_inline(text: str, element: Element) -> bool:
    line_start = text.rfind("\n", 0, element.start) + 1
    if _TEXT_BEFORE_RE.search(text[line_start:element.start]):
        return True
    line_end = text.find("\n", element.end)
    line_end = len(text) if line_end < 0 else line_end
    return bool(_TEXT_AFTER_RE.match(text[element.end:line_end]))


def _adjust(text: str, element: Element, edits: TextEdits, context: dict, in_no_par: bool) -> None:
    marker = context.get("tag_marker") or ""
    components = context.get("components") or []
    tag = element.name.replace(marker, "") if marker else element.name
    in_paragraph = can_be_in_paragraph(tag, components)

    if element.self_closing:
        if not in_paragraph:
            edits.prepend(element.start, "\n\n")
            edits.append(element.end, "\n\n")
        return

    if not in_paragraph:
        edits.prepend(element.start, "\n\n")
        edits.append(element.end, "\n\n")

    if tag == "pre":
        return

    inner_start, inner_end = element.inner_start, element.inner_end
    inner = text[inner_start:inner_end]
    stripped = inner.strip()
    leading = inner[: len(inner) - len(inner.lstrip())]
    trailing = inner[len(inner.rstrip()):] if stripped else ""
    leading_newlines = count_newlines(leading)
    inline_preferred = prefers_inline(tag, components, context.get("prefers_inline"))
    inline = _is_inline(text, element)

    no_par = not can_contain_paragraph(tag, components) or (
        inline and in_paragraph and (leading_newlines == 0 or (leading_newlines == 1 and inline_preferred))
    )

    if no_par or in_no_par or leading_newlines == 0 or (leading_newlines == 1 and inline_preferred):
        if stripped != inner:
            edits.remove(inner_start, inner_start + len(leading))
            edits.remove(inner_end - len(trailing), inner_end)
    else:
        leading_break = _last_break_end(leading)
        edits.remove(inner_start, inner_start + leading_break)
        edits.prepend(inner_start, "\n\n")
        trailing_start = inner_end - len(trailing)
        edits.remove(trailing_start, trailing_start + _last_break_end(trailing))
        edits.append(trailing_start, "\n\n")
        if inline:
            edits.prepend(element.start, "\n\n")
            edits.append(element.end, "\n\n")

    for child in element.children:
        _adjust(text, child, edits, context, in_no_par or no_par)


def adjust_html_spacing(text: str, context: dict) -> str:
    """
    Normalise whitespace inside and around every HTML element in ``text``.

    Args:
        text: Markdown with raw HTML (special tags already marked)
        context: Processing context with ``tag_marker``, ``components`` and
            ``prefers_inline``

    Returns:
        The adjusted text
    """
    edits = TextEdits(text)
    for element in build_element_tree(text, VOID_ELEMENTS):
        _adjust(text, element, edits, context, False)
    return edits.apply()
