# texdown/escape/segmenter.py
"""
Split a hybrid document into host text and protected snippets.

Block phase (whole document):
- frontmatter at offset 0
- fenced code blocks and ``$$`` math blocks
- verbatim environments and template elements (depth-counting scanner)

Inline phase (left-to-right over the gaps the block phase left):
- code spans, ``$``/``$$``/``\\(..\\)``/``\\[..\\]`` math
- brace expressions: control-flow tags, special tags and mustache tags
- inline HTML tags are skipped, apart from brace expressions in attributes

Every kept snippet is replaced by a placeholder token, padded so that
block-level snippets end up in paragraphs of their own.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from . import template
from .placeholders import Padding, PlaceholderTable, Snippet, generate_id
from .scanner import find_elements, match_braces, parse_attributes, read_tag

logger = logging.getLogger(__name__)

DEFAULT_MATH_DELIMS = {
    "dollars": True,
    "inline": {"single_dollar": True, "escaped_parentheses": True},
    "display": {"escaped_square_brackets": True},
    "double_dollar_display": "fenced",
}

_FENCE_OPEN_RE = re.compile(r"^(?P<indent>[ \t]*)(?P<fence>`{3,}|~{3,})(?P<info>.*?)[ \t]*$")
_MATH_FLOW_OPEN_RE = re.compile(r"^(?P<indent>[ \t]*)(?P<fence>\${2,})(?P<meta>[^$]*?)[ \t]*$")
_FRONTMATTER_OPEN_RE = re.compile(r"^(?:(?P<dash>---)(?P<fmt>yaml|toml|json)?|(?P<plus>\+\+\+))[ \t]*$")
_LIST_OR_QUOTE_RE = re.compile(r"^\s*(?:>|- |\d+\. )")
_LIST_QUOTE_OR_BLANK_RE = re.compile(r"^\s*(?:>|- |\d+\. |$)")
_BLANK_LINE_RE = re.compile(r"\n[ \t]*\r?\n")
_DIRECTIVE_BEFORE_RE = re.compile(r"(?:^|[^\w:]):{1,3}[A-Za-z][\w-]*(?:\[[^\]\n]*\])?$", re.MULTILINE)
_BOUNDARY_WS_RE = re.compile(r"^(?: |\r\n?|\n)(.*)(?: |\r\n?|\n)$", re.S)


@dataclass
class EscapeResult:
    escaped_document: str
    table: PlaceholderTable
    marker: str


@dataclass
class _Line:
    start: int
    end: int  # excluding the line break
    text: str


def _split_lines(document: str) -> List[_Line]:
    lines = []
    position = 0
    for raw in document.split("\n"):
        text = raw[:-1] if raw.endswith("\r") else raw
        lines.append(_Line(position, position + len(text), text))
        position += len(raw) + 1
    return lines


def trim_boundary_whitespace(text: str) -> str:
    """Drop one leading and one trailing space or line break, if both exist."""
    return _BOUNDARY_WS_RE.sub(r"\1", text)


def outermost_ranges(candidates: Iterable[Snippet]) -> List[Snippet]:
    """
    Keep only candidates not nested in or overlapping an earlier kept one.

    Candidates are ordered by start, larger range first on ties, and a
    candidate is kept when it starts at or after the end of the last kept
    one.
    """
    kept: List[Snippet] = []
    position = 0
    for candidate in sorted(candidates, key=lambda s: (s.start, -s.end)):
        if candidate.start >= position:
            kept.append(candidate)
            position = candidate.end
    return kept


def block_padding(document: str, start: int, end: int) -> Padding:
    """
    Padding for a block snippet that keeps it on lines of its own while
    preserving the indentation (and list or quote context) it sits in.
    """
    before = "\n\n"
    after = "\n\n"
    line_start = document.rfind("\n", 0, start) + 1
    leading = document[line_start:start]
    if not leading.strip():
        before = "\n" + leading
        if line_start == 0 or not _previous_line(document, line_start).strip():
            before = leading
    first_line_end = document.find("\n", start)
    first_line = document[line_start:first_line_end if first_line_end >= 0 else len(document)]
    if _LIST_OR_QUOTE_RE.match(first_line):
        before = ""
    line_end = document.find("\n", end)
    if line_end < 0:
        line_end = len(document)
    if not document[end:line_end].strip():
        after = "\n"
        if line_end >= len(document) or _LIST_QUOTE_OR_BLANK_RE.match(_next_line(document, line_end)):
            after = ""
    return Padding(before, after)


def _previous_line(document: str, line_start: int) -> str:
    previous_start = document.rfind("\n", 0, line_start - 1) + 1
    return document[previous_start:line_start - 1]


def _next_line(document: str, line_end: int) -> str:
    following_end = document.find("\n", line_end + 1)
    return document[line_end + 1:following_end if following_end >= 0 else len(document)]


def _logic_padding(document: str, start: int, end: int) -> Padding:
    line_start = document.rfind("\n", 0, start) + 1
    line_end = document.find("\n", end)
    before_blank = line_start == 0 or not _previous_line(document, line_start).strip()
    after_blank = line_end < 0 or not _next_line(document, line_end).strip()
    return Padding("\n" * (1 + before_blank), "\n" * (1 + after_blank))


class Segmenter:
    """
    Finds and escapes the snippets of one document at a time.

    Args:
        verbatim_tags: Mapping of tag name (aliases included) to the name of
            the verbatim environment it belongs to
        inline_verbatim: Environment names whose content is inline by default
        math_delims: Which math delimiters are recognised
        directives: ``{"enabled": bool, "braces_are_part_of_directive": fn}``
    """

    def __init__(
        self,
        verbatim_tags: Optional[Dict[str, str]] = None,
        inline_verbatim: Iterable[str] = (),
        math_delims: Optional[dict] = None,
        directives: Optional[dict] = None,
    ):
        self.verbatim_tags = dict(verbatim_tags or {})
        self.inline_verbatim = set(inline_verbatim)
        delims = math_delims if math_delims is not None else DEFAULT_MATH_DELIMS
        self.dollars = bool(delims.get("dollars"))
        self.single_dollar = self.dollars and bool(delims.get("inline", {}).get("single_dollar"))
        self.escaped_parentheses = bool(delims.get("inline", {}).get("escaped_parentheses"))
        self.escaped_square_brackets = bool(delims.get("display", {}).get("escaped_square_brackets"))
        self.double_dollar_display = delims.get("double_dollar_display", "fenced")
        directives = directives or {}
        self.directives_enabled = bool(directives.get("enabled"))
        self.braces_are_part_of_directive: Optional[Callable] = directives.get("braces_are_part_of_directive")

    # -- entry point -----------------------------------------------------

    def escape(self, document: str, filename: Optional[str] = None) -> EscapeResult:
        """
        Replace every protected region of ``document`` with a token.

        Returns:
            EscapeResult with the escaped host text, the placeholder table and
            the marker used for namespaced tag names
        """
        lines = _split_lines(document)
        blocks: List[Snippet] = []
        frontmatter = self._frontmatter(document, lines)
        if frontmatter is not None:
            blocks.append(frontmatter)
        blocks.extend(self._fenced_blocks(document, lines, filename, skip_until=frontmatter.end if frontmatter else 0))
        masked = self._mask(document, blocks)
        blocks.extend(self._elements(document, masked, filename))
        blocks = outermost_ranges(blocks)

        snippets = list(blocks)
        position = 0
        for block in blocks + [None]:
            gap_end = block.start if block is not None else len(document)
            if gap_end > position:
                snippets.extend(self._inline(document, position, gap_end, filename))
            if block is not None:
                position = block.end
        snippets = outermost_ranges(snippets)

        table = PlaceholderTable()
        pieces = []
        position = 0
        for snippet in snippets:
            token = table.add(snippet, document)
            pieces.append(document[position:snippet.start])
            pieces.append(snippet.pad.before + token + snippet.pad.after)
            position = snippet.end
        pieces.append(document[position:])
        marker = generate_id()
        escaped = template.escape_tag_name_separators("".join(pieces), marker)
        logger.debug(f"Escaped {len(table)} snippet(s){' in ' + filename if filename else ''}")
        return EscapeResult(escaped, table, marker)

    # -- block phase -----------------------------------------------------

    def _frontmatter(self, document: str, lines: List[_Line]) -> Optional[Snippet]:
        opening = _FRONTMATTER_OPEN_RE.match(lines[0].text)
        if not opening or len(lines) < 2:
            return None
        if opening.group("plus"):
            fmt, closing = "toml", "+++"
        else:
            fmt, closing = opening.group("fmt") or "yaml", "---"
        for line in lines[1:]:
            if line.text.rstrip() == closing:
                inner_start = lines[1].start
                inner = document[inner_start:line.start]
                inner = inner[:-2] if inner.endswith("\r\n") else inner.rstrip("\n")
                return Snippet(
                    kind="frontmatter",
                    start=0,
                    end=line.end,
                    raw_outer=document[:line.end],
                    raw_inner=inner if line.start > inner_start else "",
                    options={"type": fmt},
                    pad=block_padding(document, 0, line.end),
                    remove_paragraph_tag=True,
                )
        return None

    def _fenced_blocks(self, document: str, lines: List[_Line], filename, skip_until: int = 0) -> List[Snippet]:
        found = []
        index = 0
        while index < len(lines):
            line = lines[index]
            if line.start < skip_until:
                index += 1
                continue
            fence = _FENCE_OPEN_RE.match(line.text)
            if fence and not (fence.group("fence")[0] == "`" and "`" in fence.group("info")):
                snippet, index = self._close_fence(document, lines, index, fence, filename)
                if snippet is not None:
                    found.append(snippet)
                continue
            flow = _MATH_FLOW_OPEN_RE.match(line.text) if self.dollars else None
            if flow:
                snippet, index = self._close_math_flow(document, lines, index, flow, filename)
                if snippet is not None:
                    found.append(snippet)
                continue
            index += 1
        return found

    def _close_fence(self, document, lines, index, fence, filename) -> Tuple[Optional[Snippet], int]:
        marker = fence.group("fence")
        indent = len(fence.group("indent").expandtabs(4))
        closing_re = re.compile(r"^[ \t]*" + re.escape(marker[0]) + "{" + str(len(marker)) + r",}[ \t]*$")
        for close_index in range(index + 1, len(lines)):
            if closing_re.match(lines[close_index].text):
                break
        else:
            logger.warning(
                f"Unclosed code fence at line {index + 1}"
                f"{' in ' + filename if filename else ''}; leaving it as text"
            )
            return None, index + 1
        body = [_dedent(line.text, indent) for line in lines[index + 1:close_index]]
        info = fence.group("info").strip()
        lang, _, meta = info.partition(" ")
        start = lines[index].start + len(fence.group("indent"))
        end = lines[close_index].end
        snippet = Snippet(
            kind="code",
            start=start,
            end=end,
            raw_outer=document[start:end],
            raw_inner="\n".join(body),
            options={"inline": False, "lang": lang or None, "meta": meta.strip() or None},
            pad=block_padding(document, start, end),
            remove_paragraph_tag=True,
        )
        return snippet, close_index + 1

    def _close_math_flow(self, document, lines, index, flow, filename) -> Tuple[Optional[Snippet], int]:
        marker = flow.group("fence")
        closing_re = re.compile(r"^[ \t]*\$" + "{" + str(len(marker)) + r",}[ \t]*$")
        for close_index in range(index + 1, len(lines)):
            if closing_re.match(lines[close_index].text):
                break
        else:
            logger.warning(
                f"Unclosed math block at line {index + 1}"
                f"{' in ' + filename if filename else ''}; leaving it as text"
            )
            return None, index + 1
        start = lines[index].start + len(flow.group("indent"))
        end = lines[close_index].end
        snippet = Snippet(
            kind="math",
            start=start,
            end=end,
            raw_outer=document[start:end],
            raw_inner="\n".join(line.text for line in lines[index + 1:close_index]),
            options={"inline": False},
            pad=Padding.newlines(2),
            remove_paragraph_tag=True,
        )
        return snippet, close_index + 1

    @staticmethod
    def _mask(document: str, snippets: List[Snippet]) -> str:
        masked = document
        for snippet in snippets:
            blank = re.sub(r"[^\n]", " ", document[snippet.start:snippet.end])
            masked = masked[:snippet.start] + blank + masked[snippet.end:]
        return masked

    def _elements(self, document: str, masked: str, filename) -> List[Snippet]:
        names = list(self.verbatim_tags) + [n for n in template.STRUCTURAL_ELEMENTS if n not in self.verbatim_tags]
        self_closing = list(self.verbatim_tags) + list(template.SELF_CLOSING_ELEMENTS)
        found = []
        for element in find_elements(masked, names, self_closing, filename):
            raw_outer = document[element.start:element.end]
            attributes = element.open_tag.attributes
            if element.name in self.verbatim_tags:
                found.append(self._verbatim(document, element, raw_outer))
                continue
            found.append(
                Snippet(
                    kind="structural",
                    start=element.start,
                    end=element.end,
                    raw_outer=raw_outer,
                    raw_inner=document[element.inner_start:element.inner_end],
                    options={"tag": element.name, "attributes": attributes},
                    pad=Padding.newlines(2),
                    remove_paragraph_tag=True,
                )
            )
        return found

    def _verbatim(self, document: str, element, raw_outer: str) -> Snippet:
        env = self.verbatim_tags[element.name]
        attributes = parse_attributes(element.open_tag.attributes)
        inline = attributes.get("inline")
        if inline is None:
            inline = env in self.inline_verbatim
        inner = document[element.inner_start:element.inner_end]
        if inline:
            inner = re.sub(r"^(?: |\r\n?|\n)", "", inner)
            inner = re.sub(r"(?: |\r\n?|\n)$", "", inner)
        return Snippet(
            kind="verbatim",
            start=element.start,
            end=element.end,
            raw_outer=raw_outer,
            raw_inner=inner,
            options={
                "tag": element.name,
                "env": env,
                "attributes": attributes,
                "self_closing": element.self_closing,
                "inline": bool(inline),
            },
            pad=Padding.newlines(0 if inline else 2),
            remove_paragraph_tag=True,
        )

    # -- inline phase ----------------------------------------------------

    def _inline(self, document: str, start: int, end: int, filename) -> List[Snippet]:
        found: List[Snippet] = []
        i = start
        while i < end:
            char = document[i]
            if char == "\\":
                i = self._backslash(document, i, end, found, filename)
            elif char == "`":
                i = self._code_span(document, i, end, found)
            elif char == "$" and self.dollars:
                i = self._dollar_math(document, i, end, found)
            elif char == "{":
                i = self._braces(document, i, end, found, filename)
            elif char == "<":
                i = self._inline_tag(document, i, end, found, filename)
            else:
                i += 1
        return found

    def _backslash(self, document, i, end, found, filename) -> int:
        following = document[i + 1:i + 2]
        if following == "(" and self.escaped_parentheses:
            closing, inline = "\\)", True
        elif following == "[" and self.escaped_square_brackets:
            closing, inline = "\\]", False
        else:
            return i + 2
        close = _find_balanced(document, i, end, document[i:i + 2], closing)
        if close < 0:
            logger.warning(
                f"Unbalanced {document[i:i + 2]} at offset {i}"
                f"{' in ' + filename if filename else ''}; leaving it as text"
            )
            return i + 2
        outer_end = close + 2
        found.append(
            Snippet(
                kind="math",
                start=i,
                end=outer_end,
                raw_outer=document[i:outer_end],
                raw_inner=trim_boundary_whitespace(document[i + 2:close]),
                options={"inline": inline},
                pad=Padding.newlines(0 if inline else 2),
                remove_paragraph_tag=not inline,
            )
        )
        return outer_end

    def _code_span(self, document, i, end, found) -> int:
        run = _run_length(document, i, "`")
        search = i + run
        while True:
            close = document.find("`" * run, search, end)
            if close < 0:
                return i + run
            if _run_length(document, close, "`") == run:
                break
            search = close + _run_length(document, close, "`")
        inner = document[i + run:close].replace("\r\n", " ").replace("\n", " ")
        if len(inner) > 2 and inner.startswith(" ") and inner.endswith(" ") and inner.strip():
            inner = inner[1:-1]
        found.append(
            Snippet(
                kind="code",
                start=i,
                end=close + run,
                raw_outer=document[i:close + run],
                raw_inner=inner,
                options={"inline": True},
                pad=Padding(),
                remove_paragraph_tag=False,
            )
        )
        return close + run

    def _dollar_math(self, document, i, end, found) -> int:
        run = _run_length(document, i, "$")
        if run == 1 and not self.single_dollar:
            return i + 1
        blank = _BLANK_LINE_RE.search(document, i, end)
        limit = blank.start() if blank else end
        search = i + run
        while True:
            close = document.find("$" * run, search, limit)
            if close < 0:
                return i + run
            if _run_length(document, close, "$") == run and document[close - 1] != "\\":
                break
            search = close + _run_length(document, close, "$")
        inner = document[i + run:close]
        if not inner.strip():
            return close + run
        outer_end = close + run
        inline = True
        if run >= 2:
            if self.double_dollar_display == "always":
                inline = False
            elif self.double_dollar_display == "newline":
                line_start = document.rfind("\n", 0, i) + 1
                line_end = document.find("\n", outer_end)
                line_end = len(document) if line_end < 0 else line_end
                inline = bool(document[line_start:i].strip() or document[outer_end:line_end].strip())
        found.append(
            Snippet(
                kind="math",
                start=i,
                end=outer_end,
                raw_outer=document[i:outer_end],
                raw_inner=trim_boundary_whitespace(inner),
                options={"inline": inline},
                pad=Padding.newlines(0 if inline else 2),
                remove_paragraph_tag=not inline,
            )
        )
        return outer_end

    def _braces(self, document, i, end, found, filename, in_tag: bool = False) -> int:
        close = match_braces(document, i)
        if close < 0 or close > end:
            logger.warning(
                f"Unbalanced brace at offset {i}"
                f"{' in ' + filename if filename else ''}; leaving it as text"
            )
            return i + 1
        expression = document[i:close]
        if not in_tag and self.directives_enabled and self._is_directive(document, i, close, expression):
            return close
        if not in_tag and template.is_logic_block(expression):
            found.append(
                Snippet(
                    kind="structural",
                    start=i,
                    end=close,
                    raw_outer=expression,
                    raw_inner=expression[1:-1],
                    options={"logic": True},
                    pad=_logic_padding(document, i, close),
                    remove_paragraph_tag=True,
                )
            )
            return close
        found.append(
            Snippet(
                kind="mustache",
                start=i,
                end=close,
                raw_outer=expression,
                raw_inner=expression[1:-1],
                pad=Padding(),
                remove_paragraph_tag=False,
            )
        )
        return close

    def _is_directive(self, document, start, end, expression) -> bool:
        if self.braces_are_part_of_directive is not None:
            verdict = self.braces_are_part_of_directive(
                document=document, start=start, end=end, inner=expression[1:-1]
            )
            if verdict is not None:
                return bool(verdict)
        line_start = document.rfind("\n", 0, start) + 1
        return bool(_DIRECTIVE_BEFORE_RE.search(document, line_start, start))

    def _inline_tag(self, document, i, end, found, filename) -> int:
        if document.startswith("<!--", i):
            close = document.find("-->", i + 4, end)
            return close + 3 if close >= 0 else i + 4
        tag = read_tag(document, i)
        if tag is None or tag.end > end:
            return i + 1
        # brace expressions in attribute values, quoted or not
        j = document.find("{", i, tag.end)
        while j >= 0:
            j = self._braces(document, j, tag.end, found, filename, in_tag=True)
            j = document.find("{", j, tag.end)
        return tag.end


def _run_length(text: str, pos: int, char: str) -> int:
    end = pos
    while end < len(text) and text[end] == char:
        end += 1
    return end - pos


def _dedent(line: str, width: int) -> str:
    removed = 0
    index = 0
    while index < len(line) and removed < width and line[index] in " \t":
        removed += 4 - removed % 4 if line[index] == "\t" else 1
        index += 1
    return line[index:]


def _find_balanced(text: str, start: int, end: int, opening: str, closing: str) -> int:
    depth = 0
    i = start
    while i < end - 1:
        pair = text[i:i + 2]
        if pair == opening:
            depth += 1
            i += 2
            continue
        if pair == closing:
            depth -= 1
            if depth == 0:
                return i
            i += 2
            continue
        i += 2 if text[i] == "\\" else 1
    return -1
