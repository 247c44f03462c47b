# texdown/escape/scanner.py
"""
Small hand-written scanners for tags and brace expressions.

- read_tag: parse one opening or closing tag starting at ``<``
- match_braces: find the end of a balanced ``{...}`` expression
- find_elements: depth-counting search for named elements
- build_element_tree: pair every tag of an HTML fragment
- parse_attributes / interpret_value: attribute strings to Python values

Regular expressions alone cannot count nesting depth, so the pairing logic
here walks the text explicitly.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional

logger = logging.getLogger(__name__)

_TAG_NAME_RE = re.compile(r"[A-Za-z][-.:0-9_A-Za-z]*")
_ATTR_NAME_RE = re.compile(r"[^\s\"'<>/={}]+")
_UNQUOTED_VALUE_RE = re.compile(r"[^\s\"'=<>`]+")
_WS_RE = re.compile(r"\s*")
_NUMBER_RE = re.compile(r"^[+-]?(?:\d+|\d*\.\d+)$")

_QUOTES = "\"'`"


@dataclass
class Tag:
    name: str
    start: int
    end: int
    closing: bool = False
    self_closing: bool = False
    attributes: str = ""


@dataclass
class Element:
    name: str
    start: int
    end: int
    open_tag: Tag
    close_tag: Optional[Tag] = None
    children: List["Element"] = field(default_factory=list)

    @property
    def self_closing(self) -> bool:
        return self.close_tag is None

    @property
    def inner_start(self) -> int:
        return self.open_tag.end

    @property
    def inner_end(self) -> int:
        return self.close_tag.start if self.close_tag else self.open_tag.end


def _skip_string(text: str, pos: int) -> int:
    """Return the index just past the string literal opening at ``pos``."""
    quote = text[pos]
    i = pos + 1
    n = len(text)
    while i < n:
        char = text[i]
        if char == "\\":
            i += 2
            continue
        if char == quote:
            return i + 1
        i += 1
    return -1


def match_braces(text: str, pos: int, max_depth: Optional[int] = None, quotes: bool = True) -> int:
    """
    Find the end of the brace expression opening at ``text[pos]``.

    String literals are skipped when ``quotes`` is set, so a ``}`` inside
    ``'...'`` does not close the expression.

    Returns:
        Index just past the matching ``}``, or -1 when the braces are
        unbalanced or nest deeper than ``max_depth``.
    """
    depth = 0
    i = pos
    n = len(text)
    while i < n:
        char = text[i]
        if quotes and char in _QUOTES and depth > 0:
            i = _skip_string(text, i)
            if i < 0:
                return -1
            continue
        if char == "\\" and depth > 0:
            i += 2
            continue
        if char == "{":
            depth += 1
            if max_depth is not None and depth > max_depth:
                return -1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return i + 1
        i += 1
    return -1


def read_tag(text: str, pos: int) -> Optional[Tag]:
    """Parse the tag starting at ``text[pos] == '<'``, or return None."""
    n = len(text)
    if pos >= n or text[pos] != "<":
        return None
    i = pos + 1
    closing = False
    if i < n and text[i] == "/":
        closing = True
        i += 1
    match = _TAG_NAME_RE.match(text, i)
    if not match:
        return None
    name = match.group(0)
    i = match.end()
    attrs_start = i
    while i < n:
        ws = _WS_RE.match(text, i)
        gap = ws.end() - i
        i = ws.end()
        if i >= n:
            return None
        char = text[i]
        if char == ">":
            return Tag(name, pos, i + 1, closing, False, text[attrs_start:i].strip())
        if text.startswith("/>", i) and not closing:
            return Tag(name, pos, i + 2, closing, True, text[attrs_start:i].strip())
        if closing or (gap == 0 and i != attrs_start and text[i - 1] not in "\"'}"):
            return None
        if gap == 0 and i == attrs_start:
            return None
        if char == "{":
            end = match_braces(text, i)
            if end < 0:
                return None
            i = end
            continue
        attr = _ATTR_NAME_RE.match(text, i)
        if not attr:
            return None
        i = attr.end()
        ws = _WS_RE.match(text, i)
        if ws.end() < n and text[ws.end()] == "=":
            i = _WS_RE.match(text, ws.end() + 1).end()
            if i >= n:
                return None
            if text[i] in "\"'":
                i = _skip_quoted(text, i)
            elif text[i] == "{":
                i = match_braces(text, i)
            else:
                value = _UNQUOTED_VALUE_RE.match(text, i)
                i = value.end() if value else -1
            if i < 0:
                return None
    return None


def _skip_quoted(text: str, pos: int) -> int:
    # HTML attribute values have no backslash escapes
    end = text.find(text[pos], pos + 1)
    return end + 1 if end >= 0 else -1


def iter_tags(text: str, start: int = 0, end: Optional[int] = None) -> Iterator[Tag]:
    """Yield every well-formed tag in ``text[start:end]``, skipping comments."""
    end = len(text) if end is None else end
    i = start
    while True:
        i = text.find("<", i, end)
        if i < 0:
            return
        if text.startswith("<!--", i):
            close = text.find("-->", i + 4)
            if close < 0:
                return
            i = close + 3
            continue
        tag = read_tag(text, i)
        if tag is None or tag.end > end:
            i += 1
            continue
        yield tag
        i = tag.end


def find_elements(text: str, names: Iterable[str], self_closing: Iterable[str] = (), filename=None) -> List[Element]:
    """
    Find top-level occurrences of the named elements.

    Names are matched exactly. While inside an element only tags of the same
    name are counted, so ``<A><A></A></A>`` is one element and anything
    between its tags is its content.

    Args:
        text: Document to scan
        names: Tag names to look for
        self_closing: Names that may also appear as ``<name .../>``
        filename: Used in diagnostics

    Returns:
        Elements in document order. Unclosed elements are logged and skipped.
    """
    names = set(names)
    may_self_close = set(self_closing)
    found: List[Element] = []
    position = 0
    while position is not None:
        current: Optional[Tag] = None
        depth = 0
        resume = None
        for tag in iter_tags(text, position):
            if current is None:
                if tag.name not in names or tag.closing:
                    continue
                if tag.self_closing:
                    if tag.name in may_self_close:
                        found.append(Element(tag.name, tag.start, tag.end, tag))
                    continue
                current = tag
                depth = 1
                continue
            if tag.name != current.name or tag.self_closing:
                continue
            depth += -1 if tag.closing else 1
            if depth == 0:
                found.append(Element(current.name, current.start, tag.end, current, tag))
                current = None
        if current is not None:
            logger.warning(
                f"Unclosed <{current.name}> at offset {current.start}"
                f"{' in ' + filename if filename else ''}; leaving it as text"
            )
            resume = current.end
        position = resume
    return found


def build_element_tree(text: str, void: Iterable[str] = ()) -> List[Element]:
    """
    Pair the tags of an HTML fragment into a tree of elements.

    Void and self-closing tags become childless elements. A closing tag
    without a matching opening tag is ignored; opening tags left unclosed
    are treated as void.

    Returns:
        Top-level elements in document order.
    """
    void = set(void)
    roots: List[Element] = []
    stack: List[Element] = []

    def attach(element):
        (stack[-1].children if stack else roots).append(element)

    for tag in iter_tags(text):
        lowered = tag.name.lower()
        if not tag.closing:
            element = Element(tag.name, tag.start, tag.end, tag)
            attach(element)
            if not tag.self_closing and lowered not in void:
                stack.append(element)
            continue
        for index in range(len(stack) - 1, -1, -1):
            if stack[index].name == tag.name:
                break
        else:
            continue
        # anything opened after the match never got closed
        for k in range(len(stack) - 1, index, -1):
            _flatten_into(stack[k], stack[k - 1].children)
        element = stack[index]
        element.close_tag = tag
        element.end = tag.end
        del stack[index:]
    for k in range(len(stack) - 1, -1, -1):
        _flatten_into(stack[k], stack[k - 1].children if k else roots)
    return roots


def _flatten_into(element: Element, siblings: List[Element]) -> None:
    """Turn an unclosed element into a void one, promoting its children."""
    index = next(i for i, sibling in enumerate(siblings) if sibling is element)
    siblings[index + 1:index + 1] = element.children
    element.children = []
    element.end = element.open_tag.end


def interpret_value(value: Any) -> Any:
    """
    Interpret an attribute value written as a literal.

    ``"true"``/``"false"`` become booleans, ``"null"``/``"undefined"`` None,
    numeric strings numbers; anything else is returned unchanged.
    """
    if not isinstance(value, str):
        return value
    stripped = value.strip()
    if stripped == "true":
        return True
    if stripped == "false":
        return False
    if stripped in ("null", "undefined"):
        return None
    if stripped in ("Infinity", "+Infinity"):
        return float("inf")
    if stripped == "-Infinity":
        return float("-inf")
    if stripped == "NaN":
        return float("nan")
    if _NUMBER_RE.match(stripped):
        return float(stripped) if "." in stripped else int(stripped)
    return value


_ATTRIBUTE_RE = re.compile(
    r"""(?P<name>[A-Za-z()\[\]@:$.?#][A-Za-z0-9()\[\]_:\-#]*)"""
    r"""(?:\s*=\s*(?P<value>'[^']*'|"[^"]*"|\{[^}]*\}|[^\s"'=<>`]+))?"""
)


def parse_attributes(attributes: str) -> Dict[str, Any]:
    """
    Parse an attribute string into a dict of interpreted values.

    Names are lowercased. A bare attribute maps to True. Values wrapped in
    braces are interpreted without the braces.
    """
    parsed: Dict[str, Any] = {}
    for match in _ATTRIBUTE_RE.finditer(attributes or ""):
        name = match.group("name").lower()
        value = match.group("value")
        if value is None:
            parsed[name] = True
            continue
        if value[0] in "\"'{":
            value = value[1:-1]
        parsed[name] = interpret_value(value)
    return parsed
