# texdown/markdown/tags.py
"""
HTML tag classification used to repair paragraph wrapping.

- SPECIALS: tag names that open a CommonMark "type 6" HTML block
- which tags may contain paragraphs, and which may appear inside one
- user components can override the defaults through their ``type``
"""

from typing import Iterable, List, Optional

# https://spec.commonmark.org/0.31.2/#html-blocks
SPECIALS = (
    "address", "article", "aside", "base", "basefont", "blockquote", "body",
    "caption", "center", "col", "colgroup", "dd", "details", "dialog", "dir",
    "div", "dl", "dt", "fieldset", "figcaption", "figure", "footer", "form",
    "frame", "frameset", "h1", "h2", "h3", "h4", "h5", "h6", "head", "header",
    "hr", "html", "iframe", "legend", "li", "link", "main", "menu", "menuitem",
    "nav", "noframes", "ol", "optgroup", "option", "p", "param", "search",
    "section", "summary", "table", "tbody", "td", "tfoot", "th", "thead",
    "title", "tr", "track", "ul",
)

TAGS_THAT_CAN_CONTAIN_PARAGRAPHS = (
    "address", "article", "aside", "blockquote", "body", "caption", "center",
    "col", "colgroup", "dd", "details", "dialog", "dir", "div", "dl", "dt",
    "fieldset", "figcaption", "figure", "footer", "form", "header", "hr",
    "html", "iframe", "legend", "li", "link", "main", "menu", "menuitem",
    "nav", "ol", "optgroup", "option", "pre", "search", "section", "summary",
    "table", "tbody", "td", "tfoot", "th", "thead", "tr", "ul",
)

# Phrasing content, see
# https://developer.mozilla.org/en-US/docs/Web/HTML/Content_categories#phrasing_content
TAGS_THAT_CAN_BE_IN_PARAGRAPHS = (
    "a", "abbr", "area", "audio", "b", "bdi", "bdo", "br", "button", "canvas",
    "cite", "code", "data", "datalist", "del", "dfn", "em", "embed", "i",
    "iframe", "img", "input", "ins", "kbd", "label", "link", "map", "mark",
    "math", "meta", "meter", "noscript", "object", "output", "picture",
    "progress", "q", "ruby", "s", "samp", "script", "select", "slot", "small",
    "span", "strong", "sub", "sup", "svg", "template", "textarea", "time",
    "u", "var", "video", "wbr",
)

HTML_TAG_NAMES = (
    "a", "abbr", "acronym", "address", "applet", "area", "article", "aside",
    "audio", "b", "base", "basefont", "bdi", "bdo", "bgsound", "big", "blink",
    "blockquote", "body", "br", "button", "canvas", "caption", "center",
    "cite", "code", "col", "colgroup", "command", "content", "data",
    "datalist", "dd", "del", "details", "dfn", "dialog", "dir", "div", "dl",
    "dt", "element", "em", "embed", "fieldset", "figcaption", "figure",
    "font", "footer", "form", "frame", "frameset", "h1", "h2", "h3", "h4",
    "h5", "h6", "head", "header", "hgroup", "hr", "html", "i", "iframe",
    "image", "img", "input", "ins", "isindex", "kbd", "keygen", "label",
    "legend", "li", "link", "listing", "main", "map", "mark", "marquee",
    "math", "menu", "menuitem", "meta", "meter", "multicol", "nav", "nextid",
    "nobr", "noembed", "noframes", "noscript", "object", "ol", "optgroup",
    "option", "output", "p", "param", "picture", "plaintext", "pre",
    "progress", "q", "rb", "rbc", "rp", "rt", "rtc", "ruby", "s", "samp",
    "script", "search", "section", "select", "shadow", "slot", "small",
    "source", "spacer", "span", "strike", "strong", "style", "sub", "summary",
    "sup", "svg", "table", "tbody", "td", "template", "textarea", "tfoot",
    "th", "thead", "time", "title", "tr", "track", "tt", "u", "ul", "var",
    "video", "wbr", "xmp",
)

VOID_ELEMENTS = frozenset(
    {
        "area", "base", "basefont", "bgsound", "br", "col", "command", "embed",
        "frame", "hr", "image", "img", "input", "keygen", "link", "meta",
        "param", "source", "track", "wbr",
    }
)

COMPONENT_TYPES = ("default", "sectioning", "phrasing", "all", "none")

_HTML_TAGS = frozenset(HTML_TAG_NAMES)
_CAN_CONTAIN = frozenset(TAGS_THAT_CAN_CONTAIN_PARAGRAPHS)
_CAN_BE_IN = frozenset(TAGS_THAT_CAN_BE_IN_PARAGRAPHS)


def _component(tag: str, components: Optional[Iterable[dict]]) -> Optional[dict]:
    for component in components or ():
        if component.get("name") == tag:
            return component
    return None


def _component_type(component: dict) -> str:
    return component.get("type") or "default"


def can_contain_paragraph(tag: str, components: Optional[List[dict]] = None) -> bool:
    """
    Whether ``tag`` may contain ``<p>`` elements.

    Unknown tags are allowed to, so that custom elements keep their markdown.
    """
    component = _component(tag, components)
    if component is not None:
        return _component_type(component) in ("default", "sectioning", "all")
    if tag in _HTML_TAGS:
        return tag in _CAN_CONTAIN
    return True


def can_be_in_paragraph(tag: str, components: Optional[List[dict]] = None) -> bool:
    """Whether ``tag`` may appear inside a ``<p>`` element."""
    if tag in _CAN_BE_IN:
        return True
    component = _component(tag, components)
    if component is not None:
        return _component_type(component) in ("default", "phrasing", "all")
    return False


def can_be_only_thing_in_paragraph(tag: str, components: Optional[List[dict]] = None) -> bool:
    """Whether a paragraph holding nothing but ``tag`` should be left alone."""
    if tag in _CAN_BE_IN:
        return True
    component = _component(tag, components)
    if component is not None:
        return _component_type(component) in ("phrasing", "all")
    return False


def prefers_inline(tag: str, components: Optional[List[dict]] = None, default=None) -> bool:
    """
    Whether a single newline after an opening tag should be dropped rather
    than widened into a blank line.

    Args:
        tag: Tag name
        components: Configured components, checked first
        default: Callable ``(tag) -> bool`` or bool used otherwise

    Returns:
        True if the tag's content should stay inline
    """
    component = _component(tag, components)
    if component is not None and component.get("prefers_inline") is not None:
        return bool(component["prefers_inline"])
    if callable(default):
        return bool(default(tag))
    if default is None:
        return True
    return bool(default)


TAGS_THAT_CANNOT_BE_IN_PARAGRAPHS = tuple(t for t in HTML_TAG_NAMES if not can_be_in_paragraph(t))
TAGS_THAT_CANNOT_CONTAIN_PARAGRAPHS = tuple(t for t in HTML_TAG_NAMES if not can_contain_paragraph(t))
