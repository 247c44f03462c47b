# texdown/markdown/postprocessors/paragraphs.py
"""
Postprocessors that repair paragraph wrapping after markdown rendering.

- unwrap ``<p>`` around a lone element that may not sit in a paragraph
- drop ``<p>`` inside elements that may not contain paragraphs
- unwrap paragraphs that contain block-level tags
- remove paragraphs left empty by the above
"""

import logging
import re
from typing import List

from ...escape.placeholders import generate_id
from ..tags import (
    TAGS_THAT_CANNOT_BE_IN_PARAGRAPHS,
    TAGS_THAT_CANNOT_CONTAIN_PARAGRAPHS,
    can_be_in_paragraph,
    can_be_only_thing_in_paragraph,
    can_contain_paragraph,
)
from .sanitizer import sanitize_html

logger = logging.getLogger(__name__)

_SELF_CLOSING_RE = re.compile(r"<\s*[a-zA-Z][-.:0-9_a-zA-Z]*(?:\s+[^>]*?)?\s*/>")
_EMPTY_ATTRIBUTE_TAG_RE = re.compile(r"<\s*[a-zA-Z][-.:0-9_a-zA-Z]*(?:\s+[^>]*?(?:\"\"|'')[^>]*?)\s*>")
_EMPTY_QUOTES_RE = re.compile(r"([\"'])\1")
_PARAGRAPH_RE = re.compile(r"<p>(.*?)</p>", re.DOTALL)
_EMPTY_PARAGRAPH_RE = re.compile(r"<p>\s*</p>", re.DOTALL)
_PARAGRAPH_TAG_RE = re.compile(r"<p>|</p>")

# Lets paragraphs nest four levels deep inside a matched element
_INNER = r"(?:[^<]|<(?!/?p[>\s])|<p>" * 4 + r"</p>)*?" * 4


def _alternation(names: List[str]) -> str:
    return "|".join(re.escape(name) for name in sorted(set(names), key=len, reverse=True))


def _component_names(context: dict, predicate) -> List[str]:
    components = context.get("components") or []
    return [c["name"] for c in components if c.get("name") and not predicate(c["name"], components)]


def unwrap_single_blocks(html: str, context: dict) -> str:
    """
    Remove ``<p>`` around an element that is the only thing in the paragraph
    and may not be in one. Capitalised names are treated as components.
    """
    components = context.get("components") or []
    names = list(TAGS_THAT_CANNOT_BE_IN_PARAGRAPHS) + _component_names(context, can_be_in_paragraph)
    pattern = re.compile(
        r"<p>\s*(<\s*(" + _alternation(names) + r"|[A-Z][-.:0-9_a-zA-Z]*)"
        r"(?:\s[^>]*?|\s*)(?:/>|>(?:(?!</?p[>\s]).)*?</\s*(?:\2)\s*>))\s*</p>",
        re.DOTALL,
    )

    def replace(match):
        if can_be_only_thing_in_paragraph(match.group(2), components):
            return match.group(0)
        return match.group(1)

    return pattern.sub(replace, html)


def _strip_inner_paragraphs(match) -> str:
    element = match.group(0)

    def replace(tag):
        if tag.group(0) == "<p>" and tag.start() == 0:
            return tag.group(0)
        if tag.group(0) == "</p>" and tag.end() == len(element):
            return tag.group(0)
        return ""

    return _PARAGRAPH_TAG_RE.sub(replace, element)


def remove_bad_paragraphs(html: str, context: dict) -> str:
    """
    Remove paragraph tags the markdown engine put where HTML does not allow
    them, then let the sanitizer balance what is left.

    Self-closing tags and empty attribute values are hidden behind tokens
    first, since the HTML parser would rewrite them.
    """
    escaped = {}

    def escape(match):
        token = generate_id()
        escaped[token] = match.group(0)
        return token

    html = _SELF_CLOSING_RE.sub(escape, html)

    empty = generate_id()
    escaped[empty] = ""
    html = _EMPTY_ATTRIBUTE_TAG_RE.sub(
        lambda m: _EMPTY_QUOTES_RE.sub(lambda q: q.group(1) + empty + q.group(1), m.group(0)),
        html,
    )

    cannot_contain = list(TAGS_THAT_CANNOT_CONTAIN_PARAGRAPHS) + _component_names(context, can_contain_paragraph)
    cannot_contain_re = re.compile(
        r"<\s*(" + _alternation(cannot_contain) + r")(?:\s+[^>]*?)?\s*>(" + _INNER + r")</\s*\1\s*>",
        re.DOTALL | re.MULTILINE,
    )
    html = cannot_contain_re.sub(_strip_inner_paragraphs, html)

    cannot_be_in = list(TAGS_THAT_CANNOT_BE_IN_PARAGRAPHS) + _component_names(context, can_be_in_paragraph)
    cannot_be_in_re = re.compile(r"</?\s*(" + _alternation(cannot_be_in) + r")(?:\s+[^>]*?)?\s*/?>")
    html = _PARAGRAPH_RE.sub(
        lambda m: m.group(1) if cannot_be_in_re.search(m.group(1)) else m.group(0),
        html,
    )

    html = sanitize_html(html, context)
    html = _EMPTY_PARAGRAPH_RE.sub("", html)

    for token, original in escaped.items():
        html = html.replace(token, original)
    return html
