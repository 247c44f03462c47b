# texdown/markdown/preprocessors/tag_marker.py
"""
Preprocessor that marks CommonMark "type 6" block tags.

Markdown engines end a type 6 HTML block at the first blank line and treat
everything after it as markdown, but they handle other tags differently.
Appending a marker to the tag name (``<div>`` → ``<div{marker}>``) makes
every tag look like an unknown one, so all tags are treated alike. The
marker is stripped again after rendering.
"""

import re

from ...escape.placeholders import generate_id
from ..tags import SPECIALS

_SPECIALS_RE = re.compile(
    r"<(/?)\s*(" + "|".join(sorted(SPECIALS, key=len, reverse=True)) + r")(?=(?:\s[^>]*?)?\s*/?>)",
    re.IGNORECASE | re.DOTALL,
)


def mark_special_tags(text: str, context: dict) -> str:
    """
    Append ``context["tag_marker"]`` to the names of special tags.

    Args:
        text: Markdown text with raw HTML
        context: Processing context; ``tag_marker`` is created if missing

    Returns:
        Text with special tag names marked
    """
    marker = context.setdefault("tag_marker", generate_id())
    return _SPECIALS_RE.sub(lambda m: f"<{m.group(1)}{m.group(2)}{marker}", text)


def strip_tag_marker(html: str, context: dict) -> str:
    marker = context.get("tag_marker")
    return html.replace(marker, "") if marker else html
