# texdown/markdown/postprocessors/sanitizer.py
"""
Balance paragraph tags with bleach.

Nothing is stripped: every tag and attribute in the document is allowed.
Before parsing, tag names, attribute strings and void or self-closing tags
are swapped for lowercase tokens so the HTML parser keeps names, case,
attribute quoting and raw-text elements exactly as written. Only ``<p>`` is
left for the parser to open and close.
"""

import logging
import re
from functools import lru_cache

import bleach

from ...escape.placeholders import generate_id
from ..tags import VOID_ELEMENTS

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<(/?)\s*([A-Za-z][-.:0-9_A-Za-z]*)((?:\s[^>]*?)?)\s*(/?)>", re.DOTALL)
_ATTRIBUTE_TOKEN_RE = re.compile(r"\s(id[0-9a-f]{32})(?:=\"\"|='')?")


@lru_cache(maxsize=1)
def _get_bleach_config():
    """Cache bleach configuration for better performance."""
    return {
        "attributes": lambda tag, name, value: True,
        "protocols": list(bleach.sanitizer.ALLOWED_PROTOCOLS) + ["tel", "data"],
        "strip": False,
        "strip_comments": False,
    }


def _tokenize(html: str):
    names = {}
    escaped = {}
    attributes = {}

    def replace(match):
        closing, name, attrs, self_closing = match.groups()
        if self_closing or name.lower() in VOID_ELEMENTS:
            token = generate_id()
            escaped[token] = match.group(0)
            return token
        if name != "p" and name not in names:
            names[name] = generate_id()
        attribute_token = ""
        if attrs.strip() and not closing:
            attribute_token = generate_id()
            attributes[attribute_token] = attrs
            attribute_token = " " + attribute_token
        return f"<{closing}{names.get(name, name)}{attribute_token}>"

    return _TAG_RE.sub(replace, html), names, escaped, attributes


def _restore(html: str, names: dict, escaped: dict, attributes: dict) -> str:
    html = _ATTRIBUTE_TOKEN_RE.sub(lambda m: attributes.get(m.group(1), m.group(0)), html)
    for name, token in names.items():
        html = html.replace(token, name)
    for token, original in escaped.items():
        html = html.replace(token, original)
    return html


def sanitize_html(html, context):
    """
    Let bleach's HTML5 parser close and drop ``<p>`` tags the way a browser
    would, leaving the rest of the markup untouched.
    """
    options = _get_bleach_config()
    tokenized, names, escaped, attributes = _tokenize(html)
    try:
        cleaned = bleach.clean(tokenized, tags={"p", *names.values()}, **options)
    except Exception as e:
        logger.error(f"Bleach sanitization failed: {e}", exc_info=True)
        return html
    return _restore(cleaned, names, escaped, attributes)
