# texdown/escape/template.py
"""
What texdown needs to know about the component-template language.

- elements that belong to the template and never to markdown
- control-flow and special brace tags (``{#if}``, ``{:else}``, ``{@const}``)
- how instance and module script blocks and the head block are spelled
"""

import re

HEAD_TAG = "svelte:head"

# Elements that must be protected from markdown as a whole.
STRUCTURAL_ELEMENTS = (
    "script",
    "style",
    HEAD_TAG,
    "svelte:window",
    "svelte:document",
    "svelte:body",
    "svelte:options",
)

# Of those, the ones that are usually written self-closing.
SELF_CLOSING_ELEMENTS = (
    "svelte:window",
    "svelte:document",
    "svelte:body",
    "svelte:options",
)

MODULE_SCRIPT_OPEN = '<script context="module">'
INSTANCE_SCRIPT_OPEN = "<script>"
SCRIPT_CLOSE = "</script>"

LOGIC_BLOCK_RE = re.compile(r"^\{\s*(?:[#/](?:if|each|await|key|snippet)\b|:(?:else|then|catch)\b|@(?!html\b)\w+)")

_MODULE_ATTRIBUTE_RE = re.compile(r"""(?:^|\s)(?:context\s*=\s*["']?module["']?|module)(?=\s|$|/)""")

# Characters valid in a tag name for the template language but not for
# CommonMark, which only allows [A-Za-z][A-Za-z0-9-]*.
_NAMESPACED_TAG_RE = re.compile(r"(</?)([A-Za-z][-A-Za-z0-9]*)([:.][-.:A-Za-z0-9_]*)(?=[\s/>])")


def is_logic_block(expression: str) -> bool:
    """Whether a brace expression is a control-flow or special tag."""
    return bool(LOGIC_BLOCK_RE.match(expression))


def is_module_script(attributes: str) -> bool:
    """Whether a script's attribute string marks the module context."""
    return bool(_MODULE_ATTRIBUTE_RE.search(attributes or ""))


def escape_tag_name_separators(text: str, marker: str) -> str:
    """
    Replace ``:`` and ``.`` in namespaced tag names with ``marker`` so
    markdown engines accept ``<svelte:element>`` as raw HTML.
    """

    def replace(match):
        rest = match.group(3).replace(":", marker + "c").replace(".", marker + "d")
        return match.group(1) + match.group(2) + rest

    return _NAMESPACED_TAG_RE.sub(replace, text)


def unescape_tag_name_separators(text: str, marker: str) -> str:
    return text.replace(marker + "c", ":").replace(marker + "d", ".")
