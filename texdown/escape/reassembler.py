# texdown/escape/reassembler.py
"""
Put processed snippets back into the rendered host text.

- unescape_snippets: token → processed output, dropping the ``<p>`` the
  markdown engine wrapped around a lone block-level token
- inject_head_lines / prepend_head_block: head content into the head block,
  or into a new one
- ensure_script_blocks: empty instance and module scripts when absent
"""

import logging
import re
from typing import Dict, List

from . import template
from .placeholders import ProcessedSnippet

logger = logging.getLogger(__name__)


def unescape_snippets(html: str, processed: Dict[str, ProcessedSnippet]) -> str:
    """
    Replace every token in ``html`` with its processed snippet.

    A token that is the only content of a paragraph (whitespace aside) loses
    the paragraph when its snippet asks for it.
    """
    if not processed:
        return html
    keys = "|".join(re.escape(token) for token in processed)
    pattern = re.compile(rf"(?:(<p>\s*)({keys})(\s*</p>))|({keys})")

    def replace(match):
        token = match.group(2) or match.group(4)
        snippet = processed[token]
        if match.group(2) and not snippet.remove_paragraph_tag:
            return match.group(1) + snippet.processed + match.group(3)
        return snippet.processed

    return pattern.sub(replace, html)


def inject_head_lines(head_block: str, head_lines: List[str]) -> str:
    """Insert ``head_lines`` just before the closing tag of ``head_block``."""
    if not head_lines:
        return head_block
    close = f"</{template.HEAD_TAG}>"
    index = head_block.rfind(close)
    if index < 0:
        return head_block
    return head_block[:index] + "\n".join(head_lines) + "\n" + head_block[index:]


def prepend_head_block(html: str, head_lines: List[str]) -> str:
    """Prepend a new head block holding ``head_lines``."""
    if not head_lines:
        return html
    logger.debug("No head block found; creating one")
    content = "\n".join(head_lines)
    return f"<{template.HEAD_TAG}>\n{content}\n</{template.HEAD_TAG}>\n" + html


def ensure_script_blocks(html: str, has_instance: bool, has_module: bool) -> str:
    """Prepend empty module and instance script blocks that are missing."""
    prefix = ""
    if not has_module:
        prefix += f"{template.MODULE_SCRIPT_OPEN}\n{template.SCRIPT_CLOSE}\n"
    if not has_instance:
        prefix += f"{template.INSTANCE_SCRIPT_OPEN}\n{template.SCRIPT_CLOSE}\n"
    return prefix + html


def strip_markers(html: str, marker: str) -> str:
    """Undo the tag-name separator escaping done while segmenting."""
    return template.unescape_tag_name_separators(html, marker)
