# texdown/escape/__init__.py

from .placeholders import Padding, PlaceholderTable, ProcessedSnippet, Snippet, generate_id
from .reassembler import ensure_script_blocks, inject_head_lines, prepend_head_block, strip_markers, unescape_snippets
from .segmenter import EscapeResult, Segmenter, outermost_ranges

__all__ = [
    "EscapeResult",
    "Padding",
    "PlaceholderTable",
    "ProcessedSnippet",
    "Segmenter",
    "Snippet",
    "ensure_script_blocks",
    "generate_id",
    "inject_head_lines",
    "outermost_ranges",
    "prepend_head_block",
    "strip_markers",
    "unescape_snippets",
]
