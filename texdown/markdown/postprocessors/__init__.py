# texdown/markdown/postprocessors/__init__.py

from ..preprocessors.attribute_mustache import restore_attribute_mustaches
from ..preprocessors.tag_marker import strip_tag_marker
from .paragraphs import remove_bad_paragraphs, unwrap_single_blocks

POSTPROCESSORS = [
    unwrap_single_blocks,  # Must run while special tags still carry the marker
    strip_tag_marker,
    remove_bad_paragraphs,  # Balances <p> tags with bleach
    restore_attribute_mustaches,
    # Order matters - they run sequentially
]


def apply_postprocessors(html, context):
    """Apply all postprocessors in order"""
    for processor in POSTPROCESSORS:
        html = processor(html, context)
    return html
