# texdown/markdown/preprocessors/__init__.py

from .attribute_mustache import escape_attribute_mustaches
from .html_spacing import adjust_html_spacing
from .tag_marker import mark_special_tags

PREPROCESSORS = [
    escape_attribute_mustaches,  # Hide {expressions} in attributes from the markdown engine
    mark_special_tags,  # Make CommonMark type 6 block tags look like unknown tags
    adjust_html_spacing,  # Must run after tag marking so marked names still classify
    # Order matters - they run sequentially
]


def apply_preprocessors(text, context):
    """Apply all preprocessors in order"""
    for processor in PREPROCESSORS:
        text = processor(text, context)
    return text
