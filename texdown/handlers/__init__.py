# texdown/handlers/__init__.py

from .code import CODE_BACKENDS, CodeHandler
from .dispatcher import dispatch_snippets
from .frontmatter import handle_frontmatter
from .math import MATH_BACKENDS, MathHandler
from .verbatim import VERBATIM_TYPES, VerbatimHandler

__all__ = [
    "CODE_BACKENDS",
    "CodeHandler",
    "MATH_BACKENDS",
    "MathHandler",
    "VERBATIM_TYPES",
    "VerbatimHandler",
    "dispatch_snippets",
    "handle_frontmatter",
]
