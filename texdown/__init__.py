# texdown/__init__.py
"""
texdown: markdown, code, math and verbatim environments inside component
templates.
"""

from .config import get_default_config, merge_configs
from .errors import ConfigurationError, PreprocessingError, SnippetProcessingError, TexdownError
from .preprocessor import Preprocessor, Processed, create_preprocessor

__version__ = "0.1.0"

__all__ = [
    "ConfigurationError",
    "PreprocessingError",
    "Preprocessor",
    "Processed",
    "SnippetProcessingError",
    "TexdownError",
    "create_preprocessor",
    "get_default_config",
    "merge_configs",
]
