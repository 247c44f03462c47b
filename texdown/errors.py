# texdown/errors.py
"""
Exceptions raised by texdown.

- ``ConfigurationError`` is raised while building a preprocessor, before any
  document is touched.
- ``SnippetProcessingError`` collects every snippet that failed during one
  dispatch.
- ``PreprocessingError`` is what the host sees when a document fails.
"""


class TexdownError(Exception):
    """Base class for all texdown errors."""


class ConfigurationError(TexdownError):
    """Invalid backend choice, invalid configuration or missing dependency."""


class SnippetProcessingError(TexdownError):
    """One or more snippets of a document could not be processed."""

    def __init__(self, failures, filename=None):
        self.failures = list(failures)
        self.filename = filename
        kinds = ", ".join(sorted({snippet.kind for _, snippet, _ in self.failures}))
        where = f" in {filename}" if filename else ""
        super().__init__(f"{len(self.failures)} snippet(s) failed{where} ({kinds})")


class PreprocessingError(TexdownError):
    """A document could not be preprocessed."""

    def __init__(self, message, filename=None):
        self.filename = filename
        super().__init__(message)
