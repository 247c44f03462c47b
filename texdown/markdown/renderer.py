# texdown/markdown/renderer.py
"""
Markdown pass over the escaped document.

Backends:
- none: the text is returned as is
- markdown-it: markdown-it-py, CommonMark preset
- python-markdown: Python-Markdown
- pandoc: pypandoc (needs a pandoc binary)
- custom: a user callable ``(markdown, options) -> html``, sync or async

Unless ``strict`` is set, the HTML spacing preprocessors run before the
backend and the paragraph repair postprocessors after it.
"""

import logging
from typing import Callable, Optional

import markdown as python_markdown
import pypandoc
from markdown_it import MarkdownIt

from ..errors import ConfigurationError
from ..handlers.base import call_maybe_async
from .config import get_markdown_it_config, get_pandoc_config, get_python_markdown_config
from .extensions.indented_code import DisableIndentedCodeExtension
from .postprocessors import apply_postprocessors
from .preprocessors import apply_preprocessors

logger = logging.getLogger(__name__)

MARKDOWN_BACKENDS = ("none", "markdown-it", "python-markdown", "pandoc", "custom")


def _markdown_it_renderer(configuration: dict) -> Callable[[str], str]:
    config = get_markdown_it_config()
    md = MarkdownIt(config["preset"], {**config["options"], **(configuration.get("options") or {})})
    md.disable(config["disable"], ignoreInvalid=True)
    for extension in configuration.get("extensions") or []:
        if isinstance(extension, (list, tuple)):
            md.use(extension[0], *extension[1:])
        else:
            md.use(extension)
    return md.render


def _python_markdown_renderer(configuration: dict) -> Callable[[str], str]:
    config = get_python_markdown_config()
    options = dict(configuration.get("options") or {})
    output_format = options.pop("output_format", config["output_format"])
    extensions = [DisableIndentedCodeExtension(), *(configuration.get("extensions") or [])]

    def render(text: str) -> str:
        # Markdown instances keep state between conversions
        md = python_markdown.Markdown(extensions=extensions, output_format=output_format, **options)
        return md.convert(text)

    return render


def _pandoc_renderer(configuration: dict) -> Callable[[str], str]:
    try:
        version = pypandoc.get_pandoc_version()
    except OSError as e:
        raise ConfigurationError(f"pandoc backend selected but pandoc is not available: {e}") from e
    logger.debug(f"Using pandoc {version}")
    pandoc_config = get_pandoc_config()
    extra_args = pandoc_config["extra_args"] + list(configuration.get("extra_args") or [])

    def render(text: str) -> str:
        return pypandoc.convert_text(
            text,
            to="html5",
            format=pandoc_config["format"],
            extra_args=extra_args,
            filters=configuration.get("filters") or [],
        )

    return render


class MarkdownHandler:
    """
    Runs the markdown backend with the HTML spacing passes around it.

    Use ``MarkdownHandler.create`` rather than instantiating directly.
    """

    def __init__(self, backend: str, render: Callable, configuration: Optional[dict] = None):
        self.backend = backend
        self.render = render
        self.configuration = configuration or {}

    @classmethod
    def create(cls, backend: str = "none", configuration: Optional[dict] = None) -> "MarkdownHandler":
        """
        Build a handler for ``backend``.

        Raises:
            ConfigurationError: unknown backend, missing pandoc binary, or a
                custom backend without a ``process`` callable
        """
        configuration = configuration or {}
        if backend == "none":
            return cls(backend, lambda text: text, configuration)
        if backend == "markdown-it":
            return cls(backend, _markdown_it_renderer(configuration), configuration)
        if backend == "python-markdown":
            return cls(backend, _python_markdown_renderer(configuration), configuration)
        if backend == "pandoc":
            return cls(backend, _pandoc_renderer(configuration), configuration)
        if backend == "custom":
            process = configuration.get("process")
            if not callable(process):
                raise ConfigurationError("custom markdown backend requires a callable 'process'")
            return cls(backend, process, configuration)
        raise ConfigurationError(f"Unknown markdown backend: {backend!r}. Expected one of {MARKDOWN_BACKENDS}")

    def _context(self, filename: Optional[str]) -> dict:
        return {
            "filename": filename,
            "components": self.configuration.get("components") or [],
            "prefers_inline": self.configuration.get("prefers_inline"),
        }

    async def process(self, text: str, filename: Optional[str] = None) -> str:
        """
        Render ``text``.

        Args:
            text: Escaped document
            filename: Used for diagnostics and passed to custom backends

        Returns:
            HTML with paragraph wrapping repaired
        """
        strict = bool(self.configuration.get("strict"))
        context = self._context(filename)
        if not strict:
            text = apply_preprocessors(text, context)
        if self.backend == "custom":
            html = await call_maybe_async(self.render, text, {"filename": filename})
        elif self.backend == "pandoc":
            html = await call_maybe_async(self.render, text, in_thread=True)
        else:
            html = self.render(text)
        if not strict:
            html = apply_postprocessors(html, context)
        return html
