# texdown/handlers/code.py
"""
Code handler: turns fenced code blocks and code spans into HTML.

Backends:
- escape: ``<pre><code>`` with HTML special characters and braces escaped
- pygments: syntax highlighting with Pygments, plus a stylesheet
- custom: a user callable ``(code, options) -> html``
- none: the code is returned untouched
"""

import html
import logging
from functools import lru_cache
from typing import Optional

from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .base import Handler, call_maybe_async

logger = logging.getLogger(__name__)

CODE_BACKENDS = ("escape", "pygments", "custom", "none")


def escape_braces(text: str) -> str:
    """Escape braces so the template language leaves them alone."""
    return text.replace("{", "&lbrace;").replace("}", "&rbrace;")


def escape_code(text: str) -> str:
    return escape_braces(html.escape(text, quote=False))


@lru_cache(maxsize=8)
def _formatter(style: str) -> HtmlFormatter:
    return HtmlFormatter(style=style, nowrap=True)


def _language_class(lang: Optional[str]) -> str:
    return f' class="language-{html.escape(lang)}"' if lang else ""


class CodeHandler(Handler):
    def __init__(self, backend: str = "escape", configuration: Optional[dict] = None):
        super().__init__(backend, configuration)
        self.style = self.configuration.get("style") or "default"

    async def _process(self, content: str, options: dict) -> str:
        inline = bool(options.get("inline"))
        lang = options.get("lang")
        if self.backend == "none":
            return content
        if self.backend == "custom":
            return await call_maybe_async(self.configuration["process"], content, options)
        if self.backend == "pygments":
            body = self._highlight(content, lang)
            if inline:
                return f'<code class="highlight">{body}</code>'
            return f'<pre class="highlight"><code{_language_class(lang)}>{body}</code></pre>'
        body = escape_code(content)
        if inline:
            return f"<code>{body}</code>"
        return f"<pre><code{_language_class(lang)}>{body}\n</code></pre>"

    def _highlight(self, content: str, lang: Optional[str]) -> str:
        if not lang:
            return escape_code(content)
        try:
            lexer = get_lexer_by_name(lang)
        except ClassNotFound:
            logger.warning(f"No Pygments lexer for language {lang!r}; escaping instead")
            return escape_code(content)
        return escape_braces(highlight(content, lexer, _formatter(self.style)))

    def stylesheet_css(self) -> str:
        if self.backend == "pygments":
            return _formatter(self.style).get_style_defs(".highlight")
        return super().stylesheet_css()
