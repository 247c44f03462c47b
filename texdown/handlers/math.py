# texdown/handlers/math.py
"""
Math handler: inline and display TeX math.

Backends:
- mathjax: client-side markup (``<span class="math inline">\\(...\\)</span>``)
  plus the MathJax loader in the document head
- custom: a user callable ``(tex, options) -> html``
- none: the TeX source between ``\\(..\\)`` / ``\\[..\\]``, escaped
"""

import logging
from typing import List, Optional

from .base import Handler, call_maybe_async
from .code import escape_code

logger = logging.getLogger(__name__)

MATH_BACKENDS = ("mathjax", "custom", "none")

MATHJAX_CDN = "https://cdn.jsdelivr.net/npm/mathjax@3/es5"


class MathHandler(Handler):
    def __init__(self, backend: str = "mathjax", configuration: Optional[dict] = None):
        super().__init__(backend, configuration)
        self.mathjax = self.configuration.get("mathjax") or {}

    async def _process(self, content: str, options: dict) -> str:
        inline = options.get("inline", True)
        if self.backend == "custom":
            return await call_maybe_async(self.configuration["process"], content, options)
        body = escape_code(content)
        if inline:
            tex = f"\\({body}\\)"
        else:
            tex = f"\\[{body}\\]"
        if self.backend == "none":
            return tex
        mode = "inline" if inline else "display"
        return f'<span class="math {mode}">{tex}</span>'

    @property
    def head_lines(self) -> List[str]:
        lines = super().head_lines
        if self.backend == "mathjax":
            output = self.mathjax.get("output", "chtml")
            src = self.mathjax.get("src") or f"{MATHJAX_CDN}/tex-{output}.js"
            lines.append(f'<script id="MathJax-script" async src="{src}"></script>')
        return lines
