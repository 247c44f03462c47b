# texdown/handlers/base.py
"""
Common plumbing for processing handlers.

- backend callables may be sync or async
- user transformers run before and after the backend
- head lines, script lines and stylesheet writing
"""

import asyncio
import inspect
import logging
from pathlib import Path
from typing import Any, Callable, List, Optional

from ..markdown.transformers import apply_transformations

logger = logging.getLogger(__name__)


async def call_maybe_async(fn: Callable, *args, in_thread: bool = False, **kwargs) -> Any:
    """
    Call ``fn`` and await the result if it is awaitable.

    Synchronous callables run in a worker thread when ``in_thread`` is set,
    so slow external processes do not block other snippets.
    """
    if inspect.iscoroutinefunction(fn):
        return await fn(*args, **kwargs)
    if in_thread:
        result = await asyncio.to_thread(fn, *args, **kwargs)
    else:
        result = fn(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result


class Handler:
    """
    Base class for the code, math and verbatim handlers.

    Subclasses implement ``_process(content, options)``; ``process`` wraps it
    with the configured pre and post transformers.
    """

    backend: str = "none"

    def __init__(self, backend: str, configuration: Optional[dict] = None):
        self.backend = backend
        self.configuration = configuration or {}
        self._stylesheet_written = False

    @property
    def transformers(self) -> dict:
        return self.configuration.get("transformers") or {}

    async def process(self, content: str, options: Optional[dict] = None) -> str:
        options = dict(options or {})
        content = apply_transformations(content, options, self.transformers.get("pre"))
        output = await self._process(content, options)
        return apply_transformations(output, options, self.transformers.get("post"))

    async def _process(self, content: str, options: dict) -> str:
        raise NotImplementedError

    @property
    def head_lines(self) -> List[str]:
        """Lines for the document head once this handler produced output."""
        href = (self.configuration.get("stylesheet") or {}).get("href")
        if href and self.stylesheet_css():
            return [f'<link rel="stylesheet" href="{href}">']
        return []

    @property
    def script_lines(self) -> List[str]:
        return []

    def stylesheet_css(self) -> str:
        """CSS this backend needs, if any."""
        return (self.configuration.get("stylesheet") or {}).get("css") or ""

    def update_stylesheet(self) -> bool:
        """
        Write the backend's stylesheet to the configured path, at most once.

        Returns:
            True if the file was written by this call
        """
        if self._stylesheet_written:
            return False
        self._stylesheet_written = True
        path = (self.configuration.get("stylesheet") or {}).get("path")
        css = self.stylesheet_css()
        if not path or not css:
            return False
        target = Path(path)
        if target.exists() and target.read_text(encoding="utf-8") == css:
            logger.debug(f"Stylesheet {target} is up to date")
            return False
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(css, encoding="utf-8")
        logger.info(f"Wrote {self.backend} stylesheet to {target}")
        return True
