# texdown/handlers/verbatim.py
"""
Verbatim handler: content of user-declared environments such as
``<Verbatim>...</Verbatim>`` is never seen by markdown.

Environment types:
- escape: keep the wrapper tag, escape HTML and braces in the content
- noop: pass the whole element through untouched
- code: render the content with the code handler
- custom: a user callable ``(content, options) -> html``; synchronous
  callables run in a worker thread, which is how external typesetting
  (e.g. compiled TeX graphics) plugs in
"""

import html
import logging
from typing import Dict, List, Optional

from ..markdown.transformers import apply_transformations
from .base import Handler, call_maybe_async
from .code import CodeHandler, escape_braces

logger = logging.getLogger(__name__)

VERBATIM_TYPES = ("escape", "noop", "code", "custom")


def render_attributes(attributes: dict) -> str:
    """Render interpreted attributes back to an attribute string."""
    parts = []
    for name, value in attributes.items():
        if value is None or value is False:
            continue
        if value is True:
            parts.append(name)
        else:
            parts.append(f'{name}="{html.escape(str(value))}"')
    return (" " + " ".join(parts)) if parts else ""


class VerbatimHandler(Handler):
    """
    Args:
        environments: Environment name to configuration dict
        code_handler: Used by environments of type ``code``
    """

    def __init__(self, environments: Optional[Dict[str, dict]] = None, code_handler: Optional[CodeHandler] = None):
        super().__init__("verbatim", {})
        self.environments = dict(environments or {})
        self.code_handler = code_handler or CodeHandler("escape")

    @property
    def tags(self) -> Dict[str, str]:
        """Every tag name, aliases included, mapped to its environment."""
        tags = {}
        for name, env in self.environments.items():
            tags[name] = name
            for alias in env.get("aliases") or ():
                tags[alias] = name
        return tags

    @property
    def inline_environments(self) -> List[str]:
        return [name for name, env in self.environments.items() if env.get("inline")]

    def _environment(self, options: dict) -> dict:
        name = options.get("env") or options.get("tag")
        if name not in self.environments:
            raise KeyError(f"Unknown verbatim environment: {name}")
        return self.environments[name]

    async def process(self, content: str, options: Optional[dict] = None) -> str:
        options = dict(options or {})
        transformers = self._environment(options).get("transformers") or {}
        content = apply_transformations(content, options, transformers.get("pre"))
        output = await self._process(content, options)
        return apply_transformations(output, options, transformers.get("post"))

    async def _process(self, content: str, options: dict) -> str:
        env = self._environment(options)
        kind = env.get("type", "escape")
        attributes = {**(env.get("attributes") or {}), **(options.get("attributes") or {})}
        attributes.pop("inline", None)
        if kind == "noop":
            return options.get("outer", content)
        if kind == "custom":
            return await call_maybe_async(
                env["process"], content, {**options, "attributes": attributes}, in_thread=True
            )
        if kind == "code":
            lang = attributes.get("lang") or env.get("lang")
            return await self.code_handler.process(
                content, {"inline": bool(options.get("inline")), "lang": lang, "meta": None}
            )
        escape = env.get("escape") or {}
        if escape.get("html", True):
            content = html.escape(content, quote=False)
        if escape.get("braces", True):
            content = escape_braces(content)
        component = env.get("component") or options.get("tag")
        if component == "none":
            return content
        return f"<{component}{render_attributes(attributes)}>{content}</{component}>"
