# texdown/handlers/dispatcher.py
"""
Process every snippet of a document concurrently.

Each snippet goes to the handler for its kind; results are written back to
the placeholder table. A failing snippet does not stop the others: its
exception is recorded and, once all snippets are done, reported together as
a ``SnippetProcessingError``.
"""

import asyncio
import logging
from typing import Dict

from ..context import DocumentContext
from ..errors import SnippetProcessingError
from ..escape import template
from ..escape.placeholders import PlaceholderTable, ProcessedSnippet, Snippet
from .base import Handler
from .frontmatter import handle_frontmatter

logger = logging.getLogger(__name__)


async def _process_snippet(token: str, snippet: Snippet, handlers: Dict[str, Handler], context: DocumentContext) -> str:
    kind = snippet.kind
    options = snippet.options
    if kind == "code":
        context.mark(code_present=True)
        return await handlers["code"].process(
            snippet.raw_inner,
            {"inline": options.get("inline", False), "lang": options.get("lang"), "meta": options.get("meta")},
        )
    if kind == "math":
        context.mark(math_present=True)
        return await handlers["math"].process(snippet.raw_inner, {"inline": options.get("inline", True)})
    if kind == "verbatim":
        return await handlers["verbatim"].process(
            snippet.raw_inner,
            {**options, "filename": context.filename, "outer": snippet.raw_outer},
        )
    if kind == "frontmatter":
        result = handle_frontmatter(snippet.raw_inner, options.get("type", "yaml"))
        context.mark(frontmatter=result.frontmatter)
        context.add_head_lines(result.head_lines)
        context.add_script_lines(result.script_lines)
        if result.script_module_lines:
            context.add_script_module_lines(result.script_module_lines)
        return ""
    if kind == "structural":
        tag = options.get("tag")
        if tag == template.HEAD_TAG:
            if not context.set_head_token(token):
                logger.warning(f"Multiple <{template.HEAD_TAG}> blocks found in {context.filename}")
        elif tag == "script":
            if template.is_module_script(options.get("attributes") or ""):
                context.mark(has_module_script=True)
            else:
                context.mark(has_instance_script=True)
        return snippet.raw_outer
    return snippet.raw_outer


async def dispatch_snippets(table: PlaceholderTable, handlers: Dict[str, Handler], context: DocumentContext) -> None:
    """
    Process all snippets in ``table`` and record the results in it.

    Args:
        table: Placeholder table from the segmenter
        handlers: ``code``, ``math`` and ``verbatim`` handlers
        context: Side-channel state of the document being processed

    Raises:
        SnippetProcessingError: if any snippet failed
    """
    entries = list(table.snippets())
    results = await asyncio.gather(
        *(_process_snippet(token, snippet, handlers, context) for token, snippet in entries),
        return_exceptions=True,
    )
    for (token, snippet), result in zip(entries, results):
        if isinstance(result, BaseException):
            logger.error(f"Failed to process {snippet.kind} snippet in {context.filename}: {result}")
            table.set_processed(token, ProcessedSnippet("", snippet.remove_paragraph_tag, error=result))
        else:
            table.set_processed(token, ProcessedSnippet(result, snippet.remove_paragraph_tag))

    for flag, name in (("math_present", "math"), ("code_present", "code")):
        if getattr(context, flag):
            handler = handlers[name]
            context.add_head_lines(handler.head_lines)
            handler.update_stylesheet()

    failures = table.failures()
    if failures:
        raise SnippetProcessingError(failures, context.filename)
