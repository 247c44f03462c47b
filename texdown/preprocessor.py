# texdown/preprocessor.py
"""
Entry point used by the host build tool.

``create_preprocessor`` validates the configuration and builds the handlers
once; the returned ``Preprocessor`` then exposes:

- ``markup``: turns a hybrid document into a valid component template
- ``script``: appends generated lines (frontmatter constants, metadata,
  component imports) to the document's script blocks
"""

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional

from .config import diagnose_configuration, get_default_config, merge_configs
from .context import DocumentContext, SideChannelStore
from .errors import PreprocessingError, SnippetProcessingError, TexdownError
from .escape import (
    Segmenter,
    ensure_script_blocks,
    inject_head_lines,
    prepend_head_block,
    strip_markers,
    unescape_snippets,
)
from .handlers import CodeHandler, MathHandler, VerbatimHandler, dispatch_snippets
from .markdown.renderer import MarkdownHandler
from .markdown.transformers import apply_transformations

logger = logging.getLogger(__name__)

_COMPONENT_NAME_RE = re.compile(r"[A-Z][0-9_a-zA-Z]*")


@dataclass
class Processed:
    code: str
    dependencies: List[str] = field(default_factory=list)


def is_imported(script: str, name: str) -> bool:
    pattern = rf"^\s*import\s*(?:\s{re.escape(name)}\s|\{{\s*default as {re.escape(name)}\s*\}})\s*from\s*['\"]"
    return bool(re.search(pattern, script, re.MULTILINE))


def is_used(markup: str, name: str) -> bool:
    return bool(re.search(rf"<\s*{re.escape(name)}(\s[^>]*?)?\s*/?>", markup))


def detect_and_import_components(markup: str, components: List[dict], script: str, appended: List[str]) -> List[str]:
    """
    Import lines for configured components that ``markup`` uses but the
    script does not import yet.

    Only components with a capitalised ``name`` and an ``import_path`` are
    considered. The script's own content is removed from ``markup`` before
    looking for usages.

    Args:
        markup: The processed document
        components: ``markdown.components`` from the configuration
        script: Content of the script block
        appended: Lines already queued for the script block

    Returns:
        ``import Name from 'path';`` lines
    """
    lines = []
    full_script = "\n".join([script, *appended])
    body = markup.replace(script, "") if script else markup
    for component in components:
        name = component.get("name")
        path = component.get("import_path")
        if not name or not path or not _COMPONENT_NAME_RE.search(name):
            continue
        if is_imported(full_script, name) or not is_used(body, name):
            continue
        lines.append(f"import {name} from '{path}';")
    return lines


class Preprocessor:
    """
    Holds the handlers, the segmenter and the per-document side channel.

    Use ``create_preprocessor`` rather than instantiating directly.
    """

    def __init__(
        self,
        configuration: dict,
        markdown_handler: MarkdownHandler,
        code_handler: CodeHandler,
        math_handler: MathHandler,
        verbatim_handler: VerbatimHandler,
    ):
        self.configuration = configuration
        self.markdown_handler = markdown_handler
        self.code_handler = code_handler
        self.math_handler = math_handler
        self.verbatim_handler = verbatim_handler
        self.store = SideChannelStore()
        markdown_config = configuration.get("markdown") or {}
        self.segmenter = Segmenter(
            verbatim_tags=verbatim_handler.tags,
            inline_verbatim=verbatim_handler.inline_environments,
            math_delims=(configuration.get("math") or {}).get("delims"),
            directives=markdown_config.get("directives"),
        )

    @property
    def handlers(self) -> Dict[str, object]:
        return {"code": self.code_handler, "math": self.math_handler, "verbatim": self.verbatim_handler}

    @property
    def dependencies(self) -> List[str]:
        return list(self.configuration.get("dependencies") or [])

    def handles(self, filename: Optional[str]) -> bool:
        """Whether ``filename`` ends with one of the configured extensions."""
        if not filename:
            return False
        return any(filename.endswith(ext) for ext in self.configuration.get("extensions") or ())

    async def markup(self, content: str, filename: Optional[str] = None) -> Optional[Processed]:
        """
        Preprocess one document.

        Args:
            content: The hybrid document
            filename: Used to decide whether the document is ours, and as the
                key for the script phase

        Returns:
            Processed code, or None if ``filename`` has no configured extension

        Raises:
            PreprocessingError: if any part of the document fails
        """
        if not self.handles(filename):
            return None
        context = self.store.open(filename)
        try:
            code = await self._markup(content, filename, context)
        except SnippetProcessingError as e:
            self.store.discard(filename)
            raise PreprocessingError(str(e), filename) from e
        except TexdownError:
            self.store.discard(filename)
            raise
        except Exception as e:
            self.store.discard(filename)
            logger.error(f"Preprocessing {filename} failed: {e}", exc_info=True)
            raise PreprocessingError(f"Preprocessing {filename} failed: {e}", filename) from e
        return Processed(code, self.dependencies)

    async def _markup(self, content: str, filename: Optional[str], context: DocumentContext) -> str:
        escaped = self.segmenter.escape(content, filename)
        await dispatch_snippets(escaped.table, self.handlers, context)

        frontmatter = context.frontmatter or {}
        transformers = self.markdown_handler.configuration.get("transformers") or {}
        html = apply_transformations(escaped.escaped_document, frontmatter, transformers.get("pre"))
        html = await self.markdown_handler.process(html, filename)
        html = apply_transformations(html, {**frontmatter, "original": content}, transformers.get("post"))

        processed = escaped.table.processed()
        if context.head_token is not None:
            head = processed[context.head_token]
            processed[context.head_token] = replace(
                head, processed=inject_head_lines(head.processed, context.head_lines)
            )

        code = unescape_snippets(html, processed)
        code = strip_markers(code, escaped.marker)
        code = ensure_script_blocks(code, context.has_instance_script, context.has_module_script)
        if context.head_token is None:
            code = prepend_head_block(code, context.head_lines)
        return code

    def script(
        self,
        content: str,
        attributes: Optional[dict] = None,
        filename: Optional[str] = None,
        markup: Optional[str] = None,
    ) -> Optional[Processed]:
        """
        Append generated lines to a script block of a processed document.

        Module scripts (``context="module"``) receive the frontmatter
        metadata export; instance scripts receive math and code script lines,
        frontmatter constants and imports, and imports for used components.

        Returns:
            Processed code, or None if there is nothing to append
        """
        if not self.handles(filename):
            return None
        attributes = attributes or {}
        module = attributes.get("context") == "module" or bool(attributes.get("module"))
        context = self.store.consume(filename, "module" if module else "instance")
        lines: List[str] = []

        if module:
            if context is not None and context.script_module_lines:
                lines.extend(context.script_module_lines)
            else:
                lines.append("export const metadata = undefined;")
        else:
            if context is not None:
                if context.math_present:
                    lines.extend(self.math_handler.script_lines)
                if context.code_present:
                    lines.extend(self.code_handler.script_lines)
                lines.extend(context.script_lines)
            components = (self.configuration.get("markdown") or {}).get("components") or []
            lines.extend(detect_and_import_components(markup or "", components, content, lines))

        if not lines:
            return None
        appended = "\n".join(lines)
        lang = str(attributes.get("lang") or "js").lower()
        if lang in ("coffee", "coffeescript"):
            appended = "\n```\n" + appended + "\n```\n"
        else:
            appended = "\n" + appended + "\n"
        return Processed(content + appended, self.dependencies)


def create_preprocessor(
    markdown_backend: str = "none",
    code_backend: str = "escape",
    math_backend: str = "mathjax",
    configuration: Optional[dict] = None,
) -> Preprocessor:
    """
    Validate the backend choices and configuration and build a preprocessor.

    Args:
        markdown_backend: ``none``, ``markdown-it``, ``python-markdown``,
            ``pandoc`` or ``custom``
        code_backend: ``escape``, ``pygments``, ``custom`` or ``none``
        math_backend: ``mathjax``, ``custom`` or ``none``
        configuration: Merged over ``get_default_config()``

    Raises:
        ConfigurationError: on any invalid choice or setting
    """
    config = merge_configs(get_default_config(), configuration)
    diagnose_configuration(markdown_backend, code_backend, math_backend, config)

    markdown_handler = MarkdownHandler.create(markdown_backend, config["markdown"])
    code_handler = CodeHandler(code_backend, config["code"])
    math_handler = MathHandler(math_backend, config["math"])
    verbatim_handler = VerbatimHandler(config["verbatim"], code_handler)
    logger.info(f"Created preprocessor ({markdown_backend}, {code_backend}, {math_backend})")
    return Preprocessor(config, markdown_handler, code_handler, math_handler, verbatim_handler)
