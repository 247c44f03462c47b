# texdown/config.py
"""
Default configuration, merging and validation.

User configuration is a nested dict merged over ``get_default_config()``:
dicts merge recursively, everything else (lists included) replaces the
default. ``diagnose_configuration`` checks the merged result and raises
``ConfigurationError`` on the first problem it finds.
"""

import copy
import logging
import re
from typing import Any, Optional

from .errors import ConfigurationError
from .escape import template
from .escape.segmenter import DEFAULT_MATH_DELIMS
from .handlers.code import CODE_BACKENDS
from .handlers.math import MATH_BACKENDS
from .handlers.verbatim import VERBATIM_TYPES
from .markdown.renderer import MARKDOWN_BACKENDS
from .markdown.tags import COMPONENT_TYPES

logger = logging.getLogger(__name__)

_TAG_NAME_RE = re.compile(r"^[a-zA-Z][-.:0-9_a-zA-Z]*$")
_DOUBLE_DOLLAR_DISPLAY = ("always", "newline", "fenced")


def _transformers():
    return {"pre": [], "post": []}


def get_default_config():
    """Defaults every user configuration is merged over."""
    return {
        "extensions": [".sveltex"],
        "dependencies": [],
        "markdown": {
            "strict": False,
            "prefers_inline": None,
            "components": [],
            "transformers": _transformers(),
            "directives": {"enabled": False, "braces_are_part_of_directive": None},
            "options": {},
            "extensions": [],
            "process": None,
        },
        "code": {
            "transformers": _transformers(),
            "style": "default",
            "stylesheet": None,
            "process": None,
        },
        "math": {
            "transformers": _transformers(),
            "delims": copy.deepcopy(DEFAULT_MATH_DELIMS),
            "mathjax": {"output": "chtml", "src": None},
            "stylesheet": None,
            "process": None,
        },
        "verbatim": {
            "Verbatim": {
                "type": "escape",
                "aliases": ["verbatim"],
                "attributes": {},
                "component": None,
                "process": None,
            },
        },
    }


def merge_configs(base: dict, *overrides: Optional[dict]) -> dict:
    """
    Deep-merge ``overrides`` into a copy of ``base``.

    Callables and compiled patterns are kept by reference.
    """
    merged = copy.copy(base)
    for override in overrides:
        for key, value in (override or {}).items():
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = merge_configs(merged[key], value)
            else:
                merged[key] = value
    return merged


def _expect(condition: bool, message: str) -> None:
    if not condition:
        raise ConfigurationError(message)


def _got(value: Any) -> str:
    return f"Instead got {value!r} ({type(value).__name__})."


def diagnose_backends(markdown_backend: str, code_backend: str, math_backend: str) -> None:
    _expect(
        markdown_backend in MARKDOWN_BACKENDS,
        f"Markdown backend must be one of {', '.join(MARKDOWN_BACKENDS)}. {_got(markdown_backend)}",
    )
    _expect(
        code_backend in CODE_BACKENDS,
        f"Code backend must be one of {', '.join(CODE_BACKENDS)}. {_got(code_backend)}",
    )
    _expect(
        math_backend in MATH_BACKENDS,
        f"Math backend must be one of {', '.join(MATH_BACKENDS)}. {_got(math_backend)}",
    )


def _diagnose_transformers(transformers: Any, where: str) -> None:
    if transformers is None:
        return
    _expect(
        isinstance(transformers, dict) and set(transformers) <= {"pre", "post"},
        f'Expected {where}.transformers to be a dict with "pre" and "post" keys. {_got(transformers)}',
    )


def diagnose_markdown_configuration(backend: str, config: dict) -> None:
    prefers_inline = config.get("prefers_inline")
    _expect(
        prefers_inline is None or isinstance(prefers_inline, bool) or callable(prefers_inline),
        f"Expected markdown.prefers_inline to be a function (tag) -> bool. {_got(prefers_inline)}",
    )
    components = config.get("components") or []
    _expect(isinstance(components, list), f"Expected markdown.components to be a list. {_got(components)}")
    for component in components:
        _expect(
            isinstance(component, dict) and isinstance(component.get("name"), str),
            f"Expected every component to be a dict with a string name. {_got(component)}",
        )
        _expect(
            component.get("type") in (None, *COMPONENT_TYPES),
            f"Component {component['name']!r} has unknown type {component.get('type')!r}. "
            f"Expected one of {', '.join(COMPONENT_TYPES)}.",
        )
    _diagnose_transformers(config.get("transformers"), "markdown")
    directives = config.get("directives") or {}
    predicate = directives.get("braces_are_part_of_directive")
    _expect(
        predicate is None or callable(predicate),
        f"Expected markdown.directives.braces_are_part_of_directive to be callable. {_got(predicate)}",
    )
    if backend == "custom":
        _expect(callable(config.get("process")), "Custom markdown backend requires a callable 'process'.")


def diagnose_code_configuration(backend: str, config: dict) -> None:
    _diagnose_transformers(config.get("transformers"), "code")
    if backend == "custom":
        _expect(callable(config.get("process")), "Custom code backend requires a callable 'process'.")
    stylesheet = config.get("stylesheet")
    _expect(
        stylesheet is None or isinstance(stylesheet, dict),
        f"Expected code.stylesheet to be a dict or None. {_got(stylesheet)}",
    )


def diagnose_math_delims(delims: Any) -> None:
    _expect(isinstance(delims, dict), f"Expected math.delims to be a dict. {_got(delims)}")
    for key in ("inline", "display"):
        _expect(
            isinstance(delims.get(key, {}), dict),
            f"Expected math.delims.{key} to be a dict. {_got(delims.get(key))}",
        )
    mode = delims.get("double_dollar_display", "fenced")
    _expect(
        mode in _DOUBLE_DOLLAR_DISPLAY,
        f"Expected math.delims.double_dollar_display to be one of {', '.join(_DOUBLE_DOLLAR_DISPLAY)}. {_got(mode)}",
    )


def diagnose_math_configuration(backend: str, config: dict) -> None:
    _diagnose_transformers(config.get("transformers"), "math")
    diagnose_math_delims(config.get("delims", DEFAULT_MATH_DELIMS))
    if backend == "custom":
        _expect(callable(config.get("process")), "Custom math backend requires a callable 'process'.")


def diagnose_verbatim_configuration(environments: Any) -> None:
    """
    Check verbatim environments: valid and unique tag names (aliases
    included), no clash with template elements, known types, and a callable
    ``process`` for custom environments.
    """
    _expect(isinstance(environments, dict), f"Expected verbatim to be a dict. {_got(environments)}")
    seen = {}
    reserved = {name.lower() for name in template.STRUCTURAL_ELEMENTS}
    for name, env in environments.items():
        _expect(isinstance(env, dict), f"Expected configuration of verbatim environment {name!r} to be a dict. {_got(env)}")
        aliases = env.get("aliases") or []
        _expect(
            isinstance(aliases, list) and all(isinstance(a, str) for a in aliases),
            f"Expected aliases of verbatim environment {name!r} to be a list of strings. {_got(aliases)}",
        )
        for tag in (name, *aliases):
            _expect(
                isinstance(tag, str) and bool(_TAG_NAME_RE.match(tag)),
                f"Invalid verbatim tag name {tag!r}: must match {_TAG_NAME_RE.pattern}",
            )
            _expect(tag.lower() not in reserved, f"Verbatim tag name {tag!r} clashes with a template element.")
            _expect(
                tag not in seen,
                f"Verbatim tag name {tag!r} is used by both {seen.get(tag)!r} and {name!r}.",
            )
            seen[tag] = name
        kind = env.get("type", "escape")
        _expect(
            kind in VERBATIM_TYPES,
            f"Verbatim environment {name!r} has unknown type {kind!r}. Expected one of {', '.join(VERBATIM_TYPES)}.",
        )
        if kind == "custom":
            _expect(callable(env.get("process")), f"Custom verbatim environment {name!r} requires a callable 'process'.")
        _diagnose_transformers(env.get("transformers"), f"verbatim.{name}")
        escape = env.get("escape")
        _expect(
            escape is None or (isinstance(escape, dict) and set(escape) <= {"html", "braces"}),
            f'Expected escape options of {name!r} to be a dict with "html" and "braces" keys. {_got(escape)}',
        )


def diagnose_configuration(markdown_backend: str, code_backend: str, math_backend: str, config: dict) -> None:
    """
    Validate backend choices and a merged configuration.

    Raises:
        ConfigurationError: describing the first problem found
    """
    diagnose_backends(markdown_backend, code_backend, math_backend)
    extensions = config.get("extensions")
    _expect(
        isinstance(extensions, list) and bool(extensions) and all(
            isinstance(e, str) and e.startswith(".") for e in extensions
        ),
        f'Expected extensions to be a non-empty list of strings starting with ".". {_got(extensions)}',
    )
    diagnose_markdown_configuration(markdown_backend, config.get("markdown") or {})
    diagnose_code_configuration(code_backend, config.get("code") or {})
    diagnose_math_configuration(math_backend, config.get("math") or {})
    diagnose_verbatim_configuration(config.get("verbatim") or {})
    logger.debug(f"Configuration valid for backends {markdown_backend}/{code_backend}/{math_backend}")
