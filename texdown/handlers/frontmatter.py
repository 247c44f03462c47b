# texdown/handlers/frontmatter.py
"""
Frontmatter parsing and interpretation.

Supported formats:
- YAML (``---``, ``---yaml``), parsed with PyYAML's ``safe_load``
- TOML (``+++``, ``---toml``), parsed with ``tomllib``
- JSON (``---json``)

Interpreted frontmatter feeds three outputs:
- head lines (``<title>``, ``<base>``, ``<link>``, ``<meta>``, ``<noscript>``)
- instance script lines (``const key = value;`` and imports)
- module script lines (``export const metadata = {...};``)
"""

import html
import json
import logging
import re
import tomllib
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

FRONTMATTER_TYPES = ("yaml", "toml", "json")

META_NAMES = (
    "author",
    "application-name",
    "description",
    "generator",
    "keywords",
    "viewport",
    "referrer",
    "theme-color",
    "color-scheme",
)
META_HTTP_EQUIVS = ("content-security-policy", "default-style")

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][\w$]*$")
_RESERVED_WORDS = frozenset(
    "break case catch class const continue debugger default delete do else enum export extends "
    "false finally for function if import in instanceof let new null return super switch this "
    "throw true try typeof var void while with yield await".split()
)


@dataclass
class FrontmatterResult:
    frontmatter: Optional[dict] = None
    head_lines: List[str] = field(default_factory=list)
    script_lines: List[str] = field(default_factory=list)
    script_module_lines: List[str] = field(default_factory=list)


def parse_frontmatter(content: Optional[str], fmt: str = "yaml") -> Optional[dict]:
    """
    Parse raw frontmatter.

    Returns:
        The parsed mapping (empty for empty input), or None if the content
        could not be parsed into a mapping
    """
    if content is None or not content.strip():
        return {}
    if fmt not in FRONTMATTER_TYPES:
        logger.error(f"Error parsing frontmatter: unknown format {fmt!r}")
        return None
    try:
        if fmt == "toml":
            data = tomllib.loads(content)
        elif fmt == "json":
            data = json.loads(content)
        else:
            data = yaml.safe_load(content)
    except (yaml.YAMLError, tomllib.TOMLDecodeError, json.JSONDecodeError) as e:
        logger.error(f"Error parsing frontmatter ({fmt}): {e}")
        return None
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.error(f"Error parsing frontmatter ({fmt}): expected a mapping, got {type(data).__name__}")
        return None
    return data


def _content(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    return None


def _meta_key(name: str) -> Optional[str]:
    if name in META_NAMES or name == "charset":
        return "name"
    if name in META_HTTP_EQUIVS:
        return "http-equiv"
    return None


def _explicit_meta(meta: Any) -> Dict[tuple, dict]:
    """Normalise an explicit ``meta`` value, last duplicate wins."""
    entries: Dict[tuple, dict] = {}
    if isinstance(meta, dict):
        items = []
        for name, value in meta.items():
            attribute = _meta_key(str(name))
            if attribute:
                items.append({attribute: name, "content": value})
    elif isinstance(meta, list):
        items = [item for item in meta if isinstance(item, dict)]
    else:
        return entries
    for item in items:
        attribute = "name" if "name" in item else "http-equiv" if "http-equiv" in item else None
        if attribute is None:
            continue
        value = item[attribute]
        if not isinstance(value, str) or _meta_key(value) != attribute:
            continue
        content = _content(item.get("content"))
        if content is None:
            continue
        entries[(attribute, value)] = {attribute: value, "content": content}
    return entries


def interpret_frontmatter(frontmatter: Optional[dict]) -> dict:
    """
    Normalise frontmatter values that map onto head elements.

    - ``meta`` becomes a list of ``{name|http-equiv, content}`` dicts
    - top-level meta names (``author``, ``description``, ...) and http-equiv
      names (``default-style``, ...) also produce meta entries, placed before
      the explicit ones and overridden by them
    - ``base`` becomes ``{href, target}`` with string members only
    - ``link`` keeps dict entries with string values only
    """
    if not frontmatter:
        return {}
    interpreted = dict(frontmatter)
    explicit = _explicit_meta(frontmatter.get("meta"))
    derived: Dict[tuple, dict] = {}
    for attribute, names in (("http-equiv", META_HTTP_EQUIVS), ("name", META_NAMES)):
        for name in names:
            if name not in frontmatter:
                continue
            content = _content(frontmatter[name])
            if content is None:
                continue
            if (attribute, name) in explicit:
                logger.warning(f'Duplicate meta {attribute} "{name}" found in frontmatter.')
                continue
            derived[(attribute, name)] = {attribute: name, "content": content}
    ordered = _in_frontmatter_order(frontmatter, list(derived.values())) + list(explicit.values())
    if ordered:
        interpreted["meta"] = ordered
    else:
        interpreted.pop("meta", None)

    if "base" in interpreted:
        base = interpreted["base"]
        if isinstance(base, str):
            base = {"href": base}
        if isinstance(base, dict):
            base = {k: v for k, v in base.items() if k in ("href", "target") and isinstance(v, str)}
        if base:
            interpreted["base"] = base
        else:
            del interpreted["base"]

    if "link" in interpreted:
        links = interpreted["link"]
        if isinstance(links, dict):
            links = [links]
        if isinstance(links, list):
            links = [
                {k: v for k, v in link.items() if isinstance(v, str)}
                for link in links
                if isinstance(link, dict)
            ]
            links = [link for link in links if link]
        if links:
            interpreted["link"] = links
        else:
            del interpreted["link"]
    return interpreted


def _in_frontmatter_order(frontmatter: dict, entries: List[dict]) -> List[dict]:
    order = {name: index for index, name in enumerate(frontmatter)}
    return sorted(entries, key=lambda e: order.get(e.get("name") or e.get("http-equiv"), 0))


def _attributes(values: dict) -> str:
    return "".join(f' {name}="{html.escape(str(value))}"' for name, value in values.items())


def _head_lines(frontmatter: dict) -> List[str]:
    lines = []
    title = frontmatter.get("title")
    if isinstance(title, (str, int, float)) and not isinstance(title, bool):
        lines.append(f"<title>{html.escape(str(title), quote=False)}</title>")
    if isinstance(frontmatter.get("base"), dict):
        lines.append(f"<base{_attributes(frontmatter['base'])}>")
    for link in frontmatter.get("link") or []:
        lines.append(f"<link{_attributes(link)}>")
    for meta in frontmatter.get("meta") or []:
        lines.append(f"<meta{_attributes(meta)}>")
    noscript = frontmatter.get("noscript")
    if isinstance(noscript, str):
        lines.append(f"<noscript>{noscript}</noscript>")
    return lines


def to_json(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)


def _is_identifier(key: str) -> bool:
    return bool(_IDENTIFIER_RE.match(key)) and key not in _RESERVED_WORDS


def _import_lines(imports: Any) -> List[str]:
    lines = []
    if not isinstance(imports, dict):
        return lines
    for source, names in imports.items():
        if isinstance(names, str):
            lines.append(f"import {names} from '{source}';")
        elif isinstance(names, list) and names and all(isinstance(n, str) for n in names):
            lines.append(f"import {{ {', '.join(names)} }} from '{source}';")
        else:
            logger.warning(f"Ignoring invalid frontmatter import from {source!r}")
    return lines


def _script_lines(frontmatter: dict) -> List[str]:
    lines = []
    for key, value in frontmatter.items():
        if _is_identifier(str(key)):
            lines.append(f"const {key} = {to_json(value)};")
    lines.extend(_import_lines(frontmatter.get("imports")))
    return lines


def _script_module_lines(frontmatter: dict) -> List[str]:
    if not frontmatter:
        return []
    lines = ["export const metadata = {"]
    for key, value in frontmatter.items():
        name = key if _is_identifier(str(key)) else to_json(str(key))
        lines.append(f"{name}: {to_json(value)},")
    lines.append("};")
    return lines


def handle_frontmatter(content: Optional[str], fmt: str = "yaml") -> FrontmatterResult:
    """
    Parse and interpret frontmatter, returning everything it contributes
    to the document.
    """
    parsed = parse_frontmatter(content, fmt)
    if parsed is None:
        return FrontmatterResult()
    frontmatter = interpret_frontmatter(parsed)
    return FrontmatterResult(
        frontmatter=frontmatter,
        head_lines=_head_lines(frontmatter),
        script_lines=_script_lines(frontmatter),
        script_module_lines=_script_module_lines(frontmatter),
    )
