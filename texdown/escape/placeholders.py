# texdown/escape/placeholders.py
"""
Placeholder tokens and the table that maps them back to their snippets.

A token is ``"id"`` followed by 32 hex digits. Tokens are alphanumeric, so
neither markdown engines nor the template language will ever touch them.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

SNIPPET_KINDS = ("code", "math", "verbatim", "frontmatter", "structural", "mustache")


def generate_id() -> str:
    """Return a fresh placeholder token."""
    return "id" + uuid.uuid4().hex


@dataclass
class Padding:
    """
    Whitespace placed around a token when it is put back into host text.

    ``before`` and ``after`` are literal strings, so callers can keep the
    indentation a fenced block had inside a list item.
    """

    before: str = ""
    after: str = ""

    @classmethod
    def newlines(cls, count: int) -> "Padding":
        return cls("\n" * count, "\n" * count)


@dataclass
class Snippet:
    kind: str
    start: int
    end: int
    raw_outer: str
    raw_inner: str
    options: Dict[str, Any] = field(default_factory=dict)
    pad: Padding = field(default_factory=Padding)
    remove_paragraph_tag: bool = False

    def __post_init__(self):
        if self.kind not in SNIPPET_KINDS:
            raise ValueError(f"Unknown snippet kind: {self.kind!r}")


@dataclass
class ProcessedSnippet:
    processed: str
    remove_paragraph_tag: bool = False
    error: Optional[BaseException] = None


class PlaceholderTable:
    """Insertion-ordered mapping of token to snippet, plus processed output."""

    def __init__(self):
        self._snippets: Dict[str, Snippet] = {}
        self._processed: Dict[str, ProcessedSnippet] = {}

    def __len__(self):
        return len(self._snippets)

    def __contains__(self, token):
        return token in self._snippets

    def add(self, snippet: Snippet, document: str = "") -> str:
        """Register ``snippet`` under a token absent from ``document``."""
        token = generate_id()
        while token in self._snippets or token in document:
            token = generate_id()
        self._snippets[token] = snippet
        return token

    def snippets(self) -> Iterator[Tuple[str, Snippet]]:
        return iter(list(self._snippets.items()))

    def set_processed(self, token: str, processed: ProcessedSnippet) -> None:
        if token not in self:
            raise KeyError(token)
        self._processed[token] = processed

    def processed(self) -> Dict[str, ProcessedSnippet]:
        return dict(self._processed)

    def failures(self) -> List[Tuple[str, Snippet, BaseException]]:
        return [
            (token, self._snippets[token], result.error)
            for token, result in self._processed.items()
            if result.error is not None
        ]
