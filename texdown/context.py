# texdown/context.py
"""
Per-document side-channel state.

Handlers running concurrently for one document append head lines and script
lines here; ``Preprocessor.script`` reads them back when the host asks for
the document's script blocks.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class DocumentContext:
    filename: Optional[str] = None
    head_lines: List[str] = field(default_factory=list)
    script_lines: List[str] = field(default_factory=list)
    script_module_lines: Optional[List[str]] = None
    math_present: bool = False
    code_present: bool = False
    frontmatter: Optional[dict] = None
    head_token: Optional[str] = None
    has_instance_script: bool = False
    has_module_script: bool = False
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def add_head_lines(self, lines) -> None:
        with self._lock:
            self.head_lines.extend(lines)

    def add_script_lines(self, lines) -> None:
        with self._lock:
            self.script_lines.extend(lines)

    def add_script_module_lines(self, lines) -> None:
        with self._lock:
            if self.script_module_lines is None:
                self.script_module_lines = []
            self.script_module_lines.extend(lines)

    def mark(self, **flags) -> None:
        """Set presence flags, e.g. ``mark(math_present=True)``."""
        with self._lock:
            for name, value in flags.items():
                if not hasattr(self, name) or name.startswith("_"):
                    raise AttributeError(name)
                setattr(self, name, value)

    def set_head_token(self, token: str) -> bool:
        """Record the first head block; returns False if one was already set."""
        with self._lock:
            if self.head_token is not None:
                return False
            self.head_token = token
            return True


class SideChannelStore:
    """
    Document contexts by filename, kept until both script phases ran.
    """

    PHASES = ("instance", "module")

    def __init__(self):
        self._contexts: Dict[Optional[str], DocumentContext] = {}
        self._consumed: Dict[Optional[str], set] = {}
        self._lock = threading.Lock()

    def open(self, filename: Optional[str]) -> DocumentContext:
        """Start a fresh context for ``filename``, replacing any stale one."""
        context = DocumentContext(filename=filename)
        with self._lock:
            self._contexts[filename] = context
            self._consumed[filename] = set()
        return context

    def get(self, filename: Optional[str]) -> Optional[DocumentContext]:
        with self._lock:
            return self._contexts.get(filename)

    def consume(self, filename: Optional[str], phase: str) -> Optional[DocumentContext]:
        """
        Return the context for ``filename`` on behalf of one script phase.

        Once both phases have consumed it the context is dropped.
        """
        if phase not in self.PHASES:
            raise ValueError(f"Unknown script phase: {phase}")
        with self._lock:
            context = self._contexts.get(filename)
            if context is None:
                return None
            consumed = self._consumed.setdefault(filename, set())
            consumed.add(phase)
            if consumed.issuperset(self.PHASES):
                del self._contexts[filename]
                del self._consumed[filename]
                logger.debug(f"Dropped side-channel context for {filename}")
            return context

    def discard(self, filename: Optional[str]) -> None:
        """Drop the context for ``filename`` whether or not it was consumed."""
        with self._lock:
            self._contexts.pop(filename, None)
            self._consumed.pop(filename, None)

    def __len__(self):
        with self._lock:
            return len(self._contexts)
