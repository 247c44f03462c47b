# texdown/markdown/transformers.py
"""
User transformers applied before and after a processing step.

A transformer is either:
- a callable ``(text, options) -> text``, or
- a ``(pattern, replacement)`` pair, where ``pattern`` is a string (replaced
  literally) or a compiled regex (replaced with ``re.sub``; ``replacement``
  may then be a string or a function of the match)
"""

import re
from typing import Any, Callable, List, Sequence, Tuple, Union

Transformer = Union[Callable[[str, Any], str], Tuple[Any, Any]]


def _is_pair(value) -> bool:
    return isinstance(value, (tuple, list)) and len(value) == 2 and not callable(value[0])


def normalize_transformers(transformers) -> List[Transformer]:
    """Accept None, one transformer, or a sequence of them."""
    if not transformers:
        return []
    if callable(transformers) or (_is_pair(transformers) and isinstance(transformers[1], (str, bytes))):
        return [transformers]
    if _is_pair(transformers) and callable(transformers[1]) and isinstance(transformers[0], (str, re.Pattern)):
        return [transformers]
    return list(transformers)


def apply_transformations(text: str, options: Any, transformers: Union[Transformer, Sequence[Transformer], None]) -> str:
    """
    Apply ``transformers`` to ``text`` in order.

    Args:
        text: Text to transform
        options: Passed as second argument to callable transformers
        transformers: One transformer or a list of them

    Returns:
        The transformed text
    """
    for transformer in normalize_transformers(transformers):
        if callable(transformer):
            text = transformer(text, options)
            continue
        pattern, replacement = transformer
        if isinstance(pattern, re.Pattern):
            text = pattern.sub(replacement, text)
        else:
            text = text.replace(pattern, replacement)
    return text
