"""User transformers."""

import re

from texdown.markdown.transformers import apply_transformations, normalize_transformers


class TestTransformers:
    def test_accepts_none_single_and_lists(self):
        assert normalize_transformers(None) == []
        assert normalize_transformers(("a", "b")) == [("a", "b")]
        assert len(normalize_transformers([("a", "b"), ("c", "d")])) == 2

    def test_string_pattern_is_literal(self):
        assert apply_transformations("a.b.c", None, (".", "-")) == "a-b-c"

    def test_regex_pattern_with_function(self):
        transformer = (re.compile(r"\d+"), lambda m: str(int(m.group(0)) * 2))
        assert apply_transformations("1 and 21", None, transformer) == "2 and 42"

    def test_callable_receives_options(self):
        def add_title(text, options):
            return f"# {options['title']}\n{text}"

        assert apply_transformations("body", {"title": "T"}, [add_title]) == "# T\nbody"

    def test_applied_in_order(self):
        transformers = [("a", "b"), ("b", "c")]
        assert apply_transformations("a", None, transformers) == "c"
