"""Code, math and verbatim handlers."""

import asyncio
import logging

import pytest

from texdown.handlers import CodeHandler, MathHandler, VerbatimHandler
from texdown.handlers.base import call_maybe_async


def run(coro):
    return asyncio.run(coro)


class TestCallMaybeAsync:
    def test_sync_and_async(self):
        async def double(x):
            return 2 * x

        assert run(call_maybe_async(lambda x: x + 1, 1)) == 2
        assert run(call_maybe_async(double, 2)) == 4
        assert run(call_maybe_async(lambda x: x * 3, 3, in_thread=True)) == 9


class TestCodeHandler:
    def test_escape_block(self):
        html = run(CodeHandler("escape").process("a < {b}", {"inline": False, "lang": "js"}))
        assert html == '<pre><code class="language-js">a &lt; &lbrace;b&rbrace;\n</code></pre>'

    def test_escape_inline(self):
        assert run(CodeHandler().process("{x}", {"inline": True})) == "<code>&lbrace;x&rbrace;</code>"

    def test_none_returns_content(self):
        assert run(CodeHandler("none").process("<x>", {"inline": True})) == "<x>"

    def test_custom(self):
        handler = CodeHandler("custom", {"process": lambda code, opts: f"[{opts['lang']}:{code}]"})
        assert run(handler.process("x", {"lang": "py"})) == "[py:x]"

    def test_transformers(self):
        handler = CodeHandler(
            "escape",
            {"transformers": {"pre": [("foo", "bar")], "post": lambda html, opts: html.replace("code", "samp")}},
        )
        assert run(handler.process("foo", {"inline": True})) == "<samp>bar</samp>"

    def test_pygments(self):
        html = run(CodeHandler("pygments").process("x = {1: 2}", {"lang": "python"}))
        assert html.startswith('<pre class="highlight"><code class="language-python">')
        assert "<span" in html
        assert "{" not in html

    def test_pygments_unknown_language(self, caplog):
        with caplog.at_level(logging.WARNING):
            html = run(CodeHandler("pygments").process("<x>", {"lang": "no-such-language"}))
        assert "&lt;x&gt;" in html
        assert "No Pygments lexer" in caplog.text

    def test_stylesheet_is_written_once(self, tmp_path):
        path = tmp_path / "css" / "code.css"
        handler = CodeHandler("pygments", {"stylesheet": {"path": str(path), "href": "/code.css"}})
        assert handler.update_stylesheet()
        assert not handler.update_stylesheet()
        assert ".highlight" in path.read_text(encoding="utf-8")
        assert handler.head_lines == ['<link rel="stylesheet" href="/code.css">']


class TestMathHandler:
    def test_mathjax(self):
        handler = MathHandler("mathjax")
        assert run(handler.process("a<b", {"inline": True})) == '<span class="math inline">\\(a&lt;b\\)</span>'
        assert run(handler.process("x", {"inline": False})) == '<span class="math display">\\[x\\]</span>'

    def test_mathjax_head_line(self):
        (line,) = MathHandler("mathjax").head_lines
        assert 'src="https://cdn.jsdelivr.net/npm/mathjax@3/es5/tex-chtml.js"' in line
        (line,) = MathHandler("mathjax", {"mathjax": {"output": "svg"}}).head_lines
        assert "tex-svg.js" in line

    def test_none(self):
        assert run(MathHandler("none").process("{x}", {"inline": True})) == "\\(&lbrace;x&rbrace;\\)"
        assert MathHandler("none").head_lines == []

    def test_async_custom(self):
        async def render(tex, opts):
            return f"<m>{tex}</m>"

        assert run(MathHandler("custom", {"process": render}).process("x", {"inline": True})) == "<m>x</m>"


class TestVerbatimHandler:
    def _options(self, tag="Verbatim", env="Verbatim", **extra):
        return {"tag": tag, "env": env, "attributes": {}, **extra}

    def test_escape(self):
        handler = VerbatimHandler({"Verbatim": {"type": "escape"}})
        html = run(handler.process("<b>{x}</b>", self._options()))
        assert html == "<Verbatim>&lt;b&gt;&lbrace;x&rbrace;&lt;/b&gt;</Verbatim>"

    def test_escape_options_component_and_attributes(self):
        handler = VerbatimHandler(
            {"Verbatim": {"type": "escape", "escape": {"html": False}, "component": "div", "attributes": {"class": "v"}}}
        )
        html = run(handler.process("<b>{x}</b>", self._options(attributes={"id": "a", "inline": True})))
        assert html == '<div class="v" id="a"><b>&lbrace;x&rbrace;</b></div>'

    def test_no_wrapper(self):
        handler = VerbatimHandler({"Verbatim": {"type": "escape", "component": "none"}})
        assert run(handler.process("x", self._options())) == "x"

    def test_noop(self):
        handler = VerbatimHandler({"Raw": {"type": "noop"}})
        outer = "<Raw>{x}</Raw>"
        assert run(handler.process("{x}", self._options("Raw", "Raw", outer=outer))) == outer

    def test_code(self):
        handler = VerbatimHandler({"Code": {"type": "code"}})
        html = run(handler.process("x", self._options("Code", "Code", attributes={"lang": "py"})))
        assert html == '<pre><code class="language-py">x\n</code></pre>'

    def test_custom_runs_sync_callable(self):
        handler = VerbatimHandler({"Up": {"type": "custom", "process": lambda content, opts: content.upper()}})
        assert run(handler.process("abc", self._options("Up", "Up"))) == "ABC"

    def test_environment_transformers(self):
        handler = VerbatimHandler({"Verbatim": {"type": "escape", "component": "none", "transformers": {"pre": [("a", "b")]}}})
        assert run(handler.process("aa", self._options())) == "bb"

    def test_aliases_and_inline_environments(self):
        handler = VerbatimHandler({"Verbatim": {"aliases": ["verb"], "inline": True}, "Other": {}})
        assert handler.tags == {"Verbatim": "Verbatim", "verb": "Verbatim", "Other": "Other"}
        assert handler.inline_environments == ["Verbatim"]

    def test_unknown_environment(self):
        with pytest.raises(KeyError):
            run(VerbatimHandler({}).process("x", self._options()))
