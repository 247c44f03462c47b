"""End-to-end preprocessing of hybrid documents."""

import asyncio

import pytest
from bs4 import BeautifulSoup
from markdown_it import MarkdownIt

from texdown import create_preprocessor
from texdown.errors import ConfigurationError, PreprocessingError

SCRIPTS = '<script context="module">\n</script>\n<script>\n</script>\n'
MATHJAX = '<script id="MathJax-script" async src="https://cdn.jsdelivr.net/npm/mathjax@3/es5/tex-chtml.js"></script>'


def markup(preprocessor, content, filename="doc.sveltex"):
    return asyncio.run(preprocessor.markup(content, filename))


class TestCreatePreprocessor:
    def test_unknown_backend(self):
        with pytest.raises(ConfigurationError):
            create_preprocessor("marked")

    def test_invalid_configuration(self):
        with pytest.raises(ConfigurationError):
            create_preprocessor(configuration={"verbatim": {"style": {}}})

    def test_extensions_and_dependencies(self):
        preprocessor = create_preprocessor(configuration={"extensions": [".md", ".tex.md"], "dependencies": ["x.css"]})
        assert preprocessor.handles("a.tex.md")
        assert not preprocessor.handles("a.sveltex")
        assert not preprocessor.handles(None)
        assert preprocessor.dependencies == ["x.css"]


class TestMarkup:
    def test_other_files_are_ignored(self):
        assert markup(create_preprocessor(), "# x", "page.svelte") is None

    def test_mustaches_pass_through(self):
        processed = markup(create_preprocessor(), "Hello {name}!")
        assert processed.code == SCRIPTS + "Hello {name}!"
        assert processed.dependencies == []

    def test_dollars_inside_mustache_are_not_math(self):
        processed = markup(create_preprocessor(), "text {'$$'} text")
        assert processed.code == SCRIPTS + "text {'$$'} text"

    def test_markdown_and_math(self):
        processed = markup(create_preprocessor("markdown-it"), "Some *text* with $x^2$ math.")
        assert processed.code == (
            f"<svelte:head>\n{MATHJAX}\n</svelte:head>\n"
            + SCRIPTS
            + '<p>Some <em>text</em> with <span class="math inline">\\(x^2\\)</span> math.</p>\n'
        )

    def test_fenced_code_is_not_wrapped_in_paragraph(self):
        processed = markup(create_preprocessor("markdown-it"), "# Title\n\n```js\nlet a = {b};\n```\n")
        assert '<h1>Title</h1>\n<pre><code class="language-js">let a = &lbrace;b&rbrace;;\n</code></pre>' in processed.code
        assert "<p>" not in processed.code
        assert MATHJAX not in processed.code

    def test_logic_blocks(self):
        processed = markup(create_preprocessor("markdown-it"), "{#if cond}\n\n*a*\n\n{/if}\n")
        assert processed.code == SCRIPTS + "{#if cond}\n<p><em>a</em></p>\n{/if}\n"

    def test_verbatim_environment(self):
        processed = markup(create_preprocessor("markdown-it"), "<Verbatim>\n<b>{x}</b>\n</Verbatim>\n")
        assert "<Verbatim>\n&lt;b&gt;&lbrace;x&rbrace;&lt;/b&gt;\n</Verbatim>" in processed.code
        assert "<p>" not in processed.code

    def test_block_component_is_not_wrapped(self):
        code = markup(create_preprocessor("markdown-it"), "<Foo>\n\ntext\n\n</Foo>").code
        assert "<p><Foo>" not in code
        assert "<Foo>\n<p>text</p>\n</Foo>" in code

    def test_typescript_fence(self):
        code = markup(create_preprocessor("markdown-it"), "```typescript\nlet a\n```").code
        assert code == SCRIPTS + '<pre><code class="language-typescript">let a\n</code></pre>\n'

    def test_plain_markdown_matches_direct_render(self):
        document = "# Title\n\nHello {name}, some *text* and a [link](/x).\n\n- a\n- b\n\n> quote\n"
        expected = MarkdownIt("commonmark", {"html": True}).render(document)
        assert markup(create_preprocessor("markdown-it"), document).code == SCRIPTS + expected

    def test_paragraphs_stay_balanced_around_inline_components(self):
        preprocessor = create_preprocessor("markdown-it", configuration={"markdown": {"components": [{"name": "Box"}]}})
        code = markup(preprocessor, "<Box>x</Box> b\n\nc <Box>y</Box>").code
        assert code == SCRIPTS + "<p><Box>x</Box> b</p>\n<p>c <Box>y</Box></p>\n"

    def test_html_block_keeps_markdown(self):
        document = "<div>\n\n**bold**\n\n</div>\n\nAfter."
        soup = BeautifulSoup(markup(create_preprocessor("markdown-it"), document).code, "html.parser")
        assert soup.div.p.strong.text == "bold"
        assert soup.find_all("p")[-1].text == "After."

    def test_python_markdown(self):
        processed = markup(create_preprocessor("python-markdown"), "Some *text*")
        soup = BeautifulSoup(processed.code, "html.parser")
        assert soup.p.em.text == "text"

    def test_custom_markdown_backend(self):
        async def render(text, options):
            return f"<article>{text}</article>"

        preprocessor = create_preprocessor("custom", configuration={"markdown": {"process": render, "strict": True}})
        assert markup(preprocessor, "x").code == SCRIPTS + "<article>x</article>"

    def test_existing_head_block_receives_lines(self):
        document = "<svelte:head>\n<meta charset=\"utf-8\">\n</svelte:head>\n\n$x$"
        code = markup(create_preprocessor(), document).code
        assert code.count("<svelte:head>") == 1
        assert f'<meta charset="utf-8">\n{MATHJAX}\n</svelte:head>' in code

    def test_failing_snippet(self):
        def fail(tex, options):
            raise RuntimeError("no")

        preprocessor = create_preprocessor(math_backend="custom", configuration={"math": {"process": fail}})
        with pytest.raises(PreprocessingError) as info:
            markup(preprocessor, "$x$")
        assert info.value.filename == "doc.sveltex"

    def test_failed_documents_leave_no_context(self):
        def fail(tex, options):
            raise RuntimeError("no")

        preprocessor = create_preprocessor(math_backend="custom", configuration={"math": {"process": fail}})
        for name in ("a", "b", "c"):
            with pytest.raises(PreprocessingError):
                markup(preprocessor, "$x$", f"{name}.sveltex")
        assert len(preprocessor.store) == 0


class TestScript:
    def test_frontmatter_round(self):
        preprocessor = create_preprocessor()
        code = markup(preprocessor, "---\ntitle: Hi\n---\nBody").code
        assert code.startswith("<svelte:head>\n<title>Hi</title>\n</svelte:head>\n" + SCRIPTS)
        assert code.endswith("Body")

        module = preprocessor.script("", {"context": "module"}, "doc.sveltex")
        assert module.code == '\nexport const metadata = {\ntitle: "Hi",\n};\n'
        instance = preprocessor.script("", {}, "doc.sveltex", markup=code)
        assert instance.code == '\nconst title = "Hi";\n'
        assert len(preprocessor.store) == 0

    def test_without_markup(self):
        preprocessor = create_preprocessor()
        assert preprocessor.script("", {"context": "module"}, "doc.sveltex").code == "\nexport const metadata = undefined;\n"
        assert preprocessor.script("let a;", {}, "doc.sveltex") is None
        assert preprocessor.script("", {}, "page.svelte") is None

    def test_coffeescript(self):
        processed = create_preprocessor().script("", {"context": "module", "lang": "coffee"}, "doc.sveltex")
        assert processed.code == "\n```\nexport const metadata = undefined;\n```\n"

    def test_component_imports(self):
        preprocessor = create_preprocessor(
            configuration={"markdown": {"components": [{"name": "Box", "import_path": "$lib/Box.svelte"}]}}
        )
        processed = preprocessor.script("", {}, "doc.sveltex", markup="<Box>x</Box>")
        assert processed.code == "\nimport Box from '$lib/Box.svelte';\n"
        existing = "import Box from '$lib/Box.svelte';"
        assert preprocessor.script(existing, {}, "doc.sveltex", markup="<Box>x</Box>") is None
        assert preprocessor.script("", {}, "doc.sveltex", markup="no components") is None
