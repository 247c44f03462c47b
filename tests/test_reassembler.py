"""Putting processed snippets back into rendered HTML."""

from texdown.escape import (
    ProcessedSnippet,
    ensure_script_blocks,
    generate_id,
    inject_head_lines,
    prepend_head_block,
    unescape_snippets,
)


class TestUnescapeSnippets:
    def test_block_snippet_loses_its_paragraph(self):
        token = generate_id()
        html = f"<p>a</p>\n<p> {token}\n</p>"
        processed = {token: ProcessedSnippet("<pre>x</pre>", remove_paragraph_tag=True)}
        assert unescape_snippets(html, processed) == "<p>a</p>\n<pre>x</pre>"

    def test_inline_snippet_keeps_its_paragraph(self):
        token = generate_id()
        html = f"<p>{token}</p>"
        processed = {token: ProcessedSnippet("<code>x</code>")}
        assert unescape_snippets(html, processed) == "<p><code>x</code></p>"

    def test_tokens_inside_text(self):
        first, second = generate_id(), generate_id()
        html = f"<p>a {first} b {second}</p>"
        processed = {
            first: ProcessedSnippet("1", remove_paragraph_tag=True),
            second: ProcessedSnippet("2"),
        }
        assert unescape_snippets(html, processed) == "<p>a 1 b 2</p>"


class TestHeadAndScripts:
    def test_inject_into_existing_head(self):
        head = "<svelte:head>\n<title>x</title>\n</svelte:head>"
        result = inject_head_lines(head, ['<link rel="stylesheet" href="/a.css">'])
        assert result == '<svelte:head>\n<title>x</title>\n<link rel="stylesheet" href="/a.css">\n</svelte:head>'

    def test_prepend_head_block(self):
        assert prepend_head_block("body", ["<title>t</title>"]) == "<svelte:head>\n<title>t</title>\n</svelte:head>\nbody"
        assert prepend_head_block("body", []) == "body"

    def test_missing_scripts_are_prepended(self):
        result = ensure_script_blocks("body", has_instance=False, has_module=False)
        assert result == '<script context="module">\n</script>\n<script>\n</script>\nbody'
        assert ensure_script_blocks("body", has_instance=True, has_module=True) == "body"
