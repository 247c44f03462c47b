# texdown/markdown/config.py


def get_pandoc_config():
    """
    Configuration for pypandoc/Pandoc markdown rendering.

    Indented code blocks are switched off since code, math and verbatim
    content is escaped before pandoc runs; for the same reason pandoc's own
    math and code-attribute syntaxes are disabled. Raw HTML must stay on so
    template tags survive.
    """
    return {
        "format": "markdown",
        "extra_args": [
            # Enable/disable Pandoc markdown extensions (all in --from argument)
            "--from=markdown-indented_code_blocks-tex_math_dollars-tex_math_single_backslash"
            "-raw_tex-native_divs-native_spans+raw_html",
            # Keep paragraphs on one line so tokens stay intact
            "--wrap=none",
        ],
    }


def get_markdown_it_config():
    """
    Configuration for markdown-it-py.

    The CommonMark preset with raw HTML allowed; indented code and autolinks
    are disabled by the renderer.
    """
    return {
        "preset": "commonmark",
        "options": {"html": True},
        "disable": ["code", "autolink"],
    }


def get_python_markdown_config():
    """Configuration for Python-Markdown; indented code is disabled by the renderer."""
    return {
        "output_format": "html",
    }
