# texdown/markdown/extensions/indented_code.py
"""
Python-Markdown extension that turns off indented code blocks and autolinks.

Code and math are escaped before markdown runs, so four spaces of
indentation only ever come from nested HTML or template blocks and must not
start a code block. ``<https://...>`` autolinks would otherwise swallow tags
the HTML pass needs to see.
"""

from markdown.extensions import Extension


class DisableIndentedCodeExtension(Extension):
    def extendMarkdown(self, md):
        md.parser.blockprocessors.deregister("code", strict=False)
        md.inlinePatterns.deregister("autolink", strict=False)
        md.inlinePatterns.deregister("automail", strict=False)


def makeExtension(**kwargs):
    return DisableIndentedCodeExtension(**kwargs)
