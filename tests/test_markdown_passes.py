"""HTML spacing preprocessors and paragraph repair postprocessors."""

from texdown.markdown.postprocessors import apply_postprocessors
from texdown.markdown.postprocessors.paragraphs import remove_bad_paragraphs, unwrap_single_blocks
from texdown.markdown.postprocessors.sanitizer import sanitize_html
from texdown.markdown.preprocessors import apply_preprocessors
from texdown.markdown.preprocessors.attribute_mustache import escape_attribute_mustaches, restore_attribute_mustaches
from texdown.markdown.preprocessors.html_spacing import TextEdits, adjust_html_spacing, count_newlines
from texdown.markdown.preprocessors.tag_marker import mark_special_tags, strip_tag_marker


class TestTextEdits:
    def test_insertion_order(self):
        edits = TextEdits("abc")
        edits.append(1, "X")
        edits.append(1, "Y")
        edits.prepend(1, "P")
        edits.prepend(1, "Q")
        assert edits.apply() == "aXYQPbc"

    def test_insertions_inside_removed_range_are_dropped(self):
        edits = TextEdits("abcd")
        edits.remove(1, 3)
        edits.append(2, "X")
        edits.append(1, "L")
        edits.prepend(3, "R")
        assert edits.apply() == "aLRd"

    def test_touching_and_overlapping_removals(self):
        edits = TextEdits("abcdef")
        edits.remove(1, 3)
        edits.remove(3, 5)
        edits.append(3, "X")
        assert edits.apply() == "aXf"

        edits = TextEdits("abcdef")
        edits.remove(1, 4)
        edits.remove(2, 5)
        edits.append(4, "Y")
        edits.prepend(5, "Z")
        assert edits.apply() == "aZf"

    def test_no_edits(self):
        assert TextEdits("same").apply() == "same"

    def test_count_newlines(self):
        assert count_newlines("a\r\nb\rc\n") == 3
        assert count_newlines("") == 0


class TestHtmlSpacing:
    def test_single_newline_collapses_by_default(self):
        assert adjust_html_spacing("<div>\nhello\n</div>", {}) == "\n\n<div>hello</div>\n\n"

    def test_single_newline_widens_when_not_inline(self):
        result = adjust_html_spacing("<div>\nhello\n</div>", {"prefers_inline": False})
        assert result == "\n\n<div>\n\nhello\n\n</div>\n\n"

    def test_many_newlines_become_two(self):
        result = adjust_html_spacing("<div>\n\nhello\n\n\n</div>", {})
        assert result == "\n\n<div>\n\nhello\n\n</div>\n\n"

    def test_pre_content_is_untouched(self):
        assert adjust_html_spacing("<pre>\n  x\n</pre>", {}) == "\n\n<pre>\n  x\n</pre>\n\n"

    def test_phrasing_element_is_trimmed(self):
        assert adjust_html_spacing("a <span>\n\nb\n\n</span> c", {}) == "a <span>b</span> c"

    def test_many_elements(self):
        text = "".join(f"<div>\n\npara {i}\n\n</div>\n" for i in range(3000))
        expected = "".join(f"\n\n<div>\n\npara {i}\n\n</div>\n\n\n" for i in range(3000))
        assert adjust_html_spacing(text, {}) == expected

    def test_component_preference(self):
        context = {"components": [{"name": "Box", "prefers_inline": False}]}
        result = adjust_html_spacing("<Box>\nhello\n</Box>", context)
        assert result == "<Box>\n\nhello\n\n</Box>"


class TestTagMarker:
    def test_marks_only_special_tags(self):
        context = {}
        marked = mark_special_tags("<div class='a'><span></span></DIV><pre></pre>", context)
        marker = context["tag_marker"]
        assert marked == f"<div{marker} class='a'><span></span></DIV{marker}><pre></pre>"
        assert strip_tag_marker(marked, context) == "<div class='a'><span></span></DIV><pre></pre>"

    def test_preprocessors_keep_marker_until_stripped(self):
        context = {}
        result = apply_preprocessors("<div>\nhi\n</div>", context)
        assert strip_tag_marker(result, context) == "\n\n<div>hi</div>\n\n"


class TestAttributeMustaches:
    def test_escape_and_restore(self):
        context = {}
        text = '<a href={url} title="{t}">x {not_in_tag}</a>'
        escaped = escape_attribute_mustaches(text, context)
        assert "{url}" not in escaped
        assert '"{t}"' not in escaped
        assert "{not_in_tag}" in escaped
        assert restore_attribute_mustaches(escaped, context) == text

    def test_restore_drops_quotes_added_around_token(self):
        context = {}
        escape_attribute_mustaches("<a href={url}>", context)
        (token,) = context["attribute_mustaches"]
        assert restore_attribute_mustaches(f'<a href="{token}">', context) == "<a href={url}>"


class TestParagraphs:
    def test_unwrap_lone_block(self):
        assert unwrap_single_blocks("<p><div>x</div></p>", {}) == "<div>x</div>"

    def test_unwrap_lone_component(self):
        assert unwrap_single_blocks("<p><Foo /></p>", {}) == "<Foo />"
        context = {"components": [{"name": "Foo", "type": "phrasing"}]}
        assert unwrap_single_blocks("<p><Foo /></p>", context) == "<p><Foo /></p>"

    def test_unwrap_stops_at_paragraph_end(self):
        html = "<p><Box>x</Box> b</p>\n<p>c <Box>y</Box></p>"
        assert unwrap_single_blocks(html, {"components": [{"name": "Box"}]}) == html

    def test_phrasing_stays_wrapped(self):
        assert unwrap_single_blocks("<p><em>x</em></p>", {}) == "<p><em>x</em></p>"

    def test_paragraphs_removed_from_heading(self):
        assert remove_bad_paragraphs("<h1><p>T</p></h1>", {}) == "<h1>T</h1>"

    def test_paragraph_around_block_is_unwrapped(self):
        assert remove_bad_paragraphs("<p>a <div>x</div></p>", {}) == "a <div>x</div>"

    def test_self_closing_and_empty_attributes_survive(self):
        html = '<p>a <Foo bar="" /> <input value=""></p>'
        assert remove_bad_paragraphs(html, {}) == html

    def test_postprocessors_strip_marker(self):
        context = {"tag_marker": "id" + "0" * 32}
        html = f"<p><div{context['tag_marker']}>x</div{context['tag_marker']}></p>"
        assert apply_postprocessors(html, context) == "<div>x</div>"


class TestSanitizer:
    def test_balances_paragraphs(self):
        assert sanitize_html("<p>a<p>b", {}) == "<p>a</p><p>b</p>"

    def test_keeps_names_case_and_attributes(self):
        html = '<Foo bar={x} baz="q">y</Foo>'
        assert sanitize_html(html, {}) == html

    def test_keeps_void_elements(self):
        assert sanitize_html("<p>x<br>y</p>", {}) == "<p>x<br>y</p>"
