"""Tag classification used by the paragraph repair passes."""

from texdown.markdown.tags import (
    SPECIALS,
    TAGS_THAT_CANNOT_BE_IN_PARAGRAPHS,
    TAGS_THAT_CANNOT_CONTAIN_PARAGRAPHS,
    can_be_in_paragraph,
    can_be_only_thing_in_paragraph,
    can_contain_paragraph,
    prefers_inline,
)


class TestHtmlTags:
    def test_block_elements(self):
        assert can_contain_paragraph("div")
        assert not can_be_in_paragraph("div")
        assert "div" in TAGS_THAT_CANNOT_BE_IN_PARAGRAPHS

    def test_phrasing_elements(self):
        assert can_be_in_paragraph("span")
        assert can_be_only_thing_in_paragraph("span")
        assert not can_contain_paragraph("span")
        assert "span" in TAGS_THAT_CANNOT_CONTAIN_PARAGRAPHS

    def test_headings_hold_no_paragraphs(self):
        assert not can_contain_paragraph("h2")
        assert not can_be_in_paragraph("h2")

    def test_pre_may_contain_paragraphs(self):
        assert can_contain_paragraph("pre")

    def test_specials_are_commonmark_block_names(self):
        assert "div" in SPECIALS
        assert "span" not in SPECIALS


class TestUnknownTags:
    def test_unknown_tag_can_contain_but_not_be_in(self):
        assert can_contain_paragraph("my-element")
        assert not can_be_in_paragraph("my-element")
        assert not can_be_only_thing_in_paragraph("my-element")


class TestComponents:
    components = [
        {"name": "Card", "type": "sectioning"},
        {"name": "Badge", "type": "phrasing"},
        {"name": "Box", "type": "all"},
        {"name": "Icon", "type": "none"},
        {"name": "Plain"},
    ]

    def test_sectioning(self):
        assert can_contain_paragraph("Card", self.components)
        assert not can_be_in_paragraph("Card", self.components)

    def test_phrasing(self):
        assert not can_contain_paragraph("Badge", self.components)
        assert can_be_in_paragraph("Badge", self.components)
        assert can_be_only_thing_in_paragraph("Badge", self.components)

    def test_all_and_none(self):
        assert can_contain_paragraph("Box", self.components)
        assert can_be_in_paragraph("Box", self.components)
        assert not can_contain_paragraph("Icon", self.components)
        assert not can_be_in_paragraph("Icon", self.components)

    def test_default_type(self):
        assert can_contain_paragraph("Plain", self.components)
        assert can_be_in_paragraph("Plain", self.components)
        assert not can_be_only_thing_in_paragraph("Plain", self.components)


class TestPrefersInline:
    def test_defaults_to_true(self):
        assert prefers_inline("div")

    def test_callable_default(self):
        assert not prefers_inline("div", [], lambda tag: tag == "span")
        assert prefers_inline("span", [], lambda tag: tag == "span")

    def test_component_setting_wins(self):
        components = [{"name": "Note", "prefers_inline": False}]
        assert not prefers_inline("Note", components, True)
