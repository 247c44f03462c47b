"""Per-document side channel."""

import pytest

from texdown.context import DocumentContext, SideChannelStore


class TestDocumentContext:
    def test_mark_and_lines(self):
        context = DocumentContext("a.sveltex")
        context.mark(math_present=True)
        context.add_head_lines(["<title>x</title>"])
        context.add_script_module_lines(["export const metadata = {};"])
        assert context.math_present
        assert context.head_lines == ["<title>x</title>"]
        assert context.script_module_lines == ["export const metadata = {};"]

    def test_mark_rejects_unknown_flags(self):
        with pytest.raises(AttributeError):
            DocumentContext().mark(nonsense=True)

    def test_first_head_token_wins(self):
        context = DocumentContext()
        assert context.set_head_token("id1")
        assert not context.set_head_token("id2")
        assert context.head_token == "id1"


class TestSideChannelStore:
    def test_dropped_after_both_phases(self):
        store = SideChannelStore()
        context = store.open("a.sveltex")
        assert store.consume("a.sveltex", "module") is context
        assert len(store) == 1
        assert store.consume("a.sveltex", "instance") is context
        assert len(store) == 0
        assert store.consume("a.sveltex", "instance") is None

    def test_reopen_replaces_stale_context(self):
        store = SideChannelStore()
        first = store.open("a.sveltex")
        store.consume("a.sveltex", "module")
        second = store.open("a.sveltex")
        assert second is not first
        assert store.consume("a.sveltex", "instance") is second
        assert store.get("a.sveltex") is second

    def test_unknown_phase(self):
        with pytest.raises(ValueError):
            SideChannelStore().consume("a.sveltex", "other")

    def test_discard(self):
        store = SideChannelStore()
        store.open("a.sveltex")
        store.consume("a.sveltex", "module")
        store.discard("a.sveltex")
        store.discard("missing.sveltex")
        assert len(store) == 0
        assert store.get("a.sveltex") is None
