"""Tests for the in-memory document model and editor host."""

from __future__ import annotations

import pytest

from clearpress.constants import COMPLIANCE_MARK
from clearpress.editor.document import (
    Editor,
    Mark,
    Node,
    add_mark,
    bullet_list,
    doc,
    from_plain_text,
    hard_break,
    list_item,
    paragraph,
    remove_mark,
    replace_text,
    text,
)
from clearpress.editor.protocols import EditorHost
from clearpress.editor.position import extract_text

BOLD = Mark("bold")


class TestNodeSizes:
    def test_sizes(self) -> None:
        root = doc(paragraph(text("AB")), paragraph(text("CD")))
        assert root.content_size == 8
        assert root.content[0].node_size == 4
        assert hard_break().node_size == 1

    def test_descendant_positions(self) -> None:
        root = doc(paragraph(text("AB")), paragraph(text("CD")))
        positions = [(n.type, n.text, p) for n, p in root.descendants()]
        assert positions == [
            ("paragraph", None, 0),
            ("text", "AB", 1),
            ("paragraph", None, 4),
            ("text", "CD", 5),
        ]

    def test_empty_text_rejected(self) -> None:
        with pytest.raises(ValueError, match="must not be empty"):
            text("")

    def test_unknown_type_rejected(self) -> None:
        with pytest.raises(ValueError, match="Unknown node type"):
            Node("table")


class TestFromPlainText:
    def test_round_trips_through_extract_text(self) -> None:
        value = "line one\n\nline three\n"
        assert extract_text(from_plain_text(value)) == value

    def test_empty(self) -> None:
        root = from_plain_text("")
        assert extract_text(root) == ""
        assert root.content_size == 2


class TestMarkOperations:
    def test_add_mark_splits_text(self) -> None:
        root = doc(paragraph(text("hello")))
        marked = add_mark(root, 2, 4, BOLD)
        para = marked.content[0]
        assert [(n.text, n.marks) for n in para.content] == [
            ("h", ()),
            ("el", (BOLD,)),
            ("lo", ()),
        ]

    def test_remove_mark_merges_text(self) -> None:
        root = add_mark(doc(paragraph(text("hello"))), 2, 4, BOLD)
        cleared = remove_mark(root, 0, root.content_size, "bold")
        assert cleared == doc(paragraph(text("hello")))

    def test_add_existing_mark_returns_same_tree(self) -> None:
        root = add_mark(doc(paragraph(text("hello"))), 1, 6, BOLD)
        assert add_mark(root, 1, 6, BOLD) is root

    def test_marks_do_not_cross_into_other_blocks(self) -> None:
        root = doc(paragraph(text("AB")), paragraph(text("CD")))
        marked = add_mark(root, 3, 7, BOLD)
        assert marked.content[0] == root.content[0]
        assert marked.content[1].content[0].marks == (BOLD,)


class TestReplaceText:
    def test_replace_inside_block(self) -> None:
        root = from_plain_text("bad word here")
        replaced = replace_text(root, 1, 4, "good")
        assert extract_text(replaced) == "good word here"

    def test_inserted_text_skips_non_inclusive_marks(self) -> None:
        flagged = Mark(COMPLIANCE_MARK, {"issue_id": "x"})
        root = doc(paragraph(text("ab", BOLD, flagged), text("cd")))
        replaced = replace_text(root, 3, 5, "ZZ")
        para = replaced.content[0]
        assert para.content[-1].text == "ZZ"
        assert para.content[-1].marks == (BOLD,)

    def test_cross_block_range_rejected(self) -> None:
        root = doc(paragraph(text("AB")), paragraph(text("CD")))
        with pytest.raises(ValueError, match="one text block"):
            replace_text(root, 2, 6, "x")


class TestEditor:
    def test_satisfies_host_protocol(self) -> None:
        assert isinstance(Editor(), EditorHost)

    def test_transaction_invisible_until_dispatch(self) -> None:
        editor = Editor(from_plain_text("hello"))
        before = editor.doc
        tr = editor.transaction()
        tr.add_mark(1, 3, "bold", {})
        assert tr.doc_changed
        assert editor.doc is before
        editor.dispatch(tr)
        assert editor.doc is tr.doc
        assert editor.dispatch_count == 1

    def test_selection_clamped(self) -> None:
        editor = Editor(from_plain_text("hello"))
        tr = editor.transaction()
        tr.set_selection(50, -3)
        assert (tr.selection.from_, tr.selection.to) == (0, 7)

    def test_replace_selection_moves_cursor(self) -> None:
        editor = Editor(from_plain_text("hello world"))
        tr = editor.transaction()
        tr.set_selection(1, 6)
        tr.replace_selection("bye")
        editor.dispatch(tr)
        assert editor.get_text() == "bye world"
        assert (editor.selection.from_, editor.selection.to) == (4, 4)

    def test_dispatch_after_destroy_rejected(self) -> None:
        editor = Editor()
        editor.destroy()
        with pytest.raises(RuntimeError):
            editor.dispatch(editor.transaction())

    def test_mark_registry(self) -> None:
        assert Editor().has_mark_type(COMPLIANCE_MARK)
        assert not Editor(mark_types=["bold"]).has_mark_type(
            COMPLIANCE_MARK
        )

    def test_rendered_spans_follow_marks(self) -> None:
        editor = Editor(
            doc(bullet_list(list_item(paragraph(text("risky claim")))))
        )
        tr = editor.transaction()
        tr.add_mark(
            3,
            8,
            COMPLIANCE_MARK,
            {"severity": "error", "issue_id": "i1", "message": "m"},
        )
        editor.dispatch(tr)
        spans = editor.find_rendered("data-issue-id", "i1")
        assert len(spans) == 1
        assert spans[0].text == "risky"
        assert spans[0].classes == {"compliance-mark-error"}
        assert spans[0].get_attribute("data-compliance-issue") == "true"
        assert spans[0].get_attribute("data-issue-type") == "error"
        assert spans[0].get_attribute("data-suggestion") is None

    def test_html_output(self) -> None:
        editor = Editor(from_plain_text("a<b\nc"))
        tr = editor.transaction()
        tr.add_mark(
            1, 2, COMPLIANCE_MARK, {"severity": "warning", "issue_id": "w"}
        )
        editor.dispatch(tr)
        html = editor.html()
        assert html.startswith("<p><span class=\"compliance-mark-warning\"")
        assert 'data-issue-id="w"' in html
        assert "&lt;b<br>c</p>" in html
