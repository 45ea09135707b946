"""In-memory structured document and editor host.

A small ProseMirror-style model: an immutable node tree addressed by
integer positions, marks stored on text nodes, and transactions that
build a new tree which only becomes visible when dispatched. It
satisfies ``clearpress.editor.protocols.EditorHost`` and backs the CLI
and the test suite.

Position arithmetic follows ProseMirror: a text node is as long as its
text, a leaf node (hard break, image, rule) has size 1, and any other
node has size ``content_size + 2`` for its opening and closing tokens.
The children of the root ``doc`` node start at position 0.
"""

from __future__ import annotations

import asyncio
import html
import threading
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field, replace
from typing import Any, NamedTuple

from clearpress.constants import (
    COMPLIANCE_ATTRIBUTE,
    COMPLIANCE_MARK,
    MARK_CLASSES,
    Severity,
)
from clearpress.editor.position import extract_text


class NodeSpec(NamedTuple):
    block: bool
    textblock: bool = False
    leaf: bool = False


NODE_SPECS: dict[str, NodeSpec] = {
    "doc": NodeSpec(block=True),
    "paragraph": NodeSpec(block=True, textblock=True),
    "heading": NodeSpec(block=True, textblock=True),
    "blockquote": NodeSpec(block=True),
    "bullet_list": NodeSpec(block=True),
    "ordered_list": NodeSpec(block=True),
    "list_item": NodeSpec(block=True),
    "horizontal_rule": NodeSpec(block=True, leaf=True),
    "text": NodeSpec(block=False, leaf=True),
    "hard_break": NodeSpec(block=False, leaf=True),
    "image": NodeSpec(block=False, leaf=True),
}

# mark type -> inclusive (typed text at the mark's edge inherits it)
MARK_SPECS: dict[str, bool] = {
    "bold": True,
    "italic": True,
    "link": False,
    COMPLIANCE_MARK: False,
}


@dataclass(frozen=True)
class Mark:
    type: str
    attrs: Mapping[str, Any] = field(default_factory=lambda: dict[str, Any]())


@dataclass(frozen=True)
class Node:
    type: str
    content: tuple[Node, ...] = ()
    text: str | None = None
    marks: tuple[Mark, ...] = ()
    attrs: Mapping[str, Any] = field(default_factory=lambda: dict[str, Any]())

    def __post_init__(self) -> None:
        if self.type not in NODE_SPECS:
            raise ValueError(f"Unknown node type: {self.type!r}")
        if self.type == "text":
            if not self.text:
                raise ValueError("Text nodes must not be empty")
            if self.content:
                raise ValueError("Text nodes cannot have children")

    @property
    def spec(self) -> NodeSpec:
        return NODE_SPECS[self.type]

    @property
    def is_text(self) -> bool:
        return self.type == "text"

    @property
    def is_block(self) -> bool:
        return self.spec.block

    @property
    def is_textblock(self) -> bool:
        return self.spec.textblock

    @property
    def is_leaf(self) -> bool:
        return self.spec.leaf

    @property
    def content_size(self) -> int:
        return sum(child.node_size for child in self.content)

    @property
    def node_size(self) -> int:
        if self.is_text:
            return len(self.text or "")
        if self.is_leaf:
            return 1
        return self.content_size + 2

    def descendants(self) -> Iterator[tuple[Node, int]]:
        """Yield every descendant with its start position, pre-order."""
        return _walk(self.content, 0)


def _walk(nodes: tuple[Node, ...], pos: int) -> Iterator[tuple[Node, int]]:
    for child in nodes:
        yield child, pos
        if child.content:
            yield from _walk(child.content, pos + 1)
        pos += child.node_size


# ── Builders ─────────────────────────────────────────────


def doc(*blocks: Node) -> Node:
    return Node("doc", content=blocks)


def paragraph(*inline: Node) -> Node:
    return Node("paragraph", content=inline)


def heading(*inline: Node, level: int = 1) -> Node:
    return Node("heading", content=inline, attrs={"level": level})


def blockquote(*blocks: Node) -> Node:
    return Node("blockquote", content=blocks)


def bullet_list(*items: Node) -> Node:
    return Node("bullet_list", content=items)


def list_item(*blocks: Node) -> Node:
    return Node("list_item", content=blocks)


def text(value: str, *marks: Mark) -> Node:
    return Node("text", text=value, marks=marks)


def hard_break() -> Node:
    return Node("hard_break")


def horizontal_rule() -> Node:
    return Node("horizontal_rule")


def from_plain_text(value: str) -> Node:
    """One paragraph; newlines become hard breaks.

    ``extract_text`` of the result returns ``value`` unchanged, so
    detector offsets computed on the file map straight into the doc.
    """
    inline: list[Node] = []
    for i, line in enumerate(value.split("\n")):
        if i:
            inline.append(hard_break())
        if line:
            inline.append(text(line))
    return doc(paragraph(*inline))


# ── Inline rewriting ─────────────────────────────────────


class _Atom(NamedTuple):
    """One position-unit of inline content: a character or a leaf."""

    char: str | None
    leaf: Node | None
    marks: tuple[Mark, ...]


_InlineEdit = Callable[[list[_Atom], int], list[_Atom] | None]


def _atoms(block: Node) -> list[_Atom]:
    atoms: list[_Atom] = []
    for child in block.content:
        if child.is_text:
            atoms.extend(
                _Atom(ch, None, child.marks) for ch in child.text or ""
            )
        else:
            atoms.append(_Atom(None, child, child.marks))
    return atoms


def _rebuild_inline(atoms: list[_Atom]) -> tuple[Node, ...]:
    """Group atoms back into nodes, merging equal-marked text runs."""
    nodes: list[Node] = []
    run: list[str] = []
    run_marks: tuple[Mark, ...] = ()
    for atom in atoms:
        if atom.char is not None:
            if run and atom.marks != run_marks:
                nodes.append(text("".join(run), *run_marks))
                run = []
            run_marks = atom.marks
            run.append(atom.char)
            continue
        if run:
            nodes.append(text("".join(run), *run_marks))
            run = []
        if atom.leaf is not None:
            nodes.append(atom.leaf)
    if run:
        nodes.append(text("".join(run), *run_marks))
    return tuple(nodes)


def _edit_textblocks(node: Node, content_start: int, edit: _InlineEdit) -> Node:
    """Apply ``edit`` to every text block; untouched subtrees are shared."""
    if node.is_textblock:
        atoms = edit(_atoms(node), content_start)
        if atoms is None:
            return node
        return replace(node, content=_rebuild_inline(atoms))
    if not node.content:
        return node
    children: list[Node] = []
    changed = False
    pos = content_start
    for child in node.content:
        new_child = (
            child if child.is_leaf
            else _edit_textblocks(child, pos + 1, edit)
        )
        changed = changed or new_child is not child
        children.append(new_child)
        pos += child.node_size
    return replace(node, content=tuple(children)) if changed else node


def add_mark(root: Node, from_: int, to: int, mark: Mark) -> Node:
    def edit(atoms: list[_Atom], start: int) -> list[_Atom] | None:
        out = list(atoms)
        changed = False
        for i, atom in enumerate(atoms):
            if not from_ <= start + i < to or atom.char is None:
                continue
            if mark not in atom.marks:
                out[i] = atom._replace(marks=(*atom.marks, mark))
                changed = True
        return out if changed else None

    return _edit_textblocks(root, 0, edit)


def remove_mark(
    root: Node, from_: int, to: int, mark: str | Mark
) -> Node:
    def matches(m: Mark) -> bool:
        return m.type == mark if isinstance(mark, str) else m == mark

    def edit(atoms: list[_Atom], start: int) -> list[_Atom] | None:
        out = list(atoms)
        changed = False
        for i, atom in enumerate(atoms):
            if not from_ <= start + i < to:
                continue
            kept = tuple(m for m in atom.marks if not matches(m))
            if len(kept) != len(atom.marks):
                out[i] = atom._replace(marks=kept)
                changed = True
        return out if changed else None

    return _edit_textblocks(root, 0, edit)


def replace_text(root: Node, from_: int, to: int, value: str) -> Node:
    """Replace ``[from_, to)`` with plain text inside one text block.

    Inserted text inherits the inclusive marks of the character before
    it (or after it, at the start of a block). Raises ``ValueError``
    when the range crosses a block boundary.
    """
    found = False

    def edit(atoms: list[_Atom], start: int) -> list[_Atom] | None:
        nonlocal found
        if found or not start <= from_ <= to <= start + len(atoms):
            return None
        found = True
        lo, hi = from_ - start, to - start
        neighbour = atoms[lo - 1] if lo > 0 else (
            atoms[hi] if hi < len(atoms) else None
        )
        inherited: tuple[Mark, ...] = ()
        if neighbour is not None and neighbour.char is not None:
            inherited = tuple(
                m for m in neighbour.marks if MARK_SPECS.get(m.type, True)
            )
        inserted = [_Atom(ch, None, inherited) for ch in value]
        return [*atoms[:lo], *inserted, *atoms[hi:]]

    result = _edit_textblocks(root, 0, edit)
    if not found:
        msg = f"Range {from_}-{to} does not lie within one text block"
        raise ValueError(msg)
    return result


# ── Selection and transactions ───────────────────────────


@dataclass(frozen=True)
class Selection:
    from_: int
    to: int


class Transaction:
    """Accumulates edits against a snapshot of the document.

    The editor's document is untouched until ``Editor.dispatch``; a
    transaction that is dropped (or fails half-way) leaves no trace.
    """

    def __init__(self, root: Node, selection: Selection) -> None:
        self._before = root
        self._doc = root
        self._selection = selection

    @property
    def doc(self) -> Node:
        return self._doc

    @property
    def selection(self) -> Selection:
        return self._selection

    @property
    def doc_changed(self) -> bool:
        return self._doc is not self._before and self._doc != self._before

    def add_mark(
        self,
        from_: int,
        to: int,
        mark_type: str,
        attrs: Mapping[str, Any],
    ) -> None:
        self._doc = add_mark(self._doc, from_, to, Mark(mark_type, dict(attrs)))

    def remove_mark(self, from_: int, to: int, mark: str | Mark) -> None:
        self._doc = remove_mark(self._doc, from_, to, mark)

    def set_selection(self, from_: int, to: int) -> None:
        size = self._doc.content_size
        lo, hi = sorted((from_, to))
        self._selection = Selection(
            max(0, min(lo, size)), max(0, min(hi, size))
        )

    def replace_selection(self, value: str) -> None:
        sel = self._selection
        self._doc = replace_text(self._doc, sel.from_, sel.to, value)
        cursor = sel.from_ + len(value)
        self._selection = Selection(cursor, cursor)


# ── Rendering ────────────────────────────────────────────


@dataclass
class RenderedSpan:
    """Rendered compliance annotation, the DOM span of a browser editor."""

    text: str
    attributes: dict[str, str]
    classes: set[str] = field(default_factory=lambda: set[str]())

    def get_attribute(self, name: str) -> str | None:
        return self.attributes.get(name)

    def add_class(self, name: str) -> None:
        self.classes.add(name)

    def remove_class(self, name: str) -> None:
        self.classes.discard(name)


def compliance_span_attributes(attrs: Mapping[str, Any]) -> dict[str, str]:
    """HTML attributes for a compliance mark; empty optionals omitted."""
    out = {
        COMPLIANCE_ATTRIBUTE: "true",
        "data-issue-type": str(attrs.get("severity") or Severity.WARNING),
        "data-issue-id": str(attrs.get("issue_id") or ""),
        "data-message": str(attrs.get("message") or ""),
    }
    if attrs.get("suggestion"):
        out["data-suggestion"] = str(attrs["suggestion"])
    if attrs.get("rule_reference"):
        out["data-rule-reference"] = str(attrs["rule_reference"])
    return out


def _severity_class(attrs: Mapping[str, Any]) -> str:
    try:
        return MARK_CLASSES[Severity(str(attrs.get("severity")))]
    except ValueError:
        return MARK_CLASSES[Severity.WARNING]


class EditorView:
    """Keeps the rendered compliance spans in step with the document."""

    def __init__(self) -> None:
        self.elements: list[RenderedSpan] = []

    def render(self, root: Node) -> None:
        elements: list[RenderedSpan] = []
        open_spans: list[tuple[Mark, RenderedSpan, int]] = []
        for node, pos in root.descendants():
            if not node.is_text:
                continue
            still_open: list[tuple[Mark, RenderedSpan, int]] = []
            for mark in node.marks:
                if mark.type != COMPLIANCE_MARK:
                    continue
                current = next(
                    (
                        (m, el)
                        for m, el, end in open_spans
                        if m == mark and end == pos
                    ),
                    None,
                )
                if current is None:
                    el = RenderedSpan(
                        text=node.text or "",
                        attributes=compliance_span_attributes(mark.attrs),
                        classes={_severity_class(mark.attrs)},
                    )
                    elements.append(el)
                else:
                    el = current[1]
                    el.text += node.text or ""
                still_open.append((mark, el, pos + node.node_size))
            open_spans = still_open
        self.elements = elements

    def find(self, attribute: str, value: str) -> list[RenderedSpan]:
        return [
            el for el in self.elements if el.get_attribute(attribute) == value
        ]

    def html(self, root: Node) -> str:
        return "".join(_node_html(child) for child in root.content)


_BLOCK_TAGS: dict[str, str] = {
    "paragraph": "p",
    "blockquote": "blockquote",
    "bullet_list": "ul",
    "ordered_list": "ol",
    "list_item": "li",
}


def _node_html(node: Node) -> str:
    if node.is_text:
        out = html.escape(node.text or "")
        for mark in reversed(node.marks):
            out = _wrap_mark(mark, out)
        return out
    if node.type == "hard_break":
        return "<br>"
    if node.type == "horizontal_rule":
        return "<hr>"
    if node.type == "image":
        return f'<img src="{html.escape(str(node.attrs.get("src", "")))}">'
    inner = "".join(_node_html(child) for child in node.content)
    tag = (
        f"h{node.attrs.get('level', 1)}"
        if node.type == "heading"
        else _BLOCK_TAGS.get(node.type, "div")
    )
    return f"<{tag}>{inner}</{tag}>"


def _wrap_mark(mark: Mark, inner: str) -> str:
    if mark.type == "bold":
        return f"<strong>{inner}</strong>"
    if mark.type == "italic":
        return f"<em>{inner}</em>"
    if mark.type == "link":
        href = html.escape(str(mark.attrs.get("href", "")))
        return f'<a href="{href}">{inner}</a>'
    if mark.type == COMPLIANCE_MARK:
        attrs = {
            "class": _severity_class(mark.attrs),
            **compliance_span_attributes(mark.attrs),
        }
        rendered = " ".join(
            f'{k}="{html.escape(v)}"' for k, v in attrs.items()
        )
        return f"<span {rendered}>{inner}</span>"
    return inner


# ── Editor ───────────────────────────────────────────────


class Editor:
    """In-memory EditorHost.

    ``mark_types`` lists the registered mark types; leave out
    ``COMPLIANCE_MARK`` to model an editor without the annotation
    extension. ``loop`` pins scheduled callbacks to one event loop.
    """

    def __init__(
        self,
        root: Node | None = None,
        *,
        mark_types: Iterable[str] | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._loop = loop
        self._doc = root if root is not None else from_plain_text("")
        self._selection = Selection(0, 0)
        self._mark_types = frozenset(
            MARK_SPECS if mark_types is None else mark_types
        )
        self._destroyed = False
        self.dispatch_count = 0
        self.view = EditorView()
        self.view.render(self._doc)

    @property
    def doc(self) -> Node:
        return self._doc

    @property
    def selection(self) -> Selection:
        return self._selection

    @property
    def is_destroyed(self) -> bool:
        return self._destroyed

    def has_mark_type(self, name: str) -> bool:
        return name in self._mark_types

    def transaction(self) -> Transaction:
        return Transaction(self._doc, self._selection)

    def dispatch(self, tr: Transaction) -> None:
        if self._destroyed:
            raise RuntimeError("Cannot dispatch to a destroyed editor")
        self._doc = tr.doc
        self._selection = tr.selection
        self.dispatch_count += 1
        self.view.render(self._doc)

    def set_content(self, root: Node) -> None:
        """Load a different document (a content switch)."""
        self._doc = root
        self._selection = Selection(0, 0)
        self.view.render(self._doc)

    def get_text(self) -> str:
        return extract_text(self._doc)

    def html(self) -> str:
        return self.view.html(self._doc)

    def find_rendered(
        self, attribute: str, value: str
    ) -> list[RenderedSpan]:
        return self.view.find(attribute, value)

    def schedule(self, delay: float, callback: Callable[[], None]) -> None:
        """Run ``callback`` after ``delay`` seconds.

        Uses the editor's own loop, else the running one. Synchronous
        callers with neither get a daemon timer thread.
        """
        loop = self._loop
        if loop is None:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                timer = threading.Timer(delay, callback)
                timer.daemon = True
                timer.start()
                return
        loop.call_later(delay, callback)

    def destroy(self) -> None:
        self._destroyed = True
