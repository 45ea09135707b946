"""Capability interface a host editor must satisfy.

Any structured-document editor satisfying these protocols
structurally (no inheritance) can host compliance annotations. The
in-memory implementation in ``clearpress.editor.document`` is one;
a bridge to a browser editor would be another.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any, Protocol, runtime_checkable


class MarkLike(Protocol):
    @property
    def type(self) -> str: ...
    @property
    def attrs(self) -> Mapping[str, Any]: ...


class NodeLike(Protocol):
    @property
    def is_text(self) -> bool: ...
    @property
    def is_block(self) -> bool: ...
    @property
    def is_textblock(self) -> bool: ...
    @property
    def is_leaf(self) -> bool: ...
    @property
    def text(self) -> str | None: ...
    @property
    def marks(self) -> Sequence[MarkLike]: ...
    @property
    def node_size(self) -> int: ...


class DocumentLike(Protocol):
    """Iterates nodes in document order with their start positions."""

    def descendants(self) -> Iterable[tuple[NodeLike, int]]: ...
    @property
    def content_size(self) -> int: ...


class SelectionLike(Protocol):
    @property
    def from_(self) -> int: ...
    @property
    def to(self) -> int: ...


class RenderedElement(Protocol):
    """A rendered annotation element (a DOM span in a browser)."""

    def get_attribute(self, name: str) -> str | None: ...
    def add_class(self, name: str) -> None: ...
    def remove_class(self, name: str) -> None: ...


class EditTransaction(Protocol):
    """One atomic edit; nothing is visible until it is dispatched."""

    @property
    def doc(self) -> DocumentLike: ...
    @property
    def doc_changed(self) -> bool: ...
    def add_mark(
        self,
        from_: int,
        to: int,
        mark_type: str,
        attrs: Mapping[str, Any],
    ) -> None: ...
    def remove_mark(
        self, from_: int, to: int, mark: str | MarkLike
    ) -> None: ...
    def set_selection(self, from_: int, to: int) -> None: ...
    def replace_selection(self, text: str) -> None: ...


@runtime_checkable
class EditorHost(Protocol):
    @property
    def doc(self) -> DocumentLike: ...
    @property
    def selection(self) -> SelectionLike: ...
    @property
    def is_destroyed(self) -> bool: ...
    def has_mark_type(self, name: str) -> bool: ...
    def transaction(self) -> EditTransaction: ...
    def dispatch(self, tr: EditTransaction) -> None: ...
    def find_rendered(
        self, attribute: str, value: str
    ) -> Sequence[RenderedElement]: ...
    def schedule(
        self, delay: float, callback: Callable[[], None]
    ) -> None: ...
