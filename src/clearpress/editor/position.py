"""Map flat-text offsets to structured-document positions and back.

Detectors see the document as one flat string. The editor addresses
content with positions that also count node boundaries. Both views are
derived from the same walk over ``doc.descendants()``:

- a text node contributes its characters;
- a text block (paragraph, heading) contributes nothing of its own;
- any other block or leaf (list, blockquote, hard break, image)
  contributes exactly one unit, rendered as ``"\\n"`` in flat text.

Nothing is cached; mapping runs once per discrete analysis event,
never per keystroke.
"""

from __future__ import annotations

from clearpress.analysis.schemas import TextSpan
from clearpress.editor.protocols import DocumentLike, NodeLike

SEPARATOR = "\n"


def contributes_unit(node: NodeLike) -> bool:
    """True for non-text nodes that count as one flat-text character."""
    return (
        not node.is_text
        and not node.is_textblock
        and (node.is_block or node.is_leaf)
    )


def extract_text(doc: DocumentLike) -> str:
    """Flat text in exactly the coordinate space the mapper uses."""
    parts: list[str] = []
    for node, _pos in doc.descendants():
        if node.is_text:
            parts.append(node.text or "")
        elif contributes_unit(node):
            parts.append(SEPARATOR)
    return "".join(parts)


def text_offset_to_doc_position(
    doc: DocumentLike, offset: int
) -> int | None:
    """Return the document position of a flat-text offset.

    The first text node whose accumulated length reaches the offset
    wins, so an offset on a node boundary maps to the end of the
    earlier node. ``None`` means unmappable (negative, past the end);
    callers skip the issue rather than fail.
    """
    if offset < 0:
        return None
    consumed = 0
    for node, pos in doc.descendants():
        if node.is_text:
            length = len(node.text or "")
            if consumed + length >= offset:
                return pos + (offset - consumed)
            consumed += length
        elif contributes_unit(node):
            if offset == consumed:
                return pos
            consumed += 1
    return None


def doc_position_to_text_offset(
    doc: DocumentLike, position: int
) -> int | None:
    """Inverse of ``text_offset_to_doc_position`` for text positions.

    Positions that fall on pure structure (between blocks) have no
    flat-text counterpart and return ``None``.
    """
    consumed = 0
    for node, pos in doc.descendants():
        if node.is_text:
            length = len(node.text or "")
            if pos <= position <= pos + length:
                return consumed + (position - pos)
            consumed += length
        elif contributes_unit(node):
            if position == pos:
                return consumed
            consumed += 1
    return None


def map_span(
    doc: DocumentLike, span: TextSpan
) -> tuple[int, int] | None:
    """Map ``[start, end)`` to a non-empty document range, or None."""
    from_ = text_offset_to_doc_position(doc, span.start)
    to = text_offset_to_doc_position(doc, span.end)
    if from_ is None or to is None or to <= from_:
        return None
    return from_, to
