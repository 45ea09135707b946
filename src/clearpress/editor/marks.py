"""Compliance annotations in a host editor's document.

``MarkManager`` is the only writer of compliance marks. Every change to
the annotation set goes through one host transaction, so a batch of
marks is applied whole or not at all, and the text under the marks is
never touched except by ``accept_suggestion``.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Sequence
from functools import partial
from typing import Any

from clearpress.analysis.schemas import ComplianceIssue, ComplianceReport
from clearpress.constants import (
    COMPLIANCE_MARK,
    FLASH_CLASS,
    FLASH_DURATION_SECONDS,
    ISSUE_ID_ATTRIBUTE,
)
from clearpress.editor.position import map_span
from clearpress.editor.protocols import EditorHost, EditTransaction, MarkLike
from clearpress.editor.session import ReviewSession
from clearpress.resilience.errors import EditorCapabilityError

logger = logging.getLogger(__name__)

_HOST_MEMBERS = (
    "doc",
    "selection",
    "is_destroyed",
    "has_mark_type",
    "transaction",
    "dispatch",
    "find_rendered",
    "schedule",
)


def require_capabilities(editor: object) -> EditorHost:
    """Return ``editor`` typed as a host, or raise EditorCapabilityError."""
    if not isinstance(editor, EditorHost):
        missing = [m for m in _HOST_MEMBERS if not hasattr(editor, m)]
        raise EditorCapabilityError(
            f"Editor host is missing: {', '.join(missing) or 'unknown'}"
        )
    if not editor.has_mark_type(COMPLIANCE_MARK):
        raise EditorCapabilityError(
            f"Editor does not register the {COMPLIANCE_MARK!r} mark type"
        )
    return editor


def mark_attrs(issue: ComplianceIssue) -> dict[str, Any]:
    return {
        "severity": issue.severity.value,
        "issue_id": issue.id,
        "message": issue.message,
        "suggestion": issue.suggestion,
        "rule_reference": issue.rule_reference,
    }


def _issues_of(
    report: ComplianceReport | Sequence[ComplianceIssue] | None,
) -> list[ComplianceIssue]:
    if report is None:
        return []
    if isinstance(report, ComplianceReport):
        return list(report.issues)
    return list(report)


class MarkManager:
    """Applies, removes, dismisses and accepts compliance annotations.

    The dismissal set belongs to ``session``, which the hosting view
    owns; the manager only reads and extends it.
    """

    def __init__(self, editor: object, session: ReviewSession) -> None:
        self._editor = require_capabilities(editor)
        self._session = session
        self._issues: list[ComplianceIssue] = []
        self._disposed = False

    @property
    def issues(self) -> tuple[ComplianceIssue, ...]:
        return tuple(self._issues)

    @property
    def dismissed_ids(self) -> frozenset[str]:
        return self._session.dismissed_ids

    @property
    def session(self) -> ReviewSession:
        return self._session

    @property
    def editor(self) -> EditorHost:
        return self._editor

    def _ensure_active(self) -> None:
        if self._disposed:
            raise RuntimeError("MarkManager has been disposed")

    def _find(self, issue_id: str) -> ComplianceIssue | None:
        return next((i for i in self._issues if i.id == issue_id), None)

    def _dispatch(self, tr: EditTransaction) -> bool:
        if not tr.doc_changed:
            return False
        self._editor.dispatch(tr)
        return True

    # ── Batch application ────────────────────────────────

    def apply_marks(
        self,
        report: ComplianceReport | Sequence[ComplianceIssue] | None,
    ) -> int:
        """Replace all compliance marks with those of ``report``.

        Issues without a position or already dismissed are skipped, as
        are issues whose span no longer maps into the document. Returns
        the number of marks applied. Applying the same report twice
        leaves the document unchanged the second time.
        """
        self._ensure_active()
        self._issues = _issues_of(report)
        visible = [
            (i, i.position)
            for i in self._issues
            if i.position is not None
            and not self._session.is_dismissed(i.id)
        ]
        if not visible:
            self._strip_all()
            return 0

        doc = self._editor.doc
        selection = self._editor.selection
        tr = self._editor.transaction()
        applied = 0
        try:
            tr.remove_mark(0, doc.content_size, COMPLIANCE_MARK)
            for issue, span in visible:
                mapped = map_span(doc, span)
                if mapped is None:
                    logger.debug(
                        "event=position_unmapped issue_id=%s start=%d end=%d",
                        issue.id,
                        span.start,
                        span.end,
                    )
                    continue
                tr.add_mark(*mapped, COMPLIANCE_MARK, mark_attrs(issue))
                applied += 1
            tr.set_selection(selection.from_, selection.to)
        except Exception:
            logger.exception(
                "event=apply_marks_failed issues=%d", len(visible)
            )
            return 0

        self._dispatch(tr)
        logger.debug(
            "event=marks_applied applied=%d skipped=%d",
            applied,
            len(visible) - applied,
        )
        return applied

    def clear_marks(self) -> None:
        """Remove every compliance mark and forget the current issues."""
        self._ensure_active()
        self._issues = []
        self._strip_all()

    def _strip_all(self) -> None:
        tr = self._editor.transaction()
        tr.remove_mark(0, self._editor.doc.content_size, COMPLIANCE_MARK)
        self._dispatch(tr)

    def _strip_issue_marks(
        self, tr: EditTransaction, issue_ids: Collection[str]
    ) -> None:
        """Queue removal of the marks of ``issue_ids`` on ``tr``."""
        targets: list[tuple[int, int, MarkLike]] = []
        for node, pos in tr.doc.descendants():
            if not node.is_text:
                continue
            for mark in node.marks:
                if (
                    mark.type == COMPLIANCE_MARK
                    and mark.attrs.get("issue_id") in issue_ids
                ):
                    targets.append((pos, pos + node.node_size, mark))
        for from_, to, mark in targets:
            tr.remove_mark(from_, to, mark)

    # ── User actions ─────────────────────────────────────

    def dismiss_issue(self, issue_id: str) -> None:
        """Hide one issue now and on every later batch until reset."""
        self._ensure_active()
        self._session.dismiss(issue_id)
        tr = self._editor.transaction()
        self._strip_issue_marks(tr, {issue_id})
        self._dispatch(tr)

    def reset_dismissed(self) -> None:
        self._ensure_active()
        self._session.reset()

    def accept_suggestion(self, issue_id: str, replacement: str) -> bool:
        """Replace the issue's span with ``replacement`` and dismiss it.

        Pending issues after the edit are shifted by the length change;
        issues overlapping the edited span are dropped along with their
        marks. Returns False (document untouched) when the issue is
        unknown, unpositioned or cannot be mapped.
        """
        self._ensure_active()
        issue = self._find(issue_id)
        if issue is None or issue.position is None:
            logger.debug("event=accept_skipped issue_id=%s", issue_id)
            return False
        mapped = map_span(self._editor.doc, issue.position)
        if mapped is None:
            logger.debug(
                "event=position_unmapped issue_id=%s action=accept", issue_id
            )
            return False

        span = issue.position
        delta = len(replacement) - (span.end - span.start)
        kept: list[ComplianceIssue] = []
        dropped = {issue_id}
        for other in self._issues:
            if other.id == issue_id:
                continue
            pos = other.position
            if pos is None or pos.end <= span.start:
                kept.append(other)
            elif pos.start >= span.end:
                kept.append(
                    other.model_copy(update={"position": pos.shifted(delta)})
                )
            else:
                dropped.add(other.id)

        tr = self._editor.transaction()
        try:
            tr.set_selection(*mapped)
            tr.replace_selection(replacement)
            self._strip_issue_marks(tr, dropped)
        except ValueError:
            logger.warning(
                "event=accept_failed issue_id=%s", issue_id, exc_info=True
            )
            return False
        self._editor.dispatch(tr)
        self._session.dismiss(issue_id)

        doc = self._editor.doc
        rebased: list[ComplianceIssue] = []
        for other in kept:
            pos = other.position
            if pos is not None and map_span(doc, pos) is None:
                dropped.add(other.id)
                continue
            rebased.append(other)
        self._issues = rebased
        logger.info(
            "event=suggestion_accepted issue_id=%s delta=%d dropped=%d",
            issue_id,
            delta,
            len(dropped) - 1,
        )
        return True

    def scroll_to_issue(self, issue_id: str) -> bool:
        """Select the issue's range and briefly flash its annotation."""
        self._ensure_active()
        issue = self._find(issue_id)
        if issue is None or issue.position is None:
            return False
        mapped = map_span(self._editor.doc, issue.position)
        if mapped is None:
            logger.debug(
                "event=position_unmapped issue_id=%s action=scroll", issue_id
            )
            return False
        tr = self._editor.transaction()
        tr.set_selection(*mapped)
        self._editor.dispatch(tr)

        elements = self._editor.find_rendered(ISSUE_ID_ATTRIBUTE, issue_id)
        if elements:
            element = elements[0]
            # the flash class is only added once its removal is scheduled
            try:
                self._editor.schedule(
                    FLASH_DURATION_SECONDS,
                    partial(element.remove_class, FLASH_CLASS),
                )
            except Exception:
                logger.warning(
                    "event=flash_unscheduled issue_id=%s",
                    issue_id,
                    exc_info=True,
                )
            else:
                element.add_class(FLASH_CLASS)
        return True

    def dispose(self) -> None:
        """Remove all marks unless the editor is already gone."""
        if self._disposed:
            return
        if not self._editor.is_destroyed:
            self._strip_all()
        self._issues = []
        self._disposed = True
