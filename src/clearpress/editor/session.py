"""Per-content review state that outlives individual analysis batches."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class ReviewSession:
    """Dismissed issue ids for one piece of content.

    Issue ids are derived from span and message, so re-analyzing
    unchanged text reproduces them and a dismissal keeps suppressing
    the same issue. Switching to different content starts a fresh set.
    """

    def __init__(self, content_id: str | None = None) -> None:
        self._content_id = content_id
        self._dismissed: set[str] = set()

    @property
    def content_id(self) -> str | None:
        return self._content_id

    @property
    def dismissed_ids(self) -> frozenset[str]:
        return frozenset(self._dismissed)

    def dismiss(self, issue_id: str) -> None:
        self._dismissed.add(issue_id)

    def is_dismissed(self, issue_id: str) -> bool:
        return issue_id in self._dismissed

    def reset(self) -> None:
        self._dismissed.clear()

    def switch_content(self, content_id: str | None) -> bool:
        """Point the session at other content; True if state was reset."""
        if content_id == self._content_id:
            return False
        logger.debug(
            "event=review_content_switched from=%s to=%s dismissed=%d",
            self._content_id,
            content_id,
            len(self._dismissed),
        )
        self._content_id = content_id
        self._dismissed.clear()
        return True
