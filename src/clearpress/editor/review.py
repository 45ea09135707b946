"""Hosting view: ties an editor, a review session and the detectors together."""

from __future__ import annotations

import logging

from clearpress.analysis.schemas import ComplianceReport, ComplianceRequest
from clearpress.config import Settings
from clearpress.constants import ContentType, Language
from clearpress.editor.marks import MarkManager
from clearpress.editor.position import extract_text
from clearpress.editor.session import ReviewSession
from clearpress.resilience.errors import ComplianceValidationError
from clearpress.resilience.supersede import Superseded, SupersedingRunner
from clearpress.services.compliance_service import check_compliance

logger = logging.getLogger(__name__)


class ComplianceReview:
    """One editing session's compliance review.

    Owns the ``ReviewSession`` (dismissals), the ``MarkManager`` and a
    ``SupersedingRunner`` so that only the latest ``analyze()`` call
    ever writes marks.
    """

    def __init__(
        self,
        editor: object,
        industry: str,
        *,
        content_id: str | None = None,
        content_type: ContentType | None = None,
        language: Language = "ja",
        settings: Settings | None = None,
    ) -> None:
        if not industry or not industry.strip():
            raise ComplianceValidationError("industry")
        self.industry = industry.strip()
        self.content_type = content_type
        self.language: Language = language
        self._settings = settings or Settings()
        self.session = ReviewSession(content_id)
        self.marks = MarkManager(editor, self.session)
        self._editor = self.marks.editor
        self._runner = SupersedingRunner()
        self.report: ComplianceReport | None = None

    @property
    def _key(self) -> str:
        return f"review:{self.session.content_id or 'default'}"

    async def analyze(self) -> ComplianceReport | None:
        """Check the current document text and annotate it.

        Returns None when the document is empty or this analysis was
        superseded by a newer one before it finished.
        """
        content = extract_text(self._editor.doc)
        if not content.strip():
            self.report = None
            self.marks.clear_marks()
            return None

        request = ComplianceRequest(
            content=content,
            industry=self.industry,
            content_type=self.content_type,
            language=self.language,
        )

        async def _run() -> ComplianceReport:
            return await check_compliance(request, self._settings)

        try:
            report: ComplianceReport = await self._runner.run(
                self._key, _run
            )
        except Superseded:
            logger.debug("event=analysis_discarded key=%s", self._key)
            return None

        if self._editor.is_destroyed:
            return None
        if extract_text(self._editor.doc) != content:
            # text changed while the detectors ran; offsets are stale
            logger.info("event=analysis_stale key=%s", self._key)
            return None
        self.report = report
        self.marks.apply_marks(report)
        return report

    def switch_content(self, content_id: str | None) -> None:
        """Move the review to other content; dismissals start over."""
        self._runner.cancel(self._key)
        if self.session.switch_content(content_id):
            self.report = None
            self.marks.clear_marks()

    def close(self) -> None:
        self._runner.cancel(self._key)
        self.marks.dispose()
