"""Bulk review session: generate suggestions, approve, confirm, merge, persist."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .approval import ApprovalStateStore
from .collaborators import Confirmer, LoggingNotifier, NoteRepository, Notifier, Severity
from .errors import ValidationError
from .merge import changed_note_ids, merge_notes
from .pipeline import BulkPipeline, CancellationToken, PipelineResult, ProgressCallback
from .structures import Note, TargetLanguageSet

logger = logging.getLogger(__name__)


class BulkReviewSession:
    """Owns the note collection and suggestion list for one bulk review.

    Storage is written at most once, by ``apply()``, after the user has
    confirmed.
    """

    def __init__(
        self,
        *,
        pipeline: BulkPipeline,
        repository: NoteRepository,
        confirmer: Confirmer,
        notifier: Optional[Notifier] = None,
    ) -> None:
        self.pipeline = pipeline
        self.repository = repository
        self.confirmer = confirmer
        self.notifier = notifier
        self.notes: List[Note] = []
        self.result: Optional[PipelineResult] = None
        self.store: Optional[ApprovalStateStore] = None

    @property
    def languages(self) -> TargetLanguageSet:
        return self.pipeline.languages

    def generate(
        self,
        notes: Optional[Sequence[Note]] = None,
        *,
        token: Optional[CancellationToken] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> PipelineResult:
        """Run the pipeline over the notes (loaded from the repository if omitted)."""

        self.notes = list(notes) if notes is not None else self.repository.load_notes()
        self.result = self.pipeline.run(self.notes, token=token, on_progress=on_progress)
        self.store = ApprovalStateStore(self.result.suggestions, self.languages)
        return self.result

    def apply(self) -> Optional[List[Note]]:
        """Merge approved suggestions and persist, after confirmation.

        Returns the saved collection, or None if the user declined.
        """

        if self.store is None or len(self.store) == 0:
            raise ValidationError("There are no suggestions to apply.")
        if not self.store.has_approvals():
            raise ValidationError("Select at least one change to apply.")

        approved = self.store.total_approved()
        if not self.confirmer.confirm(
            "Apply changes",
            f"Apply {approved} selected changes to the notes? This cannot be undone.",
        ):
            logger.info("Bulk apply declined")
            return None

        merged = merge_notes(self.notes, self.store.suggestions, self.languages)
        self.repository.save_notes(merged)
        changed = changed_note_ids(self.notes, merged)
        self.notes = merged
        logger.info("Applied %d approved changes across %d notes", approved, len(changed))
        (self.notifier or LoggingNotifier()).notify(
            "Changes applied",
            f"Updated {len(changed)} of {len(merged)} notes.",
            Severity.SUCCESS,
        )
        return merged
