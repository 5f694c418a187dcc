"""Sequential orchestration of formalize and translate calls over notes."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from .collaborators import LoggingNotifier, Notifier, Severity
from .errors import ErrorCategory, ErrorRecord, ServiceError
from .policy import ErrorPolicy
from .providers import TextTransformationService
from .structures import Note, Suggestion, TargetLanguageSet, make_title

logger = logging.getLogger(__name__)


class CancellationToken:
    """Shared "still active" signal, checked between notes."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass(frozen=True)
class Progress:
    """Position of the note about to be processed (0-based)."""

    current_index: int
    total: int

    @property
    def position(self) -> int:
        return self.current_index + 1


ProgressCallback = Callable[[Progress], None]


@dataclass
class PipelineResult:
    """Report returned after a bulk run."""

    suggestions: List[Suggestion]
    total_notes: int
    skipped: int
    cancelled: bool
    elapsed_seconds: float
    failures: List[ErrorRecord] = field(default_factory=list)


class SuggestionBuilder:
    """Builds the Suggestion for one note."""

    def __init__(
        self,
        service: TextTransformationService,
        languages: TargetLanguageSet,
        error_policy: ErrorPolicy,
    ) -> None:
        self.service = service
        self.languages = languages
        self.error_policy = error_policy

    def build(self, note: Note) -> Optional[Suggestion]:
        """Formalize, translate into every language, and auto-approve changes.

        Returns None when the note has no source text.
        """

        source = note.baseline
        if not source.strip():
            logger.debug("Skipping note %s: empty source text", note.id)
            return None

        formalized = self.formalize(note, source)
        translations = {
            code: self.translate(note, formalized, code) for code in self.languages
        }
        return Suggestion.create(
            note=note,
            languages=self.languages,
            original_arabic=source,
            formalized_arabic=formalized,
            translations=translations,
            approved_formalization=formalized.strip() != source.strip(),
            approved_translations={code: text != "" for code, text in translations.items()},
        )

    def formalize(self, note: Note, source: str) -> str:
        """Return the formalized text, or the source text if the call fails.

        A blank result counts as a failure.
        """

        try:
            result = self.service.formalize(source).strip()
            if not result:
                raise ServiceError("Formalization returned an empty result.")
            return result
        except ServiceError as exc:
            self.error_policy.handle_error(
                ErrorCategory.FORMALIZATION,
                f"Could not formalize note: {make_title(note.text, 30)}",
                note_id=note.id,
                details=str(exc),
            )
            return source

    def translate(self, note: Note, text: str, language: str) -> str:
        """Return the translation, or an empty string if the call fails."""

        try:
            return self.service.translate(text, language).strip()
        except ServiceError as exc:
            self.error_policy.handle_error(
                ErrorCategory.TRANSLATION,
                f"Could not translate note into {self.languages.name(language)}: "
                f"{make_title(note.text, 30)}",
                note_id=note.id,
                language=language,
                details=str(exc),
                notify=False,
            )
            return ""


class BulkPipeline:
    """Applies SuggestionBuilder to a note set, one note at a time."""

    def __init__(
        self,
        *,
        service: TextTransformationService,
        languages: TargetLanguageSet,
        notifier: Optional[Notifier] = None,
    ) -> None:
        self.service = service
        self.languages = languages
        self.notifier = notifier

    def run(
        self,
        notes: Sequence[Note],
        *,
        token: Optional[CancellationToken] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> PipelineResult:
        start_time = time.monotonic()
        token = token or CancellationToken()
        error_policy = ErrorPolicy(self.notifier)
        builder = SuggestionBuilder(self.service, self.languages, error_policy)

        if not notes:
            self._notify("Nothing to review", "There are no notes to process.", Severity.INFO)
            return PipelineResult([], 0, 0, False, 0.0)

        total = len(notes)
        suggestions: List[Suggestion] = []
        skipped = 0
        cancelled = False

        for index, note in enumerate(notes):
            if token.cancelled:
                cancelled = True
                break
            if on_progress is not None:
                on_progress(Progress(index, total))

            suggestion = builder.build(note)
            if suggestion is None:
                skipped += 1
                continue
            suggestions.append(suggestion)

        # A call that was in flight when cancellation landed is discarded too.
        if cancelled or token.cancelled:
            logger.info("Bulk run cancelled; discarding %d suggestions", len(suggestions))
            return PipelineResult(
                suggestions=[],
                total_notes=total,
                skipped=skipped,
                cancelled=True,
                elapsed_seconds=time.monotonic() - start_time,
                failures=list(error_policy.records),
            )

        logger.info(
            "Bulk run finished: %d suggestions, %d skipped, %d failed calls",
            len(suggestions),
            skipped,
            error_policy.count(),
        )
        self._notify(
            "Review ready",
            f"Generated suggestions for {len(suggestions)} of {total} notes.",
            Severity.SUCCESS,
        )
        return PipelineResult(
            suggestions=suggestions,
            total_notes=total,
            skipped=skipped,
            cancelled=False,
            elapsed_seconds=time.monotonic() - start_time,
            failures=list(error_policy.records),
        )

    def _notify(self, title: str, message: str, severity: Severity) -> None:
        (self.notifier or LoggingNotifier()).notify(title, message, severity)
