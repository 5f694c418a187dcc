"""Interactive two-step polishing of a single note."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from .collaborators import LoggingNotifier, NoteRepository, Notifier, Severity
from .errors import ErrorCategory, ServiceError, ValidationError, WorkflowStateError
from .merge import merge_notes
from .policy import ErrorPolicy
from .providers import TextTransformationService
from .structures import Note, Suggestion, TargetLanguageSet

logger = logging.getLogger(__name__)


class WorkflowState(str, Enum):
    FORMALIZING = "formalizing"
    READY_FOR_TRANSLATION = "ready_for_translation"
    TRANSLATING = "translating"
    REVIEWING = "reviewing"


_ALLOWED_TRANSITIONS: Dict[WorkflowState, Set[WorkflowState]] = {
    WorkflowState.FORMALIZING: {WorkflowState.READY_FOR_TRANSLATION},
    WorkflowState.READY_FOR_TRANSLATION: {WorkflowState.FORMALIZING, WorkflowState.TRANSLATING},
    WorkflowState.TRANSLATING: {WorkflowState.REVIEWING, WorkflowState.READY_FOR_TRANSLATION},
    WorkflowState.REVIEWING: {WorkflowState.FORMALIZING, WorkflowState.TRANSLATING},
}


def can_transition(current: WorkflowState, target: WorkflowState) -> bool:
    return target in _ALLOWED_TRANSITIONS.get(current, set())


class SingleNoteWorkflow:
    """Formalize one note, translate the result, review, then save.

    Step 1 edits a draft of the Arabic text. ``formalize()`` always starts
    from the baseline (the note's original text, or its current text if it
    was never formalized), so it discards unsaved edits to the draft.
    Step 2 translates the draft as it was when ``proceed()`` was called.
    Every translation starts out approved, even an empty one; an approved
    empty translation never overwrites a stored one when saving.
    """

    def __init__(
        self,
        *,
        notes: Sequence[Note],
        note_id: str,
        service: TextTransformationService,
        languages: TargetLanguageSet,
        repository: NoteRepository,
        notifier: Optional[Notifier] = None,
    ) -> None:
        self.notes: List[Note] = list(notes)
        self.note = self._find(note_id)
        self.service = service
        self.languages = languages
        self.repository = repository
        self.notifier = notifier
        self.error_policy = ErrorPolicy(notifier)

        self.state = WorkflowState.FORMALIZING
        self.baseline = self.note.baseline
        self.draft = self.note.text
        self.frozen_text: Optional[str] = None
        self.selected_languages: Tuple[str, ...] = ()
        self.suggestion: Optional[Suggestion] = None

    def _find(self, note_id: str) -> Note:
        for note in self.notes:
            if note.id == note_id:
                return note
        raise ValidationError(f"Note '{note_id}' was not found.")

    # Step 1

    def open(self) -> None:
        """Enter step 1, formalizing once when the draft is still the baseline."""

        self._require(WorkflowState.FORMALIZING)
        self._auto_formalize()

    def _auto_formalize(self) -> None:
        if self.draft == self.baseline and self.baseline.strip():
            self.formalize()

    @property
    def draft_changed(self) -> bool:
        return self.draft != self.baseline

    def formalize(self) -> bool:
        """Re-derive the draft from the baseline. Returns False if the call failed."""

        self._require(WorkflowState.FORMALIZING)
        if not self.baseline.strip():
            raise ValidationError("The original text is empty and cannot be formalized.")
        try:
            result = self.service.formalize(self.baseline).strip()
            if not result:
                raise ServiceError("Formalization returned an empty result.")
        except ServiceError as exc:
            self.error_policy.handle_error(
                ErrorCategory.FORMALIZATION,
                "Automatic formalization failed. You can edit the text manually.",
                note_id=self.note.id,
                details=str(exc),
            )
            return False

        self.draft = result
        self._notify("Formalization", "A formal wording was suggested for the note.", Severity.INFO)
        return True

    def edit_draft(self, text: str) -> None:
        self._require(WorkflowState.FORMALIZING)
        self.draft = text

    def revert(self) -> None:
        """Restore the draft to the baseline text."""

        self._require(WorkflowState.FORMALIZING)
        self.draft = self.baseline

    def proceed(self) -> None:
        """Freeze the draft and move on to language selection."""

        self._require(WorkflowState.FORMALIZING)
        if not self.draft.strip():
            raise ValidationError("The Arabic text is empty and cannot be translated.")
        self.frozen_text = self.draft
        self._transition(WorkflowState.READY_FOR_TRANSLATION)

    # Step 2

    def select_languages(self, codes: Iterable[str]) -> Tuple[str, ...]:
        self._require(WorkflowState.READY_FOR_TRANSLATION, WorkflowState.REVIEWING)
        self.selected_languages = self.languages.select(codes)
        return self.selected_languages

    def toggle_language(self, code: str) -> Tuple[str, ...]:
        self._require(WorkflowState.READY_FOR_TRANSLATION, WorkflowState.REVIEWING)
        code = self.languages.require(code)
        selected = set(self.selected_languages)
        selected.symmetric_difference_update({code})
        self.selected_languages = self.languages.select(selected)
        return self.selected_languages

    def translate(self) -> Suggestion:
        """Translate the frozen draft into each selected language."""

        self._require(WorkflowState.READY_FOR_TRANSLATION, WorkflowState.REVIEWING)
        if not self.selected_languages:
            raise ValidationError("Select at least one language to translate into.")
        frozen_text = self._frozen_text()

        self.suggestion = None
        failures_before = self.error_policy.count()
        self._transition(WorkflowState.TRANSLATING)
        completed = False
        try:
            translations: Dict[str, str] = {}
            for code in self.selected_languages:
                try:
                    translations[code] = self.service.translate(frozen_text, code).strip()
                except ServiceError as exc:
                    self.error_policy.handle_error(
                        ErrorCategory.TRANSLATION,
                        f"Could not translate the note into {self.languages.name(code)}.",
                        note_id=self.note.id,
                        language=code,
                        details=str(exc),
                    )
                    translations[code] = ""
            self.suggestion = Suggestion.create(
                note=self.note,
                languages=self.languages,
                original_arabic=self.baseline,
                formalized_arabic=frozen_text,
                translations=translations,
                approved_formalization=True,
                approved_translations={code: True for code in self.selected_languages},
            )
            completed = True
        finally:
            self._transition(
                WorkflowState.REVIEWING if completed else WorkflowState.READY_FOR_TRANSLATION
            )

        failed = self.error_policy.count() - failures_before
        if failed:
            self._notify(
                "Translation incomplete",
                f"{failed} of {len(self.selected_languages)} translations failed.",
                Severity.WARNING,
            )
        else:
            self._notify(
                "Translation complete", "Suggested translations are ready.", Severity.SUCCESS
            )
        return self.suggestion

    def toggle_translation(self, code: str) -> bool:
        suggestion = self._reviewed(code)
        value = not suggestion.approved_translations[code]
        suggestion.approved_translations[code] = value
        return value

    def edit_translation(self, code: str, text: str) -> None:
        self._reviewed(code).translations[code] = text

    def _reviewed(self, code: str) -> Suggestion:
        self._require(WorkflowState.REVIEWING)
        if self.suggestion is None:
            raise WorkflowStateError("There are no translations to review.")
        if self.languages.require(code) not in self.selected_languages:
            raise ValidationError(f"Language '{code}' was not translated in this session.")
        return self.suggestion

    def back(self) -> None:
        """Return to step 1, dropping translation results."""

        self._require(WorkflowState.READY_FOR_TRANSLATION, WorkflowState.REVIEWING)
        self.suggestion = None
        self.frozen_text = None
        self._transition(WorkflowState.FORMALIZING)
        self._auto_formalize()

    def save(self) -> Note:
        """Merge the reviewed result into the notes and persist them immediately."""

        self._require(WorkflowState.READY_FOR_TRANSLATION, WorkflowState.REVIEWING)
        frozen_text = self._frozen_text()
        suggestion = self.suggestion or Suggestion.create(
            note=self.note,
            languages=self.languages,
            original_arabic=self.baseline,
            formalized_arabic=frozen_text,
            approved_formalization=True,
        )

        merged = merge_notes(self.notes, [suggestion], self.languages)
        self.repository.save_notes(merged)
        self.notes = merged
        self.note = self._find(self.note.id)
        logger.info("Saved note %s", self.note.id)
        self._notify("Saved", "The note was updated.", Severity.SUCCESS)
        return self.note

    def _frozen_text(self) -> str:
        if self.frozen_text is None:
            raise WorkflowStateError("The Arabic text has not been confirmed yet.")
        return self.frozen_text

    def _require(self, *states: WorkflowState) -> None:
        if self.state not in states:
            allowed = ", ".join(state.value for state in states)
            raise WorkflowStateError(
                f"Action not allowed while {self.state.value}; expected {allowed}."
            )

    def _transition(self, target: WorkflowState) -> None:
        if not can_transition(self.state, target):
            raise WorkflowStateError(
                f"Cannot move from {self.state.value} to {target.value}."
            )
        self.state = target

    def _notify(self, title: str, message: str, severity: Severity) -> None:
        (self.notifier or LoggingNotifier()).notify(title, message, severity)
