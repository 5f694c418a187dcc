"""Per-suggestion approval flags and the derived "select all" state."""

from __future__ import annotations

from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence

from .errors import ValidationError
from .structures import Suggestion, TargetLanguageSet

FORMALIZATION = "formalization"


class AggregateState(str, Enum):
    CHECKED = "checked"
    UNCHECKED = "unchecked"
    INDETERMINATE = "indeterminate"


class ApprovalStateStore:
    """Holds the suggestion list of one review session.

    A field is either ``FORMALIZATION`` or one configured language code.
    Aggregate state is computed from the suggestions on every call and never
    stored.
    """

    def __init__(self, suggestions: Iterable[Suggestion], languages: TargetLanguageSet) -> None:
        self.languages = languages
        self._suggestions: List[Suggestion] = list(suggestions)
        self._index: Dict[str, int] = {}
        for position, suggestion in enumerate(self._suggestions):
            if suggestion.note_id in self._index:
                raise ValidationError(f"Duplicate suggestion for note '{suggestion.note_id}'.")
            if suggestion.languages != languages.codes:
                raise ValidationError(
                    f"Suggestion for note '{suggestion.note_id}' does not match the configured languages."
                )
            self._index[suggestion.note_id] = position

    @property
    def suggestions(self) -> Sequence[Suggestion]:
        return tuple(self._suggestions)

    @property
    def fields(self) -> List[str]:
        return [FORMALIZATION, *self.languages.codes]

    def __len__(self) -> int:
        return len(self._suggestions)

    def get(self, note_id: str) -> Suggestion:
        try:
            return self._suggestions[self._index[note_id]]
        except KeyError:
            raise ValidationError(f"No suggestion for note '{note_id}'.") from None

    def set_approval(self, note_id: str, field: str, approved: bool) -> None:
        self._write(self.get(note_id), self._check_field(field), approved)

    def toggle(self, note_id: str, field: str) -> bool:
        """Flip one flag on one suggestion and return the new value."""

        suggestion = self.get(note_id)
        field = self._check_field(field)
        value = not self._read(suggestion, field)
        self._write(suggestion, field, value)
        return value

    def set_all(self, field: str, approved: bool) -> None:
        """Select-all semantics: one value for a field across every suggestion."""

        field = self._check_field(field)
        for suggestion in self._suggestions:
            self._write(suggestion, field, approved)

    def aggregate(self, field: str) -> AggregateState:
        field = self._check_field(field)
        values = [self._read(suggestion, field) for suggestion in self._suggestions]
        if values and all(values):
            return AggregateState.CHECKED
        if not any(values):
            return AggregateState.UNCHECKED
        return AggregateState.INDETERMINATE

    def aggregates(self) -> Dict[str, AggregateState]:
        return {field: self.aggregate(field) for field in self.fields}

    def approved_formalization_count(self) -> int:
        return sum(1 for s in self._suggestions if s.approved_formalization)

    def approved_translation_count(self, language: Optional[str] = None) -> int:
        codes = [self.languages.require(language)] if language else list(self.languages)
        return sum(
            1 for s in self._suggestions for code in codes if s.approved_translations[code]
        )

    def total_approved(self) -> int:
        return self.approved_formalization_count() + self.approved_translation_count()

    def has_approvals(self) -> bool:
        return self.total_approved() > 0

    def _check_field(self, field: str) -> str:
        if field == FORMALIZATION:
            return field
        return self.languages.require(field)

    @staticmethod
    def _read(suggestion: Suggestion, field: str) -> bool:
        if field == FORMALIZATION:
            return suggestion.approved_formalization
        return bool(suggestion.approved_translations[field])

    @staticmethod
    def _write(suggestion: Suggestion, field: str, approved: bool) -> None:
        if field == FORMALIZATION:
            suggestion.approved_formalization = bool(approved)
        else:
            suggestion.approved_translations[field] = bool(approved)
