"""Reconcile approved suggestions with the note collection.

The functions here are pure: input notes are never mutated and no I/O
happens. Merging the same approved suggestions twice gives the same notes as
merging them once, because the baseline text is captured only while
``original_text`` is unset and the formalized text is only applied when it
differs from the current text.
"""

from __future__ import annotations

import copy
from typing import Dict, Iterable, List, Sequence

from .structures import SOURCE_LANGUAGE, DisplayTranslation, Note, Suggestion, TargetLanguageSet


def merge_note(note: Note, suggestion: Suggestion, languages: TargetLanguageSet) -> Note:
    """Apply one suggestion's approved fields to a copy of the note."""

    merged = copy.deepcopy(note)

    if suggestion.approved_formalization and suggestion.formalized_arabic != note.text:
        if merged.original_text is None:
            merged.original_text = note.text
        merged.text = suggestion.formalized_arabic

    for code in languages:
        if code not in suggestion.translations:
            continue
        text = suggestion.translations[code]
        if suggestion.approved_translations[code] and text:
            merged.translations[code] = text

    if merged.display_translation is None:
        merged.display_translation = DisplayTranslation(lang=SOURCE_LANGUAGE, is_active=False)
    return merged


def merge_notes(
    notes: Sequence[Note],
    suggestions: Iterable[Suggestion],
    languages: TargetLanguageSet,
) -> List[Note]:
    """Return the full collection with approved suggestions applied."""

    by_note: Dict[str, Suggestion] = {s.note_id: s for s in suggestions}
    merged: List[Note] = []
    for note in notes:
        suggestion = by_note.get(note.id)
        if suggestion is None:
            merged.append(copy.deepcopy(note))
        else:
            merged.append(merge_note(note, suggestion, languages))
    return merged


def changed_note_ids(before: Sequence[Note], after: Sequence[Note]) -> List[str]:
    """Ids of notes whose text or translations differ between two collections."""

    previous = {note.id: note for note in before}
    changed: List[str] = []
    for note in after:
        old = previous.get(note.id)
        if old is None or old.text != note.text or old.translations != note.translations:
            changed.append(note.id)
    return changed
