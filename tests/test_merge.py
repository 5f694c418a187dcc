"""Tests for merging approved suggestions back into notes."""

from notepolish.merge import changed_note_ids, merge_note, merge_notes
from notepolish.structures import DisplayTranslation, Note, Suggestion


def _suggestion(languages, note, formalized, *, formal=True, translations=None, approvals=None):
    return Suggestion.create(
        note=note,
        languages=languages,
        original_arabic=note.baseline,
        formalized_arabic=formalized,
        translations=translations,
        approved_formalization=formal,
        approved_translations=approvals,
    )


def test_approved_formalization_captures_baseline(languages):
    note = Note(id="n1", text="خدش")
    merged = merge_note(note, _suggestion(languages, note, "يوجد خدش بسيط"), languages)

    assert merged.text == "يوجد خدش بسيط"
    assert merged.original_text == "خدش"
    assert note.text == "خدش"
    assert note.original_text is None


def test_existing_baseline_is_never_overwritten(languages):
    note = Note(id="n1", text="يوجد خدش", original_text="خدش")
    merged = merge_note(note, _suggestion(languages, note, "يوجد خدش بسيط"), languages)
    assert merged.original_text == "خدش"
    assert merged.text == "يوجد خدش بسيط"


def test_merge_is_idempotent(languages):
    notes = [Note(id="n1", text="خدش")]
    suggestions = [
        _suggestion(
            languages,
            notes[0],
            "يوجد خدش بسيط",
            translations={"en": "Minor scratch"},
            approvals={"en": True},
        )
    ]
    once = merge_notes(notes, suggestions, languages)
    twice = merge_notes(once, suggestions, languages)
    assert twice == once
    assert twice[0].original_text == "خدش"


def test_unapproved_formalization_leaves_text(languages):
    note = Note(id="n1", text="خدش")
    merged = merge_note(note, _suggestion(languages, note, "يوجد خدش", formal=False), languages)
    assert merged.text == "خدش"
    assert merged.original_text is None


def test_empty_or_unapproved_translations_are_ignored(languages):
    note = Note(id="n1", text="خدش", translations={"en": "Scratch", "hi": "खरोंच"})
    suggestion = _suggestion(
        languages,
        note,
        "خدش",
        formal=False,
        translations={"en": "", "hi": "नया", "ur": "خراش"},
        approvals={"en": True, "hi": False, "ur": True},
    )
    merged = merge_note(note, suggestion, languages)
    assert merged.translations == {"en": "Scratch", "hi": "खरोंच", "ur": "خراش"}


def test_display_default_is_inactive_arabic(languages):
    note = Note(id="n1", text="خدش")
    merged = merge_note(note, _suggestion(languages, note, "خدش", formal=False), languages)
    assert merged.display_translation == DisplayTranslation("ar", False)

    active = Note(id="n2", text="خدش", display_translation=DisplayTranslation("en", True))
    merged = merge_note(active, _suggestion(languages, active, "خدش"), languages)
    assert merged.display_translation == DisplayTranslation("en", True)


def test_notes_without_suggestions_pass_through(languages):
    notes = [Note(id="a", text="خدش"), Note(id="b", text="صدأ")]
    suggestions = [_suggestion(languages, notes[0], "يوجد خدش")]
    merged = merge_notes(notes, suggestions, languages)

    assert [n.id for n in merged] == ["a", "b"]
    assert merged[1] == notes[1]
    assert merged[1] is not notes[1]
    assert changed_note_ids(notes, merged) == ["a"]
