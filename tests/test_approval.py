"""Tests for approval flags and aggregate column state."""

import pytest

from notepolish.approval import FORMALIZATION, AggregateState, ApprovalStateStore
from notepolish.errors import ValidationError
from notepolish.structures import Note, Suggestion, TargetLanguageSet


def _suggestion(languages, note_id, *, formal=True, en=True, hi=False, ur=False):
    return Suggestion.create(
        note=Note(id=note_id, text="خدش"),
        languages=languages,
        original_arabic="خدش",
        formalized_arabic="يوجد خدش",
        translations={"en": "Scratch", "hi": "खरोंच", "ur": "خراش"},
        approved_formalization=formal,
        approved_translations={"en": en, "hi": hi, "ur": ur},
    )


@pytest.fixture
def store(languages):
    return ApprovalStateStore(
        [
            _suggestion(languages, "1", en=True),
            _suggestion(languages, "2", en=True, hi=True),
            _suggestion(languages, "3", formal=False, en=True),
        ],
        languages,
    )


class TestAggregateState:
    def test_all_true_is_checked(self, store):
        assert store.aggregate("en") is AggregateState.CHECKED

    def test_none_true_is_unchecked(self, store):
        assert store.aggregate("ur") is AggregateState.UNCHECKED

    def test_mixed_is_indeterminate(self, store):
        assert store.aggregate("hi") is AggregateState.INDETERMINATE
        assert store.aggregate(FORMALIZATION) is AggregateState.INDETERMINATE

    def test_recomputed_after_each_change(self, store):
        store.toggle("3", FORMALIZATION)
        assert store.aggregate(FORMALIZATION) is AggregateState.CHECKED
        store.set_approval("1", "en", False)
        assert store.aggregate("en") is AggregateState.INDETERMINATE

    def test_empty_store_is_unchecked(self, languages):
        empty = ApprovalStateStore([], languages)
        assert empty.aggregate("en") is AggregateState.UNCHECKED
        assert empty.has_approvals() is False


class TestToggling:
    def test_toggle_changes_only_one_field(self, store):
        assert store.toggle("2", "hi") is False
        suggestion = store.get("2")
        assert suggestion.approved_formalization is True
        assert dict(suggestion.approved_translations) == {"en": True, "hi": False, "ur": False}

    def test_set_all(self, store):
        store.set_all("ur", True)
        assert store.aggregate("ur") is AggregateState.CHECKED
        store.set_all(FORMALIZATION, False)
        assert store.approved_formalization_count() == 0
        assert store.aggregate("en") is AggregateState.CHECKED

    def test_counts(self, store):
        assert store.approved_formalization_count() == 2
        assert store.approved_translation_count() == 4
        assert store.approved_translation_count("hi") == 1
        assert store.total_approved() == 6

    def test_unknown_field_or_note(self, store):
        with pytest.raises(ValidationError):
            store.toggle("1", "fr")
        with pytest.raises(ValidationError):
            store.toggle("missing", "en")

    def test_rejects_suggestions_for_other_languages(self, languages):
        other = TargetLanguageSet(["en"])
        with pytest.raises(ValidationError):
            ApprovalStateStore([_suggestion(languages, "1")], other)

    def test_aggregates_cover_every_field(self, store):
        assert list(store.aggregates()) == [FORMALIZATION, "en", "hi", "ur"]
