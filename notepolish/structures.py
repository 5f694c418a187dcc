"""Core data structures for note polishing."""

from __future__ import annotations

from collections.abc import MutableMapping
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from .errors import ValidationError

SOURCE_LANGUAGE = "ar"
GENERAL_CATEGORY = "general"
TITLE_PREVIEW_LENGTH = 50

KNOWN_LANGUAGE_NAMES: Dict[str, str] = {
    "en": "English",
    "hi": "Hindi",
    "ur": "Urdu",
    "fil": "Filipino",
    "bn": "Bengali",
}


class LanguageRecord(MutableMapping):
    """A mapping whose keys are fixed to a configured language set.

    Every configured language is always present. Assigning an unknown
    language or removing an entry raises ``ValidationError``.
    """

    def __init__(
        self,
        languages: Iterable[str],
        values: Optional[Mapping[str, Any]] = None,
        *,
        default: Any,
    ) -> None:
        self._values: Dict[str, Any] = {code: default for code in languages}
        for code, value in (values or {}).items():
            self[code] = value

    def __getitem__(self, code: str) -> Any:
        return self._values[code]

    def __setitem__(self, code: str, value: Any) -> None:
        if code not in self._values:
            raise ValidationError(
                f"Unknown language '{code}'. Expected one of: "
                + ", ".join(self._values)
                + "."
            )
        self._values[code] = value

    def __delitem__(self, code: str) -> None:
        raise ValidationError(
            f"Cannot remove language '{code}': language records have a fixed shape."
        )

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"LanguageRecord({self._values!r})"

    def copy(self) -> "LanguageRecord":
        return LanguageRecord(self._values.keys(), self._values, default=None)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._values)


class TargetLanguageSet:
    """Ordered, validated set of translation target languages."""

    def __init__(
        self,
        codes: Iterable[str],
        names: Optional[Mapping[str, str]] = None,
    ) -> None:
        normalised: List[str] = []
        for raw in codes:
            code = str(raw).strip().lower()
            if not code:
                raise ValidationError("Language codes must not be blank.")
            if code == SOURCE_LANGUAGE:
                raise ValidationError(
                    f"'{SOURCE_LANGUAGE}' is the source language and cannot be a target."
                )
            if code in normalised:
                raise ValidationError(f"Duplicate language code '{code}'.")
            normalised.append(code)
        if not normalised:
            raise ValidationError("At least one target language must be configured.")

        overrides = dict(names or {})
        self.codes: Tuple[str, ...] = tuple(normalised)
        self._names = {
            code: overrides.get(code) or KNOWN_LANGUAGE_NAMES.get(code, code)
            for code in self.codes
        }

    @classmethod
    def parse(cls, value: str) -> "TargetLanguageSet":
        """Build a language set from a comma separated list of codes."""

        return cls(part for part in value.split(",") if part.strip())

    def __contains__(self, code: object) -> bool:
        return code in self.codes

    def __iter__(self) -> Iterator[str]:
        return iter(self.codes)

    def __len__(self) -> int:
        return len(self.codes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TargetLanguageSet):
            return NotImplemented
        return self.codes == other.codes

    def __repr__(self) -> str:
        return f"TargetLanguageSet({list(self.codes)!r})"

    def name(self, code: str) -> str:
        self.require(code)
        return self._names[code]

    def require(self, code: str) -> str:
        if code not in self.codes:
            raise ValidationError(
                f"Language '{code}' is not configured. Available: {', '.join(self.codes)}."
            )
        return code

    def select(self, codes: Iterable[str]) -> Tuple[str, ...]:
        """Validate a subset of codes and return it in configured order."""

        wanted = {self.require(code.strip().lower()) for code in codes}
        return tuple(code for code in self.codes if code in wanted)

    def text_record(self, values: Optional[Mapping[str, str]] = None) -> LanguageRecord:
        return LanguageRecord(self.codes, values, default="")

    def flag_record(self, values: Optional[Mapping[str, bool]] = None) -> LanguageRecord:
        return LanguageRecord(self.codes, values, default=False)


DEFAULT_TARGET_LANGUAGES = TargetLanguageSet(("en", "hi", "ur"))


@dataclass
class DisplayTranslation:
    """Which language a note is displayed in on reports."""

    lang: str = SOURCE_LANGUAGE
    is_active: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"lang": self.lang, "isActive": self.is_active}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DisplayTranslation":
        return cls(
            lang=str(data.get("lang") or SOURCE_LANGUAGE),
            is_active=bool(data.get("isActive", False)),
        )


_NOTE_KEYS = {"id", "text", "originalText", "translations", "displayTranslation", "categoryId"}


@dataclass
class Note:
    """A single inspection remark."""

    id: str
    text: str
    original_text: Optional[str] = None
    translations: Dict[str, str] = field(default_factory=dict)
    display_translation: Optional[DisplayTranslation] = None
    category_id: str = GENERAL_CATEGORY
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def baseline(self) -> str:
        """Text before any formalization was applied."""

        return self.original_text if self.original_text is not None else self.text

    def display_text(self) -> str:
        display = self.display_translation
        if display and display.is_active:
            translated = self.translations.get(display.lang)
            if translated:
                return translated
        return self.text

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = dict(self.extra)
        data["id"] = self.id
        data["text"] = self.text
        if self.original_text is not None:
            data["originalText"] = self.original_text
        data["translations"] = dict(self.translations)
        if self.display_translation is not None:
            data["displayTranslation"] = self.display_translation.to_dict()
        data["categoryId"] = self.category_id
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Note":
        note_id = data.get("id")
        text = data.get("text")
        if note_id is None or str(note_id) == "":
            raise ValidationError("Note entry is missing an 'id'.")
        if not isinstance(text, str):
            raise ValidationError(f"Note '{note_id}' has no text.")

        translations = data.get("translations") or {}
        if not isinstance(translations, Mapping):
            raise ValidationError(f"Note '{note_id}' has malformed translations.")

        display = data.get("displayTranslation")
        original = data.get("originalText")
        return cls(
            id=str(note_id),
            text=text,
            original_text=original if isinstance(original, str) else None,
            translations={str(k): str(v) for k, v in translations.items()},
            display_translation=(
                DisplayTranslation.from_dict(display) if isinstance(display, Mapping) else None
            ),
            category_id=str(data.get("categoryId") or GENERAL_CATEGORY),
            extra={k: v for k, v in data.items() if k not in _NOTE_KEYS},
        )


def make_title(text: str, limit: int = TITLE_PREVIEW_LENGTH) -> str:
    """Short single-line preview of a note."""

    flattened = " ".join(text.split())
    if len(flattened) <= limit:
        return flattened
    return flattened[:limit] + "..."


@dataclass
class Suggestion:
    """Proposed formalization and translations for one note, pending review."""

    note_id: str
    original_arabic: str
    formalized_arabic: str
    translations: LanguageRecord
    approved_formalization: bool
    approved_translations: LanguageRecord
    title: str = ""
    category_id: str = GENERAL_CATEGORY

    def __post_init__(self) -> None:
        if list(self.translations) != list(self.approved_translations):
            raise ValidationError(
                f"Suggestion for note '{self.note_id}' has mismatched language records."
            )

    @classmethod
    def create(
        cls,
        *,
        note: Note,
        languages: TargetLanguageSet,
        original_arabic: str,
        formalized_arabic: str,
        translations: Optional[Mapping[str, str]] = None,
        approved_formalization: bool = False,
        approved_translations: Optional[Mapping[str, bool]] = None,
    ) -> "Suggestion":
        return cls(
            note_id=note.id,
            original_arabic=original_arabic,
            formalized_arabic=formalized_arabic,
            translations=languages.text_record(translations),
            approved_formalization=approved_formalization,
            approved_translations=languages.flag_record(approved_translations),
            title=make_title(note.text),
            category_id=note.category_id,
        )

    @property
    def languages(self) -> Tuple[str, ...]:
        return tuple(self.translations)

    def approval_count(self) -> int:
        return int(self.approved_formalization) + sum(
            1 for value in self.approved_translations.values() if value
        )
