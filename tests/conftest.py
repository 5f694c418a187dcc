"""Shared fakes for the note polishing tests."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Set, Tuple

import pytest

from notepolish.collaborators import NoteRepository, Notifier, Severity
from notepolish.configuration import clear_settings_cache
from notepolish.errors import ServiceError
from notepolish.providers import TextTransformationService
from notepolish.structures import Note, TargetLanguageSet


class ScriptedService(TextTransformationService):
    """Returns canned results and fails on request.

    ``formalized`` maps source text to formalized text; unknown text is
    returned with a "formal:" prefix. Translations default to "<code>:<text>".
    """

    def __init__(
        self,
        *,
        formalized: Optional[Dict[str, str]] = None,
        translations: Optional[Dict[Tuple[str, str], str]] = None,
        fail_formalize: Optional[Set[str]] = None,
        fail_translate: Optional[Set[Tuple[str, str]]] = None,
    ) -> None:
        self.formalized = formalized or {}
        self.translations = translations or {}
        self.fail_formalize = fail_formalize or set()
        self.fail_translate = fail_translate or set()
        self.calls: List[Tuple[str, ...]] = []

    def formalize(self, text: str) -> str:
        self.calls.append(("formalize", text))
        if text in self.fail_formalize:
            raise ServiceError("formalize failed")
        return self.formalized.get(text, f"formal:{text}")

    def translate(self, text: str, target_language: str) -> str:
        self.calls.append(("translate", text, target_language))
        if (text, target_language) in self.fail_translate or ("*", target_language) in self.fail_translate:
            raise ServiceError("translate failed")
        return self.translations.get((text, target_language), f"{target_language}:{text}")


class RecordingNotifier(Notifier):
    def __init__(self) -> None:
        self.events: List[Tuple[str, str, Severity]] = []

    def notify(self, title: str, message: str, severity: Severity) -> None:
        self.events.append((title, message, severity))

    def severities(self) -> List[Severity]:
        return [event[2] for event in self.events]


class MemoryRepository(NoteRepository):
    def __init__(self, notes: Sequence[Note] = ()) -> None:
        self.notes = list(notes)
        self.saves: List[List[Note]] = []

    def load_notes(self) -> List[Note]:
        return list(self.notes)

    def save_notes(self, notes: Sequence[Note]) -> None:
        self.notes = list(notes)
        self.saves.append(list(notes))


@pytest.fixture
def languages() -> TargetLanguageSet:
    return TargetLanguageSet(("en", "hi", "ur"))


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch, tmp_path):
    """Keep real user configuration and credentials out of the tests."""

    for key in (
        "LLM_PROVIDER",
        "OPENAI_API_KEY",
        "AZURE_OPENAI_API_KEY",
        "AZURE_OPENAI_ENDPOINT",
        "AZURE_OPENAI_API_VERSION",
        "AZURE_OPENAI_DEPLOYMENT_NAME",
        "NOTEPOLISH_SERVICE",
        "NOTEPOLISH_MODEL",
        "NOTEPOLISH_TARGET_LANGUAGES",
        "NOTEPOLISH_REQUEST_TIMEOUT",
        "NOTEPOLISH_PROVIDER_DEBUG",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    clear_settings_cache()
    yield
    clear_settings_cache()
