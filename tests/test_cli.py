"""End-to-end tests for the command line interface using the echo service."""

import json

import pytest

from notepolish.cli import main, resolve_languages, split_codes
from notepolish.configuration import NotePolishConfig
from notepolish.errors import ValidationError


@pytest.fixture
def notes_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    path = tmp_path / "notes.json"
    path.write_text(
        json.dumps(
            [
                {"id": "n1", "text": "خدش في الباب", "translations": {"en": "Old"}},
                {"id": "n2", "text": "  "},
            ],
            ensure_ascii=False,
        ),
        encoding="utf-8",
    )
    return path


def _stored(path):
    return json.loads(path.read_text(encoding="utf-8"))


def test_split_and_resolve_languages():
    assert split_codes(["en,hi", " ur "]) == ["en", "hi", "ur"]
    settings = NotePolishConfig(NOTEPOLISH_TARGET_LANGUAGES="en,fil")
    assert resolve_languages(None, settings).codes == ("en", "fil")
    assert resolve_languages(["UR"], settings).codes == ("ur",)
    with pytest.raises(ValidationError):
        resolve_languages(["ar"], settings)


def test_review_applies_with_yes(notes_file, capsys):
    assert main(["review", str(notes_file), "-p", "echo", "-l", "en,hi", "--yes"]) == 0

    stored = _stored(notes_file)
    assert stored[0]["text"] == "خدش في الباب"
    assert "originalText" not in stored[0]
    assert stored[0]["translations"] == {"en": "خدش في الباب", "hi": "خدش في الباب"}
    assert stored[0]["displayTranslation"] == {"lang": "ar", "isActive": False}
    assert stored[1] == {"id": "n2", "text": "  ", "translations": {}, "categoryId": "general"}
    assert "1 skipped" in capsys.readouterr().out


def test_review_reject_column(notes_file):
    assert main(["review", str(notes_file), "-p", "echo", "--reject", "hi", "-y"]) == 0
    assert _stored(notes_file)[0]["translations"] == {
        "en": "خدش في الباب",
        "ur": "خدش في الباب",
    }


def test_review_dry_run_leaves_file(notes_file):
    before = notes_file.read_text(encoding="utf-8")
    assert main(["review", str(notes_file), "-p", "echo", "--dry-run"]) == 0
    assert notes_file.read_text(encoding="utf-8") == before


def test_review_non_interactive_without_yes(notes_file, capsys):
    before = notes_file.read_text(encoding="utf-8")
    assert main(["review", str(notes_file), "-p", "echo", "--non-interactive"]) == 2
    assert notes_file.read_text(encoding="utf-8") == before
    assert "No changes were applied." in capsys.readouterr().out


def test_note_command_with_custom_text(notes_file):
    code = main(
        ["note", str(notes_file), "n1", "-p", "echo", "--text", "يوجد خدش", "-l", "en,ur", "--drop", "ur"]
    )
    assert code == 0
    stored = _stored(notes_file)[0]
    assert stored["text"] == "يوجد خدش"
    assert stored["originalText"] == "خدش في الباب"
    assert stored["translations"] == {"en": "يوجد خدش"}


def test_note_command_unknown_id(notes_file):
    assert main(["note", str(notes_file), "missing", "-p", "echo"]) == 1


def test_missing_credentials_fail_fast(notes_file, capsys):
    assert main(["review", str(notes_file), "-p", "openai", "-y"]) == 1
    assert "OPENAI_API_KEY" in capsys.readouterr().out


def test_invalid_configuration(notes_file, monkeypatch):
    monkeypatch.setenv("NOTEPOLISH_TARGET_LANGUAGES", "ar")
    assert main(["review", str(notes_file), "-p", "echo"]) == 1
