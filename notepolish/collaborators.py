"""Interfaces to the notification, confirmation and persistence collaborators."""

from __future__ import annotations

import json
import logging
import os
import pathlib
import tempfile
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, List, Sequence

from .errors import PersistenceError, ValidationError
from .structures import Note

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class Notifier(ABC):
    """Fire-and-forget user notifications."""

    @abstractmethod
    def notify(self, title: str, message: str, severity: Severity) -> None:
        """Deliver a notification. Must not raise."""


class LoggingNotifier(Notifier):
    """Routes notifications to the standard logger."""

    _LEVELS = {
        Severity.SUCCESS: logging.INFO,
        Severity.INFO: logging.INFO,
        Severity.WARNING: logging.WARNING,
        Severity.ERROR: logging.ERROR,
    }

    def notify(self, title: str, message: str, severity: Severity) -> None:
        logger.log(self._LEVELS.get(severity, logging.INFO), "%s: %s", title, message)


class ConsoleNotifier(Notifier):
    """Prints notifications for command line use."""

    def __init__(self, *, quiet_info: bool = False) -> None:
        self.quiet_info = quiet_info

    def notify(self, title: str, message: str, severity: Severity) -> None:
        if self.quiet_info and severity is Severity.INFO:
            return
        print(f"[{severity.value}] {title}: {message}")


class Confirmer(ABC):
    """Yes/no gate shown before irreversible actions."""

    @abstractmethod
    def confirm(self, title: str, message: str) -> bool:
        """Return True when the user agrees to proceed."""


class StaticConfirmer(Confirmer):
    """Always gives the same answer (``--yes`` and non-interactive runs)."""

    def __init__(self, answer: bool) -> None:
        self.answer = answer

    def confirm(self, title: str, message: str) -> bool:
        return self.answer


class ConsoleConfirmer(Confirmer):
    """Asks on the terminal."""

    def confirm(self, title: str, message: str) -> bool:
        print(title)
        while True:
            response = input(f"{message} [y/n] ").strip().lower()
            if response in {"y", "yes"}:
                return True
            if response in {"n", "no"}:
                return False
            print("Please respond with yes or no (y/n).")


class NoteRepository(ABC):
    """Loads and commits the complete note collection."""

    @abstractmethod
    def load_notes(self) -> List[Note]:
        """Return every stored note."""

    @abstractmethod
    def save_notes(self, notes: Sequence[Note]) -> None:
        """Commit the whole collection as a single unit."""


class JsonNoteRepository(NoteRepository):
    """Stores notes in a JSON file.

    The file holds either a list of notes or an object with a ``notes`` list.
    The outer shape is kept when saving. Writes go to a temporary file in the
    same directory that then replaces the target.
    """

    def __init__(self, path: pathlib.Path) -> None:
        self.path = path
        self._wrapped = False
        self._envelope: dict[str, Any] = {}

    def load_notes(self) -> List[Note]:
        if not self.path.exists():
            raise PersistenceError(f"Notes file not found: {self.path}")
        try:
            with open(self.path, encoding="utf-8") as handle:
                payload = json.load(handle)
        except (OSError, json.JSONDecodeError) as exc:
            raise PersistenceError(f"Could not read notes from {self.path}: {exc}") from exc

        if isinstance(payload, dict):
            entries = payload.get("notes")
            self._wrapped = True
            self._envelope = {k: v for k, v in payload.items() if k != "notes"}
        else:
            entries = payload
            self._wrapped = False
            self._envelope = {}

        if not isinstance(entries, list):
            raise PersistenceError(
                f"Invalid notes file {self.path}: expected a list of notes."
            )

        notes: List[Note] = []
        for index, entry in enumerate(entries):
            if not isinstance(entry, dict):
                raise PersistenceError(f"Invalid note at position {index} in {self.path}.")
            try:
                notes.append(Note.from_dict(entry))
            except ValidationError as exc:
                raise PersistenceError(f"Invalid note at position {index}: {exc}") from exc
        logger.debug("Loaded %d notes from %s", len(notes), self.path)
        return notes

    def save_notes(self, notes: Sequence[Note]) -> None:
        entries = [note.to_dict() for note in notes]
        payload: Any = {**self._envelope, "notes": entries} if self._wrapped else entries

        directory = self.path.parent
        directory.mkdir(parents=True, exist_ok=True)
        handle = tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=directory,
            prefix=f".{self.path.name}.",
            suffix=".tmp",
            delete=False,
        )
        try:
            with handle:
                json.dump(payload, handle, ensure_ascii=False, indent=2)
                handle.write("\n")
            os.replace(handle.name, self.path)
        except OSError as exc:
            pathlib.Path(handle.name).unlink(missing_ok=True)
            raise PersistenceError(f"Could not write notes to {self.path}: {exc}") from exc
        logger.info("Saved %d notes to %s", len(entries), self.path)
