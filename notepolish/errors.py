"""Error definitions for the note polishing pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class ErrorCategory(Enum):
    """Categorises recovered errors for reporting."""

    FORMALIZATION = auto()
    TRANSLATION = auto()


class NotePolishError(Exception):
    """Base exception for all custom errors."""


class ConfigurationError(NotePolishError):
    """Raised when the transformation service or settings are misconfigured."""


class ServiceError(NotePolishError):
    """Raised when a single formalize or translate call fails."""


class ValidationError(NotePolishError):
    """Raised when an action is blocked by invalid input or selection."""


class WorkflowStateError(NotePolishError):
    """Raised when a workflow action is not allowed in the current state."""


class PersistenceError(NotePolishError):
    """Raised when the note store cannot be read or written."""


@dataclass
class ErrorRecord:
    """Stores context for a handled error."""

    category: ErrorCategory
    message: str
    note_id: Optional[str] = None
    language: Optional[str] = None
    details: Optional[str] = None
