"""Error handling policy for recovered per-call failures."""

from __future__ import annotations

import logging
from typing import List, Optional

from .collaborators import Notifier, Severity
from .errors import ErrorCategory, ErrorRecord

logger = logging.getLogger(__name__)


class ErrorPolicy:
    """Records failures recovered at call scope and reports them.

    A recovered failure never stops the run. Each one is kept as an
    ``ErrorRecord``, logged as a warning and forwarded to the notifier.
    """

    def __init__(self, notifier: Optional[Notifier] = None) -> None:
        self.notifier = notifier
        self.records: List[ErrorRecord] = []

    def handle_error(
        self,
        category: ErrorCategory,
        message: str,
        *,
        note_id: Optional[str] = None,
        language: Optional[str] = None,
        details: Optional[str] = None,
        notify: bool = True,
    ) -> ErrorRecord:
        """Record a recovered error and emit a non-fatal warning."""

        record = ErrorRecord(
            category=category,
            message=message,
            note_id=note_id,
            language=language,
            details=details,
        )
        self.records.append(record)
        logger.warning("%s%s", message, f" ({details})" if details else "")

        if notify and self.notifier is not None:
            self.notifier.notify("Warning", message, Severity.WARNING)
        return record

    def count(self, category: Optional[ErrorCategory] = None) -> int:
        if category is None:
            return len(self.records)
        return sum(1 for record in self.records if record.category == category)
