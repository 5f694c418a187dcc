"""Command line interface for reviewing and polishing inspection notes."""

from __future__ import annotations

import argparse
import logging
import pathlib
import sys
import threading
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .approval import FORMALIZATION, ApprovalStateStore
from .collaborators import (
    ConsoleConfirmer,
    ConsoleNotifier,
    Confirmer,
    JsonNoteRepository,
    StaticConfirmer,
)
from .configuration import NotePolishConfig, get_settings
from .errors import ConfigurationError, NotePolishError
from .pipeline import BulkPipeline, CancellationToken, PipelineResult, Progress
from .providers import build_service
from .review import BulkReviewSession
from .structures import Suggestion, TargetLanguageSet
from .workflow import SingleNoteWorkflow


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "notes_file",
        help="Path to the JSON file holding the notes.",
    )
    parser.add_argument(
        "-l",
        "--languages",
        action="append",
        help="Target language codes, comma separated or repeated (default: configured set).",
    )
    parser.add_argument(
        "-p",
        "--service",
        help="Transformation service identifier (openai, legacy-openai, echo).",
    )
    parser.add_argument(
        "-m",
        "--model",
        help="Provider-specific model or deployment identifier.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show the suggestions without saving anything.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show detailed progress information.",
    )
    parser.add_argument(
        "--debug-provider",
        action="store_true",
        help="Log complete service requests and responses for troubleshooting.",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="notepolish",
        description=(
            "Formalize Arabic inspection notes, translate them, and merge the "
            "approved results back into the notes file."
        ),
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    review = subparsers.add_parser(
        "review",
        help="Formalize and translate every note, then apply the approved changes.",
    )
    _add_common_arguments(review)
    review.add_argument(
        "--approve",
        action="append",
        default=[],
        metavar="FIELD",
        help="Approve a column for every note ('formalization' or a language code).",
    )
    review.add_argument(
        "--reject",
        action="append",
        default=[],
        metavar="FIELD",
        help="Reject a column for every note ('formalization' or a language code).",
    )
    review.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Apply without asking for confirmation.",
    )
    review.add_argument(
        "--non-interactive",
        action="store_true",
        help="Never prompt; without --yes nothing is applied.",
    )

    note = subparsers.add_parser(
        "note",
        help="Formalize and translate a single note and save it.",
    )
    _add_common_arguments(note)
    note.add_argument("note_id", help="Identifier of the note to polish.")
    note.add_argument(
        "--text",
        help="Use this Arabic text instead of the suggested formalization.",
    )
    note.add_argument(
        "--revert",
        action="store_true",
        help="Keep the baseline Arabic text instead of the formalization.",
    )
    note.add_argument(
        "--drop",
        action="append",
        default=[],
        metavar="LANG",
        help="Do not save the translation for this language.",
    )
    return parser


def split_codes(values: Optional[Iterable[str]]) -> List[str]:
    codes: List[str] = []
    for entry in values or []:
        codes.extend(part.strip() for part in entry.split(",") if part.strip())
    return codes


def resolve_languages(
    requested: Optional[Iterable[str]],
    settings: NotePolishConfig,
) -> TargetLanguageSet:
    """Use the requested codes if any, else the configured language set."""

    codes = split_codes(requested)
    if not codes:
        return settings.target_languages()
    return TargetLanguageSet(codes)


def configure_logging(*, verbose: bool, provider_debug: bool) -> None:
    level = logging.DEBUG if provider_debug else logging.INFO if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def run_interruptible(
    session: BulkReviewSession,
    token: CancellationToken,
    on_progress: Any,
) -> PipelineResult:
    """Run the pipeline on a worker thread; Ctrl+C cancels between notes."""

    outcome: Dict[str, Any] = {}

    def worker() -> None:
        try:
            outcome["result"] = session.generate(token=token, on_progress=on_progress)
        except BaseException as exc:  # re-raised on the main thread
            outcome["error"] = exc

    thread = threading.Thread(target=worker, name="notepolish-pipeline", daemon=True)
    thread.start()
    while thread.is_alive():
        try:
            thread.join(0.2)
        except KeyboardInterrupt:
            if not token.cancelled:
                print("\nCancelling after the current request finishes...")
                token.cancel()

    if "error" in outcome:
        raise outcome["error"]
    return outcome["result"]


def print_suggestions(store: ApprovalStateStore) -> None:
    """Output the review table: one block per note plus column states."""

    languages = store.languages
    for suggestion in store.suggestions:
        print(f"\n[{suggestion.note_id}] {suggestion.title}")
        _print_field("ar", suggestion.approved_formalization, suggestion.formalized_arabic)
        for code in languages:
            _print_field(
                code,
                suggestion.approved_translations[code],
                suggestion.translations[code] or "(no result)",
            )

    print("\nColumns:")
    for field, state in store.aggregates().items():
        label = field if field == FORMALIZATION else languages.name(field)
        print(f"  {label:<14} {state.value}")
    print(
        f"Selected: {store.approved_formalization_count()} formalizations, "
        f"{store.approved_translation_count()} translations."
    )


def _print_field(label: str, approved: bool, text: str) -> None:
    mark = "x" if approved else " "
    print(f"  [{mark}] {label:<4} {text}")


def print_summary(result: PipelineResult) -> None:
    print("\nReview generated.")
    print(f"  Notes:       {result.total_notes} total, {result.skipped} skipped (empty)")
    print(f"  Suggestions: {len(result.suggestions)}")
    print(f"  Elapsed:     {result.elapsed_seconds:.2f} seconds")
    if result.failures:
        print("  Issues:")
        for record in result.failures:
            print(f"    - {record.message}")


def _choose_confirmer(*, yes: bool, non_interactive: bool) -> Confirmer:
    if yes:
        return StaticConfirmer(True)
    if non_interactive:
        return StaticConfirmer(False)
    return ConsoleConfirmer()


def execute_review(args: argparse.Namespace, settings: NotePolishConfig, provider_debug: bool) -> int:
    languages = resolve_languages(args.languages, settings)
    service = build_service(args.service, settings=settings, model=args.model, debug=provider_debug)
    notifier = ConsoleNotifier(quiet_info=not args.verbose)
    repository = JsonNoteRepository(pathlib.Path(args.notes_file).expanduser().resolve())
    session = BulkReviewSession(
        pipeline=BulkPipeline(service=service, languages=languages, notifier=notifier),
        repository=repository,
        confirmer=_choose_confirmer(yes=args.yes, non_interactive=args.non_interactive),
        notifier=notifier,
    )

    def on_progress(progress: Progress) -> None:
        if args.verbose:
            print(f"Processing note {progress.position} of {progress.total}...")

    token = CancellationToken()
    result = run_interruptible(session, token, on_progress)
    if result.cancelled:
        print("Review cancelled. No changes were made.")
        return 2

    store = session.store
    if store is None:
        raise NotePolishError("The review could not be generated.")
    for field in args.approve:
        store.set_all(field, True)
    for field in args.reject:
        store.set_all(field, False)

    print_suggestions(store)
    print_summary(result)

    if args.dry_run or len(store) == 0:
        return 0
    if session.apply() is None:
        print("No changes were applied.")
        return 2
    print(f"Saved notes to {repository.path}")
    return 0


def execute_note(args: argparse.Namespace, settings: NotePolishConfig, provider_debug: bool) -> int:
    languages = resolve_languages(None, settings)
    service = build_service(args.service, settings=settings, model=args.model, debug=provider_debug)
    notifier = ConsoleNotifier(quiet_info=not args.verbose)
    repository = JsonNoteRepository(pathlib.Path(args.notes_file).expanduser().resolve())

    workflow = SingleNoteWorkflow(
        notes=repository.load_notes(),
        note_id=args.note_id,
        service=service,
        languages=languages,
        repository=repository,
        notifier=notifier,
    )
    workflow.open()
    if args.revert:
        workflow.revert()
    if args.text is not None:
        workflow.edit_draft(args.text)
    workflow.proceed()
    print(f"Arabic: {workflow.frozen_text}")

    requested = split_codes(args.languages)
    if requested:
        workflow.select_languages(requested)
        suggestion = workflow.translate()
        for code in args.drop:
            if suggestion.approved_translations[languages.require(code)]:
                workflow.toggle_translation(code)
        _print_translations(suggestion, workflow.selected_languages)

    if args.dry_run:
        return 0
    workflow.save()
    print(f"Saved note {args.note_id} to {repository.path}")
    return 0


def _print_translations(suggestion: Suggestion, codes: Sequence[str]) -> None:
    for code in codes:
        _print_field(
            code,
            suggestion.approved_translations[code],
            suggestion.translations[code] or "(no result)",
        )


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        settings = get_settings()
    except ConfigurationError as exc:
        print(exc)
        return 1
    provider_debug = bool(args.debug_provider or settings.NOTEPOLISH_PROVIDER_DEBUG)
    configure_logging(verbose=args.verbose, provider_debug=provider_debug)

    executor = execute_review if args.command == "review" else execute_note
    try:
        return executor(args, settings, provider_debug)
    except KeyboardInterrupt:
        print("Interrupted by user. No changes were made.")
        return 2
    except NotePolishError as exc:
        print(exc)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
