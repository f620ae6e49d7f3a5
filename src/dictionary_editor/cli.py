"""
Command-line interface for dictionary-editor.
"""
from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

from . import __version__
from .batch import (
    BatchResult,
    ParseError,
    ValidationResult,
    execute_change_request,
    load_change_request,
    validate_change_request,
)
from .config import Settings, build_gateway, load_settings
from .exceptions import DictionaryEditorError, EntityNotFoundError
from .exporter import default_export_name, export_store
from .generator import GenerativeClient
from .importer import import_file, load_entries
from .models import DictionaryEntry, VoteDirection
from .store import DictionaryStore
from .validator import has_errors, validate_entries

logger = logging.getLogger(__name__)


def main(argv: Optional[list] = None) -> int:
    """Main entry point for the dictionary-editor CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        settings = load_settings(args.config)
    except DictionaryEditorError as e:
        print(f"[CONFIG ERROR] {e}", file=sys.stderr)
        return 2
    if args.db:
        settings = _with_cache_path(settings, args.db)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level.upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        return args.func(args, settings)
    except DictionaryEditorError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="dictionary-editor",
        description="Manage a crowdsourced English-Myanmar dictionary",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="YAML settings file",
    )
    parser.add_argument(
        "--db",
        type=str,
        help="Snapshot cache database (overrides settings)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(title="commands", dest="command")

    # search command
    search_parser = subparsers.add_parser("search", help="Search entries")
    search_parser.add_argument("query", help="Text to look for in headwords, glosses and definitions")
    search_parser.set_defaults(func=cmd_search)

    # show command
    show_parser = subparsers.add_parser("show", help="Show one entry")
    show_parser.add_argument("headword")
    show_parser.set_defaults(func=cmd_show)

    # next command
    next_parser = subparsers.add_parser("next", help="Show the least-engaged entry")
    next_parser.add_argument(
        "--user",
        type=str,
        help="Skip entries this user already voted on",
    )
    next_parser.set_defaults(func=cmd_next)

    # vote command
    vote_parser = subparsers.add_parser("vote", help="Vote on an entry")
    vote_parser.add_argument("entry_id")
    vote_parser.add_argument("user_id")
    vote_parser.add_argument("direction", choices=[d.value for d in VoteDirection])
    vote_parser.set_defaults(func=cmd_vote)

    # export command
    export_parser = subparsers.add_parser("export", help="Export all entries to JSON")
    export_parser.add_argument(
        "file",
        type=Path,
        nargs="?",
        help=f"Output file (default: {default_export_name()})",
    )
    export_parser.set_defaults(func=cmd_export)

    # import command
    import_parser = subparsers.add_parser("import", help="Merge entries from a JSON export")
    import_parser.add_argument("file", type=Path)
    import_parser.set_defaults(func=cmd_import)

    # validate command
    validate_parser = subparsers.add_parser("validate", help="Validate a JSON export file")
    validate_parser.add_argument("file", type=Path)
    validate_parser.set_defaults(func=cmd_validate)

    # generate command
    generate_parser = subparsers.add_parser("generate", help="Generate entries for a topic")
    generate_parser.add_argument("topic")
    generate_parser.add_argument(
        "--count",
        type=int,
        default=5,
        help="Number of words to generate (default: 5)",
    )
    generate_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print generated entries without saving them",
    )
    generate_parser.set_defaults(func=cmd_generate)

    # define command
    define_parser = subparsers.add_parser("define", help="Generate an entry for one word")
    define_parser.add_argument("word")
    define_parser.add_argument(
        "--save",
        action="store_true",
        help="Merge the generated entry into the dictionary",
    )
    define_parser.set_defaults(func=cmd_define)

    # delete command
    delete_parser = subparsers.add_parser("delete", help="Delete an entry")
    delete_parser.add_argument("headword")
    delete_parser.add_argument(
        "--yes", "-y",
        action="store_true",
        help="Skip confirmation prompt",
    )
    delete_parser.set_defaults(func=cmd_delete)

    # history command
    history_parser = subparsers.add_parser("history", help="Show the local edit history")
    history_parser.add_argument(
        "--limit",
        type=int,
        default=20,
        help="Number of records to show (default: 20)",
    )
    history_parser.add_argument(
        "--type",
        dest="entity_type",
        choices=["entry", "sense", "vote", "suggestion"],
        help="Only show records for this entity type",
    )
    history_parser.set_defaults(func=cmd_history)

    # batch commands
    batch_parser = subparsers.add_parser("batch", help="YAML batch change requests")
    batch_sub = batch_parser.add_subparsers(title="batch commands", dest="batch_command")

    batch_validate = batch_sub.add_parser("validate", help="Validate a change request file")
    batch_validate.add_argument("file", type=Path, help="YAML file containing change request")
    batch_validate.set_defaults(func=cmd_batch_validate)

    batch_apply = batch_sub.add_parser("apply", help="Apply changes from a request file")
    batch_apply.add_argument("file", type=Path, help="YAML file containing change request")
    batch_apply.add_argument(
        "--dry-run",
        action="store_true",
        help="Simulate execution without making changes",
    )
    batch_apply.add_argument(
        "--yes", "-y",
        action="store_true",
        help="Skip confirmation prompt",
    )
    batch_apply.set_defaults(func=cmd_batch_apply)

    return parser


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _with_cache_path(settings: Settings, path: str) -> Settings:
    return replace(settings, cache_path=path)


def _open_store(settings: Settings) -> DictionaryStore:
    store = DictionaryStore(settings.resolved_cache_path, build_gateway(settings))
    # give the startup pull one request's worth of time
    store.flush(settings.request_timeout)
    return store


def _generator(settings: Settings) -> GenerativeClient:
    return GenerativeClient(
        settings.generative_api_key,
        model=settings.generative_model,
    )


def _confirm(prompt: str) -> bool:
    response = input(f"{prompt} [y/N] ")
    return response.lower() in ("y", "yes")


def _print_entry(entry: DictionaryEntry, verbose: bool = True) -> None:
    stats = entry.community_stats
    votes = f"  (+{stats.upvotes}/-{stats.downvotes})" if stats else ""
    ipa = f" /{entry.phonetic_ipa}/" if entry.phonetic_ipa else ""
    print(f"{entry.headword}{ipa}{votes}")
    if verbose:
        print(f"  id: {entry.id}")
    for sense in entry.senses:
        print(f"  {sense.sense_id}. ({sense.pos}) {sense.gloss}: {sense.definition}")
        if not verbose:
            continue
        if sense.tags:
            print(f"      tags: {', '.join(sense.tags)}")
        for ex in sense.examples:
            print(f"      - {ex.src}")
            print(f"        {ex.tgt}")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_search(args: argparse.Namespace, settings: Settings) -> int:
    """Handle search command."""
    with _open_store(settings) as store:
        results = store.search(args.query)
    if not results:
        print(f"No entries match '{args.query}'.")
        return 1
    for entry in results:
        _print_entry(entry, verbose=False)
    return 0


def cmd_show(args: argparse.Namespace, settings: Settings) -> int:
    """Handle show command."""
    with _open_store(settings) as store:
        try:
            entry = store.get_entry(args.headword)
        except EntityNotFoundError as e:
            print(e)
            return 1
    _print_entry(entry)
    return 0


def cmd_next(args: argparse.Namespace, settings: Settings) -> int:
    """Handle next command."""
    with _open_store(settings) as store:
        entry = store.get_least_voted_word(args.user)
    if entry is None:
        print("All caught up: every entry has been voted on.")
        return 0
    _print_entry(entry)
    return 0


def cmd_vote(args: argparse.Namespace, settings: Settings) -> int:
    """Handle vote command."""
    with _open_store(settings) as store:
        current = store.vote_for_word(args.entry_id, args.user_id, args.direction)
        stats = store.get_stats(args.entry_id)
    state = f"voted {current.value}" if current else "vote retracted"
    print(f"{args.entry_id}: {state} (+{stats.upvotes}/-{stats.downvotes})")
    return 0


def cmd_export(args: argparse.Namespace, settings: Settings) -> int:
    """Handle export command."""
    with _open_store(settings) as store:
        path = export_store(store, args.file)
        count = len(store)
    print(f"Exported {count} entries to {path}")
    return 0


def cmd_import(args: argparse.Namespace, settings: Settings) -> int:
    """Handle import command."""
    with _open_store(settings) as store:
        result = import_file(store, args.file)
    print(f"Added {result.added}, updated {result.updated} entries.")
    return 0


def cmd_validate(args: argparse.Namespace, settings: Settings) -> int:
    """Handle validate command."""
    print(f"\nValidating {args.file}...")
    entries = load_entries(args.file)
    results = validate_entries(entries)

    for r in results:
        print(f"  [{r.severity}] {r.rule_id} {r.entity_id}: {r.message}")

    errors = sum(1 for r in results if r.severity == "ERROR")
    print(f"\n{len(entries)} entries, {errors} error(s), {len(results) - errors} warning(s)")
    return 1 if has_errors(results) else 0


def cmd_generate(args: argparse.Namespace, settings: Settings) -> int:
    """Handle generate command."""
    entries = _generator(settings).generate_words(args.topic, args.count)
    if not entries:
        print(f"No entries generated for '{args.topic}'.")
        return 1
    for entry in entries:
        _print_entry(entry, verbose=False)
    if args.dry_run:
        print(f"\n[DRY RUN] {len(entries)} entries not saved.")
        return 0

    with _open_store(settings) as store:
        result = store.add_entries(entries)
    print(f"\nAdded {result.added}, updated {result.updated} entries.")
    return 0


def cmd_define(args: argparse.Namespace, settings: Settings) -> int:
    """Handle define command."""
    entry = _generator(settings).define_word(args.word)
    if entry is None:
        print(f"Could not define '{args.word}'.")
        return 1
    _print_entry(entry)
    if args.save:
        with _open_store(settings) as store:
            result = store.add_entries([entry])
        print(f"\nAdded {result.added}, updated {result.updated} entries.")
    return 0


def cmd_delete(args: argparse.Namespace, settings: Settings) -> int:
    """Handle delete command."""
    if not args.yes and not _confirm(f"Delete '{args.headword}'?"):
        print("Aborted.")
        return 1
    with _open_store(settings) as store:
        removed = store.delete_entry(args.headword)
    if not removed:
        print(f"No entry '{args.headword}'.")
        return 1
    print(f"Deleted {removed} entr{'y' if removed == 1 else 'ies'}.")
    return 0


def cmd_history(args: argparse.Namespace, settings: Settings) -> int:
    """Handle history command."""
    with _open_store(settings) as store:
        records = store.get_history(entity_type=args.entity_type, limit=args.limit)

    if not records:
        print("No edits recorded.")
        return 0

    print(f"{'Time':<20} {'Op':<7} {'Type':<8} {'Entity':<30} {'Field'}")
    print("-" * 80)
    for rec in records:
        when = rec.timestamp.replace("T", " ")[:19]
        print(f"{when:<20} {rec.operation:<7} {rec.entity_type:<8} "
              f"{rec.entity_id[:30]:<30} {rec.field_name or ''}")
    return 0


def cmd_batch_validate(args: argparse.Namespace, settings: Settings) -> int:
    """Handle batch validate command."""
    print(f"\nValidating {args.file}...")

    request = _load_request(args.file)
    if request is None:
        return 1

    with _open_store(settings) as store:
        result = validate_change_request(request, store)

    print("\nValidation Results:")
    _print_validation_result(result)

    if result.is_valid:
        print("\nValidation passed!")
        return 0
    print(f"\nFound {result.error_count} error(s), {result.warning_count} warning(s)")
    return 1


def cmd_batch_apply(args: argparse.Namespace, settings: Settings) -> int:
    """Handle batch apply command."""
    print(f"\nLoading {args.file}...")

    request = _load_request(args.file)
    if request is None:
        return 1

    with _open_store(settings) as store:
        print("\nValidating...")
        validation = validate_change_request(request, store)

        if not validation.is_valid:
            print("\nValidation failed:")
            _print_validation_result(validation)
            print(f"\nFound {validation.error_count} error(s). Fix errors before applying.")
            return 1

        if validation.warning_count > 0:
            print("\nWarnings:")
            _print_validation_result(validation, warnings_only=True)

        if args.dry_run:
            print("\n[DRY RUN] Simulating execution...")
        elif not args.yes and not _confirm(f"\nApply {len(request.changes)} changes?"):
            print("Aborted.")
            return 1

        print(f"\n{'Simulating' if args.dry_run else 'Applying'} changes...")
        result = execute_change_request(
            request,
            store,
            generator=_generator(settings),
            dry_run=args.dry_run,
        )

    _print_batch_result(result)
    return 1 if result.failure_count > 0 else 0


def _load_request(path: Path):
    try:
        request = load_change_request(path)
    except ParseError as e:
        print(f"\n  [PARSE ERROR] {e}")
        if e.line:
            print(f"               Line: {e.line}")
        return None
    except FileNotFoundError as e:
        print(f"\n  [ERROR] {e}")
        return None

    print(f"  Changes: {len(request.changes)}")
    if request.session_name:
        print(f"  Session: \"{request.session_name}\"")
    return request


def _print_validation_result(
    result: ValidationResult,
    warnings_only: bool = False,
) -> None:
    """Print validation errors and warnings."""
    if not warnings_only:
        for error in result.errors:
            line_info = f" (line {error.line_number})" if error.line_number else ""
            print(f"  [ERROR] Change #{error.index + 1} ({error.operation}): {error.message}{line_info}")
            if error.field:
                print(f"          Field: {error.field}")

    for warning in result.warnings:
        line_info = f" (line {warning.line_number})" if warning.line_number else ""
        print(f"  [WARN]  Change #{warning.index + 1} ({warning.operation}): {warning.message}{line_info}")


def _print_batch_result(result: BatchResult) -> None:
    """Print batch execution result."""
    print()
    for change in result.changes:
        status = "OK" if change.success else "FAILED"
        print(f"  [{change.index + 1}/{result.total_count}] {change.operation}: {status}")
        if change.message:
            print(f"         {change.message}")

    print("\nResults:")
    print(f"  Total:   {result.total_count}")
    print(f"  Success: {result.success_count}")
    print(f"  Failed:  {result.failure_count}")
    print(f"  Time:    {result.duration_seconds:.2f}s")


if __name__ == "__main__":
    sys.exit(main())
