"""
Executor for batch change requests.

Applies changes to a dictionary store; each change succeeds or fails on its
own and a failure does not stop the batch.
"""
from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, List, Optional

from ..importer import import_file, parse_entries
from ..models import entry_from_dict
from .schema import (
    DEFAULT_GENERATE_COUNT,
    BatchResult,
    Change,
    ChangeRequest,
    ChangeResult,
    OperationType,
)

if TYPE_CHECKING:
    from ..generator import GenerativeClient
    from ..store import DictionaryStore

logger = logging.getLogger(__name__)


def execute_change_request(
    request: ChangeRequest,
    store: DictionaryStore,
    generator: Optional[GenerativeClient] = None,
    dry_run: bool = False,
) -> BatchResult:
    """Execute a batch change request.

    Args:
        request: The change request to execute
        store: Store the changes are applied to
        generator: Client used by ``generate`` changes
        dry_run: If True, only simulate execution without making changes

    Returns:
        BatchResult with details of each change
    """
    start_time = time.time()
    results: List[ChangeResult] = []

    if not dry_run:
        logger.info(
            "Applying %d change(s)%s",
            len(request.changes),
            f" for session '{request.session_name}'" if request.session_name else "",
        )

    for i, change in enumerate(request.changes):
        result = _execute_change(
            change=change,
            index=i,
            request=request,
            store=store,
            generator=generator,
            dry_run=dry_run,
        )
        results.append(result)

    success_count = sum(1 for r in results if r.success)
    failure_count = sum(1 for r in results if not r.success)
    duration = time.time() - start_time

    return BatchResult(
        session_name=request.session_name,
        total_count=len(results),
        success_count=success_count,
        failure_count=failure_count,
        changes=results,
        duration_seconds=duration,
        dry_run=dry_run,
    )


def _execute_change(
    change: Change,
    index: int,
    request: ChangeRequest,
    store: DictionaryStore,
    generator: Optional[GenerativeClient],
    dry_run: bool,
) -> ChangeResult:
    """Execute a single change operation.

    Returns:
        ChangeResult with success/failure status
    """
    op = change.operation

    try:
        if dry_run:
            return _dry_run_change(change, index)

        if op == OperationType.ADD_ENTRIES.value:
            return _exec_add_entries(change, index, store)

        elif op == OperationType.IMPORT_FILE.value:
            return _exec_import_file(change, index, request, store)

        elif op == OperationType.UPDATE_ENTRY.value:
            return _exec_update_entry(change, index, store)

        elif op == OperationType.DELETE_ENTRY.value:
            return _exec_delete_entry(change, index, store)

        elif op == OperationType.GENERATE.value:
            return _exec_generate(change, index, store, generator)

        else:
            return _failure(change, index, f"Unknown operation: {op}")

    except Exception as e:
        logger.exception("Error executing change #%d (%s)", index + 1, op)
        return ChangeResult(
            index=index,
            operation=op,
            success=False,
            message=f"Error: {e}",
            target=change.headword,
            error=str(e),
        )


def _failure(change: Change, index: int, error: str) -> ChangeResult:
    return ChangeResult(
        index=index,
        operation=change.operation,
        success=False,
        message=error,
        target=change.headword,
        error=error,
    )


def _dry_run_change(change: Change, index: int) -> ChangeResult:
    """Simulate a change without actually executing it."""
    op = change.operation
    target = change.headword or change.params.get("path") or change.params.get("topic")

    return ChangeResult(
        index=index,
        operation=op,
        success=True,
        message=f"Would execute {op}",
        target=target,
    )


def _exec_add_entries(change: Change, index: int, store: DictionaryStore) -> ChangeResult:
    """Execute add_entries operation."""
    entries = parse_entries(change.params.get("entries"))
    result = store.add_entries(entries)

    return ChangeResult(
        index=index,
        operation=change.operation,
        success=True,
        message=f"Added {result.added}, updated {result.updated} entries",
        added=result.added,
        updated=result.updated,
    )


def _exec_import_file(
    change: Change,
    index: int,
    request: ChangeRequest,
    store: DictionaryStore,
) -> ChangeResult:
    """Execute import_file operation."""
    path = request.resolve_path(change.params["path"])
    result = import_file(store, path)

    return ChangeResult(
        index=index,
        operation=change.operation,
        success=True,
        message=f"Imported {path.name}: added {result.added}, updated {result.updated}",
        target=str(path),
        added=result.added,
        updated=result.updated,
    )


def _exec_update_entry(change: Change, index: int, store: DictionaryStore) -> ChangeResult:
    """Execute update_entry operation."""
    headword = change.params["headword"]
    entry = entry_from_dict(change.params["entry"])
    store.update_entry(headword, entry)

    if entry.headword != headword:
        message = f"Updated '{headword}' (renamed to '{entry.headword}')"
    else:
        message = f"Updated '{headword}'"
    return ChangeResult(
        index=index,
        operation=change.operation,
        success=True,
        message=message,
        target=headword,
        updated=1,
    )


def _exec_delete_entry(change: Change, index: int, store: DictionaryStore) -> ChangeResult:
    """Execute delete_entry operation."""
    headword = change.params["headword"]
    removed = store.delete_entry(headword)

    return ChangeResult(
        index=index,
        operation=change.operation,
        success=True,
        message=f"Deleted {removed} entr{'y' if removed == 1 else 'ies'} for '{headword}'",
        target=headword,
    )


def _exec_generate(
    change: Change,
    index: int,
    store: DictionaryStore,
    generator: Optional[GenerativeClient],
) -> ChangeResult:
    """Execute generate operation."""
    if generator is None:
        return _failure(change, index, "No generative client configured")

    topic = change.params["topic"]
    count = change.params.get("count") or DEFAULT_GENERATE_COUNT
    entries = generator.generate_words(topic, count)
    if not entries:
        return _failure(change, index, f"No entries generated for '{topic}'")

    result = store.add_entries(entries)
    return ChangeResult(
        index=index,
        operation=change.operation,
        success=True,
        message=f"Generated {len(entries)} entries for '{topic}': "
                f"added {result.added}, updated {result.updated}",
        target=topic,
        added=result.added,
        updated=result.updated,
    )
