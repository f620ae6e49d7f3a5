"""
Reads batch change requests from YAML.

A request is a mapping with an optional ``session`` block and a non-empty
``changes`` list; every change is a mapping naming its ``operation`` with
the remaining keys as parameters.
"""
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from ..exceptions import DictionaryEditorError
from .schema import Change, ChangeRequest


class ParseError(DictionaryEditorError):
    """A change request that is not well-formed YAML or has the wrong shape."""

    def __init__(self, message: str, line: Optional[int] = None):
        self.line = line
        super().__init__(message)


def load_change_request(
    source: Union[str, Path, Dict[str, Any]],
) -> ChangeRequest:
    """Load a change request.

    Args:
        source: A path to a ``.yaml``/``.yml`` file, YAML text, or an
            already parsed mapping

    Returns:
        ChangeRequest with one Change per item under ``changes``

    Raises:
        ParseError: If the YAML is malformed or the request has the wrong shape
        FileNotFoundError: If *source* names a file that does not exist
    """
    if isinstance(source, dict):
        return _build_request(source, None, [])

    path, text = _read_source(source)
    data = _safe_load(text, "Empty YAML file" if path else "Empty YAML content")
    return _build_request(data, path, _change_lines(text))


def _looks_like_path(s: str) -> bool:
    if "\n" in s:
        return False
    return "/" in s or "\\" in s or s.endswith((".yaml", ".yml"))


def _read_source(source: Union[str, Path]) -> Tuple[Optional[Path], str]:
    if isinstance(source, str) and not _looks_like_path(source):
        return None, source
    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    return path, path.read_text(encoding="utf-8")


def _safe_load(text: str, empty_message: str) -> Dict[str, Any]:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        raise ParseError(
            f"Invalid YAML: {e}", line=mark.line + 1 if mark else None,
        ) from e

    if data is None:
        raise ParseError(empty_message)
    if not isinstance(data, dict):
        raise ParseError("YAML root must be a mapping (dictionary)")
    return data


def _change_lines(text: str) -> List[int]:
    """1-based start line of each item under ``changes``."""
    try:
        root = yaml.compose(text, Loader=yaml.SafeLoader)
    except yaml.YAMLError:
        return []
    if not isinstance(root, yaml.MappingNode):
        return []
    for key, value in root.value:
        if key.value == "changes" and isinstance(value, yaml.SequenceNode):
            return [item.start_mark.line + 1 for item in value.value]
    return []


def _build_request(
    data: Dict[str, Any],
    source_path: Optional[Path],
    lines: List[int],
) -> ChangeRequest:
    session = data.get("session") or {}
    if not isinstance(session, dict):
        raise ParseError("Field 'session' must be a mapping")

    items = data.get("changes")
    if items is None:
        raise ParseError("Missing required field: 'changes'")
    if not isinstance(items, list):
        raise ParseError("Field 'changes' must be a list")
    if not items:
        raise ParseError("Field 'changes' cannot be empty")

    changes = [
        _to_change(i, item, lines[i] if i < len(lines) else None)
        for i, item in enumerate(items)
    ]
    return ChangeRequest(
        changes=changes,
        session_name=session.get("name"),
        session_description=session.get("description"),
        source_file=source_path,
    )


def _to_change(index: int, item: Any, line: Optional[int]) -> Change:
    label = f"Change #{index + 1}"
    if not isinstance(item, dict):
        raise ParseError(f"{label} must be a mapping (dictionary)", line=line)

    params = dict(item)
    operation = params.pop("operation", None)
    if not operation:
        raise ParseError(f"{label}: Missing required field 'operation'", line=line)
    if not isinstance(operation, str):
        raise ParseError(f"{label}: Field 'operation' must be a string", line=line)

    return Change(operation=operation, params=params, line_number=line)
