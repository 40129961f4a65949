from __future__ import annotations

from dataclasses import asdict, is_dataclass
from typing import Any


def diff_changes(saved: Any, candidate: Any) -> dict[str, tuple[Any, Any]]:
    """
    Field-level differences between a saved value and a candidate value.

    Accepts dataclass instances or plain dicts. Returns {field: (saved, candidate)}
    for every field whose value differs; an empty dict means nothing to commit.
    """
    before = _as_dict(saved)
    after = _as_dict(candidate)
    changes: dict[str, tuple[Any, Any]] = {}
    for key in sorted(set(before) | set(after)):
        old = before.get(key)
        new = after.get(key)
        if old != new:
            changes[key] = (old, new)
    return changes


def _as_dict(value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, dict):
        return dict(value)
    raise TypeError(f"Cannot diff value of type {type(value).__name__}")
