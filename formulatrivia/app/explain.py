from __future__ import annotations

"""Minimal tracing helpers (Explain Mode).

Enable with the CLI flag (or ``ui.explain`` in the config) and emit terse,
readable lines at engine and controller milestones.
"""

import json
import sys
from typing import Any, Callable, Dict, Optional

_ENABLED = False
_SINK: Optional[Callable[[str], None]] = None


def enable(flag: bool = True) -> None:
    global _ENABLED
    _ENABLED = bool(flag)


def enabled() -> bool:
    return _ENABLED


def set_sink(sink: Optional[Callable[[str], None]]) -> None:
    """Redirect trace lines (None restores stderr)."""
    global _SINK
    _SINK = sink


def _emit(line: str) -> None:
    if _SINK is not None:
        _SINK(line)
    else:
        print(line, file=sys.stderr)


def trace(event: str, payload: Dict[str, Any] | None = None) -> None:
    if not _ENABLED:
        return
    try:
        data = (payload or {})
        # one line JSON
        _emit(f"[EXPLAIN] {event} :: {json.dumps(data, separators=(',', ':'), default=str)}")
    except (TypeError, ValueError):
        _emit(f"[EXPLAIN] {event}")
