"""Tick trace records for deity telemetry.

The engine never writes files by itself. A host that wants a trace passes a
``telemetry_hook`` to :class:`numen.deity.Deity`; :func:`jsonl_hook` builds one
that appends each record to a JSONL file.
"""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Sequence

SCHEMA_VERSION = "deity_tick_v1"

TelemetryHook = Callable[[str, Mapping[str, Any]], None]


def _default_serializer(obj: Any) -> Any:
    if hasattr(obj, "to_dict") and callable(getattr(obj, "to_dict")):
        return obj.to_dict()
    try:
        return float(obj)
    except (TypeError, ValueError):
        return str(obj)


def build_tick_record(
    *,
    deity: str,
    tick: int,
    mood: Mapping[str, float],
    dominant: Mapping[str, Any],
    fired: Sequence[str],
    ledger_size: int,
    neglect_recorded: bool,
    timestamp_ms: Optional[int] = None,
) -> Dict[str, Any]:
    """Build a trace record describing one resolved tick."""
    ts_ms = int(time.time() * 1000) if timestamp_ms is None else int(timestamp_ms)
    return {
        "schema_version": SCHEMA_VERSION,
        "timestamp_ms": ts_ms,
        "event_type": "deity_tick",
        "deity": deity,
        "tick": int(tick),
        "mood": {str(k): float(v) for k, v in mood.items()},
        "dominant": dict(dominant),
        "fired": list(fired),
        "ledger_size": int(ledger_size),
        "neglect_recorded": bool(neglect_recorded),
    }


def append_trace_event(path: Path | str, record: Mapping[str, Any]) -> None:
    """Append ``record`` to ``path`` as one JSON line."""

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("a", encoding="utf-8") as handle:
        json.dump(record, handle, ensure_ascii=False, default=_default_serializer)
        handle.write("\n")


def jsonl_hook(path: Path | str) -> TelemetryHook:
    """Return a telemetry hook appending every record to ``path``."""

    def _hook(name: str, record: Mapping[str, Any]) -> None:
        payload = dict(record)
        payload.setdefault("event_type", str(name))
        append_trace_event(path, payload)

    return _hook


def read_trace(path: Path | str) -> list[dict]:
    target = Path(path)
    if not target.exists():
        return []
    rows: list[dict] = []
    with target.open("r", encoding="utf-8") as handle:
        for line in handle:
            line = line.strip()
            if not line:
                continue
            rows.append(json.loads(line))
    return rows


__all__ = [
    "SCHEMA_VERSION",
    "TelemetryHook",
    "build_tick_record",
    "append_trace_event",
    "jsonl_hook",
    "read_trace",
]
