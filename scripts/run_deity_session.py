#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""Replay a scripted worship session against a deity and print its moods.

Steps are whitespace-separated tokens:

    offer:<type>[:<value>[:<alignment>]]   pray   desecrate[:<type>]
    action:<type>[:<magnitude>]            tick[:<n>]
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List

import sys

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from numen.deity import Deity
from numen.events import EVENT_KINDS
from numen.runtime.config import load_deity_cfg
from numen.telemetry.trace import jsonl_hook

DEFAULT_SCRIPT = (
    "tick offer:gold:0.7 offer:incense:0.4 offer:song:0.5 tick:3 "
    "desecrate:altar desecrate:shrine desecrate:sacred_grove tick:3 "
    "tick:30 " + "pray " * 8 + "tick:3"
)


def _parse_float(parts: List[str], idx: int) -> float | None:
    if len(parts) <= idx or parts[idx] == "":
        return None
    return float(parts[idx])


def _apply_step(deity: Deity, token: str) -> bool:
    """Apply one step; returns True when time advanced."""
    parts = token.split(":")
    verb = parts[0].lower()
    if verb == "offer":
        kind = parts[1] if len(parts) > 1 else "generic"
        alignment = parts[3] if len(parts) > 3 else None
        deity.offer(kind, value=_parse_float(parts, 2), alignment=alignment)
        return False
    if verb == "pray":
        deity.pray()
        return False
    if verb == "desecrate":
        deity.desecrate(parts[1] if len(parts) > 1 else "generic")
        return False
    if verb == "action":
        if len(parts) < 2:
            raise ValueError(f"action step needs a type: {token!r}")
        deity.action(parts[1], magnitude=_parse_float(parts, 2))
        return False
    if verb == "tick":
        deity.tick(int(parts[1]) if len(parts) > 1 else 1)
        return True
    raise ValueError(f"unknown step: {token!r}")


def run_session(deity: Deity, steps: List[str], *, precise: bool = False) -> List[Dict[str, Any]]:
    fired: List[str] = []

    def _collector(kind: str) -> Callable[[Any], None]:
        return lambda payload: fired.append(kind)

    for kind in EVENT_KINDS:
        deity.on(kind, _collector(kind))

    rows: List[Dict[str, Any]] = []
    for token in steps:
        if not _apply_step(deity, token):
            continue
        reading = deity.query()
        rows.append(
            {
                "step": token,
                "tick": reading.tick,
                "mood": deity.precise_mood() if precise else reading.mood,
                "dominant": reading.dominant.to_dict(),
                "events": list(fired),
            }
        )
        fired.clear()
    return rows


def main() -> None:
    ap = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    ap.add_argument("--config", type=str, default="configs/deity_default.yaml")
    ap.add_argument("--script", type=str, default=DEFAULT_SCRIPT, help="Whitespace-separated steps")
    ap.add_argument("--precise", action="store_true", help="Print the exact mood vector")
    ap.add_argument("--trace_log", type=str, default="", help="Append per-tick JSONL records here")
    ap.add_argument("--snapshot", type=str, default="", help="Write the final deity snapshot here")
    ap.add_argument("--verbose", action="store_true")
    ap.add_argument("--print-config", action="store_true")
    args = ap.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    cfg = load_deity_cfg(args.config)
    if args.print_config:
        print(json.dumps(cfg.to_dict(), ensure_ascii=False, indent=2))
        return

    hook = jsonl_hook(args.trace_log) if args.trace_log else None
    deity = Deity(cfg, telemetry_hook=hook)
    for row in run_session(deity, args.script.split(), precise=args.precise):
        print(json.dumps(row, ensure_ascii=False))

    if args.snapshot:
        target = Path(args.snapshot)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(deity.to_dict(), ensure_ascii=False), encoding="utf-8")
        print(f"[run_deity_session] snapshot -> {target}")


if __name__ == "__main__":
    main()
