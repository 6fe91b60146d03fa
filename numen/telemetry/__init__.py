"""Telemetry helpers for deity ticks."""

from .trace import SCHEMA_VERSION, append_trace_event, build_tick_record, jsonl_hook, read_trace

__all__ = ["SCHEMA_VERSION", "append_trace_event", "build_tick_record", "jsonl_hook", "read_trace"]
