"""Append-only interaction ledger with read-time exponential decay.

Every entry keeps its birth tick forever. Its influence is recomputed on each
read as ``0.5 ** (age / half_life)``, so advancing time is O(1) and old
interactions fade without ever disappearing.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

DEFAULT_HALF_LIFE = 100.0

# Smallest positive float; keeps ancient entries strictly above zero.
_MIN_WEIGHT = math.ulp(0.0)


class EventKind(str, Enum):
    OFFER = "offer"
    ACTION = "action"
    PRAY = "pray"
    DESECRATE = "desecrate"
    NEGLECT = "neglect"


def _coerce_kind(kind: Union[str, EventKind]) -> str:
    if isinstance(kind, EventKind):
        return kind.value
    return str(kind)


def _split_known(payload: Mapping[str, Any], known: Tuple[str, ...]) -> Dict[str, Any]:
    return {str(k): v for k, v in payload.items() if k not in known}


def _float_or(payload: Mapping[str, Any], key: str, default: float) -> float:
    try:
        return float(payload.get(key, default))
    except (TypeError, ValueError):
        return default


# ---------------------------------------------------------------------------
# Per-kind payloads
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OfferMeta:
    offering_type: str = "generic"
    value: float = 0.3
    effective_value: Optional[float] = None
    alignment: str = "neutral"
    synthetic: bool = False
    extra: Dict[str, Any] = field(default_factory=dict)

    _FIELDS = ("offering_type", "value", "effective_value", "alignment", "synthetic")

    @property
    def sub_kind(self) -> Optional[str]:
        return self.offering_type or None

    def resolved_value(self) -> float:
        if self.effective_value is not None:
            return float(self.effective_value)
        return float(self.value)

    def to_dict(self) -> Dict[str, Any]:
        payload = dict(self.extra)
        payload.update(
            offering_type=self.offering_type,
            value=float(self.value),
            effective_value=None if self.effective_value is None else float(self.effective_value),
            alignment=self.alignment,
            synthetic=bool(self.synthetic),
        )
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "OfferMeta":
        effective = payload.get("effective_value")
        return cls(
            offering_type=str(payload.get("offering_type", "generic")),
            value=_float_or(payload, "value", 0.3),
            effective_value=None if effective is None else float(effective),
            alignment=str(payload.get("alignment", "neutral")),
            synthetic=bool(payload.get("synthetic", False)),
            extra=_split_known(payload, cls._FIELDS),
        )


@dataclass(frozen=True)
class ActionMeta:
    action_type: str = "generic"
    magnitude: float = 0.3
    favor: float = 0.0
    target: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    _FIELDS = ("action_type", "magnitude", "favor", "target")

    @property
    def sub_kind(self) -> Optional[str]:
        return self.action_type or None

    def impact(self, weight: float) -> float:
        return float(self.favor) * float(self.magnitude) * weight

    def to_dict(self) -> Dict[str, Any]:
        payload = dict(self.extra)
        payload.update(
            action_type=self.action_type,
            magnitude=float(self.magnitude),
            favor=float(self.favor),
            target=self.target,
        )
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ActionMeta":
        target = payload.get("target")
        return cls(
            action_type=str(payload.get("action_type", "generic")),
            magnitude=_float_or(payload, "magnitude", 0.3),
            favor=_float_or(payload, "favor", 0.0),
            target=None if target is None else str(target),
            extra=_split_known(payload, cls._FIELDS),
        )


@dataclass(frozen=True)
class PrayMeta:
    extra: Dict[str, Any] = field(default_factory=dict)

    sub_kind = None

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.extra)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "PrayMeta":
        return cls(extra=_split_known(payload, ()))


@dataclass(frozen=True)
class DesecrateMeta:
    desecration_type: str = "generic"
    extra: Dict[str, Any] = field(default_factory=dict)

    sub_kind = None

    def to_dict(self) -> Dict[str, Any]:
        payload = dict(self.extra)
        payload["desecration_type"] = self.desecration_type
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "DesecrateMeta":
        return cls(
            desecration_type=str(payload.get("desecration_type", "generic")),
            extra=_split_known(payload, ("desecration_type",)),
        )


@dataclass(frozen=True)
class NeglectMeta:
    synthetic: bool = True
    reason: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    sub_kind = None

    def to_dict(self) -> Dict[str, Any]:
        payload = dict(self.extra)
        payload["synthetic"] = bool(self.synthetic)
        if self.reason is not None:
            payload["reason"] = self.reason
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "NeglectMeta":
        reason = payload.get("reason")
        return cls(
            synthetic=bool(payload.get("synthetic", True)),
            reason=None if reason is None else str(reason),
            extra=_split_known(payload, ("synthetic", "reason")),
        )


@dataclass(frozen=True)
class GenericMeta:
    """Payload for kinds outside :class:`EventKind`; stored verbatim."""

    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def sub_kind(self) -> Optional[str]:
        sub = self.extra.get("offering_type") or self.extra.get("action_type")
        return str(sub) if sub else None

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.extra)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "GenericMeta":
        return cls(extra=dict(payload))


EntryMeta = Union[OfferMeta, ActionMeta, PrayMeta, DesecrateMeta, NeglectMeta, GenericMeta]

_META_TYPES = {
    EventKind.OFFER.value: OfferMeta,
    EventKind.ACTION.value: ActionMeta,
    EventKind.PRAY.value: PrayMeta,
    EventKind.DESECRATE.value: DesecrateMeta,
    EventKind.NEGLECT.value: NeglectMeta,
}


def build_meta(kind: Union[str, EventKind], payload: Mapping[str, Any] | EntryMeta | None = None) -> EntryMeta:
    """Parse ``payload`` into the typed payload for ``kind``."""
    key = _coerce_kind(kind)
    meta_cls = _META_TYPES.get(key, GenericMeta)
    if payload is None:
        return meta_cls()
    if isinstance(payload, Mapping):
        return meta_cls.from_dict(payload)
    if isinstance(payload, meta_cls):
        return payload
    raise TypeError(f"{type(payload).__name__} is not a payload for kind {key!r}")


# ---------------------------------------------------------------------------
# Entries
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LedgerEntry:
    kind: str
    tick: int
    meta: EntryMeta

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "tick": int(self.tick), "meta": self.meta.to_dict()}

    @staticmethod
    def from_dict(payload: Mapping[str, Any]) -> "LedgerEntry":
        kind = str(payload["kind"])
        return LedgerEntry(
            kind=kind,
            tick=int(payload.get("tick", 0)),
            meta=build_meta(kind, payload.get("meta") or {}),
        )


@dataclass(frozen=True)
class WeightedEntry:
    entry: LedgerEntry
    weight: float

    @property
    def meta(self) -> EntryMeta:
        return self.entry.meta


class Ledger:
    """Chronological interaction log; weights are derived at read time."""

    def __init__(self, decay_half_life: float = DEFAULT_HALF_LIFE) -> None:
        self.half_life = max(float(decay_half_life), 1e-6)
        self._entries: List[LedgerEntry] = []
        self._tick = 0

    @property
    def tick(self) -> int:
        return self._tick

    @property
    def size(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    # --- writes -------------------------------------------------------

    def record(
        self,
        kind: Union[str, EventKind],
        meta: Mapping[str, Any] | EntryMeta | None = None,
    ) -> LedgerEntry:
        key = _coerce_kind(kind)
        entry = LedgerEntry(kind=key, tick=self._tick, meta=build_meta(key, meta))
        self._entries.append(entry)
        return entry

    def advance_tick(self, n: int = 1) -> None:
        self._tick += max(0, int(n))

    # --- reads --------------------------------------------------------

    def weight(self, entry: LedgerEntry) -> float:
        age = max(0, self._tick - entry.tick)
        return max(0.5 ** (age / self.half_life), _MIN_WEIGHT)

    def of_type(self, kind: Union[str, EventKind]) -> List[WeightedEntry]:
        key = _coerce_kind(kind)
        return [WeightedEntry(e, self.weight(e)) for e in self._entries if e.kind == key]

    def weighted_count(self, kind: Union[str, EventKind]) -> float:
        key = _coerce_kind(kind)
        total = 0.0
        for entry in self._entries:
            if entry.kind == key:
                total += self.weight(entry)
        return total

    def ticks_since_last(self, kind: Union[str, EventKind]) -> float:
        key = _coerce_kind(kind)
        for entry in reversed(self._entries):
            if entry.kind == key:
                return self._tick - entry.tick
        return math.inf

    def variety(self) -> int:
        seen = {(e.kind, e.meta.sub_kind or "") for e in self._entries}
        return len(seen)

    def current_streak(self, kind: Union[str, EventKind]) -> int:
        key = _coerce_kind(kind)
        count = 0
        for entry in reversed(self._entries):
            if entry.kind != key:
                break
            count += 1
        return count

    def recent(self, n: int) -> Tuple[LedgerEntry, ...]:
        """Newest-first snapshot of the last ``n`` entries."""
        if n <= 0:
            return ()
        return tuple(reversed(self._entries[-int(n):]))

    # --- snapshot -----------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "half_life": self.half_life,
            "tick": self._tick,
            "entries": [entry.to_dict() for entry in self._entries],
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Ledger":
        ledger = cls(decay_half_life=float(payload.get("half_life", DEFAULT_HALF_LIFE)))
        ledger._tick = int(payload.get("tick", 0))
        ledger._entries = [LedgerEntry.from_dict(item) for item in payload.get("entries", [])]
        return ledger


__all__ = [
    "DEFAULT_HALF_LIFE",
    "EventKind",
    "OfferMeta",
    "ActionMeta",
    "PrayMeta",
    "DesecrateMeta",
    "NeglectMeta",
    "GenericMeta",
    "EntryMeta",
    "build_meta",
    "LedgerEntry",
    "WeightedEntry",
    "Ledger",
]
