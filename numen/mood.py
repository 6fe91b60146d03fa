"""Mood engine: a six-dimensional simplex derived from the ledger.

The mood vector is resolved once per tick from ledger aggregates. Between
ticks every read returns the same value. Three forces act on each resolution:

* the *impulse*, computed from decayed ledger signals;
* the *attractor*, a pull back toward the personality baseline;
* *hysteresis*, which damps deltas in proportion to the current level.

The result is clamped at zero and renormalized so the components always sum
to one.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

import numpy as np

from .ledger import ActionMeta, EventKind, Ledger, OfferMeta
from .noise import vector_jitter


class MoodDimension(str, Enum):
    WRATH = "wrath"
    SERENITY = "serenity"
    HUNGER = "hunger"
    AMUSEMENT = "amusement"
    SORROW = "sorrow"
    CHAOS = "chaos"


DIMENSIONS = tuple(d.value for d in MoodDimension)
_INDEX = {name: i for i, name in enumerate(DIMENSIONS)}

WRATH = _INDEX["wrath"]
SERENITY = _INDEX["serenity"]
HUNGER = _INDEX["hunger"]
AMUSEMENT = _INDEX["amusement"]
SORROW = _INDEX["sorrow"]
CHAOS = _INDEX["chaos"]

DEFAULT_OFFER_VALUE = 0.3

# Offerings
OFFER_SERENITY = 0.04
OFFER_HUNGER = 0.03
OFFER_WRATH = 0.02
INSULT_WRATH = 0.06
INSULT_AMUSEMENT = 0.01
# Variety
VARIETY_STEP = 0.02
VARIETY_CAP = 0.1
# World actions
FAVOR_SERENITY = 0.03
FAVOR_AMUSEMENT = 0.02
FAVOR_WRATH = 0.01
DISFAVOR_WRATH = 0.04
DISFAVOR_SORROW = 0.02
DISFAVOR_SERENITY = 0.02
# Prayer
PRAY_STREAK_MIN = 2
PRAY_STREAK_WRATH = 0.05
PRAY_STREAK_AMUSEMENT = 0.03
PRAY_LIGHT_MAX = 1.5
PRAY_LIGHT_SERENITY = 0.03
# Desecration
DESECRATE_WRATH = 0.1
DESECRATE_CHAOS = 0.06
DESECRATE_SERENITY = 0.08
# Neglect
NEGLECT_HORIZON = 20.0
NEGLECT_ENTRY_HUNGER = 0.03
NEGLECT_HUNGER = 0.05
NEGLECT_SORROW = 0.04
NEGLECT_SERENITY = 0.03
# Repetition
REPETITION_WINDOW = 5
REPETITION_MIN_RATIO = 0.5
REPETITION_AMUSEMENT = 0.03
REPETITION_WRATH = 0.02

FUZZ_FREQUENCY = 1000.0
FUZZ_AMPLITUDE = 0.02


def dimension_index(dimension: Union[str, MoodDimension]) -> int:
    name = dimension.value if isinstance(dimension, MoodDimension) else str(dimension)
    try:
        return _INDEX[name]
    except KeyError:
        raise ValueError(f"unknown mood dimension: {name}. Valid: {', '.join(DIMENSIONS)}") from None


def normalize(vec: Any) -> np.ndarray:
    """Clamp negatives to zero and scale onto the simplex (uniform if empty)."""
    arr = np.nan_to_num(np.asarray(vec, dtype=float).reshape(-1), nan=0.0, posinf=0.0, neginf=0.0)
    arr = np.clip(arr, 0.0, None)
    total = float(arr.sum())
    if total <= 0.0:
        return np.full(len(DIMENSIONS), 1.0 / len(DIMENSIONS))
    return arr / total


def from_partial(partial: Optional[Mapping[str, Any]]) -> np.ndarray:
    """Fill unspecified dimensions with an even share of the remaining mass."""
    partial = partial or {}
    vec = np.zeros(len(DIMENSIONS))
    specified = []
    for name, value in partial.items():
        key = name.value if isinstance(name, MoodDimension) else str(name)
        if key not in _INDEX:
            continue
        try:
            vec[_INDEX[key]] = min(1.0, max(0.0, float(value)))
        except (TypeError, ValueError):
            continue
        specified.append(_INDEX[key])
    unassigned = [i for i in range(len(DIMENSIONS)) if i not in specified]
    if unassigned:
        remaining = max(0.0, 1.0 - float(vec.sum()))
        vec[unassigned] = remaining / len(unassigned)
    return vec


def as_mapping(vec: np.ndarray) -> Dict[str, float]:
    return {name: float(vec[i]) for i, name in enumerate(DIMENSIONS)}


def compute_impulse(ledger: Ledger) -> np.ndarray:
    """Raw per-dimension push derived from decayed ledger aggregates."""
    impulse = np.zeros(len(DIMENSIONS))

    # Offerings (value weighted); synthetic surprise entries carry no value.
    offer_impact = 0.0
    for item in ledger.of_type(EventKind.OFFER):
        meta = item.meta
        if not isinstance(meta, OfferMeta) or meta.synthetic:
            continue
        offer_impact += meta.resolved_value() * item.weight
    if offer_impact > 0:
        impulse[SERENITY] += offer_impact * OFFER_SERENITY
        impulse[HUNGER] -= offer_impact * OFFER_HUNGER
        impulse[WRATH] -= offer_impact * OFFER_WRATH
    elif offer_impact < 0:
        impulse[WRATH] -= offer_impact * INSULT_WRATH
        impulse[AMUSEMENT] += INSULT_AMUSEMENT

    impulse[AMUSEMENT] += min(ledger.variety() * VARIETY_STEP, VARIETY_CAP)

    # World actions (favor weighted)
    for item in ledger.of_type(EventKind.ACTION):
        if not isinstance(item.meta, ActionMeta):
            continue
        impact = item.meta.impact(item.weight)
        if impact > 0:
            impulse[SERENITY] += impact * FAVOR_SERENITY
            impulse[AMUSEMENT] += impact * FAVOR_AMUSEMENT
            impulse[WRATH] -= impact * FAVOR_WRATH
        elif impact < 0:
            impulse[WRATH] -= impact * DISFAVOR_WRATH
            impulse[SORROW] -= impact * DISFAVOR_SORROW
            impulse[SERENITY] += impact * DISFAVOR_SERENITY

    # Prayer: attention in moderation, pestering in streaks
    pray_weight = ledger.weighted_count(EventKind.PRAY)
    pray_streak = ledger.current_streak(EventKind.PRAY)
    if pray_streak > PRAY_STREAK_MIN:
        impulse[WRATH] += pray_streak * PRAY_STREAK_WRATH
        impulse[AMUSEMENT] -= PRAY_STREAK_AMUSEMENT
    elif 0 < pray_weight < PRAY_LIGHT_MAX:
        impulse[SERENITY] += PRAY_LIGHT_SERENITY

    desecrate_weight = ledger.weighted_count(EventKind.DESECRATE)
    impulse[WRATH] += desecrate_weight * DESECRATE_WRATH
    impulse[CHAOS] += desecrate_weight * DESECRATE_CHAOS
    impulse[SERENITY] -= desecrate_weight * DESECRATE_SERENITY

    neglect_weight = ledger.weighted_count(EventKind.NEGLECT)
    ticks_since_any = min(
        ledger.ticks_since_last(EventKind.OFFER),
        ledger.ticks_since_last(EventKind.PRAY),
    )
    neglect_factor = min(ticks_since_any / NEGLECT_HORIZON, 1.0)
    impulse[HUNGER] += neglect_weight * NEGLECT_ENTRY_HUNGER + neglect_factor * NEGLECT_HUNGER
    impulse[SORROW] += neglect_factor * NEGLECT_SORROW
    impulse[SERENITY] -= neglect_factor * NEGLECT_SERENITY

    # Monotony breeds contempt
    if ledger.size > 0:
        kinds = [entry.kind for entry in ledger.recent(REPETITION_WINDOW)]
        if len(set(kinds)) / len(kinds) < REPETITION_MIN_RATIO:
            impulse[AMUSEMENT] -= REPETITION_AMUSEMENT
            impulse[WRATH] += REPETITION_WRATH

    return impulse


@dataclass(frozen=True)
class DominantMood:
    dimension: str
    value: float

    def to_dict(self) -> Dict[str, Any]:
        return {"dimension": self.dimension, "value": float(self.value)}


class Mood:
    """Hysteretic mood vector attracted toward a personality baseline."""

    def __init__(
        self,
        personality: Optional[Mapping[str, Any]] = None,
        *,
        hysteresis: float = 0.3,
        attractor_strength: float = 0.05,
    ) -> None:
        self.personality = normalize(from_partial(personality))
        self.hysteresis = min(1.0, max(0.0, float(hysteresis)))
        self.attractor_strength = min(1.0, max(0.0, float(attractor_strength)))
        self._vector = self.personality.copy()
        self._last_resolved_tick = -1

    @property
    def vector(self) -> np.ndarray:
        return self._vector.copy()

    @property
    def last_resolved_tick(self) -> int:
        return self._last_resolved_tick

    def resolve(self, ledger: Ledger, current_tick: int) -> bool:
        """Derive the vector for ``current_tick``; returns False if already done."""
        if current_tick == self._last_resolved_tick:
            return False

        impulse = compute_impulse(ledger)
        attractor = (self.personality - self._vector) * self.attractor_strength

        delta = impulse + attractor
        resistance = self._vector * self.hysteresis
        effective = np.where(delta > 0, delta * (1.0 - resistance), delta * (1.0 + resistance))

        self._vector = normalize(self._vector + effective)
        self._last_resolved_tick = current_tick
        return True

    def query(self, *, precise: bool = False) -> Dict[str, float]:
        if precise:
            return as_mapping(self._vector)
        jittered = np.clip(
            self._vector + vector_jitter(self._vector, frequency=FUZZ_FREQUENCY, amplitude=FUZZ_AMPLITUDE),
            0.0,
            1.0,
        )
        return as_mapping(normalize(jittered))

    def dominant(self) -> DominantMood:
        idx = int(np.argmax(self._vector))
        return DominantMood(dimension=DIMENSIONS[idx], value=float(self._vector[idx]))

    def exceeds(self, dimension: Union[str, MoodDimension], threshold: float) -> bool:
        return float(self._vector[dimension_index(dimension)]) > float(threshold)

    # --- snapshot -----------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "personality": as_mapping(self.personality),
            "vector": as_mapping(self._vector),
            "hysteresis": self.hysteresis,
            "attractor_strength": self.attractor_strength,
            "last_resolved_tick": self._last_resolved_tick,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Mood":
        mood = cls(
            hysteresis=float(payload.get("hysteresis", 0.3)),
            attractor_strength=float(payload.get("attractor_strength", 0.05)),
        )
        personality = payload.get("personality") or {}
        vector = payload.get("vector") or personality
        mood.personality = np.array([float(personality.get(d, 0.0)) for d in DIMENSIONS])
        mood._vector = np.array([float(vector.get(d, 0.0)) for d in DIMENSIONS])
        mood._last_resolved_tick = int(payload.get("last_resolved_tick", -1))
        return mood


__all__ = [
    "MoodDimension",
    "DIMENSIONS",
    "DominantMood",
    "Mood",
    "compute_impulse",
    "dimension_index",
    "from_partial",
    "normalize",
    "as_mapping",
]
