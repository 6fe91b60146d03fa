"""Deity: a headless mood machine.

``Deity`` owns one ledger, one mood engine and one player model, and
sequences them once per tick::

    record interactions -> tick() -> advance ledger -> neglect check
        -> mood.resolve() -> threshold events -> telemetry hook

Consumers only ever see the fuzzed mood through :meth:`Deity.query`.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Mapping, Optional

from .events import DeityEventKind, Listener, ListenerRegistry, Subscription
from .ledger import EventKind, Ledger
from .mood import DIMENSIONS, DominantMood, Mood
from .noise import sin_unit
from .runtime.config import DeityCfg, deity_cfg_from_mapping
from .supplicant import NullPlayerModel, PlayerModel, Prediction, Supplicant, player_model_from_dict
from .telemetry.trace import TelemetryHook, build_tick_record

LOGGER = logging.getLogger(__name__)

SCHEMA_VERSION = "deity_v1"

DEFAULT_FAVOR_MAP: Dict[str, float] = {
    "kill": 0.0,
    "steal": 0.0,
    "heal": 0.2,
    "destroy": -0.1,
    "create": 0.2,
    "betray": -0.3,
    "protect": 0.3,
}

DEFAULT_OFFER_VALUE = 0.3
DEFAULT_ACTION_MAGNITUDE = 0.3
ALIGNED_MULTIPLIER = 1.5
MISALIGNED_MULTIPLIER = -0.5
SURPRISE_OFFERING = "_surprise_bonus"
PREDICTABILITY_REASON = "predictability"

# Deterministic per-tick gates
MIRACLE_SCALE = 127.1
MIRACLE_CHANCE = 0.02
UTTERANCE_SCALE = 43.7
UTTERANCE_OFFSET = 17.3
UTTERANCE_CHANCE = 0.1
UTTERANCE_EXTREME_BOOST = 0.15
UTTERANCE_EXTREME_LEVEL = 0.5

_DIRECT_KINDS = (EventKind.OFFER, EventKind.PRAY, EventKind.DESECRATE)


def _clamp01(value: float) -> float:
    return float(max(0.0, min(1.0, value)))


@dataclass(frozen=True)
class DeityReading:
    mood: Dict[str, float]
    dominant: DominantMood
    tick: int

    def to_dict(self) -> Dict[str, Any]:
        return {"mood": dict(self.mood), "dominant": self.dominant.to_dict(), "tick": self.tick}


class Deity:
    def __init__(
        self,
        cfg: DeityCfg | None = None,
        *,
        player_model: PlayerModel | None = None,
        telemetry_hook: TelemetryHook | None = None,
    ) -> None:
        cfg = cfg or DeityCfg()
        self.name = cfg.name
        self.alignment = cfg.alignment
        self.favor_map: Dict[str, float] = {**DEFAULT_FAVOR_MAP, **{str(k): float(v) for k, v in cfg.favor_map.items()}}
        self.thresholds = cfg.thresholds
        self.neglect_threshold = int(cfg.neglect_threshold)
        self.ledger = Ledger(decay_half_life=cfg.ledger.decay_half_life)
        self.mood = Mood(
            cfg.personality,
            hysteresis=cfg.mood.hysteresis,
            attractor_strength=cfg.mood.attractor_strength,
        )
        if player_model is not None:
            self.player_model: PlayerModel = player_model
        elif cfg.supplicant.enabled:
            self.player_model = Supplicant(sequence_length=cfg.supplicant.sequence_length)
        else:
            self.player_model = NullPlayerModel()
        self.telemetry_hook = telemetry_hook
        self._listeners = ListenerRegistry()
        self._prev_dominant: Optional[str] = None
        self._tick = 0

    @property
    def current_tick(self) -> int:
        return self._tick

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def on(self, event: str | DeityEventKind, callback: Listener) -> Subscription:
        """Register ``callback``; unknown event names raise ``ValueError``."""
        return self._listeners.subscribe(event, callback)

    def off(self, subscription: Subscription) -> bool:
        return self._listeners.unsubscribe(subscription)

    # ------------------------------------------------------------------
    # Interactions
    # ------------------------------------------------------------------

    def offer(
        self,
        offering_type: str = "generic",
        *,
        value: float | None = None,
        alignment: str | None = None,
        **extra: Any,
    ) -> None:
        """Make an offering.

        ``value`` is the intrinsic worth in ``[0, 1]`` (a lichen corpse is
        0.05, a unicorn 0.9). An offering matching the deity's alignment is
        worth half again as much; an opposing one becomes an insult.
        """
        worth = _clamp01(DEFAULT_OFFER_VALUE if value is None else float(value))
        alignment = alignment or "neutral"
        self.ledger.record(
            EventKind.OFFER,
            {
                **extra,
                "offering_type": str(offering_type),
                "value": worth,
                "effective_value": self._effective_value(worth, alignment),
                "alignment": alignment,
                "synthetic": False,
            },
        )
        self.apply_prediction(self.player_model.record(EventKind.OFFER.value))

    def pray(self) -> None:
        self.ledger.record(EventKind.PRAY)
        self.apply_prediction(self.player_model.record(EventKind.PRAY.value))

    def desecrate(self, desecration_type: str = "generic", **extra: Any) -> None:
        self.ledger.record(EventKind.DESECRATE, {**extra, "desecration_type": str(desecration_type)})
        self.apply_prediction(self.player_model.record(EventKind.DESECRATE.value))

    def action(
        self,
        action_type: str,
        *,
        magnitude: float | None = None,
        target: str | None = None,
        **extra: Any,
    ) -> None:
        """Report a world action, judged through the favor map.

        A war god is pleased by kills and a peace god saddened; ``magnitude``
        separates killing a rat from killing a dragon.
        """
        size = _clamp01(DEFAULT_ACTION_MAGNITUDE if magnitude is None else float(magnitude))
        self.ledger.record(
            EventKind.ACTION,
            {
                **extra,
                "action_type": str(action_type),
                "magnitude": size,
                "favor": self.favor_map.get(str(action_type), 0.0),
                "target": target,
            },
        )
        # Actions are observed, not addressed to the deity: no surprise feedback.
        self.player_model.record(EventKind.ACTION.value)

    def apply_prediction(self, prediction: Prediction | None, *, fully_predictable: bool | None = None) -> None:
        """Turn a player-model signal into synthetic ledger entries.

        A surprise registers as a synthetic offering (no value, but it counts
        as contact). Total predictability registers as boredom-neglect.
        """
        if prediction is None or prediction.predicted is None:
            return
        if fully_predictable is None:
            fully_predictable = bool(self.player_model.omniscient)
        if prediction.surprised:
            LOGGER.debug("%s surprised (expected %s)", self.name, prediction.predicted)
            self.ledger.record(EventKind.OFFER, {"offering_type": SURPRISE_OFFERING, "synthetic": True})
        elif fully_predictable:
            LOGGER.debug("%s finds its worshipper predictable", self.name)
            self.ledger.record(EventKind.NEGLECT, {"synthetic": True, "reason": PREDICTABILITY_REASON})

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def query(self) -> DeityReading:
        """Imprecise mood reading; identical for every call within a tick."""
        return DeityReading(mood=self.mood.query(), dominant=self.mood.dominant(), tick=self._tick)

    def precise_mood(self) -> Dict[str, float]:
        return self.mood.query(precise=True)

    # ------------------------------------------------------------------
    # Time
    # ------------------------------------------------------------------

    def tick(self, dt: int = 1) -> None:
        """Advance ``dt`` ticks, resolving every intermediate step."""
        for _ in range(max(0, int(dt))):
            self._step()

    def _step(self) -> None:
        self._tick += 1
        self.ledger.advance_tick(1)

        since_contact = min(self.ledger.ticks_since_last(kind) for kind in _DIRECT_KINDS)
        neglected = since_contact > self.neglect_threshold
        if neglected:
            self.ledger.record(EventKind.NEGLECT, {"synthetic": True})
            self.player_model.record(EventKind.NEGLECT.value)

        self.mood.resolve(self.ledger, self._tick)
        fired = self._check_events()

        if self.telemetry_hook is not None:
            record = build_tick_record(
                deity=self.name,
                tick=self._tick,
                mood=self.precise_mood(),
                dominant=self.mood.dominant().to_dict(),
                fired=fired,
                ledger_size=self.ledger.size,
                neglect_recorded=neglected,
            )
            try:
                self.telemetry_hook("deity_tick", record)
            except Exception:
                LOGGER.warning("telemetry hook failed at tick %d", self._tick, exc_info=True)

    def _check_events(self) -> List[str]:
        precise = self.precise_mood()
        dom = self.mood.dominant()
        fired: List[str] = []

        def _fire(kind: DeityEventKind, payload: Dict[str, Any]) -> None:
            fired.append(kind.value)
            self._listeners.emit(kind, payload)

        if self._prev_dominant is not None and self._prev_dominant != dom.dimension:
            LOGGER.debug("%s mood shift %s -> %s at tick %d", self.name, self._prev_dominant, dom.dimension, self._tick)
            _fire(
                DeityEventKind.MOOD_SHIFT,
                {"from": self._prev_dominant, "to": dom.dimension, "mood": self.mood.query(), "tick": self._tick},
            )
        self._prev_dominant = dom.dimension

        if precise["wrath"] > self.thresholds.wrath:
            _fire(DeityEventKind.WRATH, {"intensity": precise["wrath"], "tick": self._tick})
        if precise["hunger"] > self.thresholds.demand:
            _fire(DeityEventKind.DEMAND, {"intensity": precise["hunger"], "tick": self._tick})
        if precise["chaos"] > self.thresholds.omen:
            _fire(DeityEventKind.OMEN, {"intensity": precise["chaos"], "tick": self._tick})
        if (
            precise["serenity"] > self.thresholds.miracle
            and precise["wrath"] < self.thresholds.miracle_max_wrath
            and self._miracle_chance()
        ):
            _fire(DeityEventKind.MIRACLE, {"serenity": precise["serenity"], "tick": self._tick})
        if self._should_speak(dom):
            _fire(
                DeityEventKind.UTTERANCE,
                {
                    "mood": self.mood.query(),
                    "dominant": dom.to_dict(),
                    "surprise": float(self.player_model.surprise),
                    "tick": self._tick,
                },
            )
        return fired

    def _miracle_chance(self) -> bool:
        return sin_unit(self._tick, scale=MIRACLE_SCALE) < MIRACLE_CHANCE

    def _should_speak(self, dom: DominantMood) -> bool:
        chance = UTTERANCE_CHANCE
        if dom.value > UTTERANCE_EXTREME_LEVEL:
            chance += UTTERANCE_EXTREME_BOOST
        return sin_unit(self._tick, scale=UTTERANCE_SCALE, offset=UTTERANCE_OFFSET) < chance

    def _effective_value(self, worth: float, alignment: str) -> float:
        if not self.alignment:
            return worth
        if alignment == self.alignment:
            return worth * ALIGNED_MULTIPLIER
        if alignment != "neutral":
            return worth * MISALIGNED_MULTIPLIER
        return worth

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema_version": SCHEMA_VERSION,
            "name": self.name,
            "alignment": self.alignment,
            "favor_map": dict(self.favor_map),
            "thresholds": asdict(self.thresholds),
            "neglect_threshold": self.neglect_threshold,
            "tick": self._tick,
            "prev_dominant": self._prev_dominant,
            "ledger": self.ledger.to_dict(),
            "mood": self.mood.to_dict(),
            "player_model": self.player_model.to_dict(),
        }

    @classmethod
    def from_dict(
        cls,
        payload: Mapping[str, Any],
        *,
        telemetry_hook: TelemetryHook | None = None,
    ) -> "Deity":
        cfg = deity_cfg_from_mapping(
            {
                "name": payload.get("name", "The Unnamed"),
                "alignment": payload.get("alignment", "neutral"),
                "favor_map": payload.get("favor_map") or {},
                "thresholds": payload.get("thresholds") or {},
                "neglect_threshold": payload.get("neglect_threshold", 3),
            }
        )
        deity = cls(
            cfg,
            player_model=player_model_from_dict(payload.get("player_model")),
            telemetry_hook=telemetry_hook,
        )
        deity.ledger = Ledger.from_dict(payload.get("ledger") or {})
        deity.mood = Mood.from_dict(payload.get("mood") or {})
        deity._tick = int(payload.get("tick", 0))
        prev = payload.get("prev_dominant")
        deity._prev_dominant = None if prev is None else str(prev)
        return deity


MOOD_DIMENSIONS = DIMENSIONS

__all__ = ["Deity", "DeityReading", "DEFAULT_FAVOR_MAP", "MOOD_DIMENSIONS", "SCHEMA_VERSION"]
