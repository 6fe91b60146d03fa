"""Predictive model of the worshipper.

The supplicant counts interaction kinds over a sliding window and predicts
the next one. A wrong prediction is a *surprise*; a run of correct ones makes
the deity *omniscient* about its worshipper. No learning library is involved:
it is plain frequency counting.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Protocol

DEFAULT_SEQUENCE_LENGTH = 10
OMNISCIENCE_MIN_INTERACTIONS = 10
OMNISCIENCE_ACCURACY = 0.85
SURPRISE_RISE = 0.3
SURPRISE_FALL = 0.1


@dataclass(frozen=True)
class Prediction:
    predicted: Optional[str]
    surprised: bool

    def to_dict(self) -> Dict[str, Any]:
        return {"predicted": self.predicted, "surprised": self.surprised}


class PlayerModel(Protocol):
    @property
    def omniscient(self) -> bool: ...

    @property
    def surprise(self) -> float: ...

    def record(self, kind: str) -> Prediction: ...

    def to_dict(self) -> Dict[str, Any]: ...


class NullPlayerModel:
    """Fallback model that never predicts anything."""

    omniscient = False
    surprise = 0.0

    def record(self, kind: str) -> Prediction:
        return Prediction(predicted=None, surprised=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"model": "null"}


class Supplicant:
    """Frequency-window predictor of the next interaction kind."""

    def __init__(self, sequence_length: int = DEFAULT_SEQUENCE_LENGTH) -> None:
        self.sequence_length = max(1, int(sequence_length))
        self._history: List[str] = []
        self._freq: Dict[str, int] = {}
        self._total = 0
        self._correct = 0
        self._last_prediction: Optional[str] = None
        self._last_confidence = 0.0
        self._surprise = 0.0

    @property
    def interaction_count(self) -> int:
        return self._total

    @property
    def last_prediction(self) -> Optional[str]:
        return self._last_prediction

    @property
    def last_confidence(self) -> float:
        return self._last_confidence

    @property
    def surprise(self) -> float:
        return self._surprise

    @property
    def frequencies(self) -> Dict[str, int]:
        return dict(self._freq)

    @property
    def omniscient(self) -> bool:
        if self._total < OMNISCIENCE_MIN_INTERACTIONS:
            return False
        return self._correct / self._total > OMNISCIENCE_ACCURACY

    def record(self, kind: str) -> Prediction:
        kind = str(getattr(kind, "value", kind))
        predicted = self._last_prediction
        surprised = predicted is not None and predicted != kind

        if predicted == kind:
            self._correct += 1
        if surprised:
            self._surprise = min(1.0, self._surprise + SURPRISE_RISE)
        else:
            self._surprise = max(0.0, self._surprise - SURPRISE_FALL)

        self._history.append(kind)
        if len(self._history) > self.sequence_length * 3:
            self._history = self._history[-self.sequence_length * 2:]
        self._freq[kind] = self._freq.get(kind, 0) + 1
        self._total += 1

        self._predict()
        return Prediction(predicted=predicted, surprised=surprised)

    def _predict(self) -> None:
        window = self._history[-self.sequence_length:]
        counts: Dict[str, int] = {}
        for kind in window:
            counts[kind] = counts.get(kind, 0) + 1
        best: Optional[str] = None
        best_count = 0
        for kind, count in counts.items():
            if count > best_count:
                best, best_count = kind, count
        self._last_prediction = best
        self._last_confidence = best_count / len(window) if window else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "model": "frequency",
            "sequence_length": self.sequence_length,
            "history": list(self._history),
            "freq": dict(self._freq),
            "total": self._total,
            "correct": self._correct,
            "last_prediction": self._last_prediction,
            "last_confidence": self._last_confidence,
            "surprise": self._surprise,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Supplicant":
        model = cls(sequence_length=int(payload.get("sequence_length", DEFAULT_SEQUENCE_LENGTH)))
        model._history = [str(k) for k in payload.get("history", [])]
        model._freq = {str(k): int(v) for k, v in (payload.get("freq") or {}).items()}
        model._total = int(payload.get("total", 0))
        model._correct = int(payload.get("correct", 0))
        model._last_prediction = payload.get("last_prediction")
        model._last_confidence = float(payload.get("last_confidence", 0.0))
        model._surprise = float(payload.get("surprise", 0.0))
        return model


def player_model_from_dict(payload: Optional[Mapping[str, Any]]) -> PlayerModel:
    if not payload or payload.get("model") == "null":
        return NullPlayerModel()
    return Supplicant.from_dict(payload)


__all__ = [
    "Prediction",
    "PlayerModel",
    "NullPlayerModel",
    "Supplicant",
    "player_model_from_dict",
]
