"""numen: a deterministic, opaque mood engine for deities."""

from .deity import DEFAULT_FAVOR_MAP, MOOD_DIMENSIONS, Deity, DeityReading
from .events import DeityEventKind, EVENT_KINDS, ListenerRegistry, Subscription
from .ledger import EventKind, Ledger, LedgerEntry, WeightedEntry
from .mood import DIMENSIONS, DominantMood, Mood, MoodDimension
from .runtime.config import DeityCfg, load_deity_cfg
from .supplicant import NullPlayerModel, PlayerModel, Prediction, Supplicant

__all__ = [
    "Deity",
    "DeityReading",
    "DEFAULT_FAVOR_MAP",
    "MOOD_DIMENSIONS",
    "DeityEventKind",
    "EVENT_KINDS",
    "ListenerRegistry",
    "Subscription",
    "EventKind",
    "Ledger",
    "LedgerEntry",
    "WeightedEntry",
    "DIMENSIONS",
    "DominantMood",
    "Mood",
    "MoodDimension",
    "DeityCfg",
    "load_deity_cfg",
    "NullPlayerModel",
    "PlayerModel",
    "Prediction",
    "Supplicant",
]
