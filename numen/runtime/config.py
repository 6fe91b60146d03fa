from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

LOGGER = logging.getLogger(__name__)


@dataclass
class LedgerCfg:
    decay_half_life: float = field(default=100.0)


@dataclass
class MoodCfg:
    hysteresis: float = field(default=0.3)
    attractor_strength: float = field(default=0.05)


@dataclass
class SupplicantCfg:
    enabled: bool = field(default=True)
    sequence_length: int = field(default=10)


@dataclass
class ThresholdCfg:
    wrath: float = field(default=0.4)
    miracle: float = field(default=0.5)
    miracle_max_wrath: float = field(default=0.1)
    demand: float = field(default=0.35)
    omen: float = field(default=0.3)


@dataclass
class DeityCfg:
    name: str = field(default="The Unnamed")
    alignment: str = field(default="neutral")
    personality: dict[str, float] = field(default_factory=dict)
    favor_map: dict[str, float] = field(default_factory=dict)
    neglect_threshold: int = field(default=3)
    ledger: LedgerCfg = field(default_factory=LedgerCfg)
    mood: MoodCfg = field(default_factory=MoodCfg)
    supplicant: SupplicantCfg = field(default_factory=SupplicantCfg)
    thresholds: ThresholdCfg = field(default_factory=ThresholdCfg)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


_SECTION_FACTORIES = {
    "ledger": LedgerCfg,
    "mood": MoodCfg,
    "supplicant": SupplicantCfg,
    "thresholds": ThresholdCfg,
}


def deity_cfg_from_mapping(payload: dict[str, Any] | None) -> DeityCfg:
    return _merge_dataclass(DeityCfg(), payload or {}, extra_factories=_SECTION_FACTORIES)


def load_deity_cfg(path: str | Path = "configs/deity_default.yaml") -> DeityCfg:
    cfg_path = Path(path)
    if not cfg_path.exists():
        return DeityCfg()
    try:
        payload = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError:
        LOGGER.warning("could not parse %s; using defaults", cfg_path, exc_info=True)
        return DeityCfg()
    if not isinstance(payload, dict):
        raise ValueError(f"deity config {cfg_path} must be a mapping")
    # A file may hold a single deity at the root or under a "deity" key.
    if isinstance(payload.get("deity"), dict):
        payload = payload["deity"]
    return deity_cfg_from_mapping(payload)


def _merge_dataclass(instance, overrides: dict[str, Any], extra_factories: dict[str, Any] | None = None):
    data = instance.__dict__.copy()
    for key, value in (overrides or {}).items():
        if key not in data:
            continue
        if extra_factories and key in extra_factories:
            factory_cls = extra_factories[key]
            if isinstance(value, factory_cls):
                data[key] = value
            elif isinstance(value, dict):
                data[key] = _merge_dataclass(factory_cls(), value)
        elif isinstance(data[key], dict) and isinstance(value, dict):
            data[key] = {str(k): v for k, v in value.items()}
        else:
            data[key] = value
    return instance.__class__(**data)


__all__ = [
    "load_deity_cfg",
    "deity_cfg_from_mapping",
    "DeityCfg",
    "LedgerCfg",
    "MoodCfg",
    "SupplicantCfg",
    "ThresholdCfg",
]
