"""Runtime configuration for numen deities."""

from .config import (
    DeityCfg,
    LedgerCfg,
    MoodCfg,
    SupplicantCfg,
    ThresholdCfg,
    deity_cfg_from_mapping,
    load_deity_cfg,
)

__all__ = [
    "DeityCfg",
    "LedgerCfg",
    "MoodCfg",
    "SupplicantCfg",
    "ThresholdCfg",
    "deity_cfg_from_mapping",
    "load_deity_cfg",
]
