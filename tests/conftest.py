from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable

import pytest


def _find_repo_root(start: Path) -> Path:
    cur = start.resolve()
    for candidate in [cur, *cur.parents]:
        if (candidate / "numen").is_dir() and (candidate / "tests").is_dir():
            return candidate
    return cur


repo_root = _find_repo_root(Path(__file__).parent)
repo_root_str = str(repo_root)
if repo_root_str not in sys.path:
    sys.path.insert(0, repo_root_str)

from numen.deity import Deity  # noqa: E402
from numen.runtime.config import DeityCfg, LedgerCfg, MoodCfg, deity_cfg_from_mapping  # noqa: E402

MOL_KHAR_PERSONALITY = {
    "wrath": 0.15,
    "serenity": 0.3,
    "hunger": 0.2,
    "amusement": 0.15,
    "sorrow": 0.1,
    "chaos": 0.1,
}


@pytest.fixture
def make_deity() -> Callable[..., Deity]:
    """Build a deity from keyword overrides of :class:`DeityCfg`."""

    def _make(**overrides: Any) -> Deity:
        return Deity(deity_cfg_from_mapping(overrides))

    return _make


@pytest.fixture
def mol_khar() -> Deity:
    """The reference deity, already advanced by one tick."""
    cfg = DeityCfg(
        name="Mol'Khar",
        personality=dict(MOL_KHAR_PERSONALITY),
        ledger=LedgerCfg(decay_half_life=50),
        mood=MoodCfg(hysteresis=0.25, attractor_strength=0.04),
    )
    deity = Deity(cfg)
    deity.tick()
    return deity
