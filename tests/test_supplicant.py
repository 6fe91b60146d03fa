from __future__ import annotations

import pytest

from numen.ledger import EventKind
from numen.supplicant import NullPlayerModel, Prediction, Supplicant, player_model_from_dict


def test_first_interaction_has_no_prediction() -> None:
    model = Supplicant()
    assert model.record("offer") == Prediction(predicted=None, surprised=False)
    assert model.last_prediction == "offer"
    assert model.last_confidence == pytest.approx(1.0)
    assert model.surprise == 0.0


def test_wrong_prediction_is_a_surprise() -> None:
    model = Supplicant()
    model.record("offer")
    result = model.record(EventKind.PRAY)
    assert result.predicted == "offer"
    assert result.surprised is True
    assert model.surprise == pytest.approx(0.3)
    # tie in the window keeps the first kind seen
    assert model.last_prediction == "offer"
    assert model.last_confidence == pytest.approx(0.5)


def test_surprise_rises_and_decays_within_bounds() -> None:
    model = Supplicant()
    for kind in ["offer", "pray", "offer", "pray", "offer", "pray"]:
        model.record(kind)
        assert 0.0 <= model.surprise <= 1.0
    level = model.surprise
    model.record(model.last_prediction)
    assert model.surprise == pytest.approx(max(0.0, level - 0.1))


def test_repetition_makes_the_model_omniscient() -> None:
    model = Supplicant()
    for _ in range(9):
        model.record("pray")
    assert model.omniscient is False
    model.record("pray")
    # nine correct out of ten
    assert model.interaction_count == 10
    assert model.omniscient is True


def test_varied_worship_stays_opaque() -> None:
    model = Supplicant()
    for kind in ["offer", "pray", "desecrate"] * 6:
        model.record(kind)
    assert model.omniscient is False
    assert model.frequencies == {"offer": 6, "pray": 6, "desecrate": 6}


def test_history_is_trimmed_but_counts_are_not() -> None:
    model = Supplicant(sequence_length=2)
    for _ in range(7):
        model.record("offer")
    assert len(model.to_dict()["history"]) == 4
    assert model.frequencies["offer"] == 7
    assert model.interaction_count == 7


def test_round_trip_preserves_predictor_state() -> None:
    model = Supplicant(sequence_length=4)
    for kind in ["offer", "pray", "pray", "neglect"]:
        model.record(kind)
    restored = player_model_from_dict(model.to_dict())
    assert isinstance(restored, Supplicant)
    assert restored.to_dict() == model.to_dict()
    assert restored.record("pray") == model.record("pray")


def test_null_model_never_predicts() -> None:
    model = NullPlayerModel()
    assert model.record("offer") == Prediction(predicted=None, surprised=False)
    assert model.omniscient is False
    assert model.surprise == 0.0
    assert isinstance(player_model_from_dict(model.to_dict()), NullPlayerModel)
    assert isinstance(player_model_from_dict(None), NullPlayerModel)
