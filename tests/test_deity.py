from __future__ import annotations

import json

import pytest

from numen.deity import PREDICTABILITY_REASON, SURPRISE_OFFERING, Deity
from numen.ledger import EventKind
from numen.supplicant import NullPlayerModel, Prediction, Supplicant


def _offers(deity: Deity) -> list:
    return [item.meta for item in deity.ledger.of_type(EventKind.OFFER)]


def test_defaults_use_frequency_player_model(make_deity) -> None:
    deity = make_deity()
    assert deity.name == "The Unnamed"
    assert isinstance(deity.player_model, Supplicant)
    assert deity.favor_map["protect"] == pytest.approx(0.3)
    assert isinstance(make_deity(supplicant={"enabled": False}).player_model, NullPlayerModel)


def test_neglect_is_recorded_after_threshold(make_deity) -> None:
    deity = make_deity()
    deity.tick()
    assert len(deity.ledger.of_type(EventKind.NEGLECT)) == 1

    deity.offer("bread", value=0.2)
    deity.tick(3)
    assert len(deity.ledger.of_type(EventKind.NEGLECT)) == 1
    deity.tick()
    assert len(deity.ledger.of_type(EventKind.NEGLECT)) == 2


def test_desecration_counts_as_contact(make_deity) -> None:
    deity = make_deity(supplicant={"enabled": False})
    deity.desecrate("altar")
    deity.tick(3)
    assert deity.ledger.of_type(EventKind.NEGLECT) == []


def test_offer_value_follows_alignment(make_deity) -> None:
    deity = make_deity(alignment="lawful", supplicant={"enabled": False})
    deity.offer("law-tablet", value=0.6, alignment="lawful")
    deity.offer("skull", value=0.6, alignment="chaotic")
    deity.offer("bread", value=0.6)
    deity.offer("meteor", value=5.0)
    aligned, opposed, plain, clamped = _offers(deity)
    assert aligned.effective_value == pytest.approx(0.9)
    assert opposed.effective_value == pytest.approx(-0.3)
    assert plain.effective_value == pytest.approx(0.6)
    assert clamped.value == 1.0
    assert clamped.alignment == "neutral"


def test_offer_keeps_extra_fields(make_deity) -> None:
    deity = make_deity()
    deity.offer("unicorn", value=0.9, origin="forest")
    assert _offers(deity)[0].extra == {"origin": "forest"}


def test_action_uses_favor_map_and_skips_surprise(make_deity) -> None:
    deity = make_deity(favor_map={"kill": 0.8})
    deity.offer("bread")
    deity.action("kill", magnitude=0.5, target="rat")
    deity.action("juggle")
    kill, juggle = [item.meta for item in deity.ledger.of_type(EventKind.ACTION)]
    assert kill.favor == pytest.approx(0.8)
    assert kill.target == "rat"
    assert juggle.favor == 0.0
    assert juggle.magnitude == pytest.approx(0.3)
    # the model saw the actions, but no synthetic offering was injected
    assert deity.player_model.frequencies["action"] == 2
    assert len(_offers(deity)) == 1


def test_surprise_injects_synthetic_offering(make_deity) -> None:
    deity = make_deity()
    deity.offer("bread")
    deity.pray()
    offers = _offers(deity)
    assert len(offers) == 2
    assert offers[1].offering_type == SURPRISE_OFFERING
    assert offers[1].synthetic is True


def test_predictable_worship_breeds_boredom(make_deity) -> None:
    deity = make_deity()
    for _ in range(12):
        deity.pray()
    reasons = [item.meta.reason for item in deity.ledger.of_type(EventKind.NEGLECT)]
    assert reasons
    assert set(reasons) == {PREDICTABILITY_REASON}


def test_apply_prediction_signals(make_deity) -> None:
    deity = make_deity(supplicant={"enabled": False})
    deity.apply_prediction(None)
    deity.apply_prediction(Prediction(predicted=None, surprised=True))
    deity.apply_prediction(Prediction(predicted="pray", surprised=False))
    assert deity.ledger.size == 0

    deity.apply_prediction(Prediction(predicted="offer", surprised=True))
    deity.apply_prediction(Prediction(predicted="pray", surprised=False), fully_predictable=True)
    kinds = [entry.kind for entry in deity.ledger.recent(2)]
    assert kinds == ["neglect", "offer"]


def test_query_is_stable_within_a_tick(make_deity) -> None:
    deity = make_deity()
    deity.tick()
    first = deity.query()
    deity.desecrate("altar")
    assert deity.query() == first
    assert first.tick == 1
    assert sum(first.mood.values()) == pytest.approx(1.0)


def test_multi_tick_matches_single_steps(make_deity) -> None:
    batched = make_deity(name="A")
    stepped = make_deity(name="A")
    for deity in (batched, stepped):
        deity.offer("gold", value=0.7)
        deity.desecrate("shrine")
    batched.tick(5)
    for _ in range(5):
        stepped.tick(1)
    assert batched.current_tick == stepped.current_tick == 5
    assert batched.precise_mood() == stepped.precise_mood()
    assert batched.ledger.to_dict() == stepped.ledger.to_dict()


def test_zero_or_negative_dt_is_a_no_op(make_deity) -> None:
    deity = make_deity()
    deity.tick(0)
    deity.tick(-3)
    assert deity.current_tick == 0
    assert deity.ledger.size == 0


def test_threshold_events_reach_listeners(make_deity) -> None:
    deity = make_deity(thresholds={"wrath": 0.0, "demand": 0.0, "omen": 0.0})
    seen: dict = {}
    for kind in ("wrath", "demand", "omen"):
        deity.on(kind, lambda payload, kind=kind: seen.setdefault(kind, payload))
    deity.tick()
    assert set(seen) == {"wrath", "demand", "omen"}
    assert seen["wrath"]["tick"] == 1
    assert seen["demand"]["intensity"] == pytest.approx(deity.precise_mood()["hunger"])


def test_mood_shift_reports_old_and_new_dominant(make_deity) -> None:
    deity = make_deity(personality={"serenity": 0.5})
    shifts: list = []
    deity.on("mood_shift", shifts.append)
    deity.tick()
    assert shifts == []
    for _ in range(5):
        deity.desecrate("altar")
    deity.tick(3)
    assert shifts
    assert shifts[0]["from"] == "serenity"
    assert shifts[0]["to"] == "wrath"
    assert shifts[0]["tick"] == 2


def test_unknown_event_name_is_rejected(make_deity) -> None:
    with pytest.raises(ValueError):
        make_deity().on("rapture", lambda payload: None)


def test_off_stops_delivery(make_deity) -> None:
    deity = make_deity(thresholds={"wrath": 0.0})
    calls: list = []
    sub = deity.on("wrath", calls.append)
    deity.tick()
    assert deity.off(sub) is True
    assert deity.off(sub) is False
    deity.tick()
    assert len(calls) == 1


def test_failing_listener_is_isolated(make_deity, caplog) -> None:
    caplog.set_level("WARNING")
    deity = make_deity(thresholds={"wrath": 0.0})
    calls: list = []

    def broken(payload):
        raise RuntimeError("listener exploded")

    deity.on("wrath", broken)
    deity.on("wrath", calls.append)
    deity.tick(2)
    assert len(calls) == 2
    assert deity.current_tick == 2
    assert "listener for wrath failed" in caplog.text


def test_telemetry_hook_sees_every_tick() -> None:
    records: list = []
    deity = Deity(telemetry_hook=lambda name, rec: records.append((name, rec)))
    deity.tick(3)
    assert [name for name, _ in records] == ["deity_tick"] * 3
    assert [rec["tick"] for _, rec in records] == [1, 2, 3]
    assert records[0][1]["neglect_recorded"] is True
    assert sum(records[-1][1]["mood"].values()) == pytest.approx(1.0)


def test_failing_telemetry_hook_does_not_stop_the_clock(caplog) -> None:
    caplog.set_level("WARNING")

    def broken(name, record):
        raise OSError("disk full")

    deity = Deity(telemetry_hook=broken)
    deity.tick(2)
    assert deity.current_tick == 2
    assert "telemetry hook failed" in caplog.text


def test_identical_deities_stay_identical(make_deity) -> None:
    logs = ([], [])
    deities = [make_deity(name="Twin"), make_deity(name="Twin")]
    for deity, log in zip(deities, logs):
        for kind in ("mood_shift", "utterance", "demand", "omen", "miracle", "wrath"):
            deity.on(kind, lambda payload, kind=kind, log=log: log.append(kind))
        deity.offer("gold", value=0.7)
        deity.tick(2)
        deity.pray()
        deity.pray()
        deity.action("betray", magnitude=0.9)
        deity.tick(40)
    assert deities[0].query() == deities[1].query()
    assert logs[0] == logs[1]


def test_snapshot_survives_json_and_resumes(make_deity) -> None:
    deity = make_deity(name="Vessel", alignment="lawful", favor_map={"heal": 0.5})
    deity.offer("gold", value=0.7, alignment="lawful")
    deity.tick(2)
    deity.desecrate("altar")
    deity.pray()

    restored = Deity.from_dict(json.loads(json.dumps(deity.to_dict())))
    assert restored.name == "Vessel"
    assert restored.current_tick == deity.current_tick
    assert restored.favor_map["heal"] == pytest.approx(0.5)

    for target in (deity, restored):
        target.offer("incense", value=0.4)
        target.action("heal", magnitude=0.6)
        target.tick(5)
    for name, value in deity.precise_mood().items():
        assert restored.precise_mood()[name] == pytest.approx(value, abs=1e-3)
    assert restored.to_dict()["player_model"] == deity.to_dict()["player_model"]
