import json
from datetime import timedelta

import pytest

from mnemo.application.scheduler import apply_review
from mnemo.domain.errors import ImportDataError
from mnemo.domain.models import Card, CardState
from mnemo.infrastructure.serialization import CardRecord, dump_store, load_store

from conftest import T0, make_card


@pytest.fixture
def reviewed_card():
    card = Card.new("q1", T0, question_text="Capital of Peru?", question_type="geo")
    card = apply_review(card, 4, T0)
    return apply_review(card, 2, T0 + timedelta(days=1))


def test_dump_uses_camel_case_and_utc_suffix(reviewed_card):
    data = json.loads(dump_store({"q1": reviewed_card}, exported_at=T0))

    assert data["version"] == 1
    assert data["exportedAt"] == "2024-01-01T12:00:00Z"
    card = data["cards"]["q1"]
    assert card["questionText"] == "Capital of Peru?"
    assert card["easeFactor"] == pytest.approx(2.18)
    assert card["nextReviewDate"] == "2024-01-03T12:00:00Z"
    assert card["lastReviewDate"] == "2024-01-02T12:00:00Z"
    assert card["createdAt"] == "2024-01-01T12:00:00Z"
    assert card["state"] == "learning"
    assert card["lapses"] == 1
    assert [r["quality"] for r in card["reviewHistory"]] == [4, 2]
    assert card["reviewHistory"][0]["state"] == "new"


def test_round_trip_preserves_cards(reviewed_card):
    cards = {"q1": reviewed_card, "fresh": Card.new("fresh", T0)}

    restored = load_store(dump_store(cards))

    assert restored == cards


def test_bytes_are_accepted(reviewed_card):
    blob = dump_store({"q1": reviewed_card}).encode("utf-8")
    assert list(load_store(blob)) == ["q1"]


def test_offsets_are_normalised_to_utc():
    blob = json.loads(dump_store({"a": Card.new("a", T0)}))
    blob["cards"]["a"]["nextReviewDate"] = "2024-01-01T14:00:00+02:00"

    card = load_store(json.dumps(blob))["a"]

    assert card.next_review_date == T0


def _blob_with(**changes):
    blob = json.loads(dump_store({"a": make_card("a")}))
    blob["cards"]["a"].update(changes)
    return json.dumps(blob)


@pytest.mark.parametrize(
    "changes",
    [
        {"easeFactor": 1.0},
        {"interval": -1},
        {"interval": "6"},
        {"repetitions": 2.5},
        {"state": "mastered"},
        {"nextReviewDate": "yesterday"},
        {"lapses": -2},
        {"interval": 0},  # repetitions is 2
        {"lastReviewDate": None},  # state is review
        {"unexpected": True},
    ],
)
def test_invalid_records_are_rejected(changes):
    with pytest.raises(ImportDataError):
        load_store(_blob_with(**changes))


def test_invalid_history_quality_is_rejected():
    card = apply_review(Card.new("a", T0), 4, T0)
    blob = json.loads(dump_store({"a": card}))
    blob["cards"]["a"]["reviewHistory"][0]["quality"] = 9

    with pytest.raises(ImportDataError):
        load_store(json.dumps(blob))


@pytest.mark.parametrize(
    "blob",
    [
        "",
        "[]",
        "{not json",
        '{"cards": {}, "version": 2}',
        '{"version": 1}',
    ],
)
def test_malformed_blobs(blob):
    with pytest.raises(ImportDataError):
        load_store(blob)


def test_key_must_match_card_id():
    blob = json.loads(dump_store({"a": make_card("a")}))
    blob["cards"]["b"] = blob["cards"].pop("a")

    with pytest.raises(ImportDataError):
        load_store(json.dumps(blob))


def test_non_string_blob_is_rejected():
    with pytest.raises(ImportDataError):
        load_store({"version": 1, "cards": {}})


def test_empty_store():
    assert load_store('{"version": 1, "cards": {}}') == {}


def test_card_record_from_domain():
    record = CardRecord.from_domain(make_card("a", CardState.LEARNING, interval=1, repetitions=1))
    assert record.to_domain() == make_card("a", CardState.LEARNING, interval=1, repetitions=1)
