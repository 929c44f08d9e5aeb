import pytest

from dartscore.scoring.game import CricketLedger, Dart, MatchConfig, Turn
from dartscore.scoring.store import InMemoryScoringStore


def _turn(leg_id: int, turn_number: int = 1) -> Turn:
    return Turn(
        leg_id=leg_id,
        player_id=1,
        turn_number=turn_number,
        darts=(Dart(1, 20),),
        total_scored=20,
        was_bust=False,
    )


def test_create_match_defaults_starter_to_first_player() -> None:
    store = InMemoryScoringStore()
    match, leg = store.create_match(player_ids=[4, 7, 4], starting_player_id=99)
    assert match.player_ids == (4, 7)
    assert leg.starting_player_id == 4
    assert match.config == MatchConfig()


def test_load_leg_returns_a_copy() -> None:
    store = InMemoryScoringStore()
    _, leg = store.create_match(player_ids=[1, 2])

    context = store.load_leg(leg.leg_id)
    context.leg.turns.append(_turn(leg.leg_id))
    context.leg.cricket_ledgers[1] = CricketLedger(1)

    fresh = store.load_leg(leg.leg_id)
    assert fresh.leg.turns == []
    assert fresh.leg.cricket_ledgers == {}
    assert store.load_leg(12345) is None


def test_append_find_and_remove_turns() -> None:
    store = InMemoryScoringStore()
    _, leg = store.create_match(player_ids=[1, 2])

    first = store.append_turn(_turn(leg.leg_id, 1))
    second = store.append_turn(_turn(leg.leg_id, 2))
    assert first.turn_id is not None and second.turn_id == first.turn_id + 1
    assert store.find_turn(second.turn_id) == second

    store.remove_turn(first.turn_id)
    assert store.find_turn(first.turn_id) is None
    assert store.load_leg(leg.leg_id).leg.turns == [second]

    with pytest.raises(KeyError):
        store.remove_turn(first.turn_id)


def test_saved_ledgers_are_detached_from_the_caller() -> None:
    store = InMemoryScoringStore()
    _, leg = store.create_match(player_ids=[1, 2], config=MatchConfig.cricket())

    ledger = CricketLedger(1)
    ledger.marks[20] = 2
    store.save_cricket_ledgers(leg.leg_id, [ledger])
    ledger.marks[20] = 3

    assert store.load_leg(leg.leg_id).leg.cricket_ledgers[1].marks_on(20) == 2


def test_clear() -> None:
    store = InMemoryScoringStore()
    _, leg = store.create_match(player_ids=[1, 2])
    store.clear()
    assert store.load_leg(leg.leg_id) is None
