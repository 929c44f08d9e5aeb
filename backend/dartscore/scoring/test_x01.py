from dartscore.scoring.game import Dart, Turn
from dartscore.scoring.x01 import process_x01_turn, remaining_for, x01_player_state


def test_single_bull_onto_zero_is_bust_under_double_out() -> None:
    outcome = process_x01_turn(25, [Dart(1, 25)], double_out=True)
    assert outcome.was_bust
    assert outcome.total_scored == 0
    assert not outcome.did_finish


def test_double_20_checks_out_40() -> None:
    outcome = process_x01_turn(40, [Dart(2, 20)], double_out=True)
    assert outcome.did_finish
    assert not outcome.was_bust
    assert outcome.total_scored == 40


def test_leaving_one_is_bust_under_double_out() -> None:
    outcome = process_x01_turn(2, [Dart(1, 1)], double_out=True)
    assert outcome.was_bust
    assert outcome.total_scored == 0


def test_leaving_one_is_fine_under_straight_out() -> None:
    outcome = process_x01_turn(20, [Dart(1, 19)], double_out=False)
    assert not outcome.was_bust
    assert outcome.total_scored == 19


def test_straight_out_finishes_on_a_single() -> None:
    outcome = process_x01_turn(20, [Dart(1, 20)], double_out=False)
    assert outcome.did_finish
    assert outcome.total_scored == 20


def test_inner_bull_and_double_bull_are_valid_finishers() -> None:
    assert process_x01_turn(50, [Dart(1, 50)], double_out=True).did_finish
    assert process_x01_turn(50, [Dart(2, 25)], double_out=True).did_finish


def test_bust_voids_darts_already_thrown_in_the_visit() -> None:
    # 50 -> 30 -> 10 -> bust on the third dart.
    outcome = process_x01_turn(50, [Dart(1, 20), Dart(1, 20), Dart(1, 20)], double_out=True)
    assert outcome.was_bust
    assert outcome.total_scored == 0


def test_darts_after_a_finish_are_not_evaluated() -> None:
    outcome = process_x01_turn(40, [Dart(2, 20), Dart(3, 20)], double_out=True)
    assert outcome.did_finish
    assert outcome.total_scored == 40


def test_darts_after_a_bust_are_not_evaluated() -> None:
    # T20 overshoots 10; the D5 that would have finished never counts.
    outcome = process_x01_turn(10, [Dart(3, 20), Dart(2, 5)], double_out=True)
    assert outcome.was_bust
    assert not outcome.did_finish


def test_maximum_visit() -> None:
    outcome = process_x01_turn(501, [Dart(3, 20)] * 3, double_out=True)
    assert outcome.total_scored == 180
    assert not outcome.was_bust
    assert not outcome.did_finish


def test_player_state_ignores_busts_and_counts_all_darts() -> None:
    turns = [
        Turn(leg_id=1, player_id=1, turn_number=1, darts=(Dart(3, 20),) * 3, total_scored=180, was_bust=False, turn_id=1),
        Turn(leg_id=1, player_id=2, turn_number=2, darts=(Dart(1, 5),), total_scored=5, was_bust=False, turn_id=2),
        Turn(leg_id=1, player_id=1, turn_number=3, darts=(Dart(3, 20),) * 3, total_scored=0, was_bust=True, turn_id=3),
    ]

    state = x01_player_state(turns, 1, target_score=201)
    assert state.remaining == 21
    assert state.three_dart_average == 90.0

    assert remaining_for(turns, 2, target_score=201) == 196
    assert x01_player_state([], 1, target_score=501).three_dart_average == 0.0
