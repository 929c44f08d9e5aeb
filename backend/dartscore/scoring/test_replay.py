from dartscore.scoring.cricket import process_cricket_turn
from dartscore.scoring.game import CricketLedger, Dart, Turn
from dartscore.scoring.replay import rebuild_cricket_ledgers, replay_x01_outcomes


def _turn(turn_id: int, turn_number: int, player_id: int, *darts: Dart, total: int = 0, bust: bool = False) -> Turn:
    return Turn(
        leg_id=1,
        player_id=player_id,
        turn_number=turn_number,
        darts=darts,
        total_scored=total,
        was_bust=bust,
        turn_id=turn_id,
    )


def test_replay_matches_live_scoring() -> None:
    turns = [
        _turn(1, 1, 1, Dart(3, 20), Dart(1, 20)),
        _turn(2, 2, 2, Dart(3, 19), Dart(2, 19)),
        _turn(3, 3, 1, Dart(2, 20), Dart(1, 50)),
        _turn(4, 4, 2, Dart(3, 20)),
        _turn(5, 5, 1, Dart(3, 20), Dart(3, 19)),
    ]

    live = (CricketLedger(1), CricketLedger(2))
    for t in turns:
        process_cricket_turn(live, t.player_id - 1, t.darts)

    replay = rebuild_cricket_ledgers(turns, (1, 2))
    assert replay.ledgers == live
    assert replay.winner_player_id is None


def test_replay_orders_by_turn_number_then_id() -> None:
    # Player 1 already has 20 closed. Turns 3 and 4 share a turn number; the
    # lower id (player 2 closing 20) replays first, so player 1's single 20
    # no longer scores.
    turns = [
        _turn(4, 2, 1, Dart(1, 20)),
        _turn(3, 2, 2, Dart(3, 20)),
        _turn(1, 1, 1, Dart(3, 20)),
    ]

    replay = rebuild_cricket_ledgers(turns, (1, 2))
    assert replay.ledgers[0].marks_on(20) == 3
    assert replay.ledgers[1].marks_on(20) == 3
    assert replay.ledgers[0].points == 0


def test_replay_from_empty_history_is_all_zero() -> None:
    replay = rebuild_cricket_ledgers([], (5, 9))
    assert replay.ledgers[0].player_id == 5
    assert replay.ledgers[1].player_id == 9
    assert replay.ledgers[0].points == replay.ledgers[1].points == 0
    assert replay.winner_player_id is None


def test_replay_derives_winner_from_final_turn() -> None:
    turns = [
        _turn(1, 1, 1, Dart(3, 15), Dart(3, 16), Dart(3, 17)),
        _turn(2, 2, 2, Dart(1, 1)),
        _turn(3, 3, 1, Dart(3, 18), Dart(3, 19), Dart(3, 20)),
        _turn(4, 4, 2, Dart(1, 1)),
        _turn(5, 5, 1, Dart(1, 25), Dart(1, 25), Dart(1, 25)),
    ]

    replay = rebuild_cricket_ledgers(turns, (1, 2))
    assert replay.ledgers[0].has_closed_all()
    assert replay.winner_player_id == 1


def test_replay_x01_recomputes_stored_outcomes() -> None:
    turns = [
        _turn(1, 1, 1, Dart(3, 20), Dart(3, 20), total=120),
        _turn(2, 2, 2, Dart(1, 20), total=20),
        _turn(3, 3, 1, Dart(3, 20), total=0, bust=True),
        _turn(4, 4, 2, Dart(2, 10), total=20),
        _turn(5, 5, 1, Dart(2, 15), total=30),
    ]

    results = replay_x01_outcomes(turns, (1, 2), target_score=150, double_out=True)
    assert [t.turn_id for t, _ in results] == [1, 2, 3, 4, 5]
    for turn, outcome in results:
        assert outcome.total_scored == turn.total_scored
        assert outcome.was_bust == turn.was_bust
    assert results[-1][1].did_finish
