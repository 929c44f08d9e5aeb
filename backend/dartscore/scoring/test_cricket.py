from dartscore.scoring.cricket import cricket_number, marks_awarded, process_cricket_turn
from dartscore.scoring.game import CricketLedger, Dart


def _ledgers() -> tuple[CricketLedger, CricketLedger]:
    return (CricketLedger(1), CricketLedger(2))


def _close_all_but_bull(ledger: CricketLedger) -> None:
    for n in (15, 16, 17, 18, 19, 20):
        ledger.marks[n] = 3
    ledger.marks[25] = 2


def test_cricket_numbers_and_marks() -> None:
    assert cricket_number(Dart(1, 50)) == 25
    assert cricket_number(Dart(2, 25)) == 25
    assert cricket_number(Dart(3, 15)) == 15
    assert cricket_number(Dart(3, 14)) is None

    assert marks_awarded(Dart(1, 50)) == 2
    assert marks_awarded(Dart(2, 25)) == 2
    assert marks_awarded(Dart(1, 25)) == 1
    assert marks_awarded(Dart(3, 20)) == 3


def test_triple_closes_without_points_then_double_scores_overflow() -> None:
    ledgers = _ledgers()

    outcome = process_cricket_turn(ledgers, 0, [Dart(3, 20)])
    assert ledgers[0].marks_on(20) == 3
    assert ledgers[0].points == 0
    assert outcome.total_scored == 0

    process_cricket_turn(ledgers, 1, [Dart(3, 19)])

    outcome = process_cricket_turn(ledgers, 0, [Dart(2, 20)])
    assert ledgers[0].marks_on(20) == 3
    assert ledgers[0].points == 40
    assert outcome.total_scored == 40
    assert not outcome.was_bust


def test_overflow_within_a_single_visit() -> None:
    ledgers = _ledgers()
    outcome = process_cricket_turn(ledgers, 0, [Dart(2, 18), Dart(2, 18)])
    assert ledgers[0].marks_on(18) == 3
    assert outcome.total_scored == 18


def test_no_points_on_a_number_the_opponent_closed() -> None:
    ledgers = _ledgers()
    ledgers[1].marks[20] = 3

    outcome = process_cricket_turn(ledgers, 0, [Dart(3, 20), Dart(3, 20)])
    assert ledgers[0].marks_on(20) == 3
    assert ledgers[0].points == 0
    assert outcome.total_scored == 0


def test_bull_marks_and_points() -> None:
    ledgers = _ledgers()

    process_cricket_turn(ledgers, 0, [Dart(2, 25)])
    assert ledgers[0].marks_on(25) == 2

    process_cricket_turn(ledgers, 0, [Dart(1, 25)])
    assert ledgers[0].marks_on(25) == 3

    outcome = process_cricket_turn(ledgers, 0, [Dart(1, 50)])
    assert ledgers[0].marks_on(25) == 3
    assert ledgers[0].points == 50
    assert outcome.total_scored == 50


def test_non_cricket_numbers_are_ignored() -> None:
    ledgers = _ledgers()
    outcome = process_cricket_turn(ledgers, 0, [Dart(3, 14), Dart(1, 1), Dart(2, 10)])
    assert outcome.total_scored == 0
    assert all(m == 0 for m in ledgers[0].marks.values())


def test_second_player_scores_into_their_own_ledger() -> None:
    ledgers = _ledgers()
    process_cricket_turn(ledgers, 1, [Dart(3, 17), Dart(1, 17)])
    assert ledgers[1].marks_on(17) == 3
    assert ledgers[1].points == 17
    assert ledgers[0].points == 0


def test_closing_everything_with_equal_points_wins() -> None:
    ledgers = _ledgers()
    _close_all_but_bull(ledgers[0])

    outcome = process_cricket_turn(ledgers, 0, [Dart(1, 25)])
    assert outcome.did_finish


def test_closing_everything_while_behind_on_points_does_not_win() -> None:
    ledgers = _ledgers()
    _close_all_but_bull(ledgers[0])
    ledgers[1].points = 40

    outcome = process_cricket_turn(ledgers, 0, [Dart(1, 25)])
    assert ledgers[0].has_closed_all()
    assert not outcome.did_finish


def test_closing_everything_while_ahead_wins() -> None:
    ledgers = _ledgers()
    _close_all_but_bull(ledgers[0])
    ledgers[0].points = 60
    ledgers[1].points = 40

    outcome = process_cricket_turn(ledgers, 0, [Dart(1, 19), Dart(1, 25)])
    assert outcome.did_finish
    assert outcome.total_scored == 19
