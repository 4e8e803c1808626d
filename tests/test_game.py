"""Tests for the game session state machine."""

import time

import pytest
from mrt_challenge.game import (
    EventType,
    GameSession,
    GuessFeedback,
    GuessResult,
    Outcome,
    Phase,
    Ticker,
    format_time,
)
from mrt_challenge.guess_index import Language
from mrt_challenge.stations import StationCatalog


@pytest.fixture
def events(session):
    received = []
    session.subscribe(received.append)
    return received


def test_new_session(session):
    """Test a fresh session is idle with a full clock."""
    snap = session.snapshot()
    assert snap.phase is Phase.NOT_STARTED
    assert snap.outcome is None
    assert snap.time_remaining_seconds == 900
    assert snap.clock == "15:00"
    assert snap.found_count == 0
    assert snap.total == 2
    assert snap.last_guess is None
    assert snap.data_available


def test_guess_before_start_is_rejected(session):
    """Test guesses are refused before the clock starts."""
    assert session.submit_guess("Jurong East") is GuessResult.REJECTED
    assert session.found_count == 0


def test_interchange_scenario(session, small_catalog, events):
    """Test one guess finds both codes of an interchange, then the game is won."""
    assert session.start()
    assert session.submit_guess("jurong east") is GuessResult.CORRECT

    snap = session.snapshot()
    assert snap.found_names == {"Jurong East"}
    assert snap.is_found(small_catalog.get("NS1"))
    assert snap.is_found(small_catalog.get("EW24"))
    assert snap.last_guess == GuessFeedback(station_name="Jurong East", correct=True)
    assert snap.phase is Phase.RUNNING

    assert session.submit_guess("Dhoby Ghaut") is GuessResult.CORRECT
    snap = session.snapshot()
    assert snap.phase is Phase.ENDED
    assert snap.outcome is Outcome.WON
    assert snap.progress == 1.0
    assert [e.type for e in events] == [EventType.VICTORY]
    assert events[0].total == 2


def test_wrong_guess_records_feedback(session):
    """Test a miss is recorded as incorrect feedback."""
    session.start()
    assert session.submit_guess("Atlantis") is GuessResult.MISS
    snap = session.snapshot()
    assert snap.last_guess == GuessFeedback(station_name=None, correct=False)
    assert snap.found_count == 0
    assert snap.phase is Phase.RUNNING


def test_duplicate_guess(session, events):
    """Test a repeated answer emits a notice and changes nothing."""
    session.start()
    session.submit_guess("Jurong East")
    session.submit_guess("Atlantis")
    before = session.snapshot()

    assert session.submit_guess("JURONG-EAST") is GuessResult.DUPLICATE
    after = session.snapshot()
    assert after.found_names == before.found_names
    assert after.last_guess == before.last_guess
    assert len(events) == 1
    assert events[0].type is EventType.DUPLICATE_GUESS
    assert events[0].station_name == "Jurong East"


def test_guess_uses_selected_language(small_catalog):
    """Test only answers in the session language count."""
    session = GameSession(small_catalog, language=Language.CHINESE)
    session.start()
    assert session.submit_guess("Jurong East") is GuessResult.MISS
    assert session.submit_guess("裕廊 东") is GuessResult.CORRECT


def test_abbreviation_misses_station_without_one(small_catalog):
    """Test a station with no abbreviation cannot be found by one."""
    session = GameSession(small_catalog, language="abbreviation")
    session.start()
    for text in ("DBG", "Dhoby Ghaut", "CC1", "   "):
        assert session.submit_guess(text) is GuessResult.MISS
    assert session.submit_guess("jur") is GuessResult.CORRECT


def test_empty_guess_is_ignored(session):
    """Test an empty submission changes nothing, not even the last feedback."""
    session.start()
    session.submit_guess("Jurong East")
    before = session.snapshot()

    assert session.submit_guess("") is GuessResult.REJECTED
    after = session.snapshot()
    assert after.last_guess == before.last_guess == GuessFeedback("Jurong East", True)
    assert after.found_names == before.found_names
    assert after.phase is Phase.RUNNING


def test_whitespace_guess_is_a_miss(session):
    """Test a blank but non-empty submission still counts as a wrong guess."""
    session.start()
    session.submit_guess("Jurong East")
    assert session.submit_guess("   ") is GuessResult.MISS
    assert session.snapshot().last_guess == GuessFeedback(station_name=None, correct=False)


def test_language_locked_after_start(session):
    """Test the language can only change before the game starts."""
    assert session.select_language("pinyin")
    assert session.language is Language.PINYIN
    session.start()
    assert not session.select_language("english")
    assert session.language is Language.PINYIN
    session.pause()
    assert not session.select_language("english")


def test_select_unknown_language(session):
    """Test an unknown language name raises."""
    with pytest.raises(ValueError):
        session.select_language("latin")


def test_start_only_once(session):
    """Test a second start does not reset the clock."""
    assert session.start()
    session.tick()
    assert not session.start()
    assert session.time_remaining == 899


def test_pause_freezes_clock(session):
    """Test ticks while paused do nothing, and resume restarts the clock."""
    session.start()
    assert session.pause()
    for _ in range(10):
        assert not session.tick()
    assert session.time_remaining == 900

    assert session.resume()
    session.tick()
    assert session.time_remaining == 899


def test_guess_rejected_while_paused(session):
    """Test guesses are refused while paused."""
    session.start()
    session.pause()
    assert session.submit_guess("Jurong East") is GuessResult.REJECTED
    assert session.found_count == 0


def test_pause_resume_require_matching_phase(session):
    """Test pause and resume only apply in the matching phase."""
    assert not session.pause()
    assert not session.resume()
    session.start()
    assert not session.resume()
    session.pause()
    assert not session.pause()


def test_tick_before_start_does_nothing(session):
    """Test the clock does not move before the start."""
    assert not session.tick()
    assert session.time_remaining == 900


def test_timeout(session, events):
    """Test 900 ticks end the game at exactly zero."""
    session.start()
    for _ in range(899):
        session.tick()
    assert session.phase is Phase.RUNNING
    assert session.snapshot().clock == "00:01"

    session.tick()
    snap = session.snapshot()
    assert snap.phase is Phase.ENDED
    assert snap.outcome is Outcome.TIMED_OUT
    assert snap.time_remaining_seconds == 0
    assert [e.type for e in events] == [EventType.TIME_UP]

    assert not session.tick()
    assert session.time_remaining == 0


def test_ended_is_sticky(session):
    """Test nothing but reset leaves the ended phase."""
    session.start()
    session.give_up()
    assert session.submit_guess("Jurong East") is GuessResult.REJECTED
    assert not session.pause()
    assert not session.resume()
    assert not session.start()
    assert not session.give_up()
    assert not session.tick()
    snap = session.snapshot()
    assert snap.phase is Phase.ENDED
    assert snap.outcome is Outcome.GAVE_UP
    assert snap.found_count == 0


def test_won_game_does_not_time_out(session):
    """Test a winning guess on the last second is not overridden by the clock."""
    session.start()
    for _ in range(899):
        session.tick()
    session.submit_guess("Jurong East")
    session.submit_guess("Dhoby Ghaut")
    session.tick()
    snap = session.snapshot()
    assert snap.outcome is Outcome.WON
    assert snap.time_remaining_seconds == 1


def test_give_up_reveals_without_finding(session, small_catalog, events):
    """Test giving up reveals every station but scores none of them."""
    session.start()
    session.submit_guess("Dhoby Ghaut")
    session.pause()
    assert session.give_up()

    snap = session.snapshot()
    assert snap.outcome is Outcome.GAVE_UP
    assert snap.found_count == 1
    jurong = small_catalog.get("NS1")
    assert snap.is_revealed(jurong)
    assert not snap.is_found(jurong)
    assert [e.type for e in events] == [EventType.GIVEN_UP]


def test_give_up_before_start_is_ignored(session):
    """Test giving up needs a started game."""
    assert not session.give_up()
    assert session.phase is Phase.NOT_STARTED


def test_unrevealed_while_running(session, small_catalog):
    """Test unfound stations stay hidden during play."""
    session.start()
    assert not session.snapshot().is_revealed(small_catalog.get("CC1"))


def test_reset_clears_everything(session):
    """Test reset returns to a fresh session."""
    session.start()
    session.submit_guess("Jurong East")
    session.tick()
    session.give_up()

    assert session.reset("chinese")
    snap = session.snapshot()
    assert snap.phase is Phase.NOT_STARTED
    assert snap.outcome is None
    assert snap.found_count == 0
    assert snap.last_guess is None
    assert snap.time_remaining_seconds == 900
    assert snap.language is Language.CHINESE


def test_reset_keeps_language_by_default(session):
    """Test reset without a language keeps the current one."""
    session.select_language("pinyin")
    session.start()
    session.reset()
    assert session.language is Language.PINYIN


def test_found_set_is_monotonic(full_catalog):
    """Test the found count never drops during play."""
    session = GameSession(full_catalog)
    session.start()
    counts = []
    guesses = ["Bugis", "nowhere", "bugis", "Orchard", "Bishan", "orchard"]
    for i, text in enumerate(guesses):
        session.submit_guess(text)
        if i == 2:
            session.pause()
            session.resume()
        counts.append(session.found_count)
    assert counts == sorted(counts)
    assert counts[-1] == 3


def test_win_with_mixed_interchange_codes(full_catalog):
    """Test naming every station in any order wins exactly once."""
    session = GameSession(full_catalog)
    victories = []
    session.subscribe(lambda e: victories.append(e) if e.type is EventType.VICTORY else None)
    session.start()

    names = sorted({s.english_name for s in full_catalog}, reverse=True)
    for name in names:
        assert session.submit_guess(name.upper()) is GuessResult.CORRECT
    assert session.phase is Phase.ENDED
    assert session.snapshot().outcome is Outcome.WON
    assert len(victories) == 1
    assert session.submit_guess(names[0]) is GuessResult.REJECTED


def test_snapshot_is_immutable(session):
    """Test a snapshot does not follow later changes."""
    session.start()
    session.submit_guess("Jurong East")
    snap = session.snapshot()
    session.submit_guess("Dhoby Ghaut")
    assert snap.found_names == {"Jurong East"}
    with pytest.raises(AttributeError):
        snap.phase = Phase.ENDED


def test_progress_percent(session):
    """Test progress as a fraction and a percentage."""
    session.start()
    session.submit_guess("Jurong East")
    snap = session.snapshot()
    assert snap.progress == 0.5
    assert snap.progress_percent == 50


def test_empty_catalog_disables_game():
    """Test a session without stations cannot start."""
    session = GameSession(StationCatalog([]))
    snap = session.snapshot()
    assert not snap.data_available
    assert snap.total == 0
    assert snap.progress == 0.0
    assert not session.start()
    assert session.phase is Phase.NOT_STARTED


def test_unsubscribe(session):
    """Test a removed listener receives nothing."""
    received = []
    unsubscribe = session.subscribe(received.append)
    unsubscribe()
    session.start()
    session.give_up()
    assert received == []


@pytest.mark.parametrize("seconds,expected", [
    (900, "15:00"),
    (61, "01:01"),
    (59, "00:59"),
    (0, "00:00"),
    (-5, "00:00"),
])
def test_format_time(seconds, expected):
    """Test countdown formatting."""
    assert format_time(seconds) == expected


def test_ticker_calls_back_until_stopped():
    """Test the ticker fires repeatedly and stops on request."""
    calls = []
    ticker = Ticker(lambda: calls.append(1), interval=0.01)
    ticker.start()
    time.sleep(0.2)
    ticker.stop()
    assert not ticker.running
    seen = len(calls)
    assert seen > 0
    time.sleep(0.05)
    assert len(calls) <= seen + 1


def _wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


def test_autotick_runs_only_while_running(small_catalog):
    """Test the owned clock starts with the game and stops on pause and end."""
    session = GameSession(small_catalog, duration=1000, autotick=True, tick_interval=0.01)
    assert not session.clock_running

    session.start()
    assert session.clock_running
    assert _wait_for(lambda: session.time_remaining < 1000)

    session.pause()
    assert not session.clock_running
    frozen = session.time_remaining
    time.sleep(0.05)
    assert session.time_remaining == frozen

    session.resume()
    assert session.clock_running
    session.give_up()
    assert not session.clock_running
    ended_at = session.time_remaining
    time.sleep(0.05)
    assert session.time_remaining == ended_at


def test_autotick_times_out(small_catalog):
    """Test the owned clock runs the game out and stops."""
    session = GameSession(small_catalog, duration=3, autotick=True, tick_interval=0.01)
    events = []
    session.subscribe(events.append)
    session.start()
    assert _wait_for(lambda: session.phase is Phase.ENDED)
    assert session.time_remaining == 0
    assert session.snapshot().outcome is Outcome.TIMED_OUT
    assert not session.clock_running
    assert [e.type for e in events] == [EventType.TIME_UP]
