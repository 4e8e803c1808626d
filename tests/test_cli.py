"""Tests for the terminal front end."""

from mrt_challenge.cli import describe_event, handle_command, handle_guess
from mrt_challenge.game import EventType, GameEvent, Phase


def test_start_and_guess(session, capsys):
    """Test the start hint, a correct guess and a miss."""
    handle_guess(session, "Jurong East")
    assert "/start" in capsys.readouterr().out

    assert handle_command(session, "/start")
    handle_guess(session, "jurong east")
    out = capsys.readouterr().out
    assert "✓ Jurong East [NS1] [EW24]" in out
    assert "1 / 2" in out

    handle_guess(session, "nowhere")
    assert "Incorrect" in capsys.readouterr().out


def test_pause_message(session, capsys):
    """Test a guess while paused explains why it was refused."""
    handle_command(session, "/start")
    handle_command(session, "/pause")
    handle_guess(session, "Dhoby Ghaut")
    assert "paused" in capsys.readouterr().out
    assert session.phase is Phase.PAUSED


def test_lang_command(session, capsys):
    """Test /lang before and after the start."""
    handle_command(session, "/lang chinese")
    assert "chinese" in capsys.readouterr().out
    handle_command(session, "/start")
    handle_command(session, "/lang english")
    assert "cannot be changed" in capsys.readouterr().out


def test_giveup_prints_revealed_lines(session, capsys):
    """Test /giveup prints every line with names revealed."""
    handle_command(session, "/start")
    handle_command(session, "/giveup")
    out = capsys.readouterr().out
    assert "Circle Line" in out
    assert "Dhoby Ghaut" in out
    assert session.phase is Phase.ENDED


def test_lines_hide_unfound_stations(session, capsys):
    """Test /lines hides stations not yet found."""
    handle_command(session, "/start")
    handle_command(session, "/lines")
    assert "Dhoby Ghaut" not in capsys.readouterr().out


def test_reset_and_quit(session, capsys):
    """Test /reset restarts and /quit stops the loop."""
    handle_command(session, "/start")
    assert handle_command(session, "/reset pinyin")
    assert session.phase is Phase.NOT_STARTED
    assert "pinyin" in capsys.readouterr().out
    assert handle_command(session, "/quit") is False


def test_describe_event():
    """Test the messages shown for session events."""
    assert describe_event(GameEvent(EventType.DUPLICATE_GUESS, "Bugis")) == "Already found: Bugis"
    assert "Time's up" in describe_event(GameEvent(EventType.TIME_UP))
    assert "all 2 stations" in describe_event(GameEvent(EventType.VICTORY, total=2))


def test_giveup_before_start(session, capsys):
    """Test /giveup before the start explains itself and reveals nothing."""
    handle_command(session, "/giveup")
    out = capsys.readouterr().out
    assert "[The game has not started.]" in out
    assert "Circle Line" not in out
    assert session.phase is Phase.NOT_STARTED


def test_giveup_after_end(session, capsys):
    """Test a second /giveup does not print the lines again."""
    handle_command(session, "/start")
    handle_command(session, "/giveup")
    capsys.readouterr()
    handle_command(session, "/giveup")
    out = capsys.readouterr().out
    assert "[The game is already over.]" in out
    assert "Circle Line" not in out


def test_empty_guess_prints_nothing(session, capsys):
    """Test an empty guess during play is silently ignored."""
    handle_command(session, "/start")
    capsys.readouterr()
    handle_guess(session, "")
    assert capsys.readouterr().out == ""
