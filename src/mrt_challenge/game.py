"""The game session: countdown, guesses and the win/lose state machine."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .config import DEFAULT_LANGUAGE, GAME_DURATION_SECONDS
from .guess_index import Language
from .stations import Station, StationCatalog

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    PAUSED = "paused"
    ENDED = "ended"


class Outcome(str, Enum):
    WON = "won"
    GAVE_UP = "gave_up"
    TIMED_OUT = "timed_out"


class GuessResult(str, Enum):
    """What happened to a submitted guess."""
    REJECTED = "rejected"  # session not running, or nothing typed
    MISS = "miss"
    DUPLICATE = "duplicate"
    CORRECT = "correct"


class EventType(str, Enum):
    DUPLICATE_GUESS = "duplicate_guess"
    TIME_UP = "time_up"
    VICTORY = "victory"
    GIVEN_UP = "given_up"


@dataclass(frozen=True)
class GameEvent:
    """A notification for the presentation layer to surface."""
    type: EventType
    station_name: Optional[str] = None
    found: int = 0
    total: int = 0


@dataclass(frozen=True)
class GuessFeedback:
    """Feedback on the most recent counted guess."""
    station_name: Optional[str]
    correct: bool


def format_time(seconds: int) -> str:
    """Format a countdown value as MM:SS."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


@dataclass(frozen=True)
class GameSnapshot:
    """Immutable view of a session after a transition."""
    phase: Phase
    outcome: Optional[Outcome]
    language: Language
    time_remaining_seconds: int
    duration_seconds: int
    found_names: frozenset[str]
    total: int
    last_guess: Optional[GuessFeedback]
    data_available: bool

    @property
    def found_count(self) -> int:
        return len(self.found_names)

    @property
    def progress(self) -> float:
        """Fraction of stations found, 0.0 when there are none."""
        return self.found_count / self.total if self.total else 0.0

    @property
    def progress_percent(self) -> int:
        return round(self.progress * 100)

    @property
    def clock(self) -> str:
        return format_time(self.time_remaining_seconds)

    @property
    def started(self) -> bool:
        return self.phase is not Phase.NOT_STARTED

    @property
    def accepts_guesses(self) -> bool:
        return self.phase is Phase.RUNNING

    def is_found(self, station: Station) -> bool:
        return station.english_name in self.found_names

    def is_revealed(self, station: Station) -> bool:
        """Whether a station's names should be shown.

        Once the game has ended every station is revealed, but only the
        ones in ``found_names`` count towards the score.
        """
        return self.phase is Phase.ENDED or self.is_found(station)


class Ticker:
    """Calls ``callback`` every ``interval`` seconds on a daemon thread."""

    def __init__(self, callback: Callable[[], None], interval: float = 1.0):
        self.interval = interval
        self._callback = callback
        self._stopped = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and not self._stopped.is_set()

    def start(self):
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name="mrt-ticker", daemon=True)
        self._thread.start()

    def stop(self):
        # No join: the callback may be waiting on a lock held by our caller
        self._stopped.set()

    def _run(self):
        while not self._stopped.wait(self.interval):
            self._callback()


Listener = Callable[[GameEvent], None]


class GameSession:
    """A single-player run through the station list.

    All state changes go through the transition methods below; each one
    returns whether it was applied. Calls that are illegal in the current
    phase are ignored.

    With ``autotick`` the session owns a ``Ticker`` that runs only while
    the phase is RUNNING. Without it the caller drives ``tick()``.
    """

    def __init__(
        self,
        catalog: StationCatalog,
        language: Language | str = DEFAULT_LANGUAGE,
        duration: int = GAME_DURATION_SECONDS,
        autotick: bool = False,
        tick_interval: float = 1.0,
    ):
        self.catalog = catalog
        self.duration = duration
        self.autotick = autotick
        self.tick_interval = tick_interval

        self._index = catalog.guess_index
        self._lock = threading.RLock()
        self._listeners: list[Listener] = []
        self._pending: list[GameEvent] = []
        self._ticker: Optional[Ticker] = None

        self._language = Language.parse(language)
        self._phase = Phase.NOT_STARTED
        self._outcome: Optional[Outcome] = None
        self._found: set[str] = set()
        self._last_guess: Optional[GuessFeedback] = None
        self._time_remaining = duration

    # -- observation --------------------------------------------------

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def language(self) -> Language:
        return self._language

    @property
    def time_remaining(self) -> int:
        return self._time_remaining

    @property
    def found_count(self) -> int:
        return len(self._found)

    @property
    def clock_running(self) -> bool:
        return self._ticker is not None and self._ticker.running

    def snapshot(self) -> GameSnapshot:
        with self._lock:
            return GameSnapshot(
                phase=self._phase,
                outcome=self._outcome,
                language=self._language,
                time_remaining_seconds=self._time_remaining,
                duration_seconds=self.duration,
                found_names=frozenset(self._found),
                total=self.catalog.total,
                last_guess=self._last_guess,
                data_available=not self.catalog.is_empty,
            )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register an event listener. Returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -- transitions --------------------------------------------------

    def select_language(self, language: Language | str) -> bool:
        """Switch the answer language. Only allowed before the game starts."""
        language = Language.parse(language)
        with self._transition():
            if self._phase is not Phase.NOT_STARTED:
                logger.debug("Ignoring language change to %s in phase %s", language.value, self._phase.value)
                return False
            self._language = language
            return True

    def start(self) -> bool:
        """Start the countdown from the full duration."""
        with self._transition():
            if self._phase is not Phase.NOT_STARTED:
                logger.debug("Ignoring start in phase %s", self._phase.value)
                return False
            if self.catalog.is_empty:
                logger.warning("Cannot start a game without station data")
                return False
            self._time_remaining = self.duration
            self._phase = Phase.RUNNING
            self._start_clock()
            logger.info("Game started (%s, %d stations, %ds)", self._language.value, self.catalog.total, self.duration)
            return True

    def pause(self) -> bool:
        """Freeze the clock. Guesses are rejected until ``resume``."""
        with self._transition():
            if self._phase is not Phase.RUNNING:
                return False
            self._stop_clock()
            self._phase = Phase.PAUSED
            return True

    def resume(self) -> bool:
        """Restart a paused clock."""
        with self._transition():
            if self._phase is not Phase.PAUSED:
                return False
            self._phase = Phase.RUNNING
            self._start_clock()
            return True

    def tick(self) -> bool:
        """Advance the countdown by one second."""
        with self._transition():
            return self._tick()

    def submit_guess(self, text: str) -> GuessResult:
        """Check a guess in the current language.

        An empty submission is ignored and leaves the last feedback as it
        was. Anything else that matches no station is a miss.
        """
        with self._transition():
            if self._phase is not Phase.RUNNING:
                logger.debug("Ignoring guess in phase %s", self._phase.value)
                return GuessResult.REJECTED
            if not text:
                return GuessResult.REJECTED

            station = self._index.resolve(self._language, text)
            if station is None:
                self._last_guess = GuessFeedback(station_name=None, correct=False)
                return GuessResult.MISS

            name = station.english_name
            if name in self._found:
                self._emit(EventType.DUPLICATE_GUESS, station_name=name)
                return GuessResult.DUPLICATE

            self._found.add(name)
            self._last_guess = GuessFeedback(station_name=name, correct=True)
            if len(self._found) == self.catalog.total:
                self._end(Outcome.WON)
                self._emit(EventType.VICTORY)
            return GuessResult.CORRECT

    def give_up(self) -> bool:
        """End the game and reveal every station without scoring it."""
        with self._transition():
            if self._phase not in (Phase.RUNNING, Phase.PAUSED):
                return False
            self._end(Outcome.GAVE_UP)
            self._emit(EventType.GIVEN_UP)
            return True

    def reset(self, language: Optional[Language | str] = None) -> bool:
        """Return to NOT_STARTED from any phase, optionally switching language."""
        if language is not None:
            language = Language.parse(language)
        with self._transition():
            self._stop_clock()
            if language is not None:
                self._language = language
            self._phase = Phase.NOT_STARTED
            self._outcome = None
            self._found = set()
            self._last_guess = None
            self._time_remaining = self.duration
            return True

    # -- internals ----------------------------------------------------

    @contextmanager
    def _transition(self):
        with self._lock:
            yield
            events, self._pending = self._pending, []
        # Listeners run outside the lock so they may read a snapshot
        for event in events:
            for listener in list(self._listeners):
                listener(event)

    def _tick(self) -> bool:
        if self._phase is not Phase.RUNNING:
            return False
        self._time_remaining = max(0, self._time_remaining - 1)
        if self._time_remaining == 0:
            self._end(Outcome.TIMED_OUT)
            self._emit(EventType.TIME_UP)
        return True

    def _auto_tick(self, ticker: Ticker):
        with self._transition():
            # A ticker replaced by pause/resume must not tick again
            if ticker is self._ticker:
                self._tick()

    def _start_clock(self):
        if not self.autotick:
            return
        self._stop_clock()
        ticker = Ticker(lambda: self._auto_tick(ticker), self.tick_interval)
        self._ticker = ticker
        ticker.start()

    def _stop_clock(self):
        if self._ticker is not None:
            self._ticker.stop()
            self._ticker = None

    def _end(self, outcome: Outcome):
        self._stop_clock()
        self._phase = Phase.ENDED
        self._outcome = outcome
        logger.info("Game over: %s (%d/%d found)", outcome.value, len(self._found), self.catalog.total)

    def _emit(self, event_type: EventType, station_name: Optional[str] = None):
        self._pending.append(GameEvent(
            type=event_type,
            station_name=station_name,
            found=len(self._found),
            total=self.catalog.total,
        ))
