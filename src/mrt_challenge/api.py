"""FastAPI web interface for the MRT challenge."""

import threading
from collections import deque
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .config import API_AUTOTICK, API_HOST, API_PORT, LOG_FORMAT, LOG_LEVEL, STATIONS_CSV
from .game import GameEvent, GameSession, GameSnapshot, GuessResult
from .guess_index import Language
from .lines import line_code, line_colour
from .stations import Station, StationCatalog

app = FastAPI(
    title="MRT Challenge",
    description="Name every MRT station before the clock runs out",
    version="0.1.0"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class EventLog:
    """The most recent session events, numbered from 1 in arrival order.

    Events raised by the clock thread reach no request, so clients poll
    ``GET /game?since=<seq>`` to pick them up.
    """

    def __init__(self, game: GameSession, maxlen: int = 50):
        self._events: deque[tuple[int, GameEvent]] = deque(maxlen=maxlen)
        self._seq = 0
        self._lock = threading.Lock()
        game.subscribe(self._record)

    def _record(self, event: GameEvent):
        with self._lock:
            self._seq += 1
            self._events.append((self._seq, event))

    @property
    def last_seq(self) -> int:
        return self._seq

    def since(self, seq: int) -> list[tuple[int, GameEvent]]:
        with self._lock:
            return [(n, event) for n, event in self._events if n > seq]


catalog = StationCatalog.load(STATIONS_CSV)
session = GameSession(catalog, autotick=API_AUTOTICK)
event_log = EventLog(session)


class GuessRequest(BaseModel):
    text: str


class LanguageRequest(BaseModel):
    language: str


class ResetRequest(BaseModel):
    language: Optional[str] = None


class LastGuess(BaseModel):
    station_name: Optional[str]
    correct: bool


class GameState(BaseModel):
    phase: str
    outcome: Optional[str]
    language: str
    time_remaining_seconds: int
    clock: str
    found: list[str]
    found_count: int
    total: int
    progress: float
    progress_percent: int
    last_guess: Optional[LastGuess]
    data_available: bool


class Event(BaseModel):
    type: str
    station_name: Optional[str]
    found: int
    total: int
    seq: Optional[int] = None


class GameStatus(GameState):
    events: list[Event]
    last_seq: int


class ActionResponse(BaseModel):
    applied: bool
    result: Optional[str] = None
    events: list[Event]
    game: GameState


def _event(event: GameEvent, seq: Optional[int] = None) -> Event:
    return Event(
        type=event.type.value,
        station_name=event.station_name,
        found=event.found,
        total=event.total,
        seq=seq,
    )


def _game_state(snap: GameSnapshot) -> GameState:
    return GameState(
        phase=snap.phase.value,
        outcome=snap.outcome.value if snap.outcome else None,
        language=snap.language.value,
        time_remaining_seconds=snap.time_remaining_seconds,
        clock=snap.clock,
        found=sorted(snap.found_names),
        found_count=snap.found_count,
        total=snap.total,
        progress=snap.progress,
        progress_percent=snap.progress_percent,
        last_guess=LastGuess(
            station_name=snap.last_guess.station_name,
            correct=snap.last_guess.correct,
        ) if snap.last_guess else None,
        data_available=snap.data_available,
    )


def _station(station: Station, snap: GameSnapshot) -> dict:
    """Station as JSON; names only once found or revealed."""
    data = {
        "id": station.id,
        "line": line_code(station.id),
        "codes": [
            {"code": code, "colour": line_colour(code)}
            for code in station.codes
        ],
        "interchange": station.is_interchange,
        "found": snap.is_found(station),
        "revealed": snap.is_revealed(station),
    }
    if data["revealed"]:
        data.update({
            "english": station.english_name,
            "pinyin": station.pinyin_name,
            "chinese": station.chinese_name,
            "abbreviation": station.abbreviation,
        })
    return data


def _parse_language(value: str) -> Language:
    try:
        return Language.parse(value)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _act(game: GameSession, action, *args) -> ActionResponse:
    """Run a session transition, collecting the events it raises.

    Only events delivered on this thread belong to the action; clock
    events land in ``event_log`` instead.
    """
    caller = threading.get_ident()
    events: list[GameEvent] = []

    def collect(event: GameEvent):
        if threading.get_ident() == caller:
            events.append(event)

    unsubscribe = game.subscribe(collect)
    try:
        returned = action(*args)
    finally:
        unsubscribe()

    if isinstance(returned, bool):
        applied, result = returned, None
    else:
        applied, result = returned is not GuessResult.REJECTED, returned.value

    return ActionResponse(
        applied=applied,
        result=result,
        events=[_event(e) for e in events],
        game=_game_state(game.snapshot()),
    )


@app.get("/")
async def root():
    """Health check endpoint."""
    return {
        "status": "ok",
        "service": "MRT Challenge",
        "stations": session.catalog.total,
        "data_available": not session.catalog.is_empty,
    }


@app.get("/stations")
def list_stations(line: Optional[str] = None):
    """List all stations, optionally filtered by line code."""
    snap = session.snapshot()
    stations = list(session.catalog)

    if line:
        stations = [s for s in stations if line_code(s.id) == line.upper()]

    return {
        "count": len(stations),
        "stations": [_station(s, snap) for s in stations],
    }


@app.get("/lines")
def list_lines():
    """Stations grouped by line in display order."""
    snap = session.snapshot()
    return {
        "lines": [
            {
                "line": group.line_code,
                "name": group.line_name,
                "colour": group.colour,
                "stations": [_station(s, snap) for s in group.stations],
            }
            for group in session.catalog.line_groups
        ]
    }


@app.get("/game", response_model=GameStatus)
def get_game(since: int = 0):
    """Current game state plus the events logged after ``since``."""
    state = _game_state(session.snapshot())
    return GameStatus(
        **state.model_dump(),
        events=[_event(e, seq) for seq, e in event_log.since(since)],
        last_seq=event_log.last_seq,
    )


@app.post("/game/start", response_model=ActionResponse)
def start_game():
    if session.catalog.is_empty:
        raise HTTPException(status_code=503, detail="Could not load stations")
    return _act(session, session.start)


@app.post("/game/pause", response_model=ActionResponse)
def pause_game():
    return _act(session, session.pause)


@app.post("/game/resume", response_model=ActionResponse)
def resume_game():
    return _act(session, session.resume)


@app.post("/game/tick", response_model=ActionResponse)
def tick_game():
    """Advance the clock by one second (for servers running without autotick)."""
    return _act(session, session.tick)


@app.post("/game/guess", response_model=ActionResponse)
def submit_guess(request: GuessRequest):
    """Submit a station name in the current language."""
    return _act(session, session.submit_guess, request.text)


@app.post("/game/giveup", response_model=ActionResponse)
def give_up():
    return _act(session, session.give_up)


@app.post("/game/language", response_model=ActionResponse)
def select_language(request: LanguageRequest):
    """Change the answer language (only before the game starts)."""
    return _act(session, session.select_language, _parse_language(request.language))


@app.post("/game/reset", response_model=ActionResponse)
def reset_game(request: Optional[ResetRequest] = None):
    language = _parse_language(request.language) if request and request.language else None
    return _act(session, session.reset, language)


def run_server(host: str = API_HOST, port: int = API_PORT):
    """Run the FastAPI server."""
    import logging
    import uvicorn
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
