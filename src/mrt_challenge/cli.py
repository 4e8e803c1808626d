#!/usr/bin/env python3
"""Command-line interface for the MRT challenge."""

import argparse
import logging

from .config import DEFAULT_LANGUAGE, LOG_FORMAT, LOG_LEVEL, STATIONS_CSV
from .game import EventType, GameEvent, GameSession, GuessResult, Phase
from .guess_index import Language
from .stations import StationCatalog


def print_banner(total: int, minutes: int):
    """Print the welcome banner."""
    print(f"""
╔═══════════════════════════════════════════════════════════╗
║                  MRT Challenge 🚇                         ║
║                                                           ║
║  Name all {total:>3} stations on the MRT network in {minutes:>2} min!   ║
║                                                           ║
║  Commands:                                                ║
║    /start          - Start the clock                      ║
║    /pause /resume  - Pause or resume the clock            ║
║    /giveup         - Reveal every station                 ║
║    /lang <name>    - english, pinyin, chinese, abbrev.    ║
║    /reset [lang]   - Start over                           ║
║    /status /lines  - Show progress                        ║
║    /quit           - Exit the program                     ║
║                                                           ║
║  Anything else is a guess.                                ║
╚═══════════════════════════════════════════════════════════╝
""")


def describe_event(event: GameEvent) -> str:
    if event.type is EventType.DUPLICATE_GUESS:
        return f"Already found: {event.station_name}"
    if event.type is EventType.TIME_UP:
        return "Time's up! All remaining stations have been revealed."
    if event.type is EventType.VICTORY:
        return f"Congratulations! You've named all {event.total} stations!"
    return "Game over. All stations have been revealed."


def print_status(session: GameSession):
    snap = session.snapshot()
    line = f"[{snap.clock}] {snap.found_count} / {snap.total} found ({snap.progress_percent}%)"
    line += f" - {snap.language.value}, {snap.phase.value.replace('_', ' ')}"
    if snap.outcome:
        line += f" ({snap.outcome.value.replace('_', ' ')})"
    print(line)


def format_codes(codes) -> str:
    return " ".join(f"[{code}]" for code in codes)


def print_lines(session: GameSession):
    """Print every line with found (or revealed) station names."""
    snap = session.snapshot()
    for group in session.catalog.line_groups:
        print(f"\n{group.line_name}")
        for station in group.stations:
            if snap.is_revealed(station):
                names = f"{station.english_name}  {station.chinese_name}  {station.pinyin_name}"
                if station.abbreviation:
                    names += f"  ({station.abbreviation})"
                mark = "✓" if snap.is_found(station) else " "
            else:
                names, mark = "...", " "
            print(f"  {mark} {format_codes(station.codes):<24} {names}")


def handle_command(session: GameSession, command: str) -> bool:
    """Run a slash command. Returns False when the user wants to quit."""
    name, _, arg = command[1:].partition(" ")
    name, arg = name.lower(), arg.strip()

    if name in ("quit", "exit", "q"):
        return False
    if name == "start":
        if not session.start():
            print("[The game has already started. Use /reset to play again.]")
    elif name == "pause":
        if not session.pause():
            print("[The clock is not running.]")
    elif name == "resume":
        if not session.resume():
            print("[The game is not paused.]")
    elif name == "giveup":
        if session.give_up():
            print_lines(session)
        elif session.phase is Phase.NOT_STARTED:
            print("[The game has not started.]")
        else:
            print("[The game is already over.]")
    elif name == "lang":
        if not arg:
            print(f"[Language: {session.language.value}]")
        elif session.select_language(arg):
            print(f"[Language set to {session.language.value}]")
        else:
            print("[The language cannot be changed after the game has started.]")
    elif name == "reset":
        session.reset(arg or None)
        print(f"[Game reset. Language: {session.language.value}]")
    elif name == "status":
        print_status(session)
    elif name == "lines":
        print_lines(session)
    else:
        print(f"[Unknown command: /{name}]")
    return True


def handle_guess(session: GameSession, text: str):
    result = session.submit_guess(text)
    if result is GuessResult.REJECTED:
        if session.phase is Phase.RUNNING:
            return  # nothing typed
        if session.phase is Phase.NOT_STARTED:
            print("[Type /start to begin.]")
        elif session.phase is Phase.PAUSED:
            print("[Timer paused. Type /resume to continue.]")
        else:
            print("[The game is over. Type /reset to play again.]")
    elif result is GuessResult.MISS:
        print("✗ Incorrect")
    elif result is GuessResult.CORRECT:
        snap = session.snapshot()
        station = session.catalog.guess_index.resolve(snap.language, text)
        print(f"✓ {snap.last_guess.station_name} {format_codes(station.codes)}"
              f"  [{snap.found_count} / {snap.total}]")


def main():
    """Run the terminal game."""
    parser = argparse.ArgumentParser(description="Name every MRT station before time runs out.")
    parser.add_argument("--lang", default=DEFAULT_LANGUAGE, help="english, pinyin, chinese or abbreviation")
    parser.add_argument("--csv", default=STATIONS_CSV, help="station CSV to use instead of the bundled data")
    args = parser.parse_args()

    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)

    try:
        language = Language.parse(args.lang)
    except ValueError as e:
        parser.error(str(e))

    catalog = StationCatalog.load(args.csv)
    if catalog.is_empty:
        print("Could not load stations. Check the station data file and try again.")
        return 1

    session = GameSession(catalog, language=language, autotick=True)
    session.subscribe(lambda event: print(f"\n[{describe_event(event)}]"))
    print_banner(catalog.total, session.duration // 60)

    while True:
        try:
            user_input = input("\nGuess: ").strip()

            if not user_input:
                continue

            if user_input.startswith("/"):
                if not handle_command(session, user_input):
                    print("\nGoodbye! 🚇")
                    break
                continue

            handle_guess(session, user_input)

        except (KeyboardInterrupt, EOFError):
            print("\n\nGoodbye! 🚇")
            break
        except ValueError as e:
            print(f"\n[Error: {e}]")
    session.reset()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
