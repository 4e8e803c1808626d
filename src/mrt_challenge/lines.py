"""MRT line metadata and the by-line grouping used for display."""

from __future__ import annotations

import re
from collections import defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from .stations import Station


LINE_NAMES: dict[str, str] = {
    "EW": "East West Line",
    "NS": "North South Line",
    "DT": "Downtown Line",
    "CC": "Circle Line",
    "NE": "North East Line",
    "TE": "Thomson-East Coast Line",
    "CG": "Changi Airport Branch Line",
}

LINE_COLOURS: dict[str, str] = {
    "EW": "#009645",  # green
    "NS": "#DA291C",  # red
    "DT": "#005ec4",  # blue
    "CC": "#fa9e0d",  # orange
    "NE": "#9900aa",  # purple
    "TE": "#9D5B25",  # brown
    "CG": "#009645",
    "CE": "#fa9e0d",  # Circle Line extension
}
DEFAULT_COLOUR = "#778899"

# Presentation order of the groups
LINE_ORDER = ["EW", "CG", "NS", "NE", "CC", "TE", "DT"]

# Branch codes displayed under their parent line
GROUP_ALIASES = {"CE": "CC"}

_LINE_PREFIX = re.compile(r"^[A-Z]+")
_NUMBER = re.compile(r"^\d+")


@dataclass(frozen=True)
class LineGroup:
    """Stations of one line, in station-number order."""
    line_code: str
    line_name: str
    colour: str
    stations: tuple[Station, ...]


def line_code(code: str) -> str:
    """Leading uppercase letters of a station code ("NS1" -> "NS")."""
    match = _LINE_PREFIX.match(code)
    return match.group(0) if match else ""


def line_colour(code: str) -> str:
    """Colour of the line a station code belongs to."""
    return LINE_COLOURS.get(line_code(code), DEFAULT_COLOUR)


def station_number(code: str) -> int:
    """Numeric part of a station code; 0 when there is none."""
    match = _NUMBER.match(code[len(line_code(code)):])
    return int(match.group(0)) if match else 0


def group_by_line(stations: Iterable[Station]) -> tuple[LineGroup, ...]:
    """Partition stations by line in ``LINE_ORDER``, omitting empty lines."""
    groups: dict[str, list[Station]] = defaultdict(list)
    for station in stations:
        line = line_code(station.id)
        groups[GROUP_ALIASES.get(line, line)].append(station)

    return tuple(
        LineGroup(
            line_code=line,
            line_name=LINE_NAMES[line],
            colour=LINE_COLOURS[line],
            stations=tuple(sorted(groups[line], key=lambda s: station_number(s.id))),
        )
        for line in LINE_ORDER
        if groups.get(line)
    )
