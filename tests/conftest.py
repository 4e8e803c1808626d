"""Shared fixtures for the MRT challenge tests."""

import pytest

from mrt_challenge.game import GameSession
from mrt_challenge.stations import RawStationRecord, StationCatalog


@pytest.fixture
def small_records():
    """Two records for one interchange plus a single-line station."""
    return [
        RawStationRecord("NS1", "Jurong East", "Yu Lang Dong", "裕廊东", "JUR"),
        RawStationRecord("EW24", "Jurong East", "Yu Lang Dong", "裕廊东", "JUR"),
        RawStationRecord("CC1", "Dhoby Ghaut", "Duo Mei Ge", "多美歌", None),
    ]


@pytest.fixture
def small_catalog(small_records):
    return StationCatalog.from_records(small_records)


@pytest.fixture
def session(small_catalog):
    """A session that only ticks when told to."""
    return GameSession(small_catalog, language="english", duration=900)


@pytest.fixture
def full_catalog():
    return StationCatalog.load()
