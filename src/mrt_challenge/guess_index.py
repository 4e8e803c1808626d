"""Answer matching: text normalization and per-language lookup maps."""

from __future__ import annotations

import re
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Optional

if TYPE_CHECKING:
    from .stations import Station


class Language(str, Enum):
    """Languages a guess can be typed in."""
    ENGLISH = "english"
    PINYIN = "pinyin"
    CHINESE = "chinese"
    ABBREVIATION = "abbreviation"

    @classmethod
    def parse(cls, value: str | Language) -> Language:
        """Parse a language name, case-insensitively."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(lang.value for lang in cls)
            raise ValueError(f"Unknown language {value!r} (expected one of: {choices})") from None


# ASCII so that \W also drops accented letters and ideographs
_LATIN_STRIP = re.compile(r"[\s\W_'-]+", re.ASCII)
_WHITESPACE = re.compile(r"\s+")


def normalize_latin(text: str) -> str:
    """Lower-case and drop whitespace, punctuation, underscores and hyphens."""
    return _LATIN_STRIP.sub("", text.lower())


def normalize_chinese(text: str) -> str:
    """Drop whitespace only."""
    return _WHITESPACE.sub("", text)


def normalize(language: Language, text: str) -> str:
    """Normalize a guess or answer with the rules of ``language``."""
    if language is Language.CHINESE:
        return normalize_chinese(text)
    return normalize_latin(text)


def _answer(station: Station, language: Language) -> Optional[str]:
    if language is Language.ENGLISH:
        return station.english_name
    if language is Language.PINYIN:
        return station.pinyin_name
    if language is Language.CHINESE:
        return station.chinese_name
    return station.abbreviation


class GuessIndex:
    """Normalized answer -> station, one map per language.

    The first station seen for a key wins, so the several records of an
    interchange all resolve to the same canonical entry.
    """

    def __init__(self, maps: dict[Language, dict[str, Station]]):
        self._maps = maps

    @classmethod
    def build(cls, stations: Iterable[Station]) -> GuessIndex:
        maps: dict[Language, dict[str, Station]] = {lang: {} for lang in Language}
        for station in stations:
            for lang in Language:
                answer = _answer(station, lang)
                if not answer:
                    continue
                key = normalize(lang, answer)
                if key and key not in maps[lang]:
                    maps[lang][key] = station
        return cls(maps)

    def resolve(self, language: Language | str, text: str) -> Optional[Station]:
        """Find the station a guess refers to, or None for a miss."""
        language = Language.parse(language)
        key = normalize(language, text or "")
        if not key:
            return None
        return self._maps[language].get(key)

    def size(self, language: Language | str) -> int:
        """Number of distinct answers accepted in ``language``."""
        return len(self._maps[Language.parse(language)])

    def __len__(self):
        return sum(len(m) for m in self._maps.values())
