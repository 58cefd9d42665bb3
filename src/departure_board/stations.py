from __future__ import annotations

import csv
import json
import logging
import re
from pathlib import Path
from typing import Iterable, Iterator, Optional, Sequence

from .models import RequestedRoute, Station

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 3
DATA_DIR = Path(__file__).parent / "data"

_NON_ALPHANUMERIC = re.compile(r"[^A-Z0-9]")
_PARENTHESISED = re.compile(r"\(.*\)")


def default_station_codes_path() -> Path:
    return DATA_DIR / "station_codes.csv"


def default_ignore_stations_path() -> Path:
    return DATA_DIR / "ignore_stations.json"


def sanitise(text: Optional[str]) -> Optional[str]:
    """Uppercase, spell out ``&`` and drop everything but letters and digits."""

    if text is None:
        return None
    return _NON_ALPHANUMERIC.sub("", text.upper().replace("&", "AND"))


class StationCatalog:
    """Read-only list of known stations, loaded once at startup."""

    def __init__(self, stations: Iterable[Station]) -> None:
        self._stations: tuple[Station, ...] = tuple(stations)

    @classmethod
    def load(
        cls,
        codes_path: Optional[Path] = None,
        ignore_path: Optional[Path] = None,
    ) -> "StationCatalog":
        """Load ``name,code`` rows from CSV, skipping codes on the ignore list."""

        if codes_path is None:
            codes_path = default_station_codes_path()
            logger.warning(
                "Using the bundled sample station list; set STATION_CODES_PATH "
                "to load the full national list"
            )
        ignore_path = ignore_path or default_ignore_stations_path()

        with open(ignore_path, encoding="utf-8") as handle:
            ignored = {code.strip().upper() for code in json.load(handle)}

        stations: list[Station] = []
        with open(codes_path, encoding="utf-8", newline="") as handle:
            for row in csv.reader(handle):
                if len(row) < 2 or not row[1].strip():
                    continue
                code = row[1].strip().upper()
                if code in ignored:
                    continue
                stations.append(Station(name=row[0].strip(), code=code))

        logger.info(
            "Loaded %d stations from %s (%d codes on ignore list)",
            len(stations),
            codes_path,
            len(ignored),
        )
        return cls(stations)

    @property
    def stations(self) -> Sequence[Station]:
        return self._stations

    def __len__(self) -> int:
        return len(self._stations)

    def __iter__(self) -> Iterator[Station]:
        return iter(self._stations)

    def find_by_code(self, code: str) -> list[Station]:
        code = code.upper()
        return [station for station in self._stations if station.code == code]

    def name_for_code(self, code: str) -> Optional[str]:
        matches = self.find_by_code(code)
        if not matches:
            return None
        return matches[0].name


class StationResolver:
    """Ranks catalog stations against free text typed by a user."""

    def __init__(self, catalog: StationCatalog) -> None:
        self._catalog = catalog

    def resolve(self, query: Optional[str]) -> list[Station]:
        """Return matching stations, best match first.

        A three character query that is a known CRS code returns only the
        stations with that code. Otherwise a station matches when every
        character of the query appears in its name in order.
        """

        text = sanitise(query)
        if not text or len(text) < MIN_QUERY_LENGTH:
            return []

        if len(text) == MIN_QUERY_LENGTH:
            by_code = self._catalog.find_by_code(text)
            if by_code:
                return by_code

        ranked: list[tuple[tuple[int, int, int], Station]] = []
        for station in self._catalog:
            name = sanitise(station.name) or ""
            if not _contains_in_order(name, text):
                continue
            ranked.append((_rank(station, name, text), station))

        ranked.sort(key=lambda item: item[0])
        return [station for _, station in ranked]

    def resolve_route(
        self, from_text: str, to_text: Optional[str] = None
    ) -> Optional[RequestedRoute]:
        """Pick the best station for each end of a journey.

        Returns ``None`` when either supplied end has no match.
        """

        origins = self.resolve(from_text)
        if not origins:
            return None
        if not to_text or not to_text.strip():
            return RequestedRoute(from_station=origins[0])

        destinations = self.resolve(to_text)
        if not destinations:
            return None
        return RequestedRoute(from_station=origins[0], to_station=destinations[0])


def _contains_in_order(name: str, query: str) -> bool:
    position = 0
    for character in query:
        index = name.find(character, position)
        if index == -1:
            return False
        position = index + 1
    return True


def _best_contiguous_run(name: str, query: str) -> int:
    for length in range(len(query), 0, -1):
        if query[:length] in name:
            return length
    return 0


def _rank(station: Station, name: str, query: str) -> tuple[int, int, int]:
    first_match_index = name.find(query[0])
    run_length = _best_contiguous_run(name, query)
    bare_name_length = len(_PARENTHESISED.sub("", station.name, count=1))
    return (first_match_index, -run_length, bare_name_length)
