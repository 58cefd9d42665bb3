"""Tests for the station catalog and free-text station resolver."""

import json
import logging
from pathlib import Path

import pytest

from departure_board.models import RequestedRoute, Station
from departure_board.stations import StationCatalog, StationResolver, sanitise


def _resolver(*stations: tuple[str, str]) -> StationResolver:
    return StationResolver(StationCatalog(Station(name=name, code=code) for name, code in stations))


@pytest.fixture
def resolver() -> StationResolver:
    """Resolver over a small slice of the network."""
    return _resolver(
        ("Bath Spa", "BTH"),
        ("Booth", "BOO"),
        ("Cambridge North", "CMB"),
        ("Cambridge", "CBG"),
        ("London King's Cross", "KGX"),
        ("London Waterloo East", "WAE"),
        ("London Waterloo", "WAT"),
        ("North York Moors", "NYM"),
        ("Yorkshire Dales", "YSD"),
        ("York", "YRK"),
    )


class TestSanitise:
    """Tests for query normalisation."""

    def test_when_text_has_punctuation_then_keeps_letters_and_digits(self) -> None:
        """Given mixed text, when sanitising, then only uppercase letters and digits remain."""
        assert sanitise("King's Cross, T5!") == "KINGSCROSST5"

    def test_when_text_has_ampersands_then_spells_them_out(self) -> None:
        """Given '&', when sanitising, then every one becomes AND."""
        assert sanitise("Bow & Arrow & Co") == "BOWANDARROWANDCO"

    def test_when_none_then_returns_none(self) -> None:
        """Given None, when sanitising, then returns None."""
        assert sanitise(None) is None


class TestShortQueries:
    """Tests for queries too short to search."""

    @pytest.mark.parametrize("query", [None, "", "  ", "y", "yo", "Y-O", "#1"])
    def test_when_fewer_than_three_characters_then_returns_empty(
        self, resolver: StationResolver, query: str | None
    ) -> None:
        """Given a short query, when resolving, then nothing is returned."""
        assert resolver.resolve(query) == []


class TestCodeMatch:
    """Tests for exact CRS code lookups."""

    def test_when_query_is_code_then_returns_that_station(self, resolver: StationResolver) -> None:
        """Given 'kgx', when resolving, then King's Cross is the sole result."""
        assert resolver.resolve("kgx") == [Station(name="London King's Cross", code="KGX")]

    def test_when_code_also_matches_names_then_code_wins(self, resolver: StationResolver) -> None:
        """Given 'BTH' which also fits 'Booth', when resolving, then only the code match is returned."""
        assert resolver.resolve("BTH") == [Station(name="Bath Spa", code="BTH")]

    def test_when_code_is_duplicated_then_returns_every_entry(self) -> None:
        """Given duplicate catalog rows, when resolving the code, then all are returned in order."""
        resolver = _resolver(("Leeds", "LDS"), ("Leeds City", "LDS"))
        assert [station.name for station in resolver.resolve("lds")] == ["Leeds", "Leeds City"]

    def test_when_three_letters_are_not_a_code_then_searches_names(
        self, resolver: StationResolver
    ) -> None:
        """Given three letters with no code match, when resolving, then names are searched."""
        assert [station.code for station in resolver.resolve("ork")] == ["YRK", "YSD", "NYM"]


class TestNameMatch:
    """Tests for in-order subsequence matching and ranking."""

    def test_when_letters_in_order_then_station_matches(self) -> None:
        """Given 'LNDN', when resolving, then names with L, N, D, N in order match."""
        resolver = _resolver(("London Bridge", "LBG"), ("Lydney", "LYD"), ("Lynd Hill", "LYH"))
        assert [station.code for station in resolver.resolve("LNDN")] == ["LBG"]

    def test_when_query_repeats_letters_then_each_needs_its_own_position(self) -> None:
        """Given a repeated letter, when resolving, then one occurrence in the name is not enough."""
        resolver = _resolver(("Lynd Hill", "LYH"), ("Lynden Lane", "LYL"))
        assert [station.code for station in resolver.resolve("LNDN")] == ["LYL"]

    def test_when_no_station_matches_then_returns_empty(self, resolver: StationResolver) -> None:
        """Given an unknown name, when resolving, then returns an empty list."""
        assert resolver.resolve("Zzyzx") == []

    def test_when_first_index_differs_then_earliest_wins(self, resolver: StationResolver) -> None:
        """Given 'york', when resolving, then names starting with it come first."""
        assert [station.code for station in resolver.resolve("york")] == ["YRK", "YSD", "NYM"]

    def test_when_first_index_ties_then_longer_run_wins(self) -> None:
        """Given equal first index, when ranking, then the longer contiguous prefix wins."""
        resolver = _resolver(("Brimsdown", "BMD"), ("Bristol Parkway", "BPW"))
        assert [station.code for station in resolver.resolve("bris")] == ["BPW", "BMD"]

    def test_when_run_ties_then_shorter_name_wins(self, resolver: StationResolver) -> None:
        """Given equal index and run, when ranking, then the shorter name comes first."""
        assert [station.code for station in resolver.resolve("cambridge")] == ["CBG", "CMB"]
        assert [station.code for station in resolver.resolve("waterloo")] == ["WAT", "WAE"]

    def test_when_names_have_brackets_then_bracketed_part_is_ignored_for_length(self) -> None:
        """Given a bracketed suffix, when ranking by length, then it does not count."""
        resolver = _resolver(("Edinburgh Park", "EDP"), ("Edinburgh (Waverley)", "EDB"))
        assert [station.code for station in resolver.resolve("edinburgh")] == ["EDB", "EDP"]


class TestResolveRoute:
    """Tests for picking both ends of a journey."""

    def test_when_both_ends_match_then_takes_best_of_each(self, resolver: StationResolver) -> None:
        """Given origin and destination text, when resolving, then the top matches form the route."""
        route = resolver.resolve_route("cambridge", "kgx")
        assert route == RequestedRoute(
            from_station=Station(name="Cambridge", code="CBG"),
            to_station=Station(name="London King's Cross", code="KGX"),
        )

    def test_when_no_destination_then_route_has_none(self, resolver: StationResolver) -> None:
        """Given only an origin, when resolving, then the route has no destination."""
        route = resolver.resolve_route("york", None)
        assert route == RequestedRoute(from_station=Station(name="York", code="YRK"))

    def test_when_origin_unknown_then_returns_none(self, resolver: StationResolver) -> None:
        """Given an unknown origin, when resolving, then returns None."""
        assert resolver.resolve_route("Zzyzx", "kgx") is None

    def test_when_destination_unknown_then_returns_none(self, resolver: StationResolver) -> None:
        """Given an unknown destination, when resolving, then returns None."""
        assert resolver.resolve_route("york", "Zzyzx") is None


class TestCatalogLoading:
    """Tests for loading the station list from disk."""

    def test_when_loading_files_then_ignored_codes_are_dropped(self, tmp_path: Path) -> None:
        """Given an ignore list, when loading, then those codes are not in the catalog."""
        codes = tmp_path / "stations.csv"
        codes.write_text("Cambridge,CBG\nBus Stop,bsx\n\nEly, ELY \n", encoding="utf-8")
        ignore = tmp_path / "ignore.json"
        ignore.write_text(json.dumps(["BSX"]), encoding="utf-8")

        catalog = StationCatalog.load(codes, ignore)

        assert list(catalog) == [
            Station(name="Cambridge", code="CBG"),
            Station(name="Ely", code="ELY"),
        ]

    def test_when_loading_bundled_data_then_contains_known_stations(self) -> None:
        """Given the bundled files, when loading, then King's Cross is present and ignored codes are not."""
        catalog = StationCatalog.load()

        assert catalog.name_for_code("KGX") == "London King's Cross"
        assert catalog.find_by_code("HX4") == []
        assert len(catalog) > 0
        assert all(len(station.code) == 3 for station in catalog.stations)

    def test_when_loading_bundled_data_then_warns_it_is_a_sample(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Given no station file path, when loading, then a warning points at STATION_CODES_PATH."""
        with caplog.at_level(logging.WARNING, logger="departure_board.stations"):
            StationCatalog.load()

        assert "STATION_CODES_PATH" in caplog.text

    def test_when_loading_explicit_file_then_does_not_warn(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Given an explicit station file, when loading, then no sample-list warning is logged."""
        codes = tmp_path / "stations.csv"
        codes.write_text("York,YRK\n", encoding="utf-8")

        with caplog.at_level(logging.WARNING, logger="departure_board.stations"):
            StationCatalog.load(codes)

        assert "STATION_CODES_PATH" not in caplog.text

    def test_when_code_lookup_in_lowercase_then_still_matches(self) -> None:
        """Given a lowercase code, when looking up its name, then the catalog name is returned."""
        catalog = StationCatalog([Station(name="York", code="YRK")])
        assert catalog.name_for_code("yrk") == "York"
        assert catalog.name_for_code("ZZZ") is None

    def test_when_station_file_missing_then_raises(self, tmp_path: Path) -> None:
        """Given a missing station file, when loading, then the error propagates."""
        ignore = tmp_path / "ignore.json"
        ignore.write_text("[]", encoding="utf-8")
        with pytest.raises(FileNotFoundError):
            StationCatalog.load(tmp_path / "missing.csv", ignore)
