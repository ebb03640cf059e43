import pytest

from app.schemas.station import Coordinates, StationRecord
from app.services.gazetteer import KEYWORD, PLACES
from app.services.text_scorer import (
    filter_stations,
    keyword_hints,
    score_place,
    search_places,
    station_matches,
)


@pytest.mark.parametrize(
    "query, key, expected",
    [
        ("mumbai", "mumbai", (100, "exact")),
        ("  MUMBAI ", "mumbai", (100, "exact")),
        ("mum", "mumbai", (80, "key_partial")),
        ("new delhi", "delhi", (80, "key_partial")),
        ("maharashtra", "mumbai", (70, "name")),
        ("bombay", "mumbai", (60, "alias")),
        ("gateway", "mumbai", (50, "landmark")),
        ("maharashtra", "bandra", (30, "region")),
        ("chennai", "mumbai", (0, None)),
        ("", "mumbai", (0, None)),
    ],
)
def test_score_tiers(query, key, expected):
    assert score_place(query, PLACES[key]) == expected


def test_bombay_resolves_to_mumbai_alias():
    best = search_places("bombay")[0]
    assert best.key == "mumbai"
    assert best.match_kind == "alias"
    assert (best.lat, best.lng) == (19.0760, 72.8777)


def test_keywords_are_excluded_from_place_results():
    results = search_places("tech park")
    assert results
    assert all(r.kind != KEYWORD for r in results)
    assert results[0].key == "hinjawadi"


def test_ties_keep_gazetteer_order():
    keys = [r.key for r in search_places("cyberabad")]
    assert keys == ["hyderabad", "hitec city"]


def test_results_are_sorted_by_score_and_limited():
    results = search_places("pu", limit=2)
    assert len(results) == 2
    assert results[0].key == "pune"
    assert results[0].match_score >= results[1].match_score


def test_keyword_hints():
    hints = keyword_hints("airport road")
    assert [h.key for h in hints] == ["airport"]
    assert hints[0].search_hint
    assert keyword_hints("") == []


def _station(**fields):
    return StationRecord(
        id="s",
        doc_id="s",
        coordinates=Coordinates(lat=1, lng=1),
        source_tag="top-level",
        **fields,
    )


def test_station_matches_any_text_field_case_insensitive():
    station = _station(name="Central EV", address="Linking Road", city="Mumbai", area="Bandra")
    assert station_matches("central", station)
    assert station_matches("LINKING", station)
    assert station_matches("mumbai", station)
    assert station_matches("bandra", station)
    assert not station_matches("pune", station)


def test_filter_stations_without_query_is_a_pass_through():
    stations = [_station(name="A"), _station(name="B")]
    assert filter_stations(None, stations) == stations
    assert filter_stations("  ", stations) == stations
    assert filter_stations("b", stations) == [stations[1]]
