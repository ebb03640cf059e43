import pytest

from conftest import FakeDocumentStore, flat, make_settings, nested, sample_documents
from app.schemas.station import Coordinates
from app.services import discovery_service as discovery_module
from app.services.discovery_service import DiscoveryService
from app.services.errors import InvalidArgument, NotFound, TotalAggregationFailure
from app.services.geocoding_service import GeocodingService
from app.services.geo import haversine_km

MUMBAI = (19.076, 72.8777)


def _ids(records):
    return [r.id for r in records]


@pytest.mark.asyncio
async def test_nearby_meters_and_kilometers_are_equivalent(service):
    in_meters = await service.nearby(*MUMBAI, radius=25000)
    in_km = await service.nearby(*MUMBAI, radius=25)

    assert _ids(in_meters) == _ids(in_km) == ["s1", "s2"]
    assert [r.distance_km for r in in_meters] == [r.distance_km for r in in_km]


@pytest.mark.asyncio
async def test_nearby_accepts_query_strings(service):
    records = await service.nearby("19.076", "72.8777", radius="25", limit="1")
    assert _ids(records) == ["s1"]
    assert records[0].distance_km == 0


@pytest.mark.asyncio
async def test_nearby_defaults_to_configured_radius(service):
    records = await service.nearby(*MUMBAI)
    assert _ids(records) == ["s1", "s2"]


@pytest.mark.asyncio
async def test_nearby_text_prefilter(service):
    records = await service.nearby(*MUMBAI, radius=25, query="bandra")
    assert _ids(records) == ["s2"]


@pytest.mark.asyncio
async def test_nearby_status_filter(service):
    delhi = (28.6139, 77.209)
    assert _ids(await service.nearby(*delhi, radius=10)) == ["far"]
    assert await service.nearby(*delhi, radius=10, status="active") == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "lat, lng, radius",
    [
        (None, 72.8, None),
        ("abc", 72.8, None),
        ("nan", 72.8, None),
        (19.0, "inf", None),
        (91, 72.8, None),
        (19.0, 72.8, 0),
        (19.0, 72.8, "-5"),
    ],
)
async def test_nearby_rejects_bad_input(service, store, lat, lng, radius):
    with pytest.raises(InvalidArgument):
        await service.nearby(lat, lng, radius=radius)
    assert store.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize("query", ["", "a", " a ", None])
async def test_text_search_rejects_short_queries(service, query):
    with pytest.raises(InvalidArgument):
        await service.text_search(query)


@pytest.mark.asyncio
async def test_text_search_sorts_by_resolved_place(service):
    result = await service.text_search("jalgaon")

    assert result.best_place.key == "jalgaon"
    assert result.best_place.match_kind == "exact"
    assert _ids(result.stations) == ["ownerB/stations/p9"]
    assert result.stations[0].distance_km == pytest.approx(1.1, abs=0.3)
    assert result.count == 1


@pytest.mark.asyncio
async def test_text_search_place_center_does_not_exclude(service):
    # "station" resolves to Jalgaon via a landmark; the Pune station is far away but kept
    result = await service.text_search("station")
    assert "s3" in _ids(result.stations)


@pytest.mark.asyncio
async def test_text_search_with_explicit_center_and_radius(service):
    result = await service.text_search("ev", lat=MUMBAI[0], lng=MUMBAI[1], radius=10)
    assert _ids(result.stations) == ["s1"]


@pytest.mark.asyncio
async def test_text_search_with_explicit_center_without_radius(service):
    result = await service.text_search("ev", lat=MUMBAI[0], lng=MUMBAI[1])
    assert _ids(result.stations) == ["s1", "ownerB/stations/p9"]
    assert result.stations[0].distance_km <= result.stations[1].distance_km


@pytest.mark.asyncio
async def test_text_search_without_place_leaves_distance_unset(service):
    result = await service.text_search("central")
    assert result.best_place is None
    assert _ids(result.stations) == ["s1"]
    assert result.stations[0].distance_km is None


@pytest.mark.asyncio
async def test_locate_alias(service):
    location = await service.locate_place("bombay")
    assert location.key == "mumbai"
    assert location.match_kind == "alias"
    assert (location.lat, location.lng) == (19.0760, 72.8777)


@pytest.mark.asyncio
async def test_locate_falls_back_to_city_anchor(service):
    location = await service.locate_place("nasik")
    assert location.key == "nashik"
    assert location.match_kind == "anchor"
    assert (location.lat, location.lng) == (20.0112, 73.7902)


@pytest.mark.asyncio
async def test_locate_not_found_carries_suggestions(service):
    with pytest.raises(NotFound) as exc:
        await service.locate_place("zzqx")
    assert exc.value.suggestions == ["Mumbai", "Pune", "Delhi", "Bangalore", "Chennai"]

    with pytest.raises(NotFound) as exc:
        await service.locate_place("airport terminal xq")
    assert exc.value.suggestions[0] == "airport"


@pytest.mark.asyncio
async def test_locate_with_stations(service):
    location, stations = await service.locate_with_stations("jalgaon")
    assert location.key == "jalgaon"
    assert _ids(stations) == ["ownerB/stations/p9"]


@pytest.mark.asyncio
async def test_place_suggestions(service):
    assert await service.place_suggestions("") == []
    suggestions = await service.place_suggestions("pu", limit="3")
    assert [s.key for s in suggestions][0] == "pune"
    assert len(suggestions) <= 3


@pytest.mark.asyncio
async def test_get_station_by_provenance_key(service):
    nested = await service.get_station("ownerA/stations/s1")
    assert nested.source_tag == "nested"
    assert nested.owner_id == "ownerA"

    flat = await service.get_station("s2")
    assert flat.source_tag == "top-level"
    assert flat.name == "Bandra Charge Hub"


@pytest.mark.asyncio
async def test_get_station_errors(service):
    with pytest.raises(NotFound):
        await service.get_station("missing")
    with pytest.raises(NotFound):
        await service.get_station("bad1")
    with pytest.raises(InvalidArgument):
        await service.get_station("a/b")
    with pytest.raises(InvalidArgument):
        await service.get_station("  ")


@pytest.mark.asyncio
async def test_reverse_lookup_uses_regions(service):
    location = await service.reverse_lookup("21.0", "75.6")
    assert location.name == "Jalgaon"
    with pytest.raises(InvalidArgument):
        await service.reverse_lookup(None, "75.6")


@pytest.mark.asyncio
async def test_distance_matrix(service):
    result = await service.distance_matrix("19.076,72.8777", "19.076,72.8777;18.5204,73.8567")
    elements = result["rows"][0]["elements"]
    assert elements[0]["distance"] == 0
    assert elements[1]["distance"] > 100000
    assert result["origin_addresses"] == ["19.076, 72.8777"]
    with pytest.raises(InvalidArgument):
        await service.distance_matrix("", "1,1")


@pytest.mark.asyncio
async def test_total_outage_returns_empty_by_default():
    store = FakeDocumentStore(sample_documents(), failing={("ev_bunks", False), ("stations", True)})
    service = DiscoveryService(store, make_settings(), geocoder=GeocodingService(enabled=False))
    assert await service.nearby(*MUMBAI, radius=25) == []


@pytest.mark.asyncio
async def test_total_outage_can_be_raised():
    store = FakeDocumentStore(sample_documents(), failing={("ev_bunks", False), ("stations", True)})
    config = make_settings(DISCOVERY_FAIL_ON_TOTAL_OUTAGE=True)
    service = DiscoveryService(store, config, geocoder=GeocodingService(enabled=False))
    with pytest.raises(TotalAggregationFailure):
        await service.nearby(*MUMBAI, radius=25)


@pytest.mark.asyncio
async def test_partial_outage_keeps_remaining_sources():
    store = FakeDocumentStore(sample_documents(), failing={("ev_bunks", False)})
    service = DiscoveryService(store, make_settings(), geocoder=GeocodingService(enabled=False))
    records = await service.nearby(*MUMBAI, radius=25)
    assert _ids(records) == ["ownerA/stations/s1"]


@pytest.mark.asyncio
async def test_debug_sources(service):
    report = await service.debug_sources("jalgaon")
    assert [s["ok"] for s in report["sources"]] == [True, True]
    assert report["documents"] == 7
    assert report["normalized"] == 6
    assert report["deduplicated"] == 5
    assert report["probe"]["matches"][0]["id"] == "ownerB/stations/p9"
    assert report["probe"]["matches"][0]["fingerprint"].startswith("21.0077_75.5626")


def _service_over(docs, **overrides):
    store = FakeDocumentStore(docs)
    return DiscoveryService(store, make_settings(**overrides), geocoder=GeocodingService(enabled=False)), store


@pytest.mark.asyncio
async def test_status_filter_uses_normalized_status():
    service, _ = _service_over([
        flat("ev_bunks", "nostatus", name="No Status", lat=19.076, lng=72.8777),
        flat("ev_bunks", "metastatus", name="Meta Status", lat=19.077, lng=72.8777,
             metadata={"status": "active"}),
        flat("ev_bunks", "closed", name="Closed", lat=19.078, lng=72.8777, status="Inactive"),
    ])
    everything = await service.nearby(*MUMBAI, radius=25)
    assert [r.status for r in everything] == ["active", "active", "Inactive"]

    active = await service.nearby(*MUMBAI, radius=25, status="active")
    assert _ids(active) == ["nostatus", "metastatus"]
    assert _ids(await service.nearby(*MUMBAI, radius=25, status="INACTIVE")) == ["closed"]

    result = await service.text_search("status", status="active")
    assert _ids(result.stations) == ["nostatus", "metastatus"]


@pytest.mark.asyncio
async def test_status_filter_runs_before_dedupe():
    service, _ = _service_over([
        flat("ev_bunks", "old", name="Twin", lat=19.076, lng=72.8777, status="inactive"),
        nested("ownerA", "stations", "new", name="Twin", lat=19.076, lng=72.8777),
    ])
    assert _ids(await service.nearby(*MUMBAI, radius=25, status="active")) == ["ownerA/stations/new"]


@pytest.mark.asyncio
async def test_get_station_rejects_unconfigured_subcollection(service, store):
    for sid in ("ownerA/ev_bunks/s1", "ownerA/chargers/s1"):
        with pytest.raises(NotFound):
            await service.get_station(sid)
    assert store.calls == []


@pytest.mark.asyncio
async def test_find_stations(service):
    assert _ids(await service.find_stations("mumbai")) == ["s1", "s2"]
    assert all(r.distance_km is None for r in await service.find_stations("central"))
    with pytest.raises(InvalidArgument):
        await service.find_stations("  ")


@pytest.fixture
def memory_cache(monkeypatch):
    entries = {}

    async def fake_get(key, client=None):
        return entries.get(key)

    async def fake_set(key, value, expire=None, client=None):
        entries[key] = value

    monkeypatch.setattr(discovery_module, "get_cache", fake_get)
    monkeypatch.setattr(discovery_module, "set_cache", fake_set)
    return entries


@pytest.mark.asyncio
async def test_cache_hit_recomputes_distance_for_exact_center(service, store, memory_cache):
    first = await service.nearby(*MUMBAI, radius=25)
    assert first[0].distance_km == 0
    scans = len(store.calls)

    shifted = (19.07604, 72.8777)  # same rounded cache key
    second = await service.nearby(*shifted, radius=25)
    assert len(store.calls) == scans
    assert len(memory_cache) == 1
    expected = round(haversine_km(Coordinates(lat=shifted[0], lng=shifted[1]), first[0].coordinates), 3)
    assert second[0].distance_km == expected > 0
    assert _ids(second) == _ids(first)


@pytest.mark.asyncio
async def test_text_search_cache_hit_recomputes_distance(service, store, memory_cache):
    await service.text_search("central", lat=MUMBAI[0], lng=MUMBAI[1])
    scans = len(store.calls)
    result = await service.text_search("central", lat=19.07604, lng=72.8777)
    assert len(store.calls) == scans
    assert result.stations[0].distance_km > 0
    assert result.count == len(result.stations)
