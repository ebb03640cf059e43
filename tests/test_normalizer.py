from app.services.normalizer import DEFAULT_STATION_NAME, extract_coordinates, normalize_records, to_station_record
from app.services.sources import FlatId, NestedId, RawRecord, SourceDescriptor


def _coords(doc):
    c = extract_coordinates(doc)
    return None if c is None else (c.lat, c.lng)


def test_nested_latitude_longitude():
    assert _coords({"location": {"latitude": 19.07, "longitude": 72.87}}) == (19.07, 72.87)


def test_root_string_fields_are_parsed():
    assert _coords({"lat": "19.07", "lng": "72.87"}) == (19.07, 72.87)


def test_empty_document_has_no_coordinates():
    assert extract_coordinates({}) is None
    assert extract_coordinates(None) is None


def test_serialized_geopoint():
    assert _coords({"location": {"_latitude": 21.0077, "_longitude": 75.5626}}) == (21.0077, 75.5626)


def test_metadata_location_and_lon_key():
    assert _coords({"metadata": {"location": {"lat": 18.5, "lon": 73.8}}}) == (18.5, 73.8)


def test_delimited_string():
    assert _coords({"latlng": "18.5204, 73.8567"}) == (18.5204, 73.8567)
    assert _coords({"coordinates": "13.08,80.27"}) == (13.08, 80.27)


def test_coordinate_arrays_are_not_guessed():
    # GeoJSON order is [lng, lat]; reading it as [lat, lng] would misplace the station
    assert extract_coordinates({"coordinates": [72.8777, 19.076]}) is None
    assert extract_coordinates({"location": [12.97, 77.59]}) is None
    doc = {"coordinates": [72.8777, 19.076], "lat": 19.076, "lng": 72.8777}
    assert _coords(doc) == (19.076, 72.8777)


def test_nested_location_wins_over_root_fields():
    doc = {"location": {"lat": 1.0, "lng": 2.0}, "latitude": 3.0, "longitude": 4.0}
    assert _coords(doc) == (1.0, 2.0)


def test_invalid_values_fall_through_to_next_extractor():
    doc = {"location": {"lat": "abc", "lng": 72.8}, "latitude": 19.1, "longitude": 72.9}
    assert _coords(doc) == (19.1, 72.9)


def test_rejects_out_of_range_nan_and_booleans():
    assert extract_coordinates({"lat": 91, "lng": 10}) is None
    assert extract_coordinates({"lat": 10, "lng": -181}) is None
    assert extract_coordinates({"lat": "nan", "lng": 10}) is None
    assert extract_coordinates({"lat": float("inf"), "lng": 10}) is None
    assert extract_coordinates({"lat": True, "lng": 10}) is None
    assert extract_coordinates({"lat": "", "lng": ""}) is None


def test_zero_coordinates_are_valid():
    assert _coords({"lat": 0, "lng": 0}) == (0.0, 0.0)


def test_flat_record_fields():
    raw = RawRecord(
        identity=FlatId("ev_bunks", "s2"),
        source=SourceDescriptor("ev_bunks"),
        data={"location": {"lat": 19.05, "lng": 72.83}, "city": "Mumbai", "area": "Bandra", "ownerId": "o1"},
    )
    record = to_station_record(raw)
    assert record.id == "s2"
    assert record.doc_id == "s2"
    assert record.name == DEFAULT_STATION_NAME
    assert record.address == "Bandra, Mumbai"
    assert record.source_tag == "top-level"
    assert record.status == "active"
    assert record.owner_id == "o1"
    assert record.distance_km is None


def test_nested_record_uses_metadata_and_parent_owner():
    raw = RawRecord(
        identity=NestedId("ownerA", "stations", "s1"),
        source=SourceDescriptor("stations", grouped=True),
        data={"lat": 19.0, "lng": 72.0, "metadata": {"name": "Meta Name", "city": "Thane"}, "status": "inactive"},
    )
    record = to_station_record(raw)
    assert record.id == "ownerA/stations/s1"
    assert record.doc_id == "s1"
    assert record.name == "Meta Name"
    assert record.city == "Thane"
    assert record.address == "Thane"
    assert record.source_tag == "nested"
    assert record.owner_id == "ownerA"
    assert record.status == "inactive"


def test_normalize_records_drops_documents_without_coordinates():
    source = SourceDescriptor("ev_bunks")
    raws = [
        RawRecord(FlatId("ev_bunks", "ok"), source, {"lat": 1, "lng": 2}),
        RawRecord(FlatId("ev_bunks", "bad"), source, {"name": "no pin"}),
    ]
    records = normalize_records(raws)
    assert [r.id for r in records] == ["ok"]


def test_public_dict_omits_distance_when_unset():
    raw = RawRecord(FlatId("ev_bunks", "s1"), SourceDescriptor("ev_bunks"), {"lat": 1, "lng": 2})
    data = to_station_record(raw).public_dict()
    assert "distanceKm" not in data
    assert data["sourceTag"] == "top-level"
    assert data["coordinates"] == {"lat": 1.0, "lng": 2.0}
