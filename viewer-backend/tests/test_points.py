import pytest
from pydantic import ValidationError

from app.schemas import ColumnMapping, PlotPoint
from geo.points import build_points, classify_row, split_combined

SEPARATE = ColumnMapping(lat_column="Latitude N", lng_column="Longitude E")
COMBINED = ColumnMapping(lat_column="Coords", lng_column="Coords")


def test_combined_column_yields_point():
    pts = build_points([{"Coords": "35.8,14.4"}], COMBINED)
    assert len(pts) == 1
    assert pts[0].lat == 35.8 and pts[0].lng == 14.4
    assert pts[0].source_row == {"Coords": "35.8,14.4"}


@pytest.mark.parametrize("cell", ["35.8; 14.4", "35.8 14.4", " 35.8 ,  14.4 ", "35.8;;14.4"])
def test_combined_column_separators(cell):
    pts = build_points([{"Coords": cell}], COMBINED)
    assert [(p.lat, p.lng) for p in pts] == [(35.8, 14.4)]


def test_combined_column_needs_two_parts():
    assert build_points([{"Coords": "35.8"}, {"Coords": ""}, {"Coords": None}], COMBINED) == []


def test_split_combined_drops_empty_parts():
    assert split_combined(",35.8,,14.4,") == ["35.8", "14.4"]


def test_separate_columns_filter_and_keep_order(installation_rows):
    pts = build_points(installation_rows, SEPARATE)
    assert [p.source_row["Project"] for p in pts] == ["Valletta Hub", "Mdina Store", "Gozo Depot"]
    assert (pts[1].lat, pts[1].lng) == (35.8859, 14.4031)


def test_invalid_rows_are_skipped_silently():
    rows = [
        {"Latitude N": "0", "Longitude E": "0"},
        {"Latitude N": "91", "Longitude E": "10"},
        {"Latitude N": "10", "Longitude E": "-181"},
        {"Latitude N": "abc", "Longitude E": "10"},
        {"Latitude N": "0", "Longitude E": "14.5"},
    ]
    pts = build_points(rows, SEPARATE)
    assert [(p.lat, p.lng) for p in pts] == [(0.0, 14.5)]


def test_range_bounds_are_inclusive():
    rows = [{"Latitude N": "90", "Longitude E": "180"}, {"Latitude N": "-90 S", "Longitude E": "180 W"}]
    pts = build_points(rows, SEPARATE)
    assert [(p.lat, p.lng) for p in pts] == [(90.0, 180.0), (-90.0, -180.0)]


def test_numeric_cells():
    pts = build_points([{"Latitude N": 35.9, "Longitude E": 14.5}], SEPARATE)
    assert [(p.lat, p.lng) for p in pts] == [(35.9, 14.5)]


def test_no_mapping_or_empty_axis_gives_nothing(installation_rows):
    assert build_points(installation_rows, None) == []
    assert build_points(installation_rows, ColumnMapping()) == []
    assert build_points(installation_rows, ColumnMapping(lat_column="Latitude N", lng_column="")) == []


def test_mapping_to_vanished_header_gives_nothing(installation_rows):
    headers = ["Project", "Lat", "Lng"]
    assert build_points(installation_rows, SEPARATE, headers=headers) == []


def test_missing_key_drops_row_without_headers():
    rows = [{"Latitude N": "35.9"}, {"Latitude N": "35.9", "Longitude E": "14.5"}]
    assert len(build_points(rows, SEPARATE)) == 1


def test_duplicates_are_kept():
    rows = [{"Coords": "35.8,14.4"}, {"Coords": "35.8,14.4"}]
    assert len(build_points(rows, COMBINED)) == 2


def test_rebuild_is_idempotent(installation_rows):
    first = build_points(installation_rows, SEPARATE)
    second = build_points(installation_rows, SEPARATE)
    assert first == second


def test_swapped_mapping_rebuilds_from_rows():
    rows = [{"A": "35.9", "B": "120.5"}]
    m = ColumnMapping(lat_column="A", lng_column="B")
    assert len(build_points(rows, m)) == 1
    # 120.5 is not a valid latitude
    assert build_points(rows, m.swapped()) == []


def test_every_point_satisfies_invariants():
    cells = ["0", "-0", "45", "-45", "90.0001", "180", "181", "12,5", "S 33", "W 150", "", "x", "NULL", "89.9 N"]
    rows = [{"a": la, "b": lo} for la in cells for lo in cells]
    pts = build_points(rows, ColumnMapping(lat_column="a", lng_column="b"))
    assert pts
    for p in pts:
        assert -90 <= p.lat <= 90
        assert -180 <= p.lng <= 180
        assert not (p.lat == 0 and p.lng == 0)


def test_classify_row_reasons():
    assert classify_row({"Latitude N": "", "Longitude E": ""}, SEPARATE).reason == "empty"
    assert classify_row({"Latitude N": "n/a", "Longitude E": "14"}, SEPARATE).reason == "unparsable"
    assert classify_row({"Latitude N": "95", "Longitude E": "14"}, SEPARATE).reason == "out_of_range"
    assert classify_row({"Coords": "0, 0"}, COMBINED).reason == "null_island"
    assert classify_row({"Coords": "35.8"}, COMBINED).reason == "unparsable"
    ok = classify_row({"Coords": "35.8, 14.4"}, COMBINED)
    assert ok.reason is None and ok.point is not None


def test_plot_point_model_rejects_invalid_values():
    with pytest.raises(ValidationError):
        PlotPoint(lat=0, lng=0)
    with pytest.raises(ValidationError):
        PlotPoint(lat=90.5, lng=10)
    with pytest.raises(ValidationError):
        PlotPoint(lat=10, lng=-180.5)
