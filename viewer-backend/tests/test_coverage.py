from app.schemas import ColumnMapping
from qc.coverage import coverage_report


def test_coverage_counts(installation_rows):
    rep = coverage_report(installation_rows, ColumnMapping(lat_column="Latitude N", lng_column="Longitude E"))
    assert rep.total == 5
    assert rep.plotted == 3
    assert rep.empty == 1
    assert rep.out_of_range == 1
    assert rep.dropped == 2
    d = rep.as_dict()
    assert d["unmapped"] == 0
    assert d["plotted"] + d["empty"] + d["unparsable"] + d["out_of_range"] + d["null_island"] == d["total"]


def test_coverage_without_usable_mapping(installation_rows):
    rep = coverage_report(installation_rows, None)
    assert rep.total == 5 and rep.plotted == 0 and rep.unmapped == 5
    assert rep.unparsable == 0 and rep.empty == 0
    rep = coverage_report(installation_rows, ColumnMapping(lat_column="Lat", lng_column="Lng"), headers=["Lat"])
    assert rep.plotted == 0 and rep.unmapped == 5 and rep.unparsable == 0
    rep = coverage_report(installation_rows, ColumnMapping())
    assert rep.unmapped == 5


def test_coverage_null_island():
    rows = [{"c": "0,0"}, {"c": "0;0"}, {"c": "1,1"}]
    rep = coverage_report(rows, ColumnMapping(lat_column="c", lng_column="c"))
    assert rep.null_island == 2 and rep.plotted == 1
