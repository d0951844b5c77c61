from app.schemas import ColumnMapping
from geo.config import MapperConfig, load_mapper_config
from geo.mapper import heuristic_columns, identify_columns, resolve_columns
from suggest.llm_fallback import LLMProvider, build_prompt, validate_suggestion


class MockProvider(LLMProvider):
    def __init__(self, payload=None, exc=None):
        self.payload = payload
        self.exc = exc
        self.prompts = []

    def infer(self, prompt: str) -> dict:
        self.prompts.append(prompt)
        if self.exc is not None:
            raise self.exc
        return self.payload


HEADERS = ["Project", "Latitude N", "Longitude E", "Status"]
ROWS = [{"Project": f"row-{i}", "Latitude N": "35.9", "Longitude E": "14.5", "Status": "ok"} for i in range(10)]


def test_heuristic_prefers_sentinel_names():
    m = heuristic_columns(HEADERS, MapperConfig())
    assert m == ColumnMapping(lat_column="Latitude N", lng_column="Longitude E")


def test_heuristic_short_names_and_substrings():
    assert heuristic_columns(["id", "Lat", "Lng"], MapperConfig()) == ColumnMapping(lat_column="Lat", lng_column="Lng")
    assert heuristic_columns(["GPS Latitude", "GPS Longitude"], MapperConfig()) == ColumnMapping(
        lat_column="GPS Latitude", lng_column="GPS Longitude"
    )
    assert heuristic_columns(["name", "LONG", "lat"], MapperConfig()) == ColumnMapping(lat_column="lat", lng_column="LONG")


def test_heuristic_latitude_substring_beats_exact_lat():
    m = heuristic_columns(["lat", "Latitude"], MapperConfig())
    assert m.lat_column == "Latitude"


def test_heuristic_sentinel_match_is_case_insensitive():
    m = heuristic_columns(["latitude n", "x", "LONGITUDE E"], MapperConfig())
    assert m.lat_column == "latitude n"
    assert m.lng_column == "LONGITUDE E"


def test_heuristic_degenerate_fallbacks():
    assert heuristic_columns(["a", "b", "c"], MapperConfig()) == ColumnMapping(lat_column="a", lng_column="b")
    assert heuristic_columns(["Coordinates"], MapperConfig()) == ColumnMapping(
        lat_column="Coordinates", lng_column="Coordinates"
    )


def test_empty_headers_give_empty_mapping():
    m = identify_columns([], [])
    assert m.lat_column == "" and m.lng_column == ""
    assert m.is_empty


def test_configured_sentinels_replace_defaults():
    cfg = MapperConfig(lat_exact=("Y",), lng_exact=("X",))
    assert heuristic_columns(["X", "Y"], cfg) == ColumnMapping(lat_column="Y", lng_column="X")


def test_config_from_env(monkeypatch):
    monkeypatch.setenv("MAPPER_LAT_EXACT", "Northing, Breite")
    monkeypatch.setenv("MAPPER_LNG_EQUALS", "lon")
    monkeypatch.setenv("ORACLE_SAMPLE_ROWS", "not-a-number")
    cfg = load_mapper_config()
    assert cfg.lat_exact == ("Northing", "Breite")
    assert cfg.lng_equals == ("lon",)
    assert cfg.sample_rows == 3
    assert heuristic_columns(["Breite", "lon"], cfg) == ColumnMapping(lat_column="Breite", lng_column="lon")


def test_sample_rows_clamped():
    assert MapperConfig(sample_rows=50).sample_rows == 5
    assert MapperConfig(sample_rows=0).sample_rows == 1


def test_oracle_answer_accepted_when_headers_exist():
    prov = MockProvider({"latColumn": "Status", "lngColumn": "Project"})
    mapping, source = resolve_columns(HEADERS, ROWS, provider=prov, config=MapperConfig())
    assert source == "oracle"
    assert mapping == ColumnMapping(lat_column="Status", lng_column="Project")
    assert len(prov.prompts) == 1


def test_oracle_unknown_header_falls_back():
    prov = MockProvider({"latColumn": "Latitude", "lngColumn": "Longitude E"})
    mapping, source = resolve_columns(HEADERS, ROWS, provider=prov, config=MapperConfig())
    assert source == "heuristic"
    assert mapping == ColumnMapping(lat_column="Latitude N", lng_column="Longitude E")


def test_oracle_exception_falls_back():
    prov = MockProvider(exc=TimeoutError("deadline exceeded"))
    mapping, source = resolve_columns(HEADERS, ROWS, provider=prov, config=MapperConfig())
    assert source == "heuristic"
    assert mapping.lat_column == "Latitude N"


def test_oracle_malformed_shapes_fall_back():
    for payload in [None, [], {}, {"latColumn": "Latitude N"}, {"latColumn": 1, "lngColumn": 2}, {"latColumn": "", "lngColumn": ""}]:
        prov = MockProvider(payload)
        _mapping, source = resolve_columns(HEADERS, ROWS, provider=prov, config=MapperConfig())
        assert source == "heuristic", payload


def test_oracle_not_called_without_headers():
    prov = MockProvider({"latColumn": "a", "lngColumn": "b"})
    mapping, source = resolve_columns([], [], provider=prov)
    assert source == "empty"
    assert prov.prompts == []
    assert mapping == ColumnMapping(lat_column="", lng_column="")


def test_validate_suggestion_accepts_snake_case_keys():
    m = validate_suggestion({"lat_column": "Latitude N", "lng_column": "Latitude N"}, HEADERS)
    assert m is not None and m.is_combined


def test_prompt_carries_headers_preferences_and_bounded_sample():
    prompt = build_prompt(HEADERS, ROWS, MapperConfig(sample_rows=3))
    for h in HEADERS:
        assert h in prompt
    assert '"Latitude N"' in prompt and '"Longitude E"' in prompt
    assert "gps" in prompt and "coordinates" in prompt
    assert "row-2" in prompt
    assert "row-3" not in prompt
