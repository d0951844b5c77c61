import os
import sys

import pytest

# Ensure imports like `from app.main import app` work when pytest is run from repo root
BACKEND_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)


@pytest.fixture(autouse=True)
def _clean_mapper_env(monkeypatch):
    # Column conventions come from env; keep tests on the built-in defaults
    for key in list(os.environ):
        if key.startswith("MAPPER_") or key in ("ORACLE_SAMPLE_ROWS", "FILTER_KEYWORDS", "LABEL_FIELD"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def installation_rows():
    return [
        {"Project": "Valletta Hub", "Latitude N": "35.8989", "Longitude E": "14.5146", "Installation Type": "Roof", "Latento": "12"},
        {"Project": "Mdina Store", "Latitude N": "35,8859", "Longitude E": "14,4031", "Installation Type": "Ground", "Latento": "3.5 kW"},
        {"Project": "Blank", "Latitude N": "", "Longitude E": "", "Installation Type": "", "Latento": ""},
        {"Project": "Gozo Depot", "Latitude N": "36.0443", "Longitude E": "14.2512", "Installation Type": "Roof", "Latento": "4"},
        {"Project": "Typo", "Latitude N": "3589.89", "Longitude E": "14.5", "Installation Type": "Carport", "Latento": "n/a"},
    ]
