# Make the repo root importable; shared row factories and sample sources.
import sys
from pathlib import Path

import pandas as pd
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture(autouse=True)
def _fresh_data_cache():
    from core import data

    data._load_dashboard_data_cached.cache_clear()
    yield
    data._load_dashboard_data_cached.cache_clear()


@pytest.fixture()
def row_factory():
    # Spreadsheet-shaped rows keyed by the original column headers
    def make(app_id="A1", **kw):
        row = {"Application ID": app_id}
        mapping = {
            "gpa": "GPA",
            "test_type": "Test Type",
            "score": "Score",
            "country": "Citizenship Country",
            "program": "Program Name",
            "verbal": "Verbal",
            "quant": "Quantitative",
        }
        for key, value in kw.items():
            row[mapping.get(key, key)] = value
        return row

    return make


@pytest.fixture()
def sample_rows(row_factory):
    return [
        row_factory("A1", gpa=3.5, country="USA", program="CS", test_type="IELTS", score=7),
        row_factory("A1", test_type="GRE Verbal", score=160),
        row_factory("A1", test_type="GRE Quant", score=158),
        row_factory("A2", gpa=3.0, country="India", program="Data Science", test_type="IELTS", score=6.5),
        row_factory("A2", test_type="IELTS", score="7.0"),
        row_factory("A3", country="UK", test_type="GRE", score=320),
    ]


@pytest.fixture()
def sample_csv(tmp_path, sample_rows):
    path = tmp_path / "applicants.csv"
    pd.DataFrame(sample_rows).to_csv(path, index=False)
    return path
