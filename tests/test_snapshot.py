import json

from core import snapshot
from core.models import ApplicantRecord


def test_write_snapshot_creates_parent_dirs(tmp_path):
    out = tmp_path / "public" / "applicants.json"
    snapshot.write_snapshot([ApplicantRecord(id="A1", gpa=3.5, country="USA")], out)
    payload = json.loads(out.read_text(encoding="utf-8"))
    assert payload == [
        {"id": "A1", "GPA": 3.5, "GRE_Verbal": 0.0, "GRE_Quant": 0.0, "GRE_Total": 0.0, "IELTS_Score": 0.0, "Country": "USA", "Program": ""}
    ]


def test_main_generates_snapshot(sample_csv, tmp_path):
    out = tmp_path / "out" / "applicants.json"
    assert snapshot.main(["--source", str(sample_csv), "--out", str(out)]) == 0
    payload = json.loads(out.read_text(encoding="utf-8"))
    assert [r["id"] for r in payload] == ["A1", "A2", "A3"]
    assert payload[0]["GRE_Total"] == 318


def test_main_reports_missing_source(tmp_path):
    out = tmp_path / "applicants.json"
    assert snapshot.main(["--source", str(tmp_path / "missing.xlsx"), "--out", str(out)]) == 1
    assert not out.exists()
