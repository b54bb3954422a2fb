import random

from core.models import ApplicantRecord, RawRow
from core.reconcile import classify_test_type, records_to_frame, reconcile, run_reconciliation


def _by_id(records):
    return {r.id: r for r in records}


def test_scenario_single_applicant(row_factory):
    rows = [
        row_factory("A1", gpa=3.5, country="USA", program="CS", test_type="IELTS", score=7),
        row_factory("A1", test_type="GRE Verbal", score=160),
        row_factory("A1", test_type="GRE Quant", score=158),
    ]
    [record] = reconcile(rows)
    assert record.to_dict() == {
        "id": "A1",
        "GPA": 3.5,
        "GRE_Verbal": 160,
        "GRE_Quant": 158,
        "GRE_Total": 318,
        "IELTS_Score": 7,
        "Country": "USA",
        "Program": "CS",
    }


def test_one_record_per_application_id(sample_rows):
    records = reconcile(sample_rows)
    assert len(records) == 3
    assert [r.id for r in records] == ["A1", "A2", "A3"]


def test_numeric_and_text_ids_share_a_group(row_factory):
    rows = [row_factory(1001, gpa=3.0), row_factory("1001", test_type="IELTS", score=6), row_factory(1001.0, test_type="IELTS", score=7)]
    [record] = reconcile(rows)
    assert record.id == "1001"
    assert record.ielts_score == 7.0


def test_reconcile_is_order_independent(sample_rows):
    first = _by_id(reconcile(sample_rows))
    shuffled = list(sample_rows)
    random.Random(7).shuffle(shuffled)
    assert _by_id(reconcile(shuffled)) == first
    assert _by_id(reconcile(sample_rows)) == first


def test_missing_gpa_defaults_to_zero_and_blank_fields(row_factory):
    rows = [row_factory("B1", country="UK", program="EE", test_type="GRE", score=320), row_factory("B1", gpa="n/a")]
    result = run_reconciliation(rows)
    [record] = result.records
    assert record.gpa == 0
    assert record.country == ""
    assert record.program == ""
    assert result.quality.applicants_missing_gpa == 1
    assert result.quality.missing_gpa_ids == ["B1"]


def test_base_fields_come_from_first_row_with_numeric_gpa(row_factory):
    rows = [
        row_factory("C1", gpa="abc", country="Nowhere", program="X"),
        row_factory("C1", gpa="3.4", country="Canada", program="Physics"),
        row_factory("C1", gpa=3.9, country="Mexico", program="Math"),
    ]
    [record] = reconcile(rows)
    assert (record.gpa, record.country, record.program) == (3.4, "Canada", "Physics")


def test_explicit_gre_total_wins_over_sum(row_factory):
    rows = [
        row_factory("D1", gpa=3.0, test_type="GRE", score=320),
        row_factory("D1", test_type="Verbal", score=160),
        row_factory("D1", test_type="Quant", score=155),
    ]
    [record] = reconcile(rows)
    assert record.gre_total == 320
    assert record.gre_verbal == 160
    assert record.gre_quant == 155


def test_gre_total_falls_back_to_section_sum(row_factory):
    rows = [row_factory("D2", test_type="Verbal", score=160), row_factory("D2", test_type="Quant", score=155)]
    [record] = reconcile(rows)
    assert record.gre_total == 315


def test_dedicated_section_columns_feed_maxima(row_factory):
    rows = [
        row_factory("E1", gpa=3.2, verbal=150, quant="162"),
        row_factory("E1", test_type="GRE Verbal", score=155),
        row_factory("E1", verbal="bad", quant=158),
    ]
    [record] = reconcile(rows)
    assert record.gre_verbal == 155
    assert record.gre_quant == 162
    assert record.gre_total == 317


def test_ielts_takes_maximum(row_factory):
    rows = [row_factory("F1", test_type="IELTS", score=6.5), row_factory("F1", test_type="ielts academic", score=7.0)]
    [record] = reconcile(rows)
    assert record.ielts_score == 7.0


def test_malformed_score_counts_as_zero(row_factory):
    rows = [
        row_factory("G1", gpa=3.3, test_type="IELTS", score="N/A"),
        row_factory("G1", test_type="IELTS", score=6.5),
    ]
    result = run_reconciliation(rows)
    [record] = result.records
    assert record.ielts_score == 6.5
    assert result.quality.unparseable_scores == 1


def test_leading_number_in_score_text(row_factory):
    [record] = reconcile([row_factory("G2", test_type="IELTS", score="7.5 overall")])
    assert record.ielts_score == 7.5


def test_first_matching_label_wins(row_factory):
    # "GRE Verbal Total" matches both "verbal" and "gre"; verbal is checked first.
    [record] = reconcile([row_factory("H1", test_type="GRE Verbal Total", score=165)])
    assert record.gre_verbal == 165
    assert record.gre_total == 165
    assert classify_test_type("GRE Verbal Total") == "verbal"
    assert classify_test_type("Quantitative Reasoning") == "quant"
    assert classify_test_type("GRE General") == "gre"
    assert classify_test_type("TOEFL") is None


def test_unmatched_and_unlabeled_scores_contribute_nothing(row_factory):
    rows = [
        row_factory("I1", gpa=3.6, test_type="TOEFL", score=105),
        row_factory("I1", score=99),
    ]
    result = run_reconciliation(rows)
    [record] = result.records
    assert (record.gre_total, record.ielts_score) == (0, 0)
    assert result.quality.unclassified_tests == 1
    assert result.quality.scores_without_label == 1


def test_rows_without_id_are_skipped(row_factory):
    rows = [row_factory(None, gpa=3.0), row_factory("", gpa=2.0), row_factory("J1", gpa=3.7)]
    result = run_reconciliation(rows)
    assert [r.id for r in result.records] == ["J1"]
    assert result.quality.rows_missing_id == 2
    assert result.quality.total_rows == 3


def test_accepts_prebuilt_raw_rows():
    rows = [RawRow(application_id="K1", gpa=3.0, test_type="IELTS", score=8)]
    assert reconcile(rows) == [ApplicantRecord(id="K1", gpa=3.0, ielts_score=8.0)]


def test_empty_input_yields_empty_frame():
    assert reconcile([]) == []
    frame = records_to_frame([])
    assert frame.empty
    assert list(frame.columns) == ["id", "GPA", "GRE_Verbal", "GRE_Quant", "GRE_Total", "IELTS_Score", "Country", "Program"]


def test_records_to_frame_uses_downstream_names(sample_rows):
    frame = records_to_frame(reconcile(sample_rows))
    assert frame.loc[frame["id"] == "A3", "GRE_Total"].iloc[0] == 320
    assert frame.loc[frame["id"] == "A2", "IELTS_Score"].iloc[0] == 7.0


def test_scenario_with_record_style_keys():
    rows = [
        {"id": "A1", "GPA": 3.5, "Country": "USA", "Program": "CS", "testType": "IELTS", "score": 7},
        {"id": "A1", "testType": "GRE Verbal", "score": 160},
        {"id": "A1", "testType": "GRE Quant", "score": 158},
    ]
    [record] = reconcile(rows)
    assert record.to_dict() == {
        "id": "A1",
        "GPA": 3.5,
        "GRE_Verbal": 160,
        "GRE_Quant": 158,
        "GRE_Total": 318,
        "IELTS_Score": 7,
        "Country": "USA",
        "Program": "CS",
    }


def test_camel_case_field_names():
    rows = [
        {"applicationId": "B7", "gpa": "3.6", "citizenshipCountry": "India", "programName": "Data Science", "verbalScore": 158, "quantScore": 166},
        {"applicationId": "B7", "testType": "IELTS", "score": "7.5"},
    ]
    [record] = reconcile(rows)
    assert (record.id, record.gpa, record.country, record.program) == ("B7", 3.6, "India", "Data Science")
    assert (record.gre_verbal, record.gre_quant, record.gre_total, record.ielts_score) == (158, 166, 324, 7.5)
