"""Collapse raw spreadsheet rows into one ApplicantRecord per applicant.

Each applicant's rows are folded through an immutable ``ScoreTally``; nothing
is shared between applicants or between calls, so the same input always
yields the same records.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from functools import reduce
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

import pandas as pd

from core.models import RECORD_COLUMNS, ApplicantRecord, RawRow, parse_score


logger = logging.getLogger(__name__)

# Checked in order; the first substring found in the lower-cased label wins, so
# "GRE Verbal Total" counts as verbal, never as a GRE total.
TEST_CLASSIFIERS = ("verbal", "quant", "gre", "ielts")

RowLike = Union[RawRow, Mapping[str, Any]]


@dataclass(frozen=True)
class DataQuality:
    total_rows: int = 0
    rows_missing_id: int = 0
    applicants_missing_gpa: int = 0
    unparseable_scores: int = 0
    unclassified_tests: int = 0
    scores_without_label: int = 0
    missing_gpa_ids: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_rows": self.total_rows,
            "rows_missing_id": self.rows_missing_id,
            "applicants_missing_gpa": self.applicants_missing_gpa,
            "unparseable_scores": self.unparseable_scores,
            "unclassified_tests": self.unclassified_tests,
            "scores_without_label": self.scores_without_label,
            "missing_gpa_ids": list(self.missing_gpa_ids),
        }


@dataclass(frozen=True)
class ReconcileResult:
    records: List[ApplicantRecord]
    quality: DataQuality


@dataclass(frozen=True)
class ScoreTally:
    verbal: float = 0.0
    quant: float = 0.0
    gre_total: float = 0.0
    ielts: float = 0.0
    unparseable: int = 0
    unclassified: int = 0
    unlabeled: int = 0

    def fold(self, row: RawRow) -> "ScoreTally":
        tally = self
        if row.verbal_score is not None:
            tally = replace(tally, verbal=max(tally.verbal, row.verbal_score))
        if row.quant_score is not None:
            tally = replace(tally, quant=max(tally.quant, row.quant_score))

        if row.score is None:
            return tally
        if not row.test_type:
            return replace(tally, unlabeled=tally.unlabeled + 1)

        parsed = parse_score(row.score)
        if parsed is None:
            logger.debug("Unparseable score %r for test %r", row.score, row.test_type)
            tally = replace(tally, unparseable=tally.unparseable + 1)
        score = parsed or 0.0

        kind = classify_test_type(row.test_type)
        if kind == "verbal":
            return replace(tally, verbal=max(tally.verbal, score))
        if kind == "quant":
            return replace(tally, quant=max(tally.quant, score))
        if kind == "gre":
            return replace(tally, gre_total=max(tally.gre_total, score))
        if kind == "ielts":
            return replace(tally, ielts=max(tally.ielts, score))
        return replace(tally, unclassified=tally.unclassified + 1)

    @property
    def final_gre_total(self) -> float:
        return self.gre_total if self.gre_total > 0 else self.verbal + self.quant


def classify_test_type(label: Optional[str]) -> Optional[str]:
    if not label:
        return None
    lowered = label.lower()
    for kind in TEST_CLASSIFIERS:
        if kind in lowered:
            return kind
    return None


def _as_raw_row(row: RowLike) -> RawRow:
    return row if isinstance(row, RawRow) else RawRow.from_mapping(row)


def group_rows(rows: Iterable[RawRow]) -> Dict[str, List[RawRow]]:
    groups: Dict[str, List[RawRow]] = {}
    for row in rows:
        if row.application_id is None:
            continue
        groups.setdefault(row.application_id, []).append(row)
    return groups


def _reconcile_group(app_id: str, rows: List[RawRow]) -> Tuple[ApplicantRecord, ScoreTally, bool]:
    base = next((r for r in rows if r.gpa is not None), None)
    if base is None:
        logger.info("Applicant %s missing GPA, defaulting to 0.", app_id)

    tally = reduce(lambda acc, r: acc.fold(r), rows, ScoreTally())
    record = ApplicantRecord(
        id=app_id,
        gpa=base.gpa if base is not None else 0.0,
        gre_verbal=tally.verbal,
        gre_quant=tally.quant,
        gre_total=tally.final_gre_total,
        ielts_score=tally.ielts,
        country=(base.citizenship_country or "") if base is not None else "",
        program=(base.program_name or "") if base is not None else "",
    )
    return record, tally, base is None


def run_reconciliation(raw_rows: Iterable[RowLike]) -> ReconcileResult:
    rows = [_as_raw_row(r) for r in raw_rows]
    missing_id = sum(1 for r in rows if r.application_id is None)
    if missing_id:
        logger.warning("Skipped %d rows without an Application ID.", missing_id)

    records: List[ApplicantRecord] = []
    missing_gpa_ids: List[str] = []
    unparseable = unclassified = unlabeled = 0
    for app_id, group in group_rows(rows).items():
        record, tally, missing_gpa = _reconcile_group(app_id, group)
        records.append(record)
        if missing_gpa:
            missing_gpa_ids.append(app_id)
        unparseable += tally.unparseable
        unclassified += tally.unclassified
        unlabeled += tally.unlabeled

    quality = DataQuality(
        total_rows=len(rows),
        rows_missing_id=missing_id,
        applicants_missing_gpa=len(missing_gpa_ids),
        unparseable_scores=unparseable,
        unclassified_tests=unclassified,
        scores_without_label=unlabeled,
        missing_gpa_ids=missing_gpa_ids,
    )
    logger.info("Reconciled %d rows into %d applicants.", len(rows), len(records))
    if missing_gpa_ids or unparseable:
        logger.warning(
            "Data quality: %d applicants without GPA, %d unparseable scores.",
            len(missing_gpa_ids),
            unparseable,
        )
    return ReconcileResult(records=records, quality=quality)


def reconcile(raw_rows: Iterable[RowLike]) -> List[ApplicantRecord]:
    return run_reconciliation(raw_rows).records


def records_to_frame(records: Iterable[ApplicantRecord]) -> pd.DataFrame:
    rows = [r.to_dict() for r in records]
    if not rows:
        return pd.DataFrame(columns=RECORD_COLUMNS)
    return pd.DataFrame(rows, columns=RECORD_COLUMNS)
