from __future__ import annotations

import math
import numbers
import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import pandas as pd


RAW_COLUMNS = {
    "Application ID": "application_id",
    "Application Id": "application_id",
    "ApplicationID": "application_id",
    "App ID": "application_id",
    "applicationId": "application_id",
    "id": "application_id",
    "GPA": "gpa",
    "Test Type": "test_type",
    "Test": "test_type",
    "testType": "test_type",
    "Score": "score",
    "Test Score": "score",
    "Verbal": "verbal_score",
    "Verbal Score": "verbal_score",
    "verbalScore": "verbal_score",
    "Quantitative": "quant_score",
    "Quantitative Score": "quant_score",
    "Quant": "quant_score",
    "quantScore": "quant_score",
    "Citizenship Country": "citizenship_country",
    "Country": "citizenship_country",
    "citizenshipCountry": "citizenship_country",
    "Program Name": "program_name",
    "Program": "program_name",
    "programName": "program_name",
}

RECORD_COLUMNS = ["id", "GPA", "GRE_Verbal", "GRE_Quant", "GRE_Total", "IELTS_Score", "Country", "Program"]

_STRICT_NUMBER = re.compile(r"^[-+]?(\d+(\.\d*)?|\.\d+)([eE][-+]?\d+)?$")
_LEADING_NUMBER = re.compile(r"^\s*([-+]?(\d+(\.\d*)?|\.\d+)([eE][-+]?\d+)?)")


def is_absent(value: object) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def parse_number(value: object) -> Optional[float]:
    """Strict numeric parse: numbers, or text that is a whole decimal literal."""
    if is_absent(value) or isinstance(value, bool):
        return None
    if isinstance(value, numbers.Real):
        out = float(value)
    else:
        s = str(value).strip()
        if not _STRICT_NUMBER.match(s):
            return None
        out = float(s)
    if math.isnan(out) or math.isinf(out):
        return None
    return out


def parse_score(value: object) -> Optional[float]:
    """Leading-number parse for free-form score cells.

    Returns ``None`` when the text has no leading number, which callers treat
    as a score of 0.
    """
    if is_absent(value) or isinstance(value, bool):
        return None
    if isinstance(value, numbers.Real):
        return parse_number(value)
    match = _LEADING_NUMBER.match(str(value))
    if not match:
        return None
    return parse_number(match.group(1))


def canonical_id(value: object) -> Optional[str]:
    if is_absent(value):
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def clean_text(value: object) -> Optional[str]:
    if is_absent(value):
        return None
    return str(value).strip()


def canonical_key(key: object) -> str:
    k = str(key).strip()
    return RAW_COLUMNS.get(k, k)


@dataclass(frozen=True)
class RawRow:
    """One spreadsheet row; an applicant usually owns several (one per test sitting)."""

    application_id: Optional[str]
    gpa: Optional[float] = None
    test_type: Optional[str] = None
    score: Any = None
    verbal_score: Optional[float] = None
    quant_score: Optional[float] = None
    citizenship_country: Optional[str] = None
    program_name: Optional[str] = None

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> "RawRow":
        """Build a row from spreadsheet headers, camelCase names or snake_case aliases.

        When two keys alias the same field the first one wins, matching how
        duplicate columns are dropped on load.

        ``gpa``, ``verbal_score`` and ``quant_score`` keep only strict numbers;
        ``score`` keeps the raw cell so the pipeline can tell "blank" from
        "unparseable".
        """
        fields: Dict[str, Any] = {}
        for k, v in row.items():
            fields.setdefault(canonical_key(k), v)
        score = fields.get("score")
        return cls(
            application_id=canonical_id(fields.get("application_id")),
            gpa=parse_number(fields.get("gpa")),
            test_type=clean_text(fields.get("test_type")),
            score=None if is_absent(score) else score,
            verbal_score=parse_number(fields.get("verbal_score")),
            quant_score=parse_number(fields.get("quant_score")),
            citizenship_country=clean_text(fields.get("citizenship_country")),
            program_name=clean_text(fields.get("program_name")),
        )


@dataclass(frozen=True)
class ApplicantRecord:
    id: str
    gpa: float = 0.0
    gre_verbal: float = 0.0
    gre_quant: float = 0.0
    gre_total: float = 0.0
    ielts_score: float = 0.0
    country: str = ""
    program: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "GPA": self.gpa,
            "GRE_Verbal": self.gre_verbal,
            "GRE_Quant": self.gre_quant,
            "GRE_Total": self.gre_total,
            "IELTS_Score": self.ielts_score,
            "Country": self.country,
            "Program": self.program,
        }
