from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class ApplicantFiltersModel(BaseModel):
    search: str = ""
    countries: List[str] = Field(default_factory=list)
    programs: List[str] = Field(default_factory=list)
    min_gpa: Optional[float] = None
    max_gpa: Optional[float] = None
    top_n: int = 15


class ApplicantModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    gpa: float = Field(default=0.0, alias="GPA")
    gre_verbal: float = Field(default=0.0, alias="GRE_Verbal")
    gre_quant: float = Field(default=0.0, alias="GRE_Quant")
    gre_total: float = Field(default=0.0, alias="GRE_Total")
    ielts_score: float = Field(default=0.0, alias="IELTS_Score")
    country: str = Field(default="", alias="Country")
    program: str = Field(default="", alias="Program")


class ErrorResponse(BaseModel):
    error: str
    type: str
