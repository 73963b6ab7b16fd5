"""Exam question and grading result. Neither is persisted."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class ExamKind(StrEnum):
    CODE = "code"
    CONCEPT = "concept"


class ExamQuestion(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question: str
    kind: ExamKind = Field(default=ExamKind.CONCEPT, alias="type")


class ExamResult(BaseModel):
    passed: bool
    feedback: str = ""
