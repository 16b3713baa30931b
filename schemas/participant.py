from typing import List, Optional
from pydantic import ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel
from schemas.question import CamelModel, QuestionType, Section, reject_null


class Answer(CamelModel):
    question_id: str
    question_type: QuestionType
    user_answer: str = ""
    is_correct: bool = False
    points_awarded: int = 0


class Participant(CamelModel):
    id: str = ""
    name: str = ""
    student_id: str = ""
    section: Section = "Other"
    started_at: int = 0
    completed_at: Optional[int] = None
    time_taken: Optional[int] = None
    score: int = 0
    total_points: int = 0
    answers: List[Answer] = Field(default_factory=list)
    submitted: bool = False
    created_at: Optional[str] = None

    @property
    def duration_ms(self) -> Optional[int]:
        if self.completed_at is None:
            return None
        return self.completed_at - self.started_at


class ParticipantCreate(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    name: str = Field(..., min_length=1, max_length=255)
    student_id: str = Field(..., min_length=1, max_length=64)
    section: Section = "Other"
    started_at: int
    score: int = 0
    total_points: int = 0
    answers: List[Answer] = Field(default_factory=list)
    submitted: bool = False


class ParticipantUpdate(CamelModel):
    """Fields that may be written on an existing participant."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    name: Optional[str] = None
    student_id: Optional[str] = None
    section: Optional[Section] = None
    started_at: Optional[int] = None
    completed_at: Optional[int] = None
    time_taken: Optional[int] = None
    score: Optional[int] = None
    total_points: Optional[int] = None
    answers: Optional[List[Answer]] = None
    submitted: Optional[bool] = None

    @field_validator("name", "student_id", "section", "started_at", "score", "total_points", "answers")
    @classmethod
    def _not_null(cls, value, info: ValidationInfo):
        return reject_null(value, info)

    @field_validator("submitted")
    @classmethod
    def _submit_only(cls, value):
        # Submission is one-way
        if value is not True:
            raise ValueError("submitted can only be set to true")
        return value
