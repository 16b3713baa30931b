from typing import Annotated, Any, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

QuestionType = Literal["syntax", "mcq", "casestudy"]
Section = Literal["C", "Python", "Other", "Common"]

COMMON_SECTION = "Common"
# Sections a participant can pick at registration
PARTICIPANT_SECTIONS = ("Python", "C", "Other")
SECTIONS = ("C", "Python", "Other", "Common")


def coerce_int(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    try:
        return int(value)
    except (TypeError, ValueError):
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return 0


def reject_null(value: Any, info: ValidationInfo) -> Any:
    if value is None:
        raise ValueError(f"{info.field_name} cannot be null")
    return value


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class QuestionBase(CamelModel):
    id: str = ""
    section: Section = "Other"
    title: str = ""
    description: str = ""
    points: int = 0
    order: int = 0

    @field_validator("section", mode="before")
    @classmethod
    def _default_section(cls, value):
        # Items stored without a section belong to "Other"
        return value or "Other"

    @field_validator("points", "order", mode="before")
    @classmethod
    def _coerce_numbers(cls, value):
        return coerce_int(value)


class SyntaxQuestion(QuestionBase):
    """Find-and-fix: the participant submits the corrected source."""
    type: Literal["syntax"] = "syntax"
    language: str = ""
    buggy_code: str = ""
    correct_code: str = ""


class McqQuestion(QuestionBase):
    """Fill-the-blank over a code snippet with a fixed list of options."""
    type: Literal["mcq"] = "mcq"
    language: str = ""
    code_snippet: str = ""
    options: List[str] = Field(default_factory=list)
    correct_option_index: int = 0


class CaseStudyQuestion(QuestionBase):
    """Free-text answer, matched case-insensitively against accepted answers."""
    type: Literal["casestudy"] = "casestudy"
    scenario: str = ""
    accepted_answers: List[str] = Field(default_factory=list)


Question = Annotated[
    Union[SyntaxQuestion, McqQuestion, CaseStudyQuestion],
    Field(discriminator="type"),
]

QuestionAdapter: TypeAdapter = TypeAdapter(Question)
QuestionListAdapter: TypeAdapter = TypeAdapter(List[Question])


def parse_question(data: dict) -> Union[SyntaxQuestion, McqQuestion, CaseStudyQuestion]:
    return QuestionAdapter.validate_python(data)


def parse_questions(items: list) -> List[Union[SyntaxQuestion, McqQuestion, CaseStudyQuestion]]:
    return QuestionListAdapter.validate_python(items)


class QuestionUpdate(CamelModel):
    """Fields an admin may change on an existing question. Anything else is rejected."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    type: Optional[QuestionType] = None
    section: Optional[Section] = None
    title: Optional[str] = None
    description: Optional[str] = None
    points: Optional[int] = Field(None, ge=0)
    order: Optional[int] = None
    language: Optional[str] = None
    buggy_code: Optional[str] = None
    correct_code: Optional[str] = None
    code_snippet: Optional[str] = None
    options: Optional[List[str]] = None
    correct_option_index: Optional[int] = Field(None, ge=0)
    scenario: Optional[str] = None
    accepted_answers: Optional[List[str]] = None

    @field_validator("type", "section", "title", "description", "points", "order")
    @classmethod
    def _not_null(cls, value, info: ValidationInfo):
        # Omit a field to leave it unchanged; these columns cannot be cleared
        return reject_null(value, info)


class OrderUpdate(CamelModel):
    id: str
    order: int


class BatchRequest(CamelModel):
    """Body of POST /questions/batch."""
    action: str = ""
    items: List[dict] = Field(default_factory=list)
    ids: List[str] = Field(default_factory=list)
    updates: List[OrderUpdate] = Field(default_factory=list)
    section: Optional[Section] = None
