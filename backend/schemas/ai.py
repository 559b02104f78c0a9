"""
Shapes the AI text service must produce. Anything that fails these models is
treated as malformed output.
"""
from typing import Annotated, List, Optional

from pydantic import ConfigDict, Field, field_validator

from db.models import QuestionType
from schemas.common import CamelModel

Score = Annotated[float, Field(ge=0, le=10)]


class PersonalInfo(CamelModel):
    model_config = ConfigDict(extra="allow")

    name: str = ""
    email: str = ""
    phone: Optional[str] = None
    address: Optional[str] = None
    linkedin: Optional[str] = None
    github: Optional[str] = None
    website: Optional[str] = None


class WorkExperience(CamelModel):
    model_config = ConfigDict(extra="allow")

    title: str = ""
    company: str = ""
    duration: str = ""
    location: Optional[str] = None
    description: str = ""
    skills: List[str] = []
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class Education(CamelModel):
    model_config = ConfigDict(extra="allow")

    degree: str = ""
    institution: str = ""
    graduation_year: Optional[str] = None
    gpa: Optional[str] = None
    relevant_coursework: List[str] = []


class ParsedResume(CamelModel):
    model_config = ConfigDict(extra="allow")

    personal_info: PersonalInfo = Field(default_factory=PersonalInfo)
    work_experience: List[WorkExperience] = []
    education: List[Education] = []
    skills: List[str] = []
    summary: Optional[str] = None


class GeneratedQuestion(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    question_text: str = Field(min_length=1)
    question_type: QuestionType = QuestionType.experience
    is_required: bool = True

    @field_validator("question_type", mode="before")
    @classmethod
    def _default_type(cls, v):
        if v is None:
            return QuestionType.experience
        if isinstance(v, str) and v.strip().lower() in QuestionType.__members__:
            return v.strip().lower()
        return QuestionType.experience


class Evaluation(CamelModel):
    relevance: Score
    clarity: Score
    completeness: Score
    technical_accuracy: Optional[float] = Field(default=None, ge=0, le=10)
    overall_score: Score
    strengths: List[str] = []
    improvements: List[str] = []
    detailed_feedback: str = ""


class OverallFeedback(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    overall_score: Optional[float] = Field(default=None, ge=0, le=10)
    feedback: str = Field(min_length=1)
    strengths: List[str] = []
    improvements: List[str] = []
