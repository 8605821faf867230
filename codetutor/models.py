"""Pydantic models for type safety."""

from enum import Enum
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class UnderstandingLevel(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    PARTIAL = "partial"
    NEEDS_WORK = "needs_work"


class Phase(str, Enum):
    """Explain-it-back session state."""
    EXPLAINING = "explaining"
    VALIDATING = "validating"
    RESULT = "result"


DEGRADED_FEEDBACK = "Failed to validate your explanation. Please try again."


class ValidationRequest(BaseModel):
    """Payload sent to the evaluator."""
    code: str
    language: str
    explanation: str


class ValidationVerdict(BaseModel):
    """Evaluator judgment of a learner's explanation.

    Accepts the evaluator's camelCase wire names as well as the field names.
    `passed` and `understanding_level` are independent; nothing here checks
    that they agree.
    """
    model_config = ConfigDict(populate_by_name=True)

    passed: bool
    understanding_level: UnderstandingLevel = Field(
        validation_alias=AliasChoices("understanding_level", "understanding", "understandingLevel"),
        serialization_alias="understanding",
    )
    feedback: str
    concepts_covered: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("concepts_covered", "conceptsCovered"),
        serialization_alias="conceptsCovered",
    )
    concepts_missed: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("concepts_missed", "conceptsMissed"),
        serialization_alias="conceptsMissed",
    )
    follow_up_questions: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("follow_up_questions", "followUpQuestions"),
        serialization_alias="followUpQuestions",
    )

    @classmethod
    def degraded(cls) -> "ValidationVerdict":
        """Stand-in verdict used when the evaluator could not be reached."""
        return cls(
            passed=False,
            understanding_level=UnderstandingLevel.NEEDS_WORK,
            feedback=DEGRADED_FEEDBACK,
        )


class Location(BaseModel):
    file: str
    line: int


class StuckSignal(BaseModel):
    """Diagnostic signal from the stuck detector."""
    model_config = ConfigDict(populate_by_name=True)

    reason_code: str = Field(
        default="",
        validation_alias=AliasChoices("reason_code", "reasonCode", "reason"),
    )
    location: Optional[Location] = None


class NudgeAction(BaseModel):
    id: str  # "dismiss" | "request_hint"
    label: str


class Advisory(BaseModel):
    """Learner-facing nudge content."""
    message: str
    context_line: Optional[str] = None
    actions: List[NudgeAction] = []
