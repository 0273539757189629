"""
Schemas for test assembly and assembly progress endpoints.
"""
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from libs.domain_types import AssessmentGoal

from assessment.core.assembly import AssemblyPhase, AssemblyResult
from assessment.core.selection import SelectionWarning

from .blueprint import BlueprintSchema, ValidationIssueSchema


class AssemblyRequest(BaseModel):
    blueprint: BlueprintSchema
    template_id: Optional[uuid.UUID] = Field(
        None, description="Template the blueprint belongs to, echoed in progress events"
    )


class SelectionWarningSchema(BaseModel):
    level: str
    code: str
    message: str
    params: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_warning(cls, warning: SelectionWarning) -> "SelectionWarningSchema":
        return cls(**warning.to_dict())


class AssemblyResponse(BaseModel):
    session_id: uuid.UUID
    question_ids: List[uuid.UUID]
    question_count: int
    seed: Optional[int] = Field(None, description="Seed that reproduces this selection")
    warnings: List[SelectionWarningSchema]
    validation_warnings: List[ValidationIssueSchema]

    @classmethod
    def from_result(cls, session_id: uuid.UUID, result: AssemblyResult) -> "AssemblyResponse":
        return cls(
            session_id=session_id,
            question_ids=result.question_ids,
            question_count=len(result.question_ids),
            seed=result.seed,
            warnings=[SelectionWarningSchema.from_warning(w) for w in result.warnings],
            validation_warnings=[
                ValidationIssueSchema.from_issue(i) for i in result.validation_warnings
            ],
        )


class AssemblyProgressResponse(BaseModel):
    """Snapshot of a running assembly."""

    model_config = ConfigDict(from_attributes=True)

    session_id: uuid.UUID
    template_id: Optional[uuid.UUID] = None
    goal: AssessmentGoal
    total_competencies: int
    processed_competencies: int
    total_questions_selected: int
    phase: AssemblyPhase
    percent_complete: float
    started_at: datetime
    last_update: datetime
    elapsed_ms: int = Field(..., description="Milliseconds between start and last update")
