"""
Pydantic schemas for request/response validation.
"""
from .assembly import (
    AssemblyProgressResponse,
    AssemblyRequest,
    AssemblyResponse,
    SelectionWarningSchema,
)
from .blueprint import (
    BlueprintSchema,
    BlueprintValidationRequest,
    BlueprintValidationResponse,
    JobFitBlueprintSchema,
    OverviewBlueprintSchema,
    TeamFitBlueprintSchema,
    ValidationIssueSchema,
)
from .dif import DifAnalysisRequest, DifAnalysisResponse, DifItemResponse
from .scoring import (
    AnswerSchema,
    CompetencyScoreResponse,
    IndicatorScoreResponse,
    ScoreRequest,
    ScoringResultResponse,
    TeamFitMetricsResponse,
)

__all__ = [
    "AssemblyProgressResponse",
    "AssemblyRequest",
    "AssemblyResponse",
    "SelectionWarningSchema",
    "BlueprintSchema",
    "BlueprintValidationRequest",
    "BlueprintValidationResponse",
    "JobFitBlueprintSchema",
    "OverviewBlueprintSchema",
    "TeamFitBlueprintSchema",
    "ValidationIssueSchema",
    "DifAnalysisRequest",
    "DifAnalysisResponse",
    "DifItemResponse",
    "AnswerSchema",
    "CompetencyScoreResponse",
    "IndicatorScoreResponse",
    "ScoreRequest",
    "ScoringResultResponse",
    "TeamFitMetricsResponse",
]
