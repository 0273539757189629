"""
Schemas for Mantel-Haenszel DIF analysis.
"""
import uuid
from typing import List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, model_validator

from assessment.core.dif import DifCategory


class DifAnalysisRequest(BaseModel):
    """Either ``competency_id`` or ``question_ids`` selects the items."""

    competency_id: Optional[uuid.UUID] = None
    question_ids: List[uuid.UUID] = Field(default_factory=list)
    focal_session_ids: Set[uuid.UUID] = Field(..., description="Focal group sessions")
    reference_session_ids: Set[uuid.UUID] = Field(..., description="Reference group sessions")
    focal_label: str = Field("focal", max_length=100)
    reference_label: str = Field("reference", max_length=100)

    @model_validator(mode="after")
    def require_item_selector(self) -> "DifAnalysisRequest":
        if self.competency_id is None and not self.question_ids:
            raise ValueError("Provide competency_id or question_ids")
        return self


class DifItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    question_id: uuid.UUID
    mh_odds_ratio: float
    mh_d_dif: float = Field(..., description="ETS delta: -2.35 * ln(alpha_MH)")
    mh_chi_square: float
    p_value: float
    category: DifCategory
    direction: str
    strata_used: int


class DifAnalysisResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    competency_id: Optional[uuid.UUID] = None
    focal_group_label: str
    reference_group_label: str
    focal_group_size: int
    reference_group_size: int
    total_items: int
    items_with_moderate_dif: int
    items_with_large_dif: int
    item_results: List[DifItemResponse]
