"""
Pydantic schemas for scorer weights.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class AutoWeights(BaseModel):
    """Weight coefficients passed into the auto-process scorer."""
    similarity: float = 1.0
    provider: float = 1.0
    duplicate: float = 1.0
    priority: float = 1.0


class AutoWeightsResponse(BaseModel):
    id: int
    key: str
    weight_similarity: Optional[float] = None
    weight_provider: Optional[float] = None
    weight_duplicate: Optional[float] = None
    weight_priority: Optional[float] = None
    description: Optional[str] = None
    updated_at: datetime

    model_config = {"from_attributes": True}


class AutoWeightsUpdate(BaseModel):
    """Partial update; omitted fields are left unchanged."""
    weight_similarity: Optional[float] = Field(default=None, ge=0, le=5)
    weight_provider: Optional[float] = Field(default=None, ge=0, le=5)
    weight_duplicate: Optional[float] = Field(default=None, ge=0, le=5)
    weight_priority: Optional[float] = Field(default=None, ge=0, le=5)
    description: Optional[str] = None
