# MIT License
# Copyright (c) 2025 Hashborn

from pydantic import BaseModel, ConfigDict, Field
from .arithmetic import UINT32_MAX, UINT96_MAX

class Checkpoint(BaseModel):
    """Weight that became effective at time_index and holds until superseded."""
    model_config = ConfigDict(frozen=True)

    time_index: int = Field(..., ge=0, le=UINT32_MAX, description="Block height the weight took effect")
    weight: int = Field(..., ge=0, le=UINT96_MAX, description="Delegated weight (uint96)")

class WeightChanged(BaseModel):
    """Notification emitted on every checkpoint write, even when the weight is unchanged."""
    delegate: str
    previous_weight: int
    new_weight: int
    time_index: int
