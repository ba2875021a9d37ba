from __future__ import annotations

from enum import Enum
from typing import Any, Optional
import math
import uuid

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StepKind(str, Enum):
    BLOOM = "bloom"
    POUR = "pour"


def new_step_id() -> str:
    return uuid.uuid4().hex


def _blank_to_zero(v: Any) -> Any:
    """Editor fields arrive as text; an emptied field means zero."""
    if v is None:
        return 0
    if isinstance(v, str):
        v = v.strip()
        if v == "":
            return 0
        # non-numeric text raises here and is rejected at the model boundary
        return float(v)
    return v


class Step(BaseModel):
    """One bloom or pour segment of a brew."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_step_id)
    kind: StepKind = StepKind.POUR
    name: str = ""
    water: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    time: int = Field(default=0, ge=0)
    description: Optional[str] = ""

    @field_validator("water", mode="before")
    @classmethod
    def _coerce_water(cls, v: Any) -> Any:
        v = _blank_to_zero(v)
        if isinstance(v, (int, float)) and not isinstance(v, bool) and v < 0:
            return 0.0
        return v

    @field_validator("time", mode="before")
    @classmethod
    def _coerce_time(cls, v: Any) -> Any:
        v = _blank_to_zero(v)
        if isinstance(v, float):
            if not math.isfinite(v):
                raise ValueError("time must be a finite number of seconds")
            v = int(round(v))
        if isinstance(v, int) and not isinstance(v, bool) and v < 0:
            return 0
        return v

    @field_validator("description", mode="before")
    @classmethod
    def _coerce_description(cls, v: Any) -> Any:
        return "" if v is None else v
