"""Pydantic validators for Stow Kiosk API requests."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..state.models import (
    VALID_BIN_TYPES,
    VALID_INDICATORS,
    VALID_POSITIONS,
    VALID_PRIORITIES,
    VALID_STATUSES,
)


class StationUpdateRequest(BaseModel):
    """Partial station update; unknown fields are rejected."""
    model_config = ConfigDict(extra='forbid', populate_by_name=True)

    status: Optional[str] = Field(None, description="New status value")
    end_indicator: Optional[str] = Field(None, alias='endIndicator', description="Hi or Lo")

    @field_validator('status')
    @classmethod
    def validate_status(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in VALID_STATUSES:
            raise ValueError("Invalid status. Must be AQ, PS, or Inactive.")
        return v

    @field_validator('end_indicator')
    @classmethod
    def validate_end_indicator(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in VALID_INDICATORS:
            raise ValueError("Invalid end indicator. Must be Hi or Lo.")
        return v


class SafetyMessageCreateRequest(BaseModel):
    text: str = Field(..., description="Message shown on the kiosks")
    priority: str = Field(default='normal', description="normal or urgent")

    @field_validator('text')
    @classmethod
    def validate_text(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Safety message text is required")
        if len(v) > 500:
            raise ValueError("Safety message must be 500 characters or less")
        return v.strip()

    @field_validator('priority')
    @classmethod
    def validate_priority(cls, v: str) -> str:
        if v not in VALID_PRIORITIES:
            raise ValueError("Priority must be normal or urgent")
        return v


class SafetyMessageUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: Optional[str] = None
    priority: Optional[str] = None
    is_active: Optional[bool] = Field(None, alias='isActive')

    @field_validator('text')
    @classmethod
    def validate_text(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Safety message text cannot be empty")
        return v

    @field_validator('priority')
    @classmethod
    def validate_priority(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in VALID_PRIORITIES:
            raise ValueError("Priority must be normal or urgent")
        return v


class AvailableSpaceCreateRequest(BaseModel):
    aisle: int = Field(..., ge=1)
    section: str
    position: str
    type: str
    percent: float = Field(..., ge=0, le=100)

    @field_validator('section', mode='before')
    @classmethod
    def coerce_section(cls, v) -> str:
        return str(v)

    @field_validator('position')
    @classmethod
    def validate_position(cls, v: str) -> str:
        if v not in VALID_POSITIONS:
            raise ValueError("Position must be one of: top, middle, bottom")
        return v

    @field_validator('type')
    @classmethod
    def validate_type(cls, v: str) -> str:
        if v not in VALID_BIN_TYPES:
            raise ValueError("Type must be Library or Library Deep")
        return v


class AvailableSpaceUpdateRequest(BaseModel):
    percent: float = Field(..., ge=0, le=100, description="Available space, 0-100")


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
