"""Pydantic schemas for pet analytics results."""

from __future__ import annotations

import datetime as dt
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class HealthStatus(str, Enum):
    """Coarse health indicator derived from the number of visits."""

    UNKNOWN = "Unknown"
    GOOD = "Good"
    MODERATE = "Moderate"
    HIGH_MAINTENANCE = "High Maintenance"


class PetAnalysis(BaseModel):
    """Result of analyzing a single pet."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: str
    age_in_years: int = Field(..., ge=0)
    visit_count: int = Field(..., ge=0)
    health_status: HealthStatus


class AnalyticsReport(BaseModel):
    """Aggregate statistics over every pet of every owner.

    Serialized with camelCase keys (``totalPets``, ``petsByType``, ...).
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    total_pets: int = Field(
        ...,
        ge=0,
        description="Number of pets analyzed.",
    )
    pets_by_type: dict[str, int] = Field(
        default_factory=dict,
        description="Pet count per pet type name.",
    )
    pets_by_health_status: dict[str, int] = Field(
        default_factory=dict,
        description="Pet count per health status.",
    )
    average_age: float = Field(
        0.0,
        description="Mean age in whole years (0.0 when there are no pets).",
    )
    total_visits: int = Field(
        0,
        ge=0,
        description="Sum of visits over all pets.",
    )
    analysis_date: dt.date = Field(
        ...,
        description="Day the report was computed.",
    )
