"""Probe request models.

This module defines the requests issued against the restarted backend.
"""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class EntityType(StrEnum):
    """Entity kinds accepted by the land title counts endpoint."""

    ORGANIZATION = "organization"
    INDIVIDUAL = "individual"


class LandTitleCountsRequest(BaseModel):
    """Body for ``POST /api/land-title/counts``.

    Attributes:
        type: Whether the search targets an organization or an individual.
        abn: Australian Business Number of the organization (may be blank).
        states: State codes to search; at least one is required.
    """

    type: EntityType = Field(default=EntityType.ORGANIZATION)
    abn: str = Field(default="", max_length=20)
    states: list[str] = Field(..., min_length=1)

    @field_validator("states")
    @classmethod
    def normalize_states(cls, v: list[str]) -> list[str]:
        states = [s.strip().upper() for s in v if s.strip()]
        if not states:
            raise ValueError("At least one state is required")
        return states


class ProbeSpec(BaseModel):
    """A single HTTP probe against the backend.

    Attributes:
        name: Short label shown in reports.
        method: HTTP method.
        path: Path relative to the server base URL.
        params: Query string parameters.
        json_body: Optional JSON payload.
        accepted_statuses: Status codes counted as a working route.
    """

    name: str
    method: str = "GET"
    path: str
    params: dict[str, str] = Field(default_factory=dict)
    json_body: dict[str, Any] | None = None
    accepted_statuses: frozenset[int] = frozenset({200, 400})

    @field_validator("method")
    @classmethod
    def upper_method(cls, v: str) -> str:
        return v.upper()
