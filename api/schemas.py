"""API Request/Response schemas for the certweb execution service."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RunRequest(BaseModel):
    """Decoded ``jsonData`` form field of a run request.

    Besides the selected test ids the payload carries one entry per form
    field; those are kept as extra attributes and validated against the
    form layout.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    selected_options: list[str] = Field(default_factory=list, alias="selectedOptions")

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class RunResponse(BaseModel):
    """Response for a completed run."""
    message: str


class TierLevels(BaseModel):
    Extended: str
    FarEdge: str
    NonTelco: str
    Telco: str


class ClassificationEntryResponse(BaseModel):
    """One test of the classification table."""
    id: str
    group: str
    description: str
    remediation: str = ""
    best_practice_reference: str = ""
    classification: TierLevels


class ClassificationResponse(BaseModel):
    """The classification table."""
    version: str
    groups: list[str]
    tests: list[ClassificationEntryResponse]


class LogsResponse(BaseModel):
    """Log lines from an offset."""
    lines: list[str]
    offset: int
    next_offset: int
    running: bool = False
