"""API request and response models."""

from datetime import datetime
from typing import List

from pydantic import BaseModel, Field


class PlacementResponse(BaseModel):
    """A signature box in normalized top-left coordinates."""

    id: str
    page_index: int = Field(..., description="Zero-based page index")
    x: float
    y: float
    width: float
    height: float
    signed: bool = Field(False, description="True if a mark is attached")


class DocumentSummaryResponse(BaseModel):
    """Response model for document list entries."""

    id: str = Field(..., description="Document identifier")
    title: str
    filename: str
    uploaded_at: datetime
    status: str = Field(..., description="signed or unsigned")
    summary: str = ""
    tags: List[str] = Field(default_factory=list)
    page_count: int
    signed_count: int = 0
    placement_count: int = 0
    has_signed_pdf: bool = False


class DocumentResponse(DocumentSummaryResponse):
    """Response model for a single document with its placements."""

    placements: List[PlacementResponse] = Field(default_factory=list)


class DeleteResponse(BaseModel):
    """Response model for document deletion."""

    id: str
    deleted: bool


class ErrorResponse(BaseModel):
    """Response model for errors."""

    error: str
    detail: str = ""
