"""Request and response schemas for document metadata analysis."""

import json
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError


@dataclass
class MetadataRequest:
    """Request payload for the metadata endpoint."""
    text: str
    max_tags: int = 3

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)


class MetadataResponse(BaseModel):
    """Structured metadata returned by an AI backend. Any field may be missing."""
    title: Optional[str] = Field(None, description="Concise document title")
    summary: Optional[str] = Field(None, description="One-sentence summary")
    tags: Optional[List[str]] = Field(None, description="Relevant tags")


def parse_metadata_json(content: str) -> MetadataResponse:
    """Parse a model reply into MetadataResponse.

    Accepts bare JSON or JSON wrapped in prose / markdown fences.

    Raises:
        ValueError: If no valid JSON object matching the schema is found
    """
    text = content.strip()
    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end <= start:
        raise ValueError("No JSON object in AI response")
    try:
        data = json.loads(text[start:end + 1])
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in AI response: {e}") from e
    if not isinstance(data, dict):
        raise ValueError("AI response JSON must be an object")
    try:
        return MetadataResponse(**data)
    except ValidationError as e:
        raise ValueError(f"AI response does not match schema: {e}") from e
