"""Entity candidates produced by the extraction capability."""

from typing import Optional

from pydantic import BaseModel, Field


class EntityCandidate(BaseModel):
    """An organization (and optionally a person and department) found in text."""

    organization: str
    person: Optional[str] = None
    department: str = ""
    source: str = ""
    matched_by: str = Field(default="", description="Name of the rule that produced this candidate")
