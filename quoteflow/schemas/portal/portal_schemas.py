from typing import List
from pydantic import BaseModel, Field


class PortalSweepError(BaseModel):
    quote_id: int
    error: str


class PortalSweepResult(BaseModel):
    checked: int = 0
    locked: int = 0
    jobs_flagged: int = 0
    dry_run: bool = False
    errors: List[PortalSweepError] = Field(default_factory=list)
