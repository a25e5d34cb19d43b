from __future__ import annotations

from pydantic import BaseModel, Field


class MatchRequest(BaseModel):
    headlines: list[str] = Field(default_factory=list)
