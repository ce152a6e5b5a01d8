"""Pydantic schemas for fixture registry records."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class FixtureRecord(BaseModel):
    """Associates a fixture identity with the document it produced."""

    model_config = ConfigDict(frozen=True)

    record_id: str
    owner_collection: str = Field(..., min_length=1)
    identity: str = Field(..., min_length=1)
    target_doc_id: str | int
