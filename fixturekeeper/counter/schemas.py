"""Pydantic schemas for aggregated mutation reports."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field


class MutationReport(BaseModel):
    """Totals accumulated for one collection during a single debounce cycle."""

    collection: str
    added: int = Field(default=0, ge=0)
    changed: int = Field(default=0, ge=0)
    removed: int = Field(default=0, ge=0)
    emitted_at: datetime = Field(default_factory=lambda: datetime.now(tz=UTC))

    def summary(self) -> str:
        return "\n".join(
            [
                f"Fixtures [ {self.collection} ]",
                f"├─ removed {self.removed}",
                f"├─ changed {self.changed}",
                f"└─── added {self.added}",
            ]
        )

    def json_payload(self) -> dict[str, object]:
        return self.model_dump(mode="json")
