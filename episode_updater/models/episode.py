"""Models for per-row episode updates and run results."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..exceptions import EpisodeUpdaterError


class FieldUpdate(BaseModel):
    """A single field/value pair taken from a CSV row."""

    model_config = ConfigDict(frozen=True)

    field: str = Field(..., description="API field name")
    value: str = Field(..., description="Raw CSV value (never empty)")


class EpisodeUpdateRequest(BaseModel):
    """Pydantic model for the changes one CSV row asks for."""

    model_config = ConfigDict(frozen=True)

    episode_id: str = Field(..., description="Episode identifier extracted from the url column")
    updates: tuple[FieldUpdate, ...] = Field(
        default=(),
        description="Non-empty field values in CSV column order"
    )

    @property
    def field_names(self) -> list[str]:
        return [update.field for update in self.updates]

    def has_field(self, name: str) -> bool:
        return any(update.field == name for update in self.updates)


class ProcessingTally(BaseModel):
    """Success and error counters for a run."""

    success_count: int = Field(default=0, description="Rows updated and verified")
    error_count: int = Field(default=0, description="Rows that failed and stopped the run")


class RunResult(BaseModel):
    """Outcome of a full run: the tally plus the error that stopped it, if any."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    tally: ProcessingTally = Field(default_factory=ProcessingTally)
    error: Optional[EpisodeUpdaterError] = Field(default=None, description="Error that aborted the run")

    @property
    def ok(self) -> bool:
        return self.error is None
