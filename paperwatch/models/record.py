"""Record data models for the paper catalog.

This module defines the data structures for:
- Record status (NEW, UPDATED, OLD)
- Candidate records (freshly fetched, not yet reconciled)
- Catalog records (candidate fields plus lifecycle bookkeeping)
"""

from enum import Enum
from datetime import date, datetime, timezone
from typing import Any, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class RecordStatus(str, Enum):
    """Lifecycle status of a catalog record.

    Recomputed every reconciliation cycle; not an intrinsic property
    of the paper.
    """

    NEW = "NEW"  # First appeared in this or a recent cycle
    UPDATED = "UPDATED"  # Metadata changed since the previous cycle
    OLD = "OLD"  # Disappeared from the latest fetch


CANDIDATE_COLUMNS: Tuple[str, ...] = (
    "id",
    "title",
    "authors",
    "publication_date",
    "abstract",
    "journal",
    "doi_or_url",
)

CATALOG_COLUMNS: Tuple[str, ...] = CANDIDATE_COLUMNS + (
    "status",
    "first_seen_at",
    "last_changed_at",
)

DEFAULT_COMPARISON_COLUMNS: Tuple[str, ...] = tuple(
    c for c in CANDIDATE_COLUMNS if c != "id"
)

AUTHOR_SEPARATOR = "; "


def utc_now() -> datetime:
    """Default clock for the pipeline (timezone-aware UTC)."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class CandidateRecord(BaseModel):
    """A paper row freshly produced by a source fetcher.

    Attributes:
        id: Globally unique id, namespaced per source ("openalex:W123").
        title: Paper title.
        authors: Ordered author names joined with "; ".
        publication_date: Calendar publication date.
        abstract: Abstract text, None when the source has none.
        journal: Journal or series name.
        doi_or_url: Citation link.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    authors: str = ""
    publication_date: date
    abstract: Optional[str] = None
    journal: str = ""
    doi_or_url: str = ""

    @field_validator("abstract", mode="before")
    @classmethod
    def empty_abstract_is_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("authors", "journal", "doi_or_url", mode="before")
    @classmethod
    def none_is_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    def rendered(self, column: str) -> str:
        """Render a column as the string used for change detection.

        Collections are compared on their rendered form, so a reordered
        author list counts as a change.
        """
        value = getattr(self, column)
        if value is None:
            return ""
        if isinstance(value, (date, datetime)):
            return value.isoformat()
        if isinstance(value, Enum):
            return str(value.value)
        return str(value)

    def to_candidate(self) -> "CandidateRecord":
        """Project down to the candidate shape."""
        return CandidateRecord(**{c: getattr(self, c) for c in CANDIDATE_COLUMNS})


class Record(CandidateRecord):
    """A tracked paper in the persisted catalog.

    Attributes:
        status: Transient lifecycle status for this cycle.
        first_seen_at: When the id first appeared. Never changes afterwards.
        last_changed_at: When a content change was last detected.
    """

    status: RecordStatus
    first_seen_at: datetime
    last_changed_at: datetime

    @field_validator("first_seen_at", "last_changed_at")
    @classmethod
    def normalize_timezone(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @model_validator(mode="after")
    def check_timestamps(self) -> "Record":
        if self.last_changed_at < self.first_seen_at:
            raise ValueError(
                f"last_changed_at ({self.last_changed_at.isoformat()}) precedes "
                f"first_seen_at ({self.first_seen_at.isoformat()}) for {self.id}"
            )
        return self

    @classmethod
    def from_candidate(
        cls,
        candidate: CandidateRecord,
        status: RecordStatus,
        first_seen_at: datetime,
        last_changed_at: datetime,
    ) -> "Record":
        """Build a catalog record from a candidate and lifecycle fields."""
        return cls(
            **{c: getattr(candidate, c) for c in CANDIDATE_COLUMNS},
            status=status,
            first_seen_at=first_seen_at,
            last_changed_at=last_changed_at,
        )
