"""Result models for normalization, reconciliation and full cycles."""

from enum import Enum
from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from paperwatch.models.record import CandidateRecord, Record
from paperwatch.utils.exceptions import SchemaError


class ReconcileOutcome(str, Enum):
    """How a single id was classified by one reconciliation."""

    NEW = "new"  # Newly appeared in the fetch
    UPDATED = "updated"  # Present in both, compared fields differ
    DISAPPEARED = "disappeared"  # In the previous catalog only, now OLD
    UNCHANGED = "unchanged"  # Kept with its previous status


class NormalizationResult(BaseModel):
    """Candidate records produced from one source's rows.

    Rows that raised SchemaError are dropped and kept in ``errors``.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    source: str
    records: List[CandidateRecord] = Field(default_factory=list)
    errors: List[SchemaError] = Field(default_factory=list)

    @property
    def error_count(self) -> int:
        return len(self.errors)


class ReconcileResult(BaseModel):
    """Next catalog plus the per-id classification that produced it."""

    catalog: List[Record] = Field(default_factory=list)
    outcomes: Dict[str, ReconcileOutcome] = Field(default_factory=dict)
    reconciled_at: datetime

    def count(self, outcome: ReconcileOutcome) -> int:
        return sum(1 for o in self.outcomes.values() if o == outcome)


class CycleResult(BaseModel):
    """Summary of one reconciliation cycle.

    Attributes:
        run_id: Correlation id of the cycle.
        sources_read: Names of sources whose candidate file was present.
        candidates: Number of candidate records after normalization.
        schema_errors: Rows dropped by the normalizer, per source.
        new/updated/disappeared/unchanged: Reconciliation outcome counts.
        expired: Records dropped by the retention window.
        catalog_size: Records in the persisted catalog.
        to_notify_ids: Ids handed to the notification collaborator.
    """

    run_id: str
    started_at: datetime
    finished_at: Optional[datetime] = None
    sources_read: List[str] = Field(default_factory=list)
    candidates: int = Field(0, ge=0)
    schema_errors: Dict[str, int] = Field(default_factory=dict)
    new: int = Field(0, ge=0)
    updated: int = Field(0, ge=0)
    disappeared: int = Field(0, ge=0)
    unchanged: int = Field(0, ge=0)
    expired: int = Field(0, ge=0)
    catalog_size: int = Field(0, ge=0)
    to_notify_ids: List[str] = Field(default_factory=list)

    @property
    def total_schema_errors(self) -> int:
        return sum(self.schema_errors.values())

    @property
    def has_changes(self) -> bool:
        return self.new > 0 or self.updated > 0


class NotifyStatus(str, Enum):
    SENT = "sent"
    FAILED = "failed"
    EMPTY = "empty"


class NotifyResult(BaseModel):
    """Outcome of handing the to-notify table to a notifier."""

    status: NotifyStatus
    notified_ids: List[str] = Field(default_factory=list)
    pending: int = Field(0, ge=0)
