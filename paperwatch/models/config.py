import re
import shlex
from typing import List, Optional, Tuple
from pydantic import BaseModel, Field, field_validator, model_validator

from paperwatch.models.record import CANDIDATE_COLUMNS, DEFAULT_COMPARISON_COLUMNS
from paperwatch.models.source import SOURCE_PRESETS, SourceMapping

_PLACEHOLDER = re.compile(r"^\$\{[A-Za-z_][A-Za-z0-9_]*\}$")


def _unset_to_none(v):
    """Blank values and ${VAR} placeholders left unsubstituted mean unset."""
    if isinstance(v, str):
        v = v.strip()
        if not v or _PLACEHOLDER.match(v):
            return None
    return v


class SourceConfig(BaseModel):
    """A configured source: where its candidate file lives and how to map it"""

    name: str = Field(..., min_length=1, max_length=100)
    path: str = Field(..., min_length=1)
    delimiter: str = Field(",", min_length=1, max_length=1)
    preset: Optional[str] = Field(
        default=None, description="Built-in mapping name (openalex, nber, iza)"
    )
    mapping: Optional[SourceMapping] = Field(
        default=None, description="Custom mapping (overrides preset)"
    )

    @field_validator("preset")
    @classmethod
    def validate_preset(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in SOURCE_PRESETS:
            raise ValueError(
                f"Unknown preset '{v}' (available: {sorted(SOURCE_PRESETS)})"
            )
        return v

    @model_validator(mode="after")
    def require_mapping(self) -> "SourceConfig":
        if self.mapping is None and self.preset is None:
            raise ValueError(f"Source '{self.name}' needs a preset or a mapping")
        return self

    def resolve_mapping(self) -> SourceMapping:
        """Custom mapping if given, else the preset."""
        if self.mapping is not None:
            return self.mapping
        if self.preset is None:
            raise ValueError(f"Source '{self.name}' needs a preset or a mapping")
        return SOURCE_PRESETS[self.preset]


class NotificationConfig(BaseModel):
    """External notification collaborator settings"""

    command: Optional[List[str]] = Field(
        default=None,
        description="Command run with the to-notify CSV path appended",
    )
    timeout_seconds: float = Field(300.0, ge=1.0, le=3600.0)

    @field_validator("command", mode="before")
    @classmethod
    def split_command(cls, v):
        v = _unset_to_none(v)
        if isinstance(v, str):
            return shlex.split(v) or None
        return v


class LoggingConfig(BaseModel):
    level: str = Field("INFO", pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    json_output: bool = True


class TrackerConfig(BaseModel):
    """Complete tracker configuration"""

    catalog_path: str = "data/catalog.csv"
    ledger_path: str = "data/notified.csv"
    to_notify_path: str = "data/to_notify.csv"
    metrics_path: Optional[str] = None
    retention_days: int = Field(365, ge=0, le=36500)
    comparison_columns: Tuple[str, ...] = DEFAULT_COMPARISON_COLUMNS
    sources: List[SourceConfig] = Field(default_factory=list)
    notification: NotificationConfig = Field(default_factory=NotificationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("metrics_path", mode="before")
    @classmethod
    def validate_metrics_path(cls, v):
        return _unset_to_none(v)

    @field_validator("comparison_columns")
    @classmethod
    def validate_comparison_columns(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        if not v:
            raise ValueError("comparison_columns cannot be empty")
        unknown = [c for c in v if c not in CANDIDATE_COLUMNS or c == "id"]
        if unknown:
            raise ValueError(f"Invalid comparison columns: {unknown}")
        return v

    @model_validator(mode="after")
    def validate_sources(self) -> "TrackerConfig":
        # Distinct names and id namespaces keep ids collision-free
        names = [s.name for s in self.sources]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate source names: {names}")
        prefixes = [s.resolve_mapping().id_prefix for s in self.sources]
        if len(prefixes) != len(set(prefixes)):
            raise ValueError(f"Sources must use distinct id prefixes: {prefixes}")
        return self
