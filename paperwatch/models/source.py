"""Source mapping models.

A SourceMapping describes how a source's native table projects onto the
canonical record shape, and which id namespace the source owns.

Usage:
    from paperwatch.models.source import SOURCE_PRESETS

    mapping = SOURCE_PRESETS["openalex"]
    record = normalize_row(row, mapping)
"""

import re
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, field_validator

from paperwatch.models.record import CANDIDATE_COLUMNS

REQUIRED_FIELDS = ("id", "title", "publication_date")


class SourceMapping(BaseModel):
    """Column projection from a source's native rows to candidate records.

    Attributes:
        name: Human-readable source name (used in logs and metrics).
        id_prefix: Namespace prepended to native ids ("openalex" -> "openalex:W1").
        columns: Canonical field -> native column name.
        authors_separator: Separator of a delimited native authors string.
        author_name_key: Key of the name in list-of-dict author values.
        date_formats: strptime formats tried after ISO-8601.
        default_journal: Journal used when the row has none.
        id_url_prefix: Base URL stripped from URL-shaped native ids
            ("https://openalex.org/W1" -> "W1"); other ids are kept whole.
    """

    name: str = Field(..., min_length=1, max_length=100)
    id_prefix: str = Field(..., min_length=1, max_length=40)
    columns: Dict[str, str] = Field(default_factory=dict)
    authors_separator: str = Field(default=";", min_length=1)
    author_name_key: str = Field(default="display_name")
    date_formats: List[str] = Field(
        default_factory=lambda: ["%Y-%m-%d", "%d %B %Y", "%B %d, %Y", "%B %Y"]
    )
    default_journal: Optional[str] = None
    id_url_prefix: Optional[str] = None

    @field_validator("id_prefix")
    @classmethod
    def validate_id_prefix(cls, v: str) -> str:
        """Prefixes must be lowercase slugs so they cannot contain ':'."""
        if not re.match(r"^[a-z0-9_-]+$", v):
            raise ValueError(
                f"Invalid id_prefix: {v} (must be lowercase alphanumeric, '-' or '_')"
            )
        return v

    @field_validator("columns")
    @classmethod
    def validate_columns(cls, v: Dict[str, str]) -> Dict[str, str]:
        unknown = sorted(set(v) - set(CANDIDATE_COLUMNS))
        if unknown:
            raise ValueError(f"Unknown canonical columns in mapping: {unknown}")
        missing = [f for f in REQUIRED_FIELDS if f not in v]
        if missing:
            raise ValueError(f"Mapping must provide required fields: {missing}")
        return v

    def column_for(self, field: str) -> Optional[str]:
        """Native column for a canonical field, None when unmapped."""
        return self.columns.get(field)


SOURCE_PRESETS: Dict[str, SourceMapping] = {
    # Scholarly-metadata API (OpenAlex works)
    "openalex": SourceMapping(
        name="openalex",
        id_prefix="openalex",
        id_url_prefix="https://openalex.org/",
        columns={
            "id": "id",
            "title": "title",
            "authors": "authorships",
            "publication_date": "publication_date",
            "journal": "source_display_name",
            "doi_or_url": "doi",
        },
    ),
    # Working-paper archive TSV dumps
    "nber": SourceMapping(
        name="nber",
        id_prefix="nber",
        columns={
            "id": "paper",
            "title": "title",
            "authors": "author",
            "publication_date": "issue_date",
            "abstract": "abstract",
            "doi_or_url": "doi",
        },
        default_journal="NBER Working Paper",
    ),
    # Scraped publisher listing
    "iza": SourceMapping(
        name="iza",
        id_prefix="iza",
        columns={
            "id": "dp_number",
            "title": "title",
            "authors": "authors",
            "publication_date": "date",
            "abstract": "abstract",
            "doi_or_url": "url",
        },
        authors_separator=",",
        default_journal="IZA Discussion Paper",
    ),
}
