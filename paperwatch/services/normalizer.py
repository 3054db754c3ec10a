"""Record Schema Normalizer.

Projects a source's native rows into canonical CandidateRecords before
they reach the reconciliation engine. Pure functions, no state.

Usage:
    from paperwatch.models.source import SOURCE_PRESETS
    from paperwatch.services.normalizer import normalize_rows

    result = normalize_rows(rows, SOURCE_PRESETS["openalex"])
    result.records  # valid CandidateRecords
    result.errors   # SchemaErrors of dropped rows
"""

from datetime import date, datetime
from typing import Any, Iterable, List, Mapping, Optional
import structlog
from pydantic import ValidationError

from paperwatch.models.record import AUTHOR_SEPARATOR, CandidateRecord
from paperwatch.models.result import NormalizationResult
from paperwatch.models.source import SourceMapping
from paperwatch.utils.exceptions import SchemaError

logger = structlog.get_logger()

# Markers that tabular exports use for missing values
_MISSING_MARKERS = {"", "na", "n/a", "nan", "null", "none"}


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and value != value:  # NaN
        return True
    if isinstance(value, str) and value.strip().lower() in _MISSING_MARKERS:
        return True
    if isinstance(value, (list, tuple)) and not value:
        return True
    return False


def _text(value: Any) -> Optional[str]:
    if _is_missing(value):
        return None
    return " ".join(str(value).split())


def namespace_id(
    native_id: str, prefix: str, url_prefix: Optional[str] = None
) -> str:
    """Prefix a native id with the source's namespace.

    Only the source's own base URL is stripped, so with
    url_prefix "https://openalex.org/" the id "https://openalex.org/W4389"
    becomes "openalex:W4389". Any other id, URL or not, is kept whole so
    distinct native ids never collapse into one.
    Ids already carrying the prefix are returned unchanged.
    """
    native_id = native_id.strip()
    if native_id.startswith(f"{prefix}:"):
        return native_id
    if url_prefix and native_id.lower().startswith(url_prefix.lower()):
        native_id = native_id[len(url_prefix) :].strip("/") or native_id
    return f"{prefix}:{native_id}"


def join_authors(value: Any, mapping: SourceMapping) -> str:
    """Render an author value as an ordered "; "-joined string.

    Accepts a list of names, a list of dicts (author objects), or a
    delimited string. Order is preserved; blank names are skipped.
    """
    if _is_missing(value):
        return ""

    names: List[str] = []
    if isinstance(value, (list, tuple)):
        for item in value:
            if isinstance(item, Mapping):
                name = item.get(mapping.author_name_key) or item.get("name")
            else:
                name = item
            text = _text(name)
            if text:
                names.append(text)
    else:
        for part in str(value).split(mapping.authors_separator):
            text = _text(part)
            if text:
                names.append(text)

    return AUTHOR_SEPARATOR.join(names)


def parse_publication_date(value: Any, mapping: SourceMapping) -> date:
    """Parse a publication date from a native value.

    Tries ISO-8601 first, then the mapping's strptime formats in order.

    Raises:
        ValueError: If no format matches.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass

    for fmt in mapping.date_formats:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    raise ValueError(f"Unrecognized date: {text!r}")


def normalize_row(
    row: Mapping[str, Any],
    mapping: SourceMapping,
    row_index: Optional[int] = None,
) -> CandidateRecord:
    """Project one native row into a CandidateRecord.

    Args:
        row: Native row keyed by the source's column names.
        mapping: The source's column mapping.
        row_index: Position of the row in its table (for error reports).

    Returns:
        The canonical candidate record.

    Raises:
        SchemaError: If id, title or publication_date cannot be produced.
    """

    def native(field: str) -> Any:
        column = mapping.column_for(field)
        return row.get(column) if column else None

    def fail(field: str, reason: str) -> SchemaError:
        return SchemaError(
            f"{mapping.name} row {row_index}: {field} {reason}",
            source=mapping.name,
            field=field,
            row_index=row_index,
        )

    raw_id = _text(native("id"))
    if raw_id is None:
        raise fail("id", "is missing")

    title = _text(native("title"))
    if title is None:
        raise fail("title", "is missing")

    raw_date = native("publication_date")
    if _is_missing(raw_date):
        raise fail("publication_date", "is missing")
    try:
        publication_date = parse_publication_date(raw_date, mapping)
    except ValueError as e:
        raise fail("publication_date", f"is malformed ({e})")

    abstract = native("abstract")
    abstract_text = None if _is_missing(abstract) else str(abstract).strip()

    try:
        return CandidateRecord(
            id=namespace_id(raw_id, mapping.id_prefix, mapping.id_url_prefix),
            title=title,
            authors=join_authors(native("authors"), mapping),
            publication_date=publication_date,
            abstract=abstract_text,
            journal=_text(native("journal")) or mapping.default_journal or "",
            doi_or_url=_text(native("doi_or_url")) or "",
        )
    except ValidationError as e:
        raise fail("record", f"is invalid ({e.error_count()} errors)")


def normalize_rows(
    rows: Iterable[Mapping[str, Any]],
    mapping: SourceMapping,
) -> NormalizationResult:
    """Normalize every row of a source, dropping rows with schema errors.

    A bad row never aborts the batch; it is logged and counted.

    Args:
        rows: Native rows of one source.
        mapping: The source's column mapping.

    Returns:
        NormalizationResult with the valid records and the errors.
    """
    records: List[CandidateRecord] = []
    errors: List[SchemaError] = []

    for index, row in enumerate(rows):
        try:
            records.append(normalize_row(row, mapping, row_index=index))
        except SchemaError as e:
            errors.append(e)
            logger.warning(
                "schema_error_row_dropped",
                source=mapping.name,
                row_index=index,
                field=e.field,
                error=str(e),
            )

    logger.info(
        "source_normalized",
        source=mapping.name,
        records=len(records),
        dropped=len(errors),
    )

    return NormalizationResult(source=mapping.name, records=records, errors=errors)
