"""Reads the candidate tables written by the source fetchers."""

from pathlib import Path
from typing import List, Optional, Sequence, Tuple
import structlog

from paperwatch.models.config import SourceConfig
from paperwatch.models.result import NormalizationResult
from paperwatch.services.catalog_store import read_csv_rows
from paperwatch.services.normalizer import normalize_rows

logger = structlog.get_logger()


def read_source(source: SourceConfig) -> Optional[NormalizationResult]:
    """Read and normalize one source's candidate file.

    Args:
        source: Configured source.

    Returns:
        NormalizationResult, or None when the file is absent (the fetcher
        produced nothing this cycle).

    Raises:
        PersistenceError: If the file exists but cannot be read.
    """
    path = Path(source.path)
    if not path.exists():
        logger.warning("source_file_absent", source=source.name, path=str(path))
        return None

    rows = read_csv_rows(path, delimiter=source.delimiter)
    logger.debug("source_file_read", source=source.name, rows=len(rows))
    return normalize_rows(rows, source.resolve_mapping())


def read_sources(
    sources: Sequence[SourceConfig],
) -> Tuple[List[NormalizationResult], List[str]]:
    """Read every configured source.

    Returns:
        Tuple of (results of present sources, names of absent sources).
    """
    results: List[NormalizationResult] = []
    absent: List[str] = []

    for source in sources:
        result = read_source(source)
        if result is None:
            absent.append(source.name)
        else:
            results.append(result)

    return results, absent
