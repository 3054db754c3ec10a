"""Tests for CSV persistence of the catalog and candidate tables."""

from datetime import date, datetime, timezone
from unittest.mock import patch

import pytest

from paperwatch.models.record import CATALOG_COLUMNS, Record, RecordStatus
from paperwatch.services.catalog_store import (
    CatalogStore,
    atomic_write_csv,
    read_candidates,
    read_csv_rows,
    write_candidates,
)
from paperwatch.utils.exceptions import PersistenceError

T0 = datetime(2025, 1, 1, 6, 0, tzinfo=timezone.utc)
T1 = datetime(2025, 1, 2, 6, 0, tzinfo=timezone.utc)


@pytest.fixture
def records():
    return [
        Record(
            id="openalex:W1",
            title='Quotes "and", commas',
            authors="Doe, Jane; Roe, John",
            publication_date=date(2024, 12, 1),
            abstract="Line one\nline two",
            journal="AER",
            doi_or_url="https://doi.org/10.1/x",
            status=RecordStatus.UPDATED,
            first_seen_at=T0,
            last_changed_at=T1,
        ),
        Record(
            id="nber:w2",
            title="No abstract",
            publication_date=date(2024, 11, 1),
            status=RecordStatus.OLD,
            first_seen_at=T0,
            last_changed_at=T0,
        ),
    ]


class TestCatalogStore:
    def test_absent_catalog(self, tmp_path):
        store = CatalogStore(tmp_path / "catalog.csv")

        assert not store.exists()
        assert store.load() is None

    def test_save_and_load(self, tmp_path, records):
        store = CatalogStore(tmp_path / "data" / "catalog.csv")

        store.save(records)
        loaded = store.load()

        assert loaded == records
        assert loaded[1].abstract is None
        assert loaded[0].first_seen_at.tzinfo is not None

    def test_header_matches_columns(self, tmp_path, records):
        store = CatalogStore(tmp_path / "catalog.csv")
        store.save(records)

        header = store.path.read_text().splitlines()[0]

        assert header.split(",") == list(CATALOG_COLUMNS)

    def test_empty_catalog_round_trip(self, tmp_path):
        store = CatalogStore(tmp_path / "catalog.csv")
        store.save([])

        assert store.load() == []

    def test_malformed_row_raises(self, tmp_path, records):
        store = CatalogStore(tmp_path / "catalog.csv")
        store.save(records)
        text = store.path.read_text().replace("UPDATED", "ARCHIVED")
        store.path.write_text(text)

        with pytest.raises(PersistenceError, match="row 0 is malformed"):
            store.load()

    def test_failed_save_keeps_previous_file(self, tmp_path, records):
        store = CatalogStore(tmp_path / "catalog.csv")
        store.save(records[:1])
        before = store.path.read_bytes()

        with patch(
            "paperwatch.services.catalog_store.os.replace",
            side_effect=OSError("read-only file system"),
        ):
            with pytest.raises(PersistenceError):
                store.save(records)

        assert store.path.read_bytes() == before
        assert [p.name for p in tmp_path.iterdir()] == ["catalog.csv"]


class TestAtomicWrite:
    def test_writes_delimited_rows(self, tmp_path):
        path = tmp_path / "rows.tsv"

        atomic_write_csv(path, ["a", "b"], [{"a": "1", "b": "2"}], delimiter="\t")

        assert read_csv_rows(path, delimiter="\t") == [{"a": "1", "b": "2"}]

    def test_unwritable_target(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("")

        with pytest.raises(PersistenceError):
            atomic_write_csv(blocker / "nested.csv", ["a"], [])

    def test_read_missing_file(self, tmp_path):
        with pytest.raises(PersistenceError):
            read_csv_rows(tmp_path / "missing.csv")


class TestCandidateTables:
    def test_write_and_read(self, tmp_path, records):
        path = tmp_path / "to_notify.csv"

        write_candidates(path, records)

        assert read_candidates(path) == [r.to_candidate() for r in records]

    def test_empty_table_has_header(self, tmp_path):
        path = tmp_path / "to_notify.csv"

        write_candidates(path, [])

        assert path.read_text().strip() == (
            "id,title,authors,publication_date,abstract,journal,doi_or_url"
        )
        assert read_candidates(path) == []

    def test_malformed_candidate(self, tmp_path):
        path = tmp_path / "to_notify.csv"
        path.write_text("id,title,publication_date\nx1,,2024-01-01\n")

        with pytest.raises(PersistenceError, match="row 0"):
            read_candidates(path)
