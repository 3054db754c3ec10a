"""End-to-end tests over a sequence of daily cycles.

Each day a fetcher rewrites the candidate tables, a cycle reconciles them
into the catalog, and a notify step announces the pending papers.
"""

from collections import Counter
from datetime import datetime, timedelta, timezone

import pytest

from paperwatch.models.config import TrackerConfig
from paperwatch.models.record import RecordStatus
from paperwatch.models.result import NotifyStatus
from paperwatch.orchestration import ReconciliationCycle
from paperwatch.services.notification import NullNotifier

DAY0 = datetime(2025, 1, 1, 6, 0, tzinfo=timezone.utc)

NBER_HEADER = "paper\ttitle\tauthor\tissue_date\tabstract\tdoi\n"
IZA_HEADER = "dp_number,title,authors,date,abstract,url\n"


class Clock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class RecordingNotifier(NullNotifier):
    def __init__(self):
        self.sent = []

    def send(self, records):
        self.sent.extend(r.id for r in records)
        return super().send(records)


@pytest.fixture
def workspace(tmp_path):
    sources = tmp_path / "sources"
    sources.mkdir()
    config = TrackerConfig(
        catalog_path=str(tmp_path / "catalog.csv"),
        ledger_path=str(tmp_path / "notified.csv"),
        to_notify_path=str(tmp_path / "to_notify.csv"),
        retention_days=10,
        sources=[
            {
                "name": "nber",
                "path": str(sources / "nber.tsv"),
                "delimiter": "\t",
                "preset": "nber",
            },
            {"name": "iza", "path": str(sources / "iza.csv"), "preset": "iza"},
        ],
    )
    clock = Clock(DAY0)
    return sources, ReconciliationCycle(config, clock=clock), clock


def _fetch(sources, nber_ids=(), iza_ids=(), titles=None):
    titles = titles or {}
    nber = sources / "nber.tsv"
    iza = sources / "iza.csv"
    nber.write_text(
        NBER_HEADER
        + "".join(
            f"{i}\t{titles.get(i, 'Paper ' + i)}\tJane Doe\tJanuary 2025\t\t\n"
            for i in nber_ids
        )
    )
    iza.write_text(
        IZA_HEADER
        + "".join(
            f"{i},{titles.get(i, 'Paper ' + i)},\"Doe, Jane\",2 January 2025,,\n"
            for i in iza_ids
        )
    )


def test_same_native_id_from_two_sources_is_two_records(workspace):
    sources, cycle, _ = workspace
    _fetch(sources, nber_ids=["100"], iza_ids=["100"])

    result = cycle.run()

    assert result.new == 2
    ids = {r.id for r in cycle.catalog_store.load()}
    assert ids == {"nber:100", "iza:100"}


def test_at_most_once_over_expiry_and_reappearance(workspace):
    sources, cycle, clock = workspace
    notifier = RecordingNotifier()

    schedule = [
        (["w1", "w2"], ["500"]),  # day 0: all new
        (["w1", "w2"], ["500"]),  # day 1: nothing changes
        (["w1"], ["500"]),  # day 2: w2 disappears
        (["w1"], []),  # day 3: 500 disappears
    ] + [(["w3"], [])] * 10 + [
        (["w2", "w3"], ["500"]),  # day 14: w2 and 500 reappear after expiry
    ]

    statuses = []
    for day, (nber_ids, iza_ids) in enumerate(schedule):
        clock.now = DAY0 + timedelta(days=day)
        _fetch(sources, nber_ids=nber_ids, iza_ids=iza_ids)
        cycle.run()
        cycle.notify(notifier)
        statuses.append({r.id: r.status for r in cycle.catalog_store.load()})

    counts = Counter(notifier.sent)
    assert set(counts) == {"nber:w1", "nber:w2", "iza:500", "nber:w3"}
    assert max(counts.values()) == 1

    # Day 2: the disappeared paper is kept as OLD
    assert statuses[2]["nber:w2"] == RecordStatus.OLD
    # Day 11: w2 was first seen on day 0 and has expired
    assert "nber:w2" not in statuses[11]
    # Day 14: re-fetched as NEW but already announced
    assert statuses[-1]["nber:w2"] == RecordStatus.NEW
    assert cycle.ledger_store.load() >= {"nber:w2", "iza:500"}


def test_update_is_not_reannounced(workspace):
    sources, cycle, clock = workspace
    _fetch(sources, nber_ids=["w1"])
    cycle.run()
    assert cycle.notify(NullNotifier()).status == NotifyStatus.SENT

    clock.now = DAY0 + timedelta(days=1)
    _fetch(sources, nber_ids=["w1"], titles={"w1": "Revised title"})
    result = cycle.run()

    assert result.updated == 1
    assert result.to_notify_ids == []
    assert cycle.notify(NullNotifier()).status == NotifyStatus.EMPTY
    record = cycle.catalog_store.load()[0]
    assert record.status == RecordStatus.UPDATED
    assert record.first_seen_at == DAY0
    assert record.last_changed_at == DAY0 + timedelta(days=1)


def test_failed_send_is_retried_next_cycle(workspace):
    sources, cycle, clock = workspace

    class FailingNotifier:
        def send(self, records):
            return False

    _fetch(sources, nber_ids=["w1"])
    cycle.run()
    assert cycle.notify(FailingNotifier()).status == NotifyStatus.FAILED
    assert cycle.ledger_store.load() == frozenset()

    clock.now = DAY0 + timedelta(days=1)
    cycle.run()
    result = cycle.notify(NullNotifier())

    assert result.status == NotifyStatus.SENT
    assert result.notified_ids == ["nber:w1"]
