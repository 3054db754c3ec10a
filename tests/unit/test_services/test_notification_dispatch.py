"""Tests for notification dispatch."""

import subprocess
from datetime import date
from unittest.mock import MagicMock, patch

import pytest

from paperwatch.models.record import CandidateRecord
from paperwatch.services.notification.dispatch import CommandNotifier, NullNotifier


@pytest.fixture
def records():
    return [
        CandidateRecord(
            id="nber:w1", title="Paper 1", publication_date=date(2024, 12, 1)
        )
    ]


def test_null_notifier_always_succeeds(records):
    assert NullNotifier().send(records) is True
    assert NullNotifier().send([]) is True


class TestCommandNotifier:
    @pytest.fixture
    def notifier(self, tmp_path):
        return CommandNotifier(
            ["send-digest", "--to", "team@example.org"],
            table_path=tmp_path / "to_notify.csv",
            timeout_seconds=5,
        )

    def test_empty_command_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            CommandNotifier([], table_path=tmp_path / "t.csv")

    @patch("paperwatch.services.notification.dispatch.subprocess.run")
    def test_success_appends_table_path(self, mock_run, notifier, records):
        mock_run.return_value = MagicMock(returncode=0, stderr="")

        assert notifier.send(records) is True

        args = mock_run.call_args[0][0]
        assert args == [
            "send-digest",
            "--to",
            "team@example.org",
            str(notifier.table_path),
        ]
        assert mock_run.call_args[1]["timeout"] == 5

    @patch("paperwatch.services.notification.dispatch.subprocess.run")
    def test_nonzero_exit_is_failure(self, mock_run, notifier, records):
        mock_run.return_value = MagicMock(returncode=1, stderr="SMTP refused")

        assert notifier.send(records) is False

    @patch("paperwatch.services.notification.dispatch.subprocess.run")
    def test_timeout_is_failure(self, mock_run, notifier, records):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="send-digest", timeout=5)

        assert notifier.send(records) is False

    @patch("paperwatch.services.notification.dispatch.subprocess.run")
    def test_missing_executable_is_failure(self, mock_run, notifier, records):
        mock_run.side_effect = FileNotFoundError("send-digest")

        assert notifier.send(records) is False
