"""Notification dispatch to the external collaborator.

Templating and delivery live outside this package. The engine only needs a
boolean success signal to decide whether to append to the ledger.
"""

import subprocess
from pathlib import Path
from typing import List, Protocol, Sequence, Union
import structlog

from paperwatch.models.record import CandidateRecord

logger = structlog.get_logger()


class Notifier(Protocol):
    """Anything that can announce records and report success."""

    def send(self, records: Sequence[CandidateRecord]) -> bool:
        ...


class NullNotifier:
    """Reports success without sending anything."""

    def send(self, records: Sequence[CandidateRecord]) -> bool:
        logger.info(
            "notification_skipped", records=len(records), reason="null_notifier"
        )
        return True


class CommandNotifier:
    """Runs an external command with the to-notify table path appended.

    The command (e.g. an email sender) reads the table; exit code 0 means
    the notification was delivered. A failed or timed-out command returns
    False and never raises.

    Attributes:
        command: Command and arguments.
        table_path: Path of the to-notify CSV passed as last argument.
        timeout_seconds: Maximum run time of the command.
    """

    def __init__(
        self,
        command: Sequence[str],
        table_path: Union[str, Path],
        timeout_seconds: float = 300.0,
    ):
        if not command:
            raise ValueError("command cannot be empty")
        self.command: List[str] = list(command)
        self.table_path = Path(table_path)
        self.timeout_seconds = timeout_seconds

    def send(self, records: Sequence[CandidateRecord]) -> bool:
        args = self.command + [str(self.table_path)]
        logger.info(
            "notification_command_started", command=args[0], records=len(records)
        )

        try:
            completed = subprocess.run(
                args,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
                check=False,
            )
        except subprocess.TimeoutExpired:
            logger.error(
                "notification_command_timeout",
                command=args[0],
                timeout=self.timeout_seconds,
            )
            return False
        except OSError as e:
            logger.error("notification_command_failed", command=args[0], error=str(e))
            return False

        if completed.returncode != 0:
            logger.error(
                "notification_command_failed",
                command=args[0],
                returncode=completed.returncode,
                stderr=completed.stderr[-500:],
            )
            return False

        logger.info("notification_command_succeeded", command=args[0])
        return True
