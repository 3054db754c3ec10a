#!/usr/bin/env python3
"""
daily_launcher.py - Daily batch launcher for cron / launchd

Runs one reconciliation cycle and, when it succeeds, hands the to-notify
table to the configured notification command. The fetchers are expected
to have written their candidate tables before this script starts.

Usage (called by cron):
    /path/to/venv/bin/python /path/to/scripts/daily_launcher.py

The script:
1. Runs `paperwatch run` with the daily config
2. Runs `paperwatch notify` if the cycle succeeded
3. Manages log rotation
"""

import os
import sys
import subprocess
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional

# Determine paths relative to this script
SCRIPT_DIR = Path(__file__).parent.resolve()
PROJECT_ROOT = SCRIPT_DIR.parent
CONFIG_FILE = Path(
    os.environ.get("PAPERWATCH_CONFIG", PROJECT_ROOT / "config" / "paperwatch.yaml")
)
LOG_DIR = PROJECT_ROOT / "logs"
LOG_RETENTION_DAYS = 30

# Exit code of `paperwatch run` when there is nothing to persist (click uses 2)
EXIT_NO_DATA = 3


def setup_logging() -> Path:
    """Create log directory and return log file path."""
    LOG_DIR.mkdir(exist_ok=True)
    return LOG_DIR / f"daily_run_{datetime.now().strftime('%Y-%m-%d')}.log"


def log(message: str, level: str = "INFO", log_file: Optional[Path] = None):
    """Write timestamped log message."""
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    formatted = f"[{timestamp}] [{level}] {message}"
    print(formatted)
    if log_file:
        with open(log_file, "a") as f:
            f.write(formatted + "\n")


def cleanup_old_logs(log_file: Path):
    """Remove logs older than LOG_RETENTION_DAYS."""
    cutoff = datetime.now() - timedelta(days=LOG_RETENTION_DAYS)
    count = 0
    for log_path in LOG_DIR.glob("daily_run_*.log"):
        try:
            date_str = log_path.stem.replace("daily_run_", "")
            log_date = datetime.strptime(date_str, "%Y-%m-%d")
            if log_date < cutoff:
                log_path.unlink()
                log(f"Removed old log: {log_path.name}", "INFO", log_file)
            else:
                count += 1
        except (ValueError, OSError):
            continue
    log(f"Log cleanup complete. Retained logs: {count}", "INFO", log_file)


def run_cli(args: List[str], log_file: Path) -> int:
    """Run a paperwatch CLI command and log its output."""
    cmd = [sys.executable, "-m", "paperwatch.cli", *args, "--config", str(CONFIG_FILE)]

    log(f"Running: {' '.join(cmd)}", "INFO", log_file)

    try:
        result = subprocess.run(
            cmd,
            cwd=str(PROJECT_ROOT),
            capture_output=True,
            text=True,
            timeout=3600,
        )
    except subprocess.TimeoutExpired:
        log(f"'{args[0]}' timed out after 1 hour", "ERROR", log_file)
        return 1
    except OSError as e:
        log(f"'{args[0]}' execution error: {e}", "ERROR", log_file)
        return 1

    if result.stdout:
        for line in result.stdout.strip().split("\n"):
            log(line, "OUTPUT", log_file)

    if result.stderr:
        for line in result.stderr.strip().split("\n"):
            log(line, "STDERR", log_file)

    return result.returncode


def main() -> int:
    """Main entry point."""
    log_file = setup_logging()

    log("=" * 50, "INFO", log_file)
    log("Starting daily paperwatch cycle", "INFO", log_file)
    log("=" * 50, "INFO", log_file)
    log(f"Config file: {CONFIG_FILE}", "INFO", log_file)

    if not CONFIG_FILE.exists():
        log(f"Config not found at {CONFIG_FILE}", "ERROR", log_file)
        return 2

    exit_code = run_cli(["run"], log_file)

    if exit_code == 0:
        exit_code = run_cli(["notify"], log_file)
    elif exit_code == EXIT_NO_DATA:
        log("No candidates and no catalog; nothing to notify", "WARN", log_file)
        exit_code = 0
    else:
        log(
            f"Cycle failed with exit code {exit_code}; skipping notify",
            "ERROR",
            log_file,
        )

    cleanup_old_logs(log_file)

    log("=" * 50, "INFO", log_file)
    log(f"Daily cycle finished with exit code {exit_code}", "INFO", log_file)
    log("=" * 50, "INFO", log_file)

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
