"""Orchestration of reconciliation cycles."""

from paperwatch.orchestration.cycle import ReconciliationCycle, generate_run_id

__all__ = ["ReconciliationCycle", "generate_run_id"]
