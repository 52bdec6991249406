# core/checklist.py
"""
Checklist aggregation: roll individual check results up into the overall
charger status, and apply a single check-status change to a checklist.

Everything here is pure; checklists are tuples and are never mutated.
"""
from __future__ import annotations

from typing import Iterable, Sequence, Tuple

from charger_qc.models.charger_model import ChargerStatus, Check, CheckStatus

DEFAULT_CHECK_NAMES: Tuple[str, ...] = (
    "Visual Inspection",
    "Input Voltage Test (110V/220V)",
    "Output Voltage Test (DC)",
    "Load Test (Rated Amperage)",
    "Safety Cutoff Check",
    "Casing & Port Integrity",
)


def new_checklist(names: Iterable[str] = DEFAULT_CHECK_NAMES) -> Tuple[Check, ...]:
    """Fresh checklist: ids 1..n in input order, every check Pending."""
    checks = tuple(Check(id=i, name=name) for i, name in enumerate(names, start=1))
    if not checks:
        raise ValueError("a checklist needs at least one check")
    return checks


def overall_status(checks: Sequence[Check]) -> ChargerStatus:
    """Fail dominates, then all-Pass, otherwise In Progress."""
    if any(c.status == CheckStatus.FAIL for c in checks):
        return ChargerStatus.FAILED
    if all(c.status == CheckStatus.PASS for c in checks):
        return ChargerStatus.PASSED
    return ChargerStatus.IN_PROGRESS


def apply_check_update(
    checklist: Sequence[Check],
    check_id: int,
    new_status: CheckStatus,
) -> Tuple[Tuple[Check, ...], ChargerStatus]:
    # unknown check_id: nothing matches, checklist comes back unchanged
    updated = tuple(
        c.model_copy(update={"status": CheckStatus(new_status)}) if c.id == check_id else c
        for c in checklist
    )
    return updated, overall_status(updated)
