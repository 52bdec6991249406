import pytest
from pydantic import ValidationError

from charger_qc.core.checklist import (
    DEFAULT_CHECK_NAMES,
    apply_check_update,
    new_checklist,
    overall_status,
)
from charger_qc.models.charger_model import ChargerRecord, ChargerStatus, Check, CheckStatus

P, PASS, FAIL = CheckStatus.PENDING, CheckStatus.PASS, CheckStatus.FAIL


def checklist(*statuses):
    return tuple(Check(id=i, name=f"Check {i}", status=s) for i, s in enumerate(statuses, start=1))


@pytest.mark.parametrize(
    "statuses",
    [
        (PASS, FAIL, P),
        (FAIL,),
        (FAIL, FAIL, FAIL),
        (PASS, PASS, PASS, FAIL),
        (P, P, FAIL),
    ],
)
def test_any_fail_means_failed(statuses):
    assert overall_status(checklist(*statuses)) == ChargerStatus.FAILED


def test_all_pass_means_passed():
    assert overall_status(checklist(PASS, PASS, PASS)) == ChargerStatus.PASSED


@pytest.mark.parametrize("statuses", [(PASS, P, P), (P, P), (PASS, PASS, P)])
def test_otherwise_in_progress(statuses):
    assert overall_status(checklist(*statuses)) == ChargerStatus.IN_PROGRESS


def test_in_progress_wire_value_has_a_space():
    assert ChargerStatus.IN_PROGRESS.value == "In Progress"


def test_update_replaces_only_the_matching_check():
    before = checklist(P, P, P)
    after, overall = apply_check_update(before, 2, PASS)

    assert [c.status for c in after] == [P, PASS, P]
    assert overall == ChargerStatus.IN_PROGRESS
    for old, new in zip(before, after):
        assert (old.id, old.name) == (new.id, new.name)
    assert after[0] == before[0] and after[2] == before[2]


def test_update_fail_dominates():
    _, overall = apply_check_update(checklist(PASS, PASS, PASS), 3, FAIL)
    assert overall == ChargerStatus.FAILED


def test_update_last_pending_to_pass_passes():
    _, overall = apply_check_update(checklist(PASS, P), 2, PASS)
    assert overall == ChargerStatus.PASSED


@pytest.mark.parametrize("status", list(CheckStatus))
def test_unknown_check_id_is_a_no_op(status):
    before = checklist(PASS, FAIL, P)
    after, overall = apply_check_update(before, 99, status)

    assert after == before
    assert overall == overall_status(before)


def test_same_update_twice_is_idempotent():
    before = checklist(P, PASS, P)
    once = apply_check_update(before, 1, FAIL)
    twice = apply_check_update(once[0], 1, FAIL)
    assert once == twice


def test_update_leaves_input_untouched():
    before = checklist(P, P)
    apply_check_update(before, 1, PASS)
    assert [c.status for c in before] == [P, P]


def test_update_accepts_plain_strings():
    after, overall = apply_check_update(checklist(P), 1, "Pass")
    assert after[0].status is CheckStatus.PASS
    assert overall == ChargerStatus.PASSED


def test_new_checklist_defaults():
    checks = new_checklist()
    assert len(checks) == 6
    assert [c.id for c in checks] == [1, 2, 3, 4, 5, 6]
    assert [c.name for c in checks] == list(DEFAULT_CHECK_NAMES)
    assert all(c.status == P for c in checks)


def test_new_checklist_keeps_input_order():
    checks = new_checklist(["b", "a"])
    assert [(c.id, c.name) for c in checks] == [(1, "b"), (2, "a")]


def test_new_checklist_rejects_empty():
    with pytest.raises(ValueError):
        new_checklist([])


def _document(checks):
    return {
        "serialNumber": "BC-1",
        "model": "M",
        "createdAt": "2025-01-01T00:00:00+00:00",
        "status": "Pending",
        "checks": checks,
    }


def test_record_requires_at_least_one_check():
    with pytest.raises(ValidationError):
        ChargerRecord.from_document("c1", _document([]))


def test_record_rejects_duplicate_check_ids():
    checks = [
        {"id": 2, "name": "Output Voltage Test", "status": "Pass"},
        {"id": 2, "name": "Thermal Test", "status": "Fail"},
    ]
    with pytest.raises(ValidationError):
        ChargerRecord.from_document("c1", _document(checks))


def test_record_accepts_distinct_check_ids():
    checks = [{"id": 1, "name": "a"}, {"id": 2, "name": "b", "status": "Pass"}]
    record = ChargerRecord.from_document("c1", _document(checks))
    assert [c.id for c in record.checks] == [1, 2]
