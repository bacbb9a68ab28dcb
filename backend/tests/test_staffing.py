"""
Staffing calculator tests.

Everything here runs on plain dicts and SimpleNamespace records; no
database is involved.
"""

from types import SimpleNamespace
from uuid import uuid4

import pytest
from hypothesis import given, strategies as st

from crewsheet.models.enums import FulfillmentBand, WorkerStatus
from crewsheet.services.staffing import (
    classify_fulfillment,
    compute_filled_total,
    compute_required_total,
    counts_as_filled,
    summarize_staffing,
    workers_needed_by_role,
)

BAND_RANK = {
    FulfillmentBand.critical: 0,
    FulfillmentBand.low: 1,
    FulfillmentBand.good: 2,
    FulfillmentBand.full: 3,
    FulfillmentBand.overstaffed: 4,
}

STATUSES = [s.value for s in WorkerStatus]


def worker(role_code="SH", status="Assigned", user_id="auto"):
    return {
        "role_code": role_code,
        "status": status,
        "user_id": uuid4() if user_id == "auto" else user_id,
    }


def concert_shift(assignments):
    """CC:1 SH:8 FO:2 RG:1 GL:4, sixteen workers in total."""
    return {
        "required_crew_chiefs": 1,
        "required_stagehands": 8,
        "required_fork_operators": 2,
        "required_riggers": 1,
        "required_general_laborers": 4,
        "assigned_personnel": assignments,
    }


def valid_workers(n):
    return [worker() for _ in range(n)]


class TestComputeRequiredTotal:

    def test_sums_all_six_roles(self):
        shift = {
            "required_crew_chiefs": 1,
            "required_stagehands": 2,
            "required_fork_operators": 3,
            "required_reach_fork_operators": 4,
            "required_riggers": 5,
            "required_general_laborers": 6,
        }
        assert compute_required_total(shift) == 21

    def test_missing_and_none_counts_are_zero(self):
        shift = {"required_stagehands": 3, "required_riggers": None}
        assert compute_required_total(shift) == 3

    def test_negative_and_garbage_counts_are_zero(self):
        shift = {"required_stagehands": -4, "required_riggers": "lots", "required_crew_chiefs": 2}
        assert compute_required_total(shift) == 2

    def test_works_on_attribute_records(self):
        shift = SimpleNamespace(required_crew_chiefs=1, required_stagehands=4)
        assert compute_required_total(shift) == 5

    def test_falls_back_to_requested_workers(self):
        assert compute_required_total({"requested_workers": 7}) == 7

    def test_role_counts_win_over_requested_workers(self):
        assert compute_required_total({"requested_workers": 7, "required_stagehands": 2}) == 2

    def test_empty_shift(self):
        assert compute_required_total({}) == 0


class TestComputeFilledTotal:

    @pytest.mark.parametrize("status", ["Cancelled", "Withdrawn", "Rejected"])
    def test_excluded_statuses(self, status):
        assert counts_as_filled(worker(status=status)) is False

    @pytest.mark.parametrize("status", ["Assigned", "ClockedIn", "OnBreak", "ClockedOut", "ShiftEnded", "NoShow", "UpForGrabs"])
    def test_other_statuses_count(self, status):
        assert counts_as_filled(worker(status=status)) is True

    def test_open_slot_does_not_count(self):
        assert counts_as_filled(worker(user_id=None)) is False

    def test_enum_status_is_accepted(self):
        assert counts_as_filled(worker(status=WorkerStatus.cancelled)) is False

    def test_none_list(self):
        assert compute_filled_total(None) == 0

    def test_mixed(self):
        people = valid_workers(3) + [worker(status="Cancelled"), worker(user_id=None), None]
        assert compute_filled_total(people) == 3

    @given(st.lists(st.tuples(st.sampled_from(STATUSES), st.booleans()), max_size=40))
    def test_filled_never_exceeds_assignments(self, rows):
        people = [worker(status=s, user_id=uuid4() if has_user else None) for s, has_user in rows]
        filled = compute_filled_total(people)
        expected = sum(
            1 for s, has_user in rows
            if has_user and s not in ("Cancelled", "Withdrawn", "Rejected")
        )
        assert filled == expected
        assert filled <= len(people)


class TestClassifyFulfillment:

    @pytest.mark.parametrize("filled,required,band", [
        (0, 0, FulfillmentBand.full),
        (5, 0, FulfillmentBand.full),
        (0, 10, FulfillmentBand.critical),
        (59, 100, FulfillmentBand.critical),
        (60, 100, FulfillmentBand.low),
        (79, 100, FulfillmentBand.low),
        (80, 100, FulfillmentBand.good),
        (99, 100, FulfillmentBand.good),
        (100, 100, FulfillmentBand.full),
        (110, 100, FulfillmentBand.full),
        (111, 100, FulfillmentBand.overstaffed),
    ])
    def test_band_boundaries(self, filled, required, band):
        assert classify_fulfillment(filled, required) == band

    def test_exact_thresholds_take_the_better_band(self):
        # 4/5 is exactly 0.8 and 3/5 exactly 0.6; no float drift
        assert classify_fulfillment(4, 5) == FulfillmentBand.good
        assert classify_fulfillment(3, 5) == FulfillmentBand.low
        assert classify_fulfillment(11, 10) == FulfillmentBand.full

    @given(st.integers(min_value=0, max_value=500), st.integers(min_value=0, max_value=500))
    def test_monotonic_in_filled(self, filled, required):
        here = classify_fulfillment(filled, required)
        assert here in BAND_RANK
        assert BAND_RANK[classify_fulfillment(filled + 1, required)] >= BAND_RANK[here]


class TestWorkersNeededByRole:

    def test_surplus_does_not_offset_shortage(self):
        shift = {
            "required_crew_chiefs": 1,
            "required_stagehands": 5,
            "assigned_personnel": [worker("CC"), worker("CC"), worker("SH"), worker("SH")],
        }
        shortages = workers_needed_by_role(shift)
        assert [(s.role_code, s.needed) for s in shortages] == [("SH", 3)]
        assert shortages[0].role_name == "Stage Hand"
        assert shortages[0].required == 5
        assert shortages[0].assigned == 2
        assert summarize_staffing(shift).fully_staffed is False

    def test_cancelled_assignments_leave_a_gap(self):
        shift = {
            "required_riggers": 2,
            "assigned_personnel": [worker("RG"), worker("RG", status="Withdrawn")],
        }
        assert [(s.role_code, s.needed) for s in workers_needed_by_role(shift)] == [("RG", 1)]

    def test_fully_staffed(self):
        shift = {"required_stagehands": 2, "assigned_personnel": [worker("SH"), worker("SH"), worker("GL")]}
        assert workers_needed_by_role(shift) == []
        assert summarize_staffing(shift).fully_staffed is True

    def test_does_not_mutate_input(self):
        people = [worker("SH")]
        shift = {"required_stagehands": 3, "assigned_personnel": people}
        summarize_staffing(shift)
        assert shift == {"required_stagehands": 3, "assigned_personnel": people}
        assert len(people) == 1


class TestConcertShiftScenarios:

    def test_ten_valid_two_cancelled_is_low(self):
        people = valid_workers(10) + [worker(status="Cancelled"), worker(status="Cancelled")]
        summary = summarize_staffing(concert_shift(people))
        assert summary.required_total == 16
        assert summary.filled_total == 10
        assert summary.fulfillment_band == FulfillmentBand.low

    def test_thirteen_valid_is_good(self):
        summary = summarize_staffing(concert_shift(valid_workers(13)))
        assert summary.fulfillment_band == FulfillmentBand.good

    def test_sixteen_valid_is_full(self):
        summary = summarize_staffing(concert_shift(valid_workers(16)))
        assert summary.fulfillment_band == FulfillmentBand.full
        assert summary.display == "16 of 16 Workers Assigned"

    def test_eighteen_valid_is_overstaffed(self):
        summary = summarize_staffing(concert_shift(valid_workers(18)))
        assert summary.fulfillment_band == FulfillmentBand.overstaffed

    def test_shortages_reported_even_when_total_is_full(self):
        # sixteen stagehands: full on paper, every other role still short
        summary = summarize_staffing(concert_shift(valid_workers(16)))
        needed = {s.role_code: s.needed for s in summary.per_role_shortages}
        assert needed == {"CC": 1, "FO": 2, "RG": 1, "GL": 4}
