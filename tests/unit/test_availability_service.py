"""
Unit tests for availability service algorithms.

Covers slot generation over split shifts, overlap detection, free-minute
arithmetic and the can_place double check.
"""

import pytest

from salon_calendar.services.availability_service import AvailabilityService
from salon_calendar.shared_types.scheduling import TimeRange
from tests.utils import FRIDAY, SUNDAY, TUESDAY, make_appointment, quarter_hours


class TestTimeOverlap:
    """Test the half-open overlap check."""

    def test_no_overlap(self):
        """Test disjoint intervals."""
        assert not AvailabilityService._check_time_overlap(540, 600, 660, 720)

    def test_partial_overlap(self):
        """Test partially overlapping intervals."""
        assert AvailabilityService._check_time_overlap(540, 660, 600, 720)

    def test_containment(self):
        """Test one interval inside another."""
        assert AvailabilityService._check_time_overlap(540, 720, 600, 660)

    def test_touching_endpoints_do_not_overlap(self):
        """Test that an interval ending where another starts is not a conflict."""
        assert not AvailabilityService._check_time_overlap(600, 630, 630, 660)
        assert not AvailabilityService._check_time_overlap(630, 660, 600, 630)

    def test_find_conflicting_appointment_returns_earliest(self):
        """Test that the earliest overlapping appointment is reported."""
        appointments = [make_appointment("late", "11:00", 60), make_appointment("early", "10:00", 60)]
        conflict = AvailabilityService.find_conflicting_appointment(appointments, 600, 720)
        assert conflict.id == "early"

    def test_appointments_for_employee_filters_and_sorts(self):
        """Test filtering by employee, date and exclusion, sorted by start."""
        appointments = [
            make_appointment("a2", "12:00"),
            make_appointment("a1", "10:00"),
            make_appointment("other-employee", "10:00", employee="B"),
            make_appointment("other-day", "10:00", day=FRIDAY),
            make_appointment("excluded", "11:00"),
        ]
        result = AvailabilityService.appointments_for_employee(appointments, "A", TUESDAY, {"excluded"})
        assert [a.id for a in result] == ["a1", "a2"]


class TestComputeAvailableSlots:
    """Test slot generation."""

    def test_split_shift_without_appointments(self, split_shift_resolver):
        """Test 30-minute slots over 10:00-16:00 and 19:00-21:00."""
        slots = AvailabilityService.compute_available_slots(
            split_shift_resolver, TUESDAY, "A", 30, [], slot_granularity_minutes=15
        )
        assert slots == quarter_hours("10:00", "15:30") + quarter_hours("19:00", "20:30")

    def test_booked_slot_excluded(self, split_shift_resolver):
        """Test that a 10:00 30-minute booking removes overlapping starts only."""
        slots = AvailabilityService.compute_available_slots(
            split_shift_resolver, TUESDAY, "A", 30, [make_appointment("x", "10:00", 30)]
        )
        assert "10:00" not in slots
        assert "10:15" not in slots
        assert "09:45" not in slots
        assert "10:30" in slots

    def test_slot_ending_at_appointment_start_allowed(self, split_shift_resolver):
        """Test that a slot ending exactly when an appointment starts is offered."""
        slots = AvailabilityService.compute_available_slots(
            split_shift_resolver, TUESDAY, "A", 60, [make_appointment("x", "12:00", 30)]
        )
        assert "11:00" in slots
        assert "11:15" not in slots
        assert "12:30" in slots

    def test_zero_or_missing_duration_uses_granularity(self, split_shift_resolver):
        """Test that duration 0 or None is treated as one granularity step."""
        expected = quarter_hours("10:00", "15:45") + quarter_hours("19:00", "20:45")
        for duration in (0, None):
            assert AvailabilityService.compute_available_slots(
                split_shift_resolver, TUESDAY, "A", duration, []
            ) == expected

    def test_negative_duration_rejected(self, split_shift_resolver):
        """Test that a negative duration is an error rather than a silent default."""
        with pytest.raises(ValueError):
            AvailabilityService.compute_available_slots(split_shift_resolver, TUESDAY, "A", -30, [])

    def test_non_positive_granularity_rejected(self, split_shift_resolver):
        """Test that the granularity must be positive."""
        with pytest.raises(ValueError):
            AvailabilityService.compute_available_slots(
                split_shift_resolver, TUESDAY, "A", 30, [], slot_granularity_minutes=0
            )

    def test_duration_longer_than_any_range(self, split_shift_resolver):
        """Test that nothing is offered when the duration fits no range."""
        assert AvailabilityService.compute_available_slots(split_shift_resolver, TUESDAY, "A", 420, []) == []

    def test_duration_exactly_fills_range(self, split_shift_resolver):
        """Test a duration equal to the range length yields the range start only."""
        assert AvailabilityService.compute_available_slots(
            split_shift_resolver, FRIDAY, "A", 180, []
        ) == ["09:00"]

    def test_not_working_day(self, split_shift_resolver):
        """Test that a day off yields no slots."""
        assert AvailabilityService.compute_available_slots(split_shift_resolver, SUNDAY, "A", 30, []) == []

    def test_malformed_date(self, split_shift_resolver):
        """Test that a malformed date yields no slots."""
        assert AvailabilityService.compute_available_slots(split_shift_resolver, "bad", "A", 30, []) == []

    def test_other_employees_and_dates_ignored(self, split_shift_resolver):
        """Test that only the requested employee's appointments on that date block slots."""
        appointments = [
            make_appointment("b", "10:00", 60, employee="B"),
            make_appointment("fri", "10:00", 60, day=FRIDAY),
        ]
        slots = AvailabilityService.compute_available_slots(split_shift_resolver, TUESDAY, "A", 30, appointments)
        assert slots[0] == "10:00"

    def test_exclude_appointment_being_edited(self, split_shift_resolver):
        """Test that the edited appointment does not block its own slot."""
        appointments = [make_appointment("editing", "10:00", 30)]
        slots = AvailabilityService.compute_available_slots(
            split_shift_resolver, TUESDAY, "A", 30, appointments, exclude_appointment_id="editing"
        )
        assert "10:00" in slots

    def test_fully_booked_range(self, split_shift_resolver):
        """Test that no slots remain in a fully booked range."""
        appointments = [make_appointment("morning", "10:00", 360), make_appointment("evening", "19:00", 120)]
        assert AvailabilityService.compute_available_slots(split_shift_resolver, TUESDAY, "A", 15, appointments) == []

    def test_custom_granularity(self, split_shift_resolver):
        """Test 30-minute steps."""
        slots = AvailabilityService.compute_available_slots(
            split_shift_resolver, FRIDAY, "A", 60, [], slot_granularity_minutes=30
        )
        assert slots == ["09:00", "09:30", "10:00", "10:30", "11:00"]

    def test_generated_slots_are_placeable(self, split_shift_resolver):
        """Test that every generated slot passes can_place for the requested duration."""
        appointments = [
            make_appointment("a", "10:20", 25),
            make_appointment("b", "13:00", 45),
            make_appointment("c", "19:30", 30),
        ]
        for duration in (15, 30, 45, 60, 90):
            candidate = make_appointment("new", "10:00", duration)
            for slot in AvailabilityService.compute_available_slots(
                split_shift_resolver, TUESDAY, "A", duration, appointments
            ):
                assert AvailabilityService.can_place(
                    split_shift_resolver, candidate, "A", slot, appointments
                ), f"{slot} for {duration} minutes"

    def test_slots_sorted_and_unique(self, split_shift_resolver):
        """Test ascending, duplicate-free output."""
        slots = AvailabilityService.compute_available_slots(split_shift_resolver, TUESDAY, "A", 15, [])
        assert slots == sorted(set(slots))


class TestCandidateStarts:
    """Test candidate start generation per working range."""

    def test_cursor_includes_last_fitting_start(self):
        """Test the cursor stops at range end minus duration, inclusive."""
        starts = AvailabilityService._generate_candidate_starts([TimeRange(600, 690)], 30, 15)
        assert starts == [600, 615, 630, 645, 660]

    def test_off_grid_range_start(self):
        """Test that the cursor starts at the range start even when off the hour grid."""
        starts = AvailabilityService._generate_candidate_starts([TimeRange(610, 670)], 30, 15)
        assert starts == [610, 625, 640]


class TestMaxFreeMinutes:
    """Test free-minute arithmetic."""

    def test_bounded_by_next_appointment(self, split_shift_resolver):
        """Test 10:00 with the next appointment at 10:45 gives 45 minutes."""
        appointments = [make_appointment("next", "10:45", 30)]
        assert AvailabilityService.max_free_minutes(
            split_shift_resolver, "A", TUESDAY, "10:00", appointments
        ) == 45

    def test_bounded_by_range_end(self, split_shift_resolver):
        """Test that the range end bounds free time when no appointment follows."""
        assert AvailabilityService.max_free_minutes(split_shift_resolver, "A", TUESDAY, "15:00", []) == 60

    def test_appointment_after_range_end_ignored(self, split_shift_resolver):
        """Test that an appointment in the evening range does not bound the morning range."""
        appointments = [make_appointment("evening", "19:00", 30)]
        assert AvailabilityService.max_free_minutes(split_shift_resolver, "A", TUESDAY, "15:30", appointments) == 30

    def test_outside_working_ranges(self, split_shift_resolver):
        """Test that a start in the split-shift gap has no free time."""
        assert AvailabilityService.max_free_minutes(split_shift_resolver, "A", TUESDAY, "17:00", []) == 0
        assert AvailabilityService.max_free_minutes(split_shift_resolver, "A", TUESDAY, "16:00", []) == 0

    def test_excluded_appointment_ignored(self, split_shift_resolver):
        """Test that the edited appointment does not bound its own free time."""
        appointments = [make_appointment("self", "10:30", 30)]
        assert AvailabilityService.max_free_minutes(
            split_shift_resolver, "A", TUESDAY, 600, appointments, exclude_appointment_id="self"
        ) == 360

    def test_accepts_minutes(self, split_shift_resolver):
        """Test integer minute input."""
        assert AvailabilityService.max_free_minutes(split_shift_resolver, "A", TUESDAY, 1230, []) == 30

    def test_malformed_input(self, split_shift_resolver):
        """Test that malformed dates or times give zero."""
        assert AvailabilityService.max_free_minutes(split_shift_resolver, "A", "bad", "10:00", []) == 0
        assert AvailabilityService.max_free_minutes(split_shift_resolver, "A", TUESDAY, "ten", []) == 0


class TestCanPlace:
    """Test the combined free-minutes and coverage check."""

    def test_fits_before_next_appointment(self, split_shift_resolver):
        """Test a 45-minute appointment fitting exactly before the next one."""
        appointment = make_appointment("moving", "13:00", 45)
        existing = [make_appointment("next", "10:45", 30)]
        assert AvailabilityService.can_place(split_shift_resolver, appointment, "A", "10:00", existing)

    def test_too_long_for_gap(self, split_shift_resolver):
        """Test a 60-minute appointment that does not fit before 10:45."""
        appointment = make_appointment("moving", "13:00", 60)
        existing = [make_appointment("next", "10:45", 30)]
        assert not AvailabilityService.can_place(split_shift_resolver, appointment, "A", "10:00", existing)

    def test_start_inside_existing_appointment(self, split_shift_resolver):
        """Test that starting in the middle of another appointment is caught by the coverage check."""
        appointment = make_appointment("moving", "13:00", 15)
        existing = [make_appointment("long", "10:00", 60)]
        assert not AvailabilityService.can_place(split_shift_resolver, appointment, "A", "10:30", existing)

    def test_same_start_as_existing_appointment(self, split_shift_resolver):
        """Test that starting at the same time as another appointment is rejected."""
        appointment = make_appointment("moving", "13:00", 30)
        existing = [make_appointment("there", "10:00", 30)]
        assert not AvailabilityService.can_place(split_shift_resolver, appointment, "A", "10:00", existing)

    def test_own_id_excluded(self, split_shift_resolver):
        """Test shifting an appointment by 15 minutes over its own old interval."""
        appointment = make_appointment("self", "10:00", 60)
        assert AvailabilityService.can_place(split_shift_resolver, appointment, "A", "10:15", [appointment])

    def test_extra_excluded_ids(self, split_shift_resolver):
        """Test that extra exclusion ids are ignored as obstacles."""
        appointment = make_appointment("new-id", "13:00", 30)
        existing = [make_appointment("old-id", "10:00", 30)]
        assert AvailabilityService.can_place(
            split_shift_resolver, appointment, "A", "10:00", existing, exclude_appointment_ids={"old-id"}
        )

    def test_past_range_end(self, split_shift_resolver):
        """Test that an appointment running past the range end is rejected."""
        appointment = make_appointment("moving", "10:00", 60)
        assert not AvailabilityService.can_place(split_shift_resolver, appointment, "A", "15:30", [])

    def test_other_employee_column(self, split_shift_resolver):
        """Test moving into another employee's column uses that employee's schedule."""
        appointment = make_appointment("moving", "10:00", 30)
        assert not AvailabilityService.can_place(split_shift_resolver, appointment, "B", "10:00", [])
        assert AvailabilityService.can_place(split_shift_resolver, appointment, "B", "13:00", [])

    def test_coverage_check_catches_what_free_minutes_misses(self, split_shift_resolver):
        """Test an appointment that began before the target slot and still covers it."""
        appointment = make_appointment("moving", "13:00", 15)
        existing = [make_appointment("covering", "10:00", 30)]
        assert AvailabilityService.max_free_minutes(
            split_shift_resolver, "A", TUESDAY, "10:15", existing
        ) >= 15
        assert not AvailabilityService.can_place(split_shift_resolver, appointment, "A", "10:15", existing)

    def test_malformed_target_slot(self, split_shift_resolver):
        """Test that an unparseable target slot is not placeable."""
        appointment = make_appointment("moving", "10:00", 30)
        assert not AvailabilityService.can_place(split_shift_resolver, appointment, "A", "later", [])
