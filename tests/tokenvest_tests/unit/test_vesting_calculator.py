"""
Tests for the vesting calculator.

Covers the reference half-unlock schedule, boundary timestamps, monotonicity
and the degenerate schedule shapes (0%, 100%, zero-length window).
"""

import pytest

from tokenvest.core.fixed_point import SCALE, percent_to_fixed
from tokenvest.vesting.calculator import (
    VestingState,
    available_to_claim,
    locked_portion,
    vested_total,
    vesting_state,
)
from tokenvest.vesting.ledger import ParticipantRecord
from tokenvest.vesting.rounds import VestingRound


HALF_ROUND = VestingRound(unlock_start=100, unlock_cliff_end=200, vesting_period=100, vesting_percent=SCALE // 2)


def _record(allotted=1000, claimed=0):
    return ParticipantRecord(allotted=allotted, claimed=claimed, round_index=0)


class TestReferenceSchedule:
    @pytest.mark.parametrize(
        "now,expected",
        [
            (50, 0),
            (150, 0),
            (200, 500),
            (250, 750),
            (300, 1000),
            (301, 1000),
        ],
    )
    def test_available_over_time(self, now, expected):
        assert available_to_claim(_record(), HALF_ROUND, now) == expected

    def test_nothing_at_unlock_start(self):
        assert available_to_claim(_record(), HALF_ROUND, HALF_ROUND.unlock_start) == 0

    def test_full_vest_one_second_after_window(self):
        record = _record(claimed=400)
        now = HALF_ROUND.unlock_cliff_end + HALF_ROUND.vesting_period + 1
        assert available_to_claim(record, HALF_ROUND, now) == record.allotted - record.claimed

    def test_claimed_amount_is_subtracted(self):
        assert available_to_claim(_record(claimed=500), HALF_ROUND, 250) == 250

    def test_unassigned_participant_gets_nothing(self):
        assert available_to_claim(_record(allotted=0), HALF_ROUND, 10_000) == 0


class TestMonotonicity:
    def test_vested_total_never_decreases(self):
        record = _record(allotted=987_654_321)
        previous = 0
        for now in range(0, 400):
            current = vested_total(record, HALF_ROUND, now)
            assert current >= previous, f"vested total dropped at t={now}"
            previous = current
        assert previous == record.allotted

    def test_never_exceeds_allotment(self):
        vesting_round = VestingRound(10, 20, 7, percent_to_fixed("33.3"))
        record = _record(allotted=10**27)
        for now in range(0, 40):
            assert vested_total(record, vesting_round, now) <= record.allotted


class TestScheduleShapes:
    def test_zero_percent_is_purely_linear(self):
        vesting_round = VestingRound(0, 100, 100, 0)
        assert available_to_claim(_record(), vesting_round, 100) == 0
        assert available_to_claim(_record(), vesting_round, 150) == 500

    def test_full_percent_unlocks_everything_at_cliff(self):
        vesting_round = VestingRound(0, 100, 100, SCALE)
        assert available_to_claim(_record(), vesting_round, 99) == 0
        assert available_to_claim(_record(), vesting_round, 100) == 1000

    def test_zero_period_releases_everything_at_cliff(self):
        vesting_round = VestingRound(0, 100, 0, SCALE // 4)
        assert available_to_claim(_record(), vesting_round, 99) == 0
        assert available_to_claim(_record(), vesting_round, 100) == 1000

    def test_linear_part_rounds_down(self):
        vesting_round = VestingRound(0, 10, 3, 0)
        # 1000 * 1 / 3 = 333.33...
        assert available_to_claim(_record(), vesting_round, 11) == 333

    def test_locked_portion_uses_fixed_point(self):
        assert locked_portion(1000, percent_to_fixed(25)) == 750
        assert locked_portion(1000, 0) == 1000
        assert locked_portion(1000, SCALE) == 0


class TestVestingState:
    def test_state_progression(self):
        record = _record()
        assert vesting_state(record, HALF_ROUND, 150) == VestingState.UNVESTED
        assert vesting_state(record, HALF_ROUND, 200) == VestingState.PARTIALLY_VESTED
        assert vesting_state(record, HALF_ROUND, 250) == VestingState.PARTIALLY_VESTED
        assert vesting_state(record, HALF_ROUND, 300) == VestingState.FULLY_VESTED

    def test_state_ignores_claims(self):
        record = _record(claimed=1000)
        assert vesting_state(record, HALF_ROUND, 500) == VestingState.FULLY_VESTED
