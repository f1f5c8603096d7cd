import pytest

from agenda.domain.appointments.status import (
    AppointmentStatus as S,
    can_transition,
    is_occupying,
    is_terminal,
)


@pytest.mark.parametrize("status", [S.COMPLETED, S.CANCELLED, S.SERIES_ENDED])
def test_terminal_statuses_are_final(status):
    assert is_terminal(status)
    for target in S:
        assert can_transition(status, target) is (target == status)


def test_manual_edits_move_freely_between_live_statuses():
    assert can_transition(S.PRE_SCHEDULED, S.SCHEDULED)
    assert can_transition(S.CONFIRMED, S.SCHEDULED)
    assert can_transition(S.SCHEDULED, S.COMPLETED)
    assert can_transition(S.PRE_SCHEDULED, S.CANCELLED)


def test_series_ended_only_through_contract_end():
    assert not can_transition(S.SCHEDULED, S.SERIES_ENDED)
    assert can_transition(S.SCHEDULED, S.SERIES_ENDED, via_contract_end=True)
    assert can_transition(S.CONFIRMED, S.SERIES_ENDED, via_contract_end=True)
    assert not can_transition(S.PRE_SCHEDULED, S.SERIES_ENDED, via_contract_end=True)


def test_accepts_raw_strings():
    assert is_occupying("COMPLETED")
    assert not is_occupying("CANCELLED")
    assert is_terminal("SERIES_ENDED")
