"""Tests for long event splitting."""

from datetime import date, time

from src.services.event_splitter import calculate_days_duration, split_long_event
from tests.conftest import create_candidate


def test_calculate_days_duration_inclusive() -> None:
    assert calculate_days_duration(date(2025, 11, 1), date(2025, 11, 1)) == 1
    assert calculate_days_duration(date(2025, 10, 30), date(2025, 11, 2)) == 4


def test_split_three_days_unchanged() -> None:
    """Test a three-day span is kept as one event."""
    candidate = create_candidate(start=date(2025, 11, 1), end=date(2025, 11, 3))

    result = split_long_event(candidate)

    assert result == [candidate]
    assert result[0] is candidate


def test_split_four_days_into_markers() -> None:
    """Test a four-day span becomes two single-day markers."""
    candidate = create_candidate(
        title="수강신청", start=date(2025, 11, 1), end=date(2025, 11, 4)
    )

    start_marker, end_marker = split_long_event(candidate)

    assert start_marker.start_date == start_marker.end_date == date(2025, 11, 1)
    assert end_marker.start_date == end_marker.end_date == date(2025, 11, 4)


def test_split_week_long_festival() -> None:
    """Test marker titles for a week-long event."""
    candidate = create_candidate(
        title="학술제",
        description="학술제 안내",
        start=date(2025, 10, 28),
        end=date(2025, 11, 3),
    )

    start_marker, end_marker = split_long_event(candidate)

    assert start_marker.title == "학술제 (~2025-11-03)"
    assert start_marker.start_date == date(2025, 10, 28)
    assert start_marker.end_date == date(2025, 10, 28)
    assert end_marker.title == "학술제 (2025-10-28~)"
    assert end_marker.start_date == date(2025, 11, 3)
    assert end_marker.end_date == date(2025, 11, 3)
    assert start_marker.description == end_marker.description == "학술제 안내"


def test_split_preserves_times() -> None:
    candidate = create_candidate(
        start=date(2025, 11, 1),
        end=date(2025, 11, 10),
        start_time=time(9, 0),
        end_time=time(18, 0),
    )

    for marker in split_long_event(candidate):
        assert marker.start_time == time(9, 0)
        assert marker.end_time == time(18, 0)


def test_split_does_not_modify_input() -> None:
    candidate = create_candidate(start=date(2025, 11, 1), end=date(2025, 11, 10))
    before = candidate.model_copy()

    split_long_event(candidate)

    assert candidate == before


def test_split_custom_max_days() -> None:
    candidate = create_candidate(start=date(2025, 11, 1), end=date(2025, 11, 2))

    assert len(split_long_event(candidate, max_days=1)) == 2
