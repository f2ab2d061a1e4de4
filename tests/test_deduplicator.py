"""Tests for deduplicator service."""

from datetime import date, time

import pytest

from src.services import deduplicator
from tests.conftest import create_all_day_event, create_candidate, create_timed_event

hypothesis = pytest.importorskip("hypothesis")
from hypothesis import given  # noqa: E402
from hypothesis import strategies as st  # noqa: E402


def test_similarity_identical_after_trim_and_case() -> None:
    """Test case and surrounding whitespace are ignored."""
    assert deduplicator.normalized_levenshtein_similarity("  Exam ", "exam") == 1.0


def test_similarity_one_substitution() -> None:
    """Test one edit over four characters."""
    assert deduplicator.normalized_levenshtein_similarity("abcd", "abce") == 0.75


def test_similarity_empty_strings() -> None:
    """Test empty-string edge cases."""
    assert deduplicator.normalized_levenshtein_similarity("", "") == 1.0
    assert deduplicator.normalized_levenshtein_similarity("", "anything") == 0.0
    assert deduplicator.normalized_levenshtein_similarity("   ", "x") == 0.0


def test_similarity_korean_text() -> None:
    """Test Hangul syllables are compared per character."""
    score = deduplicator.normalized_levenshtein_similarity("수강신청", "수강정정")
    assert score == 0.5


@given(st.text(min_size=1).filter(lambda s: s.strip()))
def test_similarity_identity(text: str) -> None:
    assert deduplicator.normalized_levenshtein_similarity(text, text) == 1.0


@given(st.text(), st.text())
def test_similarity_symmetric_and_bounded(a: str, b: str) -> None:
    forward = deduplicator.normalized_levenshtein_similarity(a, b)
    backward = deduplicator.normalized_levenshtein_similarity(b, a)

    assert forward == backward
    assert 0.0 <= forward <= 1.0


def test_compute_fingerprint_deterministic() -> None:
    """Test fingerprint is stable and a SHA-256 hex digest."""
    first = deduplicator.compute_fingerprint("학술제", date(2025, 10, 28), "본문")
    second = deduplicator.compute_fingerprint("학술제", "2025-10-28", "본문")

    assert first == second
    assert len(first) == 64
    assert first == first.lower()


def test_compute_fingerprint_sensitive_to_description() -> None:
    """Test different descriptions give different fingerprints."""
    first = deduplicator.compute_fingerprint("학술제", "2025-10-28", "설명 1")
    second = deduplicator.compute_fingerprint("학술제", "2025-10-28", "설명 2")

    assert first != second


def test_fingerprint_ignores_end_date_and_times() -> None:
    """Test only title, start date and description participate."""
    base = create_candidate(start=date(2025, 11, 1))
    longer = create_candidate(
        start=date(2025, 11, 1),
        end=date(2025, 11, 2),
        start_time=time(9, 0),
        end_time=time(10, 0),
    )

    assert deduplicator.fingerprint_candidate(base) == deduplicator.fingerprint_candidate(
        longer
    )


def test_is_duplicate_source_item_shortcut() -> None:
    """Test same source item id is a duplicate (scenario: identical notice)."""
    existing = [
        create_all_day_event(
            "evt-1",
            "Sample Event",
            "2025-10-02",
            description="참가 신청 기간: 2025-10-02",
            source_item_id="12345",
        )
    ]
    candidate = create_candidate(
        title="Sample Event",
        description="참가 신청 기간: 2025-10-02",
        start=date(2025, 10, 2),
    )

    assert deduplicator.is_duplicate(
        existing, candidate, threshold=0.8, source_item_id="12345"
    )


def test_is_duplicate_source_item_shortcut_ignores_dates() -> None:
    """Test the source id match wins even on another day."""
    existing = [create_all_day_event("evt-1", "전혀 다름", "2025-01-01", source_item_id="777")]
    candidate = create_candidate(title="수강신청", start=date(2025, 11, 1))

    assert deduplicator.is_duplicate(existing, candidate, source_item_id="777")


def test_is_duplicate_timed_without_overlap() -> None:
    """Test timed events on the same day without clock overlap."""
    existing = [
        create_timed_event(
            "evt-1",
            "Morning Meeting",
            "2025-10-22T09:00:00+09:00",
            "2025-10-22T10:00:00+09:00",
        )
    ]
    candidate = create_candidate(
        title="Afternoon Gathering",
        description="",
        start=date(2025, 10, 22),
        start_time=time(14, 0),
        end_time=time(15, 0),
    )

    assert not deduplicator.is_duplicate(existing, candidate, threshold=0.85)


def test_is_duplicate_timed_with_overlap_and_same_title() -> None:
    """Test overlapping timed events with the same title."""
    existing = [
        create_timed_event(
            "evt-1",
            "Conference Day",
            "2025-10-22T09:00:00+09:00",
            "2025-10-22T11:00:00+09:00",
        )
    ]
    candidate = create_candidate(
        title="Conference Day",
        description="",
        start=date(2025, 10, 22),
        start_time=time(10, 0),
        end_time=time(12, 0),
    )

    assert deduplicator.is_duplicate(existing, candidate, threshold=0.85)


def test_is_duplicate_same_title_different_times_not_duplicate() -> None:
    """Test identical titles at disjoint times are distinct sessions."""
    existing = [
        create_timed_event(
            "evt-1",
            "설명회",
            "2025-10-22T09:00:00+09:00",
            "2025-10-22T10:00:00+09:00",
        )
    ]
    candidate = create_candidate(
        title="설명회",
        description="",
        start=date(2025, 10, 22),
        start_time=time(10, 0),
        end_time=time(11, 0),
    )

    assert not deduplicator.is_duplicate(existing, candidate)


def test_is_duplicate_different_day_not_duplicate() -> None:
    """Test identical title on another day is never a duplicate."""
    existing = [create_all_day_event("evt-1", "수강신청", "2025-11-02")]
    candidate = create_candidate(title="수강신청", start=date(2025, 11, 1))

    assert not deduplicator.is_duplicate(existing, candidate)


def test_is_duplicate_timed_vs_all_day_mismatch() -> None:
    """Test a timed candidate never matches an all-day event."""
    existing = [create_all_day_event("evt-1", "수강신청", "2025-11-01")]
    candidate = create_candidate(
        title="수강신청",
        start=date(2025, 11, 1),
        start_time=time(9, 0),
        end_time=time(18, 0),
    )

    assert not deduplicator.is_duplicate(existing, candidate)


def test_is_duplicate_all_day_title_similarity() -> None:
    """Test all-day events on the same day compare by title."""
    existing = [create_all_day_event("evt-1", "2025 봄학기 수강신청", "2025-11-01")]
    candidate = create_candidate(
        title="2025 봄학기 수강신청 ", description="다른 설명", start=date(2025, 11, 1)
    )

    assert deduplicator.is_duplicate(existing, candidate)


def test_is_duplicate_description_similarity_alone() -> None:
    """Test matching descriptions suffice when titles differ."""
    existing = [
        create_all_day_event(
            "evt-1", "교원 연수", "2025-11-01", description="교원 역량 강화 연수 안내"
        )
    ]
    candidate = create_candidate(
        title="역량 강화 프로그램",
        description="교원 역량 강화 연수 안내",
        start=date(2025, 11, 1),
    )

    assert deduplicator.is_duplicate(existing, candidate)


def test_is_duplicate_two_empty_descriptions_match() -> None:
    """Test empty descriptions on both sides score as identical."""
    existing = [create_all_day_event("evt-1", "졸업식", "2025-11-01", description="")]
    candidate = create_candidate(title="입학식 예행연습", description="", start=date(2025, 11, 1))

    assert deduplicator.is_duplicate(existing, candidate)


def test_is_duplicate_empty_existing_event_same_day() -> None:
    """Test an untitled, undescribed event absorbs an empty-description candidate."""
    existing = [create_all_day_event("evt-1", "", "2025-10-02", description="")]
    candidate = create_candidate(
        title="Totally different", description="", start=date(2025, 10, 2)
    )

    assert deduplicator.is_duplicate(existing, candidate, threshold=0.85)


def test_is_duplicate_empty_description_against_text_not_duplicate() -> None:
    existing = [create_all_day_event("evt-1", "졸업식", "2025-11-01", description="학위수여식")]
    candidate = create_candidate(title="입학식 예행연습", description="", start=date(2025, 11, 1))

    assert not deduplicator.is_duplicate(existing, candidate)


def test_is_duplicate_below_threshold() -> None:
    """Test dissimilar titles on the same day."""
    existing = [create_all_day_event("evt-1", "졸업식", "2025-11-01")]
    candidate = create_candidate(title="기숙사 입사 신청", description="x", start=date(2025, 11, 1))

    assert not deduplicator.is_duplicate(existing, candidate)


def test_is_duplicate_malformed_existing_timestamp_treated_as_all_day() -> None:
    """Test an unparseable date-time degrades to all-day comparison."""
    existing = [
        create_timed_event("evt-1", "수강신청", "2025-11-01Tgarbage", "2025-11-01Tgarbage")
    ]
    all_day = create_candidate(title="수강신청", start=date(2025, 11, 1))
    timed = create_candidate(
        title="수강신청",
        start=date(2025, 11, 1),
        start_time=time(9, 0),
        end_time=time(10, 0),
    )

    assert deduplicator.is_duplicate(existing, all_day)
    assert not deduplicator.is_duplicate(existing, timed)


def test_is_duplicate_existing_without_start_skipped() -> None:
    """Test events lacking a start are ignored."""
    existing = [create_all_day_event("evt-1", "수강신청", "2025-11-01")]
    existing[0] = existing[0].model_copy(update={"start": None})

    assert not deduplicator.is_duplicate(
        existing, create_candidate(title="수강신청", start=date(2025, 11, 1))
    )


def test_is_duplicate_empty_window() -> None:
    assert not deduplicator.is_duplicate([], create_candidate())


def test_is_duplicate_does_not_modify_inputs() -> None:
    """Test window and candidate are left untouched."""
    existing = [create_all_day_event("evt-1", "수강신청", "2025-11-01")]
    candidate = create_candidate(title="수강신청", start=date(2025, 11, 1))
    window_before = [event.model_copy() for event in existing]
    candidate_before = candidate.model_copy()

    deduplicator.is_duplicate(existing, candidate)

    assert existing == window_before
    assert candidate == candidate_before
