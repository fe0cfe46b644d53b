from datetime import date, datetime, timedelta

import pytest

from timecop.business_time import (
    GENERATED_DESCRIPTION, GENERATED_SOURCE_ID, add_minutes_to_day,
    add_percentages_to_day, bucket_events_by_day, compact_day, days_between,
    latest_event, slam_to_earliest, split_event_at_midnight
)
from timecop.models import AbsoluteTaskSpec, Event, EventSource, PercentageTaskSpec

DAY = date(2024, 1, 15)  # Monday


def at(hour, minute=0, day=DAY):
    return datetime(day.year, day.month, day.day, hour, minute)


def event(start, end, description="Meeting"):
    return Event(start_time=start, end_time=end, description=description, source_id="gc-1")


def assert_contiguous(events):
    ordered = sorted(events, key=lambda e: e.start_time)
    for previous, current in zip(ordered, ordered[1:]):
        assert current.start_time == previous.end_time


# Splitting

def test_same_day_event_is_unchanged():
    e = event(at(10), at(11))
    assert split_event_at_midnight(e) == [e]


def test_overnight_event_splits_at_midnight():
    e = event(at(23), at(1, day=DAY + timedelta(days=1)))
    first, second = split_event_at_midnight(e)

    assert first.start_time == at(23)
    assert first.end_time == datetime(2024, 1, 15, 23, 59, 59)
    assert second.start_time == datetime(2024, 1, 16, 0, 0, 0)
    assert second.end_time == e.end_time
    assert first.description == second.description == "Meeting"
    assert first.source_id == second.source_id == "gc-1"


@pytest.mark.parametrize("days_spanned", [1, 2, 5, 400])
def test_split_preserves_total_duration(days_spanned):
    e = event(at(22, 15), at(2, 45, day=DAY + timedelta(days=days_spanned)))
    pieces = split_event_at_midnight(e)

    assert len(pieces) == days_spanned + 1
    assert sum(p.duration_minutes for p in pieces) == e.duration_minutes
    assert all(p.start_time.date() == p.end_time.date() for p in pieces)


# Bucketing

def test_days_between_excludes_weekends():
    days = days_between(date(2024, 1, 12), date(2024, 1, 16), include_weekends=False)
    assert days == [date(2024, 1, 12), date(2024, 1, 15), date(2024, 1, 16)]


def test_days_between_single_day_and_weekends():
    assert days_between(DAY, DAY) == [DAY]
    assert len(days_between(date(2024, 1, 12), date(2024, 1, 16), include_weekends=True)) == 5


def test_bucketing_empty_range_keeps_every_day():
    days = [DAY, DAY + timedelta(days=1), DAY + timedelta(days=2)]
    buckets = bucket_events_by_day([], days)
    assert list(buckets) == days
    assert all(events == [] for events in buckets.values())


def test_bucketing_groups_by_start_day_and_drops_outside():
    tuesday = DAY + timedelta(days=1)
    inside = event(at(10), at(11))
    outside = event(at(10, day=date(2024, 1, 20)), at(11, day=date(2024, 1, 20)))
    overnight = event(at(23), at(1, day=tuesday))

    buckets = bucket_events_by_day([inside, outside, overnight], [DAY])

    assert list(buckets) == [DAY]
    assert [e.start_time for e in buckets[DAY]] == [at(10), at(23)]
    # the tail after midnight falls on an unrequested day
    assert buckets[DAY][1].end_time == datetime(2024, 1, 15, 23, 59, 59)


def test_bucketing_overnight_into_requested_day():
    tuesday = DAY + timedelta(days=1)
    overnight = event(at(23), at(1, day=tuesday))

    buckets = bucket_events_by_day([overnight], [DAY, tuesday])

    assert len(buckets[DAY]) == 1
    assert buckets[tuesday][0].start_time == datetime(2024, 1, 16, 0, 0)


# Compaction

def test_compactor_moves_first_event_to_workday_start():
    placed = slam_to_earliest([], event(at(10), at(11)))
    assert [(e.start_time, e.end_time) for e in placed] == [(at(9), at(10))]


def test_compactor_leaves_early_event_alone():
    early = event(at(8), at(8, 30))
    assert slam_to_earliest([], early) == [early]


def test_compactor_follows_latest_end_not_list_order():
    placed = [event(at(11), at(12)), event(at(9), at(10))]
    result = slam_to_earliest(placed, event(at(15), at(15, 45)))

    assert result[:2] == placed
    assert result[2].start_time == at(12)
    assert result[2].end_time == at(12, 45)


def test_compact_day_sorts_and_packs():
    events = [
        event(at(14), at(15), "Review"),
        event(at(10), at(10, 30), "Standup"),
        event(at(16), at(18), "Workshop"),
    ]
    placed = compact_day(events)

    assert [e.description for e in placed] == ["Standup", "Review", "Workshop"]
    assert placed[0].start_time == at(9)
    assert placed[-1].end_time == at(12, 30)
    assert_contiguous(placed)


def test_compact_day_overlapping_events_become_sequential():
    placed = compact_day([event(at(9), at(11)), event(at(10), at(12))])
    assert [(e.start_time, e.end_time) for e in placed] == [(at(9), at(11)), (at(11), at(13))]


def test_compact_day_starts_early_when_first_event_is_early():
    placed = compact_day([event(at(12), at(13)), event(at(7, 30), at(8))])
    assert [(e.start_time, e.end_time) for e in placed] == [(at(7, 30), at(8)), (at(8), at(9))]


def test_compacted_split_piece_keeps_whole_minutes():
    piece = split_event_at_midnight(event(at(23), at(1, day=DAY + timedelta(days=1))))[0]
    placed = compact_day([piece])
    assert (placed[0].start_time, placed[0].end_time) == (at(9), at(10))


def test_event_ending_at_midnight_anchors_next_day(caplog):
    tuesday = DAY + timedelta(days=1)
    late = event(at(23), at(0, day=tuesday), "Release")

    with caplog.at_level("DEBUG", logger="timecop.business_time"):
        buckets = bucket_events_by_day([late, event(at(10, day=tuesday), at(11, day=tuesday))], [DAY, tuesday])
    assert "leaving a 0min piece at 00:00" in caplog.text

    placed = compact_day(buckets[tuesday])
    assert [(e.start_time.hour, e.duration_minutes) for e in placed] == [(0, 0), (0, 60)]


def test_latest_event():
    a, b = event(at(9), at(12)), event(at(10), at(11))
    assert latest_event([a, b]) is a


# Allocation

def test_absolute_pass_appends_in_order():
    placed = compact_day([event(at(9), at(10))])
    specs = [AbsoluteTaskSpec(task_id=2, minutes=30), AbsoluteTaskSpec(task_id=1, minutes=45)]

    result = add_minutes_to_day(specs, placed, DAY)

    assert [e.task_id for e in result] == [None, 2, 1]
    assert (result[1].start_time, result[1].end_time) == (at(10), at(10, 30))
    assert (result[2].start_time, result[2].end_time) == (at(10, 30), at(11, 15))
    assert result[1].description == GENERATED_DESCRIPTION
    assert result[1].source is EventSource.GENERATED
    assert result[1].source_id == GENERATED_SOURCE_ID


def test_absolute_pass_honors_durations_beyond_the_workday():
    result = add_minutes_to_day([AbsoluteTaskSpec(task_id=1, minutes=600)], [], DAY)
    assert (result[0].start_time, result[0].end_time) == (at(9), at(19))


def test_percentage_pass_uses_one_remainder():
    placed = [event(at(9), at(10))]
    specs = [PercentageTaskSpec(task_id=1, fraction=0.5), PercentageTaskSpec(task_id=2, fraction=0.25)]

    result = add_percentages_to_day(specs, 480, placed, DAY)

    # 420 minutes remain; both percentages apply to that same figure
    assert [e.duration_minutes for e in result[1:]] == [210, 105]
    assert result[-1].end_time == at(15, 15)
    assert_contiguous(result)


def test_percentage_pass_allows_more_than_whole():
    result = add_percentages_to_day([PercentageTaskSpec(task_id=1, fraction=1.5)], 60, [], DAY)
    assert result[0].duration_minutes == 90


@pytest.mark.parametrize("minutes_worked", [60, 30])
def test_percentage_pass_skipped_when_day_is_full(minutes_worked):
    placed = [event(at(9), at(10))]
    specs = [PercentageTaskSpec(task_id=1, fraction=0.5), PercentageTaskSpec(task_id=2, fraction=0.5)]
    assert add_percentages_to_day(specs, minutes_worked, placed, DAY) == placed


def test_percentage_rounds_half_away_from_zero():
    # 0.5 * 45 = 22.5 -> 23
    result = add_percentages_to_day([PercentageTaskSpec(task_id=1, fraction=0.5)], 45, [], DAY)
    assert result[0].duration_minutes == 23
