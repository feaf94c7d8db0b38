"""
Single-pass timeline aggregation.

``TimelineAccumulator`` folds normalized records into overall, per-year,
per-month and per-mode totals. Accumulators (and the heatmap accumulator fed
from the same stream) merge associatively, so shards of a large export can be
folded in separate processes and combined in shard order.
"""

import logging
from collections import Counter, deque
from collections.abc import Iterable
from concurrent.futures import ProcessPoolExecutor
from config import SHARD_SIZE
from core.activity import TransportMode, classify_activity
from core.heatmap import HeatmapAccumulator
from core.records import RecordStats, RecordTracker
from core.segments import Activity, Segment, TripMarker, Visit, normalize_segment
from dataclasses import dataclass, field
from datetime import date
from itertools import islice
from utils.geocoding import coord_to_country
from utils.rounding import round_half_up, round_km

logger = logging.getLogger(__name__)

MODE_ORDER = list(TransportMode)


def _published_km(km_by_mode: Counter) -> dict[TransportMode, int]:
    """Whole-km figures per mode, in canonical mode order"""
    return {mode: round_km(km_by_mode[mode]) for mode in MODE_ORDER if mode in km_by_mode}


@dataclass
class YearBucket:
    visits: int = 0
    activities: int = 0
    trips: int = 0
    km_by_mode: Counter = field(default_factory=Counter)
    places: set = field(default_factory=set)
    days: set = field(default_factory=set)
    offsets: set = field(default_factory=set)
    countries: set = field(default_factory=set)

    def merge(self, other: 'YearBucket'):
        self.visits += other.visits
        self.activities += other.activities
        self.trips += other.trips
        self.km_by_mode.update(other.km_by_mode)
        self.places |= other.places
        self.days |= other.days
        self.offsets |= other.offsets
        self.countries |= other.countries


@dataclass
class MonthBucket:
    visits: int = 0
    activities: int = 0
    km_by_mode: Counter = field(default_factory=Counter)

    def merge(self, other: 'MonthBucket'):
        self.visits += other.visits
        self.activities += other.activities
        self.km_by_mode.update(other.km_by_mode)


@dataclass(frozen=True)
class YearlyStat:
    year: int
    visits: int
    activities: int
    total_km: int
    km_by_mode: dict[TransportMode, int]
    unique_places: int
    days_tracked: int
    trips: int
    timezones: int
    top_mode: TransportMode | None
    km_per_day: int
    countries: tuple[str, ...]

    def to_dict(self) -> dict:
        return {
            'year': self.year,
            'visits': self.visits,
            'activities': self.activities,
            'totalKm': self.total_km,
            'kmByMode': {mode.value: km for mode, km in self.km_by_mode.items()},
            'uniquePlaces': self.unique_places,
            'daysTracked': self.days_tracked,
            'trips': self.trips,
            'timezones': self.timezones,
            'topMode': self.top_mode.value if self.top_mode else None,
            'kmPerDay': self.km_per_day,
            'countries': list(self.countries),
        }


@dataclass(frozen=True)
class MonthlyStat:
    month: str
    visits: int
    activities: int
    total_km: int

    def to_dict(self) -> dict:
        return {'month': self.month, 'visits': self.visits, 'activities': self.activities, 'totalKm': self.total_km}


@dataclass(frozen=True)
class DistanceSummary:
    km_by_mode: dict[TransportMode, int]

    @property
    def total_km(self) -> int:
        return sum(self.km_by_mode.values())

    def to_dict(self) -> dict:
        return {'totalKm': self.total_km, **{mode.value: km for mode, km in self.km_by_mode.items()}}


@dataclass(frozen=True)
class Counts:
    total_visits: int
    unique_places: int
    total_activities: int
    total_trips: int
    total_days_tracked: int
    total_raw_records: int

    def to_dict(self) -> dict:
        return {
            'totalVisits': self.total_visits,
            'uniquePlaces': self.unique_places,
            'totalActivities': self.total_activities,
            'totalTrips': self.total_trips,
            'totalDaysTracked': self.total_days_tracked,
            'totalRawRecords': self.total_raw_records,
        }


@dataclass(frozen=True)
class TimelineSummary:
    first_date: date | None
    last_date: date | None
    distance: DistanceSummary
    counts: Counts
    yearly_stats: tuple[YearlyStat, ...]
    monthly_stats: tuple[MonthlyStat, ...]
    activity_distribution: dict[TransportMode, float]
    records: RecordStats


class TimelineAccumulator:
    """Running totals for one pass (or one shard) over the timeline"""

    def __init__(self):
        self.raw_records = 0
        self.total_visits = 0
        self.total_activities = 0
        self.total_trips = 0
        self.km_by_mode: Counter = Counter()
        self.places: set[str] = set()
        self.days: set[date] = set()
        self.years: dict[int, YearBucket] = {}
        self.months: dict[str, MonthBucket] = {}
        self.first_date: date | None = None
        self.last_date: date | None = None
        self.records = RecordTracker()

    def _year(self, year: int) -> YearBucket:
        if year not in self.years:
            self.years[year] = YearBucket()
        return self.years[year]

    def _month(self, month: str) -> MonthBucket:
        if month not in self.months:
            self.months[month] = MonthBucket()
        return self.months[month]

    def _extend_range(self, day: date | None):
        if day is None:
            return
        if self.first_date is None or day < self.first_date:
            self.first_date = day
        if self.last_date is None or day > self.last_date:
            self.last_date = day

    def add_raw(self, raw) -> Segment | None:
        """Count one raw segment and fold it in if it normalizes"""
        self.raw_records += 1
        segment = normalize_segment(raw)
        if segment is not None:
            self.add(segment)
        return segment

    def add(self, segment: Segment):
        self._extend_range(segment.start_date)
        self._extend_range(segment.end_date)

        year = segment.year
        if year is not None and segment.utc_offset_minutes is not None:
            self._year(year).offsets.add(segment.utc_offset_minutes)

        if isinstance(segment, Visit):
            self._add_visit(segment)
        elif isinstance(segment, Activity):
            self._add_activity(segment)
        elif isinstance(segment, TripMarker):
            self._add_trip(segment)

    def _add_visit(self, visit: Visit):
        self.total_visits += 1
        self.places.add(visit.place_id)

        if visit.year is not None:
            bucket = self._year(visit.year)
            bucket.visits += 1
            bucket.places.add(visit.place_id)
            if visit.coordinates is not None:
                country = coord_to_country(*visit.coordinates)
                if country:
                    bucket.countries.add(country)
            self._month(visit.month).visits += 1

    def _add_activity(self, activity: Activity):
        mode = classify_activity(activity.raw_activity_type)
        km = activity.distance_km

        self.total_activities += 1
        self.km_by_mode[mode] += km

        day = activity.start_date
        if day is not None:
            self.days.add(day)
            bucket = self._year(activity.year)
            bucket.activities += 1
            bucket.km_by_mode[mode] += km
            bucket.days.add(day)
            month = self._month(activity.month)
            month.activities += 1
            month.km_by_mode[mode] += km

        self.records.observe_activity(activity, mode)

    def _add_trip(self, trip: TripMarker):
        self.total_trips += 1
        if trip.year is not None:
            self._year(trip.year).trips += 1
        self.records.observe_trip(trip)

    def merge(self, other: 'TimelineAccumulator') -> 'TimelineAccumulator':
        """Combine with the accumulator of a later shard"""
        self.raw_records += other.raw_records
        self.total_visits += other.total_visits
        self.total_activities += other.total_activities
        self.total_trips += other.total_trips
        self.km_by_mode.update(other.km_by_mode)
        self.places |= other.places
        self.days |= other.days
        for year, bucket in other.years.items():
            self._year(year).merge(bucket)
        for month, bucket in other.months.items():
            self._month(month).merge(bucket)
        self._extend_range(other.first_date)
        self._extend_range(other.last_date)
        self.records.merge(other.records)
        return self

    def _yearly_stat(self, year: int, bucket: YearBucket) -> YearlyStat:
        km_by_mode = _published_km(bucket.km_by_mode)
        total_km = sum(km_by_mode.values())
        days = len(bucket.days)

        top_mode = None
        if bucket.km_by_mode:
            top_mode = max((mode for mode in MODE_ORDER if mode in bucket.km_by_mode), key=lambda m: bucket.km_by_mode[m])

        return YearlyStat(
            year=year,
            visits=bucket.visits,
            activities=bucket.activities,
            total_km=total_km,
            km_by_mode=km_by_mode,
            unique_places=len(bucket.places),
            days_tracked=days,
            trips=bucket.trips,
            timezones=len(bucket.offsets),
            top_mode=top_mode,
            km_per_day=round_km(total_km / days) if days else 0,
            countries=tuple(sorted(bucket.countries)),
        )

    def activity_distribution(self) -> dict[TransportMode, float]:
        """Share of total km per mode, as a percentage with one decimal; zero entries omitted"""
        total = sum(self.km_by_mode.values())
        if total <= 0:
            return {}
        distribution = {}
        for mode in MODE_ORDER:
            pct = round_half_up(self.km_by_mode[mode] / total * 100, 1)
            if pct > 0:
                distribution[mode] = pct
        return distribution

    def finalize(self) -> TimelineSummary:
        # Years seen only through trips or offsets are not published
        yearly_stats = tuple(
            self._yearly_stat(year, bucket)
            for year, bucket in sorted(self.years.items())
            if bucket.visits or bucket.activities
        )
        monthly_stats = tuple(
            MonthlyStat(
                month=month,
                visits=bucket.visits,
                activities=bucket.activities,
                total_km=sum(_published_km(bucket.km_by_mode).values()),
            )
            for month, bucket in sorted(self.months.items())
        )

        return TimelineSummary(
            first_date=self.first_date,
            last_date=self.last_date,
            distance=DistanceSummary(km_by_mode={mode: round_km(self.km_by_mode[mode]) for mode in MODE_ORDER}),
            counts=Counts(
                total_visits=self.total_visits,
                unique_places=len(self.places),
                total_activities=self.total_activities,
                total_trips=self.total_trips,
                total_days_tracked=len(self.days),
                total_raw_records=self.raw_records,
            ),
            yearly_stats=yearly_stats,
            monthly_stats=monthly_stats,
            activity_distribution=self.activity_distribution(),
            records=self.records.finalize(yearly_stats),
        )


def fold_shard(raw_segments: Iterable) -> tuple[TimelineAccumulator, HeatmapAccumulator]:
    """Fold raw segments into fresh timeline and heatmap accumulators"""
    timeline = TimelineAccumulator()
    heatmap = HeatmapAccumulator()
    for raw in raw_segments:
        segment = timeline.add_raw(raw)
        if segment is not None:
            heatmap.add(segment)
    return timeline, heatmap


def _shards(raw_segments: Iterable, shard_size: int):
    iterator = iter(raw_segments)
    while shard := list(islice(iterator, shard_size)):
        yield shard


def fold_segments(
    raw_segments: Iterable, workers: int = 1, shard_size: int = SHARD_SIZE
) -> tuple[TimelineAccumulator, HeatmapAccumulator]:
    """Fold a raw segment stream, optionally across worker processes

    Shards are merged in stream order, so the result matches a sequential fold.
    """
    if workers <= 1:
        return fold_shard(raw_segments)

    logger.info(f"Folding timeline with {workers} worker processes (shard size {shard_size:,})")
    timeline = TimelineAccumulator()
    heatmap = HeatmapAccumulator()
    pending = deque()

    def collect(future):
        shard_timeline, shard_heatmap = future.result()
        timeline.merge(shard_timeline)
        heatmap.merge(shard_heatmap)

    with ProcessPoolExecutor(max_workers=workers) as executor:
        for shard in _shards(raw_segments, shard_size):
            pending.append(executor.submit(fold_shard, shard))
            # Bound the number of shards held in memory
            if len(pending) >= workers * 2:
                collect(pending.popleft())
        while pending:
            collect(pending.popleft())

    return timeline, heatmap
