from collections import Counter
from core.activity import TransportMode
from core.segments import Activity, TripMarker
from dataclasses import dataclass
from datetime import date
from utils.rounding import round_km


def _iso(value: date | None) -> str | None:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class BusiestYear:
    year: int
    visits: int
    distance_km: int

    def to_dict(self) -> dict:
        return {'year': self.year, 'visits': self.visits, 'distanceKm': self.distance_km}


@dataclass(frozen=True)
class LongestFlight:
    distance_km: int
    date: date | None

    def to_dict(self) -> dict:
        return {'distanceKm': self.distance_km, 'date': _iso(self.date)}


@dataclass(frozen=True)
class MostActiveDay:
    date: date
    activities: int

    def to_dict(self) -> dict:
        return {'date': _iso(self.date), 'activities': self.activities}


@dataclass(frozen=True)
class FarthestTrip:
    distance_km: int
    start_date: date | None
    end_date: date | None

    def to_dict(self) -> dict:
        return {'distanceKm': self.distance_km, 'startDate': _iso(self.start_date), 'endDate': _iso(self.end_date)}


@dataclass(frozen=True)
class RecordStats:
    busiest_year: BusiestYear | None = None
    longest_flight: LongestFlight | None = None
    most_active_day: MostActiveDay | None = None
    farthest_trip: FarthestTrip | None = None

    def to_dict(self) -> dict:
        return {
            'farthestTrip': self.farthest_trip.to_dict() if self.farthest_trip else None,
            'busiestYear': self.busiest_year.to_dict() if self.busiest_year else None,
            'mostActiveDay': self.most_active_day.to_dict() if self.most_active_day else None,
            'longestFlight': self.longest_flight.to_dict() if self.longest_flight else None,
        }


class RecordTracker:
    """Running extremes, updated during the aggregation pass"""

    def __init__(self):
        self.longest_flight_km = 0.0
        self.longest_flight_date: date | None = None
        self.farthest_trip_km = 0.0
        self.farthest_trip_start: date | None = None
        self.farthest_trip_end: date | None = None
        self.day_activities: Counter[date] = Counter()

    def observe_activity(self, activity: Activity, mode: TransportMode):
        day = activity.start_date
        if day is not None:
            self.day_activities[day] += 1

        # Only flights with a positive distance qualify; first seen wins ties
        if mode is TransportMode.FLYING and activity.distance_km > self.longest_flight_km:
            self.longest_flight_km = activity.distance_km
            self.longest_flight_date = day

    def observe_trip(self, trip: TripMarker):
        if trip.distance_from_origin_km > self.farthest_trip_km:
            self.farthest_trip_km = trip.distance_from_origin_km
            self.farthest_trip_start = trip.start_date
            self.farthest_trip_end = trip.end_date

    def merge(self, other: 'RecordTracker') -> 'RecordTracker':
        """Fold a later shard's tracker into this one"""
        if other.longest_flight_km > self.longest_flight_km:
            self.longest_flight_km = other.longest_flight_km
            self.longest_flight_date = other.longest_flight_date
        if other.farthest_trip_km > self.farthest_trip_km:
            self.farthest_trip_km = other.farthest_trip_km
            self.farthest_trip_start = other.farthest_trip_start
            self.farthest_trip_end = other.farthest_trip_end
        self.day_activities.update(other.day_activities)
        return self

    def most_active_day(self) -> MostActiveDay | None:
        if not self.day_activities:
            return None
        # Earliest date wins ties
        day, count = max(sorted(self.day_activities.items()), key=lambda item: item[1])
        return MostActiveDay(date=day, activities=count)

    def busiest_year(self, yearly_stats) -> BusiestYear | None:
        """Year with the most visits; yearly_stats must be in ascending year order"""
        best = None
        for stat in yearly_stats:
            if stat.visits > (best.visits if best else 0):
                best = stat
        if best is None:
            return None
        return BusiestYear(year=best.year, visits=best.visits, distance_km=best.total_km)

    def finalize(self, yearly_stats) -> RecordStats:
        longest_flight = None
        if self.longest_flight_km > 0:
            longest_flight = LongestFlight(distance_km=round_km(self.longest_flight_km), date=self.longest_flight_date)

        farthest_trip = None
        if self.farthest_trip_km > 0:
            farthest_trip = FarthestTrip(
                distance_km=round_km(self.farthest_trip_km),
                start_date=self.farthest_trip_start,
                end_date=self.farthest_trip_end,
            )

        return RecordStats(
            busiest_year=self.busiest_year(yearly_stats),
            longest_flight=longest_flight,
            most_active_day=self.most_active_day(),
            farthest_trip=farthest_trip,
        )
