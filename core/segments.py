"""
Timeline segment normalization and streaming.

The phone export stores every segment as one object whose optional
sub-objects (``visit``, ``activity``, ``timelineMemory.trip``) say what kind
of record it is. Segments are normalized here into one of three explicit
record types; anything malformed becomes ``None`` instead of an exception.
"""

import ijson
import logging
import math
import re
from collections.abc import Iterator
from config import MAX_VALID_LATITUDE, MAX_VALID_LONGITUDE, MIN_VALID_LATITUDE, MIN_VALID_LONGITUDE, PROGRESS_EVERY
from core.activity import UNKNOWN_ACTIVITY_TYPE
from dataclasses import dataclass
from datetime import date, datetime
from dateutil.parser import isoparse
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)

LAT_LNG_PATTERN = re.compile(r"^\s*(-?\d+(?:\.\d+)?)°?\s*,\s*(-?\d+(?:\.\d+)?)°?\s*$")
# Full calendar date plus a time of day; partial dates are rejected
ISO_DATETIME_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}")
SNIFF_BYTES = 65536
UTF8_BOM = b'\xef\xbb\xbf'


class TimelineFormatError(ValueError):
    """The timeline file does not contain a recognizable segment array"""


class SemanticType(str, Enum):
    HOME = "HOME"
    WORK = "WORK"
    OTHER = "OTHER"


class TimedRecord:
    """Calendar helpers shared by every record kind (local dates, per the record's own offset)"""

    start: datetime | None
    end: datetime | None

    @property
    def start_date(self) -> date | None:
        return self.start.date() if self.start else None

    @property
    def end_date(self) -> date | None:
        return self.end.date() if self.end else None

    @property
    def year(self) -> int | None:
        return self.start.year if self.start else None

    @property
    def month(self) -> str | None:
        """'YYYY-MM' bucket key"""
        return f"{self.start.year:04d}-{self.start.month:02d}" if self.start else None


@dataclass(frozen=True, kw_only=True)
class Visit(TimedRecord):
    place_id: str
    start: datetime | None = None
    end: datetime | None = None
    coordinates: tuple[float, float] | None = None
    semantic_type: SemanticType = SemanticType.OTHER
    utc_offset_minutes: int | None = None

    @property
    def is_routine(self) -> bool:
        return self.semantic_type in (SemanticType.HOME, SemanticType.WORK)


@dataclass(frozen=True, kw_only=True)
class Activity(TimedRecord):
    distance_meters: float
    raw_activity_type: str
    start: datetime | None = None
    end: datetime | None = None
    utc_offset_minutes: int | None = None

    @property
    def distance_km(self) -> float:
        return self.distance_meters / 1000


@dataclass(frozen=True, kw_only=True)
class TripMarker(TimedRecord):
    distance_from_origin_km: float
    start: datetime | None = None
    end: datetime | None = None
    utc_offset_minutes: int | None = None


Segment = Visit | Activity | TripMarker


class SegmentNormalizer:
    """Turn raw ``semanticSegments`` entries into Visit / Activity / TripMarker records"""

    def parse_lat_lng(self, value) -> tuple[float, float] | None:
        """Parse '52.4892162°, 5.5023953°' into (lat, lng)"""
        if not isinstance(value, str):
            return None
        match = LAT_LNG_PATTERN.match(value)
        if not match:
            return None
        lat, lng = float(match.group(1)), float(match.group(2))
        if not self.validate_coordinates(lat, lng):
            return None
        return lat, lng

    def validate_coordinates(self, lat: float, lon: float) -> bool:
        """Validate coordinate ranges"""
        return MIN_VALID_LATITUDE <= lat <= MAX_VALID_LATITUDE and MIN_VALID_LONGITUDE <= lon <= MAX_VALID_LONGITUDE

    def parse_timestamp(self, value) -> datetime | None:
        """Parse a full ISO-8601 date-time; missing gives None, partial or malformed raises ValueError"""
        if value is None or value == "":
            return None
        if not isinstance(value, str):
            raise ValueError(f"Timestamp is not a string: {value!r}")
        if not ISO_DATETIME_PATTERN.match(value):
            raise ValueError(f"Timestamp is not an ISO-8601 date-time: {value!r}")
        return isoparse(value)

    def parse_offset(self, value) -> int | None:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        if not math.isfinite(value) or value != int(value):
            return None
        return int(value)

    def parse_distance(self, value) -> float | None:
        """Non-negative finite number; raises ValueError otherwise. None when absent."""
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"Distance is not numeric: {value!r}")
        if not math.isfinite(value) or value < 0:
            raise ValueError(f"Invalid distance: {value!r}")
        return float(value)

    def normalize(self, raw) -> Segment | None:
        """Normalize one raw segment, returning None for malformed or unsupported entries"""
        if not isinstance(raw, dict):
            return None

        try:
            start = self.parse_timestamp(raw.get('startTime'))
            end = self.parse_timestamp(raw.get('endTime'))
            offset = self.parse_offset(raw.get('startTimeTimezoneUtcOffsetMinutes'))

            if isinstance(raw.get('visit'), dict):
                return self._visit(raw['visit'], start, end, offset)
            if isinstance(raw.get('activity'), dict):
                return self._activity(raw['activity'], start, end, offset)
            memory = raw.get('timelineMemory')
            if isinstance(memory, dict) and isinstance(memory.get('trip'), dict):
                return self._trip(memory['trip'], start, end, offset)
        except (ValueError, TypeError, OverflowError) as e:
            logger.debug(f"Dropping malformed segment: {e}")
        return None

    def _visit(self, visit: dict, start, end, offset) -> Visit | None:
        candidate = visit.get('topCandidate')
        if not isinstance(candidate, dict):
            return None

        place_id = candidate.get('placeId')
        if not isinstance(place_id, str) or not place_id:
            return None

        location = candidate.get('placeLocation')
        coordinates = self.parse_lat_lng(location.get('latLng')) if isinstance(location, dict) else None

        semantic = candidate.get('semanticType')
        semantic_type = SemanticType(semantic) if semantic in ("HOME", "WORK") else SemanticType.OTHER

        return Visit(
            place_id=place_id,
            start=start,
            end=end,
            coordinates=coordinates,
            semantic_type=semantic_type,
            utc_offset_minutes=offset,
        )

    def _activity(self, activity: dict, start, end, offset) -> Activity:
        candidate = activity.get('topCandidate')
        raw_type = candidate.get('type') if isinstance(candidate, dict) else None
        if not isinstance(raw_type, str) or not raw_type:
            raw_type = UNKNOWN_ACTIVITY_TYPE

        distance = self.parse_distance(activity.get('distanceMeters'))

        return Activity(
            distance_meters=distance or 0.0,
            raw_activity_type=raw_type,
            start=start,
            end=end,
            utc_offset_minutes=offset,
        )

    def _trip(self, trip: dict, start, end, offset) -> TripMarker:
        distance = self.parse_distance(trip.get('distanceFromOriginKms'))
        return TripMarker(
            distance_from_origin_km=distance or 0.0,
            start=start,
            end=end,
            utc_offset_minutes=offset,
        )


_default_normalizer = SegmentNormalizer()


def normalize_segment(raw) -> Segment | None:
    return _default_normalizer.normalize(raw)


def detect_timeline_format(prefix: bytes) -> str:
    """Return the ijson prefix for the segment array, sniffed from the file head"""
    head = prefix.lstrip()
    if head.startswith(UTF8_BOM):
        head = head[len(UTF8_BOM):].lstrip()
    if head.startswith(b'['):
        return 'item'
    if head.startswith(b'{'):
        if b'"semanticSegments"' in head:
            return 'semanticSegments.item'
        raise TimelineFormatError("Could not find semanticSegments array in timeline data")
    raise TimelineFormatError("Timeline data is neither a JSON object nor a JSON array")


def check_segment_array(f):
    """Require the root object to hold 'semanticSegments' as an array at its top level"""
    events = ijson.parse(f, use_float=True)
    for prefix, event, value in events:
        if prefix == '' and event == 'map_key' and value == 'semanticSegments':
            _, value_event, _ = next(events)
            if value_event != 'start_array':
                raise TimelineFormatError(f"semanticSegments is not an array (found {value_event})")
            return
        if prefix == '' and event == 'end_map':
            break
    raise TimelineFormatError("Could not find a top-level semanticSegments array in timeline data")


def iter_raw_segments(timeline_path: Path) -> Iterator[dict]:
    """Stream raw segments from a (possibly very large) timeline export

    Raises:
        FileNotFoundError: if the file is missing
        TimelineFormatError: if no segment array can be located
        ijson.JSONError: if the JSON is malformed (raised lazily while iterating)
    """
    with open(timeline_path, 'rb') as f:
        head = f.read(SNIFF_BYTES)
        json_prefix = detect_timeline_format(head)
        # ijson does not accept a UTF-8 byte order mark
        data_start = len(UTF8_BOM) if head.startswith(UTF8_BOM) else 0
        if json_prefix != 'item':
            f.seek(data_start)
            check_segment_array(f)
        f.seek(data_start)

        count = 0
        for count, raw in enumerate(ijson.items(f, json_prefix, use_float=True), start=1):
            if count % PROGRESS_EVERY == 0:
                logger.info(f"  {count:,} segments read...")
            yield raw

    logger.info(f"Read {count:,} segments from {timeline_path}")
