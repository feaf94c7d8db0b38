from enum import Enum


class TransportMode(str, Enum):
    """Canonical transport modes, in report order"""

    FLYING = "flying"
    DRIVING = "driving"
    TRAIN = "train"
    MOTORCYCLING = "motorcycling"
    FERRY = "ferry"
    WALKING = "walking"
    CYCLING = "cycling"
    BUS = "bus"
    SUBWAY = "subway"
    RUNNING = "running"
    TRAM = "tram"
    SKIING = "skiing"
    OTHER = "other"


UNKNOWN_ACTIVITY_TYPE = "UNKNOWN_ACTIVITY_TYPE"

# Raw Timeline activity tags -> canonical mode. Extend by adding entries only.
ACTIVITY_MAP = {
    "IN_PASSENGER_VEHICLE": TransportMode.DRIVING,
    "MOTORCYCLING": TransportMode.MOTORCYCLING,
    "WALKING": TransportMode.WALKING,
    "ON_FOOT": TransportMode.WALKING,
    "RUNNING": TransportMode.RUNNING,
    "CYCLING": TransportMode.CYCLING,
    "ON_BICYCLE": TransportMode.CYCLING,
    "IN_TRAIN": TransportMode.TRAIN,
    "IN_BUS": TransportMode.BUS,
    "IN_SUBWAY": TransportMode.SUBWAY,
    "IN_TRAM": TransportMode.TRAM,
    "FLYING": TransportMode.FLYING,
    "IN_FERRY": TransportMode.FERRY,
    "SKIING": TransportMode.SKIING,
}


class ActivityClassifier:
    """Map raw activity tags onto the closed set of transport modes"""

    def __init__(self, mapping: dict[str, TransportMode] | None = None):
        self.mapping = dict(ACTIVITY_MAP if mapping is None else mapping)

    def classify(self, raw_type) -> TransportMode:
        """Return the canonical mode for a tag; anything unrecognized is OTHER"""
        if not isinstance(raw_type, str):
            return TransportMode.OTHER
        return self.mapping.get(raw_type, TransportMode.OTHER)


_default_classifier = ActivityClassifier()


def classify_activity(raw_type) -> TransportMode:
    return _default_classifier.classify(raw_type)
