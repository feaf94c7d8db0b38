"""Test data fixtures for maps-stats tests"""

import json
from pathlib import Path


def visit_segment(place_id, start, end=None, lat_lng=None, semantic_type=None, offset=None):
    candidate = {"placeId": place_id}
    if semantic_type:
        candidate["semanticType"] = semantic_type
    if lat_lng:
        candidate["placeLocation"] = {"latLng": lat_lng}
    segment = {"startTime": start, "endTime": end or start, "visit": {"topCandidate": candidate}}
    if offset is not None:
        segment["startTimeTimezoneUtcOffsetMinutes"] = offset
    return segment


def activity_segment(activity_type, distance_meters, start, end=None, offset=None):
    activity = {"topCandidate": {"type": activity_type}}
    if distance_meters is not None:
        activity["distanceMeters"] = distance_meters
    segment = {"startTime": start, "endTime": end or start, "activity": activity}
    if offset is not None:
        segment["startTimeTimezoneUtcOffsetMinutes"] = offset
    return segment


def trip_segment(distance_km, start, end, offset=None):
    segment = {
        "startTime": start,
        "endTime": end,
        "timelineMemory": {"trip": {"distanceFromOriginKms": distance_km}},
    }
    if offset is not None:
        segment["startTimeTimezoneUtcOffsetMinutes"] = offset
    return segment


class TestDataFixtures:
    """Centralized test data fixtures"""

    AMSTERDAM = "52.3700°, 4.9000°"
    TORONTO = "43.6532°, -79.3832°"
    PARIS = "48.8566°, 2.3522°"

    @classmethod
    def get_test_segments(cls):
        """Two years of segments covering every record kind"""
        return [
            visit_segment(
                "place-home",
                "2023-06-01T08:00:00.000+02:00",
                "2023-06-01T20:00:00.000+02:00",
                lat_lng=cls.AMSTERDAM,
                semantic_type="HOME",
                offset=120,
            ),
            activity_segment("WALKING", 3000, "2023-06-01T12:00:00.000+02:00", offset=120),
            activity_segment("FLYING", 9000000, "2024-03-14T10:00:00.000-04:00", offset=-240),
            trip_segment(6000, "2024-03-14T08:00:00.000-04:00", "2024-03-20T18:00:00.000-04:00", offset=-240),
            visit_segment("place-cafe", "2024-03-15T08:00:00.000-04:00", lat_lng=cls.TORONTO, offset=-240),
            activity_segment("IN_PASSENGER_VEHICLE", 50000, "2024-03-15T09:00:00.000-04:00", offset=-240),
            visit_segment("place-cafe", "2024-03-16T08:00:00.000-04:00", lat_lng=cls.TORONTO, offset=-240),
            activity_segment("IN_PASSENGER_VEHICLE", 20000, "2024-03-15T18:00:00.000-04:00", offset=-240),
            visit_segment("place-louvre", "2024-07-01T10:00:00.000+02:00", lat_lng=cls.PARIS, offset=120),
            {
                "startTime": "2024-03-15T00:00:00.000-04:00",
                "endTime": "2024-03-15T02:00:00.000-04:00",
                "timelinePath": [{"point": "43.6532°, -79.3832°", "time": "2024-03-15T00:00:00.000-04:00"}],
            },
        ]

    @classmethod
    def get_test_timeline(cls):
        """Phone export layout: an object with a semanticSegments array"""
        return {"semanticSegments": cls.get_test_segments(), "rawSignals": [], "userLocationProfile": {}}

    @staticmethod
    def get_test_reviews():
        """Generate test reviews data"""
        return {
            "type": "FeatureCollection",
            "features": [
                {
                    "type": "Feature",
                    "geometry": {"type": "Point", "coordinates": [4.9, 52.37]},
                    "properties": {
                        "date": "2023-06-02T10:00:00.000Z",
                        "five_star_rating_published": 5,
                        "location": {"name": "Test Cafe", "country_code": "NL"},
                        "review_text_published": "Great coffee. " * 30,
                    },
                },
                {
                    "type": "Feature",
                    "geometry": {"type": "Point", "coordinates": [2.3522, 48.8566]},
                    "properties": {
                        "date": "2024-07-02T15:30:00.000Z",
                        "five_star_rating_published": 4,
                        "location": {"name": "Test Museum", "country_code": "FR"},
                        "review_text_published": "Crowded but worth it",
                    },
                },
                {
                    "type": "Feature",
                    "geometry": {"type": "Point", "coordinates": [0, 0]},
                    "properties": {
                        "date": "2024-08-01T09:00:00.000Z",
                        "five_star_rating_published": 0,
                        "location": {"name": "Unrated Bakery", "country_code": "FR"},
                    },
                },
            ],
        }

    @staticmethod
    def get_test_photo_sidecars():
        """Generate test photo sidecar metadata keyed by sidecar filename"""
        return {
            "beach.jpg.json": {
                "title": "beach.jpg",
                "description": "Seine at sunset",
                "imageViews": "120",
                "photoTakenTime": {"timestamp": "1688212800", "formatted": "Jul 1, 2023, 12:00:00 PM UTC"},
                "geoDataExif": {"latitude": 48.8566, "longitude": 2.3522, "altitude": 35.0},
            },
            "city.jpg.json": {
                "title": "city.jpg",
                "imageViews": "45",
                "creationTime": {"timestamp": "1710500000"},
                "geoDataExif": {"latitude": 43.6532, "longitude": -79.3832},
            },
            "nogeo.jpg.json": {
                "title": "nogeo.jpg",
                "imageViews": "999",
                "photoTakenTime": {"timestamp": "1704067200"},
                "geoDataExif": {"latitude": 0.0, "longitude": 0.0},
            },
        }

    @classmethod
    def create_test_data_files(cls, test_dir: Path):
        """Create the timeline, reviews and photo inputs in a test directory"""
        timeline_file = test_dir / "Timeline.json"
        with open(timeline_file, 'w') as f:
            json.dump(cls.get_test_timeline(), f)

        reviews_file = test_dir / "takeout" / "Maps (your places)" / "Reviews.json"
        reviews_file.parent.mkdir(parents=True)
        with open(reviews_file, 'w') as f:
            json.dump(cls.get_test_reviews(), f)

        photos_dir = test_dir / "takeout" / "Maps" / "Photos and videos"
        photos_dir.mkdir(parents=True)
        for name, metadata in cls.get_test_photo_sidecars().items():
            with open(photos_dir / name, 'w') as f:
                json.dump(metadata, f)
        (photos_dir / "broken.jpg.json").write_text("not json{")

        return {"timeline": timeline_file, "reviews": reviews_file, "photos": photos_dir}
