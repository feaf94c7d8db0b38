import json
import logging
from config import OVERLAY_COORD_DECIMALS, REVIEW_TEXT_LIMIT
from dataclasses import dataclass
from datetime import date
from dateutil.parser import isoparse
from pathlib import Path
from utils.rounding import round_half_up

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Review:
    latitude: float | None
    longitude: float | None
    name: str
    rating: int | None
    date: date | None
    country_code: str | None
    text: str

    @property
    def has_coordinates(self) -> bool:
        if self.latitude is None or self.longitude is None:
            return False
        return not (self.latitude == 0 and self.longitude == 0)


@dataclass(frozen=True)
class ReviewStats:
    total: int
    geotagged: int
    avg_rating: float
    by_country: dict[str, int]
    by_year: dict[str, int]
    rating_distribution: dict[str, int]
    date_range: tuple[date, date] | None

    @property
    def countries(self) -> int:
        return len(self.by_country)

    def to_dict(self) -> dict:
        return {
            'total': self.total,
            'countries': self.countries,
            'avgRating': self.avg_rating,
            'byCountry': self.by_country,
            'byYear': self.by_year,
            'ratingDistribution': self.rating_distribution,
            'geotagged': self.geotagged,
            'dateRange': {'start': self.date_range[0].isoformat(), 'end': self.date_range[1].isoformat()}
            if self.date_range
            else None,
        }


@dataclass(frozen=True)
class ReviewOverlay:
    lat: float
    lng: float
    name: str
    rating: int
    date: date | None
    country_code: str
    text: str

    def to_dict(self) -> dict:
        return {
            'lat': self.lat,
            'lng': self.lng,
            'name': self.name,
            'rating': self.rating,
            'date': self.date.isoformat() if self.date else None,
            'countryCode': self.country_code,
            'text': self.text,
        }


class ReviewExtractor:
    """Review statistics and map overlay from a Takeout Reviews.json FeatureCollection"""

    def load_features(self, reviews_file: Path) -> list | None:
        """Load review features; None if the file cannot be read"""
        try:
            with open(reviews_file, encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read reviews from {reviews_file}: {e}")
            return None

        features = data.get('features') if isinstance(data, dict) else None
        if not isinstance(features, list):
            logger.warning(f"No features array in {reviews_file}")
            return None

        logger.info(f"Loaded {len(features)} reviews")
        return features

    def parse_review_date(self, value) -> date | None:
        if not isinstance(value, str) or not value:
            return None
        try:
            return isoparse(value).date()
        except (ValueError, OverflowError):
            return None

    def parse_feature(self, feature) -> Review | None:
        """Normalize one GeoJSON feature; None when it carries no properties"""
        if not isinstance(feature, dict):
            return None
        props = feature.get('properties')
        if not isinstance(props, dict):
            return None

        lat = lng = None
        geometry = feature.get('geometry')
        coords = geometry.get('coordinates') if isinstance(geometry, dict) else None
        if isinstance(coords, list) and len(coords) >= 2:
            # GeoJSON order is [lng, lat]
            lng, lat = coords[0], coords[1]
            if not isinstance(lat, (int, float)) or not isinstance(lng, (int, float)):
                lat = lng = None

        location = props.get('location') if isinstance(props.get('location'), dict) else {}
        rating = props.get('five_star_rating_published')
        if isinstance(rating, bool) or not isinstance(rating, (int, float)):
            rating = None

        return Review(
            latitude=lat,
            longitude=lng,
            name=str(location.get('name') or ''),
            rating=int(rating) if rating is not None else None,
            date=self.parse_review_date(props.get('date')),
            country_code=location.get('country_code') or None,
            text=str(props.get('review_text_published') or ''),
        )

    def review_stats(self, features: list) -> ReviewStats:
        by_country: dict[str, int] = {}
        by_year: dict[str, int] = {}
        rating_distribution: dict[str, int] = {}
        rating_sum = 0
        rating_count = 0
        geotagged = 0
        dates = []

        for feature in features:
            review = self.parse_feature(feature)
            if review is None:
                continue

            if review.country_code:
                by_country[review.country_code] = by_country.get(review.country_code, 0) + 1
            if review.date:
                dates.append(review.date)
                year = str(review.date.year)
                by_year[year] = by_year.get(year, 0) + 1
            if review.has_coordinates:
                geotagged += 1

            # Rating 0 means "not published": counted in the distribution, not the average
            if review.rating is not None:
                key = str(review.rating)
                rating_distribution[key] = rating_distribution.get(key, 0) + 1
                if review.rating > 0:
                    rating_sum += review.rating
                    rating_count += 1

        return ReviewStats(
            total=len(features),
            geotagged=geotagged,
            avg_rating=round_half_up(rating_sum / rating_count, 2) if rating_count else 0,
            by_country=by_country,
            by_year=dict(sorted(by_year.items())),
            rating_distribution=dict(sorted(rating_distribution.items())),
            date_range=(min(dates), max(dates)) if dates else None,
        )

    def review_overlay(
        self, features: list, text_limit: int = REVIEW_TEXT_LIMIT, decimals: int = OVERLAY_COORD_DECIMALS
    ) -> list[ReviewOverlay]:
        """Every review with real coordinates, unranked"""
        overlay = []
        for feature in features:
            review = self.parse_feature(feature)
            if review is None or not review.has_coordinates:
                continue
            overlay.append(
                ReviewOverlay(
                    lat=round_half_up(review.latitude, decimals),
                    lng=round_half_up(review.longitude, decimals),
                    name=review.name,
                    rating=review.rating or 0,
                    date=review.date,
                    country_code=review.country_code or '',
                    text=review.text[:text_limit],
                )
            )
        return overlay
