import heapq
import json
import logging
from config import (
    MAX_VALID_LATITUDE,
    MAX_VALID_LONGITUDE,
    MIN_VALID_LATITUDE,
    MIN_VALID_LONGITUDE,
    OVERLAY_COORD_DECIMALS,
    THUMBNAIL_URL_PREFIX,
    TOP_PHOTOS_LIMIT,
)
from dataclasses import dataclass
from datetime import UTC, date, datetime
from pathlib import Path
from utils.rounding import round_half_up

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PhotoMeta:
    """The fields of one Google Photos JSON sidecar that matter here"""

    title: str
    description: str
    image_views: int
    latitude: float | None
    longitude: float | None
    taken_at: datetime | None
    sidecar: str = ""

    @property
    def has_geotag(self) -> bool:
        return bool(self.latitude) and bool(self.longitude)

    @property
    def taken_date(self) -> date | None:
        return self.taken_at.date() if self.taken_at else None

    @property
    def filename(self) -> str:
        """Bare file name of the image; titles carrying directories are reduced to their last part"""
        if self.title:
            name = self.title
        else:
            name = self.sidecar[:-5] if self.sidecar.endswith('.json') else self.sidecar
        return Path(name).name


@dataclass(frozen=True)
class PhotoStats:
    total: int
    geotagged: int
    date_range: tuple[date, date] | None
    by_year: dict[str, int]

    def to_dict(self) -> dict:
        return {
            'total': self.total,
            'geotagged': self.geotagged,
            'dateRange': {'start': self.date_range[0].isoformat(), 'end': self.date_range[1].isoformat()}
            if self.date_range
            else None,
            'byYear': self.by_year,
        }


@dataclass(frozen=True)
class PhotoOverlay:
    lat: float
    lng: float
    image_views: int
    title: str
    description: str
    date: date | None
    original_filename: str
    image_path: str

    def to_dict(self) -> dict:
        return {
            'lat': self.lat,
            'lng': self.lng,
            'imageViews': self.image_views,
            'title': self.title,
            'description': self.description,
            'date': self.date.isoformat() if self.date else None,
            'imagePath': self.image_path,
        }


class PhotoMetadataExtractor:
    """Read photo sidecars and derive photo statistics and the top-photo overlay"""

    def validate_coordinates(self, lat: float, lon: float) -> bool:
        """Validate coordinate ranges"""
        return MIN_VALID_LATITUDE <= lat <= MAX_VALID_LATITUDE and MIN_VALID_LONGITUDE <= lon <= MAX_VALID_LONGITUDE

    def parse_timestamp_from_epoch(self, timestamp_str) -> datetime | None:
        """Convert an epoch-seconds string to an aware UTC datetime"""
        try:
            return datetime.fromtimestamp(int(timestamp_str), tz=UTC)
        except (TypeError, ValueError, OverflowError, OSError):
            return None

    def parse_image_views(self, value) -> int:
        try:
            return max(0, int(str(value).strip()))
        except (TypeError, ValueError):
            return 0

    def parse_sidecar(self, metadata: dict, sidecar: str = "") -> PhotoMeta:
        taken_at = None
        for key in ('photoTakenTime', 'creationTime'):
            stamp = metadata.get(key)
            if isinstance(stamp, dict) and stamp.get('timestamp'):
                taken_at = self.parse_timestamp_from_epoch(stamp['timestamp'])
                break

        lat = lon = None
        geo_data = metadata.get('geoDataExif')
        if isinstance(geo_data, dict):
            lat, lon = geo_data.get('latitude'), geo_data.get('longitude')
            if not isinstance(lat, (int, float)) or not isinstance(lon, (int, float)) or not self.validate_coordinates(lat, lon):
                lat = lon = None

        return PhotoMeta(
            title=str(metadata.get('title') or ''),
            description=str(metadata.get('description') or ''),
            image_views=self.parse_image_views(metadata.get('imageViews', '0')),
            latitude=lat,
            longitude=lon,
            taken_at=taken_at,
            sidecar=sidecar,
        )

    def load_sidecars(self, photos_dir: Path) -> list[PhotoMeta]:
        """Parse every *.json sidecar in a directory, skipping unreadable ones"""
        json_files = sorted(photos_dir.glob("*.json"))
        logger.info(f"Found {len(json_files)} JSON sidecars in {photos_dir}")

        photos = []
        for json_file in json_files:
            try:
                with open(json_file, encoding='utf-8') as f:
                    metadata = json.load(f)
            except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
                logger.debug(f"Skipping malformed sidecar {json_file.name}: {e}")
                continue
            if isinstance(metadata, dict):
                photos.append(self.parse_sidecar(metadata, json_file.name))

        return photos

    def photo_stats(self, photos: list[PhotoMeta]) -> PhotoStats:
        by_year: dict[str, int] = {}
        dates = []
        for photo in photos:
            if photo.taken_date is None:
                continue
            dates.append(photo.taken_date)
            year = str(photo.taken_date.year)
            by_year[year] = by_year.get(year, 0) + 1

        return PhotoStats(
            total=len(photos),
            geotagged=sum(1 for photo in photos if photo.has_geotag),
            date_range=(min(dates), max(dates)) if dates else None,
            by_year=dict(sorted(by_year.items())),
        )

    def top_photos(
        self,
        photos: list[PhotoMeta],
        limit: int = TOP_PHOTOS_LIMIT,
        url_prefix: str = THUMBNAIL_URL_PREFIX,
        decimals: int = OVERLAY_COORD_DECIMALS,
    ) -> list[PhotoOverlay]:
        """Most-viewed geotagged photos, ties kept in input order"""
        geotagged = (photo for photo in photos if photo.has_geotag)
        top = heapq.nlargest(limit, geotagged, key=lambda photo: photo.image_views)
        prefix = url_prefix.rstrip('/')

        return [
            PhotoOverlay(
                lat=round_half_up(photo.latitude, decimals),
                lng=round_half_up(photo.longitude, decimals),
                image_views=photo.image_views,
                title=photo.title,
                description=photo.description,
                date=photo.taken_date,
                original_filename=photo.filename,
                image_path=f"{prefix}/{photo.filename}",
            )
            for photo in top
        ]
