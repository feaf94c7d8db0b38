import json
import logging
from core.activity import TransportMode
from core.aggregator import Counts, DistanceSummary, MonthlyStat, TimelineSummary, YearlyStat
from core.heatmap import HeatmapAccumulator, HeatmapCell
from core.photos import PhotoOverlay, PhotoStats
from core.records import RecordStats
from core.reviews import ReviewOverlay, ReviewStats
from dataclasses import dataclass
from datetime import UTC, date, datetime
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DataRange:
    start: date | None
    end: date | None

    def to_dict(self) -> dict:
        return {
            'start': self.start.isoformat() if self.start else None,
            'end': self.end.isoformat() if self.end else None,
        }


@dataclass(frozen=True)
class MapsStatsReport:
    processed_at: datetime
    data_range: DataRange
    distance: DistanceSummary
    counts: Counts
    yearly_stats: tuple[YearlyStat, ...]
    monthly_stats: tuple[MonthlyStat, ...]
    activity_distribution: dict[TransportMode, float]
    records: RecordStats
    reviews: ReviewStats | None = None
    photos: PhotoStats | None = None
    insights: tuple[str, ...] | None = None

    def to_dict(self) -> dict:
        return {
            'processedAt': self.processed_at.isoformat(),
            'dataRange': self.data_range.to_dict(),
            'distance': self.distance.to_dict(),
            'counts': self.counts.to_dict(),
            'yearlyStats': [stat.to_dict() for stat in self.yearly_stats],
            'monthlyStats': [stat.to_dict() for stat in self.monthly_stats],
            'activityDistribution': {mode.value: pct for mode, pct in self.activity_distribution.items()},
            'records': self.records.to_dict(),
            'reviews': self.reviews.to_dict() if self.reviews else None,
            'photos': self.photos.to_dict() if self.photos else None,
            'insights': list(self.insights) if self.insights is not None else None,
        }


@dataclass(frozen=True)
class HeatmapStats:
    total_visits: int
    heat_cells: int
    total_photos: int
    total_photo_views: int
    top_view_count: int
    total_reviews: int

    def to_dict(self) -> dict:
        return {
            'totalVisits': self.total_visits,
            'heatCells': self.heat_cells,
            'totalPhotos': self.total_photos,
            'totalPhotoViews': self.total_photo_views,
            'topViewCount': self.top_view_count,
            'totalReviews': self.total_reviews,
        }


@dataclass(frozen=True)
class HeatmapReport:
    processed_at: datetime
    heat_points: tuple[HeatmapCell, ...]
    top_photos: tuple[PhotoOverlay, ...]
    reviews: tuple[ReviewOverlay, ...]
    stats: HeatmapStats

    def to_dict(self) -> dict:
        return {
            'processedAt': self.processed_at.isoformat(),
            'heatPoints': [cell.to_dict() for cell in self.heat_points],
            'topPhotos': [photo.to_dict() for photo in self.top_photos],
            'reviews': [review.to_dict() for review in self.reviews],
            'stats': self.stats.to_dict(),
        }


class ReportAssembler:
    """Compose aggregation outputs into the published report objects"""

    def __init__(self, processed_at: datetime | None = None):
        self.processed_at = processed_at or datetime.now(UTC)

    def assemble_stats(
        self,
        timeline: TimelineSummary,
        reviews: ReviewStats | None = None,
        photos: PhotoStats | None = None,
        insights: list[str] | None = None,
    ) -> MapsStatsReport:
        return MapsStatsReport(
            processed_at=self.processed_at,
            data_range=DataRange(start=timeline.first_date, end=timeline.last_date),
            distance=timeline.distance,
            counts=timeline.counts,
            yearly_stats=timeline.yearly_stats,
            monthly_stats=timeline.monthly_stats,
            activity_distribution=timeline.activity_distribution,
            records=timeline.records,
            reviews=reviews,
            photos=photos,
            insights=tuple(insights) if insights is not None else None,
        )

    def assemble_heatmap(
        self,
        heatmap: HeatmapAccumulator,
        top_photos: list[PhotoOverlay],
        reviews: list[ReviewOverlay],
        geotagged_photos: int,
        total_photo_views: int,
    ) -> HeatmapReport:
        cells = tuple(heatmap.cells_list())
        return HeatmapReport(
            processed_at=self.processed_at,
            heat_points=cells,
            top_photos=tuple(top_photos),
            reviews=tuple(reviews),
            stats=HeatmapStats(
                total_visits=heatmap.eligible_visits,
                heat_cells=len(cells),
                total_photos=geotagged_photos,
                total_photo_views=total_photo_views,
                top_view_count=top_photos[0].image_views if top_photos else 0,
                total_reviews=len(reviews),
            ),
        )


def write_json(payload: dict, output_file: Path):
    """Write a report payload as indented JSON, creating parent directories"""
    output_file.parent.mkdir(parents=True, exist_ok=True)
    with open(output_file, 'w', encoding='utf-8') as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)
    logger.info(f"Output written to {output_file}")
