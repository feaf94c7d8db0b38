#!/usr/bin/env python

"""
Maps Stats - Google Maps Location History Processor

Aggregates a Google Maps timeline export, review history and photo metadata
into a yearly/monthly statistics report and an optional heatmap overlay.

Usage:
    main.py [command] [options]

    Default command is 'process' if none specified.

Commands:
    process: Build data/maps-stats.json from the timeline export (default)
    extract-takeout: Copy Reviews.json and photo sidecars out of a Google Takeout zip file

Options:
    --insights: Also generate narrative insights via INSIGHTS_GENERATOR
    --heatmap: Also write data/maps-heatmap.json and resized top-photo thumbnails
    --timeline: Path to the timeline export (default: Timeline.json)
    --output-dir: Path to output directory (default: data)
    --workers: Number of worker processes for the timeline fold (default: 1)
    --dry-run: Process everything but write no files
    --verbose: Enable verbose logging output
    --zip-file: Path to takeout zip file (auto-detected if not provided)
    --cleanup: Delete original zip file after successful extraction
"""

import argparse
import ijson
import logging
import sys
import time
from config import (
    AGGREGATION_WORKERS,
    HEATMAP_FILE,
    INSIGHTS_GENERATOR,
    OUTPUT_DIR,
    PHOTO_DIRS,
    REVIEWS_PATHS,
    STATS_FILE,
    THUMBNAIL_DIR,
    TIMELINE_PATH,
)
from core.aggregator import TimelineSummary, fold_segments
from core.heatmap import HeatmapAccumulator
from core.insights import generate_insights, load_generator
from core.photos import PhotoMeta, PhotoMetadataExtractor, PhotoStats
from core.report import MapsStatsReport, ReportAssembler, write_json
from core.reviews import ReviewExtractor, ReviewStats
from core.segments import TimelineFormatError, iter_raw_segments
from core.takeout import TakeoutExtractor, find_existing
from core.thumbnails import ThumbnailWriter
from pathlib import Path

logger = logging.getLogger(__name__)


class MapsStatsPipeline:
    """Orchestrates timeline aggregation, auxiliary statistics and report output"""

    def __init__(
        self,
        timeline_path: Path = TIMELINE_PATH,
        reviews_paths: list[Path] = REVIEWS_PATHS,
        photo_dirs: list[Path] = PHOTO_DIRS,
        output_dir: Path = OUTPUT_DIR,
        thumbnail_dir: Path = THUMBNAIL_DIR,
        workers: int = AGGREGATION_WORKERS,
        insights_generator: str = INSIGHTS_GENERATOR,
        dry_run: bool = False,
    ):
        self.timeline_path = timeline_path
        self.reviews_paths = reviews_paths
        self.photo_dirs = photo_dirs
        self.output_dir = output_dir
        self.thumbnail_dir = thumbnail_dir
        self.workers = workers
        self.insights_generator = insights_generator
        self.dry_run = dry_run
        self.review_extractor = ReviewExtractor()
        self.photo_extractor = PhotoMetadataExtractor()

    def process_timeline(self) -> tuple[TimelineSummary, HeatmapAccumulator]:
        """Stream and fold the timeline export; raises on a missing or unparseable file"""
        timeline, heatmap = fold_segments(iter_raw_segments(self.timeline_path), workers=self.workers)
        summary = timeline.finalize()
        logger.info(
            f"  {summary.counts.total_raw_records:,} segments -> {summary.counts.total_visits:,} visits, "
            f"{summary.counts.total_activities:,} activities, {summary.counts.total_trips:,} trips"
        )
        return summary, heatmap

    def load_reviews(self) -> list | None:
        reviews_file = find_existing(self.reviews_paths)
        if reviews_file is None:
            logger.info("No reviews file found - skipping")
            return None
        return self.review_extractor.load_features(reviews_file)

    def load_photos(self) -> tuple[list[PhotoMeta] | None, Path | None]:
        photos_dir = find_existing(self.photo_dirs)
        if photos_dir is None or not photos_dir.is_dir():
            logger.info("No photo directory found - skipping")
            return None, None
        return self.photo_extractor.load_sidecars(photos_dir), photos_dir

    def build_report(
        self,
        assembler: ReportAssembler,
        summary: TimelineSummary,
        review_stats: ReviewStats | None,
        photo_stats: PhotoStats | None,
        insights: bool,
    ) -> MapsStatsReport:
        report = assembler.assemble_stats(summary, reviews=review_stats, photos=photo_stats)
        if not insights:
            return report

        logger.info("Generating insights...")
        generated = generate_insights(report.to_dict(), load_generator(self.insights_generator))
        if generated is None:
            return report
        return assembler.assemble_stats(summary, reviews=review_stats, photos=photo_stats, insights=generated)

    def write_heatmap(
        self,
        assembler: ReportAssembler,
        heatmap: HeatmapAccumulator,
        features: list | None,
        photos: list[PhotoMeta] | None,
        photos_dir: Path | None,
    ):
        photos = photos or []
        top_photos = self.photo_extractor.top_photos(photos)
        overlay = assembler.assemble_heatmap(
            heatmap,
            top_photos=top_photos,
            reviews=self.review_extractor.review_overlay(features or []),
            geotagged_photos=sum(1 for photo in photos if photo.has_geotag),
            total_photo_views=sum(photo.image_views for photo in photos),
        )

        logger.info(
            f"  Heat cells: {overlay.stats.heat_cells:,} (from {overlay.stats.total_visits:,} non-HOME/WORK visits)"
        )
        logger.info(f"  Top photos: {len(overlay.top_photos)} (from {overlay.stats.total_photos:,} geotagged)")
        logger.info(f"  Reviews: {overlay.stats.total_reviews:,} with coordinates")

        if self.dry_run:
            logger.info(f"DRY RUN: Would write {self.output_dir / HEATMAP_FILE} and thumbnails to {self.thumbnail_dir}")
            return

        if photos_dir is not None:
            ThumbnailWriter(self.thumbnail_dir).write_all(top_photos, photos_dir)

        write_json(overlay.to_dict(), self.output_dir / HEATMAP_FILE)

    def run(self, insights: bool = False, heatmap: bool = False) -> bool:
        """Execute the pipeline; False when the timeline cannot be read or an output cannot be written"""
        logger.info("Starting Maps Stats processing")
        if self.dry_run:
            logger.info("DRY RUN MODE - No files will be written")

        start_time = time.time()
        total_steps = 3 + int(insights) + int(heatmap)
        step = 1

        logger.info(f"[{step}/{total_steps}] Processing timeline: {self.timeline_path}")
        try:
            summary, heat = self.process_timeline()
        except FileNotFoundError:
            logger.error(f"Timeline file not found: {self.timeline_path}")
            return False
        except TimelineFormatError as e:
            logger.error(f"Unrecognized timeline format in {self.timeline_path}: {e}")
            return False
        except ijson.JSONError as e:
            logger.error(f"Timeline is not valid JSON: {e}")
            return False

        step += 1
        logger.info(f"[{step}/{total_steps}] Processing reviews")
        features = self.load_reviews()
        review_stats = self.review_extractor.review_stats(features) if features is not None else None
        if review_stats:
            logger.info(f"  {review_stats.total} reviews across {review_stats.countries} countries")

        step += 1
        logger.info(f"[{step}/{total_steps}] Processing photos")
        photos, photos_dir = self.load_photos()
        photo_stats = self.photo_extractor.photo_stats(photos) if photos is not None else None
        if photo_stats:
            logger.info(f"  {photo_stats.geotagged} geotagged / {photo_stats.total} total")

        assembler = ReportAssembler()
        if insights:
            step += 1
            logger.info(f"[{step}/{total_steps}] Insights")
        report = self.build_report(assembler, summary, review_stats, photo_stats, insights)

        try:
            if heatmap:
                step += 1
                logger.info(f"[{step}/{total_steps}] Processing heatmap data")
                self.write_heatmap(assembler, heat, features, photos, photos_dir)

            if self.dry_run:
                logger.info(f"DRY RUN: Would write {self.output_dir / STATS_FILE}")
            else:
                write_json(report.to_dict(), self.output_dir / STATS_FILE)
        except OSError as e:
            logger.error(f"Failed to write output: {e}")
            return False

        logger.info(f"Done in {time.time() - start_time:.1f}s")
        self.log_summary(report)
        return True

    def log_summary(self, report: MapsStatsReport):
        counts = report.counts
        logger.info("=== Summary ===")
        logger.info(f"  Total distance:  {report.distance.total_km:,} km")
        logger.info(f"  Visits:          {counts.total_visits:,}")
        logger.info(f"  Unique places:   {counts.unique_places:,}")
        logger.info(f"  Activities:      {counts.total_activities:,}")
        logger.info(f"  Trips:           {counts.total_trips:,}")
        logger.info(f"  Days tracked:    {counts.total_days_tracked:,}")
        logger.info(f"  Years:           {len(report.yearly_stats)}")
        if report.insights is not None:
            logger.info(f"  Insights:        {len(report.insights)}")

        total_km = report.distance.total_km
        by_distance = sorted(report.distance.km_by_mode.items(), key=lambda item: item[1], reverse=True)
        for mode, km in by_distance:
            if km > 0:
                logger.info(f"  {mode.value:<14} {km:>10,} km  ({km / total_km * 100:.1f}%)")


def parse_arguments(argv: list[str] | None = None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description="Maps Stats - Google Maps Location History Processor",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument(
        'command',
        nargs='?',
        default='process',
        choices=['process', 'extract-takeout'],
        help='Command to execute (default: process)',
    )
    parser.add_argument('--insights', action='store_true', help='Generate narrative insights from the report')
    parser.add_argument('--heatmap', action='store_true', help='Generate heatmap JSON and photo thumbnails')
    parser.add_argument('--timeline', type=Path, default=TIMELINE_PATH, help='Path to the timeline export')
    parser.add_argument('--output-dir', type=Path, default=OUTPUT_DIR, help='Path to output directory')
    parser.add_argument('--workers', type=int, default=AGGREGATION_WORKERS, help='Worker processes for the timeline fold')
    parser.add_argument('--dry-run', action='store_true', help='Show what would be done without making changes')
    parser.add_argument('--verbose', action='store_true', help='Enable verbose logging output')

    # Extract takeout specific options
    parser.add_argument('--zip-file', type=str, help='Path to takeout zip file (auto-detected if not provided)')
    parser.add_argument('--cleanup', action='store_true', help='Delete original zip file after successful extraction')

    return parser.parse_args(argv)


def setup_logging(verbose: bool = False):
    """Configure logging based on verbosity level"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format='%(asctime)s - %(levelname)s - %(message)s', force=True)


def main(argv: list[str] | None = None):
    args = parse_arguments(argv)

    # Setup logging
    setup_logging(args.verbose)

    # Handle extract takeout command
    if args.command == "extract-takeout":
        if args.dry_run:
            logger.info("DRY RUN: Would extract reviews and photos from takeout zip")
            sys.exit(0)
        extractor = TakeoutExtractor()
        zip_path = Path(args.zip_file) if args.zip_file else None
        success = extractor.extract_takeout(zip_path=zip_path, cleanup=args.cleanup)
        sys.exit(0 if success else 1)

    pipeline = MapsStatsPipeline(
        timeline_path=args.timeline,
        output_dir=args.output_dir,
        workers=args.workers,
        dry_run=args.dry_run,
    )
    success = pipeline.run(insights=args.insights, heatmap=args.heatmap)
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
