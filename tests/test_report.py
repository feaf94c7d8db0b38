import json
import pytest
from core.aggregator import TimelineAccumulator, fold_shard
from core.insights import generate_insights, load_generator
from core.photos import PhotoMetadataExtractor
from core.report import ReportAssembler, write_json
from core.reviews import ReviewExtractor
from datetime import UTC, datetime
from tests.fixtures import TestDataFixtures
from unittest.mock import Mock


class TestReportAssembler:
    """Test suite for composing the published reports"""

    @pytest.fixture
    def assembler(self):
        return ReportAssembler(processed_at=datetime(2025, 1, 2, 3, 4, 5, tzinfo=UTC))

    @pytest.fixture
    def folded(self):
        return fold_shard(TestDataFixtures.get_test_segments())

    def test_assemble_stats(self, assembler, folded):
        timeline, _ = folded
        review_stats = ReviewExtractor().review_stats(TestDataFixtures.get_test_reviews()["features"])
        report = assembler.assemble_stats(timeline.finalize(), reviews=review_stats)
        payload = report.to_dict()

        assert list(payload) == [
            'processedAt',
            'dataRange',
            'distance',
            'counts',
            'yearlyStats',
            'monthlyStats',
            'activityDistribution',
            'records',
            'reviews',
            'photos',
            'insights',
        ]
        assert payload['processedAt'] == '2025-01-02T03:04:05+00:00'
        assert payload['dataRange'] == {'start': '2023-06-01', 'end': '2024-07-01'}
        assert payload['activityDistribution'] == {'flying': 99.2, 'driving': 0.8}
        assert payload['reviews']['avgRating'] == 4.5
        assert payload['photos'] is None
        assert payload['insights'] is None

    def test_empty_timeline(self, assembler):
        payload = assembler.assemble_stats(TimelineAccumulator().finalize()).to_dict()
        assert payload['dataRange'] == {'start': None, 'end': None}
        assert payload['distance']['totalKm'] == 0
        assert payload['yearlyStats'] == []

    def test_report_is_json_serializable(self, assembler, folded):
        timeline, _ = folded
        report = assembler.assemble_stats(timeline.finalize(), insights=["You flew a lot."])
        decoded = json.loads(json.dumps(report.to_dict()))
        assert decoded['insights'] == ["You flew a lot."]
        assert decoded['yearlyStats'][1]['countries'] == ['CA', 'FR']

    def test_assemble_heatmap(self, assembler, folded, tmp_path):
        _, heatmap = folded
        paths = TestDataFixtures.create_test_data_files(tmp_path)
        photo_extractor = PhotoMetadataExtractor()
        photos = photo_extractor.load_sidecars(paths["photos"])
        reviews = ReviewExtractor().review_overlay(TestDataFixtures.get_test_reviews()["features"])

        overlay = assembler.assemble_heatmap(
            heatmap,
            top_photos=photo_extractor.top_photos(photos),
            reviews=reviews,
            geotagged_photos=2,
            total_photo_views=165,
        )
        payload = overlay.to_dict()

        assert list(payload) == ['processedAt', 'heatPoints', 'topPhotos', 'reviews', 'stats']
        assert payload['stats'] == {
            'totalVisits': 3,
            'heatCells': 2,
            'totalPhotos': 2,
            'totalPhotoViews': 165,
            'topViewCount': 120,
            'totalReviews': 2,
        }

    def test_assemble_heatmap_without_photos(self, assembler, folded):
        _, heatmap = folded
        overlay = assembler.assemble_heatmap(heatmap, top_photos=[], reviews=[], geotagged_photos=0, total_photo_views=0)
        assert overlay.stats.top_view_count == 0
        assert overlay.to_dict()['topPhotos'] == []

    def test_write_json(self, tmp_path):
        output_file = tmp_path / "nested" / "data" / "maps-stats.json"
        write_json({'name': 'Zürich'}, output_file)

        with open(output_file, encoding='utf-8') as f:
            assert json.load(f) == {'name': 'Zürich'}


class TestInsights:
    """Test suite for the pluggable insights generator"""

    def test_load_generator(self):
        generator = load_generator("os.path:basename")
        assert generator("/tmp/report.json") == "report.json"

    def test_load_generator_not_configured(self):
        assert load_generator("") is None

    def test_load_generator_bad_path(self):
        assert load_generator("os.path") is None
        assert load_generator("no_such_module_here:generate") is None
        assert load_generator("os.path:sep") is None

    def test_generate_insights(self):
        generator = Mock(return_value=["Insight one", "Insight two"])
        report = {'distance': {'totalKm': 10}}

        assert generate_insights(report, generator) == ["Insight one", "Insight two"]
        generator.assert_called_once_with(report)

    def test_generate_insights_failure(self):
        generator = Mock(side_effect=RuntimeError("rate limited"))
        assert generate_insights({}, generator) is None

    def test_generate_insights_bad_result(self):
        assert generate_insights({}, Mock(return_value="not a list")) is None
        assert generate_insights({}, Mock(return_value=[1, 2])) is None
        assert generate_insights({}, None) is None
