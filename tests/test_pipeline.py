import json
import pytest
from main import MapsStatsPipeline, main, parse_arguments
from pathlib import Path
from tests.fixtures import TestDataFixtures
from unittest.mock import patch


class TestMapsStatsPipeline:
    """Test suite for MapsStatsPipeline"""

    @pytest.fixture
    def inputs(self, tmp_path):
        return TestDataFixtures.create_test_data_files(tmp_path)

    @pytest.fixture
    def pipeline(self, inputs, tmp_path):
        """Create pipeline instance with temporary directories"""
        return MapsStatsPipeline(
            timeline_path=inputs["timeline"],
            reviews_paths=[tmp_path / "Takeout" / "missing.json", inputs["reviews"]],
            photo_dirs=[inputs["photos"]],
            output_dir=tmp_path / "data",
            thumbnail_dir=tmp_path / "public" / "photos" / "heatmap",
        )

    def load_output(self, pipeline, name):
        with open(pipeline.output_dir / name) as f:
            return json.load(f)

    def test_run(self, pipeline):
        assert pipeline.run()

        report = self.load_output(pipeline, "maps-stats.json")
        assert report['counts']['totalRawRecords'] == 10
        assert report['distance']['totalKm'] == 9073
        assert report['reviews']['total'] == 3
        assert report['photos']['geotagged'] == 2
        assert report['insights'] is None
        assert not (pipeline.output_dir / "maps-heatmap.json").exists()

    def test_run_with_heatmap(self, pipeline):
        assert pipeline.run(heatmap=True)

        overlay = self.load_output(pipeline, "maps-heatmap.json")
        assert sum(point['weight'] for point in overlay['heatPoints']) == overlay['stats']['totalVisits'] == 3
        assert [photo['imagePath'] for photo in overlay['topPhotos']] == [
            '/photos/heatmap/beach.jpg',
            '/photos/heatmap/city.jpg',
        ]
        # Views count every sidecar, geotagged or not
        assert overlay['stats']['totalPhotoViews'] == 120 + 45 + 999
        assert len(overlay['reviews']) == 2

    def test_run_without_optional_inputs(self, inputs, tmp_path):
        pipeline = MapsStatsPipeline(
            timeline_path=inputs["timeline"],
            reviews_paths=[tmp_path / "nope.json"],
            photo_dirs=[tmp_path / "no-photos"],
            output_dir=tmp_path / "data",
        )
        assert pipeline.run()

        report = self.load_output(pipeline, "maps-stats.json")
        assert report['reviews'] is None
        assert report['photos'] is None
        assert report['counts']['totalVisits'] == 4

    def test_run_with_insights(self, pipeline):
        with patch('main.load_generator', return_value=lambda report: [f"{report['distance']['totalKm']} km travelled"]):
            assert pipeline.run(insights=True)

        report = self.load_output(pipeline, "maps-stats.json")
        assert report['insights'] == ["9073 km travelled"]

    def test_run_with_failing_insights(self, pipeline):
        with patch('main.load_generator', return_value=None):
            assert pipeline.run(insights=True)
        assert self.load_output(pipeline, "maps-stats.json")['insights'] is None

    def test_missing_timeline(self, pipeline, tmp_path):
        pipeline.timeline_path = tmp_path / "missing.json"
        assert not pipeline.run(heatmap=True)
        assert not pipeline.output_dir.exists()

    def test_unrecognized_timeline(self, pipeline):
        with open(pipeline.timeline_path, 'w') as f:
            json.dump({"timelineObjects": []}, f)
        assert not pipeline.run()
        assert not pipeline.output_dir.exists()

    def test_segments_not_an_array(self, pipeline):
        with open(pipeline.timeline_path, 'w') as f:
            json.dump({"semanticSegments": {"oops": 1}}, f)
        assert not pipeline.run(heatmap=True)
        assert not pipeline.output_dir.exists()

    def test_malformed_timeline(self, pipeline):
        pipeline.timeline_path.write_text('{"semanticSegments": [{"startTime": ')
        assert not pipeline.run()
        assert not pipeline.output_dir.exists()

    def test_array_root_timeline(self, pipeline):
        with open(pipeline.timeline_path, 'w') as f:
            json.dump(TestDataFixtures.get_test_segments(), f)
        assert pipeline.run()
        assert self.load_output(pipeline, "maps-stats.json")['counts']['totalVisits'] == 4

    def test_dry_run(self, pipeline):
        pipeline.dry_run = True
        assert pipeline.run(heatmap=True)
        assert not pipeline.output_dir.exists()
        assert not pipeline.thumbnail_dir.exists()

    def test_parallel_workers(self, pipeline):
        pipeline.workers = 2
        assert pipeline.run()
        assert self.load_output(pipeline, "maps-stats.json")['distance']['totalKm'] == 9073


class TestCommandLine:
    """Test suite for argument parsing and exit codes"""

    def test_default_arguments(self):
        args = parse_arguments([])
        assert args.command == 'process'
        assert not args.insights
        assert not args.heatmap
        assert args.workers == 1

    def test_flags(self):
        args = parse_arguments(['--heatmap', '--insights', '--timeline', 'export.json', '--workers', '4'])
        assert args.heatmap
        assert args.insights
        assert args.timeline == Path('export.json')
        assert args.workers == 4

    def test_unknown_command(self):
        with pytest.raises(SystemExit):
            parse_arguments(['validate-data'])

    def test_main_success(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        paths = TestDataFixtures.create_test_data_files(tmp_path)

        with pytest.raises(SystemExit) as exc_info:
            main(['--timeline', str(paths["timeline"]), '--output-dir', str(tmp_path / "out")])

        assert exc_info.value.code == 0
        assert (tmp_path / "out" / "maps-stats.json").exists()

    def test_main_missing_timeline(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        with pytest.raises(SystemExit) as exc_info:
            main(['process', '--timeline', str(tmp_path / "missing.json"), '--output-dir', str(tmp_path / "out")])

        assert exc_info.value.code == 1
        assert not (tmp_path / "out").exists()

    @patch('main.TakeoutExtractor')
    def test_main_extract_takeout(self, mock_extractor_class):
        mock_extractor_class.return_value.extract_takeout.return_value = True

        with pytest.raises(SystemExit) as exc_info:
            main(['extract-takeout', '--zip-file', 'takeout-1.zip', '--cleanup'])

        assert exc_info.value.code == 0
        mock_extractor_class.return_value.extract_takeout.assert_called_once_with(
            zip_path=Path('takeout-1.zip'), cleanup=True
        )
