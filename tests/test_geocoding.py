import pytest
from core.activity import ACTIVITY_MAP, ActivityClassifier, TransportMode, classify_activity
from utils.geocoding import COUNTRY_REGIONS, CountryRegion, CountryResolver, coord_to_country, us_ca_border_latitude
from utils.rounding import round_half_up, round_km


class TestCountryResolver:
    """Test suite for offline coordinate -> country lookup"""

    @pytest.fixture
    def resolver(self):
        return CountryResolver()

    def test_single_region(self, resolver):
        assert resolver.resolve(52.37, 4.90) == "NL"
        assert resolver.resolve(35.68, 139.69) == "JP"
        assert resolver.resolve(-33.87, 151.21) == "AU"

    def test_no_region(self, resolver):
        assert resolver.resolve(0.0, -30.0) is None
        assert coord_to_country(-60.0, -150.0) is None

    def test_deterministic(self):
        assert coord_to_country(50.85, 4.35) == coord_to_country(50.85, 4.35)

    def test_nearest_centroid_breaks_overlap(self, resolver):
        # Brussels falls inside the NL, BE and FR boxes
        codes = {region.code for region in resolver.candidates(50.85, 4.35)}
        assert codes == {"NL", "BE", "FR"}
        assert resolver.resolve(50.85, 4.35) == "BE"

    def test_us_ca_border(self, resolver):
        # Toronto is nearer the US centroid but north of the Great Lakes border line
        assert {region.code for region in resolver.candidates(43.65, -79.38)} == {"US", "CA"}
        assert resolver.resolve(43.65, -79.38) == "CA"
        assert resolver.resolve(42.89, -78.88) == "US"  # Buffalo
        assert resolver.resolve(47.61, -122.33) == "US"  # Seattle
        assert resolver.resolve(49.28, -123.12) == "CA"  # Vancouver

    def test_alaska(self, resolver):
        assert resolver.resolve(61.22, -149.90) == "US"

    def test_border_latitude(self):
        assert us_ca_border_latitude(-120.0) == 49.0
        assert us_ca_border_latitude(-90.0) == 48.0
        assert us_ca_border_latitude(-80.0) == 42.5
        assert us_ca_border_latitude(-76.0) == 44.0
        assert us_ca_border_latitude(-70.0) == 45.5

    def test_tie_goes_to_first_region(self):
        regions = (
            CountryRegion("AA", 0, 10, 0, 10, 4, 5),
            CountryRegion("BB", 0, 10, 0, 10, 6, 5),
        )
        assert CountryResolver(regions).resolve(5, 5) == "AA"

    def test_region_table_is_immutable(self):
        assert isinstance(COUNTRY_REGIONS, tuple)
        with pytest.raises(AttributeError):
            COUNTRY_REGIONS[0].code = "XX"


class TestActivityClassifier:
    """Test suite for raw activity tag classification"""

    def test_known_tags(self):
        assert classify_activity("IN_PASSENGER_VEHICLE") == TransportMode.DRIVING
        assert classify_activity("ON_FOOT") == TransportMode.WALKING
        assert classify_activity("ON_BICYCLE") == TransportMode.CYCLING
        assert classify_activity("FLYING") == TransportMode.FLYING
        assert classify_activity("IN_FERRY") == TransportMode.FERRY

    def test_every_mapped_tag(self):
        for raw_type, mode in ACTIVITY_MAP.items():
            assert classify_activity(raw_type) is mode

    def test_unknown_tags_are_other(self):
        assert classify_activity("UNKNOWN_ACTIVITY_TYPE") == TransportMode.OTHER
        assert classify_activity("SAILING") == TransportMode.OTHER
        assert classify_activity("") == TransportMode.OTHER
        assert classify_activity(None) == TransportMode.OTHER

    def test_custom_mapping(self):
        classifier = ActivityClassifier({"SAILING": TransportMode.FERRY})
        assert classifier.classify("SAILING") == TransportMode.FERRY
        assert classifier.classify("FLYING") == TransportMode.OTHER

    def test_mode_values(self):
        assert [mode.value for mode in TransportMode][:3] == ["flying", "driving", "train"]
        assert len(TransportMode) == 13


class TestRounding:
    """Test suite for half-up rounding helpers"""

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(-2.5) == -2
        assert round_half_up(1.25, 1) == 1.3
        assert round_half_up(4.333333, 2) == 4.33

    def test_round_km(self):
        assert round_km(0.5) == 1
        assert round_km(1.4) == 1
        assert round_km(9000.0) == 9000
        assert isinstance(round_km(69.9), int)
