"""Test that tuning constants come from Settings."""

from pathlib import Path

from tripfill.app.config import Settings, get_settings


class TestSettings:
    """Tests for engine settings."""

    def test_settings_singleton(self):
        """Test that get_settings returns one shared instance."""
        assert isinstance(get_settings(), Settings)
        assert get_settings() is get_settings()

    def test_refinement_constants_reasonable(self):
        """Test that loop bounds have reasonable default values."""
        settings = Settings()

        assert 1 <= settings.max_refinement_rounds <= 10
        assert settings.max_cached_iterations > 0
        assert settings.max_filler_iterations > 0
        assert 1 <= settings.activity_hours_per_day <= 24
        assert settings.last_day_cap_hours > 0
        assert settings.knapsack_cap_hours == 100

    def test_stop_constants_reasonable(self):
        """Test that in-between stop bounds have reasonable default values."""
        settings = Settings()

        assert settings.distance_per_stop_km > 0
        assert settings.max_inbetween_segments == 3
        assert settings.max_inbetween_per_segment >= 1
        assert settings.radius_new_activity_m == 15000

    def test_discovery_constants(self):
        settings = Settings()

        assert settings.city_slack_km == 20.0
        assert settings.city_catalog_path is None
        assert settings.trip_timezone == "Europe/Zurich"

    def test_environment_override(self, monkeypatch):
        """Test that TRIPFILL_ prefixed variables override defaults."""
        monkeypatch.setenv("TRIPFILL_MAX_REFINEMENT_ROUNDS", "2")
        monkeypatch.setenv("TRIPFILL_TRIP_TIMEZONE", "UTC")

        settings = Settings()

        assert settings.max_refinement_rounds == 2
        assert settings.trip_timezone == "UTC"

    def test_relative_catalog_path_is_resolved(self, monkeypatch, tmp_path):
        """Test that relative catalog paths resolve against the working directory."""
        monkeypatch.chdir(tmp_path)

        settings = Settings(city_catalog_path=Path("data/cities.txt"))

        assert settings.city_catalog_path.is_absolute()
        assert settings.city_catalog_path == (tmp_path / "data" / "cities.txt").resolve()
