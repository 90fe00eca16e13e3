"""Engine configuration and tuning constants."""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_BASE_DIR = Path(__file__).resolve().parents[2]
_ENV_FILE = _BASE_DIR / ".env"


class Settings(BaseSettings):
    """Engine settings loaded from environment variables (prefix ``TRIPFILL_``)."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE, env_file_encoding="utf-8", env_prefix="TRIPFILL_"
    )

    # In-between stops
    distance_per_stop_km: float = Field(
        default=90.0, description="Insert one stop roughly every N km of a segment"
    )
    radius_new_activity_m: int = Field(
        default=15000, description="Search radius for stop and new-city fetches"
    )
    max_inbetween_segments: int = Field(
        default=3, description="Max route segments that receive in-between stops"
    )
    max_inbetween_per_segment: int = Field(
        default=2, description="Max stops inserted into a single segment"
    )
    stop_offset_deg: float = Field(
        default=0.02, description="Max random lat/lon perturbation of a stop point"
    )

    # Pruning
    reschedule_penalty_per_activity_s: int = Field(
        default=900, description="Deficit penalty per activity the scheduler dropped"
    )

    # Refinement loop
    max_refinement_rounds: int = Field(
        default=5, description="Global cap on refinement rounds"
    )
    max_cached_iterations: int = Field(
        default=10, description="Cap of the cached-activity pull sub-loop"
    )
    max_filler_iterations: int = Field(
        default=10, description="Cap of the city-filler sub-loop"
    )
    activity_hours_per_day: int = Field(
        default=8, description="Activity-hour budget per remaining day"
    )
    last_day_cap_hours: int = Field(
        default=3, description="Max filler hours requested when under a day remains"
    )
    last_day_buffer_hours: int = Field(
        default=2, description="Hours kept free on the last day"
    )

    # Acquirers
    radius_cached_activities_km: float = Field(
        default=25.0, description="Cached activity must lie this close to a preferred location"
    )
    knapsack_cap_hours: int = Field(
        default=100, description="Upper bound of the packer's time budget"
    )
    grand_tour_activity_duration_s: int = Field(
        default=1800, description="Duration of grand-tour stop activities"
    )
    activities_per_new_city: int = Field(
        default=3, description="Activities requested for a newly discovered city"
    )
    max_existing_city_fetches: int = Field(
        default=4, description="Cities probed by the broadened-preference fetch"
    )
    radius_city_association_km: float = Field(
        default=15.0, description="Radius associating a preferred location with a catalog city"
    )

    # City discovery
    city_slack_km: float = Field(
        default=20.0, description="Competitiveness window added to the best distance"
    )
    city_catalog_path: Path | None = Field(
        default=None, description="Override for the packaged city catalog"
    )

    # Calendar arithmetic
    trip_timezone: str = Field(
        default="Europe/Zurich", description="Zone used for calendar-day comparisons"
    )

    # Determinism
    engine_rng_seed: int = Field(default=42, description="Default seed of the session RNG")

    @field_validator("city_catalog_path", mode="after")
    @classmethod
    def _resolve_catalog_path(cls, value: Path | None) -> Path | None:
        """Resolve relative catalog paths against the working directory."""
        if value is not None and not value.is_absolute():
            return value.resolve()
        return value


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get engine settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
