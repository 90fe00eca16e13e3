"""City catalog entry."""

from pydantic import BaseModel, ConfigDict, Field

from .common import Location


class CityConfig(BaseModel):
    """A known population center that can host filler visits."""

    model_config = ConfigDict(frozen=True)

    location: Location = Field(description="City center")
    radius_km: float = Field(ge=0, description="Discovery / coverage radius in km")
    capacity: float = Field(
        ge=0, description="Max fractional days of filler visits the city absorbs"
    )

    @property
    def name(self) -> str:
        return self.location.name
