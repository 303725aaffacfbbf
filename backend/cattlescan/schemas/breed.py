"""Breed catalogue and lineage schemas."""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class BreedCreate(BaseModel):
    """Breed payload; vocabulary fields are checked by the breed service."""

    name: str = Field(min_length=1, max_length=128)
    species: str
    status: str
    temperament: str
    conservation_status: str
    origin: str | None = None
    native_region: str | None = None
    description: str | None = None
    key_characteristics: list[str] = Field(default_factory=list)
    adaptability: str | None = None
    avg_milk_yield_min: float | None = None
    avg_milk_yield_max: float | None = None
    milk_yield_unit: str | None = None
    avg_body_weight_min: float | None = None
    avg_body_weight_max: float | None = None
    body_weight_unit: str | None = None


class BreedOriginLink(BaseModel):
    """Parent edge shown alongside a breed."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    parent_breed: str
    contribution_percentage: float | None


class BreedRead(BaseModel):
    """Serialized breed."""

    model_config = ConfigDict(from_attributes=True)

    name: str
    species: str
    status: str
    temperament: str
    conservation_status: str
    origin: str | None
    native_region: str | None
    description: str | None
    key_characteristics: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("key_characteristics", "key_characteristics_json"),
    )
    adaptability: str | None
    avg_milk_yield_min: float | None
    avg_milk_yield_max: float | None
    milk_yield_unit: str | None
    avg_body_weight_min: float | None
    avg_body_weight_max: float | None
    body_weight_unit: str | None
    stock_img_url: str | None
    created_at: datetime


class BreedDetailRead(BreedRead):
    """Breed with its genetic origins."""

    origins: list[BreedOriginLink] = Field(default_factory=list)


class BreedOriginCreate(BaseModel):
    breed: str = Field(min_length=1)
    parent_breed: str = Field(min_length=1)
    contribution_percentage: float | None = None


class BreedOriginRead(BaseModel):
    """Serialized lineage edge."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    breed: str
    parent_breed: str
    contribution_percentage: float | None
    created_at: datetime


class BreedMapPoint(BaseModel):
    id: str
    lat: float
    lng: float
    breed: str
    image_url: str


class BreedMapResponse(BaseModel):
    """Located confirmed breeds for the map view."""

    points: list[BreedMapPoint]
    breeds: list[str]
