"""Pydantic schemas for the catalog API."""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

MediaType = Literal["PHOTO", "VIDEO", "AUDIO"]


class Post(BaseModel):
    """A catalog post (one media asset)."""

    id: UUID
    user_id: UUID
    media_type: MediaType
    media_url: str
    cloudinary_public_id: str | None = None
    folder: str | None = None
    text: str | None = None
    country: str | None = None
    city: str | None = None
    lat: float | None = None
    lng: float | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PostCreate(BaseModel):
    """Request to create a post directly."""

    user_id: UUID = Field(..., description="Owner of the post")
    media_type: MediaType
    media_url: str = Field(..., min_length=1)
    cloudinary_public_id: str | None = None
    folder: str | None = None
    text: str | None = None
    country: str | None = None
    city: str | None = None
    lat: float | None = Field(None, ge=-90, le=90)
    lng: float | None = Field(None, ge=-180, le=180)


class PostUpdate(BaseModel):
    """Partial update of a post; omitted fields keep their value."""

    text: str | None = None
    country: str | None = None
    city: str | None = None
    lat: float | None = Field(None, ge=-90, le=90)
    lng: float | None = Field(None, ge=-180, le=180)
    created_at: datetime | None = None


class FeedPage(BaseModel):
    """One page of the feed."""

    items: list[Post]
    next_cursor: str | None = Field(None, alias="nextCursor")
    has_more: bool = Field(False, alias="hasMore")

    model_config = ConfigDict(populate_by_name=True)


class CityPlaces(BaseModel):
    """Post count for one city."""

    city: str
    count: int = 0


class CountryPlaces(BaseModel):
    """Cities of one country with their post counts."""

    country: str
    cities: list[CityPlaces] = Field(default_factory=list)
    count: int = 0


class UnknownPlaces(BaseModel):
    """Posts whose country or city is unknown."""

    count: int = 0


class PlacesResponse(BaseModel):
    """Place navigation tree."""

    countries: list[CountryPlaces]
    unknown: UnknownPlaces


class ImportRequest(BaseModel):
    """Request to import a Cloudinary folder tree."""

    user_id: UUID = Field(..., description="Owner of the imported posts")
    prefix: str | None = Field(None, description="Root folder; defaults to CATALOG_ROOT_FOLDER")
    max: int | None = Field(None, description="Item budget, clamped to 1..10000 (default 2000)")


class ImportErrorEntry(BaseModel):
    """A failure recorded during an import run."""

    stage: Literal["list", "insert"]
    folder: str | None = None
    resource_type: str | None = None
    public_id: str | None = None
    message: str


class ImportSummary(BaseModel):
    """Result of an import run."""

    prefix: str
    scanned: int = 0
    inserted: int = 0
    errors: list[ImportErrorEntry] = Field(default_factory=list)


class ProbeRequest(BaseModel):
    """Request to sample a Cloudinary folder."""

    prefix: str | None = None


class ProbeSummary(BaseModel):
    """Sample of what an import of a prefix would see."""

    prefix: str
    images_found: int
    videos_found: int
    subfolders: list[str] = Field(default_factory=list)
    sample_public_ids: list[str | None] = Field(default_factory=list)
    sample_folders: list[str | None] = Field(default_factory=list)


class CloudinaryConfig(BaseModel):
    """Public Cloudinary settings for the upload widget."""

    cloud_name: str = Field(..., alias="cloudName")
    api_key: str = Field(..., alias="apiKey")

    model_config = ConfigDict(populate_by_name=True)


class SignUploadRequest(BaseModel):
    """Upload widget parameters to sign."""

    params_to_sign: dict[str, Any] = Field(default_factory=dict, alias="paramsToSign")

    model_config = ConfigDict(populate_by_name=True)


class UploadSignature(BaseModel):
    """Signature for a direct upload."""

    signature: str
    timestamp: int
