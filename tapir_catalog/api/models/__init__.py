"""Pydantic models for the catalog API."""

from .schemas import (
    CityPlaces,
    CloudinaryConfig,
    CountryPlaces,
    FeedPage,
    ImportErrorEntry,
    ImportRequest,
    ImportSummary,
    PlacesResponse,
    Post,
    PostCreate,
    PostUpdate,
    ProbeRequest,
    ProbeSummary,
    SignUploadRequest,
    UnknownPlaces,
    UploadSignature,
)

__all__ = [
    "Post",
    "PostCreate",
    "PostUpdate",
    "FeedPage",
    "CityPlaces",
    "CountryPlaces",
    "UnknownPlaces",
    "PlacesResponse",
    "ImportRequest",
    "ImportErrorEntry",
    "ImportSummary",
    "ProbeRequest",
    "ProbeSummary",
    "CloudinaryConfig",
    "SignUploadRequest",
    "UploadSignature",
]
