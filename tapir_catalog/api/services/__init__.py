"""Service modules."""

from .catalog import CatalogWriter
from .classifier import derive_country_city, pick_media_type
from .cloudinary import CloudinaryClient, discover_folders, get_cloudinary_client
from .feed import FeedService, PlacesService
from .importer import CatalogImporter

__all__ = [
    "CatalogImporter",
    "CatalogWriter",
    "CloudinaryClient",
    "FeedService",
    "PlacesService",
    "get_cloudinary_client",
    "discover_folders",
    "derive_country_city",
    "pick_media_type",
]
