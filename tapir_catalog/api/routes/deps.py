"""Shared route dependencies."""

from fastapi import HTTPException

from ..db.store import CatalogStore, PostgresCatalogStore
from ..services.cloudinary import CloudinaryClient, get_cloudinary_client


def get_catalog_store() -> CatalogStore:
    """Dependency to get the catalog store."""
    return PostgresCatalogStore()


def get_optional_cloudinary() -> CloudinaryClient | None:
    """Dependency to get the Cloudinary client, or None when not configured."""
    return get_cloudinary_client()


def get_cloudinary() -> CloudinaryClient:
    """Dependency to get the Cloudinary client; 400 when not configured."""
    client = get_cloudinary_client()
    if client is None:
        raise HTTPException(status_code=400, detail="Cloudinary is not configured on the server")
    return client
