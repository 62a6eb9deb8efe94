"""Catalog writes: idempotent import upserts and the direct post lifecycle."""

import logging
from datetime import datetime, timezone
from typing import Any, NamedTuple
from uuid import UUID

from ..db.store import CatalogStore
from .classifier import derive_country_city, derive_folder, pick_media_type
from .cloudinary import DAM_ERRORS, CloudinaryClient
from .media_metadata import MediaMetadata, parse_iso_timestamp

logger = logging.getLogger(__name__)

# Provider resource type backing each catalog media type
RESOURCE_TYPES = {"PHOTO": "image", "VIDEO": "video", "AUDIO": "video"}


class UnresolvableAssetError(ValueError):
    """Raised when no delivery URL can be determined for a resource."""


class PostNotFoundError(LookupError):
    """Raised when a post id does not exist."""


class ImportedAsset(NamedTuple):
    """A classified, URL-resolved resource ready to be written."""

    public_id: str
    media_type: str
    media_url: str
    folder: str | None
    country: str | None
    city: str | None
    lat: float | None
    lng: float | None
    created_at: datetime


def resolve_media_url(resource: dict[str, Any], client: CloudinaryClient | None = None) -> str | None:
    """
    Pick a delivery URL for a resource.

    Prefers the provider's secure URL, then its plain URL, then a URL built
    offline from the public id and resource type.
    """
    url = resource.get("secure_url") or resource.get("url")
    if url:
        return url

    public_id = resource.get("public_id")
    if public_id and client is not None:
        return client.delivery_url(
            public_id, resource.get("resource_type") or "image", resource.get("format")
        )
    return None


def build_imported_asset(
    resource: dict[str, Any],
    metadata: MediaMetadata | None = None,
    client: CloudinaryClient | None = None,
    now: datetime | None = None,
) -> ImportedAsset:
    """
    Classify a resource descriptor and merge its enrichment values.

    Args:
        resource: Provider resource descriptor
        metadata: Parsed enrichment values, if any
        client: Client used to build a delivery URL offline
        now: Import time, the last-resort creation instant

    Returns:
        ImportedAsset

    Raises:
        UnresolvableAssetError: If the resource has no public id or no URL
    """
    public_id = resource.get("public_id")
    if not public_id:
        raise UnresolvableAssetError("Resource has no public_id")

    media_url = resolve_media_url(resource, client)
    if not media_url:
        raise UnresolvableAssetError(f"No delivery URL for {public_id}")

    metadata = metadata or MediaMetadata()
    folder = derive_folder(resource)
    country, city = derive_country_city(folder)
    created_at = (
        metadata.shot_at
        or parse_iso_timestamp(resource.get("created_at"))
        or now
        or datetime.now(timezone.utc)
    )

    return ImportedAsset(
        public_id=public_id,
        media_type=pick_media_type(resource.get("resource_type"), resource.get("format")),
        media_url=media_url,
        folder=folder,
        country=country,
        city=city,
        lat=metadata.lat,
        lng=metadata.lng,
        created_at=created_at,
    )


class CatalogWriter:
    """Writes posts through a CatalogStore."""

    def __init__(self, store: CatalogStore, client: CloudinaryClient | None = None):
        self.store = store
        self.client = client

    async def upsert_imported(self, asset: ImportedAsset, user_id: UUID) -> UUID | None:
        """
        Insert an imported asset unless its public id is already catalogued.

        Returns:
            New post id, or None if the asset was imported before
        """
        post_id = await self.store.insert_imported_post(
            {
                "user_id": user_id,
                "media_type": asset.media_type,
                "media_url": asset.media_url,
                "cloudinary_public_id": asset.public_id,
                "folder": asset.folder,
                "country": asset.country,
                "city": asset.city,
                "lat": asset.lat,
                "lng": asset.lng,
                "created_at": asset.created_at,
            }
        )
        if post_id is None:
            logger.debug("Skipping %s: already imported", asset.public_id)
        return post_id

    async def create_post(self, values: dict[str, Any]) -> dict:
        """
        Create a post directly (no provider round trip).

        Raises:
            DuplicatePostError: If the Cloudinary public id is already catalogued
        """
        return await self.store.create_post(values)

    async def update_post(self, post_id: UUID, changes: dict[str, Any]) -> dict:
        """Update caption, place, coordinates or creation time of a post."""
        row = await self.store.update_post(post_id, changes)
        if row is None:
            raise PostNotFoundError(str(post_id))
        return row

    async def delete_post(self, post_id: UUID) -> dict:
        """
        Delete a post and request deletion of its Cloudinary asset.

        The provider deletion is best-effort: a failure is logged and the
        catalog row stays deleted.
        """
        row = await self.store.delete_post(post_id)
        if row is None:
            raise PostNotFoundError(str(post_id))

        public_id = row.get("cloudinary_public_id")
        if public_id and self.client is not None:
            resource_type = RESOURCE_TYPES.get(row.get("media_type"), "image")
            try:
                await self.client.delete_resource(public_id, resource_type)
            except DAM_ERRORS as e:
                logger.warning("Cloudinary deletion of %s failed: %s", public_id, e)
        return row
