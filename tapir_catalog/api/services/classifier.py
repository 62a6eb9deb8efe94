"""Resource classification logic."""

from typing import Any

# Cloudinary serves audio through its "video" resource type
AUDIO_FORMATS = {"mp3", "m4a", "wav", "aac", "ogg", "flac", "opus"}

MEDIA_TYPES = ("PHOTO", "VIDEO", "AUDIO")


def pick_media_type(resource_type: str | None, file_format: str | None = None) -> str:
    """
    Map a provider resource type and format to a catalog media type.

    Args:
        resource_type: Provider coarse type ('image', 'video', 'raw', ...)
        file_format: Provider format hint ('jpg', 'mp3', ...)

    Returns:
        'PHOTO', 'VIDEO' or 'AUDIO'
    """
    if resource_type == "image":
        return "PHOTO"
    if resource_type == "video":
        if (file_format or "").lower() in AUDIO_FORMATS:
            return "AUDIO"
        return "VIDEO"
    # Default fallback
    return "PHOTO"


def normalize_folder(path: str | None) -> str:
    """Strip surrounding whitespace and trailing slashes from a folder path."""
    return (path or "").strip().rstrip("/")


def derive_folder(resource: dict[str, Any]) -> str | None:
    """Folder a resource lives in: the provider's field, else the public id's directory."""
    folder = resource.get("asset_folder") or resource.get("folder")
    if folder:
        return folder

    public_id = resource.get("public_id") or ""
    idx = public_id.rfind("/")
    if idx == -1:
        return None
    return public_id[:idx]


def derive_country_city(folder: str | None) -> tuple[str | None, str | None]:
    """
    Extract (country, city) from a folder path.

    Folders follow the <root>/<country>/<city>/... convention, e.g.
    "tapir/Thailand/Bangkok/beach" -> ("Thailand", "Bangkok").
    """
    if not folder:
        return None, None
    parts = [part for part in folder.split("/") if part]
    country = parts[1] if len(parts) >= 2 else None
    city = parts[2] if len(parts) >= 3 else None
    return country, city
