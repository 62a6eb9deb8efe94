"""Parsing of provider-supplied EXIF-style metadata.

Every parser here is total: malformed input yields None, never an exception.
The import pipeline falls back to the provider's upload timestamp and to
unknown coordinates whenever a value cannot be read.
"""

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, NamedTuple

logger = logging.getLogger(__name__)

# e.g. 13 deg 44' 12.34" N
GPS_PATTERN = re.compile(
    r"""^\s*
    (?P<deg>\d+(?:\.\d+)?)\s*deg\s*
    (?P<min>\d+(?:\.\d+)?)\s*'\s*
    (?P<sec>\d+(?:\.\d+)?)\s*"\s*
    (?P<hemi>[NSEWnsew])\s*$""",
    re.VERBOSE,
)

# e.g. 2026:01:19 13:18:00, 2026-01-19 13:18:00, UTC 2026:01:19 13:18:00
SHOT_DATE_PATTERN = re.compile(
    r"^\s*(?:UTC\s*)?"
    r"(?P<year>\d{4})[:-](?P<month>\d{2})[:-](?P<day>\d{2})"
    r"[ T](?P<hour>\d{2}):(?P<minute>\d{2}):(?P<second>\d{2})"
)

OFFSET_PATTERN = re.compile(r"^\s*(?P<sign>[+-])(?P<hours>\d{2}):?(?P<minutes>\d{2})\s*$")

# Inline offset some video containers append to the timestamp itself
INLINE_OFFSET_PATTERN = re.compile(r"(?P<offset>[+-]\d{2}:?\d{2})\s*$")

GPS_PRECISION = 7

PHOTO_DATE_FIELDS = ("DateTimeOriginal", "CreateDate", "ModifyDate")
PHOTO_OFFSET_FIELDS = ("OffsetTimeOriginal", "OffsetTimeDigitized", "OffsetTime")
VIDEO_DATE_FIELDS = ("CreationDate", "MediaCreateDate", "CreateDate", "TrackCreateDate")


class MediaMetadata(NamedTuple):
    """Enrichment values extracted for a single resource."""

    lat: float | None = None
    lng: float | None = None
    shot_at: datetime | None = None


def parse_gps_coordinate(value: Any) -> float | None:
    """
    Convert a sexagesimal coordinate to signed decimal degrees.

    Args:
        value: String like ``13 deg 44' 12.34" N``

    Returns:
        Decimal degrees rounded to 7 places (negative for S/W), or None
    """
    if not isinstance(value, str):
        return None
    match = GPS_PATTERN.match(value)
    if not match:
        return None

    degrees = float(match["deg"])
    minutes = float(match["min"])
    seconds = float(match["sec"])
    decimal = degrees + minutes / 60 + seconds / 3600
    if match["hemi"].upper() in ("S", "W"):
        decimal = -decimal
    return round(decimal, GPS_PRECISION)


def format_gps_coordinate(value: float, axis: str = "lat") -> str:
    """Render decimal degrees in the sexagesimal notation parse_gps_coordinate reads."""
    if axis == "lat":
        hemisphere = "N" if value >= 0 else "S"
    else:
        hemisphere = "E" if value >= 0 else "W"

    remainder = abs(value)
    degrees = int(remainder)
    remainder = (remainder - degrees) * 60
    minutes = int(remainder)
    seconds = (remainder - minutes) * 60
    return f"{degrees} deg {minutes}' {seconds:.6f}\" {hemisphere}"


def parse_utc_offset(value: Any) -> timedelta | None:
    """Parse a ``+HH:MM`` / ``-HHMM`` offset string."""
    if not isinstance(value, str):
        return None
    match = OFFSET_PATTERN.match(value)
    if not match:
        return None
    hours = int(match["hours"])
    minutes = int(match["minutes"])
    if hours > 23 or minutes > 59:
        return None
    delta = timedelta(hours=hours, minutes=minutes)
    return -delta if match["sign"] == "-" else delta


def parse_shot_date(value: Any, offset: Any = None) -> datetime | None:
    """
    Parse a local EXIF timestamp into an aware UTC datetime.

    The naive fields are read as a calendar timestamp and the offset, when
    present and valid, is subtracted to reach UTC.

    Args:
        value: Timestamp like ``2026:01:19 13:18:00``
        offset: Optional offset like ``+07:00``

    Returns:
        UTC datetime, or None if the timestamp cannot be read
    """
    if not isinstance(value, str):
        return None
    match = SHOT_DATE_PATTERN.match(value)
    if not match:
        return None

    try:
        naive = datetime(
            int(match["year"]),
            int(match["month"]),
            int(match["day"]),
            int(match["hour"]),
            int(match["minute"]),
            int(match["second"]),
            tzinfo=timezone.utc,
        )
    except ValueError:
        # 0000:00:00 00:00:00 and friends
        return None

    delta = parse_utc_offset(offset)
    if delta is not None:
        return naive - delta
    return naive


def _first_present(bag: dict, fields: tuple[str, ...]) -> Any:
    for field in fields:
        value = bag.get(field)
        if value not in (None, ""):
            return value
    return None


def extract_photo_metadata(bag: dict | None) -> MediaMetadata:
    """Coordinates and capture time from an image's embedded metadata."""
    if not bag:
        return MediaMetadata()

    lat = parse_gps_coordinate(bag.get("GPSLatitude"))
    lng = parse_gps_coordinate(bag.get("GPSLongitude"))

    if (lat is None or lng is None) and isinstance(bag.get("GPSPosition"), str):
        # "13 deg 44' 12.34\" N, 100 deg 30' 5.00\" E"
        parts = bag["GPSPosition"].split(",")
        if len(parts) == 2:
            lat = parse_gps_coordinate(parts[0])
            lng = parse_gps_coordinate(parts[1])

    # A single axis is not a location
    if lat is None or lng is None:
        lat = lng = None

    shot_at = None
    for field in PHOTO_DATE_FIELDS:
        shot_at = parse_shot_date(bag.get(field), _first_present(bag, PHOTO_OFFSET_FIELDS))
        if shot_at is not None:
            break

    return MediaMetadata(lat=lat, lng=lng, shot_at=shot_at)


def extract_video_metadata(bag: dict | None, video_metadata: dict | None = None) -> MediaMetadata:
    """Capture time for a video; videos never contribute coordinates."""
    for field in VIDEO_DATE_FIELDS:
        value = (bag or {}).get(field)
        if not isinstance(value, str):
            continue
        offset = None
        inline = INLINE_OFFSET_PATTERN.search(value)
        if inline:
            offset = inline["offset"]
            value = value[: inline.start()]
        shot_at = parse_shot_date(value, offset)
        if shot_at is not None:
            return MediaMetadata(shot_at=shot_at)

    tags = ((video_metadata or {}).get("format") or {}).get("tags") or {}
    shot_at = parse_iso_timestamp(tags.get("creation_time"))
    return MediaMetadata(shot_at=shot_at)


def parse_iso_timestamp(value: Any) -> datetime | None:
    """Parse an ISO 8601 timestamp (``Z`` suffix allowed) into an aware UTC datetime."""
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def extract_media_metadata(resource_type: str, details: dict | None) -> MediaMetadata:
    """
    Extract enrichment values from a provider resource-details response.

    Args:
        resource_type: Provider kind ('image' or 'video')
        details: Response of the resource-details call with media metadata

    Returns:
        MediaMetadata with whatever could be read
    """
    details = details or {}
    bag = details.get("image_metadata") or details.get("media_metadata") or {}
    if resource_type == "video":
        return extract_video_metadata(bag, details.get("video_metadata"))
    return extract_photo_metadata(bag)
