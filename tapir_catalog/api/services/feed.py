"""Feed reader: keyset-paginated, filterable listing of posts."""

from ..db.store import CatalogStore
from ..models.schemas import (
    CityPlaces,
    CountryPlaces,
    FeedPage,
    PlacesResponse,
    Post,
    UnknownPlaces,
)
from .cursor import decode_cursor, encode_cursor

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 200


class InvalidFeedRequest(ValueError):
    """Raised for filter combinations the feed does not support."""


def clamp_limit(limit: int | None) -> int:
    """Clamp a page size to 1..200 (default 50)."""
    if limit is None:
        return DEFAULT_PAGE_SIZE
    return max(1, min(MAX_PAGE_SIZE, limit))


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


class FeedService:
    """Read path over the posts table."""

    def __init__(self, store: CatalogStore):
        self.store = store

    async def list_page(
        self,
        limit: int | None = DEFAULT_PAGE_SIZE,
        cursor: str | None = None,
        country: str | None = None,
        city: str | None = None,
        unknown_only: bool = False,
        order: str = "desc",
    ) -> FeedPage:
        """
        Return one page of posts ordered by (created_at, id).

        Args:
            limit: Page size, clamped to 1..200
            cursor: nextCursor from the previous page
            country: Country filter, requires city
            city: City filter, requires country
            unknown_only: Only posts with a blank country or city
            order: 'asc' (oldest first) or 'desc' (newest first)

        Returns:
            FeedPage with items, nextCursor and hasMore

        Raises:
            InvalidFeedRequest: If the filters or order are not supported
            InvalidCursorError: If the cursor cannot be decoded
        """
        if order not in ("asc", "desc"):
            raise InvalidFeedRequest("order must be 'asc' or 'desc'")

        has_country, has_city = not _blank(country), not _blank(city)
        if has_country != has_city:
            raise InvalidFeedRequest("country and city must be given together")
        if unknown_only and has_country:
            raise InvalidFeedRequest("unknown cannot be combined with country/city")

        limit = clamp_limit(limit)
        boundary = decode_cursor(cursor) if cursor else None

        rows = await self.store.feed_page(
            limit=limit + 1,
            boundary=boundary,
            descending=order == "desc",
            country=country.strip() if has_country else None,
            city=city.strip() if has_city else None,
            unknown_only=unknown_only,
        )

        has_more = len(rows) > limit
        rows = rows[:limit]
        next_cursor = None
        if has_more:
            last = rows[-1]
            next_cursor = encode_cursor(last["created_at"], last["id"])

        return FeedPage(
            items=[Post(**row) for row in rows],
            next_cursor=next_cursor,
            has_more=has_more,
        )


class PlacesService:
    """Country/city navigation built from the posts table."""

    def __init__(self, store: CatalogStore):
        self.store = store

    async def list_places(self) -> PlacesResponse:
        """Group posts by place; posts missing either part count as unknown."""
        rows = await self.store.list_places()

        countries: dict[str, CountryPlaces] = {}
        unknown_count = 0
        for row in rows:
            country, city, count = row.get("country"), row.get("city"), row.get("count") or 0
            if _blank(country) or _blank(city):
                unknown_count += count
                continue
            entry = countries.setdefault(country, CountryPlaces(country=country))
            entry.cities.append(CityPlaces(city=city, count=count))
            entry.count += count

        result = sorted(countries.values(), key=lambda c: c.country.casefold())
        for entry in result:
            entry.cities.sort(key=lambda c: c.city.casefold())

        return PlacesResponse(countries=result, unknown=UnknownPlaces(count=unknown_count))
