import asyncio
from datetime import datetime, timedelta, timezone
from uuid import UUID

import pytest

from tapir_catalog.api.db.store import FeedBoundary, build_feed_query
from tapir_catalog.api.services.cursor import InvalidCursorError
from tapir_catalog.api.services.feed import FeedService, InvalidFeedRequest, PlacesService

BASE = datetime(2026, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def catalog(store):
    """Twelve posts; several share an instant to exercise the id tie-break."""
    places = [
        ("Thailand", "Bangkok"),
        ("Thailand", "Phuket"),
        (None, None),
        ("Japan", None),
        ("  ", "Tokyo"),
    ]
    for i in range(12):
        country, city = places[i % len(places)]
        store.add(
            id=UUID(int=i + 1),
            created_at=BASE + timedelta(minutes=i // 3),
            country=country,
            city=city,
        )
    return store


def collect(service, **kwargs):
    """Follow nextCursor until the feed is exhausted."""
    pages = []
    cursor = None
    while True:
        page = asyncio.run(service.list_page(cursor=cursor, **kwargs))
        pages.append(page)
        if not page.has_more:
            return pages
        assert page.next_cursor
        cursor = page.next_cursor


def ids(pages):
    return [item.id for page in pages for item in page.items]


def expected_order(store, descending=True, predicate=lambda row: True):
    rows = [row for row in store.rows.values() if predicate(row)]
    rows.sort(key=lambda row: (row["created_at"], row["id"]), reverse=descending)
    return [row["id"] for row in rows]


@pytest.mark.parametrize("limit", [1, 2, 3, 5, 12, 50])
@pytest.mark.parametrize("order", ["asc", "desc"])
def test_pages_cover_every_row_once(catalog, limit, order):
    pages = collect(FeedService(catalog), limit=limit, order=order)

    assert ids(pages) == expected_order(catalog, descending=order == "desc")
    assert all(len(page.items) <= limit for page in pages)
    assert pages[-1].next_cursor is None


def test_ascending_is_descending_reversed(catalog):
    service = FeedService(catalog)
    ascending = ids(collect(service, limit=4, order="asc"))
    descending = ids(collect(service, limit=4, order="desc"))

    assert ascending == list(reversed(descending))


def test_exact_page_boundary_reports_no_more(catalog):
    page = asyncio.run(FeedService(catalog).list_page(limit=12))

    assert len(page.items) == 12
    assert page.has_more is False
    assert page.next_cursor is None


def test_rows_inserted_ahead_of_cursor_do_not_shift_pages(catalog):
    service = FeedService(catalog)
    first = asyncio.run(service.list_page(limit=5, order="desc"))

    # A new post lands at the head of the feed while the client pages
    catalog.add(created_at=BASE + timedelta(days=1))
    rest = collect(service, limit=5, order="desc")
    second = asyncio.run(service.list_page(limit=5, order="desc", cursor=first.next_cursor))

    assert len(ids(rest)) == 13
    assert [item.id for item in second.items] == expected_order(catalog)[6:11]
    assert set(item.id for item in second.items).isdisjoint(item.id for item in first.items)


def test_country_city_filter(catalog):
    pages = collect(FeedService(catalog), limit=1, country="Thailand", city="Bangkok")

    assert ids(pages) == expected_order(
        catalog, predicate=lambda row: (row["country"], row["city"]) == ("Thailand", "Bangkok")
    )
    assert all(item.city == "Bangkok" for page in pages for item in page.items)


def test_unknown_place_filter(catalog):
    pages = collect(FeedService(catalog), limit=2, unknown_only=True, order="asc")

    def unknown(row):
        return not (row["country"] or "").strip() or not (row["city"] or "").strip()

    assert ids(pages) == expected_order(catalog, descending=False, predicate=unknown)
    assert len(ids(pages)) == 6


@pytest.mark.parametrize(
    "kwargs",
    [
        {"country": "Thailand"},
        {"city": "Bangkok"},
        {"country": "Thailand", "city": "Bangkok", "unknown_only": True},
        {"order": "sideways"},
    ],
)
def test_unsupported_filters_are_rejected(catalog, kwargs):
    with pytest.raises(InvalidFeedRequest):
        asyncio.run(FeedService(catalog).list_page(**kwargs))


def test_bad_cursor_is_rejected(catalog):
    with pytest.raises(InvalidCursorError):
        asyncio.run(FeedService(catalog).list_page(cursor="garbage"))


@pytest.mark.parametrize("limit,expected", [(0, 1), (-3, 1), (500, 200), (None, 50)])
def test_limit_is_clamped(store, limit, expected):
    for i in range(210):
        store.add(created_at=BASE + timedelta(seconds=i))

    page = asyncio.run(FeedService(store).list_page(limit=limit))

    assert len(page.items) == expected


def test_feed_query_for_first_page():
    sql, params = build_feed_query(limit=51)

    assert "WHERE" not in sql
    assert "ORDER BY created_at DESC, id DESC" in sql
    assert "LIMIT $1" in sql
    assert params == [51]


def test_feed_query_with_pair_and_boundary():
    boundary = FeedBoundary(BASE, UUID(int=1))

    sql, params = build_feed_query(
        limit=11, boundary=boundary, descending=False, country="Japan", city="Tokyo"
    )

    assert "TRIM(country) = $1 AND TRIM(city) = $2" in sql
    assert "(created_at, id) > ($3, $4)" in sql
    assert "ORDER BY created_at ASC, id ASC" in sql
    assert "LIMIT $5" in sql
    assert params == ["Japan", "Tokyo", BASE, UUID(int=1), 11]


def test_feed_query_unknown_places():
    boundary = FeedBoundary(BASE, UUID(int=1))

    sql, params = build_feed_query(limit=3, boundary=boundary, unknown_only=True)

    assert "NULLIF(TRIM(country), '') IS NULL OR NULLIF(TRIM(city), '') IS NULL" in sql
    assert "(created_at, id) < ($1, $2)" in sql
    assert params == [BASE, UUID(int=1), 3]


def test_places_group_known_and_unknown(catalog):
    places = asyncio.run(PlacesService(catalog).list_places())

    assert [c.country for c in places.countries] == ["Thailand"]
    thailand = places.countries[0]
    assert [(c.city, c.count) for c in thailand.cities] == [("Bangkok", 3), ("Phuket", 3)]
    assert thailand.count == 6
    assert places.unknown.count == 6


def test_padded_place_is_reachable_from_its_places_entry(store):
    padded = store.add(country=" Thailand", city="Bangkok ")
    store.add(country="Japan", city="Tokyo")

    places = asyncio.run(PlacesService(store).list_places())
    (thailand,) = [c for c in places.countries if c.country == "Thailand"]
    page = asyncio.run(
        FeedService(store).list_page(country=thailand.country, city=thailand.cities[0].city)
    )

    assert [item.id for item in page.items] == [padded["id"]]
    assert asyncio.run(FeedService(store).list_page(unknown_only=True)).items == []
