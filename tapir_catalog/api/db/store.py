"""Catalog store: the storage boundary used by the catalog services."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, NamedTuple
from uuid import UUID

import asyncpg

from . import connection
from .queries import (
    DELETE_POST,
    FEED_PAGE,
    GET_PLACES,
    GET_POST_BY_ID,
    INSERT_POST,
    UNKNOWN_PLACE_CONDITION,
    UPDATE_POST,
    UPSERT_IMPORTED_POST,
)


class DuplicatePostError(ValueError):
    """Raised when a Cloudinary public id is already catalogued."""


class FeedBoundary(NamedTuple):
    """The (created_at, id) sort key of the last row a client has seen."""

    created_at: datetime
    id: UUID


class CatalogStore(ABC):
    """
    Row store for the posts table.

    Implementations must honour the partial unique index on
    cloudinary_public_id and order feed pages by (created_at, id).
    """

    @abstractmethod
    async def insert_imported_post(self, values: dict[str, Any]) -> UUID | None:
        """Insert an imported post; return its id, or None if the public id already exists."""

    @abstractmethod
    async def create_post(self, values: dict[str, Any]) -> dict:
        """
        Insert a post and return the stored row.

        Raises:
            DuplicatePostError: If the Cloudinary public id is already catalogued
        """

    @abstractmethod
    async def get_post(self, post_id: UUID) -> dict | None:
        """Return a post row by id."""

    @abstractmethod
    async def update_post(self, post_id: UUID, changes: dict[str, Any]) -> dict | None:
        """Update a post in place; return the new row, or None if missing."""

    @abstractmethod
    async def delete_post(self, post_id: UUID) -> dict | None:
        """Delete a post; return the deleted row, or None if missing."""

    @abstractmethod
    async def feed_page(
        self,
        *,
        limit: int,
        boundary: FeedBoundary | None = None,
        descending: bool = True,
        country: str | None = None,
        city: str | None = None,
        unknown_only: bool = False,
    ) -> list[dict]:
        """Return up to `limit` rows strictly past `boundary` in the given direction."""

    @abstractmethod
    async def list_places(self) -> list[dict]:
        """Return rows of trimmed (country, city, count)."""


class PostgresCatalogStore(CatalogStore):
    """CatalogStore backed by the asyncpg pool."""

    async def insert_imported_post(self, values: dict[str, Any]) -> UUID | None:
        return await connection.fetchval(
            UPSERT_IMPORTED_POST,
            values["user_id"],
            values["media_type"],
            values["media_url"],
            values["cloudinary_public_id"],
            values.get("folder"),
            values.get("country"),
            values.get("city"),
            values.get("lat"),
            values.get("lng"),
            values["created_at"],
        )

    async def create_post(self, values: dict[str, Any]) -> dict:
        try:
            return await connection.fetchrow(
                INSERT_POST,
                values["user_id"],
                values["media_type"],
                values["media_url"],
                values.get("cloudinary_public_id"),
                values.get("folder"),
                values.get("text"),
                values.get("country"),
                values.get("city"),
                values.get("lat"),
                values.get("lng"),
                values.get("created_at"),
            )
        except asyncpg.UniqueViolationError as e:
            raise DuplicatePostError(
                f"{values.get('cloudinary_public_id')} is already catalogued"
            ) from e

    async def get_post(self, post_id: UUID) -> dict | None:
        return await connection.fetchrow(GET_POST_BY_ID, post_id)

    async def update_post(self, post_id: UUID, changes: dict[str, Any]) -> dict | None:
        return await connection.fetchrow(
            UPDATE_POST,
            post_id,
            changes.get("text"),
            changes.get("country"),
            changes.get("city"),
            changes.get("lat"),
            changes.get("lng"),
            changes.get("created_at"),
        )

    async def delete_post(self, post_id: UUID) -> dict | None:
        return await connection.fetchrow(DELETE_POST, post_id)

    async def feed_page(
        self,
        *,
        limit: int,
        boundary: FeedBoundary | None = None,
        descending: bool = True,
        country: str | None = None,
        city: str | None = None,
        unknown_only: bool = False,
    ) -> list[dict]:
        sql, params = build_feed_query(
            limit=limit,
            boundary=boundary,
            descending=descending,
            country=country,
            city=city,
            unknown_only=unknown_only,
        )
        return await connection.fetch(sql, *params)

    async def list_places(self) -> list[dict]:
        return await connection.fetch(GET_PLACES)


def build_feed_query(
    *,
    limit: int,
    boundary: FeedBoundary | None = None,
    descending: bool = True,
    country: str | None = None,
    city: str | None = None,
    unknown_only: bool = False,
) -> tuple[str, list[Any]]:
    """Build the keyset page query and its positional parameters."""
    conditions = []
    params: list[Any] = []
    param_idx = 1

    if unknown_only:
        conditions.append(UNKNOWN_PLACE_CONDITION)
    elif country is not None and city is not None:
        conditions.append(f"TRIM(country) = ${param_idx} AND TRIM(city) = ${param_idx + 1}")
        params.extend([country.strip(), city.strip()])
        param_idx += 2

    if boundary is not None:
        op = "<" if descending else ">"
        conditions.append(f"(created_at, id) {op} (${param_idx}, ${param_idx + 1})")
        params.extend([boundary.created_at, boundary.id])
        param_idx += 2

    where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""
    params.append(limit)

    sql = FEED_PAGE.format(
        where_clause=where_clause,
        direction="DESC" if descending else "ASC",
        limit_idx=param_idx,
    )
    return sql, params
