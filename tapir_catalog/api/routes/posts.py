"""Post routes: the feed and the direct post lifecycle."""

from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from ..db.store import CatalogStore, DuplicatePostError
from ..models.schemas import FeedPage, Post, PostCreate, PostUpdate
from ..services.catalog import CatalogWriter, PostNotFoundError
from ..services.cloudinary import CloudinaryClient
from ..services.cursor import InvalidCursorError
from ..services.feed import DEFAULT_PAGE_SIZE, FeedService, InvalidFeedRequest
from .deps import get_catalog_store, get_optional_cloudinary

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get("", response_model=FeedPage)
async def list_posts(
    limit: int = DEFAULT_PAGE_SIZE,
    cursor: str | None = None,
    country: str | None = None,
    city: str | None = None,
    unknown: bool = False,
    order: Literal["asc", "desc"] = "desc",
    store: CatalogStore = Depends(get_catalog_store),
) -> FeedPage:
    """
    List posts newest first (or oldest first with order=asc).

    Follow nextCursor to get the next page. Filter by an exact
    country + city pair, or by unknown=true for posts without a place.
    """
    try:
        return await FeedService(store).list_page(
            limit=limit,
            cursor=cursor,
            country=country,
            city=city,
            unknown_only=unknown,
            order=order,
        )
    except (InvalidCursorError, InvalidFeedRequest) as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/{post_id}", response_model=Post)
async def get_post(post_id: UUID, store: CatalogStore = Depends(get_catalog_store)) -> Post:
    """Get a single post."""
    row = await store.get_post(post_id)
    if not row:
        raise HTTPException(status_code=404, detail="Post not found")
    return Post(**row)


@router.post("", response_model=Post, status_code=201)
async def create_post(
    request: PostCreate, store: CatalogStore = Depends(get_catalog_store)
) -> Post:
    """Create a post for media that is already hosted somewhere."""
    try:
        row = await CatalogWriter(store).create_post(request.model_dump())
    except DuplicatePostError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return Post(**row)


@router.patch("/{post_id}", response_model=Post)
async def update_post(
    post_id: UUID,
    request: PostUpdate,
    store: CatalogStore = Depends(get_catalog_store),
) -> Post:
    """Update caption, place, coordinates or creation time of a post."""
    try:
        row = await CatalogWriter(store).update_post(post_id, request.model_dump(exclude_none=True))
    except PostNotFoundError:
        raise HTTPException(status_code=404, detail="Post not found")
    return Post(**row)


@router.delete("/{post_id}")
async def delete_post(
    post_id: UUID,
    store: CatalogStore = Depends(get_catalog_store),
    cloudinary: CloudinaryClient | None = Depends(get_optional_cloudinary),
) -> dict:
    """
    Delete a post.

    The backing Cloudinary asset is deleted too when possible; a provider
    failure does not fail the request.
    """
    try:
        if cloudinary is None:
            row = await CatalogWriter(store).delete_post(post_id)
        else:
            async with cloudinary:
                row = await CatalogWriter(store, cloudinary).delete_post(post_id)
    except PostNotFoundError:
        raise HTTPException(status_code=404, detail="Post not found")

    return {"id": str(row["id"]), "status": "deleted"}
