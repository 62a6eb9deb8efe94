"""Import orchestrator: mirrors a Cloudinary folder tree into the posts table."""

import logging
from datetime import datetime, timezone
from enum import Enum
from uuid import UUID

from ..models.schemas import ImportErrorEntry, ImportSummary, ProbeSummary
from .catalog import CatalogWriter, UnresolvableAssetError, build_imported_asset
from .classifier import normalize_folder
from .cloudinary import (
    DAM_ERRORS,
    DEFAULT_MAX_FOLDERS,
    MAX_PAGE_SIZE,
    CloudinaryClient,
    discover_folders,
)
from .media_metadata import MediaMetadata, extract_media_metadata

logger = logging.getLogger(__name__)

# Kinds are imported in this order within each folder; audio is a "video" kind
RESOURCE_TYPES = ("image", "video")

DEFAULT_MAX_ITEMS = 2000
MAX_ITEMS_LIMIT = 10000
MAX_ERRORS = 50
PROBE_SAMPLE_SIZE = 5


class ImportState(str, Enum):
    """Lifecycle of a single import run."""

    IDLE = "idle"
    DISCOVERING = "discovering"
    IMPORTING = "importing"
    DONE = "done"


def clamp_max_items(max_items: int | None) -> int:
    """Clamp a requested item budget to 1..10000 (default 2000)."""
    if max_items is None:
        return DEFAULT_MAX_ITEMS
    return max(1, min(MAX_ITEMS_LIMIT, max_items))


class ImportRun:
    """
    Accumulator for one import run.

    Counters are always exact; the error list stops growing at MAX_ERRORS.
    """

    def __init__(self, prefix: str, max_items: int):
        self.prefix = prefix
        self.max_items = max_items
        self.state = ImportState.IDLE
        self.scanned = 0
        self.inserted = 0
        self.errors: list[ImportErrorEntry] = []

    @property
    def remaining(self) -> int:
        return max(0, self.max_items - self.scanned)

    @property
    def exhausted(self) -> bool:
        return self.scanned >= self.max_items

    def transition(self, state: ImportState) -> None:
        logger.info("Import %r: %s -> %s", self.prefix, self.state.value, state.value)
        self.state = state

    def record_error(
        self,
        stage: str,
        folder: str | None,
        message: str,
        resource_type: str | None = None,
        public_id: str | None = None,
    ) -> None:
        if len(self.errors) >= MAX_ERRORS:
            return
        self.errors.append(
            ImportErrorEntry(
                stage=stage,
                folder=folder,
                resource_type=resource_type,
                public_id=public_id,
                message=message,
            )
        )

    def summary(self) -> ImportSummary:
        return ImportSummary(
            prefix=self.prefix,
            scanned=self.scanned,
            inserted=self.inserted,
            errors=list(self.errors),
        )


class CatalogImporter:
    """
    Drives folder discovery, paginated listing, enrichment and writes.

    A run never aborts on a provider or per-resource failure; failures are
    collected in the run summary and the next (folder, kind) unit proceeds.
    Re-running with the same prefix is safe: catalogued public ids are
    skipped by the store's unique index.
    """

    def __init__(
        self,
        client: CloudinaryClient,
        writer: CatalogWriter,
        max_folders: int = DEFAULT_MAX_FOLDERS,
    ):
        self.client = client
        self.writer = writer
        self.max_folders = max_folders

    async def import_prefix(
        self, prefix: str, user_id: UUID, max_items: int | None = None
    ) -> ImportSummary:
        """
        Import every resource under a root folder, up to an item budget.

        Args:
            prefix: Root folder path (trailing slash optional)
            user_id: Owner of the created posts
            max_items: Item budget, clamped to 1..10000

        Returns:
            ImportSummary with scanned/inserted counters and recorded errors

        Raises:
            ValueError: If the prefix is blank
        """
        root = normalize_folder(prefix)
        if not root:
            raise ValueError("prefix is required")

        run = ImportRun(prefix=prefix.strip(), max_items=clamp_max_items(max_items))

        run.transition(ImportState.DISCOVERING)
        folders = await discover_folders(
            self.client.list_subfolders,
            root,
            max_folders=self.max_folders,
            on_error=lambda folder, e: run.record_error("list", folder, str(e)),
        )
        logger.info("Discovered %d folders under %r", len(folders), root)

        run.transition(ImportState.IMPORTING)
        for folder in folders:
            for resource_type in RESOURCE_TYPES:
                if run.exhausted:
                    break
                await self.import_folder_kind(run, folder, resource_type, user_id)
            if run.exhausted:
                break

        run.transition(ImportState.DONE)
        logger.info(
            "Import %r finished: scanned=%d inserted=%d errors=%d",
            run.prefix,
            run.scanned,
            run.inserted,
            len(run.errors),
        )
        return run.summary()

    async def import_folder_kind(
        self, run: ImportRun, folder: str, resource_type: str, user_id: UUID
    ) -> ImportRun:
        """Page through one (folder, kind) unit until it is exhausted or the budget runs out."""
        next_cursor = None
        while not run.exhausted:
            try:
                page = await self.client.list_resources(
                    folder,
                    resource_type,
                    max_results=min(MAX_PAGE_SIZE, run.remaining),
                    next_cursor=next_cursor,
                )
            except DAM_ERRORS as e:
                logger.warning("Listing %s in %r failed: %s", resource_type, folder, e)
                run.record_error("list", folder, str(e), resource_type=resource_type)
                return run

            for resource in page.resources:
                if run.exhausted:
                    break
                run.scanned += 1
                if await self.import_resource(run, folder, resource_type, resource, user_id):
                    run.inserted += 1

            next_cursor = page.next_cursor
            if not next_cursor:
                break
        return run

    async def import_resource(
        self,
        run: ImportRun,
        folder: str,
        resource_type: str,
        resource: dict,
        user_id: UUID,
    ) -> bool:
        """Classify, enrich and write one resource; return True if a row was inserted."""
        public_id = resource.get("public_id")
        resource = {"resource_type": resource_type, **resource}
        metadata = await self.enrich(resource)

        try:
            asset = build_imported_asset(
                resource, metadata, self.client, now=datetime.now(timezone.utc)
            )
            post_id = await self.writer.upsert_imported(asset, user_id)
        except UnresolvableAssetError as e:
            run.record_error("insert", folder, str(e), resource_type=resource_type, public_id=public_id)
            return False
        except Exception as e:
            logger.warning("Writing %s failed: %s", public_id, e)
            run.record_error("insert", folder, str(e), resource_type=resource_type, public_id=public_id)
            return False

        return post_id is not None

    async def enrich(self, resource: dict) -> MediaMetadata:
        """Fetch and parse embedded metadata; any failure yields empty metadata."""
        public_id = resource.get("public_id")
        if not public_id:
            return MediaMetadata()
        resource_type = resource.get("resource_type") or "image"
        try:
            details = await self.client.get_resource_metadata(public_id, resource_type)
            return extract_media_metadata(resource_type, details)
        except Exception as e:
            logger.debug("Metadata for %s unavailable: %s", public_id, e)
            return MediaMetadata()

    async def probe_prefix(self, prefix: str) -> ProbeSummary:
        """
        Sample a root folder without writing anything.

        Raises:
            ValueError: If the prefix is blank
        """
        root = normalize_folder(prefix)
        if not root:
            raise ValueError("prefix is required")

        images = await self.client.list_resources(root, "image", max_results=PROBE_SAMPLE_SIZE)
        videos = await self.client.list_resources(root, "video", max_results=PROBE_SAMPLE_SIZE)
        subfolders = await self.client.list_subfolders(root)
        samples = images.resources[:PROBE_SAMPLE_SIZE] + videos.resources[:PROBE_SAMPLE_SIZE]

        return ProbeSummary(
            prefix=prefix.strip(),
            images_found=len(images.resources),
            videos_found=len(videos.resources),
            subfolders=subfolders,
            sample_public_ids=[r.get("public_id") for r in samples],
            sample_folders=[r.get("asset_folder") or r.get("folder") for r in samples],
        )
