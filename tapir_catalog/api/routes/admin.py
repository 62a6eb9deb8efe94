"""Administrative Cloudinary routes: import, probe and upload signing."""

import os

from fastapi import APIRouter, Depends, HTTPException

from ..db.store import CatalogStore
from ..models.schemas import (
    CloudinaryConfig,
    ImportRequest,
    ImportSummary,
    ProbeRequest,
    ProbeSummary,
    SignUploadRequest,
    UploadSignature,
)
from ..services.catalog import CatalogWriter
from ..services.classifier import normalize_folder
from ..services.cloudinary import DAM_ERRORS, CloudinaryClient, get_max_folders
from ..services.importer import CatalogImporter
from .deps import get_catalog_store, get_cloudinary

router = APIRouter(prefix="/admin/cloudinary", tags=["admin"])


def get_default_prefix() -> str:
    """Root folder used when a request does not name one."""
    return os.getenv("CATALOG_ROOT_FOLDER", "tapir/")


@router.post("/import", response_model=ImportSummary)
async def import_prefix(
    request: ImportRequest,
    store: CatalogStore = Depends(get_catalog_store),
    cloudinary: CloudinaryClient = Depends(get_cloudinary),
) -> ImportSummary:
    """
    Import a Cloudinary folder tree into the catalog.

    Safe to repeat: assets that are already catalogued are skipped. Listing
    and per-asset failures are returned in `errors` rather than failing the
    request.
    """
    prefix = request.prefix if request.prefix is not None else get_default_prefix()
    if not normalize_folder(prefix):
        raise HTTPException(status_code=400, detail="prefix is required")
    async with cloudinary:
        importer = CatalogImporter(
            cloudinary, CatalogWriter(store, cloudinary), max_folders=get_max_folders()
        )
        return await importer.import_prefix(prefix, request.user_id, request.max)


@router.post("/probe", response_model=ProbeSummary)
async def probe_prefix(
    request: ProbeRequest,
    store: CatalogStore = Depends(get_catalog_store),
    cloudinary: CloudinaryClient = Depends(get_cloudinary),
) -> ProbeSummary:
    """Sample what an import of a prefix would see, without writing anything."""
    prefix = request.prefix if request.prefix is not None else get_default_prefix()
    if not normalize_folder(prefix):
        raise HTTPException(status_code=400, detail="prefix is required")
    async with cloudinary:
        importer = CatalogImporter(cloudinary, CatalogWriter(store, cloudinary))
        try:
            return await importer.probe_prefix(prefix)
        except DAM_ERRORS as e:
            raise HTTPException(status_code=502, detail=f"Cloudinary request failed: {e}")


@router.get("/config", response_model=CloudinaryConfig)
async def get_config(cloudinary: CloudinaryClient = Depends(get_cloudinary)) -> CloudinaryConfig:
    """Cloud name and API key for the browser upload widget."""
    return CloudinaryConfig(**cloudinary.client_config())


@router.post("/sign-upload", response_model=UploadSignature)
async def sign_upload(
    request: SignUploadRequest,
    cloudinary: CloudinaryClient = Depends(get_cloudinary),
) -> UploadSignature:
    """Sign upload widget parameters so the browser can upload directly to Cloudinary."""
    return UploadSignature(**cloudinary.sign_upload(request.params_to_sign))
