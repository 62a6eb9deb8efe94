import pytest

from tapir_catalog.api.services.classifier import (
    derive_country_city,
    derive_folder,
    normalize_folder,
    pick_media_type,
)


@pytest.mark.parametrize(
    "resource_type,file_format,expected",
    [
        ("image", "jpg", "PHOTO"),
        ("image", None, "PHOTO"),
        ("video", "mp4", "VIDEO"),
        ("video", "MOV", "VIDEO"),
        ("video", "mp3", "AUDIO"),
        ("video", "M4A", "AUDIO"),
        ("video", "opus", "AUDIO"),
        ("video", None, "VIDEO"),
        ("raw", "pdf", "PHOTO"),
        (None, None, "PHOTO"),
    ],
)
def test_pick_media_type(resource_type, file_format, expected):
    assert pick_media_type(resource_type, file_format) == expected


def test_derive_folder_prefers_provider_field():
    resource = {"asset_folder": "tapir/Japan/Tokyo", "public_id": "other/place/img"}
    assert derive_folder(resource) == "tapir/Japan/Tokyo"


def test_derive_folder_from_public_id():
    assert derive_folder({"public_id": "tapir/Thailand/Bangkok/beach/img1"}) == (
        "tapir/Thailand/Bangkok/beach"
    )


def test_derive_folder_without_directory():
    assert derive_folder({"public_id": "img1"}) is None


def test_country_and_city_from_deep_folder():
    assert derive_country_city("root/Thailand/Bangkok/beach") == ("Thailand", "Bangkok")


def test_city_missing_for_shallow_folder():
    assert derive_country_city("root/Thailand") == ("Thailand", None)


def test_place_ignores_empty_segments():
    assert derive_country_city("/root//Thailand/Bangkok/") == ("Thailand", "Bangkok")


@pytest.mark.parametrize("folder", [None, "", "root"])
def test_no_place_without_segments(folder):
    assert derive_country_city(folder) == (None, None)


@pytest.mark.parametrize(
    "path,expected", [("tapir/", "tapir"), ("tapir///", "tapir"), (" tapir/x ", "tapir/x"), (None, "")]
)
def test_normalize_folder(path, expected):
    assert normalize_folder(path) == expected
