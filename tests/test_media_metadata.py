from datetime import datetime, timezone

import pytest

from tapir_catalog.api.services.media_metadata import (
    MediaMetadata,
    extract_media_metadata,
    extract_photo_metadata,
    extract_video_metadata,
    format_gps_coordinate,
    parse_gps_coordinate,
    parse_shot_date,
)


def test_parse_gps_north_and_east_are_positive():
    assert parse_gps_coordinate("13 deg 44' 12.34\" N") == pytest.approx(13.7367611, abs=1e-7)
    assert parse_gps_coordinate("100 deg 30' 5.00\" E") == pytest.approx(100.5013889, abs=1e-7)


@pytest.mark.parametrize("hemisphere", ["S", "W"])
def test_parse_gps_south_and_west_are_negative(hemisphere):
    value = parse_gps_coordinate(f"33 deg 51' 54.00\" {hemisphere}")
    assert value == pytest.approx(-33.865, abs=1e-7)


def test_parse_gps_zero_is_not_negative():
    assert parse_gps_coordinate("0 deg 0' 0.00\" S") == 0


def test_parse_gps_rounds_to_seven_places():
    value = parse_gps_coordinate("1 deg 0' 0.0001\" N")
    assert value == round(value, 7)


@pytest.mark.parametrize(
    "value",
    [None, "", "13.7367", "13 deg 44' N", "13 deg 44' 12\" X", "north", 13.7, "deg ' \" N"],
)
def test_parse_gps_rejects_malformed(value):
    assert parse_gps_coordinate(value) is None


@pytest.mark.parametrize(
    "value,axis",
    [(13.7563309, "lat"), (-33.8688197, "lat"), (100.5017651, "lng"), (-0.1275, "lng"), (0.0, "lat")],
)
def test_format_then_parse_returns_original(value, axis):
    assert parse_gps_coordinate(format_gps_coordinate(value, axis)) == pytest.approx(value, abs=1e-7)


def test_parse_shot_date_applies_offset():
    assert parse_shot_date("2026:01:19 13:18:00", "+07:00") == datetime(
        2026, 1, 19, 6, 18, tzinfo=timezone.utc
    )


def test_parse_shot_date_negative_offset_crosses_midnight():
    assert parse_shot_date("2026:01:19 20:30:00", "-05:00") == datetime(
        2026, 1, 20, 1, 30, tzinfo=timezone.utc
    )


def test_parse_shot_date_without_offset_is_taken_as_utc():
    assert parse_shot_date("2026-01-19 13:18:00") == datetime(
        2026, 1, 19, 13, 18, tzinfo=timezone.utc
    )


def test_parse_shot_date_accepts_utc_marker():
    assert parse_shot_date("UTC 2026:01:19 13:18:00") == datetime(
        2026, 1, 19, 13, 18, tzinfo=timezone.utc
    )


def test_parse_shot_date_ignores_invalid_offset():
    assert parse_shot_date("2026:01:19 13:18:00", "bogus") == datetime(
        2026, 1, 19, 13, 18, tzinfo=timezone.utc
    )


@pytest.mark.parametrize(
    "value",
    [None, "", "yesterday", "2026:01:19", "0000:00:00 00:00:00", "2026:13:40 10:00:00", 20260119],
)
def test_parse_shot_date_returns_none_for_bad_input(value):
    assert parse_shot_date(value, "+07:00") is None


def test_photo_metadata_prefers_original_date_and_offset():
    bag = {
        "GPSLatitude": "13 deg 44' 12.34\" N",
        "GPSLongitude": "100 deg 30' 5.00\" E",
        "DateTimeOriginal": "2026:01:19 13:18:00",
        "CreateDate": "2026:01:20 09:00:00",
        "OffsetTime": "+00:00",
        "OffsetTimeOriginal": "+07:00",
    }

    result = extract_photo_metadata(bag)

    assert result.lat == pytest.approx(13.7367611, abs=1e-7)
    assert result.lng == pytest.approx(100.5013889, abs=1e-7)
    assert result.shot_at == datetime(2026, 1, 19, 6, 18, tzinfo=timezone.utc)


def test_photo_metadata_falls_back_to_later_date_fields():
    bag = {"DateTimeOriginal": "garbage", "ModifyDate": "2025:12:31 23:00:00"}
    assert extract_photo_metadata(bag).shot_at == datetime(
        2025, 12, 31, 23, 0, tzinfo=timezone.utc
    )


def test_photo_metadata_reads_gps_position():
    bag = {"GPSPosition": "13 deg 44' 12.34\" N, 100 deg 30' 5.00\" E"}
    result = extract_photo_metadata(bag)
    assert result.lat is not None and result.lng is not None


def test_photo_metadata_drops_single_axis():
    result = extract_photo_metadata({"GPSLatitude": "13 deg 44' 12.34\" N"})
    assert result.lat is None and result.lng is None


def test_photo_metadata_empty_bag():
    assert extract_photo_metadata(None) == MediaMetadata()


def test_video_metadata_reads_inline_offset():
    result = extract_video_metadata({"CreationDate": "2026:01:19 13:18:00+07:00"})
    assert result == MediaMetadata(shot_at=datetime(2026, 1, 19, 6, 18, tzinfo=timezone.utc))


def test_video_metadata_ignores_gps():
    bag = {"GPSLatitude": "13 deg 44' 12.34\" N", "MediaCreateDate": "2026:01:19 06:18:00"}
    result = extract_video_metadata(bag)
    assert result.lat is None
    assert result.shot_at == datetime(2026, 1, 19, 6, 18, tzinfo=timezone.utc)


def test_video_metadata_falls_back_to_container_tag():
    details = {"format": {"tags": {"creation_time": "2026-01-19T06:18:00.000000Z"}}}
    assert extract_video_metadata({}, details).shot_at == datetime(
        2026, 1, 19, 6, 18, tzinfo=timezone.utc
    )


def test_extract_media_metadata_dispatches_on_kind():
    details = {
        "image_metadata": {
            "GPSLatitude": "13 deg 44' 12.34\" N",
            "GPSLongitude": "100 deg 30' 5.00\" E",
            "CreateDate": "2026:01:19 13:18:00",
        }
    }
    photo = extract_media_metadata("image", details)
    video = extract_media_metadata("video", details)

    assert photo.lat is not None
    assert video.lat is None
    assert video.shot_at == photo.shot_at


def test_extract_media_metadata_handles_missing_details():
    assert extract_media_metadata("image", None) == MediaMetadata()
