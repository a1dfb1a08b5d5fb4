"""
Tests for MIME type detection.
"""

import pytest

from datalake_mediator.datalake.mime import (
    DEFAULT_MIME_TYPE,
    detect_mime_type,
    get_supported_extensions,
)


@pytest.mark.parametrize(
    "file_name,expected",
    [
        ("data.json", "application/json"),
        ("report.csv", "text/csv"),
        ("notes.txt", "text/plain"),
        ("feed.xml", "application/xml"),
        ("clip.mp3", "audio/mpeg"),
        ("clip.wav", "audio/wav"),
        ("movie.mp4", "video/mp4"),
        ("scan.pdf", "application/pdf"),
        ("image.png", "image/png"),
        ("photo.jpg", "image/jpeg"),
        ("photo.jpeg", "image/jpeg"),
    ],
)
def test_detect_known_extensions(file_name, expected):
    """Test that the explicit table covers common mediator formats."""
    assert detect_mime_type(file_name) == expected


def test_detect_is_case_insensitive():
    """Test that extensions are matched regardless of case."""
    assert detect_mime_type("PHOTO.JPG") == "image/jpeg"
    assert detect_mime_type("Data.Json") == "application/json"


def test_detect_uses_last_extension():
    """Test that only the last dotted part counts."""
    assert detect_mime_type("archive.tar.json") == "application/json"


def test_detect_ignores_directories():
    """Test that dots in directory names do not affect detection."""
    assert detect_mime_type("reports/v1.2/README") == DEFAULT_MIME_TYPE
    assert detect_mime_type("reports/2024/data.csv") == "text/csv"


def test_detect_without_extension():
    """Test that extension-less names fall back to octet-stream."""
    assert detect_mime_type("README") == DEFAULT_MIME_TYPE
    assert detect_mime_type("trailing.") == DEFAULT_MIME_TYPE
    assert detect_mime_type("") == DEFAULT_MIME_TYPE


def test_detect_hidden_file_uses_extension():
    """Test that a leading-dot name is treated as its extension."""
    assert detect_mime_type(".json") == "application/json"


def test_detect_unknown_extension():
    """Test that unknown extensions never yield an empty type."""
    assert detect_mime_type("blob.zz9unknown") == DEFAULT_MIME_TYPE


def test_detect_falls_back_to_platform_table():
    """Test that extensions outside the explicit table use mimetypes."""
    assert detect_mime_type("page.html") == "text/html"


def test_supported_extensions():
    """Test the list of explicitly mapped extensions."""
    extensions = get_supported_extensions()
    assert "json" in extensions
    assert "jpeg" in extensions
    assert all(not ext.startswith(".") for ext in extensions)
