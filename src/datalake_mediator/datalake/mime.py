"""
MIME type detection for datalake objects.

Objects arriving through bucket notifications carry only their key, so the
content type is derived from the file extension:
- an explicit table for the formats mediators exchange most
- the platform ``mimetypes`` table for everything else
- ``application/octet-stream`` when nothing matches
"""

import mimetypes
from typing import Dict

DEFAULT_MIME_TYPE = "application/octet-stream"

# Extension (lowercase, no dot) to MIME type
MIME_TYPE_MAP: Dict[str, str] = {
    "json": "application/json",
    "csv": "text/csv",
    "txt": "text/plain",
    "xml": "application/xml",
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "mp4": "video/mp4",
    "pdf": "application/pdf",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
}


def detect_mime_type(file_name: str) -> str:
    """
    Detect the MIME type of a file from its extension.

    Args:
        file_name: Object key or file name (e.g., "reports/2024/data.JSON")

    Returns:
        MIME type string, never empty

    Examples:
        >>> detect_mime_type("data.json")
        'application/json'
        >>> detect_mime_type("PHOTO.JPG")
        'image/jpeg'
        >>> detect_mime_type("README")
        'application/octet-stream'
    """
    base_name = (file_name or "").rsplit("/", 1)[-1]
    if "." not in base_name:
        return DEFAULT_MIME_TYPE

    extension = base_name.rsplit(".", 1)[-1].lower()
    if not extension:
        return DEFAULT_MIME_TYPE
    if extension in MIME_TYPE_MAP:
        return MIME_TYPE_MAP[extension]

    guessed, _ = mimetypes.guess_type(f"file.{extension}", strict=False)
    return guessed or DEFAULT_MIME_TYPE


def get_supported_extensions() -> list[str]:
    """Get the extensions with an explicit mapping."""
    return list(MIME_TYPE_MAP.keys())
