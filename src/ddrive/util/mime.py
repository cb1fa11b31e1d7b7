from __future__ import annotations

from ddrive.models.preview import MediaKind

IMAGE_EXTENSIONS: frozenset[str] = frozenset(
    {"jpg", "jpeg", "png", "gif", "webp", "svg", "bmp"}
)
VIDEO_EXTENSIONS: frozenset[str] = frozenset({"mp4", "webm", "mov", "avi", "mkv"})
TEXT_EXTENSIONS: frozenset[str] = frozenset(
    {"txt", "md", "markdown", "json", "xml", "html", "yml", "yaml", "csv", "log"}
)

# Metadata files produced by desktop file managers; never uploaded.
OS_METADATA_NAMES: frozenset[str] = frozenset({"Thumbs.db", "desktop.ini"})


def extension_of(name: str) -> str:
    """Return the lower-cased extension without the dot ('' if none)."""
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[-1].lower()


def classify_media(name: str, mime_type: str | None = None) -> MediaKind:
    """
    Classify an entry for previewing.

    MIME type wins when it is conclusive; the file extension is the fallback
    because the server may store a generic type for uploaded content.
    """
    mime = (mime_type or "").lower()
    ext = extension_of(name)

    if mime.startswith("video/") or ext in VIDEO_EXTENSIONS:
        return MediaKind.VIDEO
    if mime.startswith("image/") or ext in IMAGE_EXTENSIONS:
        return MediaKind.IMAGE
    if mime == "application/pdf" or ext == "pdf":
        return MediaKind.PDF
    if mime.startswith("text/") or ext in TEXT_EXTENSIONS:
        return MediaKind.TEXT
    return MediaKind.UNSUPPORTED


def is_previewable(name: str, mime_type: str | None = None) -> bool:
    return classify_media(name, mime_type) is not MediaKind.UNSUPPORTED


def is_os_metadata(name: str) -> bool:
    """Dot-files (.DS_Store, ._foo) and known OS metadata files."""
    return not name or name.startswith(".") or name in OS_METADATA_NAMES
