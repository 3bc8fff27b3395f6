"""Media path resolution and file classification."""

from estate_catalog.config import settings

PASSTHROUGH_PREFIXES = ("http", "file://", "content://", "data:")
BACKSLASH = "\\"

ALLOWED_MIMES = {
    "image/jpeg", "image/png", "image/gif", "image/webp",
    "video/mp4", "video/webm", "video/quicktime", "video/x-msvideo", "video/avi",
    "application/pdf", "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "text/plain",
}

ALLOWED_EXTENSIONS = {
    "jpg", "jpeg", "png", "gif", "webp",
    "mp4", "webm", "mov", "avi", "mkv", "flv", "wmv", "mts", "m4v",
    "pdf", "doc", "docx", "xls", "xlsx", "txt",
}

VIDEO_EXTENSIONS = {"mp4", "webm", "mov", "avi", "mkv", "flv", "wmv", "mts", "m4v"}
IMAGE_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp"}


def resolve_media_url(path: str | None, base_url: str | None = None) -> str | None:
    """
    Turn a stored media path into an absolute URL.

    Args:
        path: Path as stored on the record (relative or already absolute)
        base_url: Server root to join relative paths onto

    Returns:
        Absolute URL, or None for an empty path
    """
    if not path:
        return None
    if path.startswith(PASSTHROUGH_PREFIXES):
        return path

    base = base_url if base_url is not None else settings.api_base_url
    clean_path = path[1:] if path.startswith("/") else path
    clean_base = base[:-1] if base.endswith("/") else base

    return f"{clean_base}/{clean_path.replace(BACKSLASH, '/')}"


def file_extension(file_name: str) -> str:
    """Lower-case extension without the dot ("" when there is none)."""
    if "." not in file_name:
        return ""
    return file_name.rsplit(".", 1)[-1].lower()


def file_type_category(file_name: str, mime: str | None = None) -> str:
    """Classify a file as "image", "video" or "attachment"."""
    if mime and mime.startswith("image/"):
        return "image"
    if mime and mime.startswith("video/"):
        return "video"

    ext = file_extension(file_name)
    if ext in VIDEO_EXTENSIONS:
        return "video"
    if ext in IMAGE_EXTENSIONS and not mime:
        return "image"
    return "attachment"


def is_allowed_file(file_name: str, mime: str | None = None) -> bool:
    """Check a file against the upload allow-lists."""
    if mime and mime in ALLOWED_MIMES:
        return True
    return file_extension(file_name) in ALLOWED_EXTENSIONS
