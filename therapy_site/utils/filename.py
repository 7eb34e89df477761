import os
import re
import unicodedata

MEDIA_EXTENSIONS = {
    "image": {".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg", ".avif"},
    "video": {".mp4", ".webm", ".mov", ".avi"},
}


def sanitize_filename(name: str, max_length: int = 200) -> str:
    """Sanitize filename for cross-platform compatibility"""
    name = unicodedata.normalize("NFKC", name)
    name = re.sub(r'[\\/:*?"<>|]', '_', name)
    return name[:max_length].strip()


def safe_extension(filename: str, default: str = ".bin") -> str:
    """Lower-cased extension of an uploaded file name, restricted to [a-z0-9]"""
    ext = os.path.splitext(sanitize_filename(filename or ""))[1].lower()
    if not ext or not re.fullmatch(r"\.[a-z0-9]{1,10}", ext):
        return default
    return ext


def media_kind(filename: str):
    """'image', 'video' or None based on the file extension"""
    ext = os.path.splitext(filename)[1].lower()
    for kind, extensions in MEDIA_EXTENSIONS.items():
        if ext in extensions:
            return kind
    return None
