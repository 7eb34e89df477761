from .filename import media_kind, safe_extension, sanitize_filename
from .hash import hash_stable, sha256_hex

__all__ = ["hash_stable", "media_kind", "safe_extension", "sanitize_filename", "sha256_hex"]
