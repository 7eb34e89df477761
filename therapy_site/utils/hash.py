import hashlib


def hash_stable(data: str) -> str:
    """Create short stable hash using SHA256"""
    return hashlib.sha256(data.encode()).hexdigest()[:16]


def sha256_hex(data: str) -> str:
    """Full SHA256 hex digest of a UTF-8 string"""
    return hashlib.sha256(data.encode("utf-8")).hexdigest()
