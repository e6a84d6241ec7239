import hashlib
from pathlib import Path

_CHUNK_BYTES = 1 << 20


def weights_sha256(path: str | Path | None) -> str | None:
    """Hex SHA-256 of a weights file, or None when there is no file to hash."""
    if path is None or str(path) == '':
        return None
    weights = Path(path)
    if not weights.is_file():
        return None

    digest = hashlib.sha256()
    with weights.open('rb') as stream:
        while chunk := stream.read(_CHUNK_BYTES):
            digest.update(chunk)
    return digest.hexdigest()
