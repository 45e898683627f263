"""SHA256 digests for upload integrity metadata."""

import hashlib
from typing import Union

BytesLike = Union[bytes, bytearray, memoryview]


def sha256_hex(data: BytesLike) -> str:
    """Compute the SHA256 digest of a byte buffer.

    Args:
        data: Bytes to hash

    Returns:
        SHA256 hash (64-character lowercase hex string)
    """
    return hashlib.sha256(data).hexdigest()


class StreamDigest:
    """Whole-file SHA256 built up block by block while a stream is read."""

    def __init__(self):
        self._sha256 = hashlib.sha256()
        self.size = 0

    def update(self, data: BytesLike) -> None:
        self._sha256.update(data)
        self.size += len(data)

    def hexdigest(self) -> str:
        return self._sha256.hexdigest()
