"""
Upload body classification.

Classifies upload bodies into the kinds the orchestrator knows how to send:
- BUFFER: bytes, bytearray or memoryview held fully in memory
- STREAM: async iterables of bytes, iterators of bytes and readable
  file-like objects (sync or async read)
- UNKNOWN: anything else, rejected before any network call
"""

import asyncio
import inspect
from collections.abc import AsyncIterable, Iterator
from enum import Enum
from typing import Any, AsyncIterator, Optional

from dambridge.models.upload import CHUNK_SIZE, UploadRequest


class BodyType(str, Enum):
    """Upload body kinds."""

    BUFFER = "BUFFER"
    STREAM = "STREAM"
    UNKNOWN = "UNKNOWN"


BUFFER_TYPES = (bytes, bytearray, memoryview)


def classify(body: Any) -> BodyType:
    """Classify an upload body without touching its contents.

    Args:
        body: Upload body supplied by the caller

    Returns:
        BodyType of the body
    """
    if isinstance(body, BUFFER_TYPES):
        return BodyType.BUFFER
    if callable(getattr(body, "read", None)):
        return BodyType.STREAM
    if isinstance(body, AsyncIterable) or isinstance(body, Iterator):
        return BodyType.STREAM
    return BodyType.UNKNOWN


def get_length(request: UploadRequest) -> Optional[int]:
    """Return the number of bytes the upload will send.

    Buffers know their own size; for anything else the caller-declared
    length is all there is.
    """
    body = request.body
    if isinstance(body, memoryview):
        return body.nbytes
    if isinstance(body, (bytes, bytearray)):
        return len(body)
    return request.length


def _split(block: bytes, chunk_size: int):
    for start in range(0, len(block), chunk_size):
        yield bytes(block[start:start + chunk_size])


async def iter_stream_blocks(body: Any, chunk_size: int = CHUNK_SIZE) -> AsyncIterator[bytes]:
    """Pull a streamed body one block at a time.

    Nothing is read from the source until the consumer asks for the next
    block, so at most one block is held in memory per upload.

    Args:
        body: STREAM body
        chunk_size: Maximum block size

    Yields:
        Non-empty blocks of at most chunk_size bytes
    """
    # File objects iterate line by line, so prefer read() when it exists
    read = getattr(body, "read", None)
    if callable(read):
        while True:
            if inspect.iscoroutinefunction(read):
                block = await read(chunk_size)
            else:
                # Run blocking read in thread pool
                block = await asyncio.to_thread(read, chunk_size)
            if not block:
                return
            for piece in _split(block, chunk_size):
                yield piece

    elif isinstance(body, AsyncIterable):
        async for block in body:
            for piece in _split(block, chunk_size):
                yield piece

    else:
        sentinel = object()
        while True:
            block = await asyncio.to_thread(next, body, sentinel)
            if block is sentinel:
                return
            for piece in _split(block, chunk_size):
                yield piece
