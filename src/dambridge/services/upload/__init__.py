"""
Chunked upload service

Splits a buffer or a byte stream into fixed-size chunks, sends them one
by one with bounded retry, then finalises the remote upload session and
saves the file as an asset.
"""

from dambridge.services.upload.body import BodyType, classify, get_length
from dambridge.services.upload.chunks import ChunkUploader
from dambridge.services.upload.hashing import StreamDigest, sha256_hex
from dambridge.services.upload.orchestrator import UploadOrchestrator, save_asset_path

__all__ = [
    "BodyType",
    "classify",
    "get_length",
    "ChunkUploader",
    "StreamDigest",
    "sha256_hex",
    "UploadOrchestrator",
    "save_asset_path",
]
