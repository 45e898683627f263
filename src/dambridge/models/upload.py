"""Upload data models."""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

# Fixed size of every chunk except the last one
CHUNK_SIZE = 5 * 1024 * 1024


class UploadState(str, Enum):
    """Upload orchestration states."""

    VALIDATING = "validating"
    PREPARING = "preparing"  # Requesting a remote upload session
    UPLOADING = "uploading"  # Sending chunks
    FINALIZING = "finalizing"  # Asking the remote side to assemble the chunks
    SAVING = "saving"  # Registering the file as an asset
    DONE = "done"
    FAILED = "failed"


@dataclass
class UploadRequest:
    """A file to upload, as handed over by the caller."""

    filename: str
    body: Any
    data: Dict[str, Any] = field(default_factory=dict)
    length: Optional[int] = None  # Required for streamed bodies


@dataclass
class UploadSession:
    """Progress of one in-flight upload.

    Owned by a single upload call, so concurrent uploads never share one.
    """

    filename: str
    length: int
    chunk_size: int = CHUNK_SIZE
    file_id: Optional[str] = None
    state: UploadState = UploadState.VALIDATING
    chunk_cursor: int = 0
    completed_chunks: int = 0
    bytes_sent: int = 0
    whole_file_digest: Optional[str] = None

    @property
    def total_chunks(self) -> int:
        """Chunk count derived from the declared length.

        Streams may end up sending a different number of chunks.
        """
        return math.ceil(self.length / self.chunk_size)

    def next_index(self) -> int:
        """Claim the next chunk index."""
        index = self.chunk_cursor
        self.chunk_cursor += 1
        return index

    def mark_completed(self, chunk: "Chunk") -> None:
        """Record a chunk whose send attempt succeeded."""
        self.completed_chunks += 1
        self.bytes_sent += len(chunk.data)


@dataclass(frozen=True)
class Chunk:
    """One contiguous byte range of an upload body."""

    index: int
    data: bytes
    digest: str


class UploadResult(BaseModel):
    """Asset registered by a completed upload.

    Any attribute the server echoes back for the asset is kept as an
    extra field.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True, coerce_numbers_to_str=True)

    file_id: str = Field(..., alias="fileId")
    correlation_id: Optional[str] = Field(None, alias="correlationId")
    media_id: Optional[str] = Field(None, alias="mediaid")

    def to_dict(self) -> Dict[str, Any]:
        """Return the result in the API's camelCase shape."""
        return self.model_dump(by_alias=True, exclude_none=True)
