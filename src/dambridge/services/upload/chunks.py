"""Chunk transmission with bounded retry."""

import logging
from typing import Optional

from tenacity import (
    AsyncRetrying,
    RetryError,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
    wait_none,
)

from dambridge.api.transport import APIClient
from dambridge.core.config import settings
from dambridge.core.exceptions import ChunkUploadError, ConfigurationError, TransportError
from dambridge.models.upload import Chunk

logger = logging.getLogger(__name__)


def chunk_path(file_id: str, index: int) -> str:
    return f"v7/file_cmds/upload/{file_id}/chunk/{index}"


class ChunkUploader:
    """Sends single chunks to the file intake endpoint."""

    def __init__(
        self,
        api: APIClient,
        max_attempts: Optional[int] = None,
        wait_seconds: Optional[float] = None,
    ):
        """Initialize chunk uploader.

        Args:
            api: Transport client
            max_attempts: Total attempts per chunk (first try included)
            wait_seconds: Pause between attempts, 0 retries immediately
        """
        self.api = api
        self.max_attempts = settings.CHUNK_MAX_ATTEMPTS if max_attempts is None else max_attempts
        if self.max_attempts < 1:
            raise ConfigurationError(f"max_attempts must be at least 1, got {self.max_attempts}")
        wait_seconds = settings.CHUNK_RETRY_WAIT_SECONDS if wait_seconds is None else wait_seconds
        self.wait = wait_fixed(wait_seconds) if wait_seconds > 0 else wait_none()

    async def upload_chunk(self, chunk: Chunk, file_id: str) -> None:
        """Send one chunk, retrying transport failures.

        Args:
            chunk: Chunk to send
            file_id: Remote upload session id

        Raises:
            ChunkUploadError: If every attempt failed
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self.wait,
            retry=retry_if_exception_type(TransportError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
        )

        try:
            async for attempt in retrying:
                with attempt:
                    logger.debug(
                        f"Uploading chunk {chunk.index} "
                        f"(attempt {attempt.retry_state.attempt_number}/{self.max_attempts})",
                        extra={"chunk_index": chunk.index, "size_bytes": len(chunk.data)},
                    )
                    await self.api.send(
                        "POST",
                        chunk_path(file_id, chunk.index),
                        content=chunk.data,
                        headers={"Content-SHA256": chunk.digest},
                    )

        except RetryError as e:
            last_error = e.last_attempt.exception()
            logger.error(
                f"Chunk {chunk.index} failed after {self.max_attempts} attempts",
                extra={
                    "chunk_index": chunk.index,
                    "total_attempts": self.max_attempts,
                    "final_error": str(last_error),
                },
            )
            raise ChunkUploadError(
                chunk.index,
                attempts=self.max_attempts,
                status=getattr(last_error, "status", 0),
            ) from last_error
