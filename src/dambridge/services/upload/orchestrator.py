"""
Chunked upload orchestration.

Architecture:
    - One UploadSession per upload call, never shared between calls
    - Chunks are sent strictly one after another
    - Streams are pulled one block at a time (the source is not read
      again until the previous chunk's send settled)

Flow:
    1. Validate filename, body and length → no network on failure
    2. Prepare → remote upload session (file_id)
    3. Upload chunks → hash + send each, retried by ChunkUploader
    4. Finalise → remote assembles the file, returns a correlation id
    5. Save → register as a new asset or a new version of one
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Optional

from dambridge.api.transport import APIClient
from dambridge.core.exceptions import (
    DamBridgeError,
    StreamError,
    UploadCancelledError,
    UploadError,
    ValidationError,
)
from dambridge.core.logging import upload_file_id_context
from dambridge.models.upload import (
    CHUNK_SIZE,
    Chunk,
    UploadRequest,
    UploadResult,
    UploadSession,
    UploadState,
)
from dambridge.services.upload.body import BodyType, classify, get_length, iter_stream_blocks
from dambridge.services.upload.chunks import ChunkUploader
from dambridge.services.upload.hashing import StreamDigest, sha256_hex

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[UploadSession], None]


def save_asset_path(data: Dict[str, Any]) -> str:
    """Pick the save endpoint: new version when mediaId is set, new asset otherwise."""
    media_id = data.get("mediaId")
    file_id = data.get("fileId")
    path = f"api/v4/media/{media_id}/save/" if media_id else "api/v4/media/save/"
    if file_id:
        path += f"{file_id}/"
    return path


class UploadOrchestrator:
    """Uploads a buffer or stream in chunks and registers it as an asset."""

    def __init__(
        self,
        api: APIClient,
        chunk_uploader: Optional[ChunkUploader] = None,
        chunk_size: int = CHUNK_SIZE,
    ):
        self.api = api
        self.chunk_uploader = chunk_uploader or ChunkUploader(api)
        self.chunk_size = chunk_size

    async def upload(
        self,
        request: UploadRequest,
        cancel_event: Optional[asyncio.Event] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> UploadResult:
        """Upload a file and return the registered asset.

        Args:
            request: File to upload
            cancel_event: When set, the upload stops before the next chunk
            on_progress: Called with the session after every sent chunk

        Returns:
            Registered asset, including file_id and correlation_id

        Raises:
            ValidationError: If filename, body or length is invalid (no network call made)
            UploadError: If any later step failed; the original error is chained
        """
        body_type = self._validate(request)
        length = get_length(request)
        session = UploadSession(
            filename=request.filename, length=length, chunk_size=self.chunk_size
        )

        # Whole-file digest of a buffer is taken once, before any chunk is sent
        if body_type == BodyType.BUFFER:
            session.whole_file_digest = sha256_hex(request.body)

        try:
            session.state = UploadState.PREPARING
            session.file_id = await self.prepare()
            token = upload_file_id_context.set(session.file_id)
            try:
                logger.info(
                    f"Uploading {request.filename} ({length} bytes, {body_type.value})",
                    extra={
                        "file_name": request.filename,
                        "size_bytes": length,
                        "body_type": body_type.value,
                        "expected_chunks": session.total_chunks,
                    },
                )

                session.state = UploadState.UPLOADING
                if body_type == BodyType.BUFFER:
                    await self._upload_buffer(request.body, session, cancel_event, on_progress)
                else:
                    await self._upload_stream(request.body, session, cancel_event, on_progress)

                session.state = UploadState.FINALIZING
                correlation_id = await self.finalise(
                    session.file_id,
                    request.filename,
                    session.completed_chunks,
                    session.bytes_sent,
                    session.whole_file_digest,
                )

                session.state = UploadState.SAVING
                asset = await self.save_asset({**request.data, "fileId": session.file_id})
                result = UploadResult.model_validate(
                    {**asset, "fileId": session.file_id, "correlationId": correlation_id}
                )
            finally:
                upload_file_id_context.reset(token)

        except UploadCancelledError:
            session.state = UploadState.FAILED
            logger.warning(
                f"Upload cancelled: {request.filename}",
                extra={
                    "file_name": request.filename,
                    "file_id": session.file_id,
                    "completed_chunks": session.completed_chunks,
                },
            )
            raise

        except Exception as e:
            session.state = UploadState.FAILED
            error = self._normalize(e, request.filename)
            logger.error(
                f"Upload failed: {request.filename}",
                extra={
                    "file_name": request.filename,
                    "file_id": session.file_id,
                    "completed_chunks": session.completed_chunks,
                    "status": error.status,
                    "error": error.message,
                },
            )
            raise error from e

        session.state = UploadState.DONE
        logger.info(
            f"Upload completed: {request.filename}",
            extra={
                "file_name": request.filename,
                "file_id": session.file_id,
                "chunks": session.completed_chunks,
                "correlation_id": correlation_id,
            },
        )

        return result

    async def prepare(self) -> str:
        """Open a remote upload session and return its file_id."""
        response = await self.api.send("POST", "v7/file_cmds/upload/prepare")
        file_id = response.data.get("file_id") if isinstance(response.data, dict) else None
        if not file_id:
            raise UploadError("Upload could not be prepared: no file_id returned")
        return file_id

    async def finalise(
        self,
        file_id: str,
        filename: str,
        chunks_count: int,
        file_size: int,
        sha256: Optional[str],
    ) -> Optional[str]:
        """Tell the remote side every chunk was sent.

        Returns:
            Correlation id for tracing, if the response carried one
        """
        response = await self.api.send(
            "POST",
            f"v7/file_cmds/upload/{file_id}/finalise",
            params={
                "chunksCount": chunks_count,
                "fileName": filename,
                "fileSize": file_size,
                "sha256": sha256,
            },
        )
        return response.correlation_id

    async def save_asset(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Register a finalised file as a new asset or a new asset version."""
        response = await self.api.send("POST", save_asset_path(data), params=data)
        return response.data if isinstance(response.data, dict) else {}

    def _validate(self, request: UploadRequest) -> BodyType:
        if not request.filename:
            raise ValidationError("upload", "filename")

        body_type = classify(request.body)
        if request.body is None or body_type == BodyType.UNKNOWN:
            raise ValidationError("upload", "body")
        # Strided views cannot be hashed or sliced as one byte range
        if isinstance(request.body, memoryview) and not request.body.c_contiguous:
            raise ValidationError("upload", "body")

        length = get_length(request)
        if isinstance(length, bool) or not isinstance(length, int) or length <= 0:
            raise ValidationError("upload", "length")

        return body_type

    async def _upload_buffer(
        self,
        body,
        session: UploadSession,
        cancel_event: Optional[asyncio.Event],
        on_progress: Optional[ProgressCallback],
    ) -> None:
        # Byte-addressed, whatever the item size of the caller's view
        view = memoryview(body).cast("B")
        for index in range(session.total_chunks):
            self._check_cancelled(cancel_event, session)
            start = index * self.chunk_size
            end = min(start + self.chunk_size, session.length)
            data = view[start:end].tobytes()
            chunk = Chunk(index=session.next_index(), data=data, digest=sha256_hex(data))
            await self._send(chunk, session, on_progress)

    async def _upload_stream(
        self,
        body,
        session: UploadSession,
        cancel_event: Optional[asyncio.Event],
        on_progress: Optional[ProgressCallback],
    ) -> None:
        digest = StreamDigest()
        blocks = iter_stream_blocks(body, self.chunk_size)
        try:
            while True:
                self._check_cancelled(cancel_event, session)
                try:
                    data = await anext(blocks)
                except StopAsyncIteration:
                    break
                except Exception as e:
                    raise StreamError(f"Upload stream failed: {e}") from e

                digest.update(data)
                chunk = Chunk(index=session.next_index(), data=data, digest=sha256_hex(data))
                await self._send(chunk, session, on_progress)
        finally:
            await blocks.aclose()

        if session.completed_chunks == 0:
            raise StreamError("Upload stream ended before any data was read")
        session.whole_file_digest = digest.hexdigest()

    async def _send(
        self,
        chunk: Chunk,
        session: UploadSession,
        on_progress: Optional[ProgressCallback],
    ) -> None:
        await self.chunk_uploader.upload_chunk(chunk, session.file_id)
        session.mark_completed(chunk)
        if on_progress is not None:
            on_progress(session)

    @staticmethod
    def _check_cancelled(cancel_event: Optional[asyncio.Event], session: UploadSession) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise UploadCancelledError(
                f"Upload cancelled after {session.completed_chunks} chunks"
            )

    @staticmethod
    def _normalize(error: Exception, filename: str) -> UploadError:
        default_message = f"File not uploaded: {filename}"
        if isinstance(error, DamBridgeError):
            status, message = error.status, error.message
        else:
            status, message = getattr(error, "status", 0), str(error)
        return UploadError(message or default_message, status=status or 0, filename=filename)
