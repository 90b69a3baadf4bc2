"""
Chunk upload coordinator.

Orchestrates staging, merge, checksum and commit using injected services.
Every public operation returns a ``Result``; faults never escape as raw
exceptions (task cancellation excepted).
"""
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Tuple
import asyncio
import re

import aiofiles
import aiofiles.os

from ..config import ChunkUploadConfig
from ..exceptions import (
    ChunkUploadError,
    ChecksumMismatchError,
    SessionNotFoundError,
    StagingIOError,
    StorageCommitError
)
from ..logging import configure_logging, get_logger
from ..result import Result
from ..storage import BlobStorage, BlobDescriptor, UploadOptions
from .models import (
    ChunkSubmission,
    CompletionRequest,
    CompletionResult,
    MergeOutcome,
    UploadSession,
    utcnow
)
from .services import (
    SessionStore,
    ChunkWriter,
    ChunkMerger,
    ChecksumCalculator,
    EvictionSweeper,
    validate_upload_id
)

logger = get_logger('chunkpy.upload.coordinator')

_UNSAFE_NAME_CHARS = re.compile(r'[^A-Za-z0-9._-]')


class ChunkUploadCoordinator:
    """
    Coordinates chunked uploads from first chunk to committed blob.

    Uses dependency injection for its services, making it:
    - Testable (swap the clock, the storage backend)
    - Safe under concurrency (registry lock + per-session guards)

    Example:
        >>> async with ChunkUploadCoordinator(config, storage) as uploads:
        ...     await uploads.append_chunk(ChunkSubmission("u1", 1, data, total_chunks=1))
        ...     result = await uploads.complete(CompletionRequest("u1", file_name="a.bin"))
        ...     print(result.unwrap().checksum)
    """

    def __init__(
        self,
        config: Optional[ChunkUploadConfig] = None,
        storage: Optional[BlobStorage] = None,
        clock: Callable[[], datetime] = utcnow
    ):
        """
        Initialize coordinator.

        Args:
            config: Upload configuration (defaults to ChunkUploadConfig.default())
            storage: Default blob store used when committing
            clock: Returns the current UTC time
        """
        self._config = config or ChunkUploadConfig.default()
        self._storage = storage

        tombstone_ttl = self._config.session_ttl if self._config.expiry_enabled else 3600.0
        self._store = SessionStore(
            self._config.temp_path,
            max_active_sessions=self._config.max_active_sessions,
            tombstone_ttl=tombstone_ttl,
            clock=clock
        )
        self._writer = ChunkWriter(self._config.max_chunk_size)
        self._merger = ChunkMerger(self._config.merge_buffer_size)
        self._checksum = ChecksumCalculator(self._config.checksum_buffer_size)
        self._sweeper = EvictionSweeper(
            self._store,
            self._config.session_ttl,
            interval=self._config.sweep_interval
        )

        if self._config.log_level is not None:
            configure_logging(self._config.log_level)
        self._config.temp_path.mkdir(parents=True, exist_ok=True)

    @property
    def config(self) -> ChunkUploadConfig:
        return self._config

    @property
    def sessions(self) -> SessionStore:
        return self._store

    @property
    def active_sessions(self) -> int:
        return self._store.active_count

    async def start(self) -> 'ChunkUploadCoordinator':
        """Start background eviction (if configured)."""
        self._sweeper.start()
        return self

    async def close(self, abort_sessions: bool = False) -> None:
        """
        Stop background work.

        Args:
            abort_sessions: Also abort every active session
        """
        await self._sweeper.stop()
        if abort_sessions:
            await self._store.clear()

    async def __aenter__(self) -> 'ChunkUploadCoordinator':
        return await self.start()

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    # =========================================================================
    # Public operations
    # =========================================================================

    async def append_chunk(self, submission: ChunkSubmission) -> Result[None]:
        """
        Stage one chunk, opening the session on first contact.

        Re-sending an index replaces its bytes.

        Args:
            submission: Chunk to stage

        Returns:
            Empty success, or a failure carrying CapacityExceededError,
            SessionNotFoundError, InvalidChunkError or StagingIOError
        """
        upload_id = submission.upload_id
        # expired sessions give back their slot before capacity is checked
        await self.sweep()
        try:
            session = await self._store.open(upload_id)
            await self._reject_expired(session)
            async with session.guard.writer() as admitted:
                if not admitted:
                    raise SessionNotFoundError(upload_id)
                self._writer.validate(session, submission)
                await self._writer.write(session, submission)
                self._writer.record(session, submission)
                session.touch(self._store.now())
        except Exception as e:
            return Result.fail(self._to_error(e, 'append chunk', upload_id))

        return Result.succeed()

    async def complete(
        self,
        request: CompletionRequest,
        storage: Optional[BlobStorage] = None
    ) -> Result[CompletionResult]:
        """
        Merge, checksum and optionally commit an upload.

        Steps:
        1. Merge chunks in index order (incomplete uploads keep the session)
        2. CRC-32 of the merged file
        3. Upload to the blob store if ``commit_to_storage``
        4. Delete the merged file unless ``keep_merged_file``
        5. Remove the session, whatever step 3 returned

        Args:
            request: Completion request
            storage: Blob store overriding the coordinator default

        Returns:
            CompletionResult, or a failure carrying SessionNotFoundError,
            IncompleteUploadError, ChecksumMismatchError, StagingIOError or
            StorageCommitError
        """
        upload_id = request.upload_id
        try:
            validate_upload_id(upload_id)
            session = self._store.get(upload_id)
            await self._reject_expired(session)

            async with session.guard.exclusive() as admitted:
                if not admitted:
                    raise SessionNotFoundError(upload_id)
                outcome, checksum = await self._merge_and_verify(session, request)
                completion = await self._finalize(session, request, outcome, checksum, storage)
            return Result.succeed(completion)
        except Exception as e:
            return Result.fail(self._to_error(e, 'complete', upload_id))

    async def abort(self, upload_id: str) -> Result[bool]:
        """
        Discard an upload and its staged chunks.

        Idempotent: unknown or already removed ids succeed as a no-op.

        Returns:
            True if a session was removed
        """
        try:
            removed = await self._store.remove(upload_id)
        except Exception as e:
            return Result.fail(self._to_error(e, 'abort', upload_id))

        if removed:
            logger.info(f"Aborted upload {upload_id}")
        return Result.succeed(removed)

    async def sweep(self) -> List[str]:
        """
        Evict expired sessions now.

        Returns:
            Ids that were evicted
        """
        try:
            return await self._sweeper.sweep()
        except Exception as e:
            logger.error(f"Eviction sweep failed: {e}")
            return []

    # =========================================================================
    # Pipeline steps
    # =========================================================================

    async def _merge_and_verify(
        self,
        session: UploadSession,
        request: CompletionRequest
    ) -> Tuple[MergeOutcome, int]:
        destination = self._merged_path(session, request)
        outcome = await self._merger.merge(session, destination)
        try:
            checksum = await self._checksum.calculate_file_crc(outcome.path)
            if request.expected_checksum is not None and request.expected_checksum != checksum:
                raise ChecksumMismatchError(session.upload_id, request.expected_checksum, checksum)
        except BaseException:
            await asyncio.shield(self._delete_file(outcome.path))
            raise
        logger.debug(f"Upload {session.upload_id}: checksum {checksum:#010x}")
        return outcome, checksum

    async def _finalize(
        self,
        session: UploadSession,
        request: CompletionRequest,
        outcome: MergeOutcome,
        checksum: int,
        storage: Optional[BlobStorage]
    ) -> CompletionResult:
        # Past this point the session is discarded whatever the commit returns
        blob = None
        try:
            await session.guard.close()
            if request.commit_to_storage:
                blob = await self._commit(session, request, outcome.path, storage or self._storage)
        finally:
            if not request.keep_merged_file:
                await asyncio.shield(self._delete_file(outcome.path))
            await asyncio.shield(self._store.discard(session))

        logger.info(
            f"Completed upload {session.upload_id}: {outcome.size} bytes, "
            f"{len(outcome.indices)} chunks, crc32={checksum:#010x}"
        )
        return CompletionResult(
            checksum=checksum,
            size=outcome.size,
            chunk_count=len(outcome.indices),
            blob=blob,
            merged_file_path=outcome.path if request.keep_merged_file else None
        )

    async def _commit(
        self,
        session: UploadSession,
        request: CompletionRequest,
        merged_path: Path,
        storage: Optional[BlobStorage]
    ) -> BlobDescriptor:
        if storage is None:
            raise StorageCommitError("No blob storage configured", error_code='no_storage')

        options = UploadOptions(
            file_name=request.file_name or session.file_name or session.upload_id,
            directory=request.directory,
            content_type=request.content_type or session.content_type,
            metadata=request.metadata
        )
        logger.info(f"Committing upload {session.upload_id} as {options.file_name}")

        try:
            async with aiofiles.open(merged_path, 'rb') as stream:
                result = await storage.upload(stream, options)
        except StorageCommitError:
            raise
        except Exception as e:
            raise StorageCommitError(f"Blob store upload failed: {e}", error_code='storage_exception') from e

        if result is None or result.is_failure:
            error = result.error if result is not None else None
            if isinstance(error, StorageCommitError):
                raise error
            raise StorageCommitError(
                f"Blob store rejected upload: {error or 'no result'}",
                error_code=getattr(error, 'error_code', None)
            )
        return result.value

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _reject_expired(self, session: UploadSession) -> None:
        ttl = self._config.session_ttl
        if not self._config.expiry_enabled or not session.is_expired(self._store.now(), ttl):
            return
        await self._store.evict(session.upload_id, ttl)
        raise SessionNotFoundError(session.upload_id)

    def _merged_path(self, session: UploadSession, request: CompletionRequest) -> Path:
        name = Path((request.file_name or session.file_name or 'merged.bin').replace('\\', '/')).name
        safe_name = _UNSAFE_NAME_CHARS.sub('_', name) or 'merged.bin'
        return self._config.merged_path / f"{session.upload_id}-{safe_name}"

    async def _delete_file(self, path: Path) -> None:
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not delete merged file {path}: {e}")

    @staticmethod
    def _to_error(error: Exception, operation: str, upload_id: str) -> ChunkUploadError:
        if isinstance(error, ChunkUploadError):
            logger.warning(f"Failed to {operation} for upload {upload_id}: {error}")
            return error
        if isinstance(error, OSError):
            logger.error(f"I/O error during {operation} for upload {upload_id}: {error}")
            return StagingIOError(str(error), error_code=f"errno_{error.errno}" if error.errno else None)
        logger.exception(f"Unexpected error during {operation} for upload {upload_id}")
        return StagingIOError(f"Unexpected error: {error}", error_code='unexpected')
