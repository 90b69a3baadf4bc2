"""
HTTP endpoints for chunked uploads.

Thin aiohttp adapter that turns requests into coordinator calls and
coordinator failures into HTTP responses.
"""
from json import JSONDecodeError
from typing import Any, Dict, Optional

from aiohttp import web

from ..core.exceptions import ChunkUploadError, CapacityExceededError, InvalidChunkError
from ..core.logging import get_logger
from ..core.result import Result
from ..core.upload import ChunkUploadCoordinator, ChunkSubmission, CompletionRequest

logger = get_logger('chunkpy.server')

COORDINATOR_KEY = web.AppKey('chunk_upload_coordinator', ChunkUploadCoordinator)

STATUS_BY_KIND: Dict[str, int] = {
    'InvalidChunk': 400,
    'SessionNotFound': 404,
    'IncompleteUpload': 409,
    'ChecksumMismatch': 409,
    'StorageCommitFailed': 502,
    'CapacityExceeded': 503,
    'IOFailure': 500,
}

RETRY_AFTER_SECONDS = 5

CHUNK_FIELDS = ('uploadId', 'fileName', 'contentType', 'chunkIndex', 'chunkSize', 'totalChunks', 'fileSize')


def error_response(error: ChunkUploadError) -> web.Response:
    """Map a coordinator error onto an HTTP response."""
    status = STATUS_BY_KIND.get(error.kind, 500)
    headers = None
    if isinstance(error, CapacityExceededError):
        headers = {'Retry-After': str(RETRY_AFTER_SECONDS)}
    return web.json_response(error.to_dict(), status=status, headers=headers)


def result_response(result: Result, body: Optional[Dict[str, Any]] = None) -> web.Response:
    if result.is_failure:
        return error_response(result.error)
    return web.json_response(body if body is not None else {'success': True})


async def upload_chunk(request: web.Request) -> web.Response:
    """
    POST /upload-chunks/upload
    
    Multipart form with the chunk fields and a ``file`` part.
    """
    if not request.content_type.startswith('multipart/'):
        return error_response(InvalidChunkError("Multipart form data is required"))
    
    fields: Dict[str, str] = {}
    data: Optional[bytes] = None
    reader = await request.multipart()
    async for part in reader:
        if part.name == 'file':
            data = bytes(await part.read())
        elif part.name in CHUNK_FIELDS:
            fields[part.name] = await part.text()
    
    if data is None:
        return error_response(InvalidChunkError("File chunk payload is required"))
    if not fields.get('uploadId'):
        return error_response(InvalidChunkError("UploadId is required"))
    
    try:
        submission = ChunkSubmission.from_dict(fields, data)
    except ValueError as e:
        return error_response(InvalidChunkError(f"Invalid chunk fields: {e}"))
    
    result = await request.app[COORDINATOR_KEY].append_chunk(submission)
    return result_response(result)


async def complete_upload(request: web.Request) -> web.Response:
    """
    POST /upload-chunks/complete
    
    JSON body: uploadId, fileName, directory, contentType, metadata,
    commitToStorage, keepMergedFile, expectedChecksum.
    """
    try:
        body = await request.json()
    except (JSONDecodeError, ValueError):
        return error_response(InvalidChunkError("Completion request must be JSON"))
    if not isinstance(body, dict) or not body.get('uploadId'):
        return error_response(InvalidChunkError("UploadId is required"))
    
    try:
        completion = CompletionRequest.from_dict(body)
    except (TypeError, ValueError) as e:
        return error_response(InvalidChunkError(f"Invalid completion request: {e}"))
    
    result = await request.app[COORDINATOR_KEY].complete(completion)
    if result.is_failure:
        return error_response(result.error)
    return web.json_response(result.value.to_dict())


async def abort_upload(request: web.Request) -> web.Response:
    """DELETE /upload-chunks/{upload_id}"""
    upload_id = request.match_info['upload_id']
    result = await request.app[COORDINATOR_KEY].abort(upload_id)
    if result.is_failure:
        return error_response(result.error)
    return web.Response(status=204)


def setup_routes(app: web.Application, prefix: str = '/upload-chunks') -> None:
    """Register chunk upload routes on an application."""
    app.router.add_post(f'{prefix}/upload', upload_chunk)
    app.router.add_post(f'{prefix}/complete', complete_upload)
    app.router.add_delete(f'{prefix}/{{upload_id}}', abort_upload)


def create_app(
    coordinator: ChunkUploadCoordinator,
    prefix: str = '/upload-chunks',
    client_max_size: int = 64 * 1024 * 1024
) -> web.Application:
    """
    Build an aiohttp application serving chunk uploads.
    
    The coordinator is started and closed with the application.
    
    Args:
        coordinator: Coordinator handling the uploads
        prefix: URL prefix for the routes
        client_max_size: Maximum request body size in bytes
        
    Returns:
        Configured application
    """
    app = web.Application(client_max_size=client_max_size)
    app[COORDINATOR_KEY] = coordinator
    setup_routes(app, prefix)
    
    async def on_startup(app: web.Application) -> None:
        await app[COORDINATOR_KEY].start()
        logger.info(f"Chunk upload routes ready under {prefix}")
    
    async def on_cleanup(app: web.Application) -> None:
        await app[COORDINATOR_KEY].close()
    
    app.on_startup.append(on_startup)
    app.on_cleanup.append(on_cleanup)
    return app
