"""Tests for the aiohttp transport adapter."""
import aiohttp
import pytest
from aiohttp import test_utils

from chunkpy.core.exceptions import (
    CapacityExceededError,
    IncompleteUploadError,
    StagingIOError,
    StorageCommitError
)
from chunkpy.server import create_app, error_response

from conftest import split, crc32


def chunk_form(upload_id, index, data, total=None, file_name=None):
    form = aiohttp.FormData()
    form.add_field('uploadId', upload_id)
    form.add_field('chunkIndex', str(index))
    form.add_field('chunkSize', str(len(data)))
    if total is not None:
        form.add_field('totalChunks', str(total))
    if file_name is not None:
        form.add_field('fileName', file_name)
    form.add_field('file', data, filename='blob', content_type='application/octet-stream')
    return form


@pytest.fixture
def app(coordinator):
    return create_app(coordinator)


class TestRoutes:
    """End-to-end HTTP tests."""

    @pytest.mark.asyncio
    async def test_full_upload(self, app, storage, payload):
        chunks = split(payload, [2048, 2048, 1024])

        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            for index in (3, 1, 2):
                resp = await client.post(
                    '/upload-chunks/upload',
                    data=chunk_form('http-1', index, chunks[index - 1], total=3, file_name='video.bin')
                )
                assert resp.status == 200
                assert await resp.json() == {'success': True}

            resp = await client.post('/upload-chunks/complete', json={
                'uploadId': 'http-1',
                'fileName': 'video.bin',
                'directory': 'media',
                'expectedChecksum': crc32(payload),
            })
            body = await resp.json()

        assert resp.status == 200
        assert body['checksum'] == crc32(payload)
        assert body['metadata']['fullName'] == 'media/video.bin'
        assert body['metadata']['length'] == 5120
        assert storage.get('video.bin', 'media') == payload

    @pytest.mark.asyncio
    async def test_incomplete_returns_409(self, app):
        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            await client.post('/upload-chunks/upload', data=chunk_form('gap', 1, b'a', total=3))
            resp = await client.post('/upload-chunks/complete', json={'uploadId': 'gap'})
            body = await resp.json()

        assert resp.status == 409
        assert body['error'] == 'IncompleteUpload'
        assert body['missing'] == [2, 3]

    @pytest.mark.asyncio
    async def test_unknown_session_returns_404(self, app):
        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            resp = await client.post('/upload-chunks/complete', json={'uploadId': 'nobody'})
            body = await resp.json()

        assert resp.status == 404
        assert body['error'] == 'SessionNotFound'

    @pytest.mark.asyncio
    async def test_abort(self, app, coordinator):
        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            await client.post('/upload-chunks/upload', data=chunk_form('cancel-me', 1, b'a'))
            first = await client.delete('/upload-chunks/cancel-me')
            second = await client.delete('/upload-chunks/cancel-me')
            late = await client.post('/upload-chunks/upload', data=chunk_form('cancel-me', 2, b'b'))

        assert first.status == 204
        assert second.status == 204
        assert late.status == 404
        assert coordinator.active_sessions == 0

    @pytest.mark.asyncio
    async def test_capacity_returns_503(self, app):
        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            for i in range(4):
                await client.post('/upload-chunks/upload', data=chunk_form(f'slot-{i}', 1, b'x'))
            resp = await client.post('/upload-chunks/upload', data=chunk_form('slot-4', 1, b'x'))

        assert resp.status == 503
        assert resp.headers['Retry-After'] == '5'

    @pytest.mark.asyncio
    async def test_bad_requests(self, app):
        async with test_utils.TestClient(test_utils.TestServer(app)) as client:
            no_multipart = await client.post('/upload-chunks/upload', json={'uploadId': 'x'})

            form = aiohttp.FormData()
            form.add_field('uploadId', 'x')
            form.add_field('chunkIndex', '1')
            no_file = await client.post('/upload-chunks/upload', data=form)

            form = aiohttp.FormData()
            form.add_field('chunkIndex', '1')
            form.add_field('file', b'x', filename='blob')
            no_id = await client.post('/upload-chunks/upload', data=form)

            bad_index = await client.post('/upload-chunks/upload', data=chunk_form('x', 'one', b'x'))
            bad_json = await client.post('/upload-chunks/complete', data=b'not json')
            no_completion_id = await client.post('/upload-chunks/complete', json={})

            for resp in (no_multipart, no_file, no_id, bad_index, bad_json, no_completion_id):
                assert resp.status == 400
                assert (await resp.json())['error'] == 'InvalidChunk'


class TestErrorResponse:

    @pytest.mark.parametrize("error,status", [
        (IncompleteUploadError("u", missing=[1]), 409),
        (StorageCommitError("down"), 502),
        (StagingIOError("disk"), 500),
        (CapacityExceededError(1), 503),
    ])
    def test_status_mapping(self, error, status):
        assert error_response(error).status == status
