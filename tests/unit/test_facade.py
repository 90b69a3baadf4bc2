"""Tests for the upload facade."""
import random

import pytest

from chunkpy.core.exceptions import InvalidChunkError
from chunkpy.core.upload import ChunkUploadCoordinator, ChunkUploadFacade, FixedSizeChunkingStrategy

from conftest import crc32


@pytest.fixture
def facade(coordinator):
    return ChunkUploadFacade(coordinator, FixedSizeChunkingStrategy(chunk_size=1000))


class TestChunkUploadFacade:
    """Tests for ChunkUploadFacade."""

    @pytest.mark.asyncio
    async def test_upload_file(self, facade, storage, coordinator, tmp_path):
        data = random.Random(5).randbytes(4500)
        source = tmp_path / "report.pdf"
        source.write_bytes(data)

        result = await facade.upload_file(source, upload_id="facade-1", directory="reports")

        completion = result.unwrap()
        assert completion.chunk_count == 5
        assert completion.checksum == crc32(data)
        assert completion.blob.full_name == "reports/report.pdf"
        assert completion.blob.content_type == "application/pdf"
        assert storage.get("report.pdf", "reports") == data
        assert coordinator.active_sessions == 0

    @pytest.mark.asyncio
    async def test_generates_upload_id(self, facade, storage, tmp_path):
        source = tmp_path / "small.txt"
        source.write_bytes(b"tiny")

        result = await facade.upload_file(str(source), file_name="renamed.txt")

        assert result.is_success
        assert storage.get("renamed.txt") == b"tiny"

    @pytest.mark.asyncio
    async def test_missing_file(self, facade, tmp_path):
        result = await facade.upload_file(tmp_path / "absent.bin")

        assert result.error.error_code == 'source_unreadable'

    @pytest.mark.asyncio
    async def test_empty_file(self, facade, tmp_path):
        source = tmp_path / "empty.bin"
        source.write_bytes(b"")

        result = await facade.upload_file(source)

        assert result.error.error_code == 'empty_file'

    @pytest.mark.asyncio
    async def test_chunk_failure_aborts(self, config, storage, clock, tmp_path):
        config.max_chunk_size = 500
        coordinator = ChunkUploadCoordinator(config, storage=storage, clock=clock)
        facade = ChunkUploadFacade(coordinator, FixedSizeChunkingStrategy(chunk_size=1000))
        source = tmp_path / "big.bin"
        source.write_bytes(b"z" * 1500)

        result = await facade.upload_file(source, upload_id="too-big")

        assert isinstance(result.error, InvalidChunkError)
        assert coordinator.active_sessions == 0
        assert len(storage) == 0
