"""Tests for blob storage backends."""
import io

import aiofiles
import pytest

from chunkpy.core.exceptions import StorageCommitError
from chunkpy.core.storage import (
    BlobDescriptor,
    BlobStorage,
    FileSystemBlobStorage,
    MemoryBlobStorage,
    UploadOptions
)


class BytesStream:
    """Minimal async readable over bytes."""

    def __init__(self, data: bytes):
        self._buffer = io.BytesIO(data)

    async def read(self, size: int = -1) -> bytes:
        return self._buffer.read(size)


class TestFileSystemBlobStorage:
    """Tests for FileSystemBlobStorage."""

    @pytest.fixture
    def storage(self, tmp_path):
        return FileSystemBlobStorage(tmp_path / "blobs", buffer_size=16)

    @pytest.mark.asyncio
    async def test_upload(self, storage):
        data = b"x" * 100

        result = await storage.upload(BytesStream(data), UploadOptions(
            "video.bin", content_type="video/mp4", metadata={"owner": "me"}
        ))

        blob = result.unwrap()
        assert blob.name == "video.bin"
        assert blob.full_name == "video.bin"
        assert blob.length == 100
        assert blob.content_type == "video/mp4"
        assert blob.metadata == {"owner": "me"}
        assert blob.last_modified is not None
        assert (storage.base_folder / "video.bin").read_bytes() == data

    @pytest.mark.asyncio
    async def test_upload_from_file(self, storage, tmp_path):
        source = tmp_path / "source.txt"
        source.write_bytes(b"from disk")

        async with aiofiles.open(source, "rb") as stream:
            result = await storage.upload(stream, UploadOptions("copy.txt"))

        assert result.value.content_type == "text/plain"
        assert (storage.base_folder / "copy.txt").read_bytes() == b"from disk"

    @pytest.mark.asyncio
    async def test_directory_in_options_and_name(self, storage):
        result = await storage.upload(BytesStream(b"a"), UploadOptions("sub/file.bin", directory="root\\nested"))

        assert result.value.full_name == "root/nested/sub/file.bin"
        assert (storage.base_folder / "root" / "nested" / "sub" / "file.bin").exists()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("file_name,directory", [
        ("../escape.bin", None),
        ("file.bin", "../outside"),
        ("a/../../b.bin", None),
        ("..", None),
    ])
    async def test_path_traversal_rejected(self, storage, tmp_path, file_name, directory):
        result = await storage.upload(BytesStream(b"evil"), UploadOptions(file_name, directory=directory))

        assert isinstance(result.error, StorageCommitError)
        assert result.error.error_code in ('path_traversal', 'invalid_name')
        assert not (tmp_path / "escape.bin").exists()

    @pytest.mark.asyncio
    async def test_empty_name(self, storage):
        result = await storage.upload(BytesStream(b""), UploadOptions("  "))

        assert result.error.error_code == 'invalid_name'

    @pytest.mark.asyncio
    async def test_get_metadata(self, storage):
        await storage.upload(BytesStream(b"12345"), UploadOptions("meta.json", directory="d"))

        found = await storage.get_metadata("meta.json", "d")
        missing = await storage.get_metadata("nope.json", "d")

        assert found.value.length == 5
        assert found.value.content_type == "application/json"
        assert missing.error.error_code == 'not_found'

    def test_satisfies_protocol(self, storage):
        assert isinstance(storage, BlobStorage)


class TestMemoryBlobStorage:
    """Tests for MemoryBlobStorage."""

    @pytest.mark.asyncio
    async def test_upload_and_get(self):
        storage = MemoryBlobStorage()

        result = await storage.upload(BytesStream(b"hello"), UploadOptions("greeting.txt", directory="docs"))

        assert result.value.full_name == "docs/greeting.txt"
        assert result.value.name == "greeting.txt"
        assert storage.get("greeting.txt", "docs") == b"hello"
        assert storage.describe("greeting.txt", "docs").length == 5
        assert storage.get("greeting.txt") is None
        assert len(storage) == 1

    @pytest.mark.asyncio
    async def test_empty_name(self):
        result = await MemoryBlobStorage().upload(BytesStream(b""), UploadOptions(""))

        assert isinstance(result.error, StorageCommitError)

    def test_satisfies_protocol(self):
        assert isinstance(MemoryBlobStorage(), BlobStorage)

    def test_descriptor_to_dict(self):
        descriptor = BlobDescriptor(name="a.bin", full_name="x/a.bin", length=3)

        assert descriptor.to_dict() == {
            'name': 'a.bin',
            'fullName': 'x/a.bin',
            'length': 3,
            'contentType': None,
            'lastModified': None,
            'metadata': {},
        }
