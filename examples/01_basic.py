"""
Stage chunks and complete an upload
"""
import asyncio
import os
from chunkpy import (
    ChunkUploadCoordinator,
    ChunkUploadConfig,
    ChunkSubmission,
    CompletionRequest,
    FileSystemBlobStorage,
    setup_logging
)


async def main():
    setup_logging()
    config = ChunkUploadConfig(temp_path="./staging", session_ttl=600)
    storage = FileSystemBlobStorage("./blobs")
    
    async with ChunkUploadCoordinator(config, storage) as uploads:
        data = os.urandom(5 * 1024)
        chunks = [data[:2048], data[2048:4096], data[4096:]]
        
        # Chunks may arrive in any order
        for index in (2, 3, 1):
            result = await uploads.append_chunk(ChunkSubmission(
                upload_id="demo-upload",
                index=index,
                data=chunks[index - 1],
                total_chunks=3,
                file_name="random.bin"
            ))
            print(f"Chunk {index}: {'ok' if result.is_success else result.error}")
        
        result = await uploads.complete(CompletionRequest("demo-upload", directory="examples"))
        if result.is_success:
            print(f"CRC-32: {result.value.checksum:#010x}")
            print(f"Stored: {result.value.blob.full_name} ({result.value.blob.length} bytes)")
        else:
            print(f"Failed: {result.error.kind}: {result.error}")
        
        # Retrying completion fails: the session is gone
        again = await uploads.complete(CompletionRequest("demo-upload"))
        print(f"Second completion: {again.error.kind}")


if __name__ == "__main__":
    asyncio.run(main())
