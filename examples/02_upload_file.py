"""
Upload a local file in chunks
"""
import asyncio
import sys
from chunkpy import (
    ChunkUploadCoordinator,
    ChunkUploadFacade,
    FixedSizeChunkingStrategy,
    MemoryBlobStorage
)


async def main(path: str):
    storage = MemoryBlobStorage()
    
    async with ChunkUploadCoordinator(storage=storage) as uploads:
        facade = ChunkUploadFacade(uploads, FixedSizeChunkingStrategy(chunk_size=1024 * 1024))
        
        result = await facade.upload_file(path, directory="uploads", metadata={"source": "example"})
        
        if result.is_failure:
            print(f"Upload failed: {result.error.kind}: {result.error}")
            return
        
        completion = result.value
        print(f"Uploaded {completion.blob.full_name}")
        print(f"Chunks: {completion.chunk_count}, size: {completion.size}")
        print(f"CRC-32: {completion.checksum:#010x}")


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else __file__))
