"""
Serve chunk uploads over HTTP

    POST   /upload-chunks/upload      multipart: uploadId, chunkIndex, totalChunks, file
    POST   /upload-chunks/complete    JSON: uploadId, fileName, directory
    DELETE /upload-chunks/{upload_id}
"""
from aiohttp import web
from chunkpy import (
    ChunkUploadCoordinator,
    ChunkUploadConfig,
    FileSystemBlobStorage,
    setup_logging
)
from chunkpy.server import create_app


def main():
    setup_logging()
    config = ChunkUploadConfig(
        temp_path="./staging",
        session_ttl=900,
        max_active_sessions=50,
        max_chunk_size=16 * 1024 * 1024,
        sweep_interval=60
    )
    coordinator = ChunkUploadCoordinator(config, FileSystemBlobStorage("./blobs"))
    
    app = create_app(coordinator)
    web.run_app(app, port=8080)


if __name__ == "__main__":
    main()
