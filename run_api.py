"""
FastAPI server entry point for the video recap service.
"""

import os
import shutil
import argparse
import uvicorn
from dotenv import load_dotenv

from video_recap.config import config


def check_media_tools() -> bool:
    """Warn about missing ffmpeg/ffprobe; uploads and long videos need them."""
    missing = [binary for binary in (config.FFMPEG_BINARY, config.FFPROBE_BINARY) if shutil.which(binary) is None]
    for binary in missing:
        print(f"WARNING: {binary} not found on PATH. MP4 uploads and streaming transcription will fail.")
    return not missing


def main():
    """Run the FastAPI server."""
    load_dotenv()

    parser = argparse.ArgumentParser(description="Video Recap API")
    parser.add_argument("--host", default="0.0.0.0", help="Host to bind the server to")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind the server to")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    args = parser.parse_args()

    config.initialize()
    check_media_tools()

    print(f"Starting {config.APP_NAME} API server v{config.APP_VERSION}")
    print(f"Environment: {os.getenv('ENVIRONMENT', 'development')}")
    print(f"Temporary media: {config.TEMP_DIR}")
    print(f"Binding to: {args.host}:{args.port}")

    uvicorn.run(
        "video_recap.api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=config.LOG_LEVEL.lower()
    )


if __name__ == "__main__":
    main()
