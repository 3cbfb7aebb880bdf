"""
Configuration settings for the video recap application.
"""

import os
import tempfile
from pathlib import Path
from dotenv import load_dotenv


# Ensure environment variables are loaded
load_dotenv()


class Config:
    """Base configuration class."""

    # Application info
    APP_NAME = "Video Recap"
    APP_VERSION = "0.2.0"

    # Directories
    BASE_DIR = Path(__file__).resolve().parent.parent.absolute()
    TEMP_DIR = Path(os.getenv("TEMP_DIR", os.path.join(tempfile.gettempdir(), "video_recap")))

    # API keys
    GROQ_API_KEY = os.getenv("GROQ_API_KEY")

    # Default models
    DEFAULT_TRANSCRIPTION_MODEL = os.getenv("TRANSCRIPTION_MODEL", "whisper-large-v3-turbo")
    DEFAULT_SUMMARY_MODEL = os.getenv("SUMMARY_MODEL", "llama-3.3-70b-versatile")

    # Transcoding binaries
    FFMPEG_BINARY = os.getenv("FFMPEG_BINARY", "ffmpeg")
    FFPROBE_BINARY = os.getenv("FFPROBE_BINARY", "ffprobe")

    # Transcription strategy limits
    MAX_UPLOAD_BYTES = 25 * 1024 * 1024
    BYTES_PER_SECOND_ESTIMATE = 16000 * 2  # 16kHz mono, 16-bit samples
    SHORT_AUDIO_SECONDS = 60
    CHUNK_SECONDS = 30

    # Text processing limits
    MAX_TEXT_CHUNK_CHARS = 3000
    FRENCH_DETECTION_THRESHOLD = 10
    CHUNK_SUMMARY_FALLBACK_CHARS = 200
    CHAT_TRANSCRIPT_CHARS = 2000

    @classmethod
    def initialize(cls):
        """Initialize the application configuration."""
        cls.TEMP_DIR.mkdir(parents=True, exist_ok=True)

        # Validate required environment variables
        if not cls.GROQ_API_KEY:
            print("WARNING: GROQ_API_KEY environment variable not set.")
            print("Please set it in the .env file or environment variables.")


class DevelopmentConfig(Config):
    """Development configuration."""

    DEBUG = True
    LOG_LEVEL = "DEBUG"


class ProductionConfig(Config):
    """Production configuration."""

    DEBUG = False
    LOG_LEVEL = "INFO"


# Determine which configuration to use based on environment
def get_config():
    """Get the appropriate configuration based on environment."""
    env = os.getenv("ENVIRONMENT", "development").lower()
    if env == "production":
        return ProductionConfig
    else:
        return DevelopmentConfig


# Create a config instance
config = get_config()
config.initialize()
