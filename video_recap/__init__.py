"""
Video Recap Application.

This application turns a YouTube video or an uploaded MP4 into a transcript
and a summary, streaming progress events while it works.
"""

from video_recap.config import config

__version__ = config.APP_VERSION
