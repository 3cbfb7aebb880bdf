"""
Core functionality for the video recap application.

This package contains modules for acquiring audio, transcribing it,
translating transcripts and summarizing them.
"""
