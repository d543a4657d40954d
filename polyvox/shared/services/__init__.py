"""
Services package for the application.

This package contains the service facades that wrap the TTS provider core.
"""

from .TTSService import TTSService

__all__ = [
    "TTSService",
]
