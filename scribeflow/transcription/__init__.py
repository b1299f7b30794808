"""Transcription module for ScribeFlow."""

from .base import AbstractTranscriptionProvider
from .job import TranscriptionJob
from .assemblyai_backend import AssemblyAIProvider

__all__ = [
    "AbstractTranscriptionProvider",
    "TranscriptionJob",
    "AssemblyAIProvider",
]
