"""Blob storage backends and upload sessions."""

from .base import AbstractBlobStore, AbstractUploadHandle
from .upload_session import UploadSession, timestamped_key

__all__ = [
    'AbstractBlobStore',
    'AbstractUploadHandle',
    'UploadSession',
    'timestamped_key',
]
