# src/storage/__init__.py

from .config import StorageConfig

from .image_store import (
    ImageStore,
    ImageUploadError,
    LocalImageStore,
    S3ImageStore,
    create_image_store,
    decode_image,
    generate_file_prefix
)

__all__ = [
    'StorageConfig',
    'ImageStore',
    'ImageUploadError',
    'LocalImageStore',
    'S3ImageStore',
    'create_image_store',
    'decode_image',
    'generate_file_prefix'
]
