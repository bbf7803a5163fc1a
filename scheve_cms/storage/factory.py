# scheve_cms/storage/factory.py
from __future__ import annotations

from scheve_cms.config import Settings, get_settings
from scheve_cms.storage.local_storage import LocalFileStorage
from scheve_cms.storage.s3_storage import S3Storage

_storage_singleton: LocalFileStorage | S3Storage | None = None


def build_storage(settings: Settings) -> LocalFileStorage | S3Storage:
    if settings.storage_backend == "s3":
        return S3Storage(
            bucket=settings.s3_bucket,
            region=settings.aws_region,
            profile=settings.aws_profile,
        )
    return LocalFileStorage(settings.storage_root)


def get_storage() -> LocalFileStorage | S3Storage:
    global _storage_singleton
    if _storage_singleton is None:
        _storage_singleton = build_storage(get_settings())
    return _storage_singleton
