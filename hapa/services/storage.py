from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Iterable, List, Optional
from urllib.parse import unquote, urlparse

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from hapa.core.config import Settings, get_settings
from hapa.core.errors import StorageError

logger = logging.getLogger(__name__)

# S3 / R2 DeleteObjects accepts at most 1000 keys per call
DELETE_BATCH_SIZE = 1000

FOLDER_EXTENSIONS = {
    "images": {"jpg", "jpeg", "png", "webp", "gif", "avif", "svg"},
    "documents": {"pdf", "doc", "docx", "txt", "rtf"},
    "videos": {"mp4", "mov", "avi", "webm", "mkv"},
    "audio": {"mp3", "wav", "ogg", "aac", "m4a"},
}


def folder_for_filename(filename: str) -> str:
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    for folder, extensions in FOLDER_EXTENSIONS.items():
        if ext in extensions:
            return folder
    return "misc"


def form_media_key(filename: str) -> str:
    return f"forms/{folder_for_filename(filename)}/{filename}"


def filename_from_url(url: str) -> Optional[str]:
    """
    Last path segment of a URL or path, or None when it does not look like a file.
    Query strings and fragments are ignored.
    """
    if not url or not isinstance(url, str):
        return None

    path = urlparse(url).path if "://" in url else url.split("?")[0].split("#")[0]
    segment = unquote(path.rstrip("/").rsplit("/", 1)[-1])
    if not segment or "." not in segment:
        return None
    return segment


@dataclass
class BulkDeleteResult:
    deleted: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)


class StorageBackend:
    """Object storage used for form evidence and site media."""

    def put(self, key: str, data: bytes, content_type: str) -> str:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def delete_many(self, keys: Iterable[str]) -> BulkDeleteResult:
        raise NotImplementedError

    def public_url(self, key: str) -> str:
        raise NotImplementedError


class LocalStorage(StorageBackend):
    """Filesystem storage for development. Files are served by the API under /files/."""

    def __init__(self, root: str, url_prefix: str = "/api/files"):
        self.root = Path(root)
        self.url_prefix = url_prefix.rstrip("/")

    def path_for(self, key: str) -> Path:
        resolved = (self.root / key).resolve()
        if self.root.resolve() not in resolved.parents:
            raise StorageError(f"Key escapes storage root: {key}")
        return resolved

    def put(self, key: str, data: bytes, content_type: str) -> str:
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            path.write_bytes(data)
        except OSError as e:
            raise StorageError(f"Local write failed for {key}: {e}") from e
        return self.public_url(key)

    def delete(self, key: str) -> None:
        path = self.path_for(key)
        try:
            os.remove(path)
        except FileNotFoundError:
            return
        except OSError as e:
            raise StorageError(f"Local delete failed for {key}: {e}") from e

    def delete_many(self, keys: Iterable[str]) -> BulkDeleteResult:
        result = BulkDeleteResult()
        for key in keys:
            try:
                self.delete(key)
                result.deleted += 1
            except StorageError as e:
                result.failed += 1
                result.errors.append(str(e))
        return result

    def public_url(self, key: str) -> str:
        return f"{self.url_prefix}/{key}"


class R2Storage(StorageBackend):
    """Cloudflare R2 (S3-compatible) through boto3."""

    def __init__(self, settings: Settings, client=None):
        self.bucket = settings.r2_bucket_name
        self.public_base = (settings.r2_public_url or "").rstrip("/")
        self.client = client or boto3.client(
            "s3",
            endpoint_url=f"https://{settings.r2_account_id}.r2.cloudflarestorage.com",
            aws_access_key_id=settings.r2_access_key_id,
            aws_secret_access_key=settings.r2_secret_access_key,
            region_name="auto",
            config=Config(retries={"max_attempts": 3, "mode": "adaptive"}),
        )

    def put(self, key: str, data: bytes, content_type: str) -> str:
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                CacheControl="public, max-age=31536000",
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"R2 upload failed for {key}: {e}") from e
        return self.public_url(key)

    def delete(self, key: str) -> None:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"R2 delete failed for {key}: {e}") from e

    def delete_many(self, keys: Iterable[str]) -> BulkDeleteResult:
        result = BulkDeleteResult()
        objects = [{"Key": k} for k in keys]

        for i in range(0, len(objects), DELETE_BATCH_SIZE):
            batch = objects[i:i + DELETE_BATCH_SIZE]
            try:
                response = self.client.delete_objects(
                    Bucket=self.bucket,
                    Delete={"Objects": batch, "Quiet": False},
                )
            except (BotoCoreError, ClientError) as e:
                result.failed += len(batch)
                result.errors.append(f"Batch {i}-{i + len(batch) - 1}: {e}")
                continue

            result.deleted += len(response.get("Deleted", []))
            for error in response.get("Errors", []):
                result.failed += 1
                result.errors.append(f"{error.get('Key')}: {error.get('Message')}")

        return result

    def public_url(self, key: str) -> str:
        if self.public_base:
            return f"{self.public_base}/{key}"
        return f"/{key}"


def build_storage(settings: Settings) -> StorageBackend:
    if settings.storage_backend == "r2":
        if not settings.r2_configured:
            raise StorageError("STORAGE_BACKEND=r2 but R2 credentials are incomplete.")
        return R2Storage(settings)
    if settings.storage_backend == "local":
        return LocalStorage(settings.local_media_path, url_prefix=f"{settings.api_prefix}/files")
    raise StorageError(f"Invalid STORAGE_BACKEND: {settings.storage_backend}")


@lru_cache(maxsize=1)
def get_storage() -> StorageBackend:
    storage = build_storage(get_settings())
    logger.info("[storage] using %s", type(storage).__name__)
    return storage
