# app/services/storage.py
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Tuple

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from app.aws.s3_errors import is_not_found, is_retryable
from app.config import Settings, get_settings
from app.infra.retry import retry_on

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    ".html": "text/html",
    ".pdf": "application/pdf",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".json": "application/json",
}


class BlobNotFoundError(LookupError):
    """Raised when a key is not present in the blob store."""

    def __init__(self, key: str):
        super().__init__(f"Blob not found: {key}")
        self.key = key


def guess_content_type(key: str) -> str:
    return CONTENT_TYPES.get(Path(key).suffix.lower(), "application/octet-stream")


# =========================
# Abstract storage
# =========================
class Storage(ABC):
    """Key/value byte store for templates, brand assets and issued documents."""

    @abstractmethod
    def get_bytes(self, key: str) -> bytes:
        """Return the bytes stored under ``key``; raises BlobNotFoundError."""

    @abstractmethod
    def put_bytes(self, key: str, data: bytes, content_type: Optional[str] = None) -> str:
        """Store bytes under ``key`` and return the key."""

    @abstractmethod
    def exists(self, key: str) -> bool:
        pass

    @abstractmethod
    def delete(self, key: str) -> bool:
        pass

    @abstractmethod
    def public_url(self, key: str) -> str:
        pass


# =========================
# In-memory storage
# =========================
class MemoryStorage(Storage):
    """Process-local store; used for tests and dry runs."""

    def __init__(self, blobs: Optional[Dict[str, bytes]] = None):
        self._blobs: Dict[str, Tuple[bytes, str]] = {}
        for key, data in (blobs or {}).items():
            self.put_bytes(key, data)

    def get_bytes(self, key: str) -> bytes:
        try:
            return self._blobs[key][0]
        except KeyError:
            raise BlobNotFoundError(key) from None

    def put_bytes(self, key: str, data: bytes, content_type: Optional[str] = None) -> str:
        self._blobs[key] = (bytes(data), content_type or guess_content_type(key))
        return key

    def content_type(self, key: str) -> str:
        try:
            return self._blobs[key][1]
        except KeyError:
            raise BlobNotFoundError(key) from None

    def exists(self, key: str) -> bool:
        return key in self._blobs

    def delete(self, key: str) -> bool:
        return self._blobs.pop(key, None) is not None

    def public_url(self, key: str) -> str:
        return f"memory://{key}"

    def keys(self):
        return sorted(self._blobs)


# =========================
# Local storage
# =========================
class LocalStorage(Storage):
    """Local filesystem storage."""

    def __init__(self, base_path: str = "data"):
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _full_path(self, key: str) -> Path:
        if not key or key.startswith("/") or ".." in key:
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.base_path / key

    def get_bytes(self, key: str) -> bytes:
        p = self._full_path(key)
        if not p.is_file():
            raise BlobNotFoundError(key)
        return p.read_bytes()

    def put_bytes(self, key: str, data: bytes, content_type: Optional[str] = None) -> str:
        file_path = self._full_path(key)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_bytes(data)
        logger.info("File stored: %s", file_path)
        return key

    def exists(self, key: str) -> bool:
        return self._full_path(key).is_file()

    def delete(self, key: str) -> bool:
        p = self._full_path(key)
        if p.exists():
            p.unlink()
            logger.info("File deleted: %s", p)
            return True
        return False

    def public_url(self, key: str) -> str:
        return f"/files/{key}"


# =========================
# S3 storage
# =========================
class S3Storage(Storage):
    """Amazon S3 (or S3-compatible, e.g. MinIO) storage."""

    def __init__(
        self,
        bucket: str,
        region: str = "us-east-1",
        endpoint_url: Optional[str] = None,
        public_endpoint: Optional[str] = None,
        aws_access_key_id: Optional[str] = None,
        aws_secret_access_key: Optional[str] = None,
        client=None,
    ):
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url
        self.public_endpoint = public_endpoint

        if client is None:
            session_kwargs = {}
            if aws_access_key_id and aws_secret_access_key:
                session_kwargs.update({
                    "aws_access_key_id": aws_access_key_id,
                    "aws_secret_access_key": aws_secret_access_key,
                })
            cfg = Config(
                region_name=region,
                retries={"max_attempts": 5, "mode": "standard"},
                connect_timeout=3,
                read_timeout=10,
                # path-style addressing is required by MinIO
                s3={"addressing_style": "path"} if endpoint_url else None,
            )
            client = boto3.client("s3", endpoint_url=endpoint_url, config=cfg, **session_kwargs)
        self.s3_client = client

    def get_bytes(self, key: str) -> bytes:
        def _get() -> bytes:
            r = self.s3_client.get_object(Bucket=self.bucket, Key=key)
            return r["Body"].read()

        try:
            return retry_on(_get, is_retryable=is_retryable)
        except ClientError as e:
            if is_not_found(e):
                raise BlobNotFoundError(key) from e
            logger.error("S3 get_object failed for key=%s: %s", key, e)
            raise

    def put_bytes(self, key: str, data: bytes, content_type: Optional[str] = None) -> str:
        self.s3_client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=data,
            ContentType=content_type or guess_content_type(key),
        )
        logger.info("Uploaded to S3: %s", key)
        return key

    def exists(self, key: str) -> bool:
        try:
            self.s3_client.head_object(Bucket=self.bucket, Key=key)
            return True
        except ClientError as e:
            if is_not_found(e):
                return False
            raise

    def delete(self, key: str) -> bool:
        self.s3_client.delete_object(Bucket=self.bucket, Key=key)
        logger.info("Deleted from S3: %s", key)
        return True

    def public_url(self, key: str) -> str:
        if self.public_endpoint:
            return f"{self.public_endpoint.rstrip('/')}/{self.bucket}/{key}"
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"


# =========================
# Factory
# =========================
_memory_singleton: Optional[MemoryStorage] = None


def get_storage(settings: Optional[Settings] = None) -> Storage:
    """Return the storage backend selected by STORAGE_BACKEND."""
    global _memory_singleton
    settings = settings or get_settings()
    backend = settings.STORAGE_BACKEND.lower()

    if backend == "s3":
        if not settings.S3_BUCKET:
            raise ValueError("S3_BUCKET is required for S3 storage")
        return S3Storage(
            bucket=settings.S3_BUCKET,
            region=settings.S3_REGION,
            endpoint_url=settings.S3_ENDPOINT_URL,
            public_endpoint=settings.S3_PUBLIC_ENDPOINT,
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
        )
    if backend == "local":
        return LocalStorage(base_path=settings.LOCAL_STORAGE_PATH)
    if backend == "memory":
        if _memory_singleton is None:
            _memory_singleton = MemoryStorage()
        return _memory_singleton

    raise ValueError(f"Unknown storage backend: {backend}")
