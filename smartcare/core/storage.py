"""
File storage backends for appointment attachments and patient records.
"""
import logging
from pathlib import Path
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from .config import settings

logger = logging.getLogger(__name__)


class FileStorage:
    """Interface shared by the storage backends."""

    def save(self, path: str, content: bytes, content_type: Optional[str] = None) -> str:
        """Store ``content`` under ``path`` and return its public URL."""
        raise NotImplementedError

    def delete(self, path: str) -> None:
        """Remove the object at ``path``. Missing objects are ignored."""
        raise NotImplementedError

    def url_for(self, path: str) -> str:
        raise NotImplementedError


class LocalFileStorage(FileStorage):
    """Stores files on local disk; served by the app under ``public_url``."""

    def __init__(self, root: str, public_url: str = "/files"):
        self.root = Path(root)
        self.public_url = public_url.rstrip("/")

    def _resolve(self, path: str) -> Path:
        target = (self.root / path).resolve()
        if self.root.resolve() not in target.parents:
            raise ValueError(f"Invalid storage path: {path}")
        return target

    def save(self, path: str, content: bytes, content_type: Optional[str] = None) -> str:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
        logger.info(f"Stored {len(content)} bytes at {path}")
        return self.url_for(path)

    def delete(self, path: str) -> None:
        target = self._resolve(path)
        if target.exists():
            target.unlink()
            logger.info(f"Deleted {path}")
        else:
            logger.warning(f"Nothing to delete at {path}")

    def url_for(self, path: str) -> str:
        return f"{self.public_url}/{path}"


class S3FileStorage(FileStorage):
    """S3-compatible object storage (AWS S3, Cloudflare R2, MinIO)."""

    def __init__(
        self,
        bucket: str,
        endpoint_url: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        region: str = "auto",
    ):
        self.bucket = bucket
        self.endpoint_url = endpoint_url
        self.client = boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            config=Config(signature_version="s3v4"),
            region_name=region,
        )

    def save(self, path: str, content: bytes, content_type: Optional[str] = None) -> str:
        extra = {"ContentType": content_type} if content_type else {}
        self.client.put_object(Bucket=self.bucket, Key=path, Body=content, **extra)
        logger.info(f"Uploaded {len(content)} bytes to s3://{self.bucket}/{path}")
        return self.url_for(path)

    def delete(self, path: str) -> None:
        try:
            self.client.delete_object(Bucket=self.bucket, Key=path)
            logger.info(f"Deleted s3://{self.bucket}/{path}")
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                logger.warning(f"Nothing to delete at s3://{self.bucket}/{path}")
                return
            raise

    def url_for(self, path: str) -> str:
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket}/{path}"
        return f"https://{self.bucket}.s3.amazonaws.com/{path}"


_storage: Optional[FileStorage] = None


def get_storage() -> FileStorage:
    """Storage dependency; the backend is chosen from settings."""
    global _storage
    if _storage is None:
        if settings.STORAGE_BACKEND == "s3":
            _storage = S3FileStorage(
                bucket=settings.S3_BUCKET,
                endpoint_url=settings.S3_ENDPOINT_URL,
                access_key_id=settings.S3_ACCESS_KEY_ID,
                secret_access_key=settings.S3_SECRET_ACCESS_KEY,
                region=settings.S3_REGION,
            )
        else:
            _storage = LocalFileStorage(settings.STORAGE_LOCAL_DIR, settings.STORAGE_PUBLIC_URL)
    return _storage
