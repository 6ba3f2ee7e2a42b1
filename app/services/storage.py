import logging
import mimetypes
import re
import uuid
from pathlib import Path

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from app.config import settings

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class StorageNotFound(Exception):
    pass


def safe_filename(name: str) -> str:
    cleaned = _UNSAFE_CHARS.sub("_", Path(name or "").name).strip("._")
    return cleaned or "file"


class StorageService:
    """Stores document files on the public disk or in an S3 bucket.

    Keys are relative paths such as ``documents/<person>/<random>/<file>``
    and are identical for both backends.
    """

    @staticmethod
    def is_s3_configured() -> bool:
        return bool(
            settings.s3_endpoint_url
            and settings.s3_access_key
            and settings.s3_secret_key
        )

    @staticmethod
    def _get_client():  # type: ignore[return]
        return boto3.client(
            "s3",
            endpoint_url=settings.s3_endpoint_url,
            aws_access_key_id=settings.s3_access_key,
            aws_secret_access_key=settings.s3_secret_key,
            region_name=settings.s3_region,
            config=Config(signature_version="s3v4"),
        )

    @staticmethod
    def generate_storage_key(person_id, file_name: str) -> str:
        unique = uuid.uuid4().hex[:12]
        return f"documents/{person_id}/{unique}/{safe_filename(file_name)}"

    @staticmethod
    def local_path(key: str) -> Path:
        root = Path(settings.storage_root).resolve()
        path = (root / key).resolve()
        if root != path and root not in path.parents:
            raise StorageNotFound(key)
        return path

    @staticmethod
    def save(key: str, content: bytes, mime_type: str | None = None) -> str:
        if StorageService.is_s3_configured():
            StorageService._get_client().put_object(
                Bucket=settings.s3_bucket_name,
                Key=key,
                Body=content,
                ContentType=mime_type or "application/octet-stream",
            )
        else:
            path = StorageService.local_path(key)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        logger.info("Stored %s (%d bytes)", key, len(content))
        return key

    @staticmethod
    def read(key: str) -> bytes:
        if StorageService.is_s3_configured():
            try:
                obj = StorageService._get_client().get_object(
                    Bucket=settings.s3_bucket_name, Key=key
                )
            except ClientError as exc:
                raise StorageNotFound(key) from exc
            return obj["Body"].read()
        path = StorageService.local_path(key)
        if not path.is_file():
            raise StorageNotFound(key)
        return path.read_bytes()

    @staticmethod
    def exists(key: str) -> bool:
        if StorageService.is_s3_configured():
            try:
                StorageService._get_client().head_object(
                    Bucket=settings.s3_bucket_name, Key=key
                )
            except ClientError:
                return False
            return True
        try:
            return StorageService.local_path(key).is_file()
        except StorageNotFound:
            return False

    @staticmethod
    def delete(key: str | None) -> None:
        """Remove a stored object. Missing objects are not an error."""
        if not key:
            return
        if StorageService.is_s3_configured():
            StorageService._get_client().delete_object(
                Bucket=settings.s3_bucket_name, Key=key
            )
        else:
            path = StorageService.local_path(key)
            if path.exists():
                path.unlink()
        logger.info("Deleted stored file %s", key)

    @staticmethod
    def url(key: str) -> str:
        if StorageService.is_s3_configured():
            return StorageService._get_client().generate_presigned_url(
                "get_object",
                Params={"Bucket": settings.s3_bucket_name, "Key": key},
                ExpiresIn=settings.s3_presigned_url_expiry,
            )
        return f"{settings.storage_url_prefix}/{key}"

    @staticmethod
    def guess_mime_type(file_name: str) -> str:
        mime_type, _ = mimetypes.guess_type(file_name)
        return mime_type or "application/octet-stream"


storage = StorageService()
