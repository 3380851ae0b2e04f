from __future__ import annotations
import io
from functools import lru_cache
from minio import Minio
from minio.error import S3Error
import structlog
from banfoo.config import settings

log = structlog.get_logger()

def _parse_endpoint(ep: str) -> tuple[str, bool]:
    # Return (host:port, secure)
    secure = ep.startswith("https://")
    host = ep.replace("http://", "").replace("https://", "")
    return host, secure

@lru_cache(maxsize=1)
def get_client() -> Minio:
    host, secure = _parse_endpoint(settings.s3_endpoint)
    return Minio(host, access_key=settings.s3_access_key, secret_key=settings.s3_secret_key, secure=secure)

def ensure_bucket() -> None:
    """Create the uploads bucket if missing (idempotent)."""
    client = get_client()
    try:
        if not client.bucket_exists(settings.s3_bucket_uploads):
            client.make_bucket(settings.s3_bucket_uploads)
    except S3Error as e:
        # creation may race with another worker
        if e.code not in ("BucketAlreadyOwnedByYou", "BucketAlreadyExists"):
            raise

def put_bytes(key: str, data: bytes, content_type: str) -> str:
    """Store an object and return its public URL."""
    get_client().put_object(
        settings.s3_bucket_uploads, key, io.BytesIO(data), length=len(data), content_type=content_type
    )
    return public_url(key)

def public_url(key: str) -> str:
    return f"{settings.s3_public_url.rstrip('/')}/{settings.s3_bucket_uploads}/{key}"
