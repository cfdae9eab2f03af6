"""스토리지 서비스 — S3 또는 로컬 파일 저장.

Storage Service — Binary object storage for organization logos.
AWS 키가 비어있으면 자동으로 로컬 모드로 전환됩니다.
(Falls back to a local uploads directory when AWS keys are empty.)
"""

import logging
import uuid
from pathlib import Path

from hrms.config import Settings, settings

logger = logging.getLogger(__name__)

_SERVER_ROOT: Path = Path(__file__).resolve().parent.parent.parent


class StorageService:
    """파일 업로드 서비스 — S3 또는 로컬 모드 자동 선택.

    Uploads and deletes objects in S3, or on local disk when S3 is not
    configured. The boto3 client is created lazily on first use.
    """

    def __init__(self, config: Settings) -> None:
        self._config: Settings = config
        self._client = None
        self._uploads_dir: Path = (
            Path(config.LOCAL_UPLOADS_DIR) if config.LOCAL_UPLOADS_DIR else _SERVER_ROOT / "uploads"
        )

    @property
    def is_local(self) -> bool:
        return not self._config.AWS_ACCESS_KEY_ID or not self._config.AWS_S3_BUCKET

    @property
    def client(self):
        if self.is_local:
            return None
        if self._client is None:
            import boto3
            from botocore.config import Config as BotoConfig

            self._client = boto3.client(
                "s3",
                region_name=self._config.AWS_S3_REGION,
                aws_access_key_id=self._config.AWS_ACCESS_KEY_ID,
                aws_secret_access_key=self._config.AWS_SECRET_ACCESS_KEY,
                config=BotoConfig(signature_version="s3v4"),
            )
        return self._client

    def _generate_key(self, filename: str, folder: str) -> str:
        ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else "bin"
        return f"{folder}/{uuid.uuid4().hex}.{ext}"

    def _url_for(self, key: str) -> str:
        if self.is_local:
            return f"{self._config.LOCAL_UPLOADS_BASE_URL}/{key}"
        return f"https://{self._config.AWS_S3_BUCKET}.s3.{self._config.AWS_S3_REGION}.amazonaws.com/{key}"

    def upload(self, data: bytes, filename: str, content_type: str, folder: str) -> tuple[str, str]:
        """객체를 업로드하고 (key, url)을 반환합니다.

        Upload bytes and return the storage key and public URL.
        """
        key = self._generate_key(filename, folder)

        if self.is_local:
            path = self._uploads_dir / key
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        else:
            self.client.put_object(
                Bucket=self._config.AWS_S3_BUCKET,
                Key=key,
                Body=data,
                ContentType=content_type,
            )

        logger.info("Stored object key=%s size=%d", key, len(data))
        return key, self._url_for(key)

    def delete(self, key: str) -> None:
        """객체를 삭제합니다 (Delete an object; missing objects are ignored)."""
        if self.is_local:
            (self._uploads_dir / key).unlink(missing_ok=True)
        else:
            self.client.delete_object(Bucket=self._config.AWS_S3_BUCKET, Key=key)
        logger.info("Deleted object key=%s", key)


def get_storage() -> StorageService:
    """설정 기반 스토리지 의존성 (FastAPI dependency built from settings)."""
    return StorageService(settings)
