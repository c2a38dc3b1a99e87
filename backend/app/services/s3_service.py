# app/services/s3_service.py

from typing import BinaryIO, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from app.core.config import settings
from app.core.logger import logger, sanitize_for_log
from app.utils.exceptions import UploadFailedError


class S3Service:
    """
    Service layer for AWS S3 operations.
    """

    def __init__(self, client=None, bucket: Optional[str] = None):
        self.s3_client = client or boto3.client(
            's3',
            region_name=settings.AWS_REGION,
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None
        )
        self.bucket = bucket or settings.S3_BUCKET_NAME

    def upload_fileobj(
        self,
        fileobj: BinaryIO,
        s3_key: str,
        content_type: str = "application/octet-stream",
        metadata: Optional[dict] = None
    ) -> str:
        """
        Store an uploaded file. Returns the key.
        """
        try:
            self.s3_client.put_object(
                Bucket=self.bucket,
                Key=s3_key,
                Body=fileobj.read(),
                ContentType=content_type,
                Metadata=metadata or {}
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 upload failed for %s: %s", s3_key, sanitize_for_log(e))
            raise UploadFailedError("storage unavailable") from e

        logger.info(f"Object uploaded: {s3_key}")
        return s3_key

    def generate_download_url(
        self,
        s3_key: str,
        bucket: Optional[str] = None,
        expires_in: int = 3600
    ) -> str:
        """
        Generate pre-signed URL for GET operation (download).
        """
        try:
            url = self.s3_client.generate_presigned_url(
                'get_object',
                Params={
                    'Bucket': bucket or self.bucket,
                    'Key': s3_key
                },
                ExpiresIn=expires_in
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("Failed to generate download URL: %s", sanitize_for_log(e))
            raise UploadFailedError("could not sign download URL") from e

        return url

    def delete_object(self, s3_key: str, bucket: Optional[str] = None) -> bool:
        """
        Remove an object. Failures are logged, not raised.
        """
        try:
            self.s3_client.delete_object(Bucket=bucket or self.bucket, Key=s3_key)
        except (BotoCoreError, ClientError) as e:
            logger.error("S3 delete failed for %s: %s", s3_key, sanitize_for_log(e))
            return False

        logger.info(f"Object deleted: {s3_key}")
        return True


_s3_service: Optional[S3Service] = None


def get_s3_service() -> S3Service:
    global _s3_service
    if _s3_service is None:
        _s3_service = S3Service()
    return _s3_service
