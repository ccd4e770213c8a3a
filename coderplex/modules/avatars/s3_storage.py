import boto3
from botocore.exceptions import ClientError
from coderplex.config import settings
from typing import Optional
import logging

logger = logging.getLogger(__name__)


class S3AvatarStorage:
    def __init__(self):
        if not settings.s3_configured:
            raise ValueError("AWS S3 credentials and bucket name must be configured")

        self.s3_client = boto3.client(
            's3',
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            region_name=settings.aws_region
        )
        self.bucket_name = settings.s3_bucket_name

    def upload_file(self, file_content: bytes, key: str, content_type: str) -> str:
        """Upload avatar to S3 and return the object key"""
        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=file_content,
                ContentType=content_type
            )
            return key
        except ClientError as e:
            logger.error(f"Failed to upload avatar to S3: {str(e)}")
            raise

    def delete_file(self, key: str) -> bool:
        """Delete avatar from S3"""
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=key)
            return True
        except ClientError as e:
            logger.warning(f"Failed to delete avatar from S3 ({key}): {str(e)}")
            return False

    def signed_url(self, key: str, expires_in: Optional[int] = None) -> Optional[str]:
        try:
            return self.s3_client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket_name, "Key": key},
                ExpiresIn=expires_in or settings.signed_url_ttl
            )
        except ClientError as e:
            logger.warning(f"Failed to sign S3 avatar URL ({key}): {str(e)}")
            return None
