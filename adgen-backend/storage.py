"""
S3 object store for generated images.
"""

import logging
from typing import Dict

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from config import AWS_REGION, BUCKET_NAME, S3_ENDPOINT_URL
from exceptions import StorageError


def build_s3_client():
    """Create an S3 client. Callers keep one per process and reuse it."""
    return boto3.client(
        "s3",
        region_name=AWS_REGION,
        endpoint_url=S3_ENDPOINT_URL,
        config=Config(signature_version="s3v4", retries={"max_attempts": 3}),
    )


class S3ObjectStore:
    """Put-with-metadata and presigned read links for one bucket."""

    def __init__(self, client, bucket: str = BUCKET_NAME):
        self.client = client
        self.bucket = bucket

    def put(self, key: str, body: bytes, content_type: str, metadata: Dict[str, str]) -> None:
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=body,
                ContentType=content_type,
                Metadata=metadata,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to upload {key}: {e}") from e
        logging.info(f"📦 Uploaded s3://{self.bucket}/{key} ({len(body)} bytes)")

    def generate_access_link(self, key: str, expires_in: int) -> str:
        """Return a presigned GET URL for key, valid for expires_in seconds."""
        try:
            return self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to create access link for {key}: {e}") from e
