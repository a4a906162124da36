import uuid
from pathlib import Path

import boto3
from botocore.exceptions import ClientError

from app.config import settings

IMAGE_CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".heic": "image/heic",
}


class StorageClient:
    def __init__(self):
        self._client = boto3.client(
            "s3",
            endpoint_url=settings.S3_ENDPOINT_URL,
            aws_access_key_id=settings.S3_ACCESS_KEY,
            aws_secret_access_key=settings.S3_SECRET_KEY,
        )

    @property
    def bucket(self) -> str:
        return settings.S3_BUCKET

    def ensure_bucket(self) -> None:
        try:
            self._client.head_bucket(Bucket=self.bucket)
        except ClientError:
            self._client.create_bucket(Bucket=self.bucket)

    def upload_bytes(self, key: str, data: bytes, content_type: str | None = None) -> str:
        extra = {"ContentType": content_type} if content_type else None
        self._client.put_object(Bucket=self.bucket, Key=key, Body=data, **(extra or {}))
        return key

    def download_object(self, key: str) -> tuple[bytes, str | None]:
        response = self._client.get_object(Bucket=self.bucket, Key=key)
        return response["Body"].read(), response.get("ContentType")

    def delete_prefix(self, prefix: str) -> int:
        paginator = self._client.get_paginator("list_objects_v2")
        deleted = 0
        for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix):
            keys = [{"Key": item["Key"]} for item in page.get("Contents", [])]
            if keys:
                self._client.delete_objects(Bucket=self.bucket, Delete={"Objects": keys})
                deleted += len(keys)
        return deleted


storage_client = StorageClient()


def photo_key(vehicle_id: str, filename: str | None = None) -> str:
    suffix = ""
    if filename:
        suffix = Path(filename).suffix.lower()
    return f"vehicles/{vehicle_id}/photos/{uuid.uuid4()}{suffix}"


def guess_content_type(key: str, fallback: str = "image/jpeg") -> str:
    return IMAGE_CONTENT_TYPES.get(Path(key).suffix.lower(), fallback)
