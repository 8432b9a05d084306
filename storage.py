"""
Object storage for synthesized audio and translated documents.

A missing bucket is created on the fly and the upload retried once. Public
read access comes from the bucket policy or the CDN behind S3_PUBLIC_BASE_URL;
per-object ACLs are sent only when S3_OBJECT_ACL is set.
"""

import uuid
from typing import Optional

import boto3
from botocore.exceptions import ClientError

import settings
from logging_config import get_logger

logger = get_logger(__name__)

MISSING_BUCKET_CODES = ("NoSuchBucket", "404")


def make_s3_client():
    return boto3.client(
        "s3",
        region_name=settings.S3_REGION,
        endpoint_url=settings.S3_ENDPOINT_URL,
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
    )


def is_missing_bucket(error: ClientError) -> bool:
    code = str(error.response.get("Error", {}).get("Code", ""))
    message = str(error.response.get("Error", {}).get("Message", ""))
    return code in MISSING_BUCKET_CODES or "bucket not found" in message.lower()


class ObjectStore:
    def __init__(self, client=None, bucket: str = settings.S3_BUCKET,
                 public_base_url: str = settings.S3_PUBLIC_BASE_URL,
                 region: Optional[str] = settings.S3_REGION,
                 object_acl: Optional[str] = settings.S3_OBJECT_ACL):
        self.client = client if client is not None else make_s3_client()
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")
        self.region = region
        self.object_acl = object_acl

    def public_url(self, key: str) -> str:
        return f"{self.public_base_url}/{self.bucket}/{key}"

    def ensure_bucket(self) -> None:
        # no ACL: new AWS buckets enforce object ownership and reject one
        kwargs = {"Bucket": self.bucket}
        if self.region and self.region != "us-east-1":
            kwargs["CreateBucketConfiguration"] = {"LocationConstraint": self.region}
        try:
            self.client.create_bucket(**kwargs)
            logger.info(f"Created bucket {self.bucket}")
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") not in ("BucketAlreadyOwnedByYou", "BucketAlreadyExists"):
                raise

    def _put(self, key: str, data: bytes, content_type: str) -> None:
        kwargs = {"Bucket": self.bucket, "Key": key, "Body": data, "ContentType": content_type}
        if self.object_acl:
            kwargs["ACL"] = self.object_acl
        self.client.put_object(**kwargs)

    def upload(self, data: bytes, key: str, content_type: str) -> str:
        """
        Upload bytes and return their public URL.

        Raises:
            ClientError: if the upload fails for any reason other than a
                missing bucket, or fails again after the bucket was created
        """
        try:
            self._put(key, data, content_type)
        except ClientError as e:
            if not is_missing_bucket(e):
                raise
            logger.warning(f"Bucket {self.bucket} missing, creating it and retrying upload of {key}")
            self.ensure_bucket()
            self._put(key, data, content_type)
        url = self.public_url(key)
        logger.info(f"Uploaded {len(data)} bytes to {url}")
        return url

    def upload_audio(self, mp3: bytes) -> str:
        return self.upload(mp3, f"tts_{uuid.uuid4()}.mp3", "audio/mpeg")

    def upload_document(self, text: str) -> str:
        return self.upload(text.encode("utf-8"), f"doc_{uuid.uuid4()}.txt", "text/plain; charset=utf-8")
