# scheve_cms/storage/s3_storage.py
from __future__ import annotations

import logging

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from scheve_cms.errors import StorageFailure

logger = logging.getLogger(__name__)

_MISSING_CODES = ("404", "NoSuchKey", "NotFound")


def _error_code(e: ClientError) -> str:
    return str(e.response.get("Error", {}).get("Code", ""))


class S3Storage:
    def __init__(self, bucket: str | None, region: str = "us-east-1", profile: str | None = None, client=None):
        if not bucket:
            raise RuntimeError("S3_BUCKET not set in .env")
        self.bucket = bucket

        if client is not None:
            self.s3 = client
            return

        session = boto3.Session(profile_name=profile) if profile else boto3.Session()

        # signature_version helps with some environments, safe default
        self.s3 = session.client(
            "s3",
            region_name=region,
            config=Config(signature_version="s3v4"),
        )

    def _fail(self, action: str, key: str, error: Exception):
        detail = _error_code(error) if isinstance(error, ClientError) else type(error).__name__
        logger.error("S3 %s failed for s3://%s/%s: %s", action, self.bucket, key, error)
        raise StorageFailure(f"S3 {action} failed for {key}: {detail}") from error

    def exists(self, key: str) -> bool:
        if not key:
            return False
        try:
            self.s3.head_object(Bucket=self.bucket, Key=key)
            return True
        except ClientError as e:
            if _error_code(e) in _MISSING_CODES:
                return False
            self._fail("head", key, e)
        except BotoCoreError as e:
            self._fail("head", key, e)

    def read_bytes(self, key: str) -> bytes:
        try:
            resp = self.s3.get_object(Bucket=self.bucket, Key=key)
            return resp["Body"].read()
        except (BotoCoreError, ClientError) as e:
            self._fail("get", key, e)

    def size(self, key: str) -> int:
        try:
            resp = self.s3.head_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            self._fail("head", key, e)
        return int(resp.get("ContentLength", 0))

    def save_bytes(self, key: str, data: bytes, content_type: str = "application/pdf") -> str:
        # single PUT: the object appears complete or not at all
        try:
            self.s3.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            self._fail("put", key, e)
        return key

    def delete(self, key: str) -> None:
        try:
            self.s3.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            self._fail("delete", key, e)
