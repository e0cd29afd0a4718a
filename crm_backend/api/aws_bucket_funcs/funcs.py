"""
S3 Utilities — Client Init • Bucket Adapter
===========================================

Purpose
-------
Small adapter module for the bucket that holds every stored asset:
- Initialize an S3 client with Signature V4 (AWS or any S3-compatible endpoint)
- `S3Bucket`: the object operations the storage lifecycle relies on
  (put, make public, delete, exists, list, open a read stream)

Configuration (from `crm_backend.database.config.config.settings`)
------------------------------------------------------------------
- AWS_ACCESS_KEY      : Access key ID
- AWS_SECRET_KEY      : Secret access key
- REGION              : AWS region (e.g., "eu-central-1")
- BUCKET_NAME         : Target bucket
- BUCKET_ENDPOINT_URL : Optional endpoint for S3-compatible stores

Caveats
-------
- `delete_object` succeeds on absent keys; callers that need to tell the
  difference check `exists` first.
- Objects are made public with a `public-read` ACL. Buckets with "object
  ownership: bucket owner enforced" reject ACLs; use a bucket policy instead
  and expect `make_public` to fail.
"""

import logging
from typing import Iterator, List

import boto3
import botocore
from botocore.exceptions import ClientError

from crm_backend.database.config.config import settings

logger = logging.getLogger(__name__)

_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


def get_client():
    """
    Initialize and return a low-level S3 client configured for Signature V4.

    Uses:
        - settings.AWS_ACCESS_KEY
        - settings.AWS_SECRET_KEY
        - settings.REGION
        - settings.BUCKET_ENDPOINT_URL (when set)

    Returns:
        botocore.client.S3: An S3 client ready for bucket and object operations.
    """
    return boto3.client(
        "s3",
        aws_access_key_id=settings.AWS_ACCESS_KEY,
        aws_secret_access_key=settings.AWS_SECRET_KEY,
        region_name=settings.REGION,
        endpoint_url=settings.BUCKET_ENDPOINT_URL,
        config=botocore.config.Config(signature_version="s3v4"),
    )


def is_missing(error: ClientError) -> bool:
    return str(error.response.get("Error", {}).get("Code")) in _MISSING_CODES


class S3Bucket:
    """
    Object operations on one bucket.

    Parameters
    ----------
    s3_client : botocore.client.S3
        Client returned by `get_client()`.
    bucket_name : str
        Bucket to operate on.
    """

    def __init__(self, s3_client, bucket_name: str):
        self.client = s3_client
        self.name = bucket_name

    def put(self, key: str, data: bytes, content_type: str) -> None:
        self.client.put_object(Bucket=self.name, Key=key, Body=data, ContentType=content_type)

    def make_public(self, key: str) -> None:
        self.client.put_object_acl(Bucket=self.name, Key=key, ACL="public-read")

    def delete(self, key: str) -> None:
        self.client.delete_object(Bucket=self.name, Key=key)

    def exists(self, key: str) -> bool:
        try:
            self.client.head_object(Bucket=self.name, Key=key)
            return True
        except ClientError as e:
            if is_missing(e):
                return False
            raise

    def list(self) -> List[dict]:
        """
        Every object in the bucket.

        Returns:
            list[dict]: ``{"key", "size", "created_at"}`` per object.
        """
        objects = []
        paginator = self.client.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self.name):
            for item in page.get("Contents", []):
                objects.append({"key": item["Key"], "size": item["Size"], "created_at": item["LastModified"]})
        return objects

    def open_read_stream(self, key: str, chunk_size: int = 1024 * 1024) -> Iterator[bytes]:
        response = self.client.get_object(Bucket=self.name, Key=key)
        return response["Body"].iter_chunks(chunk_size=chunk_size)
