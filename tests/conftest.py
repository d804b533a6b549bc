"""Shared fixtures: an in-memory stand-in for the boto3 S3 client."""

from __future__ import annotations

from typing import Any

import pytest
from botocore.exceptions import ClientError

from s3batch import S3Batch


class FakeBody:
    def __init__(self, content: bytes) -> None:
        self._content = content
        self.closed = False

    def read(self, amt: int | None = None) -> bytes:
        return self._content

    def close(self) -> None:
        self.closed = True


class FakeS3Client:
    """Just enough of the boto3 S3 client for s3batch, backed by a dict."""

    def __init__(self) -> None:
        self.objects: dict[tuple[str, str], bytes] = {}
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.failures: dict[str, str | None] = {}
        self.delete_errors: set[str] = set()

    # helpers

    def add(self, bucket: str, key: str, body: str | bytes) -> None:
        self.objects[(bucket, key)] = body.encode("utf-8") if isinstance(body, str) else body

    def body(self, bucket: str, key: str) -> str:
        return self.objects[(bucket, key)].decode("utf-8")

    def keys(self, bucket: str) -> list[str]:
        return sorted(k for b, k in self.objects if b == bucket)

    def fail(self, operation: str, key: str | None = None) -> None:
        """Make *operation* raise a ClientError (only for *key*, if given)."""
        self.failures[operation] = key

    def calls_to(self, operation: str) -> list[dict[str, Any]]:
        return [kwargs for op, kwargs in self.calls if op == operation]

    def _record(self, operation: str, key: str | None = None, **kwargs: Any) -> None:
        self.calls.append((operation, kwargs))
        if operation in self.failures and self.failures[operation] in (None, key):
            raise ClientError({"Error": {"Code": "InternalError", "Message": "boom"}}, operation)

    # boto3 surface

    def get_object(self, Bucket: str, Key: str) -> dict:
        self._record("GetObject", Key, Bucket=Bucket, Key=Key)
        if (Bucket, Key) not in self.objects:
            raise ClientError({"Error": {"Code": "NoSuchKey", "Message": "missing"}}, "GetObject")
        return {"Body": FakeBody(self.objects[(Bucket, Key)])}

    def put_object(self, Bucket: str, Key: str, Body: bytes) -> dict:
        self._record("PutObject", Key, Bucket=Bucket, Key=Key, Body=Body)
        self.objects[(Bucket, Key)] = Body
        return {"ETag": '"etag"'}

    def copy_object(self, Bucket: str, Key: str, CopySource: dict) -> dict:
        self._record("CopyObject", Key, Bucket=Bucket, Key=Key, CopySource=CopySource)
        self.objects[(Bucket, Key)] = self.objects[(CopySource["Bucket"], CopySource["Key"])]
        return {"CopyObjectResult": {"ETag": '"etag"'}}

    def delete_object(self, Bucket: str, Key: str) -> dict:
        self._record("DeleteObject", Key, Bucket=Bucket, Key=Key)
        self.objects.pop((Bucket, Key), None)
        return {}

    def delete_objects(self, Bucket: str, Delete: dict) -> dict:
        self._record("DeleteObjects", None, Bucket=Bucket, Delete=Delete)
        deleted, errors = [], []
        for obj in Delete["Objects"]:
            if obj["Key"] in self.delete_errors:
                errors.append({"Key": obj["Key"], "Code": "AccessDenied", "Message": "Access Denied"})
            else:
                self.objects.pop((Bucket, obj["Key"]), None)
                deleted.append({"Key": obj["Key"]})
        resp: dict[str, Any] = {"Deleted": deleted}
        if errors:
            resp["Errors"] = errors
        return resp

    def list_objects_v2(self, Bucket: str, Prefix: str = "", MaxKeys: int = 1000, StartAfter: str = "") -> dict:
        self._record("ListObjectsV2", None, Bucket=Bucket, Prefix=Prefix, MaxKeys=MaxKeys, StartAfter=StartAfter)
        matching = [k for k in self.keys(Bucket) if k.startswith(Prefix) and k > StartAfter]
        page = matching[:MaxKeys]
        resp: dict[str, Any] = {"KeyCount": len(page), "IsTruncated": len(matching) > MaxKeys}
        if page:
            resp["Contents"] = [{"Key": k, "Size": len(self.objects[(Bucket, k)])} for k in page]
        return resp


@pytest.fixture
def s3() -> FakeS3Client:
    return FakeS3Client()


@pytest.fixture
def batch(s3: FakeS3Client) -> S3Batch:
    return S3Batch(s3, context="s3://bucket/data")
