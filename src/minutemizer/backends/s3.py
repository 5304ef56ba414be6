from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Iterable, List, Optional

import boto3
from botocore.exceptions import ClientError
from cryptography.fernet import Fernet, InvalidToken

from .base import BackendError, KeyValueBackend


# Environment variable names for convenience configuration
ENV_BUCKET = "MINUTEMIZER_S3_BUCKET"
ENV_PREFIX = "MINUTEMIZER_S3_PREFIX"
ENV_FERNET_KEY = "MINUTEMIZER_FERNET_KEY"

DEFAULT_PREFIX = "minutemizer/"

_MISSING_CODES = ("NoSuchKey", "404", "NotFound")


def _to_fernet(key: str | bytes) -> Fernet:
    """Construct a Fernet instance from a user-provided key.

    The key must be a URL-safe base64-encoded 32-byte key (str or bytes),
    as returned by `cryptography.fernet.Fernet.generate_key()`.
    """
    if isinstance(key, str):
        key_bytes = key.encode("utf-8")
    else:
        key_bytes = key
    return Fernet(key_bytes)


@dataclass
class S3Location:
    bucket: str
    prefix: str

    def object_key(self, key: str) -> str:
        return f"{self.prefix}{key}"


class S3Backend(KeyValueBackend):
    """
    S3-backed key-value storage, encrypted at rest using Fernet.

    Usage
    - Provide a bucket, a key prefix and a Fernet key (from env or injected).
    - Each stored key maps to the object `{prefix}{key}`.
    - A missing object reads as `None`.
    - Deletes are blind on S3, so removals always notify observers.

    Environment variables (optional)
    - `MINUTEMIZER_S3_BUCKET`: S3 bucket holding the objects
    - `MINUTEMIZER_S3_PREFIX`: key prefix (defaults to "minutemizer/")
    - `MINUTEMIZER_FERNET_KEY`: urlsafe base64-encoded key for Fernet
    """

    def __init__(
        self,
        *,
        s3: Optional[object] = None,
        bucket: str,
        prefix: str = DEFAULT_PREFIX,
        fernet_key: str | bytes,
        region_name: Optional[str] = None,
    ) -> None:
        super().__init__()
        self._s3 = s3 or boto3.client("s3", region_name=region_name)
        self._loc = S3Location(bucket=bucket, prefix=prefix)
        self._fernet = _to_fernet(fernet_key)

    # -------- Construction helpers --------
    @classmethod
    def from_env(cls) -> "S3Backend":
        bucket = os.environ.get(ENV_BUCKET)
        fkey = os.environ.get(ENV_FERNET_KEY)
        prefix = os.environ.get(ENV_PREFIX) or DEFAULT_PREFIX
        if not bucket or not fkey:
            missing = [name for name, val in [(ENV_BUCKET, bucket), (ENV_FERNET_KEY, fkey)] if not val]
            raise RuntimeError(
                f"Missing required environment variables for S3 backend: {', '.join(missing)}"
            )
        return cls(bucket=bucket, prefix=prefix, fernet_key=fkey)

    # -------- Storage primitives --------
    def _read(self, key: str) -> Optional[bytes]:
        try:
            resp = self._s3.get_object(Bucket=self._loc.bucket, Key=self._loc.object_key(key))
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            if code in _MISSING_CODES:
                return None
            raise

        body = resp["Body"].read()
        try:
            return self._fernet.decrypt(body)
        except InvalidToken as ex:
            raise BackendError(f"Failed to decrypt {key!r}: invalid Fernet token") from ex

    def _write(self, key: str, value: bytes) -> None:
        self._s3.put_object(
            Bucket=self._loc.bucket,
            Key=self._loc.object_key(key),
            Body=self._fernet.encrypt(value),
            ContentType="application/octet-stream",
        )

    def _delete(self, key: str) -> bool:
        self._s3.delete_object(Bucket=self._loc.bucket, Key=self._loc.object_key(key))
        return True

    def _keys(self) -> Iterable[str]:
        keys: List[str] = []
        kwargs = {"Bucket": self._loc.bucket, "Prefix": self._loc.prefix}
        while True:
            resp = self._s3.list_objects_v2(**kwargs)
            for item in resp.get("Contents", []):
                keys.append(item["Key"][len(self._loc.prefix):])
            token = resp.get("NextContinuationToken")
            if not resp.get("IsTruncated") or not token:
                return keys
            kwargs["ContinuationToken"] = token
