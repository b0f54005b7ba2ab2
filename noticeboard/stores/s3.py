import boto3
from botocore.exceptions import ClientError

from noticeboard.errors import RemoteFileNotFound, TransportError, VersionConflict

from .base import BaseStore


class S3Store(BaseStore):
    """
    A store that uses Amazon S3 (or S3-compatible services) to hold the site
    files.

    Uses ETags as versions. Where the service supports conditional writes,
    puts carry If-Match / If-None-Match so the check and the write are one
    atomic request; otherwise we do a head check before writing and hope
    for no race in between.
    """

    type_aliases = ["s3"]

    def __init__(
        self,
        bucket: str,
        name: str = "s3",
        prefix: str = "",
        region: str | None = None,
        endpoint_url: str | None = None,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        public_url_base: str | None = None,
        conditional_writes: bool = True,
    ):
        super().__init__(name=name)
        self.bucket = bucket
        self.prefix = prefix.strip("/")
        self.public_url_base = public_url_base.rstrip("/") if public_url_base else None
        self.conditional_writes = conditional_writes

        # Build client kwargs
        client_kwargs: dict = {}
        if region:
            client_kwargs["region_name"] = region
        if endpoint_url:
            client_kwargs["endpoint_url"] = endpoint_url
        if access_key_id and secret_access_key:
            client_kwargs["aws_access_key_id"] = access_key_id
            client_kwargs["aws_secret_access_key"] = secret_access_key

        self.client = boto3.client("s3", **client_kwargs)

    def __str__(self):
        if self.prefix:
            return f"S3 (bucket {self.bucket}, prefix {self.prefix})"
        return f"S3 (bucket {self.bucket})"

    def _full_key(self, path: str) -> str:
        """Combines the prefix with the given path to form the full S3 key."""
        path = path.lstrip("/")
        if self.prefix:
            return f"{self.prefix}/{path}"
        return path

    @staticmethod
    def _error_code(e: ClientError) -> str:
        return e.response.get("Error", {}).get("Code", "")

    def remote_read(self, path: str) -> tuple[bytes, str]:
        key = self._full_key(path)
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if self._error_code(e) in ("NoSuchKey", "404"):
                raise RemoteFileNotFound(f"Object not found: {key}")
            raise TransportError(f"Failed to read {key}: {e}") from e
        content = response["Body"].read()
        # Strip the quotes S3 puts around ETags
        return content, response["ETag"].strip('"')

    def _current_version(self, key: str) -> str | None:
        try:
            head_response = self.client.head_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if self._error_code(e) in ("404", "NoSuchKey", "NotFound"):
                return None
            raise TransportError(f"Failed to check version for {key}: {e}") from e
        return head_response["ETag"].strip('"')

    def remote_write(
        self,
        path: str,
        content: bytes,
        over_version: str | None,
        message: str,
    ) -> str:
        key = self._full_key(path)
        put_kwargs: dict = {
            "Bucket": self.bucket,
            "Key": key,
            "Body": content,
            "Metadata": {"commit-message": message[:1024]},
        }
        if self.conditional_writes:
            if over_version is None:
                put_kwargs["IfNoneMatch"] = "*"
            else:
                put_kwargs["IfMatch"] = f'"{over_version}"'
        else:
            current_version = self._current_version(key)
            if current_version != over_version:
                raise VersionConflict(
                    f"Requested {over_version}, got {current_version} for {key}"
                )
        try:
            response = self.client.put_object(**put_kwargs)
        except ClientError as e:
            if self._error_code(e) in (
                "PreconditionFailed",
                "ConditionalRequestConflict",
                "412",
                "409",
            ):
                raise VersionConflict(
                    f"Requested {over_version} for {key}, but it has changed"
                ) from e
            raise TransportError(f"Failed to write {key}: {e}") from e
        return response["ETag"].strip('"')

    def remote_exists(self, path: str) -> bool:
        """Returns if the given remote path exists."""
        return self._current_version(self._full_key(path)) is not None

    def public_url(self, path: str) -> str | None:
        if self.public_url_base is None:
            return None
        return f"{self.public_url_base}/{self._full_key(path)}"
