"""
S3-compatible object storage backend implementation.

Works with AWS S3 and S3-compatible services (MinIO, GCS interoperability)
through boto3. Directories are synthesized from key prefixes.
"""

import logging
import posixpath
from typing import Any, Iterator, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from storage_navigator.common.metrics import track_download, track_listing
from storage_navigator.common.paths import strip_separators
from storage_navigator.listing.entries import Listing
from storage_navigator.storage.adapter import (
    CHUNK_SIZE,
    BackendUnavailable,
    DownloadStream,
    ListingUnavailable,
    NotFound,
    StorageAdapter,
)
from storage_navigator.storage.flatkey import FlatKey, collapse_to_one_level, location_prefix

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


def _to_epoch(value: Any) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value.timestamp())
    except AttributeError:
        return None


class S3Storage(StorageAdapter):
    """
    S3-based storage implementation.

    Listing uses a prefix-scoped ListObjectsV2 with a '/' delimiter: common
    prefixes become directories and keys become files.
    """

    backend_name = "s3"

    def __init__(
        self,
        bucket: str,
        client: Any = None,
        endpoint_url: Optional[str] = None,
        access_key_id: str = "",
        secret_access_key: str = "",
        region: str = "us-east-1",
        sort: bool = True,
    ):
        """
        Initialize S3 storage.

        Args:
            bucket: Bucket name
            client: Pre-built boto3 S3 client; created from the other args if None
            endpoint_url: Custom endpoint for S3-compatible services
            access_key_id: Access key ID (falls back to the boto3 credential chain)
            secret_access_key: Secret access key
            region: Region name
            sort: Sort listings directories-first by name; False keeps key order

        Raises:
            BackendUnavailable: If the bucket cannot be reached
        """
        self.bucket = bucket
        self.sort = sort

        try:
            if client is None:
                client_kwargs = {"region_name": region}
                if endpoint_url:
                    client_kwargs["endpoint_url"] = endpoint_url
                if access_key_id and secret_access_key:
                    client_kwargs["aws_access_key_id"] = access_key_id
                    client_kwargs["aws_secret_access_key"] = secret_access_key
                client = boto3.client("s3", **client_kwargs)
            self.s3_client = client
            self.s3_client.head_bucket(Bucket=bucket)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Bucket {bucket} is not reachable: {e}")
            raise BackendUnavailable(f"Could not access bucket {bucket}: {e}") from e

        logger.info(f"Using S3 bucket {bucket}")

    def _list_level(self, prefix: str) -> List[FlatKey]:
        """Collect one delimiter level below prefix across all result pages."""
        keys: List[FlatKey] = []
        paginator = self.s3_client.get_paginator("list_objects_v2")

        for page in paginator.paginate(Bucket=self.bucket, Prefix=prefix, Delimiter="/"):
            for common_prefix in page.get("CommonPrefixes", []):
                keys.append(FlatKey(key=common_prefix["Prefix"]))
            for obj in page.get("Contents", []):
                keys.append(FlatKey(
                    key=obj["Key"],
                    size=obj.get("Size"),
                    last_modified=_to_epoch(obj.get("LastModified")),
                ))
        return keys

    @track_listing("s3")
    def listing(self, location: str) -> Listing:
        """List the direct children of a key prefix."""
        prefix = location_prefix(location)
        try:
            keys = self._list_level(prefix)
        except (ClientError, BotoCoreError) as e:
            raise ListingUnavailable(f"Could not list prefix {prefix!r}: {e}") from e

        return collapse_to_one_level(keys, location, sort=self.sort)

    def exists(self, location: str) -> bool:
        """
        Check for an exact key first, then for any key under the prefix.

        The bucket root always exists.
        """
        key = strip_separators(location)
        if not key:
            return True

        try:
            self.s3_client.head_object(Bucket=self.bucket, Key=key)
            return True
        except ClientError as e:
            # Access errors on the key still leave the prefix lookup
            if _error_code(e) not in NOT_FOUND_CODES:
                logger.warning(f"head_object failed for {key}: {e}")
        except BotoCoreError as e:
            logger.warning(f"head_object failed for {key}: {e}")

        try:
            result = self.s3_client.list_objects_v2(
                Bucket=self.bucket, Prefix=key + "/", MaxKeys=1)
        except (ClientError, BotoCoreError) as e:
            logger.warning(f"Prefix lookup failed for {key}: {e}")
            return False
        return result.get("KeyCount", len(result.get("Contents", []))) > 0

    @staticmethod
    def _stream(body) -> Iterator[bytes]:
        yield from body.iter_chunks(chunk_size=CHUNK_SIZE)

    @track_download("s3")
    def download(self, path: str) -> DownloadStream:
        """Stream an object body."""
        key = strip_separators(path)
        try:
            result = self.s3_client.get_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if _error_code(e) in NOT_FOUND_CODES:
                raise NotFound(f"Object not found: {path}") from e
            raise BackendUnavailable(f"Could not download {path!r}: {e}") from e
        except BotoCoreError as e:
            raise BackendUnavailable(f"Could not download {path!r}: {e}") from e

        body = result["Body"]
        return DownloadStream(
            chunks=self._stream(body),
            filename=posixpath.basename(key),
            size=result.get("ContentLength"),
            mime_type=result.get("ContentType"),
            cleanup=body.close,
        )
