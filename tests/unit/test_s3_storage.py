"""
Unit tests for S3 storage backend (boto3 client mocked).
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock, Mock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from storage_navigator.storage.adapter import (
    BackendUnavailable,
    ListingUnavailable,
    NotFound,
)
from storage_navigator.storage.s3 import S3Storage


def client_error(code, operation="HeadObject"):
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


def paginated(*pages):
    paginator = Mock()
    paginator.paginate.return_value = list(pages)
    return paginator


@pytest.fixture
def s3_client():
    return MagicMock()


@pytest.fixture
def storage(s3_client):
    return S3Storage(bucket="test-bucket", client=s3_client)


class TestS3StorageInit:
    """Test storage initialization."""

    def test_checks_bucket(self, s3_client):
        S3Storage(bucket="test-bucket", client=s3_client)
        s3_client.head_bucket.assert_called_once_with(Bucket="test-bucket")

    def test_missing_bucket(self, s3_client):
        s3_client.head_bucket.side_effect = client_error("404", "HeadBucket")
        with pytest.raises(BackendUnavailable):
            S3Storage(bucket="missing", client=s3_client)

    def test_unreachable_endpoint(self, s3_client):
        s3_client.head_bucket.side_effect = EndpointConnectionError(endpoint_url="http://minio:9000")
        with pytest.raises(BackendUnavailable):
            S3Storage(bucket="test-bucket", client=s3_client)


class TestS3Listing:
    """Test delimiter listings."""

    def test_prefix_listing(self, storage, s3_client):
        modified = datetime(2024, 1, 2, tzinfo=timezone.utc)
        s3_client.get_paginator.return_value = paginated({
            "CommonPrefixes": [{"Prefix": "docs/img/"}],
            "Contents": [{"Key": "docs/readme.md", "Size": 12, "LastModified": modified}],
        })

        listing = storage.listing("docs/")

        s3_client.get_paginator.assert_called_once_with("list_objects_v2")
        s3_client.get_paginator.return_value.paginate.assert_called_once_with(
            Bucket="test-bucket", Prefix="docs/", Delimiter="/")
        assert [d.name for d in listing.directories()] == ["img"]
        assert [f.name for f in listing.files()] == ["readme.md"]
        assert "logo.png" not in listing.names()

        readme = listing.files()[0]
        assert readme.byte_size == 12
        assert readme.last_modified == int(modified.timestamp())
        assert readme.directory_path == "docs/"

    def test_root_listing_uses_empty_prefix(self, storage, s3_client):
        s3_client.get_paginator.return_value = paginated({"Contents": [{"Key": "a.txt", "Size": 1}]})

        assert storage.listing("").names() == ["a.txt"]
        s3_client.get_paginator.return_value.paginate.assert_called_once_with(
            Bucket="test-bucket", Prefix="", Delimiter="/")

    def test_multiple_pages_are_merged(self, storage, s3_client):
        s3_client.get_paginator.return_value = paginated(
            {"Contents": [{"Key": "b.txt", "Size": 1}]},
            {"Contents": [{"Key": "a.txt", "Size": 1}], "CommonPrefixes": [{"Prefix": "z/"}]},
        )
        assert storage.listing("").names() == ["z", "a.txt", "b.txt"]

    def test_unsorted_keeps_backend_order(self, s3_client):
        storage = S3Storage(bucket="test-bucket", client=s3_client, sort=False)
        s3_client.get_paginator.return_value = paginated(
            {"Contents": [{"Key": "b.txt"}, {"Key": "a.txt"}]})
        assert storage.listing("").names() == ["b.txt", "a.txt"]

    def test_listing_failure(self, storage, s3_client):
        paginator = Mock()
        paginator.paginate.side_effect = client_error("AccessDenied", "ListObjectsV2")
        s3_client.get_paginator.return_value = paginator

        with pytest.raises(ListingUnavailable):
            storage.listing("docs")


class TestS3Exists:
    """Test object and prefix existence."""

    def test_root_exists_without_calls(self, storage, s3_client):
        assert storage.exists("")
        s3_client.head_object.assert_not_called()

    def test_exact_key(self, storage, s3_client):
        assert storage.exists("docs/readme.md")
        s3_client.head_object.assert_called_once_with(Bucket="test-bucket", Key="docs/readme.md")

    def test_prefix_fallback(self, storage, s3_client):
        s3_client.head_object.side_effect = client_error("404")
        s3_client.list_objects_v2.return_value = {"KeyCount": 1}

        assert storage.exists("/docs/")
        s3_client.list_objects_v2.assert_called_once_with(
            Bucket="test-bucket", Prefix="docs/", MaxKeys=1)

    def test_missing(self, storage, s3_client):
        s3_client.head_object.side_effect = client_error("NoSuchKey")
        s3_client.list_objects_v2.return_value = {"KeyCount": 0}

        assert not storage.exists("missing")

    def test_forbidden_key_falls_back_to_prefix(self, storage, s3_client):
        s3_client.head_object.side_effect = client_error("403")
        s3_client.list_objects_v2.return_value = {"KeyCount": 1}

        assert storage.exists("restricted")
        s3_client.list_objects_v2.assert_called_once_with(
            Bucket="test-bucket", Prefix="restricted/", MaxKeys=1)

    def test_forbidden_key_without_prefix_is_missing(self, storage, s3_client):
        s3_client.head_object.side_effect = client_error("403")
        s3_client.list_objects_v2.return_value = {"KeyCount": 0}

        assert not storage.exists("secret")


class TestS3Download:
    """Test streamed downloads."""

    def test_download(self, storage, s3_client):
        body = Mock()
        body.iter_chunks.return_value = iter([b"hello ", b"world"])
        s3_client.get_object.return_value = {
            "Body": body,
            "ContentLength": 11,
            "ContentType": "text/plain",
        }

        stream = storage.download("docs/readme.md")

        assert stream.filename == "readme.md"
        assert stream.size == 11
        assert stream.mime_type == "text/plain"
        assert stream.read() == b"hello world"
        body.close.assert_called_once()

    def test_download_missing(self, storage, s3_client):
        s3_client.get_object.side_effect = client_error("NoSuchKey", "GetObject")
        with pytest.raises(NotFound):
            storage.download("missing.txt")

    def test_download_failure(self, storage, s3_client):
        s3_client.get_object.side_effect = client_error("InternalError", "GetObject")
        with pytest.raises(BackendUnavailable):
            storage.download("docs/readme.md")
