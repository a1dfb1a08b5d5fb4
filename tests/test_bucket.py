"""
Tests for bucket management.
"""

from unittest.mock import AsyncMock

import pytest

from datalake_mediator.datalake.bucket import BucketManager
from datalake_mediator.datalake.exceptions import BucketDoesNotExistError


@pytest.fixture
def buckets(storage):
    return BucketManager(storage)


class TestEnsureExists:
    """Tests for BucketManager.ensure_exists."""

    @pytest.mark.asyncio
    async def test_existing_bucket(self, buckets, storage):
        storage.buckets.add("reports")

        await buckets.ensure_exists("reports")

        assert buckets.get_registered_buckets() == {"reports"}

    @pytest.mark.asyncio
    async def test_missing_bucket_is_created(self, buckets, storage):
        await buckets.ensure_exists("reports", create_if_not_exists=True)

        assert "reports" in storage.buckets
        assert "reports" in buckets.get_registered_buckets()

    @pytest.mark.asyncio
    async def test_missing_bucket_raises(self, buckets, storage):
        with pytest.raises(BucketDoesNotExistError):
            await buckets.ensure_exists("reports")

        assert "reports" not in storage.buckets
        assert buckets.get_registered_buckets() == set()

    @pytest.mark.asyncio
    async def test_backend_errors_propagate(self, buckets, storage):
        storage.bucket_exists = AsyncMock(side_effect=ConnectionError("down"))

        with pytest.raises(ConnectionError):
            await buckets.ensure_exists("reports")


class TestCheckFileExists:
    """Tests for BucketManager.check_file_exists."""

    @pytest.mark.asyncio
    async def test_file_exists(self, buckets, storage):
        storage.add_object("b", "a.json", b"{}", content_type="application/json")

        result = await buckets.check_file_exists("b", "a.json")

        assert result.exists and result.success

    @pytest.mark.asyncio
    async def test_missing_bucket(self, buckets):
        result = await buckets.check_file_exists("nope", "a.json")

        assert not result.exists
        assert not result.success
        assert "does not exist" in result.message

    @pytest.mark.asyncio
    async def test_missing_file(self, buckets, storage):
        storage.buckets.add("b")

        result = await buckets.check_file_exists("b", "a.json")

        assert not result.exists
        assert result.success

    @pytest.mark.asyncio
    async def test_mime_type_mismatch(self, buckets, storage):
        storage.add_object("b", "a.json", b"{}", content_type="text/plain")

        result = await buckets.check_file_exists("b", "a.json", "application/json")

        assert not result.exists
        assert result.success
        assert "different MIME type" in result.message

    @pytest.mark.asyncio
    async def test_backend_error(self, buckets, storage):
        storage.buckets.add("b")
        storage.stat_object = AsyncMock(side_effect=RuntimeError("timeout"))

        result = await buckets.check_file_exists("b", "a.json")

        assert not result.success
        assert "timeout" in result.message


@pytest.mark.parametrize(
    "name,valid",
    [
        ("reports", True),
        ("my-bucket.2024", True),
        ("ab", False),
        ("a" * 64, False),
        ("Upper", False),
        ("-leading", False),
        ("trailing-", False),
        ("double..dot", False),
        ("under_score", False),
        ("xn--bucket", False),
        ("bucket-s3alias", False),
        ("", False),
    ],
)
def test_validate_name(name, valid):
    """Test bucket naming rules."""
    assert BucketManager.validate_name(name) is valid


def test_sanitize_name():
    """Test turning arbitrary strings into bucket names."""
    assert BucketManager.sanitize_name("My Reports_2024!") == "myreports2024"
    assert BucketManager.sanitize_name("--edge--") == "edge"
    assert len(BucketManager.sanitize_name("x" * 100)) == 63
