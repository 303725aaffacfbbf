"""Tests for the S3-compatible artifact store adapter."""

from __future__ import annotations

import unittest
from unittest.mock import MagicMock

from botocore.exceptions import ClientError, EndpointConnectionError

from cattlescan.errors import StorageFailure
from cattlescan.services.storage import S3ArtifactStore, build_artifact_path


def _client_error(operation: str) -> ClientError:
    return ClientError({"Error": {"Code": "AccessDenied", "Message": "Access Denied"}}, operation)


class S3ArtifactStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self.client = MagicMock()
        self.store = S3ArtifactStore(
            client=self.client,
            bucket="cnb",
            public_base_url="https://cnb.nyc3.digitaloceanspaces.com/",
        )

    def test_upload_is_public_and_returns_public_url(self) -> None:
        url = self.store.upload("images/1-abc-cow.jpg", b"bytes", "image/jpeg")

        self.assertEqual(url, "https://cnb.nyc3.digitaloceanspaces.com/images/1-abc-cow.jpg")
        self.client.put_object.assert_called_once_with(
            Bucket="cnb",
            Key="images/1-abc-cow.jpg",
            Body=b"bytes",
            ContentType="image/jpeg",
            ACL="public-read",
        )

    def test_client_errors_become_storage_failures(self) -> None:
        self.client.put_object.side_effect = _client_error("PutObject")
        with self.assertRaises(StorageFailure) as ctx:
            self.store.upload("images/x.jpg", b"bytes", "image/jpeg")
        self.assertEqual(ctx.exception.stage, "upload")

        self.client.delete_object.side_effect = EndpointConnectionError(endpoint_url="https://nyc3.test")
        with self.assertRaises(StorageFailure):
            self.store.delete("images/x.jpg")

    def test_list_paths_walks_every_page(self) -> None:
        paginator = MagicMock()
        paginator.paginate.return_value = [
            {"Contents": [{"Key": "images/1.jpg"}, {"Key": "images/2.jpg"}]},
            {},
            {"Contents": [{"Key": "images/3.jpg"}]},
        ]
        self.client.get_paginator.return_value = paginator

        paths = self.store.list_paths("images/")

        self.assertEqual(paths, ["images/1.jpg", "images/2.jpg", "images/3.jpg"])
        self.client.get_paginator.assert_called_once_with("list_objects_v2")
        paginator.paginate.assert_called_once_with(Bucket="cnb", Prefix="images/")


class ArtifactPathTests(unittest.TestCase):
    def test_path_is_prefixed_timestamped_and_sanitized(self) -> None:
        path = build_artifact_path("../My Cow (1).JPG", prefix="images/", now_ms=1760000000000)

        self.assertTrue(path.startswith("images/1760000000000-"))
        self.assertTrue(path.endswith("-My-Cow-1-.JPG"))

    def test_paths_do_not_collide_for_the_same_name_and_instant(self) -> None:
        first = build_artifact_path("cow.jpg", prefix="images/", now_ms=1)
        second = build_artifact_path("cow.jpg", prefix="images/", now_ms=1)

        self.assertNotEqual(first, second)

    def test_empty_name_falls_back(self) -> None:
        self.assertTrue(build_artifact_path("///", prefix="", now_ms=5).endswith("-image"))


if __name__ == "__main__":
    unittest.main()
