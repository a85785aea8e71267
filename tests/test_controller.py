import asyncio
import unittest

from fakes import FakeS3Client
from s3_vfs.bucket import BucketHandle
from s3_vfs.controller import BucketViewController, NotConnectedError
from s3_vfs.host import ViewRegistry
from s3_vfs.services import S3ObjectStore
from s3_vfs.settings import AppSettings


class BucketViewControllerTests(unittest.TestCase):
    def setUp(self):
        self.client = FakeS3Client(buckets=["alpha", "beta"])
        self.factory_calls = []
        self.host = ViewRegistry()

        def factory(*args, **kwargs):
            self.factory_calls.append(kwargs)
            return self.client

        self.controller = BucketViewController(
            self.host,
            settings=AppSettings(page_size=25, presign_expires_in=90, background_workers=2),
            client_factory=factory,
        )

    def tearDown(self):
        self.controller.close()

    def test_requires_connection(self):
        self.assertFalse(self.controller.is_connected)

        with self.assertRaises(NotConnectedError):
            self.controller.open_bucket("alpha")
        with self.assertRaises(NotConnectedError):
            self.controller.refresh_buckets()

    def test_connect_lists_buckets(self):
        buckets = self.controller.connect(
            endpoint_url="https://example.com",
            access_key="access",
            secret_key="secret",
        )

        self.assertEqual(["alpha", "beta"], buckets)
        self.assertTrue(self.controller.is_connected)
        self.assertEqual("https://example.com", self.factory_calls[0]["endpoint_url"])
        self.assertEqual(["alpha", "beta"], self.controller.refresh_buckets())

    def test_open_bucket_registers_view_with_settings(self):
        self.controller.use_store(S3ObjectStore(self.client))

        handle = self.controller.open_bucket("alpha", "docs/")

        self.assertIsInstance(handle, BucketHandle)
        self.assertEqual("alpha/docs/", handle.name)
        self.assertEqual(25, handle.page_size)
        self.assertEqual([handle], self.host.open_views())
        asyncio.run(handle.list_objects("docs/"))
        self.assertEqual(25, self.client.list_objects_kwargs[0]["MaxKeys"])
        handle.generate_url("docs/a.txt")
        self.assertEqual(90, self.client.presigned_url_calls[0]["expires_in"])

    def test_updated_settings_apply_to_views_opened_afterwards(self):
        self.controller.use_store(S3ObjectStore(self.client))
        before = self.controller.open_bucket("alpha")

        self.controller.update_settings(AppSettings(page_size=7, presign_expires_in=30))
        after = self.controller.open_bucket("beta")

        self.assertEqual(25, before.page_size)
        self.assertEqual(7, after.page_size)
        self.assertEqual(7, self.controller.settings.page_size)

    def test_handles_share_store(self):
        self.controller.use_store(S3ObjectStore(self.client))

        first = self.controller.open_bucket("alpha")
        second = self.controller.open_bucket("beta")

        self.assertIs(first.store, second.store)
        self.assertEqual(2, len(self.host.open_views()))

    def test_equal_handles_are_both_tracked(self):
        self.controller.use_store(S3ObjectStore(self.client))

        first = self.controller.open_bucket("alpha")
        second = self.controller.open_bucket("alpha")

        self.assertEqual(first, second)
        self.assertEqual(2, len(self.host.open_views()))


if __name__ == "__main__":
    unittest.main()
