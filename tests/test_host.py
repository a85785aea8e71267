import unittest

from s3_vfs.bucket import BucketHandle
from s3_vfs.host import Identity, ViewRegistry
from s3_vfs.models import PropertyChangeEvent
from s3_vfs.services import S3ObjectStore

from fakes import FakeS3Client


class ViewRegistryTests(unittest.TestCase):
    def test_open_and_close_track_instances(self):
        registry = ViewRegistry()
        first = object()
        second = object()

        registry.open_view(first)
        registry.open_view(first)
        registry.open_view(second)
        registry.close_view(first)

        self.assertEqual([second], registry.open_views())
        self.assertFalse(registry.is_open(first))

    def test_listeners_receive_notifications(self):
        registry = ViewRegistry()
        events = []
        refreshes = []
        errors = []
        registry.add_property_listener(events.append)
        registry.add_refresh_listener(refreshes.append)
        registry.add_error_listener(errors.append)
        event = PropertyChangeEvent(object(), "name", "a", "b")

        registry.notify_property_changed(event)
        registry.refresh("tag")
        with self.assertLogs("s3_vfs.host", level="ERROR"):
            registry.notify_error("broken")

        self.assertEqual([event], events)
        self.assertEqual(["tag"], refreshes)
        self.assertEqual(["broken"], errors)

    def test_bucket_handle_satisfies_identity(self):
        handle = BucketHandle("bucket", "", S3ObjectStore(FakeS3Client()), ViewRegistry())

        self.assertIsInstance(handle, Identity)


if __name__ == "__main__":
    unittest.main()
