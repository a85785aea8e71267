from __future__ import annotations
"""A bucket (or a prefix inside it) presented to the host as a single file-like view."""
import logging
from typing import BinaryIO, Callable, Optional

from .background import BackgroundContext, UiExecutor, default_background
from .host import LIST_BUCKETS, PROP_NAME, ViewHost
from .models import DeleteResult, ListingPage, PropertyChangeEvent, VersionListingPage
from .paths import DELIMITER, display_name, folder_key
from .services import S3ObjectStore

MAX_ITEMS_TO_LOAD = 300
DEFAULT_URL_EXPIRY = 3600
BUCKET_DOES_NOT_EXIST = "Bucket '{}' does not exist"

LOGGER = logging.getLogger(__name__)


class BucketHandle:
    """Identity, navigation and object operations for one bucket view.

    Equality and hashing follow the *current* ``bucket_name`` and ``prefix``.
    Changing the prefix changes the hash, so a handle must not sit in a set or
    dict key across :meth:`set_prefix`.

    Remote operations are coroutines that run the blocking store call on the
    shared :class:`BackgroundContext`. Store errors propagate untouched.
    """

    def __init__(
        self,
        bucket_name: str,
        prefix: str,
        store: S3ObjectStore,
        host: ViewHost,
        *,
        background: BackgroundContext | None = None,
        ui: UiExecutor | None = None,
        page_size: int = MAX_ITEMS_TO_LOAD,
        url_expires_in: int = DEFAULT_URL_EXPIRY,
    ):
        self._bucket_name = bucket_name
        self._prefix = prefix
        self._store = store
        self._host = host
        self._background = background or default_background()
        self._ui = ui or UiExecutor()
        self._page_size = page_size
        self._url_expires_in = url_expires_in
        self._retiring = False

    @property
    def bucket_name(self) -> str:
        return self._bucket_name

    @property
    def prefix(self) -> str:
        return self._prefix

    @property
    def store(self) -> S3ObjectStore:
        return self._store

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def name(self) -> str:
        return display_name(self._bucket_name, self._prefix)

    display_name = name

    @property
    def path(self) -> str:
        return self.name

    @property
    def parent(self) -> None:
        return None

    # Fixed facts for the host: never a directory, read-only, always valid.
    @property
    def is_directory(self) -> bool:
        return False

    @property
    def is_writable(self) -> bool:
        return False

    @property
    def is_valid(self) -> bool:
        return True

    @property
    def is_retiring(self) -> bool:
        return self._retiring

    def set_prefix(self, prefix: str) -> PropertyChangeEvent:
        """Move the view to ``prefix`` and tell the host its name changed.

        The event is sent even when the display name is unchanged.
        """

        old_name = self.name
        self._prefix = prefix
        event = PropertyChangeEvent(self, PROP_NAME, old_name, self.name)
        self._host.notify_property_changed(event)
        return event

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BucketHandle):
            return NotImplemented
        return self._bucket_name == other._bucket_name and self._prefix == other._prefix

    def __hash__(self) -> int:
        return hash((self._bucket_name, self._prefix))

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"BucketHandle(bucket_name={self._bucket_name!r}, prefix={self._prefix!r})"

    async def list_objects(self, prefix: str, continuation_token: str | None = None) -> ListingPage:
        LOGGER.debug("Listing '%s' under prefix '%s'", self._bucket_name, prefix)
        return await self._background.run(
            self._store.list_objects,
            self._bucket_name,
            prefix,
            DELIMITER,
            self._page_size,
            continuation_token,
        )

    async def list_object_versions(
        self,
        key: str,
        key_marker: str | None = None,
        version_id_marker: str | None = None,
    ) -> Optional[VersionListingPage]:
        """Return one page of version history, or ``None`` once exhausted."""

        if version_id_marker and not key_marker:
            raise ValueError("version_id_marker requires key_marker")
        LOGGER.debug("Listing versions of '%s' in '%s'", key, self._bucket_name)
        page = await self._background.run(
            self._store.list_object_versions,
            self._bucket_name,
            key,
            DELIMITER,
            self._page_size,
            key_marker,
            version_id_marker,
        )
        if page.is_empty and not page.is_truncated:
            return None
        return page

    async def new_folder(self, name: str) -> None:
        key = folder_key(name)
        LOGGER.debug("Creating folder marker '%s' in '%s'", key, self._bucket_name)
        await self._background.run(self._store.put_object, self._bucket_name, key, b"")

    async def delete_objects(self, keys: list[str]) -> DeleteResult:
        if not keys:
            return DeleteResult()
        LOGGER.debug("Deleting %d object(s) from '%s'", len(keys), self._bucket_name)
        return await self._background.run(self._store.delete_objects, self._bucket_name, list(keys))

    async def rename_object(self, from_key: str, to_key: str) -> None:
        """Copy ``from_key`` to ``to_key`` then delete ``from_key``.

        Not atomic. If the delete fails both keys exist and the error
        propagates; the copy is not rolled back.
        """

        def copy_then_delete() -> None:
            self._store.copy_object(self._bucket_name, from_key, self._bucket_name, to_key)
            self._store.delete_object(self._bucket_name, from_key)

        LOGGER.debug("Renaming '%s' to '%s' in '%s'", from_key, to_key, self._bucket_name)
        await self._background.run(copy_then_delete)

    async def upload(
        self,
        source: BinaryIO,
        length: int,
        key: str,
        *,
        progress_callback: Callable[[int], None] | None = None,
        cancel_requested: Callable[[], bool] | None = None,
    ) -> None:
        LOGGER.debug("Uploading %d byte(s) to '%s/%s'", length, self._bucket_name, key)
        await self._background.run(
            self._store.upload,
            self._bucket_name,
            key,
            source,
            length,
            progress_callback=progress_callback,
            cancel_requested=cancel_requested,
        )

    async def download(
        self,
        key: str,
        destination: BinaryIO,
        version_id: str | None = None,
        *,
        progress_callback: Callable[[int], None] | None = None,
        cancel_requested: Callable[[], bool] | None = None,
    ) -> None:
        LOGGER.debug("Downloading '%s/%s' (version %s)", self._bucket_name, key, version_id or "latest")
        await self._background.run(
            self._store.download,
            self._bucket_name,
            key,
            version_id,
            destination,
            progress_callback=progress_callback,
            cancel_requested=cancel_requested,
        )

    def generate_url(self, key: str, version_id: str | None = None) -> str:
        return self._store.get_presigned_url(
            self._bucket_name,
            key,
            version_id,
            expires_in=self._url_expires_in,
        )

    def handle_deleted_bucket(self) -> None:
        """Retire the open views named after this bucket once it vanished remotely.

        Only views whose display name is exactly the bucket name are closed, so
        views opened on a prefix stay open. The closes run on the UI thread and
        this call waits for them before asking the host to reload its bucket list.
        """

        LOGGER.warning("Bucket '%s' no longer exists; closing its views", self._bucket_name)
        self._retiring = True
        self._host.notify_error(BUCKET_DOES_NOT_EXIST.format(self._bucket_name))

        def close_views() -> None:
            for view in self._host.open_views():
                if isinstance(view, BucketHandle) and view.name == self._bucket_name:
                    self._host.close_view(view)

        self._ui.call(close_views)
        self._host.refresh(LIST_BUCKETS)
